"""Offset-safe replacement of spans in a segment's content.

Every rewrite splices right to left: replacing a later span never shifts the
offsets of spans still waiting to be processed. After any rewrite, all other
spans of that segment are stale and must be replaced by a fresh check.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Sequence, Tuple

from threadsmith.core.errors import InvalidReplacementError, StaleOffsetError
from threadsmith.models.spans import Span
from threadsmith.services.text_filters import is_placeholder


@dataclass(slots=True)
class EditOutcome:
    """Result of a batch rewrite."""

    content: str
    applied_ids: List[str] = field(default_factory=list)
    skipped_ids: List[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.applied_ids)


def fits(content: str, span: Span) -> bool:
    """True when the span's offsets lie inside ``content``."""
    return 0 <= span.start < span.end <= len(content)


def resolve_overlaps(spans: Iterable[Span]) -> Tuple[List[Span], List[Span]]:
    """Drop overlapping spans deterministically.

    The narrower span wins; ties go to the earlier start, then the lower id.
    Returns ``(kept, dropped)`` with ``kept`` in ascending ``start`` order.
    """
    kept: List[Span] = []
    dropped: List[Span] = []
    for span in sorted(spans, key=lambda s: (s.length, s.start, s.id)):
        if any(span.start < other.end and other.start < span.end for other in kept):
            dropped.append(span)
        else:
            kept.append(span)
    kept.sort(key=lambda s: s.start)
    return kept, dropped


def _splice_right_to_left(content: str, edits: Sequence[Tuple[Span, str]]) -> str:
    for span, replacement in sorted(edits, key=lambda e: e[0].start, reverse=True):
        content = content[:span.start] + replacement + content[span.end:]
    return content


def _ensure_fits(content: str, spans: Iterable[Span]) -> None:
    for span in spans:
        if not fits(content, span):
            raise StaleOffsetError(span.id, span.start, span.end, len(content))


def apply_replacement(content: str, targets: Sequence[Span], replacement: str) -> str:
    """Replace every target span of ``content`` with ``replacement``.

    Targets may arrive in any order. A single target is the degenerate case.

    Raises:
        InvalidReplacementError: ``replacement`` is a manual-rephrase placeholder
        StaleOffsetError: a target does not fit ``content``
    """
    if is_placeholder(replacement):
        raise InvalidReplacementError(replacement)
    _ensure_fits(content, targets)

    kept, _ = resolve_overlaps(targets)
    return _splice_right_to_left(content, [(span, replacement) for span in kept])


def apply_best_candidates(content: str, spans: Sequence[Span]) -> EditOutcome:
    """Fix-all: replace each span by its first candidate in one right-to-left pass.

    Spans without candidates or whose best candidate is a placeholder are
    skipped. An empty-string candidate deletes the span in place.

    Raises:
        StaleOffsetError: a span does not fit ``content``
    """
    _ensure_fits(content, spans)

    outcome = EditOutcome(content=content)
    applicable: List[Span] = []
    for span in spans:
        best = span.best_candidate
        if best is None or is_placeholder(best):
            outcome.skipped_ids.append(span.id)
        else:
            applicable.append(span)

    kept, dropped = resolve_overlaps(applicable)
    outcome.skipped_ids.extend(span.id for span in dropped)
    outcome.content = _splice_right_to_left(content, [(span, span.best_candidate) for span in kept])
    outcome.applied_ids = [span.id for span in kept]
    return outcome


__all__ = [
    "EditOutcome",
    "apply_best_candidates",
    "apply_replacement",
    "fits",
    "resolve_overlaps",
]
