"""Span types shared by the checker, grouper, editor and orchestrator."""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class SpanKind(str, Enum):
    """Discriminant of a flagged span."""

    SPELLING = "spelling"
    GRAMMAR = "grammar"


@dataclass(frozen=True, slots=True)
class Span:
    """A flagged region of one segment's content with candidate fixes.

    Offsets are half-open and only valid against the exact content the span was
    produced from. ``flagged_text`` is captured at production time and never
    re-derived after edits.
    """

    id: str
    kind: SpanKind
    segment_id: str
    start: int
    end: int
    flagged_text: str
    candidates: Tuple[str, ...] = ()
    reason: Optional[str] = None
    rule_id: Optional[str] = None

    def __post_init__(self) -> None:
        if self.start < 0 or self.end <= self.start:
            raise ValueError(f"Invalid span offsets [{self.start}, {self.end})")
        if self.kind is SpanKind.SPELLING and self.reason is not None:
            raise ValueError("Spelling spans do not carry a reason")

    @property
    def length(self) -> int:
        return self.end - self.start

    @property
    def best_candidate(self) -> Optional[str]:
        return self.candidates[0] if self.candidates else None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "kind": self.kind.value,
            "segment_id": self.segment_id,
            "start": self.start,
            "end": self.end,
            "flagged_text": self.flagged_text,
            "candidates": list(self.candidates),
            "rule_id": self.rule_id,
        }
        if self.kind is SpanKind.GRAMMAR:
            data["reason"] = self.reason
        return data

    def with_segment(self, segment_id: str) -> "Span":
        """Same span re-keyed under another segment id (temp id swapped for a saved one)."""
        if self.kind is SpanKind.SPELLING:
            span_id = Span.spelling_id(segment_id, self.start, self.flagged_text)
        else:
            span_id = Span.grammar_id(segment_id, self.start, self.rule_id or "UNKNOWN")
        return replace(self, id=span_id, segment_id=segment_id)

    @staticmethod
    def spelling_id(segment_id: str, start: int, word: str) -> str:
        return f"spelling-{segment_id}-{start}-{word}"

    @staticmethod
    def grammar_id(segment_id: str, start: int, rule_id: str) -> str:
        return f"grammar-{segment_id}-{start}-{rule_id}"


@dataclass(slots=True)
class GroupedSpan:
    """Display-only aggregation of same-word spelling spans within one segment."""

    flagged_text: str
    segment_id: str
    first_start: int
    occurrences: int = 1
    member_ids: list[str] = field(default_factory=list)
    candidates: list[str] = field(default_factory=list)

    @property
    def has_fix(self) -> bool:
        return bool(self.candidates)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "flagged_text": self.flagged_text,
            "segment_id": self.segment_id,
            "first_start": self.first_start,
            "occurrences": self.occurrences,
            "member_ids": list(self.member_ids),
            "candidates": list(self.candidates),
            "has_fix": self.has_fix,
        }


__all__ = ["GroupedSpan", "Span", "SpanKind"]
