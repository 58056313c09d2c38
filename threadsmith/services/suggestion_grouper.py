"""Grouping of repeated spelling spans into single actionable entries."""
from __future__ import annotations

from typing import Dict, Iterable, List, Tuple

from threadsmith.models.spans import GroupedSpan, Span, SpanKind


class SuggestionGrouper:
    """Aggregate spelling spans that flag the same word within a segment.

    Keys compare ``flagged_text`` case-sensitively, so ``Teh`` and ``teh`` are
    separate groups. Grammar spans are never grouped: their reason can differ
    per occurrence.
    """

    def __init__(self) -> None:
        self._records: Dict[Tuple[str, str], GroupedSpan] = {}
        self._starts: Dict[Tuple[str, str], List[Tuple[int, str]]] = {}

    def add(self, span: Span) -> None:
        if span.kind is SpanKind.GRAMMAR:
            return

        key = (span.segment_id, span.flagged_text)
        record = self._records.get(key)
        if record is None:
            self._records[key] = GroupedSpan(
                flagged_text=span.flagged_text,
                segment_id=span.segment_id,
                first_start=span.start,
                occurrences=1,
                member_ids=[span.id],
                candidates=list(span.candidates),
            )
            self._starts[key] = [(span.start, span.id)]
            return

        record.occurrences += 1
        record.first_start = min(record.first_start, span.start)
        self._starts[key].append((span.start, span.id))
        for candidate in span.candidates:
            if candidate not in record.candidates:
                record.candidates.append(candidate)

    def finalize(self) -> List[GroupedSpan]:
        results: List[GroupedSpan] = []
        for key, record in self._records.items():
            record.member_ids = [span_id for _, span_id in sorted(self._starts[key])]
            results.append(record)
        results.sort(key=self._sort_key)
        return results

    @staticmethod
    def _sort_key(group: GroupedSpan) -> Tuple[int, int]:
        return (-group.occurrences, group.first_start)


def group_spans(spans: Iterable[Span]) -> List[GroupedSpan]:
    """Group spelling spans: most frequent first, earliest first among ties."""
    grouper = SuggestionGrouper()
    # Position order makes "first seen" independent of input order.
    for span in sorted(spans, key=lambda s: (s.segment_id, s.start)):
        grouper.add(span)
    return grouper.finalize()


__all__ = ["SuggestionGrouper", "group_spans"]
