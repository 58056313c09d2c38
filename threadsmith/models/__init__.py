"""Domain models."""
from threadsmith.models.segments import (
    CheckerStatus,
    EditorStatus,
    Segment,
    SegmentState,
    TEMP_SEGMENT_PREFIX,
    ThreadCounts,
)
from threadsmith.models.spans import GroupedSpan, Span, SpanKind

__all__ = [
    "CheckerStatus",
    "EditorStatus",
    "GroupedSpan",
    "Segment",
    "SegmentState",
    "Span",
    "SpanKind",
    "TEMP_SEGMENT_PREFIX",
    "ThreadCounts",
]
