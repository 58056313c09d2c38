"""Segment and editor status models."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

TEMP_SEGMENT_PREFIX = "temp-"


class SegmentState(str, Enum):
    """Check lifecycle of a single segment."""

    CLEAN = "clean"
    DIRTY = "dirty"
    CHECKING = "checking"


class CheckerStatus(str, Enum):
    """Capability of the checking service as last observed."""

    UNKNOWN = "unknown"
    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"


@dataclass(slots=True)
class Segment:
    """One tweet of a thread."""

    id: str
    content: str = ""
    char_count: int = 0
    index: int = 0
    state: SegmentState = SegmentState.CLEAN

    @property
    def is_temporary(self) -> bool:
        return self.id.startswith(TEMP_SEGMENT_PREFIX)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "content": self.content,
            "char_count": self.char_count,
            "index": self.index,
            "state": self.state.value,
        }


@dataclass(slots=True)
class EditorStatus:
    """Observable flags consumed by the UI instead of raw exceptions."""

    is_checking: bool = False
    is_saving: bool = False
    checker_status: CheckerStatus = CheckerStatus.UNKNOWN
    last_error: Optional[str] = None
    save_error: Optional[str] = None
    last_saved_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "is_checking": self.is_checking,
            "is_saving": self.is_saving,
            "checker_status": self.checker_status.value,
            "last_error": self.last_error,
            "save_error": self.save_error,
            "last_saved_at": self.last_saved_at.isoformat() if self.last_saved_at else None,
        }


@dataclass(slots=True)
class ThreadCounts:
    """Per-thread aggregate counts."""

    spelling: int = 0
    grammar: int = 0
    total_characters: int = 0
    over_limit_segments: list[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return self.spelling + self.grammar

    def to_dict(self) -> Dict[str, Any]:
        return {
            "spelling": self.spelling,
            "grammar": self.grammar,
            "total": self.total,
            "total_characters": self.total_characters,
            "over_limit_segments": list(self.over_limit_segments),
        }


__all__ = [
    "CheckerStatus",
    "EditorStatus",
    "Segment",
    "SegmentState",
    "TEMP_SEGMENT_PREFIX",
    "ThreadCounts",
]
