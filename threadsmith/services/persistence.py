"""
Persistence collaborator - the storage contract the editor saves through.

The schema behind it is not ours; implementations only promise these calls.
"""
from abc import ABC, abstractmethod
from typing import Dict, List, Optional
from uuid import uuid4

from threadsmith.core.logging import get_logger
from threadsmith.models.segments import Segment

logger = get_logger(__name__)


class SegmentPersistence(ABC):
    """Thread and segment storage interface."""

    @abstractmethod
    async def create_thread(self, title: str) -> Optional[str]:
        """Create a thread and return its id (None on refusal)."""
        pass

    @abstractmethod
    async def update_thread(self, thread_id: str, title: str) -> bool:
        """Rename a thread."""
        pass

    @abstractmethod
    async def create_segment(self, thread_id: str, content: str, index: int) -> Optional[Segment]:
        """Store a new segment; the returned segment carries its permanent id."""
        pass

    @abstractmethod
    async def update_segment(self, segment_id: str, content: str) -> bool:
        """Replace a stored segment's content."""
        pass

    @abstractmethod
    async def delete_segment(self, segment_id: str) -> bool:
        """Delete a stored segment."""
        pass

    @abstractmethod
    async def reorder_segments(self, thread_id: str, segment_ids: List[str]) -> bool:
        """Persist the order of a thread's segments."""
        pass


class InMemoryPersistence(SegmentPersistence):
    """In-memory implementation - for tests and local use."""

    def __init__(self):
        self.threads: Dict[str, str] = {}
        self.segments: Dict[str, Segment] = {}
        self.segment_threads: Dict[str, str] = {}

    async def create_thread(self, title: str) -> Optional[str]:
        thread_id = uuid4().hex
        self.threads[thread_id] = title
        logger.debug("thread_created", thread_id=thread_id, title=title)
        return thread_id

    async def update_thread(self, thread_id: str, title: str) -> bool:
        if thread_id not in self.threads:
            return False
        self.threads[thread_id] = title
        return True

    async def create_segment(self, thread_id: str, content: str, index: int) -> Optional[Segment]:
        if thread_id not in self.threads:
            return None
        segment = Segment(id=uuid4().hex, content=content, index=index)
        self.segments[segment.id] = segment
        self.segment_threads[segment.id] = thread_id
        logger.debug("segment_created", thread_id=thread_id, segment_id=segment.id, index=index)
        return Segment(id=segment.id, content=content, index=index)

    async def update_segment(self, segment_id: str, content: str) -> bool:
        segment = self.segments.get(segment_id)
        if segment is None:
            return False
        segment.content = content
        return True

    async def delete_segment(self, segment_id: str) -> bool:
        if segment_id not in self.segments:
            return False
        del self.segments[segment_id]
        self.segment_threads.pop(segment_id, None)
        logger.debug("segment_deleted", segment_id=segment_id)
        return True

    async def reorder_segments(self, thread_id: str, segment_ids: List[str]) -> bool:
        if thread_id not in self.threads:
            return False
        for index, segment_id in enumerate(segment_ids):
            segment = self.segments.get(segment_id)
            if segment is not None:
                segment.index = index
        return True

    def thread_segments(self, thread_id: str) -> List[Segment]:
        """Stored segments of a thread in index order."""
        owned = [s for sid, s in self.segments.items() if self.segment_threads.get(sid) == thread_id]
        return sorted(owned, key=lambda s: s.index)


__all__ = ["InMemoryPersistence", "SegmentPersistence"]
