"""
Segment orchestrator - owns a thread's segments and their suggestion set.

Lifecycle per segment: CLEAN -> DIRTY (edited) -> CHECKING -> CLEAN. Saving is
orthogonal and runs through a single debounced pipeline.

Checks resolve out of order. Every check and every edit bumps the segment's
generation; a result is installed only if its generation is still current and
the segment still holds the content that was checked.
"""
import asyncio
from datetime import datetime, timezone
from functools import partial
from typing import Any, Awaitable, Dict, Iterable, List, Optional, Set, Tuple
from uuid import uuid4

from threadsmith.core.config import Settings
from threadsmith.core.errors import PersistenceFailureError
from threadsmith.core.logging import LogEvent
from threadsmith.models.segments import (
    TEMP_SEGMENT_PREFIX,
    EditorStatus,
    Segment,
    SegmentState,
    ThreadCounts,
)
from threadsmith.models.spans import GroupedSpan, Span, SpanKind
from threadsmith.services.base_service import BaseService
from threadsmith.services.char_counter import count_characters
from threadsmith.services.checker_gateway import CheckerGateway
from threadsmith.services.custom_dictionary import CustomDictionary
from threadsmith.services.debouncer import Debouncer
from threadsmith.services.offset_editor import apply_best_candidates, apply_replacement, fits
from threadsmith.services.persistence import SegmentPersistence
from threadsmith.services.suggestion_grouper import group_spans
from threadsmith.services.text_filters import is_placeholder, normalize_word

DEFAULT_THREAD_TITLE = "Untitled Thread"


def new_temp_id() -> str:
    return f"{TEMP_SEGMENT_PREFIX}segment-{uuid4().hex[:12]}"


def is_live(content: str, span: Span) -> bool:
    """A span still applies when it fits and still covers the text it flagged."""
    return fits(content, span) and content[span.start:span.end] == span.flagged_text


class SegmentOrchestrator(BaseService):
    """
    In-process editor core for one thread.

    Collaborators are injected: the checker gateway (shared per process), the
    custom dictionary and an optional persistence backend. Without persistence
    nothing is saved and ``save_now`` reports False.
    """

    def __init__(
        self,
        gateway: CheckerGateway,
        dictionary: Optional[CustomDictionary] = None,
        persistence: Optional[SegmentPersistence] = None,
        settings: Optional[Settings] = None,
        thread_id: Optional[str] = None,
        title: str = DEFAULT_THREAD_TITLE,
    ):
        super().__init__(settings)
        self.gateway = gateway
        self.dictionary = dictionary
        self.persistence = persistence
        self.thread_id = thread_id
        self.title = title
        self.auto_save = True
        self.active_segment_id: Optional[str] = None

        self._segments: List[Segment] = []
        self._spans: Dict[str, List[Span]] = {}
        self._generations: Dict[str, int] = {}
        self._check_debouncers: Dict[str, Debouncer] = {}
        self._check_tasks: Dict[str, asyncio.Task] = {}
        self._background: Set[asyncio.Task] = set()
        self._save_debouncer = Debouncer(self.settings.save_debounce_seconds, name="save")
        self._save_lock = asyncio.Lock()
        self._saved_title: Optional[str] = title if thread_id else None
        self._order_dirty = False
        self._status = EditorStatus()

        self._install([Segment(id=new_temp_id())])

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def segments(self) -> List[Segment]:
        return list(self._segments)

    @property
    def status(self) -> EditorStatus:
        self._status.is_checking = any(s.state is SegmentState.CHECKING for s in self._segments)
        return self._status

    def get_segment(self, segment_id: str) -> Optional[Segment]:
        for segment in self._segments:
            if segment.id == segment_id:
                return segment
        return None

    def suggestions(
        self,
        segment_id: Optional[str] = None,
        kind: Optional[SpanKind] = None,
    ) -> List[Span]:
        """Current spans in segment order, then by position."""
        result: List[Span] = []
        for segment in self._segments:
            if segment_id is not None and segment.id != segment_id:
                continue
            spans = sorted(self._spans.get(segment.id, []), key=lambda s: (s.start, s.id))
            result.extend(s for s in spans if kind is None or s.kind is kind)
        return result

    def grouped_suggestions(self, segment_id: Optional[str] = None) -> List[GroupedSpan]:
        return group_spans(self.suggestions(segment_id, SpanKind.SPELLING))

    def find_suggestion(self, span_id: str) -> Optional[Span]:
        for spans in self._spans.values():
            for span in spans:
                if span.id == span_id:
                    return span
        return None

    def counts(self) -> ThreadCounts:
        limit = self.settings.max_tweet_length
        spans = self.suggestions()
        return ThreadCounts(
            spelling=sum(1 for s in spans if s.kind is SpanKind.SPELLING),
            grammar=sum(1 for s in spans if s.kind is SpanKind.GRAMMAR),
            total_characters=sum(s.char_count for s in self._segments),
            over_limit_segments=[s.id for s in self._segments if s.char_count > limit],
        )

    # ------------------------------------------------------------------
    # Segment operations
    # ------------------------------------------------------------------

    def edit_segment(self, segment_id: str, content: str) -> bool:
        """Replace a segment's content; schedules a check and a save.

        Existing spans stay visible until the next check replaces them.
        """
        segment = self.get_segment(segment_id)
        if segment is None:
            return False
        if segment.content == content:
            return True

        segment.content = content
        segment.char_count = count_characters(content)
        segment.state = SegmentState.DIRTY
        self._next_generation(segment_id)

        self.logger.debug(
            LogEvent.SEGMENT_EDITED,
            segment_id=segment_id,
            char_count=segment.char_count,
        )
        self._schedule_check(segment_id)
        self._schedule_save()
        return True

    def add_segment(self, after_id: Optional[str] = None, content: str = "") -> Segment:
        """Insert a temporary segment after ``after_id`` (at the end when absent or unknown)."""
        position = len(self._segments)
        if after_id is not None:
            for i, segment in enumerate(self._segments):
                if segment.id == after_id:
                    position = i + 1
                    break

        segment = Segment(
            id=new_temp_id(),
            content=content,
            char_count=count_characters(content),
            state=SegmentState.DIRTY if content else SegmentState.CLEAN,
        )
        self._segments.insert(position, segment)
        self._reindex()
        self._order_dirty = True
        self.active_segment_id = segment.id

        self.logger.info(LogEvent.SEGMENT_ADDED, segment_id=segment.id, index=segment.index)
        if content:
            self._schedule_check(segment.id)
        self._schedule_save()
        return segment

    def remove_segment(self, segment_id: str) -> bool:
        """Remove a segment; the last remaining segment is never removed."""
        segment = self.get_segment(segment_id)
        if segment is None or len(self._segments) <= 1:
            return False

        self._segments.remove(segment)
        self._reindex()
        self._order_dirty = True
        self._forget_segment(segment_id)
        if self.active_segment_id == segment_id:
            self.active_segment_id = self._segments[0].id

        self.logger.info(LogEvent.SEGMENT_REMOVED, segment_id=segment_id, remaining=len(self._segments))
        if not segment.is_temporary and self.persistence is not None:
            self._spawn(self._delete_persisted(segment_id))
        self._schedule_save()
        return True

    def reorder_segments(self, segment_ids: Iterable[str]) -> bool:
        """Reorder to ``segment_ids``, which must name every segment exactly once."""
        ordered = list(segment_ids)
        by_id = {s.id: s for s in self._segments}
        if len(ordered) != len(by_id) or set(ordered) != set(by_id):
            return False

        self._segments = [by_id[segment_id] for segment_id in ordered]
        self._reindex()
        self._order_dirty = True
        self._schedule_save()
        return True

    def set_active_segment(self, segment_id: str) -> bool:
        if self.get_segment(segment_id) is None:
            return False
        self.active_segment_id = segment_id
        return True

    def set_title(self, title: str) -> None:
        self.title = title
        self._schedule_save()

    # ------------------------------------------------------------------
    # Suggestions
    # ------------------------------------------------------------------

    def apply_suggestion(self, span_id: str, replacement: str) -> bool:
        return self.apply_suggestions([span_id], replacement)

    def apply_suggestions(self, span_ids: Iterable[str], replacement: str) -> bool:
        """Replace every listed span with ``replacement``.

        Spans whose offsets no longer match their segment are dropped and a
        fresh check is scheduled. Returns True when any segment changed.
        """
        wanted = set(span_ids)
        if not wanted:
            return False
        if is_placeholder(replacement):
            self.logger.info(LogEvent.SUGGESTION_REJECTED, replacement=replacement, spans=len(wanted))
            return False

        applied = False
        for segment in list(self._segments):
            targets = [s for s in self._spans.get(segment.id, []) if s.id in wanted]
            if not targets:
                continue

            live, stale = self._partition_live(segment, targets)
            if not live:
                continue

            new_content = apply_replacement(segment.content, live, replacement)
            if new_content == segment.content:
                # Nothing moved, so the other spans still line up.
                applied_ids = {s.id for s in live}
                self._spans[segment.id] = [
                    s for s in self._spans.get(segment.id, []) if s.id not in applied_ids
                ]
            else:
                self._spans[segment.id] = []
                self.edit_segment(segment.id, new_content)
            applied = True
            self.logger.info(
                LogEvent.SUGGESTION_APPLIED,
                segment_id=segment.id,
                span_ids=[s.id for s in live],
                stale=len(stale),
            )
        return applied

    def dismiss_suggestion(self, span_id: str) -> bool:
        for segment_id, spans in self._spans.items():
            remaining = [s for s in spans if s.id != span_id]
            if len(remaining) != len(spans):
                self._spans[segment_id] = remaining
                return True
        return False

    def clear_suggestions(self) -> None:
        self._spans = {segment.id: [] for segment in self._segments}

    async def fix_all(self) -> List[str]:
        """Apply the best candidate of every span, then check and save once.

        Returns the ids of the segments that changed.
        """
        affected: List[str] = []
        applied = skipped = 0
        for segment in list(self._segments):
            spans = self._spans.get(segment.id)
            if not spans:
                continue

            live, _ = self._partition_live(segment, spans)
            outcome = apply_best_candidates(segment.content, live)
            skipped += len(outcome.skipped_ids)
            if not outcome.changed:
                continue

            applied += len(outcome.applied_ids)
            segment.content = outcome.content
            segment.char_count = count_characters(outcome.content)
            segment.state = SegmentState.DIRTY
            self._spans[segment.id] = []
            self._next_generation(segment.id)
            debouncer = self._check_debouncers.get(segment.id)
            if debouncer is not None:
                debouncer.cancel()
            affected.append(segment.id)

        self.logger.info(
            LogEvent.FIX_ALL_COMPLETED,
            segments=len(affected),
            applied=applied,
            skipped=skipped,
        )
        if affected:
            await asyncio.gather(*(self.check_segment(segment_id) for segment_id in affected))
            self._schedule_save()
        return affected

    async def add_to_dictionary(self, word: str) -> bool:
        """Allow ``word`` and drop the spelling spans that flag it."""
        if self.dictionary is None:
            return False
        if not await self.dictionary.add(word):
            return False

        normalized = normalize_word(word)
        for segment_id, spans in self._spans.items():
            self._spans[segment_id] = [
                s for s in spans
                if not (s.kind is SpanKind.SPELLING and normalize_word(s.flagged_text) == normalized)
            ]
        return True

    async def remove_from_dictionary(self, word: str) -> bool:
        """Forget ``word``; every segment containing it is checked again."""
        if self.dictionary is None:
            return False
        if not await self.dictionary.remove(word):
            return False

        normalized = normalize_word(word)
        for segment in self._segments:
            if normalized and normalized in segment.content.lower():
                self._schedule_check(segment.id)
        return True

    # ------------------------------------------------------------------
    # Checking
    # ------------------------------------------------------------------

    async def check_segment(self, segment_id: str) -> bool:
        """Check one segment now. True when a fresh result was installed."""
        task = self._start_check(segment_id)
        if task is None:
            return False
        await asyncio.wait([task])
        if task.cancelled():
            return False
        return task.result()

    async def check_all(self) -> None:
        await asyncio.gather(*(self.check_segment(s.id) for s in list(self._segments)))

    def _start_check(self, segment_id: str) -> Optional[asyncio.Task]:
        segment = self.get_segment(segment_id)
        if segment is None:
            return None

        debouncer = self._check_debouncers.get(segment_id)
        if debouncer is not None:
            debouncer.cancel()

        generation = self._next_generation(segment_id)
        segment.state = SegmentState.CHECKING
        task = asyncio.get_running_loop().create_task(
            self._check(segment_id, generation, segment.content)
        )
        self._check_tasks[segment_id] = task
        task.add_done_callback(partial(self._forget_check_task, segment_id))
        return task

    async def _check(self, segment_id: str, generation: int, content: str) -> bool:
        snapshot = self.dictionary.get() if self.dictionary is not None else frozenset()
        try:
            result = await self.gateway.check(content, segment_id, snapshot)
        except Exception:
            if self._is_current(segment_id, generation, content):
                self._mark(segment_id, SegmentState.DIRTY)
            raise

        if not self._is_current(segment_id, generation, content):
            self.logger.debug(LogEvent.CHECK_DISCARDED, segment_id=segment_id, generation=generation)
            return False

        self._status.checker_status = self.gateway.status
        if not result.available:
            # Old spans stay; applying them is guarded by ``is_live``.
            self._status.last_error = result.error
            self._mark(segment_id, SegmentState.DIRTY)
            return False

        self._status.last_error = None
        self._spans[segment_id] = result.spans
        self._mark(segment_id, SegmentState.CLEAN)
        return True

    def _is_current(self, segment_id: str, generation: int, content: str) -> bool:
        segment = self.get_segment(segment_id)
        return (
            segment is not None
            and self._generations.get(segment_id) == generation
            and segment.content == content
        )

    def _next_generation(self, segment_id: str) -> int:
        """Bump the generation and cancel the superseded in-flight check."""
        generation = self._generations.get(segment_id, 0) + 1
        self._generations[segment_id] = generation
        task = self._check_tasks.pop(segment_id, None)
        if task is not None and not task.done():
            task.cancel()
        return generation

    def _forget_check_task(self, segment_id: str, task: asyncio.Task) -> None:
        if self._check_tasks.get(segment_id) is task:
            del self._check_tasks[segment_id]
        segment = self.get_segment(segment_id)
        if task.cancelled() and segment is not None and segment.state is SegmentState.CHECKING:
            if segment_id not in self._check_tasks:
                segment.state = SegmentState.DIRTY

    def _schedule_check(self, segment_id: str) -> None:
        debouncer = self._check_debouncers.get(segment_id)
        if debouncer is None:
            debouncer = Debouncer(self.settings.check_debounce_seconds, name=f"check:{segment_id}")
            self._check_debouncers[segment_id] = debouncer
        debouncer.schedule(partial(self.check_segment, segment_id))

    def _mark(self, segment_id: str, state: SegmentState) -> None:
        segment = self.get_segment(segment_id)
        if segment is not None:
            segment.state = state

    def _partition_live(self, segment: Segment, spans: List[Span]) -> Tuple[List[Span], List[Span]]:
        live = [s for s in spans if is_live(segment.content, s)]
        stale = [s for s in spans if not is_live(segment.content, s)]
        if stale:
            stale_ids = {s.id for s in stale}
            self._spans[segment.id] = [s for s in self._spans.get(segment.id, []) if s.id not in stale_ids]
            self.logger.info(
                LogEvent.SUGGESTION_STALE,
                segment_id=segment.id,
                span_ids=sorted(stale_ids),
            )
            self._schedule_check(segment.id)
        return live, stale

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _schedule_save(self) -> None:
        if self.auto_save and self.persistence is not None:
            self._save_debouncer.schedule(self.save_now)

    async def save_now(self) -> bool:
        """Persist the thread now. Failures end up in ``status.save_error``."""
        if self.persistence is None:
            return False
        self._save_debouncer.cancel()
        async with self._save_lock:
            return await self._save()

    async def _save(self) -> bool:
        self._status.is_saving = True
        self.logger.info(LogEvent.SAVE_STARTED, thread_id=self.thread_id, segments=len(self._segments))
        errors: List[str] = []
        try:
            try:
                await self._save_thread()
            except PersistenceFailureError as exc:
                return self._save_failed([exc.message])

            for segment in list(self._segments):
                if self.get_segment(segment.id) is not segment:
                    continue
                try:
                    if segment.is_temporary:
                        await self._create_segment(segment)
                    else:
                        await self._persist(
                            "update_segment",
                            self.persistence.update_segment(segment.id, segment.content),
                        )
                except PersistenceFailureError as exc:
                    errors.append(exc.message)

            if self._order_dirty and not errors:
                try:
                    await self._persist(
                        "reorder_segments",
                        self.persistence.reorder_segments(self.thread_id, [s.id for s in self._segments]),
                    )
                    self._order_dirty = False
                except PersistenceFailureError as exc:
                    errors.append(exc.message)
        finally:
            self._status.is_saving = False

        if errors:
            return self._save_failed(errors)

        self._status.save_error = None
        self._status.last_saved_at = datetime.now(timezone.utc)
        self.logger.info(LogEvent.SAVE_COMPLETED, thread_id=self.thread_id, segments=len(self._segments))
        return True

    def _save_failed(self, errors: List[str]) -> bool:
        self._status.save_error = "; ".join(errors)
        self.logger.warning(LogEvent.SAVE_FAILED, thread_id=self.thread_id, errors=errors)
        return False

    async def _save_thread(self) -> None:
        title = self.title or DEFAULT_THREAD_TITLE
        if self.thread_id is None:
            self.thread_id = await self._persist("create_thread", self.persistence.create_thread(title))
            self._saved_title = title
        elif title != self._saved_title:
            await self._persist("update_thread", self.persistence.update_thread(self.thread_id, title))
            self._saved_title = title

    async def _create_segment(self, segment: Segment) -> None:
        created = await self._persist(
            "create_segment",
            self.persistence.create_segment(self.thread_id, segment.content, segment.index),
        )
        if self.get_segment(segment.id) is not segment:
            # Removed while the create was in flight.
            await self._persist("delete_segment", self.persistence.delete_segment(created.id))
            return
        self._swap_segment_id(segment, created.id)

    def _swap_segment_id(self, segment: Segment, new_id: str) -> None:
        old_id = segment.id
        segment.id = new_id
        self._spans[new_id] = [s.with_segment(new_id) for s in self._spans.pop(old_id, [])]
        self._generations[new_id] = self._generations.pop(old_id, 0)
        if self.active_segment_id == old_id:
            self.active_segment_id = new_id

        recheck = False
        debouncer = self._check_debouncers.pop(old_id, None)
        if debouncer is not None:
            recheck = debouncer.cancel()
        task = self._check_tasks.pop(old_id, None)
        if task is not None and not task.done():
            task.cancel()
            recheck = True
        if recheck:
            self._schedule_check(new_id)

    async def _delete_persisted(self, segment_id: str) -> None:
        try:
            await self._persist("delete_segment", self.persistence.delete_segment(segment_id))
        except PersistenceFailureError as exc:
            self._save_failed([exc.message])

    async def _persist(self, operation: str, call: Awaitable[Any]) -> Any:
        """Await a persistence call; refusals and errors become PersistenceFailureError."""
        try:
            result = await call
        except PersistenceFailureError:
            raise
        except Exception as exc:
            raise PersistenceFailureError(str(exc) or type(exc).__name__, operation) from exc
        if result is None or result is False:
            raise PersistenceFailureError("refused by backend", operation)
        return result

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def load_segments(
        self,
        segments: Iterable[Segment],
        thread_id: Optional[str] = None,
        title: Optional[str] = None,
        check: bool = True,
    ) -> None:
        """Replace the editor's state with stored segments and schedule their checks."""
        self._cancel_all()
        loaded = sorted(segments, key=lambda s: s.index)
        self._install(loaded or [Segment(id=new_temp_id())])
        if thread_id is not None:
            self.thread_id = thread_id
            self.title = title or DEFAULT_THREAD_TITLE
            self._saved_title = self.title
        if check:
            for segment in self._segments:
                if segment.content:
                    self._schedule_check(segment.id)

    def reset(self) -> None:
        """Back to a single empty temporary segment; pending work is cancelled."""
        self._cancel_all()
        self._install([Segment(id=new_temp_id())])

    async def flush(self) -> None:
        """Run pending checks and the pending save now and wait for them."""
        await asyncio.gather(*(d.flush() for d in list(self._check_debouncers.values())))
        tasks = [t for t in self._check_tasks.values() if not t.done()]
        if tasks:
            await asyncio.wait(tasks)
        await self._save_debouncer.flush()

    async def aclose(self) -> None:
        """Cancel every timer and in-flight task."""
        for debouncer in list(self._check_debouncers.values()):
            await debouncer.aclose()
        await self._save_debouncer.aclose()

        tasks = [*self._check_tasks.values(), *self._background]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._check_debouncers.clear()
        self._check_tasks.clear()
        self._background.clear()

    def _install(self, segments: List[Segment]) -> None:
        self._segments = list(segments)
        for segment in self._segments:
            segment.char_count = count_characters(segment.content)
            segment.state = SegmentState.DIRTY if segment.content else SegmentState.CLEAN
        self._reindex()
        self._spans = {segment.id: [] for segment in self._segments}
        self._generations = {}
        self._order_dirty = False
        self._status = EditorStatus(checker_status=self.gateway.status)
        self.active_segment_id = self._segments[0].id

    def _reindex(self) -> None:
        for index, segment in enumerate(self._segments):
            segment.index = index

    def _forget_segment(self, segment_id: str) -> None:
        self._spans.pop(segment_id, None)
        self._generations.pop(segment_id, None)
        debouncer = self._check_debouncers.pop(segment_id, None)
        if debouncer is not None:
            debouncer.cancel()
        task = self._check_tasks.pop(segment_id, None)
        if task is not None and not task.done():
            task.cancel()

    def _cancel_all(self) -> None:
        for segment_id in list(self._check_debouncers):
            self._forget_segment(segment_id)
        for task in list(self._check_tasks.values()):
            task.cancel()
        self._check_tasks.clear()
        self._save_debouncer.cancel()

    def _spawn(self, coro: Awaitable[None]) -> None:
        task = asyncio.ensure_future(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)


__all__ = ["DEFAULT_THREAD_TITLE", "SegmentOrchestrator", "is_live", "new_temp_id"]
