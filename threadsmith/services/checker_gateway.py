"""Checker gateway - turns raw service matches into spelling and grammar spans."""
from __future__ import annotations

from dataclasses import dataclass, field
from time import perf_counter
from typing import AbstractSet, Any, Dict, Iterable, List, Optional

from threadsmith.core.config import Settings
from threadsmith.core.errors import CheckerUnavailableError
from threadsmith.core.logging import LogEvent
from threadsmith.models.segments import CheckerStatus
from threadsmith.models.spans import Span, SpanKind
from threadsmith.services.base_service import BaseService
from threadsmith.services.languagetool_client import CheckerMatch, LanguageToolClient
from threadsmith.services.response_cache import ResponseCache
from threadsmith.services.text_filters import (
    is_typo_rule,
    normalize_dictionary,
    should_ignore_grammar,
    should_ignore_spelling,
)


@dataclass(slots=True)
class CheckResult:
    """Spans produced for one text block.

    ``available`` is False when the service failed; the span lists are then
    empty and ``error`` carries the reason.
    """

    spelling: List[Span] = field(default_factory=list)
    grammar: List[Span] = field(default_factory=list)
    available: bool = True
    error: Optional[str] = None

    @property
    def spans(self) -> List[Span]:
        return [*self.spelling, *self.grammar]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "spelling": [s.to_dict() for s in self.spelling],
            "grammar": [s.to_dict() for s in self.grammar],
            "available": self.available,
            "error": self.error,
        }


class CheckerGateway(BaseService):
    """Adapts the checking service into a uniform stream of spans.

    Owns the response cache; one instance per process, passed by injection.
    """

    def __init__(
        self,
        client: Optional[LanguageToolClient] = None,
        settings: Optional[Settings] = None,
        cache: Optional[ResponseCache[List[CheckerMatch]]] = None,
    ):
        super().__init__(settings)
        self.language = self.settings.language
        self.min_check_length = self.settings.min_check_length
        self.max_candidates = self.settings.max_candidates
        self.client = client or LanguageToolClient(
            base_url=self.settings.languagetool_url,
            timeout=self.settings.request_timeout,
            retry_attempts=self.settings.checker_retry_attempts,
        )
        self.cache: ResponseCache[List[CheckerMatch]] = cache or ResponseCache(
            max_entries=self.settings.cache_max_entries,
            ttl_seconds=self.settings.cache_ttl_seconds,
        )
        self._status = CheckerStatus.UNKNOWN
        self._last_error: Optional[str] = None

    @property
    def status(self) -> CheckerStatus:
        return self._status

    async def check(
        self,
        text: str,
        segment_id: str,
        custom_dictionary: Iterable[str] = (),
    ) -> CheckResult:
        """Check ``text`` and return its spelling and grammar spans.

        Never raises for service failures: the result is empty with
        ``available=False``.
        """
        stripped = text.strip()
        if len(stripped) < self.min_check_length:
            self.logger.debug(LogEvent.CHECK_SKIPPED, segment_id=segment_id, text_length=len(text))
            return CheckResult()

        dictionary = normalize_dictionary(custom_dictionary)
        # The service sees the stripped text; shift offsets back onto ``text``.
        shift = len(text) - len(text.lstrip())

        started = perf_counter()
        try:
            matches = await self._fetch_matches(stripped)
        except CheckerUnavailableError as exc:
            self._status = CheckerStatus.UNAVAILABLE
            self._last_error = exc.message
            self.logger.warning(
                LogEvent.CHECK_FAILED,
                segment_id=segment_id,
                error=exc.message,
            )
            return CheckResult(available=False, error=exc.message)

        self._status = CheckerStatus.AVAILABLE
        self._last_error = None

        result = CheckResult(
            spelling=self.build_spelling_spans(matches, text, segment_id, dictionary, shift),
            grammar=self.build_grammar_spans(matches, text, segment_id, shift),
        )
        self.logger.info(
            LogEvent.CHECK_COMPLETED,
            segment_id=segment_id,
            matches=len(matches),
            spelling=len(result.spelling),
            grammar=len(result.grammar),
            elapsed_ms=round((perf_counter() - started) * 1000, 2),
        )
        return result

    async def _fetch_matches(self, text: str) -> List[CheckerMatch]:
        cached = self.cache.get(text, self.language)
        if cached is not None:
            self.logger.debug(LogEvent.CHECK_CACHE_HIT, text_length=len(text))
            return cached

        matches = await self.client.check(text, self.language)
        self.cache.put(text, self.language, matches)
        return matches

    # ------------------------------------------------------------------
    # Match conversion
    # ------------------------------------------------------------------

    def build_spelling_spans(
        self,
        matches: Iterable[CheckerMatch],
        text: str,
        segment_id: str,
        custom_dictionary: AbstractSet[str] = frozenset(),
        shift: int = 0,
    ) -> List[Span]:
        spans: List[Span] = []
        seen: set[str] = set()
        for match in matches:
            if not is_typo_rule(match):
                continue
            start, end = self._bounds(match, text, shift)
            if start is None:
                continue
            word = text[start:end]
            preceding = text[start - 1] if start > 0 else ""
            if should_ignore_spelling(word, custom_dictionary, preceding):
                continue
            if should_ignore_grammar(word, preceding):
                continue

            span_id = Span.spelling_id(segment_id, start, word)
            if span_id in seen:
                continue
            seen.add(span_id)
            spans.append(Span(
                id=span_id,
                kind=SpanKind.SPELLING,
                segment_id=segment_id,
                start=start,
                end=end,
                flagged_text=word,
                candidates=tuple(match.replacements[:self.max_candidates]),
                rule_id=match.rule_id or None,
            ))
        return spans

    def build_grammar_spans(
        self,
        matches: Iterable[CheckerMatch],
        text: str,
        segment_id: str,
        shift: int = 0,
    ) -> List[Span]:
        spans: List[Span] = []
        seen: set[str] = set()
        for match in matches:
            if is_typo_rule(match):
                continue
            start, end = self._bounds(match, text, shift)
            if start is None:
                continue
            flagged = text[start:end]
            preceding = text[start - 1] if start > 0 else ""
            if should_ignore_grammar(flagged, preceding):
                continue

            span_id = Span.grammar_id(segment_id, start, match.rule_id or "UNKNOWN")
            if span_id in seen:
                continue
            seen.add(span_id)
            spans.append(Span(
                id=span_id,
                kind=SpanKind.GRAMMAR,
                segment_id=segment_id,
                start=start,
                end=end,
                flagged_text=flagged,
                candidates=tuple(match.replacements[:self.max_candidates]),
                reason=match.short_message or match.message or None,
                rule_id=match.rule_id or None,
            ))
        return spans

    @staticmethod
    def _bounds(match: CheckerMatch, text: str, shift: int):
        start = match.offset + shift
        end = start + match.length
        if match.length <= 0 or start < 0 or end > len(text):
            return None, None
        return start, end

    # ------------------------------------------------------------------
    # Status and housekeeping
    # ------------------------------------------------------------------

    def get_status(self) -> Dict[str, Any]:
        return {
            "status": self._status.value,
            "language": self.language,
            "endpoint": self.client.endpoint,
            "error": self._last_error,
            "cache": self.cache.stats(),
        }

    def cache_stats(self) -> Dict[str, Any]:
        return self.cache.stats()

    def clear_cache(self) -> None:
        self.cache.clear()

    async def aclose(self) -> None:
        await self.client.aclose()


__all__ = ["CheckResult", "CheckerGateway"]
