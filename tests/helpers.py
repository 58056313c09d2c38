"""Shared builders and fakes for the test-suite."""
from __future__ import annotations

import asyncio
from typing import Callable, Dict, List, Optional, Sequence, Union

from threadsmith.core.config import Settings
from threadsmith.models.spans import Span, SpanKind
from threadsmith.services.languagetool_client import CheckerMatch

CHECKER_URL = "http://checker.test"

Payload = List[dict]
Responder = Callable[[str], Union[Payload, Exception]]


def make_settings(**overrides) -> Settings:
    values = {
        "languagetool_url": CHECKER_URL,
        "check_debounce_ms": 0,
        "save_debounce_ms": 0,
        "checker_retry_attempts": 1,
        "json_logs": False,
    }
    values.update(overrides)
    return Settings(**values)


def lt_match(
    offset: int,
    length: int,
    replacements: Sequence[str] = (),
    rule_id: str = "MORFOLOGIK_RULE_EN_US",
    category: str = "TYPOS",
    message: str = "Possible spelling mistake found.",
    short_message: str = "Spelling mistake",
) -> dict:
    """One match in the checker's JSON wire format."""
    return {
        "offset": offset,
        "length": length,
        "message": message,
        "shortMessage": short_message,
        "replacements": [{"value": r} for r in replacements],
        "rule": {"id": rule_id, "category": {"id": category}},
    }


def typo(text: str, word: str, replacements: Sequence[str] = (), occurrence: int = 0) -> dict:
    """Spelling match for the ``occurrence``-th appearance of ``word`` in ``text``."""
    start = -1
    for _ in range(occurrence + 1):
        start = text.index(word, start + 1)
    return lt_match(start, len(word), replacements)


def grammar(
    text: str,
    fragment: str,
    replacements: Sequence[str] = (),
    rule_id: str = "EN_A_VS_AN",
    short_message: str = "Wrong article",
) -> dict:
    return lt_match(
        text.index(fragment),
        len(fragment),
        replacements,
        rule_id=rule_id,
        category="GRAMMAR",
        message="Use a different article.",
        short_message=short_message,
    )


def make_span(
    content: str,
    word: str,
    candidates: Sequence[str] = (),
    start: Optional[int] = None,
    segment_id: str = "s1",
    kind: SpanKind = SpanKind.SPELLING,
) -> Span:
    if start is None:
        start = content.index(word)
    assert content[start:start + len(word)] == word
    if kind is SpanKind.SPELLING:
        span_id = Span.spelling_id(segment_id, start, word)
        reason = None
    else:
        span_id = Span.grammar_id(segment_id, start, "RULE")
        reason = "Grammar issue"
    return Span(
        id=span_id,
        kind=kind,
        segment_id=segment_id,
        start=start,
        end=start + len(word),
        flagged_text=word,
        candidates=tuple(candidates),
        reason=reason,
        rule_id=None if kind is SpanKind.SPELLING else "RULE",
    )


class FakeCheckerClient:
    """Stands in for LanguageToolClient; answers from a responder function.

    A text listed in ``gates`` is held until its event is set, which lets a
    test resolve checks out of order.
    """

    endpoint = f"{CHECKER_URL}/v2/check"

    def __init__(self, responder: Optional[Responder] = None):
        self.responder: Responder = responder or (lambda text: [])
        self.calls: List[str] = []
        self.gates: Dict[str, asyncio.Event] = {}
        self.closed = False

    async def check(self, text: str, language: str) -> List[CheckerMatch]:
        self.calls.append(text)
        gate = self.gates.get(text)
        if gate is not None:
            await gate.wait()
        result = self.responder(text)
        if isinstance(result, Exception):
            raise result
        return [CheckerMatch.from_payload(item) for item in result]

    async def aclose(self) -> None:
        self.closed = True
