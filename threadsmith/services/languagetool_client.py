"""LanguageTool-compatible checking service client."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import httpx
from tenacity import (
    AsyncRetrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from threadsmith.core.errors import CheckerUnavailableError
from threadsmith.core.logging import LogEvent, get_logger

logger = get_logger(__name__)


@dataclass(slots=True)
class CheckerMatch:
    """One raw match returned by the checking service."""

    offset: int
    length: int
    message: str = ""
    short_message: str = ""
    replacements: List[str] = field(default_factory=list)
    rule_id: str = ""
    category_id: Optional[str] = None

    @classmethod
    def from_payload(cls, item: Dict[str, Any]) -> "CheckerMatch":
        rule = item.get("rule") or {}
        category = rule.get("category") or {}
        return cls(
            offset=int(item.get("offset", 0)),
            length=int(item.get("length", 0)),
            message=item.get("message") or "",
            short_message=item.get("shortMessage") or "",
            replacements=[
                r.get("value", "") for r in item.get("replacements") or [] if isinstance(r, dict)
            ],
            rule_id=rule.get("id") or "",
            category_id=category.get("id"),
        )


def _is_retryable(exc: BaseException) -> bool:
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code >= 500
    return isinstance(exc, httpx.TransportError)


class LanguageToolClient:
    """Async client for a LanguageTool ``/v2/check`` endpoint."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        retry_attempts: int = 2,
        retry_wait: float = 0.5,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize the client.

        Args:
            base_url: Service base URL, without the ``/v2/check`` suffix
            timeout: Request timeout in seconds
            retry_attempts: Attempts per check for transport errors and 5xx responses
            retry_wait: Backoff multiplier in seconds between attempts
            client: Optional pre-built httpx client
        """
        self.base_url = base_url.rstrip("/")
        self.endpoint = f"{self.base_url}/v2/check"
        self.retry_attempts = max(1, retry_attempts)
        self.retry_wait = retry_wait
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            headers={"Accept": "application/json"},
        )

    async def check(self, text: str, language: str) -> List[CheckerMatch]:
        """Submit ``text`` and return the raw matches.

        Raises:
            CheckerUnavailableError: the service failed or returned an unusable response
        """
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.retry_attempts),
                wait=wait_exponential(multiplier=self.retry_wait, max=5),
                retry=retry_if_exception(_is_retryable),
                reraise=True,
            ):
                with attempt:
                    return await self._request(text, language)
        except httpx.HTTPStatusError as exc:
            logger.warning(
                LogEvent.CHECK_FAILED,
                status_code=exc.response.status_code,
                detail=exc.response.text[:200],
            )
            raise CheckerUnavailableError(
                f"HTTP {exc.response.status_code}", status_code=exc.response.status_code
            ) from exc
        except httpx.HTTPError as exc:
            logger.warning(LogEvent.CHECK_FAILED, error=str(exc), error_type=type(exc).__name__)
            raise CheckerUnavailableError(str(exc) or type(exc).__name__) from exc
        raise CheckerUnavailableError("no attempt was made")  # pragma: no cover

    async def _request(self, text: str, language: str) -> List[CheckerMatch]:
        logger.debug(
            LogEvent.CHECK_REQUESTED,
            endpoint=self.endpoint,
            language=language,
            text_length=len(text),
        )
        response = await self.client.post(
            self.endpoint,
            data={"text": text, "language": language},
        )
        response.raise_for_status()

        try:
            data = response.json()
        except ValueError as exc:
            raise CheckerUnavailableError("invalid JSON in checker response") from exc

        matches = data.get("matches") if isinstance(data, dict) else None
        if not isinstance(matches, list):
            raise CheckerUnavailableError("checker response has no matches list")

        try:
            return [CheckerMatch.from_payload(item) for item in matches if isinstance(item, dict)]
        except (TypeError, ValueError, AttributeError) as exc:
            raise CheckerUnavailableError("malformed match in checker response") from exc

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()


__all__ = ["CheckerMatch", "LanguageToolClient"]
