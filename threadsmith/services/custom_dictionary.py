"""
Custom dictionary - the user's personal allow-list for spelling checks.

Updates are optimistic: the local set changes immediately and the optional
sync backend is called afterwards. The change is rolled back when the backend
answers with an explicit ``False`` or fails outright. A timeout is ambiguous:
the backend is re-queried and its stored words decide the outcome.
"""
import asyncio
from abc import ABC, abstractmethod
from typing import Iterable, Optional, Set

import httpx

from threadsmith.core.config import Settings
from threadsmith.core.logging import LogEvent
from threadsmith.services.base_service import BaseService
from threadsmith.services.text_filters import normalize_dictionary, normalize_word


class DictionaryBackend(ABC):
    """Remote store of the user's dictionary."""

    @abstractmethod
    async def load(self) -> Iterable[str]:
        """Return every stored word."""

    @abstractmethod
    async def add_word(self, word: str) -> bool:
        """Store ``word``; False when the store refused it."""

    @abstractmethod
    async def remove_word(self, word: str) -> bool:
        """Delete ``word``; False when the store refused it."""


class InMemoryDictionaryBackend(DictionaryBackend):
    """Process-local backend - for tests and single-user setups."""

    def __init__(self, words: Iterable[str] = ()):
        self.words: Set[str] = set(normalize_dictionary(words))

    async def load(self) -> Iterable[str]:
        return sorted(self.words)

    async def add_word(self, word: str) -> bool:
        self.words.add(normalize_word(word))
        return True

    async def remove_word(self, word: str) -> bool:
        self.words.discard(normalize_word(word))
        return True


class CustomDictionary(BaseService):
    """Normalized word set with two-phase (optimistic, then confirmed) updates."""

    def __init__(
        self,
        words: Iterable[str] = (),
        backend: Optional[DictionaryBackend] = None,
        settings: Optional[Settings] = None,
    ):
        super().__init__(settings)
        self.backend = backend
        self._words: Set[str] = set(normalize_dictionary(words))
        self.is_loaded = backend is None

    def get(self) -> frozenset:
        """Snapshot for one check call."""
        return frozenset(self._words)

    def __contains__(self, word: str) -> bool:
        return normalize_word(word) in self._words

    def __len__(self) -> int:
        return len(self._words)

    async def load(self) -> bool:
        """Replace the local set with the backend's words."""
        if self.backend is None:
            return True
        try:
            words = await self.backend.load()
        except Exception as exc:
            self.logger.error("dictionary_load_failed", error=str(exc), error_type=type(exc).__name__)
            self.is_loaded = False
            return False

        self._words = set(normalize_dictionary(words))
        self.is_loaded = True
        self.logger.info("dictionary_loaded", words=len(self._words))
        return True

    async def add(self, word: str) -> bool:
        normalized = normalize_word(word)
        if not normalized:
            return False
        if normalized in self._words:
            return True

        self._words.add(normalized)
        if await self._sync("add", normalized):
            return True
        self._words.discard(normalized)
        return False

    async def remove(self, word: str) -> bool:
        normalized = normalize_word(word)
        if normalized not in self._words:
            return True

        self._words.discard(normalized)
        if await self._sync("remove", normalized):
            return True
        self._words.add(normalized)
        return False

    async def _sync(self, operation: str, word: str) -> bool:
        if self.backend is None:
            self.logger.info(LogEvent.DICTIONARY_UPDATED, operation=operation, word=word)
            return True

        call = self.backend.add_word if operation == "add" else self.backend.remove_word
        try:
            confirmed = await call(word)
        except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
            return await self._confirm_after_timeout(operation, word, exc)
        except Exception as exc:
            self.logger.warning(
                LogEvent.DICTIONARY_REVERTED,
                operation=operation,
                word=word,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            return False

        if confirmed is False:
            self.logger.warning(LogEvent.DICTIONARY_REVERTED, operation=operation, word=word)
            return False

        self.logger.info(LogEvent.DICTIONARY_UPDATED, operation=operation, word=word)
        return True

    async def _confirm_after_timeout(self, operation: str, word: str, exc: BaseException) -> bool:
        """Re-query the backend; the optimistic change stands when that fails too."""
        self.logger.warning(
            "dictionary_sync_timeout",
            operation=operation,
            word=word,
            error_type=type(exc).__name__,
        )
        try:
            stored = normalize_dictionary(await self.backend.load())
        except Exception as reload_exc:
            self.logger.warning(
                "dictionary_reload_failed",
                operation=operation,
                word=word,
                error=str(reload_exc),
                error_type=type(reload_exc).__name__,
            )
            return True

        confirmed = (word in stored) == (operation == "add")
        if confirmed:
            self.logger.info(LogEvent.DICTIONARY_UPDATED, operation=operation, word=word, after_timeout=True)
        else:
            self.logger.warning(LogEvent.DICTIONARY_REVERTED, operation=operation, word=word, after_timeout=True)
        return confirmed


__all__ = ["CustomDictionary", "DictionaryBackend", "InMemoryDictionaryBackend"]
