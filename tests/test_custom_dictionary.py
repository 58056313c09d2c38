"""Tests for optimistic custom dictionary updates."""
import asyncio

import httpx

from threadsmith.services.custom_dictionary import (
    CustomDictionary,
    DictionaryBackend,
    InMemoryDictionaryBackend,
)
from tests.helpers import make_settings


class RefusingBackend(DictionaryBackend):
    def __init__(self, answer=False, error=None):
        self.answer = answer
        self.error = error
        self.seen_during_call = None
        self.owner = None

    async def load(self):
        if self.error:
            raise self.error
        return ["Alpha", " beta "]

    async def _respond(self, word):
        if self.owner is not None:
            self.seen_during_call = self.owner.get()
        if self.error:
            raise self.error
        return self.answer

    async def add_word(self, word):
        return await self._respond(word)

    async def remove_word(self, word):
        return await self._respond(word)


def test_words_are_normalized():
    dictionary = CustomDictionary(["  Kubernetes ", "GraphQL"], settings=make_settings())
    assert dictionary.get() == frozenset({"kubernetes", "graphql"})
    assert "KUBERNETES" in dictionary


def test_add_and_remove_without_backend():
    dictionary = CustomDictionary(settings=make_settings())

    assert asyncio.run(dictionary.add(" Threadsmith ")) is True
    assert dictionary.get() == frozenset({"threadsmith"})
    assert asyncio.run(dictionary.add("THREADSMITH")) is True
    assert len(dictionary) == 1

    assert asyncio.run(dictionary.remove("threadsmith")) is True
    assert dictionary.get() == frozenset()
    assert asyncio.run(dictionary.remove("missing")) is True


def test_blank_word_is_refused():
    dictionary = CustomDictionary(settings=make_settings())
    assert asyncio.run(dictionary.add("   ")) is False


def test_add_is_optimistic_and_confirmed():
    backend = InMemoryDictionaryBackend()
    dictionary = CustomDictionary(backend=backend, settings=make_settings())

    assert asyncio.run(dictionary.add("Zod")) is True
    assert "zod" in dictionary
    assert backend.words == {"zod"}


def test_explicit_refusal_rolls_back():
    backend = RefusingBackend(answer=False)
    dictionary = CustomDictionary(backend=backend, settings=make_settings())
    backend.owner = dictionary

    assert asyncio.run(dictionary.add("zod")) is False
    assert backend.seen_during_call == frozenset({"zod"})
    assert dictionary.get() == frozenset()


def test_backend_error_rolls_back_remove():
    backend = RefusingBackend(error=ConnectionError("offline"))
    dictionary = CustomDictionary(["zod"], backend=backend, settings=make_settings())

    assert asyncio.run(dictionary.remove("zod")) is False
    assert dictionary.get() == frozenset({"zod"})


def test_load_replaces_local_words():
    dictionary = CustomDictionary(["old"], backend=RefusingBackend(), settings=make_settings())
    assert dictionary.is_loaded is False

    assert asyncio.run(dictionary.load()) is True
    assert dictionary.get() == frozenset({"alpha", "beta"})
    assert dictionary.is_loaded


def test_failed_load_keeps_local_words():
    dictionary = CustomDictionary(["old"], backend=RefusingBackend(error=TimeoutError()), settings=make_settings())
    assert asyncio.run(dictionary.load()) is False
    assert dictionary.get() == frozenset({"old"})


class SlowBackend(InMemoryDictionaryBackend):
    """Applies (or drops) the write, then times out before answering."""

    def __init__(self, words=(), store=True, error=asyncio.TimeoutError, reload_error=None):
        super().__init__(words)
        self.store = store
        self.error = error
        self.reload_error = reload_error

    async def load(self):
        if self.reload_error:
            raise self.reload_error
        return await super().load()

    async def add_word(self, word):
        if self.store:
            await super().add_word(word)
        raise self.error()

    async def remove_word(self, word):
        if self.store:
            await super().remove_word(word)
        raise self.error()


def test_timeout_after_store_keeps_the_word():
    backend = SlowBackend()
    dictionary = CustomDictionary(backend=backend, settings=make_settings())

    assert asyncio.run(dictionary.add("teh")) is True
    assert dictionary.get() == frozenset({"teh"})
    assert backend.words == {"teh"}


def test_http_timeout_without_store_rolls_back():
    backend = SlowBackend(store=False, error=lambda: httpx.ReadTimeout("slow"))
    dictionary = CustomDictionary(backend=backend, settings=make_settings())

    assert asyncio.run(dictionary.add("teh")) is False
    assert dictionary.get() == frozenset()


def test_timeout_on_remove_uses_the_reloaded_words():
    backend = SlowBackend(words=["zod"])
    dictionary = CustomDictionary(["zod"], backend=backend, settings=make_settings())

    assert asyncio.run(dictionary.remove("zod")) is True
    assert "zod" not in dictionary
    assert backend.words == set()


def test_timeout_with_failed_reload_keeps_the_optimistic_change():
    backend = SlowBackend(store=False, reload_error=ConnectionError("offline"))
    dictionary = CustomDictionary(backend=backend, settings=make_settings())

    assert asyncio.run(dictionary.add("teh")) is True
    assert "teh" in dictionary
