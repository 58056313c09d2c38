"""Tests for the local ignore filters and match classification."""
import pytest

from threadsmith.services.languagetool_client import CheckerMatch
from threadsmith.services.text_filters import (
    is_placeholder,
    is_typo_rule,
    normalize_dictionary,
    should_ignore_grammar,
    should_ignore_spelling,
)


class TestSpellingFilter:
    @pytest.mark.parametrize("word", ["2024", "x", "@handle", "#ThrowbackThursday", "https://t.co/abc", "www.example.com"])
    def test_non_words_pass(self, word):
        assert should_ignore_spelling(word)

    def test_token_after_hash_or_at_sign_passes(self):
        assert should_ignore_spelling("tbt", preceding_char="#")
        assert should_ignore_spelling("jack", preceding_char="@")

    @pytest.mark.parametrize("word", ["lol", "OMG", "tbh", "selfie"])
    def test_social_media_slang_passes(self, word):
        assert should_ignore_spelling(word)

    def test_custom_dictionary_is_case_insensitive(self):
        dictionary = normalize_dictionary(["  Kubernetes "])
        assert should_ignore_spelling("kubernetes", dictionary)
        assert should_ignore_spelling("KUBERNETES", dictionary)
        assert not should_ignore_spelling("kubernetis", dictionary)

    def test_real_typo_is_kept(self):
        assert not should_ignore_spelling("teh")


class TestGrammarFilter:
    @pytest.mark.parametrize("text", ["gonna", "Wanna", "can't", "lol!"])
    def test_informal_words_pass(self, text):
        assert should_ignore_grammar(text)

    def test_allowed_phrase_inside_flagged_text_passes(self):
        assert should_ignore_grammar("I am so excited about this")

    def test_phrase_must_match_on_word_boundaries(self):
        assert not should_ignore_grammar("also excitedly")

    def test_links_and_handles_pass(self):
        assert should_ignore_grammar("see https://example.com now")
        assert should_ignore_grammar("#tag")
        assert should_ignore_grammar("someone", preceding_char="@")

    def test_regular_grammar_issue_is_kept(self):
        assert not should_ignore_grammar("a apple")


class TestClassification:
    def test_typos_category(self):
        assert is_typo_rule(CheckerMatch(offset=0, length=3, rule_id="ANY", category_id="TYPOS"))

    @pytest.mark.parametrize("rule_id", ["MORFOLOGIK_RULE_EN_US", "HUNSPELL_SPELLING_RULE"])
    def test_spelling_rule_ids(self, rule_id):
        assert is_typo_rule(CheckerMatch(offset=0, length=3, rule_id=rule_id, category_id="MISC"))

    def test_spelling_short_message(self):
        match = CheckerMatch(offset=0, length=3, short_message="Spelling mistake", rule_id="X", category_id="MISC")
        assert is_typo_rule(match)

    def test_grammar_rule(self):
        match = CheckerMatch(offset=0, length=3, short_message="Wrong article", rule_id="EN_A_VS_AN", category_id="GRAMMAR")
        assert not is_typo_rule(match)


@pytest.mark.parametrize(
    "replacement, expected",
    [("[Consider rephrasing]", True), ("  [rewrite]", True), ("the", False), ("", False), (None, False)],
)
def test_is_placeholder(replacement, expected):
    assert is_placeholder(replacement) is expected
