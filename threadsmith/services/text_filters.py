"""
Local filters applied to checker matches before they become spans.

Short-form social text is full of deliberate slang, handles and links; these
rules keep the checker from flagging them.
"""
import re
from typing import AbstractSet, Iterable, Optional

from threadsmith.services.languagetool_client import CheckerMatch

# Common social media abbreviations and slang
SOCIAL_MEDIA_WORDS = frozenset({
    "lol", "omg", "wtf", "tbh", "imo", "imho", "fyi", "btw", "dm", "rt", "mt",
    "ff", "tbt", "ootd", "yolo", "fomo", "selfie", "hashtag", "tweet", "retweet",
    "covid", "covid19", "coronavirus", "pandemic", "lockdown", "quarantine",
    "app", "apps", "smartphone", "iphone", "android", "ios", "wifi", "bluetooth",
})

# Informal contractions the grammar checker must leave alone
INFORMAL_WORDS = frozenset({
    "lol", "omg", "btw", "fyi", "imo", "imho", "tbh", "dm", "rt",
    "gonna", "wanna", "gotta", "kinda", "sorta", "dunno",
    "can't", "won't", "don't", "isn't", "aren't", "wasn't", "weren't",
    "haven't", "hasn't", "hadn't", "wouldn't", "couldn't", "shouldn't",
})

ALLOWED_PHRASES = frozenset({
    "so excited", "can't wait", "love this", "hate when", "just saying",
    "no way", "for real", "my bad", "nbd", "np", "yw", "ty", "thx",
})

# Rule ids of the upstream service that denote typos
TYPO_CATEGORY = "TYPOS"
TYPO_RULE_MARKERS = ("SPELLING", "MORFOLOGIK")

NUMERIC_PATTERN = re.compile(r"^\d+$")
LEAD_IN_PATTERN = re.compile(r"^(https?://|www\.|@|#)", re.IGNORECASE)
URL_PATTERN = re.compile(r"(https?://|www\.)", re.IGNORECASE)
NON_WORD_PATTERN = re.compile(r"[^\w']")
EDGE_PUNCTUATION = " \t\n\r.,!?;:\"()"

PLACEHOLDER_PREFIX = "["


def normalize_word(word: str) -> str:
    """Dictionary normal form: trimmed, lower case."""
    return word.strip().lower()


def normalize_dictionary(words: Iterable[str]) -> frozenset:
    """Snapshot a custom dictionary in normal form."""
    return frozenset(w for w in (normalize_word(word) for word in words) if w)


def clean_token(word: str) -> str:
    """Strip everything except word characters and apostrophes."""
    return NON_WORD_PATTERN.sub("", word)


def should_ignore_spelling(
    word: str,
    custom_dictionary: AbstractSet[str] = frozenset(),
    preceding_char: str = "",
) -> bool:
    """
    Decide whether a token flagged as misspelled must pass.

    Order: numeric, URL/mention/hashtag lead-in, slang allow-list, custom
    dictionary. ``preceding_char`` is the character before the token in the
    content, so a bare ``tag`` flagged inside ``#tag`` still counts as a hashtag.
    """
    cleaned = clean_token(word)

    if len(cleaned) <= 1:
        return True

    if NUMERIC_PATTERN.match(cleaned):
        return True

    if LEAD_IN_PATTERN.match(word.strip()) or preceding_char in ("@", "#"):
        return True

    lowered = cleaned.lower()
    if lowered in SOCIAL_MEDIA_WORDS:
        return True

    if lowered in custom_dictionary or normalize_word(word) in custom_dictionary:
        return True

    return False


def should_ignore_grammar(flagged_text: str, preceding_char: str = "") -> bool:
    """Coarse filter for grammar matches: links, handles, informal style."""
    if URL_PATTERN.search(flagged_text):
        return True

    stripped = flagged_text.strip()
    if stripped.startswith(("#", "@")) or preceding_char in ("@", "#"):
        return True

    lowered = stripped.strip(EDGE_PUNCTUATION).lower()
    if lowered in INFORMAL_WORDS or lowered in SOCIAL_MEDIA_WORDS:
        return True
    if lowered in ALLOWED_PHRASES:
        return True

    for phrase in ALLOWED_PHRASES:
        if " " in phrase and re.search(rf"\b{re.escape(phrase)}\b", lowered):
            return True

    return False


def is_typo_rule(match: CheckerMatch) -> bool:
    """True when the upstream rule is a spelling/typo rule.

    A match is routed to exactly one list: typo rules to spelling, everything
    else to grammar.
    """
    if match.category_id == TYPO_CATEGORY:
        return True
    rule_id = (match.rule_id or "").upper()
    if any(marker in rule_id for marker in TYPO_RULE_MARKERS):
        return True
    return "spelling" in (match.short_message or "").lower()


def is_placeholder(replacement: Optional[str]) -> bool:
    """Bracket-wrapped candidates mean "rephrase manually" and are never literal text."""
    if replacement is None:
        return False
    return replacement.strip().startswith(PLACEHOLDER_PREFIX)


__all__ = [
    "ALLOWED_PHRASES",
    "INFORMAL_WORDS",
    "SOCIAL_MEDIA_WORDS",
    "clean_token",
    "is_placeholder",
    "is_typo_rule",
    "normalize_dictionary",
    "normalize_word",
    "should_ignore_grammar",
    "should_ignore_spelling",
]
