"""Twitter-weighted character counting."""
from twitter_text import parse_tweet


def count_characters(text: str) -> int:
    """Weighted length as Twitter counts it (URLs and wide characters weigh differently)."""
    if not text:
        return 0
    return parse_tweet(text).weightedLength


def is_over_limit(text: str, limit: int = 280) -> bool:
    return count_characters(text) > limit


__all__ = ["count_characters", "is_over_limit"]
