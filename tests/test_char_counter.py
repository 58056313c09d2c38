"""Tests for Twitter-weighted character counting."""
from threadsmith.services.char_counter import count_characters, is_over_limit


def test_empty_text():
    assert count_characters("") == 0


def test_plain_ascii_counts_one_per_character():
    assert count_characters("Hello world") == 11


def test_urls_have_a_fixed_weight():
    short = count_characters("see https://example.com")
    long = count_characters("see https://example.com/a/very/long/path/that/keeps/going/on/and/on")
    assert short == long


def test_limit():
    assert not is_over_limit("a" * 280)
    assert is_over_limit("a" * 281)
