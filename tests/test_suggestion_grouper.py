"""Tests for grouping repeated spelling spans."""
from threadsmith.models.spans import SpanKind
from threadsmith.services.suggestion_grouper import SuggestionGrouper, group_spans
from tests.helpers import make_span

CONTENT = "teh cat, teh dog, teh end wrod"


def test_repeated_word_becomes_one_group():
    spans = [
        make_span(CONTENT, "teh", ["the"], start=0),
        make_span(CONTENT, "teh", ["the", "ten"], start=9),
        make_span(CONTENT, "teh", ["tea"], start=18),
    ]

    groups = group_spans([spans[2], spans[0], spans[1]])

    assert len(groups) == 1
    group = groups[0]
    assert group.flagged_text == "teh"
    assert group.occurrences == 3
    assert group.first_start == 0
    assert group.member_ids == [s.id for s in spans]
    assert group.candidates == ["the", "ten", "tea"]


def test_sort_by_occurrences_then_first_start():
    spans = [
        make_span(CONTENT, "wrod", ["word"]),
        make_span(CONTENT, "teh", ["the"], start=9),
        make_span(CONTENT, "teh", ["the"], start=18),
    ]

    groups = group_spans(spans)

    assert [g.flagged_text for g in groups] == ["teh", "wrod"]

    single = group_spans([make_span(CONTENT, "wrod"), make_span(CONTENT, "dog")])
    assert [g.flagged_text for g in single] == ["dog", "wrod"]


def test_grouping_is_deterministic():
    spans = [
        make_span(CONTENT, "teh", ["the"], start=0),
        make_span(CONTENT, "wrod", ["word"]),
        make_span(CONTENT, "teh", ["the"], start=9),
    ]
    first = [g.to_dict() for g in group_spans(spans)]
    second = [g.to_dict() for g in group_spans(list(reversed(spans)))]
    assert first == second


def test_zero_candidate_group_is_kept():
    groups = group_spans([make_span(CONTENT, "wrod", [])])
    assert len(groups) == 1
    assert groups[0].candidates == []
    assert not groups[0].has_fix


def test_grammar_spans_are_never_grouped():
    spans = [
        make_span(CONTENT, "teh", start=0, kind=SpanKind.GRAMMAR),
        make_span(CONTENT, "teh", start=9, kind=SpanKind.GRAMMAR),
    ]
    assert group_spans(spans) == []


def test_case_sensitive_keys():
    content = "Teh and teh"
    groups = group_spans([make_span(content, "Teh"), make_span(content, "teh")])
    assert sorted(g.flagged_text for g in groups) == ["Teh", "teh"]


def test_same_word_in_different_segments_is_not_merged():
    grouper = SuggestionGrouper()
    grouper.add(make_span(CONTENT, "teh", segment_id="s1", start=0))
    grouper.add(make_span(CONTENT, "teh", segment_id="s2", start=0))
    groups = grouper.finalize()
    assert sorted(g.segment_id for g in groups) == ["s1", "s2"]
