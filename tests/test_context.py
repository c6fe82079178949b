"""Tests for the rolling context prompt and its truncation."""

from dataclasses import replace

import pytest

from callscribe.context import (
    ContextPromptBuilder,
    extract_named_entities,
    select_vocabulary_terms,
    truncate_context,
)
from callscribe.domain.models import ContextSnapshot, Speaker, Turn


def _turn(speaker: Speaker, text: str, start: float = 0.0) -> Turn:
    return Turn(speaker=speaker, text=text, start_time=start, end_time=start + 1.0)


def test_empty_history_sends_only_base_prompt():
    snapshot = ContextSnapshot(base_context_prompt="Support call about SIP trunks")
    builder = ContextPromptBuilder(snapshot, ["SIP"])

    assert builder.build([]) == "Support call about SIP trunks"


def test_empty_history_without_base_prompt_is_empty():
    assert ContextPromptBuilder(ContextSnapshot(), ["SIP"]).build([]) == ""


def test_prompt_sections_in_order():
    turns = [_turn(Speaker.LEFT, "Hello John"), _turn(Speaker.RIGHT, "hi there", 1.0)]
    builder = ContextPromptBuilder(ContextSnapshot(), ["SIP", "Asterisk"])

    assert builder.build(turns) == (
        "Named entities: John. Vocabulary: SIP, Asterisk. "
        "Speaker 1: Hello John Speaker 2: hi there"
    )


def test_base_prompt_comes_first():
    snapshot = ContextSnapshot(base_context_prompt="  Telephony support  ", enable_entity_extraction=False)
    turns = [_turn(Speaker.RIGHT, "ok")]

    prompt = ContextPromptBuilder(snapshot, ["SIP"]).build(turns)

    assert prompt == "Telephony support. Vocabulary: SIP. Speaker 2: ok"


def test_disabled_sections_are_left_out():
    snapshot = ContextSnapshot(enable_entity_extraction=False, enable_vocabulary_integration=False)
    turns = [_turn(Speaker.LEFT, "Call Maria tomorrow")]

    assert ContextPromptBuilder(snapshot, ["SIP"]).build(turns) == "Speaker 1: Call Maria tomorrow"


def test_recent_turns_limit_and_override():
    snapshot = ContextSnapshot(max_recent_turns=2, enable_entity_extraction=False)
    turns = [_turn(Speaker.LEFT, f"t{i}", float(i)) for i in range(5)]
    builder = ContextPromptBuilder(snapshot)

    assert builder.build(turns) == "Speaker 1: t3 Speaker 1: t4"
    assert builder.build(turns, max_turns=1) == "Speaker 1: t4"
    assert builder.build(turns, max_turns=0) == ""


def test_named_entities_handle_cyrillic_and_stop_words():
    turns = [
        _turn(Speaker.LEFT, "Здравствуйте, это Иван из Ростелеком"),
        _turn(Speaker.RIGHT, "Hello, Speaker here, Anna speaking"),
    ]

    assert extract_named_entities(turns) == ["Anna", "Иван", "Ростелеком"]


def test_named_entities_only_scan_recent_window():
    turns = [_turn(Speaker.LEFT, "Boris called")] + [_turn(Speaker.LEFT, "nothing here")] * 20

    assert extract_named_entities(turns) == []
    assert extract_named_entities(turns, window=21) == ["Boris"]


def test_vocabulary_terms_are_deduplicated_and_capped():
    terms = [" SIP ", "", "SIP"] + [f"term{i}" for i in range(20)]

    selected = select_vocabulary_terms(terms)

    assert selected[0] == "SIP"
    assert len(selected) == 15
    assert selected[-1] == "term13"


def test_truncate_keeps_short_text():
    assert truncate_context("short prompt", 600) == "short prompt"


def test_truncate_cuts_at_last_whitespace():
    text = "a" * 598 + " " + "b" * 51

    assert truncate_context(text, 600) == "a" * 598 + "..."


def test_truncate_without_whitespace_cuts_at_limit():
    assert truncate_context("a" * 700, 600) == "a" * 600 + "..."


def test_truncate_does_not_split_combining_sequence():
    text = "a" * 599 + "e\u0301" + "a" * 50

    assert truncate_context(text, 600) == "a" * 599 + "..."


@pytest.mark.parametrize("cluster", [
    "\U0001F1FA\U0001F1F8",
    "\U0001F3F4\U000E0067\U000E0062\U000E0065\U000E006E\U000E0067\U000E007F",
    "\U0001F469\u200d\U0001F4BB",
    "\U0001F44D\U0001F3FD",
    "\u1100\u1161\u11a8",
])
def test_truncate_keeps_grapheme_clusters_whole(cluster):
    text = "a" * 599 + cluster + "b" * 50

    assert truncate_context(text, 600) == "a" * 599 + "..."


def test_truncate_keeps_cluster_that_fits():
    text = "a" * 596 + "\U0001F1FA\U0001F1F8" + "b" * 50

    assert truncate_context(text, 600) == "a" * 596 + "\U0001F1FA\U0001F1F8" + "bb..."


@pytest.mark.parametrize("space", ["\u00a0", "\r", "\u2009", "\u3000", "\n", "\t"])
def test_truncate_cuts_at_any_unicode_whitespace(space):
    text = "a" * 598 + space + "b" * 60

    assert truncate_context(text, 600) == "a" * 598 + "..."


def test_truncate_whitespace_exactly_at_limit():
    text = "a" * 600 + "\u3000" + "b" * 10

    assert truncate_context(text, 600) == "a" * 600 + "..."


def test_build_truncates_long_history():
    snapshot = replace(ContextSnapshot(), max_context_length=300, enable_entity_extraction=False)
    turns = [_turn(Speaker.LEFT, "word " * 40, float(i)) for i in range(5)]

    prompt = ContextPromptBuilder(snapshot).build(turns)

    assert prompt.endswith("...")
    assert len(prompt) <= 303


def test_build_is_stateless():
    builder = ContextPromptBuilder(ContextSnapshot(), ["SIP"])
    turns = [_turn(Speaker.LEFT, "Hello Olga")]

    assert builder.build(turns) == builder.build(list(turns))
