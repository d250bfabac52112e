"""测试标题推导规则。"""

import pytest

from chat_core.domain.titles import MAX_TITLE_LENGTH, derive_title


def test_explain_keyword_takes_first_sentence():
    assert derive_title("Explain recursion. It's fun.") == "Explain recursion"


def test_question_keeps_question_mark():
    assert derive_title("What is a monad?") == "What is a monad?"


def test_question_stops_at_first_question_mark():
    assert derive_title("Why? Because I said so?") == "Why?"


def test_short_text_is_kept():
    assert derive_title("Hi") == "Hi"


def test_how_to_without_period_uses_whole_text():
    assert derive_title("how to bake bread") == "how to bake bread"


def test_sentence_end_requires_whitespace():
    assert derive_title("Hello world! Next part") == "Hello world"
    assert derive_title("Version 1.2 released") == "Version 1.2 released"


def test_code_blocks_are_removed():
    text = "Fix this ```python\nprint('x')\n``` please"
    assert derive_title(text) == "Fix this please"


def test_disallowed_characters_are_removed():
    assert derive_title("Tell me about C++ & Rust_lang") == "Tell me about C Rustlang"


def test_long_title_is_truncated_with_ellipsis():
    title = derive_title("a" * 100)
    assert len(title) == MAX_TITLE_LENGTH
    assert title == "a" * 37 + "..."


def test_exactly_forty_characters_is_not_truncated():
    assert derive_title("b" * 40) == "b" * 40


@pytest.mark.parametrize("raw", ["", "@#$%^&*()", "```only code```", None, 42])
def test_degenerate_input_yields_empty_title(raw):
    assert derive_title(raw) == ""


@pytest.mark.parametrize(
    "raw",
    [
        "x" * 500 + "?",
        "Explain " + "word " * 50,
        "word! " * 30,
        "line\n" * 80,
        "What is " + "very " * 40 + "long?",
    ],
)
def test_title_never_exceeds_limit(raw):
    assert len(derive_title(raw)) <= MAX_TITLE_LENGTH


def test_truncation_drops_trailing_space_before_ellipsis():
    title = derive_title("a" * 36 + " bcdef" * 5)
    assert title == "a" * 36 + "..."
    assert not title.endswith(" ...")
