# =============================================================================
# test_expressions.py - Expression Rendering Tests
# =============================================================================
# Tests for reassembling captured token runs into C expression text.
#
# Test coverage includes:
#   - Binary operator spacing
#   - Word operator translation (and, or, is)
#   - Calls, subscripts and unary operators
#   - Argument splitting at top-level commas
# =============================================================================

import pytest
from cir_sdk.skeleton.lexer import TokenKind, tokenize
from cir_sdk.skeleton.expressions import (
    render_expression,
    significant_tokens,
    split_arguments,
)


def render(text: str) -> str:
    return render_expression(tokenize(text))


# =============================================================================
# Rendering Tests
# =============================================================================

class TestRenderExpression:
    """Whitespace is rebuilt; nothing is evaluated."""

    def test_empty(self):
        assert render("") == ""

    @pytest.mark.parametrize("text,expected", [
        ("x", "x"),
        ("x+1", "x + 1"),
        ("x   +    1", "x + 1"),
        ("a*b-c", "a * b - c"),
        ("i <= 9", "i <= 9"),
        ("a%4==0", "a % 4 == 0"),
        ("0x1B ^ s", "0x1B ^ s"),
    ])
    def test_binary_spacing(self, text, expected):
        assert render(text) == expected

    @pytest.mark.parametrize("text,expected", [
        ("a and b", "a && b"),
        ("a or b", "a || b"),
        ("a is b", "a == b"),
        ("x is 1 and y is 2", "x == 1 && y == 2"),
    ])
    def test_word_operators(self, text, expected):
        assert render(text) == expected

    def test_words_containing_operators_untouched(self):
        assert render("order + island") == "order + island"

    @pytest.mark.parametrize("text,expected", [
        ("f()", "f()"),
        ("f( a ,b )", "f(a, b)"),
        ("g(f(x), 2)", "g(f(x), 2)"),
        ("state[ i ][j]", "state[i][j]"),
        ("s[i+1]", "s[i + 1]"),
        ("(a + b) * c", "(a + b) * c"),
    ])
    def test_calls_and_subscripts(self, text, expected):
        assert render(text) == expected

    @pytest.mark.parametrize("text,expected", [
        ("-1", "-1"),
        ("-1*x", "-1 * x"),
        ("a - -b", "a - -b"),
        ("!done", "!done"),
        ("~mask & 0xFF", "~mask & 0xFF"),
        ("f(-x)", "f(-x)"),
        ("a-b", "a - b"),
        ("(a)-b", "(a) - b"),
    ])
    def test_unary_operators(self, text, expected):
        assert render(text) == expected

    def test_comments_dropped(self):
        tokens = tokenize("a + b // sum")
        assert render_expression(tokens) == "a + b"


# =============================================================================
# Argument Splitting Tests
# =============================================================================

class TestSplitArguments:
    """Top-level commas separate call arguments."""

    def test_no_arguments(self):
        assert split_arguments(tokenize("")) == []
        assert split_arguments(tokenize("   ")) == []

    def test_single_argument(self):
        arguments = split_arguments(tokenize("state"))
        assert [[t.raw for t in a] for a in arguments] == [["state"]]

    def test_multiple_arguments(self):
        arguments = split_arguments(tokenize("a, b + 1, 3"))
        assert [[t.raw for t in a] for a in arguments] == [["a"], ["b", "+", "1"], ["3"]]

    def test_nested_commas_stay_together(self):
        arguments = split_arguments(tokenize("f(a, b), s[i]"))
        assert len(arguments) == 2
        assert [t.raw for t in arguments[0]] == ["f", "(", "a", ",", "b", ")"]


def test_significant_tokens_filters_layout():
    tokens = significant_tokens(tokenize("a \n\tb // c"))
    assert [t.kind for t in tokens] == [TokenKind.WORD, TokenKind.WORD]
