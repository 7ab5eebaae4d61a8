# =============================================================================
# test_lexer.py - CIR Lexer Unit Tests
# =============================================================================
# Tests for the CIR tokenizer.
#
# Test coverage includes:
#   - Keywords (case-insensitive, longest match first)
#   - Words, numbers (decimal and hex), operators, punctuation
#   - Whitespace, line breaks and comments kept as tokens
#   - Source round-trip: concatenated raw text equals the input
#   - Position tracking for diagnostics
#   - Error conditions (unknown characters, mixed indentation)
# =============================================================================

import pytest
from cir_sdk.skeleton.lexer import CirLexer, Token, TokenKind, tokenize
from cir_sdk.skeleton.errors import InvalidCharacterError, MixedIndentationError


# =============================================================================
# Helper Functions
# =============================================================================

def kinds(source: str) -> list[TokenKind]:
    """Token kinds of a source string, whitespace included."""
    return [t.kind for t in tokenize(source)]


def significant(source: str) -> list[Token]:
    """Tokens with whitespace and line breaks filtered out."""
    return [
        t for t in tokenize(source)
        if t.kind not in (TokenKind.SPACES, TokenKind.LINE_BREAK)
    ]


AES_SAMPLE = """\
STRUCTURE State:
    Array(Byte, 4, 4)

SETMODE KEYSIZE(K128, K256)
DEFAULT KEYSIZE = K128

METHOD add_round_key(Array[Byte, 4, 4] state, Int round) -> Int:
    // xor the round key in
    REPEAT 4 TIMES:
        mix(state, round)
    IF round >= 0x0A and not_done:
        RETURN -1
    RETURN 0
"""


# =============================================================================
# Basic Token Recognition Tests
# =============================================================================

class TestBasicTokens:
    """Test basic token recognition for simple inputs."""

    def test_empty_source(self):
        """Empty source produces no tokens."""
        assert tokenize("") == []

    def test_word(self):
        tokens = tokenize("state")
        assert tokens == [Token(TokenKind.WORD, "state")]

    def test_word_with_underscore_and_digits(self):
        tokens = tokenize("add_round_key2")
        assert len(tokens) == 1
        assert tokens[0].kind == TokenKind.WORD

    def test_decimal_number(self):
        tokens = tokenize("42")
        assert tokens == [Token(TokenKind.NUMBER, "42")]

    def test_hex_number(self):
        tokens = tokenize("0x1B")
        assert tokens == [Token(TokenKind.NUMBER, "0x1B")]

    def test_declaration_shape(self):
        """Int(a, b) splits into word, parens, commas and spaces."""
        assert kinds("Int(a, b)") == [
            TokenKind.WORD,
            TokenKind.OPEN_PAREN,
            TokenKind.WORD,
            TokenKind.COMMA,
            TokenKind.SPACES,
            TokenKind.WORD,
            TokenKind.CLOSE_PAREN,
        ]

    def test_set_equals(self):
        assert kinds("x=5") == [TokenKind.WORD, TokenKind.SET_EQUALS, TokenKind.NUMBER]

    def test_double_equals_is_operator(self):
        tokens = significant("a == b")
        assert tokens[1] == Token(TokenKind.OPERATOR, "==")

    def test_colon(self):
        assert kinds("METHOD main:")[-1] == TokenKind.COLON


# =============================================================================
# Keyword Tests
# =============================================================================

class TestKeywords:
    """Test keyword recognition."""

    @pytest.mark.parametrize("keyword", [
        "STRUCTURE", "METHOD", "REPEAT", "TIMES", "SETMODE", "DEFAULT",
        "DEFINE", "CHOOSE", "FOR", "TO", "PASS", "RETURN", "IF", "WHILE",
        "ELSE", "ELSEIF", "ELSIF", "ELIF", "MUTABLE",
    ])
    def test_every_keyword(self, keyword):
        tokens = tokenize(keyword)
        assert tokens == [Token(TokenKind.KEYWORD, keyword)]

    def test_keywords_are_case_insensitive(self):
        """Lower-case keywords still lex as keywords; raw text is kept."""
        tokens = tokenize("repeat")
        assert tokens[0].kind == TokenKind.KEYWORD
        assert tokens[0].raw == "repeat"
        assert tokens[0].keyword == "REPEAT"

    def test_elseif_not_split_at_else(self):
        tokens = significant("ELSEIF x:")
        assert tokens[0] == Token(TokenKind.KEYWORD, "ELSEIF")

    def test_default_not_split_at_define(self):
        tokens = significant("DEFAULT LEVEL = LOW")
        assert tokens[0] == Token(TokenKind.KEYWORD, "DEFAULT")

    def test_keyword_prefix_of_word_is_word(self):
        """'format' starts with FOR but is a single word."""
        assert tokenize("format") == [Token(TokenKind.WORD, "format")]
        assert tokenize("IFFY") == [Token(TokenKind.WORD, "IFFY")]

    def test_is_keyword_helper(self):
        token = tokenize("Times")[0]
        assert token.is_keyword("TIMES")
        assert not token.is_keyword("TO")

    def test_word_has_no_keyword(self):
        assert tokenize("state")[0].keyword is None


# =============================================================================
# Operator Tests
# =============================================================================

class TestOperators:
    """Test symbolic and word operators."""

    @pytest.mark.parametrize("op", [
        "+", "-", "*", "/", "%", "!", "~", "^", "|", "&",
        "<", ">", "<=", ">=", "==", "!=", "[", "]",
    ])
    def test_symbolic_operator(self, op):
        tokens = tokenize(op)
        assert tokens == [Token(TokenKind.OPERATOR, op)]

    @pytest.mark.parametrize("word", ["and", "or", "is"])
    def test_word_operator(self, word):
        tokens = significant(f"a {word} b")
        assert tokens[1] == Token(TokenKind.OPERATOR, word)

    def test_word_operator_prefix_is_word(self):
        """'order' and 'island' are words, not 'or' / 'is' plus a word."""
        assert tokenize("order") == [Token(TokenKind.WORD, "order")]
        assert tokenize("island") == [Token(TokenKind.WORD, "island")]

    def test_return_type_arrow(self):
        tokens = significant("METHOD f -> Int:")
        assert tokens[2] == Token(TokenKind.RETURN_TYPE_INDICATOR, "->")

    def test_return_type_unicode_arrow(self):
        tokens = significant("METHOD f → Int:")
        assert tokens[2] == Token(TokenKind.RETURN_TYPE_INDICATOR, "→")


# =============================================================================
# Whitespace and Comment Tests
# =============================================================================

class TestWhitespaceAndComments:
    """Whitespace, line breaks and comments are tokens, never skipped."""

    def test_spaces_run_is_single_token(self):
        assert tokenize("    PASS")[0] == Token(TokenKind.SPACES, "    ")

    def test_tab_run(self):
        assert tokenize("\t\tPASS")[0] == Token(TokenKind.SPACES, "\t\t")

    def test_line_break_run(self):
        """Consecutive line breaks collapse into one token."""
        tokens = tokenize("PASS\n\n\nPASS")
        assert tokens[1] == Token(TokenKind.LINE_BREAK, "\n\n\n")

    def test_crlf_line_break(self):
        tokens = tokenize("PASS\r\nPASS")
        assert tokens[1] == Token(TokenKind.LINE_BREAK, "\r\n")

    def test_comment_runs_to_end_of_line(self):
        tokens = tokenize("// note here\nPASS")
        assert tokens[0] == Token(TokenKind.COMMENT, "// note here")
        assert tokens[1].kind == TokenKind.LINE_BREAK

    def test_trailing_comment(self):
        tokens = significant("PASS // later")
        assert tokens[-1] == Token(TokenKind.COMMENT, "// later")

    def test_comment_swallows_keywords(self):
        tokens = tokenize("// METHOD IF REPEAT")
        assert len(tokens) == 1

    def test_division_is_not_comment(self):
        tokens = significant("a / b")
        assert tokens[1] == Token(TokenKind.OPERATOR, "/")


# =============================================================================
# Round-Trip Tests
# =============================================================================

class TestRoundTrip:
    """Concatenating raw token text reproduces the source exactly."""

    @pytest.mark.parametrize("source", [
        "",
        "PASS",
        "Int(x)\nx = 5",
        "METHOD add(Int a, Int b):\n    RETURN a+b",
        "SETMODE LEVEL(LOW, HIGH)\r\nDEFAULT LEVEL=LOW\r\n",
        "\tIF a and b:\n\t\tPASS\n\n",
        AES_SAMPLE,
    ])
    def test_round_trip(self, source):
        assert "".join(t.raw for t in tokenize(source)) == source


# =============================================================================
# Position Tracking Tests
# =============================================================================

class TestPositions:
    """Line and column tracking for error messages."""

    def test_first_token_position(self):
        token = tokenize("PASS")[0]
        assert (token.line, token.column) == (1, 1)

    def test_column_advances(self):
        tokens = tokenize("Int(x)")
        assert [t.column for t in tokens] == [1, 4, 5, 6]

    def test_line_advances(self):
        tokens = tokenize("Int(x)\nx = 5")
        x = tokens[5]
        assert x.raw == "x"
        assert (x.line, x.column) == (2, 1)

    def test_blank_lines_counted(self):
        tokens = tokenize("PASS\n\n\nPASS")
        assert tokens[-1].line == 4

    def test_crlf_counts_once(self):
        tokens = tokenize("PASS\r\n\r\nPASS")
        assert tokens[-1].line == 3

    def test_location_carries_filename(self):
        token = next(CirLexer("PASS", "aes.cir").tokenize())
        assert str(token.location) == "aes.cir:1:1"

    def test_position_ignored_by_equality(self):
        assert Token(TokenKind.WORD, "x", 1, 1) == Token(TokenKind.WORD, "x", 9, 9)


# =============================================================================
# Error Tests
# =============================================================================

class TestLexerErrors:
    """Lexical error conditions."""

    def test_unknown_character(self):
        with pytest.raises(InvalidCharacterError, match="unknown character '@'"):
            tokenize("x = @")

    def test_unknown_character_location(self):
        with pytest.raises(InvalidCharacterError) as exc_info:
            tokenize("PASS\nx = $", "bad.cir")
        assert str(exc_info.value.location) == "bad.cir:2:5"

    def test_unknown_character_shows_source_line(self):
        with pytest.raises(InvalidCharacterError) as exc_info:
            tokenize("x = #")
        assert "x = #" in str(exc_info.value)

    def test_mixed_tabs_and_spaces(self):
        with pytest.raises(MixedIndentationError, match="cannot mix tabs and spaces"):
            tokenize("METHOD main:\n\t  PASS")

    def test_tab_then_space_between_tokens(self):
        """The rule applies to every whitespace run, not just indentation."""
        with pytest.raises(MixedIndentationError):
            tokenize("x =\t 5")
