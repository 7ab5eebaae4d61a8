"""
CIR Lexer (Tokenizer)
=====================

This module implements the lexer for CIR, the indentation-delimited source
language compiled by this package. It converts source text into a flat list
of tokens for the indentation parser.

The lexer is deliberately simple: an ordered table of patterns is tried at
each position and the first one that matches wins. Nothing is skipped -
whitespace, line breaks and comments all become tokens, because the parser
derives block structure from them. Concatenating the raw text of every token
reproduces the source exactly.

Token Categories
----------------
| Kind                  | Examples                          |
|-----------------------|-----------------------------------|
| KEYWORD               | METHOD, IF, REPEAT, TIMES, ...    |
| COMMENT               | // to end of line                 |
| SPACES                | run of spaces or of tabs          |
| COLON                 | :                                 |
| RETURN_TYPE_INDICATOR | -> or →                           |
| WORD                  | Int, state, add_round_key         |
| NUMBER                | 42, 0x1B                          |
| LINE_BREAK            | run of \\r / \\n                    |
| OPERATOR              | + - * / % < <= == [ ] and or is   |
| OPEN_PAREN / ...      | ( ) , =                           |

Keywords match case-insensitively. The parser warns about keywords that are
not written in uppercase.

Example Usage
-------------
>>> from cir_sdk.skeleton.lexer import CirLexer
>>> for token in CirLexer("Int(x)\\nx = 5", "demo.cir").tokenize():
...     print(token)
Token(WORD, 'Int', 1:1)
Token(OPEN_PAREN, '(', 1:4)
Token(WORD, 'x', 1:5)
Token(CLOSE_PAREN, ')', 1:6)
Token(LINE_BREAK, '\\n', 1:7)
Token(WORD, 'x', 2:1)
Token(SPACES, ' ', 2:2)
Token(SET_EQUALS, '=', 2:3)
Token(SPACES, ' ', 2:4)
Token(NUMBER, '5', 2:5)
"""

import re
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Iterator, Optional

from cir_sdk.errors import SourceLocation
from cir_sdk.skeleton.errors import InvalidCharacterError, MixedIndentationError


# =============================================================================
# Token Kind Enumeration
# =============================================================================

class TokenKind(Enum):
    """
    Lexical classes of CIR tokens.

    Tokens carry no meaning beyond their class; all interpretation
    happens in the parser.
    """
    WORD = auto()
    KEYWORD = auto()
    NUMBER = auto()
    COLON = auto()
    SET_EQUALS = auto()
    OPEN_PAREN = auto()
    CLOSE_PAREN = auto()
    COMMA = auto()
    SPACES = auto()
    LINE_BREAK = auto()
    COMMENT = auto()
    OPERATOR = auto()
    RETURN_TYPE_INDICATOR = auto()


# =============================================================================
# Keyword Table
# =============================================================================

KEYWORDS: tuple[str, ...] = (
    "STRUCTURE",
    "METHOD",
    "REPEAT", "TIMES",
    "SETMODE", "DEFAULT", "DEFINE", "CHOOSE",
    "FOR", "TO",
    "PASS", "RETURN",
    "IF", "WHILE", "ELSE", "ELSEIF", "ELSIF", "ELIF",
    "MUTABLE",
)

# Operators spelled as words; rendered as their C symbols
OPERATOR_WORDS: tuple[str, ...] = ("and", "or", "is")


def _keyword_pattern() -> str:
    # Longest first so ELSEIF is never cut short at ELSE
    alternatives = sorted(KEYWORDS, key=len, reverse=True)
    return r"(?:" + "|".join(alternatives) + r")\b"


# Ordered: the first pattern that matches at a position wins.
TOKEN_PATTERNS: list[tuple[re.Pattern, TokenKind]] = [
    (re.compile(_keyword_pattern(), re.IGNORECASE), TokenKind.KEYWORD),
    (re.compile(r"//[^\r\n]*"), TokenKind.COMMENT),
    (re.compile(r"[ \t]+"), TokenKind.SPACES),
    (re.compile(r":"), TokenKind.COLON),
    (re.compile(r"->|→"), TokenKind.RETURN_TYPE_INDICATOR),
    (re.compile(r"(?:" + "|".join(OPERATOR_WORDS) + r")\b"), TokenKind.OPERATOR),
    (re.compile(r"[A-Za-z_][A-Za-z0-9_]*"), TokenKind.WORD),
    (re.compile(r"0[xX][0-9A-Fa-f]+|[0-9]+"), TokenKind.NUMBER),
    (re.compile(r"[\r\n]+"), TokenKind.LINE_BREAK),
    (re.compile(r"<=|>=|==|!=|[-+*/%!~^|&<>\[\]]"), TokenKind.OPERATOR),
    (re.compile(r"\("), TokenKind.OPEN_PAREN),
    (re.compile(r"\)"), TokenKind.CLOSE_PAREN),
    (re.compile(r","), TokenKind.COMMA),
    (re.compile(r"="), TokenKind.SET_EQUALS),
]


# =============================================================================
# Token Data Class
# =============================================================================

@dataclass(frozen=True)
class Token:
    """
    A single CIR token.

    Two tokens are equal when their kind and raw text are equal; the
    position fields only serve error reporting.

    Attributes:
        kind: The TokenKind classification
        raw: The exact source text of the token
        line: Line number in source (1-indexed)
        column: Column number in source (1-indexed)
        filename: Name of the source file
    """
    kind: TokenKind
    raw: str
    line: int = field(default=1, compare=False)
    column: int = field(default=1, compare=False)
    filename: str = field(default="<input>", compare=False)

    def __repr__(self) -> str:
        return f"Token({self.kind.name}, {self.raw!r}, {self.line}:{self.column})"

    @property
    def location(self) -> SourceLocation:
        """Return a SourceLocation for error reporting."""
        return SourceLocation(self.filename, self.line, self.column)

    @property
    def keyword(self) -> Optional[str]:
        """Canonical (uppercase) keyword, or None for non-keyword tokens."""
        if self.kind is TokenKind.KEYWORD:
            return self.raw.upper()
        return None

    def is_keyword(self, *names: str) -> bool:
        """Return True if this is one of the given keywords (any case)."""
        return self.kind is TokenKind.KEYWORD and self.raw.upper() in names


# =============================================================================
# Lexer Implementation
# =============================================================================

class CirLexer:
    """
    Tokenizes CIR source code.

    Usage:
        lexer = CirLexer(source_text, filename)
        tokens = list(lexer.tokenize())

    Attributes:
        source: The source code being tokenized
        filename: Name of the source file (for error reporting)
    """

    def __init__(self, source: str, filename: str = "<input>"):
        self.source = source
        self.filename = filename
        self._lines = source.splitlines()

        self._pos = 0
        self._line = 1
        self._column = 1

    def tokenize(self) -> Iterator[Token]:
        """
        Generate tokens from the source code.

        Yields:
            Token objects in source order

        Raises:
            InvalidCharacterError: If no pattern matches at some position
            MixedIndentationError: If a whitespace run mixes tabs and spaces
        """
        while self._pos < len(self.source):
            token = self._scan_token()

            if token.kind is TokenKind.SPACES and " " in token.raw and "\t" in token.raw:
                raise MixedIndentationError(token.location, self._source_line(token.line))

            self._advance_over(token.raw)
            yield token

    def _scan_token(self) -> Token:
        """Match the pattern table at the current position."""
        for pattern, kind in TOKEN_PATTERNS:
            match = pattern.match(self.source, self._pos)
            if match:
                return Token(kind, match.group(0), self._line, self._column, self.filename)

        char = self.source[self._pos]
        raise InvalidCharacterError(
            char,
            SourceLocation(self.filename, self._line, self._column),
            self._source_line(self._line),
        )

    def _advance_over(self, raw: str) -> None:
        """Move past raw text, keeping line and column current."""
        self._pos += len(raw)
        # \r\n counts as a single line ending
        newlines = raw.count("\n") + raw.replace("\r\n", "\n").count("\r")
        if newlines:
            self._line += newlines
            self._column = 1
        else:
            self._column += len(raw)

    def _source_line(self, line: int) -> Optional[str]:
        """Get source line text for error context."""
        if 0 < line <= len(self._lines):
            return self._lines[line - 1]
        return None


# =============================================================================
# Convenience Functions
# =============================================================================

def tokenize(source: str, filename: str = "<input>") -> list[Token]:
    """
    Tokenize CIR source into a list.

    Args:
        source: CIR source text
        filename: Source filename for error messages

    Returns:
        Every token in source order (no end marker)
    """
    return list(CirLexer(source, filename).tokenize())
