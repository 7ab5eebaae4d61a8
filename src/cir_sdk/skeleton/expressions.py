"""
CIR Expression Rendering
========================

CIR never parses expressions. Conditions, right-hand sides, call arguments
and loop bounds reach the generator as the raw token runs the parser
captured, and this module reassembles them into C text.

Rendering Rules
---------------
- Whitespace tokens are dropped and spacing is rebuilt from scratch.
- The word operators are translated: ``and`` -> ``&&``, ``or`` -> ``||``,
  ``is`` -> ``==``.
- Binary operators get one space on each side: ``a+b`` -> ``a + b``.
- No space after ``(``, ``[`` or a unary operator; none before ``)``,
  ``]``, ``,`` or a call's opening parenthesis.
- A comma is followed by a single space.

Nothing is checked: operator arity, precedence and types pass through
untouched.

Examples:
    x+1              -> x + 1
    a and not_done   -> a && not_done
    f( a ,b )        -> f(a, b)
    state[ i ][j]    -> state[i][j]
    -1*x             -> -1 * x
"""

from typing import Optional

from cir_sdk.skeleton.lexer import Token, TokenKind


WORD_OPERATORS: dict[str, str] = {
    "and": "&&",
    "or": "||",
    "is": "==",
}

# Always unary
_PREFIX_OPERATORS = frozenset({"!", "~"})

# Unary when they open an operand
_SIGN_OPERATORS = frozenset({"-", "+"})


def _is_open(token: Token) -> bool:
    return token.kind is TokenKind.OPEN_PAREN or token.raw == "["


def _is_close(token: Token) -> bool:
    return token.kind is TokenKind.CLOSE_PAREN or token.raw == "]"


def _is_operand_end(token: Token) -> bool:
    """True if an operand can end with this token (so a sign after it is binary)."""
    return token.kind in (TokenKind.WORD, TokenKind.NUMBER) or _is_close(token)


def _is_unary(token: Token, previous: Optional[Token]) -> bool:
    if token.kind is not TokenKind.OPERATOR:
        return False
    if token.raw in _PREFIX_OPERATORS:
        return True
    if token.raw in _SIGN_OPERATORS:
        return previous is None or not _is_operand_end(previous)
    return False


def _spell(token: Token) -> str:
    if token.kind is TokenKind.OPERATOR:
        return WORD_OPERATORS.get(token.raw, token.raw)
    return token.raw


def significant_tokens(tokens: list[Token]) -> list[Token]:
    """Drop whitespace, line breaks and comments from a token run."""
    return [
        t for t in tokens
        if t.kind not in (TokenKind.SPACES, TokenKind.LINE_BREAK, TokenKind.COMMENT)
    ]


def render_expression(tokens: list[Token]) -> str:
    """
    Render a captured token run as C expression text.

    Args:
        tokens: Raw tokens, whitespace included

    Returns:
        The normalised C text (empty for an empty run)
    """
    tokens = significant_tokens(tokens)
    parts: list[str] = []
    previous: Optional[Token] = None
    previous_unary = False

    for token in tokens:
        if previous is not None and _needs_space(previous, previous_unary, token):
            parts.append(" ")
        parts.append(_spell(token))
        previous_unary = _is_unary(token, previous)
        previous = token

    return "".join(parts)


def _needs_space(previous: Token, previous_unary: bool, token: Token) -> bool:
    if _is_close(token) or token.kind is TokenKind.COMMA:
        return False
    if _is_open(previous) or previous_unary:
        return False
    if previous.kind is TokenKind.COMMA:
        return True
    # Call or subscript: f(x), s[i], m[i][j], g(x)(y)
    if _is_open(token) and _is_operand_end(previous):
        return False
    return True


def split_arguments(tokens: list[Token]) -> list[list[Token]]:
    """
    Split a call's argument tokens at top-level commas.

    Commas nested inside parentheses or brackets belong to the
    enclosing argument. Whitespace is dropped.
    """
    tokens = significant_tokens(tokens)
    if not tokens:
        return []

    arguments: list[list[Token]] = [[]]
    depth = 0
    for token in tokens:
        if _is_open(token):
            depth += 1
        elif _is_close(token):
            depth -= 1
        elif token.kind is TokenKind.COMMA and depth == 0:
            arguments.append([])
            continue
        arguments[-1].append(token)
    return arguments
