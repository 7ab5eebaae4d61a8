"""
CIR Compiler Error Hierarchy
============================

This module defines the exception hierarchy for the CIR to C skeleton
compiler. All exceptions inherit from SkeletonError, which itself inherits
from the base CirError for consistent error handling across the SDK.

Exception Hierarchy
-------------------
SkeletonError (base for all compiler errors)
├── CirLexError - tokenizer errors
│   ├── InvalidCharacterError - character no token pattern accepts
│   └── MixedIndentationError - tabs and spaces in one whitespace run
├── CirIndentationError - run length not a multiple of the indent unit
├── CirSyntaxError - parser errors
│   ├── UnexpectedTokenError - token that starts no known statement
│   ├── MissingTokenError - required token not found
│   ├── MalformedCommandError - SETMODE/DEFINE/... shape violated
│   └── RunawayError - list or clause never closed
├── CirSemanticError - generation-time meaning errors
│   ├── UndeclaredIdentifierError - assignment to an unknown name
│   ├── UnknownTypeError - type name missing from the type table
│   ├── UndefinedModeError - DEFINE/CHOOSE on a mode never SETMODE'd
│   ├── InvalidModeOptionError - option outside the mode's option set
│   └── TopLevelStatementError - call/control flow outside a METHOD
├── CirCodeGenError - generator limitations
│   ├── UnsupportedFeatureError - construct the generator cannot emit
│   ├── NotImplementedNodeError - node kind without a generator
│   └── TemporaryPoolExhaustedError - no free loop temporary
└── CirInternalError - broken invariant (unbalanced groups, stalled parser)

Error Message Format
--------------------
    aes.cir:5:5: error: undeclared identifier 'roundz'
        roundz = 10
        ^
    hint: did you mean 'rounds'?
"""

from typing import Optional, List

from cir_sdk.errors import CirError, SourceLocation


# =============================================================================
# Base Compiler Exception
# =============================================================================

class SkeletonError(CirError):
    """
    Base exception for all CIR compiler errors.

    Attributes:
        message: The error description
        location: Where in the source the error occurred
        hint: A suggestion for fixing the error
        source_line: The actual source text at the error location
    """

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
        source_line: Optional[str] = None,
    ):
        self.message = message
        self.location = location
        self.hint = hint
        self.source_line = source_line
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """
        Format the error message with location, source context, and hint.

            aes.cir:3:1: error: malformed DEFINE command
                DEFINE LEVEL HIGH
                ^
            hint: expected 'DEFINE name = value'
        """
        parts = []

        if self.location:
            parts.append(f"{self.location}: error: {self.message}")
        else:
            parts.append(f"error: {self.message}")

        if self.source_line is not None and self.location is not None:
            parts.append(f"    {self.source_line}")
            if self.location.column > 0:
                padding = " " * (4 + self.location.column - 1)
                parts.append(f"{padding}^")

        if self.hint:
            parts.append(f"hint: {self.hint}")

        return "\n".join(parts)


# =============================================================================
# Lexical Errors
# =============================================================================

class CirLexError(SkeletonError):
    """Error raised while splitting source text into tokens."""
    pass


class InvalidCharacterError(CirLexError):
    """Raised when no token pattern matches at the current position."""

    def __init__(
        self,
        char: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.char = char
        super().__init__(
            f"unknown character '{char}' (0x{ord(char):02X})",
            location=location,
            source_line=source_line,
        )


class MixedIndentationError(CirLexError):
    """
    Tabs and spaces mixed within one whitespace run.

    Example:
        METHOD main:
        \\t  PASS      // tab followed by spaces
    """

    def __init__(
        self,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        super().__init__(
            "cannot mix tabs and spaces",
            location=location,
            hint="indent with either tabs or spaces, not both",
            source_line=source_line,
        )


# =============================================================================
# Indentation Errors
# =============================================================================

class CirIndentationError(SkeletonError):
    """
    Leading whitespace whose width is not a multiple of the indent unit.

    The unit is fixed by the first indented line of the file.
    """

    def __init__(
        self,
        width: int,
        unit_width: int,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.width = width
        self.unit_width = unit_width
        word = "character" if unit_width == 1 else "characters"
        super().__init__(
            f"improper indentation: {width} is not a multiple of {unit_width}",
            location=location,
            hint=f"indentation unit is {unit_width} {word}, set by the first indented line",
            source_line=source_line,
        )


# =============================================================================
# Syntax Errors (Parser)
# =============================================================================

class CirSyntaxError(SkeletonError):
    """
    Syntax error in CIR source.

    Examples:
        - A statement that starts with an unexpected token
        - A METHOD header missing its colon
        - ELSE without a preceding IF
    """
    pass


class UnexpectedTokenError(CirSyntaxError):
    """Raised when the parser finds a token that fits no grammar rule."""

    def __init__(
        self,
        found: str,
        expected: Optional[str] = None,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.found = found
        self.expected = expected

        hint = None
        if expected:
            hint = f"expected {expected}"

        super().__init__(
            f"unexpected token {found!r}",
            location=location,
            hint=hint,
            source_line=source_line,
        )


class MissingTokenError(CirSyntaxError):
    """Raised when a required token (like ':' or ')') is not found."""

    def __init__(
        self,
        expected: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.expected = expected
        super().__init__(
            f"expected {expected}",
            location=location,
            source_line=source_line,
        )


class MalformedCommandError(CirSyntaxError):
    """
    A command keyword not followed by its required sequence.

    Example:
        SETMODE LEVEL LOW, HIGH     // missing parentheses
    """

    def __init__(
        self,
        command: str,
        usage: Optional[str] = None,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.command = command
        super().__init__(
            f"malformed {command} command",
            location=location,
            hint=f"expected '{usage}'" if usage else None,
            source_line=source_line,
        )


class RunawayError(CirSyntaxError):
    """A list or clause that reaches the end of its line or file unclosed."""

    def __init__(
        self,
        construct: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.construct = construct
        super().__init__(
            f"runaway {construct}",
            location=location,
            source_line=source_line,
        )


# =============================================================================
# Semantic Errors (Generation)
# =============================================================================

class CirSemanticError(SkeletonError):
    """
    Semantic error detected while generating C.

    The source parsed, but refers to something the generator cannot
    resolve: an undeclared variable, an unregistered mode, a call outside
    any METHOD body.
    """
    pass


class UndeclaredIdentifierError(CirSemanticError):
    """
    Assignment to a name no declaration introduced.

    Similarly spelled names known to the type environment are offered as
    suggestions.
    """

    def __init__(
        self,
        identifier: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
        similar_identifiers: Optional[List[str]] = None,
    ):
        self.identifier = identifier
        self.similar_identifiers = similar_identifiers or []

        hint = None
        if self.similar_identifiers:
            suggestions = ", ".join(f"'{s}'" for s in self.similar_identifiers[:3])
            hint = f"did you mean {suggestions}?"
        else:
            hint = f"declare it first, e.g. 'Int({identifier})'"

        super().__init__(
            f"undeclared identifier '{identifier}'",
            location=location,
            hint=hint,
            source_line=source_line,
        )


class UnknownTypeError(CirSemanticError):
    """Type name with no entry in the C type table."""

    def __init__(
        self,
        type_name: str,
        known_types: Optional[List[str]] = None,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.type_name = type_name
        hint = None
        if known_types:
            hint = "known types: " + ", ".join(known_types)
        super().__init__(
            f"unknown type '{type_name}'",
            location=location,
            hint=hint,
            source_line=source_line,
        )


class UndefinedModeError(CirSemanticError):
    """DEFINE, DEFAULT or CHOOSE on a mode that was never registered."""

    def __init__(
        self,
        mode: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.mode = mode
        super().__init__(
            f"undefined mode '{mode}'",
            location=location,
            hint="did you forget a SETMODE?",
            source_line=source_line,
        )


class InvalidModeOptionError(CirSemanticError):
    """Option that is not one of the mode's registered options."""

    def __init__(
        self,
        mode: str,
        option: str,
        valid_options: List[str],
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.mode = mode
        self.option = option
        self.valid_options = list(valid_options)
        super().__init__(
            f"{option} is not a valid mode for {mode}",
            location=location,
            hint="valid options include: " + " | ".join(self.valid_options),
            source_line=source_line,
        )


class TopLevelStatementError(CirSemanticError):
    """Executable statement outside of any METHOD body."""

    def __init__(
        self,
        statement: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.statement = statement
        super().__init__(
            f"cannot {statement} at top level",
            location=location,
            hint="move it into a METHOD body",
            source_line=source_line,
        )


# =============================================================================
# Code Generation Errors
# =============================================================================

class CirCodeGenError(SkeletonError):
    """Error raised by a limitation of the generator."""
    pass


class UnsupportedFeatureError(CirCodeGenError):
    """
    Construct the skeleton generator does not implement.

    Examples:
        - STRUCTURE with more than one field
        - Array declarations outside a STRUCTURE
    """

    def __init__(
        self,
        feature: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
        alternative: Optional[str] = None,
    ):
        self.feature = feature
        super().__init__(
            f"unsupported feature: {feature}",
            location=location,
            hint=alternative,
            source_line=source_line,
        )


class NotImplementedNodeError(CirCodeGenError):
    """Node kind with no generator; gaps surface instead of dropping code."""

    def __init__(
        self,
        kind: str,
        location: Optional[SourceLocation] = None,
    ):
        self.kind = kind
        super().__init__(f"TODO: IMPLEMENT `{kind}`", location=location)


class TemporaryPoolExhaustedError(CirCodeGenError):
    """Every loop temporary is in use."""

    def __init__(
        self,
        capacity: int,
        location: Optional[SourceLocation] = None,
    ):
        self.capacity = capacity
        super().__init__(
            f"temporary pool exhausted ({capacity} temporaries in use)",
            location=location,
            hint="reduce REPEAT nesting depth or raise the pool size (--temp-pool)",
        )


class CirInternalError(SkeletonError):
    """A compiler invariant was broken; always a bug, never a user error."""
    pass
