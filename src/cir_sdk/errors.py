"""
CIR SDK Error Hierarchy
=======================

This module defines the root of the exception hierarchy for the CIR SDK.
All exceptions inherit from CirError, allowing callers to catch every
SDK-related failure with a single except clause if desired.

Exception Hierarchy
-------------------
CirError (base)
└── SkeletonError (cir_sdk.skeleton.errors - the CIR to C compiler)
    ├── CirLexError - unknown characters, mixed indentation
    ├── CirIndentationError - inconsistent indentation width
    ├── CirSyntaxError - malformed commands and statements
    ├── CirSemanticError - undeclared names, invalid modes
    ├── CirCodeGenError - unsupported constructs, exhausted temporaries
    └── CirInternalError - broken compiler invariants

Design Philosophy
-----------------
Each exception captures source location information (filename, line, column)
when it is known. This allows error messages that point directly at the
offending token:

    filename:line:column: error: description
        source_line_text
        ^
    hint: suggestion for fixing (when available)
"""

from dataclasses import dataclass


# =============================================================================
# Base Exception Class
# =============================================================================

class CirError(Exception):
    """
    Base exception for all CIR SDK errors.

    Every failure in the pipeline is fatal: there are no partial results.
    Callers that just want to report a problem can catch this class:

        try:
            c_source = compile_cir(text)
        except CirError as e:
            print(f"Error: {e}")
    """
    pass


# =============================================================================
# Source Location Tracking
# =============================================================================

@dataclass(frozen=True)
class SourceLocation:
    """
    Represents a location in CIR source for error reporting.

    Attributes:
        filename: Name of the source file (or "<input>" for string input)
        line: Line number (1-indexed)
        column: Column number (1-indexed)
    """
    filename: str
    line: int
    column: int

    def __str__(self) -> str:
        """Format as 'filename:line:column' for error messages."""
        return f"{self.filename}:{self.line}:{self.column}"
