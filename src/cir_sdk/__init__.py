"""
CIR SDK - Skeleton Compiler for the CIR Language
================================================

This package provides a source-to-source compiler that turns CIR, an
indentation-delimited description language, into C skeletons that can be
filled in by hand.

Main Components
---------------
- **skeleton**: the CIR compiler (lexer, indentation parser, C generator)
- **cli**: the ``circ`` command-line front end

Quick Start
-----------
    >>> from cir_sdk import compile_cir
    >>> print(compile_cir("Int(rounds)\\nrounds = 10"))
    #include <stdint.h>
    <BLANKLINE>
    int rounds;
    #define rounds ((int) 10)
    <BLANKLINE>

Or use the command-line tool:
    $ circ aes.cir -o aes.c
"""

__version__ = "1.0.0"

# =============================================================================
# Public API Exports
# =============================================================================

from cir_sdk.errors import CirError, SourceLocation
from cir_sdk.skeleton import (
    SkeletonCompiler,
    CompilerOptions,
    CompilerResult,
    SkeletonError,
    compile_cir,
    compile_file,
)

__all__ = [
    "__version__",
    "CirError",
    "SourceLocation",
    "SkeletonCompiler",
    "CompilerOptions",
    "CompilerResult",
    "SkeletonError",
    "compile_cir",
    "compile_file",
]
