"""
CIR Compiler Main Module
========================

This module provides the main compiler interface for CIR.
It orchestrates the complete compilation process:

    Source → Lex → Parse → Generate → C skeleton

Usage
-----
Command line:
    $ circ aes.cir -o aes.c

Programmatic:
    >>> from cir_sdk.skeleton import compile_cir
    >>> print(compile_cir("METHOD main:\\n    PASS"))
    #include <stdint.h>
    <BLANKLINE>
    void main(void);
    <BLANKLINE>
    void main(void) {
        //TODO:
    }

Configuration
-------------
CompilerOptions can be built directly or from the environment:

| Variable             | Option          | Default |
|----------------------|-----------------|---------|
| CIRC_INDENT_WIDTH    | indent_width    | 4       |
| CIRC_TEMP_POOL_SIZE  | temp_pool_size  | 8       |
| CIRC_DOC_COMMENTS    | doc_comments    | off     |

Error Handling
--------------
Every error is fatal. The first SkeletonError aborts the run and
propagates to the caller; there is no partial output.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from cir_sdk.skeleton.ast import Node
from cir_sdk.skeleton.codegen import DEFAULT_INCLUDES, CodeGenerator
from cir_sdk.skeleton.lexer import CirLexer, Token
from cir_sdk.skeleton.parser import IndentationParser

logger = logging.getLogger(__name__)


_TRUE_VALUES = ("1", "true", "yes", "on")


@dataclass
class CompilerOptions:
    """
    Compiler configuration options.

    Attributes:
        indent_width: Spaces per indentation level in the generated C
        temp_pool_size: Loop temporaries available to nested REPEATs
        doc_comments: Copy ``///`` comments into the output as ``//``
        includes: Headers emitted as ``#include <...>`` lines
    """
    indent_width: int = 4
    temp_pool_size: int = 8
    doc_comments: bool = False
    includes: list[str] = field(default_factory=lambda: list(DEFAULT_INCLUDES))

    @classmethod
    def from_env(cls) -> "CompilerOptions":
        """
        Create CompilerOptions from environment variables.

        Environment variables (all optional):
            CIRC_INDENT_WIDTH: Spaces per indentation level (integer)
            CIRC_TEMP_POOL_SIZE: Loop temporary count (integer)
            CIRC_DOC_COMMENTS: "1", "true", "yes" or "on" to enable

        Unparseable numbers are ignored with a warning.
        """
        options = cls()

        if width := os.environ.get("CIRC_INDENT_WIDTH"):
            try:
                options.indent_width = int(width)
            except ValueError:
                logger.warning(f"Ignoring CIRC_INDENT_WIDTH={width!r}: not an integer")

        if pool := os.environ.get("CIRC_TEMP_POOL_SIZE"):
            try:
                options.temp_pool_size = int(pool)
            except ValueError:
                logger.warning(f"Ignoring CIRC_TEMP_POOL_SIZE={pool!r}: not an integer")

        if doc := os.environ.get("CIRC_DOC_COMMENTS"):
            options.doc_comments = doc.strip().lower() in _TRUE_VALUES

        return options


class SkeletonCompiler:
    """
    CIR to C skeleton compiler.

    Example:
        compiler = SkeletonCompiler()
        result = compiler.compile_file("aes.cir")
        print(result.output)

    Attributes:
        options: Compiler configuration options
    """

    def __init__(self, options: Optional[CompilerOptions] = None):
        self.options = options or CompilerOptions()

    def compile_source(self, source: str, filename: str = "<input>") -> "CompilerResult":
        """
        Compile CIR source code to C.

        Args:
            source: CIR source code string
            filename: Source filename for error messages

        Returns:
            CompilerResult containing the C output and diagnostics

        Raises:
            SkeletonError: If compilation fails
        """
        result = CompilerResult(filename=filename)
        source_lines = source.splitlines()

        # Stage 1: Lexical analysis
        tokens = self._lex(source, filename)
        result.token_count = len(tokens)

        # Stage 2: Parsing
        parser = IndentationParser(tokens, filename, source_lines)
        result.ast = parser.parse()
        result.warnings.extend(parser.warnings)

        # Stage 3: Code generation
        generator = self._generator(source_lines)
        result.output = generator.generate(result.ast)
        result.warnings.extend(generator.warnings)

        result.success = True
        logger.debug(
            f"Compiled {filename}: {result.token_count} tokens, "
            f"{len(result.ast)} top-level nodes, {len(result.warnings)} warnings"
        )
        return result

    def compile_file(self, filepath: str) -> "CompilerResult":
        """
        Compile a CIR source file to C.

        Raises:
            SkeletonError: If compilation fails
            FileNotFoundError: If source file not found
        """
        path = Path(filepath)
        if not path.exists():
            raise FileNotFoundError(f"Source file not found: {filepath}")

        source = path.read_text(encoding="utf-8")
        return self.compile_source(source, str(filepath))

    def _lex(self, source: str, filename: str) -> list[Token]:
        lexer = CirLexer(source, filename)
        return list(lexer.tokenize())

    def _generator(self, source_lines: list[str]) -> CodeGenerator:
        return CodeGenerator(
            indent_width=self.options.indent_width,
            temp_pool_size=self.options.temp_pool_size,
            doc_comments=self.options.doc_comments,
            includes=self.options.includes,
            source_lines=source_lines,
        )


@dataclass
class CompilerResult:
    """
    Result of a compilation.

    Attributes:
        filename: Source filename
        success: True if compilation succeeded
        output: Generated C source (if successful)
        ast: Top-level syntax nodes (if parsing succeeded)
        token_count: Number of tokens lexed
        warnings: Non-fatal diagnostics from parser and generator
    """
    filename: str = ""
    success: bool = False
    output: str = ""
    ast: Optional[list[Node]] = None
    token_count: int = 0
    warnings: list[str] = None

    def __post_init__(self):
        if self.warnings is None:
            self.warnings = []


# =============================================================================
# Convenience Functions
# =============================================================================

def compile_cir(source: str, filename: str = "<input>") -> str:
    """
    Compile CIR source code to a C skeleton.

    This is the primary high-level interface: tokenize, parse, generate.

    Args:
        source: CIR source code
        filename: Source filename for error messages

    Returns:
        Generated C source

    Raises:
        SkeletonError: If compilation fails
    """
    return SkeletonCompiler().compile_source(source, filename).output


def compile_file(
    filepath: str,
    output_path: Optional[str] = None,
    options: Optional[CompilerOptions] = None,
) -> str:
    """
    Compile a CIR source file to C.

    Args:
        filepath: Path to CIR source file
        output_path: Optional path to write the C output
        options: Compiler configuration (defaults if None)

    Returns:
        Generated C source

    Raises:
        SkeletonError: If compilation fails
        FileNotFoundError: If source file not found
    """
    result = SkeletonCompiler(options).compile_file(filepath)

    if output_path:
        Path(output_path).write_text(result.output + "\n", encoding="utf-8")

    return result.output
