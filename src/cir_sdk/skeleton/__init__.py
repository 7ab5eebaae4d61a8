"""
CIR Skeleton Compiler
=====================

This package compiles CIR, a small indentation-delimited language, into
a C skeleton: well-formed, consistently indented C whose unimplemented
bodies carry ``//TODO:`` markers.

Pipeline
--------
    CIR Source → Lexer → Indentation Parser → Syntax Tree → Code Generator → C

Each stage is a pure function of its input. The generator keeps its type
environment, mode registry and loop temporaries in a GenerationContext
that is rebuilt for every run.

Usage
-----
>>> from cir_sdk.skeleton import compile_cir
>>> c_source = compile_cir('''
... METHOD add(Int a, Int b) -> Int:
...     RETURN a+b
... ''')
>>> print(c_source)  # int add(int a, int b); ...

Language Summary
----------------
- Types: Int, Byte, and Array inside a STRUCTURE
- Declarations are immutable unless prefixed with MUTABLE; immutable
  assignments become #define macros
- Control flow: IF / ELSEIF / ELSE, WHILE, FOR ... TO, REPEAT ... TIMES
- Build variants: SETMODE, DEFAULT, DEFINE and CHOOSE map onto the C
  preprocessor
"""

from cir_sdk.skeleton.compiler import (
    SkeletonCompiler,
    CompilerOptions,
    CompilerResult,
    compile_cir,
    compile_file,
)
from cir_sdk.skeleton.errors import (
    SkeletonError,
    CirLexError,
    CirIndentationError,
    CirSyntaxError,
    CirSemanticError,
    CirCodeGenError,
    CirInternalError,
    UndeclaredIdentifierError,
    TopLevelStatementError,
)
from cir_sdk.skeleton.lexer import CirLexer, Token, TokenKind, tokenize
from cir_sdk.skeleton.parser import IndentationParser, parse
from cir_sdk.skeleton.codegen import CodeGenerator, generate
from cir_sdk.skeleton.context import GenerationContext
from cir_sdk.skeleton.ast import Node, NodeKind, ASTPrinter

__all__ = [
    # Main API
    "SkeletonCompiler",
    "CompilerOptions",
    "CompilerResult",
    "compile_cir",
    "compile_file",
    # Errors
    "SkeletonError",
    "CirLexError",
    "CirIndentationError",
    "CirSyntaxError",
    "CirSemanticError",
    "CirCodeGenError",
    "CirInternalError",
    "UndeclaredIdentifierError",
    "TopLevelStatementError",
    # Pipeline stages
    "CirLexer",
    "Token",
    "TokenKind",
    "tokenize",
    "IndentationParser",
    "parse",
    "CodeGenerator",
    "generate",
    "GenerationContext",
    # Syntax tree
    "Node",
    "NodeKind",
    "ASTPrinter",
]
