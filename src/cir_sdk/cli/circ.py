"""
circ - CIR Skeleton Compiler Command-Line Interface
===================================================

This module implements the command-line interface for the CIR compiler.
It reads a ``.cir`` source file and writes the generated C skeleton.

Usage Examples
--------------
Basic compilation:
    $ circ aes.cir

With output file:
    $ circ aes.cir -o build/aes.c

Print to the terminal instead of writing a file:
    $ circ aes.cir --stdout

Inspect the intermediate stages:
    $ circ aes.cir --tokens
    $ circ aes.cir --ast

Verbose mode (debug logging):
    $ circ -v aes.cir
"""

import logging
from pathlib import Path
from typing import Optional

import click

from cir_sdk import __version__
from cir_sdk.cli.errors import handle_cli_exception
from cir_sdk.skeleton import SkeletonCompiler, CompilerOptions
from cir_sdk.skeleton.ast import ASTPrinter
from cir_sdk.skeleton.lexer import tokenize


def setup_logging(verbose: bool) -> None:
    """Configure logging based on verbosity."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s" if verbose else "%(message)s",
    )


# =============================================================================
# CLI Definition
# =============================================================================

@click.command()
@click.argument(
    "input_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "-o", "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Output C file (default: input.c)",
)
@click.option(
    "--stdout", "to_stdout",
    is_flag=True,
    help="Write the generated C to stdout instead of a file",
)
@click.option(
    "--ast",
    is_flag=True,
    help="Print the syntax tree and exit (for debugging)",
)
@click.option(
    "--tokens",
    is_flag=True,
    help="Print the token stream and exit (for debugging)",
)
@click.option(
    "--indent",
    type=click.IntRange(min=0),
    default=None,
    help="Spaces per indentation level in the output [env: CIRC_INDENT_WIDTH, default: 4]",
)
@click.option(
    "--temp-pool",
    type=click.IntRange(min=1),
    default=None,
    help="Loop temporaries available to nested REPEATs [env: CIRC_TEMP_POOL_SIZE, default: 8]",
)
@click.option(
    "--doc-comments",
    is_flag=True,
    help="Copy /// comments into the output [env: CIRC_DOC_COMMENTS]",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="circ")
def main(
    input_file: Path,
    output: Optional[Path],
    to_stdout: bool,
    ast: bool,
    tokens: bool,
    indent: Optional[int],
    temp_pool: Optional[int],
    doc_comments: bool,
    verbose: bool,
) -> None:
    """
    Compile CIR source into a C skeleton.

    INPUT_FILE is the CIR source file (.cir) to compile.

    \b
    Examples:
        circ aes.cir                 # Outputs aes.c
        circ aes.cir -o out.c        # Specify output file
        circ aes.cir --stdout        # Print instead of writing
        circ aes.cir --ast           # Show the syntax tree
        circ -v aes.cir              # Debug logging
    """
    setup_logging(verbose)

    # Environment first, then explicit flags
    options = CompilerOptions.from_env()
    if indent is not None:
        options.indent_width = indent
    if temp_pool is not None:
        options.temp_pool_size = temp_pool
    if doc_comments:
        options.doc_comments = True

    if output is None:
        output = input_file.with_suffix(".c")

    try:
        if verbose:
            click.echo(f"Compiling {input_file}...", err=True)
            click.echo(
                f"Indent width: {options.indent_width}, "
                f"temporaries: {options.temp_pool_size}, "
                f"doc comments: {'on' if options.doc_comments else 'off'}",
                err=True,
            )

        source = input_file.read_text(encoding="utf-8")

        # Token dump mode
        if tokens:
            for token in tokenize(source, str(input_file)):
                click.echo(repr(token))
            return

        compiler = SkeletonCompiler(options)
        result = compiler.compile_source(source, str(input_file))

        # AST dump mode
        if ast:
            click.echo(ASTPrinter().print(result.ast))
            return

        if to_stdout:
            click.echo(result.output)
            return

        output.write_text(result.output + "\n", encoding="utf-8")

        if verbose:
            click.echo(f"Tokenized: {result.token_count} tokens", err=True)
            click.echo(f"Parsed: {len(result.ast)} top-level nodes", err=True)
            click.echo(f"Wrote {len(result.output) + 1} bytes to {output}", err=True)

        click.echo(f"Compiled {input_file} -> {output}")

    except Exception as e:
        handle_cli_exception(e, verbose=verbose, error_type="Compilation")


if __name__ == "__main__":
    main()
