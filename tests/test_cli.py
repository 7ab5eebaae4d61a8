# =============================================================================
# test_cli.py - circ Command-Line Tests
# =============================================================================
# Tests for the circ command and its error handling.
#
# Test coverage includes:
#   - Default and explicit output paths
#   - --stdout, --tokens and --ast inspection modes
#   - Option precedence: flags over environment over defaults
#   - Exit codes for compile errors, bad arguments and internal errors
# =============================================================================

from pathlib import Path

import click
import pytest
from click.testing import CliRunner

from cir_sdk import __version__
from cir_sdk.cli.circ import main
from cir_sdk.cli.errors import ExitCode, handle_cli_exception
from cir_sdk.errors import CirError
from cir_sdk.skeleton import compile_cir
from cir_sdk.skeleton.errors import CirInternalError, TopLevelStatementError


PROGRAM = """\
METHOD add(Int a, Int b) -> Int:
    IF a > b:
        RETURN a-b
    RETURN a+b
"""


def run(args, source: str = PROGRAM, env=None):
    """Invoke circ on ``prog.cir`` inside an isolated directory."""
    runner = CliRunner()
    with runner.isolated_filesystem():
        Path("prog.cir").write_text(source)
        result = runner.invoke(main, args, env=env)
        written = Path("prog.c").read_text() if Path("prog.c").exists() else None
    return result, written


# =============================================================================
# Output Tests
# =============================================================================

class TestOutput:
    """Where the generated C goes."""

    def test_default_output_path(self):
        result, written = run(["prog.cir"])

        assert result.exit_code == 0, result.output
        assert written == compile_cir(PROGRAM, "prog.cir") + "\n"
        assert "Compiled prog.cir -> prog.c" in result.output

    def test_explicit_output_path(self):
        runner = CliRunner()
        with runner.isolated_filesystem():
            Path("prog.cir").write_text(PROGRAM)
            Path("build").mkdir()

            result = runner.invoke(main, ["prog.cir", "-o", "build/add.c"])

            assert result.exit_code == 0, result.output
            assert Path("build/add.c").read_text().startswith("#include <stdint.h>\n")
            assert not Path("prog.c").exists()

    def test_stdout(self):
        result, written = run(["prog.cir", "--stdout"])

        assert result.exit_code == 0
        assert "int add(int a, int b) {" in result.output
        assert written is None

    def test_verbose_reports_stages(self):
        result, _ = run(["-v", "prog.cir"])

        assert result.exit_code == 0
        assert "Compiling prog.cir..." in result.output
        assert "Tokenized:" in result.output
        assert "Parsed: 1 top-level nodes" in result.output


# =============================================================================
# Inspection Mode Tests
# =============================================================================

class TestInspection:
    """--tokens and --ast print and exit without writing."""

    def test_tokens(self):
        result, written = run(["prog.cir", "--tokens"])

        assert result.exit_code == 0
        assert result.output.splitlines()[0] == "Token(KEYWORD, 'METHOD', 1:1)"
        assert written is None

    def test_ast(self):
        result, written = run(["prog.cir", "--ast"])

        assert result.exit_code == 0
        assert result.output.splitlines() == [
            "MethodDeclaration add(Int a, Int b) -> Int",
            "  If a > b",
            "    Return a-b",
            "  Return a+b",
        ]
        assert written is None


# =============================================================================
# Option Tests
# =============================================================================

class TestOptions:
    """Generator settings from flags and the environment."""

    def test_indent_flag(self):
        _, written = run(["prog.cir", "--indent", "2"])
        assert "\n  if(a > b) {\n    return a - b;\n  }\n" in written

    def test_indent_from_environment(self):
        _, written = run(["prog.cir"], env={"CIRC_INDENT_WIDTH": "8"})
        assert "\n        return a + b;\n" in written

    def test_flag_beats_environment(self):
        _, written = run(["prog.cir", "--indent", "2"], env={"CIRC_INDENT_WIDTH": "8"})
        assert "\n  return a + b;\n" in written

    def test_temp_pool_flag(self):
        source = "METHOD main:\n    REPEAT 2 TIMES:\n        REPEAT 2 TIMES:\n            PASS\n"
        result, _ = run(["prog.cir", "--temp-pool", "1"], source=source)

        assert result.exit_code == ExitCode.BUILD_ERROR
        assert "temporary pool exhausted" in result.output

    def test_temp_pool_must_be_positive(self):
        result, _ = run(["prog.cir", "--temp-pool", "0"])
        assert result.exit_code == 2

    def test_doc_comments_flag(self):
        source = "/// entry point\nMETHOD main:\n    PASS\n"
        _, written = run(["prog.cir", "--doc-comments"], source=source)
        assert "// entry point" in written

    def test_version(self):
        result = CliRunner().invoke(main, ["--version"])
        assert result.exit_code == 0
        assert f"circ, version {__version__}" in result.output


# =============================================================================
# Error Handling Tests
# =============================================================================

class TestErrors:
    """Exit codes and error messages."""

    def test_compile_error(self):
        result, written = run(["prog.cir"], source="Int(x)\nreset()\n")

        assert result.exit_code == ExitCode.BUILD_ERROR
        assert "prog.cir:2:1: error: cannot call method at top level" in result.output
        assert "hint: move it into a METHOD body" in result.output
        assert written is None

    def test_missing_input(self):
        result = CliRunner().invoke(main, ["nowhere.cir"])
        assert result.exit_code == 2

    def test_skeleton_error_exit_code(self):
        with pytest.raises(SystemExit) as exc_info:
            handle_cli_exception(TopLevelStatementError("return"))
        assert exc_info.value.code == ExitCode.BUILD_ERROR

    def test_internal_error_exit_code(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            handle_cli_exception(CirInternalError("parser made no progress"))
        assert exc_info.value.code == ExitCode.INTERNAL_ERROR
        assert "Internal error: error: parser made no progress" in capsys.readouterr().err

    def test_sdk_error_prefix(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            handle_cli_exception(CirError("output not writable"), error_type="Compilation")
        assert exc_info.value.code == ExitCode.BUILD_ERROR
        assert "Compilation error: output not writable" in capsys.readouterr().err

    def test_bad_parameter_exit_code(self):
        with pytest.raises(SystemExit) as exc_info:
            handle_cli_exception(click.BadParameter("bad"))
        assert exc_info.value.code == ExitCode.INVALID_ARGS

    def test_unexpected_exception_exit_code(self):
        with pytest.raises(SystemExit) as exc_info:
            handle_cli_exception(RuntimeError("boom"))
        assert exc_info.value.code == ExitCode.INTERNAL_ERROR
