"""
C Skeleton Code Generator
=========================

This module generates C source from the CIR syntax tree. The result is a
skeleton: structurally valid C whose unimplemented parts carry a
``//TODO:`` marker.

Output Layout
-------------
Three streams are filled during a single depth-first walk and joined
with blank lines:

    #include <stdint.h>          <- includes

    typedef uint8_t State[4][4]; <- header: typedefs, prototypes, macros
    void add(int a, int b);
    #define rounds ((int) 10)

    void add(int a, int b) {     <- code: method definitions
        return a + b;
    }

Top-level constructs emit to the header; everything inside a METHOD body
emits to the code stream.

Translation Table
-----------------
| CIR                          | C                                         |
|------------------------------|-------------------------------------------|
| Int(a, b)                    | int a, b;                                 |
| x = 5 (x immutable)          | #define x ((int) 5)                       |
| x = 5 (x MUTABLE)            | x = 5;                                    |
| STRUCTURE S: Array(Byte, 4)  | typedef uint8_t S[4];                     |
| STRUCTURE S: PASS            | typedef struct S S;                       |
| REPEAT n TIMES:              | for(int _temp_0 = 0; _temp_0 < n; ...) {  |
| FOR i = 0 TO 9:              | for(int i = 0; i <= 9; i++) {             |
| SETMODE M(A, B)              | /** M: M_A | M_B **/                       |
| DEFAULT M = A                | #if !defined(M_A) && !defined(M_B) ...    |
| DEFINE M = B                 | #undef M_A / #define M_B                  |
| CHOOSE M: / A: ...           | #ifdef M_A ... #endif                     |
| PASS                         | //TODO:                                   |

Indentation
-----------
Emitted lines are indented by a group counter. Every construct that opens
a group closes it; closing a group that was never opened is an internal
error.
"""

import logging
from typing import Callable, Optional

from cir_sdk.skeleton.ast import (
    AssignmentNode,
    ChooseNode,
    ChooseOptionNode,
    CommentNode,
    DeclarationNode,
    DefaultDefineNode,
    DefineNode,
    ElseIfNode,
    ElseNode,
    ForNode,
    IfNode,
    MethodCallNode,
    MethodDeclarationNode,
    Node,
    NodeKind,
    Parameter,
    PassNode,
    RepeatNode,
    ReturnNode,
    SetModeNode,
    StructureNode,
    WhileNode,
)
from cir_sdk.skeleton.context import GenerationContext
from cir_sdk.skeleton.errors import (
    CirInternalError,
    NotImplementedNodeError,
    TopLevelStatementError,
    UndeclaredIdentifierError,
    UnsupportedFeatureError,
)
from cir_sdk.skeleton.expressions import render_expression, split_arguments
from cir_sdk.skeleton.lexer import TokenKind
from cir_sdk.skeleton.types import ARRAY_TYPE, VOID, CType

logger = logging.getLogger(__name__)


DEFAULT_INCLUDES = ["stdint.h"]

# Placeholder emitted for PASS
TODO_MARKER = "//TODO:"


class CodeGenerator:
    """
    Generates a C skeleton from CIR syntax nodes.

    Each call to generate() starts from a fresh GenerationContext, so the
    same generator can be reused and always produces the same output for
    the same tree.

    Attributes:
        indent_width: Spaces per indentation group
        temp_pool_size: Number of loop temporaries available to REPEAT
        doc_comments: Pass ``///`` comments through to the output
        warnings: Non-fatal diagnostics from the last run
    """

    def __init__(
        self,
        indent_width: int = 4,
        temp_pool_size: int = 8,
        doc_comments: bool = False,
        includes: Optional[list[str]] = None,
        source_lines: Optional[list[str]] = None,
    ):
        self.indent_width = indent_width
        self.temp_pool_size = temp_pool_size
        self.doc_comments = doc_comments
        self.includes = list(includes) if includes is not None else list(DEFAULT_INCLUDES)
        self.source_lines = source_lines or []
        self.warnings: list[str] = []

        self._context = GenerationContext.create(temp_pool_size)
        self._header: list[str] = []
        self._code: list[str] = []
        self._stream = self._header
        self._groups = 0
        self._method: Optional[MethodDeclarationNode] = None

        self._handlers: dict[NodeKind, Callable] = {
            NodeKind.COMMENT: self._generate_comment,
            NodeKind.DECLARATION: self._generate_declaration,
            NodeKind.ASSIGNMENT: self._generate_assignment,
            NodeKind.STRUCTURE: self._generate_structure,
            NodeKind.METHOD_DECLARATION: self._generate_method,
            NodeKind.METHOD_CALL: self._generate_method_call,
            NodeKind.IF: self._generate_if,
            NodeKind.ELSE_IF: self._generate_else_if,
            NodeKind.ELSE: self._generate_else,
            NodeKind.WHILE: self._generate_while,
            NodeKind.FOR: self._generate_for,
            NodeKind.REPEAT: self._generate_repeat,
            NodeKind.CHOOSE: self._generate_choose,
            NodeKind.PASS: self._generate_pass,
            NodeKind.DEFAULT_DEFINE: self._generate_default_define,
            NodeKind.DEFINE: self._generate_define,
            NodeKind.SET_MODE: self._generate_set_mode,
            NodeKind.RETURN: self._generate_return,
        }

    @property
    def context(self) -> GenerationContext:
        """State of the most recent run (type environment, modes, temporaries)."""
        return self._context

    def generate(self, nodes: list[Node]) -> str:
        """
        Generate C source from top-level syntax nodes.

        Args:
            nodes: Output of the parser

        Returns:
            Includes, header and code, separated by blank lines

        Raises:
            SkeletonError: On the first semantic or generation error
        """
        self._context = GenerationContext.create(self.temp_pool_size)
        self._header = []
        self._code = []
        self._stream = self._header
        self._groups = 0
        self._method = None
        self.warnings = []

        for node in nodes:
            self._generate_node(node)

        if self._groups:
            raise CirInternalError(f"{self._groups} group(s) left open")

        includes = [f"#include <{name}>" for name in self.includes]
        return "\n".join(includes + [""] + self._header + [""] + self._code)

    # =========================================================================
    # Output Methods
    # =========================================================================

    def _emit(self, line: str = "") -> None:
        """Emit a line at the current indentation."""
        if line:
            line = " " * (self.indent_width * self._groups) + line
        self._stream.append(line)

    def _start_group(self) -> None:
        self._groups += 1

    def _end_group(self) -> None:
        if self._groups == 0:
            raise CirInternalError("no open group to end")
        self._groups -= 1

    def _emit_block(self, opening: str, node: Node) -> None:
        """Emit ``opening {``, the node's children one group deeper, then ``}``."""
        self._emit(f"{opening} {{")
        self._start_group()
        self._generate_children(node)
        self._end_group()
        self._emit("}")

    # =========================================================================
    # Dispatch
    # =========================================================================

    def _generate_node(self, node: Node) -> None:
        handler = self._handlers.get(node.kind)
        if handler is None:
            raise NotImplementedNodeError(node.kind.name, node.location)
        logger.debug(f"Generating {node!r}")
        handler(node)

    def _generate_children(self, node: Node) -> None:
        for child in node.children:
            self._generate_node(child)

    def _source_line(self, node: Node) -> Optional[str]:
        if node.location is None:
            return None
        line = node.location.line
        if 0 < line <= len(self.source_lines):
            return self.source_lines[line - 1]
        return None

    def _require_method(self, node: Node, statement: str) -> None:
        """Executable statements only make sense inside a METHOD body."""
        if self._method is None:
            raise TopLevelStatementError(statement, node.location, self._source_line(node))

    # =========================================================================
    # Declarations
    # =========================================================================

    def _generate_comment(self, node: CommentNode) -> None:
        if self.doc_comments and node.text.startswith("///"):
            self._emit(f"// {node.text[3:].strip()}")

    def _generate_declaration(self, node: DeclarationNode) -> None:
        if node.declared_type == ARRAY_TYPE:
            raise UnsupportedFeatureError(
                "Array declarations outside a STRUCTURE",
                location=node.location,
                source_line=self._source_line(node),
                alternative="declare the array as a STRUCTURE and use its name as the type",
            )

        c_type = self._context.types.resolve(
            node.declared_type,
            location=node.location,
            source_line=self._source_line(node),
        )
        for name in node.names:
            self._context.environment.declare(name, c_type, node.mutable)
        self._emit(f"{c_type} {', '.join(node.names)};")

    def _generate_assignment(self, node: AssignmentNode) -> None:
        environment = self._context.environment
        binding = environment.lookup(node.name)
        if binding is None:
            raise UndeclaredIdentifierError(
                node.name,
                node.location,
                self._source_line(node),
                environment.find_similar(node.name),
            )

        expression = render_expression(node.expression)
        if binding.mutable:
            self._require_method(node, f"assign to mutable '{node.name}'")
            self._emit(f"{node.name} = {expression};")
        else:
            # Immutable values become compile-time macros
            self._emit(f"#define {node.name} (({binding.c_type}) {expression})")

    def _generate_structure(self, node: StructureNode) -> None:
        types = self._context.types
        types.register_structure(node.name)

        if len(node.children) != 1:
            raise UnsupportedFeatureError(
                "complex structures currently unimplemented",
                location=node.location,
                source_line=self._source_line(node),
            )
        member = node.children[0]

        if isinstance(member, DeclarationNode) and member.declared_type == ARRAY_TYPE:
            element, *dimensions = member.names
            if not dimensions:
                raise UnsupportedFeatureError(
                    "Array without dimensions",
                    location=member.location,
                    source_line=self._source_line(member),
                    alternative=f"e.g. 'Array({element}, 4)'",
                )
            c_type = types.resolve(element, tuple(dimensions), member.location, self._source_line(member))
            self._emit(f"typedef {c_type.declare(node.name)};")
        elif isinstance(member, PassNode):
            self._emit(f"typedef struct {node.name} {node.name};")
        else:
            raise UnsupportedFeatureError(
                f"{member.kind.name.lower()} inside STRUCTURE",
                location=member.location,
                source_line=self._source_line(member),
                alternative="use a single Array declaration or PASS",
            )

    def _resolve_parameter(self, parameter: Parameter, node: MethodDeclarationNode) -> CType:
        return self._context.types.resolve(
            parameter.type_name,
            parameter.dimensions,
            node.location,
            self._source_line(node),
        )

    def _generate_method(self, node: MethodDeclarationNode) -> None:
        types = self._context.types
        parameter_types = [self._resolve_parameter(p, node) for p in node.parameters]

        return_type = VOID
        if node.return_type:
            return_type = types.resolve(node.return_type, (), node.location, self._source_line(node)).name

        parameters = ", ".join(
            c_type.declare(p.name) for p, c_type in zip(node.parameters, parameter_types)
        )
        signature = f"{return_type} {node.name}({parameters or 'void'})"

        self._emit(f"{signature};")

        environment = self._context.environment
        environment.enter_method()
        for parameter, c_type in zip(node.parameters, parameter_types):
            environment.declare(parameter.name, c_type, mutable=True)

        enclosing = self._stream
        self._stream = self._code
        if self._code:
            self._code.append("")
        self._method = node
        self._emit_block(signature, node)
        self._method = None
        self._stream = enclosing
        environment.exit_method()

    # =========================================================================
    # Statements
    # =========================================================================

    def _generate_method_call(self, node: MethodCallNode) -> None:
        self._require_method(node, "call method")
        self._log_argument_types(node)
        self._emit(f"{node.name}({render_expression(node.arguments)});")

    def _log_argument_types(self, node: MethodCallNode) -> None:
        """Best-effort argument typing; unknown arguments only warn."""
        environment = self._context.environment
        inferred = []
        for argument in split_arguments(node.arguments):
            if len(argument) != 1:
                inferred.append("?")
                continue
            token = argument[0]
            if token.kind is TokenKind.NUMBER:
                inferred.append("int")
            elif token.kind is TokenKind.WORD and token.raw in environment:
                inferred.append(str(environment.lookup(token.raw).c_type))
            else:
                message = f"{token.location}: cannot infer type of argument '{token.raw}' to {node.name}()"
                logger.warning(message)
                self.warnings.append(message)
                inferred.append("?")
        logger.debug(f"Call {node.name}({', '.join(inferred)})")

    def _generate_pass(self, node: PassNode) -> None:
        self._emit(TODO_MARKER)

    def _generate_return(self, node: ReturnNode) -> None:
        self._require_method(node, "return")
        expression = render_expression(node.expression)
        self._emit(f"return {expression};" if expression else "return;")

    # =========================================================================
    # Control Flow
    # =========================================================================

    def _generate_if(self, node: IfNode) -> None:
        self._require_method(node, "use IF")
        self._emit_block(f"if({render_expression(node.condition)})", node)

    def _generate_else_if(self, node: ElseIfNode) -> None:
        self._require_method(node, "use ELSEIF")
        self._emit_block(f"else if({render_expression(node.condition)})", node)

    def _generate_else(self, node: ElseNode) -> None:
        self._require_method(node, "use ELSE")
        self._emit_block("else", node)

    def _generate_while(self, node: WhileNode) -> None:
        self._require_method(node, "use WHILE")
        self._emit_block(f"while({render_expression(node.condition)})", node)

    def _generate_for(self, node: ForNode) -> None:
        self._require_method(node, "use FOR")
        iterator = node.iterator
        start = render_expression(node.start)
        stop = render_expression(node.stop)

        # An undeclared iterator is declared in the initializer and goes out
        # of scope with the loop
        environment = self._context.environment
        implicit = iterator not in environment
        if implicit:
            environment.declare(iterator, CType("int"), mutable=True)
            start = f"int {start}"

        self._emit_block(f"for({start}; {iterator} <= {stop}; {iterator}++)", node)
        if implicit:
            environment.forget(iterator)

    def _generate_repeat(self, node: RepeatNode) -> None:
        self._require_method(node, "use REPEAT")
        temporaries = self._context.temporaries
        counter = temporaries.acquire(node.location)
        try:
            count = render_expression(node.count)
            self._emit_block(f"for(int {counter} = 0; {counter} < {count}; {counter}++)", node)
        finally:
            temporaries.release(counter)

    # =========================================================================
    # Modes (conditional compilation)
    # =========================================================================

    def _generate_set_mode(self, node: SetModeNode) -> None:
        mode = self._context.modes.register(node.mode, node.options)
        self._emit(f"/** {mode.name}: {' | '.join(mode.macros())} **/")

    def _generate_default_define(self, node: DefaultDefineNode) -> None:
        mode = self._context.modes.validate(node.mode, node.option, node.location, self._source_line(node))
        guard = " && ".join(f"!defined({macro})" for macro in mode.macros())
        self._emit(f"#if {guard}")
        self._emit(f"  #define {mode.macro(node.option)}")
        self._emit("#endif")

        if mode.current is None:
            mode.current = node.option

    def _generate_define(self, node: DefineNode) -> None:
        mode = self._context.modes.validate(node.mode, node.option, node.location, self._source_line(node))
        if mode.current is not None:
            self._emit(f"#undef {mode.macro(mode.current)}")
        self._emit(f"#define {mode.macro(node.option)}")
        mode.current = node.option

    def _generate_choose(self, node: ChooseNode) -> None:
        modes = self._context.modes
        mode = modes.get(node.mode, node.location, self._source_line(node))

        for child in node.children:
            if not isinstance(child, ChooseOptionNode):
                self._generate_node(child)
                continue
            modes.validate(mode.name, child.option, child.location, self._source_line(child))
            self._emit(f"#ifdef {mode.macro(child.option)}")
            self._start_group()
            self._generate_children(child)
            self._end_group()
            self._emit("#endif")


# =============================================================================
# Convenience Functions
# =============================================================================

def generate(nodes: list[Node], **options) -> str:
    """Generate C source with a fresh CodeGenerator."""
    return CodeGenerator(**options).generate(nodes)
