"""
CIR Syntax Tree Definitions
===========================

This module defines the syntax tree produced by the indentation parser and
consumed by the C skeleton generator.

Every node carries a kind tag (NodeKind), a payload specific to that kind,
and an ordered list of child nodes. Block-owning statements keep their body
in ``children``; the remaining kinds are leaves.

Node Kinds
----------
Node (base)
├── Top-level declarations
│   ├── StructureNode - STRUCTURE Name: (exactly one child)
│   ├── MethodDeclarationNode - METHOD name(params) -> Ret: (body)
│   ├── SetModeNode - SETMODE MODE(A, B)
│   ├── DefaultDefineNode - DEFAULT MODE = A
│   └── DefineNode - DEFINE MODE = B
├── Statements
│   ├── DeclarationNode - Int(a, b) / MUTABLE Byte(c)
│   ├── AssignmentNode - name = expression
│   ├── MethodCallNode - name(arguments)
│   ├── ReturnNode - RETURN expression
│   ├── PassNode - PASS (placeholder)
│   └── CommentNode - // text
└── Blocks
    ├── IfNode / ElseIfNode / ElseNode
    ├── WhileNode
    ├── ForNode - FOR i = a TO b:
    ├── RepeatNode - REPEAT n TIMES:
    ├── ChooseNode - CHOOSE MODE: (one ChooseOptionNode per option)
    └── ChooseOptionNode - OPTION: (the option's body)

Design Notes
------------
- Expressions are not parsed into sub-trees. Conditions, right-hand sides,
  call arguments and loop bounds are kept as the raw token runs the parser
  captured, and rendered textually by the generator.
- Each node owns its children exclusively; the tree has no sharing and no
  back-edges.
- Locations are excluded from equality so trees can be compared by shape.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import ClassVar, Optional

from cir_sdk.errors import SourceLocation
from cir_sdk.skeleton.lexer import Token, TokenKind


# =============================================================================
# Node Kind Enumeration
# =============================================================================

class NodeKind(Enum):
    """Closed set of syntax node kinds."""
    COMMENT = auto()
    DECLARATION = auto()
    ASSIGNMENT = auto()
    STRUCTURE = auto()
    METHOD_DECLARATION = auto()
    METHOD_CALL = auto()
    IF = auto()
    ELSE_IF = auto()
    ELSE = auto()
    WHILE = auto()
    FOR = auto()
    REPEAT = auto()
    CHOOSE = auto()
    CHOOSE_OPTION = auto()
    PASS = auto()
    DEFAULT_DEFINE = auto()
    DEFINE = auto()
    SET_MODE = auto()
    RETURN = auto()


# =============================================================================
# Base Node
# =============================================================================

@dataclass
class Node:
    """
    Base class for all syntax nodes.

    Attributes:
        location: Source location of the token that starts the node
        children: Ordered child nodes (the body, for block statements)
    """
    kind: ClassVar[NodeKind]

    location: Optional[SourceLocation] = field(default=None, compare=False)
    children: list["Node"] = field(default_factory=list)

    def __repr__(self) -> str:
        if self.location:
            return f"{self.__class__.__name__}@{self.location.line}:{self.location.column}"
        return self.__class__.__name__


# =============================================================================
# Parameters
# =============================================================================

@dataclass(frozen=True)
class Parameter:
    """
    One METHOD parameter.

    ``Array[Byte, 4, 4] state`` collapses to a single parameter whose type
    is compound: element type ``Byte`` with dimensions ``("4", "4")``.

    Attributes:
        type_name: CIR type name (the element type for arrays)
        name: Parameter name
        dimensions: Array dimension texts, empty for scalars
    """
    type_name: str
    name: str
    dimensions: tuple[str, ...] = ()

    @property
    def is_array(self) -> bool:
        return bool(self.dimensions)


# =============================================================================
# Leaf Nodes
# =============================================================================

@dataclass(repr=False)
class CommentNode(Node):
    """A ``//`` comment line; ``text`` includes the slashes."""
    kind: ClassVar[NodeKind] = NodeKind.COMMENT

    text: str = ""


@dataclass(repr=False)
class DeclarationNode(Node):
    """
    Variable declaration.

    For ``Array`` declarations (only meaningful inside a STRUCTURE) the
    first name is the element type and the rest are dimensions:
    ``Array(Byte, 4, 4)`` has names ``["Byte", "4", "4"]``.

    Attributes:
        declared_type: CIR type name (Int, Byte, Array, a structure name)
        names: Declared names in source order
        mutable: True when prefixed by MUTABLE
    """
    kind: ClassVar[NodeKind] = NodeKind.DECLARATION

    declared_type: str = ""
    names: list[str] = field(default_factory=list)
    mutable: bool = False


@dataclass(repr=False)
class AssignmentNode(Node):
    """
    ``name = expression``; the expression is every token up to the end of
    the line, kept verbatim.
    """
    kind: ClassVar[NodeKind] = NodeKind.ASSIGNMENT

    name: str = ""
    expression: list[Token] = field(default_factory=list)


@dataclass(repr=False)
class MethodCallNode(Node):
    """``name(arguments)`` as a statement; valid only inside a METHOD body."""
    kind: ClassVar[NodeKind] = NodeKind.METHOD_CALL

    name: str = ""
    arguments: list[Token] = field(default_factory=list)


@dataclass(repr=False)
class PassNode(Node):
    """PASS placeholder; generates a TODO marker."""
    kind: ClassVar[NodeKind] = NodeKind.PASS


@dataclass(repr=False)
class ReturnNode(Node):
    """RETURN with an optional expression (empty token list for none)."""
    kind: ClassVar[NodeKind] = NodeKind.RETURN

    expression: list[Token] = field(default_factory=list)


@dataclass(repr=False)
class SetModeNode(Node):
    """``SETMODE MODE(A, B)``: registers a mode and its exclusive options."""
    kind: ClassVar[NodeKind] = NodeKind.SET_MODE

    mode: str = ""
    options: list[str] = field(default_factory=list)


@dataclass(repr=False)
class DefaultDefineNode(Node):
    """``DEFAULT MODE = OPTION``: lowest-priority selection."""
    kind: ClassVar[NodeKind] = NodeKind.DEFAULT_DEFINE

    mode: str = ""
    option: str = ""


@dataclass(repr=False)
class DefineNode(Node):
    """``DEFINE MODE = OPTION``: replaces the active selection."""
    kind: ClassVar[NodeKind] = NodeKind.DEFINE

    mode: str = ""
    option: str = ""


# =============================================================================
# Declarations with Bodies
# =============================================================================

@dataclass(repr=False)
class StructureNode(Node):
    """
    ``STRUCTURE Name:`` with exactly one child, a DeclarationNode or a
    PassNode.
    """
    kind: ClassVar[NodeKind] = NodeKind.STRUCTURE

    name: str = ""


@dataclass(repr=False)
class MethodDeclarationNode(Node):
    """
    Method definition; only valid at nesting level 0.

    Attributes:
        name: Method name
        parameters: Parameters in declaration order
        return_type: CIR return type name, None for no return value
    """
    kind: ClassVar[NodeKind] = NodeKind.METHOD_DECLARATION

    name: str = ""
    parameters: list[Parameter] = field(default_factory=list)
    return_type: Optional[str] = None


# =============================================================================
# Control Flow Blocks
# =============================================================================

@dataclass(repr=False)
class IfNode(Node):
    kind: ClassVar[NodeKind] = NodeKind.IF

    condition: list[Token] = field(default_factory=list)


@dataclass(repr=False)
class ElseIfNode(Node):
    kind: ClassVar[NodeKind] = NodeKind.ELSE_IF

    condition: list[Token] = field(default_factory=list)


@dataclass(repr=False)
class ElseNode(Node):
    kind: ClassVar[NodeKind] = NodeKind.ELSE


@dataclass(repr=False)
class WhileNode(Node):
    kind: ClassVar[NodeKind] = NodeKind.WHILE

    condition: list[Token] = field(default_factory=list)


@dataclass(repr=False)
class ForNode(Node):
    """
    ``FOR i = 0 TO 9:``

    Attributes:
        start: Tokens of the "from" clause (``i = 0``); its first word is
            the iterator
        stop: Tokens of the "to" clause, the inclusive upper bound
    """
    kind: ClassVar[NodeKind] = NodeKind.FOR

    start: list[Token] = field(default_factory=list)
    stop: list[Token] = field(default_factory=list)

    @property
    def iterator(self) -> Optional[str]:
        for token in self.start:
            if token.kind is TokenKind.WORD:
                return token.raw
        return None


@dataclass(repr=False)
class RepeatNode(Node):
    """``REPEAT count TIMES:``"""
    kind: ClassVar[NodeKind] = NodeKind.REPEAT

    count: list[Token] = field(default_factory=list)


@dataclass(repr=False)
class ChooseNode(Node):
    """``CHOOSE MODE:``; children are ChooseOptionNodes."""
    kind: ClassVar[NodeKind] = NodeKind.CHOOSE

    mode: str = ""


@dataclass(repr=False)
class ChooseOptionNode(Node):
    """One ``OPTION:`` group of a CHOOSE; children are the option's body."""
    kind: ClassVar[NodeKind] = NodeKind.CHOOSE_OPTION

    option: str = ""


# =============================================================================
# Tree Printer (for debugging)
# =============================================================================

def _tokens_text(tokens: list[Token]) -> str:
    return "".join(token.raw for token in tokens).strip()


class ASTPrinter:
    """
    Renders a syntax tree as indented text.

    Used by ``circ --ast`` and by tests when a tree needs eyeballing.

    Example output:
        MethodDeclaration add(Int a, Int b) -> Int
          Return a+b
    """

    def __init__(self, indent: str = "  "):
        self._indent = indent
        self._lines: list[str] = []

    def print(self, nodes: list[Node]) -> str:
        self._lines = []
        for node in nodes:
            self._visit(node, 0)
        return "\n".join(self._lines)

    def _visit(self, node: Node, depth: int) -> None:
        self._lines.append(self._indent * depth + self._describe(node))
        for child in node.children:
            self._visit(child, depth + 1)

    def _describe(self, node: Node) -> str:
        label = "".join(part.title() for part in node.kind.name.split("_"))

        if isinstance(node, CommentNode):
            return f"{label} {node.text}"
        if isinstance(node, DeclarationNode):
            prefix = "MUTABLE " if node.mutable else ""
            return f"{label} {prefix}{node.declared_type}({', '.join(node.names)})"
        if isinstance(node, AssignmentNode):
            return f"{label} {node.name} = {_tokens_text(node.expression)}"
        if isinstance(node, MethodCallNode):
            return f"{label} {node.name}({_tokens_text(node.arguments)})"
        if isinstance(node, StructureNode):
            return f"{label} {node.name}"
        if isinstance(node, MethodDeclarationNode):
            params = []
            for param in node.parameters:
                if param.is_array:
                    params.append(f"Array[{param.type_name}, {', '.join(param.dimensions)}] {param.name}")
                else:
                    params.append(f"{param.type_name} {param.name}")
            text = f"{label} {node.name}({', '.join(params)})"
            if node.return_type:
                text += f" -> {node.return_type}"
            return text
        if isinstance(node, (IfNode, ElseIfNode, WhileNode)):
            return f"{label} {_tokens_text(node.condition)}"
        if isinstance(node, ForNode):
            return f"{label} {_tokens_text(node.start)} TO {_tokens_text(node.stop)}"
        if isinstance(node, RepeatNode):
            return f"{label} {_tokens_text(node.count)} TIMES"
        if isinstance(node, ChooseNode):
            return f"{label} {node.mode}"
        if isinstance(node, ChooseOptionNode):
            return f"{label} {node.option}"
        if isinstance(node, SetModeNode):
            return f"{label} {node.mode}({', '.join(node.options)})"
        if isinstance(node, (DefaultDefineNode, DefineNode)):
            return f"{label} {node.mode} = {node.option}"
        if isinstance(node, ReturnNode):
            return f"{label} {_tokens_text(node.expression)}".rstrip()
        return label
