"""
CIR Indentation Parser
======================

This module implements the recursive descent parser for CIR. It turns the
flat token list produced by the lexer into a forest of syntax nodes, with
block nesting taken purely from the width of each line's leading
whitespace. There are no braces and no end keywords.

Grammar
-------
One statement per line; any line may end in a ``//`` comment.

    STRUCTURE Name:                  body: one declaration or PASS line
    METHOD name[(params)] [-> Type]: body
    SETMODE MODE(OPT1, OPT2, ...)
    DEFAULT MODE = OPT
    DEFINE MODE = OPT
    MUTABLE Type(a, b)
    Type(a, b)
    name(arguments)
    name = expression
    REPEAT expression TIMES:         body
    IF expression:                   body
    ELSEIF expression:               body (also ELSIF, ELIF)
    ELSE:                            body
    WHILE expression:                body
    FOR name = expression TO expression:
    CHOOSE MODE:                     body: ``OPTION:`` lines, each with a body
    RETURN [expression]
    PASS

    params ::= param (',' param)*
    param  ::= Type name | 'Array' '[' Type (',' dim)+ ']' name

Indentation
-----------
The first indented line fixes the indentation unit (its whitespace width,
tabs counting one each). Every later indented line must be a whole
multiple of that unit; its level is the quotient. Whitespace-only lines
never fix the unit.

A block at ``min_level`` keeps taking lines while their level is at least
``min_level``. The first shallower line ends the block: the parser
restores the snapshot taken before that line's whitespace and hands the
line back to the enclosing block unconsumed.

Example Usage
-------------
>>> from cir_sdk.skeleton.lexer import tokenize
>>> from cir_sdk.skeleton.parser import IndentationParser
>>> source = "METHOD main:\\n    PASS"
>>> nodes = IndentationParser(tokenize(source), "demo.cir").parse()
>>> nodes
[MethodDeclarationNode@1:1]
>>> nodes[0].children
[PassNode@2:5]
"""

import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import Callable, Optional

from cir_sdk.errors import SourceLocation
from cir_sdk.skeleton.ast import (
    ASTPrinter,
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
    Parameter,
    PassNode,
    RepeatNode,
    ReturnNode,
    SetModeNode,
    StructureNode,
    WhileNode,
)
from cir_sdk.skeleton.errors import (
    CirIndentationError,
    CirInternalError,
    CirSyntaxError,
    MalformedCommandError,
    MissingTokenError,
    RunawayError,
    SkeletonError,
    UnexpectedTokenError,
    UnsupportedFeatureError,
)
from cir_sdk.skeleton.lexer import Token, TokenKind
from cir_sdk.skeleton.types import ARRAY_TYPE, BUILTIN_TYPES

logger = logging.getLogger(__name__)


class Step(Enum):
    """Outcome of one pass of the block loop."""
    CONSUMED = auto()   # a line was turned into nodes
    DONE = auto()       # block finished; nothing consumed


@dataclass(frozen=True)
class Snapshot:
    """Cursor state restored when a line turns out to belong to an outer block."""
    pos: int
    level: int


# Parses the statement at the cursor; receives the line's level and the
# nodes already parsed in the same block.
StatementParser = Callable[[int, list[Node]], list[Node]]


# Command shapes, for error hints
_USAGE = {
    "SETMODE": "SETMODE name(option, ...)",
    "DEFAULT": "DEFAULT name = option",
    "DEFINE": "DEFINE name = option",
}


class IndentationParser:
    """
    Recursive descent parser for CIR.

    Attributes:
        tokens: Tokens from the lexer, whitespace included
        filename: Source filename for error reporting
        warnings: Non-fatal diagnostics (lower-case keywords)
    """

    def __init__(
        self,
        tokens: list[Token],
        filename: str = "<input>",
        source_lines: Optional[list[str]] = None,
    ):
        self.tokens = tokens
        self.filename = filename
        self.source_lines = source_lines or []
        self.warnings: list[str] = []

        self._pos = 0
        self._level = 0
        self._unit_width: Optional[int] = None

        # Names that start a declaration: built-ins plus every STRUCTURE
        self._type_names: set[str] = set(BUILTIN_TYPES) | {ARRAY_TYPE}

        self._root: list[Node] = []

        self._keyword_parsers: dict[str, Callable[[int], list[Node]]] = {
            "STRUCTURE": self._parse_structure,
            "METHOD": self._parse_method,
            "PASS": self._parse_pass,
            "DEFAULT": self._parse_default,
            "DEFINE": self._parse_define,
            "SETMODE": self._parse_setmode,
            "MUTABLE": self._parse_mutable,
            "REPEAT": self._parse_repeat,
            "IF": self._parse_if,
            "ELSEIF": self._parse_else_if,
            "ELSIF": self._parse_else_if,
            "ELIF": self._parse_else_if,
            "ELSE": self._parse_else,
            "WHILE": self._parse_while,
            "FOR": self._parse_for,
            "CHOOSE": self._parse_choose,
            "RETURN": self._parse_return,
        }

    def parse(self) -> list[Node]:
        """
        Parse the whole token list.

        Returns:
            The top-level nodes in source order

        Raises:
            SkeletonError: On the first syntax or indentation error
        """
        self._root = []
        try:
            self._parse_block(0, self._root, self._parse_statement)
        except SkeletonError:
            self._dump_state()
            raise
        return self._root

    @property
    def unit_width(self) -> Optional[int]:
        """Indentation unit, once the first indented line has fixed it."""
        return self._unit_width

    # =========================================================================
    # Token Access Methods
    # =========================================================================

    def _at_end(self) -> bool:
        return self._pos >= len(self.tokens)

    def _peek(self, offset: int = 0) -> Optional[Token]:
        """Look at token at current position + offset; None past the end."""
        pos = self._pos + offset
        if pos >= len(self.tokens):
            return None
        return self.tokens[pos]

    def _advance(self) -> Token:
        token = self.tokens[self._pos]
        self._pos += 1
        return token

    def _check(self, *kinds: TokenKind) -> bool:
        token = self._peek()
        return token is not None and token.kind in kinds

    def _match(self, *kinds: TokenKind) -> Optional[Token]:
        if self._check(*kinds):
            return self._advance()
        return None

    def _skip_spaces(self) -> Optional[Token]:
        """Step over in-line whitespace; return the next token."""
        while self._check(TokenKind.SPACES):
            self._advance()
        return self._peek()

    def _at_line_end(self) -> bool:
        """True at a line break, a trailing comment, or the end of input."""
        token = self._peek()
        return token is None or token.kind in (TokenKind.LINE_BREAK, TokenKind.COMMENT)

    def _expect(self, kind: TokenKind, description: str) -> Token:
        """
        Expect and consume a token of the given kind, skipping spaces first.

        Raises:
            MissingTokenError: If the next token is of another kind
        """
        self._skip_spaces()
        if self._check(kind):
            return self._advance()
        raise MissingTokenError(description, self._location(), self._source_line())

    def _location(self) -> SourceLocation:
        """Location of the current token (or of the last one at end of input)."""
        token = self._peek()
        if token is None:
            if not self.tokens:
                return SourceLocation(self.filename, 1, 1)
            last = self.tokens[-1]
            return SourceLocation(self.filename, last.line, last.column + len(last.raw))
        return token.location

    def _source_line(self, line: Optional[int] = None) -> Optional[str]:
        """Get source line for error reporting (default: the current line)."""
        if line is None:
            line = self._location().line
        if 0 < line <= len(self.source_lines):
            return self.source_lines[line - 1]
        return None

    def _error_at(self, token: Token) -> tuple[SourceLocation, Optional[str]]:
        return token.location, self._source_line(token.line)

    # =========================================================================
    # Block Structure
    # =========================================================================

    def _save(self) -> Snapshot:
        return Snapshot(self._pos, self._level)

    def _restore(self, snapshot: Snapshot) -> None:
        self._pos = snapshot.pos
        self._level = snapshot.level

    def _parse_block(
        self,
        min_level: int,
        nodes: list[Node],
        statement_parser: StatementParser,
    ) -> list[Node]:
        """
        Parse lines at ``min_level`` or deeper into ``nodes``.

        ``nodes`` is filled in place, so a failure deep inside still
        leaves every node parsed so far reachable for diagnostics.
        """
        logger.debug(f"Entering block at level {min_level}")
        while True:
            start = self._pos
            if self._parse_step(min_level, nodes, statement_parser) is Step.DONE:
                logger.debug(f"Leaving block at level {min_level} ({len(nodes)} nodes)")
                return nodes
            if self._pos <= start:
                raise CirInternalError(
                    "parser made no progress",
                    location=self._location(),
                    source_line=self._source_line(),
                )

    def _parse_step(
        self,
        min_level: int,
        nodes: list[Node],
        statement_parser: StatementParser,
    ) -> Step:
        self._skip_blank_lines()
        if self._at_end():
            return Step.DONE

        snapshot = self._save()
        level = self._read_indentation()
        if level < min_level:
            self._restore(snapshot)
            return Step.DONE

        nodes.extend(statement_parser(level, nodes))
        return Step.CONSUMED

    def _skip_blank_lines(self) -> None:
        while True:
            if self._match(TokenKind.LINE_BREAK):
                continue
            # Whitespace-only line
            if self._check(TokenKind.SPACES):
                following = self._peek(1)
                if following is None or following.kind is TokenKind.LINE_BREAK:
                    self._advance()
                    continue
            return

    def _read_indentation(self) -> int:
        """Consume leading whitespace and return the line's level."""
        token = self._match(TokenKind.SPACES)
        if token is None:
            self._level = 0
            return 0

        width = len(token.raw)
        if self._unit_width is None:
            self._unit_width = width
            logger.debug(f"Indentation unit is {width} (line {token.line})")
        elif width % self._unit_width:
            raise CirIndentationError(
                width,
                self._unit_width,
                token.location,
                self._source_line(token.line),
            )

        self._level = width // self._unit_width
        return self._level

    def _parse_body(self, level: int, node: Node, comments: list[Node]) -> None:
        """Parse the body of a block header found at ``level``."""
        node.children.extend(comments)
        self._parse_block(level + 1, node.children, self._parse_statement)

    # =========================================================================
    # Line Endings
    # =========================================================================

    def _finish_line(self) -> list[Node]:
        """
        Consume the end of a statement line.

        Returns:
            A CommentNode for a trailing comment, else an empty list

        Raises:
            UnexpectedTokenError: If anything else remains on the line
        """
        comments: list[Node] = []
        token = self._skip_spaces()
        if token is not None and token.kind is TokenKind.COMMENT:
            self._advance()
            comments.append(CommentNode(location=token.location, text=token.raw))
            token = self._peek()

        if token is None:
            return comments
        if token.kind is TokenKind.LINE_BREAK:
            self._advance()
            return comments

        location, source_line = self._error_at(token)
        raise UnexpectedTokenError(token.raw, "end of line", location, source_line)

    def _finish_header(self) -> list[Node]:
        """Consume the ``:`` closing a block header, then the line end."""
        self._expect(TokenKind.COLON, "':'")
        return self._finish_line()

    def _collect_until(
        self,
        stop: Callable[[Token], bool],
        description: str,
    ) -> list[Token]:
        """
        Collect tokens until ``stop`` accepts one (left unconsumed).

        Raises:
            MissingTokenError: If the line ends first
        """
        collected: list[Token] = []
        while True:
            token = self._peek()
            if token is None or token.kind in (TokenKind.LINE_BREAK, TokenKind.COMMENT):
                raise MissingTokenError(description, self._location(), self._source_line())
            if stop(token):
                return collected
            collected.append(self._advance())

    def _collect_rest_of_line(self) -> list[Token]:
        collected: list[Token] = []
        while not self._at_line_end():
            collected.append(self._advance())
        return collected

    def _parse_list(self, construct: str) -> list[str]:
        """
        Parse ``(a, b, c)`` items after the open parenthesis.

        Items are words or numbers separated by commas; spaces are
        optional anywhere.

        Raises:
            RunawayError: If the line ends before ``)``
        """
        items: list[str] = []
        expecting_item = True
        while True:
            token = self._skip_spaces()
            if token is None or token.kind is TokenKind.LINE_BREAK:
                raise RunawayError(construct, self._location(), self._source_line())

            if token.kind is TokenKind.CLOSE_PAREN:
                self._advance()
                return items

            if expecting_item and token.kind in (TokenKind.WORD, TokenKind.NUMBER):
                items.append(self._advance().raw)
                expecting_item = False
            elif not expecting_item and token.kind is TokenKind.COMMA:
                self._advance()
                expecting_item = True
            else:
                location, source_line = self._error_at(token)
                raise UnexpectedTokenError(
                    token.raw,
                    "a name" if expecting_item else "',' or ')'",
                    location,
                    source_line,
                )

    # =========================================================================
    # Statement Dispatch
    # =========================================================================

    def _parse_statement(self, level: int, siblings: list[Node]) -> list[Node]:
        token = self._peek()

        if token.kind is TokenKind.COMMENT:
            self._advance()
            node = CommentNode(location=token.location, text=token.raw)
            self._finish_line()
            return [node]

        if token.kind is TokenKind.KEYWORD:
            self._check_keyword_case(token)
            parser = self._keyword_parsers.get(token.keyword)
            if parser is not None:
                if token.keyword in ("ELSEIF", "ELSIF", "ELIF", "ELSE"):
                    self._check_follows_if(token, siblings)
                return parser(level)

        if token.kind is TokenKind.WORD:
            return self._parse_head_expression()

        location, source_line = self._error_at(token)
        raise UnexpectedTokenError(token.raw, "a statement", location, source_line)

    def _check_keyword_case(self, token: Token) -> None:
        if token.raw != token.keyword:
            message = f"{token.location}: keyword '{token.raw}' should be written '{token.keyword}'"
            logger.warning(message)
            self.warnings.append(message)

    def _check_follows_if(self, token: Token, siblings: list[Node]) -> None:
        previous = next(
            (n for n in reversed(siblings) if not isinstance(n, CommentNode)),
            None,
        )
        if not isinstance(previous, (IfNode, ElseIfNode)):
            location, source_line = self._error_at(token)
            raise CirSyntaxError(
                f"{token.keyword} without a preceding IF",
                location=location,
                hint="ELSEIF and ELSE must directly follow an IF or ELSEIF block",
                source_line=source_line,
            )

    # =========================================================================
    # Head Expressions (declaration, call, assignment)
    # =========================================================================

    def _parse_head_expression(self) -> list[Node]:
        word = self._peek()
        offset = 1
        following = self._peek(offset)
        while following is not None and following.kind is TokenKind.SPACES:
            offset += 1
            following = self._peek(offset)

        if following is not None and following.kind is TokenKind.OPEN_PAREN:
            if word.raw in self._type_names:
                return self._parse_declaration(mutable=False)
            return self._parse_method_call()

        if following is not None and following.kind is TokenKind.SET_EQUALS:
            return self._parse_assignment()

        culprit = word
        if following is not None and following.kind not in (TokenKind.LINE_BREAK, TokenKind.COMMENT):
            culprit = following
        location, source_line = self._error_at(culprit)
        raise UnexpectedTokenError(culprit.raw, "'(' or '=' after a name", location, source_line)

    def _parse_declaration(self, mutable: bool) -> list[Node]:
        """Parse ``Type(a, b)``; the cursor is on the type name."""
        type_token = self._advance()
        self._expect(TokenKind.OPEN_PAREN, "'('")
        names = self._parse_list("declaration list")
        if not names:
            location, source_line = self._error_at(type_token)
            raise MissingTokenError(f"a name to declare as {type_token.raw}", location, source_line)

        node = DeclarationNode(
            location=type_token.location,
            declared_type=type_token.raw,
            names=names,
            mutable=mutable,
        )
        return [node] + self._finish_line()

    def _parse_method_call(self) -> list[Node]:
        name = self._advance()
        open_paren = self._expect(TokenKind.OPEN_PAREN, "'('")

        arguments: list[Token] = []
        depth = 0
        while True:
            token = self._peek()
            if token is None or token.kind is TokenKind.LINE_BREAK:
                location, source_line = self._error_at(open_paren)
                raise RunawayError("argument list", location, source_line)
            self._advance()
            if token.kind is TokenKind.OPEN_PAREN:
                depth += 1
            elif token.kind is TokenKind.CLOSE_PAREN:
                if depth == 0:
                    break
                depth -= 1
            arguments.append(token)

        node = MethodCallNode(location=name.location, name=name.raw, arguments=arguments)
        return [node] + self._finish_line()

    def _parse_assignment(self) -> list[Node]:
        name = self._advance()
        self._expect(TokenKind.SET_EQUALS, "'='")
        self._skip_spaces()
        expression = self._collect_rest_of_line()
        if not any(t.kind is not TokenKind.SPACES for t in expression):
            raise MissingTokenError("an expression after '='", self._location(), self._source_line())

        node = AssignmentNode(location=name.location, name=name.raw, expression=expression)
        return [node] + self._finish_line()

    # =========================================================================
    # Top-Level Declarations
    # =========================================================================

    def _parse_structure(self, level: int) -> list[Node]:
        keyword = self._advance()
        name = self._expect(TokenKind.WORD, "structure name")
        # Usable as a type from here on, including inside its own body
        self._type_names.add(name.raw)
        node = StructureNode(location=keyword.location, name=name.raw)

        body: list[Node] = list(self._finish_header())
        self._parse_block(level + 1, body, self._parse_statement)

        members = [n for n in body if not isinstance(n, CommentNode)]
        if len(members) > 1:
            raise UnsupportedFeatureError(
                "complex structures currently unimplemented",
                location=members[1].location,
                source_line=self._source_line(members[1].location.line),
                alternative="give the STRUCTURE a single Array declaration or PASS",
            )
        if not members:
            location, source_line = self._error_at(name)
            raise MissingTokenError("a declaration or PASS in the STRUCTURE body", location, source_line)

        node.children = members
        return [node]

    def _parse_method(self, level: int) -> list[Node]:
        keyword = self._advance()
        if level != 0:
            location, source_line = self._error_at(keyword)
            raise CirSyntaxError(
                "METHOD must be declared at top level",
                location=location,
                hint="remove the indentation before METHOD",
                source_line=source_line,
            )

        name = self._expect(TokenKind.WORD, "method name")
        node = MethodDeclarationNode(location=keyword.location, name=name.raw)

        if self._skip_spaces() is not None and self._check(TokenKind.OPEN_PAREN):
            open_paren = self._advance()
            node.parameters = self._parse_parameters(open_paren)

        if self._skip_spaces() is not None and self._match(TokenKind.RETURN_TYPE_INDICATOR):
            node.return_type = self._expect(TokenKind.WORD, "return type").raw

        self._parse_body(level, node, self._finish_header())
        return [node]

    def _parse_parameters(self, open_paren: Token) -> list[Parameter]:
        """Parse type/name pairs up to the closing parenthesis."""
        parameters: list[Parameter] = []
        while True:
            token = self._skip_spaces()
            if token is None or token.kind is TokenKind.LINE_BREAK:
                location, source_line = self._error_at(open_paren)
                raise RunawayError("parameter list", location, source_line)
            if token.kind is TokenKind.CLOSE_PAREN and not parameters:
                self._advance()
                return parameters

            type_token = self._expect(TokenKind.WORD, "parameter type")
            dimensions: tuple[str, ...] = ()
            type_name = type_token.raw
            if type_name == ARRAY_TYPE:
                type_name, dimensions = self._parse_array_type(type_token)

            name = self._expect(TokenKind.WORD, "parameter name")
            parameters.append(Parameter(type_name, name.raw, dimensions))

            token = self._skip_spaces()
            if token is None or token.kind is TokenKind.LINE_BREAK:
                location, source_line = self._error_at(open_paren)
                raise RunawayError("parameter list", location, source_line)
            self._advance()
            if token.kind is TokenKind.CLOSE_PAREN:
                return parameters
            if token.kind is not TokenKind.COMMA:
                location, source_line = self._error_at(token)
                raise UnexpectedTokenError(token.raw, "',' or ')'", location, source_line)

    def _parse_array_type(self, array_token: Token) -> tuple[str, tuple[str, ...]]:
        """Parse ``[Elem, d1, d2]`` after ``Array``."""
        token = self._skip_spaces()
        if token is None or token.raw != "[":
            raise MissingTokenError("'[' after Array", self._location(), self._source_line())
        self._advance()

        element = self._expect(TokenKind.WORD, "array element type")
        dimensions: list[str] = []
        while True:
            token = self._skip_spaces()
            if token is None or token.kind is TokenKind.LINE_BREAK:
                location, source_line = self._error_at(array_token)
                raise RunawayError("array type", location, source_line)
            self._advance()
            if token.raw == "]":
                break
            if token.kind is not TokenKind.COMMA:
                location, source_line = self._error_at(token)
                raise UnexpectedTokenError(token.raw, "',' or ']'", location, source_line)
            dimension = self._skip_spaces()
            if dimension is None or dimension.kind not in (TokenKind.NUMBER, TokenKind.WORD):
                raise MissingTokenError("array dimension", self._location(), self._source_line())
            dimensions.append(self._advance().raw)

        if not dimensions:
            location, source_line = self._error_at(array_token)
            raise MissingTokenError("at least one array dimension", location, source_line)
        return element.raw, tuple(dimensions)

    def _parse_pass(self, level: int) -> list[Node]:
        keyword = self._advance()
        return [PassNode(location=keyword.location)] + self._finish_line()

    # =========================================================================
    # Mode Commands
    # =========================================================================

    def _malformed(self, command: Token) -> MalformedCommandError:
        location, source_line = self._error_at(command)
        return MalformedCommandError(command.keyword, _USAGE[command.keyword], location, source_line)

    def _parse_mode_choice(self, command: Token) -> tuple[str, str]:
        """Parse ``name = option`` after DEFAULT or DEFINE."""
        mode = self._skip_spaces()
        if mode is None or mode.kind is not TokenKind.WORD:
            raise self._malformed(command)
        self._advance()

        if self._skip_spaces() is None or not self._match(TokenKind.SET_EQUALS):
            raise self._malformed(command)

        option = self._skip_spaces()
        if option is None or option.kind is not TokenKind.WORD:
            raise self._malformed(command)
        self._advance()

        self._skip_spaces()
        if not self._at_line_end():
            raise self._malformed(command)
        return mode.raw, option.raw

    def _parse_default(self, level: int) -> list[Node]:
        keyword = self._advance()
        mode, option = self._parse_mode_choice(keyword)
        node = DefaultDefineNode(location=keyword.location, mode=mode, option=option)
        return [node] + self._finish_line()

    def _parse_define(self, level: int) -> list[Node]:
        keyword = self._advance()
        mode, option = self._parse_mode_choice(keyword)
        node = DefineNode(location=keyword.location, mode=mode, option=option)
        return [node] + self._finish_line()

    def _parse_setmode(self, level: int) -> list[Node]:
        keyword = self._advance()

        mode = self._skip_spaces()
        if mode is None or mode.kind is not TokenKind.WORD:
            raise self._malformed(keyword)
        self._advance()

        if self._skip_spaces() is None or not self._match(TokenKind.OPEN_PAREN):
            raise self._malformed(keyword)
        options = self._parse_list("option list")
        if not options:
            raise self._malformed(keyword)

        self._skip_spaces()
        if not self._at_line_end():
            raise self._malformed(keyword)

        node = SetModeNode(location=keyword.location, mode=mode.raw, options=options)
        return [node] + self._finish_line()

    def _parse_mutable(self, level: int) -> list[Node]:
        keyword = self._advance()
        type_token = self._skip_spaces()
        if type_token is None or type_token.kind is not TokenKind.WORD or type_token.raw not in self._type_names:
            location, source_line = self._error_at(keyword)
            raise MissingTokenError("a declaration after MUTABLE", location, source_line)
        return self._parse_declaration(mutable=True)

    # =========================================================================
    # Control Flow
    # =========================================================================

    def _parse_condition(self) -> list[Token]:
        self._skip_spaces()
        condition = self._collect_until(lambda t: t.kind is TokenKind.COLON, "':'")
        if not any(t.kind is not TokenKind.SPACES for t in condition):
            raise MissingTokenError("a condition", self._location(), self._source_line())
        return condition

    def _parse_repeat(self, level: int) -> list[Node]:
        keyword = self._advance()
        self._skip_spaces()
        count = self._collect_until(lambda t: t.is_keyword("TIMES"), "'TIMES'")
        if not any(t.kind is not TokenKind.SPACES for t in count):
            raise MissingTokenError("a repeat count", self._location(), self._source_line())
        self._check_keyword_case(self._advance())

        node = RepeatNode(location=keyword.location, count=count)
        self._parse_body(level, node, self._finish_header())
        return [node]

    def _parse_if(self, level: int) -> list[Node]:
        keyword = self._advance()
        node = IfNode(location=keyword.location, condition=self._parse_condition())
        self._parse_body(level, node, self._finish_header())
        return [node]

    def _parse_else_if(self, level: int) -> list[Node]:
        keyword = self._advance()
        node = ElseIfNode(location=keyword.location, condition=self._parse_condition())
        self._parse_body(level, node, self._finish_header())
        return [node]

    def _parse_else(self, level: int) -> list[Node]:
        keyword = self._advance()
        node = ElseNode(location=keyword.location)
        self._parse_body(level, node, self._finish_header())
        return [node]

    def _parse_while(self, level: int) -> list[Node]:
        keyword = self._advance()
        node = WhileNode(location=keyword.location, condition=self._parse_condition())
        self._parse_body(level, node, self._finish_header())
        return [node]

    def _parse_for(self, level: int) -> list[Node]:
        keyword = self._advance()

        iterator = self._expect(TokenKind.WORD, "loop variable")
        start = [iterator] + self._collect_until(lambda t: t.is_keyword("TO"), "'TO'")
        significant = [t for t in start if t.kind is not TokenKind.SPACES]
        if len(significant) < 3 or significant[1].kind is not TokenKind.SET_EQUALS:
            location, source_line = self._error_at(iterator)
            raise MissingTokenError(f"'{iterator.raw} = <start>' before TO", location, source_line)
        self._check_keyword_case(self._advance())

        self._skip_spaces()
        stop = self._collect_until(lambda t: t.kind is TokenKind.COLON, "':'")
        if not any(t.kind is not TokenKind.SPACES for t in stop):
            raise MissingTokenError("a loop bound after TO", self._location(), self._source_line())

        node = ForNode(location=keyword.location, start=start, stop=stop)
        self._parse_body(level, node, self._finish_header())
        return [node]

    def _parse_choose(self, level: int) -> list[Node]:
        keyword = self._advance()
        mode = self._expect(TokenKind.WORD, "mode name")
        node = ChooseNode(location=keyword.location, mode=mode.raw)
        node.children.extend(self._finish_header())
        self._parse_block(level + 1, node.children, self._parse_choose_option)
        return [node]

    def _parse_choose_option(self, level: int, siblings: list[Node]) -> list[Node]:
        """Parse one ``OPTION:`` line of a CHOOSE body, with its own body."""
        token = self._peek()
        if token.kind is TokenKind.COMMENT:
            self._advance()
            node = CommentNode(location=token.location, text=token.raw)
            self._finish_line()
            return [node]

        if token.kind is not TokenKind.WORD:
            location, source_line = self._error_at(token)
            raise UnexpectedTokenError(token.raw, "an 'OPTION:' line", location, source_line)

        self._advance()
        node = ChooseOptionNode(location=token.location, option=token.raw)
        self._parse_body(level, node, self._finish_header())
        return [node]

    def _parse_return(self, level: int) -> list[Node]:
        keyword = self._advance()
        self._skip_spaces()
        node = ReturnNode(location=keyword.location, expression=self._collect_rest_of_line())
        return [node] + self._finish_line()

    # =========================================================================
    # Diagnostics
    # =========================================================================

    def _dump_state(self) -> None:
        """Log what was left unparsed and what was built, for debugging."""
        if not logger.isEnabledFor(logging.DEBUG):
            return
        remaining = self.tokens[self._pos:]
        logger.debug(f"Parse failed with {len(remaining)} tokens remaining:")
        for token in remaining:
            logger.debug(f"  {token!r}")
        logger.debug("Nodes built so far:")
        for line in ASTPrinter().print(self._root).splitlines():
            logger.debug(f"  {line}")


# =============================================================================
# Convenience Functions
# =============================================================================

def parse(
    tokens: list[Token],
    filename: str = "<input>",
    source_lines: Optional[list[str]] = None,
) -> list[Node]:
    """Parse a token list into top-level syntax nodes."""
    return IndentationParser(tokens, filename, source_lines).parse()
