"""
CIR Generation Context
======================

State shared by every step of one C skeleton generation run.

The generator threads a single GenerationContext through its recursive
walk instead of keeping registries on itself, so each run starts from a
fresh context and two runs never see each other's state.

Components
----------
TypeTable (types.py)
    CIR type name -> C type; grows with each STRUCTURE.
TypeEnvironment
    Variable name -> (C type, mutability), in a global and a per-METHOD
    local scope. Implicit FOR iterators live only for their loop.
ModeRegistry
    Mode name -> options and currently selected option. Created
    by SETMODE, updated by DEFAULT and DEFINE, read by CHOOSE.
TemporaryPool
    Fixed set of loop counter names ``_temp_0 .. _temp_{N-1}``. A REPEAT
    holds one for the duration of its body.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from cir_sdk.errors import SourceLocation
from cir_sdk.skeleton.errors import (
    CirInternalError,
    InvalidModeOptionError,
    TemporaryPoolExhaustedError,
    UndefinedModeError,
)
from cir_sdk.skeleton.types import CType, TypeTable

logger = logging.getLogger(__name__)


# =============================================================================
# Type Environment
# =============================================================================

@dataclass(frozen=True)
class Binding:
    """A declared variable."""
    name: str
    c_type: CType
    mutable: bool


class TypeEnvironment:
    """
    Records every declared variable with its C type and mutability.

    Top-level declarations are global. Between enter_method() and
    exit_method(), parameters and declarations are local to the METHOD
    body and shadow globals of the same name, matching C's function scope.
    """

    def __init__(self):
        self._globals: dict[str, Binding] = {}
        self._locals: Optional[dict[str, Binding]] = None

    def enter_method(self) -> None:
        self._locals = {}

    def exit_method(self) -> None:
        self._locals = None

    def declare(self, name: str, c_type: CType, mutable: bool) -> Binding:
        scope = self._globals if self._locals is None else self._locals
        if name in scope:
            logger.debug(f"Redeclaring '{name}' as {c_type}")
        binding = Binding(name, c_type, mutable)
        scope[name] = binding
        return binding

    def forget(self, name: str) -> None:
        """Drop a local binding whose C scope has ended (a FOR iterator)."""
        if self._locals is not None:
            self._locals.pop(name, None)

    def lookup(self, name: str) -> Optional[Binding]:
        """Look up a name in local then global scope."""
        if self._locals and name in self._locals:
            return self._locals[name]
        return self._globals.get(name)

    def __contains__(self, name: str) -> bool:
        return self.lookup(name) is not None

    def _visible(self) -> list[str]:
        names = list(self._locals or {})
        return names + [n for n in self._globals if n not in names]

    def find_similar(self, name: str) -> list[str]:
        """
        Find declared names close to ``name`` for error hints.

        Uses simple edit distance heuristic.
        """
        name_lower = name.lower()
        similar = []

        for known in self._visible():
            known_lower = known.lower()
            # Simple typos: a character or two off, or a case difference
            if (
                known_lower == name_lower or
                abs(len(known) - len(name)) <= 1 and
                _edit_distance(name_lower, known_lower) <= 2
            ):
                similar.append(known)

        return similar[:3]


def _edit_distance(s1: str, s2: str) -> int:
    """Calculate Levenshtein edit distance between two strings."""
    if len(s1) < len(s2):
        s1, s2 = s2, s1

    distances = list(range(len(s2) + 1))
    for i, c1 in enumerate(s1):
        new_distances = [i + 1]
        for j, c2 in enumerate(s2):
            if c1 == c2:
                new_distances.append(distances[j])
            else:
                new_distances.append(1 + min(
                    distances[j],
                    distances[j + 1],
                    new_distances[-1],
                ))
        distances = new_distances

    return distances[-1]


# =============================================================================
# Mode Registry
# =============================================================================

@dataclass
class Mode:
    """
    A SETMODE declaration and its selection state.

    Attributes:
        name: Mode name (the macro prefix)
        options: Mutually exclusive options, in declaration order
        current: Option currently #define'd by the generated header
    """
    name: str
    options: list[str] = field(default_factory=list)
    current: Optional[str] = None

    def macro(self, option: str) -> str:
        """Preprocessor macro selecting an option: LEVEL + HIGH -> LEVEL_HIGH."""
        return f"{self.name}_{option}"

    def macros(self) -> list[str]:
        return [self.macro(option) for option in self.options]


class ModeRegistry:
    """Modes registered by SETMODE, keyed by name."""

    def __init__(self):
        self._modes: dict[str, Mode] = {}

    def register(self, name: str, options: list[str]) -> Mode:
        if name in self._modes:
            logger.warning(f"Mode '{name}' registered again; previous options discarded")
        mode = Mode(name, list(options))
        self._modes[name] = mode
        return mode

    def get(
        self,
        name: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ) -> Mode:
        mode = self._modes.get(name)
        if mode is None:
            raise UndefinedModeError(name, location, source_line)
        return mode

    def validate(
        self,
        name: str,
        option: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ) -> Mode:
        """
        Check that ``option`` is one of mode ``name``'s options.

        Raises:
            UndefinedModeError: If the mode was never registered
            InvalidModeOptionError: If the option is not in its option set
        """
        mode = self.get(name, location, source_line)
        if option not in mode.options:
            raise InvalidModeOptionError(name, option, mode.options, location, source_line)
        return mode

    def __contains__(self, name: str) -> bool:
        return name in self._modes


# =============================================================================
# Temporary Pool
# =============================================================================

TEMP_PREFIX = "_temp_"


class TemporaryPool:
    """
    Fixed-capacity pool of synthetic loop counter names.

    ``acquire`` hands out the lowest-numbered free slot, so sibling loops
    reuse ``_temp_0`` and nested loops count upward.
    """

    def __init__(self, capacity: int = 8):
        if capacity < 1:
            raise ValueError(f"temporary pool capacity must be positive, got {capacity}")
        self.capacity = capacity
        self._in_use = [False] * capacity

    def acquire(self, location: Optional[SourceLocation] = None) -> str:
        for index, used in enumerate(self._in_use):
            if not used:
                self._in_use[index] = True
                return f"{TEMP_PREFIX}{index}"
        raise TemporaryPoolExhaustedError(self.capacity, location)

    def release(self, name: str) -> None:
        index = self._index_of(name)
        if not self._in_use[index]:
            raise CirInternalError(f"temporary '{name}' released twice")
        self._in_use[index] = False

    def in_use(self) -> list[str]:
        return [f"{TEMP_PREFIX}{i}" for i, used in enumerate(self._in_use) if used]

    def _index_of(self, name: str) -> int:
        suffix = name[len(TEMP_PREFIX):] if name.startswith(TEMP_PREFIX) else ""
        if not suffix.isdigit() or int(suffix) >= self.capacity:
            raise CirInternalError(f"'{name}' is not a pool temporary")
        return int(suffix)


# =============================================================================
# Generation Context
# =============================================================================

@dataclass
class GenerationContext:
    """Everything one generation run mutates."""
    types: TypeTable = field(default_factory=TypeTable)
    environment: TypeEnvironment = field(default_factory=TypeEnvironment)
    modes: ModeRegistry = field(default_factory=ModeRegistry)
    temporaries: TemporaryPool = field(default_factory=TemporaryPool)

    @classmethod
    def create(cls, temp_pool_size: int = 8) -> "GenerationContext":
        return cls(temporaries=TemporaryPool(temp_pool_size))
