"""
CIR Type Table
==============

This module maps CIR type names onto the C types the skeleton generator
emits.

Built-in Types
--------------
| CIR    | C         | Notes                                   |
|--------|-----------|-----------------------------------------|
| Int    | int       |                                         |
| Byte   | uint8_t   | needs <stdint.h>, always included       |
| Array  | (element) | only as a STRUCTURE body or a parameter |

Every STRUCTURE adds its own name, mapped to itself: ``STRUCTURE State:``
makes ``State`` usable as a declaration and parameter type that renders
as ``State`` in C.

Type Representation
-------------------
Types are CType objects holding the C spelling of the element type and
the array dimensions, if any. Dimensions render as declarator suffixes,
so ``CType("uint8_t", ("4", "4")).declare("s")`` gives ``uint8_t s[4][4]``.
"""

from dataclasses import dataclass
from typing import Optional

from cir_sdk.errors import SourceLocation
from cir_sdk.skeleton.errors import UnknownTypeError


# CIR name -> C spelling
BUILTIN_TYPES: dict[str, str] = {
    "Int": "int",
    "Byte": "uint8_t",
}

ARRAY_TYPE = "Array"

# Return type of a METHOD without ``-> Type``
VOID = "void"


# =============================================================================
# Type Representation
# =============================================================================

@dataclass(frozen=True)
class CType:
    """
    A resolved C type.

    Attributes:
        name: C spelling of the (element) type
        dimensions: Array dimensions as written, outermost first
    """
    name: str
    dimensions: tuple[str, ...] = ()

    @property
    def is_array(self) -> bool:
        return bool(self.dimensions)

    def declare(self, identifier: str) -> str:
        """Render a declarator: ``int a`` or ``uint8_t s[4][4]``."""
        suffix = "".join(f"[{d}]" for d in self.dimensions)
        return f"{self.name} {identifier}{suffix}"

    def __str__(self) -> str:
        return self.name + "".join(f"[{d}]" for d in self.dimensions)


# =============================================================================
# Type Table
# =============================================================================

class TypeTable:
    """
    Resolves CIR type names to C types.

    Seeded with the built-in types; grows by one entry per STRUCTURE.
    """

    def __init__(self):
        self._types: dict[str, str] = dict(BUILTIN_TYPES)

    def register_structure(self, name: str) -> None:
        self._types[name] = name

    def is_known(self, name: str) -> bool:
        return name in self._types

    def known_types(self) -> list[str]:
        return list(self._types)

    def resolve(
        self,
        name: str,
        dimensions: tuple[str, ...] = (),
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ) -> CType:
        """
        Look up a CIR type name.

        Raises:
            UnknownTypeError: If the name is neither built in nor a
                registered structure
        """
        c_name = self._types.get(name)
        if c_name is None:
            raise UnknownTypeError(name, self.known_types(), location, source_line)
        return CType(c_name, tuple(dimensions))
