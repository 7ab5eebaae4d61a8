# =============================================================================
# test_context.py - Generation Context Tests
# =============================================================================
# Tests for the state the generator carries through a run.
#
# Test coverage includes:
#   - TypeTable resolution and structure registration
#   - TypeEnvironment bindings and similar-name suggestions
#   - ModeRegistry registration and option validation
#   - TemporaryPool acquire/release discipline
# =============================================================================

import logging

import pytest
from cir_sdk.skeleton.context import (
    GenerationContext,
    Mode,
    ModeRegistry,
    TemporaryPool,
    TypeEnvironment,
)
from cir_sdk.skeleton.errors import (
    CirInternalError,
    InvalidModeOptionError,
    TemporaryPoolExhaustedError,
    UndefinedModeError,
    UnknownTypeError,
)
from cir_sdk.skeleton.types import CType, TypeTable


# =============================================================================
# Type Tests
# =============================================================================

class TestTypeTable:
    """CIR to C type resolution."""

    @pytest.mark.parametrize("name,c_name", [("Int", "int"), ("Byte", "uint8_t")])
    def test_builtin_types(self, name, c_name):
        assert TypeTable().resolve(name) == CType(c_name)

    def test_unknown_type(self):
        with pytest.raises(UnknownTypeError, match="unknown type 'Float'") as exc_info:
            TypeTable().resolve("Float")
        assert "known types: Int, Byte" in str(exc_info.value)

    def test_structure_registration(self):
        types = TypeTable()
        types.register_structure("State")
        assert types.is_known("State")
        assert types.resolve("State") == CType("State")

    def test_array_declarator(self):
        c_type = TypeTable().resolve("Byte", ("4", "4"))
        assert c_type.is_array
        assert c_type.declare("state") == "uint8_t state[4][4]"
        assert str(c_type) == "uint8_t[4][4]"


class TestTypeEnvironment:
    """Name bindings."""

    def test_declare_and_lookup(self):
        environment = TypeEnvironment()
        environment.declare("x", CType("int"), mutable=False)

        binding = environment.lookup("x")
        assert binding.c_type == CType("int")
        assert not binding.mutable
        assert "x" in environment
        assert environment.lookup("y") is None

    def test_redeclare_replaces(self):
        environment = TypeEnvironment()
        environment.declare("x", CType("int"), mutable=False)
        environment.declare("x", CType("uint8_t"), mutable=True)
        assert environment.lookup("x").mutable

    def test_method_scope(self):
        environment = TypeEnvironment()
        environment.declare("rounds", CType("int"), mutable=False)

        environment.enter_method()
        environment.declare("state", CType("uint8_t", ("16",)), mutable=True)
        assert "state" in environment
        assert "rounds" in environment
        environment.exit_method()

        assert "state" not in environment
        assert "rounds" in environment

    def test_local_shadows_global(self):
        environment = TypeEnvironment()
        environment.declare("x", CType("int"), mutable=False)
        environment.enter_method()
        environment.declare("x", CType("uint8_t"), mutable=True)

        assert environment.lookup("x").c_type == CType("uint8_t")
        environment.exit_method()
        assert environment.lookup("x").c_type == CType("int")

    def test_forget_drops_local_only(self):
        environment = TypeEnvironment()
        environment.declare("g", CType("int"), mutable=True)
        environment.enter_method()
        environment.declare("i", CType("int"), mutable=True)

        environment.forget("i")
        environment.forget("g")
        assert "i" not in environment
        assert "g" in environment

    def test_find_similar_includes_locals(self):
        environment = TypeEnvironment()
        environment.declare("rounds", CType("int"), mutable=False)
        environment.enter_method()
        environment.declare("state", CType("int"), mutable=True)
        assert environment.find_similar("stat") == ["state"]
        assert environment.find_similar("round") == ["rounds"]

    @pytest.mark.parametrize("typo,expected", [
        ("roundz", ["rounds"]),
        ("ROUNDS", ["rounds"]),
        ("round", ["rounds"]),
        ("keysize", []),
    ])
    def test_find_similar(self, typo, expected):
        environment = TypeEnvironment()
        for name in ("rounds", "state", "key"):
            environment.declare(name, CType("int"), mutable=False)
        assert environment.find_similar(typo) == expected


# =============================================================================
# Mode Tests
# =============================================================================

class TestModeRegistry:
    """SETMODE bookkeeping."""

    def test_macros(self):
        mode = Mode("LEVEL", ["LOW", "HIGH"])
        assert mode.macro("HIGH") == "LEVEL_HIGH"
        assert mode.macros() == ["LEVEL_LOW", "LEVEL_HIGH"]

    def test_register_and_validate(self):
        modes = ModeRegistry()
        modes.register("LEVEL", ["LOW", "HIGH"])
        assert "LEVEL" in modes
        assert modes.validate("LEVEL", "HIGH").name == "LEVEL"

    def test_undefined_mode(self):
        with pytest.raises(UndefinedModeError):
            ModeRegistry().get("LEVEL")

    def test_invalid_option(self):
        modes = ModeRegistry()
        modes.register("LEVEL", ["LOW", "HIGH"])
        with pytest.raises(InvalidModeOptionError) as exc_info:
            modes.validate("LEVEL", "MID")
        assert exc_info.value.valid_options == ["LOW", "HIGH"]

    def test_reregister_warns(self, caplog):
        modes = ModeRegistry()
        modes.register("LEVEL", ["LOW", "HIGH"])
        with caplog.at_level(logging.WARNING):
            mode = modes.register("LEVEL", ["A", "B"])
        assert mode.options == ["A", "B"]
        assert "registered again" in caplog.text


# =============================================================================
# Temporary Pool Tests
# =============================================================================

class TestTemporaryPool:
    """Loop counter allocation."""

    def test_acquire_lowest_free(self):
        pool = TemporaryPool(4)
        assert pool.acquire() == "_temp_0"
        assert pool.acquire() == "_temp_1"
        pool.release("_temp_0")
        assert pool.acquire() == "_temp_0"
        assert pool.in_use() == ["_temp_0", "_temp_1"]

    def test_exhaustion(self):
        pool = TemporaryPool(2)
        pool.acquire()
        pool.acquire()
        with pytest.raises(TemporaryPoolExhaustedError, match="2 temporaries in use"):
            pool.acquire()

    def test_double_release(self):
        pool = TemporaryPool(2)
        name = pool.acquire()
        pool.release(name)
        with pytest.raises(CirInternalError, match="released twice"):
            pool.release(name)

    @pytest.mark.parametrize("name", ["i", "_temp_", "_temp_9", "_temp_x"])
    def test_release_foreign_name(self, name):
        with pytest.raises(CirInternalError, match="not a pool temporary"):
            TemporaryPool(2).release(name)

    def test_capacity_must_be_positive(self):
        with pytest.raises(ValueError):
            TemporaryPool(0)

    def test_context_pool_size(self):
        context = GenerationContext.create(temp_pool_size=3)
        assert context.temporaries.capacity == 3
        assert context.types.is_known("Int")
