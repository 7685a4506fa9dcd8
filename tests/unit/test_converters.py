"""Unit tests for parameter converters."""

from enum import Enum

import pytest
from chatcmd.core.common.exceptions import CommandValidationError
from chatcmd.core.domain.command_results import FailurePhase
from chatcmd.core.services.converters import (
    boolean,
    enumerated,
    model_converter,
    number,
    object_converter,
    string,
)
from pydantic import BaseModel, Field


class RaidParams(BaseModel):
    boss: str
    tier: int = Field(default=5, ge=1, le=5)


class Tier(Enum):
    LEGENDARY = "legendary"
    MEGA = "mega"


class TestModelConverter:
    """Test suite for model_converter."""

    def test_validates_record(self) -> None:
        convert = model_converter(RaidParams)

        assert convert({"boss": "Lugia", "tier": "3"}) == RaidParams(boss="Lugia", tier=3)

    def test_absent_tokens_use_model_defaults(self) -> None:
        convert = model_converter(RaidParams)

        assert convert({"boss": "Lugia", "tier": None}).tier == 5

    def test_validation_error_becomes_command_error(self) -> None:
        convert = model_converter(RaidParams)

        with pytest.raises(CommandValidationError) as exc_info:
            convert({"tier": 9})

        error = exc_info.value
        assert error.phase is FailurePhase.VALIDATE
        assert "boss" in error.message
        assert "tier" in error.message
        assert error.details == {"model": "RaidParams"}


class TestObjectConverter:
    """Test suite for object_converter."""

    def test_converts_each_field(self) -> None:
        convert = object_converter({"boss": string, "tier": number})

        assert convert({"boss": "Lugia", "tier": "5"}) == {"boss": "Lugia", "tier": 5}

    def test_missing_required_field(self) -> None:
        convert = object_converter({"boss": string})

        with pytest.raises(CommandValidationError, match="Field boss not found"):
            convert({"boss": None})

    def test_optional_field_may_be_absent(self) -> None:
        convert = object_converter({"boss": string, "tier": number}, optional=["tier"])

        assert convert({"boss": "Lugia"}) == {"boss": "Lugia"}

    def test_field_error_names_the_field(self) -> None:
        convert = object_converter({"tier": number})

        with pytest.raises(CommandValidationError, match="tier:") as exc_info:
            convert({"tier": "five"})

        assert exc_info.value.details == {"field": "tier"}

    def test_field_validation_error_passes_through(self) -> None:
        def reject(value: str) -> str:
            raise CommandValidationError(f"{value} is not allowed")

        convert = object_converter({"boss": reject})

        with pytest.raises(CommandValidationError, match="^Lugia is not allowed$"):
            convert({"boss": "Lugia"})


class TestFieldConverters:
    """Test suite for the single-field converters."""

    def test_string(self) -> None:
        assert string("x") == "x"
        with pytest.raises(TypeError):
            string(3)

    @pytest.mark.parametrize(("value", "expected"), [("3", 3), (" 2.5 ", 2.5), (7, 7)])
    def test_number(self, value, expected) -> None:
        assert number(value) == expected

    @pytest.mark.parametrize("value", [True, "x", None])
    def test_number_rejects(self, value) -> None:
        with pytest.raises((TypeError, ValueError)):
            number(value)

    @pytest.mark.parametrize(
        ("value", "expected"),
        [("yes", True), ("TRUE", True), ("off", False), ("0", False), (False, False)],
    )
    def test_boolean(self, value, expected: bool) -> None:
        assert boolean(value) is expected

    def test_boolean_rejects_other_text(self) -> None:
        with pytest.raises(ValueError):
            boolean("maybe")

    def test_enumerated(self) -> None:
        convert = enumerated(["legendary", "mega"])

        assert convert("mega") == "mega"
        with pytest.raises(ValueError, match="expected one of"):
            convert("shadow")

    def test_enumerated_with_enum_values(self) -> None:
        convert = enumerated(Tier)

        assert convert(Tier.MEGA) is Tier.MEGA
