"""
Parameter converters.

A converter turns a parsed token record into the typed parameters an executor
expects. Converters raise ``CommandValidationError`` when the record is
rejected.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Collection, Iterable, Mapping
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from chatcmd.core.common.exceptions import CommandValidationError
from chatcmd.core.services.command_parser import parse_number

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

Converter = Callable[[Mapping[str, Any]], Any]
FieldConverter = Callable[[Any], Any]

_TRUE_VALUES = frozenset({"true", "yes", "y", "on", "1"})
_FALSE_VALUES = frozenset({"false", "no", "n", "off", "0"})


def _describe_validation_error(error: ValidationError) -> str:
    problems = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"]) or "value"
        problems.append(f"{location}: {item['msg']}")
    return "; ".join(problems)


def model_converter(model: type[M]) -> Callable[[Mapping[str, Any]], M]:
    """Build a converter that validates a token record with a pydantic model.

    Absent optional tokens are dropped so the model's defaults apply.
    """

    def _convert(record: Mapping[str, Any]) -> M:
        values = {key: value for key, value in record.items() if value is not None}
        try:
            return model.model_validate(values)
        except ValidationError as e:
            raise CommandValidationError(
                _describe_validation_error(e),
                details={"model": model.__name__},
            ) from e

    return _convert


def object_converter(
    fields: Mapping[str, FieldConverter], optional: Iterable[str] = ()
) -> Callable[[Mapping[str, Any]], dict[str, Any]]:
    """Build a converter from per-field converters.

    Args:
        fields: Token name to the converter for its value
        optional: Token names that may be absent

    Returns:
        Converter producing a dict with one entry per present field
    """
    optional_fields = frozenset(optional)

    def _convert(record: Mapping[str, Any]) -> dict[str, Any]:
        result: dict[str, Any] = {}
        for name, convert in fields.items():
            raw = record.get(name)
            if raw is None:
                if name in optional_fields:
                    continue
                raise CommandValidationError(f"Field {name} not found")
            try:
                result[name] = convert(raw)
            except CommandValidationError:
                raise
            except (TypeError, ValueError) as e:
                raise CommandValidationError(
                    f"{name}: {e}", details={"field": name}
                ) from e
        return result

    return _convert


def string(value: Any) -> str:
    if not isinstance(value, str):
        raise TypeError(f"Not a string: {value!r}")
    return value


def number(value: Any) -> int | float:
    if isinstance(value, bool):
        raise TypeError(f"Not a number: {value!r}")
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        return parse_number(value.strip())
    raise TypeError(f"Not a number: {value!r}")


def boolean(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_VALUES:
            return True
        if lowered in _FALSE_VALUES:
            return False
    raise ValueError(f"Not a boolean: {value!r}")


def enumerated(values: Collection[Any]) -> FieldConverter:
    """Build a field converter accepting only the listed values."""
    allowed = list(values)

    def _convert(value: Any) -> Any:
        if value in allowed:
            return value
        raise ValueError(f"Invalid value {value!r}, expected one of {allowed}")

    return _convert
