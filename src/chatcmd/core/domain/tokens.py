"""
Token table domain model.

A token table maps placeholder names used in command templates to the regex
fragment that matches their value and the kind the captured text is coerced
into.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from typing import Any, Union

from pydantic import field_validator

from chatcmd.core.domain.base import ValueObject


class TokenKind(str, Enum):
    """Kind a captured token value is coerced into."""

    STRING = "string"
    NUMBER = "number"
    TIME = "time"


class TokenSpec(ValueObject):
    """Definition of one named token.

    Attributes:
        value: Regex fragment matching the token value
        optional: Whether the token may be absent from the input
        kind: Kind the captured text is coerced into
        has_embedded_capture: The fragment carries exactly one capturing group
            of its own and must not be wrapped in another one
    """

    value: str
    optional: bool = False
    kind: TokenKind = TokenKind.STRING
    has_embedded_capture: bool = False

    @field_validator("value")
    @classmethod
    def _validate_value(cls, value: str) -> str:
        if not value:
            raise ValueError("token fragment must not be empty")
        return value


TokenTableEntry = Union[TokenSpec, Mapping[str, Any], str]
TokenTable = Mapping[str, TokenTableEntry]


def to_token_spec(entry: TokenTableEntry) -> TokenSpec:
    """Normalize a token table entry.

    Args:
        entry: A ``TokenSpec``, a mapping of its fields, or a bare regex fragment

    Returns:
        The equivalent ``TokenSpec``
    """
    if isinstance(entry, TokenSpec):
        return entry
    if isinstance(entry, str):
        return TokenSpec(value=entry)
    return TokenSpec.model_validate(dict(entry))


def normalize_token_table(tokens: TokenTable) -> dict[str, TokenSpec]:
    return {name: to_token_spec(entry) for name, entry in tokens.items()}
