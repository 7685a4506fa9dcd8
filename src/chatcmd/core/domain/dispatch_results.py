"""
Dispatch Results Domain Model

Aggregate values returned by the command processor for one input. Each result
lists the matching keys in evaluation order, a mapping from those keys to the
per-command value, and the error messages collected along the way.
"""

from __future__ import annotations

from collections.abc import Hashable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from chatcmd.core.domain.command_results import CommandOutcome
from chatcmd.core.interfaces.model_bases import InternalDTO

if TYPE_CHECKING:
    from chatcmd.core.interfaces.command_interface import IPreprocessedCommand


def _freeze(values: Mapping[Hashable, Any]) -> Mapping[Hashable, Any]:
    return MappingProxyType(dict(values))


@dataclass(frozen=True)
class PreprocessedCommandsResult(InternalDTO):
    """Commands that matched one input, ready to execute."""

    keys: tuple[Hashable, ...] = ()
    preprocessed: Mapping[Hashable, IPreprocessedCommand] = field(
        default_factory=dict
    )
    preprocess_errors: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "keys", tuple(self.keys))
        object.__setattr__(self, "preprocessed", _freeze(self.preprocessed))
        object.__setattr__(self, "preprocess_errors", tuple(self.preprocess_errors))

    @property
    def matched(self) -> bool:
        return len(self.keys) > 0


@dataclass(frozen=True)
class ExecutedCommandsResult(InternalDTO):
    """Successful outcomes of the commands executed for one input.

    Failed executions appear only as messages in ``execution_errors``.
    """

    keys: tuple[Hashable, ...] = ()
    executed: Mapping[Hashable, CommandOutcome] = field(default_factory=dict)
    execution_errors: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "keys", tuple(self.keys))
        object.__setattr__(self, "executed", _freeze(self.executed))
        object.__setattr__(self, "execution_errors", tuple(self.execution_errors))

    @property
    def succeeded(self) -> bool:
        return len(self.keys) > 0


@dataclass(frozen=True)
class FormattedCommandsResult(InternalDTO):
    """Rendered output for the commands that succeeded."""

    keys: tuple[Hashable, ...] = ()
    formatted: Mapping[Hashable, str] = field(default_factory=dict)
    format_errors: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "keys", tuple(self.keys))
        object.__setattr__(self, "formatted", _freeze(self.formatted))
        object.__setattr__(self, "format_errors", tuple(self.format_errors))

    def lines(self) -> list[str]:
        """Return the rendered output in key order."""
        return [self.formatted[key] for key in self.keys]
