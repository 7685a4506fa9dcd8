"""
Command Results Domain Model

This module defines the outcome of running a single command through the
preprocess/execute pipeline. An outcome is either a ``CommandSuccess`` carrying
the executor's value and the render template chosen for it, or a
``CommandFailure`` tagged with the pipeline phase that produced it.
"""

from __future__ import annotations

from collections.abc import Hashable
from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar, Generic, TypeVar, Union

T = TypeVar("T")


class FailurePhase(str, Enum):
    """Pipeline stage that produced a failure.

    Ordered by increasing distance from user input.
    """

    PARSE = "parse"
    INTERNAL = "internal"
    VALIDATE = "validate"
    EXECUTE = "execute"
    FORMAT = "format"


@dataclass(frozen=True)
class CommandSuccess(Generic[T]):
    """Successful execution of a command.

    Attributes:
        command: Name of the command that produced the value
        value: Raw value returned by the executor
        format: Render template selected for the value
    """

    command: Hashable
    value: T
    format: str

    success: ClassVar[bool] = True


@dataclass(frozen=True)
class CommandFailure:
    """Failed preprocessing or execution of a command.

    A failure with phase ``PARSE`` means the command simply did not apply to
    the input. The processor skips those silently.
    """

    message: str
    phase: FailurePhase
    command: Hashable | None = None

    success: ClassVar[bool] = False

    @property
    def is_no_match(self) -> bool:
        return self.phase is FailurePhase.PARSE

    def __str__(self) -> str:
        return self.message


CommandOutcome = Union[CommandSuccess[Any], CommandFailure]


def succeed_command(value: T, command: Hashable, format: str) -> CommandSuccess[T]:
    return CommandSuccess(command=command, value=value, format=format)


def fail_command(
    message: str, phase: FailurePhase, command: Hashable | None = None
) -> CommandFailure:
    return CommandFailure(message=message, phase=phase, command=command)


def command_label(command: Hashable) -> str:
    """Return the display form of a command key."""
    if isinstance(command, Enum):
        return str(command.value)
    return str(command)
