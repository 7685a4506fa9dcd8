"""
Preprocessed command implementation.

A preprocessed command is a command that has been parsed and converted for one
input but not yet executed. It owns the guard that keeps non-repeatable
commands from running twice.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Hashable
from typing import Any, Generic, TypeVar, Union

from chatcmd.core.common.exceptions import error_message
from chatcmd.core.domain.command_results import (
    CommandOutcome,
    FailurePhase,
    command_label,
    fail_command,
    succeed_command,
)
from chatcmd.core.interfaces.command_interface import IPreprocessedCommand

logger = logging.getLogger(__name__)

P = TypeVar("P")
C = TypeVar("C")
R = TypeVar("R")

CommandExecutor = Callable[[P, C], R]
FormatSelector = Callable[[P, C, R], str]
FormatSpec = Union[str, FormatSelector]


class PreprocessedCommand(IPreprocessedCommand, Generic[P, C, R]):
    """Command bound to converted parameters and a context.

    Non-repeatable commands accept one execution attempt. Failed attempts
    count as well, so a side-effecting command is never retried silently.
    """

    def __init__(
        self,
        name: Hashable,
        params: P,
        context: C,
        execute: CommandExecutor,
        format: FormatSpec,
        repeatable: bool = False,
    ) -> None:
        self._name = name
        self._params = params
        self._context = context
        self._execute = execute
        self._format = format
        self._repeatable = repeatable
        self._execution_count = 0

    @property
    def name(self) -> Hashable:
        return self._name

    @property
    def repeatable(self) -> bool:
        return self._repeatable

    @property
    def params(self) -> P:
        return self._params

    @property
    def context(self) -> C:
        return self._context

    @property
    def execution_count(self) -> int:
        return self._execution_count

    @property
    def executed(self) -> bool:
        return self._execution_count > 0

    def execute(self) -> CommandOutcome:
        if self._execution_count > 0 and not self._repeatable:
            logger.debug("Refusing to repeat command %s", self._name)
            return fail_command(
                f"Command {command_label(self._name)} cannot be repeated",
                FailurePhase.EXECUTE,
                self._name,
            )

        self._execution_count += 1
        try:
            value = self._execute(self._params, self._context)
        except Exception as e:
            logger.debug("Command %s failed to execute: %s", self._name, e)
            return fail_command(error_message(e), FailurePhase.EXECUTE, self._name)

        try:
            template = self._select_format(value)
        except Exception as e:
            logger.debug(
                "Command %s executed but format selection failed: %s", self._name, e
            )
            return fail_command(error_message(e), FailurePhase.FORMAT, self._name)

        return succeed_command(value, self._name, template)

    def _select_format(self, value: Any) -> str:
        if isinstance(self._format, str):
            return self._format
        template = self._format(self._params, self._context, value)
        if not isinstance(template, str):
            raise TypeError(
                f"Format selector for {command_label(self._name)} returned "
                f"{type(template).__name__}, expected str"
            )
        return template

    def __repr__(self) -> str:
        return (
            f"<PreprocessedCommand name={self._name!r} "
            f"executions={self._execution_count} repeatable={self._repeatable}>"
        )
