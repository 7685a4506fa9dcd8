"""
Interfaces for command descriptors and preprocessed commands.

A command descriptor is the static definition of one command. Binding it to a
specific input yields a preprocessed command that can be executed.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Hashable
from typing import TYPE_CHECKING, Any

from chatcmd.core.domain.command_results import CommandFailure, CommandOutcome

if TYPE_CHECKING:
    from chatcmd.constants import FormatTarget
    from chatcmd.core.domain.commands.command_help import CommandHelp

# (template, value) -> rendered text
Formatter = Callable[[str, Any], str]


class IPreprocessedCommand(ABC):
    """A command bound to one parsed and converted input."""

    @property
    @abstractmethod
    def name(self) -> Hashable:
        """Name of the command."""

    @property
    @abstractmethod
    def repeatable(self) -> bool:
        """Whether the command may be executed more than once."""

    @property
    @abstractmethod
    def execution_count(self) -> int:
        """Number of execution attempts so far."""

    @abstractmethod
    def execute(self) -> CommandOutcome:
        """Execute the command.

        Returns:
            A ``CommandSuccess`` with the value and render template, or a
            ``CommandFailure`` tagged with the failing phase
        """


class ICommand(ABC):
    """Static definition of one command."""

    @property
    @abstractmethod
    def name(self) -> Hashable:
        """Dispatch key of the command."""

    @property
    @abstractmethod
    def repeatable(self) -> bool:
        """Whether preprocessed instances may be executed more than once."""

    @property
    @abstractmethod
    def help(self) -> CommandHelp:
        """Help text of the command."""

    @abstractmethod
    def preprocess(
        self, text: str, context: Any = None
    ) -> IPreprocessedCommand | CommandFailure:
        """Bind the command to one input.

        Args:
            text: Raw command text
            context: Caller supplied context passed to converter and executor

        Returns:
            A preprocessed command, or a failure. A failure with phase
            ``parse`` means the command does not apply to the input.
        """

    def execute(self, text: str, context: Any = None) -> CommandOutcome:
        """Preprocess the input and execute the result once."""
        preprocessed = self.preprocess(text, context)
        if isinstance(preprocessed, CommandFailure):
            return preprocessed
        return preprocessed.execute()

    @abstractmethod
    def format(self, outcome: CommandOutcome, formatter: Formatter) -> str:
        """Render an execution outcome with the supplied formatter."""

    @abstractmethod
    def get_default_formatter(self, target: FormatTarget | str) -> Formatter:
        """Return the formatter this command uses for an output target."""
