"""
Command processor.

The processor holds a keyed set of command descriptors and dispatches one
input across them: every descriptor preprocesses the input in evaluation
order, then one, the first, or all of the matching commands are executed and
their results rendered.
"""

from __future__ import annotations

from collections.abc import Hashable, Iterable, Mapping, Sequence
from typing import Any

from chatcmd.constants import FormatTarget
from chatcmd.core.common.exceptions import (
    ChatCommandError,
    CommandConfigurationError,
    CommandDispatchError,
    CommandFormatError,
)
from chatcmd.core.common.logging_utils import DispatchLogContext, get_logger
from chatcmd.core.config.app_config import DispatchConfig
from chatcmd.core.domain.command_results import (
    CommandFailure,
    CommandOutcome,
    FailurePhase,
    command_label,
    fail_command,
)
from chatcmd.core.domain.dispatch_results import (
    ExecutedCommandsResult,
    FormattedCommandsResult,
    PreprocessedCommandsResult,
)
from chatcmd.core.interfaces.command_interface import (
    Formatter,
    ICommand,
    IPreprocessedCommand,
)
from chatcmd.core.services.result_tracker import ResultTracker

logger = get_logger(__name__)

EVALUATION_ORDER = "evaluation order"
DISPLAY_ORDER = "display order"


def _validate_order(
    description: str,
    commands: Mapping[Hashable, ICommand],
    order: Sequence[Hashable] | None,
) -> tuple[Hashable, ...]:
    if not order:
        return tuple(commands)

    for key in order:
        if key not in commands:
            raise CommandConfigurationError(
                f"Key {command_label(key)} is present in {description} but not in commands.",
                details={"key": command_label(key)},
            )
    for key in commands:
        if key not in order:
            raise CommandConfigurationError(
                f"Command {command_label(key)} is present in commands but not in {description}",
                details={"key": command_label(key)},
            )
    if len(set(order)) != len(order):
        raise CommandConfigurationError(f"Duplicate key in {description}")
    return tuple(order)


def _labelled(key: Hashable, outcome: CommandOutcome) -> CommandOutcome:
    if isinstance(outcome, CommandFailure):
        return fail_command(
            f"{command_label(key)}: {outcome.message}", outcome.phase, key
        )
    return outcome


class CommandProcessor:
    """Dispatches input across a keyed set of commands."""

    def __init__(
        self,
        commands: Mapping[Hashable, ICommand],
        eval_order: Sequence[Hashable] | None = None,
        display_order: Sequence[Hashable] | None = None,
        *,
        prefix: str | None = None,
        config: DispatchConfig | None = None,
    ) -> None:
        """Initialize the processor.

        Args:
            commands: Command descriptors by dispatch key
            eval_order: Order in which commands are tried, defaults to the
                mapping order
            display_order: Order of the help text, defaults to the
                evaluation order
            prefix: Prefix every command starts with, if any
            config: Dispatch settings, defaults to ``DispatchConfig()``

        Raises:
            CommandConfigurationError: If an order is not a permutation of the
                command keys or a command is registered under a foreign key
        """
        self._config = config or DispatchConfig()
        for key, command in commands.items():
            if command.name != key:
                raise CommandConfigurationError(
                    f"Command {command_label(command.name)} is registered under "
                    f"key {command_label(key)}"
                )

        self._commands = dict(commands)
        self._eval_order = _validate_order(EVALUATION_ORDER, self._commands, eval_order)
        self._display_order = (
            _validate_order(DISPLAY_ORDER, self._commands, display_order)
            if display_order
            else self._eval_order
        )
        self.prefix = prefix if prefix is not None else self._config.command_prefix

    @classmethod
    def from_commands(
        cls,
        commands: Iterable[ICommand],
        display_order: Sequence[Hashable] | None = None,
        **kwargs: Any,
    ) -> CommandProcessor:
        """Create a processor evaluating commands in the order given.

        Raises:
            CommandConfigurationError: If two commands share a name
        """
        by_name: dict[Hashable, ICommand] = {}
        for command in commands:
            if command.name in by_name:
                raise CommandConfigurationError(
                    f"Duplicate command name {command_label(command.name)}"
                )
            by_name[command.name] = command
        return cls(by_name, None, display_order, **kwargs)

    @property
    def commands(self) -> Mapping[Hashable, ICommand]:
        return dict(self._commands)

    @property
    def eval_order(self) -> tuple[Hashable, ...]:
        return self._eval_order

    @property
    def display_order(self) -> tuple[Hashable, ...]:
        return self._display_order

    @property
    def num_commands(self) -> int:
        return len(self._eval_order)

    def could_be_command(self, text: str) -> bool:
        """Cheap check whether the text can be a command at all."""
        return self.prefix is None or text.strip().startswith(f"{self.prefix} ")

    def preprocess_all(
        self, text: str, context: Any = None
    ) -> PreprocessedCommandsResult:
        """Preprocess the input with every command.

        Returns:
            The matching keys in evaluation order, their preprocessed commands
            and the errors other commands reported

        Raises:
            CommandDispatchError: If nothing matched and at least one command
                reported an error other than no-match
        """
        with DispatchLogContext(logger, "preprocess", text) as dispatch_log:
            tracker = ResultTracker()
            preprocessed: dict[Hashable, IPreprocessedCommand] = {}
            for key in self._eval_order:
                outcome = self._commands[key].preprocess(text, context)
                if not isinstance(outcome, CommandFailure):
                    preprocessed[key] = outcome
                dispatch_log.outcome(key, outcome)
                tracker = tracker.add(key, outcome)

            if tracker.failed:
                dispatch_log.log.info(
                    "Preprocessing failed", errors=len(tracker.errors)
                )
                raise self._dispatch_error(tracker)

            dispatch_log.log.debug(
                "Preprocessed input",
                matched=[command_label(key) for key in tracker.keys],
            )
            return PreprocessedCommandsResult(
                keys=tracker.keys,
                preprocessed=preprocessed,
                preprocess_errors=tracker.errors,
            )

    def preprocess_one(self, text: str, context: Any = None) -> IPreprocessedCommand:
        """Preprocess the input and require exactly one match.

        Raises:
            CommandDispatchError: If no command or more than one command matched
        """
        result = self.preprocess_all(text, context)
        if not result.keys:
            raise CommandDispatchError(
                f"No command matched {text}", phase=FailurePhase.PARSE
            )
        if len(result.keys) > 1:
            candidates = ", ".join(command_label(key) for key in result.keys)
            raise CommandDispatchError(
                f"Ambiguous command {text} could be any of: [{candidates}]",
                details={"candidates": [command_label(key) for key in result.keys]},
                phase=FailurePhase.PARSE,
            )
        return result.preprocessed[result.keys[0]]

    def execute_all(self, text: str, context: Any = None) -> ExecutedCommandsResult:
        """Execute every matching command.

        Failures of some commands are listed in ``execution_errors`` as long
        as at least one command succeeds.

        Raises:
            CommandDispatchError: If preprocessing failed, or every matching
                command failed to execute
        """
        preprocessed = self.preprocess_all(text, context)
        with DispatchLogContext(logger, "execute", text, mode="all") as dispatch_log:
            tracker = ResultTracker()
            executed: dict[Hashable, CommandOutcome] = {}
            for key in preprocessed.keys:
                outcome = preprocessed.preprocessed[key].execute()
                if not isinstance(outcome, CommandFailure):
                    executed[key] = outcome
                dispatch_log.outcome(key, outcome)
                tracker = tracker.add(key, _labelled(key, outcome))

            return self._report_execution(dispatch_log, tracker, executed)

    def execute_first(
        self, text: str, context: Any = None
    ) -> ExecutedCommandsResult:
        """Execute the first matching command in evaluation order.

        Only that command is attempted. If its execution fails the call
        fails, later matches are not tried.

        Raises:
            CommandDispatchError: If preprocessing failed, nothing matched, or
                the first matching command failed to execute
        """
        preprocessed = self.preprocess_all(text, context)
        if not preprocessed.keys:
            raise CommandDispatchError(
                f"No command matched {text}", phase=FailurePhase.PARSE
            )

        key = preprocessed.keys[0]
        with DispatchLogContext(logger, "execute", text, mode="first") as dispatch_log:
            outcome = preprocessed.preprocessed[key].execute()
            dispatch_log.outcome(key, outcome)
            executed = {} if isinstance(outcome, CommandFailure) else {key: outcome}
            tracker = ResultTracker().add(key, _labelled(key, outcome))
            return self._report_execution(dispatch_log, tracker, executed)

    def execute_one(self, text: str, context: Any = None) -> ExecutedCommandsResult:
        """Execute the single matching command.

        Raises:
            CommandDispatchError: If no command or more than one command
                matched, or the command failed. An execution failure keeps the
                command's own message and phase.
        """
        command = self.preprocess_one(text, context)
        with DispatchLogContext(logger, "execute", text, mode="one") as dispatch_log:
            outcome = command.execute()
            dispatch_log.outcome(command.name, outcome)
        if isinstance(outcome, CommandFailure):
            raise CommandDispatchError(
                outcome.message, errors=[outcome.message], phase=outcome.phase
            )
        return ExecutedCommandsResult(
            keys=(command.name,), executed={command.name: outcome}
        )

    def format_all(
        self,
        executed: ExecutedCommandsResult,
        formatters: Mapping[Hashable, Formatter | None],
    ) -> FormattedCommandsResult:
        """Render every executed result with the formatter for its key.

        Raises:
            CommandFormatError: If nothing could be rendered but errors were
                reported
        """
        tracker = ResultTracker()
        formatted: dict[Hashable, str] = {}
        for key in executed.keys:
            formatter = formatters.get(key)
            result = executed.executed.get(key)
            if result is None:
                outcome: Any = fail_command(
                    f"No result for {command_label(key)}", FailurePhase.FORMAT, key
                )
            elif formatter is None:
                outcome = fail_command(
                    f"Command {command_label(key)} has results but no formatter",
                    FailurePhase.FORMAT,
                    key,
                )
            else:
                try:
                    outcome = self._commands[key].format(result, formatter)
                    formatted[key] = outcome
                except ChatCommandError as e:
                    outcome = fail_command(e.message, FailurePhase.FORMAT, key)
            tracker = tracker.add(key, outcome)

        if tracker.failed:
            raise CommandFormatError(
                tracker.error_message(), details={"errors": list(tracker.errors)}
            )
        return FormattedCommandsResult(
            keys=tracker.keys, formatted=formatted, format_errors=tracker.errors
        )

    def format(
        self,
        key: Hashable,
        executed: ExecutedCommandsResult,
        formatters: Mapping[Hashable, Formatter | None],
    ) -> str:
        """Render the executed result of one key.

        Raises:
            CommandFormatError: If the key has no result or no formatter
        """
        outcome = executed.executed.get(key)
        if key not in executed.keys or outcome is None:
            raise CommandFormatError(f"No result for {command_label(key)}")

        formatter = formatters.get(key)
        if formatter is None:
            raise CommandFormatError(f"no formatter for {command_label(key)}")
        return self._commands[key].format(outcome, formatter)

    def get_help(self) -> list[str]:
        lines: list[str] = []
        for key in self._display_order:
            lines.extend(self._commands[key].help.lines())
        return lines

    def get_default_formatters(
        self,
        target: FormatTarget | str | None = None,
        keys: Sequence[Hashable] | None = None,
    ) -> dict[Hashable, Formatter]:
        """Collect each command's default formatter for an output target.

        Args:
            target: Output target, defaults to the configured default target
            keys: Commands to collect formatters for, defaults to all of them
                in display order

        Returns:
            Formatters by key. Commands without a formatter for the target
            are left out.
        """
        resolved = target if target is not None else self._config.default_target
        formatters: dict[Hashable, Formatter] = {}
        for key in keys if keys is not None else self._display_order:
            try:
                formatters[key] = self._commands[key].get_default_formatter(resolved)
            except CommandFormatError as e:
                logger.debug(
                    "No default formatter", command=command_label(key), error=e.message
                )
        return formatters

    def _report_execution(
        self,
        dispatch_log: DispatchLogContext,
        tracker: ResultTracker,
        executed: Mapping[Hashable, CommandOutcome],
    ) -> ExecutedCommandsResult:
        if tracker.failed:
            dispatch_log.log.info("Execution failed", errors=len(tracker.errors))
            raise self._dispatch_error(tracker)

        dispatch_log.log.debug(
            "Executed input",
            succeeded=[command_label(key) for key in tracker.keys],
            errors=len(tracker.errors),
        )
        return ExecutedCommandsResult(
            keys=tracker.keys, executed=executed, execution_errors=tracker.errors
        )

    @staticmethod
    def _dispatch_error(tracker: ResultTracker) -> CommandDispatchError:
        return CommandDispatchError(
            tracker.error_message(),
            errors=list(tracker.errors),
            phase=tracker.phase,
        )
