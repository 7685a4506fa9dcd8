"""
Generic command descriptor.

``GenericCommand`` binds a parser, a converter, an executor and a format
template into one command definition. Preprocessing an input runs the parser
and the converter and yields a ``PreprocessedCommand`` ready to execute.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Hashable, Mapping, Sequence
from typing import Any

from pydantic import BaseModel

from chatcmd.constants import FormatTarget
from chatcmd.core.common.exceptions import (
    ChatCommandError,
    CommandConfigurationError,
    CommandFormatError,
    error_message,
)
from chatcmd.core.domain.command_results import (
    CommandFailure,
    CommandOutcome,
    FailurePhase,
    command_label,
    fail_command,
)
from chatcmd.core.domain.commands.command_help import CommandHelp
from chatcmd.core.domain.commands.preprocessed_command import (
    CommandExecutor,
    FormatSpec,
    PreprocessedCommand,
)
from chatcmd.core.interfaces.command_interface import Formatter, ICommand
from chatcmd.core.services.command_parser import CommandParser
from chatcmd.core.services.converters import Converter, model_converter
from chatcmd.core.services.formatters import formatter_for_target

logger = logging.getLogger(__name__)

ConverterFactory = Callable[[Any], Converter]
FormatterFactory = Callable[[FormatTarget], Formatter]


def _identity(record: Mapping[str, Any]) -> dict[str, Any]:
    return dict(record)


class GenericCommand(ICommand):
    """Command built from plain callables.

    Example:
        >>> builder = ParserBuilder({"word": TokenSpec(value=r"\\w+")})
        >>> echo = GenericCommand(
        ...     "echo",
        ...     description="!echo <word>",
        ...     parser=builder.build("!echo {{word}}"),
        ...     execute=lambda params, context: params["word"],
        ...     format="{{result}}",
        ... )
    """

    def __init__(
        self,
        name: Hashable,
        *,
        description: str,
        parser: CommandParser,
        execute: CommandExecutor,
        format: FormatSpec,
        examples: Sequence[str] = (),
        footer: str | None = None,
        repeatable: bool = False,
        converter: Converter | type[BaseModel] | None = None,
        get_converter: ConverterFactory | None = None,
        get_default_formatter: (
            FormatterFactory | Mapping[FormatTarget, Formatter] | None
        ) = None,
    ) -> None:
        """Initialize the command.

        Args:
            name: Dispatch key of the command
            description: First help line
            parser: Parser for the command's template
            execute: Executor called with ``(params, context)``
            format: Render template, or a selector called with
                ``(params, context, value)`` that returns one
            examples: Example help lines
            footer: Optional last help line
            repeatable: Whether a preprocessed command may execute twice
            converter: Converter applied to every token record, or a pydantic
                model to validate the record with
            get_converter: Factory returning a converter for a context
            get_default_formatter: Formatter factory by target, or a table of
                formatters by target

        Raises:
            CommandConfigurationError: If both ``converter`` and
                ``get_converter`` are given
        """
        if converter is not None and get_converter is not None:
            raise CommandConfigurationError(
                f"Command {command_label(name)} accepts either converter or get_converter"
            )

        self._name = name
        self._help = CommandHelp(
            description=description, examples=tuple(examples), footer=footer
        )
        self._parser = parser
        self._execute = execute
        self._format = format
        self._repeatable = repeatable
        self._get_converter = get_converter or self._static_converter(converter)
        self._formatter_factory = self._to_formatter_factory(get_default_formatter)

    @staticmethod
    def _static_converter(
        converter: Converter | type[BaseModel] | None,
    ) -> ConverterFactory:
        if converter is None:
            resolved: Converter = _identity
        elif isinstance(converter, type) and issubclass(converter, BaseModel):
            resolved = model_converter(converter)
        else:
            resolved = converter
        return lambda context: resolved

    @staticmethod
    def _to_formatter_factory(
        formatters: FormatterFactory | Mapping[FormatTarget, Formatter] | None,
    ) -> FormatterFactory | None:
        if formatters is None or callable(formatters):
            return formatters
        table = dict(formatters)
        return lambda target: formatter_for_target(table, target)

    @property
    def name(self) -> Hashable:
        return self._name

    @property
    def repeatable(self) -> bool:
        return self._repeatable

    @property
    def help(self) -> CommandHelp:
        return self._help

    @property
    def parser(self) -> CommandParser:
        return self._parser

    def preprocess(
        self, text: str, context: Any = None
    ) -> PreprocessedCommand | CommandFailure:
        try:
            record = self._parser.parse(text)
        except ChatCommandError as e:
            return fail_command(e.message, e.phase, self._name)

        if record is None:
            return fail_command("No match", FailurePhase.PARSE, self._name)

        try:
            converter = self._get_converter(context)
        except Exception as e:
            logger.warning(
                "Command %s could not create a converter: %s",
                command_label(self._name),
                e,
            )
            return fail_command(error_message(e), FailurePhase.INTERNAL, self._name)

        try:
            params = converter(record)
        except Exception as e:
            logger.debug(
                "Command %s rejected %r: %s", command_label(self._name), text, e
            )
            return fail_command(error_message(e), FailurePhase.VALIDATE, self._name)

        return PreprocessedCommand(
            self._name,
            params,
            context,
            execute=self._execute,
            format=self._format,
            repeatable=self._repeatable,
        )

    def format(self, outcome: CommandOutcome, formatter: Formatter) -> str:
        """Render a successful outcome.

        Raises:
            CommandFormatError: If the outcome is a failure or the formatter
                fails
        """
        if isinstance(outcome, CommandFailure):
            raise CommandFormatError(
                outcome.message, details={"command": command_label(self._name)}
            )

        try:
            return formatter(outcome.format, outcome.value)
        except CommandFormatError:
            raise
        except Exception as e:
            raise CommandFormatError(
                f"{command_label(self._name)}: {error_message(e)}"
            ) from e

    def get_default_formatter(self, target: FormatTarget | str) -> Formatter:
        if self._formatter_factory is None:
            raise CommandFormatError(
                f"Command {command_label(self._name)} has no formatter factory"
            )
        try:
            resolved = FormatTarget(target)
        except ValueError as e:
            raise CommandFormatError(f"Unknown format target {target}") from e
        return self._formatter_factory(resolved)

    def __repr__(self) -> str:
        return f"<GenericCommand name={command_label(self._name)!r}>"
