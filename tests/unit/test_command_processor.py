"""Unit tests for CommandProcessor."""

from enum import Enum
from typing import Any
from unittest.mock import Mock

import pytest
from chatcmd.constants import FormatTarget
from chatcmd.core.common.exceptions import (
    CommandConfigurationError,
    CommandDispatchError,
    CommandFormatError,
)
from chatcmd.core.config.app_config import DispatchConfig
from chatcmd.core.domain.command_results import CommandSuccess, FailurePhase
from chatcmd.core.domain.commands.generic_command import GenericCommand
from chatcmd.core.domain.dispatch_results import ExecutedCommandsResult
from chatcmd.core.services.command_processor import CommandProcessor
from chatcmd.core.services.template_compiler import ParserBuilder

from tests.conftest import TEST_ORDER, string_formatter

SPECIFIC_HELP = [
    "The specific test command",
    "  This is a test",
    "  This is a sentence",
]
GENERAL_HELP = [
    "The general test command",
    "  Any phrase containing test",
    "  Test must be contained",
]
EXEC_FAILS_HELP = ["Test command with exec failure"]
BROKEN_HELP = ["The broken test command"]


def _success(outcome: Any) -> tuple[Any, Any, str]:
    assert isinstance(outcome, CommandSuccess)
    return outcome.command, outcome.value, outcome.format


class TestConstructor:
    """Test suite for CommandProcessor construction."""

    def test_defaults_to_mapping_order(self, sample_commands) -> None:
        processor = CommandProcessor(sample_commands)

        assert processor.eval_order == tuple(sample_commands)
        assert processor.display_order == processor.eval_order
        assert processor.num_commands == 4

    def test_uses_evaluation_order(self, sample_commands) -> None:
        processor = CommandProcessor(sample_commands, TEST_ORDER)

        assert processor.eval_order == tuple(TEST_ORDER)
        assert processor.display_order == tuple(TEST_ORDER)

    def test_display_order_is_independent(self, sample_commands) -> None:
        reversed_order = list(reversed(TEST_ORDER))

        processor = CommandProcessor(sample_commands, TEST_ORDER, reversed_order)

        assert processor.eval_order == tuple(TEST_ORDER)
        assert processor.display_order == tuple(reversed_order)

    def test_empty_order_falls_back_to_mapping_order(self, sample_commands) -> None:
        processor = CommandProcessor(sample_commands, [], [])

        assert processor.eval_order == tuple(sample_commands)

    @pytest.mark.parametrize(
        ("eval_order", "display_order", "error"),
        [
            (
                ["specific", "general"],
                None,
                "Command broken is present in commands but not in evaluation order",
            ),
            (
                None,
                ["specific", "general"],
                "Command broken is present in commands but not in display order",
            ),
            (
                [*TEST_ORDER, "missing"],
                None,
                "Key missing is present in evaluation order but not in commands.",
            ),
            (
                None,
                ["missing", *TEST_ORDER],
                "Key missing is present in display order but not in commands.",
            ),
        ],
    )
    def test_order_must_list_every_command(
        self, sample_commands, eval_order, display_order, error: str
    ) -> None:
        with pytest.raises(CommandConfigurationError) as exc_info:
            CommandProcessor(sample_commands, eval_order, display_order)

        assert exc_info.value.message == error

    def test_missing_key_names_the_command(self, sample_commands) -> None:
        commands = {
            command.name: command
            for command in (sample_commands["specific"], sample_commands["general"])
        }

        with pytest.raises(CommandConfigurationError, match="Command general"):
            CommandProcessor(commands, ["specific"])

    def test_order_with_repeated_key_fails(self, sample_commands) -> None:
        with pytest.raises(CommandConfigurationError, match="Duplicate key"):
            CommandProcessor(sample_commands, [*TEST_ORDER, "general"])

    def test_command_must_be_registered_under_its_name(self, sample_commands) -> None:
        with pytest.raises(CommandConfigurationError, match="registered under key"):
            CommandProcessor({"other": sample_commands["general"]})

    def test_from_commands_rejects_duplicate_names(self, sample_commands) -> None:
        general = sample_commands["general"]

        with pytest.raises(CommandConfigurationError, match="Duplicate command name general"):
            CommandProcessor.from_commands([general, general])

    def test_from_commands_keeps_sequence_order(self, sample_commands) -> None:
        ordered = [sample_commands[key] for key in TEST_ORDER]

        processor = CommandProcessor.from_commands(ordered)

        assert processor.eval_order == tuple(TEST_ORDER)

    def test_accepts_enum_keys(self, builder: ParserBuilder) -> None:
        class Keys(str, Enum):
            ECHO = "echo"

        command = GenericCommand(
            Keys.ECHO,
            description="!echo <word>",
            parser=builder.build("!echo {{word}}"),
            execute=lambda params, context: params["word"],
            format="{{result}}",
        )

        processor = CommandProcessor({Keys.ECHO: command})

        assert processor.execute_one("!echo hi").keys == (Keys.ECHO,)


class TestHelp:
    """Test suite for CommandProcessor.get_help."""

    def test_concatenates_help_in_evaluation_order(self, processor) -> None:
        assert processor.get_help() == [
            *SPECIFIC_HELP,
            *GENERAL_HELP,
            *EXEC_FAILS_HELP,
            *BROKEN_HELP,
        ]

    def test_concatenates_help_in_display_order(self, sample_commands) -> None:
        processor = CommandProcessor(
            sample_commands, TEST_ORDER, list(reversed(TEST_ORDER))
        )

        assert processor.get_help() == [
            *BROKEN_HELP,
            *EXEC_FAILS_HELP,
            *GENERAL_HELP,
            *SPECIFIC_HELP,
        ]


class TestPreprocess:
    """Test suite for preprocess_all and preprocess_one."""

    def test_preprocesses_only_matching_commands(self, processor) -> None:
        result = processor.preprocess_all("A test, this is.", "ctx")

        assert result.keys == ("general",)
        assert set(result.preprocessed) == {"general"}
        assert result.preprocess_errors == ()

    def test_preprocesses_all_matching_commands(self, processor) -> None:
        result = processor.preprocess_all("This is a test", "ctx")

        assert result.keys == ("specific", "general")
        assert result.preprocessed["specific"].params == {"word": "test"}

    def test_no_match_is_an_empty_result(self, processor) -> None:
        result = processor.preprocess_all("An example", "ctx")

        assert result.keys == ()
        assert not result.matched
        assert result.preprocess_errors == ()

    def test_fails_when_only_errors_are_reported(self, processor) -> None:
        with pytest.raises(CommandDispatchError, match="Mismatched capture count") as e:
            processor.preprocess_all("bad data", "ctx")

        assert e.value.phase is FailurePhase.INTERNAL
        assert len(e.value.errors) == 1

    def test_errors_are_kept_when_something_matched(self, sample_commands) -> None:
        general = sample_commands["general"]
        strict = GenericCommand(
            "strict",
            description="Rejects everything",
            parser=general.parser,
            converter=Mock(side_effect=ValueError("not today")),
            execute=lambda params, context: None,
            format="",
        )
        processor = CommandProcessor.from_commands([general, strict])

        result = processor.preprocess_all("test", None)

        assert result.keys == ("general",)
        assert result.preprocess_errors == ("not today",)

    def test_time_parser_failure_is_reported_as_validate_error(self) -> None:
        def unsupported(text: str) -> Any:
            raise TypeError(f"cannot handle {text}")

        builder = ParserBuilder(
            {"t": {"value": r"\d+", "kind": "time"}}, time_parser=unsupported
        )
        at = GenericCommand(
            "at",
            description="at <time>",
            parser=builder.build("at {{t}}"),
            execute=lambda params, context: params["t"],
            format="{{result}}",
        )

        with pytest.raises(CommandDispatchError, match="cannot handle 12") as e:
            CommandProcessor({"at": at}).preprocess_all("at 12")

        assert e.value.phase is FailurePhase.VALIDATE

    def test_preprocess_one_returns_single_match(self, processor) -> None:
        command = processor.preprocess_one("A test, this is.", "ctx")

        assert command.name == "general"
        assert command.execution_count == 0

    def test_preprocess_one_rejects_ambiguous_input(self, processor) -> None:
        with pytest.raises(CommandDispatchError) as e:
            processor.preprocess_one("This is a test", "ctx")

        assert e.value.message == (
            "Ambiguous command This is a test could be any of: [specific, general]"
        )

    def test_preprocess_one_fails_without_match(self, processor) -> None:
        with pytest.raises(CommandDispatchError, match="No command matched An example"):
            processor.preprocess_one("An example", "ctx")

    def test_preprocess_one_propagates_validation_errors(self, processor) -> None:
        with pytest.raises(CommandDispatchError, match="disallowed is not allowed") as e:
            processor.preprocess_one("This is a disallowed", "ctx")

        assert e.value.phase is FailurePhase.VALIDATE

    def test_preprocess_one_propagates_parse_defects(self, processor) -> None:
        with pytest.raises(CommandDispatchError, match="(?i)mismatched capture count"):
            processor.preprocess_one("bad data", "ctx")


class TestExecuteAll:
    """Test suite for CommandProcessor.execute_all."""

    def test_executes_only_matching_commands(self, processor) -> None:
        result = processor.execute_all("A test, this is.", "ctx")

        assert result.keys == ("general",)
        assert _success(result.executed["general"]) == (
            "general",
            "A test, this is.",
            "The test phrase is {{result}}",
        )
        assert result.execution_errors == ()

    def test_executes_all_matching_commands(self, processor) -> None:
        result = processor.execute_all("This is a test", "ctx")

        assert result.keys == ("specific", "general")
        assert _success(result.executed["specific"]) == (
            "specific",
            "test",
            "The {{result}} is the word",
        )
        assert _success(result.executed["general"])[1] == "This is a test"

    def test_no_match_is_an_empty_result(self, processor) -> None:
        result = processor.execute_all("An example", "ctx")

        assert result.keys == ()
        assert dict(result.executed) == {}
        assert result.execution_errors == ()

    def test_partial_failure_still_succeeds(self, processor) -> None:
        result = processor.execute_all("fail with test", "ctx")

        assert result.keys == ("general",)
        assert set(result.executed) == {"general"}
        assert result.execution_errors == ("exec_fails: test",)

    def test_fails_when_every_execution_fails(self, processor) -> None:
        with pytest.raises(CommandDispatchError, match="exec_fails: error") as e:
            processor.execute_all("fail with error", "ctx")

        assert e.value.phase is FailurePhase.EXECUTE

    def test_fails_when_preprocessing_fails(self, processor) -> None:
        with pytest.raises(CommandDispatchError, match="Mismatched capture count"):
            processor.execute_all("bad data", "ctx")

    def test_ambiguity_is_fine_for_all_mode(self, builder: ParserBuilder) -> None:
        first = Mock(return_value=1)
        second = Mock(return_value=2)
        processor = CommandProcessor.from_commands(
            [
                GenericCommand(
                    name,
                    description=name,
                    parser=builder.build("{{test_phrase}}"),
                    execute=execute,
                    format="{{result}}",
                )
                for name, execute in (("first", first), ("second", second))
            ]
        )

        result = processor.execute_all("This is a test")

        assert result.keys == ("first", "second")
        first.assert_called_once()
        second.assert_called_once()


class TestExecuteFirst:
    """Test suite for CommandProcessor.execute_first."""

    def test_executes_only_the_first_matching_command(self, processor) -> None:
        result = processor.execute_first("This is a test", "ctx")

        assert result.keys == ("specific",)
        assert set(result.executed) == {"specific"}

    def test_single_match(self, processor) -> None:
        result = processor.execute_first("A test, this is.", "ctx")

        assert result.keys == ("general",)

    def test_fails_without_match(self, processor) -> None:
        with pytest.raises(CommandDispatchError, match="No command matched"):
            processor.execute_first("An example", "ctx")

    def test_fails_when_preprocessing_fails(self, processor) -> None:
        with pytest.raises(CommandDispatchError, match="Mismatched capture count"):
            processor.execute_first("bad data", "ctx")

    def test_reports_failure_of_first_attempt(self, sample_commands) -> None:
        processor = CommandProcessor(
            sample_commands, ["exec_fails", "specific", "general", "broken"]
        )

        with pytest.raises(CommandDispatchError) as e:
            processor.execute_first("fail with test", "ctx")

        assert e.value.errors == ["exec_fails: test"]

    def test_later_matches_are_not_executed(self, builder: ParserBuilder) -> None:
        first = Mock(side_effect=RuntimeError("boom"))
        second = Mock(return_value="ok")
        processor = CommandProcessor.from_commands(
            [
                GenericCommand(
                    name,
                    description=name,
                    parser=builder.build("{{test_phrase}}"),
                    execute=execute,
                    format="{{result}}",
                )
                for name, execute in (("first", first), ("second", second))
            ]
        )

        with pytest.raises(CommandDispatchError, match="first: boom"):
            processor.execute_first("test")

        first.assert_called_once()
        second.assert_not_called()


class TestExecuteOne:
    """Test suite for CommandProcessor.execute_one."""

    def test_executes_exactly_one_matching_command(self, processor) -> None:
        result = processor.execute_one("A test, this is.", "ctx")

        assert result.keys == ("general",)
        assert _success(result.executed["general"])[1] == "A test, this is."
        assert result.execution_errors == ()

    def test_ambiguous_input_executes_nothing(self, builder: ParserBuilder) -> None:
        first = Mock(return_value=1)
        second = Mock(return_value=2)
        processor = CommandProcessor.from_commands(
            [
                GenericCommand(
                    name,
                    description=name,
                    parser=builder.build("{{test_phrase}}"),
                    execute=execute,
                    format="{{result}}",
                )
                for name, execute in (("first", first), ("second", second))
            ]
        )

        with pytest.raises(CommandDispatchError, match="(?i)ambiguous command"):
            processor.execute_one("This is a test")

        first.assert_not_called()
        second.assert_not_called()

    def test_fails_without_match(self, processor) -> None:
        with pytest.raises(CommandDispatchError, match="(?i)no command matched"):
            processor.execute_one("An example", "ctx")

    def test_propagates_validation_errors(self, processor) -> None:
        with pytest.raises(CommandDispatchError, match="disallowed is not allowed"):
            processor.execute_one("This is a disallowed", "ctx")

    def test_propagates_parse_defects(self, processor) -> None:
        with pytest.raises(CommandDispatchError, match="(?i)mismatched capture count"):
            processor.execute_one("bad data", "ctx")

    def test_propagates_execution_error_unwrapped(self, processor) -> None:
        with pytest.raises(CommandDispatchError) as e:
            processor.execute_one("fail with ERROR", "ctx")

        assert e.value.message == "ERROR"
        assert e.value.phase is FailurePhase.EXECUTE


class TestFormatting:
    """Test suite for format_all, format and get_default_formatters."""

    def test_formats_all_results(self, processor) -> None:
        executed = processor.execute_all("This is a test", "ctx")
        formatters = processor.get_default_formatters(FormatTarget.TEXT)

        result = processor.format_all(executed, formatters)

        assert result.keys == ("specific", "general")
        assert dict(result.formatted) == {
            "specific": "The test is the word",
            "general": "The test phrase is This is a test",
        }
        assert result.format_errors == ()
        assert result.lines() == [
            "The test is the word",
            "The test phrase is This is a test",
        ]

    def test_reports_missing_formatters(self, processor) -> None:
        executed = processor.execute_all("This is a test", "ctx")
        formatters = {**processor.get_default_formatters("text"), "general": None}

        result = processor.format_all(executed, formatters)

        assert result.keys == ("specific",)
        assert dict(result.formatted) == {"specific": "The test is the word"}
        assert result.format_errors == (
            "Command general has results but no formatter",
        )

    def test_reports_keys_without_results(self, processor) -> None:
        executed = processor.execute_all("This is a test", "ctx")
        partial = ExecutedCommandsResult(
            keys=executed.keys,
            executed={"specific": executed.executed["specific"]},
        )

        result = processor.format_all(partial, processor.get_default_formatters("text"))

        assert result.keys == ("specific",)
        assert result.format_errors == ("No result for general",)

    def test_fails_when_no_key_has_a_result(self, processor) -> None:
        orphan = ExecutedCommandsResult(keys=("general",), executed={})

        with pytest.raises(CommandFormatError, match="No result for general"):
            processor.format_all(orphan, {"general": string_formatter})

    def test_reports_formatter_errors(self, processor) -> None:
        def broken_formatter(template: str, value: Any) -> str:
            raise ValueError("formatter oops")

        executed = processor.execute_all("This is a test", "ctx")
        formatters = {
            **processor.get_default_formatters("text"),
            "general": broken_formatter,
        }

        result = processor.format_all(executed, formatters)

        assert result.keys == ("specific",)
        assert len(result.format_errors) == 1
        assert "formatter oops" in result.format_errors[0]

    def test_fails_when_nothing_can_be_formatted(self, processor) -> None:
        executed = processor.execute_all("A test, this is.", "ctx")

        with pytest.raises(CommandFormatError, match="(?i)no formatter"):
            processor.format_all(executed, {})

    def test_format_single_result(self, processor) -> None:
        executed = processor.execute_all("This is a test", "ctx")
        formatters = processor.get_default_formatters("text")

        text = processor.format("general", executed, formatters)

        assert text == "The test phrase is This is a test"

    def test_format_requires_a_result(self, processor) -> None:
        executed = processor.execute_all("This is a test", "ctx")

        with pytest.raises(CommandFormatError, match="(?i)no result for broken"):
            processor.format("broken", executed, {"broken": string_formatter})

    def test_format_requires_a_formatter(self, processor) -> None:
        executed = processor.execute_all("This is a test", "ctx")

        with pytest.raises(CommandFormatError, match="(?i)no formatter for general"):
            processor.format("general", executed, {"specific": string_formatter})

    def test_default_formatters_for_all_commands(self, processor) -> None:
        formatters = processor.get_default_formatters("text")

        assert set(formatters) == set(TEST_ORDER)

    def test_default_formatters_for_selected_commands(self, processor) -> None:
        formatters = processor.get_default_formatters("text", ["specific", "general"])

        assert set(formatters) == {"specific", "general"}

    def test_default_formatters_skip_commands_without_factory(
        self, builder: ParserBuilder
    ) -> None:
        command = GenericCommand(
            "plain",
            description="plain",
            parser=builder.build("{{word}}"),
            execute=lambda params, context: params,
            format="{{word}}",
        )

        assert CommandProcessor({"plain": command}).get_default_formatters() == {}

    def test_default_target_comes_from_config(self, sample_commands) -> None:
        factory = Mock(return_value=string_formatter)
        command = GenericCommand(
            "echo",
            description="echo",
            parser=sample_commands["general"].parser,
            execute=lambda params, context: params,
            format="{{result}}",
            get_default_formatter=factory,
        )
        config = DispatchConfig(default_target=FormatTarget.MARKDOWN)

        CommandProcessor({"echo": command}, config=config).get_default_formatters()

        factory.assert_called_once_with(FormatTarget.MARKDOWN)


class TestCouldBeCommand:
    """Test suite for the prefix check."""

    def test_without_prefix_everything_could_be_a_command(self, processor) -> None:
        assert processor.could_be_command("anything at all")

    @pytest.mark.parametrize(
        ("text", "expected"),
        [("!raid add lugia", True), ("  !raid list", True), ("!raids", False)],
    )
    def test_prefix(self, sample_commands, text: str, expected: bool) -> None:
        processor = CommandProcessor(sample_commands, prefix="!raid")

        assert processor.could_be_command(text) is expected

    def test_prefix_from_config(self, sample_commands) -> None:
        config = DispatchConfig(command_prefix="!raid")

        processor = CommandProcessor(sample_commands, config=config)

        assert processor.prefix == "!raid"
        assert not processor.could_be_command("hello")
