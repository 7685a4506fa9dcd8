import re
from collections.abc import Callable
from typing import Any

import pytest
from chatcmd.constants import FormatTarget
from chatcmd.core.common.exceptions import CommandExecutionError
from chatcmd.core.domain.commands.generic_command import GenericCommand
from chatcmd.core.domain.tokens import TokenSpec
from chatcmd.core.services.command_parser import CommandParser
from chatcmd.core.services.command_processor import CommandProcessor
from chatcmd.core.services.converters import object_converter, string
from chatcmd.core.services.template_compiler import ParserBuilder

TEST_ORDER = ["specific", "general", "exec_fails", "broken"]

TEST_TOKENS = {
    "word": TokenSpec(value=r"\w+"),
    "words": TokenSpec(value=r"\w+(?:\s|\w|\d|`|'|-|\.)*"),
    "test_phrase": TokenSpec(value=r".*test.*"),
    "time": TokenSpec(
        value=r"(?:\d?\d):?(?:\d\d)\s*(?:a|A|am|AM|p|P|pm|PM)?", kind="time"
    ),
    "count": TokenSpec(value=r"[+-]?\d+(?:\.\d+)?", kind="number"),
}


def string_formatter(template: str, value: Any) -> str:
    return template.replace("{{result}}", value or "")


def default_test_formatter(target: FormatTarget) -> Callable[[str, Any], str]:
    return string_formatter


def _no_disallowed(value: Any) -> str:
    if value == "disallowed":
        raise ValueError("disallowed is not allowed")
    return string(value)


def _fail_with_word(params: dict[str, Any], context: Any) -> str:
    raise CommandExecutionError(params.get("word", "no word"))


@pytest.fixture
def builder() -> ParserBuilder:
    return ParserBuilder(TEST_TOKENS)


@pytest.fixture
def sample_commands(builder: ParserBuilder) -> dict[str, GenericCommand]:
    """Four commands overlapping on purpose.

    ``specific`` and ``general`` both match "This is a test", ``exec_fails``
    always fails to execute and ``broken`` has a parser whose groups do not
    line up with its tokens.
    """
    return {
        "specific": GenericCommand(
            "specific",
            description="The specific test command",
            examples=["  This is a test", "  This is a sentence"],
            repeatable=True,
            parser=builder.build("This is a {{word}}"),
            converter=object_converter({"word": _no_disallowed}),
            execute=lambda params, context: params["word"],
            format="The {{result}} is the word",
            get_default_formatter=default_test_formatter,
        ),
        "general": GenericCommand(
            "general",
            description="The general test command",
            examples=["  Any phrase containing test", "  Test must be contained"],
            repeatable=True,
            parser=builder.build("{{test_phrase}}"),
            converter=object_converter({"test_phrase": string}),
            execute=lambda params, context: params["test_phrase"],
            format="The test phrase is {{result}}",
            get_default_formatter=default_test_formatter,
        ),
        "broken": GenericCommand(
            "broken",
            description="The broken test command",
            parser=CommandParser(
                re.compile(r"^\s*bad\s+((\w)(\w)(\w)(\w))\s*$"), ["broken"]
            ),
            converter=object_converter({"broken": string}),
            execute=lambda params, context: params["broken"],
            format="{{result}} is broken",
            get_default_formatter=default_test_formatter,
        ),
        "exec_fails": GenericCommand(
            "exec_fails",
            description="Test command with exec failure",
            parser=builder.build("fail with {{word?}}"),
            converter=object_converter({"word": string}, optional=["word"]),
            execute=_fail_with_word,
            format="{{result}} should fail exec",
            get_default_formatter=default_test_formatter,
        ),
    }


@pytest.fixture
def processor(sample_commands: dict[str, GenericCommand]) -> CommandProcessor:
    return CommandProcessor(sample_commands, TEST_ORDER)
