from enum import Enum

DEFAULT_COMMAND_PREFIX: str | None = None

# Placeholder syntax used by command templates: {{name}} or {{name?}}
PLACEHOLDER_OPEN: str = "{{"
PLACEHOLDER_CLOSE: str = "}}"
OPTIONAL_MARKER: str = "?"


class FormatTarget(str, Enum):
    """Output targets a command result can be rendered for."""

    TEXT = "text"
    MARKDOWN = "markdown"
    EMBED = "embed"


DEFAULT_FORMAT_TARGET: FormatTarget = FormatTarget.TEXT


class LiteralMode(str, Enum):
    """How literal (non-placeholder) template text is compiled."""

    ESCAPE = "escape"
    REGEX = "regex"


class ConfigKey(str, Enum):
    """Environment variables read by the configuration loader."""

    DEFAULT_TARGET = "CHATCMD_DEFAULT_TARGET"
    LITERAL_MODE = "CHATCMD_LITERAL_MODE"
    COMMAND_PREFIX = "CHATCMD_COMMAND_PREFIX"
    LOG_LEVEL = "CHATCMD_LOG_LEVEL"
    LOG_FILE = "CHATCMD_LOG_FILE"
