"""
Command recognition and dispatch for chat-style text commands.

Templates such as ``!add {{boss}} at {{time}}`` are compiled into parsers,
bound to converters and executors in ``GenericCommand`` descriptors, and
dispatched across a registry by ``CommandProcessor``.
"""

from chatcmd.constants import FormatTarget, LiteralMode
from chatcmd.core.common.exceptions import (
    ChatCommandError,
    CommandConfigurationError,
    CommandDispatchError,
    CommandExecutionError,
    CommandFormatError,
    CommandParseError,
    CommandValidationError,
    TemplateError,
)
from chatcmd.core.config.app_config import DispatchConfig, load_config
from chatcmd.core.domain.command_results import (
    CommandFailure,
    CommandSuccess,
    FailurePhase,
)
from chatcmd.core.domain.commands import (
    CommandHelp,
    GenericCommand,
    PreprocessedCommand,
)
from chatcmd.core.domain.dispatch_results import (
    ExecutedCommandsResult,
    FormattedCommandsResult,
    PreprocessedCommandsResult,
)
from chatcmd.core.domain.flex_time import FlexTime
from chatcmd.core.domain.tokens import TokenKind, TokenSpec
from chatcmd.core.services.command_parser import CommandParser
from chatcmd.core.services.command_processor import CommandProcessor
from chatcmd.core.services.result_tracker import ResultTracker
from chatcmd.core.services.template_compiler import ParserBuilder

__version__ = "0.1.0"

__all__ = [
    "ChatCommandError",
    "CommandConfigurationError",
    "CommandDispatchError",
    "CommandExecutionError",
    "CommandFailure",
    "CommandFormatError",
    "CommandHelp",
    "CommandParseError",
    "CommandParser",
    "CommandProcessor",
    "CommandSuccess",
    "CommandValidationError",
    "DispatchConfig",
    "ExecutedCommandsResult",
    "FailurePhase",
    "FlexTime",
    "FormatTarget",
    "FormattedCommandsResult",
    "GenericCommand",
    "LiteralMode",
    "ParserBuilder",
    "PreprocessedCommand",
    "PreprocessedCommandsResult",
    "ResultTracker",
    "TemplateError",
    "TokenKind",
    "TokenSpec",
    "load_config",
]
