"""Command descriptors and the commands they preprocess into."""

from chatcmd.core.domain.commands.command_help import CommandHelp
from chatcmd.core.domain.commands.generic_command import GenericCommand
from chatcmd.core.domain.commands.preprocessed_command import PreprocessedCommand

__all__ = ["CommandHelp", "GenericCommand", "PreprocessedCommand"]
