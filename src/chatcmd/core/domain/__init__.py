# Domain package

from .command_results import (
    CommandFailure,
    CommandOutcome,
    CommandSuccess,
    FailurePhase,
    fail_command,
    succeed_command,
)

__all__ = [
    "CommandFailure",
    "CommandOutcome",
    "CommandSuccess",
    "FailurePhase",
    "fail_command",
    "succeed_command",
]
