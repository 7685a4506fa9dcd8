"""
Common exception classes for chat command dispatch.

This module defines custom exception classes used throughout the package.
Every exception carries the pipeline phase it belongs to so callers can tell
a broken command definition apart from bad user input or a failed side effect.
"""

from __future__ import annotations

from chatcmd.core.domain.command_results import FailurePhase


class ChatCommandError(Exception):
    """Base exception class for all command dispatch errors."""

    phase: FailurePhase = FailurePhase.INTERNAL

    def __init__(
        self,
        message: str,
        details: dict | None = None,
        *,
        phase: FailurePhase | None = None,
        **kwargs,
    ):
        """Initialize the exception.

        Args:
            message: Human-readable error message
            details: Optional dictionary with additional error details
            phase: Optional override of the class-level failure phase
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}
        if phase is not None:
            self.phase = phase
        for key, value in (kwargs or {}).items():
            setattr(self, key, value)

    def to_dict(self) -> dict:
        error_dict = {
            "message": self.message,
            "type": self.__class__.__name__,
            "phase": self.phase.value,
            "details": self.details,
        }

        for attr_name in dir(self):
            if (
                not attr_name.startswith("_")
                and attr_name not in ["message", "details", "phase", "args"]
                and not callable(getattr(self, attr_name))
            ):
                error_dict[attr_name] = getattr(self, attr_name)

        return {"error": error_dict}


class TemplateError(ChatCommandError):
    """Raised when a command template cannot be compiled."""

    phase = FailurePhase.INTERNAL

    def __init__(
        self,
        message: str = "Invalid command template",
        template: str | None = None,
        details: dict | None = None,
        **kwargs,
    ):
        det = details.copy() if details else {}
        if template is not None:
            det.setdefault("template", template)
        super().__init__(message, det, **kwargs)


class CommandConfigurationError(ChatCommandError):
    """Raised when a command registry is inconsistent."""

    phase = FailurePhase.INTERNAL

    def __init__(
        self,
        message: str = "Invalid command configuration",
        details: dict | None = None,
        **kwargs,
    ):
        super().__init__(message, details, **kwargs)


class CommandParseError(ChatCommandError):
    """Raised when a matched input cannot be turned into a token record.

    The phase is ``internal`` for parser defects and ``validate`` for token
    coercion failures.
    """

    phase = FailurePhase.INTERNAL

    def __init__(
        self,
        message: str = "Parsing failed",
        token: str | None = None,
        details: dict | None = None,
        **kwargs,
    ):
        super().__init__(message, details, **kwargs)
        self.token = token


class CommandValidationError(ChatCommandError):
    """Raised when converted parameters are rejected."""

    phase = FailurePhase.VALIDATE

    def __init__(
        self, message: str = "Validation failed", details: dict | None = None, **kwargs
    ):
        super().__init__(message, details, **kwargs)


class CommandExecutionError(ChatCommandError):
    """Raised by executors to report a business-logic failure."""

    phase = FailurePhase.EXECUTE

    def __init__(
        self, message: str = "Execution failed", details: dict | None = None, **kwargs
    ):
        super().__init__(message, details, **kwargs)


class CommandFormatError(ChatCommandError):
    """Raised when a result cannot be rendered."""

    phase = FailurePhase.FORMAT

    def __init__(
        self, message: str = "Formatting failed", details: dict | None = None, **kwargs
    ):
        super().__init__(message, details, **kwargs)


class CommandDispatchError(ChatCommandError):
    """Raised when a dispatch call fails as a whole.

    ``errors`` holds the individual messages collected from the descriptors.
    """

    def __init__(
        self,
        message: str = "Command dispatch failed",
        errors: list[str] | None = None,
        details: dict | None = None,
        **kwargs,
    ):
        super().__init__(message, details, **kwargs)
        self.errors = list(errors or [])


def error_message(error: BaseException) -> str:
    """Return the user-facing message of any exception."""
    if isinstance(error, ChatCommandError):
        return error.message
    return str(error) or error.__class__.__name__
