from __future__ import annotations

from pydantic import field_validator

from chatcmd.core.domain.base import ValueObject


class CommandHelp(ValueObject):
    """Display-only help text of a command."""

    description: str
    examples: tuple[str, ...] = ()
    footer: str | None = None

    @field_validator("description")
    @classmethod
    def _validate_description(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("command description must not be empty")
        return value

    def lines(self) -> list[str]:
        """Return the help lines: description, examples, then the footer."""
        lines = [self.description, *self.examples]
        if self.footer:
            lines.append(self.footer)
        return lines
