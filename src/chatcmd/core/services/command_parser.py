"""
Command parser.

Applies a compiled command pattern to an input string and turns the captured
groups into a token record coerced by each token's declared kind.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Mapping, Sequence
from typing import Any

from chatcmd.core.common.exceptions import CommandParseError, error_message
from chatcmd.core.domain.command_results import FailurePhase
from chatcmd.core.domain.flex_time import parse_flex_time
from chatcmd.core.domain.tokens import TokenKind

logger = logging.getLogger(__name__)

TimeParser = Callable[[str], Any]
TokenRecord = dict[str, Any]

_INTEGER_PATTERN = re.compile(r"^[+-]?\d+$")
_DECIMAL_PATTERN = re.compile(r"^[+-]?(?:\d+\.\d*|\.\d+)$")


def parse_number(text: str) -> int | float:
    """Strictly parse integer or decimal text.

    Raises:
        ValueError: If the text is not a plain number
    """
    if _INTEGER_PATTERN.match(text):
        return int(text)
    if _DECIMAL_PATTERN.match(text):
        return float(text)
    raise ValueError(f"{text!r} is not a number")


class CommandParser:
    """Matches input against one compiled command pattern.

    Attributes:
        regexp: The anchored pattern
        captures: Token names in capture-group order
        kinds: Kind of each token, defaults to ``STRING``
    """

    def __init__(
        self,
        regexp: str | re.Pattern[str],
        captures: Sequence[str],
        kinds: Mapping[str, TokenKind | str] | None = None,
        time_parser: TimeParser | None = None,
    ) -> None:
        self.regexp = re.compile(regexp) if isinstance(regexp, str) else regexp
        self.captures = tuple(captures)
        self.kinds = {name: TokenKind(kind) for name, kind in (kinds or {}).items()}
        self._time_parser = time_parser or parse_flex_time

    def parse(self, text: str) -> TokenRecord | None:
        """Parse an input string.

        Args:
            text: Raw command text

        Returns:
            The token record, or ``None`` if the pattern does not match.
            Optional tokens that are absent map to ``None``.

        Raises:
            CommandParseError: With phase ``internal`` if the pattern's groups
                do not line up with the token names, or phase ``validate``
                if a captured value cannot be coerced to its kind
        """
        match = self.regexp.match(text)
        if match is None:
            return None

        groups = match.groups()
        if len(groups) != len(self.captures):
            raise CommandParseError(
                f"Mismatched capture count: got {len(groups)}, expected {len(self.captures)}",
                details={"pattern": self.regexp.pattern},
                phase=FailurePhase.INTERNAL,
            )

        record: TokenRecord = {}
        for name, raw in zip(self.captures, groups):
            record[name] = None if raw is None else self._coerce(name, raw.strip())
        return record

    def _coerce(self, name: str, value: str) -> Any:
        kind = self.kinds.get(name, TokenKind.STRING)
        if kind is TokenKind.STRING:
            return value

        try:
            if kind is TokenKind.NUMBER:
                return parse_number(value)
            return self._time_parser(value)
        except Exception as e:
            logger.debug("Token %s rejected value %r: %s", name, value, e)
            raise CommandParseError(
                f"Invalid {kind.value} {value!r} for {name}: {error_message(e)}",
                token=name,
                phase=FailurePhase.VALIDATE,
            ) from e

    def __repr__(self) -> str:
        return f"<CommandParser pattern={self.regexp.pattern!r} captures={list(self.captures)!r}>"
