"""
Token pattern compiler.

Turns a command template such as ``!add {{boss}} at {{time}}`` and a token
table into a ``CommandParser``. Compilation happens eagerly so a malformed
template fails when the command is defined, not when input arrives.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence

from chatcmd.constants import (
    OPTIONAL_MARKER,
    PLACEHOLDER_CLOSE,
    PLACEHOLDER_OPEN,
    LiteralMode,
)
from chatcmd.core.common.exceptions import TemplateError
from chatcmd.core.config.app_config import DispatchConfig
from chatcmd.core.domain.tokens import (
    TokenKind,
    TokenSpec,
    TokenTable,
    normalize_token_table,
)
from chatcmd.core.services.command_parser import CommandParser, TimeParser

logger = logging.getLogger(__name__)

_SEPARATOR = r"\s+"


class ParserBuilder:
    """Compiles command templates against one token table."""

    def __init__(
        self,
        tokens: TokenTable,
        *,
        literal_mode: LiteralMode | str = LiteralMode.ESCAPE,
        time_parser: TimeParser | None = None,
    ) -> None:
        """Initialize the builder.

        Args:
            tokens: Token name to ``TokenSpec`` (or its fields, or a bare fragment)
            literal_mode: ``escape`` matches literal template text verbatim,
                ``regex`` keeps it as regular expression text
            time_parser: Parser used for ``TIME`` tokens
        """
        self._tokens = normalize_token_table(tokens)
        self._literal_mode = LiteralMode(literal_mode)
        self._time_parser = time_parser

    @classmethod
    def from_config(
        cls,
        tokens: TokenTable,
        config: DispatchConfig,
        *,
        time_parser: TimeParser | None = None,
    ) -> ParserBuilder:
        """Create a builder that uses the configured literal mode."""
        return cls(tokens, literal_mode=config.literal_mode, time_parser=time_parser)

    @property
    def tokens(self) -> dict[str, TokenSpec]:
        return dict(self._tokens)

    def build(self, template: str | Sequence[str]) -> CommandParser:
        """Compile a template into a parser.

        Args:
            template: Template text, or the template already split into parts

        Returns:
            A parser for the template

        Raises:
            TemplateError: If the template is empty, references an unknown or
                repeated token, does not compile, or yields a different number
                of capture groups than placeholders
        """
        template_text = template if isinstance(template, str) else " ".join(template)
        parts = template.split() if isinstance(template, str) else list(template)
        if not parts:
            raise TemplateError("Empty command template", template=template_text)

        placeholders = [_parse_placeholder(part) for part in parts]
        first_required = next(
            (
                index
                for index, placeholder in enumerate(placeholders)
                if not self._is_optional(placeholder)
            ),
            None,
        )

        captures: list[str] = []
        kinds: dict[str, TokenKind] = {}
        pattern = r"^\s*"
        for index, (part, placeholder) in enumerate(zip(parts, placeholders)):
            separator = "" if index in (0, first_required) else _SEPARATOR
            if placeholder is None:
                pattern += separator + self._literal(part)
                continue

            name, _ = placeholder
            spec = self._tokens.get(name)
            if spec is None:
                raise TemplateError(
                    f"Unrecognized property {name}", template=template_text
                )
            if name in captures:
                raise TemplateError(
                    f"Duplicate property {name}", template=template_text
                )

            fragment = spec.value if spec.has_embedded_capture else f"({spec.value})"
            if first_required is not None and index < first_required:
                # the separator follows a leading optional token
                pattern += f"(?:{fragment}{_SEPARATOR})?"
            elif self._is_optional(placeholder):
                pattern += f"(?:{separator}{fragment})?"
            else:
                pattern += separator + fragment
            captures.append(name)
            kinds[name] = spec.kind
        pattern += r"\s*$"

        try:
            compiled = re.compile(pattern)
        except re.error as e:
            raise TemplateError(
                f"Invalid pattern for template: {e}",
                template=template_text,
                details={"pattern": pattern},
            ) from e

        if compiled.groups != len(captures):
            raise TemplateError(
                f"Mismatched capture count: got {compiled.groups}, expected {len(captures)}",
                template=template_text,
                details={"pattern": pattern},
            )

        logger.debug("Compiled template %r to %s", template_text, pattern)
        return CommandParser(compiled, captures, kinds, self._time_parser)

    def _is_optional(self, placeholder: tuple[str, bool] | None) -> bool:
        if placeholder is None:
            return False
        name, force_optional = placeholder
        spec = self._tokens.get(name)
        return force_optional or (spec is not None and spec.optional)

    def _literal(self, part: str) -> str:
        if self._literal_mode is LiteralMode.REGEX:
            return part
        return re.escape(part)


def _parse_placeholder(part: str) -> tuple[str, bool] | None:
    if not (part.startswith(PLACEHOLDER_OPEN) and part.endswith(PLACEHOLDER_CLOSE)):
        return None
    name = part[len(PLACEHOLDER_OPEN) : -len(PLACEHOLDER_CLOSE)]
    force_optional = name.endswith(OPTIONAL_MARKER)
    if force_optional:
        name = name[: -len(OPTIONAL_MARKER)]
    return name, force_optional
