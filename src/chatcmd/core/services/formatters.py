"""
Result formatters.

A formatter turns a render template and an executor's value into output text.
Templates reference the value with ``{{result}}`` and its fields with
``{{field}}`` or ``{{field.sub}}``.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Mapping
from typing import Any

from chatcmd.constants import FormatTarget
from chatcmd.core.common.exceptions import CommandFormatError
from chatcmd.core.interfaces.command_interface import Formatter

logger = logging.getLogger(__name__)

RESULT_FIELD = "result"

_FIELD_PATTERN = re.compile(r"\{\{\s*([A-Za-z_][\w.]*)\s*\}\}")
_MARKDOWN_SPECIAL = re.compile(r"([\\*_~`|>\[\]])")

FormattersByTarget = Mapping[FormatTarget, Formatter]

_MISSING = object()


def _lookup(value: Any, path: str) -> Any:
    parts = path.split(".")
    if parts[0] == RESULT_FIELD:
        parts = parts[1:]

    current = value
    for part in parts:
        if isinstance(current, Mapping):
            current = current.get(part, _MISSING)
        else:
            current = getattr(current, part, _MISSING)
        if current is _MISSING:
            raise CommandFormatError(
                f"Unknown field {path} in format template",
                details={"field": path},
            )
    return current


def _to_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return ", ".join(_to_text(item) for item in value)
    return str(value)


def render_template(
    template: str, value: Any, escape: Callable[[str], str] | None = None
) -> str:
    """Substitute ``{{field}}`` references in a template.

    Args:
        template: Render template
        value: Value the fields are looked up on
        escape: Optional function applied to each substituted value

    Returns:
        The rendered text

    Raises:
        CommandFormatError: If the template references an unknown field
    """

    def _replace(match: re.Match[str]) -> str:
        text = _to_text(_lookup(value, match.group(1)))
        return escape(text) if escape is not None else text

    return _FIELD_PATTERN.sub(_replace, template)


def escape_markdown(text: str) -> str:
    return _MARKDOWN_SPECIAL.sub(r"\\\1", text)


def text_formatter(template: str, value: Any) -> str:
    return render_template(template, value)


def markdown_formatter(template: str, value: Any) -> str:
    return render_template(template, value, escape=escape_markdown)


def embed_formatter(template: str, value: Any) -> str:
    return render_template(template, value)


DEFAULT_FORMATTERS: dict[FormatTarget, Formatter] = {
    FormatTarget.TEXT: text_formatter,
    FormatTarget.MARKDOWN: markdown_formatter,
    FormatTarget.EMBED: embed_formatter,
}


def formatter_for_target(
    formatters: FormattersByTarget, target: FormatTarget | str
) -> Formatter:
    """Select the formatter for an output target.

    Raises:
        CommandFormatError: If the target is unknown or has no formatter
    """
    try:
        resolved = FormatTarget(target)
    except ValueError as e:
        raise CommandFormatError(f"Unknown format target {target}") from e

    formatter = formatters.get(resolved)
    if formatter is None:
        raise CommandFormatError(f"No formatter for target {resolved.value}")
    return formatter
