"""
Result tracker.

Folds per-command outcomes into the keys that succeeded and the errors that
were reported. Outcomes that merely did not match are skipped.
"""

from __future__ import annotations

from collections.abc import Hashable, Iterable
from dataclasses import dataclass, replace
from typing import Any

from chatcmd.core.domain.command_results import CommandFailure, FailurePhase


@dataclass(frozen=True)
class ResultTracker:
    """Immutable accumulator of dispatch outcomes.

    Attributes:
        keys: Keys whose outcome succeeded, in the order they were added
        failures: Failures other than no-match, in the order they were added
    """

    keys: tuple[Hashable, ...] = ()
    failures: tuple[CommandFailure, ...] = ()

    def add(self, key: Hashable, outcome: Any) -> ResultTracker:
        """Return a tracker that includes one more outcome.

        Args:
            key: Key of the command that produced the outcome
            outcome: A ``CommandFailure``, or any other value for success
        """
        if isinstance(outcome, CommandFailure):
            if outcome.is_no_match:
                return self
            return replace(self, failures=self.failures + (outcome,))
        return replace(self, keys=self.keys + (key,))

    @classmethod
    def fold(cls, outcomes: Iterable[tuple[Hashable, Any]]) -> ResultTracker:
        tracker = cls()
        for key, outcome in outcomes:
            tracker = tracker.add(key, outcome)
        return tracker

    @property
    def errors(self) -> tuple[str, ...]:
        return tuple(failure.message for failure in self.failures)

    @property
    def failed(self) -> bool:
        """True when nothing succeeded and at least one error was reported."""
        return not self.keys and bool(self.failures)

    @property
    def phase(self) -> FailurePhase | None:
        """Phase of the first reported failure."""
        return self.failures[0].phase if self.failures else None

    def error_message(self, headline: str | None = None) -> str:
        lines = [headline] if headline else []
        lines.extend(self.errors)
        return "\n".join(lines)
