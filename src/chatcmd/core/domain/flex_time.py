"""
Flexible time-of-day values.

``FlexTime`` accepts the loose time formats people type into chat
(``0100``, ``1430``, ``12:10p``, ``9:00am``, ``9:15``) and resolves 12-hour
times written without am/pm to the next upcoming occurrence.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timedelta

logger = logging.getLogger(__name__)

_FLEX_TIME_PATTERN = re.compile(r"^\s*(\d?\d):?(\d\d)\s*(a|A|am|AM|p|P|pm|PM)?\s*$")

# Fragment for embedding a flexible time into a command template token.
FLEX_TIME_FRAGMENT = r"(?:\d?\d):?(?:\d\d)\s*(?:a|A|am|AM|p|P|pm|PM)?"

MINUTES_PER_DAY = 24 * 60


def _find_future_hour(now: datetime, hours: int, minutes: int) -> int:
    hours = 0 if hours == 12 else hours
    while hours < now.hour:
        hours += 12
    if hours == now.hour and minutes < now.minute:
        hours += 12
    return hours % 24


@dataclass(frozen=True)
class FlexTime:
    """A time of day in 24-hour form.

    Attributes:
        hours: Hour of the day (0..23)
        minutes: Minute of the hour (0..59)
    """

    hours: int
    minutes: int

    def __post_init__(self) -> None:
        if not 0 <= self.hours < 24 or not 0 <= self.minutes < 60:
            raise ValueError(f"Invalid time of day {self.hours}:{self.minutes:02d}")

    @classmethod
    def parse(cls, text: str, now: datetime | None = None) -> FlexTime:
        """Parse a flexible time specification.

        Args:
            text: Time text such as ``0830``, ``8:30p`` or ``830``
            now: Reference time used to resolve ambiguous 12-hour times,
                defaults to the current local time

        Returns:
            The parsed time of day

        Raises:
            ValueError: If the text is not a valid time
        """
        now = now or datetime.now()
        match = _FLEX_TIME_PATTERN.match(text)
        if match is None:
            raise ValueError(f'Invalid time string "{text}".')

        hour_text, minute_text, am_pm = match.groups()
        hours = int(hour_text)
        minutes = int(minute_text)
        if hours >= 24 or minutes >= 60:
            raise ValueError(f'Invalid time string "{text}".')

        if am_pm:
            # am/pm only makes sense for 12-hour values
            if not 0 < hours <= 12:
                raise ValueError(f'Invalid time string "{text}".')
            hours = 0 if hours == 12 else hours
            if am_pm[0].lower() == "p":
                hours += 12
        elif hours != 0 and hours <= 12 and not hour_text.startswith("0"):
            # "830" could be morning or evening, so take the upcoming one.
            hours = _find_future_hour(now, hours, minutes)

        return cls(hours=hours, minutes=minutes)

    @classmethod
    def from_datetime(cls, value: datetime) -> FlexTime:
        return cls(hours=value.hour, minutes=value.minute)

    def to_datetime(
        self, now: datetime | None = None, fudge_minutes: int = 0
    ) -> datetime:
        """Return the next datetime at this time of day.

        Args:
            now: Base time, defaults to the current local time
            fudge_minutes: Minutes a time may lie in the past and still
                count as today

        Returns:
            A datetime on the same day as ``now`` or the day after
        """
        now = now or datetime.now()
        delta = self.delta_in_minutes_same_day(now)
        base = now + timedelta(days=1) if delta - fudge_minutes > 0 else now
        return base.replace(
            hour=self.hours, minute=self.minutes, second=0, microsecond=0
        )

    def delta_in_minutes_same_day(self, other: datetime | FlexTime) -> int:
        """Minutes from this time to ``other`` assuming both fall on one day."""
        other_hours, other_minutes = _time_of_day(other)
        return (other_hours * 60 + other_minutes) - (self.hours * 60 + self.minutes)

    def delta_in_minutes(self, other: datetime | FlexTime) -> int:
        """Minutes from this time to the nearest occurrence of ``other``.

        Crosses midnight when that is shorter, so 23:50 to 00:10 is 20.
        """
        delta = self.delta_in_minutes_same_day(other)
        if delta > MINUTES_PER_DAY // 2:
            delta -= MINUTES_PER_DAY
        elif delta < -MINUTES_PER_DAY // 2:
            delta += MINUTES_PER_DAY
        return delta

    def format_am_pm(self) -> str:
        return format_am_pm(self)

    def format_24_hours(self) -> str:
        return format_24_hours(self)

    def __str__(self) -> str:
        return self.format_am_pm()


def _time_of_day(value: datetime | FlexTime) -> tuple[int, int]:
    if isinstance(value, FlexTime):
        return value.hours, value.minutes
    return value.hour, value.minute


def format_am_pm(value: datetime | FlexTime) -> str:
    """Format a time as ``h:mm AM``."""
    hours, minutes = _time_of_day(value)
    suffix = "PM" if hours >= 12 else "AM"
    return f"{hours % 12 or 12}:{minutes:02d} {suffix}"


def format_24_hours(value: datetime | FlexTime) -> str:
    """Format a time as ``HHMM``."""
    hours, minutes = _time_of_day(value)
    return f"{hours:02d}{minutes:02d}"


def parse_flex_time(text: str, now: datetime | None = None) -> datetime:
    """Parse a flexible time into the next matching datetime after ``now``."""
    now = now or datetime.now()
    resolved = FlexTime.parse(text, now).to_datetime(now)
    logger.debug("Resolved flexible time %r to %s", text, resolved.isoformat())
    return resolved
