"""Injectable wall-clock helpers used by date-sensitive predicates."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Callable

Clock = Callable[[], datetime]


def system_clock() -> datetime:
    """Return the current time as an aware UTC datetime."""

    return datetime.now(UTC)


@dataclass(slots=True)
class FixedClock:
    """Clock that always reports the same instant."""

    instant: datetime

    def __call__(self) -> datetime:
        return self.instant
