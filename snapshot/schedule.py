"""
Go / no-go rules deciding whether a run for a given date should collect.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import FrozenSet, Iterable, Protocol, Tuple

from utils.dates import format_date, parse_date_arg


class ScheduleRule(Protocol):
    def matches(self, target: date) -> bool: ...

    def describe(self) -> str: ...


@dataclass(frozen=True)
class FixedDaysRule:
    """Run on fixed days of the month (pool statistics)."""

    days: Tuple[int, ...] = (1, 11, 21)

    def matches(self, target: date) -> bool:
        return target.day in self.days

    def describe(self) -> str:
        return "day of month in " + ", ".join(map(str, self.days))


@dataclass(frozen=True)
class DatesOrIntervalRule:
    """
    Run on allow-listed dates, or every ``interval_days`` after ``anchor``
    (the anchor itself excluded unless allow-listed).
    """

    anchor: date
    dates: FrozenSet[date] = field(default_factory=frozenset)
    interval_days: int = 15

    @classmethod
    def from_strings(
        cls, anchor: str, dates: Iterable[str], interval_days: int = 15
    ) -> "DatesOrIntervalRule":
        return cls(
            anchor=parse_date_arg(anchor),
            dates=frozenset(parse_date_arg(d) for d in dates),
            interval_days=interval_days,
        )

    def matches(self, target: date) -> bool:
        if target in self.dates:
            return True
        diff = (target - self.anchor).days
        return diff > 0 and diff % self.interval_days == 0

    def describe(self) -> str:
        return (
            f"one of {sorted(format_date(d) for d in self.dates)} or every "
            f"{self.interval_days} days after {format_date(self.anchor)}"
        )


def should_run(target: date, rule: ScheduleRule) -> bool:
    return rule.matches(target)
