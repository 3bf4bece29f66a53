from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from slotwise.schemas.generator import EngineConfig, parse_time_to_minutes


def minutes_to_time(value: int) -> str:
    hours = value // 60
    minutes = value % 60
    return f"{hours:02d}:{minutes:02d}"


def time_overlap(start_a: int, end_a: int, start_b: int, end_b: int) -> bool:
    """Ranges touching at an endpoint do not overlap."""
    return start_a < end_b and start_b < end_a


@dataclass(frozen=True)
class TimeSlot:
    start: int
    end: int

    @property
    def hours(self) -> float:
        return (self.end - self.start) / 60

    @property
    def start_time(self) -> str:
        return minutes_to_time(self.start)

    @property
    def end_time(self) -> str:
        return minutes_to_time(self.end)


def build_time_slots(periods: Iterable[tuple[str, str]]) -> tuple[TimeSlot, ...]:
    return tuple(
        TimeSlot(start=parse_time_to_minutes(start), end=parse_time_to_minutes(end))
        for start, end in periods
    )


@dataclass(frozen=True)
class SlotCatalog:
    days: tuple[int, ...]
    periods: tuple[TimeSlot, ...]

    @classmethod
    def from_config(cls, config: EngineConfig) -> "SlotCatalog":
        return cls(days=tuple(config.school_days), periods=build_time_slots(config.time_slots))

    def combinations(self) -> Iterator[tuple[int, TimeSlot]]:
        # Day-major order; suggestion scans rely on it.
        for day in self.days:
            for period in self.periods:
                yield day, period
