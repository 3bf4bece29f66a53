from __future__ import annotations

import re

from pydantic import BaseModel, ConfigDict, Field, field_validator

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")

DEFAULT_TIME_SLOTS: tuple[tuple[str, str], ...] = (
    ("09:00", "10:30"),
    ("10:45", "12:15"),
    ("13:00", "14:30"),
    ("14:45", "16:15"),
    ("16:30", "18:00"),
)
# 1 = Monday ... 5 = Friday
DEFAULT_SCHOOL_DAYS: tuple[int, ...] = (1, 2, 3, 4, 5)


def parse_time_to_minutes(value: str) -> int:
    if not TIME_PATTERN.match(value):
        raise ValueError("Time must be in HH:MM 24-hour format")
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


class EngineConfig(BaseModel):
    """Immutable knobs for one genetic synthesis engine.

    ``max_iterations`` is carried as configuration only: the generation loop
    is bounded by ``max_generations`` and never consults it.
    """

    model_config = ConfigDict(frozen=True)

    population_size: int = Field(default=50, ge=2, le=2000)
    max_generations: int = Field(default=100, ge=1, le=10_000)
    max_iterations: int = Field(default=1000, ge=1, le=1_000_000)
    conflict_threshold: float = Field(default=0.8, ge=0.0, le=1.0)
    elite_fraction: float = Field(default=0.2, ge=0.0, lt=1.0)
    mutation_rate: float = Field(default=0.1, ge=0.0, le=1.0)
    tournament_size: int = Field(default=3, ge=1, le=50)
    random_seed: int | None = Field(default=None, ge=0, le=2_000_000_000)
    worker_count: int | None = Field(default=None, ge=1, le=256)
    generation_timeout_seconds: float | None = Field(default=None, gt=0)
    time_slots: tuple[tuple[str, str], ...] = DEFAULT_TIME_SLOTS
    school_days: tuple[int, ...] = DEFAULT_SCHOOL_DAYS

    @field_validator("time_slots")
    @classmethod
    def validate_time_slots(cls, value: tuple[tuple[str, str], ...]) -> tuple[tuple[str, str], ...]:
        if not value:
            raise ValueError("time_slots must contain at least one period")
        bounds: list[tuple[int, int]] = []
        for start, end in value:
            start_min = parse_time_to_minutes(start)
            end_min = parse_time_to_minutes(end)
            if end_min <= start_min:
                raise ValueError(f"Period {start}-{end} must end after it starts")
            bounds.append((start_min, end_min))
        bounds.sort()
        for (_, previous_end), (next_start, _) in zip(bounds, bounds[1:]):
            if next_start < previous_end:
                raise ValueError("time_slots periods must not overlap")
        return value

    @field_validator("school_days")
    @classmethod
    def validate_school_days(cls, value: tuple[int, ...]) -> tuple[int, ...]:
        if not value:
            raise ValueError("school_days must contain at least one day")
        if len(set(value)) != len(value):
            raise ValueError("school_days must not repeat a day")
        if any(day < 1 or day > 7 for day in value):
            raise ValueError("school_days values must be between 1 and 7")
        return value

    @property
    def elite_count(self) -> int:
        return int(self.population_size * self.elite_fraction)
