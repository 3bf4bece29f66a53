from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from slotwise.services.snapshot import ExistingEntry


class ConflictKind(str, Enum):
    TEACHER_CONFLICT = "TEACHER_CONFLICT"
    ROOM_CONFLICT = "ROOM_CONFLICT"
    EXISTING_CONFLICT = "EXISTING_CONFLICT"
    WORKLOAD_EXCEEDED = "WORKLOAD_EXCEEDED"
    CAPACITY_EXCEEDED = "CAPACITY_EXCEEDED"


# Informational only; fitness penalties live in the evaluator.
CONFLICT_SEVERITY: dict[ConflictKind, float] = {
    ConflictKind.TEACHER_CONFLICT: 0.8,
    ConflictKind.ROOM_CONFLICT: 0.9,
    ConflictKind.EXISTING_CONFLICT: 0.7,
    ConflictKind.WORKLOAD_EXCEEDED: 0.6,
    ConflictKind.CAPACITY_EXCEEDED: 0.5,
}


@dataclass(frozen=True)
class Gene:
    course_id: str
    teacher_id: str
    room_id: str
    day_of_week: int
    start: int
    end: int
    credit_hours: int

    @property
    def hours(self) -> float:
        return (self.end - self.start) / 60


@dataclass(frozen=True)
class Conflict:
    kind: ConflictKind
    genes: tuple[Gene, ...] = ()
    existing: ExistingEntry | None = None
    teacher_id: str | None = None
    current_workload: float | None = None
    max_workload: float | None = None
    course_id: str | None = None
    room_id: str | None = None

    @property
    def severity(self) -> float:
        return CONFLICT_SEVERITY[self.kind]


@dataclass
class Individual:
    genes: list[Gene] = field(default_factory=list)
    conflicts: list[Conflict] = field(default_factory=list)
    fitness: float | None = None

    @property
    def evaluated(self) -> bool:
        return self.fitness is not None


def copy_individual(individual: Individual) -> Individual:
    """Structural copy: genes and conflicts are immutable, so copying the lists is enough."""
    return Individual(
        genes=list(individual.genes),
        conflicts=list(individual.conflicts),
        fitness=individual.fitness,
    )
