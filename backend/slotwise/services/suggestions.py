from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

from slotwise.models.room import RoomType
from slotwise.services.genome import Conflict, ConflictKind, Gene, Individual
from slotwise.services.snapshot import RoomRecord, Snapshot
from slotwise.services.timeslots import SlotCatalog, TimeSlot, time_overlap

MAX_TIME_ALTERNATIVES = 3


class SuggestionKind(str, Enum):
    ROOM_CHANGE = "ROOM_CHANGE"
    TIME_CHANGE = "TIME_CHANGE"


@dataclass(frozen=True)
class TimeOption:
    day_of_week: int
    slot: TimeSlot


@dataclass(frozen=True)
class Suggestion:
    kind: SuggestionKind
    gene: Gene
    reason: str
    suggested_room: RoomRecord | None = None
    alternatives: tuple[TimeOption, ...] = ()


def find_alternative_room(max_students: int, rooms: Sequence[RoomRecord]) -> RoomRecord | None:
    for room in rooms:
        if room.room_type == RoomType.CLASSROOM.value and room.capacity >= max_students:
            return room
    return None


def find_alternative_times(
    gene: Gene,
    genes: Sequence[Gene],
    catalog: SlotCatalog,
    limit: int = MAX_TIME_ALTERNATIVES,
) -> tuple[TimeOption, ...]:
    """First ``limit`` catalog positions where the gene's teacher has nothing scheduled.

    Only teacher availability is checked; the gene's own placement counts as
    occupied, and room availability is not re-verified.
    """
    options: list[TimeOption] = []
    teacher_genes = [item for item in genes if item.teacher_id == gene.teacher_id]
    for day, slot in catalog.combinations():
        busy = any(
            item.day_of_week == day and time_overlap(item.start, item.end, slot.start, slot.end)
            for item in teacher_genes
        )
        if busy:
            continue
        options.append(TimeOption(day_of_week=day, slot=slot))
        if len(options) >= limit:
            break
    return tuple(options)


def _room_change(conflict: Conflict, snapshot: Snapshot) -> Suggestion | None:
    course = snapshot.courses_by_id.get(conflict.course_id)
    if course is None or not course.max_students:
        return None
    room = find_alternative_room(course.max_students, snapshot.rooms)
    if room is None:
        return None
    return Suggestion(
        kind=SuggestionKind.ROOM_CHANGE,
        gene=conflict.genes[0],
        reason="Capacity exceeded",
        suggested_room=room,
    )


def generate_suggestions(individual: Individual, snapshot: Snapshot, catalog: SlotCatalog) -> list[Suggestion]:
    """Room changes for capacity problems first, then time changes for double bookings."""
    suggestions: list[Suggestion] = []
    for conflict in individual.conflicts:
        if conflict.kind is not ConflictKind.CAPACITY_EXCEEDED:
            continue
        suggestion = _room_change(conflict, snapshot)
        if suggestion is not None:
            suggestions.append(suggestion)

    for conflict in individual.conflicts:
        if conflict.kind not in (ConflictKind.TEACHER_CONFLICT, ConflictKind.ROOM_CONFLICT):
            continue
        target = conflict.genes[0]
        suggestions.append(
            Suggestion(
                kind=SuggestionKind.TIME_CHANGE,
                gene=target,
                reason="Conflict with another class",
                alternatives=find_alternative_times(target, individual.genes, catalog),
            )
        )
    return suggestions
