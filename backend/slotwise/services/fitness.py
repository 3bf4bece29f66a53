from __future__ import annotations

from collections.abc import Iterable, Sequence

from slotwise.services.genome import Conflict, ConflictKind, Gene, Individual
from slotwise.services.snapshot import Snapshot, TeacherRecord
from slotwise.services.timeslots import time_overlap

BASELINE_FITNESS = 1.0
TEACHER_CONFLICT_PENALTY = 0.3
ROOM_CONFLICT_PENALTY = 0.4
EXISTING_CONFLICT_PENALTY = 0.2
WORKLOAD_PENALTY_PER_HOUR = 0.1
CAPACITY_PENALTY = 0.1


def genes_overlap(first: Gene, second: Gene) -> bool:
    return first.day_of_week == second.day_of_week and time_overlap(
        first.start, first.end, second.start, second.end
    )


def teacher_workloads(genes: Iterable[Gene], teachers: Iterable[TeacherRecord]) -> dict[str, float]:
    """Weekly hours per snapshot teacher; genes of unknown teachers are ignored."""
    workloads = {teacher.id: 0.0 for teacher in teachers}
    for gene in genes:
        if gene.teacher_id in workloads:
            workloads[gene.teacher_id] += gene.hours
    return workloads


def evaluate_fitness(individual: Individual, snapshot: Snapshot) -> tuple[float, list[Conflict]]:
    """Score one candidate against the snapshot.

    Starts from 1.0 and subtracts a penalty per detected conflict; the score is
    clamped at zero. Pure: the caller decides where fitness and conflicts go.
    """
    genes: Sequence[Gene] = individual.genes
    fitness = BASELINE_FITNESS
    conflicts: list[Conflict] = []

    for i, gene in enumerate(genes):
        for other in genes[i + 1 :]:
            if not genes_overlap(gene, other):
                continue
            if gene.teacher_id == other.teacher_id:
                conflicts.append(
                    Conflict(kind=ConflictKind.TEACHER_CONFLICT, genes=(gene, other), teacher_id=gene.teacher_id)
                )
                fitness -= TEACHER_CONFLICT_PENALTY
            if gene.room_id == other.room_id:
                conflicts.append(Conflict(kind=ConflictKind.ROOM_CONFLICT, genes=(gene, other), room_id=gene.room_id))
                fitness -= ROOM_CONFLICT_PENALTY

        for entry in snapshot.existing_entries:
            if (
                gene.teacher_id == entry.teacher_id
                and gene.day_of_week == entry.day_of_week
                and time_overlap(gene.start, gene.end, entry.start, entry.end)
            ):
                conflicts.append(
                    Conflict(
                        kind=ConflictKind.EXISTING_CONFLICT,
                        genes=(gene,),
                        existing=entry,
                        teacher_id=gene.teacher_id,
                    )
                )
                fitness -= EXISTING_CONFLICT_PENALTY

    workloads = teacher_workloads(genes, snapshot.teachers)
    for teacher in snapshot.teachers:
        workload = workloads[teacher.id]
        if workload > teacher.max_workload:
            conflicts.append(
                Conflict(
                    kind=ConflictKind.WORKLOAD_EXCEEDED,
                    teacher_id=teacher.id,
                    current_workload=workload,
                    max_workload=teacher.max_workload,
                )
            )
            fitness -= WORKLOAD_PENALTY_PER_HOUR * (workload - teacher.max_workload)

    for gene in genes:
        course = snapshot.courses_by_id.get(gene.course_id)
        room = snapshot.rooms_by_id.get(gene.room_id)
        if course is None or room is None or not course.max_students:
            continue
        if course.max_students > room.capacity:
            conflicts.append(
                Conflict(
                    kind=ConflictKind.CAPACITY_EXCEEDED,
                    genes=(gene,),
                    course_id=course.id,
                    room_id=room.id,
                )
            )
            fitness -= CAPACITY_PENALTY

    return max(0.0, fitness), conflicts
