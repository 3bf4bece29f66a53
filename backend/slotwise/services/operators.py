from __future__ import annotations

import random
from collections.abc import Sequence

from slotwise.core.exceptions import UnresolvedReferenceError
from slotwise.services.genome import Gene, Individual, copy_individual
from slotwise.services.snapshot import CourseRecord, RoomRecord, Snapshot, TeacherRecord
from slotwise.services.timeslots import SlotCatalog


def resolve_candidates(snapshot: Snapshot) -> tuple[list[tuple[CourseRecord, TeacherRecord]], list[CourseRecord]]:
    """Split snapshot courses into schedulable (course, teacher) pairs and courses whose teacher is missing."""
    candidates: list[tuple[CourseRecord, TeacherRecord]] = []
    dropped: list[CourseRecord] = []
    for course in snapshot.courses:
        teacher = snapshot.teachers_by_id.get(course.teacher_id)
        if teacher is None:
            dropped.append(course)
            continue
        candidates.append((course, teacher))
    return candidates, dropped


def random_gene(
    course: CourseRecord,
    teacher: TeacherRecord,
    rooms: Sequence[RoomRecord],
    catalog: SlotCatalog,
    rng: random.Random,
) -> Gene:
    # Any room may be drawn; capacity is scored by fitness.
    day = rng.choice(catalog.days)
    period = rng.choice(catalog.periods)
    room = rng.choice(rooms)
    return Gene(
        course_id=course.id,
        teacher_id=teacher.id,
        room_id=room.id,
        day_of_week=day,
        start=period.start,
        end=period.end,
        credit_hours=course.credit_hours,
    )


def build_initial_population(
    candidates: Sequence[tuple[CourseRecord, TeacherRecord]],
    rooms: Sequence[RoomRecord],
    catalog: SlotCatalog,
    size: int,
    rng: random.Random,
) -> list[Individual]:
    population: list[Individual] = []
    for _ in range(size):
        genes = [random_gene(course, teacher, rooms, catalog, rng) for course, teacher in candidates]
        population.append(Individual(genes=genes))
    return population


def tournament_select(population: Sequence[Individual], rng: random.Random, tournament_size: int) -> Individual:
    """Best of ``tournament_size`` picks drawn with replacement; ties keep the earliest pick."""
    contenders = [population[rng.randrange(len(population))] for _ in range(tournament_size)]
    best = contenders[0]
    for contender in contenders[1:]:
        if contender.fitness > best.fitness:
            best = contender
    return best


def uniform_crossover(parent_a: Individual, parent_b: Individual, rng: random.Random) -> Individual:
    """Per-gene coin flip; the child keeps the tail of the longer parent instead of truncating."""
    genes: list[Gene] = []
    for index in range(max(len(parent_a.genes), len(parent_b.genes))):
        gene_a = parent_a.genes[index] if index < len(parent_a.genes) else None
        gene_b = parent_b.genes[index] if index < len(parent_b.genes) else None
        if gene_a is not None and gene_b is not None:
            genes.append(gene_a if rng.random() < 0.5 else gene_b)
        elif gene_a is not None:
            genes.append(gene_a)
        else:
            genes.append(gene_b)
    return Individual(genes=genes)


def mutate(
    individual: Individual,
    snapshot: Snapshot,
    catalog: SlotCatalog,
    rng: random.Random,
    mutation_rate: float,
) -> Individual:
    mutated = copy_individual(individual)
    mutated.conflicts = []
    mutated.fitness = None
    for index, gene in enumerate(mutated.genes):
        if rng.random() >= mutation_rate:
            continue
        course = snapshot.courses_by_id.get(gene.course_id)
        if course is None:
            raise UnresolvedReferenceError(gene.course_id)
        teacher = snapshot.teachers_by_id.get(course.teacher_id)
        if teacher is None:
            raise UnresolvedReferenceError(course.id, course.teacher_id)
        mutated.genes[index] = random_gene(course, teacher, snapshot.rooms, catalog, rng)
    return mutated
