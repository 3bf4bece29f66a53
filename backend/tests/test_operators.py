import random

import pytest

from conftest import make_course, make_room, make_snapshot, make_teacher
from slotwise.core.exceptions import UnresolvedReferenceError
from slotwise.schemas.generator import EngineConfig
from slotwise.services.genome import Gene, Individual
from slotwise.services.operators import (
    build_initial_population,
    mutate,
    resolve_candidates,
    tournament_select,
    uniform_crossover,
)
from slotwise.services.timeslots import SlotCatalog


def _genes(prefix: str, count: int) -> list[Gene]:
    return [
        Gene(
            course_id=f"c{index}",
            teacher_id="t1",
            room_id=f"{prefix}-room",
            day_of_week=1,
            start=540,
            end=630,
            credit_hours=3,
        )
        for index in range(count)
    ]


def test_resolve_candidates_drops_courses_with_unknown_teacher():
    snapshot = make_snapshot(courses=[make_course("c1"), make_course("c2", teacher_id="ghost")])
    candidates, dropped = resolve_candidates(snapshot)

    assert [(course.id, teacher.id) for course, teacher in candidates] == [("c1", "t1")]
    assert [course.id for course in dropped] == ["c2"]


def test_initial_population_has_one_gene_per_candidate():
    snapshot = make_snapshot(
        teachers=[make_teacher("t1"), make_teacher("t2")],
        courses=[make_course("c1"), make_course("c2", teacher_id="t2"), make_course("c3")],
        rooms=[make_room("r1"), make_room("r2")],
    )
    candidates, _ = resolve_candidates(snapshot)
    catalog = SlotCatalog.from_config(EngineConfig())
    population = build_initial_population(candidates, snapshot.rooms, catalog, 6, random.Random(1))

    assert len(population) == 6
    for individual in population:
        assert [gene.course_id for gene in individual.genes] == ["c1", "c2", "c3"]
        assert [gene.teacher_id for gene in individual.genes] == ["t1", "t2", "t1"]
        assert all(gene.day_of_week in catalog.days for gene in individual.genes)
    assert all(not individual.evaluated for individual in population)


def test_crossover_keeps_length_of_longer_parent():
    longer = Individual(genes=_genes("a", 5))
    shorter = Individual(genes=_genes("b", 3))

    child = uniform_crossover(longer, shorter, random.Random(3))

    assert len(child.genes) == 5
    assert child.genes[3:] == longer.genes[3:]
    assert child.fitness is None

    mirrored = uniform_crossover(shorter, longer, random.Random(3))
    assert len(mirrored.genes) == 5
    assert mirrored.genes[3:] == longer.genes[3:]


def test_tournament_prefers_fitter_individual():
    weak = Individual(genes=[], fitness=0.1)
    strong = Individual(genes=[], fitness=0.9)
    winner = tournament_select([weak, strong], random.Random(5), tournament_size=40)
    assert winner is strong


def test_tournament_of_one_returns_the_only_contender():
    only = Individual(genes=[], fitness=0.5)
    assert tournament_select([only], random.Random(0), tournament_size=3) is only


def test_mutation_with_zero_rate_copies_without_sharing_state():
    snapshot = make_snapshot()
    catalog = SlotCatalog.from_config(EngineConfig())
    parent = Individual(genes=_genes("a", 1), fitness=0.7)

    child = mutate(parent, snapshot, catalog, random.Random(0), 0.0)

    assert child is not parent
    assert child.genes == parent.genes
    assert child.genes is not parent.genes
    assert child.fitness is None
    assert parent.fitness == 0.7


def test_full_rate_mutation_redraws_every_gene_for_the_same_course():
    snapshot = make_snapshot(
        courses=[make_course("c0"), make_course("c1")],
        rooms=[make_room("r1"), make_room("r2")],
    )
    catalog = SlotCatalog.from_config(EngineConfig())
    parent = Individual(genes=_genes("a", 2))

    child = mutate(parent, snapshot, catalog, random.Random(11), 1.0)

    assert [gene.course_id for gene in child.genes] == ["c0", "c1"]
    assert all(gene.room_id in {"r1", "r2"} for gene in child.genes)


def test_mutation_fails_when_course_teacher_is_missing():
    snapshot = make_snapshot(courses=[make_course("c0", teacher_id="ghost")])
    catalog = SlotCatalog.from_config(EngineConfig())
    parent = Individual(genes=_genes("a", 1))

    with pytest.raises(UnresolvedReferenceError) as excinfo:
        mutate(parent, snapshot, catalog, random.Random(0), 1.0)

    assert excinfo.value.course_id == "c0"
    assert excinfo.value.teacher_id == "ghost"
    assert excinfo.value.status_code == 422


def test_tournament_tie_goes_to_first_drawn_contender():
    population = [Individual(genes=[], fitness=0.5) for _ in range(6)]
    first_pick = random.Random(21).randrange(len(population))

    winner = tournament_select(population, random.Random(21), tournament_size=4)

    assert winner is population[first_pick]
