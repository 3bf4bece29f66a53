import threading
from concurrent.futures import ThreadPoolExecutor
from time import monotonic

import pytest

from conftest import make_course, make_room, make_snapshot, make_teacher
from slotwise.core.exceptions import EmptyInputError
from slotwise.schemas.generator import EngineConfig
from slotwise.services.evolution_scheduler import GeneticTimetableEngine, SearchState
from slotwise.services.fitness import evaluate_fitness
from slotwise.services.operators import build_initial_population

# One day and one period: two courses of the same teacher can never be separated.
CRAMPED = dict(time_slots=(("09:00", "10:30"),), school_days=(1,))


def _cramped_snapshot():
    return make_snapshot(courses=[make_course("c1"), make_course("c2")], rooms=[make_room("r1")])


def _fingerprint(result):
    return (
        result.best.fitness,
        [(gene.course_id, gene.room_id, gene.day_of_week, gene.start) for gene in result.best.genes],
        [conflict.kind for conflict in result.best.conflicts],
        [report.best_fitness for report in result.history],
    )


def test_same_seed_reproduces_the_run():
    snapshot = make_snapshot(
        teachers=[make_teacher("t1"), make_teacher("t2")],
        courses=[make_course(f"c{i}", teacher_id="t1" if i % 2 else "t2") for i in range(6)],
        rooms=[make_room("r1"), make_room("r2", capacity=20)],
    )
    config = EngineConfig(population_size=16, max_generations=6, conflict_threshold=1.0, worker_count=4)

    first = GeneticTimetableEngine(snapshot, config, random_seed=99).run()
    second = GeneticTimetableEngine(snapshot, config, random_seed=99).run()

    assert _fingerprint(first) == _fingerprint(second)


def test_best_individual_keeps_one_gene_per_course():
    snapshot = make_snapshot(
        courses=[make_course("c1"), make_course("c2"), make_course("c3", teacher_id="ghost")],
    )
    config = EngineConfig(population_size=10, max_generations=5, conflict_threshold=1.0, random_seed=1)
    engine = GeneticTimetableEngine(snapshot, config)

    result = engine.run()

    assert [gene.course_id for gene in result.best.genes] == ["c1", "c2"]
    assert result.dropped_course_ids == ("c3",)


def test_reported_fitness_matches_reevaluation():
    config = EngineConfig(population_size=10, max_generations=4, conflict_threshold=1.0, random_seed=5, **CRAMPED)
    snapshot = _cramped_snapshot()
    result = GeneticTimetableEngine(snapshot, config).run()

    fitness, conflicts = evaluate_fitness(result.best, snapshot)
    assert fitness == result.best.fitness
    assert conflicts == result.best.conflicts


def test_stops_at_first_generation_meeting_threshold():
    config = EngineConfig(population_size=8, max_generations=50, conflict_threshold=0.0, random_seed=2)
    result = GeneticTimetableEngine(make_snapshot(), config).run()

    assert result.state is SearchState.CONVERGED
    assert result.generations == 1
    assert len(result.history) == 1


def test_exhausts_generation_budget_when_threshold_unreachable():
    config = EngineConfig(population_size=8, max_generations=4, conflict_threshold=1.0, random_seed=2, **CRAMPED)
    result = GeneticTimetableEngine(_cramped_snapshot(), config).run()

    assert result.state is SearchState.EXHAUSTED
    assert result.generations == 4
    assert result.best.fitness < 1.0
    assert result.best.conflicts


def test_max_iterations_does_not_bound_the_loop():
    config = EngineConfig(
        population_size=6,
        max_generations=3,
        max_iterations=1,
        conflict_threshold=1.0,
        random_seed=4,
        **CRAMPED,
    )
    result = GeneticTimetableEngine(_cramped_snapshot(), config).run()
    assert result.generations == 3


def test_cancel_event_stops_after_current_generation():
    config = EngineConfig(population_size=8, max_generations=50, conflict_threshold=1.0, random_seed=2, **CRAMPED)
    cancel = threading.Event()
    cancel.set()

    result = GeneticTimetableEngine(_cramped_snapshot(), config).run(cancel_event=cancel)

    assert result.state is SearchState.CANCELLED
    assert result.generations == 1
    assert result.best.evaluated


def test_expired_deadline_cancels_with_best_so_far():
    config = EngineConfig(population_size=8, max_generations=50, conflict_threshold=1.0, random_seed=2, **CRAMPED)
    result = GeneticTimetableEngine(_cramped_snapshot(), config).run(deadline=monotonic() - 1)

    assert result.state is SearchState.CANCELLED
    assert result.generations == 1


def test_generation_reports_are_streamed_in_order():
    reports = []
    config = EngineConfig(population_size=6, max_generations=3, conflict_threshold=1.0, random_seed=8, **CRAMPED)
    engine = GeneticTimetableEngine(_cramped_snapshot(), config, on_generation=reports.append)

    engine.run()

    assert [report.generation for report in reports] == [1, 2, 3]
    assert [report.state for report in reports] == [
        SearchState.EVALUATING,
        SearchState.EVALUATING,
        SearchState.EXHAUSTED,
    ]
    best_so_far = [report.best_fitness for report in reports]
    assert best_so_far == sorted(best_so_far)


def test_request_seed_overrides_configured_seed():
    config = EngineConfig(random_seed=1)
    engine = GeneticTimetableEngine(make_snapshot(), config, random_seed=2)
    assert engine.seed == 2


def test_worker_count_is_capped_by_population():
    config = EngineConfig(population_size=4, worker_count=32)
    assert GeneticTimetableEngine(make_snapshot(), config).worker_count == 4


@pytest.mark.parametrize("category", ["students", "teachers", "courses", "rooms"])
def test_empty_category_is_rejected_before_search(category):
    snapshot = make_snapshot(**{category: []})
    with pytest.raises(EmptyInputError) as excinfo:
        GeneticTimetableEngine(snapshot, EngineConfig())
    assert excinfo.value.message == f"No {category} found"
    assert excinfo.value.category == category


def test_first_empty_category_wins():
    snapshot = make_snapshot(students=[], teachers=[], courses=[], rooms=[])
    with pytest.raises(EmptyInputError, match="No students found"):
        GeneticTimetableEngine(snapshot, EngineConfig())


def test_breeding_carries_elites_unchanged_and_refills_population():
    snapshot = make_snapshot(courses=[make_course("c1"), make_course("c2")], rooms=[make_room("r1"), make_room("r2")])
    config = EngineConfig(population_size=10, elite_fraction=0.3, random_seed=13)
    engine = GeneticTimetableEngine(snapshot, config)
    population = build_initial_population(engine.candidates, snapshot.rooms, engine.catalog, 10, engine.random)
    for rank, individual in enumerate(population):
        individual.fitness = 1.0 - rank * 0.05
    elite_genes = [list(individual.genes) for individual in population[:3]]

    next_population = engine._breed(population)

    assert config.elite_count == 3
    assert len(next_population) == 10
    assert all(child is parent for child, parent in zip(next_population[:3], population[:3]))
    assert [individual.genes for individual in next_population[:3]] == elite_genes
    assert [individual.fitness for individual in next_population[:3]] == [1.0, 0.95, 0.9]
    assert all(not individual.evaluated for individual in next_population[3:])


def test_injected_executor_gives_same_result_and_stays_open():
    config = EngineConfig(population_size=8, max_generations=3, conflict_threshold=1.0, random_seed=6, **CRAMPED)
    snapshot = _cramped_snapshot()
    baseline = GeneticTimetableEngine(snapshot, config).run()

    with ThreadPoolExecutor(max_workers=2) as executor:
        injected = GeneticTimetableEngine(snapshot, config).run(executor=executor)
        assert executor.submit(lambda: "still open").result() == "still open"

    assert _fingerprint(injected) == _fingerprint(baseline)
