from __future__ import annotations

import logging
import os
import random
import threading
from collections.abc import Callable
from concurrent.futures import Executor, ThreadPoolExecutor
from contextlib import nullcontext
from itertools import repeat
from dataclasses import dataclass, field
from enum import Enum
from time import monotonic, perf_counter

from slotwise.schemas.generator import EngineConfig
from slotwise.services.fitness import evaluate_fitness
from slotwise.services.genome import Individual
from slotwise.services.operators import (
    build_initial_population,
    mutate,
    resolve_candidates,
    tournament_select,
    uniform_crossover,
)
from slotwise.services.snapshot import Snapshot
from slotwise.services.timeslots import SlotCatalog
from slotwise.services.validation import validate_inputs

logger = logging.getLogger(__name__)


class SearchState(str, Enum):
    INITIALIZED = "INITIALIZED"
    EVALUATING = "EVALUATING"
    BREEDING = "BREEDING"
    CONVERGED = "CONVERGED"
    EXHAUSTED = "EXHAUSTED"
    CANCELLED = "CANCELLED"


TERMINAL_STATES = frozenset({SearchState.CONVERGED, SearchState.EXHAUSTED, SearchState.CANCELLED})


@dataclass(frozen=True)
class GenerationReport:
    generation: int
    best_fitness: float
    average_fitness: float
    best_conflicts: int
    state: SearchState


@dataclass
class SearchResult:
    best: Individual
    state: SearchState
    generations: int
    history: list[GenerationReport] = field(default_factory=list)
    dropped_course_ids: tuple[str, ...] = ()
    runtime_ms: int = 0


class GeneticTimetableEngine:
    """Generational genetic search over one snapshot.

    Fitness for a generation is computed on a bounded thread pool (or an
    injected executor) and joined before sorting; selection, crossover and
    mutation run on the calling thread and are the only consumers of the
    run's random generator, so a fixed seed reproduces a run exactly.
    """

    def __init__(
        self,
        snapshot: Snapshot,
        config: EngineConfig,
        *,
        random_seed: int | None = None,
        on_generation: Callable[[GenerationReport], None] | None = None,
    ) -> None:
        validate_inputs(snapshot)
        self.snapshot = snapshot
        self.config = config
        self.seed = random_seed if random_seed is not None else config.random_seed
        self.random = random.Random(self.seed)
        self.catalog = SlotCatalog.from_config(config)
        self.on_generation = on_generation
        self.state = SearchState.INITIALIZED

        self.candidates, dropped = resolve_candidates(snapshot)
        self.dropped_course_ids = tuple(course.id for course in dropped)
        for course in dropped:
            logger.warning(
                "Skipping course %s (%s): teacher %s is not part of the snapshot",
                course.id,
                course.code,
                course.teacher_id,
            )

    @property
    def worker_count(self) -> int:
        workers = self.config.worker_count or os.cpu_count() or 1
        return max(1, min(workers, self.config.population_size))

    def _evaluate_population(self, population: list[Individual], executor: Executor) -> None:
        pending = [individual for individual in population if not individual.evaluated]
        if not pending:
            return
        # map() preserves order and list() is the barrier for the generation.
        results = list(executor.map(evaluate_fitness, pending, repeat(self.snapshot)))
        for individual, (fitness, conflicts) in zip(pending, results):
            individual.fitness = fitness
            individual.conflicts = conflicts

    def _breed(self, population: list[Individual]) -> list[Individual]:
        next_population = population[: self.config.elite_count]
        while len(next_population) < self.config.population_size:
            parent_a = tournament_select(population, self.random, self.config.tournament_size)
            parent_b = tournament_select(population, self.random, self.config.tournament_size)
            child = uniform_crossover(parent_a, parent_b, self.random)
            next_population.append(
                mutate(child, self.snapshot, self.catalog, self.random, self.config.mutation_rate)
            )
        return next_population

    def _resolve_deadline(self, deadline: float | None) -> float | None:
        timeout = self.config.generation_timeout_seconds
        if timeout is None:
            return deadline
        configured = monotonic() + timeout
        return configured if deadline is None else min(deadline, configured)

    @staticmethod
    def _should_stop(cancel_event: threading.Event | None, deadline: float | None) -> bool:
        if cancel_event is not None and cancel_event.is_set():
            return True
        return deadline is not None and monotonic() >= deadline

    def run(
        self,
        *,
        cancel_event: threading.Event | None = None,
        deadline: float | None = None,
        executor: Executor | None = None,
    ) -> SearchResult:
        """Evolve until convergence, budget exhaustion or cancellation.

        ``deadline`` is a ``time.monotonic()`` timestamp. Cancellation is only
        honoured between generations, so at least one generation is always
        evaluated and the best individual seen so far is returned.

        ``executor`` replaces the run's own thread pool and is left open; a
        ``ProcessPoolExecutor`` works because evaluation only ships the
        snapshot and individuals, all of which pickle.
        """
        start = perf_counter()
        deadline = self._resolve_deadline(deadline)
        population = build_initial_population(
            self.candidates,
            self.snapshot.rooms,
            self.catalog,
            self.config.population_size,
            self.random,
        )
        self.state = SearchState.INITIALIZED
        logger.info(
            "Genetic search start courses=%d population=%d generations=%d threshold=%.2f seed=%s workers=%d",
            len(self.candidates),
            self.config.population_size,
            self.config.max_generations,
            self.config.conflict_threshold,
            self.seed,
            self.worker_count,
        )

        best: Individual | None = None
        history: list[GenerationReport] = []
        generation = 0
        if executor is None:
            pool = ThreadPoolExecutor(max_workers=self.worker_count, thread_name_prefix="fitness")
        else:
            pool = nullcontext(executor)
        with pool as executor:
            while self.state not in TERMINAL_STATES:
                generation += 1
                self.state = SearchState.EVALUATING
                self._evaluate_population(population, executor)
                population.sort(key=lambda item: item.fitness, reverse=True)
                if best is None or population[0].fitness > best.fitness:
                    best = population[0]

                if best.fitness >= self.config.conflict_threshold:
                    self.state = SearchState.CONVERGED
                elif self._should_stop(cancel_event, deadline):
                    self.state = SearchState.CANCELLED
                    logger.warning("Genetic search cancelled after %d generation(s)", generation)
                elif generation >= self.config.max_generations:
                    self.state = SearchState.EXHAUSTED

                report = GenerationReport(
                    generation=generation,
                    best_fitness=best.fitness,
                    average_fitness=sum(item.fitness for item in population) / len(population),
                    best_conflicts=len(best.conflicts),
                    state=self.state,
                )
                history.append(report)
                logger.debug(
                    "Generation %d best=%.4f avg=%.4f conflicts=%d",
                    generation,
                    report.best_fitness,
                    report.average_fitness,
                    report.best_conflicts,
                )
                if self.on_generation is not None:
                    self.on_generation(report)

                if self.state not in TERMINAL_STATES:
                    self.state = SearchState.BREEDING
                    population = self._breed(population)

        runtime_ms = int((perf_counter() - start) * 1000)
        logger.info(
            "Genetic search finished state=%s generations=%d fitness=%.4f conflicts=%d runtime_ms=%d",
            self.state.value,
            generation,
            best.fitness,
            len(best.conflicts),
            runtime_ms,
        )
        return SearchResult(
            best=best,
            state=self.state,
            generations=generation,
            history=history,
            dropped_course_ids=self.dropped_course_ids,
            runtime_ms=runtime_ms,
        )
