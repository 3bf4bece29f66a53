from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from time import perf_counter

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from slotwise.core.exceptions import AppError
from slotwise.models.ai_operation_log import OperationStatus
from slotwise.schemas.generator import EngineConfig
from slotwise.schemas.timetable import GenerateTimetableRequest, GenerateTimetableResponse
from slotwise.services.audit import log_operation
from slotwise.services.evolution_scheduler import GenerationReport, GeneticTimetableEngine, SearchState
from slotwise.services.formatter import format_timetable
from slotwise.services.progress_hub import publish_progress
from slotwise.services.snapshot import SnapshotLoader
from slotwise.services.suggestions import generate_suggestions

logger = logging.getLogger(__name__)

GENERATE_OPERATION = "GENERATE"

ProgressPublisher = Callable[[str, GenerationReport], None]


class TimetableGenerationService:
    """Runs one synthesis end to end and records it in the operation log.

    Every run leaves exactly one ``ai_operation_logs`` row: SUCCESS, CANCELLED
    (best result found before the stop signal) or FAILED (the error is
    re-raised after logging).
    """

    def __init__(
        self,
        db: Session,
        config: EngineConfig,
        *,
        progress_publisher: ProgressPublisher | None = publish_progress,
    ) -> None:
        self.db = db
        self.config = config
        self.progress_publisher = progress_publisher

    def _progress_callback(self, channel: str | None) -> Callable[[GenerationReport], None] | None:
        if channel is None or self.progress_publisher is None:
            return None
        publisher = self.progress_publisher

        def _publish(report: GenerationReport) -> None:
            publisher(channel, report)

        return _publish

    def generate(
        self,
        request: GenerateTimetableRequest,
        *,
        cancel_event: threading.Event | None = None,
        deadline: float | None = None,
    ) -> GenerateTimetableResponse:
        start = perf_counter()
        input_data = request.model_dump(mode="json")
        logger.info(
            "Timetable generation requested semester=%s academic_year=%s seed=%s",
            request.semester,
            request.academicYear,
            request.randomSeed,
        )
        try:
            snapshot = SnapshotLoader(self.db).load(request)
            engine = GeneticTimetableEngine(
                snapshot,
                self.config,
                random_seed=request.randomSeed,
                on_generation=self._progress_callback(request.progressChannel),
            )
            result = engine.run(cancel_event=cancel_event, deadline=deadline)
            suggestions = generate_suggestions(result.best, snapshot, engine.catalog)
            timetable = format_timetable(
                result.best,
                snapshot,
                suggestions,
                semester=request.semester,
                academic_year=request.academicYear,
            )
        except Exception as exc:
            duration_ms = int((perf_counter() - start) * 1000)
            if isinstance(exc, SQLAlchemyError):
                self.db.rollback()
            if isinstance(exc, AppError):
                logger.warning("Timetable generation failed after %d ms: %s", duration_ms, exc.message)
            else:
                logger.exception("Timetable generation failed after %d ms", duration_ms)
            self._record(input_data, None, duration_ms, OperationStatus.FAILED, str(exc))
            raise

        status = OperationStatus.CANCELLED if result.state is SearchState.CANCELLED else OperationStatus.SUCCESS
        duration_ms = int((perf_counter() - start) * 1000)
        response = GenerateTimetableResponse(
            success=True,
            timetable=timetable,
            conflicts=timetable.conflicts,
            suggestions=timetable.suggestions,
            executionTimeMs=duration_ms,
            status=status.value,
            generations=result.generations,
        )
        self._record(input_data, timetable.model_dump(mode="json"), duration_ms, status)
        logger.info(
            "Timetable generation %s slots=%d conflicts=%d generations=%d duration_ms=%d",
            status.value,
            len(timetable.slots),
            len(timetable.conflicts),
            result.generations,
            duration_ms,
        )
        return response

    def _record(
        self,
        input_data: dict,
        output_data: dict | None,
        duration_ms: int,
        status: OperationStatus,
        error_message: str | None = None,
    ) -> None:
        try:
            log_operation(
                self.db,
                operation=GENERATE_OPERATION,
                input_data=input_data,
                output_data=output_data,
                duration_ms=duration_ms,
                status=status,
                error_message=error_message,
            )
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Failed to record %s operation with status %s", GENERATE_OPERATION, status.value)
