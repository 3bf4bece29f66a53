from __future__ import annotations

import logging

from sqlalchemy import inspect

from slotwise.db.base import Base
from slotwise.db.session import engine

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS: dict[str, set[str]] = {
    "students": {"id", "student_code", "is_active"},
    "teachers": {"id", "teacher_code", "max_workload", "is_active"},
    "courses": {"id", "code", "credit_hours", "teacher_id", "max_students", "is_active"},
    "rooms": {"id", "room_code", "capacity", "room_type", "is_active"},
    "timetable_entries": {"id", "semester", "academic_year", "teacher_id", "day_of_week", "start_time", "end_time"},
    "ai_operation_logs": {"id", "operation", "status", "execution_time_ms"},
}


def _assert_required_columns() -> None:
    with engine.begin() as connection:
        inspector = inspect(connection)
        table_names = set(inspector.get_table_names())
        missing_tables = [name for name in REQUIRED_COLUMNS if name not in table_names]
        if missing_tables:
            raise RuntimeError(f"Missing required tables: {', '.join(sorted(missing_tables))}")

        missing_columns: list[str] = []
        for table_name, required in REQUIRED_COLUMNS.items():
            existing = {item["name"] for item in inspector.get_columns(table_name)}
            for column_name in sorted(required - existing):
                missing_columns.append(f"{table_name}.{column_name}")
        if missing_columns:
            raise RuntimeError(f"Missing required columns: {', '.join(missing_columns)}")


def ensure_runtime_schema() -> None:
    try:
        Base.metadata.create_all(bind=engine)
        _assert_required_columns()
    except Exception as exc:  # pragma: no cover - runtime environment dependent
        logger.exception("Runtime schema bootstrap failed")
        raise RuntimeError("Runtime schema bootstrap failed") from exc
