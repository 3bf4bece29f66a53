from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import inspect, text

from slotwise.core.config import get_settings
from slotwise.core.exceptions import ConfigurationError
from slotwise.db.bootstrap import REQUIRED_COLUMNS
from slotwise.db.session import engine

router = APIRouter()


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def database_status() -> dict:
    """Connectivity plus the tables and columns the generator reads and writes."""
    missing_tables: list[str] = []
    missing_columns: dict[str, list[str]] = {}
    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
            inspector = inspect(connection)
            table_names = set(inspector.get_table_names())
            for table_name, columns in REQUIRED_COLUMNS.items():
                if table_name not in table_names:
                    missing_tables.append(table_name)
                    continue
                existing = {item["name"] for item in inspector.get_columns(table_name)}
                missing = sorted(columns - existing)
                if missing:
                    missing_columns[table_name] = missing
    except Exception as exc:  # pragma: no cover - environment dependent
        return {"ok": False, "schema_ok": False, "missing_tables": [], "missing_columns": {}, "error": str(exc)}

    return {
        "ok": True,
        "schema_ok": not missing_tables and not missing_columns,
        "missing_tables": missing_tables,
        "missing_columns": missing_columns,
        "error": None,
    }


def engine_status() -> dict:
    try:
        config = get_settings().engine_config()
    except ConfigurationError as exc:
        return {"ok": False, "error": exc.message}
    return {
        "ok": True,
        "population_size": config.population_size,
        "max_generations": config.max_generations,
        "periods_per_day": len(config.time_slots),
        "school_days": list(config.school_days),
        "error": None,
    }


@router.get("/health")
def health() -> dict:
    return {"status": "ok"}


@router.get("/health/live")
def health_live() -> dict:
    return {"status": "ok", "timestamp": _utc_now()}


@router.get("/health/ready")
def health_ready() -> JSONResponse:
    database = database_status()
    engine_config = engine_status()
    ready = database["ok"] and database["schema_ok"] and engine_config["ok"]
    payload = {
        "status": "ok" if ready else "degraded",
        "timestamp": _utc_now(),
        "database": database,
        "engine": engine_config,
    }
    return JSONResponse(status_code=200 if ready else 503, content=payload)
