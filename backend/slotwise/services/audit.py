from __future__ import annotations

from sqlalchemy.orm import Session

from slotwise.models.ai_operation_log import AiOperationLog, OperationStatus


def log_operation(
    db: Session,
    *,
    operation: str,
    input_data: dict,
    output_data: dict | None,
    duration_ms: int,
    status: OperationStatus,
    error_message: str | None = None,
) -> AiOperationLog:
    record = AiOperationLog(
        operation=operation,
        input_data=input_data,
        output_data=output_data,
        conflicts=(output_data or {}).get("conflicts", []),
        suggestions=(output_data or {}).get("suggestions", []),
        execution_time_ms=max(0, duration_ms),
        status=status,
        error_message=error_message,
    )
    db.add(record)
    return record
