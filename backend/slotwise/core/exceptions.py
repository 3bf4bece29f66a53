class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

class SchedulerError(AppError):
    """Raised when the scheduler encounters a logical error or invalid state."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=400, details=details)

class EmptyInputError(SchedulerError):
    """Raised when one of the snapshot collections needed for synthesis is empty."""
    def __init__(self, category: str):
        self.category = category
        super().__init__(f"No {category} found", details={"category": category})

class UnresolvedReferenceError(AppError):
    """Raised when a course points at a teacher (or a gene at a course) missing from the snapshot."""
    def __init__(self, course_id: str, teacher_id: str | None = None):
        self.course_id = course_id
        self.teacher_id = teacher_id
        if teacher_id is None:
            message = f"Course {course_id} is not part of the scheduling snapshot"
        else:
            message = f"Course {course_id} references teacher {teacher_id} which is not part of the scheduling snapshot"
        super().__init__(
            message,
            status_code=422,
            details={"course_id": course_id, "teacher_id": teacher_id},
        )

class ConfigurationError(AppError):
    """Raised when system configuration is invalid."""
    def __init__(self, message: str):
        super().__init__(message, status_code=500)
