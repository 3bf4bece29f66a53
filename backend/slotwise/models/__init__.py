from slotwise.models.ai_operation_log import AiOperationLog, OperationStatus  # noqa: F401
from slotwise.models.course import Course  # noqa: F401
from slotwise.models.room import Room, RoomType  # noqa: F401
from slotwise.models.student import Student  # noqa: F401
from slotwise.models.teacher import Teacher  # noqa: F401
from slotwise.models.timetable_entry import TimetableEntry  # noqa: F401
