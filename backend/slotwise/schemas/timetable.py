from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, field_validator

from slotwise.schemas.generator import TIME_PATTERN

ConflictType = Literal[
    "TEACHER_CONFLICT",
    "ROOM_CONFLICT",
    "EXISTING_CONFLICT",
    "WORKLOAD_EXCEEDED",
    "CAPACITY_EXCEEDED",
]
SuggestionType = Literal["ROOM_CHANGE", "TIME_CHANGE"]
RunStatus = Literal["SUCCESS", "FAILED", "CANCELLED"]


class GenerateTimetableRequest(BaseModel):
    semester: int = Field(ge=1, le=20)
    academicYear: str = Field(min_length=1, max_length=20)
    studentIds: list[str] | None = Field(default=None, max_length=10_000)
    teacherIds: list[str] | None = Field(default=None, max_length=2_000)
    courseIds: list[str] | None = Field(default=None, max_length=2_000)
    randomSeed: int | None = Field(default=None, ge=0, le=2_000_000_000)
    progressChannel: str | None = Field(default=None, min_length=1, max_length=100)

    @field_validator("academicYear")
    @classmethod
    def strip_academic_year(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("academicYear must not be blank")
        return stripped


class CoursePayload(BaseModel):
    id: str
    code: str
    name: str
    creditHours: int
    teacherId: str
    minStudents: int = 0
    maxStudents: int | None = None
    department: str | None = None
    tags: list[str] = Field(default_factory=list)


class TeacherPayload(BaseModel):
    id: str
    name: str
    department: str | None = None
    maxWorkload: float


class RoomPayload(BaseModel):
    id: str
    name: str
    capacity: int
    roomType: str
    building: str | None = None


class SlotPayload(BaseModel):
    courseId: str
    teacherId: str
    roomId: str
    dayOfWeek: int = Field(ge=1, le=7)
    startTime: str
    endTime: str
    creditHours: int

    @field_validator("startTime", "endTime")
    @classmethod
    def validate_time(cls, value: str) -> str:
        if not TIME_PATTERN.match(value):
            raise ValueError("Time must be in HH:MM 24-hour format")
        return value


class TimetableSlotPayload(SlotPayload):
    course: CoursePayload
    teacher: TeacherPayload
    room: RoomPayload


class ExistingEntryPayload(BaseModel):
    id: str
    courseId: str | None = None
    teacherId: str
    roomId: str | None = None
    dayOfWeek: int
    startTime: str
    endTime: str


class ConflictPayload(BaseModel):
    type: ConflictType
    severity: float
    description: str
    slots: list[SlotPayload] = Field(default_factory=list)
    existing: ExistingEntryPayload | None = None
    teacherId: str | None = None
    currentWorkload: float | None = None
    maxWorkload: float | None = None
    courseId: str | None = None
    roomId: str | None = None


class TimeAlternative(BaseModel):
    dayOfWeek: int
    startTime: str
    endTime: str


class SuggestionPayload(BaseModel):
    type: SuggestionType
    slot: SlotPayload
    reason: str
    suggestedRoom: RoomPayload | None = None
    alternatives: list[TimeAlternative] = Field(default_factory=list)


class TimetableArtifact(BaseModel):
    semester: int
    academicYear: str
    slots: list[TimetableSlotPayload] = Field(default_factory=list)
    conflicts: list[ConflictPayload] = Field(default_factory=list)
    suggestions: list[SuggestionPayload] = Field(default_factory=list)
    fitness: float


class GenerateTimetableResponse(BaseModel):
    success: bool
    timetable: TimetableArtifact
    conflicts: list[ConflictPayload] = Field(default_factory=list)
    suggestions: list[SuggestionPayload] = Field(default_factory=list)
    executionTimeMs: int = Field(ge=0)
    status: RunStatus = "SUCCESS"
    generations: int = Field(default=0, ge=0)
    cached: bool = False
