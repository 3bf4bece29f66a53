from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import cached_property

from sqlalchemy import select
from sqlalchemy.orm import Session

from slotwise.models.course import Course
from slotwise.models.room import Room
from slotwise.models.student import Student
from slotwise.models.teacher import Teacher
from slotwise.models.timetable_entry import TimetableEntry
from slotwise.schemas.generator import parse_time_to_minutes
from slotwise.schemas.timetable import GenerateTimetableRequest

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StudentRecord:
    id: str
    name: str
    department: str | None = None
    year: int = 1


@dataclass(frozen=True)
class TeacherRecord:
    id: str
    name: str
    max_workload: float
    department: str | None = None


@dataclass(frozen=True)
class CourseRecord:
    id: str
    code: str
    name: str
    credit_hours: int
    teacher_id: str
    min_students: int = 0
    max_students: int | None = None
    department: str | None = None
    tags: tuple[str, ...] = ()


@dataclass(frozen=True)
class RoomRecord:
    id: str
    name: str
    capacity: int
    room_type: str
    building: str | None = None


@dataclass(frozen=True)
class ExistingEntry:
    id: str
    teacher_id: str
    day_of_week: int
    start: int
    end: int
    course_id: str | None = None
    room_id: str | None = None


@dataclass(frozen=True)
class Snapshot:
    """Read-only inputs of one synthesis run."""

    students: tuple[StudentRecord, ...]
    teachers: tuple[TeacherRecord, ...]
    courses: tuple[CourseRecord, ...]
    rooms: tuple[RoomRecord, ...]
    existing_entries: tuple[ExistingEntry, ...] = ()

    @cached_property
    def teachers_by_id(self) -> dict[str, TeacherRecord]:
        return {item.id: item for item in self.teachers}

    @cached_property
    def courses_by_id(self) -> dict[str, CourseRecord]:
        return {item.id: item for item in self.courses}

    @cached_property
    def rooms_by_id(self) -> dict[str, RoomRecord]:
        return {item.id: item for item in self.rooms}


class SnapshotLoader:
    """Reads one term's scheduling inputs; omitted id lists mean every active record."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def load(self, request: GenerateTimetableRequest) -> Snapshot:
        snapshot = Snapshot(
            students=self._load_students(request.studentIds),
            teachers=self._load_teachers(request.teacherIds),
            courses=self._load_courses(request.courseIds),
            rooms=self._load_rooms(),
            existing_entries=self._load_existing_entries(request.semester, request.academicYear),
        )
        logger.info(
            "Loaded scheduling snapshot students=%d teachers=%d courses=%d rooms=%d existing=%d",
            len(snapshot.students),
            len(snapshot.teachers),
            len(snapshot.courses),
            len(snapshot.rooms),
            len(snapshot.existing_entries),
        )
        return snapshot

    def _load_students(self, ids: list[str] | None) -> tuple[StudentRecord, ...]:
        query = select(Student).order_by(Student.student_code)
        if ids is not None:
            query = query.where(Student.id.in_(ids))
        else:
            query = query.where(Student.is_active.is_(True))
        rows = self.db.execute(query).scalars().all()
        return tuple(
            StudentRecord(id=row.id, name=row.name, department=row.department, year=row.year)
            for row in rows
        )

    def _load_teachers(self, ids: list[str] | None) -> tuple[TeacherRecord, ...]:
        query = select(Teacher).order_by(Teacher.teacher_code)
        if ids is not None:
            query = query.where(Teacher.id.in_(ids))
        else:
            query = query.where(Teacher.is_active.is_(True))
        rows = self.db.execute(query).scalars().all()
        return tuple(
            TeacherRecord(
                id=row.id,
                name=row.name,
                max_workload=float(row.max_workload),
                department=row.department,
            )
            for row in rows
        )

    def _load_courses(self, ids: list[str] | None) -> tuple[CourseRecord, ...]:
        query = select(Course).order_by(Course.code)
        if ids is not None:
            query = query.where(Course.id.in_(ids))
        else:
            query = query.where(Course.is_active.is_(True))
        rows = self.db.execute(query).scalars().all()
        return tuple(
            CourseRecord(
                id=row.id,
                code=row.code,
                name=row.name,
                credit_hours=row.credit_hours,
                teacher_id=row.teacher_id,
                min_students=row.min_students,
                max_students=row.max_students,
                department=row.department,
                tags=tuple(row.multidisciplinary_tags or ()),
            )
            for row in rows
        )

    def _load_rooms(self) -> tuple[RoomRecord, ...]:
        rows = (
            self.db.execute(select(Room).where(Room.is_active.is_(True)).order_by(Room.room_code))
            .scalars()
            .all()
        )
        return tuple(
            RoomRecord(
                id=row.id,
                name=row.name,
                capacity=row.capacity,
                room_type=row.room_type.value,
                building=row.building,
            )
            for row in rows
        )

    def _load_existing_entries(self, semester: int, academic_year: str) -> tuple[ExistingEntry, ...]:
        rows = (
            self.db.execute(
                select(TimetableEntry)
                .where(
                    TimetableEntry.semester == semester,
                    TimetableEntry.academic_year == academic_year,
                    TimetableEntry.is_active.is_(True),
                )
                .order_by(TimetableEntry.day_of_week, TimetableEntry.start_time, TimetableEntry.id)
            )
            .scalars()
            .all()
        )
        return tuple(
            ExistingEntry(
                id=row.id,
                teacher_id=row.teacher_id,
                day_of_week=row.day_of_week,
                start=parse_time_to_minutes(row.start_time),
                end=parse_time_to_minutes(row.end_time),
                course_id=row.course_id,
                room_id=row.room_id,
            )
            for row in rows
        )
