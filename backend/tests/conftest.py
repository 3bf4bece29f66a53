import os
import tempfile

# Point the app-level engine at a throwaway file before anything imports it.
os.environ.setdefault(
    "DATABASE_URL",
    f"sqlite+pysqlite:///{os.path.join(tempfile.gettempdir(), 'slotwise-tests.db')}",
)

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from slotwise import models  # noqa: F401
from slotwise.api.deps import get_db, get_engine_config, get_result_cache
from slotwise.db.base import Base
from slotwise.main import app
from slotwise.models.course import Course
from slotwise.models.room import Room, RoomType
from slotwise.models.student import Student
from slotwise.models.teacher import Teacher
from slotwise.schemas.generator import EngineConfig
from slotwise.services.result_cache import InMemoryResultCache
from slotwise.services.snapshot import (
    CourseRecord,
    ExistingEntry,
    RoomRecord,
    Snapshot,
    StudentRecord,
    TeacherRecord,
)


def make_teacher(teacher_id: str = "t1", max_workload: float = 40.0) -> TeacherRecord:
    return TeacherRecord(id=teacher_id, name=f"Teacher {teacher_id}", max_workload=max_workload)


def make_course(
    course_id: str,
    teacher_id: str = "t1",
    credit_hours: int = 3,
    max_students: int | None = None,
) -> CourseRecord:
    return CourseRecord(
        id=course_id,
        code=course_id.upper(),
        name=f"Course {course_id}",
        credit_hours=credit_hours,
        teacher_id=teacher_id,
        max_students=max_students,
    )


def make_room(room_id: str = "r1", capacity: int = 60, room_type: str = "CLASSROOM") -> RoomRecord:
    return RoomRecord(id=room_id, name=f"Room {room_id}", capacity=capacity, room_type=room_type)


def make_snapshot(
    *,
    teachers=None,
    courses=None,
    rooms=None,
    existing=(),
    students=None,
) -> Snapshot:
    return Snapshot(
        students=tuple(students if students is not None else [StudentRecord(id="s1", name="Student 1")]),
        teachers=tuple(teachers if teachers is not None else [make_teacher()]),
        courses=tuple(courses if courses is not None else [make_course("c1")]),
        rooms=tuple(rooms if rooms is not None else [make_room()]),
        existing_entries=tuple(existing),
    )


def make_existing(teacher_id: str = "t1", day: int = 1, start: int = 540, end: int = 630) -> ExistingEntry:
    return ExistingEntry(id="e1", teacher_id=teacher_id, day_of_week=day, start=start, end=end)


def seed_minimal_school(db) -> dict:
    """One active student, teacher, course and classroom."""
    teacher = Teacher(id="t1", teacher_code="T001", name="Dr. Rao", department="CSE", max_workload=40.0)
    student = Student(id="s1", student_code="S001", name="Asha", department="CSE", year=2, semester=3)
    course = Course(
        id="c1",
        code="CS201",
        name="Data Structures",
        credit_hours=3,
        department="CSE",
        teacher_id="t1",
        max_students=40,
    )
    room = Room(id="r1", room_code="A101", name="A-101", building="Block A", capacity=60, room_type=RoomType.CLASSROOM)
    db.add_all([teacher, student, course, room])
    db.commit()
    return {"teacher": teacher, "student": student, "course": course, "room": room}


@pytest.fixture()
def fast_config() -> EngineConfig:
    return EngineConfig(population_size=12, max_generations=8, worker_count=2, random_seed=7)


@pytest.fixture()
def db_engine():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(db_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine)


@pytest.fixture()
def db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def client(session_factory, fast_config):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    cache = InMemoryResultCache(ttl_seconds=3600)
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_engine_config] = lambda: fast_config
    app.dependency_overrides[get_result_cache] = lambda: cache

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
