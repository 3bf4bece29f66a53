from __future__ import annotations

from slotwise.core.exceptions import UnresolvedReferenceError
from slotwise.schemas.timetable import (
    ConflictPayload,
    CoursePayload,
    ExistingEntryPayload,
    RoomPayload,
    SlotPayload,
    SuggestionPayload,
    TeacherPayload,
    TimeAlternative,
    TimetableArtifact,
    TimetableSlotPayload,
)
from slotwise.services.genome import Conflict, ConflictKind, Gene, Individual
from slotwise.services.snapshot import CourseRecord, ExistingEntry, RoomRecord, Snapshot, TeacherRecord
from slotwise.services.suggestions import Suggestion
from slotwise.services.timeslots import minutes_to_time

DAY_NAMES = {1: "Monday", 2: "Tuesday", 3: "Wednesday", 4: "Thursday", 5: "Friday", 6: "Saturday", 7: "Sunday"}


def course_payload(course: CourseRecord) -> CoursePayload:
    return CoursePayload(
        id=course.id,
        code=course.code,
        name=course.name,
        creditHours=course.credit_hours,
        teacherId=course.teacher_id,
        minStudents=course.min_students,
        maxStudents=course.max_students,
        department=course.department,
        tags=list(course.tags),
    )


def teacher_payload(teacher: TeacherRecord) -> TeacherPayload:
    return TeacherPayload(
        id=teacher.id,
        name=teacher.name,
        department=teacher.department,
        maxWorkload=teacher.max_workload,
    )


def room_payload(room: RoomRecord) -> RoomPayload:
    return RoomPayload(
        id=room.id,
        name=room.name,
        capacity=room.capacity,
        roomType=room.room_type,
        building=room.building,
    )


def slot_payload(gene: Gene) -> SlotPayload:
    return SlotPayload(
        courseId=gene.course_id,
        teacherId=gene.teacher_id,
        roomId=gene.room_id,
        dayOfWeek=gene.day_of_week,
        startTime=minutes_to_time(gene.start),
        endTime=minutes_to_time(gene.end),
        creditHours=gene.credit_hours,
    )


def existing_payload(entry: ExistingEntry) -> ExistingEntryPayload:
    return ExistingEntryPayload(
        id=entry.id,
        courseId=entry.course_id,
        teacherId=entry.teacher_id,
        roomId=entry.room_id,
        dayOfWeek=entry.day_of_week,
        startTime=minutes_to_time(entry.start),
        endTime=minutes_to_time(entry.end),
    )


def joined_slot_payload(gene: Gene, snapshot: Snapshot) -> TimetableSlotPayload:
    course = snapshot.courses_by_id.get(gene.course_id)
    if course is None:
        raise UnresolvedReferenceError(gene.course_id)
    teacher = snapshot.teachers_by_id.get(gene.teacher_id)
    if teacher is None:
        raise UnresolvedReferenceError(gene.course_id, gene.teacher_id)
    room = snapshot.rooms_by_id[gene.room_id]
    return TimetableSlotPayload(
        **slot_payload(gene).model_dump(),
        course=course_payload(course),
        teacher=teacher_payload(teacher),
        room=room_payload(room),
    )


def _label(mapping: dict, key: str | None, attribute: str) -> str:
    item = mapping.get(key)
    return getattr(item, attribute) if item is not None else str(key)


def describe_conflict(conflict: Conflict, snapshot: Snapshot) -> str:
    courses = snapshot.courses_by_id
    if conflict.kind is ConflictKind.TEACHER_CONFLICT:
        first, second = conflict.genes
        teacher = _label(snapshot.teachers_by_id, conflict.teacher_id, "name")
        return (
            f"Teacher overlap for {teacher} on {DAY_NAMES.get(first.day_of_week, first.day_of_week)}: "
            f"{_label(courses, first.course_id, 'code')} and {_label(courses, second.course_id, 'code')}"
        )
    if conflict.kind is ConflictKind.ROOM_CONFLICT:
        first, second = conflict.genes
        room = _label(snapshot.rooms_by_id, conflict.room_id, "name")
        return (
            f"Room overlap in {room} on {DAY_NAMES.get(first.day_of_week, first.day_of_week)}: "
            f"{_label(courses, first.course_id, 'code')} and {_label(courses, second.course_id, 'code')}"
        )
    if conflict.kind is ConflictKind.EXISTING_CONFLICT:
        gene = conflict.genes[0]
        teacher = _label(snapshot.teachers_by_id, conflict.teacher_id, "name")
        return (
            f"{_label(courses, gene.course_id, 'code')} overlaps committed entry {conflict.existing.id} "
            f"for {teacher}"
        )
    if conflict.kind is ConflictKind.WORKLOAD_EXCEEDED:
        teacher = _label(snapshot.teachers_by_id, conflict.teacher_id, "name")
        return f"Workload for {teacher} is {conflict.current_workload:g}h (max {conflict.max_workload:g}h)"
    course = courses.get(conflict.course_id)
    room = snapshot.rooms_by_id.get(conflict.room_id)
    return (
        f"Room {room.name if room else conflict.room_id} capacity ({room.capacity if room else 0}) "
        f"< {course.code if course else conflict.course_id} max students ({course.max_students if course else 0})"
    )


def conflict_payload(conflict: Conflict, snapshot: Snapshot) -> ConflictPayload:
    return ConflictPayload(
        type=conflict.kind.value,
        severity=conflict.severity,
        description=describe_conflict(conflict, snapshot),
        slots=[slot_payload(gene) for gene in conflict.genes],
        existing=existing_payload(conflict.existing) if conflict.existing is not None else None,
        teacherId=conflict.teacher_id,
        currentWorkload=conflict.current_workload,
        maxWorkload=conflict.max_workload,
        courseId=conflict.course_id,
        roomId=conflict.room_id,
    )


def suggestion_payload(suggestion: Suggestion) -> SuggestionPayload:
    return SuggestionPayload(
        type=suggestion.kind.value,
        slot=slot_payload(suggestion.gene),
        reason=suggestion.reason,
        suggestedRoom=room_payload(suggestion.suggested_room) if suggestion.suggested_room else None,
        alternatives=[
            TimeAlternative(
                dayOfWeek=option.day_of_week,
                startTime=option.slot.start_time,
                endTime=option.slot.end_time,
            )
            for option in suggestion.alternatives
        ],
    )


def format_timetable(
    individual: Individual,
    snapshot: Snapshot,
    suggestions: list[Suggestion],
    *,
    semester: int,
    academic_year: str,
) -> TimetableArtifact:
    return TimetableArtifact(
        semester=semester,
        academicYear=academic_year,
        slots=[joined_slot_payload(gene, snapshot) for gene in individual.genes],
        conflicts=[conflict_payload(conflict, snapshot) for conflict in individual.conflicts],
        suggestions=[suggestion_payload(item) for item in suggestions],
        fitness=individual.fitness or 0.0,
    )
