import pytest

from conftest import make_course, make_existing, make_room, make_snapshot
from slotwise.core.exceptions import UnresolvedReferenceError
from slotwise.schemas.generator import EngineConfig
from slotwise.services.fitness import evaluate_fitness
from slotwise.services.formatter import describe_conflict, format_timetable
from slotwise.services.genome import Gene, Individual
from slotwise.services.suggestions import generate_suggestions
from slotwise.services.timeslots import SlotCatalog


def _gene(course_id="c1", teacher_id="t1", room_id="r1", start=540, end=630) -> Gene:
    return Gene(
        course_id=course_id,
        teacher_id=teacher_id,
        room_id=room_id,
        day_of_week=1,
        start=start,
        end=end,
        credit_hours=3,
    )


def test_slots_are_joined_with_their_records():
    snapshot = make_snapshot()
    individual = Individual(genes=[_gene()], fitness=1.0)

    artifact = format_timetable(individual, snapshot, [], semester=3, academic_year="2025-2026")

    assert artifact.semester == 3
    assert artifact.academicYear == "2025-2026"
    assert artifact.fitness == 1.0
    slot = artifact.slots[0]
    assert (slot.startTime, slot.endTime, slot.dayOfWeek) == ("09:00", "10:30", 1)
    assert slot.course.code == "C1"
    assert slot.teacher.name == "Teacher t1"
    assert slot.room.roomType == "CLASSROOM"


def test_conflicts_and_suggestions_are_rendered():
    snapshot = make_snapshot(courses=[make_course("c1"), make_course("c2")], rooms=[make_room("r1")])
    individual = Individual(genes=[_gene("c1"), _gene("c2")])
    individual.fitness, individual.conflicts = evaluate_fitness(individual, snapshot)
    suggestions = generate_suggestions(individual, snapshot, SlotCatalog.from_config(EngineConfig()))

    artifact = format_timetable(individual, snapshot, suggestions, semester=1, academic_year="2025-2026")

    assert [conflict.type for conflict in artifact.conflicts] == ["TEACHER_CONFLICT", "ROOM_CONFLICT"]
    assert artifact.conflicts[0].severity == 0.8
    assert artifact.conflicts[1].description == "Room overlap in Room r1 on Monday: C1 and C2"
    assert len(artifact.conflicts[0].slots) == 2
    assert artifact.suggestions[0].type == "TIME_CHANGE"
    assert artifact.suggestions[0].alternatives[0].startTime == "10:45"


def test_existing_conflict_description_names_the_entry():
    snapshot = make_snapshot(existing=[make_existing()])
    individual = Individual(genes=[_gene()])
    _, conflicts = evaluate_fitness(individual, snapshot)

    assert describe_conflict(conflicts[0], snapshot) == "C1 overlaps committed entry e1 for Teacher t1"


def test_unknown_teacher_cannot_be_formatted():
    snapshot = make_snapshot()
    individual = Individual(genes=[_gene(teacher_id="ghost")], fitness=0.5)

    with pytest.raises(UnresolvedReferenceError) as excinfo:
        format_timetable(individual, snapshot, [], semester=1, academic_year="2025-2026")
    assert excinfo.value.teacher_id == "ghost"
