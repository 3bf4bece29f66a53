from __future__ import annotations

from slotwise.core.exceptions import EmptyInputError
from slotwise.services.snapshot import Snapshot


def validate_inputs(snapshot: Snapshot) -> None:
    # Committed entries may legitimately be empty.
    for category, items in (
        ("students", snapshot.students),
        ("teachers", snapshot.teachers),
        ("courses", snapshot.courses),
        ("rooms", snapshot.rooms),
    ):
        if not items:
            raise EmptyInputError(category)
