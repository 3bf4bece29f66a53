from __future__ import annotations

import json
import time
from threading import Lock
from typing import Any

from slotwise.schemas.timetable import GenerateTimetableRequest


def cache_key(request: GenerateTimetableRequest) -> str:
    selection = {
        name: value
        for name, value in (
            ("studentIds", request.studentIds),
            ("teacherIds", request.teacherIds),
            ("courseIds", request.courseIds),
            ("randomSeed", request.randomSeed),
        )
        if value is not None
    }
    return f"timetable:{request.semester}:{request.academicYear}:{json.dumps(selection, separators=(',', ':'))}"


class InMemoryResultCache:
    def __init__(self, ttl_seconds: int) -> None:
        self.ttl_seconds = ttl_seconds
        self._lock = Lock()
        self._entries: dict[str, tuple[float, Any]] = {}

    @property
    def enabled(self) -> bool:
        return self.ttl_seconds > 0

    def get(self, key: str) -> Any | None:
        if not self.enabled:
            return None
        now = time.time()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if expires_at <= now:
                self._entries.pop(key, None)
                return None
            return value

    def set(self, key: str, value: Any) -> None:
        if not self.enabled:
            return
        now = time.time()
        with self._lock:
            expired = [name for name, (expires_at, _) in self._entries.items() if expires_at <= now]
            for name in expired:
                del self._entries[name]
            self._entries[key] = (now + self.ttl_seconds, value)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
