from __future__ import annotations

import asyncio
import logging
from collections import OrderedDict, defaultdict

from anyio import from_thread
from fastapi import WebSocket

from slotwise.services.evolution_scheduler import GenerationReport

logger = logging.getLogger(__name__)

MAX_RETAINED_CHANNELS = 256


def report_to_event_payload(report: GenerationReport) -> dict:
    return {
        "event": "timetable.progress",
        "generation": report.generation,
        "bestFitness": report.best_fitness,
        "state": report.state.value,
    }


class ProgressHub:
    """Generation progress fan-out, one channel per synthesis run.

    The most recent report of each channel is retained (bounded to
    ``MAX_RETAINED_CHANNELS`` channels), so a subscriber joining mid-run or
    after the run finished starts from the current state.
    """

    def __init__(self, max_retained_channels: int = MAX_RETAINED_CHANNELS) -> None:
        self._subscribers: dict[str, set[WebSocket]] = defaultdict(set)
        self._latest: OrderedDict[str, dict] = OrderedDict()
        self._max_retained_channels = max_retained_channels
        self._lock = asyncio.Lock()

    async def connect(self, channel: str, websocket: WebSocket) -> None:
        await websocket.accept()
        async with self._lock:
            self._subscribers[channel].add(websocket)
            latest = self._latest.get(channel)
        await websocket.send_json({"event": "connected", "channel": channel})
        if latest is not None:
            await websocket.send_json(latest)

    async def disconnect(self, channel: str, websocket: WebSocket) -> None:
        async with self._lock:
            subscribers = self._subscribers.get(channel)
            if subscribers is None:
                return
            subscribers.discard(websocket)
            if not subscribers:
                del self._subscribers[channel]

    def latest(self, channel: str) -> dict | None:
        return self._latest.get(channel)

    async def publish_report(self, channel: str, report: GenerationReport) -> None:
        payload = report_to_event_payload(report)
        async with self._lock:
            self._latest[channel] = payload
            self._latest.move_to_end(channel)
            while len(self._latest) > self._max_retained_channels:
                self._latest.popitem(last=False)
            subscribers = list(self._subscribers.get(channel, ()))

        failed = [websocket for websocket in subscribers if not await self._deliver(websocket, payload)]
        if not failed:
            return
        async with self._lock:
            remaining = self._subscribers.get(channel)
            if remaining is not None:
                remaining.difference_update(failed)
                if not remaining:
                    del self._subscribers[channel]
        logger.debug("Dropped %d unreachable progress subscriber(s) on channel %s", len(failed), channel)

    @staticmethod
    async def _deliver(websocket: WebSocket, payload: dict) -> bool:
        try:
            await websocket.send_json(payload)
        except Exception:  # pragma: no cover - network/runtime dependent
            return False
        return True


progress_hub = ProgressHub()


def publish_progress(channel: str, report: GenerationReport) -> None:
    try:
        from_thread.run(progress_hub.publish_report, channel, report)
    except Exception:  # pragma: no cover - runtime environment dependent
        logger.debug("Unable to push generation progress on channel %s", channel, exc_info=True)
