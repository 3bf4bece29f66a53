from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from sqlalchemy.orm import Session

from slotwise.api.deps import get_db, get_engine_config, get_result_cache
from slotwise.schemas.generator import EngineConfig
from slotwise.schemas.timetable import GenerateTimetableRequest, GenerateTimetableResponse
from slotwise.services.progress_hub import progress_hub
from slotwise.services.result_cache import InMemoryResultCache, cache_key
from slotwise.services.timetable_generation import TimetableGenerationService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/timetables/generate", response_model=GenerateTimetableResponse)
def generate_timetable(
    payload: GenerateTimetableRequest,
    db: Session = Depends(get_db),
    config: EngineConfig = Depends(get_engine_config),
    result_cache: InMemoryResultCache = Depends(get_result_cache),
) -> GenerateTimetableResponse:
    key = cache_key(payload)
    cached = result_cache.get(key)
    if cached is not None:
        logger.info("Serving cached timetable for %s", key)
        return cached.model_copy(update={"cached": True})

    response = TimetableGenerationService(db, config).generate(payload)
    if response.status == "SUCCESS":
        result_cache.set(key, response)
    return response


@router.websocket("/timetables/progress/{channel}")
async def timetable_progress_websocket(websocket: WebSocket, channel: str) -> None:
    try:
        await progress_hub.connect(channel, websocket)
        while True:
            message = await websocket.receive_text()
            if message.strip().lower() == "ping":
                await websocket.send_json({"event": "pong"})
    except WebSocketDisconnect:
        pass
    finally:
        await progress_hub.disconnect(channel, websocket)
