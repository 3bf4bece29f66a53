from collections.abc import Generator
from functools import lru_cache

from sqlalchemy.orm import Session

from slotwise.core.config import get_settings
from slotwise.db.session import SessionLocal
from slotwise.schemas.generator import EngineConfig
from slotwise.services.result_cache import InMemoryResultCache


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_engine_config() -> EngineConfig:
    return get_settings().engine_config()


@lru_cache
def get_result_cache() -> InMemoryResultCache:
    return InMemoryResultCache(get_settings().result_cache_ttl_seconds)
