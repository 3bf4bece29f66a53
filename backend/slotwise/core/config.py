from functools import lru_cache
import json
from pathlib import Path
from typing import Annotated

from pydantic import ValidationError, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from slotwise.core.exceptions import ConfigurationError
from slotwise.schemas.generator import DEFAULT_SCHOOL_DAYS, DEFAULT_TIME_SLOTS, EngineConfig


BACKEND_ENV_FILE = Path(__file__).resolve().parents[2] / ".env"


def _split_csv(value: str) -> list[str]:
    stripped = value.strip()
    if stripped.startswith("["):
        try:
            parsed = json.loads(stripped)
            if isinstance(parsed, list):
                return [str(item).strip() for item in parsed if str(item).strip()]
        except json.JSONDecodeError:
            pass
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings(BaseSettings):
    # Resolve to backend/.env so `uvicorn --app-dir backend` works from any cwd.
    model_config = SettingsConfigDict(env_file=str(BACKEND_ENV_FILE), env_file_encoding="utf-8")

    project_name: str = "Slotwise API"
    api_prefix: str = "/api"

    database_url: str = "sqlite+pysqlite:///./slotwise.db"

    # Genetic search knobs, read once and frozen into an EngineConfig.
    ai_max_generations: int = 100
    # Not consulted by the generation loop; ai_max_generations bounds it.
    ai_max_iterations: int = 1000
    ai_conflict_threshold: float = 0.8
    ai_population_size: int = 50
    ai_elite_fraction: float = 0.2
    ai_mutation_rate: float = 0.1
    ai_tournament_size: int = 3
    ai_random_seed: int | None = None
    ai_worker_count: int | None = None
    ai_generation_timeout_seconds: float | None = None
    ai_time_slots: Annotated[list[str], NoDecode] = [f"{start}-{end}" for start, end in DEFAULT_TIME_SLOTS]
    ai_school_days: Annotated[list[int], NoDecode] = list(DEFAULT_SCHOOL_DAYS)

    result_cache_ttl_seconds: int = 3600

    cors_origins: Annotated[list[str], NoDecode] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]

    @field_validator("cors_origins", "ai_time_slots", mode="before")
    @classmethod
    def split_string_lists(cls, value: str | list[str]) -> list[str]:
        if isinstance(value, str):
            return _split_csv(value)
        return value

    @field_validator("ai_school_days", mode="before")
    @classmethod
    def split_school_days(cls, value: str | int | list[int]) -> list[int]:
        if isinstance(value, int):
            return [value]
        if isinstance(value, str):
            return [int(item) for item in _split_csv(value)]
        return value

    def engine_config(self) -> EngineConfig:
        time_slots: list[tuple[str, str]] = []
        for item in self.ai_time_slots:
            start, _, end = item.partition("-")
            time_slots.append((start.strip(), end.strip()))
        try:
            return EngineConfig(
                population_size=self.ai_population_size,
                max_generations=self.ai_max_generations,
                max_iterations=self.ai_max_iterations,
                conflict_threshold=self.ai_conflict_threshold,
                elite_fraction=self.ai_elite_fraction,
                mutation_rate=self.ai_mutation_rate,
                tournament_size=self.ai_tournament_size,
                random_seed=self.ai_random_seed,
                worker_count=self.ai_worker_count,
                generation_timeout_seconds=self.ai_generation_timeout_seconds,
                time_slots=tuple(time_slots),
                school_days=tuple(self.ai_school_days),
            )
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid timetable engine configuration: {exc}") from exc


@lru_cache
def get_settings() -> Settings:
    return Settings()
