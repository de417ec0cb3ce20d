from functools import lru_cache
import json
from pathlib import Path

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


BACKEND_ENV_FILE = Path(__file__).resolve().parents[2] / ".env"


class Settings(BaseSettings):
    # Resolve to backend/.env so `uvicorn --app-dir backend` works from any cwd.
    model_config = SettingsConfigDict(
        env_file=str(BACKEND_ENV_FILE),
        env_file_encoding="utf-8",
        env_prefix="RESLOT_",
    )

    project_name: str = "Reslot API"
    api_prefix: str = "/api"

    work_days: list[str] = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday"]
    thursday_name: str = "Thursday"

    # Hours recorded in the occupancy tables.
    occupancy_first_hour: int = 6
    occupancy_last_hour: int = 20

    # Window offered to the slot search; end is exclusive.
    search_start_hour: int = 8
    search_end_hour: int = 18
    thursday_cutoff_hour: int = 14
    thursday_afternoon_penalty: int = 100

    default_times_per_week: int = 2
    default_hours_per_session: int = 2

    full_occupancy_hours: int = 8
    max_sessions: int = 64
    max_upload_bytes: int = 5_000_000

    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]

    @field_validator("cors_origins", "work_days", mode="before")
    @classmethod
    def split_list(cls, value: str | list[str]) -> list[str]:
        if isinstance(value, str):
            stripped = value.strip()
            if stripped.startswith("["):
                try:
                    parsed = json.loads(stripped)
                    if isinstance(parsed, list):
                        return [str(item).strip() for item in parsed if str(item).strip()]
                except json.JSONDecodeError:
                    pass
            return [item.strip() for item in value.split(",") if item.strip()]
        return value

    @model_validator(mode="after")
    def validate_windows(self) -> "Settings":
        if not self.work_days:
            raise ValueError("work_days must list at least one day")
        if len(set(self.work_days)) != len(self.work_days):
            raise ValueError("work_days must not repeat a day")
        if self.occupancy_first_hour > self.occupancy_last_hour:
            raise ValueError("occupancy_first_hour must not exceed occupancy_last_hour")
        if self.search_start_hour >= self.search_end_hour:
            raise ValueError("search_start_hour must be before search_end_hour")
        if self.default_times_per_week < 1 or self.default_hours_per_session < 1:
            raise ValueError("Default section settings must be at least 1")
        if self.full_occupancy_hours < 1:
            raise ValueError("full_occupancy_hours must be at least 1")
        return self

    @property
    def search_hours(self) -> list[int]:
        return list(range(self.search_start_hour, self.search_end_hour))

    @property
    def occupancy_hours(self) -> list[int]:
        return list(range(self.occupancy_first_hour, self.occupancy_last_hour + 1))


@lru_cache
def get_settings() -> Settings:
    return Settings()
