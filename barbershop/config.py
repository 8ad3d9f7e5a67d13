# barbershop/config.py

from functools import lru_cache
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parents[1]


class Settings(BaseSettings):
    database_url: str = "sqlite:///./barber.db"
    sql_echo: bool = False  # set to True to see SQL

    # Operating zone: a fixed offset, no DST (Bogota is UTC-05:00 all year)
    timezone_name: str = "America/Bogota"
    utc_offset_minutes: int = -300

    slot_granularity_minutes: int = 15
    # cancel/reschedule need more notice than this; 0 disables the check
    min_change_notice_minutes: int = 60

    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="BARBERSHOP_",
        env_file=BASE_DIR / ".env",
        extra="ignore",
    )

    @field_validator("slot_granularity_minutes")
    @classmethod
    def validate_granularity(cls, v: int) -> int:
        if v <= 0 or 60 % v != 0:
            raise ValueError(f"slot_granularity_minutes must divide 60 evenly, got {v}")
        return v

    @field_validator("utc_offset_minutes")
    @classmethod
    def validate_offset(cls, v: int) -> int:
        if not -14 * 60 <= v <= 14 * 60:
            raise ValueError(f"utc_offset_minutes out of range: {v}")
        return v

    @field_validator("min_change_notice_minutes")
    @classmethod
    def validate_notice(cls, v: int) -> int:
        if v < 0:
            raise ValueError("min_change_notice_minutes cannot be negative")
        return v


@lru_cache
def get_settings() -> Settings:
    return Settings()
