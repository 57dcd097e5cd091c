import os
from typing import Literal, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

ENV_PREFIX = "DREAM_JOURNAL_"

ENV_ALIASES = {
    "allow_nltk_download": "NLTK_DOWNLOAD",
}


class Settings(BaseModel):
    """Runtime configuration, read from the environment (and a .env file)."""

    strategy: Literal["auto", "template", "heuristic"] = Field(
        default="auto",
        description="narrative strategy; 'auto' picks heuristic when a sentiment scorer is available",
    )
    generation_delay: float = Field(default=1.5, ge=0, le=10, description="seconds before a generated text is delivered")
    random_seed: Optional[int] = None
    allow_nltk_download: bool = True
    store_path: Optional[str] = Field(default=None, description="JSON file for persistence; in-memory when unset")
    notifier: Literal["apscheduler", "memory"] = "apscheduler"
    notifications_granted: bool = True
    timezone: Optional[str] = None
    log_level: str = "INFO"
    log_file: Optional[str] = None

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return value.upper()

    @field_validator("store_path", "timezone", "log_file")
    @classmethod
    def _blank_is_none(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not value.strip():
            return None
        return value

    @classmethod
    def from_env(cls, dotenv: bool = True) -> "Settings":
        if dotenv:
            load_dotenv()

        values = {}
        for name in cls.model_fields:
            raw = os.getenv(ENV_PREFIX + ENV_ALIASES.get(name, name.upper()))
            if raw:
                values[name] = raw

        return cls(**values)
