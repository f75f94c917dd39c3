import math
from functools import lru_cache
from typing import Annotated

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

DISABLED_FLAG_VALUES = frozenset({"false", "0", "no", "off"})


class Settings(BaseSettings):
    app_name: str = "Meeting Webhook Router"
    app_env: str = "development"
    app_version: str = "1.0.0"
    api_prefix: str = ""
    log_level: str = "INFO"
    clickup_api_token: str = ""
    clickup_api_base_url: str = "https://api.clickup.com/api/v2"
    clickup_api_timeout_seconds: float = 10.0
    clickup_meeting_routing_json: str = ""
    clickup_default_task_id: str = ""
    clickup_task_list_id: str = ""
    clickup_task_status: str = ""
    clickup_task_assignee_ids: Annotated[list[int], NoDecode] = []
    clickup_task_assignee_id: str = ""
    clickup_task_confidence_threshold: float = 0.5
    clickup_task_creation_enabled: bool = True
    clickup_task_description_max_chars: int = 50000
    groq_api_key: str = ""
    groq_api_base_url: str = "https://api.groq.com/openai/v1"
    groq_model: str = "llama-3.3-70b-versatile"
    groq_max_transcript_chars: int = 20000
    groq_api_timeout_seconds: float = 30.0

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        return str(value).strip().upper() or "INFO"

    @field_validator(
        "clickup_api_token",
        "clickup_default_task_id",
        "clickup_task_list_id",
        "clickup_task_status",
        "clickup_task_assignee_id",
        "groq_api_key",
        "groq_model",
        mode="before",
    )
    @classmethod
    def strip_text(cls, value: str | None) -> str:
        if value is None:
            return ""
        return str(value).strip()

    @field_validator("clickup_task_assignee_ids", mode="before")
    @classmethod
    def parse_assignee_ids(cls, value: str | list[int | str] | None) -> list[int]:
        if value is None:
            return []
        raw_values = value.split(",") if isinstance(value, str) else value
        return parse_positive_ids(raw_values)

    @field_validator("clickup_task_confidence_threshold", mode="before")
    @classmethod
    def normalize_confidence_threshold(cls, value: float | str | None) -> float:
        parsed_value = parse_finite_float(value)
        if parsed_value is None:
            return 0.5
        return clamp_unit_interval(parsed_value)

    @field_validator("clickup_task_creation_enabled", mode="before")
    @classmethod
    def parse_task_creation_enabled(cls, value: bool | str | None) -> bool:
        if isinstance(value, bool):
            return value
        if value is None:
            return True
        return str(value).strip().lower() not in DISABLED_FLAG_VALUES

    @field_validator("clickup_api_timeout_seconds", mode="before")
    @classmethod
    def normalize_clickup_timeout(cls, value: float | str) -> float:
        parsed_value = float(value)
        if parsed_value <= 0:
            return 10.0
        return parsed_value

    @field_validator("groq_api_timeout_seconds", mode="before")
    @classmethod
    def normalize_groq_timeout(cls, value: float | str) -> float:
        parsed_value = float(value)
        if parsed_value <= 0:
            return 30.0
        return parsed_value

    @field_validator("groq_max_transcript_chars", mode="before")
    @classmethod
    def normalize_groq_max_transcript_chars(cls, value: int | str) -> int:
        parsed_value = int(value)
        if parsed_value <= 0:
            return 20000
        return parsed_value

    @field_validator("clickup_task_description_max_chars", mode="before")
    @classmethod
    def normalize_description_max_chars(cls, value: int | str) -> int:
        parsed_value = int(value)
        if parsed_value <= 0:
            return 50000
        return parsed_value


def parse_finite_float(value: object) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        parsed_value = float(value)
    elif isinstance(value, str):
        cleaned = value.strip()
        if not cleaned:
            return None
        try:
            parsed_value = float(cleaned)
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(parsed_value):
        return None
    return parsed_value


def clamp_unit_interval(value: float) -> float:
    return min(max(value, 0.0), 1.0)


def parse_positive_ids(raw_values: list[object] | tuple[object, ...]) -> list[int]:
    ids: list[int] = []
    for raw_value in raw_values:
        if isinstance(raw_value, bool):
            continue
        if isinstance(raw_value, int):
            parsed_id = raw_value
        elif isinstance(raw_value, float) and raw_value.is_integer():
            parsed_id = int(raw_value)
        elif isinstance(raw_value, str) and raw_value.strip().isdigit():
            parsed_id = int(raw_value.strip())
        else:
            continue
        if parsed_id > 0:
            ids.append(parsed_id)
    return ids


@lru_cache
def get_settings() -> Settings:
    return Settings()
