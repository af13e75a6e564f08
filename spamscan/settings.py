"""Runtime settings for spamscan.

Values come from the environment (``SPAMSCAN_*``). List values accept either
CSV (``spam,advertisement``) or a JSON array.
"""

from __future__ import annotations

import json
from functools import lru_cache
from typing import Any, List, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic_settings.sources.base import PydanticBaseSettingsSource
from pydantic_settings.sources.providers.env import EnvSettingsSource

FragmenterName = Literal["whitespace", "lines", "sentences", "paragraphs"]

DEFAULT_MARKERS: tuple[str, ...] = ("spam", "advertisement")
# Each symbol takes 10 ms to "process".
DEFAULT_DELAY_PER_SYMBOL_MS: float = 10.0


def _csv_to_list(value: str) -> List[str]:
    items = [part.strip() for part in value.split(",")]
    return [item for item in items if item]


def _json_or_csv_to_list(value: str) -> List[str]:
    text = value.strip()
    if not text:
        return []
    if text.startswith("["):
        try:
            decoded = json.loads(text)
        except (json.JSONDecodeError, TypeError, ValueError):
            return _csv_to_list(text)
        if isinstance(decoded, str):
            return _csv_to_list(decoded)
        if isinstance(decoded, (list, tuple, set)):
            result: List[str] = []
            for item in decoded:
                piece = str(item).strip()
                if piece:
                    result.append(piece)
            return result
        return []
    return _csv_to_list(text)


class _CsvFriendlyEnvSettingsSource(EnvSettingsSource):
    def decode_complex_value(self, field_name: str, field: Any, value: Any) -> Any:
        try:
            return super().decode_complex_value(field_name, field, value)
        except ValueError:
            return value


class DetectorSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="SPAMSCAN_", extra="ignore")

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        if isinstance(env_settings, EnvSettingsSource):
            env_settings = _CsvFriendlyEnvSettingsSource(
                settings_cls,
                case_sensitive=env_settings.case_sensitive,
                env_prefix=env_settings.env_prefix,
                env_nested_delimiter=env_settings.env_nested_delimiter,
                env_nested_max_split=env_settings.env_nested_max_split,
                env_ignore_empty=env_settings.env_ignore_empty,
                env_parse_none_str=env_settings.env_parse_none_str,
                env_parse_enums=env_settings.env_parse_enums,
            )
        return init_settings, env_settings, dotenv_settings, file_secret_settings

    markers: List[str] = Field(default_factory=lambda: list(DEFAULT_MARKERS))
    delay_per_symbol_ms: float = Field(
        DEFAULT_DELAY_PER_SYMBOL_MS,
        ge=0.0,
        le=10_000.0,
    )
    fragmenter: FragmenterName = "whitespace"
    log_level: str = "INFO"

    @field_validator("markers", mode="before")
    @classmethod
    def _parse_markers_csv(cls, value: object) -> object:
        if isinstance(value, str):
            return _json_or_csv_to_list(value)
        if isinstance(value, (list, set, tuple)):
            return [str(item).strip() for item in value if str(item).strip()]
        return value

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_level(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().upper() or "INFO"
        return value

    @property
    def delay_per_symbol_s(self) -> float:
        return self.delay_per_symbol_ms / 1000.0


@lru_cache(maxsize=1)
def get_settings() -> DetectorSettings:
    return DetectorSettings()


def reset_settings_cache() -> None:
    """Forget cached settings (tests change env between cases)."""
    get_settings.cache_clear()


__all__ = [
    "DEFAULT_DELAY_PER_SYMBOL_MS",
    "DEFAULT_MARKERS",
    "DetectorSettings",
    "FragmenterName",
    "get_settings",
    "reset_settings_cache",
]
