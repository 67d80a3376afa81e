"""
burstcounter — Configuration System

All configuration is Pydantic-validated and loaded from:
1. config/default.yaml (or any YAML file passed to load_config)
2. Environment variables (overrides, BURSTCOUNTER_<SECTION>__<KEY>)

The counting windows are fixed constants and deliberately not configurable.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

# ─── Sub-configs ──────────────────────────────────────────────────


class CounterConfig(BaseModel):
    # Ticks per cycle. Host time is bucketed by ceiling division.
    cycle_length: int = Field(default=500, gt=0)
    output_dir: Path = Path(".")
    artifact_prefix: str = Field(default="bc", min_length=1)
    # False skips only the zero-gap pair instead of the whole pass.
    abort_pass_on_zero_gap: bool = True


class LoggingConfig(BaseModel):
    level: str = "INFO"
    format: str = "console"  # "console" | "json"


# ─── Root Configuration ──────────────────────────────────────────


class BurstCounterConfig(BaseSettings):
    """
    Root configuration. Loads from YAML, overridable by env vars.
    """

    model_config = SettingsConfigDict(
        env_prefix="BURSTCOUNTER_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    counter: CounterConfig = Field(default_factory=CounterConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Environment wins over values read from YAML (passed as init kwargs)
        return env_settings, init_settings, dotenv_settings, file_secret_settings


def load_config(config_path: str | Path | None = None) -> BurstCounterConfig:
    """
    Load configuration from YAML file, then apply environment variable overrides.

    A missing file is not an error: defaults (plus environment) apply.
    """
    raw: dict[str, Any] = {}

    if config_path:
        path = Path(config_path)
        if path.exists():
            with open(path) as f:
                loaded = yaml.safe_load(f) or {}
            if not isinstance(loaded, dict):
                raise ValueError(f"Config root must be a mapping: {path}")
            raw = loaded

    return BurstCounterConfig(**raw)
