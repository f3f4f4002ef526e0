from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="PATCH_GRAPH_", extra="ignore")

    debug: bool = False

    # Indentation for JSON written by the CLI; 0 writes compact output.
    json_indent: int = Field(default=2, ge=0)

    # MIDI channel given to new sequences.
    default_channel: int = Field(default=1, ge=0, le=15)


@lru_cache
def get_settings() -> Settings:
    return Settings()
