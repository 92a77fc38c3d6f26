"""
Environment settings, with ``.env`` support.
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field


def _load_dotenv() -> None:
    cwd_env = Path.cwd() / ".env"
    if cwd_env.exists():
        load_dotenv(dotenv_path=cwd_env, override=True)


_load_dotenv()


class EnvironmentSettings(BaseModel):
    """
    Overrides read from environment variables.

    Attributes:
        log_level: Forces the logging level regardless of CLI flags.
        port: Default port for ``--serve``.
        workers: Default number of build worker threads.
    """
    log_level: Optional[str] = Field(default=None, alias="TAGSMITH_LOG_LEVEL")
    port: Optional[int] = Field(default=None, alias="TAGSMITH_PORT")
    workers: Optional[int] = Field(default=None, alias="TAGSMITH_WORKERS")

    model_config = {
        "populate_by_name": True,
    }


@lru_cache(maxsize=1)
def get_settings() -> EnvironmentSettings:
    """
    Load settings from environment/.env exactly once.
    """
    values = {field.alias: os.getenv(field.alias) for field in EnvironmentSettings.model_fields.values()}
    return EnvironmentSettings(**{key: value for key, value in values.items() if value})
