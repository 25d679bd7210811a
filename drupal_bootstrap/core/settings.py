from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class RunOptions(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="DRUPAL_BOOTSTRAP_", case_sensitive=False)

    root: Path = Field(default_factory=Path.cwd)
    debug: bool = False
    force: bool = False
    verbose: bool = False
    is_test: bool = False
    color: bool = True
