"""Application configuration.

Configuration is loaded from environment variables. For local development, you can provide a
`.env` file and set `CONTENTLAB_ENV_FILE` to point to it.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """ContentLab pipeline settings.

    All fields are environment-configurable. Prefix is `CONTENTLAB_`.
    """

    model_config = SettingsConfigDict(
        env_prefix="CONTENTLAB_",
        env_file=None,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Core
    app_env: Literal["dev", "prod"] = Field(default="dev")
    log_level: str = Field(default="INFO")

    # Browser automation server driving the ContentLab page
    server_url: str = Field(default="http://localhost:3003")
    # Upper bound for one render or verify call; rendering needs settle time
    attempt_timeout_s: float = Field(default=5.0, gt=0.0, le=120.0)

    # Retry loop
    verify: bool = Field(default=False)
    max_retries: int = Field(default=3, ge=1, le=20)
    retry_delay_s: float = Field(default=1.0, ge=0.0, le=60.0)
    adjust_options_on_retry: bool = Field(default=True)

    # Artifacts
    save_results: bool = Field(default=True)
    artifacts_dir: Path = Field(default=Path("artifacts"))


def load_settings() -> Settings:
    """Load settings from env.

    Returns:
        Settings: Parsed settings.
    """

    env_file_override = os.getenv("CONTENTLAB_ENV_FILE")
    if env_file_override:
        env_path = Path(env_file_override)
        return Settings(_env_file=env_path)

    default_env = Path.cwd() / ".env"
    if default_env.exists():
        return Settings(_env_file=default_env)

    return Settings()
