"""Settings for the MPK and SIMS clients (pydantic-settings).

Every value can come from `WROCLAW_TRANSIT_*` environment variables, the
project `.env` or the per-user `.env` written by `doctor setup-mpk`.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from dotenv import dotenv_values
from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SIMS_MIRRORS: tuple[str, ...] = (
    "https://api.dla.sims.pl",
    "https://api.dlugoleka.sims.pl",
    "https://api.dlugoleka.mp.sims.pl",
)

APP_DIR_NAME = "wroclaw-transit"


def get_user_config_dir() -> Path:
    """Per-user config directory (`%APPDATA%`, `~/Library/Application Support`, XDG)."""

    home = Path.home()
    if sys.platform.startswith("win"):
        root = Path(os.environ.get("APPDATA") or home)
    elif sys.platform == "darwin":
        root = home / "Library" / "Application Support"
    else:
        root = Path(os.environ.get("XDG_CONFIG_HOME") or home / ".config")
    return root / APP_DIR_NAME


def get_user_env_file() -> Path:
    return get_user_config_dir() / ".env"


def write_user_env_vars(values: dict[str, str], *, env_path: Path | None = None) -> Path:
    """Merge `values` into the user's `.env` (sorted keys, existing entries kept)."""

    env_path = env_path or get_user_env_file()
    env_path.parent.mkdir(parents=True, exist_ok=True)

    merged: dict[str, str] = {}
    if env_path.exists():
        merged.update({key: value for key, value in dotenv_values(env_path).items() if value is not None})
    merged.update({key: value for key, value in values.items() if value is not None})

    body = "".join(f"{key}={merged[key]}\n" for key in sorted(merged))
    env_path.write_text(f"# {APP_DIR_NAME} user config (.env)\n{body}", encoding="utf-8")
    return env_path


class AppSettings(BaseSettings):
    """Central application settings.

    Hosts and credentials live here instead of module constants so that two
    clients built from different settings never share state.
    """

    model_config = SettingsConfigDict(
        env_prefix="WROCLAW_TRANSIT_",
        extra="ignore",
        case_sensitive=False,
        # Order: project first (dev), then the user's global config.
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
    )

    http_timeout_seconds: float = Field(
        default=20.0,
        gt=0,
        description="Per-request timeout (seconds). A timed-out mirror is a per-host error.",
    )
    user_agent: str = Field(
        default="wroclaw-transit/0.1",
        min_length=1,
        description="User-Agent sent to every upstream.",
    )

    mpk_base_url: str = Field(
        default="https://impk.mpk.wroc.pl:8088",
        min_length=8,
        description="Base URL of the digest-authenticated MPK Wrocław service.",
    )
    mpk_path: str = Field(
        default="mobile",
        min_length=1,
        description="Path of the MPK `function=` endpoint.",
    )
    mpk_username: str = Field(
        default="android-mpk",
        min_length=1,
        description="Digest username for the MPK service.",
    )
    mpk_password: SecretStr = Field(
        default=SecretStr("g5crehAfUCh4Wust"),
        description="Digest secret for the MPK service.",
    )
    mpk_positions_lookback_seconds: int = Field(
        default=10,
        ge=0,
        le=3600,
        description="How far back `getPositions` asks for vehicle positions.",
    )
    mpk_timezone: str = Field(
        default="Europe/Warsaw",
        min_length=1,
        description="Timezone used to format the `date` parameter of `getPositions`.",
    )

    sims_mirrors: list[str] = Field(
        default_factory=lambda: list(DEFAULT_SIMS_MIRRORS),
        min_length=1,
        description="Mirror base URLs queried concurrently for SIMS endpoints.",
    )

    log_level: str = Field(
        default="WARNING",
        description="Log level for structlog output (DEBUG, INFO, WARNING, ERROR).",
    )
    log_json: bool = Field(
        default=False,
        description="Render logs as JSON lines instead of the console renderer.",
    )
