from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
import os

import yaml
from dotenv import dotenv_values, find_dotenv

from .errors import ConfigError
from .models import SearchEnv

OUTPUT_FORMATS = ("verbose", "compact", "json")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


@dataclass
class PollPrefs:
    refresh_minutes: float = 1
    retry_seconds: float = 10
    busy_timeout_ms: int = 0

    @property
    def refresh_delay(self) -> timedelta:
        return timedelta(minutes=self.refresh_minutes)

    @property
    def retry_delay(self) -> timedelta:
        return timedelta(seconds=self.retry_seconds)


@dataclass
class Settings:
    poll: PollPrefs
    output: str
    profile: str | None
    collection_path: Path | None
    log_level: str

    home: Path | None
    data_home: Path | None

    @property
    def search_env(self) -> SearchEnv:
        return SearchEnv(home=self.home, data_home=self.data_home)


def default_config_path(get_env=os.getenv) -> Path | None:
    config_home = get_env("XDG_CONFIG_HOME") or ""
    if config_home:
        return Path(config_home) / "anki-status" / "config.yaml"
    home = get_env("HOME") or ""
    if home:
        return Path(home) / ".config" / "anki-status" / "config.yaml"
    return None


def validate(settings: Settings) -> Settings:
    if settings.poll.refresh_minutes <= 0:
        raise ConfigError("refresh_minutes must be positive")
    if settings.poll.retry_seconds <= 0:
        raise ConfigError("retry_seconds must be positive")
    if settings.poll.busy_timeout_ms < 0:
        raise ConfigError("busy_timeout_ms must not be negative")
    if settings.output not in OUTPUT_FORMATS:
        raise ConfigError(
            f"output must be one of {', '.join(OUTPUT_FORMATS)}, not {settings.output!r}"
        )
    if settings.log_level not in LOG_LEVELS:
        raise ConfigError(f"unknown log_level {settings.log_level!r}")
    return settings


def load_settings(config_path: str | Path | None = None) -> Settings:
    env_path = find_dotenv(usecwd=True)
    raw_env = dotenv_values(env_path) if env_path else {}
    env = {str(k).lstrip("\ufeff"): (v or "") for k, v in raw_env.items()}

    def get_env(name: str, default: str = "") -> str:
        # Process environment overrides .env file.
        v = os.getenv(name)
        if v is not None and v != "":
            return v.strip()
        return str(env.get(name, default)).replace("\ufeff", "").strip()

    if config_path is not None:
        config_file = Path(config_path)
        if not config_file.exists():
            raise ConfigError(f"config file not found: {config_file}")
    else:
        config_file = default_config_path(get_env)

    cfg = {}
    if config_file is not None and config_file.exists():
        try:
            with open(config_file, "r", encoding="utf-8") as f:
                cfg = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"cannot read {config_file}: {e}") from e
        if not isinstance(cfg, dict):
            raise ConfigError(f"{config_file} must contain a mapping")

    home = get_env("HOME")
    data_home = get_env("XDG_DATA_HOME")
    collection_path = cfg.get("collection_path")
    profile = cfg.get("profile")

    try:
        poll = PollPrefs(
            refresh_minutes=float(cfg.get("refresh_minutes", 1)),
            retry_seconds=float(cfg.get("retry_seconds", 10)),
            busy_timeout_ms=int(cfg.get("busy_timeout_ms", 0)),
        )
    except (TypeError, ValueError) as e:
        raise ConfigError(f"invalid poll settings in {config_file}: {e}") from e

    return validate(
        Settings(
            poll=poll,
            output=str(cfg.get("output", "verbose")),
            profile=str(profile) if profile is not None else None,
            collection_path=Path(collection_path).expanduser() if collection_path else None,
            log_level=str(cfg.get("log_level", "WARNING")).upper(),
            home=Path(home) if home else None,
            data_home=Path(data_home) if data_home else None,
        )
    )
