"""Config loader — reads YAML, applies UPDOWN_* env var overrides."""

from __future__ import annotations

import os
from pathlib import Path

import yaml

from updown_core.config.schema import AppConfig


def load_config(path: str | Path | None = None) -> AppConfig:
    """Load config from a YAML file, then apply env var overrides.

    If *path* is None or the file doesn't exist, returns defaults.

    Environment variable overrides:
        UPDOWN_DATABASE_URL      -> database.url (also enables the database)
        UPDOWN_LOG_LEVEL         -> logging.level
        UPDOWN_LOG_FORMAT        -> logging.format
        UPDOWN_EXECUTION_MODE    -> execution.mode ("mock" or "live")
        UPDOWN_MAX_POSITION_USD  -> sizing.max_position_usd
        UPDOWN_MIN_POSITION_USD  -> sizing.min_position_usd
    """
    data: dict = {}
    if path is not None:
        p = Path(path)
        if p.exists():
            with open(p) as f:
                data = yaml.safe_load(f) or {}

    db_url = os.environ.get("UPDOWN_DATABASE_URL")
    if db_url:
        db = data.setdefault("database", {})
        db["url"] = db_url
        db["enabled"] = True

    log_level = os.environ.get("UPDOWN_LOG_LEVEL")
    if log_level:
        data.setdefault("logging", {})["level"] = log_level

    log_format = os.environ.get("UPDOWN_LOG_FORMAT")
    if log_format:
        data.setdefault("logging", {})["format"] = log_format

    mode = os.environ.get("UPDOWN_EXECUTION_MODE")
    if mode:
        data.setdefault("execution", {})["mode"] = mode.lower()

    max_size = os.environ.get("UPDOWN_MAX_POSITION_USD")
    if max_size:
        data.setdefault("sizing", {})["max_position_usd"] = float(max_size)

    min_size = os.environ.get("UPDOWN_MIN_POSITION_USD")
    if min_size:
        data.setdefault("sizing", {})["min_position_usd"] = float(min_size)

    return AppConfig.model_validate(data)
