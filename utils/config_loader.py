#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Config Loader

- Optional YAML settings file for the uploader (batch size, pacing, limits, CORS)
- Fastly credential taken from the process environment at call time
- Redacts sensitive fields from logs (API keys, tokens, etc.)
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, Field

from utils.logger import get_logger

# Keys that should never be logged in plain text
SENSITIVE_KEYS = {"password", "api_key", "secret", "token", "auth", "key"}

CONFIG_PATH_ENV = "ACL_UPLOADER_CONFIG"
API_KEY_ENV_VARS = ("FASTLY_API_KEY", "FASTLY_API_TOKEN")


class UploaderSettings(BaseModel):
    api_base_url: str = Field("https://api.fastly.com", description="Fastly API base URL.")
    api_key: Optional[str] = Field(None, description="Fastly API credential.", repr=False)
    batch_size: int = Field(50, ge=1, description="Entries submitted concurrently per batch.")
    batch_pause_seconds: float = Field(
        1.0, ge=0, description="Pause between batches to stay under the upstream rate limit."
    )
    max_entries: int = Field(1000, ge=1, description="Maximum candidate lines per upload (ACL capacity).")
    request_timeout: int = Field(15, ge=1, description="Total timeout for one upstream call, in seconds.")
    default_comment: str = Field("Bulk upload", description="Comment used when none is supplied.")
    log_level: str = Field("INFO")
    cors_origins: List[str] = Field(
        default_factory=lambda: ["http://localhost:3000", "http://127.0.0.1:3000"],
        description="Dashboard origins allowed to call the API.",
    )


def _redact_config(config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Recursively redact sensitive values in a config dict.
    """

    redacted = {}
    for k, v in config.items():
        if isinstance(v, dict):
            redacted[k] = _redact_config(v)
        elif isinstance(v, list):
            redacted[k] = [
                _redact_config(i) if isinstance(i, dict) else i for i in v
            ]
        else:
            if any(s in k.lower() for s in SENSITIVE_KEYS):
                redacted[k] = "***REDACTED***"
            else:
                redacted[k] = v
    return redacted


def load_config(path: str, logger: Optional[Any] = None) -> Dict[str, Any]:
    """
    Load a YAML config file with logging and redaction.

    Args:
        path: Path to config file
        logger: Optional logger; if None, uses default config logger

    Returns:
        Parsed configuration dict
    """
    log = logger or get_logger("config_loader", "INFO", "config_loader.log")

    config_path = Path(path)
    if not config_path.exists():
        log.error("Config file not found: %s", config_path)
        raise FileNotFoundError(f"Config file not found: {path}")

    try:
        with config_path.open("r", encoding="utf-8") as f:
            config = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        log.error("Failed to parse YAML config %s: %s", config_path, e, exc_info=True)
        raise

    if not isinstance(config, dict):
        raise ValueError(f"Config file {path} must contain a mapping at the top level")

    log.info("Loaded config file: %s", config_path)
    log.debug("Config contents (redacted): %s", _redact_config(config))
    return config


def api_key_from_env() -> Optional[str]:
    for env_var in API_KEY_ENV_VARS:
        value = os.getenv(env_var)
        if value:
            return value
    return None


def load_settings(path: Optional[str] = None, logger: Optional[Any] = None) -> UploaderSettings:
    """
    Build settings from an optional YAML file plus the environment.

    The credential always comes from the environment, read on every call,
    so a key rotated in the environment is picked up by the next request.
    """
    path = path or os.getenv(CONFIG_PATH_ENV)
    data: Dict[str, Any] = {}
    if path:
        data = load_config(path, logger)
        # The credential never comes from a file.
        data.pop("api_key", None)

    base_url = os.getenv("FASTLY_API_BASE_URL")
    if base_url:
        data["api_base_url"] = base_url

    data["api_key"] = api_key_from_env()
    return UploaderSettings(**data)
