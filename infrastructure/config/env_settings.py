# infrastructure/config/env_settings.py
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Union

from dotenv import dotenv_values

from application.ports.http_client import RequesterSettings


ENV_PREFIX = "STEPBOT_"
DEFAULT_ENV_PATH = Path(__file__).parent.parent.parent / ".env"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}
LOG_FORMATS = ("text", "json", "both")


@dataclass(frozen=True)
class EngineSettings:
    """
    Engine-wide defaults. A Request's own proxy/user agent/timeout win over
    these; these win over the transport's built-in defaults.
    """
    user_agent: Optional[str] = "stepbot/0.1"
    timeout_sec: float = 30.0
    proxy: Optional[str] = None
    compression: bool = True
    log_level: str = "INFO"
    log_format: str = "text"  # text: loguru, json: stdout lines, both

    def requester_settings(self) -> RequesterSettings:
        return RequesterSettings(
            proxy=self.proxy,
            user_agent=self.user_agent,
            compression=self.compression,
            timeout_sec=self.timeout_sec,
        )


def _read_env(env_path: Optional[Union[str, Path]]) -> Dict[str, str]:
    path = Path(env_path) if env_path is not None else DEFAULT_ENV_PATH
    values: Dict[str, str] = {}
    if path.exists():
        values = {k: v for k, v in dotenv_values(path).items() if v is not None}

    # .env の値を優先
    for key, value in os.environ.items():
        if key not in values:
            values[key] = value
    return values


def _parse_bool(key: str, raw: str) -> bool:
    lowered = raw.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise ValueError(f"{key} must be a boolean, got {raw!r}")


def _parse_timeout(key: str, raw: str) -> float:
    try:
        value = float(raw)
    except ValueError as exc:
        raise ValueError(f"{key} must be a number, got {raw!r}") from exc
    if value <= 0:
        raise ValueError(f"{key} must be positive, got {raw!r}")
    return value


def _parse_log_format(key: str, raw: str) -> str:
    value = raw.strip().lower()
    if value not in LOG_FORMATS:
        raise ValueError(f"{key} must be one of {LOG_FORMATS}, got {raw!r}")
    return value


def load_settings(env_path: Optional[Union[str, Path]] = None) -> EngineSettings:
    """
    Build EngineSettings from a .env file merged with the environment.

    Recognised keys: STEPBOT_USER_AGENT, STEPBOT_TIMEOUT_SEC, STEPBOT_PROXY,
    STEPBOT_COMPRESSION, STEPBOT_LOG_LEVEL, STEPBOT_LOG_FORMAT. Missing keys keep the defaults.
    """
    env = _read_env(env_path)
    defaults = EngineSettings()

    def get(name: str) -> Optional[str]:
        raw = env.get(ENV_PREFIX + name)
        if raw is None or raw.strip() == "":
            return None
        return raw.strip()

    timeout_raw = get("TIMEOUT_SEC")
    compression_raw = get("COMPRESSION")
    format_raw = get("LOG_FORMAT")

    return EngineSettings(
        user_agent=get("USER_AGENT") or defaults.user_agent,
        timeout_sec=(
            _parse_timeout(ENV_PREFIX + "TIMEOUT_SEC", timeout_raw)
            if timeout_raw is not None
            else defaults.timeout_sec
        ),
        proxy=get("PROXY"),
        compression=(
            _parse_bool(ENV_PREFIX + "COMPRESSION", compression_raw)
            if compression_raw is not None
            else defaults.compression
        ),
        log_level=(get("LOG_LEVEL") or defaults.log_level).upper(),
        log_format=(
            _parse_log_format(ENV_PREFIX + "LOG_FORMAT", format_raw)
            if format_raw is not None
            else defaults.log_format
        ),
    )
