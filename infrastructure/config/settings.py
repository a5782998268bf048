# infrastructure/config/settings.py
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Mapping, Optional

from dotenv import dotenv_values

PROJECT_ROOT = Path(__file__).parent.parent.parent
DEFAULT_BASE_URL = "https://fin-advisor-ashokkumar5.replit.app"


class ConfigurationError(Exception):
    pass


@dataclass(frozen=True)
class Settings:
    api_base_url: str = DEFAULT_BASE_URL
    http_timeout_sec: int = 20
    flows_dir: Path = PROJECT_ROOT / "flows"
    log_level: str = "INFO"
    submit_workers: int = 4

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        env_file: Optional[Path] = None,
    ) -> "Settings":
        """
        Process environment first; keys it lacks are taken from the ``.env``
        file at the project root (or ``env_file``).
        """
        values = _read_env(environ, env_file or PROJECT_ROOT / ".env")
        return cls(
            api_base_url=values.get("FINFLOW_API_BASE_URL") or DEFAULT_BASE_URL,
            http_timeout_sec=_positive_int(values, "FINFLOW_HTTP_TIMEOUT_SEC", 20),
            flows_dir=Path(values.get("FINFLOW_FLOWS_DIR") or PROJECT_ROOT / "flows"),
            log_level=(values.get("FINFLOW_LOG_LEVEL") or "INFO").upper(),
            submit_workers=_positive_int(values, "FINFLOW_SUBMIT_WORKERS", 4),
        )


def _read_env(environ: Optional[Mapping[str, str]], env_file: Path) -> Dict[str, str]:
    values: Dict[str, str] = {}
    if env_file.exists():
        values.update({k: v for k, v in dotenv_values(env_file).items() if v is not None})
    values.update(os.environ if environ is None else environ)
    return values


def _positive_int(values: Mapping[str, str], key: str, default: int) -> int:
    raw = values.get(key)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigurationError(f"{key} must be an integer, got {raw!r}") from None
    if value <= 0:
        raise ConfigurationError(f"{key} must be positive, got {value}")
    return value
