# infrastructure/logging/console_logger.py
from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict

from application.ports.logger import LoggerPort

_LEVELS = {"debug": 10, "info": 20, "warning": 30, "error": 40}


@dataclass(frozen=True)
class ConsoleLogger(LoggerPort):
    bound: Dict[str, Any] = field(default_factory=dict)
    min_level: str = "debug"

    def bind(self, **fields: Any) -> "ConsoleLogger":
        merged = dict(self.bound)
        merged.update(fields)
        return ConsoleLogger(bound=merged, min_level=self.min_level)

    def debug(self, event: str, **fields: Any) -> None:
        self._emit("debug", event, fields)

    def info(self, event: str, **fields: Any) -> None:
        self._emit("info", event, fields)

    def warning(self, event: str, **fields: Any) -> None:
        self._emit("warning", event, fields)

    def error(self, event: str, **fields: Any) -> None:
        self._emit("error", event, fields)

    def _emit(self, level: str, event: str, fields: Dict[str, Any]) -> None:
        if _LEVELS[level] < _LEVELS.get(self.min_level.lower(), 10):
            return
        payload = dict(self.bound)
        payload.update(fields)
        payload.setdefault("type", event)
        print(f"{event} {json.dumps(payload, ensure_ascii=False, default=str)}")
