from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class HttpResponse:
    status: int
    url: str
    text: str
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


class HttpClientPort(ABC):
    @abstractmethod
    def request(
        self,
        method: str,
        url: str,
        json_body: Optional[Any] = None,
        params: Optional[Dict[str, str]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> HttpResponse:
        """Raises on transport failure (connection error, timeout)."""
        ...
