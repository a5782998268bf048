# infrastructure/gateway/base_url_resolver.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict


@dataclass(frozen=True)
class BaseUrlResolver:
    base_url: str
    resource_paths: Dict[str, str] = field(default_factory=dict)

    def resolve_url(self, url: str) -> str:
        if url.startswith("http://") or url.startswith("https://"):
            return url
        return self.base_url.rstrip("/") + "/" + url.lstrip("/")

    def resource_url(self, resource: str) -> str:
        """A resource without an explicit path is posted to ``/<resource>``."""
        return self.resolve_url(self.resource_paths.get(resource, f"/{resource}"))
