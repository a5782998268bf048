from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict

from domain.ids import OwnerKey


@dataclass(frozen=True)
class SessionContext:
    owner_key: OwnerKey
    seed: Dict[str, Any] = field(default_factory=dict)

    def with_seed(self, **values: Any) -> "SessionContext":
        merged = dict(self.seed)
        merged.update(values)
        return SessionContext(owner_key=self.owner_key, seed=merged)
