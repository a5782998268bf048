from __future__ import annotations

import re
from dataclasses import dataclass

from domain.exceptions import ValidationError

_MOBILE_RE = re.compile(r"^[6-9][0-9]{9}$")


@dataclass(frozen=True)
class FlowId:
    value: str

    def __post_init__(self) -> None:
        if not self.value or not self.value.strip():
            raise ValidationError("Flow id must not be empty")


@dataclass(frozen=True)
class OwnerKey:
    """Opaque user key. The app identifies users by their mobile number."""

    value: str

    def __post_init__(self) -> None:
        if not _MOBILE_RE.match(self.value or ""):
            raise ValidationError(
                "Please enter a valid 10-digit mobile number starting with 6, 7, 8, or 9."
            )

    @classmethod
    def from_phone(cls, raw: str) -> "OwnerKey":
        return cls(re.sub(r"\D", "", raw or ""))
