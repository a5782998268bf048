from __future__ import annotations

from typing import Any, Dict

SENSITIVE_KEYS = {"phone_number", "pan", "dob", "income", "owner_key"}


def mask_value(key: str, value: Any) -> Any:
    if key.lower() not in SENSITIVE_KEYS or value is None:
        return value
    text = str(value)
    if len(text) <= 4:
        return "****"
    return "*" * (len(text) - 4) + text[-4:]


def mask_payload(payload: Dict[str, Any]) -> Dict[str, Any]:
    return {
        k: mask_payload(v) if isinstance(v, dict) else mask_value(k, v)
        for k, v in payload.items()
    }
