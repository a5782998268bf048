from __future__ import annotations

STARTING_FRESH = "Starting fresh! ₹0"


def group_indian(amount: int) -> str:
    """Digit grouping used by en-IN: last three digits, then pairs (1,00,000)."""
    sign = "-" if amount < 0 else ""
    digits = str(abs(amount))
    if len(digits) <= 3:
        return sign + digits
    head, tail = digits[:-3], digits[-3:]
    pairs = []
    while len(head) > 2:
        pairs.insert(0, head[-2:])
        head = head[:-2]
    if head:
        pairs.insert(0, head)
    return sign + ",".join(pairs + [tail])


def format_inr(amount: int) -> str:
    return f"₹{group_indian(amount)}"
