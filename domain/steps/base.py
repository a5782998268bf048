from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional, Tuple

END_SENTINEL = "@end"

PAN_PATTERN = r"^[A-Z]{5}[0-9]{4}[A-Z]{1}$"


class StepKind(str, Enum):
    WELCOME = "welcome"
    CHOICE_SINGLE = "choice_single"
    CHOICE_MULTI = "choice_multi"
    FREE_TEXT = "free_text"
    NUMERIC_AMOUNT = "numeric_amount"
    DATE = "date"
    PATTERN = "pattern"
    TERMINAL = "terminal"

    @property
    def is_choice(self) -> bool:
        return self in (StepKind.CHOICE_SINGLE, StepKind.CHOICE_MULTI)

    @property
    def records_answer(self) -> bool:
        return self not in (StepKind.WELCOME, StepKind.TERMINAL)


@dataclass(frozen=True)
class NextRule:
    when_expr: Optional[str]  # None => else
    goto: str


@dataclass(frozen=True)
class OptionSource:
    kind: str           # "suggestions" | "follow_up"
    key: str
    ref: Optional[str] = None  # template resolving to the follow-up resource id


@dataclass(frozen=True)
class StepDescriptor:
    id: str
    kind: StepKind
    prompt: str = ""
    options: Tuple[str, ...] = ()
    validation: Optional[str] = None
    next_rules: Tuple[NextRule, ...] = ()
    default_options: Tuple[str, ...] = field(default=(), kw_only=True)
    options_source: Optional[OptionSource] = field(default=None, kw_only=True)
    allow_custom: bool = field(default=False, kw_only=True)
    pattern: str = field(default=PAN_PATTERN, kw_only=True)
    placeholder: str = field(default="", kw_only=True)
    optional: bool = field(default=False, kw_only=True)
    enabled: bool = field(default=True, kw_only=True)

    @property
    def is_linear(self) -> bool:
        return not self.next_rules

    def with_options(self, options: Tuple[str, ...]) -> "StepDescriptor":
        return replace(self, options=tuple(options))
