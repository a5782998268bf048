"""
Answer validators.

Every validator is a pure function ``(step, raw_input, today) -> ValidationOutcome``.
Rejections are returned, never raised, so the caller can show the message
inline and keep the user on the same step.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, Dict, Optional, Tuple, Union

from domain.exceptions import FlowDefinitionError
from domain.money import STARTING_FRESH, format_inr
from domain.steps.base import StepDescriptor, StepKind

_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


@dataclass(frozen=True)
class Accepted:
    value: Any
    display: str = ""

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Rejected:
    message: str

    @property
    def ok(self) -> bool:
        return False


ValidationOutcome = Union[Accepted, Rejected]
Validator = Callable[[StepDescriptor, Any, date], ValidationOutcome]


def _is_blank(raw: Any) -> bool:
    return raw is None or (isinstance(raw, str) and not raw.strip())


def parse_amount(raw: Any) -> Optional[int]:
    """
    Strip formatting characters ("10,000", "₹ 5000") and parse. A leading
    minus sign is kept so negative amounts can be rejected.
    """
    if isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        return int(raw) if float(raw).is_integer() else None
    text = str(raw).strip()
    digits = re.sub(r"\D", "", text)
    if not digits:
        return None
    value = int(digits)
    return -value if text.startswith("-") else value


def toggle_selection(selection: Tuple[str, ...], option: str) -> Tuple[str, ...]:
    if option in selection:
        return tuple(o for o in selection if o != option)
    return selection + (option,)


def validate_welcome(step: StepDescriptor, raw: Any, today: date) -> ValidationOutcome:
    return Accepted(None, "" if raw is None else str(raw))


def validate_free_text(step: StepDescriptor, raw: Any, today: date) -> ValidationOutcome:
    if _is_blank(raw):
        return Rejected("Please type something so we can keep going.")
    text = str(raw).strip()
    return Accepted(text, text)


def _amount(raw: Any, message: str) -> Tuple[Optional[int], Optional[Rejected]]:
    value = parse_amount(raw)
    if value is None:
        return None, Rejected(message)
    return value, None


def validate_target_amount(step: StepDescriptor, raw: Any, today: date) -> ValidationOutcome:
    value, rejected = _amount(raw, "Please enter a valid amount")
    if rejected:
        return rejected
    if value <= 0:
        return Rejected("Please enter a valid amount")
    return Accepted(value, format_inr(value))


def validate_income(step: StepDescriptor, raw: Any, today: date) -> ValidationOutcome:
    value, rejected = _amount(raw, "Please enter a valid income amount")
    if rejected:
        return rejected
    if value <= 0:
        return Rejected("Please enter a valid income amount")
    return Accepted(value, format_inr(value))


def validate_savings_amount(step: StepDescriptor, raw: Any, today: date) -> ValidationOutcome:
    message = "Please enter a valid amount (or leave empty for 0)"
    if _is_blank(raw):
        return Accepted(0, STARTING_FRESH)
    value, rejected = _amount(raw, message)
    if rejected:
        return rejected
    if value < 0:
        return Rejected(message)
    if value == 0:
        return Accepted(0, STARTING_FRESH)
    return Accepted(value, format_inr(value))


def validate_free_date(step: StepDescriptor, raw: Any, today: date) -> ValidationOutcome:
    if _is_blank(raw):
        return Rejected("Please enter a date")
    text = str(raw).strip()
    return Accepted(text, text)


def validate_birth_date(step: StepDescriptor, raw: Any, today: date) -> ValidationOutcome:
    text = "" if raw is None else str(raw).strip()
    if not text or not _ISO_DATE_RE.match(text):
        return Rejected("Please enter date in YYYY-MM-DD format (e.g., 1995-06-15)")
    try:
        parsed = date.fromisoformat(text)
    except ValueError:
        return Rejected("Please enter a valid birth date")
    if parsed >= today:
        return Rejected("Please enter a valid birth date")
    return Accepted(text, text)


def validate_pattern(step: StepDescriptor, raw: Any, today: date) -> ValidationOutcome:
    text = "" if raw is None else str(raw).strip().upper()
    if not text or not re.match(step.pattern, text):
        return Rejected("Please enter a valid PAN number (e.g., ABCDE1234F)")
    return Accepted(text, text)


def validate_choice_single(step: StepDescriptor, raw: Any, today: date) -> ValidationOutcome:
    text = "" if raw is None else str(raw)
    if text in step.options:
        return Accepted(text, text)
    if step.allow_custom and text.strip():
        return Accepted(text.strip(), text.strip())
    return Rejected("Please pick one of the options")


def validate_choice_multi(step: StepDescriptor, raw: Any, today: date) -> ValidationOutcome:
    if isinstance(raw, str):
        picked: Tuple[str, ...] = (raw,) if raw else ()
    else:
        picked = tuple(raw or ())
    if not picked:
        return Rejected("Pick at least one option")
    unknown = [p for p in picked if p not in step.options]
    if unknown:
        return Rejected("Please pick from the options shown")
    return Accepted(picked, ", ".join(picked))


_DEFAULT_RULES: Dict[StepKind, str] = {
    StepKind.WELCOME: "welcome",
    StepKind.CHOICE_SINGLE: "choice_single",
    StepKind.CHOICE_MULTI: "choice_multi",
    StepKind.FREE_TEXT: "free_text",
    StepKind.NUMERIC_AMOUNT: "target_amount",
    StepKind.DATE: "free_date",
    StepKind.PATTERN: "pattern",
}


class ValidatorRegistry:
    def __init__(self, validators: Dict[str, Validator], today: Callable[[], date] = date.today):
        self._validators = dict(validators)
        self._today = today

    def rule_for(self, step: StepDescriptor) -> str:
        if step.validation:
            return step.validation
        if step.kind == StepKind.NUMERIC_AMOUNT and step.optional:
            return "savings_amount"
        rule = _DEFAULT_RULES.get(step.kind)
        if rule is None:
            raise FlowDefinitionError(f"Step {step.id} ({step.kind.value}) takes no input")
        return rule

    def validate(self, step: StepDescriptor, raw: Any) -> ValidationOutcome:
        rule = self.rule_for(step)
        validator = self._validators.get(rule)
        if validator is None:
            raise FlowDefinitionError(f"No validator registered for rule: {rule} (step {step.id})")
        return validator(step, raw, self._today())

    def register(self, name: str, validator: Validator) -> None:
        self._validators[name] = validator

    @classmethod
    def default(cls, today: Callable[[], date] = date.today) -> "ValidatorRegistry":
        return cls(
            validators={
                "welcome": validate_welcome,
                "free_text": validate_free_text,
                "target_amount": validate_target_amount,
                "income": validate_income,
                "savings_amount": validate_savings_amount,
                "free_date": validate_free_date,
                "birth_date": validate_birth_date,
                "pattern": validate_pattern,
                "pan": validate_pattern,
                "choice_single": validate_choice_single,
                "choice_multi": validate_choice_multi,
            },
            today=today,
        )
