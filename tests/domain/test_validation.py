# tests/domain/test_validation.py
from datetime import date

import pytest

from domain.exceptions import FlowDefinitionError
from domain.money import STARTING_FRESH
from domain.steps.base import StepDescriptor, StepKind
from domain.validation import (
    Accepted,
    Rejected,
    ValidatorRegistry,
    parse_amount,
    toggle_selection,
)

TODAY = date(2024, 6, 1)


def _step(kind, **kwargs):
    return StepDescriptor(id=kwargs.pop("id", "s"), kind=kind, **kwargs)


@pytest.fixture
def registry():
    return ValidatorRegistry.default(today=lambda: TODAY)


class TestParseAmount:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("100000", 100000),
            ("1,00,000", 100000),
            ("₹ 5,000", 5000),
            ("-5", -5),
            ("abc", None),
            ("", None),
            (2500, 2500),
            (True, None),
        ],
    )
    def test_parse(self, raw, expected):
        assert parse_amount(raw) == expected


class TestAmounts:
    def test_target_amount_accepts_and_formats(self, registry):
        outcome = registry.validate(_step(StepKind.NUMERIC_AMOUNT), "250000")
        assert outcome == Accepted(250000, "₹2,50,000")

    @pytest.mark.parametrize("raw", ["-5", "0", "abc", ""])
    def test_target_amount_rejects(self, registry, raw):
        outcome = registry.validate(_step(StepKind.NUMERIC_AMOUNT), raw)
        assert outcome == Rejected("Please enter a valid amount")

    def test_income_has_its_own_message(self, registry):
        step = _step(StepKind.NUMERIC_AMOUNT, validation="income")
        assert registry.validate(step, "zero") == Rejected("Please enter a valid income amount")

    @pytest.mark.parametrize("raw", ["", "0", None])
    def test_savings_empty_or_zero_is_starting_fresh(self, registry, raw):
        step = _step(StepKind.NUMERIC_AMOUNT, validation="savings_amount")
        assert registry.validate(step, raw) == Accepted(0, STARTING_FRESH)

    def test_optional_numeric_step_defaults_to_savings_rule(self, registry):
        step = _step(StepKind.NUMERIC_AMOUNT, optional=True)
        assert registry.rule_for(step) == "savings_amount"
        assert registry.validate(step, "12000") == Accepted(12000, "₹12,000")

    def test_savings_rejects_negative(self, registry):
        step = _step(StepKind.NUMERIC_AMOUNT, validation="savings_amount")
        assert registry.validate(step, "-100") == Rejected("Please enter a valid amount (or leave empty for 0)")


class TestDates:
    def test_birth_date_accepts_past_iso_date(self, registry):
        step = _step(StepKind.DATE, validation="birth_date")
        assert registry.validate(step, "1995-06-15") == Accepted("1995-06-15", "1995-06-15")

    def test_birth_date_rejects_wrong_format(self, registry):
        step = _step(StepKind.DATE, validation="birth_date")
        outcome = registry.validate(step, "15/06/1995")
        assert outcome == Rejected("Please enter date in YYYY-MM-DD format (e.g., 1995-06-15)")

    @pytest.mark.parametrize("raw", ["1995-02-30", "2024-06-01", "2030-01-01"])
    def test_birth_date_rejects_impossible_or_future(self, registry, raw):
        step = _step(StepKind.DATE, validation="birth_date")
        assert registry.validate(step, raw) == Rejected("Please enter a valid birth date")

    def test_free_date_takes_any_text(self, registry):
        assert registry.validate(_step(StepKind.DATE), "Dec 2025") == Accepted("Dec 2025", "Dec 2025")

    def test_free_date_rejects_blank(self, registry):
        assert registry.validate(_step(StepKind.DATE), "  ") == Rejected("Please enter a date")


class TestPan:
    def test_lowercase_pan_is_uppercased(self, registry):
        step = _step(StepKind.PATTERN, validation="pan")
        assert registry.validate(step, " abcde1234f ") == Accepted("ABCDE1234F", "ABCDE1234F")

    @pytest.mark.parametrize("raw", ["ABCD1234F", "ABCDE12345", "12345ABCDE", ""])
    def test_bad_pan_rejected(self, registry, raw):
        step = _step(StepKind.PATTERN)
        assert registry.validate(step, raw) == Rejected("Please enter a valid PAN number (e.g., ABCDE1234F)")


class TestChoices:
    def test_single_choice_must_be_an_option(self, registry):
        step = _step(StepKind.CHOICE_SINGLE, options=("Low", "High"))
        assert registry.validate(step, "High") == Accepted("High", "High")
        assert registry.validate(step, "Medium") == Rejected("Please pick one of the options")

    def test_single_choice_with_custom_answers(self, registry):
        step = _step(StepKind.CHOICE_SINGLE, options=("Retirement",), allow_custom=True)
        assert registry.validate(step, "  Learn to fly ") == Accepted("Learn to fly", "Learn to fly")
        assert isinstance(registry.validate(step, "   "), Rejected)

    def test_multi_choice_joins_display(self, registry):
        step = _step(StepKind.CHOICE_MULTI, options=("A", "B", "C"))
        assert registry.validate(step, ["A", "C"]) == Accepted(("A", "C"), "A, C")

    def test_multi_choice_needs_at_least_one(self, registry):
        step = _step(StepKind.CHOICE_MULTI, options=("A",))
        assert registry.validate(step, []) == Rejected("Pick at least one option")

    def test_toggle_selection_is_an_involution(self):
        selection = ("A", "B")
        assert toggle_selection(toggle_selection(selection, "C"), "C") == selection
        assert toggle_selection(toggle_selection(selection, "A"), "A") == ("B", "A")


class TestRegistry:
    def test_free_text_rejects_blank(self, registry):
        outcome = registry.validate(_step(StepKind.FREE_TEXT), "   ")
        assert outcome == Rejected("Please type something so we can keep going.")

    def test_terminal_step_has_no_rule(self, registry):
        with pytest.raises(FlowDefinitionError):
            registry.rule_for(_step(StepKind.TERMINAL))

    def test_unknown_rule_raises(self, registry):
        with pytest.raises(FlowDefinitionError):
            registry.validate(_step(StepKind.FREE_TEXT, validation="nope"), "x")

    def test_register_custom_rule(self, registry):
        registry.register("always_no", lambda step, raw, today: Rejected("no"))
        step = _step(StepKind.FREE_TEXT, validation="always_no")
        assert registry.validate(step, "x") == Rejected("no")
