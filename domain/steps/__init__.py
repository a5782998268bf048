from domain.steps.base import (
    END_SENTINEL,
    PAN_PATTERN,
    NextRule,
    OptionSource,
    StepDescriptor,
    StepKind,
)

__all__ = [
    "END_SENTINEL",
    "PAN_PATTERN",
    "NextRule",
    "OptionSource",
    "StepDescriptor",
    "StepKind",
]
