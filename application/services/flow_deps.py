from __future__ import annotations

from dataclasses import dataclass, field, replace

from application.ports.backend_gateway import BackendGatewayPort
from application.ports.flow_catalog import FlowCatalogPort
from application.ports.logger import LoggerPort
from application.ports.submission_scheduler import SubmissionSchedulerPort
from application.services.condition_evaluator import ConditionEvaluator
from application.services.prompt_renderer import PromptRenderer
from domain.validation import ValidatorRegistry


@dataclass(frozen=True)
class FlowDeps:
    gateway: BackendGatewayPort
    scheduler: SubmissionSchedulerPort
    catalog: FlowCatalogPort
    logger: LoggerPort
    validators: ValidatorRegistry = field(default_factory=ValidatorRegistry.default)
    renderer: PromptRenderer = field(default_factory=PromptRenderer)
    conditions: ConditionEvaluator = field(default_factory=ConditionEvaluator)

    def with_logger(self, logger: LoggerPort) -> "FlowDeps":
        return replace(self, logger=logger)
