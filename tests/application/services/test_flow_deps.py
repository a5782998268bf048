# tests/application/services/test_flow_deps.py
from application.services.flow_deps import FlowDeps
from domain.validation import ValidatorRegistry
from fakes import DictCatalog, FakeGateway, ManualScheduler, RecordingLogger


def test_defaults_are_filled() -> None:
    deps = FlowDeps(
        gateway=FakeGateway(),
        scheduler=ManualScheduler(),
        catalog=DictCatalog(),
        logger=RecordingLogger(),
    )

    assert isinstance(deps.validators, ValidatorRegistry)
    assert deps.renderer is not None
    assert deps.conditions is not None


def test_with_logger_keeps_everything_else() -> None:
    gateway = FakeGateway()
    deps = FlowDeps(gateway=gateway, scheduler=ManualScheduler(), catalog=DictCatalog(), logger=RecordingLogger())
    bound = deps.logger.bind(session_id="s-9")

    copy = deps.with_logger(bound)

    assert copy.logger is bound
    assert copy.gateway is gateway
    assert copy.validators is deps.validators
    assert deps.logger is not bound
