from __future__ import annotations

from typing import Any, List, Tuple

from application.ports.backend_gateway import BackendGatewayPort, HttpReply
from application.ports.logger import LoggerPort
from application.services.prompt_renderer import PromptRenderer, RenderSources
from domain.step_store import StepDefinitionStore
from domain.steps.base import StepDescriptor


class OptionLoader:
    """
    Fills a choice step's options from the backend. Any failure falls back to
    the step's default options; the user is never blocked on a fetch.
    """

    def __init__(self, gateway: BackendGatewayPort, renderer: PromptRenderer | None = None):
        self._gateway = gateway
        self._renderer = renderer or PromptRenderer()

    def load(
        self,
        store: StepDefinitionStore,
        step: StepDescriptor,
        src: RenderSources,
        logger: LoggerPort,
    ) -> Tuple[str, ...]:
        source = step.options_source
        if source is None:
            return store.get_step(step.id).options

        try:
            if source.kind == "suggestions":
                fetched = self._gateway.fetch_options(source.key)
            elif source.kind == "follow_up":
                fetched = self._from_follow_up(source.key, self._renderer.render(source.ref or "", src))
            else:
                raise ValueError(f"Unknown option source: {source.kind}")
        except Exception as e:
            logger.warning("options.fallback", step_id=step.id, source=source.kind, error=str(e))
            return store.inject_options(step.id, None)

        options = store.inject_options(step.id, fetched)
        logger.info("options.loaded", step_id=step.id, source=source.kind, count=len(options))
        return options

    def _from_follow_up(self, key: str, resource_id: str) -> List[str]:
        if not resource_id:
            raise ValueError("follow-up option source has no resource id")
        reply = self._gateway.fetch_follow_up(resource_id)
        if not isinstance(reply, HttpReply):
            raise ValueError(f"follow-up fetch failed: {getattr(reply, 'message', reply)}")
        if not reply.ok or not isinstance(reply.body, dict):
            raise ValueError(f"follow-up fetch returned status {reply.status}")
        return [self._label(item) for item in reply.body.get(key) or []]

    def _label(self, item: Any) -> str:
        if isinstance(item, dict):
            return str(item.get("name") or item.get("fund_name") or item.get("label") or "")
        return str(item)
