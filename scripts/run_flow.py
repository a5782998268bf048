#!/usr/bin/env python3
"""
Run a flow in the terminal against the configured backend

Usage:
  python scripts/run_flow.py --phone <mobile> [--flow <flow_id>] [--seed <json>]

Examples:
  python scripts/run_flow.py --phone 9876543210
  python scripts/run_flow.py --phone 9876543210 --flow create_goal
  python scripts/run_flow.py --phone 9876543210 --flow onboarding --seed '{"start_from": "risk"}'

Without --flow the onboarding status decides where the user starts.
"""
from __future__ import annotations

import argparse
import json
import sys
from typing import Optional

from application.engine.flow_interpreter import FlowInterpreter
from application.engine.flow_view import FlowView
from application.outcome import FatalFailure, RecoverableFailure, SubmissionOutcome, Success
from application.ports.presentation import PresentationSurfacePort
from application.ports.requests_client import RequestsSessionHttpClient
from application.services.entry_router import EntryRouter
from application.services.flow_deps import FlowDeps
from application.services.flow_driver import FlowDriver
from domain.exceptions import DomainError
from domain.flow_state import FlowStatus
from domain.ids import OwnerKey
from domain.session import SessionContext
from infrastructure.config.settings import Settings
from infrastructure.flows.base_loader import FlowLoadError
from infrastructure.flows.catalog import DirectoryFlowCatalog
from infrastructure.gateway.base_url_resolver import BaseUrlResolver
from infrastructure.gateway.http_backend_gateway import HttpBackendGateway
from infrastructure.logging.log_setup import setup_console_logging
from infrastructure.logging.loguru_logger import LoguruLogger
from infrastructure.scheduling.thread_pool_scheduler import ThreadPoolScheduler

DONE_WORDS = {"done", "ok", "next"}


class ConsoleSurface(PresentationSurfacePort):
    def __init__(self, out=None):
        self._out = out or sys.stdout
        self.view: Optional[FlowView] = None

    def render_prompt(self, view: FlowView) -> None:
        self.view = view
        self._print(f"\n🤖 {view.prompt}")
        if view.options_loading:
            self._print("   (loading suggestions...)")
        for i, option in enumerate(view.options, start=1):
            mark = "[x] " if option in view.selection else ""
            self._print(f"   {i}. {mark}{option}")
        if view.kind == "choice_multi":
            self._print("   (pick numbers, then type 'done')")
        elif view.allow_custom:
            self._print("   (or type your own)")
        elif view.placeholder:
            self._print(f"   ({view.placeholder})")

    def render_rejection(self, message: str) -> None:
        self._print(f"⚠️  {message}")

    def render_terminal_outcome(self, outcome: SubmissionOutcome) -> None:
        if isinstance(outcome, Success):
            self._print("✅ All set!")
        elif isinstance(outcome, RecoverableFailure):
            self._print(f"❌ {outcome.message}  [r]etry / [c]ancel")
        elif isinstance(outcome, FatalFailure):
            self._print(f"❌ {outcome.message}")

    def _print(self, text: str) -> None:
        print(text, file=self._out)


def _pick(view: Optional[FlowView], text: str) -> str:
    """A bare number picks the matching option."""
    if view and view.options and text.isdigit():
        idx = int(text) - 1
        if 0 <= idx < len(view.options):
            return view.options[idx]
    return text


def _drive(driver: FlowDriver, surface: ConsoleSurface, interpreter: FlowInterpreter) -> FlowStatus:
    while True:
        interpreter.wait(60)
        status = interpreter.status
        if status in (FlowStatus.SUCCEEDED, FlowStatus.FAILED, FlowStatus.ABANDONED):
            return status

        try:
            text = input("> ").strip()
        except EOFError:
            driver.on_cancel()
            return FlowStatus.ABANDONED

        if status == FlowStatus.AWAITING_RETRY:
            if text.lower().startswith("r"):
                driver.on_retry()
            elif text.lower().startswith("c"):
                driver.on_cancel()
            continue

        if surface.view and surface.view.kind == "choice_multi":
            if text.lower() in DONE_WORDS:
                driver.on_done()
            else:
                driver.on_toggle(_pick(surface.view, text))
            continue

        driver.on_user_input(_pick(surface.view, text))


def main() -> int:
    parser = argparse.ArgumentParser(description="Chat through a flow in the terminal")
    parser.add_argument("--phone", required=True, help="10-digit mobile number")
    parser.add_argument("--flow", help="flow id; omitted = decided by onboarding status")
    parser.add_argument("--seed", default="{}", help="JSON object of seed values")
    parser.add_argument("--api-base-url", help="override FINFLOW_API_BASE_URL")
    args = parser.parse_args()

    settings = Settings.from_env()
    setup_console_logging(settings.log_level)
    logger = LoguruLogger()

    http = RequestsSessionHttpClient(timeout_sec=settings.http_timeout_sec)
    gateway = HttpBackendGateway(http, BaseUrlResolver(args.api_base_url or settings.api_base_url), logger)
    scheduler = ThreadPoolScheduler(max_workers=settings.submit_workers)
    catalog = DirectoryFlowCatalog(settings.flows_dir)

    try:
        seed = json.loads(args.seed)
        if not isinstance(seed, dict):
            raise ValueError("--seed must be a JSON object")

        if args.flow:
            owner_key = OwnerKey.from_phone(args.phone)
            flow_id = args.flow
        else:
            decision = EntryRouter(gateway, logger).route(args.phone)
            if decision.onboarded:
                print("🎉 You're fully onboarded already.")
                return 0
            owner_key, flow_id = decision.owner_key, decision.flow_id
            seed = {**decision.seed, **seed}

        interpreter = FlowInterpreter(
            catalog.get(flow_id),
            SessionContext(owner_key=owner_key, seed=seed),
            FlowDeps(gateway=gateway, scheduler=scheduler, catalog=catalog, logger=logger),
        )
        surface = ConsoleSurface()
        driver = FlowDriver(interpreter, surface)
        driver.begin()
        status = _drive(driver, surface, interpreter)
    except (DomainError, FlowLoadError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
    finally:
        scheduler.shutdown(wait=False)
        http.close()

    return 0 if status == FlowStatus.SUCCEEDED else 1


if __name__ == "__main__":
    sys.exit(main())
