# infrastructure/gateway/http_backend_gateway.py
"""
BackendGatewayPort over the FinAdvisor HTTP API.

Transport problems come back as TransportFailure, server answers (any
status) as HttpReply. Interpreting a reply is the caller's job.
"""
from __future__ import annotations

import json
from typing import Any, Dict, List, Optional, Tuple

import requests

from application.ports.backend_gateway import (
    BackendGatewayPort,
    GatewayError,
    GatewayReply,
    HttpReply,
    TransportFailure,
)
from application.ports.http_client import HttpClientPort, HttpResponse
from application.ports.logger import LoggerPort
from infrastructure.gateway.base_url_resolver import BaseUrlResolver

# prompt key -> (path, list key in the response body)
DEFAULT_SUGGESTION_ROUTES: Dict[str, Tuple[str, str]] = {
    "goal_suggestions": ("/finadvisor/goal_suggesstion", "goals"),
}

ONBOARDING_STATUS_PATH = "/onboarding"
FOLLOW_UP_PATH = "/fund_recommendation/{resource_id}"


class HttpBackendGateway(BackendGatewayPort):
    def __init__(
        self,
        http: HttpClientPort,
        resolver: BaseUrlResolver,
        logger: LoggerPort,
        suggestion_routes: Optional[Dict[str, Tuple[str, str]]] = None,
    ):
        self._http = http
        self._resolver = resolver
        self._logger = logger
        self._suggestions = dict(DEFAULT_SUGGESTION_ROUTES)
        self._suggestions.update(suggestion_routes or {})

    def fetch_options(self, prompt_key: str) -> List[str]:
        route = self._suggestions.get(prompt_key)
        if route is None:
            raise GatewayError(f"No suggestion route for {prompt_key}")
        path, list_key = route

        reply = self._call("GET", self._resolver.resolve_url(path))
        if isinstance(reply, TransportFailure):
            raise GatewayError(reply.message)
        if not reply.ok:
            raise GatewayError(f"Suggestions returned status {reply.status}")
        if not isinstance(reply.body, dict) or not isinstance(reply.body.get(list_key), list):
            raise GatewayError(f"Suggestions response has no '{list_key}' list")
        return [str(item) for item in reply.body[list_key] if str(item).strip()]

    def create_resource(self, resource: str, payload: Dict[str, Any]) -> GatewayReply:
        return self._call("POST", self._resolver.resource_url(resource), json_body=payload)

    def fetch_follow_up(self, resource_id: str) -> GatewayReply:
        path = FOLLOW_UP_PATH.format(resource_id=resource_id)
        return self._call("GET", self._resolver.resolve_url(path))

    def check_onboarding_status(self, owner_key: str) -> GatewayReply:
        return self._call(
            "POST",
            self._resolver.resolve_url(ONBOARDING_STATUS_PATH),
            json_body={"phone_number": owner_key},
        )

    def _call(self, method: str, url: str, json_body: Optional[Any] = None) -> GatewayReply:
        self._logger.debug("http.request", method=method, url=url)
        try:
            resp = self._http.request(method, url, json_body=json_body)
        except requests.RequestException as e:
            self._logger.warning("http.transport_error", method=method, url=url, error=str(e))
            return TransportFailure(str(e))

        self._logger.debug("http.response", method=method, url=url, status=resp.status)
        return HttpReply(status=resp.status, body=self._parse(resp), text=resp.text)

    def _parse(self, resp: HttpResponse) -> Optional[Any]:
        if not resp.text:
            return None
        try:
            return json.loads(resp.text)
        except ValueError:
            return None
