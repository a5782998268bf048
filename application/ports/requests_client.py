from __future__ import annotations

import requests
from typing import Any, Dict, Optional

from application.ports.http_client import HttpClientPort, HttpResponse


class RequestsSessionHttpClient(HttpClientPort):
    def __init__(self, base_headers: Optional[Dict[str, str]] = None, timeout_sec: int = 20):
        self._session = requests.Session()
        self._base_headers = {"Content-Type": "application/json", "Accept": "application/json"}
        self._base_headers.update(base_headers or {})
        self._timeout = timeout_sec

    def request(
        self,
        method: str,
        url: str,
        json_body: Optional[Any] = None,
        params: Optional[Dict[str, str]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> HttpResponse:
        merged = dict(self._base_headers)
        if headers:
            merged.update(headers)

        resp = self._session.request(
            method=method.upper(),
            url=url,
            headers=merged,
            json=json_body,
            params=params,
            timeout=self._timeout,
        )

        return HttpResponse(
            status=resp.status_code,
            url=str(resp.url),
            text=resp.text,
            headers=dict(resp.headers),
        )

    def close(self) -> None:
        self._session.close()
