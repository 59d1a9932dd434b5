# src/atlas_backflow/handlers/api.py
"""Handler da família API (REST + GraphQL) sobre httpx.

Verbos: get, post, put, patch, delete, graphql.

Cada verbo faz exatamente uma requisição HTTP, compara o status com o
esperado (`status`, default 200) e desembrulha o corpo da resposta:
`errors` não vazio → `data` → `result` → corpo bruto.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

import httpx

from atlas_backflow.core.config.settings import section
from atlas_backflow.core.exceptions import DispatchError, StatusMismatchError
from atlas_backflow.core.pipeline.handler import invoke_verb
from atlas_backflow.core.pipeline.types import OperationFamily


def _truthy(value: Any) -> bool:
    # containers vazios contam como presentes (campo existe na resposta)
    if value is None or value is False:
        return False
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value != 0
    if isinstance(value, str):
        return value != ""
    return True


def parse_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


def unwrap_body(body: Any) -> Any:
    """Prefere `errors` (não vazio), depois `data`, `result` e por fim o corpo bruto."""
    if not isinstance(body, Mapping):
        return body

    errors = body.get("errors")
    if isinstance(errors, list) and not errors:
        pass
    elif _truthy(errors):
        return errors

    if _truthy(body.get("data")):
        return body["data"]
    if _truthy(body.get("result")):
        return body["result"]
    return body


class ApiHandler:
    """Uma requisição HTTP por invocação de verbo."""

    family = OperationFamily.API.value
    verbs = frozenset({"get", "post", "put", "patch", "delete", "graphql"})

    def __init__(
        self,
        step: Mapping[str, Any],
        settings: Optional[Mapping[str, Any]] = None,
        *,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        cfg = section(settings, "api")
        self.header: Dict[str, Any] = dict(step.get("header") or cfg["default_headers"])
        self.body = step.get("body")
        self.endpoint: Optional[str] = step.get("end point")
        self.status = int(step.get("status") or 200)
        self.value_params = step.get("value_params") or ""
        self.timeout = float(cfg["timeout_seconds"])
        self._transport = transport

    def invoke(self, verb: str) -> Any:
        return invoke_verb(self, verb)

    def _client(self) -> httpx.Client:
        return httpx.Client(timeout=self.timeout, transport=self._transport)

    def _body_kwargs(self, body: Any) -> Dict[str, Any]:
        if body is None:
            return {}
        if isinstance(body, (Mapping, list)):
            return {"json": body}
        return {"content": str(body)}

    def _request(
        self,
        method: str,
        url: Optional[str],
        *,
        headers: Optional[Mapping[str, Any]] = None,
        **kwargs: Any,
    ) -> Any:
        if not url:
            raise DispatchError(
                message=f"{method} request without `end point`",
                details={"method": method},
                hint="Declare `end point` no step.",
            )

        with self._client() as client:
            try:
                response = client.request(method, url, headers=dict(headers or self.header), **kwargs)
            except httpx.HTTPError as exc:
                raise DispatchError(
                    message=f"{method} {url} failed: {exc}",
                    details={"endpoint": url, "method": method, "exception_class": exc.__class__.__name__},
                ) from exc

        if response.status_code != self.status:
            raise StatusMismatchError(
                message=f"Expected status {self.status}, but got {response.status_code} ({method} {url})",
                details={
                    "endpoint": url,
                    "method": method,
                    "expected_status": self.status,
                    "actual_status": response.status_code,
                    "body": response.text[:2000],
                },
            )

        return unwrap_body(parse_body(response))

    # ------------------------------------------------------------------
    # Verbos
    # ------------------------------------------------------------------

    def get(self) -> Any:
        if isinstance(self.value_params, Mapping):
            return self._request("GET", self.endpoint, params=dict(self.value_params))
        url = f"{self.endpoint}{self.value_params}" if self.endpoint else None
        return self._request("GET", url)

    def post(self) -> Any:
        return self._request("POST", self.endpoint, **self._body_kwargs(self.body))

    def put(self) -> Any:
        return self._request("PUT", self.endpoint, **self._body_kwargs(self.body))

    def patch(self) -> Any:
        return self._request("PATCH", self.endpoint, **self._body_kwargs(self.body))

    def delete(self) -> Any:
        return self._request("DELETE", self.endpoint, **self._body_kwargs(self.body))

    def graphql(self) -> Any:
        body = self.body if isinstance(self.body, Mapping) else {}
        headers = httpx.Headers(self.header)
        headers["Content-Type"] = "application/json"
        payload = {"query": body.get("query"), "variables": body.get("variables")}
        return self._request("POST", self.endpoint, headers=headers, json=payload)
