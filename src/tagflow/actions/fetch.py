"""Fetch action: HTTP requests with httpx and tenacity retry.

Uses the engine's shared ``httpx.AsyncClient`` when one is wired into the
context, otherwise opens a short-lived client per request. Retries
transient failures (429, 5xx, connection errors) up to
``EngineConfig.fetch_max_attempts`` times; the default of 1 means no
retry.
"""

from __future__ import annotations

import base64
import json
import logging
from typing import TYPE_CHECKING, Any

import httpx
import tenacity

from tagflow.actions.templates import interpolate
from tagflow.exceptions import ActionError, FetchError
from tagflow.models.config import EngineConfig

if TYPE_CHECKING:
    from tagflow.models.actions import ActionNode
    from tagflow.models.context import ExecutionContext
    from tagflow.protocols import Recurse

logger = logging.getLogger(__name__)

_RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}
_METHODS = {"GET", "POST", "PUT", "DELETE", "PATCH"}


def _is_retryable(exc: BaseException) -> bool:
    """Retryable: 429, 500, 502, 503, 504, connection errors."""
    if isinstance(exc, FetchError):
        return exc.status_code in _RETRYABLE_STATUS_CODES
    return isinstance(exc, (httpx.ConnectError, httpx.ConnectTimeout, httpx.ReadTimeout))


def build_headers(node: ActionNode, values: dict[str, Any], config: EngineConfig) -> dict[str, str]:
    """Default headers, then configured headers, then auth."""
    headers = {
        "Content-Type": "application/json",
        "User-Agent": config.user_agent,
    }
    for key, value in (node.param("headers") or {}).items():
        headers[key] = interpolate(str(value), values)

    auth = node.param("auth") or {}
    auth_type = auth.get("type")
    if auth_type == "basic":
        if auth.get("username") and auth.get("password"):
            user = interpolate(auth["username"], values)
            password = interpolate(auth["password"], values)
            token = base64.b64encode(f"{user}:{password}".encode()).decode("ascii")
            headers["Authorization"] = f"Basic {token}"
    elif auth_type == "bearer":
        if auth.get("token"):
            headers["Authorization"] = f"Bearer {interpolate(auth['token'], values)}"
    elif auth_type == "apiKey":
        if auth.get("apiKey"):
            header_name = auth.get("headerName") or "X-API-Key"
            headers[header_name] = interpolate(auth["apiKey"], values)
    return headers


def build_body(node: ActionNode, method: str, values: dict[str, Any]) -> str | None:
    """Request body for non-GET requests.

    A body template that renders to JSON text is sent as-is; a bare
    variable name holding a mapping or list is JSON-encoded.
    """
    raw = node.param("body")
    if raw is None or method == "GET":
        return None
    if not isinstance(raw, str):
        return json.dumps(raw, default=str)
    rendered = interpolate(raw, values)
    if rendered.lstrip().startswith(("{", "[")):
        return rendered
    referenced = values.get(raw.strip())
    if isinstance(referenced, (dict, list)):
        return json.dumps(referenced, default=str)
    return rendered


def decode_response(response: httpx.Response) -> Any:
    """JSON for application/json responses (falling back to text), else text."""
    if "application/json" in response.headers.get("content-type", ""):
        try:
            return response.json()
        except ValueError:
            return response.text
    return response.text


async def _send(client: httpx.AsyncClient, method: str, url: str, headers: dict[str, str], body: str | None) -> httpx.Response:
    """Send one request (no retry); non-2xx raises FetchError."""
    response = await client.request(method, url, headers=headers, content=body)
    if response.status_code < 200 or response.status_code >= 300:
        raise FetchError(response.status_code, response.text)
    return response


async def fetch_action(node: ActionNode, context: ExecutionContext, recurse: Recurse) -> ExecutionContext:
    """Make an HTTP request and bind the decoded response.

    Binds ``response`` (and ``as`` when given) and sets context.response.

    Raises:
        ActionError: On a missing url or unsupported method.
        FetchError: On a non-2xx response after all attempts.
    """
    config = context.config or EngineConfig()
    url = interpolate(node.param("url") or "", context.vars).strip()
    if not url:
        raise ActionError("fetch action requires 'url'", action_type=node.type)
    method = str(node.param("method") or "GET").upper()
    if method not in _METHODS:
        raise ActionError(f"Unsupported HTTP method: {method}", action_type=node.type)

    headers = build_headers(node, context.vars, config)
    body = build_body(node, method, context.vars)

    retryer = tenacity.AsyncRetrying(
        retry=tenacity.retry_if_exception(_is_retryable),
        wait=tenacity.wait_exponential(multiplier=config.fetch_backoff, max=30),
        stop=tenacity.stop_after_attempt(config.fetch_max_attempts),
        before_sleep=tenacity.before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )

    if context.http is not None:
        response = await retryer(_send, context.http, method, url, headers, body)
    else:
        async with httpx.AsyncClient(timeout=config.fetch_timeout) as client:
            response = await retryer(_send, client, method, url, headers, body)

    data = decode_response(response)
    context.response = data
    context.vars["response"] = data
    if node.as_:
        context.vars[node.as_] = data
    logger.debug("fetch %s %s -> %d", method, url, response.status_code)
    return context
