import hashlib
import json
import logging
import time
from typing import Any

import requests

from gateway.errors import SandboxProtocolError, SandboxUnavailable

_logger = logging.getLogger("gateway.sandbox")

MAX_BODY_IN_DIAGNOSTICS = 2000


def _safe_trunc(text: str, limit: int = MAX_BODY_IN_DIAGNOSTICS) -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + f"... [{len(text) - limit} chars omitted]"


def _code_hash(code: str) -> str:
    return hashlib.sha256(code.encode("utf-8", errors="replace")).hexdigest()[:16]


def parse_sandbox_body(body: str) -> dict[str, Any]:
    """Validate the sandbox's ``{success, output, error}`` reply.

    Raises:
        SandboxProtocolError: body is not JSON or does not have that shape.
    """
    try:
        data = json.loads(body)
    except ValueError as e:
        raise SandboxProtocolError(
            detail=f"Failed to parse sandbox response: {e}, body: {_safe_trunc(body)}",
        ) from e

    if not isinstance(data, dict) or not isinstance(data.get("success"), bool):
        raise SandboxProtocolError(
            detail=f"Unexpected sandbox response shape, body: {_safe_trunc(body)}",
        )

    output = data.get("output")
    if output is None:
        output = []
    if not isinstance(output, list) or not all(
        isinstance(item, dict) and isinstance(item.get("type"), str) and isinstance(item.get("text"), str)
        for item in output
    ):
        raise SandboxProtocolError(
            detail=f"Unexpected sandbox output entries, body: {_safe_trunc(body)}",
        )

    error = data.get("error")
    if error is not None and not isinstance(error, str):
        error = str(error)

    result: dict[str, Any] = {
        "success": data["success"],
        "output": [{"type": item["type"], "text": item["text"]} for item in output],
    }
    if error:
        result["error"] = error
    return result


class SandboxClient:
    """HTTP client for the external execution sandbox."""

    def __init__(
        self,
        base_url: str,
        execution_timeout_ms: int = 10000,
        request_timeout_sec: float = 15.0,
        health_timeout_sec: float = 2.0,
        session: requests.Session | None = None,
    ):
        if request_timeout_sec * 1000 <= execution_timeout_ms:
            raise ValueError("request timeout must exceed the sandbox execution budget")
        self.base_url = base_url.rstrip("/")
        self.execution_timeout_ms = execution_timeout_ms
        self.request_timeout_sec = request_timeout_sec
        self.health_timeout_sec = health_timeout_sec
        self._session = session or requests.Session()

    def execute(self, code: str) -> dict[str, Any]:
        """Run ``code`` in the sandbox and return its structured result.

        Raises:
            SandboxUnavailable: connection, timeout or transport failure.
            SandboxProtocolError: the sandbox answered with an unusable body.
        """
        url = f"{self.base_url}/execute"
        payload = {"code": code, "timeout": self.execution_timeout_ms}
        start = time.monotonic()
        code_hash = _code_hash(code)
        try:
            resp = self._session.post(url, json=payload, timeout=self.request_timeout_sec)
            body = resp.text
        except requests.RequestException as e:
            duration_ms = int((time.monotonic() - start) * 1000)
            _logger.warning(
                "Sandbox unreachable: url=%s code_hash=%s duration=%dms err=%r",
                url, code_hash, duration_ms, e,
            )
            raise SandboxUnavailable(detail=f"Sandbox service unavailable: {e}") from e

        duration_ms = int((time.monotonic() - start) * 1000)
        if not resp.ok:
            _logger.warning("Sandbox non-OK response: %s %s", resp.status_code, _safe_trunc(body, 500))

        result = parse_sandbox_body(body)
        _logger.info(
            "Sandbox execution: success=%s status=%s duration=%dms code_hash=%s",
            result["success"], resp.status_code, duration_ms, code_hash,
        )
        return result

    def is_available(self) -> bool:
        try:
            resp = self._session.get(f"{self.base_url}/health", timeout=self.health_timeout_sec)
        except requests.RequestException:
            return False
        return resp.ok

    def close(self) -> None:
        self._session.close()
