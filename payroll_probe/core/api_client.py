from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any

import httpx

from payroll_probe.core.logger import get_logger
from payroll_probe.schemas.result_schemas import ResponseSnapshot

logger = get_logger(__name__)

_BODY_TEXT_CAP_CHARS = 10000


class LoginError(RuntimeError):
    """Raised when the login endpoint does not hand back a token."""


@dataclass(frozen=True)
class ApiOutcome:
    success: bool
    response: httpx.Response | None = None
    error: Exception | None = None

    @property
    def status_code(self) -> int | None:
        return self.response.status_code if self.response is not None else None

    @property
    def body(self) -> Any:
        return parse_body(self.response) if self.response is not None else None


def parse_body(response: httpx.Response) -> Any:
    content_type = response.headers.get("content-type", "")
    if "application/json" in content_type:
        try:
            return response.json()
        except ValueError:
            return {"raw_text": response.text[:_BODY_TEXT_CAP_CHARS]}
    if "text/" in content_type:
        return {"raw_text": response.text[:_BODY_TEXT_CAP_CHARS]}
    if not response.content:
        return None
    return {"raw_bytes_len": len(response.content), "content_type": content_type}


def snapshot(response: httpx.Response | None) -> ResponseSnapshot | None:
    if response is None:
        return None
    return ResponseSnapshot(
        status=response.status_code,
        status_text=response.reason_phrase,
        data=parse_body(response),
    )


def extract_data(body: Any) -> Any:
    """Unwrap a ``{"success": ..., "data": ...}`` envelope, passing other bodies through."""
    if isinstance(body, dict) and "data" in body and "success" in body:
        return body.get("data")
    return body


def error_message(error: BaseException) -> str:
    """Readable text for an exception; timeouts often carry an empty message."""
    return str(error) or type(error).__name__


class PayrollApiClient:
    def __init__(
        self,
        base_url: str,
        token: str = "",
        timeout_sec: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.token = token
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=self._headers(),
            timeout=httpx.Timeout(timeout_sec),
            transport=transport,
        )

    async def __aenter__(self) -> "PayrollApiClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def set_token(self, token: str) -> None:
        self.token = token
        self._client.headers.update(self._headers())

    async def send(self, method: str, path: str, body: Any = None) -> httpx.Response:
        """Send one request and raise ``httpx.HTTPError`` on transport failure or a non-2xx status."""
        started = time.time()
        response = await self._client.request(method.upper(), path, json=body)
        logger.info(
            "api.request",
            method=method.upper(),
            path=path,
            status_code=response.status_code,
            elapsed_ms=round((time.time() - started) * 1000.0, 1),
        )
        response.raise_for_status()
        return response

    async def request(self, method: str, path: str, body: Any = None) -> ApiOutcome:
        try:
            response = await self.send(method, path, body)
        except httpx.HTTPStatusError as exc:
            return ApiOutcome(success=False, response=exc.response, error=exc)
        except httpx.HTTPError as exc:
            logger.warning("api.request_failed", method=method.upper(), path=path, error=error_message(exc))
            return ApiOutcome(success=False, error=exc)
        return ApiOutcome(success=True, response=response)

    async def get_json(self, path: str) -> Any:
        response = await self.send("GET", path)
        return parse_body(response)

    async def put_json(self, path: str, body: Any) -> httpx.Response:
        return await self.send("PUT", path, body)

    async def login(self, email: str, password: str) -> str:
        response = await self.send("POST", "/auth/login", {"email": email, "password": password})
        data = extract_data(parse_body(response))
        token = data.get("token") if isinstance(data, dict) else None
        if not token:
            raise LoginError("Login response did not include a token")
        self.set_token(str(token))
        logger.info("api.login_succeeded", email=email)
        return self.token
