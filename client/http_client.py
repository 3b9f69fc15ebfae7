"""One-shot request/response boundary built on ``httpx``.

Every call resolves to an ``ApiResult``: the decoded JSON body on success, or
one ``ApiError`` variant on failure.  Nothing here raises for HTTP or network
problems.  Each request carries an ``X-Request-ID`` correlation header,
freshly generated unless the caller passes one.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any

import httpx

from core.errors import ApiResult, NetworkError, error_from_exception, error_from_status

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


def _error_message(response: httpx.Response) -> str:
    """Body ``message`` field if the body is JSON, else the reason phrase."""
    try:
        body = response.json()
    except ValueError:
        return response.reason_phrase
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return response.reason_phrase


class HttpClient:
    """Thin async JSON client.

    Parameters
    ----------
    base_url : str
        Prefix for every request path.
    timeout : float
        Whole-request timeout in seconds.
    headers : dict[str, str] | None
        Headers sent with every request.
    transport : httpx.AsyncBaseTransport | None
        Custom transport (``httpx.MockTransport`` in tests).
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        headers: dict[str, str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            headers=headers or {},
            transport=transport,
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> HttpClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    async def get(self, path: str, **kwargs: Any) -> ApiResult[Any]:
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, body: Any = None, **kwargs: Any) -> ApiResult[Any]:
        return await self.request("POST", path, json=body, **kwargs)

    async def put(self, path: str, body: Any = None, **kwargs: Any) -> ApiResult[Any]:
        return await self.request("PUT", path, json=body, **kwargs)

    async def delete(self, path: str, **kwargs: Any) -> ApiResult[Any]:
        return await self.request("DELETE", path, **kwargs)

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
    ) -> ApiResult[Any]:
        """Send one request and classify the outcome."""
        request_headers = httpx.Headers(headers or {})
        request_headers.setdefault(REQUEST_ID_HEADER, str(uuid.uuid4()))
        request_id = request_headers[REQUEST_ID_HEADER]

        try:
            response = await self._client.request(
                method, path, json=json, params=params, headers=request_headers
            )
        except httpx.TimeoutException as exc:
            logger.warning("[%s] %s %s timed out", request_id, method, path)
            return ApiResult.failure(NetworkError(message=str(exc) or "Request timed out", cause=exc))
        except httpx.RequestError as exc:
            logger.warning("[%s] %s %s failed: %s", request_id, method, path, exc)
            return ApiResult.failure(NetworkError(message="Network request failed", cause=exc))

        if response.is_error:
            error = error_from_status(
                response.status_code, _error_message(response), response.headers
            )
            logger.warning(
                "[%s] %s %s -> HTTP %d (%s)",
                request_id,
                method,
                path,
                response.status_code,
                error.tag,
            )
            return ApiResult.failure(error)

        logger.debug("[%s] %s %s -> HTTP %d", request_id, method, path, response.status_code)
        if response.status_code == 204 or not response.content:
            return ApiResult.success(None)
        try:
            return ApiResult.success(response.json())
        except ValueError as exc:
            return ApiResult.failure(error_from_exception(exc))
