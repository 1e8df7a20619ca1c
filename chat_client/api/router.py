"""
Request Router - the single chokepoint for outbound calls.

Every call names an Endpoint; the router attaches the credential that the
endpoint declares unless the caller already supplied one.
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Callable, Dict, Optional

import httpx

from .endpoints import Credential, Endpoint
from ..core.logging_config import filter_sensitive_data, mask_token
from ..errors import TransportError, raise_for_response

logger = logging.getLogger(__name__)

TokenProvider = Callable[[], Optional[str]]


class RequestRouter:
    """
    Wraps an httpx.AsyncClient and decides, per call, which token to send.

    Token values are read through provider callables at request time, so the
    router never holds credentials of its own.
    """

    def __init__(
        self,
        base_url: str,
        account_token: TokenProvider,
        session_token: TokenProvider,
        timeout: float = 30.0,
        stream_timeout: float = 300.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        log_requests: bool = True,
    ):
        """
        Args:
            base_url: API root every endpoint path is resolved against
            account_token: Returns the current account token, or None
            session_token: Returns the active session's token, or None
            timeout: Default request timeout in seconds
            stream_timeout: Read timeout between chunks of a streaming body
            transport: Optional httpx transport (tests pass a MockTransport)
            log_requests: Log every request with its credential source
        """
        self._account_token = account_token
        self._session_token = session_token
        self.timeout = timeout
        self.stream_timeout = stream_timeout
        self.log_requests = log_requests
        self._client = httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)

    def resolve_token(self, endpoint: Endpoint, token: Optional[str] = None) -> Optional[str]:
        """Token the routing table selects for an endpoint; an explicit token always wins."""
        if token is not None:
            return token
        if endpoint.credential == Credential.ACCOUNT:
            return self._account_token()
        if endpoint.credential == Credential.ACTIVE_SESSION:
            return self._session_token()
        return None

    def build_request(
        self,
        endpoint: Endpoint,
        *,
        path_params: Optional[Dict[str, str]] = None,
        token: Optional[str] = None,
        headers: Optional[Dict[str, str]] = None,
        json: Any = None,
        data: Optional[Dict[str, str]] = None,
        params: Optional[Dict[str, Any]] = None,
        timeout: Optional[httpx.Timeout] = None,
    ) -> httpx.Request:
        """Build the request for an endpoint and attach its credential."""
        request = self._client.build_request(
            endpoint.method,
            endpoint.format(**(path_params or {})),
            headers=headers,
            json=json,
            data=data,
            params=params,
            timeout=timeout if timeout is not None else self.timeout,
        )
        self._authorize(request, endpoint, token)

        body = json if json is not None else data
        if self.log_requests and body is not None:
            logger.debug(
                f"{endpoint.method} {request.url.path} payload",
                extra={"extra_fields": {"endpoint": endpoint.name, "payload": filter_sensitive_data(body)}}
            )
        return request

    def _authorize(self, request: httpx.Request, endpoint: Endpoint, token: Optional[str]) -> None:
        path = request.url.path

        if "Authorization" in request.headers:
            logger.debug(f"Authorization header already set by caller for {path}")
            return

        selected = self.resolve_token(endpoint, token)
        source = "explicit" if token is not None else endpoint.credential.value

        if selected:
            request.headers["Authorization"] = f"Bearer {selected}"
            logger.debug(f"Using {source} token for {endpoint.name}: {mask_token(selected)}")
        elif endpoint.credential != Credential.NONE or token is not None:
            # Let the server reject it; a missing token here usually means stale client state
            logger.warning(
                f"No {source} token available for {endpoint.method} {path}, sending without credential",
                extra={"extra_fields": {"endpoint": endpoint.name, "credential": source}}
            )

    async def request(self, endpoint: Endpoint, **kwargs: Any) -> httpx.Response:
        """
        Send a call and return the read response.

        Raises:
            TransportError: If no response was received
            ApiError: If the response status is 4xx or 5xx
        """
        request = self.build_request(endpoint, **kwargs)
        start_time = time.time()
        try:
            response = await self._client.send(request)
        except httpx.HTTPError as e:
            self._log_failure(endpoint, request, start_time, e)
            raise TransportError(str(e) or type(e).__name__) from e

        self._log_response(endpoint, request, response, start_time)
        raise_for_response(response)
        return response

    @asynccontextmanager
    async def stream(self, endpoint: Endpoint, **kwargs: Any) -> AsyncIterator[httpx.Response]:
        """
        Send a call whose body is consumed incrementally.

        The response is yielded once headers arrive and is closed on exit.

        Raises:
            TransportError: If no response was received
            ApiError: If the response status is 4xx or 5xx
        """
        kwargs.setdefault("timeout", httpx.Timeout(self.timeout, read=self.stream_timeout))
        request = self.build_request(endpoint, **kwargs)
        start_time = time.time()
        try:
            response = await self._client.send(request, stream=True)
        except httpx.HTTPError as e:
            self._log_failure(endpoint, request, start_time, e)
            raise TransportError(str(e) or type(e).__name__) from e

        try:
            self._log_response(endpoint, request, response, start_time)
            if response.is_error:
                await response.aread()
                raise_for_response(response)
            yield response
        finally:
            await response.aclose()

    def _log_response(self, endpoint: Endpoint, request: httpx.Request,
                      response: httpx.Response, start_time: float) -> None:
        if not self.log_requests:
            return
        duration_ms = (time.time() - start_time) * 1000
        level = logging.WARNING if response.is_error else logging.INFO
        logger.log(
            level,
            f"{request.method} {request.url.path} -> {response.status_code}",
            extra={"extra_fields": {
                "endpoint": endpoint.name,
                "status_code": response.status_code,
                "authorized": "Authorization" in request.headers,
                "duration_ms": round(duration_ms, 2),
            }}
        )

    def _log_failure(self, endpoint: Endpoint, request: httpx.Request,
                     start_time: float, error: Exception) -> None:
        duration_ms = (time.time() - start_time) * 1000
        logger.error(
            f"{request.method} {request.url.path} failed: {error!r}",
            extra={"extra_fields": {
                "endpoint": endpoint.name,
                "duration_ms": round(duration_ms, 2),
                "error": str(error),
            }}
        )

    async def aclose(self) -> None:
        await self._client.aclose()
