"""
Retrying HTTP gateway to the remote terminology server.
"""

from __future__ import annotations

import time
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional

import httpx

from shared.config import DEFAULT_ACCEPT_LANGUAGES, BaseConfig
from shared.errors import ConfigurationError, GatewayError
from shared.logging import get_logger
from shared.metrics import MetricsCollector
from shared.retry import RetryConfig, RetryPolicy

from ..auth.session_cache import Session, SessionCache


JSON_MEDIA_TYPE = "application/json"
ZIP_MEDIA_TYPE = "application/zip"


def session_expired(response: httpx.Response) -> bool:
    """The terminology server answers 403 when the session cookie is no longer valid."""
    return response.status_code == httpx.codes.FORBIDDEN


class TerminologyGateway:
    """Uniform GET/POST/PUT/DELETE surface over the terminology server.

    Each call carries the cached session cookie and an ``Accept-Language``
    preference. A 403 on the first attempt forces a session refresh and the
    request is sent once more; whatever the second attempt returns goes back
    to the caller. Every response the gateway does not hand out is closed.
    """

    def __init__(
        self,
        base_url: Optional[str],
        session_cache: SessionCache,
        *,
        default_languages: str = DEFAULT_ACCEPT_LANGUAGES,
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
        metrics: Optional[MetricsCollector] = None,
        configuration_error: Optional[ConfigurationError] = None,
    ) -> None:
        self.base_url = base_url or ""
        self.session_cache = session_cache
        self.default_languages = default_languages
        self.metrics = metrics
        self.logger = get_logger("terminology.gateway")
        self.retry_policy: RetryPolicy[httpx.Response] = RetryPolicy(
            session_expired,
            RetryConfig(max_attempts=2),
            name="terminology_session",
        )

        self._configuration_error = configuration_error
        self._client = client or httpx.AsyncClient(timeout=timeout)

    @classmethod
    def from_config(
        cls,
        config: BaseConfig,
        session_cache: SessionCache,
        *,
        client: Optional[httpx.AsyncClient] = None,
        metrics: Optional[MetricsCollector] = None,
    ) -> "TerminologyGateway":
        """Build a gateway, or a disabled one when required settings are missing."""
        configuration_error = None
        missing = config.missing_settings()
        if missing:
            configuration_error = ConfigurationError(
                "Terminology server is not configured",
                details={"missing": missing}
            )
            get_logger("terminology.gateway").error(
                "Terminology gateway disabled, configuration missing",
                missing=missing
            )

        return cls(
            config.base_url,
            session_cache,
            default_languages=config.default_languages,
            timeout=config.request_timeout_seconds,
            client=client,
            metrics=metrics,
            configuration_error=configuration_error,
        )

    @property
    def enabled(self) -> bool:
        return self._configuration_error is None

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    def check_health(self) -> str:
        if not self.enabled:
            return "disabled"
        if not self.session_cache.enabled:
            return "auth_disabled"
        return "ok"

    def url_for(self, path: str) -> str:
        """Resolve ``path`` against the base URL; absolute URLs pass through."""
        if path.startswith(("http://", "https://")):
            return path
        return self.base_url.rstrip("/") + "/" + path.lstrip("/")

    async def call(
        self,
        method: str,
        url: str,
        body: Any = None,
        language: Optional[str] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> httpx.Response:
        """Send a request and return the fully read response."""
        return await self._call(method, url, body, language, params, accept=JSON_MEDIA_TYPE, stream=False)

    async def get(self, url: str, language: Optional[str] = None,
                  params: Optional[Dict[str, Any]] = None) -> httpx.Response:
        return await self.call("GET", url, language=language, params=params)

    async def post(self, url: str, body: Any = None, language: Optional[str] = None) -> httpx.Response:
        return await self.call("POST", url, body=body, language=language)

    async def put(self, url: str, body: Any = None, language: Optional[str] = None) -> httpx.Response:
        return await self.call("PUT", url, body=body, language=language)

    async def delete(self, url: str, body: Any = None, language: Optional[str] = None) -> httpx.Response:
        return await self.call("DELETE", url, body=body, language=language)

    async def get_json(self, url: str, language: Optional[str] = None,
                       params: Optional[Dict[str, Any]] = None) -> Any:
        """GET and decode JSON, raising ``GatewayError`` on a non-2xx status."""
        response = await self.get(url, language=language, params=params)
        if not response.is_success:
            self.logger.error(
                "Terminology server request failed",
                url=str(response.request.url),
                status_code=response.status_code,
                reason=response.reason_phrase
            )
            raise GatewayError(
                str(response.request.url),
                f"Unexpected status {response.status_code}",
                status_code=response.status_code,
                reason=response.reason_phrase,
                details={"body": response.text}
            )
        return response.json()

    @asynccontextmanager
    async def download(self, url: str, language: Optional[str] = None) -> AsyncIterator[httpx.Response]:
        """Stream a file from the terminology server.

        Yields the streaming response (read it with ``aiter_bytes``); it is
        closed when the block exits. The status is not checked.
        """
        response = await self._call("GET", url, None, language, None, accept=ZIP_MEDIA_TYPE, stream=True)
        try:
            yield response
        finally:
            await response.aclose()

    async def _call(
        self,
        method: str,
        url: str,
        body: Any,
        language: Optional[str],
        params: Optional[Dict[str, Any]],
        *,
        accept: str,
        stream: bool,
    ) -> httpx.Response:
        if self._configuration_error is not None:
            raise self._configuration_error

        method = method.upper()
        target = self.url_for(url)
        session = await self.session_cache.acquire(False)

        async def attempt(number: int) -> httpx.Response:
            return await self._send(method, target, body, language, params, session, accept=accept, stream=stream)

        async def refresh(rejected: httpx.Response) -> None:
            nonlocal session
            await rejected.aclose()
            self.logger.info("Terminology session rejected, refreshing", method=method, url=target)
            if self.metrics is not None:
                self.metrics.increment_counter("terminology_auth_retries_total", method=method)
            session = await self.session_cache.acquire(True, stale=session)

        return await self.retry_policy.run(attempt, before_retry=refresh)

    async def _send(
        self,
        method: str,
        url: str,
        body: Any,
        language: Optional[str],
        params: Optional[Dict[str, Any]],
        session: Session,
        *,
        accept: str,
        stream: bool,
    ) -> httpx.Response:
        headers = {
            "Accept": accept,
            "Accept-Language": language or self.default_languages,
        }
        if session.token:
            headers["Cookie"] = session.token

        content = None
        json_body = None
        if isinstance(body, (str, bytes)):
            content = body
            headers["Content-Type"] = JSON_MEDIA_TYPE
        elif body is not None:
            json_body = body

        request = self._client.build_request(
            method, url, params=params, headers=headers, content=content, json=json_body
        )

        start = time.time()
        try:
            response = await self._client.send(request, stream=stream)
        except httpx.HTTPError as exc:
            self.logger.error("Terminology server unreachable", method=method, url=url, error=str(exc))
            if self.metrics is not None:
                self.metrics.record_error(type(exc).__name__)
            raise GatewayError(
                url,
                f"Terminology server request failed: {exc}",
                details={"method": method, "error": str(exc)}
            ) from exc

        if self.metrics is not None:
            self.metrics.increment_counter(
                "terminology_requests_total", method=method, status_code=str(response.status_code)
            )
            self.metrics.observe_histogram("terminology_request_duration_seconds", time.time() - start, method=method)

        self.logger.debug("Terminology server response", method=method, url=url, status_code=response.status_code)
        return response
