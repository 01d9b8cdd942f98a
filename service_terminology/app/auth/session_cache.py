"""
Process-wide session cache for the terminology server's service account.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from shared.config import AUTH_DISABLED, BaseConfig
from shared.errors import AuthError, ConfigurationError
from shared.logging import get_logger
from shared.metrics import MetricsCollector

from .authenticator import Authenticator


Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Session:
    """Authenticated session: the cookie string plus its local expiry."""

    token: str
    expires_at: Optional[datetime] = None
    generation: int = 0

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and now >= self.expires_at


EMPTY_SESSION = Session(token="")


def _retrieve_login_error(task: "asyncio.Future[Session]") -> None:
    # Waiters may all have been cancelled; the failure is already logged.
    if not task.cancelled():
        task.exception()


class SessionCache:
    """Holds the single service-account session and refreshes it on demand.

    Reads of a valid session return without awaiting. Refreshes go through a
    single in-flight login task: every caller that needs a new session while
    a login is running awaits that same task and gets its result or its
    failure. Sessions carry a generation number, and a login result never
    replaces a session of a newer generation.
    """

    def __init__(
        self,
        authenticator: Authenticator,
        auth_url: Optional[str],
        username: Optional[str] = None,
        password: Optional[str] = None,
        *,
        ttl: timedelta = timedelta(hours=24),
        clock: Clock = utcnow,
        metrics: Optional[MetricsCollector] = None,
    ) -> None:
        self.authenticator = authenticator
        self.auth_url = auth_url
        self.username = username
        self.password = password
        self.ttl = ttl
        self.metrics = metrics
        self.logger = get_logger("terminology.auth.session_cache")

        self._clock = clock
        self._session: Optional[Session] = None
        self._generation = 0
        self._inflight: Optional[asyncio.Task] = None

    @property
    def enabled(self) -> bool:
        return (self.auth_url or "").strip().lower() != AUTH_DISABLED

    @property
    def session(self) -> Optional[Session]:
        """The cached session, expired or not."""
        return self._session

    def invalidate(self) -> None:
        """Drop the cached session; the next acquire logs in again."""
        self._session = None

    async def acquire(self, force_refresh: bool = False, stale: Optional[Session] = None) -> Session:
        """Return a usable session, logging in when required.

        ``stale`` is the session a caller saw rejected. On a forced refresh,
        a cached session newer than ``stale`` is returned as is since another
        caller has already replaced it.
        """
        if not self.enabled:
            return EMPTY_SESSION

        current = self._valid_session()
        if current is not None:
            if not force_refresh:
                return current
            if stale is not None and current.generation > stale.generation:
                self.logger.debug("Session already refreshed", generation=current.generation)
                return current

        task = self._inflight
        if task is None or task.done():
            if force_refresh:
                self.logger.info("Forcing terminology session refresh")
                self.invalidate()
            task = asyncio.ensure_future(self._login())
            task.add_done_callback(_retrieve_login_error)
            self._inflight = task

        return await asyncio.shield(task)

    def _valid_session(self) -> Optional[Session]:
        session = self._session
        if session is None or session.is_expired(self._clock()):
            return None
        return session

    async def _login(self) -> Session:
        acquired_at = self._clock()
        try:
            token = await self.authenticator.login(self.username or "", self.password or "", self.auth_url or "")
        except AuthError as exc:
            self._record_login("failure")
            self.logger.error("Terminology login failed", error=exc.message)
            raise
        finally:
            if self._inflight is asyncio.current_task():
                self._inflight = None

        self._generation += 1
        session = Session(token=token, expires_at=acquired_at + self.ttl, generation=self._generation)

        cached = self._session
        if cached is None or session.generation > cached.generation:
            self._session = session

        self._record_login("success")
        self.logger.info(
            "Terminology session acquired",
            generation=session.generation,
            expires_at=session.expires_at.isoformat()
        )
        return session

    def _record_login(self, outcome: str) -> None:
        if self.metrics is not None:
            self.metrics.increment_counter("terminology_logins_total", outcome=outcome)


# Process-wide cache instance
_session_cache: Optional[SessionCache] = None


def init_session_cache(
    config: BaseConfig,
    *,
    authenticator: Optional[Authenticator] = None,
    clock: Clock = utcnow,
    metrics: Optional[MetricsCollector] = None,
) -> SessionCache:
    """Create the process-wide session cache from configuration."""
    global _session_cache
    _session_cache = SessionCache(
        authenticator or Authenticator(timeout=config.request_timeout_seconds),
        config.auth_url,
        config.username,
        config.password,
        ttl=timedelta(hours=config.session_ttl_hours),
        clock=clock,
        metrics=metrics,
    )
    return _session_cache


def get_session_cache() -> SessionCache:
    """Return the process-wide session cache."""
    if _session_cache is None:
        raise ConfigurationError("Session cache has not been initialised")
    return _session_cache


def reset_session_cache() -> None:
    """Forget the process-wide session cache."""
    global _session_cache
    _session_cache = None
