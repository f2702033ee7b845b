"""Access token lifecycle management for the central instance."""

import asyncio
import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from types import TracebackType
from typing import Self, TypeAlias

import httpx

from ..config import TokenClientConfig
from ..errors import AuthenticationDeniedError, TokenExchangeError
from ..models import AccessToken, LocalInstance
from .token_exchange import exchange_token

logger = logging.getLogger("central_token.token_manager")

Clock: TypeAlias = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True, slots=True)
class _CacheSlot:
    """A cached token together with the instant it stops being served."""

    token: AccessToken
    expires_at: datetime


class TokenManager:
    """Cache one access token and refresh it from the central instance when it expires.

    Concurrent ``acquire`` calls that find no fresh token share a single
    refresh: one task performs the exchange while the others wait for it and
    then receive the same token or the same error.

    Refreshes are serialized per event loop. Share one manager between tasks of
    a single loop; threads running their own loops should each build their own
    manager rather than use the process-wide one concurrently.
    """

    def __init__(
        self,
        config: TokenClientConfig | None = None,
        *,
        clock: Clock | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the token manager.

        Args:
            config: Endpoint path and timeout used for every exchange.
            clock: Returns the current timezone-aware instant; wall clock by default.
            transport: Optional httpx transport handed to each exchange.

        """
        self._config = config or TokenClientConfig()
        self._clock = clock or _utcnow
        self._transport = transport
        self._slot: _CacheSlot | None = None
        self._lock: asyncio.Lock | None = None
        self._lock_loop: asyncio.AbstractEventLoop | None = None
        self._lock_guard = threading.Lock()
        # Bumped after every refresh attempt; waiters compare it to detect a finished refresh
        self._generation = 0
        self._last_outcome: _CacheSlot | Exception | None = None

    def __enter__(self) -> Self:
        """Return the token manager for context manager usage."""
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        """Drop the cached token when leaving a context manager block."""
        self.invalidate()

    def _ensure_lock(self) -> asyncio.Lock:
        """Return an asyncio lock bound to the current event loop.

        Creates a new lock if one does not exist or if the event loop has changed.
        """
        loop = asyncio.get_running_loop()
        with self._lock_guard:
            if self._lock is None or self._lock_loop is not loop:
                self._lock = asyncio.Lock()
                self._lock_loop = loop
            return self._lock

    def _fresh_slot(self, now: datetime | None = None) -> _CacheSlot | None:
        slot = self._slot
        if slot is None:
            return None
        if (now or self._clock()) >= slot.expires_at:
            return None
        return slot

    @property
    def expires_at(self) -> datetime | None:
        """Expiration instant of the cached token, or None when nothing is cached."""
        slot = self._slot
        return slot.expires_at if slot else None

    def current_token(self) -> AccessToken | None:
        """Return the cached token if it has not expired, without refreshing."""
        slot = self._fresh_slot()
        return slot.token if slot else None

    async def acquire(self, local_instance: LocalInstance) -> AccessToken:
        """Return a valid access token, exchanging the access key if needed.

        Args:
            local_instance: Supplies the central instance URL and access key.

        Returns:
            A token whose expiration instant lies after the moment of the call.

        Raises:
            AuthenticationDeniedError: If the central instance rejects the access key.
            TokenExchangeError: For any other failure; the cache is left empty.

        """
        started = self._clock()
        slot = self._fresh_slot(started)
        if slot is not None:
            return slot.token

        generation = self._generation
        async with self._ensure_lock():
            if self._generation != generation:
                # A refresh finished while this task waited for the lock
                outcome = self._last_outcome
                if isinstance(outcome, Exception):
                    raise outcome
                if outcome is not None and outcome.expires_at > started:
                    return outcome.token

            slot = self._fresh_slot()
            if slot is not None:
                return slot.token
            return await self._refresh(local_instance)

    async def _refresh(self, local_instance: LocalInstance) -> AccessToken:
        """Exchange the access key and store the result; empty the cache on failure."""
        self._slot = None
        instance_name = local_instance.id or local_instance.central_instance_url
        try:
            token = await exchange_token(local_instance, self._config, transport=self._transport)
            slot = _CacheSlot(token=token, expires_at=self._expiration_for(token))
        except AuthenticationDeniedError as exc:
            logger.warning("Central instance rejected the access key of local instance %s", instance_name)
            self._publish(exc)
            raise
        except asyncio.CancelledError:
            self._publish(TokenExchangeError("Token refresh was cancelled"))
            raise
        except Exception as exc:
            logger.exception("Failed to obtain an access token for local instance %s", instance_name)
            self._publish(exc)
            raise

        self._slot = slot
        self._publish(slot)
        logger.debug("Fetched new access token from central instance, expires at %s.", slot.expires_at.isoformat())
        return token

    def _expiration_for(self, token: AccessToken) -> datetime:
        """Return the instant ``token`` expires, counted from now.

        Raises:
            TokenExchangeError: If the lifetime does not fit in a datetime.

        """
        try:
            return self._clock() + timedelta(milliseconds=token.expires_in)
        except OverflowError as exc:
            msg = f"Malformed token response from central instance: expiresIn {token.expires_in} is out of range"
            raise TokenExchangeError(msg) from exc

    def _publish(self, outcome: _CacheSlot | Exception) -> None:
        self._last_outcome = outcome
        self._generation += 1

    def invalidate(self) -> None:
        """Forget the cached token so the next ``acquire`` performs an exchange."""
        self._slot = None
        self._last_outcome = None
        logger.debug("Cached access token invalidated.")


_manager: TokenManager | None = None
_manager_lock = threading.Lock()


def get_token_manager(config: TokenClientConfig | None = None) -> TokenManager:
    """Return the process-wide token manager, creating it on first use.

    ``config`` only takes effect on the call that creates the manager.
    """
    global _manager  # noqa: PLW0603
    with _manager_lock:
        if _manager is None:
            _manager = TokenManager(config)
        return _manager


def reset_token_manager() -> None:
    """Drop the process-wide token manager; the next lookup builds a fresh one."""
    global _manager  # noqa: PLW0603
    with _manager_lock:
        _manager = None


__all__ = ["Clock", "TokenManager", "get_token_manager", "reset_token_manager"]
