"""Cache and background refresh coordinator for student records."""
import asyncio
from collections.abc import Callable, Iterable
from datetime import datetime, timezone
import logging
import time

import aiohttp

from .calculations import is_stale
from .client import CancellationToken, PortalClient
from .const import (
    ACTIVE_IDENTITY_KEY,
    DEFAULT_RETRY_DELAYS,
    DEFAULT_STALE_DAYS,
    HTML_KEY_PREFIX,
    TIMESTAMP_KEY_PREFIX,
)
from .events import DataUpdated, EventBus, RefreshEnded, RefreshStarted
from .exceptions import CancellationError, EmptyResponseError, NetworkError
from .models import CacheEntry, StudentGrades
from .parser import parse_student_grades_data
from .storage import KeyValueStore

_LOGGER = logging.getLogger(__name__)


def _now_ms() -> int:
    """Current time in epoch milliseconds."""
    return int(datetime.now(timezone.utc).timestamp() * 1000)


def mask_identity(identity: str) -> str:
    """Hide all but the last four digits of an IDNP for logging."""
    return "*" * max(len(identity) - 4, 0) + identity[-4:]


def html_key(identity: str) -> str:
    """Storage key of the cached page for identity."""
    return f"{HTML_KEY_PREFIX}{identity}"


def timestamp_key(identity: str) -> str:
    """Storage key of the cache timestamp for identity."""
    return f"{TIMESTAMP_KEY_PREFIX}{identity}"


class GradesCoordinator:
    """Serve cached record pages immediately and refresh them in the background.

    At most one refresh per identity is in flight. A refresh that finishes after
    the active identity changed, or that was cancelled, clears the cache for its
    identity instead of writing to it.
    """

    def __init__(
        self,
        storage: KeyValueStore,
        client: PortalClient,
        clock: Callable[[], int] = _now_ms,
        events: EventBus | None = None,
        retry_delays: Iterable[float] = DEFAULT_RETRY_DELAYS,
        stale_days: int = DEFAULT_STALE_DAYS,
    ) -> None:
        """Initialize the coordinator."""
        self.storage = storage
        self.client = client
        self.events = events or EventBus()
        self.retry_delays = tuple(retry_delays)
        self.stale_days = stale_days
        self._clock = clock
        self._in_flight: dict[str, asyncio.Task] = {}
        self._tokens: dict[str, CancellationToken] = {}

    async def active_identity(self) -> str | None:
        """Return the identity the user currently has selected."""
        return await self.storage.get_item(ACTIVE_IDENTITY_KEY)

    async def get_cached(self, identity: str) -> CacheEntry | None:
        """Return the cached page and its timestamp, or None if nothing is cached."""
        html = await self.storage.get_item(html_key(identity))
        if html is None:
            return None

        raw_timestamp = await self.storage.get_item(timestamp_key(identity))
        try:
            timestamp = int(raw_timestamp) if raw_timestamp is not None else None
        except ValueError:
            _LOGGER.warning("Ignoring malformed cache timestamp: %s", raw_timestamp)
            timestamp = None

        return CacheEntry(html, timestamp)

    async def store(self, identity: str, html: str) -> int | None:
        """Cache a page for identity, unless another identity is active now."""
        active = await self.active_identity()
        if active != identity:
            _LOGGER.info(
                "Not caching page for %s: active identity has changed",
                mask_identity(identity),
            )
            return None

        timestamp = self._clock()
        await self.storage.set_item(html_key(identity), html)
        await self.storage.set_item(timestamp_key(identity), str(timestamp))
        self.events.publish(DataUpdated(identity))
        return timestamp

    async def clear_cache(self, identity: str) -> None:
        """Remove the cached page and timestamp for identity."""
        await self.storage.remove_item(html_key(identity))
        await self.storage.remove_item(timestamp_key(identity))
        self.events.publish(DataUpdated(identity))

    def is_refreshing(self, identity: str) -> bool:
        """Return True while a refresh for identity is in flight."""
        return identity in self._in_flight

    def cancel_refresh(self, identity: str | None = None) -> None:
        """Signal cancellation to the refresh of identity, or of every identity."""
        if identity is None:
            tokens = list(self._tokens.values())
        else:
            tokens = [self._tokens[identity]] if identity in self._tokens else []

        for token in tokens:
            token.cancel()

    async def silent_refresh(self, identity: str) -> CacheEntry:
        """Return what is cached right now and make sure a refresh is running.

        Never waits for the network. A second call while a refresh for the same
        identity is in flight does not start another one.
        """
        cached = await self.get_cached(identity)
        html = cached.html if cached else None
        timestamp = cached.timestamp if cached else None

        self.events.publish(RefreshStarted(identity, timestamp))

        if identity in self._in_flight:
            _LOGGER.debug("Refresh already running for %s", mask_identity(identity))
        else:
            # Token and task are registered together so cancel_refresh works at once
            previous = self._tokens.get(identity)
            if previous is not None:
                previous.cancel()
            token = CancellationToken()
            self._tokens[identity] = token
            self._in_flight[identity] = asyncio.create_task(self._async_refresh(identity, token))

        return CacheEntry(html, timestamp)

    async def wait_for_refresh(self, identity: str) -> None:
        """Wait until the in-flight refresh for identity, if any, has finished."""
        task = self._in_flight.get(identity)
        if task is not None:
            await asyncio.shield(task)

    async def _async_refresh(self, identity: str, token: CancellationToken) -> None:
        """Run one refresh and publish how it ended."""
        started = time.monotonic()

        try:
            updated, aborted = await self._async_update_cache(identity, token)
        except Exception as err:
            _LOGGER.error("Error refreshing grades for %s: %s", mask_identity(identity), err)
            self._publish_ended(identity, started, error=True)
        else:
            self._publish_ended(identity, started, updated=updated, aborted=aborted)
        finally:
            if self._tokens.get(identity) is token:
                del self._tokens[identity]
            if self._in_flight.get(identity) is asyncio.current_task():
                del self._in_flight[identity]

    async def _async_update_cache(self, identity: str, token: CancellationToken) -> tuple[bool, bool]:
        """Fetch and cache a fresh page. Returns (updated, aborted)."""
        html = None
        try:
            html = await self._async_fetch(identity, token)
        except CancellationError:
            _LOGGER.info("Refresh for %s was cancelled", mask_identity(identity))
        except EmptyResponseError:
            html = None

        if token.cancelled or await self.active_identity() != identity:
            await self.clear_cache(identity)
            return False, True

        if not html or not html.strip():
            _LOGGER.warning(
                "Empty response for %s, keeping cached data", mask_identity(identity)
            )
            return False, False

        timestamp = await self.store(identity, html)
        if timestamp is None:
            # Identity switched while the guard above was being checked
            await self.clear_cache(identity)
            return False, True

        _LOGGER.info("Successfully updated grades cache for %s", mask_identity(identity))
        return True, False

    async def _async_fetch(self, identity: str, token: CancellationToken) -> str:
        """Fetch the page, retrying network failures with the configured delays."""
        delays = iter(self.retry_delays)
        attempt = 1
        while True:
            try:
                return await self.client.fetch_records(identity, token)
            except (NetworkError, aiohttp.ClientError) as err:
                delay = next(delays, None)
                if delay is None:
                    raise
                _LOGGER.warning(
                    "Fetch attempt %d for %s failed: %s. Retrying in %s seconds...",
                    attempt,
                    mask_identity(identity),
                    err,
                    delay,
                )

            try:
                await asyncio.wait_for(token.wait(), timeout=delay)
            except asyncio.TimeoutError:
                pass
            if token.cancelled:
                raise CancellationError("Refresh cancelled while waiting to retry")
            attempt += 1

    def _publish_ended(
        self,
        identity: str,
        started: float,
        updated: bool = False,
        aborted: bool = False,
        error: bool = False,
    ) -> None:
        """Publish RefreshEnded with the time elapsed since started."""
        duration_ms = int((time.monotonic() - started) * 1000)
        self.events.publish(
            RefreshEnded(identity, updated, duration_ms, aborted=aborted, error=error)
        )

    async def get_student_grades(self, identity: str) -> StudentGrades | None:
        """Parse the cached page for identity; None when nothing is cached."""
        cached = await self.get_cached(identity)
        if cached is None:
            return None
        return parse_student_grades_data(cached.html)

    async def is_cache_stale(self, identity: str) -> bool:
        """Return True when the cached page is older than the stale threshold."""
        cached = await self.get_cached(identity)
        return cached is not None and is_stale(cached.timestamp, self._clock(), self.stale_days)

    async def close(self) -> None:
        """Stop in-flight refreshes without touching the cache and close the client."""
        tasks = list(self._in_flight.values())
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        # A task cancelled before its first step never reaches its own cleanup
        self._in_flight.clear()
        self._tokens.clear()
        await self.client.close()
