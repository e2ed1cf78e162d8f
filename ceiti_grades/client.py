"""Portal client for fetching a student's record page."""
import asyncio
from collections.abc import Awaitable
from contextlib import suppress
import logging
from typing import TypeVar

import aiohttp

from .const import DEFAULT_BASE_URL, DEFAULT_INFO_PATH, DEFAULT_LOGIN_PATH
from .exceptions import CancellationError, EmptyResponseError, NetworkError

_LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


class CancellationToken:
    """Cooperative cancellation signal shared between a caller and a request."""

    def __init__(self) -> None:
        self._event = asyncio.Event()

    def cancel(self) -> None:
        """Signal cancellation to every waiter."""
        self._event.set()

    @property
    def cancelled(self) -> bool:
        """Return True once cancel() has been called."""
        return self._event.is_set()

    async def wait(self) -> None:
        """Wait until the token is cancelled."""
        await self._event.wait()


class PortalClient:
    """Client to log in with an IDNP and download the student's info page."""

    def __init__(
        self,
        session: aiohttp.ClientSession | None = None,
        base_url: str = DEFAULT_BASE_URL,
        login_path: str = DEFAULT_LOGIN_PATH,
        info_path: str = DEFAULT_INFO_PATH,
    ) -> None:
        """Initialize the portal client."""
        self.base_url = base_url.rstrip("/")
        self.login_url = f"{self.base_url}{login_path}"
        self.info_url = f"{self.base_url}{info_path}"
        self._session = session
        self._owns_session = session is None

    @property
    def session(self) -> aiohttp.ClientSession:
        """Return the HTTP session, creating one if needed."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        """Close the session if this client created it."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self) -> "PortalClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def _run(self, request: Awaitable[T], cancel_token: CancellationToken | None) -> T:
        """Await a request, aborting it as soon as the token fires."""
        if cancel_token is None:
            return await request

        request_task = asyncio.ensure_future(request)
        if cancel_token.cancelled:
            request_task.cancel()
            raise CancellationError("Request cancelled before it started")

        cancel_task = asyncio.ensure_future(cancel_token.wait())
        try:
            done, _ = await asyncio.wait(
                {request_task, cancel_task}, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            cancel_task.cancel()
            if not request_task.done():
                request_task.cancel()

        if request_task in done:
            return request_task.result()

        with suppress(asyncio.CancelledError):
            await request_task
        raise CancellationError("Request cancelled")

    async def _post_login(self, identity: str) -> str:
        """POST the IDNP to the login form."""
        async with self.session.post(self.login_url, data={"idnp": identity}) as response:
            if not response.ok:
                _LOGGER.error("Login request failed with status: %s", response.status)
                raise NetworkError(response.status, f"Login failed with status: {response.status}")
            return await response.text()

    async def _get_info(self, identity: str) -> str:
        """GET the info page for identity."""
        async with self.session.get(f"{self.info_url}{identity}") as response:
            if not response.ok:
                _LOGGER.error("Info request failed with status: %s", response.status)
                raise NetworkError(
                    response.status,
                    f"Failed to get student info with status: {response.status}",
                )
            return await response.text()

    async def login(self, identity: str, cancel_token: CancellationToken | None = None) -> str:
        """Submit the IDNP to the portal and return its acknowledgement."""
        _LOGGER.debug("Logging in to %s", self.login_url)
        return await self._run(self._post_login(identity), cancel_token)

    async def fetch_records(
        self, identity: str, cancel_token: CancellationToken | None = None
    ) -> str:
        """Log in, then download the raw HTML of the student's info page."""
        await self.login(identity, cancel_token)
        html = await self._run(self._get_info(identity), cancel_token)
        if not html or not html.strip():
            raise EmptyResponseError("Portal returned an empty page")
        _LOGGER.debug("Fetched %d characters of HTML", len(html))
        return html
