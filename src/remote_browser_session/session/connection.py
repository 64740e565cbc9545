"""Remote debugging connections, one per domain session."""

from __future__ import annotations

import logging
from functools import partial
from typing import Any, Awaitable, Callable, Optional

from playwright.async_api import Browser, Playwright, async_playwright

from ..browser.base import to_timeout
from .store import DomainSession, DomainSessionStore, InvalidTransitionError, SessionState

LOGGER = logging.getLogger(__name__)

Connector = Callable[[str], Awaitable[Any]]


class PlaywrightConnector:
    """Open Chromium connections over CDP with a lazily started Playwright driver."""

    def __init__(self, timeout: Optional[float] = None) -> None:
        self._timeout = timeout
        self._playwright: Optional[Playwright] = None

    async def __call__(self, endpoint: str) -> Browser:
        if self._playwright is None:
            self._playwright = await async_playwright().start()
        return await self._playwright.chromium.connect_over_cdp(
            endpoint,
            timeout=to_timeout(self._timeout),
        )

    async def stop(self) -> None:
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None


class ConnectionManager:
    """Open, probe and transparently re-open the connection of each domain."""

    def __init__(
        self,
        store: DomainSessionStore,
        endpoint: str,
        connector: Optional[Connector] = None,
        *,
        connect_timeout: Optional[float] = None,
    ) -> None:
        self._store = store
        self._endpoint = endpoint
        self._owns_connector = connector is None
        self._connector = connector or PlaywrightConnector(timeout=connect_timeout)

    @property
    def endpoint(self) -> str:
        return self._endpoint

    async def acquire(self, domain: str) -> Any:
        """Return a live connection for ``domain``, reconnecting at most once."""

        session = self._store.get_or_create(domain)
        if session.browser is not None and not self._probe(session):
            LOGGER.info("Reconnecting browser for domain %s", domain)
        if session.browser is not None:
            return session.browser

        session.transition(SessionState.CONNECTING)
        try:
            browser = await self._connector(self._endpoint)
        except BaseException:
            if session.state is SessionState.CONNECTING:
                session.transition(SessionState.DISCONNECTED)
            raise
        if session.state is not SessionState.CONNECTING:
            LOGGER.info("Session for %s was closed while connecting, discarding browser", domain)
            await _close_browser(browser, domain)
            raise InvalidTransitionError(f"Session for {domain} was closed while connecting")
        session.connected(browser)
        browser.on("disconnected", partial(self._on_disconnected, session))
        LOGGER.info("Connected browser for domain %s", domain)
        return browser

    async def release(self, session: DomainSession) -> None:
        """Close the session's connection and move it to its terminal state."""

        browser = session.browser
        session.transition(SessionState.CLOSING)
        try:
            if browser is not None:
                await _close_browser(browser, session.domain)
        finally:
            session.transition(SessionState.CLOSED)

    async def aclose(self) -> None:
        """Stop the driver, unless the connector was supplied by the caller."""

        if self._owns_connector and isinstance(self._connector, PlaywrightConnector):
            await self._connector.stop()

    def _probe(self, session: DomainSession) -> bool:
        browser = session.browser
        try:
            if not browser.is_connected():
                raise ConnectionError("browser reports it is not connected")
            contexts = browser.contexts
        except Exception as exc:
            LOGGER.warning(
                "Browser connection lost for domain %s (%s), reconnecting...",
                session.domain,
                exc,
            )
            session.mark_disconnected()
            return False
        LOGGER.debug("Reusing browser for domain %s (%d contexts)", session.domain, len(contexts))
        return True

    @staticmethod
    def _on_disconnected(session: DomainSession, browser: Any) -> None:
        if browser is session.browser and session.state is SessionState.CONNECTED:
            LOGGER.warning("Browser for domain %s disconnected", session.domain)
        session.mark_disconnected(browser)


async def _close_browser(browser: Any, domain: str) -> None:
    try:
        await browser.close()
    except Exception:
        LOGGER.exception("Error closing browser for domain %s", domain)
