"""Composition of the session, page, locator and snapshot components."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, List, Optional, Tuple
from urllib.parse import urlsplit

from ..config import ScannerConfig, SessionConfig, ToolConfig
from ..locator import LocatorResolver, ResolvedLocator
from ..models import RequestRecord, SnapshotResult
from ..snapshot.engine import SnapshotEngine
from ..snapshot.scanner import ClickabilityScanner, ScanOptions
from .connection import ConnectionManager, Connector
from .pages import PageManager
from .store import DomainSessionStore

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class PageContext:
    """The page handed out for a domain, returned by :meth:`acquire_page`."""

    domain: str
    page: Any


class BrowserSessionManager:
    """Owns the domain sessions behind one remote debugging endpoint.

    Operations that take an optional ``domain`` fall back to :attr:`current_domain`,
    which is set whenever :meth:`acquire_page` receives a URL and reset by
    :meth:`close_session` without arguments.
    """

    def __init__(
        self,
        cdp_endpoint: str,
        *,
        session_config: Optional[SessionConfig] = None,
        scanner_config: Optional[ScannerConfig] = None,
        connector: Optional[Connector] = None,
    ) -> None:
        self._config = session_config or SessionConfig()
        scanner_config = scanner_config or ScannerConfig()
        self._store = DomainSessionStore()
        self._connections = ConnectionManager(
            self._store,
            cdp_endpoint,
            connector,
            connect_timeout=self._config.connect_timeout,
        )
        self._pages = PageManager(self._store, self._connections)
        self._locators = LocatorResolver(
            self._store,
            self._pages,
            ref_attribute=scanner_config.ref_attribute,
        )
        self._snapshots = SnapshotEngine(
            self._store,
            self._pages,
            ClickabilityScanner(ScanOptions.from_config(scanner_config)),
        )
        self._current_domain = self._config.default_domain

    @classmethod
    def from_config(
        cls,
        config: ToolConfig,
        *,
        connector: Optional[Connector] = None,
    ) -> "BrowserSessionManager":
        return cls(
            config.resolve_endpoint(),
            session_config=config.session,
            scanner_config=config.scanner,
            connector=connector,
        )

    @property
    def store(self) -> DomainSessionStore:
        return self._store

    @property
    def current_domain(self) -> str:
        return self._current_domain

    @property
    def config(self) -> SessionConfig:
        return self._config

    def domain_for(self, url: str) -> str:
        """Return the hostname of ``url`` or the default domain when it has none."""

        try:
            hostname = urlsplit(url).hostname
        except ValueError as exc:
            LOGGER.warning("Error extracting domain from %s: %s", url, exc)
            return self._config.default_domain
        if not hostname:
            LOGGER.warning("Error extracting domain from %s: no hostname", url)
            return self._config.default_domain
        return hostname

    def _domain(self, domain: Optional[str]) -> str:
        return domain or self._current_domain

    async def acquire_session(self, domain: Optional[str] = None) -> Any:
        return await self._connections.acquire(self._domain(domain))

    async def acquire_page(
        self,
        url: Optional[str] = None,
        *,
        domain: Optional[str] = None,
    ) -> PageContext:
        if url:
            self._current_domain = self.domain_for(url)
        target = domain or self._current_domain
        page = await self._pages.acquire(target)
        return PageContext(domain=target, page=page)

    async def resolve_locator(
        self,
        element: str,
        ref: Optional[str] = None,
        selector: Optional[str] = None,
        *,
        domain: Optional[str] = None,
    ) -> ResolvedLocator:
        return await self._locators.resolve(self._domain(domain), element, ref, selector)

    async def capture_snapshot(
        self,
        filtered: bool = False,
        *,
        domain: Optional[str] = None,
    ) -> SnapshotResult:
        return await self._snapshots.capture(self._domain(domain), filtered=filtered)

    def raw_requests(self, domain: Optional[str] = None) -> List[Tuple[Any, Optional[Any]]]:
        session = self._store.get_or_create(self._domain(domain))
        return list(session.requests.items())

    def list_requests(self, domain: Optional[str] = None) -> List[RequestRecord]:
        records: List[RequestRecord] = []
        for request, response in self.raw_requests(domain):
            record = RequestRecord(method=request.method.upper(), url=request.url)
            if response is not None:
                record.status = response.status
                record.status_text = response.status_text
            records.append(record)
        return records

    def clear_requests(self, domain: Optional[str] = None) -> None:
        self._store.get_or_create(self._domain(domain)).clear_requests()

    async def close_session(self, domain: Optional[str] = None) -> None:
        """Close one domain's session, or every session when no domain is given."""

        if domain:
            session = self._store.remove(domain)
            if session is not None:
                await self._connections.release(session)
                LOGGER.info("Closed session for domain %s", domain)
            return
        for session in self._store.sessions():
            await self._connections.release(session)
        self._store.clear()
        self._current_domain = self._config.default_domain
        LOGGER.info("Closed all browser sessions")

    async def aclose(self) -> None:
        await self.close_session()
        await self._connections.aclose()

    async def __aenter__(self) -> "BrowserSessionManager":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
