"""Keep exactly one current page per domain session."""

from __future__ import annotations

import logging
from typing import Any

from .connection import ConnectionManager
from .store import DomainSession, DomainSessionStore

LOGGER = logging.getLogger(__name__)


class PageManager:
    """Hand out the current page of a domain, opening or reusing one when needed."""

    def __init__(self, store: DomainSessionStore, connections: ConnectionManager) -> None:
        self._store = store
        self._connections = connections

    async def acquire(self, domain: str) -> Any:
        session = self._store.get_or_create(domain)
        if session.is_healthy and session.page is not None:
            return session.page

        browser = await self._connections.acquire(domain)
        contexts = browser.contexts
        if not contexts:
            context = await browser.new_context()
            page = await context.new_page()
            LOGGER.debug("Opened page in a new context for domain %s", domain)
        else:
            # Reuse the remote's context so cookies and storage stay in one place.
            pages = contexts[0].pages
            if pages:
                page = pages[0]
                LOGGER.debug("Reusing existing page for domain %s", domain)
            else:
                page = await contexts[0].new_page()
                LOGGER.debug("Opened page in existing context for domain %s", domain)

        self._wire(session, page)
        session.attach_page(page)
        return page

    @staticmethod
    def _wire(session: DomainSession, page: Any) -> None:
        page.on("request", session.record_request)
        page.on("response", session.record_response)
        page.once("close", session.page_closed)
