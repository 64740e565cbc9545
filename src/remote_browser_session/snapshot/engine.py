"""Capture accessibility and DOM views of the current page."""

from __future__ import annotations

import logging
from typing import Any, List, Optional

from ..browser.base import SnapshotCaptureError
from ..models import SnapshotElement, SnapshotResult
from ..session.pages import PageManager
from ..session.store import DomainSessionStore
from .filter import SnapshotFilter
from .scanner import ClickabilityScanner

LOGGER = logging.getLogger(__name__)


async def aria_snapshot(page: Any) -> str:
    """Return the accessibility dump of ``page``.

    Only the ``ai`` mode annotates nodes with ``[ref=...]``; those refs are what
    ``aria-ref=`` locators resolve.
    """

    return await page.locator("body").aria_snapshot(mode="ai")


class SnapshotEngine:
    """Produce snapshot results and keep each domain's active DOM refs current."""

    def __init__(
        self,
        store: DomainSessionStore,
        pages: PageManager,
        scanner: Optional[ClickabilityScanner] = None,
    ) -> None:
        self._store = store
        self._pages = pages
        self._scanner = scanner or ClickabilityScanner()

    async def capture(self, domain: str, filtered: bool = False) -> SnapshotResult:
        page = await self._pages.acquire(domain)
        LOGGER.debug("Capturing %s snapshot for %s", "filtered" if filtered else "raw", domain)
        stage = "aria"
        try:
            full_snapshot = await aria_snapshot(page)
            if not filtered:
                stage = "metadata"
                return SnapshotResult(
                    url=page.url,
                    title=await page.title(),
                    aria_snapshot=full_snapshot,
                )
            stage = "filter"
            compact = SnapshotFilter.filter_snapshot(full_snapshot)
            stage = "dom-scan"
            dom_elements: List[SnapshotElement] = await self._scanner.scan(page)
            stage = "metadata"
            url = page.url
            title = await page.title()
        except Exception as exc:
            raise SnapshotCaptureError(stage, exc) from exc

        session = self._store.get_or_create(domain)
        session.replace_active_refs(element.ref for element in dom_elements)
        LOGGER.debug("Active DOM refs for %s replaced (%d refs)", domain, len(session.active_refs))
        return SnapshotResult(
            url=url,
            title=title,
            aria_snapshot=compact,
            dom_snapshot=SnapshotFilter.format_dom_elements(dom_elements),
        )
