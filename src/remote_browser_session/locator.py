"""Turn element refs and selectors into actionable locators."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Literal, Optional

from .browser.base import LocatorInputMissingError
from .session.pages import PageManager
from .session.store import DomainSessionStore
from .snapshot.scanner import DOM_REF_ATTRIBUTE, is_dom_ref

LOGGER = logging.getLogger(__name__)

LocatorOrigin = Literal["dom", "aria", "selector"]


@dataclass(frozen=True)
class ResolvedLocator:
    """A Playwright locator plus the label used when reporting failures."""

    element: str
    locator: Any
    origin: LocatorOrigin


class LocatorResolver:
    """Resolve a DOM-scan ref, an accessibility ref or a raw selector, in that order."""

    def __init__(
        self,
        store: DomainSessionStore,
        pages: PageManager,
        ref_attribute: str = DOM_REF_ATTRIBUTE,
    ) -> None:
        self._store = store
        self._pages = pages
        self._ref_attribute = ref_attribute

    async def resolve(
        self,
        domain: str,
        element: str,
        ref: Optional[str] = None,
        selector: Optional[str] = None,
    ) -> ResolvedLocator:
        ref = ref.strip() if ref else None
        selector = selector.strip() if selector else None
        if not ref and not selector:
            raise LocatorInputMissingError(element)

        page = await self._pages.acquire(domain)
        if ref:
            # The prefix is checked before the active set; both lead to the DOM path.
            if is_dom_ref(ref) or ref in self._store.get_or_create(domain).active_refs:
                locator = page.locator(f'[{self._ref_attribute}="{ref}"]').first
                origin: LocatorOrigin = "dom"
            else:
                locator = page.locator(f"aria-ref={ref}")
                origin = "aria"
        else:
            locator = page.locator(selector)
            origin = "selector"
        if element:
            locator = locator.describe(element)
        LOGGER.debug("Resolved %r via %s locator", element, origin)
        return ResolvedLocator(element=element, locator=locator, origin=origin)
