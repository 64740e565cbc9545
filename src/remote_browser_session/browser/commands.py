"""Automation commands executed against a managed browser session."""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, Dict, Optional

from playwright.async_api import Error as PlaywrightError

from ..locator import ResolvedLocator
from ..models import BrowserAction, BrowserActionType, CommandResult, FormFieldType
from ..session.manager import BrowserSessionManager
from .base import BrowserActionError, ElementActionError, UnsupportedActionError, to_timeout

LOGGER = logging.getLogger(__name__)

_SCROLL_TO_BOTTOM = "() => window.scrollTo(0, document.body.scrollHeight)"


class BrowserCommands:
    """Execute :class:`BrowserAction` instructions through a session manager."""

    def __init__(self, manager: BrowserSessionManager) -> None:
        self._manager = manager
        self._config = manager.config
        self._handlers: Dict[
            BrowserActionType, Callable[[BrowserAction], Awaitable[CommandResult]]
        ] = {
            BrowserActionType.NAVIGATE: self._navigate,
            BrowserActionType.GO_BACK: self._go_back,
            BrowserActionType.GO_FORWARD: self._go_forward,
            BrowserActionType.SCROLL: self._scroll,
            BrowserActionType.CLICK: self._click,
            BrowserActionType.TYPE: self._type,
            BrowserActionType.SCROLL_TO_ELEMENT: self._scroll_to_element,
            BrowserActionType.WAIT_FOR_ELEMENT: self._wait_for_element,
            BrowserActionType.SCREENSHOT: self._screenshot,
            BrowserActionType.GET_HTML: self._get_html,
            BrowserActionType.GET_TEXT: self._get_text,
            BrowserActionType.SNAPSHOT: self._snapshot,
            BrowserActionType.FILL_FORM: self._fill_form,
            BrowserActionType.NETWORK_REQUESTS: self._network_requests,
            BrowserActionType.CLOSE_SESSION: self._close_session,
        }

    async def execute(self, action: BrowserAction) -> CommandResult:
        handler = self._handlers.get(action.type)
        if handler is None:
            raise UnsupportedActionError(f"Unsupported action type: {action.type}")
        LOGGER.info("Executing browser action %s", action.type.value)
        return await handler(action)

    # Page-level commands -----------------------------------------------------

    async def _navigate(self, action: BrowserAction) -> CommandResult:
        if not action.url:
            raise BrowserActionError("Navigate action requires a URL")
        context = await self._manager.acquire_page(action.url)
        self._manager.clear_requests(context.domain)
        page = context.page
        await page.goto(
            action.url,
            timeout=to_timeout(_or_default(action.timeout, self._config.navigation_timeout)),
            wait_until=self._config.wait_until,
        )
        return CommandResult(
            message=f"Successfully navigated to {page.url}",
            data={"title": await page.title(), "url": page.url},
        )

    async def _go_back(self, action: BrowserAction) -> CommandResult:
        page = (await self._manager.acquire_page(domain=action.domain)).page
        await page.go_back()
        return CommandResult(
            message="Successfully navigated back",
            data={"title": await page.title(), "url": page.url},
        )

    async def _go_forward(self, action: BrowserAction) -> CommandResult:
        page = (await self._manager.acquire_page(domain=action.domain)).page
        await page.go_forward()
        return CommandResult(
            message="Successfully navigated forward",
            data={"title": await page.title(), "url": page.url},
        )

    async def _scroll(self, action: BrowserAction) -> CommandResult:
        page = (await self._manager.acquire_page(domain=action.domain)).page
        await page.evaluate(_SCROLL_TO_BOTTOM)
        return CommandResult(message="Successfully scrolled to the bottom of the page")

    async def _screenshot(self, action: BrowserAction) -> CommandResult:
        page = (await self._manager.acquire_page(domain=action.domain)).page
        image = await page.screenshot(full_page=action.full_page)
        return CommandResult(
            message="Screenshot captured",
            data={"full_page": action.full_page},
            binary=image,
        )

    async def _get_html(self, action: BrowserAction) -> CommandResult:
        page = (await self._manager.acquire_page(domain=action.domain)).page
        if action.full_page:
            html = await page.content()
        else:
            html = await page.eval_on_selector("body", "body => body.innerHTML")
        return CommandResult(message="Page HTML", data={"html": html, "full_page": action.full_page})

    async def _get_text(self, action: BrowserAction) -> CommandResult:
        page = (await self._manager.acquire_page(domain=action.domain)).page
        text = await page.eval_on_selector("body", "body => body.innerText")
        return CommandResult(message="Page text", data={"text": text})

    async def _snapshot(self, action: BrowserAction) -> CommandResult:
        snapshot = await self._manager.capture_snapshot(action.filtered, domain=action.domain)
        return CommandResult(message="Snapshot captured", data=snapshot.model_dump())

    async def _network_requests(self, action: BrowserAction) -> CommandResult:
        records = self._manager.list_requests(action.domain)
        return CommandResult(
            message=f"Captured {len(records)} requests",
            data={
                "total": len(records),
                "requests": [record.model_dump(exclude_none=True) for record in records],
            },
        )

    async def _close_session(self, action: BrowserAction) -> CommandResult:
        await self._manager.close_session(action.domain)
        target = action.domain or "all domains"
        return CommandResult(message=f"Closed browser session for {target}")

    # Element commands --------------------------------------------------------

    async def _locate(self, action: BrowserAction) -> ResolvedLocator:
        return await self._manager.resolve_locator(
            action.element or action.ref or action.selector or "element",
            ref=action.ref,
            selector=action.selector,
            domain=action.domain,
        )

    def _element_data(self, action: BrowserAction) -> dict[str, object]:
        return {
            key: value
            for key, value in (("ref", action.ref), ("selector", action.selector))
            if value
        }

    async def _click(self, action: BrowserAction) -> CommandResult:
        target = await self._locate(action)
        timeout = to_timeout(_or_default(action.timeout, self._config.action_timeout))
        try:
            await target.locator.click(timeout=timeout)
        except PlaywrightError as exc:
            raise ElementActionError(target.element, "click", exc) from exc
        return CommandResult(
            message=f"Successfully clicked element: {target.element}",
            data=self._element_data(action),
        )

    async def _type(self, action: BrowserAction) -> CommandResult:
        if action.text is None:
            raise BrowserActionError("Type action requires text")
        target = await self._locate(action)
        timeout = to_timeout(action.timeout)
        try:
            await target.locator.fill(action.text, timeout=timeout)
            if action.submit:
                await target.locator.press("Enter", timeout=timeout)
        except PlaywrightError as exc:
            raise ElementActionError(target.element, "type into", exc) from exc
        return CommandResult(
            message=f"Successfully typed into element: {target.element}",
            data={"submitted": action.submit, **self._element_data(action)},
        )

    async def _scroll_to_element(self, action: BrowserAction) -> CommandResult:
        target = await self._locate(action)
        try:
            await target.locator.scroll_into_view_if_needed(timeout=to_timeout(action.timeout))
        except PlaywrightError as exc:
            raise ElementActionError(target.element, "scroll to", exc) from exc
        return CommandResult(
            message=f"Successfully scrolled to element: {target.element}",
            data=self._element_data(action),
        )

    async def _wait_for_element(self, action: BrowserAction) -> CommandResult:
        target = await self._locate(action)
        seconds = _or_default(action.timeout, self._config.wait_timeout)
        try:
            await target.locator.wait_for(timeout=to_timeout(seconds))
        except PlaywrightError as exc:
            raise ElementActionError(target.element, "wait for", exc) from exc
        return CommandResult(
            message=f"Successfully waited for element: {target.element}",
            data={"timeout": seconds, **self._element_data(action)},
        )

    async def _fill_form(self, action: BrowserAction) -> CommandResult:
        results: list[str] = []
        for field in action.fields:
            target = await self._manager.resolve_locator(
                field.name,
                ref=field.ref,
                domain=action.domain,
            )
            try:
                results.append(await self._fill_field(target, field.type, field.value))
            except PlaywrightError as exc:
                raise ElementActionError(target.element, "fill", exc) from exc
        return CommandResult(message="Successfully filled form", data={"results": results})

    @staticmethod
    async def _fill_field(target: ResolvedLocator, kind: FormFieldType, value: str) -> str:
        if kind in (FormFieldType.TEXTBOX, FormFieldType.SLIDER):
            await target.locator.fill(value)
            return f'Filled {target.element} with "{value}"'
        if kind in (FormFieldType.CHECKBOX, FormFieldType.RADIO):
            checked = value == "true"
            await target.locator.set_checked(checked)
            return f"Set {target.element} to {'checked' if checked else 'unchecked'}"
        await target.locator.select_option(label=value)
        return f'Selected "{value}" in {target.element}'


def _or_default(value: Optional[float], fallback: float) -> float:
    return value if value is not None else fallback
