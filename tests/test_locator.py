import pytest

from fakes import FakeBrowser, FakeConnector, FakeContext, FakePage
from remote_browser_session.browser.base import LocatorInputMissingError
from remote_browser_session.locator import LocatorResolver
from remote_browser_session.session.connection import ConnectionManager
from remote_browser_session.session.pages import PageManager
from remote_browser_session.session.store import DomainSessionStore


def _resolver(page: FakePage) -> tuple[DomainSessionStore, LocatorResolver, FakeConnector]:
    store = DomainSessionStore()
    connector = FakeConnector(FakeBrowser([FakeContext([page])]))
    pages = PageManager(store, ConnectionManager(store, "wss://remote.test", connector))
    return store, LocatorResolver(store, pages), connector


@pytest.mark.asyncio
async def test_prefixed_ref_uses_data_attribute_query():
    page = FakePage()
    _, resolver, _ = _resolver(page)

    resolved = await resolver.resolve("a.test", "Search button", ref=" dom-4 ")

    assert resolved.origin == "dom"
    assert resolved.locator.selector == '[data-fastmcp-ref="dom-4"]'
    assert resolved.locator.is_first
    assert resolved.element == "Search button"


@pytest.mark.asyncio
async def test_active_ref_wins_over_accessibility_addressing():
    page = FakePage()
    store, resolver, _ = _resolver(page)
    store.get_or_create("a.test").replace_active_refs(["e7"])

    resolved = await resolver.resolve("a.test", "Menu", ref="e7")

    assert resolved.origin == "dom"
    assert resolved.locator.selector == '[data-fastmcp-ref="e7"]'


@pytest.mark.asyncio
async def test_plain_ref_resolves_through_accessibility_tree():
    page = FakePage()
    _, resolver, _ = _resolver(page)

    resolved = await resolver.resolve("a.test", "Submit", ref="e12", selector="#ignored")

    assert resolved.origin == "aria"
    assert resolved.locator.selector == "aria-ref=e12"


@pytest.mark.asyncio
async def test_active_refs_of_another_domain_are_not_consulted():
    page = FakePage()
    store, resolver, _ = _resolver(page)
    store.get_or_create("b.test").replace_active_refs(["e7"])

    resolved = await resolver.resolve("a.test", "Menu", ref="e7")

    assert resolved.origin == "aria"


@pytest.mark.asyncio
async def test_selector_used_when_no_ref():
    page = FakePage()
    _, resolver, _ = _resolver(page)

    resolved = await resolver.resolve("a.test", "Email", selector="input[name=email]")

    assert resolved.origin == "selector"
    assert resolved.locator.selector == "input[name=email]"


@pytest.mark.asyncio
async def test_every_locator_carries_the_element_label():
    page = FakePage()
    _, resolver, _ = _resolver(page)

    dom = await resolver.resolve("a.test", "Checkout", ref="dom-1")
    aria = await resolver.resolve("a.test", "Search", ref="e3")
    raw = await resolver.resolve("a.test", "Email", selector="#email")

    assert dom.locator.description == "Checkout"
    assert aria.locator.description == "Search"
    assert raw.locator.description == "Email"


@pytest.mark.asyncio
async def test_missing_input_fails_without_touching_the_page():
    page = FakePage()
    _, resolver, connector = _resolver(page)

    with pytest.raises(LocatorInputMissingError):
        await resolver.resolve("a.test", "Nothing", ref="  ", selector=None)

    assert connector.calls == 0
    assert page.locators == []
