import pytest

from fakes import FakeBrowser, FakeConnector, FakeContext, FakePage
from remote_browser_session.session.connection import ConnectionManager
from remote_browser_session.session.pages import PageManager
from remote_browser_session.session.store import DomainSessionStore


def _pages(*browsers: FakeBrowser) -> tuple[DomainSessionStore, PageManager, FakeConnector]:
    store = DomainSessionStore()
    connector = FakeConnector(*browsers)
    connections = ConnectionManager(store, "wss://remote.test", connector)
    return store, PageManager(store, connections), connector


@pytest.mark.asyncio
async def test_reuses_first_page_of_existing_context():
    existing = FakePage(url="https://a.test/")
    context = FakeContext([existing, FakePage()])
    browser = FakeBrowser([context, FakeContext()])
    _, pages, _ = _pages(browser)

    page = await pages.acquire("a.test")

    assert page is existing
    assert browser.new_context_calls == 0
    assert context.new_page_calls == 0


@pytest.mark.asyncio
async def test_opens_page_in_existing_empty_context():
    context = FakeContext()
    browser = FakeBrowser([context])
    _, pages, _ = _pages(browser)

    page = await pages.acquire("a.test")

    assert context.pages == [page]
    assert browser.new_context_calls == 0


@pytest.mark.asyncio
async def test_creates_context_when_none_exist():
    browser = FakeBrowser()
    _, pages, _ = _pages(browser)

    page = await pages.acquire("a.test")

    assert browser.new_context_calls == 1
    assert browser.contexts[0].pages == [page]


@pytest.mark.asyncio
async def test_current_page_is_returned_without_reconnecting():
    _, pages, connector = _pages()

    first = await pages.acquire("a.test")
    second = await pages.acquire("a.test")

    assert first is second
    assert connector.calls == 1


@pytest.mark.asyncio
async def test_request_log_tracks_pending_and_answered_requests():
    store, pages, _ = _pages()
    page = await pages.acquire("a.test")

    first = page.issue("https://a.test/app.js")
    second = page.issue("https://a.test/api", method="post")
    response = page.answer(first, status=200)

    assert list(store.get("a.test").requests.items()) == [(first, response), (second, None)]


@pytest.mark.asyncio
async def test_closed_page_is_replaced_on_next_acquire():
    store, pages, connector = _pages()
    page = await pages.acquire("a.test")

    await page.close()
    assert store.get("a.test").page is None

    replacement = await pages.acquire("a.test")

    assert replacement is not page
    assert connector.calls == 1
    assert page.listener_count("close") == 0


@pytest.mark.asyncio
async def test_domains_get_separate_connections():
    store, pages, connector = _pages()

    a_page = await pages.acquire("a.test")
    b_page = await pages.acquire("b.test")
    a_page.issue("https://a.test/")

    assert a_page is not b_page
    assert connector.calls == 2
    assert store.get("a.test").browser is not store.get("b.test").browser
    assert store.get("b.test").requests == {}
