import pytest

from fakes import FakeBrowser, FakeConnector, FakeContext, FakePage
from remote_browser_session.browser.base import SnapshotCaptureError
from remote_browser_session.session.connection import ConnectionManager
from remote_browser_session.session.pages import PageManager
from remote_browser_session.session.store import DomainSessionStore
from remote_browser_session.snapshot.engine import SnapshotEngine
from remote_browser_session.snapshot.scanner import DOM_REF_ATTRIBUTE, SCAN_SCRIPT

ARIA = """\
- banner [ref=e1]:
  - link "Home" [ref=e2]
    - /url: "#top"
  - button "Sign in" [ref=e3]
"""


def _engine(*pages: FakePage) -> tuple[DomainSessionStore, SnapshotEngine]:
    store = DomainSessionStore()
    browsers = [FakeBrowser([FakeContext([page])]) for page in pages]
    connector = FakeConnector(*browsers)
    page_manager = PageManager(store, ConnectionManager(store, "wss://remote.test", connector))
    return store, SnapshotEngine(store, page_manager)


@pytest.mark.asyncio
async def test_raw_capture_skips_the_dom_scan():
    page = FakePage(url="https://a.test/", title="A", aria=ARIA)
    store, engine = _engine(page)

    result = await engine.capture("a.test", filtered=False)

    assert result.aria_snapshot == ARIA
    assert result.dom_snapshot is None
    assert (result.url, result.title) == ("https://a.test/", "A")
    assert page.evaluations == []
    assert store.get("a.test").active_refs == frozenset()


@pytest.mark.asyncio
async def test_filtered_capture_merges_both_views():
    page = FakePage(
        url="https://a.test/",
        title="A",
        aria=ARIA,
        scan=[
            {"ref": "dom-1", "role": "button", "name": "Sign in", "url": ""},
            {"ref": "dom-2", "role": "a", "name": "Pricing", "url": "https://a.test/pricing"},
        ],
    )
    store, engine = _engine(page)

    result = await engine.capture("a.test", filtered=True)

    assert result.aria_snapshot == '[e2] link "Home"\n[e3] button "Sign in"'
    assert result.dom_snapshot == (
        '[dom-1] button "Sign in"\n[dom-2] a "Pricing" -> https://a.test/pricing'
    )
    assert store.get("a.test").active_refs == {"dom-1", "dom-2"}
    script, options = page.evaluations[0]
    assert script == SCAN_SCRIPT
    assert options["ref_attribute"] == DOM_REF_ATTRIBUTE
    assert options["max_name_length"] == 80
    assert "a[href]" in options["selectors"]


@pytest.mark.asyncio
async def test_capture_asks_for_the_ref_annotated_dump():
    page = FakePage(aria='- button "Submit" [ref=e12]')
    _, engine = _engine(page)

    result = await engine.capture("a.test", filtered=True)

    assert page.snapshot_modes == ["ai"]
    assert page.locators[0].selector == "body"
    assert result.aria_snapshot == '[e12] button "Submit"'


@pytest.mark.asyncio
async def test_second_capture_replaces_active_refs():
    page = FakePage(aria=ARIA, scan=[{"ref": "dom-1", "role": "button", "name": "Old"}])
    store, engine = _engine(page)
    await engine.capture("a.test", filtered=True)

    page.scan = [{"ref": "dom-5", "role": "button", "name": "New"}]
    await engine.capture("a.test", filtered=True)

    assert store.get("a.test").active_refs == {"dom-5"}


@pytest.mark.asyncio
async def test_capture_on_one_domain_leaves_other_refs_alone():
    a_page = FakePage(aria=ARIA, scan=[{"ref": "dom-1", "role": "button", "name": "A"}])
    b_page = FakePage(aria=ARIA, scan=[{"ref": "dom-9", "role": "button", "name": "B"}])
    store, engine = _engine(a_page, b_page)
    await engine.capture("a.test", filtered=True)

    await engine.capture("b.test", filtered=True)

    assert store.get("a.test").active_refs == {"dom-1"}
    assert store.get("b.test").active_refs == {"dom-9"}


@pytest.mark.asyncio
async def test_empty_scan_reports_no_dom_snapshot():
    page = FakePage(aria="- heading \"Only text\" [ref=e1]")
    store, engine = _engine(page)
    store.get_or_create("a.test").replace_active_refs(["dom-3"])

    result = await engine.capture("a.test", filtered=True)

    assert result.aria_snapshot == "No interactive elements found"
    assert result.dom_snapshot is None
    assert store.get("a.test").active_refs == frozenset()


@pytest.mark.asyncio
async def test_accessibility_failure_is_wrapped_with_stage():
    page = FakePage()
    page.snapshot_error = RuntimeError("frame detached")
    _, engine = _engine(page)

    with pytest.raises(SnapshotCaptureError) as excinfo:
        await engine.capture("a.test", filtered=True)

    assert excinfo.value.stage == "aria"
    assert "frame detached" in str(excinfo.value)
    assert isinstance(excinfo.value.__cause__, RuntimeError)


@pytest.mark.asyncio
async def test_scan_failure_keeps_previous_refs():
    page = FakePage(aria=ARIA, scan=[{"ref": "dom-1", "role": "button", "name": "Old"}])
    store, engine = _engine(page)
    await engine.capture("a.test", filtered=True)
    page.evaluate_error = RuntimeError("execution context destroyed")

    with pytest.raises(SnapshotCaptureError) as excinfo:
        await engine.capture("a.test", filtered=True)

    assert excinfo.value.stage == "dom-scan"
    assert store.get("a.test").active_refs == {"dom-1"}
