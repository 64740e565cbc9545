import pytest

from fakes import FakeBrowser, FakePage, FakeRequest, FakeResponse
from remote_browser_session.session.store import (
    DomainSession,
    DomainSessionStore,
    InvalidTransitionError,
    SessionState,
)


def _connected_session() -> DomainSession:
    session = DomainSession(domain="a.test")
    session.transition(SessionState.CONNECTING)
    session.connected(FakeBrowser())
    session.attach_page(FakePage())
    return session


def test_get_or_create_is_idempotent():
    store = DomainSessionStore()

    first = store.get_or_create("a.test")
    second = store.get_or_create("a.test")

    assert first is second
    assert first.state is SessionState.DISCONNECTED
    assert first.browser is None and first.page is None
    assert len(store) == 1


def test_remove_only_drops_the_given_domain():
    store = DomainSessionStore()
    store.get_or_create("a.test")
    kept = store.get_or_create("b.test")

    store.remove("a.test")

    assert "a.test" not in store
    assert store.get("b.test") is kept


def test_disconnect_clears_handles_but_keeps_request_log():
    session = _connected_session()
    request = FakeRequest("https://a.test/")
    session.record_request(request)

    session.mark_disconnected()

    assert session.state is SessionState.DISCONNECTED
    assert not session.is_healthy
    assert session.browser is None and session.page is None
    assert list(session.requests) == [request]


def test_closed_session_drops_everything():
    session = _connected_session()
    session.record_request(FakeRequest("https://a.test/"))
    session.replace_active_refs(["dom-1"])

    session.transition(SessionState.CLOSING)
    session.transition(SessionState.CLOSED)

    assert session.browser is None and session.page is None
    assert session.requests == {}
    assert session.active_refs == frozenset()


def test_closed_session_cannot_reconnect():
    session = DomainSession(domain="a.test")
    session.transition(SessionState.CLOSING)
    session.transition(SessionState.CLOSED)

    with pytest.raises(InvalidTransitionError):
        session.transition(SessionState.CONNECTING)


def test_unhealthy_session_refuses_a_page():
    session = DomainSession(domain="a.test")

    with pytest.raises(InvalidTransitionError):
        session.attach_page(FakePage())


def test_disconnect_from_a_replaced_browser_is_ignored():
    session = _connected_session()
    stale = FakeBrowser()

    session.mark_disconnected(stale)

    assert session.is_healthy
    assert session.page is not None


def test_close_of_a_previous_page_is_ignored():
    session = _connected_session()
    current = session.page

    session.page_closed(FakePage())

    assert session.page is current
    session.page_closed(current)
    assert session.page is None


def test_response_overwrites_entry_without_reordering():
    session = DomainSession(domain="a.test")
    first = FakeRequest("https://a.test/1")
    second = FakeRequest("https://a.test/2")
    session.record_request(first)
    session.record_request(second)

    response = FakeResponse(first, status=204)
    session.record_response(response)

    assert list(session.requests.items()) == [(first, response), (second, None)]
