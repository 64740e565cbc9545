"""Per-domain session bookkeeping."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, FrozenSet, Iterable, Iterator, List, Optional

LOGGER = logging.getLogger(__name__)


class SessionState(str, enum.Enum):
    """Lifecycle states of a domain session's connection."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    CLOSING = "closing"
    CLOSED = "closed"


_TRANSITIONS: Dict[SessionState, FrozenSet[SessionState]] = {
    SessionState.DISCONNECTED: frozenset({SessionState.CONNECTING, SessionState.CLOSING}),
    SessionState.CONNECTING: frozenset(
        {SessionState.CONNECTED, SessionState.DISCONNECTED, SessionState.CLOSING}
    ),
    SessionState.CONNECTED: frozenset({SessionState.DISCONNECTED, SessionState.CLOSING}),
    SessionState.CLOSING: frozenset({SessionState.CLOSED}),
    SessionState.CLOSED: frozenset(),
}


class InvalidTransitionError(RuntimeError):
    """Raised when a session is moved along an edge the lifecycle does not allow."""


@dataclass(eq=False)
class DomainSession:
    """Live resources associated with one domain."""

    domain: str
    browser: Optional[Any] = None
    page: Optional[Any] = None
    state: SessionState = SessionState.DISCONNECTED
    requests: Dict[Any, Optional[Any]] = field(default_factory=dict)
    active_refs: FrozenSet[str] = frozenset()

    @property
    def is_healthy(self) -> bool:
        return self.state is SessionState.CONNECTED

    def transition(self, target: SessionState) -> None:
        """Move to ``target``, clearing handles that do not survive the new state."""

        if target is self.state and target is SessionState.DISCONNECTED:
            return
        if target not in _TRANSITIONS[self.state]:
            raise InvalidTransitionError(
                f"Session for {self.domain} cannot go from {self.state.value} to {target.value}"
            )
        LOGGER.debug("Session %s: %s -> %s", self.domain, self.state.value, target.value)
        self.state = target
        if target in (SessionState.DISCONNECTED, SessionState.CLOSED):
            self.browser = None
            self.page = None
        if target is SessionState.CLOSED:
            self.requests.clear()
            self.active_refs = frozenset()

    def connected(self, browser: Any) -> None:
        self.transition(SessionState.CONNECTED)
        self.browser = browser

    def mark_disconnected(self, browser: Any = None) -> None:
        """Handle loss of the connection.

        A notification about a browser that is no longer the session's current one
        is ignored, as is one arriving while the session is being closed.
        """

        if browser is not None and browser is not self.browser:
            return
        if self.state not in (SessionState.CONNECTED, SessionState.CONNECTING):
            return
        self.transition(SessionState.DISCONNECTED)

    def attach_page(self, page: Any) -> None:
        if not self.is_healthy:
            raise InvalidTransitionError(f"Session for {self.domain} has no live connection")
        self.page = page

    def page_closed(self, page: Any) -> None:
        if page is self.page:
            LOGGER.debug("Page for %s closed", self.domain)
            self.page = None

    def record_request(self, request: Any) -> None:
        self.requests[request] = None

    def record_response(self, response: Any) -> None:
        self.requests[response.request] = response

    def clear_requests(self) -> None:
        self.requests.clear()

    def replace_active_refs(self, refs: Iterable[str]) -> None:
        self.active_refs = frozenset(refs)


class DomainSessionStore:
    """In-memory registry of domain sessions."""

    def __init__(self) -> None:
        self._sessions: Dict[str, DomainSession] = {}

    def get_or_create(self, domain: str) -> DomainSession:
        session = self._sessions.get(domain)
        if session is None:
            session = DomainSession(domain=domain)
            self._sessions[domain] = session
        return session

    def get(self, domain: str) -> Optional[DomainSession]:
        return self._sessions.get(domain)

    def remove(self, domain: str) -> Optional[DomainSession]:
        return self._sessions.pop(domain, None)

    def for_each(self, callback: Callable[[DomainSession], None]) -> None:
        for session in list(self._sessions.values()):
            callback(session)

    def sessions(self) -> List[DomainSession]:
        return list(self._sessions.values())

    def clear(self) -> None:
        self._sessions.clear()

    def __contains__(self, domain: object) -> bool:
        return domain in self._sessions

    def __iter__(self) -> Iterator[DomainSession]:
        return iter(self.sessions())

    def __len__(self) -> int:
        return len(self._sessions)
