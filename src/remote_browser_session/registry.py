"""Session managers keyed by caller-chosen session ids."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from .config import ToolConfig
from .session.connection import Connector
from .session.manager import BrowserSessionManager

LOGGER = logging.getLogger(__name__)

DEFAULT_SESSION_ID = "default"

EndpointResolver = Callable[[str, Optional[str]], str]
ManagerFactory = Callable[[str], BrowserSessionManager]


@dataclass
class ManagedSession:
    """A manager together with the zone and country it was built for."""

    manager: BrowserSessionManager
    zone: str
    country: Optional[str] = None


class SessionRegistry:
    """Reuse one :class:`BrowserSessionManager` per session id.

    A manager is rebuilt when the caller asks for a different zone or country than
    the one it was created with.
    """

    def __init__(
        self,
        resolve_endpoint: EndpointResolver,
        *,
        default_zone: str,
        factory: Optional[ManagerFactory] = None,
    ) -> None:
        self._resolve_endpoint = resolve_endpoint
        self._default_zone = default_zone
        self._factory = factory or BrowserSessionManager
        self._sessions: Dict[str, ManagedSession] = {}

    @classmethod
    def from_config(
        cls,
        config: ToolConfig,
        *,
        connector: Optional[Connector] = None,
    ) -> "SessionRegistry":
        def resolve(zone: str, country: Optional[str]) -> str:
            zone_config = config.zone.model_copy(update={"name": zone, "country": country})
            return config.resolve_endpoint(zone_config)

        def build(endpoint: str) -> BrowserSessionManager:
            return BrowserSessionManager(
                endpoint,
                session_config=config.session,
                scanner_config=config.scanner,
                connector=connector,
            )

        return cls(resolve, default_zone=config.zone.name, factory=build)

    def get(self, session_id: Optional[str] = None) -> Optional[ManagedSession]:
        return self._sessions.get(session_id or DEFAULT_SESSION_ID)

    async def get_or_create(
        self,
        session_id: Optional[str] = None,
        *,
        zone: Optional[str] = None,
        country: Optional[str] = None,
    ) -> BrowserSessionManager:
        key = session_id or DEFAULT_SESSION_ID
        existing = self._sessions.get(key)
        zone = zone or (existing.zone if existing else None) or self._default_zone
        if country is not None:
            normalized_country = country.strip().lower() or None
        else:
            normalized_country = existing.country if existing else None

        if existing and existing.zone == zone and existing.country == normalized_country:
            return existing.manager
        if existing:
            LOGGER.info("Rebuilding session %s for zone %s", key, zone)
            await existing.manager.aclose()
        manager = self._factory(self._resolve_endpoint(zone, normalized_country))
        self._sessions[key] = ManagedSession(manager=manager, zone=zone, country=normalized_country)
        return manager

    async def close(self, session_id: Optional[str] = None) -> None:
        managed = self._sessions.pop(session_id or DEFAULT_SESSION_ID, None)
        if managed is not None:
            await managed.manager.aclose()

    async def close_all(self) -> None:
        for key in list(self._sessions):
            await self.close(key)
