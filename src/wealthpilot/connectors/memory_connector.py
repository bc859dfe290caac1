"""
Memory Connector — profiles held in a dict.

Handy for tests, notebooks, and callers that already have the module
analyses in hand.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from wealthpilot.connectors.base import BaseConnector
from wealthpilot.errors import UserNotFoundError
from wealthpilot.models.profile import FinancialProfile

logger = logging.getLogger("wealthpilot.connectors.memory")


class MemoryConnector(BaseConnector):
    """Serve profiles from memory.

    Usage::

        connector = MemoryConnector(profiles={"42": {"age": 42, "modules": {...}}})
        profile = await connector.load_profile("42")
    """

    name = "memory"
    description = "Serve financial profiles from an in-memory mapping"

    def __init__(
        self,
        profiles: Mapping[str, FinancialProfile | Mapping[str, Any]] | None = None,
        **options: Any,
    ) -> None:
        super().__init__(**options)
        self._profiles: dict[str, FinancialProfile] = {}
        for user_id, profile in (profiles or {}).items():
            self.add(profile, user_id=str(user_id))

    def __len__(self) -> int:
        return len(self._profiles)

    def add(self, profile: FinancialProfile | Mapping[str, Any], user_id: str | None = None) -> FinancialProfile:
        """Store a profile, keyed by ``user_id`` or the profile's own id."""
        if not isinstance(profile, FinancialProfile):
            data = dict(profile)
            if user_id is not None:
                data.setdefault("user_id", user_id)
            profile = FinancialProfile.model_validate(data)
        key = str(user_id if user_id is not None else profile.user_id)
        self._profiles[key] = profile
        logger.debug("Stored profile for %s", key)
        return profile

    async def load_profile(self, user_id: str) -> FinancialProfile:
        try:
            return self._profiles[str(user_id)]
        except KeyError:
            raise UserNotFoundError(user_id, source=self.name) from None

    async def validate(self) -> bool:
        return True
