"""
Base agent — shared logic for all WealthPilot agents.

Each module agent owns one domain (protection, savings, ...) and hands the
coordinator that module's metrics and recommendations. The coordinating
agent is itself an agent over all five.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from wealthpilot.connectors.base import BaseConnector

logger = logging.getLogger("wealthpilot.agents")


class BaseAgent(ABC):
    """Abstract base class for all WealthPilot agents.

    Subclass this to create new agents. Each agent:
    - Reads what it needs through a profile connector.
    - Returns structured, JSON-serialisable models.
    """

    name: str = "base_agent"
    description: str = "Base financial agent"

    def __init__(self, connector: BaseConnector) -> None:
        self.connector = connector

    @abstractmethod
    async def analyze(self, user_id: str) -> Any:
        """Run this agent's analysis for one user."""
        ...

    def __repr__(self) -> str:
        return f"{type(self).__name__}(connector={self.connector.name!r})"
