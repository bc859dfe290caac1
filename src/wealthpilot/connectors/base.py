"""
Base connector — abstract interface for profile sources.

Connectors are the bridge between WealthPilot and wherever a user's module
analyses live: a directory of profile files, an in-memory fixture, or a
custom plugin. They resolve a user to a ``FinancialProfile`` and expose the
per-module views the coordinator consumes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from wealthpilot.models.profile import FinancialProfile, ModuleAnalysis, UserContext


class BaseConnector(ABC):
    """Abstract base class for all profile connectors.

    To create a new connector, subclass this and implement:
    - `name`: Unique connector identifier.
    - `load_profile()`: Async method that returns a FinancialProfile.
    - `validate()`: Check that the source is reachable.

    Example::

        class CRMConnector(BaseConnector):
            name = "crm"

            async def load_profile(self, user_id: str) -> FinancialProfile:
                # Look the client up in your CRM
                ...

            async def validate(self) -> bool:
                ...

    The ``fetch_*`` helpers derive everything else from ``load_profile``;
    override them when the source can answer more cheaply.
    """

    name: str = "base"
    description: str = "Base connector"

    def __init__(self, **options: Any) -> None:
        self.options = options

    @abstractmethod
    async def load_profile(self, user_id: str) -> FinancialProfile:
        """Resolve a user's profile.

        Raises:
            UserNotFoundError: The source has no profile for ``user_id``.
        """
        ...

    @abstractmethod
    async def validate(self) -> bool:
        """Validate that the source is accessible."""
        ...

    async def fetch_module_analysis(self, user_id: str, module: str) -> ModuleAnalysis:
        """One module's metrics and recommendations (empty when absent)."""
        profile = await self.load_profile(user_id)
        data = profile.modules.get(module)
        if data is None:
            return ModuleAnalysis(module=module)
        return ModuleAnalysis(
            module=module,
            metrics=dict(data.metrics),
            recommendations=list(data.recommendations),
        )

    async def fetch_available_surplus(self, user_id: str) -> float:
        """Monthly surplus: the explicit figure, else income minus expenses (never negative)."""
        cashflow = (await self.load_profile(user_id)).cashflow
        if cashflow.available_surplus is not None:
            return cashflow.available_surplus
        return max(0.0, cashflow.monthly_income - cashflow.monthly_expenses)

    async def fetch_user_context(self, user_id: str) -> UserContext:
        return (await self.load_profile(user_id)).preferences

    async def fetch_user_details(self, user_id: str) -> dict[str, Any]:
        """Personal details the planner reads (currently just ``age``)."""
        profile = await self.load_profile(user_id)
        return {"age": profile.age} if profile.age is not None else {}

    async def health_check(self) -> dict[str, Any]:
        """Check connector health."""
        try:
            valid = await self.validate()
            return {"connector": self.name, "healthy": valid, "error": None}
        except Exception as e:
            return {"connector": self.name, "healthy": False, "error": str(e)}
