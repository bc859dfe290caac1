"""
Profile models — what the coordinator consumes from its collaborators.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from wealthpilot.models.recommendation import Recommendation


class ModuleAnalysis(BaseModel):
    """Snapshot produced by one domain module for one user.

    ``metrics`` holds module-level figures such as ``adequacy_score``,
    ``coverage_gap`` or ``emergency_fund_months``. Their semantics are owned
    by the module; the coordinator only reads them.
    """

    module: str
    metrics: dict[str, Any] = Field(default_factory=dict)
    recommendations: list[Recommendation] = Field(default_factory=list)

    def metric(self, name: str, default: Any = None) -> Any:
        return self.metrics.get(name, default)


class UserContext(BaseModel):
    """Per-user weighting of the five modules (0-100)."""

    module_priorities: dict[str, float] = Field(default_factory=dict)

    def priority_for(self, module: str) -> float | None:
        return self.module_priorities.get(module)


class CashflowProfile(BaseModel):
    """Monthly cashflow figures used to derive the available surplus."""

    monthly_income: float = 0.0
    monthly_expenses: float = 0.0
    available_surplus: float | None = Field(
        default=None,
        description="Explicit surplus; overrides income minus expenses when set",
    )


class ModuleData(BaseModel):
    """Raw module section of a stored profile."""

    metrics: dict[str, Any] = Field(default_factory=dict)
    recommendations: list[Recommendation] = Field(default_factory=list)


class FinancialProfile(BaseModel):
    """Everything a connector knows about a user.

    Stands in for the five module analysers and the cashflow source: each
    entry under ``modules`` is the already-computed output of that module.
    """

    user_id: str
    name: str = ""
    age: int | None = None
    modules: dict[str, ModuleData] = Field(default_factory=dict)
    cashflow: CashflowProfile = Field(default_factory=CashflowProfile)
    preferences: UserContext = Field(default_factory=UserContext)
