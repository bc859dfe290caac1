"""
Recommendation models — the sparse records emitted by each domain module.

Module analysers evolve independently, so a recommendation carries whichever
numeric fields its module knows about and nothing else. Every field below is
optional; the coordination layer applies a documented default whenever one
is missing. Unknown keys are preserved so they round-trip into the plan.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field


class Module(str, Enum):
    """The five domain modules feeding the coordinator."""

    PROTECTION = "protection"
    SAVINGS = "savings"
    INVESTMENT = "investment"
    RETIREMENT = "retirement"
    ESTATE = "estate"


class Timeline(str, Enum):
    """When a recommendation should be actioned."""

    IMMEDIATE = "immediate"  # within 1 month
    SHORT_TERM = "short_term"  # within 3 months
    MEDIUM_TERM = "medium_term"  # within 12 months
    LONG_TERM = "long_term"  # 12+ months


class Recommendation(BaseModel):
    """One actionable item from a domain module."""

    model_config = ConfigDict(extra="allow")

    module: str | None = None
    category: str | None = None
    title: str = ""
    description: str = ""
    action: str = ""

    # Monetary asks
    recommended_monthly_contribution: float | None = None
    recommended_monthly_premium: float | None = None
    recommended_cash_isa_contribution: float | None = None
    recommended_isa_contribution: float | None = None

    # Protection
    coverage_gap: float | None = None
    adequacy_score: float | None = None

    # Savings
    emergency_fund_months: float | None = None
    emergency_fund_shortfall: float | None = None

    # Retirement
    readiness_score: float | None = None
    years_to_retirement: float | None = None
    income_gap: float | None = None
    pension_type: str | None = None

    # Investment
    goal_probability: float | None = None
    years_to_goal: float | None = None
    expected_benefit: float | None = None

    # Estate
    iht_liability: float | None = None
    iht_saving: float | None = None
    age: float | None = None
    action_type: str | None = None

    @property
    def monthly_cost(self) -> float | None:
        """Contribution if present, else premium, else ``None``.

        An explicit zero contribution wins over a premium.
        """
        if self.recommended_monthly_contribution is not None:
            return self.recommended_monthly_contribution
        return self.recommended_monthly_premium

    @property
    def monthly_demand(self) -> float:
        """Monthly cash this recommendation asks for (0 when it asks for none)."""
        return self.monthly_cost or 0.0


def as_recommendation(item: Recommendation | Mapping[str, Any]) -> Recommendation:
    """Accept a model or a plain mapping from an upstream module."""
    if isinstance(item, Recommendation):
        return item
    return Recommendation.model_validate(dict(item))


class ScoredRecommendation(Recommendation):
    """A recommendation with its derived priority scores attached."""

    module: str
    priority_score: float = Field(ge=0.0, le=100.0)
    urgency_score: float = Field(ge=0.0, le=100.0)
    impact_score: float = Field(ge=0.0, le=100.0)
    ease_score: float = Field(ge=0.0, le=100.0)
    user_priority_score: float = Field(ge=0.0, le=100.0)
    timeline: Timeline


class RecommendationScore(BaseModel):
    """Breakdown of a single recommendation's weighted score."""

    total_score: float
    urgency: float
    impact: float
    ease: float
    user_priority: float
