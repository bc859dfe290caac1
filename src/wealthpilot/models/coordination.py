"""
Coordination models — conflicts, resolutions, allocations and action plans.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field

from wealthpilot.models.recommendation import ScoredRecommendation


class Severity(str, Enum):
    """Conflict / risk severity levels."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ConflictType(str, Enum):
    """The three ways module recommendations can compete."""

    CASHFLOW = "cashflow_conflict"
    ISA_ALLOWANCE = "isa_allowance_conflict"
    PROTECTION_VS_SAVINGS = "protection_vs_savings_conflict"


class Demand(BaseModel):
    """A monetary ask against one budget category."""

    amount: float = 0.0
    urgency: float = 50.0


class Conflict(BaseModel):
    """A detected competing-demand situation.

    Only the payload fields relevant to ``type`` are populated.
    """

    type: ConflictType
    severity: Severity

    # cashflow / ISA
    total_demand: float | None = None
    available_surplus: float | None = None
    total_allowance: float | None = None
    shortfall: float | None = None
    demands: dict[str, float] = Field(default_factory=dict)

    # protection vs savings
    protection_demand: float | None = None
    savings_demand: float | None = None
    protection_adequacy: float | None = None
    emergency_fund_adequacy: float | None = None


class ProtectionSavingsResolution(BaseModel):
    """How to split spare cash between protection premiums and savings."""

    resolution: str  # split_priority | protection_priority | savings_priority
    allocation: dict[str, float]
    reasoning: str


class ContributionResolution(BaseModel):
    """Priority-table waterfall over plain category amounts."""

    total_demand: float
    available_surplus: float
    allocation: dict[str, float]
    shortfall: float
    surplus_remaining: float


class ISAResolution(BaseModel):
    """Split of the ISA allowance between Cash and Stocks & Shares ISAs."""

    total_allowance: float
    total_demand: float
    allocation: dict[str, float]
    unallocated: float
    shortfall: float
    branch: str
    reasoning: str


class ConflictResolution(BaseModel):
    """A resolver outcome tagged with the conflict it answers."""

    type: str  # cashflow | isa_allowance | protection_vs_savings
    resolution: ProtectionSavingsResolution | ContributionResolution | ISAResolution


class CategoryAllocation(BaseModel):
    """Funding result for one budget category."""

    allocated: float = Field(ge=0.0)
    requested: float = Field(ge=0.0)
    shortfall: float = Field(ge=0.0)
    percent_funded: float = Field(ge=0.0, le=100.0)


class CashFlowAllocation(BaseModel):
    """Waterfall allocation of the monthly surplus."""

    total_demand: float = 0.0
    available_surplus: float = 0.0
    allocation: dict[str, CategoryAllocation] = Field(default_factory=dict)
    total_shortfall: float = 0.0
    surplus_remaining: float = 0.0
    allocation_efficiency: float = 0.0

    @property
    def total_allocated(self) -> float:
        return sum(a.allocated for a in self.allocation.values())


class CategoryShortfall(BaseModel):
    category: str
    shortfall: float
    percent_funded: float


class ShortfallAnalysis(BaseModel):
    """Where the surplus falls short and what to do about it."""

    has_shortfall: bool
    total_shortfall: float = 0.0
    shortfalls: list[CategoryShortfall] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)


class ActionPlanSummary(BaseModel):
    immediate_actions: int = 0
    short_term_actions: int = 0
    medium_term_actions: int = 0
    long_term_actions: int = 0
    total_actions: int = 0


class ActionPlan(BaseModel):
    """Ranked recommendations bucketed by timeline."""

    immediate: list[ScoredRecommendation] = Field(default_factory=list)
    short_term: list[ScoredRecommendation] = Field(default_factory=list)
    medium_term: list[ScoredRecommendation] = Field(default_factory=list)
    long_term: list[ScoredRecommendation] = Field(default_factory=list)
    summary: ActionPlanSummary = Field(default_factory=ActionPlanSummary)
