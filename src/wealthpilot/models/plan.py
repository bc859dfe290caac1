"""
Plan models — the holistic plan and the coordinated analysis behind it.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field

from wealthpilot.models.coordination import (
    ActionPlan,
    ActionPlanSummary,
    CashFlowAllocation,
    Conflict,
    ConflictResolution,
    ShortfallAnalysis,
)
from wealthpilot.models.profile import ModuleAnalysis
from wealthpilot.models.recommendation import ScoredRecommendation


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Strength(BaseModel):
    area: str
    description: str
    score: float


class Vulnerability(BaseModel):
    area: str
    severity: str
    description: str
    score: float


class PriorityItem(BaseModel):
    priority: int
    area: str
    action: str
    urgency: str


class ExecutiveSummary(BaseModel):
    """High-level summary of the user's overall position."""

    overview: str = ""
    key_strengths: list[Strength] = Field(default_factory=list)
    key_vulnerabilities: list[Vulnerability] = Field(default_factory=list)
    top_priorities: list[PriorityItem] = Field(default_factory=list)
    overall_score: float = 0.0


class ProjectionPoint(BaseModel):
    year: int
    age: int
    value: float


class NetWorthProjection(BaseModel):
    """Baseline vs optimised net-worth trajectories."""

    current_net_worth: float = 0.0
    baseline_projections: list[ProjectionPoint] = Field(default_factory=list)
    optimized_projections: list[ProjectionPoint] = Field(default_factory=list)
    improvement: float = 0.0
    improvement_percent: float = 0.0


class RiskArea(BaseModel):
    area: str
    severity: str
    description: str
    score: float


class RiskAssessment(BaseModel):
    overall_risk_score: float = 0.0
    risk_level: str = "Minimal Risk"
    risk_areas: list[RiskArea] = Field(default_factory=list)
    total_risk_areas: int = 0


class FinancialSnapshot(BaseModel):
    net_worth: float = 0.0
    liquid_assets: float = 0.0
    investment_value: float = 0.0
    pension_value: float = 0.0
    property_value: float = 0.0
    liabilities: float = 0.0
    monthly_income: float = 0.0
    monthly_expenses: float = 0.0
    monthly_surplus: float = 0.0


class ModuleSummary(BaseModel):
    """Status line for one module; figures vary per module."""

    status: str
    key_message: str
    figures: dict[str, float] = Field(default_factory=dict)


class AnalysisSummary(BaseModel):
    total_recommendations: int = 0
    conflicts_identified: int = 0
    total_monthly_demand: float = 0.0
    cashflow_surplus: float = 0.0
    has_shortfall: bool = False


class CoordinatedAnalysis(BaseModel):
    """Output of one orchestration run."""

    user_id: str
    analysis_date: datetime = Field(default_factory=_utcnow)
    module_analysis: dict[str, ModuleAnalysis] = Field(default_factory=dict)
    user: dict[str, Any] = Field(default_factory=dict)
    available_surplus: float = 0.0
    conflicts: list[Conflict] = Field(default_factory=list)
    conflict_resolutions: list[ConflictResolution] = Field(default_factory=list)
    ranked_recommendations: list[ScoredRecommendation] = Field(default_factory=list)
    cashflow_allocation: CashFlowAllocation = Field(default_factory=CashFlowAllocation)
    shortfall_analysis: ShortfallAnalysis = Field(
        default_factory=lambda: ShortfallAnalysis(has_shortfall=False)
    )
    summary: AnalysisSummary = Field(default_factory=AnalysisSummary)

    def module_metrics(self) -> dict[str, dict[str, Any]]:
        """``{module: metrics}`` plus the ``user`` block, as the planner reads it."""
        data: dict[str, dict[str, Any]] = {
            name: dict(analysis.metrics) for name, analysis in self.module_analysis.items()
        }
        data["user"] = dict(self.user)
        return data


class HolisticPlan(BaseModel):
    """The final aggregate artifact handed back to the caller."""

    user_id: str
    generated_at: datetime = Field(default_factory=_utcnow)
    executive_summary: ExecutiveSummary = Field(default_factory=ExecutiveSummary)
    financial_snapshot: FinancialSnapshot = Field(default_factory=FinancialSnapshot)
    net_worth_projection: NetWorthProjection = Field(default_factory=NetWorthProjection)
    risk_assessment: RiskAssessment = Field(default_factory=RiskAssessment)
    module_summaries: dict[str, ModuleSummary] = Field(default_factory=dict)
    ranked_recommendations: list[ScoredRecommendation] = Field(default_factory=list)
    action_plan: ActionPlan = Field(default_factory=ActionPlan)
    action_plan_summary: ActionPlanSummary = Field(default_factory=ActionPlanSummary)
    cashflow_allocation: CashFlowAllocation = Field(default_factory=CashFlowAllocation)
    shortfall_analysis: ShortfallAnalysis = Field(
        default_factory=lambda: ShortfallAnalysis(has_shortfall=False)
    )
    conflicts: list[Conflict] = Field(default_factory=list)

    def to_markdown(self) -> str:
        """Export plan as Markdown."""
        from wealthpilot.exporters.markdown import render_markdown

        return render_markdown(self)

    def to_json(self) -> str:
        """Export plan as JSON."""
        return self.model_dump_json(indent=2)


class ScenarioOutcome(BaseModel):
    """Headline figures from one run of the coordination pipeline."""

    available_surplus: float = 0.0
    summary: AnalysisSummary = Field(default_factory=AnalysisSummary)
    cashflow_allocation: CashFlowAllocation = Field(default_factory=CashFlowAllocation)
    overall_score: float = 0.0
    projected_net_worth: float = 0.0
    top_recommendations: list[str] = Field(default_factory=list)


class ScenarioComparison(BaseModel):
    """What-if result: the same module analyses under two sets of inputs."""

    user_id: str
    parameters: dict[str, Any] = Field(default_factory=dict)
    baseline: ScenarioOutcome
    scenario: ScenarioOutcome

    @property
    def shortfall_change(self) -> float:
        return (
            self.scenario.cashflow_allocation.total_shortfall
            - self.baseline.cashflow_allocation.total_shortfall
        )

    @property
    def net_worth_change(self) -> float:
        return self.scenario.projected_net_worth - self.baseline.projected_net_worth
