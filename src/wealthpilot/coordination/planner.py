"""
Holistic Planner — one plan out of five module analyses.

Produces:
1. **Executive summary** — overall score, strengths, vulnerabilities, top priorities.
2. **Net-worth trajectory** — baseline vs optimised compounding series.
3. **Risk assessment** — per-area risks plus an overall risk score and level.
4. **Financial snapshot** — current balance-sheet and cashflow figures.
5. **Module summaries** — status and key message per module.

Input is a ``{module: metrics}`` mapping plus an optional ``user`` block
(``{"age": 42}``). Every figure has a documented default, so partially
populated analyses never raise.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Mapping

from wealthpilot.coordination.constants import (
    IHT_SCALE,
    MODULE_STATUS,
    MODULE_STATUS_DEFAULT,
    RISK_LEVEL_DEFAULT,
    RISK_LEVELS,
    TARGET_EMERGENCY_MONTHS,
    band_lookup,
    format_gbp,
)
from wealthpilot.models.plan import (
    ExecutiveSummary,
    FinancialSnapshot,
    HolisticPlan,
    ModuleSummary,
    NetWorthProjection,
    PriorityItem,
    ProjectionPoint,
    RiskArea,
    RiskAssessment,
    Strength,
    Vulnerability,
)

logger = logging.getLogger("wealthpilot.coordination.planner")

Analysis = Mapping[str, Mapping[str, Any]]

MAX_LISTED = 5
DEFAULT_AGE = 30
DEFAULT_INVESTMENT_HEALTH = 70.0
DEFAULT_WARNING_SCORE = 50.0

OVERALL_SCORE_WEIGHTS = {
    "protection": 0.25,
    "emergency_fund": 0.20,
    "investment": 0.20,
    "retirement": 0.25,
    "estate": 0.10,
}


def _section(analysis: Analysis, module: str) -> Mapping[str, Any]:
    return analysis.get(module) or {}


def _num(analysis: Analysis, module: str, key: str, default: float) -> float:
    value = _section(analysis, module).get(key)
    return default if value is None else float(value)


def _iht_score(iht_liability: float) -> float:
    """IHT liability scaled to 0-100 (£1m or more maps to 100)."""
    return min(100.0, iht_liability / IHT_SCALE)


def _investment_risk(warning: Mapping[str, Any] | str) -> RiskArea:
    """Build a risk area from a warning given as a mapping or a bare message."""
    if not isinstance(warning, Mapping):
        warning = {"description": warning}
    score = warning.get("score")
    return RiskArea(
        area="Investment",
        severity=warning.get("severity") or "medium",
        description=str(warning.get("description") or "Investment risk identified."),
        score=DEFAULT_WARNING_SCORE if score is None else float(score),
    )


class HolisticPlanner:
    """Build the integrated plan and its supporting projections."""

    def __init__(
        self,
        baseline_growth_rate: float = 0.04,
        optimized_growth_rate: float = 0.06,
        projection_years: int = 20,
        priorities_limit: int = MAX_LISTED,
    ) -> None:
        self.baseline_growth_rate = baseline_growth_rate
        self.optimized_growth_rate = optimized_growth_rate
        self.projection_years = projection_years
        self.priorities_limit = priorities_limit

    def create_holistic_plan(
        self,
        user_id: str,
        all_analysis: Analysis,
        years: int | None = None,
    ) -> HolisticPlan:
        """Create the holistic plan for one user."""
        years = self.projection_years if years is None else years

        executive_summary = self.generate_executive_summary(all_analysis)
        projection = self.project_net_worth_trajectory(all_analysis, years)
        risk = self.assess_overall_risk(all_analysis)
        snapshot = self.create_financial_snapshot(all_analysis)
        summaries = self.create_module_summaries(all_analysis)

        logger.info(
            "Holistic plan for %s: score=%.2f risk=%s",
            user_id,
            executive_summary.overall_score,
            risk.risk_level,
        )

        return HolisticPlan(
            user_id=str(user_id),
            generated_at=datetime.now(timezone.utc),
            executive_summary=executive_summary,
            financial_snapshot=snapshot,
            net_worth_projection=projection,
            risk_assessment=risk,
            module_summaries=summaries,
        )

    # ── Executive summary ───────────────────────────────────────────

    def generate_executive_summary(
        self,
        plan: Analysis,
        priorities_limit: int | None = None,
    ) -> ExecutiveSummary:
        limit = self.priorities_limit if priorities_limit is None else priorities_limit
        return ExecutiveSummary(
            overview=self._overview_text(plan),
            key_strengths=self.identify_key_strengths(plan),
            key_vulnerabilities=self.identify_key_vulnerabilities(plan),
            top_priorities=self.identify_top_priorities(plan, limit),
            overall_score=self.calculate_overall_score(plan),
        )

    def calculate_overall_score(self, plan: Analysis) -> float:
        """Weighted 0-100 financial health score."""
        months = _num(plan, "savings", "emergency_fund_months", 0)
        components = {
            "protection": _num(plan, "protection", "adequacy_score", 0),
            "emergency_fund": months / TARGET_EMERGENCY_MONTHS * 100,
            "investment": _num(plan, "investment", "portfolio_health_score", DEFAULT_INVESTMENT_HEALTH),
            "retirement": _num(plan, "retirement", "readiness_score", 0),
            "estate": 100 - _iht_score(_num(plan, "estate", "iht_liability", 0)),
        }
        score = sum(components[name] * weight for name, weight in OVERALL_SCORE_WEIGHTS.items())
        return round(score, 2)

    def identify_key_strengths(self, plan: Analysis) -> list[Strength]:
        """Strengths in evaluation order, capped at five."""
        strengths: list[Strength] = []

        adequacy = _num(plan, "protection", "adequacy_score", 0)
        if adequacy >= 80:
            strengths.append(Strength(
                area="Protection",
                description="Excellent protection coverage in place.",
                score=adequacy,
            ))

        if _num(plan, "savings", "emergency_fund_months", 0) >= TARGET_EMERGENCY_MONTHS:
            strengths.append(Strength(
                area="Emergency Fund",
                description="Strong emergency fund provides financial resilience.",
                score=100,
            ))

        readiness = _num(plan, "retirement", "readiness_score", 0)
        if readiness >= 80:
            strengths.append(Strength(
                area="Retirement",
                description="On track for comfortable retirement.",
                score=readiness,
            ))

        diversification = _section(plan, "investment").get("diversification_score")
        if diversification is not None and float(diversification) >= 80:
            strengths.append(Strength(
                area="Investment",
                description="Well-diversified investment portfolio.",
                score=float(diversification),
            ))

        if _num(plan, "estate", "net_worth", 0) > 100_000:
            strengths.append(Strength(
                area="Net Worth",
                description="Strong positive net worth position.",
                score=85,
            ))

        return strengths[:MAX_LISTED]

    def identify_key_vulnerabilities(self, plan: Analysis) -> list[Vulnerability]:
        """Vulnerabilities in evaluation order (not re-sorted), capped at five."""
        vulnerabilities: list[Vulnerability] = []

        adequacy = _num(plan, "protection", "adequacy_score", 100)
        if adequacy < 50:
            vulnerabilities.append(Vulnerability(
                area="Protection",
                severity="high",
                description="Significant protection gap exposes family to financial risk.",
                score=adequacy,
            ))

        months = _num(plan, "savings", "emergency_fund_months", TARGET_EMERGENCY_MONTHS)
        if months < 3:
            vulnerabilities.append(Vulnerability(
                area="Emergency Fund",
                severity="high",
                description="Insufficient emergency reserves.",
                score=months / TARGET_EMERGENCY_MONTHS * 100,
            ))

        readiness = _num(plan, "retirement", "readiness_score", 100)
        if readiness < 50:
            vulnerabilities.append(Vulnerability(
                area="Retirement",
                severity="high",
                description="On track for retirement income shortfall.",
                score=readiness,
            ))

        if _num(plan, "estate", "iht_liability", 0) > 100_000:
            vulnerabilities.append(Vulnerability(
                area="Inheritance Tax",
                severity="medium",
                description="Significant IHT liability on death.",
                score=50,
            ))

        liabilities = _num(plan, "estate", "total_liabilities", 0)
        if liabilities > _num(plan, "estate", "net_worth", 1) * 0.5:
            vulnerabilities.append(Vulnerability(
                area="Debt",
                severity="medium",
                description="High debt relative to net worth.",
                score=40,
            ))

        return vulnerabilities[:MAX_LISTED]

    def identify_top_priorities(self, plan: Analysis, limit: int = MAX_LISTED) -> list[PriorityItem]:
        priorities: list[PriorityItem] = []

        if _num(plan, "protection", "adequacy_score", 100) < 60:
            priorities.append(PriorityItem(
                priority=1,
                area="Protection",
                action="Review and increase protection coverage",
                urgency="immediate",
            ))

        if _num(plan, "savings", "emergency_fund_months", TARGET_EMERGENCY_MONTHS) < 3:
            priorities.append(PriorityItem(
                priority=2,
                area="Savings",
                action="Build emergency fund to 3-6 months expenses",
                urgency="immediate",
            ))

        if _num(plan, "retirement", "readiness_score", 100) < 60:
            priorities.append(PriorityItem(
                priority=3,
                area="Retirement",
                action="Increase pension contributions",
                urgency="short_term",
            ))

        return priorities[: max(0, limit)]

    def _overview_text(self, plan: Analysis) -> str:
        net_worth = _num(plan, "estate", "net_worth", 0)
        score = self.calculate_overall_score(plan)

        if score >= 80:
            return (
                f"Your overall financial position is strong with a net worth of {format_gbp(net_worth, 0)}. "
                "Continue your current strategy with minor optimisations."
            )
        if score >= 60:
            return (
                f"Your financial position is generally good with a net worth of {format_gbp(net_worth, 0)}, "
                "but there are areas for improvement."
            )
        if score >= 40:
            return (
                f"Your financial position needs attention. With a net worth of {format_gbp(net_worth, 0)}, "
                "focus on addressing key vulnerabilities."
            )
        return (
            "Your financial position requires immediate action. "
            "Priority should be given to protection and emergency fund."
        )

    # ── Net-worth projection ────────────────────────────────────────

    def project_net_worth_trajectory(self, all_data: Analysis, years: int | None = None) -> NetWorthProjection:
        """Baseline (4%) vs optimised (6%) trajectories for ``years + 1`` points.

        Each year adds twelve months of surplus and then grows by the rate.
        """
        years = self.projection_years if years is None else max(0, years)
        current = _num(all_data, "estate", "net_worth", 0)
        annual_savings = _num(all_data, "estate", "monthly_surplus", 0) * 12
        age = int(_num(all_data, "user", "age", DEFAULT_AGE))

        baseline = self._compound(current, annual_savings, self.baseline_growth_rate, years, age)
        optimized = self._compound(current, annual_savings, self.optimized_growth_rate, years, age)

        baseline_final = baseline[-1].value
        optimized_final = optimized[-1].value
        improvement_percent = (
            round((optimized_final - baseline_final) / baseline_final * 100, 2)
            if baseline_final != 0
            else 0.0
        )

        return NetWorthProjection(
            current_net_worth=current,
            baseline_projections=baseline,
            optimized_projections=optimized,
            improvement=round(optimized_final - baseline_final, 2),
            improvement_percent=improvement_percent,
        )

    @staticmethod
    def _compound(
        start: float,
        annual_savings: float,
        rate: float,
        years: int,
        age: int,
    ) -> list[ProjectionPoint]:
        points: list[ProjectionPoint] = []
        value = start
        for year in range(years + 1):
            points.append(ProjectionPoint(year=year, age=age + year, value=round(value, 2)))
            value = (value + annual_savings) * (1 + rate)
        return points

    # ── Risk ────────────────────────────────────────────────────────

    def assess_overall_risk(self, all_analysis: Analysis) -> RiskAssessment:
        risk_areas: list[RiskArea] = []

        adequacy = _num(all_analysis, "protection", "adequacy_score", 100)
        if adequacy < 50:
            risk_areas.append(RiskArea(
                area="Protection",
                severity="high",
                description="Significant protection gap exposes family to financial hardship.",
                score=adequacy,
            ))
        elif adequacy < 75:
            risk_areas.append(RiskArea(
                area="Protection",
                severity="medium",
                description="Protection coverage could be improved.",
                score=adequacy,
            ))

        months = _num(all_analysis, "savings", "emergency_fund_months", TARGET_EMERGENCY_MONTHS)
        if months < 3:
            risk_areas.append(RiskArea(
                area="Emergency Fund",
                severity="high",
                description="Insufficient emergency fund creates cashflow risk.",
                score=months / TARGET_EMERGENCY_MONTHS * 100,
            ))

        readiness = _num(all_analysis, "retirement", "readiness_score", 100)
        if readiness < 50:
            risk_areas.append(RiskArea(
                area="Retirement",
                severity="high",
                description="On track to face significant retirement income shortfall.",
                score=readiness,
            ))
        elif readiness < 70:
            risk_areas.append(RiskArea(
                area="Retirement",
                severity="medium",
                description="Retirement planning needs improvement.",
                score=readiness,
            ))

        for warning in _section(all_analysis, "investment").get("risk_warnings") or []:
            risk_areas.append(_investment_risk(warning))

        if _num(all_analysis, "estate", "iht_liability", 0) > 100_000:
            risk_areas.append(RiskArea(
                area="Inheritance Tax",
                severity="medium",
                description="Significant IHT liability on death.",
                score=50,
            ))

        overall = self.calculate_overall_risk_score(all_analysis)
        return RiskAssessment(
            overall_risk_score=overall,
            risk_level=self.risk_level(overall),
            risk_areas=risk_areas,
            total_risk_areas=len(risk_areas),
        )

    def calculate_overall_risk_score(self, all_analysis: Analysis) -> float:
        """Mean of four normalised risk factors."""
        months = _num(all_analysis, "savings", "emergency_fund_months", TARGET_EMERGENCY_MONTHS)
        factors = [
            100 - _num(all_analysis, "protection", "adequacy_score", 100),
            100 - months / TARGET_EMERGENCY_MONTHS * 100,
            100 - _num(all_analysis, "retirement", "readiness_score", 100),
            _iht_score(_num(all_analysis, "estate", "iht_liability", 0)),
        ]
        return round(sum(factors) / len(factors), 2)

    @staticmethod
    def risk_level(score: float) -> str:
        return str(band_lookup(score, RISK_LEVELS, RISK_LEVEL_DEFAULT))

    # ── Snapshot & module summaries ─────────────────────────────────

    def create_financial_snapshot(self, all_analysis: Analysis) -> FinancialSnapshot:
        return FinancialSnapshot(
            net_worth=_num(all_analysis, "estate", "net_worth", 0),
            liquid_assets=_num(all_analysis, "savings", "total_savings", 0),
            investment_value=_num(all_analysis, "investment", "total_portfolio_value", 0),
            pension_value=_num(all_analysis, "retirement", "total_pension_value", 0),
            property_value=_num(all_analysis, "estate", "property_value", 0),
            liabilities=_num(all_analysis, "estate", "total_liabilities", 0),
            monthly_income=_num(all_analysis, "estate", "monthly_income", 0),
            monthly_expenses=_num(all_analysis, "estate", "monthly_expenses", 0),
            monthly_surplus=_num(all_analysis, "estate", "monthly_surplus", 0),
        )

    def create_module_summaries(self, all_analysis: Analysis) -> dict[str, ModuleSummary]:
        adequacy = _num(all_analysis, "protection", "adequacy_score", 0)
        months = _num(all_analysis, "savings", "emergency_fund_months", 0)
        health = _num(all_analysis, "investment", "portfolio_health_score", DEFAULT_INVESTMENT_HEALTH)
        portfolio = _num(all_analysis, "investment", "total_portfolio_value", 0)
        readiness = _num(all_analysis, "retirement", "readiness_score", 0)
        iht = _num(all_analysis, "estate", "iht_liability", 0)

        return {
            "protection": ModuleSummary(
                status=self.module_status(adequacy),
                key_message=self._protection_message(adequacy),
                figures={
                    "adequacy_score": adequacy,
                    "coverage_gap": _num(all_analysis, "protection", "coverage_gap", 0),
                },
            ),
            "savings": ModuleSummary(
                status=self.module_status(months / TARGET_EMERGENCY_MONTHS * 100),
                key_message=self._savings_message(months),
                figures={
                    "emergency_fund_months": months,
                    "total_savings": _num(all_analysis, "savings", "total_savings", 0),
                },
            ),
            "investment": ModuleSummary(
                status=self.module_status(health),
                key_message=self._investment_message(portfolio),
                figures={
                    "portfolio_value": portfolio,
                    "annual_return": _num(all_analysis, "investment", "annual_return_percent", 0),
                },
            ),
            "retirement": ModuleSummary(
                status=self.module_status(readiness),
                key_message=self._retirement_message(readiness),
                figures={
                    "readiness_score": readiness,
                    "projected_income": _num(all_analysis, "retirement", "projected_annual_income", 0),
                },
            ),
            "estate": ModuleSummary(
                status=self.module_status(100 - _iht_score(iht)),
                key_message=self._estate_message(iht),
                figures={
                    "net_worth": _num(all_analysis, "estate", "net_worth", 0),
                    "iht_liability": iht,
                },
            ),
        }

    @staticmethod
    def module_status(score: float) -> str:
        return str(band_lookup(score, MODULE_STATUS, MODULE_STATUS_DEFAULT))

    @staticmethod
    def _protection_message(score: float) -> str:
        if score >= 80:
            return "Your protection coverage is excellent."
        if score >= 60:
            return "Your protection coverage is adequate but could be improved."
        return "Your protection coverage needs immediate attention."

    @staticmethod
    def _savings_message(months: float) -> str:
        if months >= 6:
            return "Your emergency fund is well-established."
        if months >= 3:
            return "Your emergency fund covers basic needs but could be stronger."
        return "Your emergency fund needs to be built up urgently."

    @staticmethod
    def _investment_message(value: float) -> str:
        if value > 100_000:
            return "You have built a substantial investment portfolio."
        if value > 10_000:
            return "Your investment portfolio is growing."
        return "Consider building your investment portfolio for long-term growth."

    @staticmethod
    def _retirement_message(score: float) -> str:
        if score >= 80:
            return "You are on track for a comfortable retirement."
        if score >= 60:
            return "Your retirement planning is progressing but needs boosting."
        return "Your retirement planning requires significant attention."

    @staticmethod
    def _estate_message(iht: float) -> str:
        if iht == 0:
            return "No inheritance tax liability anticipated."
        if iht < 100_000:
            return "Moderate inheritance tax liability identified."
        return "Significant inheritance tax planning opportunities exist."
