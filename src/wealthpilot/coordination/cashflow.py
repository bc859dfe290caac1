"""
Cash Flow Coordinator — splits the monthly surplus across competing demands.

Waterfall allocation:
1. Demands with urgency ≥ 80 go first, whatever their category.
2. Within each tier, categories follow the fixed priority order
   emergency fund → protection → pension → investment → estate.
3. Each demand is funded in full while the surplus lasts; the first one
   that cannot be is funded with whatever remains and everything after it
   gets nothing.

Also produces shortfall guidance, chart series and a 50/30/20 sanity check.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from wealthpilot.coordination.constants import (
    CRITICAL_CATEGORIES,
    CRITICAL_URGENCY,
    DEFAULT_URGENCY,
    MONEY_TOLERANCE,
    PHASED_APPROACH_THRESHOLD,
    category_priority,
    format_gbp,
)
from wealthpilot.models.coordination import (
    CashFlowAllocation,
    CategoryAllocation,
    CategoryShortfall,
    Demand,
    ShortfallAnalysis,
)

logger = logging.getLogger("wealthpilot.coordination.cashflow")

NEEDS_SHARE = 0.50
WANTS_SHARE = 0.30
SAVINGS_SHARE = 0.20


def _as_demand(value: Demand | Mapping[str, Any] | float) -> Demand:
    if isinstance(value, Demand):
        return value
    if isinstance(value, Mapping):
        return Demand(
            amount=max(0.0, float(value.get("amount", 0) or 0)),
            urgency=float(value.get("urgency", DEFAULT_URGENCY)),
        )
    return Demand(amount=max(0.0, float(value or 0)))


class CashFlowCoordinator:
    """Coordinate contribution funding across all modules."""

    def optimize_contribution_allocation(
        self,
        surplus: float,
        demands: Mapping[str, Demand | Mapping[str, Any] | float],
    ) -> CashFlowAllocation:
        """Waterfall-allocate ``surplus`` over ``{category: demand}``.

        Args:
            surplus: Available monthly surplus.
            demands: Per-category demand with ``amount`` and ``urgency``
                (urgency defaults to 50).

        Returns:
            CashFlowAllocation with per-category funding and totals.
        """
        entries = [(category, _as_demand(value)) for category, value in demands.items()]
        ordered = sorted(
            entries,
            key=lambda item: (
                0 if item[1].urgency >= CRITICAL_URGENCY else 1,
                category_priority(item[0]),
            ),
        )

        allocation: dict[str, CategoryAllocation] = {}
        remaining = surplus

        for category, demand in ordered:
            amount = demand.amount

            if remaining <= MONEY_TOLERANCE:
                allocation[category] = CategoryAllocation(
                    allocated=0.0,
                    requested=amount,
                    shortfall=amount,
                    percent_funded=0.0,
                )
                continue

            if remaining + MONEY_TOLERANCE >= amount:
                allocation[category] = CategoryAllocation(
                    allocated=amount,
                    requested=amount,
                    shortfall=0.0,
                    percent_funded=100.0,
                )
                remaining = max(0.0, remaining - amount)
            else:
                allocation[category] = CategoryAllocation(
                    allocated=remaining,
                    requested=amount,
                    shortfall=amount - remaining,
                    percent_funded=round(remaining / amount * 100, 2),
                )
                remaining = 0.0

        total_demand = sum(demand.amount for _, demand in ordered)
        efficiency = round((surplus - remaining) / surplus * 100, 2) if surplus > 0 else 0.0

        logger.info(
            "Allocated %.2f of %.2f surplus across %d categories",
            max(0.0, surplus - remaining),
            surplus,
            len(ordered),
        )

        return CashFlowAllocation(
            total_demand=total_demand,
            available_surplus=surplus,
            allocation=allocation,
            total_shortfall=round(max(0.0, total_demand - surplus), 2),
            surplus_remaining=round(max(0.0, remaining), 2),
            allocation_efficiency=efficiency,
        )

    def identify_cashflow_shortfalls(self, allocation: CashFlowAllocation) -> ShortfallAnalysis:
        """Summarise unfunded categories and suggest ways to close the gap."""
        if allocation.total_shortfall <= 0:
            return ShortfallAnalysis(
                has_shortfall=False,
                total_shortfall=0.0,
                shortfalls=[],
                recommendations=[
                    "Your cashflow is sufficient to meet all recommended contributions."
                ],
            )

        shortfalls = [
            CategoryShortfall(
                category=category,
                shortfall=details.shortfall,
                percent_funded=details.percent_funded,
            )
            for category, details in allocation.allocation.items()
            if details.shortfall > 0
        ]

        return ShortfallAnalysis(
            has_shortfall=True,
            total_shortfall=allocation.total_shortfall,
            shortfalls=shortfalls,
            recommendations=self._shortfall_recommendations(allocation.total_shortfall, shortfalls),
        )

    def create_cashflow_chart_data(
        self,
        allocation: CashFlowAllocation,
        monthly_income: float,
        monthly_expenses: float,
    ) -> dict[str, Any]:
        """Bar-chart series: living expenses, each funded category, leftover surplus."""
        categories = ["Living Expenses"]
        amounts = [monthly_expenses]

        for category, details in allocation.allocation.items():
            if details.allocated > 0:
                categories.append(category.replace("_", " ").title())
                amounts.append(details.allocated)

        if allocation.surplus_remaining > 0:
            categories.append("Unallocated Surplus")
            amounts.append(allocation.surplus_remaining)

        total_allocated = sum(amounts)
        return {
            "series": [{"name": "Monthly Allocation", "data": amounts}],
            "categories": categories,
            "total_income": monthly_income,
            "total_allocated": total_allocated,
            "allocation_percent": (
                round(total_allocated / monthly_income * 100, 2) if monthly_income > 0 else 0.0
            ),
        }

    def calculate_sustainable_contributions(
        self,
        monthly_income: float,
        monthly_expenses: float,
    ) -> dict[str, Any]:
        """Check spending against the 50/30/20 budgeting rule."""
        max_needs = monthly_income * NEEDS_SHARE
        max_wants = monthly_income * WANTS_SHARE
        expense_ratio = monthly_expenses / monthly_income if monthly_income > 0 else 0.0

        return {
            "monthly_income": monthly_income,
            "current_expenses": monthly_expenses,
            "current_expense_ratio": round(expense_ratio * 100, 2),
            "recommended_savings_amount": monthly_income * SAVINGS_SHARE,
            "recommended_savings_percent": int(SAVINGS_SHARE * 100),
            "is_sustainable": monthly_expenses <= max_needs + max_wants,
            "expense_reduction_needed": max(0.0, monthly_expenses - (max_needs + max_wants)),
        }

    @staticmethod
    def _shortfall_recommendations(
        total_shortfall: float,
        shortfalls: list[CategoryShortfall],
    ) -> list[str]:
        amount = format_gbp(total_shortfall)
        recommendations = [
            f"Consider increasing income by {amount} per month to fully fund all recommendations.",
            f"Review monthly expenses to identify {amount} in potential savings.",
        ]

        critical = [s.category for s in shortfalls if s.category in CRITICAL_CATEGORIES]
        if critical:
            recommendations.append(
                f"Priority should be given to funding critical areas: {', '.join(critical)}."
            )

        if total_shortfall > PHASED_APPROACH_THRESHOLD:
            recommendations.append(
                "Consider a phased approach: start with highest priority items and "
                "gradually increase contributions as income grows."
            )

        recommendations.append(
            "Use any bonuses, tax refunds, or windfalls to fund initial gaps or build reserves."
        )
        return recommendations
