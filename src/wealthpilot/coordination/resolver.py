"""
Conflict Resolver — deterministic strategies for each conflict class.

Every resolver is a pure function of its inputs: the same arguments always
produce the same resolution.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from wealthpilot.coordination.constants import (
    ADEQUACY_CRITICAL_THRESHOLD,
    DEFAULT_ISA_ALLOWANCE,
    MONEY_TOLERANCE,
    category_priority,
)
from wealthpilot.models.coordination import (
    ContributionResolution,
    ISAResolution,
    ProtectionSavingsResolution,
)

logger = logging.getLogger("wealthpilot.coordination.resolver")

LOW_RISK_CASH_SHARE = 0.7
HIGH_GROWTH_STOCKS_SHARE = 0.9
HIGH_GROWTH_URGENCY = 75.0


def _demand_amount(value: Any) -> float:
    """Plain number, or the ``amount`` of a demand mapping/model."""
    if isinstance(value, Mapping):
        return float(value.get("amount", 0) or 0)
    amount = getattr(value, "amount", value)
    return float(amount or 0)


class ConflictResolver:
    """Resolve detected conflicts between module recommendations."""

    def resolve_protection_vs_savings(
        self,
        protection_adequacy: float | None,
        emergency_fund_adequacy: float | None,
    ) -> ProtectionSavingsResolution:
        """Split spare cash between protection and savings by adequacy.

        Missing scores count as 0 (worst case).
        """
        protection = protection_adequacy or 0.0
        emergency = emergency_fund_adequacy or 0.0

        if protection < ADEQUACY_CRITICAL_THRESHOLD and emergency < ADEQUACY_CRITICAL_THRESHOLD:
            return ProtectionSavingsResolution(
                resolution="split_priority",
                allocation={"protection": 0.6, "savings": 0.4},
                reasoning=(
                    "Both protection and emergency fund are critically low. "
                    "Prioritise protection slightly as it addresses catastrophic risk."
                ),
            )
        if protection < emergency:
            return ProtectionSavingsResolution(
                resolution="protection_priority",
                allocation={"protection": 0.8, "savings": 0.2},
                reasoning="Protection gap is more severe than emergency fund shortfall.",
            )
        return ProtectionSavingsResolution(
            resolution="savings_priority",
            allocation={"protection": 0.2, "savings": 0.8},
            reasoning="Emergency fund is more critical than protection gap.",
        )

    def resolve_contribution_conflicts(
        self,
        available_surplus: float,
        demands: Mapping[str, Any],
    ) -> ContributionResolution:
        """Waterfall the surplus over categories in fixed priority order.

        Args:
            available_surplus: Monthly surplus to distribute.
            demands: ``{category: amount}``; values may also be demand
                mappings carrying an ``amount`` key.
        """
        ordered = sorted(
            ((category, _demand_amount(value)) for category, value in demands.items()),
            key=lambda item: (category_priority(item[0]), item[0]),
        )

        allocation: dict[str, float] = {}
        remaining = available_surplus

        for category, amount in ordered:
            if remaining <= MONEY_TOLERANCE:
                allocation[category] = 0.0
                continue
            if remaining + MONEY_TOLERANCE >= amount:
                allocation[category] = amount
                remaining = max(0.0, remaining - amount)
            else:
                allocation[category] = remaining
                remaining = 0.0

        total_demand = sum(amount for _, amount in ordered)
        logger.debug(
            "Contribution waterfall: demand=%.2f surplus=%.2f remaining=%.2f",
            total_demand,
            available_surplus,
            remaining,
        )

        return ContributionResolution(
            total_demand=total_demand,
            available_surplus=available_surplus,
            allocation=allocation,
            shortfall=round(max(0.0, total_demand - available_surplus), 2),
            surplus_remaining=round(max(0.0, remaining), 2),
        )

    def resolve_isa_allocation(
        self,
        isa_allowance: float = DEFAULT_ISA_ALLOWANCE,
        demands: Mapping[str, Any] | None = None,
    ) -> ISAResolution:
        """Split the ISA allowance between Cash and Stocks & Shares ISAs.

        ``demands`` carries ``cash_isa`` and ``stocks_shares_isa`` amounts and
        optional context: ``emergency_fund_adequacy`` (default 100),
        ``investment_goal_urgency`` (default 50) and ``risk_tolerance``
        (default ``"medium"``). Guards are evaluated in order and the first
        match wins.
        """
        demands = demands or {}
        cash_demand = float(demands.get("cash_isa", 0) or 0)
        stocks_demand = float(demands.get("stocks_shares_isa", 0) or 0)
        total_demand = cash_demand + stocks_demand

        emergency_adequacy = float(demands.get("emergency_fund_adequacy", 100))
        goal_urgency = float(demands.get("investment_goal_urgency", 50))
        risk_tolerance = str(demands.get("risk_tolerance", "medium")).lower()

        if emergency_adequacy < ADEQUACY_CRITICAL_THRESHOLD:
            branch = "emergency_fund_priority"
            cash = min(cash_demand, isa_allowance)
            stocks = max(0.0, isa_allowance - cash)
            reasoning = "Emergency fund is critically low. Prioritise Cash ISA for liquidity."
        elif risk_tolerance == "low":
            branch = "low_risk_tolerance"
            cash = min(cash_demand, isa_allowance * LOW_RISK_CASH_SHARE)
            stocks = min(stocks_demand, isa_allowance - cash)
            reasoning = "Low risk tolerance. Favour Cash ISA (70%) over Stocks & Shares ISA (30%)."
        elif goal_urgency > HIGH_GROWTH_URGENCY and risk_tolerance == "high":
            branch = "growth_priority"
            stocks = min(stocks_demand, isa_allowance * HIGH_GROWTH_STOCKS_SHARE)
            cash = min(cash_demand, isa_allowance - stocks)
            reasoning = (
                "High growth goals with high risk tolerance. Prioritise Stocks & Shares ISA (90%)."
            )
        elif total_demand <= isa_allowance:
            branch = "within_allowance"
            cash = cash_demand
            stocks = stocks_demand
            reasoning = (
                "Sufficient ISA allowance to satisfy both Cash ISA and Stocks & Shares ISA demands."
            )
        else:
            branch = "proportional"
            cash = cash_demand / total_demand * isa_allowance
            stocks = stocks_demand / total_demand * isa_allowance
            reasoning = (
                "ISA allowance split proportionally between Cash ISA and "
                "Stocks & Shares ISA based on demands."
            )

        # Rounding to pence must never push the pair over the allowance
        cash = round(cash, 2)
        stocks = min(round(stocks, 2), max(0.0, isa_allowance - cash))

        logger.debug("ISA allocation branch=%s cash=%.2f stocks=%.2f", branch, cash, stocks)

        return ISAResolution(
            total_allowance=isa_allowance,
            total_demand=total_demand,
            allocation={"cash_isa": cash, "stocks_shares_isa": stocks},
            unallocated=round(max(0.0, isa_allowance - cash - stocks), 2),
            shortfall=round(max(0.0, total_demand - isa_allowance), 2),
            branch=branch,
            reasoning=reasoning,
        )
