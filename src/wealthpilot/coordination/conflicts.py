"""
Conflict Detector — finds where module recommendations compete.

Three independent checks run over the combined recommendation set:

1. **Cashflow** — monthly contributions across modules exceed the surplus.
2. **ISA allowance** — Cash ISA plus Stocks & Shares ISA asks exceed the
   annual allowance.
3. **Protection vs savings** — both modules ask for money while either
   adequacy score is weak.

No check short-circuits another; the result holds zero to three conflicts
in that order. Pure computation, no I/O.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, Iterable, Mapping

from wealthpilot.coordination.constants import (
    ADEQUACY_CONFLICT_THRESHOLD,
    ADEQUACY_CRITICAL_THRESHOLD,
    DEFAULT_ISA_ALLOWANCE,
    MONEY_TOLERANCE,
    RESERVED_KEYS,
    SEVERITY_RATIO_BANDS,
    SEVERITY_RATIO_DEFAULT,
    band_lookup,
    module_category,
)
from wealthpilot.models.coordination import Conflict, ConflictType, Severity
from wealthpilot.models.recommendation import Recommendation, as_recommendation

logger = logging.getLogger("wealthpilot.coordination.conflicts")

GroupedRecommendations = Mapping[str, Any]


def _adequacy(module_scores: Mapping[str, Mapping[str, Any]], module: str, key: str) -> float:
    """Adequacy score for ``module``; missing or null counts as fully adequate."""
    value = (module_scores.get(module) or {}).get(key)
    return 100.0 if value is None else float(value)


def calculate_conflict_severity(demand: float, available: float) -> Severity:
    """Severity from the demand/available ratio; nothing available is critical."""
    if available <= 0:
        return Severity.CRITICAL
    ratio = demand / available
    return Severity(band_lookup(ratio, SEVERITY_RATIO_BANDS, SEVERITY_RATIO_DEFAULT))


def iter_module_recommendations(
    recommendations: GroupedRecommendations,
) -> Iterable[tuple[str, list[Recommendation]]]:
    """Yield ``(module, recommendations)`` pairs, skipping reserved keys."""
    for module, items in recommendations.items():
        if module in RESERVED_KEYS or not isinstance(items, (list, tuple)):
            continue
        yield module, [as_recommendation(item) for item in items]


class ConflictDetector:
    """Scan grouped recommendations for competing demands."""

    def __init__(self, isa_allowance: float = DEFAULT_ISA_ALLOWANCE) -> None:
        self.isa_allowance = isa_allowance

    def identify_conflicts(
        self,
        recommendations: GroupedRecommendations,
        available_surplus: float | None = None,
        module_scores: Mapping[str, Mapping[str, Any]] | None = None,
    ) -> list[Conflict]:
        """Run all three checks.

        Args:
            recommendations: ``{module: [recommendation, ...]}``. May also
                carry ``available_surplus`` and ``module_scores`` keys, used
                when the explicit arguments are omitted.
            available_surplus: Monthly surplus in pounds.
            module_scores: ``{module: metrics}`` for adequacy lookups.

        Returns:
            Detected conflicts in check order (cashflow, ISA, protection).
        """
        if available_surplus is None:
            available_surplus = float(recommendations.get("available_surplus", 0) or 0)
        if module_scores is None:
            module_scores = recommendations.get("module_scores") or {}

        grouped = dict(iter_module_recommendations(recommendations))
        conflicts: list[Conflict] = []

        cashflow = self._detect_cashflow_conflict(grouped, available_surplus)
        if cashflow:
            conflicts.append(cashflow)

        isa = self._detect_isa_conflict(grouped)
        if isa:
            conflicts.append(isa)

        protection_savings = self._detect_protection_vs_savings_conflict(grouped, module_scores)
        if protection_savings:
            conflicts.append(protection_savings)

        logger.debug("Identified %d conflicts", len(conflicts))
        return conflicts

    def _detect_cashflow_conflict(
        self,
        grouped: Mapping[str, list[Recommendation]],
        available_surplus: float,
    ) -> Conflict | None:
        demands: dict[str, float] = defaultdict(float)
        total_demand = 0.0

        for module, recs in grouped.items():
            category = module_category(module)
            for rec in recs:
                cost = rec.recommended_monthly_contribution
                if cost is None:
                    continue
                demands[category] += cost
                total_demand += cost

        if total_demand - available_surplus > MONEY_TOLERANCE and total_demand > 0:
            return Conflict(
                type=ConflictType.CASHFLOW,
                severity=calculate_conflict_severity(total_demand, available_surplus),
                total_demand=total_demand,
                available_surplus=available_surplus,
                shortfall=total_demand - available_surplus,
                demands=dict(demands),
            )
        return None

    def _detect_isa_conflict(self, grouped: Mapping[str, list[Recommendation]]) -> Conflict | None:
        cash_isa = sum(
            rec.recommended_cash_isa_contribution or 0.0 for rec in grouped.get("savings", [])
        )
        stocks_shares_isa = sum(
            rec.recommended_isa_contribution or 0.0 for rec in grouped.get("investment", [])
        )
        total = cash_isa + stocks_shares_isa

        if total > self.isa_allowance:
            return Conflict(
                type=ConflictType.ISA_ALLOWANCE,
                severity=calculate_conflict_severity(total, self.isa_allowance),
                total_allowance=self.isa_allowance,
                total_demand=total,
                shortfall=total - self.isa_allowance,
                demands={"cash_isa": cash_isa, "stocks_shares_isa": stocks_shares_isa},
            )
        return None

    def _detect_protection_vs_savings_conflict(
        self,
        grouped: Mapping[str, list[Recommendation]],
        module_scores: Mapping[str, Mapping[str, Any]],
    ) -> Conflict | None:
        protection_demand = sum(
            rec.recommended_monthly_premium or 0.0 for rec in grouped.get("protection", [])
        )
        savings_demand = sum(
            rec.recommended_monthly_contribution or 0.0 for rec in grouped.get("savings", [])
        )

        protection_adequacy = _adequacy(module_scores, "protection", "adequacy_score")
        emergency_adequacy = _adequacy(module_scores, "savings", "emergency_fund_adequacy")

        weak = (
            protection_adequacy < ADEQUACY_CONFLICT_THRESHOLD
            or emergency_adequacy < ADEQUACY_CONFLICT_THRESHOLD
        )
        if protection_demand > 0 and savings_demand > 0 and weak:
            severity = (
                Severity.HIGH
                if min(protection_adequacy, emergency_adequacy) < ADEQUACY_CRITICAL_THRESHOLD
                else Severity.MEDIUM
            )
            return Conflict(
                type=ConflictType.PROTECTION_VS_SAVINGS,
                severity=severity,
                protection_demand=protection_demand,
                savings_demand=savings_demand,
                protection_adequacy=protection_adequacy,
                emergency_fund_adequacy=emergency_adequacy,
            )
        return None
