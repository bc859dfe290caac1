"""
Module agents — one per financial-planning domain.

The domain analysers (needs analysis, projections, IHT computations) live
outside WealthPilot; these agents fetch their published metrics and
recommendations from the connector and fill in the few derived figures the
coordinator relies on when a source omits them.
"""

from __future__ import annotations

import logging
from typing import Any

from wealthpilot.agents.base import BaseAgent
from wealthpilot.coordination.constants import TARGET_EMERGENCY_MONTHS
from wealthpilot.models.profile import ModuleAnalysis
from wealthpilot.models.recommendation import Module

logger = logging.getLogger("wealthpilot.agents.modules")

class ModuleAgent(BaseAgent):
    """Fetch one module's analysis for a user."""

    module: Module

    async def analyze(self, user_id: str) -> ModuleAnalysis:
        analysis = await self.connector.fetch_module_analysis(user_id, self.module.value)
        derived = self.derive_metrics(dict(analysis.metrics))
        if derived:
            analysis = analysis.model_copy(update={"metrics": {**analysis.metrics, **derived}})
        logger.debug(
            "[%s] %d metrics, %d recommendations for %s",
            self.name,
            len(analysis.metrics),
            len(analysis.recommendations),
            user_id,
        )
        return analysis

    def derive_metrics(self, metrics: dict[str, Any]) -> dict[str, Any]:
        """Metrics to add when the source leaves them out."""
        return {}


class ProtectionAgent(ModuleAgent):
    name = "protection"
    description = "Life, critical illness and income protection coverage"
    module = Module.PROTECTION


class SavingsAgent(ModuleAgent):
    name = "savings"
    description = "Emergency fund and cash savings"
    module = Module.SAVINGS

    def derive_metrics(self, metrics: dict[str, Any]) -> dict[str, Any]:
        months = metrics.get("emergency_fund_months")
        if metrics.get("emergency_fund_adequacy") is not None or months is None:
            return {}
        adequacy = min(100.0, max(0.0, float(months) / TARGET_EMERGENCY_MONTHS * 100))
        return {"emergency_fund_adequacy": round(adequacy, 2)}


class InvestmentAgent(ModuleAgent):
    name = "investment"
    description = "Portfolio health, diversification and ISA usage"
    module = Module.INVESTMENT


class RetirementAgent(ModuleAgent):
    name = "retirement"
    description = "Pension readiness and projected retirement income"
    module = Module.RETIREMENT


class EstateAgent(ModuleAgent):
    name = "estate"
    description = "Net worth, liabilities and inheritance tax exposure"
    module = Module.ESTATE

    def derive_metrics(self, metrics: dict[str, Any]) -> dict[str, Any]:
        income = metrics.get("monthly_income")
        expenses = metrics.get("monthly_expenses")
        if metrics.get("monthly_surplus") is not None or income is None or expenses is None:
            return {}
        return {"monthly_surplus": float(income) - float(expenses)}


MODULE_AGENTS: tuple[type[ModuleAgent], ...] = (
    ProtectionAgent,
    SavingsAgent,
    InvestmentAgent,
    RetirementAgent,
    EstateAgent,
)
