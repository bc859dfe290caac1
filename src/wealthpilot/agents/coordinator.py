"""
Coordinating Agent — the "brain" that joins the five module agents.

This is the main agent that:
1. Collects module analyses (concurrently when configured).
2. Fetches the available monthly surplus and the user's module priorities.
3. Detects and resolves conflicts between module recommendations.
4. Ranks every recommendation and derives per-category cash demands.
5. Waterfall-allocates the surplus and explains any shortfall.
6. Optionally builds the holistic plan and timeline action plan.

Only steps 1 and 2 touch the connector. Everything after is a pure
function of what they return, which is what ``build_scenarios`` reruns.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Mapping, Sequence

from wealthpilot.agents.base import BaseAgent
from wealthpilot.agents.modules import MODULE_AGENTS, ModuleAgent
from wealthpilot.config import WealthPilotConfig
from wealthpilot.connectors.base import BaseConnector
from wealthpilot.connectors.registry import ConnectorRegistry
from wealthpilot.coordination.cashflow import CashFlowCoordinator
from wealthpilot.coordination.conflicts import ConflictDetector
from wealthpilot.coordination.constants import MODULES, format_gbp, module_category
from wealthpilot.coordination.planner import HolisticPlanner
from wealthpilot.coordination.ranking import PriorityRanker
from wealthpilot.coordination.resolver import ConflictResolver
from wealthpilot.models.coordination import Conflict, ConflictResolution, ConflictType, Demand
from wealthpilot.models.plan import (
    AnalysisSummary,
    CoordinatedAnalysis,
    HolisticPlan,
    ScenarioComparison,
    ScenarioOutcome,
)
from wealthpilot.models.profile import ModuleAnalysis, UserContext
from wealthpilot.models.recommendation import Recommendation, ScoredRecommendation, as_recommendation

logger = logging.getLogger("wealthpilot.agents.coordinator")

SCENARIO_PARAMETERS = frozenset({"available_surplus", "monthly_surplus", "module_priorities"})
SCENARIO_TOP_RECOMMENDATIONS = 5


class CoordinatingAgent(BaseAgent):
    """Orchestrates the module agents and the coordination engines."""

    name = "coordinator"
    description = "Cross-module coordinator producing the holistic financial plan"

    def __init__(
        self,
        config: WealthPilotConfig,
        connectors: ConnectorRegistry | BaseConnector,
        *,
        module_agents: Sequence[ModuleAgent] | None = None,
        detector: ConflictDetector | None = None,
        resolver: ConflictResolver | None = None,
        ranker: PriorityRanker | None = None,
        cashflow: CashFlowCoordinator | None = None,
        planner: HolisticPlanner | None = None,
    ) -> None:
        connector = connectors.primary if isinstance(connectors, ConnectorRegistry) else connectors
        super().__init__(connector)
        self.config = config

        coordination = config.coordination
        self.detector = detector or ConflictDetector(isa_allowance=config.tax.isa_allowance)
        self.resolver = resolver or ConflictResolver()
        self.ranker = ranker or PriorityRanker()
        self.cashflow = cashflow or CashFlowCoordinator()
        self.planner = planner or HolisticPlanner(
            baseline_growth_rate=coordination.baseline_growth_rate,
            optimized_growth_rate=coordination.optimized_growth_rate,
            projection_years=coordination.projection_years,
            priorities_limit=coordination.top_priorities_limit,
        )

        if module_agents is None:
            module_agents = [agent_cls(connector) for agent_cls in MODULE_AGENTS]
        self.module_agents: list[ModuleAgent] = list(module_agents)

        self._resolvers: dict[ConflictType, Callable[..., ConflictResolution]] = {
            ConflictType.PROTECTION_VS_SAVINGS: self._resolve_protection_vs_savings,
            ConflictType.CASHFLOW: self._resolve_cashflow,
            ConflictType.ISA_ALLOWANCE: self._resolve_isa_allowance,
        }

        logger.info("Coordinator initialized with %d module agents", len(self.module_agents))

    async def analyze(self, user_id: str) -> CoordinatedAnalysis:
        return await self.orchestrate_analysis(user_id)

    # ── Entry points ────────────────────────────────────────────────

    async def orchestrate_analysis(self, user_id: str) -> CoordinatedAnalysis:
        """Run the full coordination pipeline for one user.

        Any upstream failure (unknown user, unreadable profile, a module agent
        raising) propagates unchanged; no partial analysis is returned.
        """
        user_id = str(user_id)
        logger.info("Orchestrating analysis for %s", user_id)

        module_analysis, available_surplus, user_context, user = await self._gather_inputs(user_id)

        analysis = self._coordinate(user_id, module_analysis, available_surplus, user_context, user)
        logger.info(
            "Analysis for %s: %d recommendations, %d conflicts, surplus %s",
            user_id,
            analysis.summary.total_recommendations,
            analysis.summary.conflicts_identified,
            format_gbp(available_surplus),
        )
        return analysis

    async def generate_holistic_plan(self, user_id: str) -> HolisticPlan:
        """Orchestrate, then add the planner output and the timeline action plan."""
        analysis = await self.orchestrate_analysis(user_id)
        return self.build_plan(analysis)

    def build_plan(self, analysis: CoordinatedAnalysis) -> HolisticPlan:
        """Merge a coordinated analysis with the planner and action-plan output."""
        plan = self.planner.create_holistic_plan(
            analysis.user_id,
            analysis.module_metrics(),
            years=self.config.coordination.projection_years,
        )
        action_plan = self.ranker.create_action_plan(analysis.ranked_recommendations)

        return plan.model_copy(
            update={
                "ranked_recommendations": analysis.ranked_recommendations,
                "action_plan": action_plan,
                "action_plan_summary": action_plan.summary,
                "cashflow_allocation": analysis.cashflow_allocation,
                "shortfall_analysis": analysis.shortfall_analysis,
                "conflicts": analysis.conflicts,
            }
        )

    async def build_scenarios(self, user_id: str, parameters: Mapping[str, Any]) -> ScenarioComparison:
        """What-if comparison against the same module analyses.

        Supported parameters:
            available_surplus: Monthly surplus to allocate instead of the real one.
            monthly_surplus: Savings rate fed to the net-worth projection.
            module_priorities: ``{module: 0-100}`` merged over the user's own.

        Unknown parameters are ignored with a warning.
        """
        user_id = str(user_id)
        unknown = set(parameters) - SCENARIO_PARAMETERS
        if unknown:
            logger.warning("Ignoring unknown scenario parameters: %s", ", ".join(sorted(unknown)))

        module_analysis, available_surplus, user_context, user = await self._gather_inputs(user_id)

        baseline = self._coordinate(user_id, module_analysis, available_surplus, user_context, user)

        scenario_surplus = float(parameters.get("available_surplus", available_surplus))
        scenario_context = user_context
        if parameters.get("module_priorities"):
            scenario_context = UserContext(
                module_priorities={
                    **user_context.module_priorities,
                    **{k: float(v) for k, v in parameters["module_priorities"].items()},
                }
            )
        scenario_modules = dict(module_analysis)
        if "monthly_surplus" in parameters:
            estate = module_analysis.get("estate") or ModuleAnalysis(module="estate")
            scenario_modules["estate"] = estate.model_copy(
                update={"metrics": {**estate.metrics, "monthly_surplus": float(parameters["monthly_surplus"])}}
            )

        scenario = self._coordinate(user_id, scenario_modules, scenario_surplus, scenario_context, user)

        logger.info("Built scenario for %s with %s", user_id, sorted(set(parameters) & SCENARIO_PARAMETERS))
        return ScenarioComparison(
            user_id=user_id,
            parameters=dict(parameters),
            baseline=self._outcome(baseline),
            scenario=self._outcome(scenario),
        )

    # ── Pipeline steps (pure) ───────────────────────────────────────

    def extract_recommendations(
        self,
        module_analysis: Mapping[str, ModuleAnalysis],
        available_surplus: float = 0.0,
    ) -> dict[str, Any]:
        """Flatten analyses into ``{module: [rec], module_scores, available_surplus}``.

        Each recommendation is tagged with the module it came from.
        """
        recommendations: dict[str, Any] = {"module_scores": {}}
        for module, analysis in module_analysis.items():
            recommendations["module_scores"][module] = dict(analysis.metrics)
            recommendations[module] = [
                rec.model_copy(update={"module": module}) for rec in analysis.recommendations
            ]
        recommendations["available_surplus"] = available_surplus
        return recommendations

    def resolve_conflicts(
        self,
        recommendations: Mapping[str, Any],
        conflicts: Sequence[Conflict],
        available_surplus: float | None = None,
        module_scores: Mapping[str, Mapping[str, Any]] | None = None,
    ) -> list[ConflictResolution]:
        """Dispatch each conflict to its resolver, in conflict order."""
        if available_surplus is None:
            available_surplus = float(recommendations.get("available_surplus", 0) or 0)
        if module_scores is None:
            module_scores = recommendations.get("module_scores") or {}

        resolutions: list[ConflictResolution] = []
        for conflict in conflicts:
            handler = self._resolvers.get(ConflictType(conflict.type))
            if handler is None:
                logger.debug("No resolver for conflict type %s", conflict.type)
                continue
            resolutions.append(handler(conflict, available_surplus, module_scores))
        return resolutions

    def rank_recommendations(
        self,
        recommendations: Mapping[str, Any],
        user_context: UserContext | Mapping[str, Any] | None = None,
    ) -> list[ScoredRecommendation]:
        return self.ranker.rank_recommendations(recommendations, user_context)

    def generate_recommendations(
        self,
        analysis_data: Mapping[str, Any],
        user_context: UserContext | Mapping[str, Any] | None = None,
    ) -> list[ScoredRecommendation]:
        """Rank recommendations straight from analysis data, skipping allocation.

        ``analysis_data`` maps module names to a ``ModuleAnalysis``, a mapping
        with a ``recommendations`` list, or a bare list of recommendations.
        """
        grouped: dict[str, list[Recommendation]] = {}
        for module, data in analysis_data.items():
            if module not in MODULES:
                continue
            if isinstance(data, ModuleAnalysis):
                items = data.recommendations
            elif isinstance(data, Mapping):
                items = data.get("recommendations") or []
            else:
                items = data
            grouped[module] = [as_recommendation(item) for item in items]
        return self.ranker.rank_recommendations(grouped, user_context)

    def extract_demands(self, ranked: Sequence[ScoredRecommendation]) -> dict[str, Demand]:
        """Per-category monthly demand from ranked recommendations.

        Amount is the contribution, else the premium; zero-cost items are
        skipped. Urgency is the highest urgency among contributing items.
        """
        demands: dict[str, Demand] = {}
        for rec in ranked:
            if not rec.module:
                continue
            amount = rec.monthly_demand
            if amount <= 0:
                continue
            category = module_category(rec.module)
            current = demands.get(category)
            if current is None:
                demands[category] = Demand(amount=amount, urgency=rec.urgency_score)
            else:
                demands[category] = Demand(
                    amount=current.amount + amount,
                    urgency=max(current.urgency, rec.urgency_score),
                )
        return demands

    # ── Internals ───────────────────────────────────────────────────

    async def _gather_inputs(
        self, user_id: str
    ) -> tuple[dict[str, ModuleAnalysis], float, UserContext, dict[str, Any]]:
        """Everything the pipeline reads from the connector for one user."""
        try:
            module_analysis = await self._collect_module_analysis(user_id)
            available_surplus = await self.connector.fetch_available_surplus(user_id)
            user_context = await self.connector.fetch_user_context(user_id)
            user = await self.connector.fetch_user_details(user_id)
        except Exception as e:
            logger.error("Analysis for %s failed: %s", user_id, e)
            raise
        return module_analysis, available_surplus, user_context, user

    async def _collect_module_analysis(self, user_id: str) -> dict[str, ModuleAnalysis]:
        if self.config.coordination.concurrent_module_analysis:
            results = await asyncio.gather(*(agent.analyze(user_id) for agent in self.module_agents))
        else:
            results = [await agent.analyze(user_id) for agent in self.module_agents]
        return {agent.module.value: result for agent, result in zip(self.module_agents, results)}

    def _coordinate(
        self,
        user_id: str,
        module_analysis: Mapping[str, ModuleAnalysis],
        available_surplus: float,
        user_context: UserContext,
        user: Mapping[str, Any],
    ) -> CoordinatedAnalysis:
        recommendations = self.extract_recommendations(module_analysis, available_surplus)
        module_scores = recommendations["module_scores"]

        conflicts = self.detector.identify_conflicts(recommendations, available_surplus, module_scores)
        resolutions = self.resolve_conflicts(recommendations, conflicts, available_surplus, module_scores)
        ranked = self.rank_recommendations(recommendations, user_context)

        demands = self.extract_demands(ranked)
        allocation = self.cashflow.optimize_contribution_allocation(available_surplus, demands)
        shortfall = self.cashflow.identify_cashflow_shortfalls(allocation)

        return CoordinatedAnalysis(
            user_id=user_id,
            module_analysis=dict(module_analysis),
            user=dict(user),
            available_surplus=available_surplus,
            conflicts=conflicts,
            conflict_resolutions=resolutions,
            ranked_recommendations=ranked,
            cashflow_allocation=allocation,
            shortfall_analysis=shortfall,
            summary=AnalysisSummary(
                total_recommendations=len(ranked),
                conflicts_identified=len(conflicts),
                total_monthly_demand=allocation.total_demand,
                cashflow_surplus=available_surplus,
                has_shortfall=shortfall.has_shortfall,
            ),
        )

    def _outcome(self, analysis: CoordinatedAnalysis) -> ScenarioOutcome:
        metrics = analysis.module_metrics()
        projection = self.planner.project_net_worth_trajectory(
            metrics, self.config.coordination.projection_years
        )
        final = projection.optimized_projections[-1].value if projection.optimized_projections else 0.0
        return ScenarioOutcome(
            available_surplus=analysis.available_surplus,
            summary=analysis.summary,
            cashflow_allocation=analysis.cashflow_allocation,
            overall_score=self.planner.calculate_overall_score(metrics),
            projected_net_worth=final,
            top_recommendations=[
                rec.title for rec in analysis.ranked_recommendations[:SCENARIO_TOP_RECOMMENDATIONS]
            ],
        )

    def _resolve_protection_vs_savings(
        self,
        conflict: Conflict,
        available_surplus: float,
        module_scores: Mapping[str, Mapping[str, Any]],
    ) -> ConflictResolution:
        protection = (module_scores.get("protection") or {}).get("adequacy_score")
        emergency = (module_scores.get("savings") or {}).get("emergency_fund_adequacy")
        resolution = self.resolver.resolve_protection_vs_savings(
            None if protection is None else float(protection),
            None if emergency is None else float(emergency),
        )
        return ConflictResolution(type="protection_vs_savings", resolution=resolution)

    def _resolve_cashflow(
        self,
        conflict: Conflict,
        available_surplus: float,
        module_scores: Mapping[str, Mapping[str, Any]],
    ) -> ConflictResolution:
        resolution = self.resolver.resolve_contribution_conflicts(available_surplus, conflict.demands)
        return ConflictResolution(type="cashflow", resolution=resolution)

    def _resolve_isa_allowance(
        self,
        conflict: Conflict,
        available_surplus: float,
        module_scores: Mapping[str, Mapping[str, Any]],
    ) -> ConflictResolution:
        demands: dict[str, Any] = dict(conflict.demands)
        savings = module_scores.get("savings") or {}
        investment = module_scores.get("investment") or {}
        if savings.get("emergency_fund_adequacy") is not None:
            demands["emergency_fund_adequacy"] = savings["emergency_fund_adequacy"]
        if investment.get("risk_tolerance") is not None:
            demands["risk_tolerance"] = investment["risk_tolerance"]
        if investment.get("investment_goal_urgency") is not None:
            demands["investment_goal_urgency"] = investment["investment_goal_urgency"]

        resolution = self.resolver.resolve_isa_allocation(self.config.tax.isa_allowance, demands)
        return ConflictResolution(type="isa_allowance", resolution=resolution)
