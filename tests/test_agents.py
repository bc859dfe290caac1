"""
Tests for WealthPilot agents — the module agents and the coordinator.

The coordinator is exercised end to end against the shared household
profile: four cash asks totalling £1,000 against an £800 surplus.
"""

from __future__ import annotations

import logging
from typing import Any
from unittest.mock import AsyncMock

import pytest

from wealthpilot.agents.coordinator import CoordinatingAgent
from wealthpilot.agents.modules import (
    MODULE_AGENTS,
    EstateAgent,
    ProtectionAgent,
    SavingsAgent,
)
from wealthpilot.config import CoordinationConfig, WealthPilotConfig
from wealthpilot.connectors.memory_connector import MemoryConnector
from wealthpilot.connectors.registry import ConnectorRegistry
from wealthpilot.errors import UserNotFoundError
from wealthpilot.models.coordination import ConflictType, Severity
from wealthpilot.models.profile import ModuleAnalysis
from wealthpilot.models.recommendation import Recommendation, Timeline


@pytest.fixture
def coordinator(config: WealthPilotConfig, memory_connector: MemoryConnector) -> CoordinatingAgent:
    return CoordinatingAgent(config, memory_connector)


# ── Module agents ───────────────────────────────────────────────────


class TestModuleAgents:
    def test_one_agent_per_module(self) -> None:
        assert [cls.module.value for cls in MODULE_AGENTS] == [
            "protection", "savings", "investment", "retirement", "estate",
        ]

    def test_repr(self, memory_connector: MemoryConnector) -> None:
        assert repr(ProtectionAgent(memory_connector)) == "ProtectionAgent(connector='memory')"

    @pytest.mark.asyncio
    async def test_passthrough(self, memory_connector: MemoryConnector) -> None:
        analysis = await ProtectionAgent(memory_connector).analyze("u1")
        assert analysis.metrics == {"adequacy_score": 45, "coverage_gap": 150000}

    @pytest.mark.asyncio
    async def test_savings_derives_adequacy(self, memory_connector: MemoryConnector) -> None:
        analysis = await SavingsAgent(memory_connector).analyze("u1")
        assert analysis.metrics["emergency_fund_adequacy"] == 33.33

    def test_savings_adequacy_capped(self, memory_connector: MemoryConnector) -> None:
        agent = SavingsAgent(memory_connector)
        assert agent.derive_metrics({"emergency_fund_months": 9}) == {"emergency_fund_adequacy": 100.0}
        assert agent.derive_metrics({"emergency_fund_months": 2, "emergency_fund_adequacy": 10}) == {}
        assert agent.derive_metrics({}) == {}

    @pytest.mark.asyncio
    async def test_estate_derives_surplus(self, memory_connector: MemoryConnector) -> None:
        analysis = await EstateAgent(memory_connector).analyze("u1")
        assert analysis.metrics["monthly_surplus"] == 800.0

    def test_estate_keeps_explicit_surplus(self, memory_connector: MemoryConnector) -> None:
        agent = EstateAgent(memory_connector)
        metrics = {"monthly_income": 4000, "monthly_expenses": 3000, "monthly_surplus": 500}
        assert agent.derive_metrics(metrics) == {}

    def test_savings_derives_over_null_adequacy(self, memory_connector: MemoryConnector) -> None:
        agent = SavingsAgent(memory_connector)
        metrics = {"emergency_fund_months": 3, "emergency_fund_adequacy": None}
        assert agent.derive_metrics(metrics) == {"emergency_fund_adequacy": 50.0}

    def test_estate_derives_over_null_surplus(self, memory_connector: MemoryConnector) -> None:
        agent = EstateAgent(memory_connector)
        metrics = {"monthly_income": 4000, "monthly_expenses": 3000, "monthly_surplus": None}
        assert agent.derive_metrics(metrics) == {"monthly_surplus": 1000.0}


# ── Coordinated analysis ────────────────────────────────────────────


class TestOrchestration:
    @pytest.mark.asyncio
    async def test_summary(self, coordinator: CoordinatingAgent) -> None:
        analysis = await coordinator.orchestrate_analysis("u1")

        assert analysis.user_id == "u1"
        assert analysis.available_surplus == 800
        assert analysis.user == {"age": 42}
        assert analysis.summary.total_recommendations == 5
        assert analysis.summary.conflicts_identified == 2
        assert analysis.summary.total_monthly_demand == 1000
        assert analysis.summary.cashflow_surplus == 800
        assert analysis.summary.has_shortfall is True

    @pytest.mark.asyncio
    async def test_conflicts(self, coordinator: CoordinatingAgent) -> None:
        analysis = await coordinator.orchestrate_analysis("u1")

        cashflow, protection = analysis.conflicts
        assert cashflow.type == ConflictType.CASHFLOW
        assert cashflow.severity == Severity.LOW
        assert cashflow.total_demand == 950
        assert cashflow.shortfall == 150
        assert cashflow.demands == {"emergency_fund": 400, "investment": 300, "pension": 250}
        assert protection.type == ConflictType.PROTECTION_VS_SAVINGS
        assert protection.severity == Severity.HIGH
        assert protection.emergency_fund_adequacy == 33.33

    @pytest.mark.asyncio
    async def test_resolutions(self, coordinator: CoordinatingAgent) -> None:
        analysis = await coordinator.orchestrate_analysis("u1")

        kinds = [r.type for r in analysis.conflict_resolutions]
        assert kinds == ["cashflow", "protection_vs_savings"]
        assert analysis.conflict_resolutions[0].resolution.allocation["investment"] == 150
        assert analysis.conflict_resolutions[1].resolution.resolution == "split_priority"

    @pytest.mark.asyncio
    async def test_ranking(self, coordinator: CoordinatingAgent) -> None:
        ranked = (await coordinator.orchestrate_analysis("u1")).ranked_recommendations

        assert [r.module for r in ranked] == ["protection", "savings", "retirement", "investment", "estate"]
        assert [r.priority_score for r in ranked] == [79.0, 78.0, 63.0, 53.5, 42.0]
        assert ranked[0].timeline == Timeline.IMMEDIATE
        assert ranked[-1].timeline == Timeline.LONG_TERM

    @pytest.mark.asyncio
    async def test_allocation(self, coordinator: CoordinatingAgent) -> None:
        allocation = (await coordinator.orchestrate_analysis("u1")).cashflow_allocation

        assert list(allocation.allocation) == ["emergency_fund", "protection", "pension", "investment"]
        assert allocation.allocation["investment"].allocated == 100
        assert allocation.allocation["investment"].percent_funded == 33.33
        assert allocation.total_shortfall == 200
        assert allocation.surplus_remaining == 0
        assert allocation.allocation_efficiency == 100.0

    @pytest.mark.asyncio
    async def test_sequential_mode_matches(self, memory_connector: MemoryConnector) -> None:
        config = WealthPilotConfig(coordination=CoordinationConfig(concurrent_module_analysis=False))
        sequential = await CoordinatingAgent(config, memory_connector).orchestrate_analysis("u1")
        concurrent = await CoordinatingAgent(WealthPilotConfig(), memory_connector).orchestrate_analysis("u1")

        assert sequential.summary == concurrent.summary
        assert [r.title for r in sequential.ranked_recommendations] == [
            r.title for r in concurrent.ranked_recommendations
        ]

    @pytest.mark.asyncio
    async def test_registry_uses_primary_connector(
        self, config: WealthPilotConfig, memory_connector: MemoryConnector
    ) -> None:
        registry = ConnectorRegistry()
        registry.register(memory_connector)
        coordinator = CoordinatingAgent(config, registry)
        assert coordinator.connector is memory_connector

    @pytest.mark.asyncio
    async def test_isa_conflict_resolved(self, config: WealthPilotConfig, household: dict) -> None:
        household["modules"]["savings"]["recommendations"][0]["recommended_cash_isa_contribution"] = 10_000
        coordinator = CoordinatingAgent(config, MemoryConnector(profiles={"u1": household}))

        analysis = await coordinator.orchestrate_analysis("u1")

        assert [c.type for c in analysis.conflicts] == [
            ConflictType.CASHFLOW,
            ConflictType.ISA_ALLOWANCE,
            ConflictType.PROTECTION_VS_SAVINGS,
        ]
        isa = analysis.conflict_resolutions[1]
        assert isa.type == "isa_allowance"
        assert sum(isa.resolution.allocation.values()) <= 20_000

    @pytest.mark.asyncio
    async def test_null_protection_adequacy(self, config: WealthPilotConfig, household: dict) -> None:
        household["modules"]["protection"]["metrics"]["adequacy_score"] = None
        coordinator = CoordinatingAgent(config, MemoryConnector(profiles={"u1": household}))

        analysis = await coordinator.orchestrate_analysis("u1")

        protection = analysis.conflicts[1]
        assert protection.type == ConflictType.PROTECTION_VS_SAVINGS
        assert protection.protection_adequacy == 100
        assert protection.severity == Severity.HIGH
        assert analysis.conflict_resolutions[1].resolution.resolution == "split_priority"

    @pytest.mark.asyncio
    async def test_null_savings_adequacy_is_derived(
        self, config: WealthPilotConfig, household: dict
    ) -> None:
        household["modules"]["savings"]["metrics"]["emergency_fund_adequacy"] = None
        coordinator = CoordinatingAgent(config, MemoryConnector(profiles={"u1": household}))

        analysis = await coordinator.orchestrate_analysis("u1")

        assert analysis.conflicts[1].emergency_fund_adequacy == 33.33

    @pytest.mark.asyncio
    async def test_empty_profile(self, config: WealthPilotConfig) -> None:
        coordinator = CoordinatingAgent(config, MemoryConnector(profiles={"new": {}}))
        analysis = await coordinator.orchestrate_analysis("new")

        assert analysis.conflicts == []
        assert analysis.ranked_recommendations == []
        assert analysis.summary.has_shortfall is False


class TestErrorPropagation:
    @pytest.mark.asyncio
    async def test_unknown_user(self, coordinator: CoordinatingAgent) -> None:
        with pytest.raises(UserNotFoundError):
            await coordinator.orchestrate_analysis("ghost")

    @pytest.mark.asyncio
    async def test_failing_agent_aborts(
        self, config: WealthPilotConfig, memory_connector: MemoryConnector
    ) -> None:
        broken = SavingsAgent(memory_connector)
        broken.analyze = AsyncMock(side_effect=RuntimeError("savings service down"))
        coordinator = CoordinatingAgent(
            config,
            memory_connector,
            module_agents=[ProtectionAgent(memory_connector), broken],
        )

        with pytest.raises(RuntimeError, match="savings service down"):
            await coordinator.orchestrate_analysis("u1")

    @pytest.mark.asyncio
    async def test_failure_is_logged(
        self,
        config: WealthPilotConfig,
        memory_connector: MemoryConnector,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        broken = SavingsAgent(memory_connector)
        broken.analyze = AsyncMock(side_effect=RuntimeError("savings service down"))
        coordinator = CoordinatingAgent(config, memory_connector, module_agents=[broken])

        with caplog.at_level(logging.ERROR, logger="wealthpilot.agents.coordinator"):
            with pytest.raises(RuntimeError):
                await coordinator.orchestrate_analysis("u1")
            with pytest.raises(RuntimeError):
                await coordinator.build_scenarios("u1", {"available_surplus": 1000})

        failures = [r for r in caplog.records if r.levelno == logging.ERROR]
        assert len(failures) == 2
        assert "Analysis for u1 failed: savings service down" in failures[0].getMessage()

    @pytest.mark.asyncio
    async def test_unknown_user_is_logged(
        self, coordinator: CoordinatingAgent, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.ERROR, logger="wealthpilot.agents.coordinator"):
            with pytest.raises(UserNotFoundError):
                await coordinator.orchestrate_analysis("ghost")
        assert "Analysis for ghost failed" in caplog.text


# ── Pure pipeline steps ─────────────────────────────────────────────


class TestPipelineSteps:
    def test_extract_recommendations_tags_module(self, coordinator: CoordinatingAgent) -> None:
        analyses = {
            "estate": ModuleAnalysis(
                module="estate",
                metrics={"net_worth": 1},
                recommendations=[Recommendation(title="Write a will")],
            )
        }
        grouped = coordinator.extract_recommendations(analyses, 500)

        assert grouped["estate"][0].module == "estate"
        assert grouped["module_scores"] == {"estate": {"net_worth": 1}}
        assert grouped["available_surplus"] == 500

    @pytest.mark.asyncio
    async def test_extract_demands(self, coordinator: CoordinatingAgent) -> None:
        ranked = (await coordinator.orchestrate_analysis("u1")).ranked_recommendations
        demands = coordinator.extract_demands(ranked)

        assert {k: d.amount for k, d in demands.items()} == {
            "protection": 50,
            "emergency_fund": 400,
            "pension": 250,
            "investment": 300,
        }
        assert demands["protection"].urgency == 95
        assert demands["emergency_fund"].urgency == 85

    def test_generate_recommendations_accepts_mixed_shapes(self, coordinator: CoordinatingAgent) -> None:
        data: dict[str, Any] = {
            "protection": ModuleAnalysis(
                module="protection",
                recommendations=[Recommendation(title="Life cover", coverage_gap=150_000)],
            ),
            "savings": {"recommendations": [{"title": "Rainy day", "emergency_fund_months": 0.5}]},
            "estate": [{"title": "Write a will", "action_type": "will"}],
            "available_surplus": 800,
        }
        ranked = coordinator.generate_recommendations(data, {"module_priorities": {"estate": 100}})

        assert {r.module for r in ranked} == {"protection", "savings", "estate"}
        assert ranked[0].title == "Life cover"
        assert ranked[-1].title == "Write a will"

    def test_resolve_conflicts_without_conflicts(self, coordinator: CoordinatingAgent) -> None:
        assert coordinator.resolve_conflicts({"available_surplus": 100}, []) == []


class TestPlansAndScenarios:
    @pytest.mark.asyncio
    async def test_holistic_plan(self, coordinator: CoordinatingAgent) -> None:
        plan = await coordinator.generate_holistic_plan("u1")

        assert plan.executive_summary.overall_score == 55.57
        assert plan.net_worth_projection.baseline_projections[0].age == 42
        assert len(plan.net_worth_projection.baseline_projections) == 21
        assert len(plan.ranked_recommendations) == 5
        assert len(plan.conflicts) == 2

        summary = plan.action_plan_summary
        assert (summary.immediate_actions, summary.short_term_actions) == (2, 0)
        assert (summary.medium_term_actions, summary.long_term_actions) == (2, 1)
        assert summary.total_actions == 5

    @pytest.mark.asyncio
    async def test_scenario_more_surplus(self, coordinator: CoordinatingAgent) -> None:
        comparison = await coordinator.build_scenarios("u1", {"available_surplus": 1000})

        assert comparison.baseline.cashflow_allocation.total_shortfall == 200
        assert comparison.scenario.cashflow_allocation.total_shortfall == 0
        assert comparison.shortfall_change == -200
        assert comparison.scenario.summary.has_shortfall is False
        assert comparison.net_worth_change == 0

    @pytest.mark.asyncio
    async def test_scenario_savings_rate(self, coordinator: CoordinatingAgent) -> None:
        comparison = await coordinator.build_scenarios("u1", {"monthly_surplus": 1500})

        assert comparison.net_worth_change > 0
        assert comparison.shortfall_change == 0

    @pytest.mark.asyncio
    async def test_scenario_priorities_and_unknown_keys(self, coordinator: CoordinatingAgent) -> None:
        comparison = await coordinator.build_scenarios(
            "u1", {"module_priorities": {"estate": 100}, "lottery_win": 1_000_000}
        )

        assert comparison.parameters["lottery_win"] == 1_000_000
        assert comparison.scenario.available_surplus == comparison.baseline.available_surplus
        assert len(comparison.scenario.top_recommendations) == 5
