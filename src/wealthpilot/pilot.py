"""
WealthPilot — Main orchestrator.

The WealthPilot class is the top-level entry point that wires the profile
connector, the coordinating agent and the result cache together.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Mapping

from wealthpilot.agents.coordinator import CoordinatingAgent
from wealthpilot.cache import ResultCache
from wealthpilot.config import WealthPilotConfig
from wealthpilot.connectors.base import BaseConnector
from wealthpilot.connectors.registry import ConnectorRegistry
from wealthpilot.models.plan import CoordinatedAnalysis, HolisticPlan, ScenarioComparison

logger = logging.getLogger("wealthpilot")


@dataclass
class WealthPilot:
    """Top-level orchestrator for the WealthPilot system.

    Usage::

        from wealthpilot import WealthPilot

        pilot = WealthPilot.from_config("wealthpilot.yaml")
        plan = await pilot.plan("42")
        print(plan.to_markdown())

    The WealthPilot coordinates:
    - **Connectors**: Resolve a user to their module analyses and cashflow.
    - **Coordinator**: Conflicts, ranking, cashflow allocation, planning.
    - **Cache**: Per-user memoisation of analyses and plans.
    """

    config: WealthPilotConfig = field(default_factory=WealthPilotConfig)
    connector_registry: ConnectorRegistry = field(default_factory=ConnectorRegistry)
    cache: ResultCache | None = None
    _coordinator: CoordinatingAgent | None = field(default=None, init=False, repr=False)

    @classmethod
    def from_config(cls, config_path: str | None = None, **overrides: Any) -> WealthPilot:
        """Create a WealthPilot instance from a config file or keyword arguments."""
        config = WealthPilotConfig.load(config_path, **overrides)
        instance = cls(config=config)
        instance._setup()
        return instance

    @classmethod
    def from_connector(cls, connector: BaseConnector, config: WealthPilotConfig | None = None) -> WealthPilot:
        """Create a WealthPilot instance around an existing connector."""
        registry = ConnectorRegistry()
        registry.register(connector)
        instance = cls(config=config or WealthPilotConfig(), connector_registry=registry)
        instance._setup()
        return instance

    def _setup(self) -> None:
        """Initialize connector, coordinator, and cache."""
        if not len(self.connector_registry):
            self.connector_registry.auto_discover(self.config)
        self._coordinator = CoordinatingAgent(
            config=self.config,
            connectors=self.connector_registry,
        )
        if self.cache is None:
            self.cache = ResultCache(enabled=self.config.cache.enabled)
        logger.info(
            "WealthPilot initialized with %d connectors (cache %s)",
            len(self.connector_registry),
            "on" if self.cache.enabled else "off",
        )

    @property
    def coordinator(self) -> CoordinatingAgent:
        if self._coordinator is None:
            self._setup()
        assert self._coordinator is not None
        return self._coordinator

    async def analyze(self, user_id: str | int) -> CoordinatedAnalysis:
        """Coordinated analysis across all five modules (cached)."""
        coordinator = self.coordinator
        assert self.cache is not None
        user_id = str(user_id)
        return await self.cache.get_or_compute(
            ResultCache.analysis_key(user_id),
            self.config.cache.analysis_ttl_seconds,
            lambda: coordinator.orchestrate_analysis(user_id),
        )

    async def plan(self, user_id: str | int) -> HolisticPlan:
        """Holistic plan for one user (cached, reusing the cached analysis)."""
        coordinator = self.coordinator
        assert self.cache is not None
        user_id = str(user_id)

        async def compute() -> HolisticPlan:
            analysis = await self.analyze(user_id)
            plan = coordinator.build_plan(analysis)
            logger.info(
                "Plan ready for %s: score %.2f, %d actions",
                user_id,
                plan.executive_summary.overall_score,
                plan.action_plan_summary.total_actions,
            )
            return plan

        return await self.cache.get_or_compute(
            ResultCache.plan_key(user_id),
            self.config.cache.plan_ttl_seconds,
            compute,
        )

    async def scenarios(self, user_id: str | int, parameters: Mapping[str, Any]) -> ScenarioComparison:
        """What-if comparison; never cached."""
        return await self.coordinator.build_scenarios(str(user_id), parameters)

    def analyze_sync(self, user_id: str | int) -> CoordinatedAnalysis:
        """Synchronous wrapper around :meth:`analyze`."""
        return asyncio.run(self.analyze(user_id))

    def plan_sync(self, user_id: str | int) -> HolisticPlan:
        """Synchronous wrapper around :meth:`plan`."""
        return asyncio.run(self.plan(user_id))

    def invalidate(self, user_id: str | int) -> None:
        """Forget cached results for a user, e.g. after their profile changes."""
        if self.cache is not None:
            self.cache.invalidate(str(user_id))

    async def health_check(self) -> list[dict[str, Any]]:
        return [await c.health_check() for c in self.connector_registry.active_connectors]
