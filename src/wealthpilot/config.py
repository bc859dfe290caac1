"""
WealthPilot configuration management.

Supports loading from YAML files, environment variables, and keyword overrides.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field


class TaxYearConfig(BaseModel):
    """UK tax-year constants consumed by the coordination core."""

    tax_year: str = Field(default="2024/25", description="Active tax year label")
    isa_allowance: float = Field(default=20_000, ge=0, description="Annual ISA allowance shared by all ISA types")

    def get(self, key: str, default: Any = None) -> Any:
        """Dot-path lookup, e.g. ``get("isa_allowance")``."""
        node: Any = self.model_dump()
        for part in key.split("."):
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return node


class CoordinationConfig(BaseModel):
    """Knobs for the cross-module coordination pipeline."""

    projection_years: int = Field(default=20, ge=0, le=100, description="Net-worth projection horizon")
    baseline_growth_rate: float = Field(default=0.04, description="Annual growth on the current trajectory")
    optimized_growth_rate: float = Field(default=0.06, description="Annual growth with recommendations applied")
    concurrent_module_analysis: bool = Field(
        default=True,
        description="Fan the five module analyses out concurrently",
    )
    top_priorities_limit: int = Field(default=5, ge=0)


class CacheConfig(BaseModel):
    """Result memoisation around the orchestrator entry points."""

    enabled: bool = True
    analysis_ttl_seconds: int = Field(default=3600, ge=0)
    plan_ttl_seconds: int = Field(default=86400, ge=0)


class ConnectorConfig(BaseModel):
    """Configuration for the profile connector."""

    type: str = Field(default="yaml", description="Connector type: yaml, json, memory, or dotted class path")
    enabled: bool = True
    options: dict[str, Any] = Field(default_factory=dict)


class WealthPilotConfig(BaseModel):
    """Root configuration for WealthPilot."""

    connector: ConnectorConfig = Field(default_factory=ConnectorConfig)
    tax: TaxYearConfig = Field(default_factory=TaxYearConfig)
    coordination: CoordinationConfig = Field(default_factory=CoordinationConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)

    # Output settings
    output_dir: str = Field(default="./wealthpilot_plans")
    currency: str = Field(default="GBP")
    locale: str = Field(default="en_GB")

    @classmethod
    def load(cls, config_path: str | None = None, **overrides: Any) -> WealthPilotConfig:
        """Load configuration from file, env vars, and overrides.

        Priority: overrides > env vars > config file > defaults.
        """
        data: dict[str, Any] = {}

        # 1. Load from YAML file if provided
        if config_path:
            path = Path(config_path)
            if path.exists():
                with open(path) as f:
                    data = yaml.safe_load(f) or {}

        # 2. Override from environment variables
        env_allowance = os.environ.get("WEALTHPILOT_ISA_ALLOWANCE")
        env_tax_year = os.environ.get("WEALTHPILOT_TAX_YEAR")
        env_years = os.environ.get("WEALTHPILOT_PROJECTION_YEARS")
        env_no_cache = os.environ.get("WEALTHPILOT_CACHE_DISABLED")
        env_profiles = os.environ.get("WEALTHPILOT_PROFILE_DIR")

        if env_allowance or env_tax_year:
            tax = data.get("tax", {})
            if env_allowance:
                tax["isa_allowance"] = float(env_allowance)
            if env_tax_year:
                tax["tax_year"] = env_tax_year
            data["tax"] = tax

        if env_years:
            coordination = data.get("coordination", {})
            coordination["projection_years"] = int(env_years)
            data["coordination"] = coordination

        if env_no_cache and env_no_cache.lower() in ("1", "true", "yes"):
            cache = data.get("cache", {})
            cache["enabled"] = False
            data["cache"] = cache

        if env_profiles:
            connector = data.get("connector", {})
            options = connector.get("options", {})
            options["directory"] = env_profiles
            connector["options"] = options
            data["connector"] = connector

        # 3. Apply keyword overrides
        data.update(overrides)

        return cls.model_validate(data)
