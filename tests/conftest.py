"""Shared fixtures: a small household profile and connectors serving it."""

import copy
from pathlib import Path

import pytest
import yaml

from wealthpilot.config import WealthPilotConfig
from wealthpilot.connectors.memory_connector import MemoryConnector

# Surplus 800 against 1000 of monthly asks: a 200 shortfall once the
# waterfall reaches the investment top-up.
HOUSEHOLD = {
    "user_id": "u1",
    "name": "Alex Morgan",
    "age": 42,
    "cashflow": {"monthly_income": 4000, "monthly_expenses": 3200},
    "preferences": {"module_priorities": {"protection": 80}},
    "modules": {
        "protection": {
            "metrics": {"adequacy_score": 45, "coverage_gap": 150000},
            "recommendations": [
                {
                    "title": "Increase life cover",
                    "recommended_monthly_premium": 50,
                    "coverage_gap": 150000,
                }
            ],
        },
        "savings": {
            "metrics": {"emergency_fund_months": 2, "total_savings": 6400},
            "recommendations": [
                {
                    "title": "Build emergency fund",
                    "recommended_monthly_contribution": 400,
                    "emergency_fund_months": 2,
                    "emergency_fund_shortfall": 12800,
                }
            ],
        },
        "investment": {
            "metrics": {"total_portfolio_value": 50000},
            "recommendations": [
                {
                    "title": "Top up Stocks & Shares ISA",
                    "recommended_monthly_contribution": 300,
                    "recommended_isa_contribution": 15000,
                    "expected_benefit": 22000,
                }
            ],
        },
        "retirement": {
            "metrics": {"readiness_score": 55, "total_pension_value": 120000},
            "recommendations": [
                {
                    "title": "Raise workplace pension",
                    "recommended_monthly_contribution": 250,
                    "readiness_score": 55,
                    "income_gap": 9000,
                    "years_to_retirement": 25,
                    "pension_type": "workplace",
                }
            ],
        },
        "estate": {
            "metrics": {
                "net_worth": 350000,
                "iht_liability": 10000,
                "monthly_income": 4000,
                "monthly_expenses": 3200,
            },
            "recommendations": [{"title": "Write a will", "action_type": "will"}],
        },
    },
}


@pytest.fixture
def household() -> dict:
    return copy.deepcopy(HOUSEHOLD)


@pytest.fixture
def memory_connector(household: dict) -> MemoryConnector:
    return MemoryConnector(profiles={"u1": household})


@pytest.fixture
def profile_dir(tmp_path: Path, household: dict) -> Path:
    directory = tmp_path / "profiles"
    directory.mkdir()
    (directory / "u1.yaml").write_text(yaml.safe_dump(household))
    return directory


@pytest.fixture
def config() -> WealthPilotConfig:
    return WealthPilotConfig()
