"""Tests for the conflict resolution strategies."""

import pytest

from wealthpilot.coordination.resolver import ConflictResolver


@pytest.fixture
def resolver() -> ConflictResolver:
    return ConflictResolver()


class TestProtectionVsSavings:
    def test_split_priority_when_both_critical(self, resolver: ConflictResolver) -> None:
        result = resolver.resolve_protection_vs_savings(40, 45)
        assert result.resolution == "split_priority"
        assert result.allocation == {"protection": 0.6, "savings": 0.4}

    def test_protection_priority(self, resolver: ConflictResolver) -> None:
        result = resolver.resolve_protection_vs_savings(55, 70)
        assert result.resolution == "protection_priority"
        assert result.allocation == {"protection": 0.8, "savings": 0.2}

    def test_savings_priority(self, resolver: ConflictResolver) -> None:
        result = resolver.resolve_protection_vs_savings(70, 55)
        assert result.resolution == "savings_priority"
        assert result.allocation == {"protection": 0.2, "savings": 0.8}

    def test_equal_scores_favour_savings(self, resolver: ConflictResolver) -> None:
        assert resolver.resolve_protection_vs_savings(60, 60).resolution == "savings_priority"

    def test_missing_scores_treated_as_zero(self, resolver: ConflictResolver) -> None:
        assert resolver.resolve_protection_vs_savings(None, None).resolution == "split_priority"


class TestContributionConflicts:
    def test_waterfall_by_category_priority(self, resolver: ConflictResolver) -> None:
        result = resolver.resolve_contribution_conflicts(
            1000,
            {"investment": 300, "protection": 500, "emergency_fund": 600},
        )
        assert result.allocation == {"emergency_fund": 600, "protection": 400, "investment": 0.0}
        assert result.total_demand == 1400
        assert result.shortfall == 400
        assert result.surplus_remaining == 0

    def test_accepts_demand_mappings(self, resolver: ConflictResolver) -> None:
        result = resolver.resolve_contribution_conflicts(
            500,
            {"pension": {"amount": 200, "urgency": 90}, "estate": {"amount": 100}},
        )
        assert result.allocation == {"pension": 200, "estate": 100}
        assert result.surplus_remaining == 200
        assert result.shortfall == 0

    def test_float_drift_funds_last_category_fully(self, resolver: ConflictResolver) -> None:
        result = resolver.resolve_contribution_conflicts(0.3, {"emergency_fund": 0.1, "pension": 0.2})
        assert result.allocation == {"emergency_fund": 0.1, "pension": 0.2}
        assert result.shortfall == 0
        assert result.surplus_remaining == 0

    def test_unknown_categories_last_by_name(self, resolver: ConflictResolver) -> None:
        result = resolver.resolve_contribution_conflicts(100, {"zoo": 50, "holiday": 50, "estate": 50})
        assert list(result.allocation) == ["estate", "holiday", "zoo"]
        assert result.allocation == {"estate": 50, "holiday": 50, "zoo": 0.0}


class TestISAAllocation:
    def test_emergency_fund_priority(self, resolver: ConflictResolver) -> None:
        result = resolver.resolve_isa_allocation(
            20000,
            {"cash_isa": 15000, "stocks_shares_isa": 10000, "emergency_fund_adequacy": 40},
        )
        assert result.branch == "emergency_fund_priority"
        assert result.allocation == {"cash_isa": 15000, "stocks_shares_isa": 5000}
        assert result.unallocated == 0
        assert result.shortfall == 5000

    def test_low_risk_tolerance(self, resolver: ConflictResolver) -> None:
        result = resolver.resolve_isa_allocation(
            20000,
            {"cash_isa": 18000, "stocks_shares_isa": 5000, "risk_tolerance": "low"},
        )
        assert result.branch == "low_risk_tolerance"
        assert result.allocation == {"cash_isa": 14000, "stocks_shares_isa": 5000}
        assert result.unallocated == 1000
        assert result.shortfall == 3000

    def test_growth_priority(self, resolver: ConflictResolver) -> None:
        result = resolver.resolve_isa_allocation(
            20000,
            {
                "cash_isa": 5000,
                "stocks_shares_isa": 20000,
                "investment_goal_urgency": 80,
                "risk_tolerance": "high",
            },
        )
        assert result.branch == "growth_priority"
        assert result.allocation == {"cash_isa": 2000, "stocks_shares_isa": 18000}

    def test_within_allowance(self, resolver: ConflictResolver) -> None:
        result = resolver.resolve_isa_allocation(20000, {"cash_isa": 5000, "stocks_shares_isa": 8000})
        assert result.branch == "within_allowance"
        assert result.allocation == {"cash_isa": 5000, "stocks_shares_isa": 8000}
        assert result.unallocated == 7000
        assert result.shortfall == 0

    def test_proportional(self, resolver: ConflictResolver) -> None:
        result = resolver.resolve_isa_allocation(20000, {"cash_isa": 15000, "stocks_shares_isa": 15000})
        assert result.branch == "proportional"
        assert result.allocation == {"cash_isa": 10000, "stocks_shares_isa": 10000}
        assert result.shortfall == 10000

    def test_defaults(self, resolver: ConflictResolver) -> None:
        result = resolver.resolve_isa_allocation()
        assert result.total_allowance == 20000
        assert result.branch == "within_allowance"
        assert result.allocation == {"cash_isa": 0, "stocks_shares_isa": 0}

    @pytest.mark.parametrize(
        "demands",
        [
            {"cash_isa": 10000, "stocks_shares_isa": 20000},
            {"cash_isa": 1, "stocks_shares_isa": 2},
            {"cash_isa": 7, "stocks_shares_isa": 13, "risk_tolerance": "low"},
            {"cash_isa": 30000, "stocks_shares_isa": 30000, "emergency_fund_adequacy": 10},
            {"cash_isa": 3333, "stocks_shares_isa": 99999, "investment_goal_urgency": 99, "risk_tolerance": "high"},
        ],
    )
    @pytest.mark.parametrize("allowance", [20000, 19999.99, 1000, 0])
    def test_never_exceeds_allowance(
        self, resolver: ConflictResolver, demands: dict, allowance: float
    ) -> None:
        result = resolver.resolve_isa_allocation(allowance, demands)
        total = result.allocation["cash_isa"] + result.allocation["stocks_shares_isa"]
        assert total <= allowance + 1e-6
