"""
Lookup tables shared by every coordination component.

Bands are ordered ``(threshold, value)`` pairs evaluated top to bottom; the
first matching band wins and the table's default applies when none match.
"""

from __future__ import annotations

from typing import Callable, Sequence

# ── Categories & modules ───────────────────────────────────────────

CATEGORY_PRIORITY: dict[str, int] = {
    "emergency_fund": 1,
    "protection": 2,
    "pension": 3,
    "investment": 4,
    "estate": 5,
}
UNKNOWN_CATEGORY_PRIORITY = 999

MODULE_TO_CATEGORY: dict[str, str] = {
    "protection": "protection",
    "savings": "emergency_fund",
    "investment": "investment",
    "retirement": "pension",
    "estate": "estate",
}

MODULES: tuple[str, ...] = ("protection", "savings", "investment", "retirement", "estate")

# Keys of a grouped-recommendations mapping that never hold recommendations
RESERVED_KEYS: frozenset[str] = frozenset(
    {"module_scores", "available_surplus", "user", "conflict_resolutions"}
)

CRITICAL_CATEGORIES: tuple[str, ...] = ("emergency_fund", "protection")

# ── Scoring ────────────────────────────────────────────────────────

SCORE_WEIGHTS: dict[str, float] = {
    "urgency": 0.4,
    "impact": 0.3,
    "ease": 0.2,
    "user_priority": 0.1,
}

DEFAULT_MODULE_PRIORITIES: dict[str, float] = {
    "protection": 70,
    "savings": 75,
    "retirement": 65,
    "investment": 60,
    "estate": 50,
}
FALLBACK_PRIORITY = 50.0
DEFAULT_URGENCY = 50.0
DEFAULT_IMPACT = 50.0
DEFAULT_EASE = 50.0

CRITICAL_URGENCY = 80.0

TIMELINE_BANDS: tuple[tuple[float, str], ...] = (
    (80, "immediate"),
    (60, "short_term"),
    (40, "medium_term"),
)
TIMELINE_DEFAULT = "long_term"

# ── Urgency tables ─────────────────────────────────────────────────
# Each entry: (field, comparison, threshold, score). Evaluated in order.

LESS_THAN = "<"
GREATER_THAN = ">"

URGENCY_RULES: dict[str, tuple[tuple[str, str, float, float], ...]] = {
    "protection": (
        ("coverage_gap", GREATER_THAN, 100_000, 95),
        ("adequacy_score", LESS_THAN, 30, 90),
        ("adequacy_score", LESS_THAN, 50, 75),
        ("adequacy_score", LESS_THAN, 70, 60),
    ),
    "savings": (
        ("emergency_fund_months", LESS_THAN, 1, 95),
        ("emergency_fund_months", LESS_THAN, 3, 85),
        ("emergency_fund_months", LESS_THAN, 6, 65),
    ),
    "retirement": (
        ("readiness_score", LESS_THAN, 30, 80),
        ("readiness_score", LESS_THAN, 50, 70),
        ("readiness_score", LESS_THAN, 70, 55),
    ),
    "investment": (
        ("goal_probability", LESS_THAN, 30, 75),
        ("goal_probability", LESS_THAN, 50, 60),
    ),
    "estate": (
        ("iht_liability", GREATER_THAN, 500_000, 85),
        ("iht_liability", GREATER_THAN, 200_000, 70),
        ("iht_liability", GREATER_THAN, 50_000, 55),
    ),
}

URGENCY_FALLBACK: dict[str, float] = {
    "protection": 40,
    "savings": 45,
    "retirement": 35,
    "investment": 40,
    "estate": 30,
}

# (field, comparison, threshold, boost) applied after the base table, capped at 100
URGENCY_BOOSTS: dict[str, tuple[str, str, float, float]] = {
    "retirement": ("years_to_retirement", LESS_THAN, 10, 20),
    "investment": ("years_to_goal", LESS_THAN, 3, 25),
    "estate": ("age", GREATER_THAN, 70, 15),
}

# ── Impact tables ──────────────────────────────────────────────────
# module -> (field, descending "greater than" bands, fallback when field present)

IMPACT_RULES: dict[str, tuple[str, tuple[tuple[float, float], ...], float]] = {
    "protection": ("coverage_gap", ((500_000, 95), (250_000, 85), (100_000, 70)), 55),
    "savings": ("emergency_fund_shortfall", ((20_000, 90), (10_000, 75), (5_000, 60)), 45),
    "retirement": ("income_gap", ((30_000, 95), (15_000, 80), (5_000, 65)), 50),
    "investment": ("expected_benefit", ((50_000, 90), (20_000, 75), (10_000, 60)), 45),
    "estate": ("iht_saving", ((200_000, 95), (100_000, 85), (50_000, 70)), 55),
}

# ── Ease tables ────────────────────────────────────────────────────

# monthly cost "less than" bands; zero cost handled separately
ZERO_COST_EASE = 90.0
COST_EASE_BANDS: tuple[tuple[float, float], ...] = ((50, 80), (200, 65), (500, 45))
COST_EASE_DEFAULT = 30.0

PROTECTION_EASE_CAP = 60.0
SAVINGS_EASE_FLOOR = 70.0
INVESTMENT_EASE_CAP = 65.0
WORKPLACE_PENSION_EASE_FLOOR = 75.0
PERSONAL_PENSION_EASE_CAP = 55.0
ESTATE_ACTION_EASE: dict[str, float] = {"will": 50, "trust": 30}
ESTATE_DEFAULT_EASE = 60.0

# ── Conflicts ──────────────────────────────────────────────────────

DEFAULT_ISA_ALLOWANCE = 20_000.0

SEVERITY_RATIO_BANDS: tuple[tuple[float, str], ...] = (
    (2.0, "critical"),
    (1.5, "high"),
    (1.2, "medium"),
)
SEVERITY_RATIO_DEFAULT = "low"

ADEQUACY_CONFLICT_THRESHOLD = 75.0
ADEQUACY_CRITICAL_THRESHOLD = 50.0

# ── Cashflow ───────────────────────────────────────────────────────

PHASED_APPROACH_THRESHOLD = 500.0

# Money comparisons ignore float drift below a millionth of a penny
MONEY_TOLERANCE = 1e-9

# ── Planning ───────────────────────────────────────────────────────

TARGET_EMERGENCY_MONTHS = 6.0
IHT_SCALE = 10_000.0

RISK_LEVELS: tuple[tuple[float, str], ...] = (
    (70, "High Risk"),
    (50, "Moderate Risk"),
    (30, "Low Risk"),
)
RISK_LEVEL_DEFAULT = "Minimal Risk"

MODULE_STATUS: tuple[tuple[float, str], ...] = (
    (80, "excellent"),
    (60, "good"),
    (40, "needs_improvement"),
)
MODULE_STATUS_DEFAULT = "critical"


def band_lookup(
    value: float,
    bands: Sequence[tuple[float, object]],
    default: object,
    *,
    compare: Callable[[float, float], bool] = lambda v, t: v >= t,
) -> object:
    """Return the value of the first band whose threshold ``compare`` accepts."""
    for threshold, result in bands:
        if compare(value, threshold):
            return result
    return default


def category_priority(category: str) -> int:
    return CATEGORY_PRIORITY.get(category, UNKNOWN_CATEGORY_PRIORITY)


def module_category(module: str) -> str:
    return MODULE_TO_CATEGORY.get(module, module)


def format_gbp(amount: float, decimals: int = 2) -> str:
    """Format an amount as pounds sterling, e.g. ``£1,234.50``."""
    return f"£{amount:,.{decimals}f}"
