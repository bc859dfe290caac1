"""
Priority Ranker — scores and orders every recommendation across modules.

Each recommendation gets four sub-scores (0-100):

- **Urgency** — how critical the underlying gap is right now.
- **Impact** — the size of the financial benefit or risk reduction.
- **Ease** — how simple and cheap it is to act on.
- **User priority** — how much the user cares about the module.

Formula: ``score = 0.4·urgency + 0.3·impact + 0.2·ease + 0.1·user_priority``.

No LLM needed — pure decision tables.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Sequence

from wealthpilot.coordination.conflicts import iter_module_recommendations
from wealthpilot.coordination.constants import (
    COST_EASE_BANDS,
    COST_EASE_DEFAULT,
    DEFAULT_EASE,
    DEFAULT_IMPACT,
    DEFAULT_MODULE_PRIORITIES,
    DEFAULT_URGENCY,
    ESTATE_ACTION_EASE,
    ESTATE_DEFAULT_EASE,
    FALLBACK_PRIORITY,
    GREATER_THAN,
    IMPACT_RULES,
    INVESTMENT_EASE_CAP,
    MODULES,
    PERSONAL_PENSION_EASE_CAP,
    PROTECTION_EASE_CAP,
    SAVINGS_EASE_FLOOR,
    SCORE_WEIGHTS,
    TIMELINE_BANDS,
    TIMELINE_DEFAULT,
    URGENCY_BOOSTS,
    URGENCY_FALLBACK,
    URGENCY_RULES,
    WORKPLACE_PENSION_EASE_FLOOR,
    ZERO_COST_EASE,
    band_lookup,
)
from wealthpilot.models.coordination import ActionPlan, ActionPlanSummary
from wealthpilot.models.profile import UserContext
from wealthpilot.models.recommendation import (
    Recommendation,
    RecommendationScore,
    ScoredRecommendation,
    Timeline,
)

logger = logging.getLogger("wealthpilot.coordination.ranking")


def _clamp(value: float) -> float:
    return min(100.0, max(0.0, value))


def _matches(value: float | None, comparison: str, threshold: float) -> bool:
    if value is None:
        return False
    return value > threshold if comparison == GREATER_THAN else value < threshold


def determine_timeline(urgency_score: float) -> Timeline:
    """Map an urgency score onto an action timeline."""
    return Timeline(band_lookup(urgency_score, TIMELINE_BANDS, TIMELINE_DEFAULT))


class PriorityRanker:
    """Rank recommendations from all modules by weighted priority score."""

    def rank_recommendations(
        self,
        all_recommendations: Mapping[str, Any],
        user_context: UserContext | Mapping[str, Any] | None = None,
    ) -> list[ScoredRecommendation]:
        """Score and order every recommendation.

        Args:
            all_recommendations: ``{module: [recommendation, ...]}``. Reserved
                keys (``module_scores``, ``available_surplus``, ...) and
                non-list values are skipped.
            user_context: Per-module priority overrides.

        Returns:
            Recommendations sorted by ``priority_score`` descending. Ties keep
            their input order.
        """
        context = self._coerce_context(user_context)
        scored: list[ScoredRecommendation] = []

        for module, recommendations in iter_module_recommendations(all_recommendations):
            for rec in recommendations:
                score = self.calculate_recommendation_score(rec, module, context)
                payload = rec.model_dump()
                payload.update(
                    module=module,
                    priority_score=score.total_score,
                    urgency_score=score.urgency,
                    impact_score=score.impact,
                    ease_score=score.ease,
                    user_priority_score=score.user_priority,
                    timeline=determine_timeline(score.urgency),
                )
                scored.append(ScoredRecommendation.model_validate(payload))

        # sorted() is stable, so equal scores keep input order
        scored = sorted(scored, key=lambda r: r.priority_score, reverse=True)
        logger.info("Ranked %d recommendations", len(scored))
        return scored

    def calculate_recommendation_score(
        self,
        recommendation: Recommendation | Mapping[str, Any],
        module: str,
        user_context: UserContext | Mapping[str, Any] | None = None,
    ) -> RecommendationScore:
        """Weighted score for a single recommendation."""
        rec = (
            recommendation
            if isinstance(recommendation, Recommendation)
            else Recommendation.model_validate(dict(recommendation))
        )
        context = self._coerce_context(user_context)

        urgency = self._urgency_score(rec, module)
        impact = self._impact_score(rec, module)
        ease = self._ease_score(rec, module)
        user_priority = self._user_priority_score(module, context)

        total = (
            urgency * SCORE_WEIGHTS["urgency"]
            + impact * SCORE_WEIGHTS["impact"]
            + ease * SCORE_WEIGHTS["ease"]
            + user_priority * SCORE_WEIGHTS["user_priority"]
        )

        return RecommendationScore(
            total_score=round(total, 2),
            urgency=round(urgency, 2),
            impact=round(impact, 2),
            ease=round(ease, 2),
            user_priority=round(user_priority, 2),
        )

    def group_by_category(
        self, recommendations: Sequence[ScoredRecommendation]
    ) -> dict[str, list[ScoredRecommendation]]:
        """Bucket scored recommendations by module; unknown modules are dropped."""
        grouped: dict[str, list[ScoredRecommendation]] = {module: [] for module in MODULES}
        for rec in recommendations:
            if rec.module in grouped:
                grouped[rec.module].append(rec)
        return grouped

    def create_action_plan(self, ranked_recommendations: Sequence[ScoredRecommendation]) -> ActionPlan:
        """Bucket ranked recommendations into timelines, preserving rank order."""
        buckets: dict[Timeline, list[ScoredRecommendation]] = {t: [] for t in Timeline}

        for rec in ranked_recommendations:
            buckets[Timeline(rec.timeline)].append(rec)

        return ActionPlan(
            immediate=buckets[Timeline.IMMEDIATE],
            short_term=buckets[Timeline.SHORT_TERM],
            medium_term=buckets[Timeline.MEDIUM_TERM],
            long_term=buckets[Timeline.LONG_TERM],
            summary=ActionPlanSummary(
                immediate_actions=len(buckets[Timeline.IMMEDIATE]),
                short_term_actions=len(buckets[Timeline.SHORT_TERM]),
                medium_term_actions=len(buckets[Timeline.MEDIUM_TERM]),
                long_term_actions=len(buckets[Timeline.LONG_TERM]),
                total_actions=len(ranked_recommendations),
            ),
        )

    # ── Sub-scores ──────────────────────────────────────────────────

    @staticmethod
    def _urgency_score(rec: Recommendation, module: str) -> float:
        rules = URGENCY_RULES.get(module)
        if rules is None:
            return DEFAULT_URGENCY

        urgency = URGENCY_FALLBACK[module]
        for field, comparison, threshold, score in rules:
            if _matches(getattr(rec, field), comparison, threshold):
                urgency = score
                break

        boost = URGENCY_BOOSTS.get(module)
        if boost:
            field, comparison, threshold, amount = boost
            if _matches(getattr(rec, field), comparison, threshold):
                urgency = min(100.0, urgency + amount)

        return _clamp(urgency)

    @staticmethod
    def _impact_score(rec: Recommendation, module: str) -> float:
        rule = IMPACT_RULES.get(module)
        if rule is None:
            return DEFAULT_IMPACT

        field, bands, fallback = rule
        value = getattr(rec, field)
        if value is None:
            return DEFAULT_IMPACT
        impact = band_lookup(value, bands, fallback, compare=lambda v, t: v > t)
        return _clamp(float(impact))

    @staticmethod
    def _ease_score(rec: Recommendation, module: str) -> float:
        ease = DEFAULT_EASE

        cost = rec.monthly_cost
        if cost is not None:
            if cost == 0:
                ease = ZERO_COST_EASE
            else:
                ease = float(
                    band_lookup(cost, COST_EASE_BANDS, COST_EASE_DEFAULT, compare=lambda v, t: v < t)
                )

        if module == "protection":
            # application and underwriting
            ease = min(ease, PROTECTION_EASE_CAP)
        elif module == "savings":
            ease = max(ease, SAVINGS_EASE_FLOOR)
        elif module == "investment":
            ease = min(ease, INVESTMENT_EASE_CAP)
        elif module == "retirement":
            if rec.pension_type == "workplace":
                ease = max(ease, WORKPLACE_PENSION_EASE_FLOOR)
            else:
                ease = min(ease, PERSONAL_PENSION_EASE_CAP)
        elif module == "estate":
            ease = ESTATE_ACTION_EASE.get(rec.action_type or "", ESTATE_DEFAULT_EASE)

        return _clamp(ease)

    @staticmethod
    def _user_priority_score(module: str, context: UserContext) -> float:
        priority = context.priority_for(module)
        if priority is None:
            priority = DEFAULT_MODULE_PRIORITIES.get(module, FALLBACK_PRIORITY)
        return _clamp(float(priority))

    @staticmethod
    def _coerce_context(user_context: UserContext | Mapping[str, Any] | None) -> UserContext:
        if user_context is None:
            return UserContext()
        if isinstance(user_context, UserContext):
            return user_context
        return UserContext.model_validate(dict(user_context))
