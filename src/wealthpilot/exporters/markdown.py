"""
Markdown plan exporter.

Renders a HolisticPlan as Markdown, suitable for GitHub, Notion, or any
Markdown viewer.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from wealthpilot.coordination.constants import format_gbp

if TYPE_CHECKING:
    from wealthpilot.models.plan import HolisticPlan

PROJECTION_MILESTONES = (0, 5, 10, 15, 20, 25, 30)

STATUS_EMOJI = {
    "excellent": "🟢",
    "good": "🔵",
    "needs_improvement": "🟡",
    "critical": "🔴",
}

SEVERITY_EMOJI = {
    "critical": "🔴",
    "high": "🟠",
    "medium": "🟡",
    "low": "🟢",
}

TIMELINE_HEADINGS = (
    ("immediate", "Immediate (within 1 month)"),
    ("short_term", "Short Term (within 3 months)"),
    ("medium_term", "Medium Term (within 12 months)"),
    ("long_term", "Long Term (12+ months)"),
)


def render_markdown(plan: HolisticPlan) -> str:
    """Render a HolisticPlan as Markdown."""
    lines: list[str] = []

    # Header
    lines.append(f"# 🧭 WealthPilot Holistic Plan — User {plan.user_id}")
    lines.append("")
    lines.append(f"*Generated: {plan.generated_at.strftime('%Y-%m-%d %H:%M UTC')}*")
    lines.append("")

    # Executive Summary
    summary = plan.executive_summary
    snapshot = plan.financial_snapshot
    lines.append("## 📊 Executive Summary")
    lines.append("")
    lines.append(summary.overview)
    lines.append("")
    lines.append("| Metric | Value |")
    lines.append("|--------|-------|")
    lines.append(f"| **Overall Score** | {summary.overall_score:.2f}/100 |")
    lines.append(f"| **Net Worth** | {format_gbp(snapshot.net_worth, 0)} |")
    lines.append(f"| **Monthly Surplus** | {format_gbp(snapshot.monthly_surplus)} |")
    lines.append(f"| **Risk Level** | {plan.risk_assessment.risk_level} |")
    lines.append(f"| **Total Actions** | {plan.action_plan_summary.total_actions} |")
    lines.append("")

    if summary.key_strengths:
        lines.append("### 💪 Key Strengths")
        lines.append("")
        for strength in summary.key_strengths:
            lines.append(f"- **{strength.area}** — {strength.description}")
        lines.append("")

    if summary.key_vulnerabilities:
        lines.append("### ⚠️ Key Vulnerabilities")
        lines.append("")
        for vuln in summary.key_vulnerabilities:
            emoji = SEVERITY_EMOJI.get(vuln.severity, "⚪")
            lines.append(f"- {emoji} **{vuln.area}** — {vuln.description}")
        lines.append("")

    if summary.top_priorities:
        lines.append("### 🎯 Top Priorities")
        lines.append("")
        for item in summary.top_priorities:
            lines.append(f"{item.priority}. **{item.area}**: {item.action} *({item.urgency})*")
        lines.append("")

    # Module summaries
    if plan.module_summaries:
        lines.append("## 🧩 Module Overview")
        lines.append("")
        lines.append("| Module | Status | Summary |")
        lines.append("|--------|--------|---------|")
        for module, module_summary in plan.module_summaries.items():
            emoji = STATUS_EMOJI.get(module_summary.status, "⚪")
            status = module_summary.status.replace("_", " ")
            lines.append(f"| {module.title()} | {emoji} {status} | {module_summary.key_message} |")
        lines.append("")

    # Risk
    risk = plan.risk_assessment
    lines.append(f"## 🛡️ Risk Assessment — {risk.risk_level} ({risk.overall_risk_score:.2f})")
    lines.append("")
    if risk.risk_areas:
        for area in risk.risk_areas:
            emoji = SEVERITY_EMOJI.get(area.severity, "⚪")
            lines.append(f"- {emoji} **{area.area}** ({area.severity}) — {area.description}")
    else:
        lines.append("No significant risk areas identified.")
    lines.append("")

    # Cashflow
    allocation = plan.cashflow_allocation
    if allocation.allocation:
        lines.append("## 💷 Monthly Cashflow Allocation")
        lines.append("")
        lines.append(
            f"Available surplus {format_gbp(allocation.available_surplus)} against total demand "
            f"{format_gbp(allocation.total_demand)} ({allocation.allocation_efficiency:.2f}% allocated)."
        )
        lines.append("")
        lines.append("| Category | Requested | Allocated | Shortfall | Funded |")
        lines.append("|----------|-----------|-----------|-----------|--------|")
        for category, details in allocation.allocation.items():
            lines.append(
                f"| {category.replace('_', ' ').title()} | {format_gbp(details.requested)} | "
                f"{format_gbp(details.allocated)} | {format_gbp(details.shortfall)} | {details.percent_funded:.2f}% |"
            )
        lines.append("")

    shortfall = plan.shortfall_analysis
    if shortfall.has_shortfall:
        lines.append(f"### Closing the {format_gbp(shortfall.total_shortfall)} Gap")
        lines.append("")
        for tip in shortfall.recommendations:
            lines.append(f"- {tip}")
        lines.append("")

    # Action plan
    if plan.action_plan_summary.total_actions:
        lines.append("## ✅ Action Plan")
        lines.append("")
        for key, heading in TIMELINE_HEADINGS:
            recs = getattr(plan.action_plan, key)
            if not recs:
                continue
            lines.append(f"### {heading} ({len(recs)})")
            lines.append("")
            lines.append("| # | Action | Module | Score | Monthly Cost |")
            lines.append("|---|--------|--------|-------|--------------|")
            for i, rec in enumerate(recs, 1):
                cost = format_gbp(rec.monthly_cost) if rec.monthly_cost is not None else "—"
                title = rec.title or rec.action or rec.description or "Untitled"
                lines.append(f"| {i} | {title} | {rec.module} | {rec.priority_score:.2f} | {cost} |")
            lines.append("")

    # Projection
    projection = plan.net_worth_projection
    if projection.baseline_projections:
        lines.append("## 📈 Net Worth Projection")
        lines.append("")
        lines.append("| Year | Age | Current Path | With Recommendations |")
        lines.append("|------|-----|--------------|----------------------|")
        for base, opt in zip(projection.baseline_projections, projection.optimized_projections):
            if base.year in PROJECTION_MILESTONES or base.year == projection.baseline_projections[-1].year:
                lines.append(f"| {base.year} | {base.age} | {format_gbp(base.value, 0)} | {format_gbp(opt.value, 0)} |")
        lines.append("")
        lines.append(
            f"Following the plan adds **{format_gbp(projection.improvement, 0)}** "
            f"({projection.improvement_percent:.2f}%) by the end of the projection."
        )
        lines.append("")

    # Conflicts
    if plan.conflicts:
        lines.append("## ⚖️ Conflicts Resolved")
        lines.append("")
        for conflict in plan.conflicts:
            emoji = SEVERITY_EMOJI.get(conflict.severity.value, "⚪")
            label = conflict.type.value.replace("_", " ").title()
            lines.append(f"- {emoji} {label}")
        lines.append("")

    # Footer
    lines.append("---")
    lines.append("*Plan generated by WealthPilot. Figures are illustrative, not regulated financial advice.*")

    return "\n".join(lines)
