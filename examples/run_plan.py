"""
Example: Build a holistic plan for the demo household.

Run:
    python examples/run_plan.py

Try a what-if with a bigger surplus:
    python examples/run_plan.py --surplus 1800

Or via CLI:
    wealthpilot plan demo --profiles examples/profiles --output demo_plan.md
"""

import asyncio
import sys
from pathlib import Path

from wealthpilot import WealthPilot
from wealthpilot.config import ConnectorConfig, WealthPilotConfig

SCRIPT_DIR = Path(__file__).parent.resolve()
PROFILES_DIR = SCRIPT_DIR / "profiles"


async def main() -> None:
    config = WealthPilotConfig(
        connector=ConnectorConfig(type="yaml", options={"directory": str(PROFILES_DIR)}),
    )
    pilot = WealthPilot(config=config)
    pilot._setup()

    if "--surplus" in sys.argv:
        surplus = float(sys.argv[sys.argv.index("--surplus") + 1])
        comparison = await pilot.scenarios("demo", {"available_surplus": surplus})
        print(f"Baseline shortfall: £{comparison.baseline.cashflow_allocation.total_shortfall:,.2f}")
        print(f"Scenario shortfall: £{comparison.scenario.cashflow_allocation.total_shortfall:,.2f}")
        return

    plan = await pilot.plan("demo")
    output = SCRIPT_DIR / "demo_plan.md"
    output.write_text(plan.to_markdown(), encoding="utf-8")

    print(f"Overall score: {plan.executive_summary.overall_score:.2f}/100")
    print(f"Risk level:    {plan.risk_assessment.risk_level}")
    print(f"Actions:       {plan.action_plan_summary.total_actions}")
    print(f"Plan written to {output}")


if __name__ == "__main__":
    asyncio.run(main())
