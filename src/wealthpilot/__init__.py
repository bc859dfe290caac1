"""
WealthPilot — holistic personal-finance planning.

Coordinate. Prioritise. Plan.
Reconciles protection, savings, investment, retirement and estate
analyses into one ranked, cash-constrained financial plan.
"""

__version__ = "0.3.0"
__all__ = ["WealthPilot"]

from wealthpilot.pilot import WealthPilot  # noqa: E402
