"""Coordination package — pure cross-module engines (no I/O)."""
from wealthpilot.coordination.cashflow import CashFlowCoordinator
from wealthpilot.coordination.conflicts import ConflictDetector, calculate_conflict_severity
from wealthpilot.coordination.planner import HolisticPlanner
from wealthpilot.coordination.ranking import PriorityRanker, determine_timeline
from wealthpilot.coordination.resolver import ConflictResolver

__all__ = [
    "CashFlowCoordinator",
    "ConflictDetector",
    "ConflictResolver",
    "HolisticPlanner",
    "PriorityRanker",
    "calculate_conflict_severity",
    "determine_timeline",
]
