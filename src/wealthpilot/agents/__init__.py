"""Agents package — module agents and the cross-module coordinator."""
from wealthpilot.agents.base import BaseAgent
from wealthpilot.agents.coordinator import CoordinatingAgent
from wealthpilot.agents.modules import (
    EstateAgent,
    InvestmentAgent,
    ModuleAgent,
    ProtectionAgent,
    RetirementAgent,
    SavingsAgent,
)

__all__ = [
    "BaseAgent",
    "CoordinatingAgent",
    "EstateAgent",
    "InvestmentAgent",
    "ModuleAgent",
    "ProtectionAgent",
    "RetirementAgent",
    "SavingsAgent",
]
