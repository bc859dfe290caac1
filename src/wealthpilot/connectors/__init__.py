"""Connectors package — profile sources."""
from wealthpilot.connectors.base import BaseConnector
from wealthpilot.connectors.file_connector import FileConnector
from wealthpilot.connectors.memory_connector import MemoryConnector
from wealthpilot.connectors.registry import ConnectorRegistry

__all__ = [
    "BaseConnector",
    "ConnectorRegistry",
    "FileConnector",
    "MemoryConnector",
]
