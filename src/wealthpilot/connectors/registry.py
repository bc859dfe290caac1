"""
Connector Registry — builds and tracks profile connectors.

Supports creation from config, manual registration of custom connectors,
and plugin-style loading from a dotted class path.
"""

from __future__ import annotations

import importlib
import logging

from wealthpilot.config import ConnectorConfig, WealthPilotConfig
from wealthpilot.connectors.base import BaseConnector
from wealthpilot.errors import WealthPilotError

logger = logging.getLogger("wealthpilot.connectors.registry")

# Built-in connector type mapping
BUILTIN_CONNECTORS: dict[str, str] = {
    "yaml": "wealthpilot.connectors.file_connector.FileConnector",
    "json": "wealthpilot.connectors.file_connector.FileConnector",
    "file": "wealthpilot.connectors.file_connector.FileConnector",
    "memory": "wealthpilot.connectors.memory_connector.MemoryConnector",
}


class ConnectorRegistry:
    """Manages the active profile connectors.

    The first registered connector is the primary one the coordinator reads
    profiles from.
    """

    def __init__(self) -> None:
        self._connectors: dict[str, BaseConnector] = {}

    def __len__(self) -> int:
        return len(self._connectors)

    @property
    def active_connectors(self) -> list[BaseConnector]:
        """Return all active connectors."""
        return list(self._connectors.values())

    @property
    def primary(self) -> BaseConnector:
        if not self._connectors:
            raise WealthPilotError("No profile connector registered")
        return next(iter(self._connectors.values()))

    def register(self, connector: BaseConnector) -> None:
        """Register a connector instance."""
        self._connectors[connector.name] = connector
        logger.info("Registered connector: %s", connector.name)

    def get(self, name: str) -> BaseConnector | None:
        """Get a connector by name."""
        return self._connectors.get(name)

    def auto_discover(self, config: WealthPilotConfig) -> None:
        """Create and register the connector named in config."""
        if not config.connector.enabled:
            logger.info("Connector '%s' disabled in config", config.connector.type)
            return
        self.register(self.create(config.connector))

    @staticmethod
    def create(config: ConnectorConfig) -> BaseConnector:
        """Instantiate a connector from config.

        Raises:
            WealthPilotError: The type is neither built in nor an importable class path.
        """
        connector_path = BUILTIN_CONNECTORS.get(config.type, config.type)

        try:
            module_path, class_name = connector_path.rsplit(".", 1)
            module = importlib.import_module(module_path)
            connector_cls = getattr(module, class_name)
        except (ValueError, ImportError, AttributeError) as e:
            logger.error("Cannot load connector '%s': %s", config.type, e)
            raise WealthPilotError(f"Unknown connector type '{config.type}'") from e

        return connector_cls(**config.options)
