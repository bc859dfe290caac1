"""
File Connector — one profile document per user in a directory.

Looks for ``<user_id>.yaml``, ``<user_id>.yml`` or ``<user_id>.json`` under
the configured directory. Documents follow the ``FinancialProfile`` shape::

    user_id: "42"
    age: 42
    cashflow:
      monthly_income: 4500
      monthly_expenses: 3200
    preferences:
      module_priorities: {protection: 80}
    modules:
      protection:
        metrics: {adequacy_score: 65, coverage_gap: 150000}
        recommendations:
          - title: Increase life cover
            recommended_monthly_premium: 45
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from wealthpilot.connectors.base import BaseConnector
from wealthpilot.errors import ProfileFormatError, UserNotFoundError
from wealthpilot.models.profile import FinancialProfile

logger = logging.getLogger("wealthpilot.connectors.file")

PROFILE_SUFFIXES = (".yaml", ".yml", ".json")


class FileConnector(BaseConnector):
    """Load profiles from YAML or JSON files.

    Usage::

        connector = FileConnector(directory="profiles/")
        profile = await connector.load_profile("42")
    """

    name = "file"
    description = "Load financial profiles from YAML/JSON files"

    def __init__(self, directory: str | Path | None = None, **options: Any) -> None:
        super().__init__(**options)
        self.directory = Path(directory or options.get("directory") or ".")
        self.encoding = options.get("encoding", "utf-8")

    def profile_path(self, user_id: str) -> Path | None:
        """First existing profile file for ``user_id``, if any."""
        user_id = str(user_id)
        # ids are bare file stems, never paths
        if not user_id or Path(user_id).name != user_id:
            return None
        for suffix in PROFILE_SUFFIXES:
            candidate = self.directory / f"{user_id}{suffix}"
            if candidate.is_file():
                return candidate
        return None

    def list_users(self) -> list[str]:
        """User ids with a profile document in the directory."""
        if not self.directory.is_dir():
            return []
        return sorted({p.stem for p in self.directory.iterdir() if p.suffix in PROFILE_SUFFIXES})

    async def load_profile(self, user_id: str) -> FinancialProfile:
        path = self.profile_path(user_id)
        if path is None:
            raise UserNotFoundError(user_id, source=str(self.directory))

        logger.debug("Loading profile %s", path)
        text = path.read_text(encoding=self.encoding)
        try:
            data = json.loads(text) if path.suffix == ".json" else yaml.safe_load(text)
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise ProfileFormatError(f"Cannot parse {path}: {e}") from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ProfileFormatError(f"{path} must contain a mapping, got {type(data).__name__}")

        data.setdefault("user_id", str(user_id))
        try:
            return FinancialProfile.model_validate(data)
        except ValidationError as e:
            raise ProfileFormatError(f"Invalid profile in {path}: {e}") from e

    async def validate(self) -> bool:
        return self.directory.is_dir()
