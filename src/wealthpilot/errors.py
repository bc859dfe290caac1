"""
Exceptions raised across WealthPilot.

The coordination core itself is defensive and never raises for missing
optional data. Errors only originate at the edges: resolving a user's
profile or parsing a profile document.
"""

from __future__ import annotations


class WealthPilotError(Exception):
    """Base class for all WealthPilot errors."""


class UserNotFoundError(WealthPilotError, LookupError):
    """The connector has no profile for the requested user."""

    def __init__(self, user_id: str | int, source: str = "") -> None:
        self.user_id = user_id
        self.source = source
        where = f" in {source}" if source else ""
        super().__init__(f"No financial profile found for user {user_id!r}{where}")


class ProfileFormatError(WealthPilotError, ValueError):
    """A profile document exists but cannot be parsed or validated."""
