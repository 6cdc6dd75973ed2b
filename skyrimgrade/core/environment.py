"""Environment tag handling.

Single source of truth for interpreting the configured application environment.
"""

from enum import Enum


class AppEnvironment(str, Enum):
    """Environment tag carried by the resolved configuration."""

    DEVELOPMENT = "development"
    PRODUCTION = "production"
    OTHER = "other"

    @classmethod
    def from_value(cls, value: str) -> "AppEnvironment":
        """Map a raw environment string onto a tag (case-insensitive).

        Args:
            value: Raw value such as ``"Development"`` or ``"staging"``

        Returns:
            The matching tag; unknown names map to ``OTHER``.
        """
        normalized = (value or "").strip().lower()
        if normalized == cls.DEVELOPMENT.value:
            return cls.DEVELOPMENT
        if normalized == cls.PRODUCTION.value:
            return cls.PRODUCTION
        return cls.OTHER
