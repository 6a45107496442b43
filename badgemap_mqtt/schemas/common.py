"""
Common Schema Types
==================

Bounded Context: Shared Data Structures

This module defines common types used across badge, geofence and event
messages.

Design Principles:
- Immutability: frozen=True prevents accidental mutation
- Type Safety: All fields explicitly typed
- Serialization: to_dict() for JSON export

Types:
- Timestamp: ISO 8601 timestamp wrapper
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

# Epoch values above this are taken as milliseconds
EPOCH_MILLIS_THRESHOLD = 1e11


@dataclass(frozen=True)
class Timestamp:
    """
    Immutable ISO 8601 timestamp wrapper.

    Provides type-safe timestamp handling with serialization.

    Attributes:
        value: ISO 8601 formatted timestamp string

    Example:
        >>> ts = Timestamp.now()
        >>> ts.value
        '2025-10-24T15:30:45.123456+00:00'
    """
    value: str

    @classmethod
    def now(cls) -> 'Timestamp':
        """Create timestamp from current UTC time."""
        return cls(value=datetime.now(timezone.utc).isoformat())

    @classmethod
    def from_datetime(cls, dt: datetime) -> 'Timestamp':
        """Create timestamp from datetime object."""
        return cls(value=dt.isoformat())

    @classmethod
    def coerce(cls, raw: Any) -> Optional['Timestamp']:
        """
        Build a timestamp from a loosely-typed source field.

        Strings pass through untouched. Numbers are read as a Unix epoch
        (seconds, or milliseconds when large enough).

        Returns:
            Timestamp, or None for None/empty/unsupported values and for
            epochs that are NaN, infinite or outside the platform's range
        """
        if raw is None or isinstance(raw, bool):
            return None
        if isinstance(raw, str):
            return cls(value=raw) if raw else None
        if isinstance(raw, (int, float)):
            try:
                seconds = raw / 1000.0 if raw > EPOCH_MILLIS_THRESHOLD else float(raw)
                return cls.from_datetime(datetime.fromtimestamp(seconds, tz=timezone.utc))
            except (OverflowError, OSError, ValueError):
                return None
        return None

    def to_datetime(self) -> datetime:
        """Parse to datetime object.

        Returns:
            datetime instance

        Raises:
            ValueError: If timestamp format invalid
        """
        text = self.value[:-1] + "+00:00" if self.value.endswith("Z") else self.value
        try:
            return datetime.fromisoformat(text)
        except ValueError as e:
            raise ValueError(f"Invalid ISO timestamp: {self.value}") from e

    def to_dict(self) -> str:
        """Serialize to JSON (as string)."""
        return self.value
