"""
Entity Store
============

Bounded Context: Keyed badge and geofence collections.

Design:
- Records are frozen; every write replaces the record under its key
- merge_badge() is the single, pure merge rule for position updates
- replace_all() swaps both collections in one step (hard reset)
- NOT thread-safe on its own: TrackingEngine serializes all access

Merge rule (position updates):
- Coordinates and timestamp always advance
- Radius and extra fields keep their old value when the update is silent
- The new position is appended to history, keeping the last N entries
"""

from dataclasses import replace
from typing import Dict, Iterable, List, Optional, Tuple

from badgemap_mqtt.schemas import Badge, CrossingEvent, Geofence, PositionUpdate

DEFAULT_HISTORY_LIMIT = 50


def merge_badge(
    old: Optional[Badge],
    incoming: PositionUpdate,
    history_limit: int = DEFAULT_HISTORY_LIMIT
) -> Badge:
    """
    Merge a normalized position update over an existing badge.

    Args:
        old: Current record, or None to create one
        incoming: Normalized update (same id)
        history_limit: Trail length to keep

    Returns:
        New Badge record
    """
    base = old if old is not None else Badge(id=incoming.id)

    extra = dict(base.extra)
    extra.update(incoming.extra)

    history = base.history + (incoming.history_entry(),)
    if len(history) > history_limit:
        history = history[-history_limit:]

    return replace(
        base,
        latitude=incoming.latitude,
        longitude=incoming.longitude,
        timestamp=incoming.timestamp,
        radius=incoming.radius if incoming.radius is not None else base.radius,
        history=history,
        extra=extra
    )


class EntityStore:
    """
    Owner of the badge and geofence collections.

    Usage:
        store = EntityStore()
        badge, created = store.upsert_badge(update)
        store.upsert_geofence(geofence)
        store.replace_all(badges, geofences)
    """

    def __init__(self, history_limit: int = DEFAULT_HISTORY_LIMIT):
        if history_limit < 1:
            raise ValueError(f"history_limit must be >= 1, got {history_limit}")
        self.history_limit = history_limit
        self._badges: Dict[str, Badge] = {}
        self._geofences: Dict[str, Geofence] = {}

    # ---------- Badges ----------

    def upsert_badge(self, update: PositionUpdate) -> Tuple[Badge, bool]:
        """
        Merge a position update into the store.

        Returns:
            (new record, True if the badge did not exist before)
        """
        old = self._badges.get(update.id)
        badge = merge_badge(old, update, self.history_limit)
        self._badges[update.id] = badge
        return badge, old is None

    def put_badge(self, badge: Badge) -> None:
        """Store a record as-is (manual/test operations)."""
        self._badges[badge.id] = badge

    def apply_event(self, event: CrossingEvent) -> Optional[Badge]:
        """
        Fold an event into a badge's status map.

        Returns:
            Updated record, or None if the badge is unknown
        """
        badge = self._badges.get(event.id)
        if badge is None:
            return None
        status = dict(badge.status)
        status[event.hook] = event.detect
        badge = replace(badge, status=status, last_event=event)
        self._badges[event.id] = badge
        return badge

    def get_badge(self, badge_id: str) -> Optional[Badge]:
        return self._badges.get(badge_id)

    def delete_badge(self, badge_id: str) -> bool:
        """Remove a badge. Returns False if it did not exist."""
        return self._badges.pop(badge_id, None) is not None

    def badges(self) -> List[Badge]:
        """Badges in insertion order."""
        return list(self._badges.values())

    # ---------- Geofences ----------

    def upsert_geofence(self, geofence: Geofence) -> bool:
        """
        Store a geofence, replacing any previous record with that name.

        Returns:
            True if the name was new
        """
        is_new = geofence.name not in self._geofences
        self._geofences[geofence.name] = geofence
        return is_new

    def get_geofence(self, name: str) -> Optional[Geofence]:
        return self._geofences.get(name)

    def delete_geofence(self, name: str) -> bool:
        """Remove a geofence. Returns False if it did not exist."""
        return self._geofences.pop(name, None) is not None

    def geofences(self) -> List[Geofence]:
        """Geofences in insertion order."""
        return list(self._geofences.values())

    # ---------- Bulk ----------

    def replace_all(self, badges: Iterable[Badge], geofences: Iterable[Geofence]) -> None:
        """
        Discard all state and load the given records.

        Both collections are built first and swapped together, so a reader
        never sees badges from one state and geofences from another.
        Later records win on duplicate keys.
        """
        new_badges = {badge.id: badge for badge in badges}
        new_geofences = {geofence.name: geofence for geofence in geofences}
        self._badges, self._geofences = new_badges, new_geofences

    def __repr__(self) -> str:
        return f"EntityStore(badges={len(self._badges)}, geofences={len(self._geofences)})"
