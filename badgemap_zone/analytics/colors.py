"""
Color Assignment Module
=======================

Deterministic id -> color mapping for badges.

Design:
- Pure function of the ordered live id set (no process-wide state)
- djb2 hash picks a candidate slot, linear probing avoids collisions
- Recomputed whenever membership changes; churn on delete/reinsert is expected
"""

from typing import Dict, Iterable, List, Optional, Set, Tuple

BADGE_PALETTE: Tuple[str, ...] = (
    '#ef4444',  # Red
    '#3b82f6',  # Blue
    '#f59e0b',  # Amber
    '#8b5cf6',  # Purple
    '#ec4899',  # Pink
    '#06b6d4',  # Cyan
    '#f97316',  # Orange
    '#84cc16',  # Lime
    '#6366f1',  # Indigo
    '#14b8a6',  # Teal
    '#eab308',  # Yellow
    '#a855f7',  # Violet
    '#f43f5e',  # Rose
    '#22c55e',  # Emerald
    '#0ea5e9',  # Sky
    '#dc2626',  # Dark Red
    '#2563eb',  # Dark Blue
    '#059669',  # Dark Green
    '#d97706',  # Dark Amber
    '#7c3aed',  # Dark Purple
    '#db2777',  # Dark Pink
    '#0891b2',  # Dark Cyan
    '#ea580c',  # Dark Orange
    '#65a30d',  # Dark Lime
    '#4f46e5',  # Dark Indigo
    '#0d9488',  # Dark Teal
    '#ca8a04',  # Dark Yellow
    '#9333ea',  # Dark Violet
    '#e11d48',  # Dark Rose
    '#16a34a',  # Dark Emerald
    '#0284c7',  # Dark Sky
)

GEOFENCE_FILL_PALETTE: Tuple[str, ...] = (
    '#3b82f6', '#8b5cf6', '#ec4899', '#f59e0b', '#10b981',
    '#06b6d4', '#f97316', '#84cc16', '#6366f1', '#14b8a6',
)

DEFAULT_BADGE_COLOR = BADGE_PALETTE[0]


def djb2(identifier: str) -> int:
    """32-bit unsigned djb2 hash (h = h * 33 + char)."""
    h = 5381
    for char in identifier:
        h = (h * 33 + ord(char)) & 0xFFFFFFFF
    return h


def color_of(
    identifier: str,
    used: Optional[Set[str]] = None,
    palette: Tuple[str, ...] = BADGE_PALETTE
) -> str:
    """
    Pick a color for one id, probing past colors already in use.

    Args:
        identifier: Badge id
        used: Colors already claimed by other ids
        palette: Ordered palette

    Returns:
        First free color from the hashed slot onwards, or the hashed slot's
        color once every slot is taken
    """
    used = used or set()
    index = djb2(identifier) % len(palette)
    attempts = 0
    while palette[index] in used and attempts < len(palette):
        index = (index + 1) % len(palette)
        attempts += 1
    return palette[index]


def assign_colors(
    identifiers: Iterable[str],
    palette: Tuple[str, ...] = BADGE_PALETTE
) -> Dict[str, str]:
    """
    Assign a color to every live id.

    Args:
        identifiers: Live ids in insertion order (duplicates ignored)
        palette: Ordered palette

    Returns:
        Complete id -> color mapping
    """
    colors: Dict[str, str] = {}
    used: Set[str] = set()

    for identifier in identifiers:
        if not identifier or identifier in colors:
            continue
        color = color_of(identifier, used, palette)
        colors[identifier] = color
        used.add(color)

    # Second pass: first claimant keeps a shared color, the rest move
    owners: Dict[str, List[str]] = {}
    for identifier, color in colors.items():
        owners.setdefault(color, []).append(identifier)

    for color, claimants in owners.items():
        for identifier in claimants[1:]:
            for candidate in palette:
                if candidate not in used:
                    colors[identifier] = candidate
                    used.add(candidate)
                    break

    return colors


def geofence_fill_colors(names: Iterable[str]) -> Dict[str, str]:
    """Fill color per geofence, cycling the fill palette by position."""
    return {
        name: GEOFENCE_FILL_PALETTE[index % len(GEOFENCE_FILL_PALETTE)]
        for index, name in enumerate(names)
    }
