"""Shared constants for pypeerloc."""

from __future__ import annotations

#: Substrate key holding the persisted location table.
STORAGE_KEY = "@firstproject_users_locations"

#: Peer snapshot refresh cadence in milliseconds.
DEFAULT_POLL_INTERVAL_MS = 3000

#: Minimum time between feed samples in milliseconds.
DEFAULT_FEED_TIME_INTERVAL_MS = 2000

#: Minimum distance moved between feed samples in meters.
DEFAULT_FEED_DISTANCE_INTERVAL_M = 1.0

#: Marker palette for peers. Changing its size or order reassigns every color.
MARKER_PALETTE: tuple[str, ...] = (
    "#ef4444",
    "#3b82f6",
    "#10b981",
    "#f59e0b",
    "#8b5cf6",
    "#ec4899",
)

#: Marker color of the local user.
SELF_MARKER_COLOR = "#22c55e"
