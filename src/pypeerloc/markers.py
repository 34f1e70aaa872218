"""Deterministic marker colors for peers."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import datetime

from pypeerloc._constants import MARKER_PALETTE
from pypeerloc.models.location import PeerLocation
from pypeerloc.models.marker import PeerMarker


def get_marker_color(identifier: str, palette: Sequence[str] = MARKER_PALETTE) -> str:
    """Map *identifier* to a palette color.

    The code points of every character are summed and the sum, modulo the
    palette size, indexes the palette. Different identifiers may share a
    color.
    """
    if not palette:
        raise ValueError("palette must not be empty")
    return palette[sum(ord(char) for char in identifier) % len(palette)]


def format_last_updated(updated_at_ms: int) -> str:
    """``"Last updated: HH:MM:SS"`` in local time."""
    return f"Last updated: {datetime.fromtimestamp(updated_at_ms / 1000).strftime('%H:%M:%S')}"


def build_markers(
    peers: Iterable[PeerLocation],
    palette: Sequence[str] = MARKER_PALETTE,
) -> list[PeerMarker]:
    """Render-ready markers for *peers*, colored by email."""
    return [
        PeerMarker(
            id=peer.id,
            title=peer.email,
            latitude=peer.latitude,
            longitude=peer.longitude,
            color=get_marker_color(peer.email, palette),
            description=format_last_updated(peer.updated_at),
            updated_at=peer.updated_at,
        )
        for peer in peers
    ]
