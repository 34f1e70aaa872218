"""Render-ready peer marker model."""

from __future__ import annotations

from pypeerloc.models._base import PeerLocBaseModel


class PeerMarker(PeerLocBaseModel):
    """Map marker for one peer.

    Parameters
    ----------
    id : str
        Owning user identifier (stable marker key).
    title : str
        Marker title, the peer's email.
    latitude : float
        Marker latitude.
    longitude : float
        Marker longitude.
    color : str
        Hex pin color derived from the email.
    description : str
        Human readable freshness line, e.g. ``"Last updated: 14:03:22"``.
    updated_at : int
        Epoch milliseconds of the underlying record.
    """

    id: str
    title: str
    latitude: float
    longitude: float
    color: str
    description: str
    updated_at: int
