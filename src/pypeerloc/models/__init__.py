"""Data models for pypeerloc."""

from pypeerloc.models._base import EpochMillis, PeerLocBaseModel, safe_float, safe_int
from pypeerloc.models.identity import LocalIdentity
from pypeerloc.models.location import LocationRecord, LocationTable, PeerLocation
from pypeerloc.models.marker import PeerMarker
from pypeerloc.models.position import FeedAccuracy, FeedOptions, Position, PositionSample

__all__ = [
    "EpochMillis",
    "FeedAccuracy",
    "FeedOptions",
    "LocalIdentity",
    "LocationRecord",
    "LocationTable",
    "PeerLocBaseModel",
    "PeerLocation",
    "PeerMarker",
    "Position",
    "PositionSample",
    "safe_float",
    "safe_int",
]
