"""Position and position feed models."""

from __future__ import annotations

import enum
from typing import Any

from pydantic import Field, model_validator

from pypeerloc._constants import DEFAULT_FEED_DISTANCE_INTERVAL_M, DEFAULT_FEED_TIME_INTERVAL_MS
from pypeerloc.models._base import EpochMillis, OptionalFloat, PeerLocBaseModel


class Position(PeerLocBaseModel):
    """A geographic coordinate pair.

    Coordinates are accepted as-is; no range validation is performed.
    """

    latitude: float
    longitude: float


class PositionSample(Position):
    """One reading delivered by a position feed.

    Device feeds usually nest the coordinates under ``coords`` next to a
    top-level ``timestamp``; both that shape and a flat mapping are
    accepted.

    Parameters
    ----------
    latitude : float
        Latitude in degrees.
    longitude : float
        Longitude in degrees.
    accuracy : float or None
        Horizontal accuracy radius in meters.
    altitude : float or None
        Altitude in meters.
    speed : float or None
        Ground speed in m/s.
    heading : float or None
        Heading in degrees.
    timestamp : int or None
        Sensor time of the reading in epoch milliseconds.
    """

    accuracy: OptionalFloat = None
    altitude: OptionalFloat = None
    speed: OptionalFloat = None
    heading: OptionalFloat = None
    timestamp: EpochMillis = None

    @model_validator(mode="before")
    @classmethod
    def _flatten_coords(cls, values: Any) -> Any:
        if not isinstance(values, dict):
            return values
        coords = values.get("coords")
        if not isinstance(coords, dict):
            return values
        merged = {key: value for key, value in values.items() if key != "coords"}
        merged.update(coords)
        return merged


class FeedAccuracy(enum.IntEnum):
    """Requested accuracy tier for a position feed subscription."""

    LOWEST = 1
    LOW = 2
    BALANCED = 3
    HIGH = 4
    HIGHEST = 5
    BEST_FOR_NAVIGATION = 6

    @classmethod
    def parse(cls, value: str | int | FeedAccuracy) -> FeedAccuracy:
        """Resolve a tier from its member, its value, or its case-insensitive name."""
        if isinstance(value, FeedAccuracy):
            return value
        if isinstance(value, int):
            return cls(value)
        normalized = value.strip().upper().replace("-", "_")
        if normalized.isdigit():
            return cls(int(normalized))
        try:
            return cls[normalized]
        except KeyError:
            raise ValueError(f"Unknown feed accuracy: {value!r}") from None


class FeedOptions(PeerLocBaseModel):
    """Subscription parameters for a position feed."""

    accuracy: FeedAccuracy = FeedAccuracy.HIGHEST
    time_interval_ms: int = Field(default=DEFAULT_FEED_TIME_INTERVAL_MS, ge=0)
    distance_interval_m: float = Field(default=DEFAULT_FEED_DISTANCE_INTERVAL_M, ge=0)
