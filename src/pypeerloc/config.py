"""Configuration for pypeerloc."""

from __future__ import annotations

import dataclasses
import os
from pathlib import Path
from typing import Any

from pypeerloc._constants import (
    DEFAULT_FEED_DISTANCE_INTERVAL_M,
    DEFAULT_FEED_TIME_INTERVAL_MS,
    DEFAULT_POLL_INTERVAL_MS,
    STORAGE_KEY,
)
from pypeerloc.exceptions import PeerLocConfigError
from pypeerloc.models.position import FeedAccuracy, FeedOptions


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_number(env_key: str, value: str, kind: type[int] | type[float]) -> int | float:
    try:
        return kind(value)
    except ValueError:
        raise PeerLocConfigError(f"{env_key} must be a {kind.__name__}, got {value!r}") from None


@dataclasses.dataclass(frozen=True)
class PeerLocConfig:
    """Peer location sharing configuration.

    Parameters
    ----------
    storage_key : str
        Substrate key under which the location table is persisted.
    poll_interval_ms : int
        Peer snapshot refresh cadence in milliseconds.
    feed_accuracy : FeedAccuracy
        Accuracy tier requested from the position feed.
    feed_time_interval_ms : int
        Minimum time between feed samples in milliseconds.
    feed_distance_interval_m : float
        Minimum distance moved between feed samples in meters.
    reject_stale_writes : bool
        Reject a location write whose timestamp is older than the stored
        record for the same user. Off by default: every write is accepted.
    storage_path : Path or None
        JSON file backing the substrate. ``None`` keeps everything in memory.
    """

    storage_key: str = STORAGE_KEY
    poll_interval_ms: int = DEFAULT_POLL_INTERVAL_MS
    feed_accuracy: FeedAccuracy = FeedAccuracy.HIGHEST
    feed_time_interval_ms: int = DEFAULT_FEED_TIME_INTERVAL_MS
    feed_distance_interval_m: float = DEFAULT_FEED_DISTANCE_INTERVAL_M
    reject_stale_writes: bool = False
    storage_path: Path | None = None

    def __post_init__(self) -> None:
        if not self.storage_key:
            raise PeerLocConfigError("storage_key must be non-empty")
        if self.poll_interval_ms <= 0:
            raise PeerLocConfigError("poll_interval_ms must be positive")
        if self.feed_time_interval_ms < 0 or self.feed_distance_interval_m < 0:
            raise PeerLocConfigError("feed intervals must not be negative")

    def feed_options(self) -> FeedOptions:
        """Position feed subscription parameters derived from this config."""
        return FeedOptions(
            accuracy=self.feed_accuracy,
            time_interval_ms=self.feed_time_interval_ms,
            distance_interval_m=self.feed_distance_interval_m,
        )

    @classmethod
    def from_env(cls, **overrides: Any) -> PeerLocConfig:
        """Create configuration from ``PEERLOC_*`` environment variables.

        Explicit keyword arguments override environment values.

        Raises
        ------
        PeerLocConfigError
            If a variable holds a value of the wrong type.
        """
        env = os.environ
        config_kwargs: dict[str, Any] = {}

        storage_key = env.get("PEERLOC_STORAGE_KEY")
        if storage_key is not None:
            config_kwargs["storage_key"] = storage_key

        _ENV_NUMERIC_MAP: dict[str, tuple[str, type[int] | type[float]]] = {
            "PEERLOC_POLL_INTERVAL_MS": ("poll_interval_ms", int),
            "PEERLOC_FEED_TIME_INTERVAL_MS": ("feed_time_interval_ms", int),
            "PEERLOC_FEED_DISTANCE_INTERVAL_M": ("feed_distance_interval_m", float),
        }
        for env_key, (field_name, kind) in _ENV_NUMERIC_MAP.items():
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                config_kwargs[field_name] = _env_number(env_key, val, kind)

        accuracy_env = env.get("PEERLOC_FEED_ACCURACY")
        if accuracy_env is not None and "feed_accuracy" not in overrides:
            try:
                config_kwargs["feed_accuracy"] = FeedAccuracy.parse(accuracy_env)
            except ValueError as exc:
                raise PeerLocConfigError(str(exc)) from exc

        if "reject_stale_writes" not in overrides:
            config_kwargs["reject_stale_writes"] = _env_bool(env.get("PEERLOC_REJECT_STALE_WRITES"), False)

        path_env = env.get("PEERLOC_STORAGE_PATH")
        if path_env and "storage_path" not in overrides:
            config_kwargs["storage_path"] = Path(path_env).expanduser()

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
