from __future__ import annotations

from pathlib import Path

import pytest

from pypeerloc.config import PeerLocConfig
from pypeerloc.exceptions import PeerLocConfigError
from pypeerloc.models.position import FeedAccuracy, FeedOptions


def test_defaults() -> None:
    config = PeerLocConfig()

    assert config.storage_key == "@firstproject_users_locations"
    assert config.poll_interval_ms == 3000
    assert config.reject_stale_writes is False
    assert config.storage_path is None
    assert config.feed_options() == FeedOptions(
        accuracy=FeedAccuracy.HIGHEST,
        time_interval_ms=2000,
        distance_interval_m=1.0,
    )


def test_from_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("PEERLOC_STORAGE_KEY", "@test_locations")
    monkeypatch.setenv("PEERLOC_POLL_INTERVAL_MS", "1500")
    monkeypatch.setenv("PEERLOC_FEED_ACCURACY", "balanced")
    monkeypatch.setenv("PEERLOC_FEED_TIME_INTERVAL_MS", "5000")
    monkeypatch.setenv("PEERLOC_FEED_DISTANCE_INTERVAL_M", "2.5")
    monkeypatch.setenv("PEERLOC_REJECT_STALE_WRITES", "yes")
    monkeypatch.setenv("PEERLOC_STORAGE_PATH", str(tmp_path / "store.json"))

    config = PeerLocConfig.from_env()

    assert config.storage_key == "@test_locations"
    assert config.poll_interval_ms == 1500
    assert config.feed_accuracy == FeedAccuracy.BALANCED
    assert config.feed_time_interval_ms == 5000
    assert config.feed_distance_interval_m == 2.5
    assert config.reject_stale_writes is True
    assert config.storage_path == tmp_path / "store.json"


def test_overrides_win_over_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PEERLOC_POLL_INTERVAL_MS", "1500")
    monkeypatch.setenv("PEERLOC_REJECT_STALE_WRITES", "1")

    config = PeerLocConfig.from_env(poll_interval_ms=250, reject_stale_writes=False)

    assert config.poll_interval_ms == 250
    assert config.reject_stale_writes is False


@pytest.mark.parametrize(
    ("env_key", "value"),
    [
        ("PEERLOC_POLL_INTERVAL_MS", "fast"),
        ("PEERLOC_FEED_DISTANCE_INTERVAL_M", "far"),
        ("PEERLOC_FEED_ACCURACY", "ultra"),
        ("PEERLOC_POLL_INTERVAL_MS", "0"),
    ],
)
def test_invalid_env_raises(monkeypatch: pytest.MonkeyPatch, env_key: str, value: str) -> None:
    monkeypatch.setenv(env_key, value)

    with pytest.raises(PeerLocConfigError):
        PeerLocConfig.from_env()


def test_invalid_values_rejected() -> None:
    with pytest.raises(PeerLocConfigError):
        PeerLocConfig(storage_key="")
    with pytest.raises(PeerLocConfigError):
        PeerLocConfig(feed_time_interval_ms=-1)
