from __future__ import annotations

import subprocess
import sys

import pytest

from pypeerloc._constants import MARKER_PALETTE
from pypeerloc.markers import build_markers, format_last_updated, get_marker_color
from pypeerloc.models.location import PeerLocation


def test_color_is_code_point_sum_modulo_palette() -> None:
    # "ab" -> 97 + 98 = 195; 195 % 6 = 3
    assert get_marker_color("ab") == MARKER_PALETTE[3] == "#f59e0b"
    assert get_marker_color("") == MARKER_PALETTE[0]


def test_color_is_stable_within_process() -> None:
    colors = {get_marker_color("alice@example.com") for _ in range(50)}
    assert len(colors) == 1
    assert colors <= set(MARKER_PALETTE)


def test_color_is_stable_across_processes() -> None:
    code = "from pypeerloc.markers import get_marker_color; print(get_marker_color('alice@example.com'))"
    result = subprocess.run([sys.executable, "-c", code], capture_output=True, text=True, check=True)
    assert result.stdout.strip() == get_marker_color("alice@example.com")


def test_custom_palette() -> None:
    assert get_marker_color("ab", ("red", "blue")) == "blue"
    with pytest.raises(ValueError):
        get_marker_color("ab", ())


def test_build_markers() -> None:
    peer = PeerLocation(id="uid-1", email="ab", latitude=1.5, longitude=-2.5, updated_at=1_700_000_000_000)

    (marker,) = build_markers([peer])

    assert marker.id == "uid-1"
    assert marker.title == "ab"
    assert (marker.latitude, marker.longitude) == (1.5, -2.5)
    assert marker.color == "#f59e0b"
    assert marker.description == format_last_updated(1_700_000_000_000)
    assert marker.description.startswith("Last updated: ")
    assert marker.updated_at == 1_700_000_000_000
