"""State/store layer.

This package is the single owner of the location table: it merges writes
from the local position feed and serves snapshots to the peer poller.
"""

from pypeerloc.state.store import LocationStore

__all__ = ["LocationStore"]
