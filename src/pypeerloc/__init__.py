"""pypeerloc - Async peer location synchronization store for live map sharing."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pypeerloc")
except PackageNotFoundError:
    __version__ = "0+local"
from pypeerloc.config import PeerLocConfig
from pypeerloc.exceptions import (
    FeedError,
    FeedPermissionError,
    FeedUnavailableError,
    PeerLocConfigError,
    PeerLocError,
    SubstrateError,
)
from pypeerloc.feed import FeedState, LocationFeedBridge, ManualPositionFeed, PositionFeed
from pypeerloc.markers import build_markers, get_marker_color
from pypeerloc.models import (
    FeedAccuracy,
    FeedOptions,
    LocalIdentity,
    LocationRecord,
    LocationTable,
    PeerLocation,
    PeerMarker,
    Position,
    PositionSample,
)
from pypeerloc.poller import PeerSnapshotPoller, PollerHandle, filter_peers
from pypeerloc.session import PeerMapSession
from pypeerloc.state.store import LocationStore
from pypeerloc.substrate import JsonFileSubstrate, KeyValueSubstrate, MemorySubstrate

__all__ = [
    "__version__",
    "FeedAccuracy",
    "FeedError",
    "FeedOptions",
    "FeedPermissionError",
    "FeedState",
    "FeedUnavailableError",
    "JsonFileSubstrate",
    "KeyValueSubstrate",
    "LocalIdentity",
    "LocationFeedBridge",
    "LocationRecord",
    "LocationStore",
    "LocationTable",
    "ManualPositionFeed",
    "MemorySubstrate",
    "PeerLocConfig",
    "PeerLocConfigError",
    "PeerLocError",
    "PeerLocation",
    "PeerMapSession",
    "PeerMarker",
    "PeerSnapshotPoller",
    "PollerHandle",
    "Position",
    "PositionFeed",
    "PositionSample",
    "SubstrateError",
    "build_markers",
    "filter_peers",
    "get_marker_color",
]
