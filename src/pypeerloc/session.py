"""Peer map session: one store, feed bridge and poller with a shared lifecycle."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from pypeerloc.config import PeerLocConfig
from pypeerloc.exceptions import FeedError
from pypeerloc.feed import FeedState, IdentitySource, LocationFeedBridge, PositionFeed, resolve_identity
from pypeerloc.markers import build_markers
from pypeerloc.models.marker import PeerMarker
from pypeerloc.models.position import PositionSample
from pypeerloc.poller import PeerSnapshotPoller, PollerHandle, SnapshotCallback
from pypeerloc.state.store import LocationStore
from pypeerloc.substrate import JsonFileSubstrate, KeyValueSubstrate, MemorySubstrate

_logger = logging.getLogger(__name__)


def substrate_from_config(config: PeerLocConfig) -> KeyValueSubstrate:
    """File-backed substrate when ``storage_path`` is set, in-memory otherwise."""
    if config.storage_path is not None:
        return JsonFileSubstrate(config.storage_path)
    return MemorySubstrate()


class PeerMapSession:
    """Everything a map view needs, started and torn down together.

    Entering the session hydrates the store, subscribes to the position
    feed (when one is given) and starts the peer poller (when a snapshot
    callback is given). Leaving it stops the poller and cancels the feed
    subscription.

    Usage::

        async with PeerMapSession(config, feed=feed, identity=me, on_snapshot=render) as session:
            ...
    """

    def __init__(
        self,
        config: PeerLocConfig | None = None,
        *,
        store: LocationStore | None = None,
        substrate: KeyValueSubstrate | None = None,
        feed: PositionFeed | None = None,
        identity: IdentitySource = None,
        on_snapshot: SnapshotCallback | None = None,
        on_feed_error: Callable[[FeedError], None] | None = None,
    ) -> None:
        self._config = config or PeerLocConfig()
        if store is None:
            store = LocationStore.from_config(substrate or substrate_from_config(self._config), self._config)
        self._store = store
        self._poller = PeerSnapshotPoller(store)
        self._bridge: LocationFeedBridge | None = None
        if feed is not None:
            self._bridge = LocationFeedBridge(
                store,
                feed,
                identity,
                options=self._config.feed_options(),
                on_error=on_feed_error,
            )
        self._identity = identity
        self._on_snapshot = on_snapshot
        self._handle: PollerHandle | None = None

    @property
    def config(self) -> PeerLocConfig:
        return self._config

    @property
    def store(self) -> LocationStore:
        return self._store

    @property
    def poller(self) -> PeerSnapshotPoller:
        return self._poller

    @property
    def bridge(self) -> LocationFeedBridge | None:
        return self._bridge

    @property
    def feed_state(self) -> FeedState | None:
        return self._bridge.state if self._bridge is not None else None

    @property
    def last_position(self) -> PositionSample | None:
        return self._bridge.last_position if self._bridge is not None else None

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> PeerMapSession:
        await self.start()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.stop()

    async def start(self) -> None:
        await self._store.hydrate()
        if self._bridge is not None:
            await self._bridge.start()
        if self._on_snapshot is not None and self._handle is None:
            self._handle = self._poller.start(
                self._config.poll_interval_ms,
                self._self_email(),
                self._on_snapshot,
            )
        _logger.debug(
            "Peer map session started feed=%s poller=%s",
            self.feed_state,
            self._handle is not None,
        )

    async def stop(self) -> None:
        if self._handle is not None:
            self._poller.stop(self._handle)
            self._handle = None
        self._poller.stop_all()
        if self._bridge is not None:
            await self._bridge.stop()
        _logger.debug("Peer map session stopped")

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------

    def set_identity(self, identity: IdentitySource) -> None:
        """Switch the local user.

        A running poller keeps filtering by the email it was started with;
        it is restarted so snapshots exclude the new local user.
        """
        self._identity = identity
        if self._bridge is not None:
            self._bridge.set_identity(identity)
        self._restart_poller()

    async def sign_out(self) -> None:
        """Remove the local user's marker and forget the identity."""
        identity = resolve_identity(self._identity)
        # The bridge forgets the user first so no sample can re-create the
        # record. The poller keeps filtering the old email until it is gone.
        self._identity = None
        if self._bridge is not None:
            self._bridge.set_identity(None)
        if identity is not None:
            await self._store.remove_user_location(identity.user_id)
        self._restart_poller()

    def _restart_poller(self) -> None:
        if self._handle is None or self._on_snapshot is None:
            return
        self._poller.stop(self._handle)
        self._handle = self._poller.start(
            self._config.poll_interval_ms,
            self._self_email(),
            self._on_snapshot,
        )

    def markers(self) -> list[PeerMarker]:
        """Markers for every peer, excluding the local user."""
        return build_markers(self._poller.snapshot(self._self_email()))

    def _self_email(self) -> str | None:
        identity = resolve_identity(self._identity)
        return identity.email if identity is not None else None
