"""Periodic peer snapshots for a rendering layer."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

from pypeerloc.exceptions import PeerLocConfigError
from pypeerloc.models.location import PeerLocation
from pypeerloc.state.store import LocationStore

_logger = logging.getLogger(__name__)

SnapshotCallback = Callable[[list[PeerLocation]], None]


def filter_peers(locations: Iterable[PeerLocation], self_email: str | None) -> list[PeerLocation]:
    """Drop the local user's entries. ``None`` means no local user, so nothing is dropped."""
    if self_email is None:
        return list(locations)
    return [location for location in locations if location.email != self_email]


@dataclass(eq=False)
class PollerHandle:
    """Cancellation handle for one running snapshot timer."""

    self_email: str | None
    interval_ms: int
    on_snapshot: SnapshotCallback
    delivered: int = 0
    stopped: bool = False
    task: asyncio.Task[None] | None = field(default=None, repr=False)

    @property
    def active(self) -> bool:
        return not self.stopped


class PeerSnapshotPoller:
    """Deliver filtered snapshots of a :class:`LocationStore` on a fixed timer.

    The substrate offers no change notification, so peers are re-read every
    interval. Timers run as tasks on the current event loop and must be
    stopped when their consumer goes away.
    """

    def __init__(self, store: LocationStore) -> None:
        self._store = store
        self._handles: list[PollerHandle] = []

    @property
    def active_handles(self) -> list[PollerHandle]:
        return list(self._handles)

    def snapshot(self, self_email: str | None) -> list[PeerLocation]:
        """One filtered snapshot, computed now."""
        return filter_peers(self._store.list_all(), self_email)

    def start(
        self,
        interval_ms: int,
        self_email: str | None,
        on_snapshot: SnapshotCallback,
    ) -> PollerHandle:
        """Deliver a snapshot now, then every *interval_ms* until stopped.

        Must be called from a running event loop.
        """
        if interval_ms <= 0:
            raise PeerLocConfigError("interval_ms must be positive")
        loop = asyncio.get_running_loop()

        handle = PollerHandle(self_email=self_email, interval_ms=interval_ms, on_snapshot=on_snapshot)
        self._handles.append(handle)
        _logger.debug("Peer poller started interval_ms=%d self=%s", interval_ms, self_email)

        self._emit(handle)
        # The first callback may already have stopped the handle.
        if not handle.stopped:
            handle.task = loop.create_task(self._run(handle), name=f"peer-poller-{id(handle):x}")
        return handle

    def stop(self, handle: PollerHandle) -> None:
        """Cancel *handle*'s timer. Safe to call more than once."""
        if handle.stopped:
            return
        handle.stopped = True
        task = handle.task
        handle.task = None
        if task is not None and not task.done():
            task.cancel()
        if handle in self._handles:
            self._handles.remove(handle)
        _logger.debug("Peer poller stopped self=%s delivered=%d", handle.self_email, handle.delivered)

    def stop_all(self) -> None:
        for handle in list(self._handles):
            self.stop(handle)

    async def _run(self, handle: PollerHandle) -> None:
        loop = asyncio.get_running_loop()
        interval = handle.interval_ms / 1000
        next_at = loop.time() + interval
        while not handle.stopped:
            await asyncio.sleep(max(0.0, next_at - loop.time()))
            next_at += interval
            self._emit(handle)

    def _emit(self, handle: PollerHandle) -> None:
        if handle.stopped:
            return
        peers = self.snapshot(handle.self_email)
        handle.delivered += 1
        try:
            handle.on_snapshot(peers)
        except Exception:
            _logger.warning("Peer snapshot callback failed self=%s", handle.self_email, exc_info=True)
