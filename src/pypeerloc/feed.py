"""Position feed contract and the bridge that forwards samples into the store.

A position feed wraps the device's location sensor. Subscribing yields an
endless async stream of :class:`PositionSample`; the stream ends only when
cancelled, and raises a :class:`FeedError` when permission is revoked or
location is unavailable.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator, Callable, Mapping
from enum import StrEnum
from typing import Any, Protocol, runtime_checkable

from pypeerloc.exceptions import FeedError, FeedPermissionError, FeedUnavailableError
from pypeerloc.models.identity import LocalIdentity
from pypeerloc.models.position import FeedOptions, PositionSample
from pypeerloc.state.store import LocationStore

_logger = logging.getLogger(__name__)

IdentitySource = LocalIdentity | Callable[[], LocalIdentity | None] | None


def resolve_identity(source: IdentitySource) -> LocalIdentity | None:
    """The identity *source* currently names, if any."""
    if source is None or isinstance(source, LocalIdentity):
        return source
    return source()


@runtime_checkable
class FeedSubscription(Protocol):
    """Async iterator of samples that can be cancelled."""

    def __aiter__(self) -> AsyncIterator[PositionSample]: ...

    async def __anext__(self) -> PositionSample: ...

    def cancel(self) -> None:
        """Stop the stream; a pending or later ``__anext__`` ends iteration."""
        ...


@runtime_checkable
class PositionFeed(Protocol):
    """Source of device position samples."""

    async def subscribe(self, options: FeedOptions) -> FeedSubscription:
        """Start watching the position.

        Raises
        ------
        FeedPermissionError
            If location permission is denied.
        FeedUnavailableError
            If location cannot work in this environment.
        """
        ...


_CLOSED = object()


class _QueueSubscription:
    """Subscription fed through an ``asyncio.Queue``."""

    def __init__(self, feed: ManualPositionFeed, options: FeedOptions) -> None:
        self._feed = feed
        self.options = options
        self._queue: asyncio.Queue[Any] = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def put(self, item: PositionSample | FeedError) -> None:
        if not self._closed:
            self._queue.put_nowait(item)

    def __aiter__(self) -> _QueueSubscription:
        return self

    async def __anext__(self) -> PositionSample:
        if self._closed and self._queue.empty():
            raise StopAsyncIteration
        item = await self._queue.get()
        if item is _CLOSED:
            raise StopAsyncIteration
        if isinstance(item, FeedError):
            self._close()
            raise item
        sample: PositionSample = item
        return sample

    def cancel(self) -> None:
        if self._closed:
            return
        self._close()
        self._queue.put_nowait(_CLOSED)

    def _close(self) -> None:
        self._closed = True
        self._feed.detach(self)


class ManualPositionFeed:
    """In-process position feed driven by :meth:`push`.

    Useful for hosts that already receive positions through their own
    callbacks, and for tests. Every active subscription receives every
    pushed sample.
    """

    def __init__(self, *, available: bool = True, permission_granted: bool = True) -> None:
        self.available = available
        self.permission_granted = permission_granted
        self._subscriptions: list[_QueueSubscription] = []

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    async def subscribe(self, options: FeedOptions) -> FeedSubscription:
        if not self.available:
            raise FeedUnavailableError("Location does not work in this environment. Try a real device.")
        if not self.permission_granted:
            raise FeedPermissionError("Permission to access location was denied.")
        subscription = _QueueSubscription(self, options)
        self._subscriptions.append(subscription)
        _logger.debug(
            "Position feed subscribed accuracy=%s time_interval_ms=%d distance_interval_m=%s",
            options.accuracy.name,
            options.time_interval_ms,
            options.distance_interval_m,
        )
        return subscription

    def push(self, sample: PositionSample | Mapping[str, Any]) -> None:
        """Deliver *sample* to every active subscription."""
        parsed = sample if isinstance(sample, PositionSample) else PositionSample.model_validate(sample)
        for subscription in list(self._subscriptions):
            subscription.put(parsed)

    def fail(self, error: FeedError) -> None:
        """Terminate every active subscription with *error*."""
        for subscription in list(self._subscriptions):
            subscription.put(error)

    def revoke_permission(self) -> None:
        self.permission_granted = False
        self.fail(FeedPermissionError("Permission to access location was revoked."))

    def detach(self, subscription: _QueueSubscription) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)


class FeedState(StrEnum):
    IDLE = "idle"
    STARTING = "starting"
    RUNNING = "running"
    STOPPED = "stopped"
    FAILED = "failed"


class LocationFeedBridge:
    """Forward the local device's position samples into a :class:`LocationStore`.

    Each sample received while a local identity is known is written as that
    user's location. Samples arriving without an identity are dropped, not
    queued. A feed error is terminal: the bridge moves to
    :attr:`FeedState.FAILED`, keeps the error, and does not resubscribe.
    """

    def __init__(
        self,
        store: LocationStore,
        feed: PositionFeed,
        identity: IdentitySource = None,
        *,
        options: FeedOptions | None = None,
        on_position: Callable[[PositionSample], None] | None = None,
        on_error: Callable[[FeedError], None] | None = None,
    ) -> None:
        self._store = store
        self._feed = feed
        self._identity = identity
        self._options = options or FeedOptions()
        self._on_position = on_position
        self._on_error = on_error
        self._state = FeedState.IDLE
        self._error: FeedError | None = None
        self._last_position: PositionSample | None = None
        self._subscription: FeedSubscription | None = None
        self._task: asyncio.Task[None] | None = None

    @property
    def state(self) -> FeedState:
        return self._state

    @property
    def error(self) -> FeedError | None:
        """The terminal feed error, if the bridge failed."""
        return self._error

    @property
    def last_position(self) -> PositionSample | None:
        """Most recent sample, whether or not it was written to the store."""
        return self._last_position

    @property
    def options(self) -> FeedOptions:
        return self._options

    def set_identity(self, identity: IdentitySource) -> None:
        """Replace the local identity (e.g. after login or logout)."""
        self._identity = identity

    def current_identity(self) -> LocalIdentity | None:
        return resolve_identity(self._identity)

    async def start(self) -> None:
        """Subscribe to the feed and start forwarding samples.

        Feed errors do not propagate; they put the bridge in
        :attr:`FeedState.FAILED`. Calls after the first are no-ops.
        """
        if self._state != FeedState.IDLE:
            return
        self._state = FeedState.STARTING
        try:
            subscription = await self._feed.subscribe(self._options)
        except FeedError as exc:
            self._fail(exc)
            return
        except Exception as exc:
            self._fail(FeedError(f"Failed to get location: {exc}"), cause=exc)
            return

        if self._state != FeedState.STARTING:
            # Stopped while subscribing.
            subscription.cancel()
            return
        self._subscription = subscription
        self._state = FeedState.RUNNING
        self._task = asyncio.get_running_loop().create_task(self._consume(subscription), name="peer-location-feed")

    async def stop(self) -> None:
        """Cancel the subscription and the forwarding task. Idempotent."""
        if self._state in (FeedState.IDLE, FeedState.STARTING, FeedState.RUNNING):
            self._state = FeedState.STOPPED
        subscription = self._subscription
        self._subscription = None
        if subscription is not None:
            subscription.cancel()
        task = self._task
        self._task = None
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

    async def _consume(self, subscription: FeedSubscription) -> None:
        try:
            async for sample in subscription:
                await self._handle_sample(sample)
        except FeedError as exc:
            self._fail(exc)
            return
        except Exception as exc:
            self._fail(FeedError(f"Failed to get location: {exc}"), cause=exc)
            return
        _logger.debug("Position feed ended state=%s", self._state)

    async def _handle_sample(self, sample: PositionSample) -> None:
        self._last_position = sample
        if self._on_position is not None:
            try:
                self._on_position(sample)
            except Exception:
                _logger.debug("on_position callback failed", exc_info=True)

        identity = self.current_identity()
        if identity is None:
            _logger.debug("Position sample dropped: no local identity")
            return
        await self._store.update_user_location(identity.user_id, identity.email, sample)

    def _fail(self, error: FeedError, *, cause: BaseException | None = None) -> None:
        if cause is not None:
            error.__cause__ = cause
        self._error = error
        self._state = FeedState.FAILED
        self._subscription = None
        _logger.warning("Position feed failed: %s", error)
        if self._on_error is not None:
            try:
                self._on_error(error)
            except Exception:
                _logger.debug("on_error callback failed", exc_info=True)
