"""Location record store.

Owns the user identifier -> :class:`LocationRecord` table and its durable
mirror in a key-value substrate. Memory is authoritative: every write lands
in memory synchronously and is mirrored afterwards, best-effort.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable, Mapping
from typing import Any

from pydantic import ValidationError

from pypeerloc._constants import STORAGE_KEY
from pypeerloc.config import PeerLocConfig
from pypeerloc.models.location import LocationRecord, LocationTable, PeerLocation
from pypeerloc.models.position import Position
from pypeerloc.state.policy import should_accept_write
from pypeerloc.substrate import KeyValueSubstrate

_logger = logging.getLogger(__name__)


def _now_ms() -> int:
    """Current epoch timestamp in milliseconds."""
    return int(time.time() * 1000)


def _coerce_position(position: Position | Mapping[str, Any]) -> Position:
    if isinstance(position, Position):
        return position
    return Position.model_validate(position)


class LocationStore:
    """Last known position of every user, mirrored to a substrate.

    All methods are meant to run on one asyncio event loop. Mirrored writes
    are serialized by a lock and always write the table as it is when the
    lock is taken, so concurrent updates cannot clobber each other's write.

    Usage::

        store = LocationStore(substrate)
        await store.hydrate()
        await store.update_user_location("a@x.com", "a@x.com", Position(latitude=1.0, longitude=2.0))
        peers = store.list_all()
    """

    def __init__(
        self,
        substrate: KeyValueSubstrate,
        *,
        storage_key: str = STORAGE_KEY,
        clock: Callable[[], int] = _now_ms,
        reject_stale_writes: bool = False,
    ) -> None:
        self._substrate = substrate
        self._storage_key = storage_key
        self._clock = clock
        self._reject_stale_writes = reject_stale_writes
        self._records: dict[str, LocationRecord] = {}
        self._lock = asyncio.Lock()
        self._hydrate_started = False
        self._hydrated = False
        # Keys written or removed before hydration finished; memory wins for them.
        self._touched: set[str] = set()

    @classmethod
    def from_config(
        cls,
        substrate: KeyValueSubstrate,
        config: PeerLocConfig,
        *,
        clock: Callable[[], int] = _now_ms,
    ) -> LocationStore:
        return cls(
            substrate,
            storage_key=config.storage_key,
            clock=clock,
            reject_stale_writes=config.reject_stale_writes,
        )

    @property
    def storage_key(self) -> str:
        return self._storage_key

    @property
    def is_hydrated(self) -> bool:
        """Whether :meth:`hydrate` has completed (successfully or not)."""
        return self._hydrated

    # ------------------------------------------------------------------
    # Hydration
    # ------------------------------------------------------------------

    async def hydrate(self) -> None:
        """Load the persisted table once.

        A missing document leaves the table empty. An unreadable or
        unparseable document also leaves it empty and logs a warning; no
        error reaches the caller. Calls after the first are no-ops.
        """
        if self._hydrate_started:
            _logger.debug("Location table already hydrated key=%s", self._storage_key)
            return
        self._hydrate_started = True

        async with self._lock:
            try:
                loaded = await self._load()
            finally:
                self._hydrated = True
            for user_id, record in loaded.items():
                if user_id not in self._touched:
                    self._records[user_id] = record
            self._touched.clear()
        _logger.debug("Location table hydrated key=%s records=%d", self._storage_key, len(self._records))

    async def _load(self) -> dict[str, LocationRecord]:
        try:
            stored = await self._substrate.get_item(self._storage_key)
        except Exception:
            _logger.warning("Failed to load users locations key=%s", self._storage_key, exc_info=True)
            return {}
        if not stored:
            return {}
        try:
            return dict(LocationTable.loads(stored).root)
        except ValidationError as exc:
            _logger.warning(
                "Failed to parse users locations key=%s errors=%d; starting empty",
                self._storage_key,
                exc.error_count(),
            )
            return {}

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def update_user_location(
        self,
        user_id: str,
        email: str,
        position: Position | Mapping[str, Any],
    ) -> None:
        """Record *position* as the latest location of *user_id*.

        The in-memory table is updated before this coroutine first suspends;
        the mirrored write follows. A write made before :meth:`hydrate` loads
        the stored table first, so it cannot overwrite other users' records.
        Persistence failures are logged, never raised.
        """
        coords = _coerce_position(position)
        updated_at = self._clock()

        cached = self._records.get(user_id)
        if not should_accept_write(
            cached_updated_at=cached.updated_at if cached is not None else None,
            incoming_updated_at=updated_at,
            reject_stale=self._reject_stale_writes,
        ):
            _logger.debug(
                "Stale location write rejected user=%s incoming=%d stored=%s",
                user_id,
                updated_at,
                cached.updated_at if cached is not None else None,
            )
            return

        self._records[user_id] = LocationRecord(
            email=email,
            latitude=coords.latitude,
            longitude=coords.longitude,
            updated_at=updated_at,
        )
        self._mark_touched(user_id)
        await self._persist()

    async def remove_user_location(self, user_id: str) -> None:
        """Forget *user_id*. Removing an unknown identifier is a no-op once hydrated."""
        removed = self._records.pop(user_id, None)
        if removed is None and self._hydrated:
            _logger.debug("No location to remove user=%s", user_id)
            return
        self._mark_touched(user_id)
        await self._persist()

    def _mark_touched(self, user_id: str) -> None:
        if not self._hydrated:
            self._touched.add(user_id)

    async def _persist(self) -> None:
        if not self._hydrate_started:
            _logger.debug("Write before hydration; loading key=%s first", self._storage_key)
            await self.hydrate()
        await self._write()

    async def _write(self) -> None:
        async with self._lock:
            document = self.to_table().dumps()
            try:
                await self._substrate.set_item(self._storage_key, document)
            except Exception:
                _logger.warning("Failed to save users locations key=%s", self._storage_key, exc_info=True)
                return
        _logger.debug("Location table saved key=%s records=%d", self._storage_key, len(self._records))

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def list_all(self) -> list[PeerLocation]:
        """Fresh list of every known record tagged with its user identifier."""
        return [PeerLocation.from_record(user_id, record) for user_id, record in self._records.items()]

    def get(self, user_id: str) -> LocationRecord | None:
        return self._records.get(user_id)

    def to_table(self) -> LocationTable:
        """Immutable copy of the current table."""
        return LocationTable(dict(self._records))

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, user_id: object) -> bool:
        return user_id in self._records
