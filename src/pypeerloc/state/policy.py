"""Location write acceptance policy."""

from __future__ import annotations


def should_accept_write(
    *,
    cached_updated_at: int | None,
    incoming_updated_at: int,
    reject_stale: bool,
) -> bool:
    """Decide whether a location write should replace the stored record.

    Policy:
    - No stored record: always accept.
    - ``reject_stale`` off: always accept (last write wins, whatever its timestamp).
    - ``reject_stale`` on: accept only if the incoming timestamp is not older
      than the stored one. Equal timestamps are accepted.
    """
    if cached_updated_at is None or not reject_stale:
        return True
    return incoming_updated_at >= cached_updated_at
