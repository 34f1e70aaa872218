"""Local user identity."""

from __future__ import annotations

from pydantic import ConfigDict, field_validator

from pypeerloc.models._base import PeerLocBaseModel


class LocalIdentity(PeerLocBaseModel):
    """The device's currently authenticated user.

    The user identifier keys the location table; the email is what peers
    see and what the local user is filtered out of snapshots by.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    user_id: str
    email: str

    @field_validator("user_id", "email")
    @classmethod
    def _non_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("must be non-empty")
        return value

    @classmethod
    def from_email(cls, email: str) -> LocalIdentity:
        """Identity whose user identifier is its email address."""
        return cls(user_id=email, email=email)
