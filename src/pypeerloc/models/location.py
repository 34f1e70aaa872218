"""Location records and the persisted location table."""

from __future__ import annotations

from pydantic import ConfigDict, RootModel

from pypeerloc.models._base import PeerLocBaseModel


class LocationRecord(PeerLocBaseModel):
    """Last known position of one user.

    Parameters
    ----------
    email : str
        Denormalized copy of the owning user's identifier, used for
        display and self-filtering.
    latitude : float
        Most recent latitude in degrees.
    longitude : float
        Most recent longitude in degrees.
    updated_at : int
        Wall clock of the last write in epoch milliseconds
        (``updatedAt`` on the wire).
    """

    email: str
    latitude: float
    longitude: float
    updated_at: int


class PeerLocation(LocationRecord):
    """A :class:`LocationRecord` tagged with its owning user identifier."""

    id: str

    @classmethod
    def from_record(cls, user_id: str, record: LocationRecord) -> PeerLocation:
        return cls(
            id=user_id,
            email=record.email,
            latitude=record.latitude,
            longitude=record.longitude,
            updated_at=record.updated_at,
        )


class LocationTable(RootModel[dict[str, LocationRecord]]):
    """User identifier -> :class:`LocationRecord` mapping.

    Serialized as a single JSON object (not an array) whose keys are user
    identifiers. There is no schema tag or version field.
    """

    model_config = ConfigDict(frozen=True, ser_json_inf_nan="constants")

    def dumps(self) -> str:
        """Serialize to the persisted document format."""
        return self.model_dump_json(by_alias=True)

    @classmethod
    def loads(cls, text: str | bytes) -> LocationTable:
        """Parse the persisted document format.

        Raises
        ------
        pydantic.ValidationError
            If the text is not JSON or does not match the document shape.
        """
        return cls.model_validate_json(text)

    def __len__(self) -> int:
        return len(self.root)
