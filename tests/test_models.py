"""Tests for location models and the persisted document format."""

from __future__ import annotations

import json
import math

import pytest
from pydantic import ValidationError

from pypeerloc.models.identity import LocalIdentity
from pypeerloc.models.location import LocationRecord, LocationTable, PeerLocation
from pypeerloc.models.position import FeedAccuracy, FeedOptions, Position, PositionSample


class TestLocationTable:
    def test_document_round_trip(self) -> None:
        table = LocationTable(
            {
                "a@x.com": LocationRecord(email="a@x.com", latitude=48.8566, longitude=2.3522, updated_at=1),
                "uid-2": LocationRecord(email="b@x.com", latitude=-91.0, longitude=200.0, updated_at=1_700_000_000_000),
            }
        )

        parsed = LocationTable.loads(table.dumps())

        assert parsed == table
        assert parsed.root["uid-2"].latitude == -91.0

    def test_document_is_object_keyed_by_user_with_camel_case_fields(self) -> None:
        table = LocationTable(
            {"a@x.com": LocationRecord(email="a@x.com", latitude=1.0, longitude=2.0, updated_at=3)}
        )

        assert json.loads(table.dumps()) == {
            "a@x.com": {"email": "a@x.com", "latitude": 1.0, "longitude": 2.0, "updatedAt": 3}
        }

    def test_empty_document(self) -> None:
        assert len(LocationTable.loads("{}")) == 0

    def test_unknown_fields_are_ignored(self) -> None:
        text = '{"a": {"email": "a", "latitude": 1, "longitude": 2, "updatedAt": 3, "speed": 4}}'
        assert LocationTable.loads(text).root["a"] == LocationRecord(email="a", latitude=1, longitude=2, updated_at=3)

    def test_non_finite_coordinates_round_trip(self) -> None:
        table = LocationTable(
            {
                "a": LocationRecord(email="a", latitude=1.0, longitude=2.0, updated_at=1),
                "me": LocationRecord(email="me", latitude=float("nan"), longitude=float("-inf"), updated_at=2),
            }
        )

        parsed = LocationTable.loads(table.dumps())

        assert parsed.root["a"] == table.root["a"]
        assert math.isnan(parsed.root["me"].latitude)
        assert parsed.root["me"].longitude == float("-inf")

    @pytest.mark.parametrize("text", ["", "[]", '{"a": 1}', '{"a": {"email": "a", "latitude": "north"}}'])
    def test_invalid_documents_raise(self, text: str) -> None:
        with pytest.raises(ValidationError):
            LocationTable.loads(text)


class TestPeerLocation:
    def test_from_record_and_wire_shape(self) -> None:
        record = LocationRecord(email="a@x.com", latitude=1.0, longitude=2.0, updated_at=3)

        peer = PeerLocation.from_record("uid-1", record)

        assert peer.model_dump(by_alias=True) == {
            "id": "uid-1",
            "email": "a@x.com",
            "latitude": 1.0,
            "longitude": 2.0,
            "updatedAt": 3,
        }

    def test_frozen(self) -> None:
        peer = PeerLocation(id="a", email="a", latitude=0, longitude=0, updated_at=0)
        with pytest.raises(ValidationError):
            peer.latitude = 5.0  # type: ignore[misc]


class TestPositionSample:
    def test_nested_coords_shape(self) -> None:
        sample = PositionSample.model_validate(
            {
                "coords": {"latitude": 1.5, "longitude": 2.5, "accuracy": 4, "speed": None, "heading": "NaN"},
                "timestamp": 1_700_000_000_123.7,
            }
        )

        assert (sample.latitude, sample.longitude) == (1.5, 2.5)
        assert sample.accuracy == 4.0
        assert sample.speed is None
        assert sample.heading is None
        assert sample.timestamp == 1_700_000_000_123

    def test_flat_shape_is_a_position(self) -> None:
        sample = PositionSample.model_validate({"latitude": 1, "longitude": 2})
        assert isinstance(sample, Position)
        assert sample.timestamp is None

    @pytest.mark.parametrize("bad", ["1e400", float("inf"), float("-inf")])
    def test_non_finite_readings_become_none(self, bad: object) -> None:
        sample = PositionSample.model_validate(
            {"latitude": 1, "longitude": 2, "timestamp": bad, "accuracy": bad, "speed": bad}
        )

        assert sample.timestamp is None
        assert sample.accuracy is None
        assert sample.speed is None

    def test_missing_coordinates_rejected(self) -> None:
        with pytest.raises(ValidationError):
            PositionSample.model_validate({"coords": {"latitude": 1.0}})


class TestFeedOptions:
    def test_defaults(self) -> None:
        options = FeedOptions()
        assert options.accuracy == FeedAccuracy.HIGHEST
        assert options.time_interval_ms == 2000
        assert options.distance_interval_m == 1.0

    def test_negative_interval_rejected(self) -> None:
        with pytest.raises(ValidationError):
            FeedOptions(time_interval_ms=-1)

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("highest", FeedAccuracy.HIGHEST),
            ("best-for-navigation", FeedAccuracy.BEST_FOR_NAVIGATION),
            ("3", FeedAccuracy.BALANCED),
            (1, FeedAccuracy.LOWEST),
        ],
    )
    def test_accuracy_parse(self, value: str | int, expected: FeedAccuracy) -> None:
        assert FeedAccuracy.parse(value) == expected

    def test_accuracy_parse_unknown(self) -> None:
        with pytest.raises(ValueError):
            FeedAccuracy.parse("ultra")


class TestLocalIdentity:
    def test_from_email(self) -> None:
        identity = LocalIdentity.from_email(" me@x.com ")
        assert identity.user_id == identity.email == "me@x.com"

    def test_empty_rejected(self) -> None:
        with pytest.raises(ValidationError):
            LocalIdentity(user_id="", email="me@x.com")
