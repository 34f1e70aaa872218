from __future__ import annotations

import json
from pathlib import Path

import pytest

from pypeerloc.exceptions import SubstrateError
from pypeerloc.substrate import JsonFileSubstrate, KeyValueSubstrate, MemorySubstrate


@pytest.mark.asyncio
async def test_memory_substrate_get_set_remove() -> None:
    substrate = MemorySubstrate()

    assert await substrate.get_item("k") is None
    await substrate.set_item("k", "v")
    assert await substrate.get_item("k") == "v"
    await substrate.remove_item("k")
    await substrate.remove_item("k")
    assert await substrate.get_item("k") is None


def test_substrates_satisfy_protocol(tmp_path: Path) -> None:
    assert isinstance(MemorySubstrate(), KeyValueSubstrate)
    assert isinstance(JsonFileSubstrate(tmp_path / "s.json"), KeyValueSubstrate)


@pytest.mark.asyncio
async def test_json_file_substrate_persists_across_instances(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "storage.json"
    await JsonFileSubstrate(path).set_item("@a", '{"x": 1}')
    await JsonFileSubstrate(path).set_item("@b", "two")

    reopened = JsonFileSubstrate(path)
    assert await reopened.get_item("@a") == '{"x": 1}'
    assert await reopened.get_item("@b") == "two"
    assert json.loads(path.read_text(encoding="utf-8")) == {"@a": '{"x": 1}', "@b": "two"}

    await reopened.remove_item("@a")
    await reopened.remove_item("@missing")
    assert await reopened.get_item("@a") is None
    assert list(tmp_path.joinpath("nested").iterdir()) == [path]


@pytest.mark.asyncio
async def test_json_file_substrate_missing_or_empty_file(tmp_path: Path) -> None:
    path = tmp_path / "storage.json"
    substrate = JsonFileSubstrate(path)
    assert await substrate.get_item("@a") is None

    path.write_text("  ", encoding="utf-8")
    assert await substrate.get_item("@a") is None


@pytest.mark.asyncio
@pytest.mark.parametrize("content", ["{broken", "[1, 2]"])
async def test_json_file_substrate_corrupt_file_raises(tmp_path: Path, content: str) -> None:
    path = tmp_path / "storage.json"
    path.write_text(content, encoding="utf-8")

    with pytest.raises(SubstrateError):
        await JsonFileSubstrate(path).get_item("@a")
