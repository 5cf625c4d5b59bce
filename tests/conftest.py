"""Shared fixtures: an in-memory fake org implementing RecordStoreClient."""

import json
from pathlib import Path
from unittest.mock import AsyncMock

import pytest


class FakeSObject:
    """SObjectHandle backed by a FakeOrg; methods are AsyncMocks for call assertions."""

    def __init__(self, org: "FakeOrg", name: str, tooling: bool) -> None:
        self.org = org
        self.name = name
        self.tooling = tooling
        self.find = AsyncMock(side_effect=self._find)
        self.create = AsyncMock(side_effect=self._create)
        self.destroy = AsyncMock(side_effect=self._destroy)

    async def _find(self, conditions, fields, limit=None):
        self.org.events.append(("find", self.name))
        if isinstance(conditions, dict):
            ids = conditions.get("Id", [])
            table = self.org.records.get(self.name, {})
            return [{"Id": i} for i in ids if i in table]
        rows = list(self.org.query_results.get((self.name, conditions), []))
        return rows[:limit] if limit is not None else rows

    async def _create(self, records):
        """All-or-none: one rejected record fails (and stores) nothing."""
        self.org.events.append(("create", self.name))
        rejected = [self.org.fail_create(self.name, record) for record in records]
        if any(rejected):
            return [
                {
                    "id": None,
                    "success": False,
                    "errors": [{"message": "rejected" if bad else "rolled back"}],
                }
                for bad in rejected
            ]
        results = []
        for record in records:
            self.org.counter += 1
            new_id = f"{self.name[:3].upper()}{self.org.counter:012d}"
            self.org.records.setdefault(self.name, {})[new_id] = dict(record)
            results.append({"id": new_id, "success": True, "errors": []})
        return results

    async def _destroy(self, ids):
        self.org.events.append(("destroy", self.name))
        if self.name in self.org.fail_destroy:
            return [{"id": i, "success": False, "errors": [{"message": "locked"}]} for i in ids]
        table = self.org.records.get(self.name, {})
        for i in ids:
            table.pop(i, None)
        return [{"id": i, "success": True, "errors": []} for i in ids]


class FakeOrg:
    """In-memory stand-in for an org.

    Attributes:
        records: name -> remote id -> created record.
        events: ordered log of ``(operation, collection)`` tuples.
        query_results: ``(sobject, where)`` -> rows returned by predicate finds.
        fail_destroy: collection names whose destroy reports failure.
    """

    def __init__(self) -> None:
        self.records: dict[str, dict[str, dict]] = {}
        self.events: list[tuple[str, str]] = []
        self.query_results: dict[tuple[str, str], list[dict]] = {}
        self.fail_destroy: set[str] = set()
        self.counter = 0
        self._handles: dict[tuple[str, bool], FakeSObject] = {}
        self.login = AsyncMock()
        self.close = AsyncMock()

    def fail_create(self, name: str, record: dict) -> bool:
        return False

    def sobject(self, name: str, tooling: bool = False) -> FakeSObject:
        key = (name, tooling)
        if key not in self._handles:
            self._handles[key] = FakeSObject(self, name, tooling)
        return self._handles[key]

    def created_in(self, name: str) -> list[dict]:
        return list(self.records.get(name, {}).values())

    def ops(self, operation: str) -> list[str]:
        return [name for op, name in self.events if op == operation]


@pytest.fixture
def org() -> FakeOrg:
    return FakeOrg()


def write_fixtures(directory: Path, collections: dict[str, object]) -> Path:
    """Write one ``<name>.json`` file per collection into ``directory``."""
    directory.mkdir(parents=True, exist_ok=True)
    for name, records in collections.items():
        (directory / f"{name}.json").write_text(json.dumps(records))
    return directory


@pytest.fixture
def make_fixtures(tmp_path: Path):
    """Factory writing fixture files under ``tmp_path / "fixtures"``."""

    def _make(collections: dict[str, object]) -> Path:
        return write_fixtures(tmp_path / "fixtures", collections)

    return _make
