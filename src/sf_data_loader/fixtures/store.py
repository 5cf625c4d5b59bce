"""In-memory store of fixture records, keyed by collection name.

A fixture directory holds one ``<Collection>.json`` file per remote object
type, each containing a JSON list of record objects.  Records may carry an
``id`` field: it identifies the record inside the fixtures (other records
refer to it) and is never sent to the remote store.

Usage:
    from sf_data_loader.fixtures.store import RecordStore

    store = RecordStore.from_directory("fixtures/")
    store.names              # ['Account', 'Contact']
    store.records("Account") # deep copy of the Account records
"""

import copy
import json
from collections.abc import Iterator, Mapping
from pathlib import Path
from types import MappingProxyType
from typing import TypeAlias, Union

from sf_data_loader.errors import FixtureError
from sf_data_loader.fixtures.files import RESERVED_PREFIX, list_json_files, read_json_file

# Reserved field holding a record's fixture identifier
ID_FIELD = "id"

Scalar: TypeAlias = str | int | float | bool | None
FieldValue: TypeAlias = Union[Scalar, "Record", list["FieldValue"]]
Record: TypeAlias = dict[str, FieldValue]


def _check_records(name: str, data: object, source: str) -> list[Record]:
    if not isinstance(data, list):
        raise FixtureError(f"{source}: expected a JSON list of records for {name}")
    for index, record in enumerate(data):
        if not isinstance(record, dict):
            raise FixtureError(f"{source}: record #{index} of {name} is not an object")
    return data


class RecordStore:
    """Immutable mapping of collection name to fixture records.

    Records are deep-copied on the way in and on the way out, so callers
    can transform what they get without affecting later runs.
    """

    def __init__(self, collections: Mapping[str, list[Record]]) -> None:
        checked = {
            name: copy.deepcopy(_check_records(name, records, name))
            for name, records in collections.items()
        }
        self._collections: Mapping[str, list[Record]] = MappingProxyType(checked)

    @classmethod
    def from_directory(
        cls,
        path: str | Path,
        reserved_prefix: str = RESERVED_PREFIX,
    ) -> "RecordStore":
        """Read every fixture file in ``path``.

        Raises:
            FixtureError: If a file is not valid JSON or not a list of objects.
        """
        path = Path(path)
        collections: dict[str, list[Record]] = {}
        for name in list_json_files(path, reserved_prefix=reserved_prefix):
            file_path = path / f"{name}.json"
            try:
                data = read_json_file(file_path)
            except json.JSONDecodeError as e:
                raise FixtureError(f"{file_path}: invalid JSON: {e}") from e
            collections[name] = _check_records(name, data, str(file_path))
        return cls(collections)

    @property
    def names(self) -> list[str]:
        """Collection names in insertion order."""
        return list(self._collections)

    def records(self, name: str) -> list[Record]:
        """Deep copy of the records of collection ``name``.

        Raises:
            KeyError: If the collection is unknown.
        """
        return copy.deepcopy(self._collections[name])

    def as_mapping(self) -> Mapping[str, list[Record]]:
        """Read-only view of all collections (records are not copied)."""
        return self._collections

    def __contains__(self, name: object) -> bool:
        return name in self._collections

    def __iter__(self) -> Iterator[str]:
        return iter(self._collections)

    def __len__(self) -> int:
        return len(self._collections)
