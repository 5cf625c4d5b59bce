"""Identifier bookkeeping for one load run and across runs.

``IdentityMap`` maps fixture ids to the ids the remote store assigned during
the current run; it only ever grows and is discarded with the process.

``PersistedIdStore`` keeps, per collection, the list of remote ids a load
created.  A later, separate delete run works from those files alone.

Usage:
    identity = IdentityMap()
    identity.record_many([("acc1", "001A"), ("acc2", "001B")])
    identity.lookup("acc1")   # '001A'

    store = PersistedIdStore("/tmp/sf-data-loader-ids")
    store.save("Account", ["001A", "001B"])
    store.load("Account")     # ['001A', '001B']
    store.remove("Account")
    store.load("Account")     # raises PersistedIdsMissing
"""

from collections.abc import Iterable, Iterator, Mapping
from pathlib import Path

from sf_data_loader.errors import PersistedIdsMissing
from sf_data_loader.fixtures.files import delete_json_file, read_json_file, write_json_file


class IdentityMap(Mapping[str, str]):
    """Run-scoped mapping of original id -> newly assigned remote id."""

    def __init__(self, initial: Mapping[str, str] | None = None) -> None:
        self._ids: dict[str, str] = dict(initial or {})

    def record(self, old_id: str, new_id: str) -> None:
        """Add or overwrite a single mapping."""
        self._ids[old_id] = new_id

    def record_many(self, pairs: Iterable[tuple[str | None, str]]) -> None:
        """Merge a batch of mappings; pairs with no original id are skipped."""
        self._ids.update((str(old), new) for old, new in pairs if old is not None)

    def lookup(self, old_id: str) -> str | None:
        return self._ids.get(old_id)

    def as_dict(self) -> dict[str, str]:
        return dict(self._ids)

    def __getitem__(self, old_id: str) -> str:
        return self._ids[old_id]

    def __iter__(self) -> Iterator[str]:
        return iter(self._ids)

    def __len__(self) -> int:
        return len(self._ids)

    def __repr__(self) -> str:
        return f"IdentityMap({self._ids!r})"


class PersistedIdStore:
    """One JSON file of remote ids per collection under ``directory``."""

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)

    def path_for(self, sobject: str) -> Path:
        return self.directory / f"{sobject}.json"

    def save(self, sobject: str, ids: list[str]) -> Path:
        """Write the ids created for ``sobject`` (replacing any previous file)."""
        path = self.path_for(sobject)
        write_json_file(path, list(ids))
        return path

    def load(self, sobject: str) -> list[str]:
        """Read the ids persisted for ``sobject``.

        Raises:
            PersistedIdsMissing: If no file exists for ``sobject``.  Any other
                I/O error (e.g., permissions) propagates unchanged.
        """
        try:
            return list(read_json_file(self.path_for(sobject)))
        except FileNotFoundError as e:
            raise PersistedIdsMissing(sobject) from e

    def remove(self, sobject: str) -> None:
        delete_json_file(self.path_for(sobject), missing_ok=True)

    def exists(self, sobject: str) -> bool:
        return self.path_for(sobject).exists()
