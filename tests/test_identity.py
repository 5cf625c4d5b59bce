"""Tests for IdentityMap and PersistedIdStore."""

import json

import pytest

from sf_data_loader.errors import DataLoaderError, PersistedIdsMissing
from sf_data_loader.seed.identity import IdentityMap, PersistedIdStore


class TestIdentityMap:
    """Run-scoped old id -> new id mapping."""

    def test_record_and_lookup(self):
        identity = IdentityMap()
        identity.record("acc1", "001A")
        assert identity.lookup("acc1") == "001A"
        assert identity["acc1"] == "001A"
        assert identity.lookup("missing") is None

    def test_record_many_merges(self):
        identity = IdentityMap({"acc1": "001A"})
        identity.record_many([("con1", "003A"), ("con2", "003B")])
        assert identity.as_dict() == {"acc1": "001A", "con1": "003A", "con2": "003B"}
        assert len(identity) == 3

    def test_record_many_skips_missing_old_ids(self):
        identity = IdentityMap()
        identity.record_many([(None, "001A"), ("acc2", "001B")])
        assert identity.as_dict() == {"acc2": "001B"}

    def test_record_many_stringifies_old_ids(self):
        identity = IdentityMap()
        identity.record_many([(42, "001A")])
        assert identity.lookup("42") == "001A"

    def test_as_dict_is_a_copy(self):
        identity = IdentityMap({"a": "1"})
        identity.as_dict()["b"] = "2"
        assert "b" not in identity

    def test_mapping_protocol(self):
        identity = IdentityMap({"a": "1", "b": "2"})
        assert list(identity) == ["a", "b"]
        assert dict(identity) == {"a": "1", "b": "2"}
        assert "IdentityMap" in repr(identity)


class TestPersistedIdStore:
    """One JSON list of ids per collection."""

    def test_save_and_load(self, tmp_path):
        store = PersistedIdStore(tmp_path / "ids")
        path = store.save("Account", ["001A", "001B"])

        assert path == tmp_path / "ids" / "Account.json"
        assert json.loads(path.read_text()) == ["001A", "001B"]
        assert store.load("Account") == ["001A", "001B"]

    def test_save_replaces_previous(self, tmp_path):
        store = PersistedIdStore(tmp_path)
        store.save("Account", ["001A"])
        store.save("Account", ["001B"])
        assert store.load("Account") == ["001B"]

    def test_load_missing_raises(self, tmp_path):
        store = PersistedIdStore(tmp_path)
        with pytest.raises(PersistedIdsMissing) as exc_info:
            store.load("Account")
        assert exc_info.value.sobject == "Account"

    def test_missing_is_not_a_load_failure(self):
        assert not issubclass(PersistedIdsMissing, DataLoaderError)

    def test_other_io_errors_propagate(self, tmp_path):
        store = PersistedIdStore(tmp_path)
        store.path_for("Account").mkdir()
        with pytest.raises(IsADirectoryError):
            store.load("Account")

    def test_remove_and_exists(self, tmp_path):
        store = PersistedIdStore(tmp_path)
        store.save("Account", ["001A"])
        assert store.exists("Account")

        store.remove("Account")
        assert not store.exists("Account")
        # removing again is fine
        store.remove("Account")
