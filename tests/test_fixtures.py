"""Tests for fixture file helpers, RecordStore and validate_fixtures."""

import json

import pytest

from sf_data_loader.errors import FixtureError
from sf_data_loader.fixtures.files import (
    delete_json_file,
    ensure_dir,
    list_json_files,
    read_json_file,
    write_json_file,
)
from sf_data_loader.fixtures.store import RecordStore
from sf_data_loader.fixtures.validation import validate_fixtures


# ------------------------------------------------------------------
# files
# ------------------------------------------------------------------


class TestFiles:
    """Local JSON helpers."""

    def test_list_json_files_skips_reserved_and_other_files(self, tmp_path):
        for name in ("Contact.json", "Account.json", "__settings.json", "notes.txt"):
            (tmp_path / name).write_text("[]")
        (tmp_path / "sub.json").mkdir()

        assert list_json_files(tmp_path) == ["Account", "Contact"]

    def test_list_json_files_name_before_first_dot(self, tmp_path):
        (tmp_path / "Account.dev.json").write_text("[]")
        assert list_json_files(tmp_path) == ["Account"]

    def test_custom_reserved_prefix(self, tmp_path):
        (tmp_path / "_Account.json").write_text("[]")
        (tmp_path / "__Config.json").write_text("[]")
        assert list_json_files(tmp_path, reserved_prefix="_") == []
        assert list_json_files(tmp_path, reserved_prefix="") == ["_Account", "__Config"]

    def test_write_creates_parents_and_reads_back(self, tmp_path):
        path = tmp_path / "a" / "b" / "data.json"
        write_json_file(path, {"name": "Café"})

        assert read_json_file(path) == {"name": "Café"}
        assert "Café" in path.read_text(encoding="utf-8")

    def test_read_missing_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            read_json_file(tmp_path / "missing.json")

    def test_delete_missing_ok(self, tmp_path):
        delete_json_file(tmp_path / "missing.json")
        with pytest.raises(FileNotFoundError):
            delete_json_file(tmp_path / "missing.json", missing_ok=False)

    def test_ensure_dir_idempotent(self, tmp_path):
        path = ensure_dir(tmp_path / "x" / "y")
        assert path.is_dir()
        assert ensure_dir(path) == path


# ------------------------------------------------------------------
# RecordStore
# ------------------------------------------------------------------


class TestRecordStore:
    """Immutable collections read from a fixture directory."""

    def test_from_directory(self, make_fixtures):
        path = make_fixtures({
            "Account": [{"id": "acc1", "Name": "Acme"}],
            "Contact": [{"id": "con1", "AccountId": "acc1"}],
        })
        (path / "__config.json").write_text('{"not": "records"}')

        store = RecordStore.from_directory(path)

        assert store.names == ["Account", "Contact"]
        assert store.records("Account") == [{"id": "acc1", "Name": "Acme"}]
        assert "Contact" in store
        assert len(store) == 2
        assert list(store) == ["Account", "Contact"]

    def test_records_returns_copies(self):
        store = RecordStore({"Account": [{"id": "acc1", "Tags": ["a"]}]})
        records = store.records("Account")
        records[0]["Tags"].append("b")
        records.append({"id": "acc2"})

        assert store.records("Account") == [{"id": "acc1", "Tags": ["a"]}]

    def test_input_copied(self):
        source = {"Account": [{"id": "acc1"}]}
        store = RecordStore(source)
        source["Account"][0]["id"] = "changed"
        assert store.records("Account") == [{"id": "acc1"}]

    def test_mapping_is_read_only(self):
        store = RecordStore({"Account": []})
        with pytest.raises(TypeError):
            store.as_mapping()["Lead"] = []

    def test_unknown_collection(self):
        with pytest.raises(KeyError):
            RecordStore({}).records("Account")

    def test_invalid_json(self, tmp_path):
        (tmp_path / "Account.json").write_text("[{")
        with pytest.raises(FixtureError, match="invalid JSON"):
            RecordStore.from_directory(tmp_path)

    def test_not_a_list(self, make_fixtures):
        path = make_fixtures({"Account": {"id": "acc1"}})
        with pytest.raises(FixtureError, match="expected a JSON list"):
            RecordStore.from_directory(path)

    def test_record_not_an_object(self):
        with pytest.raises(FixtureError, match="record #1"):
            RecordStore({"Account": [{"id": "acc1"}, "acc2"]})

    def test_fixture_error_is_value_error(self):
        assert issubclass(FixtureError, ValueError)


# ------------------------------------------------------------------
# validate_fixtures
# ------------------------------------------------------------------


class TestValidateFixtures:
    """Report format: valid / errors / warnings / collections."""

    def test_valid_directory(self, make_fixtures):
        path = make_fixtures({
            "Account": [{"id": "acc1"}, {"id": "acc2"}],
            "Contact": [{"id": "con1", "AccountId": "acc1"}],
        })
        result = validate_fixtures(path)

        assert result["valid"] is True
        assert result["errors"] == []
        assert result["warnings"] == []
        assert result["collections"] == {"Account": 2, "Contact": 1}

    def test_missing_directory(self, tmp_path):
        result = validate_fixtures(tmp_path / "nope")
        assert result["valid"] is False
        assert "not found" in result["errors"][0]

    def test_invalid_json(self, tmp_path):
        (tmp_path / "Account.json").write_text("not json")
        result = validate_fixtures(tmp_path)
        assert result["valid"] is False
        assert result["errors"][0].startswith("Account.json: invalid JSON")

    def test_not_a_list(self, make_fixtures):
        path = make_fixtures({"Account": {"id": "acc1"}})
        result = validate_fixtures(path)
        assert result["valid"] is False
        assert "expected a list" in result["errors"][0]

    def test_records_not_objects(self, make_fixtures):
        path = make_fixtures({"Account": [{"id": "a"}, 1, "x"]})
        result = validate_fixtures(path)
        assert result["errors"] == ["Account.json: records [1, 2] are not objects"]

    def test_cycle_is_error(self, make_fixtures):
        path = make_fixtures({
            "A": [{"id": "a1", "b": "b1"}],
            "B": [{"id": "b1", "a": "a1"}],
        })
        result = validate_fixtures(path)
        assert result["valid"] is False
        assert any("cycle" in e for e in result["errors"])

    def test_duplicate_and_missing_ids_are_warnings(self, make_fixtures):
        path = make_fixtures({
            "Account": [{"id": "acc1"}, {"id": "acc1"}, {"Name": "no id"}],
        })
        result = validate_fixtures(path)

        assert result["valid"] is True
        assert "Account: duplicate id 'acc1'" in result["warnings"]
        assert "Account: 1 record(s) without 'id'" in result["warnings"]

    def test_reserved_files_skipped(self, make_fixtures):
        path = make_fixtures({"Account": []})
        (path / "__meta.json").write_text(json.dumps({"not": "a list"}))
        result = validate_fixtures(path)
        assert result["valid"] is True
        assert result["collections"] == {"Account": 0}
