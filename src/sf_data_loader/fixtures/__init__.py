"""Fixture files: JSON file helpers and the RecordStore.

Validation lives in ``sf_data_loader.fixtures.validation`` because it needs
the relation graph builder.

Usage:
    from sf_data_loader.fixtures import RecordStore
    from sf_data_loader.fixtures.validation import validate_fixtures
"""

from sf_data_loader.fixtures.files import (
    RESERVED_PREFIX,
    delete_json_file,
    ensure_dir,
    list_json_files,
    read_json_file,
    write_json_file,
)
from sf_data_loader.fixtures.store import ID_FIELD, FieldValue, Record, RecordStore

__all__ = [
    "RESERVED_PREFIX",
    "ID_FIELD",
    "FieldValue",
    "Record",
    "RecordStore",
    "ensure_dir",
    "list_json_files",
    "read_json_file",
    "write_json_file",
    "delete_json_file",
]
