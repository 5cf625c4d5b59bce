"""Fixture directory validation.

Checks that every fixture file is well-formed and that the relation graph
inferred from the records can be loaded in dependency order.

This module is **sync** -- it only reads local JSON files.
"""

import json
from pathlib import Path

from sf_data_loader.fixtures.files import RESERVED_PREFIX, list_json_files, read_json_file
from sf_data_loader.fixtures.store import ID_FIELD, Record
from sf_data_loader.seed.graph import build_relation_graph


def validate_fixtures(path: str | Path, reserved_prefix: str = RESERVED_PREFIX) -> dict:
    """Validate a fixture directory.

    Errors make the directory unloadable: unreadable or invalid JSON, a
    file that is not a list of objects, or an inferred dependency cycle.
    Warnings flag data that loads but probably isn't what was meant: records
    without an ``id`` (nothing can refer to them) and ids repeated within a
    collection.

    Args:
        path: Fixture directory.
        reserved_prefix: Prefix of configuration files to skip.

    Returns:
        Dict with ``valid`` (bool), ``errors`` (list[str]),
        ``warnings`` (list[str]) and ``collections`` (dict of record counts).

    Example:
        report = validate_fixtures("fixtures/")
        if not report["valid"]:
            raise ValueError("; ".join(report["errors"]))
    """
    errors: list[str] = []
    warnings: list[str] = []
    counts: dict[str, int] = {}

    path = Path(path)
    if not path.is_dir():
        errors.append(f"Fixture directory not found: {path}")
        return {"valid": False, "errors": errors, "warnings": warnings, "collections": counts}

    collections: dict[str, list[Record]] = {}
    for name in list_json_files(path, reserved_prefix=reserved_prefix):
        file_name = f"{name}.json"
        try:
            data = read_json_file(path / file_name)
        except json.JSONDecodeError as e:
            errors.append(f"{file_name}: invalid JSON: {e}")
            continue
        except OSError as e:
            errors.append(f"{file_name}: unreadable: {e}")
            continue

        if not isinstance(data, list):
            errors.append(f"{file_name}: expected a list of records, got {type(data).__name__}")
            continue

        bad = [i for i, r in enumerate(data) if not isinstance(r, dict)]
        if bad:
            errors.append(f"{file_name}: records {bad} are not objects")
            continue

        seen: set = set()
        missing_id = 0
        for record in data:
            if ID_FIELD not in record:
                missing_id += 1
                continue
            if record[ID_FIELD] in seen:
                warnings.append(f"{name}: duplicate id '{record[ID_FIELD]}'")
            seen.add(record[ID_FIELD])
        if missing_id:
            warnings.append(f"{name}: {missing_id} record(s) without '{ID_FIELD}'")

        collections[name] = data
        counts[name] = len(data)

    graph = build_relation_graph(collections)
    cycle = graph.find_cycle()
    if cycle:
        errors.append(f"Dependency cycle: {' -> '.join(cycle)}")

    return {
        "valid": not errors,
        "errors": errors,
        "warnings": warnings,
        "collections": counts,
    }
