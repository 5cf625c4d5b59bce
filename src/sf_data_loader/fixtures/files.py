"""Local JSON file helpers for fixtures and persisted ids.

All functions are sync -- they only touch the local file system.
"""

import json
from pathlib import Path
from typing import Any

# Fixture files starting with this prefix are configuration, not data
RESERVED_PREFIX = "__"


def ensure_dir(path: str | Path) -> Path:
    """Create ``path`` (and parents) if it does not exist yet."""
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    return path


def list_json_files(directory: str | Path, reserved_prefix: str = RESERVED_PREFIX) -> list[str]:
    """List collection names of the ``*.json`` files in ``directory``.

    The name is everything before the first ``.`` of the file name.  Files
    whose name starts with ``reserved_prefix`` are skipped.

    Example:
        # Account.json, Contact.json, __settings.json, notes.txt
        list_json_files("fixtures")  # ['Account', 'Contact']
    """
    names = []
    for entry in sorted(Path(directory).iterdir()):
        parts = entry.name.split(".")
        if len(parts) < 2 or parts[-1] != "json" or not entry.is_file():
            continue
        name = parts[0]
        if reserved_prefix and name.startswith(reserved_prefix):
            continue
        names.append(name)
    return names


def read_json_file(path: str | Path) -> Any:
    """Read and decode a JSON file.

    Raises:
        FileNotFoundError: If the file does not exist.
        json.JSONDecodeError: If the file is not valid JSON.
    """
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def write_json_file(path: str | Path, data: Any) -> None:
    """Write ``data`` as indented JSON, creating parent directories."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)


def delete_json_file(path: str | Path, missing_ok: bool = True) -> None:
    """Delete a JSON file."""
    Path(path).unlink(missing_ok=missing_ok)
