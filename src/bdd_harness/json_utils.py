"""Test data files and JSON comparison."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .errors import DataFileError

_MISSING = object()


@dataclass(frozen=True, slots=True)
class JsonDifference:
    """One leaf where the actual document differs from the expected one."""

    path: str
    expected: Any
    actual: Any = None
    missing: bool = False


def read_json(path: str | Path) -> Any:
    """Read and parse a JSON file.

    Raises:
        DataFileError: If the file cannot be read or parsed.
    """
    try:
        return json.loads(Path(path).read_text(encoding='utf-8'))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise DataFileError(f'Failed to read JSON file {path}: {exc}') from exc


def compare_json(expected_path: str | Path, actual: Any) -> list[JsonDifference] | None:
    """Compare *actual* against the expected document stored in a file.

    Only keys present in the expected document are checked, so extra
    fields in *actual* are ignored. Returns None when nothing differs.
    """
    differences: list[JsonDifference] = []
    _compare(read_json(expected_path), actual, '', differences)
    return differences or None


def _compare(expected: Any, actual: Any, path: str, out: list[JsonDifference]) -> None:
    if isinstance(expected, dict):
        if not isinstance(actual, dict):
            out.append(JsonDifference(path=path or '$', expected=expected, actual=actual))
            return
        for key, value in expected.items():
            child = f'{path}.{key}' if path else str(key)
            other = actual.get(key, _MISSING)
            if other is _MISSING:
                out.append(JsonDifference(path=child, expected=value, missing=True))
            else:
                _compare(value, other, child, out)
    elif isinstance(expected, list):
        if not isinstance(actual, list):
            out.append(JsonDifference(path=path or '$', expected=expected, actual=actual))
            return
        for index, value in enumerate(expected):
            child = f'{path}[{index}]'
            if index >= len(actual):
                out.append(JsonDifference(path=child, expected=value, missing=True))
            else:
                _compare(value, actual[index], child, out)
    elif expected != actual:
        out.append(JsonDifference(path=path or '$', expected=expected, actual=actual))
