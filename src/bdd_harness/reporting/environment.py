"""Environment metadata for the report renderer.

Builds the flat key/value description shown on the report's
"Environment" widget and writes it once per suite run as
``environment.properties`` (or ``environment.json``).
"""

from __future__ import annotations

import json
import platform
from dataclasses import dataclass, field
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from types import MappingProxyType
from typing import Mapping

from ..settings import EnvironmentFormat, HarnessSettings

PROPERTIES_FILENAME = 'environment.properties'
JSON_FILENAME = 'environment.json'


@dataclass(frozen=True, slots=True)
class EnvironmentDescriptor:
    """Immutable string-to-string environment description."""

    entries: Mapping[str, str] = field(
        default_factory=lambda: MappingProxyType({}),
    )

    def to_properties(self) -> str:
        """Render as Java-properties text (one ``key=value`` per line)."""
        lines = [
            f'{_escape_key(k)}={_escape_value(v)}'
            for k, v in self.entries.items()
        ]
        return '\n'.join(lines) + '\n'

    def to_json(self) -> str:
        return json.dumps(dict(self.entries), indent=2)


def build_environment_descriptor(
    settings: HarnessSettings,
) -> EnvironmentDescriptor:
    """Describe the OS, browser, tool versions and target URL."""
    entries = {
        'OS': f'{platform.system()} {platform.release()}'.strip(),
        'Browser': settings.browser_type,
        'Headless': str(settings.effective_headless).lower(),
        'Python': platform.python_version(),
        'Playwright': _package_version('playwright'),
        'URL': settings.base_url,
        'Environment': settings.test_env or ('QA' if settings.ci else 'Local'),
    }
    return EnvironmentDescriptor(entries=MappingProxyType(entries))


def write_environment(
    descriptor: EnvironmentDescriptor,
    results_dir: Path,
    *,
    fmt: EnvironmentFormat = 'properties',
) -> Path:
    """Write the descriptor into *results_dir* and return the file path."""
    results_dir.mkdir(parents=True, exist_ok=True)
    if fmt == 'json':
        path = results_dir / JSON_FILENAME
        path.write_text(descriptor.to_json(), encoding='utf-8')
    else:
        path = results_dir / PROPERTIES_FILENAME
        path.write_text(descriptor.to_properties(), encoding='utf-8')
    return path


# ── Helpers ────────────────────────────────────────────────────────


def _package_version(name: str) -> str:
    try:
        return version(name)
    except PackageNotFoundError:
        return 'unknown'


def _escape_key(key: str) -> str:
    out = key.replace('\\', '\\\\')
    for ch in ('=', ':', ' '):
        out = out.replace(ch, '\\' + ch)
    return out


def _escape_value(value: str) -> str:
    return (value.replace('\\', '\\\\')
                 .replace('\n', '\\n')
                 .replace('\r', '\\r'))
