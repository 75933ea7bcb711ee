"""Scenario identity and outcome as seen by the lifecycle hooks."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum

_WHITESPACE_RE = re.compile(r'\s+')
_UNSAFE_RE = re.compile(r'[^\w.\-]')


class ScenarioOutcome(str, Enum):
    """Final status of a scenario."""

    PASSED = 'passed'
    FAILED = 'failed'
    SKIPPED = 'skipped'
    UNKNOWN = 'unknown'


@dataclass(frozen=True, slots=True)
class ScenarioInfo:
    """Name and tags of the scenario about to run (or just finished)."""

    name: str
    tags: frozenset[str] = field(default_factory=frozenset)

    @property
    def safe_name(self) -> str:
        return safe_artifact_name(self.name)

    def requires_browser(self, non_browser_tags: tuple[str, ...]) -> bool:
        return not any(tag.lstrip('@') in self.tags for tag in non_browser_tags)


def safe_artifact_name(name: str) -> str:
    """Turn a scenario name into a file-name stem.

    Whitespace runs become ``_`` and anything outside ``[\\w.-]`` is
    dropped.
    """
    stem = _UNSAFE_RE.sub('', _WHITESPACE_RE.sub('_', name.strip()))
    return stem or 'scenario'
