"""Static report fixtures: failure categories and executor descriptor.

The report renderer buckets results using ``categories.json`` and labels
the run using ``executor.json``. Both are written once, before any
scenario runs.

Usage::

    install_categories(Path('allure-results'), Path('config/categories.json'))
    executor = build_executor_descriptor(dict(os.environ))
    write_executor(executor, Path('allure-results'))
"""

from __future__ import annotations

import json
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

from ..settings import is_ci

CATEGORIES_FILENAME = 'categories.json'
EXECUTOR_FILENAME = 'executor.json'

RESULT_STATUSES = frozenset({'failed', 'broken', 'passed', 'skipped', 'unknown'})


class CategoryRule(BaseModel):
    """One failure-bucketing rule understood by the report renderer."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    name: str = Field(min_length=1)
    description: str | None = None
    matched_statuses: list[str] = Field(
        default_factory=list, alias='matchedStatuses',
    )
    trace_regex: str | None = Field(default=None, alias='traceRegex')
    message_regex: str | None = Field(default=None, alias='messageRegex')

    @field_validator('matched_statuses')
    @classmethod
    def _known_statuses(cls, value: list[str]) -> list[str]:
        unknown = [s for s in value if s not in RESULT_STATUSES]
        if unknown:
            raise ValueError(f'unknown result status: {", ".join(unknown)}')
        return value

    def to_dict(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


_CATEGORY_LIST = TypeAdapter(list[CategoryRule])

DEFAULT_CATEGORIES: tuple[CategoryRule, ...] = (
    CategoryRule(
        name='Critical Path',
        description='Tests covering critical functionality.',
        matchedStatuses=['passed'],
        traceRegex='.*critical-path.*',
    ),
    CategoryRule(
        name='Smoke Tests',
        description='Tests that validate the core functionality.',
        matchedStatuses=['passed'],
        traceRegex='.*smoke.*',
    ),
    CategoryRule(
        name='Flaky Test',
        description='Tests that fail intermittently.',
        matchedStatuses=['failed'],
        traceRegex='.*Timeout.*',
    ),
    CategoryRule(
        name='Infrastructure Problem',
        description='Issues caused by environment or CI/CD failures.',
        matchedStatuses=['failed', 'broken'],
        traceRegex='.*(ECONNREFUSED|ECONNRESET|ConnectError).*',
    ),
    CategoryRule(
        name='Application Bug',
        description='Failures due to application bugs.',
        matchedStatuses=['failed'],
        messageRegex='.*AssertionError.*',
    ),
    CategoryRule(
        name='Unknown',
        description='Uncategorized failures.',
        matchedStatuses=['failed'],
    ),
)


def load_categories(text: str) -> list[CategoryRule]:
    """Parse and validate a categories document.

    Raises:
        pydantic.ValidationError: If the document is not a list of rules.
    """
    return _CATEGORY_LIST.validate_json(text)


def install_categories(results_dir: Path, source: Path | None = None) -> Path:
    """Copy *source* verbatim into *results_dir* as ``categories.json``.

    The source is validated first so a malformed document fails suite
    setup instead of silently breaking the report. When *source* is
    None the built-in :data:`DEFAULT_CATEGORIES` are written.

    Raises:
        OSError: If the source cannot be read or the target written.
        pydantic.ValidationError: If the source is malformed.
        UnicodeDecodeError: If the source is not UTF-8.
    """
    results_dir.mkdir(parents=True, exist_ok=True)
    target = results_dir / CATEGORIES_FILENAME

    if source is None:
        body = json.dumps([r.to_dict() for r in DEFAULT_CATEGORIES], indent=2).encode('utf-8')
    else:
        body = source.read_bytes()
        load_categories(body.decode('utf-8'))

    target.write_bytes(body)
    return target


class ExecutorDescriptor(BaseModel):
    """Who ran the suite: a CI system or a local machine."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    name: str
    type: str
    url: str | None = None
    build_order: int | None = Field(default=None, alias='buildOrder')
    build_name: str | None = Field(default=None, alias='buildName')
    build_url: str | None = Field(default=None, alias='buildUrl')
    report_name: str | None = Field(default=None, alias='reportName')
    report_url: str | None = Field(default=None, alias='reportUrl')
    infrastructure: str | None = None
    environment: str | None = None

    @property
    def is_local(self) -> bool:
        return self.type == 'local'

    def to_dict(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


def build_executor_descriptor(
    env: dict[str, str],
    *,
    test_env: str | None = None,
) -> ExecutorDescriptor:
    """Select the executor description from CI environment signals.

    GitHub Actions gets links back to the repository run; any other CI
    gets a generic record; otherwise the run is described as local.
    """
    if env.get('GITHUB_ACTIONS') == 'true':
        return _github_executor(env, test_env)
    if is_ci(env):
        return ExecutorDescriptor(
            name='Continuous Integration',
            type='CI/CD',
            build_name=env.get('BUILD_NAME') or None,
            build_url=env.get('BUILD_URL') or None,
            infrastructure='CI',
            environment=test_env or env.get('TEST_ENV') or 'QA',
        )
    return ExecutorDescriptor(
        name='Local Execution',
        type='local',
        url='http://localhost:3000',
        build_name='Local Execution',
        build_url='http://localhost:3000',
        report_url='http://localhost:3000/allure-report',
        infrastructure='Local Machine',
        environment=test_env or env.get('TEST_ENV') or 'Local',
    )


def write_executor(descriptor: ExecutorDescriptor, results_dir: Path) -> Path:
    """Write ``executor.json`` into *results_dir* and return its path."""
    results_dir.mkdir(parents=True, exist_ok=True)
    path = results_dir / EXECUTOR_FILENAME
    path.write_text(json.dumps(descriptor.to_dict(), indent=2), encoding='utf-8')
    return path


# ── Helpers ────────────────────────────────────────────────────────


def _github_executor(env: dict[str, str], test_env: str | None) -> ExecutorDescriptor:
    server = env.get('GITHUB_SERVER_URL') or 'https://github.com'
    repository = env.get('GITHUB_REPOSITORY', '')
    owner = env.get('GITHUB_REPOSITORY_OWNER') or repository.partition('/')[0]
    repo_name = repository.partition('/')[2] or repository
    run_number = env.get('GITHUB_RUN_NUMBER', '')
    run_id = env.get('GITHUB_RUN_ID', '')

    return ExecutorDescriptor(
        name='GitHub Actions',
        type='github',
        url=f'{server}/{repository}/actions',
        build_order=int(run_number) if run_number.isdigit() else None,
        build_name=f'GitHub Actions Build #{run_number or "?"}',
        build_url=f'{server}/{repository}/actions/runs/{run_id}' if run_id else None,
        report_name='Allure Report for GitHub Actions',
        report_url=f'https://{owner}.github.io/{repo_name}/allure-report/' if owner else None,
        infrastructure='GitHub Actions',
        environment=test_env or env.get('TEST_ENV') or 'QA',
    )
