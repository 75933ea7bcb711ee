"""What a harness run needs to know before the first scenario starts.

Which browser to launch and how, where the application under test lives,
where Allure results and failure artifacts go, and what to do with
failure videos on CI all live on one frozen ``HarnessSettings``. Tests
build it directly; real runs call :meth:`HarnessSettings.from_env`.

A value set in the environment (``BROWSER``, ``BASE_URL``, ``HARNESS_*``)
beats the same value in the JSON config file (``HARNESS_CONFIG`` or
``config/test_config.json``), which beats the field default. Every
invalid value is reported at once in a single ``SettingsError``.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Literal

from .errors import SettingsError

BROWSER_FAMILIES = ('chromium', 'firefox', 'webkit')

CiArtifactPolicy = Literal['skip_local_save', 'save_local']
EnvironmentFormat = Literal['properties', 'json']

_CI_ARTIFACT_POLICIES = ('skip_local_save', 'save_local')
_ENVIRONMENT_FORMATS = ('properties', 'json')

DEFAULT_CONFIG_FILE = Path('config') / 'test_config.json'

_TRUE = frozenset({'1', 'true', 'yes', 'on'})
_FALSE = frozenset({'0', 'false', 'no', 'off', ''})

# JSON config file keys -> dataclass field names.
_CONFIG_KEYS = {
    'browserType': 'browser_type',
    'headless': 'headless',
    'url': 'base_url',
    'testEnv': 'test_env',
    'resultsDir': 'results_dir',
    'artifactsDir': 'artifacts_dir',
    'categoriesFile': 'categories_file',
    'recordVideo': 'record_video',
    'trace': 'trace',
    'actionTimeoutMs': 'action_timeout_ms',
}


def is_ci(env: dict[str, str]) -> bool:
    """True when any CI signal is present in *env*."""
    return bool(env.get('CI')) or bool(env.get('GITHUB_ACTIONS'))


@dataclass(frozen=True, slots=True)
class HarnessSettings:
    """Configuration for a harness run.

    All fields have sensible defaults for local development.
    """

    # ── Browser ────────────────────────────────────────────────────
    browser_type: str = 'chromium'
    """One of: chromium, firefox, webkit."""

    headless: bool = True
    """Caller preference; ignored (forced True) when ``ci`` is set."""

    launch_args: tuple[str, ...] = ('--start-maximized',)

    viewport_width: int = 1536
    viewport_height: int = 960

    action_timeout_ms: int = 30_000
    """Default per-action timeout applied to every page."""

    # ── Target application ─────────────────────────────────────────
    base_url: str = 'http://localhost:3000'
    test_env: str | None = None
    """Target-environment label (``TEST_ENV``)."""

    # ── Diagnostics ────────────────────────────────────────────────
    record_video: bool = True
    video_width: int = 1920
    video_height: int = 1080
    trace: bool = True
    artifacts_dir: Path = Path('.')
    """Parent of the ``screenshots/``, ``videos/`` and ``traces/`` dirs."""

    ci_artifact_policy: CiArtifactPolicy = 'skip_local_save'
    """What to do with failed-scenario videos when running in CI."""

    # ── Reporting ──────────────────────────────────────────────────
    results_dir: Path = Path('allure-results')
    categories_file: Path | None = None
    """Category rules to copy; built-in rules are written when None."""

    environment_format: EnvironmentFormat = 'properties'
    clean_results: bool = False
    """Empty the results dir (keeping ``history/``) at suite start."""

    non_browser_tags: tuple[str, ...] = ('api',)

    # ── Execution context ──────────────────────────────────────────
    ci: bool = False

    @property
    def effective_headless(self) -> bool:
        return True if self.ci else self.headless

    @property
    def screenshots_dir(self) -> Path:
        return self.artifacts_dir / 'screenshots'

    @property
    def videos_dir(self) -> Path:
        return self.artifacts_dir / 'videos'

    @property
    def traces_dir(self) -> Path:
        return self.artifacts_dir / 'traces'

    @property
    def skip_local_video_save(self) -> bool:
        return self.ci and self.ci_artifact_policy == 'skip_local_save'

    def validate(self) -> list[str]:
        """Return a list of configuration errors. Empty means valid."""
        errors: list[str] = []
        if self.browser_type not in BROWSER_FAMILIES:
            errors.append(
                f'browser_type must be one of {", ".join(BROWSER_FAMILIES)}, '
                f'got {self.browser_type!r}'
            )
        if self.ci_artifact_policy not in _CI_ARTIFACT_POLICIES:
            errors.append(
                f'ci_artifact_policy must be one of '
                f'{", ".join(_CI_ARTIFACT_POLICIES)}, '
                f'got {self.ci_artifact_policy!r}'
            )
        if self.environment_format not in _ENVIRONMENT_FORMATS:
            errors.append(
                f'environment_format must be one of '
                f'{", ".join(_ENVIRONMENT_FORMATS)}, '
                f'got {self.environment_format!r}'
            )
        if self.viewport_width <= 0 or self.viewport_height <= 0:
            errors.append('viewport dimensions must be positive')
        if self.action_timeout_ms <= 0:
            errors.append('action_timeout_ms must be positive')
        return errors

    @classmethod
    def from_env(
        cls,
        env: dict[str, str] | None = None,
        *,
        config_file: Path | None = None,
    ) -> HarnessSettings:
        """Build settings from a JSON config file and environment variables.

        Raises:
            SettingsError: If the config file is unreadable or any value
                is invalid.
        """
        if env is None:
            env = dict(os.environ)

        errors: list[str] = []
        values: dict[str, Any] = _load_config_file(
            config_file or _config_path_from_env(env), errors,
        )

        overrides = {
            'BROWSER': 'browser_type',
            'BASE_URL': 'base_url',
            'TEST_ENV': 'test_env',
            'HARNESS_HEADLESS': 'headless',
            'HARNESS_RESULTS_DIR': 'results_dir',
            'HARNESS_ARTIFACTS_DIR': 'artifacts_dir',
            'HARNESS_CATEGORIES_FILE': 'categories_file',
            'HARNESS_RECORD_VIDEO': 'record_video',
            'HARNESS_TRACE': 'trace',
            'HARNESS_CI_ARTIFACT_POLICY': 'ci_artifact_policy',
            'HARNESS_ENV_FORMAT': 'environment_format',
            'HARNESS_CLEAN_RESULTS': 'clean_results',
        }
        for var, name in overrides.items():
            raw = env.get(var, '').strip()
            if raw:
                values[name] = raw

        kwargs = _coerce(values, errors)
        kwargs['ci'] = is_ci(env)

        settings = cls(**kwargs)
        errors.extend(settings.validate())
        if errors:
            raise SettingsError(errors)
        return settings


# ── Helpers ────────────────────────────────────────────────────────


def _config_path_from_env(env: dict[str, str]) -> Path | None:
    raw = env.get('HARNESS_CONFIG', '').strip()
    if raw:
        return Path(raw)
    if DEFAULT_CONFIG_FILE.is_file():
        return DEFAULT_CONFIG_FILE
    return None


def _load_config_file(path: Path | None, errors: list[str]) -> dict[str, Any]:
    """Read the JSON config file and map its keys onto field names."""
    if path is None:
        return {}
    try:
        raw = json.loads(path.read_text(encoding='utf-8'))
    except FileNotFoundError:
        errors.append(f'config file not found: {path}')
        return {}
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        errors.append(f'config file {path} is unreadable: {exc}')
        return {}

    if not isinstance(raw, dict):
        errors.append(f'config file {path} must contain a JSON object')
        return {}

    values: dict[str, Any] = {}
    for key, value in raw.items():
        name = _CONFIG_KEYS.get(key)
        if name is not None:
            values[name] = value
    return values


def _coerce(values: dict[str, Any], errors: list[str]) -> dict[str, Any]:
    """Convert raw config/env values to the dataclass field types."""
    types = {f.name: f.type for f in fields(HarnessSettings)}
    out: dict[str, Any] = {}
    for name, value in values.items():
        kind = types[name]
        if kind == 'bool':
            parsed = _parse_bool(value)
            if parsed is None:
                errors.append(f'{name} must be a boolean, got {value!r}')
                continue
            out[name] = parsed
        elif kind == 'int':
            try:
                out[name] = int(value)
            except (TypeError, ValueError):
                errors.append(f'{name} must be an integer, got {value!r}')
        elif kind in ('Path', 'Path | None'):
            out[name] = Path(value)
        else:
            out[name] = str(value)
    return out


def _parse_bool(value: Any) -> bool | None:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    return None
