"""pytest plugin wiring the harness into a pytest-bdd suite.

Enable it from the suite's root ``conftest.py``::

    pytest_plugins = ['bdd_harness.plugin']

Suite setup runs at session start and aborts the run if any report
fixture cannot be written. Each scenario that requests the ``world``
fixture gets its own browser (unless tagged ``@api``), and diagnostics
are captured during the fixture's teardown, after the scenario's
outcome is known.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from .errors import HarnessSetupError, SettingsError
from .lifecycle import LifecycleCoordinator
from .observability.logging import configure_logging, get_logger
from .reporting.attachments import AllureAttacher
from .scenario import ScenarioInfo, ScenarioOutcome
from .settings import HarnessSettings
from .world import World

logger = get_logger(__name__)

settings_key = pytest.StashKey[HarnessSettings]()
lifecycle_key = pytest.StashKey[LifecycleCoordinator]()


def pytest_addoption(parser: pytest.Parser) -> None:
    group = parser.getgroup('bdd-harness')
    group.addoption(
        '--harness-config',
        action='store',
        default=None,
        help='JSON harness config file (default: $HARNESS_CONFIG or config/test_config.json).',
    )


def pytest_configure(config: pytest.Config) -> None:
    configure_logging()
    config.addinivalue_line('markers', 'api: scenario runs without a browser')

    raw = config.getoption('harness_config')
    try:
        settings = HarnessSettings.from_env(config_file=Path(raw) if raw else None)
    except SettingsError as exc:
        raise pytest.UsageError(f'Invalid harness configuration: {exc}') from exc

    config.stash[settings_key] = settings
    config.stash[lifecycle_key] = LifecycleCoordinator(settings)


def pytest_sessionstart(session: pytest.Session) -> None:
    lifecycle = session.config.stash.get(lifecycle_key, None)
    if lifecycle is None:
        return
    try:
        lifecycle.before_all()
    except HarnessSetupError as exc:
        pytest.exit(f'Harness setup failed at {exc}', returncode=pytest.ExitCode.INTERNAL_ERROR)


def pytest_sessionfinish(session: pytest.Session) -> None:
    lifecycle = session.config.stash.get(lifecycle_key, None)
    if lifecycle is not None:
        lifecycle.after_all()


@pytest.hookimpl(hookwrapper=True, tryfirst=True)
def pytest_runtest_makereport(item: pytest.Item, call: pytest.CallInfo):
    outcome = yield
    report = outcome.get_result()
    setattr(item, f'rep_{report.when}', report)


# ── Fixtures ───────────────────────────────────────────────────────


@pytest.fixture(scope='session')
def harness_settings(pytestconfig: pytest.Config) -> HarnessSettings:
    return pytestconfig.stash[settings_key]


@pytest.fixture(scope='session')
def lifecycle(pytestconfig: pytest.Config) -> LifecycleCoordinator:
    return pytestconfig.stash[lifecycle_key]


@pytest.fixture
def world(request: pytest.FixtureRequest, lifecycle: LifecycleCoordinator):
    info = scenario_info(request.node)
    session = lifecycle.before_scenario(info)
    state = World(
        settings=lifecycle.settings,
        scenario=info,
        attacher=AllureAttacher(),
        session=session,
    )
    try:
        yield state
    finally:
        try:
            lifecycle.after_scenario(
                info, scenario_outcome(request.node), session, state.attacher,
            )
        finally:
            state.close()


# ── Helpers ────────────────────────────────────────────────────────


def scenario_info(item: pytest.Item) -> ScenarioInfo:
    """Scenario name (from pytest-bdd when available) and marker tags."""
    template = getattr(getattr(item, 'function', None), '__scenario__', None)
    name = getattr(template, 'name', None) or item.name
    tags = frozenset(marker.name for marker in item.iter_markers())
    return ScenarioInfo(name=name, tags=tags)


def scenario_outcome(item: pytest.Item) -> ScenarioOutcome:
    """Outcome from the reports recorded by ``pytest_runtest_makereport``."""
    for when in ('call', 'setup'):
        report = getattr(item, f'rep_{when}', None)
        if report is None:
            continue
        if report.failed:
            return ScenarioOutcome.FAILED
        if report.skipped:
            return ScenarioOutcome.SKIPPED
        if when == 'call':
            return ScenarioOutcome.PASSED
    return ScenarioOutcome.UNKNOWN
