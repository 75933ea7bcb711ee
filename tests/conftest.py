"""Pytest configuration and shared fixtures for harness tests."""
import sys
from dataclasses import replace
from pathlib import Path

# Add src/ to path for src-layout imports
_PROJECT_ROOT = Path(__file__).parent.parent
_SRC = _PROJECT_ROOT / 'src'
if str(_SRC) not in sys.path:
    sys.path.insert(0, str(_SRC))

import pytest

from bdd_harness.browser.session import BrowserSessionManager
from bdd_harness.observability.logging import scenario_ctx
from bdd_harness.settings import HarnessSettings

from playwright_fakes import (  # noqa: F401
    PNG_BYTES,
    TRACE_BYTES,
    VIDEO_BYTES,
    FakeDriver,
    RecordingAttacher,
)

pytest_plugins = ['pytester']


# ── Fixtures ───────────────────────────────────────────────────────


@pytest.fixture(autouse=True)
def _isolate_scenario_ctx():
    """Keep the module-level scenario ContextVar from leaking between tests."""
    token = scenario_ctx.set(None)
    yield
    scenario_ctx.reset(token)


@pytest.fixture
def driver():
    return FakeDriver()


@pytest.fixture
def sessions(driver):
    return BrowserSessionManager(driver_factory=lambda: driver)


@pytest.fixture
def attacher():
    return RecordingAttacher()


@pytest.fixture
def settings(tmp_path):
    """Local (non-CI) settings writing everything under tmp_path."""
    return HarnessSettings(
        artifacts_dir=tmp_path / 'artifacts',
        results_dir=tmp_path / 'allure-results',
        headless=False,
    )


@pytest.fixture
def ci_settings(settings):
    return replace(settings, ci=True)
