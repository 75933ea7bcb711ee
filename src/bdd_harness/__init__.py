"""BDD acceptance-test harness on pytest-bdd, Playwright and Allure."""

from .errors import (
    BrowserNotAvailableError,
    DataFileError,
    HarnessError,
    HarnessSetupError,
    ResponseValidationError,
    SettingsError,
)
from .lifecycle import LifecycleCoordinator, SuiteFixtures
from .scenario import ScenarioInfo, ScenarioOutcome, safe_artifact_name
from .settings import HarnessSettings, is_ci
from .world import World

__version__ = '0.1.0'

__all__ = [
    'BrowserNotAvailableError',
    'DataFileError',
    'HarnessError',
    'HarnessSetupError',
    'HarnessSettings',
    'LifecycleCoordinator',
    'ResponseValidationError',
    'ScenarioInfo',
    'ScenarioOutcome',
    'SettingsError',
    'SuiteFixtures',
    'World',
    'is_ci',
    'safe_artifact_name',
]
