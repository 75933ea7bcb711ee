"""Suite and scenario lifecycle coordination.

The coordinator is framework-neutral: the pytest plugin calls it from
session hooks and the ``world`` fixture, but any runner can drive it.

Control flow::

    coordinator.before_all()                     # once, fatal on error
    for scenario in scenarios:
        session = coordinator.before_scenario(info)   # None for @api
        ...steps run...
        coordinator.after_scenario(info, outcome, session, attacher)
    coordinator.after_all()
"""

from __future__ import annotations

import os
from contextvars import Token
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, TypeVar

from .browser.capture import DiagnosticCaptureManager
from .browser.session import BrowserSessionManager, LaunchConfig, ScenarioContext
from .errors import HarnessSetupError
from .observability.logging import get_logger, scenario_ctx
from .reporting.attachments import Attacher, DiagnosticArtifact
from .reporting.environment import build_environment_descriptor, write_environment
from .reporting.fixtures import (
    ExecutorDescriptor,
    build_executor_descriptor,
    install_categories,
    write_executor,
)
from .reporting.results_dir import clean_results_dir
from .scenario import ScenarioInfo, ScenarioOutcome
from .settings import HarnessSettings

logger = get_logger(__name__)

T = TypeVar('T')


@dataclass(frozen=True, slots=True)
class SuiteFixtures:
    """Files written into the results directory at suite start."""

    results_dir: Path
    environment_file: Path
    categories_file: Path
    executor_file: Path
    executor: ExecutorDescriptor


class LifecycleCoordinator:
    """Run suite setup once and own the browser of each scenario.

    Args:
        settings: Harness configuration.
        env: Environment used for CI/executor detection (defaults to
            ``os.environ``).
        sessions: Browser session manager (injected in tests).
        capture: Diagnostic capture manager (injected in tests).
    """

    def __init__(
        self,
        settings: HarnessSettings,
        *,
        env: dict[str, str] | None = None,
        sessions: BrowserSessionManager | None = None,
        capture: DiagnosticCaptureManager | None = None,
    ) -> None:
        self._settings = settings
        self._env = dict(os.environ) if env is None else env
        self._sessions = sessions or BrowserSessionManager(ci=settings.ci)
        self._capture = capture or DiagnosticCaptureManager(settings)
        self._active: ScenarioContext | None = None
        self._scenario_token: Token | None = None
        self.fixtures: SuiteFixtures | None = None

    @property
    def settings(self) -> HarnessSettings:
        return self._settings

    @property
    def active_session(self) -> ScenarioContext | None:
        return self._active

    # ── Suite ──────────────────────────────────────────────────────

    def before_all(self) -> SuiteFixtures:
        """Prepare the results directory and write report fixtures.

        Raises:
            HarnessSetupError: If any file cannot be written or the
                category source is malformed.
        """
        settings = self._settings
        results_dir = settings.results_dir

        def _prepare_dir() -> None:
            if settings.clean_results:
                removed = clean_results_dir(results_dir)
                logger.info('results_dir_cleaned', removed=len(removed))
            results_dir.mkdir(parents=True, exist_ok=True)

        _setup_step('results_dir', _prepare_dir)

        environment_file = _setup_step(
            'environment',
            lambda: write_environment(
                build_environment_descriptor(settings),
                results_dir,
                fmt=settings.environment_format,
            ),
        )
        categories_file = _setup_step(
            'categories',
            lambda: install_categories(results_dir, settings.categories_file),
        )
        executor = build_executor_descriptor(self._env, test_env=settings.test_env)
        executor_file = _setup_step(
            'executor',
            lambda: write_executor(executor, results_dir),
        )

        self.fixtures = SuiteFixtures(
            results_dir=results_dir,
            environment_file=environment_file,
            categories_file=categories_file,
            executor_file=executor_file,
            executor=executor,
        )
        logger.info(
            'suite_fixtures_written',
            results_dir=str(results_dir),
            executor=executor.name,
        )
        return self.fixtures

    def after_all(self) -> None:
        if self._active is not None:
            logger.warning('stale_session_closed', scenario=self._active.scenario_name)
            self._active.close()
            self._active = None
        self._reset_scenario_ctx()
        self._sessions.shutdown()
        logger.info('suite_completed')

    # ── Scenario ───────────────────────────────────────────────────

    def before_scenario(self, scenario: ScenarioInfo) -> ScenarioContext | None:
        """Open a browser session unless the scenario is non-browser.

        Raises:
            Exception: Whatever the browser launch raised; no retry.
        """
        if self._active is not None:
            logger.warning('stale_session_closed', scenario=self._active.scenario_name)
            self._active.close()
            self._active = None

        self._reset_scenario_ctx()
        self._scenario_token = scenario_ctx.set(scenario.name)

        if not scenario.requires_browser(self._settings.non_browser_tags):
            logger.info('browser_skipped', reason='non_browser_scenario')
            return None

        try:
            session = self._sessions.open(
                scenario.name,
                self._settings.browser_type,
                LaunchConfig.from_settings(self._settings),
            )
        except Exception:
            self._reset_scenario_ctx()
            raise

        self._active = session
        return session

    def after_scenario(
        self,
        scenario: ScenarioInfo,
        outcome: ScenarioOutcome,
        session: ScenarioContext | None,
        attacher: Attacher,
    ) -> tuple[DiagnosticArtifact, ...]:
        """Capture diagnostics for *session* and release it."""
        logger.info('scenario_finished', outcome=outcome.value)
        try:
            if session is None:
                return ()
            return self._capture.capture_and_release(
                scenario.name, outcome, session, attacher,
            )
        finally:
            self._active = None
            self._reset_scenario_ctx()

    def _reset_scenario_ctx(self) -> None:
        if self._scenario_token is None:
            return
        token, self._scenario_token = self._scenario_token, None
        try:
            scenario_ctx.reset(token)
        except ValueError:
            # Token created in another context (runner switched threads).
            scenario_ctx.set(None)


# ── Helpers ────────────────────────────────────────────────────────


def _setup_step(name: str, fn: Callable[[], T]) -> T:
    """Run one suite-setup step; any I/O or validation error is fatal."""
    try:
        return fn()
    except (OSError, ValueError) as exc:
        logger.error('suite_setup_failed', step=name, error=str(exc))
        raise HarnessSetupError(name, str(exc)) from exc
