"""Tests for LifecycleCoordinator suite and scenario hooks."""

import json
from dataclasses import replace

import pytest

from bdd_harness.errors import HarnessSetupError
from bdd_harness.lifecycle import LifecycleCoordinator
from bdd_harness.observability.logging import scenario_ctx
from bdd_harness.scenario import ScenarioInfo, ScenarioOutcome

UI = ScenarioInfo('Add item to cart', frozenset({'smoke'}))
API = ScenarioInfo('Create order via API', frozenset({'api'}))


def _make_coordinator(settings, sessions, env=None):
    return LifecycleCoordinator(settings, env=env or {}, sessions=sessions)


# ── Suite ──────────────────────────────────────────────────────────


class TestBeforeAll:
    def test_writes_all_fixtures(self, settings, sessions):
        fixtures = _make_coordinator(settings, sessions).before_all()

        results = settings.results_dir
        assert fixtures.results_dir == results
        assert fixtures.environment_file == results / 'environment.properties'
        assert fixtures.categories_file == results / 'categories.json'
        assert fixtures.executor_file == results / 'executor.json'
        assert all(p.exists() for p in (
            fixtures.environment_file, fixtures.categories_file, fixtures.executor_file,
        ))
        assert fixtures.executor.is_local

    def test_executor_follows_env(self, settings, sessions):
        coordinator = _make_coordinator(
            settings, sessions, env={'GITHUB_ACTIONS': 'true', 'GITHUB_REPOSITORY': 'acme/app'},
        )
        fixtures = coordinator.before_all()
        data = json.loads(fixtures.executor_file.read_text(encoding='utf-8'))
        assert data['type'] == 'github'

    def test_json_environment_format(self, settings, sessions):
        settings = replace(settings, environment_format='json')
        fixtures = _make_coordinator(settings, sessions).before_all()
        assert fixtures.environment_file.name == 'environment.json'

    def test_clean_results_keeps_history(self, settings, sessions):
        settings = replace(settings, clean_results=True)
        settings.results_dir.mkdir(parents=True)
        (settings.results_dir / 'old-result.json').write_text('{}')
        _make_coordinator(settings, sessions).before_all()
        assert not (settings.results_dir / 'old-result.json').exists()
        assert (settings.results_dir / 'history').is_dir()

    def test_bad_categories_is_fatal(self, settings, sessions, tmp_path):
        source = tmp_path / 'categories.json'
        source.write_text('not json', encoding='utf-8')
        settings = replace(settings, categories_file=source)
        with pytest.raises(HarnessSetupError) as excinfo:
            _make_coordinator(settings, sessions).before_all()
        assert excinfo.value.step == 'categories'

    def test_unwritable_results_dir_is_fatal(self, settings, sessions, tmp_path):
        blocker = tmp_path / 'blocker'
        blocker.write_text('a file, not a directory')
        settings = replace(settings, results_dir=blocker / 'results')
        with pytest.raises(HarnessSetupError) as excinfo:
            _make_coordinator(settings, sessions).before_all()
        assert excinfo.value.step == 'results_dir'

    def test_does_not_start_browser(self, settings, sessions, driver):
        _make_coordinator(settings, sessions).before_all()
        assert driver.starts == 0


class TestAfterAll:
    def test_shuts_down_driver(self, settings, sessions, driver, attacher):
        coordinator = _make_coordinator(settings, sessions)
        session = coordinator.before_scenario(UI)
        coordinator.after_scenario(UI, ScenarioOutcome.PASSED, session, attacher)
        coordinator.after_all()
        assert driver.playwright.stopped

    def test_closes_stale_session(self, settings, sessions):
        coordinator = _make_coordinator(settings, sessions)
        session = coordinator.before_scenario(UI)
        coordinator.after_all()
        assert session.closed
        assert coordinator.active_session is None


# ── Scenario ───────────────────────────────────────────────────────


class TestScenarioHooks:
    def test_browser_scenario_gets_session(self, settings, sessions, driver):
        coordinator = _make_coordinator(settings, sessions)
        session = coordinator.before_scenario(UI)
        assert session is not None
        assert session.scenario_name == UI.name
        assert coordinator.active_session is session
        assert driver.playwright.chromium.browsers[0].headless is False

    def test_api_scenario_skips_browser(self, settings, sessions, driver, attacher):
        coordinator = _make_coordinator(settings, sessions)
        assert coordinator.before_scenario(API) is None
        assert driver.starts == 0
        assert coordinator.after_scenario(API, ScenarioOutcome.FAILED, None, attacher) == ()
        assert attacher.attachments == []

    def test_at_prefixed_tag_config(self, settings, sessions):
        settings = replace(settings, non_browser_tags=('@api',))
        coordinator = _make_coordinator(settings, sessions)
        assert coordinator.before_scenario(API) is None

    def test_failed_scenario_attaches_and_releases(self, settings, sessions, attacher):
        coordinator = _make_coordinator(settings, sessions)
        session = coordinator.before_scenario(UI)
        artifacts = coordinator.after_scenario(UI, ScenarioOutcome.FAILED, session, attacher)
        assert len(artifacts) == 3
        assert session.closed
        assert coordinator.active_session is None

    def test_scenario_name_in_context_only_while_running(self, settings, sessions, attacher):
        coordinator = _make_coordinator(settings, sessions)
        session = coordinator.before_scenario(UI)
        assert scenario_ctx.get() == UI.name
        coordinator.after_scenario(UI, ScenarioOutcome.PASSED, session, attacher)
        assert scenario_ctx.get() is None

    def test_stale_session_closed_before_next(self, settings, sessions, attacher):
        coordinator = _make_coordinator(settings, sessions)
        first = coordinator.before_scenario(UI)
        second = coordinator.before_scenario(ScenarioInfo('Next'))
        assert first.closed
        assert not second.closed
        coordinator.after_scenario(ScenarioInfo('Next'), ScenarioOutcome.PASSED, second, attacher)

    def test_launch_failure_propagates_without_retry(self, settings, sessions, driver):
        driver.playwright.chromium.fail_launch = True
        coordinator = _make_coordinator(settings, sessions)
        with pytest.raises(RuntimeError):
            coordinator.before_scenario(UI)
        assert coordinator.active_session is None
        assert scenario_ctx.get() is None

    def test_consecutive_scenarios_are_isolated(self, settings, sessions, attacher):
        coordinator = _make_coordinator(settings, sessions)
        first = coordinator.before_scenario(UI)
        coordinator.after_scenario(UI, ScenarioOutcome.PASSED, first, attacher)
        second = coordinator.before_scenario(UI)
        assert second.browser is not first.browser
        assert first.browser.closed and not second.browser.closed
        coordinator.after_scenario(UI, ScenarioOutcome.PASSED, second, attacher)
