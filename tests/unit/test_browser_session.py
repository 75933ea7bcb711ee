"""Tests for BrowserSessionManager and ScenarioContext."""

import pytest

from bdd_harness.browser.session import (
    BrowserSessionManager,
    LaunchConfig,
    VideoSpec,
)


def _config(tmp_path, **overrides):
    values = {
        'headless': False,
        'args': ('--start-maximized',),
        'record_video': VideoSpec(dir=tmp_path / 'videos'),
        'action_timeout_ms': 12_000,
    }
    values.update(overrides)
    return LaunchConfig(**values)


class TestOpen:
    def test_launches_isolated_session(self, sessions, driver, tmp_path):
        ctx = sessions.open('Login works', 'chromium', _config(tmp_path))

        browser = driver.playwright.chromium.browsers[0]
        context = browser.contexts[0]
        assert ctx.browser is browser
        assert ctx.context is context
        assert ctx.page is context.pages[0]
        assert browser.headless is False
        assert browser.args == ['--start-maximized']
        assert ctx.page.default_timeout == 12_000

    def test_context_options(self, sessions, driver, tmp_path):
        sessions.open('s', 'chromium', _config(tmp_path))
        options = driver.playwright.chromium.browsers[0].contexts[0].options
        assert options['viewport'] == {'width': 1536, 'height': 960}
        assert options['record_video_dir'] == str(tmp_path / 'videos')
        assert options['record_video_size'] == {'width': 1920, 'height': 1080}
        assert (tmp_path / 'videos').is_dir()

    def test_no_video_options_when_disabled(self, sessions, driver, tmp_path):
        ctx = sessions.open('s', 'chromium', _config(tmp_path, record_video=None))
        options = driver.playwright.chromium.browsers[0].contexts[0].options
        assert 'record_video_dir' not in options
        assert ctx.video_enabled is False

    def test_tracing_started_with_screenshots_and_snapshots(self, sessions, tmp_path):
        ctx = sessions.open('s', 'chromium', _config(tmp_path))
        assert ctx.tracing_active is True
        assert ctx.context.tracing.started_with == {'screenshots': True, 'snapshots': True}

    def test_tracing_disabled(self, sessions, tmp_path):
        ctx = sessions.open('s', 'chromium', _config(tmp_path, trace=False))
        assert ctx.tracing_active is False
        assert ctx.context.tracing.started_with is None

    def test_ci_forces_headless(self, driver, tmp_path):
        manager = BrowserSessionManager(ci=True, driver_factory=lambda: driver)
        manager.open('s', 'firefox', _config(tmp_path, headless=False))
        assert driver.playwright.firefox.browsers[0].headless is True

    @pytest.mark.parametrize('family', ['chromium', 'firefox', 'webkit'])
    def test_each_family(self, sessions, driver, tmp_path, family):
        sessions.open('s', family, _config(tmp_path))
        assert len(getattr(driver.playwright, family).browsers) == 1

    def test_unknown_family(self, sessions, driver, tmp_path):
        with pytest.raises(ValueError, match='Unknown browser family'):
            sessions.open('s', 'opera', _config(tmp_path))
        assert driver.starts == 0

    def test_each_scenario_gets_its_own_browser(self, sessions, driver, tmp_path):
        first = sessions.open('one', 'chromium', _config(tmp_path))
        second = sessions.open('two', 'chromium', _config(tmp_path))
        assert first.browser is not second.browser
        assert first.page is not second.page
        assert driver.starts == 1

    def test_launch_failure_propagates(self, sessions, driver, tmp_path):
        driver.playwright.chromium.fail_launch = True
        with pytest.raises(RuntimeError, match='executable not found'):
            sessions.open('s', 'chromium', _config(tmp_path))

    def test_partial_open_is_rolled_back(self, sessions, driver, tmp_path):
        original_launch = driver.playwright.chromium.launch

        def launch(**kwargs):
            browser = original_launch(**kwargs)
            browser.fail_new_context = True
            return browser

        driver.playwright.chromium.launch = launch
        with pytest.raises(RuntimeError, match='new_context failed'):
            sessions.open('s', 'chromium', _config(tmp_path))
        assert driver.playwright.chromium.browsers[0].closed is True


class TestClose:
    def test_releases_in_order(self, sessions, tmp_path):
        ctx = sessions.open('s', 'chromium', _config(tmp_path))
        order = []
        for label, resource in (('page', ctx.page), ('context', ctx.context), ('browser', ctx.browser)):
            original = resource.close
            resource.close = lambda label=label, original=original: (order.append(label), original())

        ctx.close()

        assert order == ['page', 'context', 'browser']
        assert ctx.closed is True

    def test_is_idempotent(self, sessions, tmp_path):
        ctx = sessions.open('s', 'chromium', _config(tmp_path))
        ctx.close()
        ctx.browser.closed = False
        ctx.close()
        assert ctx.browser.closed is False

    def test_continues_after_close_error(self, sessions, tmp_path):
        ctx = sessions.open('s', 'chromium', _config(tmp_path))
        ctx.page.fail_close = True
        ctx.close()
        assert ctx.context.closed is True
        assert ctx.browser.closed is True


class TestShutdown:
    def test_stops_started_driver(self, sessions, driver, tmp_path):
        sessions.open('s', 'chromium', _config(tmp_path))
        assert sessions.started
        sessions.shutdown()
        assert driver.playwright.stopped is True
        assert not sessions.started

    def test_noop_when_never_started(self, sessions, driver):
        sessions.shutdown()
        assert driver.playwright.stopped is False


def test_launch_config_from_settings(settings):
    config = LaunchConfig.from_settings(settings)
    assert config.headless is False
    assert config.record_video.dir == settings.videos_dir.resolve()
    assert config.args == ('--start-maximized',)
    assert config.trace is True
