"""Per-scenario browser sessions.

Each browser scenario gets its own browser instance, browsing context
and page, bundled in a :class:`ScenarioContext`. The Playwright driver
process is started lazily on the first browser scenario and shared by
the sessions that follow; browser instances never are.

Usage::

    manager = BrowserSessionManager(ci=settings.ci)
    ctx = manager.open('Login works', 'chromium', LaunchConfig.from_settings(settings))
    try:
        ctx.page.goto(settings.base_url)
    finally:
        ctx.close()
    manager.shutdown()
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable

from playwright.sync_api import Browser, BrowserContext, Page, Playwright, sync_playwright

from ..observability.logging import get_logger
from ..settings import BROWSER_FAMILIES, HarnessSettings

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class VideoSpec:
    """Where and at what size to record scenario videos."""

    dir: Path
    width: int = 1920
    height: int = 1080


@dataclass(frozen=True, slots=True)
class LaunchConfig:
    """Browser launch and context options for one scenario."""

    headless: bool = True
    args: tuple[str, ...] = ()
    record_video: VideoSpec | None = None
    viewport_width: int = 1536
    viewport_height: int = 960
    action_timeout_ms: int = 30_000
    trace: bool = True

    @classmethod
    def from_settings(cls, settings: HarnessSettings) -> LaunchConfig:
        video = None
        if settings.record_video:
            video = VideoSpec(
                dir=settings.videos_dir.resolve(),
                width=settings.video_width,
                height=settings.video_height,
            )
        return cls(
            headless=settings.headless,
            args=settings.launch_args,
            record_video=video,
            viewport_width=settings.viewport_width,
            viewport_height=settings.viewport_height,
            action_timeout_ms=settings.action_timeout_ms,
            trace=settings.trace,
        )


@dataclass(slots=True)
class ScenarioContext:
    """Browser resources owned by a single in-flight scenario.

    Ownership is strict: the page belongs to the context, which belongs
    to the browser. :meth:`close` releases them in that order.
    """

    scenario_name: str
    browser: Browser
    context: BrowserContext
    page: Page
    video_enabled: bool = False
    tracing_active: bool = False
    closed: bool = False

    def close(self) -> None:
        """Close page, then context, then browser.

        Each release is attempted even if an earlier one fails; errors
        (typically "already closed") are logged and swallowed.
        """
        if self.closed:
            return
        self.closed = True
        for label, resource in (
            ('page', self.page),
            ('context', self.context),
            ('browser', self.browser),
        ):
            _close_quietly(label, resource)
        logger.info('browser_session_closed', scenario=self.scenario_name)


class BrowserSessionManager:
    """Open :class:`ScenarioContext` objects on a lazily started driver.

    Args:
        ci: When True every browser is launched headless regardless of
            the caller's preference.
        driver_factory: Returns a Playwright context manager; defaults to
            ``sync_playwright`` (replaced in tests).
    """

    def __init__(
        self,
        *,
        ci: bool = False,
        driver_factory: Callable[[], Any] = sync_playwright,
    ) -> None:
        self._ci = ci
        self._driver_factory = driver_factory
        self._playwright: Playwright | None = None

    @property
    def started(self) -> bool:
        return self._playwright is not None

    def open(
        self,
        scenario_name: str,
        browser_family: str,
        config: LaunchConfig,
    ) -> ScenarioContext:
        """Launch a browser, context and page for one scenario.

        Raises:
            ValueError: If *browser_family* is not a Playwright browser.
            playwright.sync_api.Error: If the launch fails. Nothing is
                retried; anything already opened is closed first.
        """
        if browser_family not in BROWSER_FAMILIES:
            raise ValueError(
                f'Unknown browser family {browser_family!r}; '
                f'expected one of {", ".join(BROWSER_FAMILIES)}'
            )

        headless = True if self._ci else config.headless
        if config.record_video is not None:
            config.record_video.dir.mkdir(parents=True, exist_ok=True)

        browser_type = getattr(self._driver(), browser_family)
        logger.info(
            'browser_launching',
            browser=browser_family,
            headless=headless,
            ci=self._ci,
        )
        browser = browser_type.launch(headless=headless, args=list(config.args))

        opened: list[tuple[str, Any]] = [('browser', browser)]
        try:
            context = browser.new_context(**_context_options(config))
            opened.append(('context', context))
            page = context.new_page()
            opened.append(('page', page))
            page.set_default_timeout(config.action_timeout_ms)

            session = ScenarioContext(
                scenario_name=scenario_name,
                browser=browser,
                context=context,
                page=page,
                video_enabled=config.record_video is not None,
            )
            if config.trace:
                context.tracing.start(screenshots=True, snapshots=True)
                session.tracing_active = True
        except Exception:
            logger.exception('browser_session_setup_failed', browser=browser_family)
            for label, resource in reversed(opened):
                _close_quietly(label, resource)
            raise

        logger.info(
            'browser_session_opened',
            browser=browser_family,
            video=session.video_enabled,
            tracing=session.tracing_active,
        )
        return session

    def shutdown(self) -> None:
        """Stop the shared Playwright driver if it was started."""
        if self._playwright is None:
            return
        playwright, self._playwright = self._playwright, None
        try:
            playwright.stop()
        except Exception:
            logger.warning('playwright_stop_failed', exc_info=True)

    def _driver(self) -> Playwright:
        if self._playwright is None:
            self._playwright = self._driver_factory().start()
        return self._playwright


# ── Helpers ────────────────────────────────────────────────────────


def _context_options(config: LaunchConfig) -> dict[str, Any]:
    options: dict[str, Any] = {
        'viewport': {
            'width': config.viewport_width,
            'height': config.viewport_height,
        },
    }
    if config.record_video is not None:
        options['record_video_dir'] = str(config.record_video.dir)
        options['record_video_size'] = {
            'width': config.record_video.width,
            'height': config.record_video.height,
        }
    return options


def _close_quietly(label: str, resource: Any) -> None:
    try:
        resource.close()
    except Exception as exc:
        logger.warning('browser_resource_close_failed', resource=label, error=str(exc))
