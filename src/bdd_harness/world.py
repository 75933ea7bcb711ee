"""Per-scenario state handed to step definitions.

A new :class:`World` is built for every scenario by the ``world``
fixture. Browser scenarios carry a :class:`ScenarioContext`; scenarios
tagged ``@api`` do not, and asking them for a page is an error.

Usage::

    @when('I open the login page')
    def open_login(world):
        world.navigate('/login')
        world.page_utils.fill_textbox('#username', 'qa')
"""

from __future__ import annotations

from dataclasses import dataclass, field
from urllib.parse import urljoin

from playwright.sync_api import Page

from .api_client import ApiClient, ApiConfig
from .browser.page_utils import PageUtils
from .browser.session import ScenarioContext
from .errors import BrowserNotAvailableError
from .observability.logging import get_logger
from .reporting.attachments import CONTENT_TYPES, ArtifactKind, Attacher
from .scenario import ScenarioInfo
from .settings import HarnessSettings

logger = get_logger(__name__)


@dataclass(slots=True)
class World:
    """Settings, the scenario's browser session and an API client."""

    settings: HarnessSettings
    scenario: ScenarioInfo
    attacher: Attacher
    session: ScenarioContext | None = None
    data: dict = field(default_factory=dict)
    """Free-form storage for values shared between steps."""

    _api: ApiClient | None = None
    _page_utils: PageUtils | None = None

    @property
    def page(self) -> Page:
        if self.session is None:
            raise BrowserNotAvailableError(
                f'Scenario {self.scenario.name!r} runs without a browser'
            )
        return self.session.page

    @property
    def page_utils(self) -> PageUtils:
        if self._page_utils is None:
            self._page_utils = PageUtils(self.page)
        return self._page_utils

    @property
    def api(self) -> ApiClient:
        """API client against ``settings.base_url``, created on first use."""
        if self._api is None:
            self._api = ApiClient(ApiConfig(base_url=self.settings.base_url))
        return self._api

    def url_for(self, path_or_url: str) -> str:
        """Resolve *path_or_url* against ``settings.base_url``."""
        if '://' in path_or_url:
            return path_or_url
        return urljoin(self.settings.base_url.rstrip('/') + '/', path_or_url.lstrip('/'))

    def navigate(self, path_or_url: str = '') -> None:
        url = self.url_for(path_or_url)
        logger.info('navigating', url=url)
        self.page.goto(url)

    def attach_screenshot(self, name: str = 'screenshot') -> bytes:
        """Attach a screenshot of the current page to the report."""
        body = self.page.screenshot()
        content_type, extension = CONTENT_TYPES[ArtifactKind.SCREENSHOT]
        self.attacher.attach(body, name=name, content_type=content_type, extension=extension)
        return body

    def close(self) -> None:
        """Release the API client; the browser belongs to the lifecycle."""
        if self._api is not None:
            self._api.close()
            self._api = None
