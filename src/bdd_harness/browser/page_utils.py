"""Common page interactions for step definitions and page objects.

Every interaction first waits for its element to be visible and enabled.
Waits that depend on something the page will do (a dialog, a request)
take the action that provokes it as ``trigger`` and block until the
event arrives or the timeout expires.

Usage::

    utils = PageUtils(world.page)
    utils.fill_textbox('#username', 'testuser')
    message = utils.handle_dialog(lambda: utils.click('#delete'), accept=True)
"""

from __future__ import annotations

import time
from pathlib import Path
from typing import Callable

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import Page, Request, Response, expect
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

from ..observability.logging import get_logger
from ..scenario import safe_artifact_name

logger = get_logger(__name__)

DEFAULT_TIMEOUT_MS = 10_000


class PageUtils:
    """Thin helpers over a Playwright :class:`Page`."""

    def __init__(self, page: Page, *, timeout_ms: int = DEFAULT_TIMEOUT_MS) -> None:
        self.page = page
        self.timeout_ms = timeout_ms

    def _timeout(self, timeout: int | None) -> int:
        return self.timeout_ms if timeout is None else timeout

    # ── Elements ───────────────────────────────────────────────────

    def wait_for_element(self, selector: str, timeout: int | None = None) -> None:
        """Wait until *selector* is visible, then require it to be enabled.

        Raises:
            playwright.sync_api.TimeoutError: If it never becomes visible.
            AssertionError: If it is visible but disabled.
        """
        self.page.wait_for_selector(selector, state='visible', timeout=self._timeout(timeout))
        if not self.page.is_enabled(selector):
            raise AssertionError(f'Element {selector} is not enabled')

    def fill_textbox(self, selector: str, value: str, timeout: int | None = None) -> None:
        self.wait_for_element(selector, timeout)
        self.page.fill(selector, value)

    def select_dropdown(self, selector: str, value: str, timeout: int | None = None) -> None:
        """Select *value* in a native ``<select>`` or a custom dropdown."""
        self.wait_for_element(selector, timeout)
        try:
            self.page.select_option(selector, value)
            return
        except PlaywrightError:
            logger.debug('native_select_failed', selector=selector)

        try:
            self.page.locator(selector).get_by_role('button').click()
            self.page.get_by_role('option', name=value, exact=True).click()
        except PlaywrightError:
            self.page.locator(f'{selector} option[value="{value}"]').click()

    def set_checkbox(self, selector: str, checked: bool = True, timeout: int | None = None) -> None:
        self.wait_for_element(selector, timeout)
        if checked:
            self.page.check(selector)
        else:
            self.page.uncheck(selector)

    def select_radio_button(self, selector: str, timeout: int | None = None) -> None:
        self.wait_for_element(selector, timeout)
        self.page.check(selector)

    def upload_file(self, selector: str, file_path: str | Path, timeout: int | None = None) -> None:
        self.wait_for_element(selector, timeout)
        self.page.set_input_files(selector, str(file_path))
        logger.info('file_uploaded', path=str(file_path))

    def click(self, selector: str, timeout: int | None = None) -> None:
        self.wait_for_element(selector, timeout)
        self.page.click(selector)

    def get_text(self, selector: str, timeout: int | None = None) -> str | None:
        self.wait_for_element(selector, timeout)
        return self.page.text_content(selector)

    def get_attribute(self, selector: str, name: str, timeout: int | None = None) -> str | None:
        self.wait_for_element(selector, timeout)
        return self.page.get_attribute(selector, name)

    def element_exists(self, selector: str, timeout: int = 5_000) -> bool:
        try:
            self.page.wait_for_selector(selector, timeout=timeout)
        except PlaywrightTimeoutError:
            return False
        return True

    def clear_input(self, selector: str, timeout: int | None = None) -> None:
        self.wait_for_element(selector, timeout)
        self.page.fill(selector, '')

    def type_text(
        self,
        selector: str,
        text: str,
        delay: float = 100,
        timeout: int | None = None,
    ) -> None:
        """Clear the field, then type *text* key by key."""
        self.wait_for_element(selector, timeout)
        self.page.fill(selector, '')
        self.page.locator(selector).press_sequentially(text, delay=delay)

    def scroll_to_element(self, selector: str) -> None:
        self.page.locator(selector).scroll_into_view_if_needed()

    # ── Assertions ─────────────────────────────────────────────────

    def verify_element_visible(self, selector: str, timeout: int | None = None) -> None:
        self.wait_for_element(selector, timeout)
        expect(self.page.locator(selector)).to_be_visible(timeout=self._timeout(timeout))

    def verify_element_contains_text(
        self,
        selector: str,
        expected_text: str,
        timeout: int | None = None,
    ) -> None:
        self.wait_for_element(selector, timeout)
        expect(self.page.locator(selector)).to_contain_text(
            expected_text, timeout=self._timeout(timeout),
        )

    # ── Navigation and waits ───────────────────────────────────────

    def wait_for_page_load(self) -> None:
        self.page.wait_for_load_state('networkidle')

    def navigate_to(self, url: str) -> None:
        self.page.goto(url)
        self.wait_for_page_load()

    def wait_for_text(self, text: str, timeout: int | None = None) -> None:
        self.page.wait_for_function(
            'text => document.body.innerText.includes(text)',
            arg=text,
            timeout=self._timeout(timeout),
        )

    def take_screenshot(self, name: str, directory: Path = Path('screenshots')) -> Path:
        """Save a full-page screenshot named after *name* and the current time."""
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / f'{safe_artifact_name(name)}_{int(time.time() * 1000)}.png'
        self.page.screenshot(path=str(path), full_page=True)
        return path

    def handle_dialog(
        self,
        trigger: Callable[[], object],
        *,
        accept: bool = True,
        prompt_text: str | None = None,
        timeout: int | None = None,
    ) -> str:
        """Run *trigger* and answer the dialog it opens.

        The handler is registered before *trigger* runs so the action is
        never stalled by an unanswered dialog. Returns the dialog message.

        Raises:
            playwright.sync_api.TimeoutError: If no dialog appears within
                the timeout.
        """
        messages: list[str] = []

        def _answer(dialog) -> None:
            messages.append(dialog.message)
            if not accept:
                dialog.dismiss()
            elif prompt_text is not None:
                dialog.accept(prompt_text)
            else:
                dialog.accept()

        self.page.once('dialog', _answer)
        try:
            trigger()
            if not messages:
                self.page.wait_for_event('dialog', timeout=self._timeout(timeout))
        finally:
            if not messages:
                self.page.remove_listener('dialog', _answer)
        return messages[0]

    def wait_for_request(
        self,
        url_pattern: str,
        trigger: Callable[[], object],
        timeout: int | None = None,
    ) -> Request:
        with self.page.expect_request(
            lambda request: url_pattern in request.url,
            timeout=self._timeout(timeout),
        ) as info:
            trigger()
        return info.value

    def wait_for_response(
        self,
        url_pattern: str,
        trigger: Callable[[], object],
        timeout: int | None = None,
    ) -> Response:
        with self.page.expect_response(
            lambda response: url_pattern in response.url,
            timeout=self._timeout(timeout),
        ) as info:
            trigger()
        return info.value
