"""Template page object.

Page objects keep selectors in one place and expose intent-level
methods; interaction details come from :class:`PageUtils`.
"""

from __future__ import annotations

from playwright.sync_api import Page

from ..browser.page_utils import PageUtils


class ExamplePage:
    example_button = '#example-button'
    example_input = '#example-input'
    submit_button = '#submit-button'
    result_element = '#result'
    success_message = '#success-message'
    message_element = '#message'

    def __init__(self, page: Page, *, timeout_ms: int | None = None) -> None:
        self.page = page
        if timeout_ms is None:
            self.utils = PageUtils(page)
        else:
            self.utils = PageUtils(page, timeout_ms=timeout_ms)

    def navigate(self, url: str) -> None:
        self.utils.navigate_to(url)

    def click_example_button(self) -> None:
        self.utils.click(self.example_button)

    def fill_example_input(self, value: str) -> None:
        self.utils.fill_textbox(self.example_input, value)

    def click_submit_button(self) -> None:
        self.utils.click(self.submit_button)

    def get_result_text(self) -> str | None:
        return self.utils.get_text(self.result_element)

    def get_success_message(self) -> str | None:
        return self.utils.get_text(self.success_message)

    def get_message_text(self) -> str | None:
        return self.utils.get_text(self.message_element)

    def verify_success(self, expected: str = 'Success') -> None:
        self.utils.verify_element_contains_text(self.success_message, expected)
