import logging
from typing import Any, Optional

from bs4 import BeautifulSoup
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from .errors import NavigationFailure

log = logging.getLogger(__name__)

SCROLL_TO_BOTTOM = '() => window.scrollTo(0, document.body.scrollHeight)'


class BrowserPage:
    """The handful of page operations the harvester needs.

    Wraps a Playwright async page so the engine can be driven by a fake in
    tests. Playwright errors come out as NavigationFailure, except for
    selector waits, which report a miss so callers can try the next pattern.
    """

    def __init__(self, page: Page):
        self._page = page

    @property
    def url(self) -> str:
        return self._page.url

    async def apply_credentials(self, bundle) -> None:
        """load session cookies and user agent before any navigation"""
        try:
            if bundle.cookies:
                await self._page.context.add_cookies(bundle.cookies)
            if bundle.user_agent:
                await self._page.set_extra_http_headers({'User-Agent': bundle.user_agent})
        except PlaywrightError as e:
            raise NavigationFailure(f'could not apply credentials to page: {e}') from e

    async def navigate(self, url: str, wait_until: str = 'domcontentloaded', timeout: int = 15000) -> None:
        try:
            await self._page.goto(url, wait_until=wait_until, timeout=timeout)
        except PlaywrightError as e:
            raise NavigationFailure(f'failed to load {url}: {e}') from e

    async def wait_for_selector_pattern(self, pattern: str, timeout: int = 5000) -> bool:
        try:
            await self._page.wait_for_selector(pattern, timeout=timeout)
        except PlaywrightTimeoutError:
            return False
        except PlaywrightError as e:
            raise NavigationFailure(f'waiting for {pattern!r} failed: {e}') from e
        return True

    async def evaluate(self, expression: str, arg: Optional[Any] = None) -> Any:
        try:
            return await self._page.evaluate(expression, arg)
        except PlaywrightError as e:
            raise NavigationFailure(f'in-page evaluation failed: {e}') from e

    async def scroll_to_bottom(self) -> None:
        await self.evaluate(SCROLL_TO_BOTTOM)

    async def wait_for(self, ms: int) -> None:
        await self._page.wait_for_timeout(ms)

    async def snapshot(self) -> BeautifulSoup:
        """parse the currently rendered document"""
        try:
            html = await self._page.content()
        except PlaywrightError as e:
            raise NavigationFailure(f'could not read page content: {e}') from e
        return BeautifulSoup(html, 'lxml')
