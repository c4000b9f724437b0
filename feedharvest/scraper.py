import logging
from typing import List, Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright

from .config import Config
from .errors import AuthExpired, NavigationFailure
from .filters import PostFilter
from .locator import CONTAINER_PATTERNS, has_empty_state, probe
from .models import ContentRecord, FilterCriteria
from .page import BrowserPage
from .pagination import STOP_EMPTY, PaginationController
from .query import build_target
from .session import AuthBundle, SessionStore

log = logging.getLogger(__name__)

LOGIN_PATHS = ('/login', '/i/flow/login')


class Harvester:
    """Single entry point: criteria in, ordered and filtered records out."""

    def __init__(self, config: Optional[Config] = None, session_store: Optional[SessionStore] = None):
        self.config = config or Config()
        self.session_store = session_store or SessionStore(
            self.config.auth_file, self.config.session_max_age_days,
        )
        self.stop_reason: Optional[str] = None

    async def harvest(self, criteria: FilterCriteria) -> List[ContentRecord]:
        # credentials are checked before a browser is even launched
        bundle = await self.session_store.require()

        async with async_playwright() as p:
            browser_type = p.firefox if self.config.use_firefox else p.chromium
            try:
                browser = await browser_type.launch(headless=self.config.headless)
            except PlaywrightError as e:
                raise NavigationFailure(f'could not launch browser: {e}') from e
            try:
                context = await browser.new_context(user_agent=bundle.user_agent or None)
                page = await context.new_page()
                return await self.harvest_on_page(BrowserPage(page), criteria, bundle)
            except PlaywrightError as e:
                raise NavigationFailure(f'scraping failed: {e}') from e
            finally:
                await browser.close()

    async def harvest_on_page(self, page, criteria: FilterCriteria, bundle: AuthBundle) -> List[ContentRecord]:
        """run one harvest against an already open page"""
        config = self.config
        await self.session_store.apply(page, bundle)

        target = build_target(criteria, config.base_url, config.search_mode)
        log.info(f"navigating to {target.kind}: {target.url}")
        if target.query:
            log.debug(f"search query: {target.query}")

        await page.navigate(target.url, wait_until='domcontentloaded', timeout=config.navigation_timeout)
        if any(path in page.url for path in LOGIN_PATHS):
            raise AuthExpired(f'redirected to login page ({page.url}); saved session was rejected')

        # let the first batch of posts render
        await page.wait_for(config.initial_wait)

        if log.isEnabledFor(logging.DEBUG):
            log.debug(f"selector probe: {probe(await page.snapshot())}")

        if not await self.wait_for_records(page):
            if has_empty_state(await page.snapshot()):
                log.info("feed is empty, nothing to harvest")
                self.stop_reason = STOP_EMPTY
                return []
            raise NavigationFailure(f'no posts rendered at {target.url}')

        controller = PaginationController(page, settle_ms=config.scroll_pause)
        records = await controller.run(criteria.limit)
        self.stop_reason = controller.session.stop_reason

        kept = PostFilter(criteria).apply(records)
        log.info(f"final: {len(kept)}/{len(records)} posts matched filters")
        return kept

    async def wait_for_records(self, page) -> bool:
        for pattern in CONTAINER_PATTERNS:
            if await page.wait_for_selector_pattern(pattern, timeout=self.config.selector_timeout):
                return True
            log.debug(f"no match for {pattern!r}, trying next pattern")
        return False
