"""
Pool of exclusive Playwright browser pages, one per running region session.
"""

import threading
from contextlib import contextmanager
from typing import Iterator, Optional

from playwright.sync_api import sync_playwright, Browser, Page, Playwright, Error as PlaywrightError

from cep_locality_crawler.concurrent.cancellation import CancellationToken
from cep_locality_crawler.concurrent.thread_safe import ThreadSafeCounter, ThreadSafeGauge
from cep_locality_crawler.config import BrowserConfig
from cep_locality_crawler.utils.errors import CrawlerError
from cep_locality_crawler.utils.logging import get_business_logger


logger = get_business_logger('crawler_browser')


class BrowserPool:
    """
    Hands out browser pages to region sessions.

    The sync Playwright API is bound to the thread that started it, so each
    acquisition starts its own driver and browser inside the calling worker
    thread and shuts them down when the session leaves the ``with`` block.
    The semaphore caps how many of those browsers exist at once, across
    every batch that shares the pool.
    """

    def __init__(self, config: Optional[BrowserConfig] = None, pool_size: int = 5,
                 poll_interval: float = 0.5):
        self.config = config or BrowserConfig()
        self.pool_size = pool_size
        self.poll_interval = poll_interval

        self._slots = threading.BoundedSemaphore(pool_size)
        self.acquired = ThreadSafeCounter()
        self.active = ThreadSafeGauge()

    def _wait_for_slot(self, token: CancellationToken) -> None:
        while True:
            token.raise_if_cancelled()
            if self._slots.acquire(timeout=token.clamp(self.poll_interval)):
                return

    @contextmanager
    def acquire(self, token: CancellationToken) -> Iterator[Page]:
        """
        Reserve a slot and yield a fresh page; everything is closed on exit.

        Raises:
            CrawlCancelledError / DeadlineExceededError: If cancelled while waiting
            CrawlerError: If the browser cannot be started
        """
        self._wait_for_slot(token)
        self.acquired.increment()
        self.active.increment()
        try:
            with sync_playwright() as playwright:
                browser = self._launch(playwright)
                try:
                    yield self._new_page(browser)
                finally:
                    browser.close()
        finally:
            self.active.decrement()
            self._slots.release()
            logger.debug(f"Browser slot released ({self.active.get_value()} active)")

    def _launch(self, playwright: Playwright) -> Browser:
        try:
            browser_type = getattr(playwright, self.config.browser_type)
            if self.config.browser_type == 'chromium':
                return browser_type.launch(
                    headless=self.config.headless,
                    args=['--disable-dev-shm-usage', '--no-sandbox']
                )
            return browser_type.launch(headless=self.config.headless)
        except PlaywrightError as e:
            raise CrawlerError(
                "Failed to initialize Playwright browser",
                {"error": str(e), "browser_type": self.config.browser_type}
            )

    def _new_page(self, browser: Browser) -> Page:
        try:
            context_options = {
                "viewport": {"width": self.config.viewport_width, "height": self.config.viewport_height},
                "locale": self.config.locale,
            }
            if self.config.user_agent:
                context_options["user_agent"] = self.config.user_agent

            context = browser.new_context(**context_options)
            context.set_default_timeout(self.config.page_timeout_ms)
            return context.new_page()
        except PlaywrightError as e:
            raise CrawlerError(
                "Failed to open browser page",
                {"error": str(e), "browser_type": self.config.browser_type}
            )

    def get_stats(self) -> dict:
        return {
            "pool_size": self.pool_size,
            "acquired": self.acquired.get_value(),
            "active": self.active.get_value(),
            "peak_active": self.active.get_peak(),
        }
