"""
Cancellation-aware wrapper around the Playwright page calls the crawler makes.

Every wait is clamped to the batch deadline and split into slices of
``poll_interval`` seconds so a cancelled batch is noticed within one slice.
Playwright failures are translated into crawler errors here.
"""

import time
from typing import Optional

from playwright.sync_api import Page, Error as PlaywrightError, TimeoutError as PlaywrightTimeoutError

from cep_locality_crawler.concurrent.cancellation import CancellationToken
from cep_locality_crawler.config import CrawlerConfig
from cep_locality_crawler.utils.errors import NavigationError, SelectorTimeoutError, CrawlerError


class PageDriver:
    """Performs page actions for one session, observing its cancellation token."""

    def __init__(self, page: Page, token: CancellationToken, config: CrawlerConfig,
                 timeout_seconds: float = 30.0):
        """
        Args:
            page: Page owned exclusively by the calling session
            token: Batch cancellation scope
            config: Crawler settings (settle delay, poll interval)
            timeout_seconds: Upper bound for a single navigation or element wait
        """
        self.page = page
        self.token = token
        self.config = config
        self.timeout_seconds = timeout_seconds

    @staticmethod
    def _timeout_ms(seconds: float) -> float:
        # Playwright treats 0 as "no timeout"
        return max(seconds, 0.001) * 1000

    def _action_timeout_ms(self) -> float:
        return self._timeout_ms(self.token.clamp(self.timeout_seconds))

    def goto(self, url: str) -> None:
        self.token.raise_if_cancelled()
        timeout = self.token.clamp(self.timeout_seconds)
        try:
            self.page.goto(url, wait_until='domcontentloaded', timeout=self._timeout_ms(timeout))
        except PlaywrightTimeoutError as e:
            self.token.raise_if_cancelled()
            raise NavigationError(f"Timed out loading {url}", {"url": url, "error": str(e)})
        except PlaywrightError as e:
            raise NavigationError(f"Failed to load {url}", {"url": url, "error": str(e)})
        self.token.raise_if_cancelled()

    def wait_for(self, selector: str, state: str = 'visible',
                 timeout_seconds: Optional[float] = None) -> None:
        """
        Wait until ``selector`` reaches ``state``.

        Raises:
            SelectorTimeoutError: If the element never gets there in time
        """
        timeout_seconds = timeout_seconds if timeout_seconds is not None else self.timeout_seconds
        started = time.monotonic()

        while True:
            self.token.raise_if_cancelled()
            left = timeout_seconds - (time.monotonic() - started)
            if left <= 0:
                raise SelectorTimeoutError(
                    f"Timed out waiting for {selector} to be {state}",
                    {"selector": selector, "state": state, "timeout_seconds": timeout_seconds}
                )
            slice_seconds = self.token.clamp(min(self.config.poll_interval_seconds, left))
            try:
                self.page.wait_for_selector(selector, state=state, timeout=self._timeout_ms(slice_seconds))
                return
            except PlaywrightTimeoutError:
                continue
            except PlaywrightError as e:
                raise CrawlerError(f"Failed waiting for {selector}", {"selector": selector, "error": str(e)})

    def select_option(self, selector: str, value: str) -> None:
        self.token.raise_if_cancelled()
        try:
            self.page.select_option(selector, value=value, timeout=self._action_timeout_ms())
        except PlaywrightTimeoutError as e:
            self.token.raise_if_cancelled()
            raise SelectorTimeoutError(f"Timed out selecting {value} in {selector}",
                                       {"selector": selector, "value": value, "error": str(e)})
        except PlaywrightError as e:
            raise CrawlerError(f"Failed to select {value} in {selector}",
                               {"selector": selector, "value": value, "error": str(e)})

    def click(self, selector: str) -> None:
        self.token.raise_if_cancelled()
        try:
            self.page.click(selector, timeout=self._action_timeout_ms())
        except PlaywrightTimeoutError as e:
            self.token.raise_if_cancelled()
            raise SelectorTimeoutError(f"Timed out clicking {selector}", {"selector": selector, "error": str(e)})
        except PlaywrightError as e:
            raise CrawlerError(f"Failed to click {selector}", {"selector": selector, "error": str(e)})

    def settle(self) -> None:
        """Fixed wait after an action whose effect the page does not signal."""
        self.token.sleep(self.config.settle_delay_seconds)

    def outer_html(self, selector: str) -> str:
        self.token.raise_if_cancelled()
        try:
            return self.page.eval_on_selector(selector, "element => element.outerHTML")
        except PlaywrightError as e:
            raise CrawlerError(f"Failed to capture {selector}", {"selector": selector, "error": str(e)})
