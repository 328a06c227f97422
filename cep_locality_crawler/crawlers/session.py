"""
Per-region crawl session.

A session drives one browser page through the search form for a single UF:

    INIT -> FORM_READY -> FORM_SUBMITTED -> PAGE_EXTRACTED
         -> HAS_NEXT_PAGE -> FORM_SUBMITTED ... -> DONE

Any error moves it to FAILED. The localities collected before the failure
are still returned alongside the error.
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from cep_locality_crawler.concurrent.cancellation import CancellationToken
from cep_locality_crawler.config import CrawlerConfig
from cep_locality_crawler.crawlers.extractor import LocalityTableExtractor
from cep_locality_crawler.crawlers.page_driver import PageDriver
from cep_locality_crawler.crawlers.pagination import PaginationController, RESULT_PANEL_SELECTOR
from cep_locality_crawler.data.models import RegionResult
from cep_locality_crawler.utils.errors import (
    LocalityCrawlerError,
    CrawlerError,
    PaginationLimitExceededError
)
from cep_locality_crawler.utils.logging import get_business_logger


logger = get_business_logger('crawler_session')

REGION_SELECT_SELECTOR = '#Geral select'
SEARCH_BUTTON_SELECTOR = '#Geral input[value="Buscar"]'


class SessionState(Enum):
    """Region session states."""
    INIT = "init"
    FORM_READY = "form_ready"
    FORM_SUBMITTED = "form_submitted"
    PAGE_EXTRACTED = "page_extracted"
    HAS_NEXT_PAGE = "has_next_page"
    DONE = "done"
    FAILED = "failed"


@dataclass
class SessionOutcome:
    """What a finished session hands back to the orchestrator."""
    result: RegionResult
    state: SessionState
    pages: int = 0
    error: Optional[LocalityCrawlerError] = None
    duration_seconds: float = 0.0

    @property
    def success(self) -> bool:
        return self.error is None


@dataclass
class RegionSession:
    """State machine crawling every result page for one region."""
    region: str
    browser_pool: object
    token: CancellationToken
    config: CrawlerConfig = field(default_factory=CrawlerConfig)
    extractor: LocalityTableExtractor = field(default_factory=LocalityTableExtractor)
    page_timeout_seconds: float = 30.0
    state: SessionState = SessionState.INIT
    history: List[SessionState] = field(default_factory=lambda: [SessionState.INIT])

    def _transition(self, state: SessionState) -> None:
        logger.debug(f"[{self.region}] {self.state.value} -> {state.value}")
        self.state = state
        self.history.append(state)

    def run(self) -> SessionOutcome:
        """
        Crawl the region; never raises for crawl failures.

        Returns:
            Outcome with the (possibly partial) result and the error, if any
        """
        started = time.monotonic()
        result = RegionResult(uf=self.region)
        pages = 0

        logger.info(f"Crawler execution for UF: {self.region}")
        try:
            with self.browser_pool.acquire(self.token) as page:
                driver = PageDriver(page, self.token, self.config, self.page_timeout_seconds)
                paginator = PaginationController(driver)

                self._open_form(driver)
                markup = self._submit_search(driver)
                is_next_page = False

                while True:
                    result.extend(self.extractor.extract(markup, is_next_page=is_next_page))
                    pages += 1
                    self._transition(SessionState.PAGE_EXTRACTED)

                    if not self.extractor.has_next_page(markup):
                        break

                    self._transition(SessionState.HAS_NEXT_PAGE)
                    if pages >= self.config.max_pages:
                        raise PaginationLimitExceededError(
                            f"UF {self.region} still has a next page after {pages} pages",
                            {"region": self.region, "max_pages": self.config.max_pages}
                        )

                    markup = paginator.advance()
                    is_next_page = True
                    self._transition(SessionState.FORM_SUBMITTED)

            self._transition(SessionState.DONE)
            error = None
            logger.info(f"UF {self.region} done: {len(result.localities)} localities in {pages} pages")

        except LocalityCrawlerError as e:
            self._transition(SessionState.FAILED)
            error = e
            logger.warning(f"UF {self.region} failed in {self.history[-2].value}: {e}")

        except Exception as e:
            self._transition(SessionState.FAILED)
            error = CrawlerError(
                f"Unexpected failure crawling UF {self.region}",
                {"region": self.region, "error": str(e), "error_type": type(e).__name__}
            )
            logger.error(f"UF {self.region} failed unexpectedly: {e}")

        return SessionOutcome(
            result=result,
            state=self.state,
            pages=pages,
            error=error,
            duration_seconds=time.monotonic() - started
        )

    def _open_form(self, driver: PageDriver) -> None:
        driver.goto(self.config.target_url)
        driver.wait_for(REGION_SELECT_SELECTOR)
        self._transition(SessionState.FORM_READY)

    def _submit_search(self, driver: PageDriver) -> str:
        driver.select_option(REGION_SELECT_SELECTOR, self.region)
        driver.wait_for(f'{REGION_SELECT_SELECTOR} option[value="{self.region}"]:checked', state='attached')
        driver.click(SEARCH_BUTTON_SELECTOR)
        driver.settle()
        markup = driver.outer_html(RESULT_PANEL_SELECTOR)
        self._transition(SessionState.FORM_SUBMITTED)
        return markup
