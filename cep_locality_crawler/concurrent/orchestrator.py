"""
Crawl orchestrator: fans a batch of UFs out to region sessions.
"""

import time
from concurrent.futures import ThreadPoolExecutor, Future, wait, FIRST_COMPLETED
from typing import Dict, List, Optional, Sequence

from cep_locality_crawler.concurrent.cancellation import CancellationToken
from cep_locality_crawler.config import CrawlerConfig, BrowserConfig
from cep_locality_crawler.crawlers.extractor import LocalityTableExtractor
from cep_locality_crawler.crawlers.session import RegionSession, SessionOutcome
from cep_locality_crawler.data.models import CrawlBatch, RegionResult
from cep_locality_crawler.data.regions import validate_region
from cep_locality_crawler.utils.errors import TooManyTargetsError, DeadlineExceededError
from cep_locality_crawler.utils.logging import get_business_logger


logger = get_business_logger('orchestrator')


class CrawlOrchestrator:
    """
    Runs one region session per requested UF and assembles the batch.

    The batch is all-or-nothing: the first session error (or the deadline)
    cancels every other session and is raised to the caller.
    """

    def __init__(self, browser_pool, config: Optional[CrawlerConfig] = None,
                 browser_config: Optional[BrowserConfig] = None,
                 extractor: Optional[LocalityTableExtractor] = None):
        """
        Args:
            browser_pool: Pool handing out exclusive pages (``acquire(token)``)
            config: Crawler settings
            browser_config: Browser settings (page timeout)
            extractor: Locality extractor shared by the sessions
        """
        self.browser_pool = browser_pool
        self.config = config or CrawlerConfig()
        self.browser_config = browser_config or BrowserConfig()
        self.extractor = extractor or LocalityTableExtractor()

    def prepare(self, codes: Sequence[str]) -> List[str]:
        """
        Check the batch size and validate every code before any work starts.

        Raises:
            TooManyTargetsError: If more codes than allowed were given
            InvalidRegionError: If any trimmed code is not a known UF
        """
        if len(codes) > self.config.max_batch_size:
            raise TooManyTargetsError(len(codes), self.config.max_batch_size)
        return [validate_region(code) for code in codes]

    def crawl(self, codes: Sequence[str], token: Optional[CancellationToken] = None) -> CrawlBatch:
        """
        Crawl every requested region.

        Args:
            codes: Raw region codes, possibly padded with whitespace
            token: Externally owned cancellation scope; one with the
                configured deadline is created when omitted

        Returns:
            Batch with one result per code, in input order
        """
        regions = self.prepare(codes)
        token = token or CancellationToken(self.config.deadline_seconds)
        if not regions:
            return CrawlBatch()

        started = time.monotonic()
        logger.info(f"Starting batch for {', '.join(regions)}")

        results: List[Optional[RegionResult]] = [None] * len(regions)
        executor = ThreadPoolExecutor(
            max_workers=min(self.config.pool_size, len(regions)),
            thread_name_prefix="region-session"
        )
        futures: Dict[Future, int] = {}
        try:
            for index, region in enumerate(regions):
                session = self._create_session(region, token)
                futures[executor.submit(session.run)] = index

            pending = set(futures)
            while pending:
                done, pending = wait(pending, timeout=token.remaining(), return_when=FIRST_COMPLETED)
                if not done:
                    token.raise_if_cancelled()
                    raise DeadlineExceededError(
                        f"Crawl deadline of {self.config.deadline_seconds}s exceeded",
                        {"deadline_seconds": self.config.deadline_seconds,
                         "pending": [regions[futures[f]] for f in pending]}
                    )
                for future in done:
                    outcome: SessionOutcome = future.result()
                    if outcome.error is not None:
                        raise outcome.error
                    results[futures[future]] = outcome.result

        except BaseException as e:
            if token.cancel(e):
                logger.warning(f"Batch cancelled: {type(e).__name__}: {e}")
            self._drain(futures)
            raise

        finally:
            executor.shutdown(wait=False, cancel_futures=True)

        logger.info(
            f"Batch finished in {time.monotonic() - started:.2f}s: "
            f"{sum(len(r.localities) for r in results)} localities"
        )
        return CrawlBatch(results=results)

    def _create_session(self, region: str, token: CancellationToken) -> RegionSession:
        return RegionSession(
            region=region,
            browser_pool=self.browser_pool,
            token=token,
            config=self.config,
            extractor=self.extractor,
            page_timeout_seconds=self.browser_config.page_timeout_ms / 1000
        )

    def _drain(self, futures: Dict[Future, int]) -> None:
        """Give cancelled sessions a grace period to release their browsers."""
        running = [f for f in futures if not f.cancel()]
        if not running:
            return
        _, still_running = wait(running, timeout=self.config.cancel_grace_seconds)
        if still_running:
            logger.warning(
                f"{len(still_running)} sessions still running after "
                f"{self.config.cancel_grace_seconds}s grace period"
            )
