"""
Property-based tests for the per-region session state machine.
"""

import pytest
from hypothesis import given, strategies as st

from cep_locality_crawler.concurrent.cancellation import CancellationToken
from cep_locality_crawler.crawlers.session import (
    RegionSession,
    SessionState,
    REGION_SELECT_SELECTOR,
    SEARCH_BUTTON_SELECTOR
)
from cep_locality_crawler.utils.errors import (
    NavigationError,
    SelectorTimeoutError,
    PaginationLimitExceededError,
    CrawlerError,
    CrawlCancelledError
)

from fakes import FakeSite, FakeBrowserPool, result_panel, paged_site_pages, fast_config


def run_session(site, region="CE", token=None, page_timeout_seconds=30.0, **config_overrides):
    pool = FakeBrowserPool(site)
    session = RegionSession(
        region=region,
        browser_pool=pool,
        token=token or CancellationToken(10.0),
        config=fast_config(**config_overrides),
        page_timeout_seconds=page_timeout_seconds
    )
    return session, pool, session.run()


class TestRegionSession:
    """Region session happy paths."""

    def test_single_page_session(self):
        site = FakeSite({"CE": [result_panel([
            ("Fortaleza", "60000-001 a 61599-999"),
            ("Caucaia", "61600-001 a 61699-999"),
            ("", "ignored"),
            ("Aquiraz", "61700-000 a 61709-999"),
        ])]})

        session, pool, outcome = run_session(site)

        assert outcome.success
        assert outcome.state == SessionState.DONE
        assert outcome.pages == 1
        assert outcome.result.uf == "CE"
        assert [l.name for l in outcome.result.localities] == ["Fortaleza", "Caucaia", "Aquiraz"]
        assert site.next_clicks.get_value() == 0
        assert session.history == [
            SessionState.INIT,
            SessionState.FORM_READY,
            SessionState.FORM_SUBMITTED,
            SessionState.PAGE_EXTRACTED,
            SessionState.DONE,
        ]
        assert pool.released.get_value() == 1

    def test_form_interaction_sequence(self):
        session, pool, outcome = run_session(FakeSite(), region="PB")
        page = pool.pages[0]

        assert page.calls[0] == ('goto', session.config.target_url)
        assert ('wait', REGION_SELECT_SELECTOR) in page.calls
        assert ('select', 'PB') in page.calls
        assert ('wait', f'{REGION_SELECT_SELECTOR} option[value="PB"]:checked') in page.calls
        assert ('click', SEARCH_BUTTON_SELECTOR) in page.calls
        assert page.calls.index(('select', 'PB')) < page.calls.index(('click', SEARCH_BUTTON_SELECTOR))

    @given(rows_per_page=st.lists(st.integers(min_value=0, max_value=6), min_size=1, max_size=6))
    def test_pagination_collects_every_page_in_order(self, rows_per_page):
        site = FakeSite({"SE": paged_site_pages("SE", rows_per_page)})

        session, pool, outcome = run_session(site, region="SE")

        expected = [f"SE {page}-{row}" for page, count in enumerate(rows_per_page) for row in range(count)]
        assert outcome.success
        assert [l.name for l in outcome.result.localities] == expected
        assert outcome.pages == len(rows_per_page)
        assert site.next_clicks.get_value() == len(rows_per_page) - 1
        assert site.searches == ["SE"]
        assert session.history.count(SessionState.HAS_NEXT_PAGE) == len(rows_per_page) - 1

    def test_empty_region_succeeds_with_no_localities(self):
        site = FakeSite({"RR": ['<div class="ctrlcontent"><p>DADOS NAO ENCONTRADOS</p></div>']})

        _, _, outcome = run_session(site, region="RR")

        assert outcome.success
        assert outcome.result.is_empty


class TestRegionSessionFailures:
    """Failures end the session with the partial result and release the page."""

    def test_navigation_failure(self):
        site = FakeSite()
        site.navigation_error = "net::ERR_NAME_NOT_RESOLVED"

        session, pool, outcome = run_session(site)

        assert isinstance(outcome.error, NavigationError)
        assert outcome.state == SessionState.FAILED
        assert session.history[-2] == SessionState.INIT
        assert outcome.result.localities == []
        assert pool.released.get_value() == 1

    def test_form_never_ready_times_out(self):
        site = FakeSite()
        site.missing_selectors.add(REGION_SELECT_SELECTOR)

        _, pool, outcome = run_session(site, page_timeout_seconds=0.2)

        assert isinstance(outcome.error, SelectorTimeoutError)
        assert outcome.error.details["selector"] == REGION_SELECT_SELECTOR
        assert pool.released.get_value() == 1

    def test_search_click_failure_is_crawler_error(self):
        site = FakeSite()
        site.failing_regions.add("CE")

        _, pool, outcome = run_session(site)

        assert isinstance(outcome.error, CrawlerError)
        assert pool.pages[0].closed

    def test_pagination_limit(self):
        endless = result_panel([("Sempre", "00000-000")], first_page=False, has_next=True)
        first = result_panel([("Primeira", "00000-000")], first_page=True, has_next=True)
        site = FakeSite({"MT": [first, endless]})

        session, pool, outcome = run_session(site, region="MT", max_pages=4)

        assert isinstance(outcome.error, PaginationLimitExceededError)
        assert outcome.pages == 4
        assert site.next_clicks.get_value() == 3
        assert [l.name for l in outcome.result.localities] == ["Primeira", "Sempre", "Sempre", "Sempre"]
        assert session.history[-2] == SessionState.HAS_NEXT_PAGE
        assert pool.released.get_value() == 1

    def test_max_pages_reached_exactly_is_not_an_error(self):
        site = FakeSite({"AC": paged_site_pages("AC", [2, 2, 2])})

        _, _, outcome = run_session(site, region="AC", max_pages=3)

        assert outcome.success
        assert outcome.pages == 3

    def test_failure_on_next_page_keeps_partial_result(self):
        site = FakeSite({"AL": paged_site_pages("AL", [2, 2])})
        site.missing_selectors.add('table[class*="tmptabela"]')

        _, _, outcome = run_session(site, region="AL", page_timeout_seconds=0.2)

        assert isinstance(outcome.error, SelectorTimeoutError)
        assert [l.name for l in outcome.result.localities] == ["AL 0-0", "AL 0-1"]

    def test_cancelled_token_stops_before_browser(self):
        token = CancellationToken(10.0)
        token.cancel()

        _, pool, outcome = run_session(FakeSite(), token=token)

        assert isinstance(outcome.error, CrawlCancelledError)
        assert pool.acquired.get_value() == 0

    @pytest.mark.parametrize("settle", [0.0, 0.05])
    def test_settle_delay_is_honoured(self, settle):
        site = FakeSite({"PI": paged_site_pages("PI", [1, 1])})

        _, _, outcome = run_session(site, region="PI", settle_delay_seconds=settle)

        assert outcome.success
        assert outcome.duration_seconds >= settle
