"""
"Next page" traversal of the search result panel.
"""

from cep_locality_crawler.crawlers.extractor import NEXT_PAGE_SELECTOR, RESULT_TABLE_SELECTOR
from cep_locality_crawler.crawlers.page_driver import PageDriver


RESULT_PANEL_SELECTOR = 'div[class*="ctrlcontent"]'
NEXT_PAGE_BUTTON_SELECTOR = 'div[class*="ctrlcontent"] div[style="float:left"]:nth-of-type(2)'


class PaginationController:
    """Advances a session's result panel one page at a time."""

    def __init__(self, driver: PageDriver):
        self.driver = driver
        self.pages_advanced = 0

    def advance(self) -> str:
        """
        Click "next page" and return the new result panel markup.

        Raises:
            SelectorTimeoutError: If the control or the new table never shows up
        """
        self.driver.wait_for(NEXT_PAGE_SELECTOR)
        self.driver.click(NEXT_PAGE_BUTTON_SELECTOR)
        self.driver.settle()
        self.driver.wait_for(RESULT_TABLE_SELECTOR)
        markup = self.driver.outer_html(RESULT_PANEL_SELECTOR)
        self.pages_advanced += 1
        return markup
