"""
Locality table extraction from captured result-panel markup.
"""

from typing import List

from bs4 import BeautifulSoup

from cep_locality_crawler.data.models import Locality
from cep_locality_crawler.utils.errors import ExtractionError
from cep_locality_crawler.utils.logging import get_business_logger


logger = get_business_logger('crawler_session')

RESULT_TABLE_SELECTOR = 'table[class*="tmptabela"]'
NEXT_PAGE_SELECTOR = 'form[name="Proxima"]'

# The first results page carries an extra table ahead of the locality table.
FIRST_PAGE_TABLE_POSITION = 2
NEXT_PAGE_TABLE_POSITION = 1


class LocalityTableExtractor:
    """Turns one page of search results into Locality records."""

    def __init__(self, parser: str = 'html.parser'):
        self.parser = parser

    def _parse(self, markup: str) -> BeautifulSoup:
        if not isinstance(markup, str):
            raise ExtractionError(
                "Result markup must be text",
                {"received_type": type(markup).__name__}
            )
        try:
            return BeautifulSoup(markup, self.parser)
        except Exception as e:
            raise ExtractionError("Failed to parse result markup", {"error": str(e)})

    def extract(self, markup: str, is_next_page: bool = False) -> List[Locality]:
        """
        Extract localities from one page's result panel.

        Args:
            markup: Outer HTML of the result panel
            is_next_page: True for pages reached through pagination

        Returns:
            Localities in table row order; empty if the page has no result table

        Raises:
            ExtractionError: If the markup cannot be parsed
        """
        soup = self._parse(markup)
        position = NEXT_PAGE_TABLE_POSITION if is_next_page else FIRST_PAGE_TABLE_POSITION
        table = soup.select_one(f'{RESULT_TABLE_SELECTOR}:nth-of-type({position})')
        if table is None:
            logger.debug(f"No result table at position {position}")
            return []

        localities = []
        for row in table.find_all('tr'):
            cells = row.find_all('td', recursive=False)
            name = cells[0].get_text() if cells else ""
            if not name:
                continue
            cep_range = cells[1].get_text() if len(cells) > 1 else ""
            localities.append(Locality(name=name, cep_range=cep_range))

        return localities

    def has_next_page(self, markup: str) -> bool:
        """Whether the result panel offers a "next page" control."""
        soup = self._parse(markup)
        return soup.select_one(NEXT_PAGE_SELECTOR) is not None
