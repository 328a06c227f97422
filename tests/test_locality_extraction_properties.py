"""
Property-based tests for locality table extraction.
"""

import pytest
from hypothesis import given, strategies as st

from cep_locality_crawler.crawlers.extractor import LocalityTableExtractor
from cep_locality_crawler.data.models import Locality
from cep_locality_crawler.utils.errors import ExtractionError

from fakes import result_panel


cell_text = st.text(
    alphabet=st.sampled_from("abcdefghijklmnopqrstuvwxyzÁÉÍÓÚãçõ ABCDEFGHIJ-0123456789"),
    max_size=20
)
rows_strategy = st.lists(st.tuples(cell_text, cell_text), max_size=15)


class TestLocalityExtraction:
    """Extraction of locality rows from one result page."""

    def setup_method(self):
        self.extractor = LocalityTableExtractor()

    def test_three_valid_rows_and_one_empty_name(self):
        markup = result_panel([
            ("Fortaleza", "60000-001 a 61599-999"),
            ("", "61600-000 a 61699-999"),
            ("Caucaia", "61600-001 a 61699-999"),
            ("Aquiraz", "61700-000 a 61709-999"),
        ])

        localities = self.extractor.extract(markup, is_next_page=False)

        assert [l.name for l in localities] == ["Fortaleza", "Caucaia", "Aquiraz"]
        assert [l.cep_range for l in localities] == [
            "60000-001 a 61599-999", "61600-001 a 61699-999", "61700-000 a 61709-999"
        ]

    def test_row_with_empty_range_is_kept(self):
        markup = result_panel([("Jijoca de Jericoacoara", "")])

        localities = self.extractor.extract(markup)

        assert len(localities) == 1
        assert localities[0].name == "Jijoca de Jericoacoara"
        assert localities[0].cep_range == ""

    def test_row_with_only_name_cell_is_kept(self):
        markup = (
            '<div class="ctrlcontent"><table class="tmptabela"></table>'
            '<table class="tmptabela"><tr><td>Sobral</td></tr></table></div>'
        )

        localities = self.extractor.extract(markup)

        assert [(l.name, l.cep_range) for l in localities] == [("Sobral", "")]

    def test_text_is_not_trimmed(self):
        markup = result_panel([("  Crato ", " 63100-000 a 63134-999  ")])

        locality = self.extractor.extract(markup)[0]

        assert locality.name == "  Crato "
        assert locality.cep_range == " 63100-000 a 63134-999  "

    def test_empty_table_yields_empty_list(self):
        assert self.extractor.extract(result_panel([])) == []

    def test_missing_table_yields_empty_list(self):
        markup = '<div class="ctrlcontent"><p>DADOS NAO ENCONTRADOS</p></div>'

        assert self.extractor.extract(markup) == []
        assert self.extractor.extract(markup, is_next_page=True) == []
        assert self.extractor.extract("") == []

    def test_first_page_reads_second_table(self):
        markup = result_panel([("Iguatu", "63500-000 a 63529-999")], first_page=True)

        names = [l.name for l in self.extractor.extract(markup, is_next_page=False)]

        assert names == ["Iguatu"]

    def test_next_page_reads_first_table(self):
        markup = result_panel([("Quixadá", "63900-000 a 63909-999")], first_page=False)

        assert [l.name for l in self.extractor.extract(markup, is_next_page=True)] == ["Quixadá"]
        # The first-page position does not exist on a paginated panel
        assert self.extractor.extract(markup, is_next_page=False) == []

    def test_next_page_flag_on_first_page_reads_summary_table(self):
        markup = result_panel([("Russas", "62900-000 a 62929-999")], first_page=True)

        names = [l.name for l in self.extractor.extract(markup, is_next_page=True)]

        assert names == ["XX"]

    @pytest.mark.parametrize("markup", [None, 42, b"<table></table>", ["<tr></tr>"]])
    def test_non_text_markup_is_an_error(self, markup):
        with pytest.raises(ExtractionError):
            self.extractor.extract(markup)

    def test_next_page_detection(self):
        assert self.extractor.has_next_page(result_panel([("Crato", "x")], has_next=True))
        assert not self.extractor.has_next_page(result_panel([("Crato", "x")], has_next=False))

    @given(rows=rows_strategy, is_next_page=st.booleans())
    def test_extraction_keeps_order_and_drops_empty_names(self, rows, is_next_page):
        markup = result_panel(rows, first_page=not is_next_page)

        localities = self.extractor.extract(markup, is_next_page=is_next_page)

        expected = [(name, cep_range) for name, cep_range in rows if name != ""]
        assert [(l.name, l.cep_range) for l in localities] == expected
        assert all(isinstance(l, Locality) and l.name for l in localities)

    @given(rows=rows_strategy)
    def test_reextraction_same_content_new_ids(self, rows):
        markup = result_panel(rows)

        first = self.extractor.extract(markup)
        second = self.extractor.extract(markup)

        assert len(first) == len(second)
        assert all(a.same_content(b) for a, b in zip(first, second))
        assert not {l.id for l in first} & {l.id for l in second}
        assert len({l.id for l in first}) == len(first)
