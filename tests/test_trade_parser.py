"""
Tests for extracting TransactionRecords from the screener table.
"""

import math

from insider_relay.parsers.trade_parser import InsiderTradeParser
from conftest import page_html, row_html


def parse(html):
    return InsiderTradeParser(base_url="http://openinsider.com").parse_trade_table(html, "test-page")


class TestInsiderTradeParser:

    def test_row_fields_are_mapped_by_position(self):
        records = parse(page_html([row_html()]))

        assert len(records) == 1
        record = records[0]
        assert record.filing_datetime == "2024-05-09 16:05:11"
        assert record.filing_url.startswith("http://www.sec.gov/Archives/")
        assert record.trade_date == "2024-05-07"
        assert record.ticker == "NVDA"
        assert record.company_name == "NVIDIA Corp"
        assert record.insider_name == "Doe Jane"
        assert record.title == "CFO"
        assert record.trade_type_label == "S - Sale+OE"
        assert record.trade_code == "S"
        assert record.price == 299.42
        assert record.quantity == -14000
        assert record.delta_own == -12
        assert record.value == -4191935
        assert record.price_text == "$299.42"
        assert record.quantity_text == "-14,000"
        assert record.owned_text == "120,000"
        assert record.value_text == "-$4,191,935"

    def test_short_rows_are_skipped(self):
        rows = [row_html(ticker="AAA"), row_html(ticker="BBB", cells=10), row_html(ticker="CCC", perf_cells=0)]

        records = parse(page_html(rows))

        assert [r.ticker for r in records] == ["AAA", "CCC"]

    def test_document_order_is_kept(self):
        rows = [
            row_html(ticker="NEW", trade="2024-05-08"),
            row_html(ticker="OLD", trade="2024-01-02"),
            row_html(ticker="MID", trade="2024-03-03"),
        ]

        assert [r.ticker for r in parse(page_html(rows))] == ["NEW", "OLD", "MID"]

    def test_garbled_numbers_become_nan(self):
        records = parse(page_html([row_html(price="n/a", qty="", delta="New", value="?")]))

        record = records[0]
        assert math.isnan(record.price)
        assert math.isnan(record.quantity)
        assert math.isnan(record.delta_own)
        assert math.isnan(record.value)
        assert record.delta_own_text == "New"

    def test_legend_table_is_not_mistaken_for_data(self):
        html = (
            '<table class="tinytable"><tbody><tr><td>P - Purchase</td></tr></tbody></table>'
            + page_html([row_html(ticker="AAPL")])
        )

        assert [r.ticker for r in parse(html)] == ["AAPL"]

    def test_table_without_thead_still_parses(self):
        html = f'<table class="tinytable"><tbody>{row_html(ticker="MSFT")}</tbody></table>'

        assert [r.ticker for r in parse(html)] == ["MSFT"]

    def test_no_table_yields_empty_list(self):
        assert parse("<html><body><p>Maintenance</p></body></html>") == []

    def test_empty_markup_yields_empty_list(self):
        assert parse("") == []

    def test_header_row_inside_tbody_is_ignored(self):
        header_row = "<tr>" + "".join(f"<th>h{i}</th>" for i in range(17)) + "</tr>"
        html = f'<table class="tinytable"><tbody>{header_row}{row_html(ticker="TSLA")}</tbody></table>'

        assert [r.ticker for r in parse(html)] == ["TSLA"]
