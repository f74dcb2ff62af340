# src/insider_relay/parsers/trade_parser.py
import logging
from typing import List, Optional
from bs4 import BeautifulSoup, Tag

from .table_parser import PositionalTableParser
from . import data_cleaner
from ..constants import (
    COLUMN_INDEX,
    EXPECTED_HEADER_SUBSET,
    INSIDER_TABLE_CLASS,
    INSIDER_TABLE_ID,
    MIN_CELLS_PER_ROW,
)
from ..types import TransactionRecord, ParsedRecords

logger = logging.getLogger(__name__)

class InsiderTradeParser(PositionalTableParser):
    """
    Parses an OpenInsider screener page into TransactionRecords.
    Cells are mapped by position; see COLUMN_INDEX.
    """
    def __init__(self, base_url: str):
        super().__init__(
            table_identifier={"class": INSIDER_TABLE_CLASS},
            min_cells=MIN_CELLS_PER_ROW,
            row_processor=self.extract_record,
        )
        self.base_url = base_url.strip('/')

    def _find_table(self, soup: BeautifulSoup) -> Optional[Tag]:
        """Finds the main data table on an OpenInsider page."""
        potential_tables = soup.find_all("table", class_=INSIDER_TABLE_CLASS)

        # The screener page also carries a small legend 'tinytable'; prefer the one
        # whose header names the trade columns.
        for pt_table in potential_tables:
            thead = pt_table.find("thead")
            if not thead:
                continue
            header_texts = {
                th.get_text(strip=True).lower().replace('\xa0', ' ')
                for th in thead.find_all("th")
            }
            if len(header_texts & EXPECTED_HEADER_SUBSET) >= 3:
                return pt_table

        table = soup.find("table", id=INSIDER_TABLE_ID)
        if table:
            return table

        if potential_tables:
            logger.debug("No 'tinytable' with trade headers; using the first one.")
            return potential_tables[0]

        logger.error(
            "Could not find the insider trades table. "
            "The page structure might have changed."
        )
        return None

    def parse_trade_table(self, html: str, source_name: str) -> ParsedRecords:
        """
        Parse the insider trading table from HTML.

        :param html: HTML content string.
        :param source_name: Where the page came from (URL or file path), for logging.
        :return: TransactionRecords in document order.
        """
        if not html:
            logger.warning(f"Cannot parse empty HTML from: {source_name}")
            return []

        records: ParsedRecords = super().parse(html_content=html, source_url=source_name)
        logger.info(f"Extracted {len(records)} transaction records from {source_name}")
        return records

    def extract_record(self, cells: List[Tag]) -> Optional[TransactionRecord]:
        """
        Builds a TransactionRecord from the cells of one table row.
        Numeric cells that do not parse become NaN; the raw text is kept alongside.
        """
        def text(field_name: str) -> str:
            return data_cleaner.clean_text(cells[COLUMN_INDEX[field_name]].get_text(separator=" ")) or ""

        filing_cell = cells[COLUMN_INDEX["filing_datetime"]]
        trade_type_label = text("trade_type_label")
        price_text = text("price")
        quantity_text = text("quantity")
        delta_own_text = text("delta_own")
        value_text = text("value")

        return TransactionRecord(
            filing_datetime=text("filing_datetime"),
            filing_url=data_cleaner.extract_form_url(filing_cell, self.base_url),
            trade_date=text("trade_date"),
            ticker=text("ticker"),
            company_name=text("company_name"),
            insider_name=text("insider_name"),
            title=text("title"),
            trade_type_label=trade_type_label,
            trade_code=data_cleaner.trade_code_from_label(trade_type_label),
            price=data_cleaner.parse_money(price_text),
            quantity=data_cleaner.parse_quantity(quantity_text),
            delta_own=data_cleaner.parse_percent(delta_own_text),
            value=data_cleaner.parse_money(value_text),
            price_text=price_text,
            quantity_text=quantity_text,
            owned_text=text("owned"),
            delta_own_text=delta_own_text,
            value_text=value_text,
        )
