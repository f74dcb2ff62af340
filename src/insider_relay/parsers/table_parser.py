# src/insider_relay/parsers/table_parser.py
import logging
from typing import List, Dict, Any, Optional, Callable
from bs4 import BeautifulSoup, Tag

from .base_parser import BaseParser
from ..exceptions import ParsingError
from . import data_cleaner

logger = logging.getLogger(__name__)

class PositionalTableParser(BaseParser):
    """
    Parses an HTML table whose data rows have a fixed cell layout.
    Rows with too few cells are skipped; each remaining row is handed to a row processor.
    """

    def __init__(self,
                 table_identifier: Optional[Dict[str, str]] = None,
                 min_cells: int = 1,
                 cell_selector: str = "td",
                 row_processor: Optional[Callable[[List[Tag]], Optional[Any]]] = None):
        """
        :param table_identifier: Attributes used to find the table (e.g., {'class': 'tinytable'}).
        :param min_cells: Minimum number of data cells a row must have to be processed.
        :param cell_selector: Tag name of data cells within a row.
        :param row_processor: Function turning the row's cells into an item, or None to skip it.
        """
        self.table_identifier = table_identifier or {}
        self.min_cells = min_cells
        self.cell_selector = cell_selector
        self.row_processor = row_processor if row_processor else self._default_row_processor

    def _find_table(self, soup: BeautifulSoup) -> Optional[Tag]:
        """Finds the table element in the parsed HTML."""
        table = soup.find("table", self.table_identifier)
        if not table:
            logger.warning(f"Table with identifier {self.table_identifier} not found.")
        return table

    def _data_rows(self, table_element: Tag) -> List[Tag]:
        """Returns the body rows of the table, without the header row."""
        tbody = table_element.find("tbody")
        rows_container = tbody if tbody else table_element
        return [
            row for row in rows_container.find_all("tr", recursive=False)
            if not row.find("th")
        ]

    def _default_row_processor(self, cells: List[Tag]) -> Optional[List[Optional[str]]]:
        return [data_cleaner.clean_text(cell.get_text(separator=" ")) for cell in cells]

    def parse(self, html_content: str, source_url: str) -> List[Any]:
        """
        Parses the HTML content to extract table rows in document order.
        """
        if not html_content:
            logger.warning(f"Empty HTML content received for parsing from {source_url}.")
            return []

        try:
            soup = BeautifulSoup(html_content, "lxml")
        except Exception as e:
            logger.error(f"Failed to parse HTML with lxml from {source_url}: {e}")
            raise ParsingError(f"BeautifulSoup parsing failed for {source_url}") from e

        table_element = self._find_table(soup)
        if not table_element:
            logger.error(f"No suitable table found in HTML from {source_url}.")
            return []

        parsed_items = []
        skipped = 0
        for i, row_element in enumerate(self._data_rows(table_element)):
            cells = row_element.find_all(self.cell_selector, recursive=False)
            if len(cells) < self.min_cells:
                logger.debug(f"Skipping row {i}: {len(cells)} cells, need {self.min_cells}.")
                skipped += 1
                continue

            try:
                item = self.row_processor(cells)
            except Exception as e:
                logger.error(f"Error processing row {i} from {source_url}: {e}. Row: {row_element.get_text(strip=True, separator='|')[:200]}")
                skipped += 1
                continue

            if item is not None:
                parsed_items.append(item)
            else:
                skipped += 1

        logger.info(f"Parsed {len(parsed_items)} rows from table at {source_url} ({skipped} skipped).")
        return parsed_items
