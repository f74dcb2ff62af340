# src/insider_relay/parsers/base_parser.py
from abc import ABC, abstractmethod
from typing import List, Any

class BaseParser(ABC):
    """
    Abstract base class for HTML parsers.
    """
    @abstractmethod
    def parse(self, html_content: str, source_url: str) -> List[Any]:
        """
        Parses HTML content into a list of structured items.

        :param html_content: The HTML string to parse.
        :param source_url: Where the HTML came from (for context/logging).
        :return: A list of parsed items, in document order.
        """
        pass
