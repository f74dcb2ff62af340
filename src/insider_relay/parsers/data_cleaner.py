# src/insider_relay/parsers/data_cleaner.py
import math
import re
from datetime import datetime, timezone
from typing import Optional, Any
from dateutil import parser as date_parser
import logging

logger = logging.getLogger(__name__)

NAN = float("nan")

def clean_text(text: Optional[str]) -> Optional[str]:
    """Removes leading/trailing whitespace and multiple spaces. Returns None if input is None or empty after strip."""
    if text is None:
        return None
    text = str(text).replace('\xa0', ' ').strip()
    if not text:
        return None
    text = re.sub(r'\s+', ' ', text) # Replace multiple spaces/newlines with a single space
    return text if text else None


def _to_float(text_value: str, original: Any) -> float:
    if not text_value:
        return NAN
    try:
        number = float(text_value)
    except ValueError:
        logger.debug(f"Could not parse '{original}' as a number.")
        return NAN
    # 'nan' and 'inf' spellings are accepted by float() but are not numbers on the page
    if not math.isfinite(number):
        return NAN
    return number


def parse_money(value: Optional[Any]) -> float:
    """Parses a currency amount like '$299.42' or '-$4,191,935'. Returns NaN on failure."""
    if value is None:
        return NAN
    text_value = re.sub(r'[\$,\s]', '', str(value))
    return _to_float(text_value, value)

def parse_quantity(value: Optional[Any]) -> float:
    """Parses a signed share count like '-14,000' or '+7,428'. Returns NaN on failure."""
    if value is None:
        return NAN
    text_value = re.sub(r'[,\s]', '', str(value))
    return _to_float(text_value, value)

def parse_percent(value: Optional[Any]) -> float:
    """Parses an ownership change like '-12%'. The result stays in percent units."""
    if value is None:
        return NAN
    text_value = re.sub(r'[%,\s]', '', str(value))
    return _to_float(text_value, value)


def parse_timestamp(date_string: Optional[str]) -> Optional[datetime]:
    """
    Parses a source timestamp ('YYYY-MM-DD' or 'YYYY-MM-DD HH:MM:SS') as UTC.
    Returns an aware datetime or None.
    """
    cleaned = clean_text(date_string)
    if not cleaned:
        return None
    try:
        dt_obj = date_parser.isoparse(cleaned)
    except (ValueError, TypeError, OverflowError) as e:
        logger.debug(f"Could not parse timestamp '{date_string}': {e}")
        return None
    if dt_obj.tzinfo is None:
        return dt_obj.replace(tzinfo=timezone.utc)
    return dt_obj.astimezone(timezone.utc)

def days_ago(date_string: Optional[str], now: Optional[datetime] = None) -> float:
    """
    Days elapsed since the given source timestamp.
    Unparseable input yields +inf so that age limits reject it.
    """
    moment = parse_timestamp(date_string)
    if moment is None:
        return math.inf
    current = now or datetime.now(timezone.utc)
    return (current - moment).total_seconds() / 86400.0


def trade_code_from_label(label: Optional[str]) -> str:
    """
    Extracts the code from a trade type label: "S - Sale+OE" -> "S".
    """
    cleaned = clean_text(label)
    if not cleaned:
        return ""
    return re.split(r'\s*-\s*', cleaned, maxsplit=1)[0].upper()


def extract_form_url(cell_element: Any, base_url: str) -> str:
    """
    Extracts the filing URL from a BeautifulSoup cell.
    Assumes the URL is within an <a> tag; returns '' when there is none.
    """
    from bs4 import Tag

    if not isinstance(cell_element, Tag):
        return ""

    a_tag = cell_element.find('a')
    if a_tag and a_tag.has_attr('href'):
        href = a_tag['href'].strip()
        # Make URL absolute if it's relative
        if href.startswith('/'):
            return base_url.rstrip('/') + href
        return href
    return ""
