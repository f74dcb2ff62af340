# src/insider_relay/utils/hash.py
import hashlib
import math
from typing import Any, Dict, List, Union

# Fields that identify one real-world transaction occurrence, in key order.
RECORD_KEY_FIELDS = [
    "filing_datetime",
    "ticker",
    "insider_name",
    "trade_code",
    "price",
    "quantity",
]

KEY_SEPARATOR = "|"


def format_key_number(value: float) -> str:
    """
    Renders a number the way it appears in a record key.
    Integral values drop the fractional part ("-14000", not "-14000.0") and
    unparseable values are written as "NaN".
    """
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        if value.is_integer():
            return str(int(value))
    return str(value)


def make_record_key(record_data: Dict[str, Any], fields: List[str] = RECORD_KEY_FIELDS) -> str:
    """
    Builds the deterministic identity key for a transaction record.
    """
    parts = []
    for field in fields:
        value = record_data.get(field)
        if value is None:
            parts.append("")
        elif isinstance(value, (int, float)):
            parts.append(format_key_number(value))
        else:
            parts.append(str(value))
    return KEY_SEPARATOR.join(parts)


def generate_content_hash(content: Union[str, bytes]) -> str:
    """
    Generates a SHA256 hash for a block of content (e.g., HTML).
    """
    if isinstance(content, str):
        content_bytes = content.encode('utf-8')
    else:
        content_bytes = content
    return hashlib.sha256(content_bytes).hexdigest()
