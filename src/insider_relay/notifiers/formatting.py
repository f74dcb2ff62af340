# src/insider_relay/notifiers/formatting.py
import math
from typing import Any, Dict

from ..constants import BIG_TRADE_MENTION, BIG_TRADE_THRESHOLD, TradeType
from ..types import TransactionRecord


def pick_color(trade_code: str) -> int:
    return TradeType.from_code(trade_code).color


def is_big_trade(record: TransactionRecord, threshold: float = BIG_TRADE_THRESHOLD) -> bool:
    return math.isfinite(record.value) and abs(record.value) > threshold


def one_line(record: TransactionRecord,
             threshold: float = BIG_TRADE_THRESHOLD,
             mention: str = BIG_TRADE_MENTION) -> str:
    """
    Message body for one record:

        2024-05-01
        **$NVDA  -$4,191,935  (-14,000 Stocks)**
        NVIDIA Corp: $299.42  (S - Sale+OE)
        Jane Doe (Title: CFO)
        [SEC Form 4 (2024-05-03 16:05:11)](https://www.sec.gov/...)
    """
    parts = [
        f"{record.trade_date}\n",
        f"**${record.ticker}  {record.value_text}  ({record.quantity_text} Stocks)**\n",
        f"{record.company_name}: {record.price_text}  ({record.trade_type_label})\n",
        f"{record.insider_name} (Title: {record.title or '-'})\n",
    ]
    if record.filing_url:
        parts.append(f"[SEC Form 4 ({record.filing_datetime})]({record.filing_url})")

    line = "".join(parts)
    if mention and is_big_trade(record, threshold):
        return f"{line} {mention}"
    return line


def build_embed(record: TransactionRecord,
                threshold: float = BIG_TRADE_THRESHOLD,
                mention: str = BIG_TRADE_MENTION) -> Dict[str, Any]:
    return {
        "description": one_line(record, threshold, mention),
        "color": pick_color(record.trade_code),
    }
