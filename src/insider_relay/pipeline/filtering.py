# src/insider_relay/pipeline/filtering.py
import logging
import math
from collections import Counter
from datetime import datetime, timezone
from typing import Iterable, Optional

from ..config import FilterConfig
from ..parsers.data_cleaner import days_ago
from ..types import ParsedRecords, TransactionRecord

logger = logging.getLogger(__name__)


class RecordFilter:
    """
    Applies the configured inclusion predicates to extracted records.
    Predicates short-circuit in a fixed order; the result keeps input order.
    """

    def __init__(self, config: FilterConfig, now: Optional[datetime] = None):
        self.config = config
        self.now = now or datetime.now(timezone.utc)
        self.allowed_codes = frozenset(config.trade_types)
        self.rejections: Counter = Counter()

    def rejection_reason(self, record: TransactionRecord) -> Optional[str]:
        """Name of the first failing predicate, or None if the record passes."""
        if self.allowed_codes and record.trade_code not in self.allowed_codes:
            return "trade_type"

        if not days_ago(record.filing_datetime, self.now) <= self.config.max_days_filed:
            return "filing_age"
        if not days_ago(record.trade_date, self.now) <= self.config.max_days_trade:
            return "trade_age"

        if not (math.isfinite(record.price) and record.price >= self.config.min_price):
            return "price"

        if self.config.min_value_k > 0:
            abs_value = abs(record.value)
            if not (math.isfinite(abs_value) and abs_value >= self.config.min_value_k * 1000):
                return "value"

        return None

    def accepts(self, record: TransactionRecord) -> bool:
        return self.rejection_reason(record) is None

    def apply(self, records: Iterable[TransactionRecord]) -> ParsedRecords:
        kept: ParsedRecords = []
        for record in records:
            reason = self.rejection_reason(record)
            if reason is None:
                kept.append(record)
            else:
                self.rejections[reason] += 1
        if self.rejections:
            logger.debug(f"Filter rejections: {dict(self.rejections)}")
        logger.info(f"{len(kept)} records passed filters")
        return kept
