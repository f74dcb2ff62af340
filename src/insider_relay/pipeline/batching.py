# src/insider_relay/pipeline/batching.py
import logging
from datetime import datetime, timezone
from typing import List, Sequence

from ..config import SinkConfig
from ..parsers.data_cleaner import parse_timestamp
from ..types import Batch, ParsedRecords, TransactionRecord

logger = logging.getLogger(__name__)

EARLIEST = datetime.min.replace(tzinfo=timezone.utc)


def sort_key(record: TransactionRecord) -> datetime:
    """Trade date, else filing timestamp, else the earliest possible instant."""
    return parse_timestamp(record.trade_date) or parse_timestamp(record.filing_datetime) or EARLIEST


def order_records(records: Sequence[TransactionRecord]) -> ParsedRecords:
    """Oldest first. The sort is stable, so ties keep document order."""
    return sorted(records, key=sort_key)


def truncate(records: Sequence[TransactionRecord], max_per_run: int) -> ParsedRecords:
    """Keeps the oldest max_per_run records of an ordered sequence."""
    if len(records) > max_per_run:
        logger.warning(
            f"{len(records)} records pending, sending the oldest {max_per_run}; "
            f"the rest stay unsent until a later run."
        )
    return list(records[:max_per_run])


def make_batches(records: Sequence[TransactionRecord], batch_size: int) -> List[Batch]:
    if batch_size < 1:
        raise ValueError("batch_size must be at least 1")
    return [list(records[i:i + batch_size]) for i in range(0, len(records), batch_size)]


def plan_dispatch(records: Sequence[TransactionRecord], sink_config: SinkConfig) -> List[Batch]:
    """Orders, truncates and partitions records for delivery."""
    retained = truncate(order_records(records), sink_config.max_per_run)
    batch_size = sink_config.batch_size if sink_config.embed_mode else 1
    batches = make_batches(retained, batch_size)
    logger.info(f"Planned {len(retained)} records in {len(batches)} request(s)")
    return batches
