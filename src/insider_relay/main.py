# src/insider_relay/main.py
import logging
import time
from datetime import datetime
from typing import Callable, List, Optional

from .config import RelaySettings
from .extractors.request_manager import RequestManager
from .notifiers.dispatcher import Dispatcher
from .notifiers.formatting import one_line
from .notifiers.webhook_client import DiscordWebhookClient
from .parsers.trade_parser import InsiderTradeParser
from .pipeline.batching import plan_dispatch
from .pipeline.filtering import RecordFilter
from .storage.ledger import DedupStore, open_ledger
from .types import ParsedRecords, RunSummary, TransactionRecord
from .utils.hash import generate_content_hash

logger = logging.getLogger(__name__)

class InsiderRelay:
    """
    One pass of the relay: fetch -> extract -> filter -> drop already sent ->
    order and batch -> deliver -> commit.
    """

    def __init__(self,
                 settings: RelaySettings,
                 request_manager: Optional[RequestManager] = None,
                 ledger: Optional[DedupStore] = None,
                 client: Optional[DiscordWebhookClient] = None,
                 sleep: Callable[[float], None] = time.sleep,
                 now: Optional[datetime] = None):
        self.settings = settings
        self.request_manager = request_manager or RequestManager(settings.source)
        self.parser = InsiderTradeParser(base_url=settings.source.base_url)
        self.ledger = ledger or open_ledger(settings.ledger)
        self.client = client or DiscordWebhookClient(
            settings.sink.webhook_url, timeout=settings.sink.request_timeout
        )
        self.sleep = sleep
        self.now = now
        self.source_hash: Optional[str] = None

    def extract(self) -> ParsedRecords:
        """Fetches the source page and extracts every row. Fetch errors propagate."""
        html = self.request_manager.fetch_source()
        self.source_hash = generate_content_hash(html)
        return self.parser.parse_trade_table(html, self.request_manager.source_name)

    def select_unsent(self, records: ParsedRecords) -> List[TransactionRecord]:
        """Drops records whose key is in the ledger, and repeats within this snapshot."""
        self.ledger.load()
        seen = set()
        unsent = []
        for record in records:
            key = record.key
            if self.ledger.has(key) or key in seen:
                continue
            seen.add(key)
            unsent.append(record)
        return unsent

    def run_once(self, dry_run: bool = False) -> RunSummary:
        filters = self.settings.filters
        summary = RunSummary(
            dry_run=dry_run,
            trade_types=list(filters.trade_types),
            min_price=filters.min_price,
            min_value_k=filters.min_value_k,
            max_days_filed=filters.max_days_filed,
            max_days_trade=filters.max_days_trade,
        )

        records = self.extract()
        summary.parsed = len(records)
        summary.source_hash = self.source_hash

        filtered = RecordFilter(filters, now=self.now).apply(records)
        summary.filtered = len(filtered)

        unsent = self.select_unsent(filtered)
        summary.already_sent = len(filtered) - len(unsent)

        batches = plan_dispatch(unsent, self.settings.sink)
        summary.pending = sum(len(batch) for batch in batches)

        if dry_run:
            for batch in batches:
                for record in batch:
                    logger.info(f"[dry-run] would send {record.key}\n{one_line(record)}")
        else:
            dispatcher = Dispatcher(self.client, self.ledger, self.settings.sink, sleep=self.sleep)
            summary.sent = dispatcher.dispatch(batches)

        logger.info(f"[done] {summary.log_line()}")
        return summary

    def close(self):
        """Cleans up HTTP sessions and the ledger."""
        self.request_manager.close()
        self.client.close()
        self.ledger.close()
