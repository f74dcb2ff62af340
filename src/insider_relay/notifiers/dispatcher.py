# src/insider_relay/notifiers/dispatcher.py
import logging
import time
from enum import Enum
from typing import Any, Callable, Dict, Iterator, List, Sequence, Tuple

from tenacity import RetryError, Retrying, retry_if_exception_type, stop_after_attempt
from tenacity.wait import wait_base

from .formatting import build_embed, one_line
from .webhook_client import DiscordWebhookClient
from ..config import SinkConfig
from ..exceptions import RateLimitError, RetryExhaustedError
from ..storage.ledger import DedupStore
from ..types import Batch, TransactionRecord

logger = logging.getLogger(__name__)


class BatchState(Enum):
    PENDING = "pending"
    SENDING = "sending"
    THROTTLED = "throttled"
    SUCCESS = "success"
    FATAL = "fatal"


class wait_retry_after(wait_base):
    """Waits as long as the sink asked for, never less than `minimum` seconds."""

    def __init__(self, default: float, minimum: float):
        self.default = default
        self.minimum = minimum

    def __call__(self, retry_state) -> float:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        advertised = getattr(exc, "retry_after", None)
        seconds = self.default if advertised is None else advertised
        return max(self.minimum, seconds)


class Dispatcher:
    """
    Delivers planned batches to the webhook in order.

    Each request moves PENDING -> SENDING -> SUCCESS | FATAL, passing through
    THROTTLED and back to SENDING on every 429 until max_attempts is used up.
    Record keys are committed to the ledger only after their request succeeded.
    """

    def __init__(self,
                 client: DiscordWebhookClient,
                 ledger: DedupStore,
                 sink_config: SinkConfig,
                 sleep: Callable[[float], None] = time.sleep):
        self.client = client
        self.ledger = ledger
        self.config = sink_config
        self._sleep = sleep
        self.state = BatchState.PENDING
        self.attempts = 0

    def _payloads(self, batch: Batch) -> Iterator[Tuple[Dict[str, Any], List[TransactionRecord]]]:
        cfg = self.config
        if cfg.embed_mode:
            embeds = [build_embed(r, cfg.big_trade_threshold, cfg.big_trade_mention) for r in batch]
            yield {"embeds": embeds}, list(batch)
        else:
            for record in batch:
                yield {"content": one_line(record, cfg.big_trade_threshold, cfg.big_trade_mention)}, [record]

    def _on_throttled(self, retry_state) -> None:
        self.state = BatchState.THROTTLED
        wait_seconds = retry_state.next_action.sleep if retry_state.next_action else 0
        logger.warning(f"[rate-limit] 429: waiting {wait_seconds:.2f}s (attempt {retry_state.attempt_number})")

    def send(self, payload: Dict[str, Any]) -> None:
        """Sends one payload, retrying only while the sink throttles."""
        cfg = self.config
        self.state = BatchState.PENDING
        self.attempts = 0
        retrying = Retrying(
            stop=stop_after_attempt(cfg.max_attempts),
            wait=wait_retry_after(cfg.default_retry_after, cfg.min_retry_wait),
            retry=retry_if_exception_type(RateLimitError),
            sleep=self._sleep,
            before_sleep=self._on_throttled,
        )
        try:
            for attempt in retrying:
                with attempt:
                    self.state = BatchState.SENDING
                    self.attempts += 1
                    self.client.post(payload)
        except RetryError as e:
            self.state = BatchState.FATAL
            raise RetryExhaustedError(
                f"Webhook still rate limited after {self.attempts} attempts", attempts=self.attempts
            ) from e
        except Exception:
            self.state = BatchState.FATAL
            raise
        self.state = BatchState.SUCCESS

    def dispatch(self, batches: Sequence[Batch]) -> int:
        """Sends every batch and commits delivered keys. Returns the delivered count."""
        pacing_seconds = self.config.rate_limit_ms / 1000.0
        delivered = 0
        sends = 0
        for batch in batches:
            for payload, records in self._payloads(batch):
                if sends and pacing_seconds > 0:
                    self._sleep(pacing_seconds)
                sends += 1
                self.send(payload)
                for record in records:
                    self.ledger.commit(record.key)
                    delivered += 1
                logger.debug(f"Delivered {len(records)} record(s); {delivered} so far")
        return delivered
