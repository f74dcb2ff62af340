# src/insider_relay/notifiers/webhook_client.py
import logging
from typing import Any, Dict, Optional

import requests

from ..exceptions import NetworkError, RateLimitError, SinkError

logger = logging.getLogger(__name__)

# Mentions inside messages are never resolved into pings
NO_MENTIONS = {"parse": []}


class DiscordWebhookClient:
    """
    Posts JSON payloads to a Discord-style webhook, one attempt per call.
    Throttling surfaces as RateLimitError; the caller decides whether to retry.
    """

    def __init__(self, webhook_url: str, timeout: float = 15, session: Optional[requests.Session] = None):
        self.webhook_url = webhook_url
        self.timeout = timeout
        self.session = session or requests.Session()

    def post(self, payload: Dict[str, Any]) -> None:
        body = dict(payload)
        body["allowed_mentions"] = NO_MENTIONS
        try:
            response = self.session.post(self.webhook_url, json=body, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            logger.error(f"Webhook request failed: {e}")
            raise NetworkError(f"Webhook request failed: {e}") from e

        if response.status_code == 429:
            raise RateLimitError("Webhook rate limited (429)", retry_after=self._retry_after(response))
        if not 200 <= response.status_code < 300:
            detail = (response.text or "")[:200]
            raise SinkError(f"Webhook rejected the request: {detail}", status_code=response.status_code)

    @staticmethod
    def _retry_after(response: requests.Response) -> Optional[float]:
        """Seconds to wait, from the JSON body's retry_after or the Retry-After header."""
        try:
            data = response.json()
        except ValueError:
            data = None
        if isinstance(data, dict) and data.get("retry_after") is not None:
            try:
                return float(data["retry_after"])
            except (TypeError, ValueError):
                logger.debug(f"Ignoring unparseable retry_after: {data['retry_after']!r}")

        header = response.headers.get("Retry-After")
        if header:
            try:
                return float(header)
            except ValueError:
                logger.debug(f"Ignoring unparseable Retry-After header: {header!r}")
        return None

    def close(self):
        self.session.close()
