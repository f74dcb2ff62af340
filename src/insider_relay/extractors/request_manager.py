# src/insider_relay/extractors/request_manager.py
import requests
import logging
from pathlib import Path
from typing import Dict, Optional

from ..config import SourceConfig
from ..exceptions import NetworkError, HTTPError
from ..constants import COMMON_HEADERS

logger = logging.getLogger(__name__)

class RequestManager:
    """
    Fetches the screener markup.
    - Single GET per run through a requests.Session (no retries; a failed fetch ends the run)
    - Local HTML file override for offline runs
    - Response validation (non-2xx is an error)
    """

    def __init__(self, source_config: SourceConfig, session: Optional[requests.Session] = None):
        self.source_config = source_config
        self.session = session or self._create_session()

    def _create_session(self) -> requests.Session:
        session = requests.Session()
        session.headers.update(COMMON_HEADERS)
        session.headers["User-Agent"] = self.source_config.user_agent
        return session

    def get(self, url: str, params: Optional[Dict[str, str]] = None) -> requests.Response:
        """Perform one GET request, raising NetworkError/HTTPError on failure."""
        logger.debug(f"Making GET request to {url} with params {params}")
        try:
            response = self.session.get(
                url,
                params=params,
                timeout=self.source_config.request_timeout,
            )
            response.raise_for_status()
        except requests.exceptions.Timeout as e:
            logger.error(f"Timeout while requesting {url}: {e}")
            raise NetworkError(f"Timeout for {url}: {e}", url=url) from e
        except requests.exceptions.ConnectionError as e:
            logger.error(f"Connection error while requesting {url}: {e}")
            raise NetworkError(f"Connection error for {url}: {e}", url=url) from e
        except requests.exceptions.HTTPError as e: # Raised by raise_for_status()
            status = e.response.status_code if e.response is not None else None
            logger.error(f"HTTP error {status} for {url}")
            raise HTTPError(f"HTTP error {status} fetching {url}", status_code=status, url=url) from e
        except requests.exceptions.RequestException as e:
            logger.error(f"Request exception for {url}: {e}")
            raise NetworkError(f"Request failed for {url}: {e}", url=url) from e

        logger.info(f"Successfully fetched {url}. Status: {response.status_code}.")
        return response

    def fetch_source(self) -> str:
        """Returns the screener HTML, from the local override file when configured."""
        local_html = self.source_config.local_html
        if local_html:
            try:
                html = Path(local_html).read_text(encoding="utf-8")
            except OSError as e:
                raise NetworkError(f"Could not read local HTML file {local_html}: {e}", url=local_html) from e
            logger.info(f"[local] Loaded HTML from {local_html}")
            return html

        logger.info(f"[fetch] GET {self.source_config.url}")
        return self.get(self.source_config.url).text

    @property
    def source_name(self) -> str:
        return self.source_config.local_html or self.source_config.url

    def close(self):
        """Clean up resources."""
        logger.debug("Closing RequestManager session.")
        self.session.close()
