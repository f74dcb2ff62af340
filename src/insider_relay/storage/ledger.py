# src/insider_relay/storage/ledger.py
import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Set

from ..config import LedgerConfig
from ..exceptions import LedgerError
from ..types import RecordKey

logger = logging.getLogger(__name__)


class DedupStore(ABC):
    """
    Set of record keys already delivered to the sink.

    load() reads the persisted keys once per run; commit() appends one key durably
    and is only called after the sink accepted the record.
    """

    def __init__(self):
        self._keys: Set[RecordKey] = set()

    @abstractmethod
    def _read_keys(self) -> Set[RecordKey]:
        """Reads every persisted key. May raise; load() treats failures as empty history."""

    @abstractmethod
    def _append_key(self, key: RecordKey) -> None:
        """Persists one key durably."""

    def load(self) -> Set[RecordKey]:
        try:
            self._keys = self._read_keys()
        except FileNotFoundError:
            logger.info(f"No dedup history at {self.location}; starting empty.")
            self._keys = set()
        except Exception as e:
            logger.warning(f"Could not read dedup history from {self.location}: {e}. Treating as empty.")
            self._keys = set()
        else:
            logger.info(f"Loaded {len(self._keys)} previously sent keys from {self.location}")
        return set(self._keys)

    def has(self, key: RecordKey) -> bool:
        return key in self._keys

    def commit(self, key: RecordKey) -> None:
        try:
            self._append_key(key)
        except LedgerError:
            raise
        except Exception as e:
            raise LedgerError(f"Failed to record sent key in {self.location}: {e}") from e
        self._keys.add(key)

    def __len__(self) -> int:
        return len(self._keys)

    @property
    @abstractmethod
    def location(self) -> str:
        ...

    def close(self) -> None:
        pass


class FileLedger(DedupStore):
    """Newline-delimited, append-only key log."""

    def __init__(self, path: str):
        super().__init__()
        self.path = Path(path)

    @property
    def location(self) -> str:
        return str(self.path)

    def _read_keys(self) -> Set[RecordKey]:
        text = self.path.read_text(encoding="utf-8")
        return {line.strip() for line in text.split("\n") if line.strip()}

    def _append_key(self, key: RecordKey) -> None:
        if "\n" in key:
            raise LedgerError(f"Record key contains a newline: {key!r}")
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "a", encoding="utf-8") as f:
            f.write(key + "\n")
            f.flush()
            os.fsync(f.fileno())


def open_ledger(ledger_config: LedgerConfig) -> DedupStore:
    """Creates the dedup store selected by configuration."""
    if ledger_config.backend == "sqlite":
        from .database import SqliteLedger
        return SqliteLedger(ledger_config.path)
    return FileLedger(ledger_config.path)
