# src/insider_relay/storage/database.py
import sqlite3
import logging
from pathlib import Path
from typing import Optional, Set

from .ledger import DedupStore
from .schema import SCHEMA_DEFINITIONS, INDICES, PRAGMAS
from ..exceptions import LedgerError
from ..types import RecordKey

logger = logging.getLogger(__name__)

class SqliteLedger(DedupStore):
    """
    Dedup ledger kept in a single-table SQLite database.
    Every commit is its own transaction.
    """

    def __init__(self, db_path: str, timeout: float = 5.0):
        super().__init__()
        self.db_path = Path(db_path)
        self.timeout = timeout
        self._connection: Optional[sqlite3.Connection] = None

    @property
    def location(self) -> str:
        return str(self.db_path)

    def _get_connection(self) -> sqlite3.Connection:
        if self._connection is None:
            logger.debug(f"Connecting to ledger database: {self.db_path}")
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(str(self.db_path), timeout=self.timeout)
            try:
                self._apply_pragmas(conn)
                self._create_schema_if_needed(conn)
            except sqlite3.Error:
                conn.close()
                raise
            self._connection = conn
        return self._connection

    def _apply_pragmas(self, conn: sqlite3.Connection):
        for pragma in PRAGMAS:
            try:
                conn.execute(pragma)
            except sqlite3.Error as e:
                logger.warning(f"Failed to execute PRAGMA {pragma}: {e}")
        conn.commit()

    def _create_schema_if_needed(self, conn: sqlite3.Connection):
        """Creates the ledger table and indices if they don't exist."""
        with conn: # Automatic commit/rollback for DDL
            cursor = conn.cursor()
            for table_name, ddl_statement in SCHEMA_DEFINITIONS.items():
                logger.debug(f"Ensuring table '{table_name}' exists...")
                cursor.execute(ddl_statement)
            for index_statement in INDICES:
                cursor.execute(index_statement)

    def _read_keys(self) -> Set[RecordKey]:
        cursor = self._get_connection().execute("SELECT key FROM sent_keys")
        return {row[0] for row in cursor.fetchall()}

    def _append_key(self, key: RecordKey) -> None:
        try:
            conn = self._get_connection()
            with conn:
                conn.execute("INSERT OR IGNORE INTO sent_keys (key) VALUES (?)", (key,))
        except sqlite3.Error as e:
            logger.error(f"Database error recording sent key: {e}")
            raise LedgerError(f"Ledger insert failed: {e}") from e

    def close(self) -> None:
        if self._connection is not None:
            logger.debug("Closing ledger database connection.")
            self._connection.close()
            self._connection = None
