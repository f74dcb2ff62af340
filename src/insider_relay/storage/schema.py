# src/insider_relay/storage/schema.py

# SQLite schema for the dedup ledger
SCHEMA_DEFINITIONS = {
    'sent_keys': '''
        CREATE TABLE IF NOT EXISTS sent_keys (
            key TEXT PRIMARY KEY,                  -- Record key of a delivered transaction
            sent_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
        );
    ''',
}

INDICES = [
    'CREATE INDEX IF NOT EXISTS idx_sent_keys_sent_at ON sent_keys(sent_at DESC)',
]

# Each commit must survive a crash, so synchronous stays FULL.
PRAGMAS = [
    'PRAGMA journal_mode=WAL;',
    'PRAGMA synchronous=FULL;',
    'PRAGMA busy_timeout=5000;',
]
