import sqlite3
from pathlib import Path
from typing import Dict, Optional, Protocol
from contextlib import contextmanager

from .errors import ValidationError
from .logging_config import get_logger

logger = get_logger(__name__)

JP_API_KEY = "jp_api_key"
ANTHROPIC_API_KEY = "anthropic_api_key"
CREDENTIAL_NAMES = (JP_API_KEY, ANTHROPIC_API_KEY)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS credential (
    name  TEXT PRIMARY KEY,
    value TEXT NOT NULL
);
"""

class CredentialProvider(Protocol):
    def get(self, name: str) -> Optional[str]: ...
    def set(self, name: str, value: str) -> None: ...
    def clear(self) -> None: ...
    def has_all(self) -> bool: ...


def _present(value: Optional[str]) -> Optional[str]:
    if value is None or not value.strip():
        return None
    return value.strip()


class MemoryCredentialStore:
    """Keys held for the lifetime of the process only."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._values: Dict[str, str] = {}
        for name, value in (initial or {}).items():
            self.set(name, value)

    def get(self, name: str) -> Optional[str]:
        return _present(self._values.get(name))

    def set(self, name: str, value: str) -> None:
        self._values[name] = value.strip()

    def clear(self) -> None:
        self._values.clear()

    def has_all(self) -> bool:
        return all(self.get(name) for name in CREDENTIAL_NAMES)


@contextmanager
def get_db_connection(db_path: Path):
    logger.debug(f"Opening credential database: {db_path}")
    conn = sqlite3.connect(str(db_path))
    try:
        yield conn
        conn.commit()
    finally:
        conn.close()
        logger.debug("Credential database closed")


class SQLiteCredentialStore:
    """Keys persisted in a small SQLite file so they survive restarts."""

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with get_db_connection(self.db_path) as conn:
            conn.executescript(SCHEMA_SQL)

    def get(self, name: str) -> Optional[str]:
        with get_db_connection(self.db_path) as conn:
            row = conn.execute(
                "SELECT value FROM credential WHERE name = ?", (name,)
            ).fetchone()
        return _present(row[0] if row else None)

    def set(self, name: str, value: str) -> None:
        with get_db_connection(self.db_path) as conn:
            conn.execute(
                "INSERT INTO credential (name, value) VALUES (?, ?) "
                "ON CONFLICT(name) DO UPDATE SET value = excluded.value",
                (name, value.strip()),
            )
        logger.info(f"Stored credential '{name}'")

    def clear(self) -> None:
        with get_db_connection(self.db_path) as conn:
            conn.execute("DELETE FROM credential")
        logger.info("Cleared stored credentials")

    def has_all(self) -> bool:
        return all(self.get(name) for name in CREDENTIAL_NAMES)


def save_keys(store: CredentialProvider, jp_key: str, anthropic_key: str) -> None:
    jp_key = (jp_key or "").strip()
    anthropic_key = (anthropic_key or "").strip()
    if not jp_key or not anthropic_key:
        raise ValidationError("Both API keys are required.")

    store.set(JP_API_KEY, jp_key)
    store.set(ANTHROPIC_API_KEY, anthropic_key)


def open_credential_store(db_path: Optional[Path]) -> CredentialProvider:
    if db_path is None:
        logger.info("No credential database configured, keys are kept in memory")
        return MemoryCredentialStore()
    logger.info(f"Using credential database: {db_path}")
    return SQLiteCredentialStore(db_path)
