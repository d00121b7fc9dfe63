"""
Board storage backend (SQLite).

Owns the schema and hands out one connection per logical operation. Every
service opens a transaction through `Database.transaction()`; nothing keeps a
long-lived handle.
"""
import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, Union

from .errors import PersistenceError

logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = Path.home() / ".local" / "share" / "todayboard" / "board.db"


def _connect(db_path: str) -> sqlite3.Connection:
    """Open a connection with FK enforcement and WAL mode."""
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    conn.execute("PRAGMA journal_mode = WAL")
    return conn


class Database:
    """SQLite-backed store for cards, tags and comments."""

    def __init__(self, db_path: Union[str, Path, None] = None):
        """Initialize store and create tables if needed."""
        if db_path is None:
            db_path = DEFAULT_DB_PATH
        self.db_path = str(Path(db_path).expanduser())
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    def _init_schema(self) -> None:
        """Create tables if they don't exist."""
        with self.transaction() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS cards (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    title TEXT NOT NULL,
                    description TEXT DEFAULT '',
                    column_name TEXT NOT NULL,
                    due_date TEXT,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL,
                    completed_at TEXT
                )
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS tags (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    card_id INTEGER NOT NULL,
                    name TEXT NOT NULL,
                    UNIQUE (card_id, name),
                    FOREIGN KEY (card_id) REFERENCES cards(id) ON DELETE CASCADE
                )
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS comments (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    card_id INTEGER NOT NULL,
                    content TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    FOREIGN KEY (card_id) REFERENCES cards(id) ON DELETE CASCADE
                )
            """)
            conn.execute("CREATE INDEX IF NOT EXISTS idx_cards_completed ON cards(completed_at)")
            conn.execute("CREATE INDEX IF NOT EXISTS idx_cards_created ON cards(created_at)")
            conn.execute("CREATE INDEX IF NOT EXISTS idx_tags_card ON tags(card_id)")
            conn.execute("CREATE INDEX IF NOT EXISTS idx_comments_card ON comments(card_id, created_at)")
        logger.debug(f"Schema ready at {self.db_path}")

    @contextmanager
    def transaction(self, conn: Optional[sqlite3.Connection] = None) -> Iterator[sqlite3.Connection]:
        """Run a block inside one transaction on a fresh connection.

        Commits on success, rolls back on any exception. sqlite3 errors are
        re-raised as PersistenceError. When `conn` is given the block joins
        that caller's transaction instead (no commit, no close).
        """
        if conn is not None:
            yield conn
            return
        try:
            conn = _connect(self.db_path)
        except sqlite3.Error as e:
            raise PersistenceError(f"Cannot open database {self.db_path}: {e}") from e
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise PersistenceError(str(e)) from e
        except BaseException:
            conn.rollback()
            raise
        finally:
            conn.close()

    def card_exists(self, conn: sqlite3.Connection, card_id) -> bool:
        row = conn.execute("SELECT 1 FROM cards WHERE id = ?", (card_id,)).fetchone()
        return row is not None
