"""
Card lifecycle engine.

Owns creation, full-field updates, column moves and deletion, and derives
completed_at from the target column on every write.
"""
import logging
import sqlite3
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional

from .comments import CommentStore
from .errors import NotFoundError, ValidationError
from .schema import Card, DateLike, Workflow, parse_date, to_timestamp, utc_now
from .store import Database
from .tags import TagSet

logger = logging.getLogger(__name__)


def _require_title(title: Optional[str]) -> str:
    if title is None or not str(title).strip():
        raise ValidationError("Title is required")
    return str(title).strip()


def _due(value: DateLike) -> Optional[str]:
    parsed = parse_date(value, "due date")
    return parsed.isoformat() if parsed else None


class CardLifecycle:
    """Card CRUD and column transitions."""

    def __init__(
        self,
        db: Database,
        workflow: Optional[Workflow] = None,
        tags: Optional[TagSet] = None,
        comments: Optional[CommentStore] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.db = db
        self.workflow = workflow or Workflow()
        self.tags = tags or TagSet()
        self.comments = comments or CommentStore(db, clock=clock)
        self.clock = clock

    def _now(self) -> str:
        return to_timestamp(self.clock())

    # ── Queries ──────────────────────────────────────────────────────────────

    def list_active(self) -> List[Card]:
        """Cards not yet completed, plus those completed today (UTC)."""
        today = self.clock().date().isoformat()
        with self.db.transaction() as conn:
            rows = conn.execute(
                """
                SELECT * FROM cards
                WHERE completed_at IS NULL OR substr(completed_at, 1, 10) = ?
                ORDER BY created_at DESC, id DESC
                """,
                (today,),
            ).fetchall()
            tag_map = self.tags.for_cards(conn, [r["id"] for r in rows])
        logger.debug(f"list_active: {len(rows)} cards")
        return [Card.from_row(r, tag_map[r["id"]]) for r in rows]

    def list_all(self, conn: Optional[sqlite3.Connection] = None) -> List[Card]:
        """Every card on the board, oldest first."""
        with self.db.transaction(conn) as c:
            rows = c.execute("SELECT * FROM cards ORDER BY created_at ASC, id ASC").fetchall()
            tag_map = self.tags.for_cards(c, [r["id"] for r in rows])
        return [Card.from_row(r, tag_map[r["id"]]) for r in rows]

    def get(self, card_id: int) -> Card:
        """Card with tags (by name) and comments (newest first)."""
        with self.db.transaction() as conn:
            row = conn.execute("SELECT * FROM cards WHERE id = ?", (card_id,)).fetchone()
            if not row:
                raise NotFoundError(f"Card {card_id} not found")
            card = Card.from_row(row, self.tags.for_card(conn, card_id, order_by_name=True))
            card.comments = self.comments.list_by_card(card_id, conn=conn)
        return card

    def count_by_column(self) -> Dict[str, int]:
        """Card counts per workflow column (all cards, completed included)."""
        counts = {column: 0 for column in self.workflow.columns}
        with self.db.transaction() as conn:
            for row in conn.execute("SELECT column_name, COUNT(*) AS n FROM cards GROUP BY column_name"):
                counts[row["column_name"]] = row["n"]
        return counts

    # ── Mutations ────────────────────────────────────────────────────────────

    def create(
        self,
        title: str,
        description: Optional[str] = None,
        column: Optional[str] = None,
        due_date: DateLike = None,
        tags: Optional[Iterable[str]] = None,
    ) -> Card:
        """Create a card; column defaults to the first workflow column."""
        title = _require_title(title)
        column = self.workflow.validate(column)
        due = _due(due_date)
        now = self._now()
        completed_at = self.workflow.completion_for(column, None, now)

        with self.db.transaction() as conn:
            cur = conn.execute(
                """
                INSERT INTO cards (title, description, column_name, due_date,
                                   created_at, updated_at, completed_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (title, description or "", column, due, now, now, completed_at),
            )
            card_id = cur.lastrowid
            stored_tags = self.tags.replace(conn, card_id, tags)

        logger.info(f"Card {card_id} created in '{column}': {title}")
        return Card(
            id=card_id,
            title=title,
            description=description or "",
            column=column,
            due_date=due,
            created_at=now,
            updated_at=now,
            completed_at=completed_at,
            tags=stored_tags,
        )

    def update(
        self,
        card_id: int,
        title: str,
        description: Optional[str],
        column: Optional[str],
        due_date: DateLike,
        tags: Optional[Iterable[str]],
    ) -> Card:
        """Overwrite every mutable field of a card and replace its tag set."""
        title = _require_title(title)
        column = self.workflow.validate(column)
        due = _due(due_date)
        now = self._now()

        with self.db.transaction() as conn:
            row = conn.execute(
                "SELECT created_at, completed_at FROM cards WHERE id = ?", (card_id,)
            ).fetchone()
            if not row:
                raise NotFoundError(f"Card {card_id} not found")
            completed_at = self.workflow.completion_for(column, row["completed_at"], now)
            conn.execute(
                """
                UPDATE cards
                SET title = ?, description = ?, column_name = ?, due_date = ?,
                    updated_at = ?, completed_at = ?
                WHERE id = ?
                """,
                (title, description or "", column, due, now, completed_at, card_id),
            )
            stored_tags = self.tags.replace(conn, card_id, tags)

        logger.info(f"Card {card_id} updated (column '{column}')")
        return Card(
            id=card_id,
            title=title,
            description=description or "",
            column=column,
            due_date=due,
            created_at=row["created_at"],
            updated_at=now,
            completed_at=completed_at,
            tags=stored_tags,
        )

    def move(self, card_id: int, column: str) -> Card:
        """Change only the column (and the derived completion stamp)."""
        if column is None or not str(column).strip():
            raise ValidationError("Column is required")
        column = self.workflow.validate(column)
        now = self._now()

        with self.db.transaction() as conn:
            row = conn.execute("SELECT * FROM cards WHERE id = ?", (card_id,)).fetchone()
            if not row:
                raise NotFoundError(f"Card {card_id} not found")
            previous = row["column_name"]
            completed_at = self.workflow.completion_for(column, row["completed_at"], now)
            conn.execute(
                "UPDATE cards SET column_name = ?, updated_at = ?, completed_at = ? WHERE id = ?",
                (column, now, completed_at, card_id),
            )
            card = Card.from_row(row, self.tags.for_card(conn, card_id))

        card.column = column
        card.updated_at = now
        card.completed_at = completed_at
        logger.info(f"Card {card_id} moved '{previous}' → '{column}'")
        return card

    def delete(self, card_id: int, conn: Optional[sqlite3.Connection] = None) -> int:
        """Delete a card with its comments and tags. Returns rows removed (0 or 1)."""
        with self.db.transaction(conn) as c:
            self.comments.delete_all_for_card(card_id, conn=c)
            c.execute("DELETE FROM tags WHERE card_id = ?", (card_id,))
            cur = c.execute("DELETE FROM cards WHERE id = ?", (card_id,))
            deleted = cur.rowcount
        if deleted:
            logger.info(f"Card {card_id} deleted")
        return deleted

    def delete_all(self, conn: Optional[sqlite3.Connection] = None) -> int:
        """Wipe the board. Tags and comments go with their cards (FK cascade)."""
        with self.db.transaction(conn) as c:
            cur = c.execute("DELETE FROM cards")
        logger.info(f"Board cleared: {cur.rowcount} cards deleted")
        return cur.rowcount

    def insert_card(
        self,
        conn: sqlite3.Connection,
        title: str,
        description: Optional[str],
        column: Optional[str],
        due_date: DateLike,
        tags: Optional[Iterable[str]],
        created_at: Optional[str] = None,
        completed_at: Optional[str] = None,
    ) -> int:
        """Insert a card with preserved timestamps inside a caller's transaction.

        Used by snapshot import. completed_at from the source is kept only when
        the card lands in the terminal column.
        """
        title = _require_title(title)
        column = self.workflow.validate(column)
        due = _due(due_date)
        now = self._now()
        created = created_at or now
        updated = max(created, now)
        completed = self.workflow.completion_for(column, completed_at, now)
        cur = conn.execute(
            """
            INSERT INTO cards (title, description, column_name, due_date,
                               created_at, updated_at, completed_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (title, description or "", column, due, created, updated, completed),
        )
        self.tags.replace(conn, cur.lastrowid, tags)
        return cur.lastrowid
