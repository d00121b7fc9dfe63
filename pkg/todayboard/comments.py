"""
Comment store: CRUD over comments scoped to a card.

Comments never outlive their card. Card deletion calls
`delete_all_for_card()` inside its own transaction, and the FK cascade
backs that up.
"""
import logging
import sqlite3
from datetime import datetime
from typing import Callable, List, Optional

from .errors import NotFoundError, ValidationError
from .schema import Comment, to_timestamp, utc_now
from .store import Database

logger = logging.getLogger(__name__)


def _require_content(content: Optional[str]) -> str:
    if content is None or not str(content).strip():
        raise ValidationError("Content is required")
    return str(content)


class CommentStore:
    """SQLite-backed comment CRUD."""

    def __init__(self, db: Database, clock: Callable[[], datetime] = utc_now):
        self.db = db
        self.clock = clock

    def list_by_card(self, card_id: int, conn: Optional[sqlite3.Connection] = None) -> List[Comment]:
        """Comments of a card, newest first. Unknown cards yield []."""
        with self.db.transaction(conn) as c:
            rows = c.execute(
                "SELECT * FROM comments WHERE card_id = ? ORDER BY created_at DESC, id DESC",
                (card_id,),
            ).fetchall()
        return [Comment.from_row(r) for r in rows]

    def create(self, card_id: int, content: str, created_at: Optional[str] = None,
               conn: Optional[sqlite3.Connection] = None) -> Comment:
        """Attach a comment to an existing card."""
        content = _require_content(content)
        stamp = created_at or to_timestamp(self.clock())
        with self.db.transaction(conn) as c:
            if not self.db.card_exists(c, card_id):
                raise NotFoundError(f"Card {card_id} not found")
            cur = c.execute(
                "INSERT INTO comments (card_id, content, created_at) VALUES (?, ?, ?)",
                (card_id, content, stamp),
            )
            comment_id = cur.lastrowid
        logger.info(f"Comment {comment_id} added to card {card_id}")
        return Comment(id=comment_id, card_id=card_id, content=content, created_at=stamp)

    def update(self, comment_id: int, content: str) -> Comment:
        """Replace a comment's content."""
        content = _require_content(content)
        with self.db.transaction() as c:
            cur = c.execute(
                "UPDATE comments SET content = ? WHERE id = ?",
                (content, comment_id),
            )
            if cur.rowcount == 0:
                raise NotFoundError(f"Comment {comment_id} not found")
            row = c.execute("SELECT * FROM comments WHERE id = ?", (comment_id,)).fetchone()
        logger.info(f"Comment {comment_id} updated")
        return Comment.from_row(row)

    def delete(self, comment_id: int) -> None:
        with self.db.transaction() as c:
            cur = c.execute("DELETE FROM comments WHERE id = ?", (comment_id,))
            if cur.rowcount == 0:
                raise NotFoundError(f"Comment {comment_id} not found")
        logger.info(f"Comment {comment_id} deleted")

    def delete_all_for_card(self, card_id: int, conn: Optional[sqlite3.Connection] = None) -> int:
        """Remove every comment of a card. Zero matches is not an error."""
        with self.db.transaction(conn) as c:
            cur = c.execute("DELETE FROM comments WHERE card_id = ?", (card_id,))
        return cur.rowcount
