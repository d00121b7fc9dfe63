"""
Completed-card history.

Only cards with a completion stamp are eligible. Date criteria are applied in
SQL against the UTC calendar day of completed_at; the text search runs in
Python with str.casefold so non-ASCII titles match case-insensitively too.
"""
import logging
from typing import List, Optional

from .schema import Card, HistoryFilter
from .store import Database
from .tags import TagSet

logger = logging.getLogger(__name__)


class HistoryService:
    """Filters and returns completed cards, most recently completed first."""

    def __init__(self, db: Database, tags: Optional[TagSet] = None):
        self.db = db
        self.tags = tags or TagSet()

    def query(self, criteria: Optional[HistoryFilter] = None) -> List[Card]:
        on, start, end, needle = (criteria or HistoryFilter()).resolved()

        clauses = ["completed_at IS NOT NULL"]
        params: list = []
        if on:
            clauses.append("substr(completed_at, 1, 10) = ?")
            params.append(on.isoformat())
        if start:
            clauses.append("substr(completed_at, 1, 10) >= ?")
            params.append(start.isoformat())
        if end:
            clauses.append("substr(completed_at, 1, 10) <= ?")
            params.append(end.isoformat())

        sql = (
            "SELECT * FROM cards WHERE " + " AND ".join(clauses)
            + " ORDER BY completed_at DESC, id DESC"
        )
        with self.db.transaction() as conn:
            rows = conn.execute(sql, params).fetchall()
            if needle:
                rows = [r for r in rows if _matches(r, needle)]
            tag_map = self.tags.for_cards(conn, [r["id"] for r in rows])

        logger.debug(f"history query date={on} from={start} to={end} search={needle!r} → {len(rows)}")
        return [Card.from_row(r, tag_map[r["id"]]) for r in rows]


def _matches(row, needle: str) -> bool:
    """Case-insensitive substring match against title or description."""
    title = (row["title"] or "").casefold()
    description = (row["description"] or "").casefold()
    return needle in title or needle in description
