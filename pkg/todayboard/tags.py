"""
Tag set manager.

A card's tags are replaced wholesale on every write: delete all, insert all.
There is no diffing against the previous set.
"""
import logging
import sqlite3
from typing import Dict, Iterable, List, Optional, Sequence

logger = logging.getLogger(__name__)


class TagSet:
    """Reads and replaces the tag list owned by a card."""

    @staticmethod
    def normalize(tags: Optional[Iterable[str]]) -> List[str]:
        """Strip, drop blanks and de-duplicate, keeping first-seen order.

        A bare string is a single tag, not a sequence of characters.
        """
        if isinstance(tags, str):
            tags = [tags]
        seen = []
        for tag in tags or []:
            if tag is None:
                continue
            name = str(tag).strip()
            if name and name not in seen:
                seen.append(name)
        return seen

    def replace(self, conn: sqlite3.Connection, card_id: int, tags: Optional[Iterable[str]]) -> List[str]:
        """Replace every tag of `card_id` with `tags`. Returns the stored list."""
        names = self.normalize(tags)
        conn.execute("DELETE FROM tags WHERE card_id = ?", (card_id,))
        conn.executemany(
            "INSERT INTO tags (card_id, name) VALUES (?, ?)",
            [(card_id, name) for name in names],
        )
        logger.debug(f"Card {card_id} tags → {names}")
        return names

    def for_card(self, conn: sqlite3.Connection, card_id: int, order_by_name: bool = False) -> List[str]:
        order = "name ASC" if order_by_name else "id ASC"
        rows = conn.execute(
            f"SELECT name FROM tags WHERE card_id = ? ORDER BY {order}",
            (card_id,),
        ).fetchall()
        return [r["name"] for r in rows]

    def for_cards(self, conn: sqlite3.Connection, card_ids: Sequence[int]) -> Dict[int, List[str]]:
        """Bulk lookup: card id -> tags in insertion order."""
        result: Dict[int, List[str]] = {cid: [] for cid in card_ids}
        if not card_ids:
            return result
        # Chunked to stay under SQLite's bound-parameter limit
        ids = list(card_ids)
        for start in range(0, len(ids), 500):
            chunk = ids[start:start + 500]
            placeholders = ",".join("?" for _ in chunk)
            rows = conn.execute(
                f"SELECT card_id, name FROM tags WHERE card_id IN ({placeholders}) ORDER BY id ASC",
                chunk,
            ).fetchall()
            for row in rows:
                result[row["card_id"]].append(row["name"])
        return result
