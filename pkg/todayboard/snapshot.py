"""
Whole-board snapshot export and import.

Document format:
    {
      "version": "1.0",
      "timestamp": "<ISO-8601 UTC>",
      "cards": [
        {id, title, description, column, due_date, created_at, updated_at,
         completed_at, tags: [str], comments: [{content, created_at}]}
      ]
    }

Import modes:
  replace - one transaction: delete every card, insert every incoming card.
            A store failure rolls the whole import back.
  merge   - per card: skip when its id already exists, else insert with a new
            id. Failures are recorded per card and the batch continues.
"""
import logging
import sqlite3
from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional

from .cards import CardLifecycle
from .comments import CommentStore
from .errors import PersistenceError, ValidationError
from .schema import ImportSummary, parse_timestamp, to_timestamp, utc_now
from .store import Database

logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = "1.0"
IMPORT_MODES = ("merge", "replace")


def _entry_label(entry: Any, index: int) -> str:
    if isinstance(entry, Mapping) and str(entry.get("title") or "").strip():
        return str(entry["title"]).strip()
    return f"card #{index + 1}"


def _source_id(entry: Mapping) -> Optional[int]:
    """Id carried by an incoming card: an int or a string of digits, else None."""
    value = entry.get("id")
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def _optional_timestamp(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    return parse_timestamp(value)


class SnapshotService:
    """Exports the board to a portable document and re-hydrates it."""

    def __init__(
        self,
        db: Database,
        cards: CardLifecycle,
        comments: CommentStore,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.db = db
        self.cards = cards
        self.comments = comments
        self.clock = clock

    # ── Export ───────────────────────────────────────────────────────────────

    def export(self) -> Dict[str, Any]:
        """Serialize every card (active and completed) with its comments."""
        with self.db.transaction() as conn:
            cards = self.cards.list_all(conn=conn)
            rows = conn.execute(
                "SELECT card_id, content, created_at FROM comments ORDER BY created_at ASC, id ASC"
            ).fetchall()

        by_card: Dict[int, List[Dict[str, str]]] = {}
        for row in rows:
            by_card.setdefault(row["card_id"], []).append(
                {"content": row["content"], "created_at": row["created_at"]}
            )

        entries = []
        for card in cards:
            entry = card.to_dict()
            entry["comments"] = by_card.get(card.id, [])
            entries.append(entry)

        logger.info(f"Exported {len(entries)} cards")
        return {
            "version": SNAPSHOT_VERSION,
            "timestamp": to_timestamp(self.clock()),
            "cards": entries,
        }

    # ── Import ───────────────────────────────────────────────────────────────

    def import_document(self, document: Any, mode: str = "merge") -> ImportSummary:
        """Load a snapshot document under merge or replace policy."""
        if not isinstance(document, Mapping):
            raise ValidationError("Import document must be an object")
        entries = document.get("cards")
        if not isinstance(entries, list):
            raise ValidationError("Import document must contain a 'cards' array")
        if mode not in IMPORT_MODES:
            raise ValidationError(f"Invalid import mode: {mode!r} (expected 'merge' or 'replace')")

        if mode == "replace":
            summary = self._import_replace(entries)
        else:
            summary = self._import_merge(entries)

        logger.info(
            f"Import ({mode}) finished: {summary.imported} imported, "
            f"{summary.skipped} skipped, {len(summary.errors)} errors"
        )
        return summary

    def _import_replace(self, entries: List[Any]) -> ImportSummary:
        summary = ImportSummary()
        with self.db.transaction() as conn:
            self.cards.delete_all(conn=conn)
            for index, entry in enumerate(entries):
                try:
                    self._insert_entry(conn, entry)
                except ValidationError as e:
                    self._record(summary, entry, index, e)
                    continue
                summary.imported += 1
        return summary

    def _import_merge(self, entries: List[Any]) -> ImportSummary:
        summary = ImportSummary()
        # Only ids on the board before the import count; cards inserted below get fresh ids
        with self.db.transaction() as conn:
            existing = {row["id"] for row in conn.execute("SELECT id FROM cards")}
        for index, entry in enumerate(entries):
            try:
                with self.db.transaction() as conn:
                    source_id = _source_id(entry) if isinstance(entry, Mapping) else None
                    if source_id is not None and source_id in existing:
                        logger.debug(f"Skipping card {source_id}: id already on the board")
                        summary.skipped += 1
                        continue
                    self._insert_entry(conn, entry)
            except (ValidationError, PersistenceError) as e:
                self._record(summary, entry, index, e)
                continue
            summary.imported += 1
        return summary

    def _record(self, summary: ImportSummary, entry: Any, index: int, error: Exception) -> None:
        message = f"{_entry_label(entry, index)}: {error}"
        summary.errors.append(message)
        logger.warning(f"Import failed for {message}")

    def _insert_entry(self, conn: sqlite3.Connection, entry: Any) -> int:
        """Validate one incoming card fully, then insert it with its comments."""
        if not isinstance(entry, Mapping):
            raise ValidationError("Card entry must be an object")

        tags = entry.get("tags") or []
        if isinstance(tags, str):
            tags = tags.split(",")
        if not isinstance(tags, list):
            raise ValidationError("tags must be a list")

        raw_comments = entry.get("comments") or []
        if not isinstance(raw_comments, list):
            raise ValidationError("comments must be a list")
        comments = []
        for raw in raw_comments:
            if isinstance(raw, str):
                raw = {"content": raw}
            if not isinstance(raw, Mapping) or not str(raw.get("content") or "").strip():
                raise ValidationError("Comment content is required")
            comments.append((str(raw["content"]), _optional_timestamp(raw.get("created_at"))))

        column = entry.get("column", entry.get("column_name"))
        card_id = self.cards.insert_card(
            conn,
            title=entry.get("title"),
            description=entry.get("description"),
            column=column,
            due_date=entry.get("due_date"),
            tags=tags,
            created_at=_optional_timestamp(entry.get("created_at")),
            completed_at=_optional_timestamp(entry.get("completed_at")),
        )
        for content, created_at in comments:
            self.comments.create(card_id, content, created_at=created_at, conn=conn)
        return card_id
