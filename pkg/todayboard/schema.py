"""
Board schema: cards, comments, workflow columns and query/import value types.

Card lifecycle:
  todo ⇄ today ⇄ done   (free transitions, any column may follow any other)

Only the terminal column has special behaviour: entering it stamps
completed_at, leaving it clears completed_at.
"""
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Optional, List, Dict, Any, Iterable, Sequence, Union

from .errors import ValidationError

DEFAULT_COLUMNS = ("todo", "today", "done")
TERMINAL_COLUMN = "done"

DateLike = Union[date, str, None]


def utc_now() -> datetime:
    """Current time, timezone-aware UTC."""
    return datetime.now(timezone.utc)


def to_timestamp(moment: datetime) -> str:
    """Serialize a datetime the way it is stored (ISO-8601, UTC)."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).isoformat()


def parse_timestamp(value: Union[datetime, str]) -> str:
    """Normalize an incoming timestamp to the stored ISO UTC form.

    Accepts datetimes and ISO-8601 strings (including a trailing 'Z' and the
    'YYYY-MM-DD HH:MM:SS' form SQLite produces). Naive values are taken as UTC.
    """
    if isinstance(value, datetime):
        return to_timestamp(value)
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"Invalid timestamp: {value!r}")
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return to_timestamp(datetime.fromisoformat(text))
    except ValueError:
        raise ValidationError(f"Invalid timestamp: {value!r}") from None


def parse_date(value: DateLike, field_name: str = "date") -> Optional[date]:
    """Parse a calendar date (YYYY-MM-DD); None and '' mean no date.

    A full ISO-8601 datetime string is accepted too and reduced to its date.
    Anything else, trailing junk included, is a ValidationError.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            if "T" in text or " " in text:
                if text.endswith("Z"):
                    text = text[:-1] + "+00:00"
                return datetime.fromisoformat(text).date()
            return date.fromisoformat(text)
        except ValueError:
            pass
    raise ValidationError(f"Invalid {field_name}: {value!r} (expected YYYY-MM-DD)")


def timestamp_day(timestamp: Optional[str]) -> Optional[str]:
    """Calendar day (YYYY-MM-DD) of a stored timestamp."""
    return timestamp[:10] if timestamp else None


@dataclass(frozen=True)
class Workflow:
    """Ordered set of column names plus the terminal (completion) column."""
    columns: Sequence[str] = DEFAULT_COLUMNS
    terminal: str = TERMINAL_COLUMN

    def __post_init__(self):
        columns = tuple(c.strip() for c in self.columns)
        if not columns or any(not c for c in columns):
            raise ValidationError("Workflow needs at least one non-empty column")
        if len(set(columns)) != len(columns):
            raise ValidationError(f"Duplicate workflow columns: {list(columns)}")
        if self.terminal not in columns:
            raise ValidationError(
                f"Terminal column '{self.terminal}' is not one of {list(columns)}"
            )
        object.__setattr__(self, "columns", columns)

    @property
    def default(self) -> str:
        return self.columns[0]

    def is_terminal(self, column: str) -> bool:
        return column == self.terminal

    def validate(self, column: Optional[str]) -> str:
        """Return a known column name; None/blank falls back to the default."""
        if column is None or (isinstance(column, str) and not column.strip()):
            return self.default
        if not isinstance(column, str) or column.strip() not in self.columns:
            raise ValidationError(
                f"Invalid column: {column!r} (expected one of {list(self.columns)})"
            )
        return column.strip()

    def completion_for(self, column: str, previous: Optional[str], now: str) -> Optional[str]:
        """Derive completed_at for a card landing in `column`.

        Entering the terminal column stamps `now`, staying there keeps the
        existing stamp, any other column clears it.
        """
        if not self.is_terminal(column):
            return None
        return previous or now


@dataclass
class Comment:
    """A markdown comment attached to one card."""
    id: int
    card_id: int
    content: str
    created_at: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "card_id": self.card_id,
            "content": self.content,
            "created_at": self.created_at,
        }

    @classmethod
    def from_row(cls, row) -> "Comment":
        return cls(
            id=row["id"],
            card_id=row["card_id"],
            content=row["content"],
            created_at=row["created_at"],
        )


@dataclass
class Card:
    """Core kanban card."""

    id: int
    title: str
    description: str = ""
    column: str = DEFAULT_COLUMNS[0]
    due_date: Optional[str] = None        # YYYY-MM-DD
    created_at: str = ""
    updated_at: str = ""
    completed_at: Optional[str] = None

    tags: List[str] = field(default_factory=list)
    # Only populated by CardLifecycle.get()
    comments: Optional[List[Comment]] = None

    @property
    def is_completed(self) -> bool:
        return self.completed_at is not None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to a JSON-ready dict."""
        data = {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "column": self.column,
            "due_date": self.due_date,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "completed_at": self.completed_at,
            "tags": list(self.tags),
        }
        if self.comments is not None:
            data["comments"] = [c.to_dict() for c in self.comments]
        return data

    @classmethod
    def from_row(cls, row, tags: Optional[Iterable[str]] = None) -> "Card":
        """Build a card from a `cards` table row."""
        return cls(
            id=row["id"],
            title=row["title"],
            description=row["description"] or "",
            column=row["column_name"],
            due_date=row["due_date"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
            completed_at=row["completed_at"],
            tags=list(tags or []),
        )


@dataclass
class HistoryFilter:
    """Criteria for the completed-card history. All given criteria are ANDed."""
    date: DateLike = None
    date_from: DateLike = None
    date_to: DateLike = None
    search: Optional[str] = None

    def resolved(self):
        """Return (date, date_from, date_to, needle) with dates parsed.

        The search needle is casefolded; blank search becomes None.
        """
        on = parse_date(self.date, "date")
        start = parse_date(self.date_from, "from date")
        end = parse_date(self.date_to, "to date")
        if start and end and start > end:
            raise ValidationError(f"Date range is reversed: {start} > {end}")
        needle = (self.search or "").strip().casefold() or None
        return on, start, end, needle


@dataclass
class ImportSummary:
    """Outcome of a snapshot import."""
    imported: int = 0
    skipped: int = 0
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "imported": self.imported,
            "skipped": self.skipped,
            "errors": list(self.errors),
        }
