"""
Board facade: one object wiring the store, engines and services together.

Transport layers build a Board per request (or share one); the Database
underneath opens a connection per operation, so sharing is safe.
"""
from datetime import datetime
from typing import Callable, Optional

from .cards import CardLifecycle
from .comments import CommentStore
from .config import BoardConfig
from .history import HistoryService
from .schema import Workflow, utc_now
from .snapshot import SnapshotService
from .store import Database
from .tags import TagSet


class Board:
    """Entry point exposing cards, comments, history and snapshots."""

    def __init__(
        self,
        db: Database,
        workflow: Optional[Workflow] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.db = db
        self.workflow = workflow or Workflow()
        self.tags = TagSet()
        self.comments = CommentStore(db, clock=clock)
        self.cards = CardLifecycle(db, self.workflow, tags=self.tags,
                                   comments=self.comments, clock=clock)
        self.history = HistoryService(db, tags=self.tags)
        self.snapshots = SnapshotService(db, self.cards, self.comments, clock=clock)

    @classmethod
    def from_config(cls, config: BoardConfig, clock: Callable[[], datetime] = utc_now) -> "Board":
        return cls(Database(config.db_path), config.workflow(), clock=clock)
