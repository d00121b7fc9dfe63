"""Shared test fixtures for the board core and HTTP server tests."""

from datetime import datetime, timedelta, timezone

import pytest

from pkg.todayboard.board import Board
from pkg.todayboard.store import Database


class FakeClock:
    """Settable clock injected in place of utc_now()."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now

    def set(self, *args) -> datetime:
        self.now = datetime(*args, tzinfo=timezone.utc)
        return self.now


@pytest.fixture
def clock():
    return FakeClock(datetime(2025, 1, 10, 9, 0, tzinfo=timezone.utc))


@pytest.fixture
def db(tmp_path):
    return Database(tmp_path / "board.db")


@pytest.fixture
def board(db, clock):
    return Board(db, clock=clock)
