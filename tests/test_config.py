"""
Tests for configuration loading and sample-data seeding.
"""
import textwrap
from pathlib import Path

import pytest

from pkg.todayboard.board import Board
from pkg.todayboard.config import BoardConfig
from pkg.todayboard.errors import ValidationError
from pkg.todayboard.schema import Workflow
from pkg.todayboard.seed import seed_sample_cards


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# BoardConfig
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("TODAYBOARD_CONFIG", "TODAYBOARD_DB", "TODAYBOARD_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)


def test_missing_file_gives_defaults(tmp_path):
    cfg = BoardConfig.load(str(tmp_path / "absent.yaml"))
    assert cfg.columns == ["todo", "today", "done"]
    assert cfg.terminal_column == "done"
    assert cfg.port == 3000
    assert cfg.db_path == str(Path("~/.local/share/todayboard/board.db").expanduser())


def test_yaml_values_and_unknown_keys(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(textwrap.dedent(f"""
        db_path: {tmp_path / 'b.db'}
        columns: [backlog, doing, shipped]
        terminal_column: shipped
        port: 8080
        colour_scheme: dark
    """))
    cfg = BoardConfig.load(str(path))
    assert cfg.db_path == str(tmp_path / "b.db")
    assert cfg.port == 8080
    assert cfg.workflow() == Workflow(columns=("backlog", "doing", "shipped"), terminal="shipped")
    assert not hasattr(cfg, "colour_scheme")


def test_env_overrides_file(tmp_path, monkeypatch):
    path = tmp_path / "config.yaml"
    path.write_text("db_path: /nowhere/file.db\nlog_level: INFO\n")
    monkeypatch.setenv("TODAYBOARD_CONFIG", str(path))
    monkeypatch.setenv("TODAYBOARD_DB", str(tmp_path / "env.db"))
    monkeypatch.setenv("TODAYBOARD_LOG_LEVEL", "DEBUG")

    cfg = BoardConfig.load()
    assert cfg.db_path == str(tmp_path / "env.db")
    assert cfg.log_level == "DEBUG"


@pytest.mark.parametrize("body", [
    "columns: []\n",
    "columns: [todo, todo, done]\n",
    "columns: [todo, doing]\nterminal_column: done\n",
    "- just\n- a list\n",
    "columns: [unclosed\n",
])
def test_invalid_config_rejected(tmp_path, body):
    path = tmp_path / "config.yaml"
    path.write_text(body)
    with pytest.raises(ValidationError):
        BoardConfig.load(str(path))


def test_board_from_config(tmp_path, clock):
    cfg = BoardConfig(db_path=str(tmp_path / "cfg.db"), columns=["a", "z"], terminal_column="z")
    board = Board.from_config(cfg, clock=clock)
    card = board.cards.create(title="Configured")
    assert card.column == "a"
    assert board.cards.move(card.id, "z").completed_at is not None
    assert Path(board.db.db_path).exists()


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Sample data
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_seed_only_into_empty_board(board):
    created = seed_sample_cards(board.cards)
    assert len(created) == 2
    assert {c.column for c in created} == {"todo", "today"}
    assert created[0].tags == ["important", "sample"]

    assert seed_sample_cards(board.cards) == []
    assert len(board.cards.list_active()) == 2


def test_seed_falls_back_to_first_column(db, clock):
    board = Board(db, Workflow(columns=("inbox", "todo", "shipped"), terminal="shipped"), clock=clock)
    created = seed_sample_cards(board.cards)
    assert [c.column for c in created] == ["todo", "inbox"]
