#!/usr/bin/env python3
"""
todayboard server
-----------------
Serves the board's JSON API on top of the SQLite store in pkg/todayboard/.

Usage:
    python board_server.py --db ~/board.db --port 3000
    python board_server.py --config ~/.config/todayboard/config.yaml --seed

API:
    GET    /api/cards                  → active cards (not completed, or completed today)
    GET    /api/cards/<id>             → card with tags and comments
    POST   /api/cards                  → create   { title, description, column, due_date, tags }
    PUT    /api/cards/<id>             → full update (same body as create)
    PATCH  /api/cards/<id>/move        → { column }
    DELETE /api/cards/<id>             → { deletedCount }
    GET    /api/history?date=&from=&to=&q=
    GET    /api/cards/<id>/comments
    POST   /api/cards/<id>/comments    → { content }
    PUT    /api/comments/<id>          → { content }
    DELETE /api/comments/<id>
    GET    /api/export                 → snapshot document (attachment)
    POST   /api/import                 → { data: <snapshot>, mode: "merge"|"replace" }
    GET    /health
"""

import argparse
import logging
import sys
from datetime import datetime, timezone

from flask import Flask, jsonify, request

from pkg.todayboard.board import Board
from pkg.todayboard.config import BoardConfig
from pkg.todayboard.errors import NotFoundError, PersistenceError, ValidationError
from pkg.todayboard.schema import HistoryFilter
from pkg.todayboard.seed import seed_sample_cards

logger = logging.getLogger("todayboard.server")

app = Flask(__name__)


# ── Config ───────────────────────────────────────────────────────────────────

def get_config() -> BoardConfig:
    cfg = app.config.get("BOARD_CONFIG")
    if cfg is None:
        cfg = BoardConfig.load()
        app.config["BOARD_CONFIG"] = cfg
    return cfg


def get_board() -> Board:
    board = app.config.get("BOARD")
    if board is None:
        board = Board.from_config(get_config())
        app.config["BOARD"] = board
    return board


def _body() -> dict:
    data = request.get_json(force=True, silent=True)
    return data if isinstance(data, dict) else {}


def _tags(value) -> list:
    """Tags arrive as a list or as a comma-separated string."""
    if value is None:
        return []
    if isinstance(value, str):
        return [t.strip() for t in value.split(",") if t.strip()]
    if isinstance(value, list):
        return value
    raise ValidationError("tags must be a list or a comma-separated string")


def _column(data: dict):
    return data.get("column", data.get("column_name"))


# ── Errors ───────────────────────────────────────────────────────────────────

@app.errorhandler(ValidationError)
def handle_validation(e):
    return jsonify({"error": str(e)}), 400


@app.errorhandler(NotFoundError)
def handle_not_found(e):
    return jsonify({"error": str(e)}), 404


@app.errorhandler(PersistenceError)
def handle_persistence(e):
    logger.error(f"Store failure on {request.method} {request.path}: {e}")
    return jsonify({"error": "Database error"}), 500


@app.errorhandler(404)
def handle_unknown_route(e):
    return jsonify({"error": "Not found"}), 404


# ── Cards ────────────────────────────────────────────────────────────────────

@app.route("/api/cards", methods=["GET"])
def api_cards():
    cards = get_board().cards.list_active()
    return jsonify([c.to_dict() for c in cards])


@app.route("/api/cards/<int:card_id>", methods=["GET"])
def api_card(card_id):
    return jsonify(get_board().cards.get(card_id).to_dict())


@app.route("/api/cards", methods=["POST"])
def api_create_card():
    data = _body()
    card = get_board().cards.create(
        title=data.get("title"),
        description=data.get("description"),
        column=_column(data),
        due_date=data.get("due_date"),
        tags=_tags(data.get("tags")),
    )
    return jsonify(card.to_dict()), 201


@app.route("/api/cards/<int:card_id>", methods=["PUT"])
def api_update_card(card_id):
    data = _body()
    card = get_board().cards.update(
        card_id,
        title=data.get("title"),
        description=data.get("description"),
        column=_column(data),
        due_date=data.get("due_date"),
        tags=_tags(data.get("tags")),
    )
    return jsonify(card.to_dict())


@app.route("/api/cards/<int:card_id>/move", methods=["PATCH"])
def api_move_card(card_id):
    data = _body()
    card = get_board().cards.move(card_id, _column(data))
    return jsonify(card.to_dict())


@app.route("/api/cards/<int:card_id>", methods=["DELETE"])
def api_delete_card(card_id):
    deleted = get_board().cards.delete(card_id)
    if not deleted:
        raise NotFoundError(f"Card {card_id} not found")
    return jsonify({"deletedCount": deleted})


# ── History ──────────────────────────────────────────────────────────────────

@app.route("/api/history", methods=["GET"])
def api_history():
    criteria = HistoryFilter(
        date=request.args.get("date") or None,
        date_from=request.args.get("from") or None,
        date_to=request.args.get("to") or None,
        search=request.args.get("q") or None,
    )
    cards = get_board().history.query(criteria)
    return jsonify([c.to_dict() for c in cards])


# ── Comments ─────────────────────────────────────────────────────────────────

@app.route("/api/cards/<int:card_id>/comments", methods=["GET"])
def api_comments(card_id):
    comments = get_board().comments.list_by_card(card_id)
    return jsonify([c.to_dict() for c in comments])


@app.route("/api/cards/<int:card_id>/comments", methods=["POST"])
def api_create_comment(card_id):
    comment = get_board().comments.create(card_id, _body().get("content"))
    return jsonify(comment.to_dict()), 201


@app.route("/api/comments/<int:comment_id>", methods=["PUT"])
def api_update_comment(comment_id):
    comment = get_board().comments.update(comment_id, _body().get("content"))
    return jsonify(comment.to_dict())


@app.route("/api/comments/<int:comment_id>", methods=["DELETE"])
def api_delete_comment(comment_id):
    get_board().comments.delete(comment_id)
    return jsonify({"deletedCount": 1})


# ── Snapshot ─────────────────────────────────────────────────────────────────

@app.route("/api/export", methods=["GET"])
def api_export():
    document = get_board().snapshots.export()
    response = jsonify(document)
    stamp = datetime.now(timezone.utc).strftime("%Y-%m-%d")
    response.headers["Content-Disposition"] = f'attachment; filename="kanban-export-{stamp}.json"'
    return response


@app.route("/api/import", methods=["POST"])
def api_import():
    data = _body()
    summary = get_board().snapshots.import_document(data.get("data"), data.get("mode") or "merge")
    return jsonify(summary.to_dict())


@app.route("/health")
def health():
    board = get_board()
    return jsonify({
        "status": "ok",
        "db": board.db.db_path,
        "columns": board.cards.count_by_column(),
    })


# ── Main ─────────────────────────────────────────────────────────────────────

def main(argv=None):
    parser = argparse.ArgumentParser(description="todayboard server")
    parser.add_argument("--config", help="Path to config.yaml (overrides TODAYBOARD_CONFIG)")
    parser.add_argument("--host", help="Bind address (use 0.0.0.0 to expose on network)")
    parser.add_argument("--port", type=int)
    parser.add_argument("--db", help="Path to board.db (overrides TODAYBOARD_DB)")
    parser.add_argument("--seed", action="store_true", help="Insert sample cards into an empty board")
    args = parser.parse_args(argv)

    cfg = BoardConfig.load(args.config)
    if args.db:
        cfg.db_path = args.db
        cfg.resolve_paths()
    if args.host:
        cfg.host = args.host
    if args.port:
        cfg.port = args.port
    app.config["BOARD_CONFIG"] = cfg
    app.config.pop("BOARD", None)

    logging.basicConfig(
        level=getattr(logging, str(cfg.log_level).upper(), logging.INFO),
        format="%(asctime)s [todayboard] %(levelname)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    board = get_board()
    if args.seed or cfg.seed_sample_data:
        seed_sample_cards(board.cards)

    logger.info(f"Serving {cfg.db_path} on http://{cfg.host}:{cfg.port}")
    app.run(host=cfg.host, port=cfg.port, debug=False, threaded=True)


if __name__ == "__main__":
    main()
