"""
Tests for the tag set manager.
"""
from pkg.todayboard.tags import TagSet


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Normalization
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_normalize_tags():
    assert TagSet.normalize(None) == []
    assert TagSet.normalize([" b", "a", "b", "", None, "a "]) == ["b", "a"]


def test_normalize_bare_string_is_one_tag():
    """A plain string must not be split into one tag per character."""
    assert TagSet.normalize("urgent") == ["urgent"]
    assert TagSet.normalize("  ") == []


def test_create_with_bare_string_tag(board):
    card = board.cards.create(title="X", tags="urgent")
    assert card.tags == ["urgent"]
    assert board.cards.get(card.id).tags == ["urgent"]


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Storage
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_replace_is_delete_all_insert_all(board):
    card = board.cards.create(title="Tagged", tags=["x", "y", "z"])
    tags = TagSet()
    with board.db.transaction() as conn:
        stored = tags.replace(conn, card.id, ["y", "new", "y"])
    assert stored == ["y", "new"]

    with board.db.transaction() as conn:
        assert tags.for_card(conn, card.id) == ["y", "new"]
        assert tags.for_card(conn, card.id, order_by_name=True) == ["new", "y"]


def test_replace_with_empty_clears(board):
    card = board.cards.create(title="Tagged", tags=["x"])
    with board.db.transaction() as conn:
        TagSet().replace(conn, card.id, [])
    assert board.cards.get(card.id).tags == []


def test_for_cards_bulk_lookup(board):
    a = board.cards.create(title="A", tags=["1", "2"])
    b = board.cards.create(title="B")
    with board.db.transaction() as conn:
        result = TagSet().for_cards(conn, [a.id, b.id])
    assert result == {a.id: ["1", "2"], b.id: []}
