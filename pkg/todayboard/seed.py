"""
Sample cards for a fresh board.
"""
import logging
from typing import List

from .cards import CardLifecycle
from .schema import Card

logger = logging.getLogger(__name__)

SAMPLE_CARDS = [
    {
        "title": "Sample task 1",
        "description": "# Task description\n\nThis is a sample task.",
        "column": "todo",
        "due_date": "2025-12-15",
        "tags": ["important", "sample"],
    },
    {
        "title": "Sample task 2",
        "description": "## Urgent task\n\n- item 1\n- item 2",
        "column": "today",
        "due_date": None,
        "tags": ["urgent", "dev"],
    },
]


def seed_sample_cards(cards: CardLifecycle) -> List[Card]:
    """Insert the sample cards, but only into an empty board.

    Columns missing from a custom workflow fall back to its first column.
    """
    if any(cards.count_by_column().values()):
        logger.info("Cards already exist, skipping sample data")
        return []
    created = []
    for sample in SAMPLE_CARDS:
        column = sample["column"] if sample["column"] in cards.workflow.columns else None
        created.append(cards.create(
            title=sample["title"],
            description=sample["description"],
            column=column,
            due_date=sample["due_date"],
            tags=sample["tags"],
        ))
    logger.info(f"Inserted {len(created)} sample cards")
    return created
