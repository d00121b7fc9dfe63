# todayboard: single-user kanban board with completed-card history
#
# Components:
#   schema.py    - Data model (Card, Comment, Workflow, HistoryFilter, ImportSummary)
#   errors.py    - ValidationError / NotFoundError / PersistenceError
#   store.py     - SQLite persistence layer (schema + per-operation transactions)
#   tags.py      - Tag set replacement
#   comments.py  - Comment CRUD scoped to a card
#   cards.py     - Card lifecycle engine (create/update/move/delete, completion stamping)
#   history.py   - Completed-card history queries
#   snapshot.py  - Whole-board export and merge/replace import
#   config.py    - YAML + environment configuration
#   board.py     - Board facade wiring the services together
#   seed.py      - Sample cards for an empty board
