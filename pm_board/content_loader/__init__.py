"""Board content loading module."""

from pm_board.content_loader.csv_loader import (
    BoardTables,
    DataIntegrityError,
    load_board,
    validate_tables,
)

__all__ = [
    "BoardTables",
    "DataIntegrityError",
    "load_board",
    "validate_tables",
]
