"""
Test helpers for the project board test suite.

Builds a small hand-made board and writes it as CSV tables:

    START (start) --> X --> Y (dice) --> Z (Logic) --> FORK_A --> END (end)
                                                  \\-> FORK_B --> (dice) FORK_A / END

Every table builder returns fresh row dicts, so tests can edit them and
write a variant board with write_board().
"""

import csv
from pathlib import Path
from typing import Optional

from pm_board.content_loader.csv_loader import (
    CARD_COLUMNS,
    DESTINATION_COLUMNS,
    ROLL_COLUMNS,
)


SHIPPED_BOARD = Path(__file__).resolve().parent.parent / "data" / "board"


# =============================================================================
# BOARD TABLES
# =============================================================================


SPACE_HEADER = [
    "space_name", "visit_type", "phase", "path", "space_type", "event", "action",
    "time", "fee", "can_negotiate", "requires_dice_roll",
    *DESTINATION_COLUMNS,
    *CARD_COLUMNS.values(),
]
DICE_EFFECT_HEADER = ["space_name", "visit_type", "effect_type", "card_type", *ROLL_COLUMNS]
DICE_OUTCOME_HEADER = ["space_name", "visit_type", *ROLL_COLUMNS]
GAME_CONFIG_HEADER = ["space_name", "is_starting_space", "is_ending_space"]
CARD_HEADER = [
    "card_id", "card_type", "card_name", "description",
    "money_effect", "time_effect", "turn_effect",
]


def space_row(name: str, visit: str = "First", dests: tuple = (), **cells) -> dict:
    """Build a SPACES.csv row; destinations fill destination_1.. in order."""
    row = {column: "" for column in SPACE_HEADER}
    row.update(space_name=name, visit_type=visit, path="Main")
    for column, dest in zip(DESTINATION_COLUMNS, dests):
        row[column] = dest
    row.update(cells)
    return row


def dice_row(name: str, effect_type: str, rolls: list, card_type: str = "", visit: str = "First") -> dict:
    row = {"space_name": name, "visit_type": visit, "effect_type": effect_type, "card_type": card_type}
    row.update(zip(ROLL_COLUMNS, rolls))
    return row


def outcome_row(name: str, rolls: list, visit: str = "First") -> dict:
    row = {"space_name": name, "visit_type": visit}
    row.update(zip(ROLL_COLUMNS, rolls))
    return row


def board_spaces() -> list[dict]:
    return [
        space_row("START", dests=("X",), time="1", can_negotiate="Yes", w_card="Draw 2"),
        space_row("START", "Subsequent", dests=("X",), time="1"),
        space_row("X", dests=("Y",), time="2", can_negotiate="Yes"),
        space_row("X", "Subsequent", dests=("Y",), time="1", can_negotiate="Yes"),
        space_row(
            "Y", dests=("Z",), time="dice", fee="$1,500",
            can_negotiate="Yes", requires_dice_roll="Yes", w_card="dice",
        ),
        space_row("Y", "Subsequent", dests=("Z",), time="1"),
        space_row("Z", dests=("FORK_A", "FORK_B"), space_type="Logic", time="1",
                  event="Is the scope approved? Choose yes/no"),
        space_row("Z", "Subsequent", dests=("FORK_A", "FORK_B"), space_type="Logic", time="1"),
        space_row("FORK_A", dests=("END",), time="1", fee="5%", b_card="Draw 1", i_card="Draw 1"),
        space_row("FORK_B", dests=("END",), time="1", requires_dice_roll="Yes"),
        space_row("END"),
    ]


def board_dice_effects() -> list[dict]:
    return [
        dice_row("Y", "cards", ["Draw 1", "No change", "Draw 2", "No change", "No change", "No change"], "W"),
        dice_row("Y", "time", ["1", "1", "2", "2", "3", "3"]),
        dice_row("Y", "money", ["No change"] * 5 + ["+500"]),
        dice_row("FORK_B", "money", ["lots of money", "No change", "No change", "No change", "No change", "-$2K"]),
    ]


def board_dice_outcomes() -> list[dict]:
    return [
        outcome_row("FORK_B", ["FORK_A", "END", "FORK_A or END", "No change", "No change", "No change"]),
    ]


def board_game_config() -> list[dict]:
    return [
        {"space_name": "START", "is_starting_space": "Yes", "is_ending_space": "No"},
        {"space_name": "END", "is_starting_space": "No", "is_ending_space": "Yes"},
    ]


def board_cards() -> list[dict]:
    def card(card_id, card_type, name, money="", time="", turn=""):
        return {
            "card_id": card_id, "card_type": card_type, "card_name": name, "description": "",
            "money_effect": money, "time_effect": time, "turn_effect": turn,
        }

    return [
        card("W001", "W", "Foundation"),
        card("W002", "W", "Framing"),
        card("W003", "W", "Plumbing"),
        card("W004", "W", "Electrical"),
        card("B001", "B", "Construction Loan", "+$10,000", "2"),
        card("B002", "B", "Bridge Loan", "+$5,000"),
        card("I001", "I", "Angel Investor", "+$50,000", "3"),
        card("I002", "I", "Investor Walks", "-$1,000"),
        card("L001", "L", "Illness", "", "1", "Skip next turn"),
        card("L002", "L", "Lawsuit", "-$500"),
        card("E001", "E", "Expediter", "-$1K"),
    ]


def _write_csv(path: Path, header: list[str], rows: list[dict], encoding: str = "utf-8") -> None:
    with open(path, "w", encoding=encoding, newline="") as f:
        writer = csv.DictWriter(f, fieldnames=header)
        writer.writeheader()
        writer.writerows(rows)


def write_board(
    directory: Path,
    spaces: Optional[list[dict]] = None,
    dice_effects: Optional[list[dict]] = None,
    dice_outcomes: Optional[list[dict]] = None,
    game_config: Optional[list[dict]] = None,
    cards: Optional[list[dict]] = None,
    skip: tuple[str, ...] = (),
) -> Path:
    """
    Write a board directory. Tables default to the standard test board;
    file names listed in skip are not written at all.
    """
    directory.mkdir(parents=True, exist_ok=True)
    tables = [
        ("SPACES.csv", SPACE_HEADER, board_spaces() if spaces is None else spaces),
        ("DICE_EFFECTS.csv", DICE_EFFECT_HEADER, board_dice_effects() if dice_effects is None else dice_effects),
        ("DICE_OUTCOMES.csv", DICE_OUTCOME_HEADER, board_dice_outcomes() if dice_outcomes is None else dice_outcomes),
        ("GAME_CONFIG.csv", GAME_CONFIG_HEADER, board_game_config() if game_config is None else game_config),
        ("CARDS.csv", CARD_HEADER, board_cards() if cards is None else cards),
    ]
    for filename, header, rows in tables:
        if filename not in skip:
            _write_csv(directory / filename, header, rows)
    return directory
