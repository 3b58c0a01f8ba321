"""
Board CSV Loader for the project-management board game.

Reads the five board tables from a directory and converts them into typed
rule rows. Sentinel cells ('dice', 'No change', empty) are recognised here
once, so nothing downstream re-parses raw strings to find them.

CSV File Format (one header row, UTF-8, optional BOM):

SPACES.csv
    space_name, visit_type, phase, path, space_type, event, action, time,
    fee, can_negotiate, requires_dice_roll, destination_1 .. destination_5,
    w_card, b_card, i_card, l_card, e_card

DICE_EFFECTS.csv
    space_name, visit_type, effect_type, card_type, roll_1 .. roll_6
    effect_type is one of 'cards', 'money' or 'time'; card_type (W/B/I/L/E)
    is required for 'cards' rows.

DICE_OUTCOMES.csv
    space_name, visit_type, roll_1 .. roll_6
    A cell may hold 'SPACE-A or SPACE-B'.

GAME_CONFIG.csv
    space_name, is_starting_space, is_ending_space

CARDS.csv
    card_id, card_type, card_name, description, money_effect, time_effect,
    turn_effect

SPACES.csv is required. The other tables are optional and load as empty
when their file is missing.
"""

import csv
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from pm_board.data_models import (
    Card,
    CardType,
    DiceEffectRow,
    DiceOutcomeRow,
    DIE_FACES,
    EffectChannel,
    FixedEffect,
    GameConfigRow,
    Space,
    VisitType,
    parse_effect_value,
)


logger = logging.getLogger(__name__)


SPACES_FILE = "SPACES.csv"
DICE_EFFECTS_FILE = "DICE_EFFECTS.csv"
DICE_OUTCOMES_FILE = "DICE_OUTCOMES.csv"
GAME_CONFIG_FILE = "GAME_CONFIG.csv"
CARDS_FILE = "CARDS.csv"

MAX_DESTINATIONS = 5
ROLL_COLUMNS = [f"roll_{face}" for face in range(1, DIE_FACES + 1)]
DESTINATION_COLUMNS = [f"destination_{n}" for n in range(1, MAX_DESTINATIONS + 1)]
CARD_COLUMNS = {
    CardType.WORK: "w_card",
    CardType.BANK: "b_card",
    CardType.INVESTOR: "i_card",
    CardType.LIFE: "l_card",
    CardType.EXPEDITOR: "e_card",
}

REQUIRED_COLUMNS = {
    SPACES_FILE: ["space_name", "visit_type"],
    DICE_EFFECTS_FILE: ["space_name", "visit_type", "effect_type", *ROLL_COLUMNS],
    DICE_OUTCOMES_FILE: ["space_name", "visit_type", *ROLL_COLUMNS],
    GAME_CONFIG_FILE: ["space_name"],
    CARDS_FILE: ["card_id", "card_type"],
}

TRUE_VALUES = {"yes", "y", "true", "1"}

SpaceKey = tuple[str, VisitType]


class DataIntegrityError(Exception):
    """Board data is structurally broken and cannot be used."""
    pass


@dataclass
class BoardTables:
    """All board rule rows, keyed for lookup."""
    directory: Optional[Path] = None
    spaces: dict[SpaceKey, Space] = field(default_factory=dict)
    space_order: list[str] = field(default_factory=list)
    dice_effects: dict[SpaceKey, list[DiceEffectRow]] = field(default_factory=dict)
    dice_outcomes: dict[SpaceKey, DiceOutcomeRow] = field(default_factory=dict)
    game_config: list[GameConfigRow] = field(default_factory=list)
    cards: list[Card] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def summary(self) -> dict[str, int]:
        return {
            "spaces": len(self.spaces),
            "space_names": len(self.space_order),
            "dice_effect_rows": sum(len(rows) for rows in self.dice_effects.values()),
            "dice_outcome_rows": len(self.dice_outcomes),
            "game_config_rows": len(self.game_config),
            "cards": len(self.cards),
        }


# =============================================================================
# CELL PARSING
# =============================================================================


def _cell(row: dict[str, Optional[str]], column: str) -> str:
    value = row.get(column)
    return value.strip() if value else ""


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in TRUE_VALUES


def _parse_visit_type(value: str, location: str) -> VisitType:
    for visit_type in VisitType:
        if value.lower() == visit_type.value.lower():
            return visit_type
    raise DataIntegrityError(f"{location}: unknown visit_type '{value}'")


def _parse_card_type(value: str, location: str) -> CardType:
    try:
        return CardType(value.strip().upper()[:1])
    except ValueError:
        raise DataIntegrityError(f"{location}: unknown card_type '{value}'") from None


def _parse_channel(effect_type: str, card_type: str, location: str) -> tuple[EffectChannel, Optional[CardType]]:
    """
    Accept 'cards' with a card_type column, or the shorthand 'w_cards' style.
    """
    lowered = effect_type.strip().lower()
    if lowered in ("money", "time"):
        return EffectChannel(lowered), None
    if lowered in ("cards", "card"):
        if not card_type:
            raise DataIntegrityError(f"{location}: 'cards' effect needs a card_type")
        return EffectChannel.CARDS, _parse_card_type(card_type, location)
    if lowered.endswith("_cards") and len(lowered) == len("x_cards"):
        return EffectChannel.CARDS, _parse_card_type(lowered[0], location)
    raise DataIntegrityError(f"{location}: unknown effect_type '{effect_type}'")


# =============================================================================
# FILE READING
# =============================================================================


def _read_rows(path: Path) -> list[dict[str, Optional[str]]]:
    """Read a CSV file, checking headers and dropping blank lines."""
    with open(path, "r", encoding="utf-8-sig", newline="") as f:
        reader = csv.DictReader(f)
        headers = [h.strip() for h in (reader.fieldnames or [])]
        missing = [c for c in REQUIRED_COLUMNS[path.name] if c not in headers]
        if missing:
            raise DataIntegrityError(f"{path.name}: missing columns {missing}")
        rows = []
        for raw in reader:
            row = {(k or "").strip(): v for k, v in raw.items()}
            if any((v or "").strip() for v in row.values() if isinstance(v, str)):
                rows.append(row)
    return rows


def _load_spaces(path: Path, tables: BoardTables) -> None:
    for line, row in enumerate(_read_rows(path), start=2):
        location = f"{path.name} line {line}"
        name = _cell(row, "space_name")
        if not name:
            raise DataIntegrityError(f"{location}: empty space_name")
        visit_type = _parse_visit_type(_cell(row, "visit_type"), location)
        key = (name, visit_type)
        if key in tables.spaces:
            raise DataIntegrityError(f"{location}: duplicate space {name} ({visit_type.value})")

        space = Space(
            space_name=name,
            visit_type=visit_type,
            phase=_cell(row, "phase"),
            path=_cell(row, "path"),
            space_type=_cell(row, "space_type"),
            event=_cell(row, "event"),
            action=_cell(row, "action"),
            time=parse_effect_value(_cell(row, "time")),
            fee=_cell(row, "fee"),
            can_negotiate=_parse_bool(_cell(row, "can_negotiate")),
            requires_dice_roll=_parse_bool(_cell(row, "requires_dice_roll")),
            next_spaces=tuple(
                dest for dest in (_cell(row, c) for c in DESTINATION_COLUMNS) if dest
            ),
            card_effects={
                card_type: parse_effect_value(_cell(row, column))
                for card_type, column in CARD_COLUMNS.items()
            },
        )
        tables.spaces[key] = space
        if name not in tables.space_order:
            tables.space_order.append(name)


def _load_dice_effects(path: Path, tables: BoardTables) -> None:
    for line, row in enumerate(_read_rows(path), start=2):
        location = f"{path.name} line {line}"
        visit_type = _parse_visit_type(_cell(row, "visit_type"), location)
        channel, card_type = _parse_channel(
            _cell(row, "effect_type"), _cell(row, "card_type"), location
        )
        effect_row = DiceEffectRow(
            space_name=_cell(row, "space_name"),
            visit_type=visit_type,
            channel=channel,
            card_type=card_type,
            outcomes=tuple(parse_effect_value(_cell(row, c)) for c in ROLL_COLUMNS),
        )
        tables.dice_effects.setdefault((effect_row.space_name, visit_type), []).append(effect_row)


def _load_dice_outcomes(path: Path, tables: BoardTables) -> None:
    for line, row in enumerate(_read_rows(path), start=2):
        location = f"{path.name} line {line}"
        visit_type = _parse_visit_type(_cell(row, "visit_type"), location)
        outcome_row = DiceOutcomeRow(
            space_name=_cell(row, "space_name"),
            visit_type=visit_type,
            outcomes=tuple(parse_effect_value(_cell(row, c)) for c in ROLL_COLUMNS),
        )
        key = (outcome_row.space_name, visit_type)
        if key in tables.dice_outcomes:
            raise DataIntegrityError(
                f"{location}: duplicate dice outcome row for {key[0]} ({visit_type.value})"
            )
        tables.dice_outcomes[key] = outcome_row


def _load_game_config(path: Path, tables: BoardTables) -> None:
    for row in _read_rows(path):
        tables.game_config.append(GameConfigRow(
            space_name=_cell(row, "space_name"),
            is_starting_space=_parse_bool(_cell(row, "is_starting_space")),
            is_ending_space=_parse_bool(_cell(row, "is_ending_space")),
        ))


def _load_cards(path: Path, tables: BoardTables) -> None:
    seen: set[str] = set()
    for line, row in enumerate(_read_rows(path), start=2):
        location = f"{path.name} line {line}"
        card_id = _cell(row, "card_id")
        if card_id in seen:
            raise DataIntegrityError(f"{location}: duplicate card_id '{card_id}'")
        seen.add(card_id)
        tables.cards.append(Card(
            card_id=card_id,
            card_type=_parse_card_type(_cell(row, "card_type"), location),
            name=_cell(row, "card_name"),
            description=_cell(row, "description"),
            money_effect=_cell(row, "money_effect"),
            time_effect=_cell(row, "time_effect"),
            turn_effect=_cell(row, "turn_effect"),
        ))


# =============================================================================
# VALIDATION
# =============================================================================


def validate_tables(tables: BoardTables) -> None:
    """
    Check cross-table references.

    Raises:
        DataIntegrityError: A destination, dice row or config row names a
            space that does not exist.
    """
    names = set(tables.space_order)
    first_visit_names = {name for name, vt in tables.spaces if vt == VisitType.FIRST}
    errors: list[str] = []

    for (name, visit_type), space in tables.spaces.items():
        for dest in space.next_spaces:
            if dest not in first_visit_names:
                errors.append(f"{name} ({visit_type.value}) -> unknown destination '{dest}'")

    for (name, visit_type), outcome_row in tables.dice_outcomes.items():
        if (name, visit_type) not in tables.spaces:
            errors.append(f"dice outcomes reference unknown space {name} ({visit_type.value})")
        for face in range(1, DIE_FACES + 1):
            for dest in outcome_row.destinations_for(face):
                if dest not in first_visit_names:
                    errors.append(
                        f"{name} ({visit_type.value}) roll {face} -> unknown destination '{dest}'"
                    )

    for name, visit_type in tables.dice_effects:
        if (name, visit_type) not in tables.spaces:
            errors.append(f"dice effects reference unknown space {name} ({visit_type.value})")

    for config in tables.game_config:
        if config.space_name not in names:
            errors.append(f"game config references unknown space '{config.space_name}'")

    if errors:
        for error in errors:
            logger.error(f"Board data error: {error}")
        raise DataIntegrityError("; ".join(errors))

    for (name, visit_type), outcome_row in tables.dice_outcomes.items():
        if not any(isinstance(o, FixedEffect) for o in outcome_row.outcomes):
            tables.warnings.append(f"{name} ({visit_type.value}) has an empty dice outcome row")


def load_board(directory: Path) -> BoardTables:
    """
    Load and validate every board table in a directory.

    Args:
        directory: Directory containing SPACES.csv and friends

    Returns:
        BoardTables ready for a RuleStore

    Raises:
        DataIntegrityError: Missing SPACES.csv, bad headers or dangling references
    """
    directory = Path(directory)
    spaces_path = directory / SPACES_FILE
    if not spaces_path.exists():
        raise DataIntegrityError(f"Board file not found: {spaces_path}")

    tables = BoardTables(directory=directory)
    _load_spaces(spaces_path, tables)

    optional_loaders = [
        (DICE_EFFECTS_FILE, _load_dice_effects),
        (DICE_OUTCOMES_FILE, _load_dice_outcomes),
        (GAME_CONFIG_FILE, _load_game_config),
        (CARDS_FILE, _load_cards),
    ]
    for filename, loader in optional_loaders:
        path = directory / filename
        if path.exists():
            loader(path, tables)
        else:
            message = f"{filename} not found in {directory}, loading as empty"
            tables.warnings.append(message)
            logger.warning(message)

    validate_tables(tables)
    for warning in tables.warnings:
        logger.debug(warning)
    logger.info(f"Loaded board from {directory}: {tables.summary()}")
    return tables
