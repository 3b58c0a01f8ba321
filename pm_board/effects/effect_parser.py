"""
Parsers for effect instruction text found in board cells and cards.

Card instructions:  'Draw 2', 'Remove 1', 'Return 1', 'Discard 1', 'Replace 1'
Money amounts:      '+500', '-1,000', '$1,500', '-$2K', '1.5M'
Fees:               '$1,500' (cost) or '5%' (percentage of a base)
Time amounts:       '3', '+3', '3 days'
"""

import re
from dataclasses import dataclass
from typing import Optional

from pm_board.data_models import CardOp, CardOpKind, CardType


class MalformedEffectError(Exception):
    """An effect cell could not be parsed."""

    def __init__(self, text: str, reason: str = ""):
        self.text = text
        self.reason = reason
        message = f"Malformed effect '{text}'"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


CARD_PATTERN = re.compile(
    r"^\s*(draw|remove|return|discard|replace)\s+(\d+)\b",
    re.IGNORECASE,
)
MONEY_PATTERN = re.compile(
    r"^\s*([+-])?\s*\$?\s*([+-])?\s*(\d[\d,]*(?:\.\d+)?|\.\d+)\s*([kmb])?\s*$",
    re.IGNORECASE,
)
PERCENT_PATTERN = re.compile(r"(\d+(?:\.\d+)?)\s*%")
TIME_PATTERN = re.compile(r"^\s*([+-])?\s*(\d+)\s*(?:days?)?\s*$", re.IGNORECASE)

CARD_VERBS = {
    "draw": CardOpKind.DRAW,
    "remove": CardOpKind.REMOVE,
    "return": CardOpKind.REMOVE,
    "discard": CardOpKind.REMOVE,
    "replace": CardOpKind.REPLACE,
}
MONEY_SUFFIXES = {"k": 1_000, "m": 1_000_000, "b": 1_000_000_000}


@dataclass(frozen=True)
class FeeAmount:
    """A parsed fee: a fixed cost, or a percentage awaiting a base."""
    amount: int = 0
    percent: Optional[float] = None

    @property
    def is_percentage(self) -> bool:
        return self.percent is not None


def parse_card_instruction(card_type: CardType, text: str) -> CardOp:
    """
    Parse a card slot instruction.

    Raises:
        MalformedEffectError: Unknown verb or a zero count
    """
    match = CARD_PATTERN.match(text)
    if not match:
        raise MalformedEffectError(text, "expected Draw/Remove/Return/Discard/Replace N")
    count = int(match.group(2))
    if count <= 0:
        raise MalformedEffectError(text, "card count must be positive")
    return CardOp(card_type=card_type, op=CARD_VERBS[match.group(1).lower()], count=count)


def parse_money(text: str) -> int:
    """
    Parse a signed money amount into whole dollars.

    Raises:
        MalformedEffectError: Text is not a money amount
    """
    match = MONEY_PATTERN.match(text)
    if not match:
        raise MalformedEffectError(text, "expected a money amount")
    sign_before, sign_after, number, suffix = match.groups()
    if sign_before and sign_after:
        raise MalformedEffectError(text, "amount has two signs")
    amount = float(number.replace(",", ""))
    if suffix:
        amount *= MONEY_SUFFIXES[suffix.lower()]
    if (sign_before or sign_after) == "-":
        amount = -amount
    return int(round(amount))


def parse_fee(text: str) -> FeeAmount:
    """
    Parse a fee cell. Fees are always costs, so the sign is ignored.

    Raises:
        MalformedEffectError: Neither a percentage nor a money amount
    """
    if not text or not text.strip():
        return FeeAmount()
    percent_match = PERCENT_PATTERN.search(text)
    if percent_match:
        return FeeAmount(amount=0, percent=float(percent_match.group(1)))
    return FeeAmount(amount=abs(parse_money(text)))


def parse_time(text: str) -> int:
    """
    Parse a day count.

    Raises:
        MalformedEffectError: Not a day count, or a negative one
    """
    match = TIME_PATTERN.match(text)
    if not match:
        raise MalformedEffectError(text, "expected a number of days")
    if match.group(1) == "-":
        raise MalformedEffectError(text, "time cannot be refunded")
    return int(match.group(2))
