"""Effect parsing and resolution module."""

from pm_board.effects.effect_parser import (
    FeeAmount,
    MalformedEffectError,
    parse_card_instruction,
    parse_fee,
    parse_money,
    parse_time,
)
from pm_board.effects.effect_resolver import EffectResolution, EffectResolver

__all__ = [
    "EffectResolution",
    "EffectResolver",
    "FeeAmount",
    "MalformedEffectError",
    "parse_card_instruction",
    "parse_fee",
    "parse_money",
    "parse_time",
]
