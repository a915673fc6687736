"""
The d20 roll shared by checks, saves and attacks.

Builds the d20 term from advantage and character features, hands the
formula to the TargetSeekingRoller, then marks every d20 with the
critical/fumble thresholds and assembles the flavor text.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

from ..rng.roller import RollOutcome
from ..rng.seeker import Target, TargetSeekingRoller
from .request import AdvantageMode

logger = logging.getLogger(__name__)

RELIABLE_TALENT_FLOOR = 10


@dataclass
class D20RollConfig:
    """
    Everything needed to make one d20 roll.

    Attributes:
        parts: Formula parts excluding the d20 itself (e.g. ['@mod', '@prof'])
        data: Bindings for the parts
        advantage: Advantage mode
        critical: d20 result at or above which the roll is a critical success
        fumble: d20 result at or below which the roll is a critical failure
        target_value: Optional DC recorded on each d20
        elven_accuracy: Roll three dice on advantage
        halfling_lucky: Reroll natural 1s once
        reliable_talent: Treat a d20 below 10 as 10
        bonus: Situational bonus (number or formula text)
        title: Roll title, used as flavor when no flavor is given
        flavor: Explicit flavor text
        target: Total to seek
        roll_type: Roll kind recorded in the flags
        roll_flags: Extra identifying flags (skillId, abilityId, itemId, ...)
    """
    parts: List[str] = field(default_factory=list)
    data: Dict[str, Any] = field(default_factory=dict)
    advantage: AdvantageMode = AdvantageMode.NORMAL
    critical: int = 20
    fumble: int = 1
    target_value: Optional[int] = None
    elven_accuracy: bool = False
    halfling_lucky: bool = False
    reliable_talent: bool = False
    bonus: Union[str, int, None] = None
    title: Optional[str] = None
    flavor: Optional[str] = None
    target: Target = None
    roll_type: Optional[str] = None
    roll_flags: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class D20Roll:
    """A finished d20 roll with the text and flags a chat card needs."""
    outcome: RollOutcome
    flavor: str
    roll_type: Optional[str] = None
    flags: Dict[str, Any] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return self.outcome.total

    @property
    def formula(self) -> str:
        return self.outcome.formula

    def to_dict(self) -> Dict[str, Any]:
        return {
            'flavor': self.flavor,
            'roll_type': self.roll_type,
            'flags': dict(self.flags),
            'total': self.total,
            'formula': self.formula,
            'roll': self.outcome.to_dict(),
        }


def d20_term(advantage: AdvantageMode, elven_accuracy: bool = False,
             halfling_lucky: bool = False, reliable_talent: bool = False) -> str:
    """
    The d20 part of the formula.

    Examples:
        NORMAL                         → "1d20"
        ADVANTAGE, elven_accuracy      → "3d20kh"
        DISADVANTAGE, halfling_lucky   → "2d20r=1kl"
        NORMAL, reliable_talent        → "{1d20,10}kh"
    """
    number = 1
    modifiers = "r=1" if halfling_lucky else ""

    if advantage == AdvantageMode.ADVANTAGE:
        number = 3 if elven_accuracy else 2
        modifiers += "kh"
    elif advantage == AdvantageMode.DISADVANTAGE:
        number = 2
        modifiers += "kl"

    term = f"{number}d20{modifiers}"
    if reliable_talent:
        term = f"{{{term},{RELIABLE_TALENT_FLOOR}}}kh"
    return term


def build_d20_formula(config: D20RollConfig) -> Tuple[List[str], Dict[str, Any]]:
    """Roll parts and bindings for a config. The config is left untouched."""
    parts = [d20_term(config.advantage, config.elven_accuracy,
                      config.halfling_lucky, config.reliable_talent)]
    parts.extend(config.parts)
    data = dict(config.data)

    # A zero or blank bonus is dropped rather than rolled as "+ 0"
    if config.bonus and str(config.bonus).strip():
        data['bonus'] = config.bonus
        parts.append('@bonus')

    return parts, data


def d20_roll(config: D20RollConfig, seeker: TargetSeekingRoller) -> D20Roll:
    """
    Make a d20 roll that seeks ``config.target``.

    Raises:
        DiceNotationError / FormulaError: If the parts or bindings are invalid
    """
    parts, data = build_d20_formula(config)
    formula = ' + '.join(parts)

    outcome = seeker.seek(formula, data, config.target)
    outcome = outcome.with_d20_options(
        critical=config.critical,
        fumble=config.fumble,
        target=config.target_value
    )

    flavor = config.flavor or config.title or ''
    flags: Dict[str, Any] = {'type': config.roll_type}
    flags.update(config.roll_flags)

    if config.advantage == AdvantageMode.ADVANTAGE:
        flavor += " (Advantage)"
        flags['advantage'] = True
    elif config.advantage == AdvantageMode.DISADVANTAGE:
        flavor += " (Disadvantage)"
        flags['disadvantage'] = True

    if config.reliable_talent and outcome.dice and outcome.dice[0].total < RELIABLE_TALENT_FLOOR:
        flavor += " (Reliable Talent)"

    logger.info(f"{flavor.strip() or formula}: {outcome.total} ({outcome.attempts} attempt(s))")
    return D20Roll(outcome=outcome, flavor=flavor.strip(), roll_type=config.roll_type, flags=flags)
