"""
RNG Module - formula parsing, evaluation and target-seeking rolls.

Provides:
- Formula parsing (1d20 + @mod, 2d20kh, 1d20r=1, {2d20kh,10}kh)
- Random, minimizing and maximizing evaluation
- TargetSeekingRoller: re-roll until a chosen total comes up

Usage:
    seeker = TargetSeekingRoller(DiceRoller(seed=42))
    outcome = seeker.seek("1d20 + @mod", {"mod": 5}, target=17)
    print(outcome.total)            # 17
    print(outcome.get_breakdown())  # "1d20: [12] = 12 | +@mod = 5 | **Total: 17**"
"""

from .dice_parser import (
    DiceNotationError,
    DiceParser,
    DiceTerm,
    Formula,
    FormulaPart,
    KeepModifier,
    NumericTerm,
    PoolTerm,
    RerollModifier,
    VariableTerm,
)
from .roller import (
    DiceResult,
    DiceRoller,
    DieFace,
    DieOptions,
    EvaluationMode,
    FormulaBindingError,
    FormulaError,
    RollOutcome,
    UnboundVariableError,
)
from .seeker import TargetSeekingRoller
from .roll_types import core_roll_types

__all__ = [
    'DiceNotationError', 'DiceParser', 'DiceTerm', 'Formula', 'FormulaPart', 'KeepModifier',
    'NumericTerm', 'PoolTerm', 'RerollModifier', 'VariableTerm',
    'DiceResult', 'DiceRoller', 'DieFace', 'DieOptions', 'EvaluationMode',
    'FormulaBindingError', 'FormulaError', 'RollOutcome', 'UnboundVariableError',
    'TargetSeekingRoller', 'core_roll_types',
]
