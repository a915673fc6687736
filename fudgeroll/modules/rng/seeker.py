"""
Target-seeking rolls.

``TargetSeekingRoller.seek`` keeps rolling a formula until its total equals
the requested target. Targets outside the formula's achievable range get one
honest roll instead, and a missing target gets the maximizing evaluation.
"""

import logging
import math
import numbers
import time
from dataclasses import replace
from typing import Any, Mapping, Optional, Tuple, Union

from .dice_parser import Formula
from .roller import DiceRoller, RollOutcome, as_formula

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 10000

Target = Union[int, float, None]


def normalize_target(target: Target) -> Optional[Union[int, float]]:
    """
    Return the target as a number, or None when it is absent or NaN.

    Integers stay integers, so targets too large for a float still compare
    against the formula's range.

    Raises:
        ValueError / TypeError: If the target is not a number
    """
    if target is None or isinstance(target, bool):
        return None
    if isinstance(target, numbers.Integral):
        return int(target)
    try:
        value = float(target)
    except OverflowError:
        raise ValueError(f"Target {target!r} is out of range") from None
    if math.isnan(value):
        return None
    return value


class TargetSeekingRoller:
    """
    Rolls a formula until it produces a chosen total.

    The achievable range [min, max] is computed without consuming randomness.
    Every integer inside it is reachable, so seeking ends with probability 1;
    ``max_attempts`` and ``max_seconds`` still bound the work, after which the
    closest attempt is returned with a warning.
    """

    def __init__(
        self,
        roller: Optional[DiceRoller] = None,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        max_seconds: Optional[float] = None
    ):
        """
        Args:
            roller: DiceRoller supplying randomness (a fresh one if omitted)
            max_attempts: Random evaluations allowed per seek
            max_seconds: Optional wall-clock limit per seek; None or 0 disables it
        """
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")
        self.roller = roller or DiceRoller()
        self.max_attempts = max_attempts
        self.max_seconds = max_seconds or None

    def bounds(self, formula: Union[str, Formula],
               bindings: Optional[Mapping[str, Any]] = None) -> Tuple[int, int]:
        """Lowest and highest achievable totals. Deterministic."""
        formula = as_formula(formula)
        return (
            self.roller.minimize(formula, bindings).total,
            self.roller.maximize(formula, bindings).total,
        )

    def seek(
        self,
        formula: Union[str, Formula],
        bindings: Optional[Mapping[str, Any]] = None,
        target: Target = None
    ) -> RollOutcome:
        """
        Produce an outcome whose total equals ``target`` when that is possible.

        Args:
            formula: Formula text or parsed Formula
            bindings: Values for every ``@name`` in the formula
            target: Desired total; None or NaN means "no target"

        Returns:
            - target absent: the maximizing evaluation
            - target outside [min, max] or not a whole number: one random evaluation
            - otherwise: a random evaluation with ``total == target``

        Raises:
            DiceNotationError: If formula text is invalid
            FormulaError: If bindings do not satisfy the formula (not retried)
        """
        formula = as_formula(formula)
        bindings = bindings or {}
        low, high = self.bounds(formula, bindings)
        wanted = normalize_target(target)

        if wanted is None:
            logger.debug(f"No target for '{formula}', using maximum {high}")
            return self.roller.maximize(formula, bindings)

        whole = isinstance(wanted, int) or wanted.is_integer()
        if wanted > high or wanted < low or not whole:
            logger.debug(f"Target {target} unreachable for '{formula}' (range {low}..{high}), rolling honestly")
            return self.roller.roll(formula, bindings)

        return self._seek_exact(formula, bindings, int(wanted))

    def _seek_exact(self, formula: Formula, bindings: Mapping[str, Any], target: int) -> RollOutcome:
        deadline = time.monotonic() + self.max_seconds if self.max_seconds else None
        closest: Optional[RollOutcome] = None
        attempts = 0

        while attempts < self.max_attempts:
            attempts += 1
            outcome = self.roller.roll(formula, bindings)
            if outcome.total == target:
                logger.debug(f"Hit {target} on '{formula}' after {attempts} attempt(s)")
                return replace(outcome, attempts=attempts, seek_target=target)

            if closest is None or abs(outcome.total - target) < abs(closest.total - target):
                closest = outcome
            if deadline is not None and time.monotonic() >= deadline:
                break

        logger.warning(
            f"Gave up seeking {target} on '{formula}' after {attempts} attempt(s); "
            f"returning closest total {closest.total}"
        )
        return replace(closest, attempts=attempts, seek_target=target)
