"""
Fudge Module - d20 checks that land on a chosen total.

Provides:
- Skill checks, ability tests, saving throws and attack rolls composed from
  read-only actor data
- Target seeking through TargetSeekingRoller
- roll.completed events carrying everything a chat card needs

Usage:
    module = FudgeModule.from_config(get_config())
    module.event_bus.subscribe('roll.completed', post_to_chat)

    actor = SheetActor(sheet)
    result = module.fudge(FudgeRequest(roll_type='skill_check', skill='ste', target=17), actor)
    if result:
        print(result.data.flavor, result.data.total)   # "Stealth Skill Check 17"
"""

import logging
from typing import Any, Dict, List, Mapping, Optional

import jsonschema

from ...core.config import Config
from ...core.event_bus import Event, EventBus
from ...core.result import ErrorCode, Result
from ..base import RollTypeDefinition
from ..rng.dice_parser import DiceNotationError
from ..rng.roller import DiceRoller, FormulaError, UnboundVariableError
from ..rng.roll_types import core_roll_types
from ..rng.seeker import Target, TargetSeekingRoller, normalize_target
from .actor import ActorDataProvider, SheetActor
from .checks import AttackNotAllowedError, UnknownSelectionError, compose
from .d20 import D20Roll, d20_roll
from .request import AdvantageMode, FudgeRequest

logger = logging.getLogger(__name__)

ROLL_COMPLETED = 'roll.completed'

__all__ = [
    'FudgeModule', 'FudgeRequest', 'AdvantageMode', 'SheetActor', 'ActorDataProvider',
    'D20Roll', 'ROLL_COMPLETED',
]


def _formula_failure(error: Exception, context: str) -> Result:
    """Map dice-layer exceptions onto failed Results."""
    if isinstance(error, UnboundVariableError):
        return Result.fail(f"{context}: {error}", ErrorCode.UNBOUND_VARIABLE)
    return Result.fail(f"{context}: {error}", ErrorCode.FORMULA_ERROR)


class FudgeModule:
    """
    Entry point for fudged rolls.

    Holds the seeker (and through it the random source), the event bus that
    receives finished rolls, and the default chat roll mode.
    """

    def __init__(
        self,
        seeker: Optional[TargetSeekingRoller] = None,
        event_bus: Optional[EventBus] = None,
        default_roll_mode: str = 'publicroll'
    ):
        self.seeker = seeker or TargetSeekingRoller()
        self.event_bus = event_bus or EventBus()
        self.default_roll_mode = default_roll_mode

    @classmethod
    def from_config(cls, config: Config, event_bus: Optional[EventBus] = None) -> 'FudgeModule':
        seeker = TargetSeekingRoller(
            roller=DiceRoller(seed=config.seed),
            max_attempts=config.max_attempts,
            max_seconds=config.max_seconds
        )
        return cls(seeker=seeker, event_bus=event_bus, default_roll_mode=config.roll_mode)

    @property
    def name(self) -> str:
        return "fudge"

    @property
    def version(self) -> str:
        return "1.0.0"

    def register_roll_types(self) -> List[RollTypeDefinition]:
        return core_roll_types()

    def fudge(self, request: FudgeRequest, actor: ActorDataProvider) -> Result:
        """
        Compose and make the roll a request asks for.

        Returns:
            Result whose data is a D20Roll, or a failure with an ErrorCode
        """
        try:
            config = compose(actor, request)
        except UnknownSelectionError as e:
            logger.warning(f"Fudge request for {actor.name} rejected: {e}")
            return Result.fail(str(e), ErrorCode.NOT_FOUND)
        except AttackNotAllowedError as e:
            logger.warning(f"Fudge request for {actor.name} rejected: {e}")
            return Result.fail(str(e), ErrorCode.OPERATION_NOT_ALLOWED)

        try:
            roll = d20_roll(config, self.seeker)
        except (DiceNotationError, FormulaError) as e:
            logger.error(f"Dice roll evaluation failed for {actor.name} ({config.title}): {e}")
            return _formula_failure(e, "Dice roll evaluation failed")

        if request.chat_message:
            self._publish(roll, actor, request)
        return Result.ok(roll)

    def fudge_json(self, request_data: Dict[str, Any], sheet: Dict[str, Any]) -> Result:
        """Validate a JSON request and character sheet, then fudge."""
        try:
            request = FudgeRequest.from_dict(request_data)
        except jsonschema.ValidationError as e:
            return Result.fail(f"Invalid fudge request: {e.message}", ErrorCode.SCHEMA_VALIDATION_FAILED)
        except (KeyError, ValueError) as e:
            return Result.fail(f"Invalid fudge request: {e}", ErrorCode.INVALID_INPUT)

        try:
            actor = SheetActor(sheet)
        except jsonschema.ValidationError as e:
            return Result.fail(f"Invalid character sheet: {e.message}", ErrorCode.SCHEMA_VALIDATION_FAILED)

        return self.fudge(request, actor)

    def seek_formula(self, formula: str, bindings: Optional[Mapping[str, Any]] = None,
                     target: Target = None) -> Result:
        """Seek a target on a bare formula. Result data is the RollOutcome."""
        try:
            normalize_target(target)
        except (TypeError, ValueError):
            return Result.fail(f"Target must be a number, got {target!r}", ErrorCode.INVALID_INPUT)

        try:
            return Result.ok(self.seeker.seek(formula, bindings, target))
        except (DiceNotationError, FormulaError) as e:
            logger.error(f"Formula '{formula}' failed: {e}")
            return _formula_failure(e, "Dice roll evaluation failed")

    def formula_range(self, formula: str, bindings: Optional[Mapping[str, Any]] = None) -> Result:
        """Result data is ``{'formula', 'min', 'max'}``."""
        try:
            low, high = self.seeker.bounds(formula, bindings)
        except (DiceNotationError, FormulaError) as e:
            logger.error(f"Formula '{formula}' failed: {e}")
            return _formula_failure(e, "Formula range failed")
        return Result.ok({'formula': formula, 'min': low, 'max': high})

    def _publish(self, roll: D20Roll, actor: ActorDataProvider, request: FudgeRequest) -> None:
        self.event_bus.publish(Event.create(
            event_type=ROLL_COMPLETED,
            actor_id=actor.name,
            data={
                'speaker': actor.name,
                'flavor': roll.flavor,
                'roll_mode': request.roll_mode or self.default_roll_mode,
                'roll_type': roll.roll_type,
                'flags': dict(roll.flags),
                'total': roll.total,
                'roll': roll.outcome.to_dict(),
            }
        ))
