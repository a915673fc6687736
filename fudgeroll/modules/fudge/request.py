"""
Fudge request: what to roll, for which selection, and which total to aim at.

This is the whole input a front end (CLI, web form, chat command) hands the
fudge module; no dialog callbacks are involved.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Dict, Optional, Tuple, Union

from ..base import SchemaDefinition
from ..rng.roll_types import ABILITY_CHECK, ATTACK, SAVING_THROW, SKILL_CHECK
from .catalog import ABILITIES, SKILLS
from ...core.config import ROLL_MODES


class AdvantageMode(IntEnum):
    DISADVANTAGE = -1
    NORMAL = 0
    ADVANTAGE = 1

    @classmethod
    def from_name(cls, name: Union[str, int, 'AdvantageMode', None]) -> 'AdvantageMode':
        """Accept 'advantage' / 'disadvantage' / 'normal', -1 / 0 / 1, or None."""
        if name is None:
            return cls.NORMAL
        if isinstance(name, int):
            return cls(name)
        return cls[name.strip().upper()]

    @property
    def label(self) -> str:
        return self.name.capitalize()


class FudgeRequestSchema(SchemaDefinition):
    """JSON Schema for fudge requests."""

    type = "FudgeRequest"
    description = "Roll kind, selection and target for a fudged d20 roll"
    schema_version = "1.0.0"

    def get_schema(self) -> Dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "roll_type": {"type": "string", "enum": [SKILL_CHECK, ABILITY_CHECK, SAVING_THROW, ATTACK]},
                "skill": {"type": "string", "enum": list(SKILLS)},
                "ability": {"type": "string", "enum": list(ABILITIES)},
                "item_id": {"type": ["string", "null"]},
                "target": {"type": ["number", "null"]},
                "target_value": {"type": ["integer", "null"]},
                "advantage": {"type": "string", "enum": ["normal", "advantage", "disadvantage"]},
                "bonus": {"type": ["string", "integer", "null"]},
                "parts": {"type": "array", "items": {"type": "string"}},
                "roll_mode": {"type": "string", "enum": list(ROLL_MODES)},
                "chat_message": {"type": "boolean"}
            },
            "required": ["roll_type"],
            "allOf": [
                {
                    "if": {"properties": {"roll_type": {"const": SKILL_CHECK}}},
                    "then": {"required": ["skill"]}
                },
                {
                    "if": {"properties": {"roll_type": {"enum": [ABILITY_CHECK, SAVING_THROW]}}},
                    "then": {"required": ["ability"]}
                }
            ]
        }


@dataclass(frozen=True)
class FudgeRequest:
    """
    A fudge roll request.

    Attributes:
        roll_type: skill_check, ability_check, saving_throw or attack
        skill: Skill id for skill checks
        ability: Ability id for ability checks and saving throws
        item_id: Item to attack with; None means the actor's last used item
        target: Desired total; None means "no target" (maximize)
        target_value: DC recorded on each d20 of the roll, if any
        advantage: Normal, advantage or disadvantage
        bonus: Situational bonus, a number or formula text ("1d4 + 1")
        parts: Extra formula parts appended after the actor's bonuses
        roll_mode: Chat visibility; None means the configured default
        chat_message: Publish a roll.completed event for chat rendering
    """
    roll_type: str
    skill: Optional[str] = None
    ability: Optional[str] = None
    item_id: Optional[str] = None
    target: Optional[float] = None
    target_value: Optional[int] = None
    advantage: AdvantageMode = AdvantageMode.NORMAL
    bonus: Union[str, int, None] = None
    parts: Tuple[str, ...] = field(default_factory=tuple)
    roll_mode: Optional[str] = None
    chat_message: bool = True

    schema = FudgeRequestSchema()

    @property
    def selection(self) -> Optional[str]:
        if self.roll_type == SKILL_CHECK:
            return self.skill
        if self.roll_type == ATTACK:
            return self.item_id
        return self.ability

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'FudgeRequest':
        """
        Build a request from JSON data.

        Raises:
            jsonschema.ValidationError: If data does not match FudgeRequestSchema
        """
        cls.schema.validate(data)
        return cls(
            roll_type=data['roll_type'],
            skill=data.get('skill'),
            ability=data.get('ability'),
            item_id=data.get('item_id'),
            target=data.get('target'),
            target_value=data.get('target_value'),
            advantage=AdvantageMode.from_name(data.get('advantage')),
            bonus=data.get('bonus'),
            parts=tuple(data.get('parts', ())),
            roll_mode=data.get('roll_mode'),
            chat_message=data.get('chat_message', True)
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'roll_type': self.roll_type,
            'skill': self.skill,
            'ability': self.ability,
            'item_id': self.item_id,
            'target': self.target,
            'target_value': self.target_value,
            'advantage': self.advantage.name.lower(),
            'bonus': self.bonus,
            'parts': list(self.parts),
            'roll_mode': self.roll_mode,
            'chat_message': self.chat_message,
        }
