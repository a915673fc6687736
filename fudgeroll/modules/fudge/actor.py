"""
Read-only actor data for composing checks.

Check composers never reach into a global "current actor". They are handed an
ActorDataProvider. SheetActor implements it over a character sheet snapshot
(plain JSON validated against CharacterSheetSchema).
"""

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

from ..base import SchemaDefinition
from .catalog import ABILITIES, ATTACK_ACTION_TYPES, ITEM_TYPES, REMARKABLE_ATHLETE_ABILITIES, SKILLS

Bonus = Union[str, int, None]


@dataclass(frozen=True)
class AbilityData:
    """An ability's check modifier and its saving throw proficiency bonus."""
    mod: int
    save_prof: int = 0


@dataclass(frozen=True)
class SkillData:
    """
    Attributes:
        mod: Governing ability modifier
        prof: Proficiency bonus applied to this skill
        value: Proficiency multiplier (0, 0.5, 1, 2)
    """
    mod: int
    prof: int = 0
    value: float = 0


@dataclass(frozen=True)
class AbilityBonuses:
    """Global actor bonuses to ability checks, saves and skill checks."""
    check: Bonus = None
    save: Bonus = None
    skill: Bonus = None


@dataclass(frozen=True)
class ConsumeData:
    type: str
    target: Optional[str] = None
    amount: int = 0


@dataclass(frozen=True)
class ItemData:
    id: str
    name: str
    type: str
    action_type: Optional[str] = None
    has_attack: bool = False
    proficient: bool = True
    attack_bonus: Bonus = None
    ability: Optional[str] = None
    quantity: int = 1
    consume: Optional[ConsumeData] = None


class ActorDataProvider(ABC):
    """Interface the check composers read actor data through."""

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @abstractmethod
    def ability(self, ability_id: str) -> Optional[AbilityData]:
        pass

    @abstractmethod
    def skill(self, skill_id: str) -> Optional[SkillData]:
        pass

    @abstractmethod
    def proficiency_bonus(self) -> int:
        pass

    @abstractmethod
    def ability_bonuses(self) -> AbilityBonuses:
        pass

    @abstractmethod
    def action_attack_bonus(self, action_type: Optional[str]) -> Bonus:
        """Actor-wide attack bonus for an action type (mwak, rwak, msak, rsak)."""
        pass

    @abstractmethod
    def flag(self, name: str) -> Any:
        """Character flag such as 'halflingLucky' or 'weaponCriticalThreshold'."""
        pass

    @abstractmethod
    def item(self, item_id: str) -> Optional[ItemData]:
        pass

    @abstractmethod
    def last_item_id(self) -> Optional[str]:
        """Id of the item most recently used, for attacks that name no item."""
        pass

    def item_ability(self, item: ItemData) -> str:
        """The ability an item attacks with."""
        if item.ability:
            return item.ability
        if item.action_type == 'rwak':
            return 'dex'
        if item.action_type in ('msak', 'rsak') or item.type == 'spell':
            return self.spellcasting_ability()
        return 'str'

    def spellcasting_ability(self) -> str:
        return 'int'

    def item_roll_data(self, item: ItemData) -> Dict[str, Any]:
        """Bindings for an item's attack: ``mod``, ``prof`` and every ability's mod."""
        abilities = {}
        for ability_id in ABILITIES:
            data = self.ability(ability_id)
            if data is not None:
                abilities[ability_id] = {'mod': data.mod}

        ability_id = self.item_ability(item)
        ability = self.ability(ability_id)
        return {
            'abilities': abilities,
            'mod': ability.mod if ability else 0,
            'prof': self.proficiency_bonus(),
        }


class CharacterSheetSchema(SchemaDefinition):
    """JSON Schema for the character sheet snapshot SheetActor reads."""

    type = "CharacterSheet"
    description = "Read-only character data used to compose d20 checks"
    schema_version = "1.0.0"

    def get_schema(self) -> Dict[str, Any]:
        bonus = {"type": ["string", "integer", "null"]}
        return {
            "type": "object",
            "properties": {
                "name": {"type": "string", "minLength": 1},
                "proficiency": {"type": "integer", "minimum": 0, "maximum": 10, "default": 2},
                "spellcasting": {"type": "string", "enum": list(ABILITIES)},
                "abilities": {
                    "type": "object",
                    "propertyNames": {"enum": list(ABILITIES)},
                    "additionalProperties": {
                        "type": "object",
                        "properties": {
                            "mod": {"type": "integer"},
                            "proficient": {"type": "number", "minimum": 0, "maximum": 1, "default": 0}
                        },
                        "required": ["mod"]
                    }
                },
                "skills": {
                    "type": "object",
                    "propertyNames": {"enum": list(SKILLS)},
                    "additionalProperties": {
                        "type": "object",
                        "properties": {
                            "ability": {"type": "string", "enum": list(ABILITIES)},
                            "value": {"type": "number", "enum": [0, 0.5, 1, 2], "default": 0}
                        }
                    }
                },
                "bonuses": {
                    "type": "object",
                    "properties": {
                        "abilities": {
                            "type": "object",
                            "properties": {"check": bonus, "save": bonus, "skill": bonus}
                        }
                    },
                    "additionalProperties": {
                        "type": "object",
                        "properties": {"attack": bonus}
                    }
                },
                "flags": {
                    "type": "object",
                    "properties": {
                        "halflingLucky": {"type": "boolean"},
                        "reliableTalent": {"type": "boolean"},
                        "elvenAccuracy": {"type": "boolean"},
                        "jackOfAllTrades": {"type": "boolean"},
                        "remarkableAthlete": {"type": "boolean"},
                        "weaponCriticalThreshold": {"type": ["integer", "null"], "minimum": 2, "maximum": 20}
                    }
                },
                "items": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "properties": {
                            "id": {"type": "string", "minLength": 1},
                            "name": {"type": "string"},
                            "type": {"type": "string", "enum": list(ITEM_TYPES)},
                            "action_type": {"type": ["string", "null"]},
                            "has_attack": {"type": "boolean"},
                            "proficient": {"type": "boolean"},
                            "attack_bonus": bonus,
                            "ability": {"type": ["string", "null"], "enum": list(ABILITIES) + [None]},
                            "quantity": {"type": "integer", "minimum": 0},
                            "consume": {
                                "type": "object",
                                "properties": {
                                    "type": {"type": "string"},
                                    "target": {"type": ["string", "null"]},
                                    "amount": {"type": "integer", "minimum": 0}
                                },
                                "required": ["type"]
                            }
                        },
                        "required": ["id", "name", "type"]
                    }
                },
                "last_item_id": {"type": ["string", "null"]}
            },
            "required": ["name", "abilities"]
        }


class SheetActor(ActorDataProvider):
    """
    ActorDataProvider over a character sheet dict.

    Skill modifiers are derived: the governing ability's mod plus
    ``floor(value * proficiency)``. Skills below half proficiency get half
    proficiency from Remarkable Athlete (str, dex and con skills, rounded up)
    or else from Jack of All Trades (rounded down). ``SkillData.value`` keeps
    the sheet's own multiplier.

    Raises:
        jsonschema.ValidationError: If the sheet does not match CharacterSheetSchema
    """

    schema = CharacterSheetSchema()

    def __init__(self, sheet: Dict[str, Any]):
        self.schema.validate(sheet)
        self._sheet = sheet
        self._items = {item['id']: self._build_item(item) for item in sheet.get('items', [])}

    @property
    def name(self) -> str:
        return self._sheet['name']

    def proficiency_bonus(self) -> int:
        return self._sheet.get('proficiency', 2)

    def spellcasting_ability(self) -> str:
        return self._sheet.get('spellcasting', 'int')

    def ability(self, ability_id: str) -> Optional[AbilityData]:
        data = self._sheet['abilities'].get(ability_id)
        if data is None:
            return None
        proficient = data.get('proficient', 0)
        return AbilityData(mod=data['mod'], save_prof=math.floor(proficient * self.proficiency_bonus()))

    def skill(self, skill_id: str) -> Optional[SkillData]:
        if skill_id not in SKILLS:
            return None
        data = self._sheet.get('skills', {}).get(skill_id, {})
        ability_id = data.get('ability', SKILLS[skill_id][1])
        ability = self.ability(ability_id)
        if ability is None:
            return None

        value = data.get('value', 0)
        multiplier, rounding = value, math.floor
        if value < 0.5:
            if self.flag('remarkableAthlete') and ability_id in REMARKABLE_ATHLETE_ABILITIES:
                multiplier, rounding = 0.5, math.ceil
            elif self.flag('jackOfAllTrades'):
                multiplier = 0.5
        return SkillData(mod=ability.mod, prof=rounding(multiplier * self.proficiency_bonus()), value=value)

    def ability_bonuses(self) -> AbilityBonuses:
        bonuses = self._sheet.get('bonuses', {}).get('abilities', {})
        return AbilityBonuses(
            check=bonuses.get('check'),
            save=bonuses.get('save'),
            skill=bonuses.get('skill')
        )

    def action_attack_bonus(self, action_type: Optional[str]) -> Bonus:
        if not action_type:
            return None
        return self._sheet.get('bonuses', {}).get(action_type, {}).get('attack')

    def flag(self, name: str) -> Any:
        return self._sheet.get('flags', {}).get(name)

    def item(self, item_id: str) -> Optional[ItemData]:
        return self._items.get(item_id)

    def last_item_id(self) -> Optional[str]:
        return self._sheet.get('last_item_id')

    @staticmethod
    def _build_item(data: Dict[str, Any]) -> ItemData:
        consume = data.get('consume')
        action_type = data.get('action_type')
        return ItemData(
            id=data['id'],
            name=data['name'],
            type=data['type'],
            action_type=action_type,
            has_attack=data.get('has_attack', action_type in ATTACK_ACTION_TYPES),
            proficient=data.get('proficient', True),
            attack_bonus=data.get('attack_bonus'),
            ability=data.get('ability'),
            quantity=data.get('quantity', 1),
            consume=ConsumeData(
                type=consume['type'],
                target=consume.get('target'),
                amount=consume.get('amount', 0)
            ) if consume else None
        )
