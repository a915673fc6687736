"""
Roll kinds a fudge request may ask for.
"""

from typing import Dict, List

from ..base import RollTypeDefinition

SKILL_CHECK = 'skill_check'
ABILITY_CHECK = 'ability_check'
SAVING_THROW = 'saving_throw'
ATTACK = 'attack'


def core_roll_types() -> List[RollTypeDefinition]:
    """Return the roll types the fudge module can produce."""
    return [
        RollTypeDefinition(
            type=SKILL_CHECK,
            description='Skill check to perform an action',
            module='rng',
            category='skill',
            selection='skill'
        ),
        RollTypeDefinition(
            type=ABILITY_CHECK,
            description='Ability check using raw ability score',
            module='rng',
            category='ability',
            selection='ability'
        ),
        RollTypeDefinition(
            type=SAVING_THROW,
            description='Saving throw to resist effects',
            module='rng',
            category='saving_throw',
            selection='ability'
        ),
        RollTypeDefinition(
            type=ATTACK,
            description='Attack roll with an item to determine if an attack hits',
            module='rng',
            category='combat',
            selection='item_id'
        ),
    ]


def roll_types_by_name() -> Dict[str, RollTypeDefinition]:
    return {rt.type: rt for rt in core_roll_types()}
