"""
Compose d20 roll configs for skill checks, ability tests, saving throws and
attack rolls from actor data.

Each composer reads the actor through ActorDataProvider and returns a
D20RollConfig; none of them rolls anything.
"""

import math
from typing import List, Optional

from ..rng.roll_types import ABILITY_CHECK, ATTACK, SAVING_THROW, SKILL_CHECK
from .actor import ActorDataProvider, Bonus, ItemData
from .catalog import (
    ABILITIES,
    ELVEN_ACCURACY_ABILITIES,
    REMARKABLE_ATHLETE_ABILITIES,
    SKILLS,
    ability_label,
    skill_label,
)
from .d20 import D20RollConfig
from .request import FudgeRequest


class CheckError(Exception):
    """Base class for checks that cannot be composed."""
    pass


class UnknownSelectionError(CheckError, LookupError):
    """The requested skill, ability or item does not exist for this actor."""
    pass


class AttackNotAllowedError(CheckError):
    """The item cannot make attack rolls."""
    pass


def _request_options(request: FudgeRequest) -> dict:
    return {
        'advantage': request.advantage,
        'bonus': request.bonus,
        'target': request.target,
        'target_value': request.target_value,
    }


def skill_check(actor: ActorDataProvider, skill_id: str, request: FudgeRequest) -> D20RollConfig:
    """
    Skill check: skill mod + proficiency, plus actor check and skill bonuses.

    Reliable Talent applies when the actor has it and is at least fully
    proficient in the skill.
    """
    skill = actor.skill(skill_id) if skill_id in SKILLS else None
    if skill is None:
        raise UnknownSelectionError(f"Unknown skill '{skill_id}'")

    bonuses = actor.ability_bonuses()
    parts = ['@mod']
    data = {'mod': skill.mod + skill.prof}

    if bonuses.check:
        data['checkBonus'] = bonuses.check
        parts.append('@checkBonus')

    if bonuses.skill:
        data['skillBonus'] = bonuses.skill
        parts.append('@skillBonus')

    parts.extend(request.parts)

    return D20RollConfig(
        parts=parts,
        data=data,
        title=f"{skill_label(skill_id)} Skill Check",
        halfling_lucky=bool(actor.flag('halflingLucky')),
        reliable_talent=skill.value >= 1 and bool(actor.flag('reliableTalent')),
        roll_type=SKILL_CHECK,
        roll_flags={'skillId': skill_id},
        **_request_options(request)
    )


def ability_check(actor: ActorDataProvider, ability_id: str, request: FudgeRequest) -> D20RollConfig:
    """
    Ability test: ability mod, feat proficiency, and the actor's check bonus.

    Remarkable Athlete adds half proficiency rounded up to str/dex/con tests;
    otherwise Jack of All Trades adds half proficiency rounded down.
    """
    ability = actor.ability(ability_id) if ability_id in ABILITIES else None
    if ability is None:
        raise UnknownSelectionError(f"Unknown ability '{ability_id}'")

    parts = ['@mod']
    data = {'mod': ability.mod}

    if actor.flag('remarkableAthlete') and ability_id in REMARKABLE_ATHLETE_ABILITIES:
        parts.append('@proficiency')
        data['proficiency'] = math.ceil(0.5 * actor.proficiency_bonus())
    elif actor.flag('jackOfAllTrades'):
        parts.append('@proficiency')
        data['proficiency'] = math.floor(0.5 * actor.proficiency_bonus())

    bonuses = actor.ability_bonuses()
    if bonuses.check:
        parts.append('@checkBonus')
        data['checkBonus'] = bonuses.check

    parts.extend(request.parts)

    return D20RollConfig(
        parts=parts,
        data=data,
        title=f"{ability_label(ability_id)} Ability Test",
        halfling_lucky=bool(actor.flag('halflingLucky')),
        roll_type=ABILITY_CHECK,
        roll_flags={'abilityId': ability_id},
        **_request_options(request)
    )


def saving_throw(actor: ActorDataProvider, ability_id: str, request: FudgeRequest) -> D20RollConfig:
    """Saving throw: ability mod, save proficiency when proficient, and the actor's save bonus."""
    ability = actor.ability(ability_id) if ability_id in ABILITIES else None
    if ability is None:
        raise UnknownSelectionError(f"Unknown ability '{ability_id}'")

    parts = ['@mod']
    data = {'mod': ability.mod}

    if ability.save_prof > 0:
        parts.append('@prof')
        data['prof'] = ability.save_prof

    bonuses = actor.ability_bonuses()
    if bonuses.save:
        parts.append('@saveBonus')
        data['saveBonus'] = bonuses.save

    parts.extend(request.parts)

    return D20RollConfig(
        parts=parts,
        data=data,
        title=f"{ability_label(ability_id)} Saving Throw",
        halfling_lucky=bool(actor.flag('halflingLucky')),
        roll_type=SAVING_THROW,
        roll_flags={'abilityId': ability_id},
        **_request_options(request)
    )


def _join_bonuses(*bonuses: Bonus) -> Optional[str]:
    present = [str(b).strip() for b in bonuses if b and str(b).strip()]
    return ' + '.join(present) if present else None


def _usable_ammo(actor: ActorDataProvider, item: ItemData) -> Optional[ItemData]:
    """Ammunition the item consumes, if there is enough of it and it has an attack bonus."""
    consume = item.consume
    if consume is None or consume.type != 'ammo' or not consume.target:
        return None
    ammo = actor.item(consume.target)
    if ammo is None or not ammo.quantity or ammo.quantity - consume.amount < 0:
        return None
    return ammo if ammo.attack_bonus else None


def attack_roll(actor: ActorDataProvider, item_id: Optional[str], request: FudgeRequest) -> D20RollConfig:
    """
    Attack roll with an item.

    With no ``item_id`` the actor's last used item attacks. Adds the attack
    ability mod, proficiency (unless a non-proficient weapon), item and actor
    attack bonuses, and ammunition bonus. Applies the weapon critical
    threshold, Elven Accuracy and Halfling Lucky.

    Raises:
        UnknownSelectionError: No such item (or no last used item)
        AttackNotAllowedError: The item cannot attack
    """
    item_id = item_id or actor.last_item_id()
    if not item_id:
        raise UnknownSelectionError("No item given and no recently used item to attack with")
    item = actor.item(item_id)
    if item is None:
        raise UnknownSelectionError(f"Unknown item '{item_id}'")
    if not item.has_attack:
        raise AttackNotAllowedError(f"You may not place an Attack Roll with {item.name}.")

    title = f"{item.name} - Attack Roll"
    data = actor.item_roll_data(item)
    flags = {'itemId': item.id}

    parts: List[str] = ['@mod']
    if item.type != 'weapon' or item.proficient:
        parts.append('@prof')

    attack_bonus = _join_bonuses(item.attack_bonus, actor.action_attack_bonus(item.action_type))
    if attack_bonus:
        parts.append('@atk')
        data['atk'] = attack_bonus

    ammo = _usable_ammo(actor, item)
    if ammo is not None:
        parts.append('@ammo')
        data['ammo'] = ammo.attack_bonus
        title += f" [{ammo.name}]"
        flags['ammoId'] = ammo.id

    parts.extend(request.parts)

    critical = 20
    threshold = actor.flag('weaponCriticalThreshold')
    if item.type == 'weapon' and threshold:
        critical = int(threshold)

    elven_accuracy = (
        item.type in ('weapon', 'spell')
        and bool(actor.flag('elvenAccuracy'))
        and actor.item_ability(item) in ELVEN_ACCURACY_ABILITIES
    )

    return D20RollConfig(
        parts=parts,
        data=data,
        title=title,
        critical=critical,
        elven_accuracy=elven_accuracy,
        halfling_lucky=bool(actor.flag('halflingLucky')),
        roll_type=ATTACK,
        roll_flags=flags,
        **_request_options(request)
    )


COMPOSERS = {
    SKILL_CHECK: skill_check,
    ABILITY_CHECK: ability_check,
    SAVING_THROW: saving_throw,
    ATTACK: attack_roll,
}


def compose(actor: ActorDataProvider, request: FudgeRequest) -> D20RollConfig:
    """Compose the config for whatever ``request.roll_type`` asks for."""
    composer = COMPOSERS.get(request.roll_type)
    if composer is None:
        raise UnknownSelectionError(f"Unknown roll type '{request.roll_type}'")
    return composer(actor, request.selection, request)
