"""
Skill and ability identifiers with display labels.
"""

ABILITIES = {
    'str': 'Strength',
    'dex': 'Dexterity',
    'con': 'Constitution',
    'int': 'Intelligence',
    'wis': 'Wisdom',
    'cha': 'Charisma',
}

# skill id -> (label, governing ability)
SKILLS = {
    'acr': ('Acrobatics', 'dex'),
    'ani': ('Animal Handling', 'wis'),
    'arc': ('Arcana', 'int'),
    'ath': ('Athletics', 'str'),
    'dec': ('Deception', 'cha'),
    'his': ('History', 'int'),
    'ins': ('Insight', 'wis'),
    'inv': ('Investigation', 'int'),
    'itm': ('Intimidation', 'cha'),
    'med': ('Medicine', 'wis'),
    'nat': ('Nature', 'int'),
    'prc': ('Perception', 'wis'),
    'prf': ('Performance', 'cha'),
    'per': ('Persuasion', 'cha'),
    'rel': ('Religion', 'int'),
    'slt': ('Sleight of Hand', 'dex'),
    'ste': ('Stealth', 'dex'),
    'sur': ('Survival', 'wis'),
}

# Remarkable Athlete adds half proficiency to these ability checks
REMARKABLE_ATHLETE_ABILITIES = ('str', 'dex', 'con')

# Elven Accuracy only applies to attacks using these abilities
ELVEN_ACCURACY_ABILITIES = ('dex', 'int', 'wis', 'cha')

ATTACK_ACTION_TYPES = ('mwak', 'rwak', 'msak', 'rsak')

ITEM_TYPES = ('weapon', 'spell', 'equipment', 'feat', 'consumable', 'tool', 'loot')


def skill_label(skill_id: str) -> str:
    return SKILLS[skill_id][0]


def ability_label(ability_id: str) -> str:
    return ABILITIES[ability_id]


def catalog_dict() -> dict:
    """Catalog as plain data for API responses."""
    return {
        'abilities': [{'id': key, 'label': label} for key, label in ABILITIES.items()],
        'skills': [
            {'id': key, 'label': label, 'ability': ability}
            for key, (label, ability) in SKILLS.items()
        ],
    }
