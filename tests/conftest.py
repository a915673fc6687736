"""
Shared fixtures: a character sheet, its actor, and a seeded fudge module.
"""

import copy
import json

import pytest
from fudgeroll.core.event_bus import EventBus
from fudgeroll.modules.fudge import FudgeModule, SheetActor
from fudgeroll.modules.rng.roller import DiceRoller
from fudgeroll.modules.rng.seeker import TargetSeekingRoller

SHEET = {
    "name": "Mira",
    "proficiency": 3,
    "spellcasting": "wis",
    "abilities": {
        "str": {"mod": 1},
        "dex": {"mod": 4, "proficient": 1},
        "con": {"mod": 2},
        "int": {"mod": 0},
        "wis": {"mod": 1, "proficient": 1},
        "cha": {"mod": -1}
    },
    "skills": {
        "ste": {"value": 2},
        "ath": {"value": 1},
        "prc": {"value": 0.5}
    },
    "bonuses": {},
    "flags": {},
    "items": [
        {
            "id": "longbow", "name": "Longbow", "type": "weapon", "action_type": "rwak",
            "attack_bonus": 1,
            "consume": {"type": "ammo", "target": "arrows", "amount": 1}
        },
        {"id": "arrows", "name": "Arrows", "type": "consumable", "attack_bonus": "1", "quantity": 20},
        {"id": "dagger", "name": "Dagger", "type": "weapon", "action_type": "mwak", "proficient": False},
        {"id": "fire-bolt", "name": "Fire Bolt", "type": "spell", "action_type": "rsak"},
        {"id": "rope", "name": "Rope", "type": "loot"}
    ],
    "last_item_id": "longbow"
}


@pytest.fixture
def sheet():
    """A fresh copy of the test character sheet."""
    return copy.deepcopy(SHEET)


@pytest.fixture
def actor(sheet):
    return SheetActor(sheet)


@pytest.fixture
def seeker():
    return TargetSeekingRoller(roller=DiceRoller(seed=42))


@pytest.fixture
def event_bus():
    return EventBus()


@pytest.fixture
def module(seeker, event_bus):
    return FudgeModule(seeker=seeker, event_bus=event_bus)


@pytest.fixture
def sheet_file(sheet, tmp_path):
    path = tmp_path / "mira.json"
    path.write_text(json.dumps(sheet))
    return path
