"""
Tests for legal action generation.
"""

import random

from ..engine_core.action import ActionType
from ..engine_core.action_generator import ActionGenerator, legal_actions
from ..engine_core.cards import HealthPotion, Rank, Suit, create_deck
from ..engine_core.reducer import apply_action
from ..engine_core.state import initial_state
from ..engine_core.validator import ActionValidator
from .conftest import monster, potion, room_state, weapon


def test_fresh_game_only_draws():
    state = initial_state(create_deck(random.Random(1)), now=0)
    actions = legal_actions(state)

    assert [a.action_type for a in actions] == [ActionType.DRAW_ROOM]
    assert actions[0].sequence == 1


def test_full_room_options(fight_room):
    types = sorted(a.action_type.value for a in legal_actions(fight_room._copy_with(health=15)))

    assert types == sorted([
        "AVOID_ROOM",
        "FIGHT_MONSTER",
        "FIGHT_MONSTER",
        "EQUIP_WEAPON",
        "USE_HEALTH_POTION",
    ])


def test_one_potion_action_per_healing_value():
    twin = HealthPotion(suit=Suit.DIAMONDS, rank=Rank.FOUR, healing=4)
    state = room_state([potion("4"), twin, monster("2")], health=5)
    healing = [a for a in legal_actions(state) if a.action_type == ActionType.USE_HEALTH_POTION]
    assert len(healing) == 1


def test_weapon_actions_follow_weapon_strength():
    state = room_state([monster("3"), monster("Q")], equipped_weapon=weapon("6"))
    targets = [a.monster.rank.value for a in legal_actions(state) if a.action_type == ActionType.USE_WEAPON]
    assert targets == ["3"]


def test_nothing_after_game_over(fight_room):
    assert legal_actions(fight_room._copy_with(game_over=True)) == []


def test_generated_actions_always_validate():
    validator = ActionValidator()
    generator = ActionGenerator(validator=validator)
    rng = random.Random(8)

    for _ in range(10):
        state = initial_state(create_deck(random.Random(rng.randrange(1000))), now=0)
        while not state.game_over:
            options = generator.generate(state, timestamp=5, sequence=state.last_action_sequence + 1)
            if not options:
                break
            for action in options:
                assert validator.validate(state, action) is None
                assert action.timestamp == 5
            state = apply_action(state, rng.choice(options))
