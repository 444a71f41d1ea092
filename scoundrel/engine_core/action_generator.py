"""
Action Generator - Generates all legal actions from a game state.

The action generator is used by:
1. The simulator to pick random moves
2. Clients that want to show available actions
3. Tests (every generated action must pass the validator)

Design: Generates GameAction objects, not just action types.
Every generated action is checked against the ActionValidator, so the
generator can never disagree with it.
"""

from __future__ import annotations
from dataclasses import dataclass, field

from .action import GameAction
from .cards import HealthPotion, Monster, Weapon
from .state import GameState
from .validator import ActionValidator


@dataclass
class ActionGenerator:
    """
    Generates legal actions for the current game state.

    One action per distinct target card; one potion action per distinct
    healing value.
    """
    validator: ActionValidator = field(default_factory=ActionValidator)

    def generate(
        self,
        state: GameState,
        timestamp: int = 0,
        sequence: int | None = None,
    ) -> list[GameAction]:
        """
        Generate all legal actions.

        ``sequence`` defaults to the next expected sequence number.
        """
        if state.game_over:
            return []

        if sequence is None:
            sequence = state.last_action_sequence + 1

        candidates: list[GameAction] = []
        candidates.append(GameAction.draw_room(timestamp, sequence))
        candidates.append(GameAction.avoid_room(timestamp, sequence))
        candidates.extend(self._generate_card_actions(state, timestamp, sequence))

        return [a for a in candidates if self.validator.validate(state, a) is None]

    def _generate_card_actions(
        self,
        state: GameState,
        timestamp: int,
        sequence: int,
    ) -> list[GameAction]:
        actions = []
        seen_healing: set[int] = set()

        for card in state.room:
            if isinstance(card, Monster):
                actions.append(GameAction.fight_monster(card, timestamp, sequence))
                actions.append(GameAction.use_weapon(card, timestamp, sequence))
            elif isinstance(card, Weapon):
                actions.append(GameAction.equip_weapon(card, timestamp, sequence))
            elif isinstance(card, HealthPotion):
                if card.healing not in seen_healing:
                    seen_healing.add(card.healing)
                    actions.append(GameAction.use_health_potion(card.healing, timestamp, sequence))
            else:
                raise TypeError(f"Unknown card type: {type(card).__name__}")

        return actions


def legal_actions(
    state: GameState,
    timestamp: int = 0,
    sequence: int | None = None,
    validator: ActionValidator | None = None,
) -> list[GameAction]:
    """Convenience wrapper around ActionGenerator.generate."""
    generator = ActionGenerator(validator=validator or ActionValidator())
    return generator.generate(state, timestamp, sequence)
