"""
Engine Core - Deterministic card play for Scoundrel.

The engine core is the pure part of the server:
1. Builds and shuffles the 44-card dungeon
2. Holds the immutable GameState snapshot
3. Validates actions against the rules
4. Applies actions via the reducer
5. Enumerates legal actions
"""

from .cards import (
    Card,
    CardType,
    HealthPotion,
    Monster,
    Rank,
    Suit,
    Weapon,
    build_deck,
    create_deck,
    same_card,
)
from .state import GameState, initial_state
from .action import ActionResult, ActionType, GameAction
from .reducer import Reducer, apply_action
from .validator import ActionValidator, validate_action
from .action_generator import ActionGenerator, legal_actions

__all__ = [
    "Card",
    "CardType",
    "HealthPotion",
    "Monster",
    "Rank",
    "Suit",
    "Weapon",
    "build_deck",
    "create_deck",
    "same_card",
    "GameState",
    "initial_state",
    "ActionResult",
    "ActionType",
    "GameAction",
    "Reducer",
    "apply_action",
    "ActionValidator",
    "validate_action",
    "ActionGenerator",
    "legal_actions",
]
