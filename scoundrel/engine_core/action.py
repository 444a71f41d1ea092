"""
Action System - Actions a client can send, and their results.

Every action carries the client's ``timestamp`` (epoch ms) and its
``sequence`` number; the integrity layer checks both before the rules
ever see the action.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .cards import Card, HealthPotion, Monster, Weapon, card_from_dict, card_to_dict


class ActionType(str, Enum):
    """Types of player actions."""
    DRAW_ROOM = "DRAW_ROOM"
    AVOID_ROOM = "AVOID_ROOM"
    FIGHT_MONSTER = "FIGHT_MONSTER"
    USE_WEAPON = "USE_WEAPON"
    USE_HEALTH_POTION = "USE_HEALTH_POTION"
    EQUIP_WEAPON = "EQUIP_WEAPON"


@dataclass(frozen=True)
class GameAction:
    """
    A complete action to be applied to a game.

    Only the payload field that matches ``action_type`` is read:
    ``monster`` for FIGHT_MONSTER / USE_WEAPON, ``weapon`` for
    EQUIP_WEAPON, ``healing`` for USE_HEALTH_POTION.
    """
    action_type: ActionType
    timestamp: int = 0
    sequence: int = 0
    monster: Monster | None = None
    weapon: Weapon | None = None
    healing: int | None = None

    @classmethod
    def draw_room(cls, timestamp: int = 0, sequence: int = 0) -> GameAction:
        return cls(ActionType.DRAW_ROOM, timestamp=timestamp, sequence=sequence)

    @classmethod
    def avoid_room(cls, timestamp: int = 0, sequence: int = 0) -> GameAction:
        return cls(ActionType.AVOID_ROOM, timestamp=timestamp, sequence=sequence)

    @classmethod
    def fight_monster(cls, monster: Monster, timestamp: int = 0, sequence: int = 0) -> GameAction:
        return cls(ActionType.FIGHT_MONSTER, timestamp=timestamp, sequence=sequence, monster=monster)

    @classmethod
    def use_weapon(cls, monster: Monster, timestamp: int = 0, sequence: int = 0) -> GameAction:
        return cls(ActionType.USE_WEAPON, timestamp=timestamp, sequence=sequence, monster=monster)

    @classmethod
    def use_health_potion(cls, healing: int, timestamp: int = 0, sequence: int = 0) -> GameAction:
        return cls(ActionType.USE_HEALTH_POTION, timestamp=timestamp, sequence=sequence, healing=healing)

    @classmethod
    def equip_weapon(cls, weapon: Weapon, timestamp: int = 0, sequence: int = 0) -> GameAction:
        return cls(ActionType.EQUIP_WEAPON, timestamp=timestamp, sequence=sequence, weapon=weapon)

    def to_dict(self) -> dict[str, Any]:
        """Wire form, as stored in the action history."""
        data: dict[str, Any] = {
            "type": self.action_type.value,
            "timestamp": self.timestamp,
            "sequence": self.sequence,
        }
        if self.monster is not None:
            data["monster"] = card_to_dict(self.monster)
        if self.weapon is not None:
            data["weapon"] = card_to_dict(self.weapon)
        if self.healing is not None:
            data["healing"] = self.healing
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> GameAction:
        """
        Parse the wire form.

        Raises ValueError/TypeError/KeyError on malformed input, including
        a payload card of the wrong archetype.
        """
        monster = card_from_dict(data["monster"]) if data.get("monster") else None
        weapon = card_from_dict(data["weapon"]) if data.get("weapon") else None
        if monster is not None and not isinstance(monster, Monster):
            raise TypeError("monster payload must be a MONSTER card")
        if weapon is not None and not isinstance(weapon, Weapon):
            raise TypeError("weapon payload must be a WEAPON card")
        healing = data.get("healing")
        return cls(
            ActionType(data["type"]),
            timestamp=int(data.get("timestamp", 0)),
            sequence=int(data.get("sequence", 0)),
            monster=monster,
            weapon=weapon,
            healing=int(healing) if healing is not None else None,
        )


def potion_in_room(cards, healing: int) -> HealthPotion | None:
    """First potion among ``cards`` with the given healing value."""
    for card in cards:
        if isinstance(card, HealthPotion) and card.healing == healing:
            return card
    return None


@dataclass
class ActionResult:
    """
    Result of handling an action at the session boundary.

    Contains:
    - Whether the action was applied
    - New state (if applied)
    - Error message and code (if rejected)
    """
    success: bool
    new_state: Any | None = None  # GameState
    error: str | None = None
    error_code: str | None = None
    state_changes: list[str] = field(default_factory=list)

    @classmethod
    def failure(cls, error: str, error_code: str | None = None) -> ActionResult:
        """Create a failure result."""
        return cls(success=False, error=error, error_code=error_code)

    @classmethod
    def success_with_state(cls, state: Any, changes: list[str] | None = None) -> ActionResult:
        """Create a success result with new state."""
        return cls(success=True, new_state=state, state_changes=changes or [])
