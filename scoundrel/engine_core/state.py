"""
Game State - The complete authoritative snapshot of one game.

Design principles:
- Immutable: transitions return a new snapshot, never mutate one
- Serializable: ``to_dict``/``from_dict`` give the canonical form that
  is persisted and checksummed
- Card-conserving: every card of the original deck lives in exactly one
  of dungeon, room, discard pile, equipped weapon, weapon trophies
"""

from __future__ import annotations
from dataclasses import dataclass, replace
from typing import Any

from .cards import Card, Weapon, card_from_dict, card_to_dict

DEFAULT_MAX_HEALTH = 20
FULL_ROOM_SIZE = 4


@dataclass(frozen=True)
class GameState:
    """
    One point-in-time view of a game.

    ``score`` is only meaningful once ``game_over`` is set.
    ``state_checksum`` covers every other field.
    """
    health: int = DEFAULT_MAX_HEALTH
    max_health: int = DEFAULT_MAX_HEALTH

    # Card containers
    dungeon: tuple[Card, ...] = ()
    room: tuple[Card, ...] = ()
    discard_pile: tuple[Card, ...] = ()
    equipped_weapon: Weapon | None = None

    # Room flow
    can_avoid_room: bool = True
    game_over: bool = False
    score: int = 0
    original_room_size: int = 0
    remaining_avoids: int = 1
    last_action_was_avoid: bool = False

    # Integrity stamps
    last_action_timestamp: int = 0
    last_action_sequence: int = 0
    state_checksum: str = ""

    def _copy_with(self, **kwargs) -> GameState:
        """Create a copy with some fields replaced."""
        return replace(self, **kwargs)

    def all_cards(self) -> list[Card]:
        """
        Every card the game owns, flattened.

        Weapons are listed once; their trophies are listed separately so
        the result can be compared with the original deck.
        """
        cards: list[Card] = []
        for card in (*self.dungeon, *self.room, *self.discard_pile):
            cards.append(card)
            if isinstance(card, Weapon):
                cards.extend(card.slain_monsters)
        if self.equipped_weapon is not None:
            cards.append(self.equipped_weapon)
            cards.extend(self.equipped_weapon.slain_monsters)
        return cards

    def to_dict(self, include_checksum: bool = True) -> dict[str, Any]:
        """Canonical camelCase form used for storage and checksumming."""
        data: dict[str, Any] = {
            "health": self.health,
            "maxHealth": self.max_health,
            "dungeon": [card_to_dict(c) for c in self.dungeon],
            "room": [card_to_dict(c) for c in self.room],
            "discardPile": [card_to_dict(c) for c in self.discard_pile],
            "equippedWeapon": (
                card_to_dict(self.equipped_weapon) if self.equipped_weapon else None
            ),
            "canAvoidRoom": self.can_avoid_room,
            "gameOver": self.game_over,
            "score": self.score,
            "originalRoomSize": self.original_room_size,
            "remainingAvoids": self.remaining_avoids,
            "lastActionWasAvoid": self.last_action_was_avoid,
            "lastActionTimestamp": self.last_action_timestamp,
            "lastActionSequence": self.last_action_sequence,
        }
        if include_checksum:
            data["stateChecksum"] = self.state_checksum
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> GameState:
        weapon = data.get("equippedWeapon")
        return cls(
            health=int(data["health"]),
            max_health=int(data["maxHealth"]),
            dungeon=tuple(card_from_dict(c) for c in data.get("dungeon", [])),
            room=tuple(card_from_dict(c) for c in data.get("room", [])),
            discard_pile=tuple(card_from_dict(c) for c in data.get("discardPile", [])),
            equipped_weapon=card_from_dict(weapon) if weapon else None,
            can_avoid_room=bool(data["canAvoidRoom"]),
            game_over=bool(data["gameOver"]),
            score=int(data["score"]),
            original_room_size=int(data["originalRoomSize"]),
            remaining_avoids=int(data["remainingAvoids"]),
            last_action_was_avoid=bool(data["lastActionWasAvoid"]),
            last_action_timestamp=int(data["lastActionTimestamp"]),
            last_action_sequence=int(data["lastActionSequence"]),
            state_checksum=data.get("stateChecksum", ""),
        )


def initial_state(
    dungeon: list[Card],
    now: int,
    max_health: int = DEFAULT_MAX_HEALTH,
) -> GameState:
    """Fresh game: full health, empty room, sequence 0, checksum not yet stamped."""
    return GameState(
        health=max_health,
        max_health=max_health,
        dungeon=tuple(dungeon),
        last_action_timestamp=now,
        last_action_sequence=0,
    )
