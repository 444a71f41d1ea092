"""
Reducer - Applies actions to game state.

The reducer is the single point of state transition.

Design principles:
- Pure function: (state, action) -> new_state
- Total: never raises for a well-formed action; anything it cannot
  apply leaves the state unchanged (legality is checked upstream by
  the ActionValidator)
- Cards are taken from the room, never from the action payload, so a
  client cannot forge a card's damage or healing
- A finished game absorbs every further action
"""

from __future__ import annotations
from dataclasses import replace
from typing import Callable

from .action import ActionType, GameAction, potion_in_room
from .cards import Card, Monster, Weapon, monster_points, same_card
from .state import FULL_ROOM_SIZE, GameState

# Below this many dungeon cards a DRAW_ROOM ends the game.
MIN_DUNGEON_FOR_DRAW = 3

Handler = Callable[[GameState, GameAction], GameState]


def _find_in_room(state: GameState, wanted: Card | None, kind: type) -> Card | None:
    """Room card matching ``wanted`` by (suit, rank) and of archetype ``kind``."""
    if wanted is None:
        return None
    for card in state.room:
        if isinstance(card, kind) and same_card(card, wanted):
            return card
    return None


def _without(cards: tuple[Card, ...], card: Card) -> tuple[Card, ...]:
    """Drop the first card matching ``card``."""
    for i, c in enumerate(cards):
        if same_card(c, card):
            return cards[:i] + cards[i + 1:]
    return cards


def _after_card_played(state: GameState, health: int, room: tuple[Card, ...], **changes) -> GameState:
    """Common tail of every action that resolves a room card."""
    if health <= 0:
        return state._copy_with(
            health=0,
            room=room,
            game_over=True,
            score=-monster_points(state.dungeon),
            can_avoid_room=False,
            remaining_avoids=0,
            last_action_was_avoid=False,
            **changes,
        )
    return state._copy_with(
        health=health,
        room=room,
        can_avoid_room=len(room) == state.original_room_size,
        remaining_avoids=0,
        last_action_was_avoid=False,
        **changes,
    )


class Reducer:
    """
    Reducer applies actions to game state.

    Stateless - all state is in GameState.
    """

    def apply(self, state: GameState, action: GameAction) -> GameState:
        if state.game_over:
            return state
        handler = self._get_handler(action.action_type)
        if handler is None:
            return state
        return handler(state, action)

    def _get_handler(self, action_type: ActionType) -> Handler | None:
        handlers: dict[ActionType, Handler] = {
            ActionType.DRAW_ROOM: self._handle_draw_room,
            ActionType.AVOID_ROOM: self._handle_avoid_room,
            ActionType.FIGHT_MONSTER: self._handle_fight_monster,
            ActionType.USE_WEAPON: self._handle_use_weapon,
            ActionType.USE_HEALTH_POTION: self._handle_use_health_potion,
            ActionType.EQUIP_WEAPON: self._handle_equip_weapon,
        }
        return handlers.get(action_type)

    def _handle_draw_room(self, state: GameState, action: GameAction) -> GameState:
        if len(state.dungeon) < MIN_DUNGEON_FOR_DRAW:
            score = state.health if state.health > 0 else -monster_points(state.dungeon)
            return state._copy_with(game_over=True, score=score)

        # A single leftover card stays and is topped up to a full room
        to_draw = FULL_ROOM_SIZE - 1 if len(state.room) == 1 else FULL_ROOM_SIZE
        drawn = state.dungeon[:to_draw]

        return state._copy_with(
            room=state.room + drawn,
            dungeon=state.dungeon[to_draw:],
            original_room_size=FULL_ROOM_SIZE,
            remaining_avoids=1,
            can_avoid_room=not state.last_action_was_avoid,
            last_action_was_avoid=False,
        )

    def _handle_avoid_room(self, state: GameState, action: GameAction) -> GameState:
        if not state.can_avoid_room:
            return state
        return state._copy_with(
            dungeon=state.dungeon + state.room,
            room=(),
            can_avoid_room=False,
            remaining_avoids=0,
            last_action_was_avoid=True,
        )

    def _handle_fight_monster(self, state: GameState, action: GameAction) -> GameState:
        # Bare-handed: always the monster's full damage
        monster = _find_in_room(state, action.monster, Monster)
        if monster is None:
            return state
        return _after_card_played(
            state,
            health=state.health - monster.damage,
            room=_without(state.room, monster),
            discard_pile=state.discard_pile + (monster,),
        )

    def _handle_use_weapon(self, state: GameState, action: GameAction) -> GameState:
        weapon = state.equipped_weapon
        if weapon is None or weapon.damage == 0:
            return state
        monster = _find_in_room(state, action.monster, Monster)
        if monster is None:
            return state

        damage_taken = max(0, monster.damage - weapon.damage)
        # The weapon dulls to the strength of its last kill
        dulled = replace(
            weapon,
            damage=monster.damage,
            slain_monsters=weapon.slain_monsters + (monster,),
        )
        return _after_card_played(
            state,
            health=state.health - damage_taken,
            room=_without(state.room, monster),
            equipped_weapon=dulled,
        )

    def _handle_use_health_potion(self, state: GameState, action: GameAction) -> GameState:
        if action.healing is None:
            return state
        potion = potion_in_room(state.room, action.healing)
        if potion is None:
            return state
        return _after_card_played(
            state,
            health=min(state.max_health, state.health + potion.healing),
            room=_without(state.room, potion),
            discard_pile=state.discard_pile + (potion,),
        )

    def _handle_equip_weapon(self, state: GameState, action: GameAction) -> GameState:
        weapon = _find_in_room(state, action.weapon, Weapon)
        if weapon is None:
            return state

        discard_pile = state.discard_pile
        if state.equipped_weapon is not None:
            # The old weapon leaves with its trophies attached
            discard_pile = discard_pile + (state.equipped_weapon,)

        return _after_card_played(
            state,
            health=state.health,
            room=_without(state.room, weapon),
            discard_pile=discard_pile,
            equipped_weapon=replace(weapon, slain_monsters=()),
        )


_REDUCER = Reducer()


def apply_action(state: GameState, action: GameAction) -> GameState:
    """
    Convenience function to apply an action.

    Uses a shared stateless Reducer.
    """
    return _REDUCER.apply(state, action)
