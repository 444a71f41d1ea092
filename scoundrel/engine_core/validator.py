"""
Action Validator - Pre-flight legality check for actions.

The validator runs before the reducer and never touches state. It
answers one question: may this action be applied to this state?

Returns an error message if the action is illegal, None if it is legal.
The rule for engaging a monster with a weapon is ``weapon.damage >=
monster.damage``: a weapon may always take on a monster as strong as
its last kill.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Callable

from .action import ActionType, GameAction, potion_in_room
from .cards import Card, Monster, Weapon, same_card
from .state import FULL_ROOM_SIZE, GameState
from ..errors import ActionValidationError

Check = Callable[[GameState, GameAction], str | None]


def find_in_room(state: GameState, wanted: Card) -> Card | None:
    """Room card with the same (suit, rank) as ``wanted``."""
    for card in state.room:
        if same_card(card, wanted):
            return card
    return None


def cards_needed_for_draw(state: GameState) -> int:
    """How many dungeon cards a DRAW_ROOM takes from here."""
    return FULL_ROOM_SIZE - 1 if len(state.room) == 1 else FULL_ROOM_SIZE


def weapon_can_engage(weapon: Weapon | None, monster: Monster) -> bool:
    """True if ``weapon`` may be used against ``monster``."""
    return weapon is not None and weapon.damage > 0 and weapon.damage >= monster.damage


@dataclass
class ActionValidator:
    """
    Checks actions against the rules of the game.

    ``allow_closing_draw`` makes DRAW_ROOM legal when the dungeon can no
    longer fill a room, so the final draw can close the game (the reducer
    scores it when fewer than three cards remain). With it off, a short
    dungeon rejects the draw.
    """
    allow_closing_draw: bool = True

    def validate(self, state: GameState, action: GameAction) -> str | None:
        if state.game_over:
            return "Game is already over"

        check = self._get_check(action.action_type)
        if check is None:
            return f"Invalid action type: {action.action_type}"
        return check(state, action)

    def _get_check(self, action_type: ActionType) -> Check | None:
        checks: dict[ActionType, Check] = {
            ActionType.DRAW_ROOM: self._check_draw_room,
            ActionType.AVOID_ROOM: self._check_avoid_room,
            ActionType.FIGHT_MONSTER: self._check_fight_monster,
            ActionType.USE_WEAPON: self._check_use_weapon,
            ActionType.USE_HEALTH_POTION: self._check_use_health_potion,
            ActionType.EQUIP_WEAPON: self._check_equip_weapon,
        }
        return checks.get(action_type)

    def _check_draw_room(self, state: GameState, action: GameAction) -> str | None:
        if len(state.room) > 1:
            return "Cannot draw room when current room has more than one card"
        if len(state.dungeon) < cards_needed_for_draw(state):
            if not self.allow_closing_draw:
                return "Not enough cards in dungeon to draw a room"
        return None

    def _check_avoid_room(self, state: GameState, action: GameAction) -> str | None:
        if not state.can_avoid_room:
            return "Cannot avoid room at this time"
        if state.last_action_was_avoid:
            return "Cannot avoid room twice in a row"
        if not state.room:
            return "No room to avoid"
        return None

    def _check_monster_target(self, state: GameState, action: GameAction) -> str | None:
        if action.monster is None:
            return f"Monster is required for {action.action_type.value} action"
        found = find_in_room(state, action.monster)
        if not isinstance(found, Monster):
            return "Monster not found in current room"
        return None

    def _check_fight_monster(self, state: GameState, action: GameAction) -> str | None:
        return self._check_monster_target(state, action)

    def _check_use_weapon(self, state: GameState, action: GameAction) -> str | None:
        error = self._check_monster_target(state, action)
        if error:
            return error
        if state.equipped_weapon is None:
            return "No weapon equipped"
        # Judge by the room's card, not by the damage the client claims
        monster = find_in_room(state, action.monster)
        if not weapon_can_engage(state.equipped_weapon, monster):
            return "Weapon is too weak for this monster"
        return None

    def _check_use_health_potion(self, state: GameState, action: GameAction) -> str | None:
        if action.healing is None:
            return "Healing amount is required for USE_HEALTH_POTION action"
        if potion_in_room(state.room, action.healing) is None:
            return "Health potion not found in current room"
        if state.health >= state.max_health:
            return "Health is already full"
        return None

    def _check_equip_weapon(self, state: GameState, action: GameAction) -> str | None:
        if action.weapon is None:
            return "Weapon is required for EQUIP_WEAPON action"
        if not isinstance(find_in_room(state, action.weapon), Weapon):
            return "Weapon not found in current room"
        return None


def validate_action(
    state: GameState,
    action: GameAction,
    validator: ActionValidator | None = None,
) -> None:
    """
    Raise ActionValidationError if ``action`` is illegal for ``state``.
    """
    error = (validator or ActionValidator()).validate(state, action)
    if error:
        raise ActionValidationError(error)
