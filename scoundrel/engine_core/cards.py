"""
Cards and Deck - The three card archetypes and the 44-card dungeon.

Suits map to archetypes:
- Spades, Clubs: monsters, all 13 ranks (26 cards)
- Diamonds: weapons, ranks 2-10 (9 cards)
- Hearts: health potions, ranks 2-10 (9 cards)

Cards are immutable values. A card is identified by (suit, rank); the
numeric fields (damage, healing) are derived from the rank, except for
a weapon's damage, which dulls as the weapon is used.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol, Union
import random


class Suit(str, Enum):
    """The four suits, valued by their symbol."""
    SPADES = "♠"
    CLUBS = "♣"
    HEARTS = "♥"
    DIAMONDS = "♦"

    @classmethod
    def parse(cls, raw: str) -> Suit:
        """Accept the symbol or its letter (S, C, H, D)."""
        letters = {"S": cls.SPADES, "C": cls.CLUBS, "H": cls.HEARTS, "D": cls.DIAMONDS}
        key = raw.strip()
        if key.upper() in letters:
            return letters[key.upper()]
        return cls(key)


class Rank(str, Enum):
    """Card ranks; ``points`` is the rank's numeric value (2-14)."""
    TWO = "2"
    THREE = "3"
    FOUR = "4"
    FIVE = "5"
    SIX = "6"
    SEVEN = "7"
    EIGHT = "8"
    NINE = "9"
    TEN = "10"
    JACK = "J"
    QUEEN = "Q"
    KING = "K"
    ACE = "A"

    @property
    def points(self) -> int:
        return RANK_POINTS[self]

    @property
    def is_face_or_ace(self) -> bool:
        return self.points > 10


RANK_POINTS: dict[Rank, int] = {rank: i + 2 for i, rank in enumerate(Rank)}

MONSTER_SUITS = (Suit.SPADES, Suit.CLUBS)
WEAPON_SUIT = Suit.DIAMONDS
POTION_SUIT = Suit.HEARTS

DECK_SIZE = 44


class CardType(str, Enum):
    """Wire tag of each archetype."""
    MONSTER = "MONSTER"
    WEAPON = "WEAPON"
    HEALTH_POTION = "HEALTH_POTION"


@dataclass(frozen=True)
class Monster:
    suit: Suit
    rank: Rank
    damage: int

    card_type = CardType.MONSTER


@dataclass(frozen=True)
class Weapon:
    """
    A weapon and the monsters it has slain.

    ``damage`` starts at the rank value and is overwritten with the
    damage of the last monster slain.
    """
    suit: Suit
    rank: Rank
    damage: int
    slain_monsters: tuple[Monster, ...] = ()

    card_type = CardType.WEAPON


@dataclass(frozen=True)
class HealthPotion:
    suit: Suit
    rank: Rank
    healing: int

    card_type = CardType.HEALTH_POTION


Card = Union[Monster, Weapon, HealthPotion]


class RandomSource(Protocol):
    """The slice of ``random.Random`` the shuffle needs."""

    def randrange(self, stop: int) -> int: ...


def card_key(card: Card) -> tuple[Suit, Rank]:
    """Identity of a card in the deck."""
    return card.suit, card.rank


def same_card(a: Card, b: Card) -> bool:
    """Exact (suit, rank) match."""
    return card_key(a) == card_key(b)


def make_card(suit: Suit, rank: Rank) -> Card:
    """Create the card a (suit, rank) pair stands for in this game."""
    value = rank.points
    if suit in MONSTER_SUITS:
        return Monster(suit=suit, rank=rank, damage=value)
    if rank.is_face_or_ace:
        raise ValueError(f"{rank.value}{suit.value} is not part of the deck")
    if suit == WEAPON_SUIT:
        return Weapon(suit=suit, rank=rank, damage=value)
    if suit == POTION_SUIT:
        return HealthPotion(suit=suit, rank=rank, healing=value)
    raise ValueError(f"Unknown suit: {suit!r}")


def build_deck() -> list[Card]:
    """The 44 cards in a fixed order (suit by suit, ascending rank)."""
    deck: list[Card] = []
    for suit in Suit:
        for rank in Rank:
            if suit not in MONSTER_SUITS and rank.is_face_or_ace:
                continue
            deck.append(make_card(suit, rank))
    return deck


def shuffle_cards(cards: list[Card], rng: RandomSource) -> list[Card]:
    """Return a uniformly random permutation (Fisher-Yates)."""
    shuffled = list(cards)
    for i in range(len(shuffled) - 1, 0, -1):
        j = rng.randrange(i + 1)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


def create_deck(rng: RandomSource | None = None) -> list[Card]:
    """
    Build and shuffle a fresh dungeon.

    Args:
        rng: Random source; defaults to the OS entropy pool.
            Pass ``random.Random(seed)`` for a reproducible deck.
    """
    return shuffle_cards(build_deck(), rng or random.SystemRandom())


def monster_points(cards) -> int:
    """Sum of rank values of the monsters among ``cards``."""
    return sum(card.rank.points for card in cards if isinstance(card, Monster))


# =============================================================================
# Serialization
# =============================================================================

def card_to_dict(card: Card) -> dict[str, Any]:
    """Canonical JSON-ready form of a card."""
    base = {"type": card.card_type.value, "suit": card.suit.value, "rank": card.rank.value}
    if isinstance(card, Monster):
        return {**base, "damage": card.damage}
    if isinstance(card, Weapon):
        return {
            **base,
            "damage": card.damage,
            "slainMonsters": [card_to_dict(m) for m in card.slain_monsters],
        }
    if isinstance(card, HealthPotion):
        return {**base, "healing": card.healing}
    raise TypeError(f"Unknown card type: {type(card).__name__}")


def card_from_dict(data: dict[str, Any]) -> Card:
    """Inverse of ``card_to_dict``."""
    card_type = CardType(data["type"])
    suit = Suit.parse(data["suit"])
    rank = Rank(str(data["rank"]))
    if card_type == CardType.MONSTER:
        return Monster(suit=suit, rank=rank, damage=int(data.get("damage", rank.points)))
    if card_type == CardType.WEAPON:
        slain = data.get("slainMonsters") or []
        return Weapon(
            suit=suit,
            rank=rank,
            damage=int(data.get("damage", rank.points)),
            slain_monsters=tuple(card_from_dict(m) for m in slain),
        )
    if card_type == CardType.HEALTH_POTION:
        return HealthPotion(suit=suit, rank=rank, healing=int(data.get("healing", rank.points)))
    raise TypeError(f"Unknown card type: {card_type}")


def format_card(card: Card) -> str:
    """Short human-readable label, e.g. ``Q♠ (monster 12)``."""
    label = f"{card.rank.value}{card.suit.value}"
    if isinstance(card, Monster):
        return f"{label} (monster {card.damage})"
    if isinstance(card, Weapon):
        return f"{label} (weapon {card.damage})"
    if isinstance(card, HealthPotion):
        return f"{label} (potion {card.healing})"
    raise TypeError(f"Unknown card type: {type(card).__name__}")
