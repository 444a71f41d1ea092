"""
Pytest fixtures for Scoundrel tests.
"""

import random

import pytest

from ..config import EngineConfig
from ..engine_core.cards import HealthPotion, Monster, Rank, Suit, Weapon
from ..engine_core.state import FULL_ROOM_SIZE, GameState
from ..security import SecurityService
from ..session import InMemorySessionStore, SessionManager

START_MS = 1_700_000_000_000


def monster(rank: str, suit: Suit = Suit.SPADES) -> Monster:
    r = Rank(rank)
    return Monster(suit=suit, rank=r, damage=r.points)


def weapon(rank: str) -> Weapon:
    r = Rank(rank)
    return Weapon(suit=Suit.DIAMONDS, rank=r, damage=r.points)


def potion(rank: str) -> HealthPotion:
    r = Rank(rank)
    return HealthPotion(suit=Suit.HEARTS, rank=r, healing=r.points)


def room_state(room, dungeon=(), **kwargs) -> GameState:
    """A game in the middle of a freshly drawn room."""
    fields = dict(
        room=tuple(room),
        dungeon=tuple(dungeon),
        original_room_size=FULL_ROOM_SIZE,
        can_avoid_room=True,
        remaining_avoids=1,
    )
    fields.update(kwargs)
    return GameState(**fields)


class FakeClock:
    """Server clock under test control (epoch ms)."""

    def __init__(self, now: int = START_MS):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


@pytest.fixture
def seeded_rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def config() -> EngineConfig:
    return EngineConfig()


@pytest.fixture
def security(config: EngineConfig, clock: FakeClock) -> SecurityService:
    return SecurityService(config=config, clock=clock)


@pytest.fixture
def store() -> InMemorySessionStore:
    return InMemorySessionStore()


@pytest.fixture
def manager(store, config, clock) -> SessionManager:
    """Manager over an in-memory store with a seeded deck and a fake clock."""
    return SessionManager(store, config=config, rng=random.Random(7), clock=clock)


@pytest.fixture
def fight_room() -> GameState:
    """Room with a king, a five, an eight of diamonds and a four of hearts."""
    return room_state(
        room=[monster("K"), monster("5", Suit.CLUBS), weapon("8"), potion("4")],
        dungeon=[monster("9"), monster("2", Suit.CLUBS), potion("7"), weapon("3"), monster("J")],
    )
