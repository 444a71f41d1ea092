"""
Scoundrel - Authoritative game engine for the Scoundrel dungeon crawler.

The engine owns the only trusted copy of every game:
- Deterministic state machine for card play
- Action legality validation
- Anti-tamper integrity layer (rate limits, sequence, checksums)
- Session lifecycle over a pluggable session store
"""

__version__ = "0.1.0"
