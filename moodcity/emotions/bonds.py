"""
moodcity/emotions/bonds.py

Tracks emotional bonds between agent pairs.
Each bond has four 0-100 axes: affection, trust, respect, rivalry.

Bonds are symmetric (A↔B and B↔A are the same record) and created lazily,
the first time two agents interact. total_interactions only ever grows.
"""

import threading
import time
from typing import Callable, Optional

from loguru import logger

from moodcity.emotions.models import EmotionalBond, clamp
from moodcity.emotions.types import RelationshipType

# Used by contagion when two agents have never interacted
DEFAULT_BOND_STRENGTH = 10.0

# Bond deltas applied after a conversation ends
BOND_EVENTS = {
    "positive_conversation": {"affection": +5, "trust": +3, "respect": +2},
    "negative_conversation": {"affection": -3, "trust": -2, "rivalry": +2},
}

_AXES = ("affection", "trust", "respect", "rivalry")


def classify_relationship(bond: EmotionalBond) -> RelationshipType:
    if bond.total_interactions > 10:
        if bond.affection > 70 and bond.trust > 60:
            return RelationshipType.CLOSE_FRIEND
        if bond.affection > 50:
            return RelationshipType.FRIEND
        if bond.rivalry > 50:
            return RelationshipType.RIVAL
        return RelationshipType.ACQUAINTANCE
    if bond.total_interactions > 3:
        return RelationshipType.ACQUAINTANCE
    return RelationshipType.STRANGER


class BondStore:

    def __init__(self, clock: Callable[[], float] = time.time):
        self.clock = clock
        self._bonds: dict[tuple, EmotionalBond] = {}
        self._lock = threading.Lock()

    @staticmethod
    def _key(agent_a: str, agent_b: str) -> tuple:
        return tuple(sorted([agent_a, agent_b]))

    def initialize_bond(self, agent_a: str, agent_b: str) -> EmotionalBond:
        """Create the stranger-level bond. Returns the existing one if already there."""
        key = self._key(agent_a, agent_b)
        with self._lock:
            bond = self._bonds.get(key)
            if bond is None:
                bond = EmotionalBond(agent1_id=key[0], agent2_id=key[1], last_interaction=self.clock())
                self._bonds[key] = bond
                logger.debug(f"🤝 New bond {agent_a}↔{agent_b}")
            return bond

    def update_bond(self, agent_a: str, agent_b: str, changes: dict[str, float]) -> EmotionalBond:
        """Apply clamped deltas, count the interaction, re-derive the relationship."""
        bond = self.initialize_bond(agent_a, agent_b)
        with self._lock:
            before = bond.relationship_type
            for axis, delta in changes.items():
                if axis not in _AXES:
                    raise ValueError(f"Unknown bond axis: {axis}")
                setattr(bond, axis, clamp(getattr(bond, axis) + delta))

            bond.total_interactions += 1
            bond.last_interaction = self.clock()
            bond.contagion_strength = min(100.0, bond.strength)
            bond.relationship_type = classify_relationship(bond)

        if bond.relationship_type != before:
            logger.info(f"🤝 {agent_a}↔{agent_b}: {before} → {bond.relationship_type}")
        return bond

    def get_bond(self, agent_a: str, agent_b: str) -> Optional[EmotionalBond]:
        return self._bonds.get(self._key(agent_a, agent_b))

    def bond_strength(self, agent_a: str, agent_b: str) -> float:
        """(affection + trust) / 2, or the stranger default if they never met."""
        bond = self.get_bond(agent_a, agent_b)
        return bond.strength if bond else DEFAULT_BOND_STRENGTH

    def get_label(self, agent_a: str, agent_b: str) -> str:
        bond = self.get_bond(agent_a, agent_b)
        if bond is None:
            return RelationshipType.STRANGER.value
        return RelationshipType(bond.relationship_type).value

    def bonds_of(self, agent_id: str) -> list[EmotionalBond]:
        return [b for key, b in self._bonds.items() if agent_id in key]

    def all_bonds(self) -> list[EmotionalBond]:
        return list(self._bonds.values())
