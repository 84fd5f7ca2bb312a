"""
Shared Enumerations

Difficulty tiers, age brackets and priority levels used across the
tracker, classifier, generator and recommendation engine.
"""

import enum
from typing import List


class Difficulty(enum.Enum):
    """Problem difficulty tiers, ordered from easiest to hardest."""
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"
    EXPERT = "expert"

    @classmethod
    def ordered(cls) -> List['Difficulty']:
        """Return tiers from easiest to hardest."""
        return [cls.EASY, cls.MEDIUM, cls.HARD, cls.EXPERT]

    @property
    def rank(self) -> int:
        """Position of this tier in the easy-to-expert ordering (0-3)."""
        return Difficulty.ordered().index(self)

    def step_down(self) -> 'Difficulty':
        """Return the next easier tier (easy stays easy)."""
        return Difficulty.ordered()[max(0, self.rank - 1)]

    def cap(self, ceiling: 'Difficulty') -> 'Difficulty':
        """Return this tier, or ``ceiling`` if this tier is harder."""
        return ceiling if self.rank > ceiling.rank else self


class AgeGroup(enum.Enum):
    """Age brackets inferred from play behavior."""
    KIDS = "kids"
    TEENS = "teens"
    ADULTS = "adults"
    SENIORS = "seniors"


class Priority(enum.Enum):
    """Priority levels for insights and recommendations."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def weight(self) -> int:
        """Sort weight (high sorts first)."""
        return {Priority.HIGH: 3, Priority.MEDIUM: 2, Priority.LOW: 1}[self]
