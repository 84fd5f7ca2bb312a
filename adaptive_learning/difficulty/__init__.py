"""
Adaptive Difficulty

Live performance counter and the difficulty modifiers derived from it.
"""

from adaptive_learning.difficulty.controller import (
    DifficultyController, DifficultyModifiers, PlayerPerformance, DIFFICULTY_TITLES
)

__all__ = ['DifficultyController', 'DifficultyModifiers', 'PlayerPerformance', 'DIFFICULTY_TITLES']
