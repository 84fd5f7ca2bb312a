"""
Adaptive Difficulty Controller

Keeps a single live performance counter (streak, accuracy, rolling average
time, last five results) and turns it into difficulty modifiers after every
answer. The modifiers are a pure function of the counter, so reading them
twice without a new answer returns identical values.
"""

from collections import deque
from typing import Any, Deque, Dict
from dataclasses import dataclass, field

from adaptive_learning.common.logger import app_logger

# Module logger
logger = app_logger.getChild("difficulty.controller")

RECENT_RESULTS_SIZE = 5

# Descriptive titles by complexity level
DIFFICULTY_TITLES = {
    4: "Maestro Matemático",
    3: "Aventurero Experto",
    2: "Explorador Capaz",
    1: "Aprendiz Valiente",
    0: "Nuevo Aventurero",
}


@dataclass
class PlayerPerformance:
    """Live answer counter owned by the controller."""

    streak: int = 0
    correct_answers: int = 0
    total_answers: int = 0
    average_time: float = 0.0
    last_five_results: Deque[bool] = field(
        default_factory=lambda: deque(maxlen=RECENT_RESULTS_SIZE)
    )
    current_level: int = 1
    best_streak: int = 0

    @property
    def success_rate(self) -> float:
        """Overall accuracy (0.5 before any answer)."""
        if self.total_answers == 0:
            return 0.5
        return self.correct_answers / self.total_answers

    @property
    def recent_performance(self) -> float:
        """Accuracy over the last five answers (0.5 before any answer)."""
        if not self.last_five_results:
            return 0.5
        return sum(self.last_five_results) / len(self.last_five_results)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "streak": self.streak,
            "correct_answers": self.correct_answers,
            "total_answers": self.total_answers,
            "average_time": self.average_time,
            "last_five_results": list(self.last_five_results),
            "current_level": self.current_level,
            "best_streak": self.best_streak,
        }


@dataclass(frozen=True)
class DifficultyModifiers:
    """Difficulty adjustments derived from the live counter."""

    range_multiplier: float = 1.0
    complexity_level: int = 2
    hint_availability: bool = True
    time_bonus: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "range_multiplier": self.range_multiplier,
            "complexity_level": self.complexity_level,
            "hint_availability": self.hint_availability,
            "time_bonus": self.time_bonus,
        }


class DifficultyController:
    """
    Continuously updated difficulty counter for one player.

    Construct one per player and inject it where needed; it holds no
    module-level state.
    """

    def __init__(self):
        self.performance = PlayerPerformance()

    def update_performance(self, is_correct: bool, time_spent: float, level: int = 1) -> None:
        """
        Fold one answer into the counter.

        Args:
            is_correct: Whether the answer was correct
            time_spent: Response time in seconds
            level: Current game level
        """
        perf = self.performance
        perf.total_answers += 1
        perf.current_level = level

        if is_correct:
            perf.correct_answers += 1
            perf.streak += 1
            perf.best_streak = max(perf.best_streak, perf.streak)
        else:
            perf.streak = 0

        perf.last_five_results.append(is_correct)
        perf.average_time = (perf.average_time * (perf.total_answers - 1) + time_spent) / perf.total_answers

        logger.debug(
            f"Difficulty counter: streak {perf.streak}, "
            f"success {perf.success_rate:.2f}, avg {perf.average_time:.1f}s"
        )

    def get_difficulty_modifiers(self) -> DifficultyModifiers:
        """
        Compute modifiers from the current counter.

        Returns:
            Difficulty modifiers
        """
        success_rate = self.performance.success_rate
        recent = self.performance.recent_performance

        return DifficultyModifiers(
            range_multiplier=self._range_multiplier(success_rate, recent),
            complexity_level=self._complexity_level(success_rate),
            hint_availability=success_rate < 0.6 or self.performance.streak < 2,
            time_bonus=self.performance.average_time < 15 and success_rate > 0.7,
        )

    def _range_multiplier(self, success_rate: float, recent: float) -> float:
        streak = self.performance.streak
        if success_rate > 0.8 and recent > 0.8 and streak > 3:
            return 1.5
        if success_rate < 0.4 and recent < 0.4:
            return 0.7
        if streak > 5:
            return 1.3
        if streak < 2 and self.performance.total_answers > 3:
            return 0.8
        return 1.0

    def _complexity_level(self, success_rate: float) -> int:
        streak = self.performance.streak
        if success_rate > 0.9 and streak > 5:
            return 4
        if success_rate > 0.8 and streak > 3:
            return 3
        if success_rate > 0.6:
            return 2
        if success_rate > 0.3:
            return 1
        return 0

    def get_difficulty_description(self) -> str:
        """Title for the current complexity level."""
        return DIFFICULTY_TITLES[self.get_difficulty_modifiers().complexity_level]

    def get_encouragement_message(self) -> str:
        """Short encouragement keyed off the streak and success rate."""
        streak = self.performance.streak
        success_rate = self.performance.success_rate

        if streak > 5:
            return "Incredible streak! You're unstoppable!"
        if streak > 3:
            return "Excellent work! Keep it up!"
        if success_rate > 0.8:
            return "You're doing great!"
        if success_rate > 0.6:
            return "Good job! You can do it!"
        if success_rate > 0.4:
            return "Don't give up! You're improving!"
        return "Take your time! You can get there!"

    def get_performance_stats(self) -> Dict[str, Any]:
        """Counter snapshot plus derived rates and the current title."""
        stats = self.performance.to_dict()
        stats.update({
            "success_rate": self.performance.success_rate,
            "recent_performance": self.performance.recent_performance,
            "difficulty_level": self.get_difficulty_description(),
        })
        return stats

    def reset(self) -> None:
        """Clear the counter."""
        self.performance = PlayerPerformance()
        logger.debug("Difficulty counter reset")
