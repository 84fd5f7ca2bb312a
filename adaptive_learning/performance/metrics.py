"""
Personalized Metrics Calculator

Derives play-time preference, learning style, motivational factors,
burnout risk and engagement level from a window of session history. The
metrics are recomputed from scratch on every call.
"""

from collections import Counter
from typing import List, Sequence

from adaptive_learning.common.logger import app_logger
from adaptive_learning.common.serialization import mean
from adaptive_learning.performance.aggregates import (
    average_session_length, best_time_of_day, category_accuracy
)
from adaptive_learning.performance.models import (
    LearningStyle, PersonalizedMetrics, SessionRecord, TrendDirection
)
from adaptive_learning.performance.trends import TrendAnalyzer

logger = app_logger.getChild("performance.metrics")

# Motivational factor tags
ACHIEVEMENT_PROGRESS = "achievement_progress"
SHORT_INTENSE_SESSIONS = "short_intense_sessions"
CONTENT_VARIETY = "content_variety"

BURNOUT_MIN_SESSIONS = 7
ENGAGEMENT_WINDOW = 14
LONG_SESSION_MINUTES = 30
MAX_CATEGORIES = 3


class PersonalizedMetricsCalculator:
    """Computes PersonalizedMetrics from session history."""

    def __init__(self, trend_analyzer: TrendAnalyzer = None):
        self.trend_analyzer = trend_analyzer or TrendAnalyzer()

    def calculate(self, sessions: Sequence[SessionRecord]) -> PersonalizedMetrics:
        """
        Compute metrics for a session window.

        Args:
            sessions: Sessions ordered oldest first

        Returns:
            Fresh metrics (neutral defaults for an empty history)
        """
        if not sessions:
            return PersonalizedMetrics()

        optimal_time, _ = best_time_of_day(sessions)
        metrics = PersonalizedMetrics(
            optimal_play_time=optimal_time,
            average_session_length=average_session_length(sessions),
            preferred_difficulty=self.preferred_difficulty(sessions),
            strongest_categories=self.strongest_categories(sessions),
            weakest_categories=self.weakest_categories(sessions),
            learning_style=self.learning_style(sessions),
            motivational_factors=self.motivational_factors(sessions),
            burnout_risk=self.burnout_risk(sessions),
            engagement_level=self.engagement_level(sessions),
        )
        logger.debug(
            f"Metrics over {len(sessions)} sessions: burnout {metrics.burnout_risk:.2f}, "
            f"engagement {metrics.engagement_level:.2f}"
        )
        return metrics

    @staticmethod
    def preferred_difficulty(sessions: Sequence[SessionRecord]) -> str:
        """Most frequent difficulty label across sessions (medium when none)."""
        counts = Counter(d for s in sessions for d in s.difficulty_progression)
        if not counts:
            return "medium"
        return counts.most_common(1)[0][0]

    @staticmethod
    def strongest_categories(sessions: Sequence[SessionRecord]) -> List[str]:
        """Up to three categories above 0.8 accuracy, best first."""
        accuracy = category_accuracy(sessions)
        strong = [(c, a) for c, a in accuracy.items() if a > 0.8]
        strong.sort(key=lambda item: item[1], reverse=True)
        return [c for c, _ in strong[:MAX_CATEGORIES]]

    @staticmethod
    def weakest_categories(sessions: Sequence[SessionRecord]) -> List[str]:
        """Up to three categories below 0.6 accuracy, worst first."""
        accuracy = category_accuracy(sessions)
        weak = [(c, a) for c, a in accuracy.items() if a < 0.6]
        weak.sort(key=lambda item: item[1])
        return [c for c, _ in weak[:MAX_CATEGORIES]]

    @staticmethod
    def learning_style(sessions: Sequence[SessionRecord]) -> LearningStyle:
        avg_response_time = mean([s.average_response_time for s in sessions])
        avg_consistency = mean([s.consistency_score for s in sessions])

        if avg_response_time < 15 and avg_consistency > 0.8:
            return LearningStyle.INTUITIVE
        if avg_response_time > 25 and avg_consistency > 0.7:
            return LearningStyle.METHODICAL
        if avg_consistency > 0.6:
            return LearningStyle.ANALYTICAL
        return LearningStyle.VISUAL

    @staticmethod
    def motivational_factors(sessions: Sequence[SessionRecord]) -> List[str]:
        factors = []
        if mean([s.accuracy_rate for s in sessions]) > 0.8:
            factors.append(ACHIEVEMENT_PROGRESS)
        if average_session_length(sessions) < 20:
            factors.append(SHORT_INTENSE_SESSIONS)
        if len({c for s in sessions for c in s.categories_played}) > 3:
            factors.append(CONTENT_VARIETY)
        return factors

    def burnout_risk(self, sessions: Sequence[SessionRecord]) -> float:
        """
        Heuristic 0-1 burnout score.

        Declining accuracy and declining focus each add 0.3; more than three
        sessions over 30 minutes among the last seven add 0.4.
        """
        if len(sessions) < BURNOUT_MIN_SESSIONS:
            return 0.0

        risk = 0.0
        if self.trend_analyzer.compute_trend(sessions, "accuracy_rate").direction == TrendDirection.DECLINING:
            risk += 0.3
        if self.trend_analyzer.compute_trend(sessions, "focus_score").direction == TrendDirection.DECLINING:
            risk += 0.3

        recent = sessions[-BURNOUT_MIN_SESSIONS:]
        long_sessions = sum(1 for s in recent if s.duration_minutes > LONG_SESSION_MINUTES)
        if long_sessions > 3:
            risk += 0.4

        return min(risk, 1.0)

    @staticmethod
    def engagement_level(sessions: Sequence[SessionRecord]) -> float:
        """Mean of session frequency, accuracy and focus over the last two weeks of sessions."""
        if not sessions:
            return 0.0

        recent = sessions[-ENGAGEMENT_WINDOW:]
        frequency = len(recent) / ENGAGEMENT_WINDOW
        accuracy = mean([s.accuracy_rate for s in recent])
        focus = mean([s.focus_score for s in recent])
        return min((frequency + accuracy + focus) / 3, 1.0)
