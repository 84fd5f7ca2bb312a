"""
Insight Generator

Scans session history for strengths, weaknesses, time-of-day patterns and
session-length advice, each with a confidence score and suggested actions.
"""

from typing import Dict, List, Optional, Sequence

from adaptive_learning.common.enums import AgeGroup, Priority
from adaptive_learning.common.logger import app_logger
from adaptive_learning.performance.aggregates import (
    average_session_length, best_time_of_day, category_accuracy
)
from adaptive_learning.performance.models import Insight, InsightType, SessionRecord

logger = app_logger.getChild("performance.insights")

STRENGTH_THRESHOLD = 0.8
WEAKNESS_THRESHOLD = 0.6
PATTERN_MIN_CONFIDENCE = 0.7
LONG_SESSION_MINUTES = 30

# One extra suggested action per age group and insight type
AGE_ACTIONS: Dict[AgeGroup, Dict[InsightType, str]] = {
    AgeGroup.KIDS: {
        InsightType.STRENGTH: "Unlock a new adventure level as a reward",
        InsightType.WEAKNESS: "Practice with picture-based problems and a mascot guide",
        InsightType.PATTERN: "Play a short round right after a snack break",
        InsightType.RECOMMENDATION: "Keep rounds to about 10 minutes with a fun break",
    },
    AgeGroup.TEENS: {
        InsightType.STRENGTH: "Take on a timed challenge to beat your best score",
        InsightType.WEAKNESS: "Set a streak goal for these topics this week",
        InsightType.PATTERN: "Schedule a challenge round at your best time",
        InsightType.RECOMMENDATION: "Split practice into short competitive sprints",
    },
    AgeGroup.ADULTS: {
        InsightType.STRENGTH: "Apply these skills to real-world problems",
        InsightType.WEAKNESS: "Review one worked example before each practice block",
        InsightType.PATTERN: "Block this time in your calendar for practice",
        InsightType.RECOMMENDATION: "Fit focused 15-minute sessions into work breaks",
    },
    AgeGroup.SENIORS: {
        InsightType.STRENGTH: "Keep a steady rhythm with slightly harder problems",
        InsightType.WEAKNESS: "Work through step-by-step explanations at your own pace",
        InsightType.PATTERN: "Practice when you feel most rested",
        InsightType.RECOMMENDATION: "Take a relaxed pause between problem sets",
    },
}


class InsightGenerator:
    """Emits learning insights from session history."""

    def generate(self, sessions: Sequence[SessionRecord],
                 age_group: Optional[AgeGroup] = None) -> List[Insight]:
        """
        Generate insights sorted by descending confidence.

        Args:
            sessions: Session history, oldest first
            age_group: When given, each insight gets one extra age-specific action

        Returns:
            Insights, most confident first
        """
        accuracy = category_accuracy(sessions)

        insights: List[Insight] = []
        insights.extend(self._strengths(accuracy))
        insights.extend(self._weaknesses(accuracy))
        insights.extend(self._patterns(sessions))
        insights.extend(self._recommendations(sessions))

        if age_group is not None:
            for insight in insights:
                insight.suggested_actions.append(AGE_ACTIONS[age_group][insight.insight_type])

        insights.sort(key=lambda i: i.confidence, reverse=True)
        logger.debug(f"Generated {len(insights)} insights from {len(sessions)} sessions")
        return insights

    def _strengths(self, accuracy: Dict[str, float]) -> List[Insight]:
        strong = [c for c, a in accuracy.items() if a > STRENGTH_THRESHOLD]
        if not strong:
            return []
        return [Insight(
            insight_type=InsightType.STRENGTH,
            title="Mastered Categories",
            description=f"Excellent performance in: {', '.join(strong)}",
            confidence=0.9,
            priority=Priority.MEDIUM,
            suggested_actions=["Try more complex problems in these areas"],
            categories=strong,
        )]

    def _weaknesses(self, accuracy: Dict[str, float]) -> List[Insight]:
        weak = [c for c, a in accuracy.items() if a < WEAKNESS_THRESHOLD]
        if not weak:
            return []
        return [Insight(
            insight_type=InsightType.WEAKNESS,
            title="Areas for Improvement",
            description=f"Room to grow in: {', '.join(weak)}",
            confidence=0.8,
            priority=Priority.HIGH,
            suggested_actions=[
                "Practice basic problems in these areas",
                "Use hints to understand the concepts",
                "Take breaks between attempts",
            ],
            categories=weak,
        )]

    def _patterns(self, sessions: Sequence[SessionRecord]) -> List[Insight]:
        best_time, confidence = best_time_of_day(sessions)
        if confidence <= PATTERN_MIN_CONFIDENCE:
            return []
        return [Insight(
            insight_type=InsightType.PATTERN,
            title="Best Time to Practice",
            description=f"Best performance during the {best_time.value}",
            confidence=confidence,
            priority=Priority.MEDIUM,
            suggested_actions=[f"Schedule sessions during the {best_time.value}"],
        )]

    def _recommendations(self, sessions: Sequence[SessionRecord]) -> List[Insight]:
        if average_session_length(sessions) <= LONG_SESSION_MINUTES:
            return []
        return [Insight(
            insight_type=InsightType.RECOMMENDATION,
            title="Optimize Session Length",
            description="Shorter sessions could improve concentration",
            confidence=0.7,
            priority=Priority.MEDIUM,
            suggested_actions=[
                "Try 15-20 minute sessions",
                "Take frequent breaks",
            ],
        )]
