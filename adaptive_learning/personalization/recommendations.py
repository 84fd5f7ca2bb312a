"""
Personalized Recommendations

Turns personalized metrics and the detected age group into a short,
prioritized list of recommendations, skipping the ones the user already
implemented.
"""

import enum
from typing import Any, Dict, List
from dataclasses import dataclass

from adaptive_learning.common.enums import AgeGroup, Priority
from adaptive_learning.common.logger import app_logger, log_execution_time
from adaptive_learning.performance.models import PersonalizedMetrics, TimeOfDay

# Module logger
logger = app_logger.getChild("personalization.recommendations")

MAX_RECOMMENDATIONS = 8
MAX_SUGGESTED_ACTIONS = 3
BURNOUT_THRESHOLD = 0.6
LOW_ENGAGEMENT_THRESHOLD = 0.5


class RecommendationType(enum.Enum):
    """Area a recommendation applies to."""
    DIFFICULTY = "difficulty"
    TIMING = "timing"
    CONTENT = "content"
    UI = "ui"
    MOTIVATION = "motivation"


class ImplementationComplexity(enum.Enum):
    """Effort needed to act on a recommendation."""
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


@dataclass
class Recommendation:
    """A single personalized recommendation."""

    recommendation_id: str
    recommendation_type: RecommendationType
    title: str
    description: str
    actionable: str
    expected_impact: str
    priority: Priority
    age_group: AgeGroup
    implementation_complexity: ImplementationComplexity = ImplementationComplexity.EASY

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.recommendation_id,
            "type": self.recommendation_type.value,
            "title": self.title,
            "description": self.description,
            "actionable": self.actionable,
            "expected_impact": self.expected_impact,
            "priority": self.priority.value,
            "age_group": self.age_group.value,
            "implementation_complexity": self.implementation_complexity.value,
        }


ENGAGEMENT_FOCUS = {
    AgeGroup.KIDS: "more playful and visual elements",
    AgeGroup.TEENS: "competitive challenges and achievements",
    AgeGroup.ADULTS: "practical applications and efficiency",
    AgeGroup.SENIORS: "clear progress and recognition",
}

OPTIMAL_TIMES = {
    AgeGroup.KIDS: "in the morning or after a snack",
    AgeGroup.TEENS: "in the afternoon or evening",
    AgeGroup.ADULTS: "during work breaks",
    AgeGroup.SENIORS: "in the morning when you are most rested",
}

# title, strategy, implementation
ENGAGEMENT_STRATEGIES = {
    AgeGroup.KIDS: (
        "Fun Math Adventures",
        "stories, characters and visual rewards",
        "Turn on story mode with the mascot",
    ),
    AgeGroup.TEENS: (
        "Challenges and Competition",
        "achievements, leaderboards and challenges with friends",
        "Enable competitive mode and achievements",
    ),
    AgeGroup.ADULTS: (
        "Efficiency and Practical Use",
        "real-world problems and measurable progress",
        "Focus on practical applications of math",
    ),
    AgeGroup.SENIORS: (
        "Reflective and Careful Learning",
        "detailed explanations and respected pace",
        "Extended tutorial mode with in-depth explanations",
    ),
}


def _age_specific(age_group: AgeGroup) -> Recommendation:
    if age_group == AgeGroup.KIDS:
        return Recommendation(
            recommendation_id="kids_special",
            recommendation_type=RecommendationType.UI,
            title="Extra Friendly Interface for Kids",
            description="Bigger buttons, bright colors and fun animations",
            actionable="Turn on kids mode in settings",
            expected_impact="50% fewer navigation errors",
            priority=Priority.HIGH,
            age_group=age_group,
            implementation_complexity=ImplementationComplexity.EASY,
        )
    if age_group == AgeGroup.TEENS:
        return Recommendation(
            recommendation_id="teens_special",
            recommendation_type=RecommendationType.MOTIVATION,
            title="Social Achievement System",
            description="Share progress and compete with friends",
            actionable="Connect a social account and create a public profile",
            expected_impact="60% more social engagement",
            priority=Priority.MEDIUM,
            age_group=age_group,
            implementation_complexity=ImplementationComplexity.HARD,
        )
    if age_group == AgeGroup.ADULTS:
        return Recommendation(
            recommendation_id="adults_special",
            recommendation_type=RecommendationType.CONTENT,
            title="Professional Math Applications",
            description="Problems about finance, business and daily life",
            actionable="Turn on the applied math modules",
            expected_impact="More relevance and 40% better retention",
            priority=Priority.MEDIUM,
            age_group=age_group,
            implementation_complexity=ImplementationComplexity.MEDIUM,
        )
    return Recommendation(
        recommendation_id="seniors_special",
        recommendation_type=RecommendationType.UI,
        title="Improved Accessibility",
        description="Larger text, higher contrast and simpler navigation",
        actionable="Turn on full accessibility mode",
        expected_impact="70% better usability and comfort",
        priority=Priority.HIGH,
        age_group=age_group,
        implementation_complexity=ImplementationComplexity.EASY,
    )


def default_recommendation(age_group: AgeGroup) -> Recommendation:
    """Fallback returned when recommendations cannot be computed."""
    return Recommendation(
        recommendation_id="default_rec",
        recommendation_type=RecommendationType.CONTENT,
        title="Start with the Basics",
        description="Start with basic problems to establish a baseline",
        actionable="Complete at least 5 problems to receive personalized recommendations",
        expected_impact="A baseline for future recommendations",
        priority=Priority.MEDIUM,
        age_group=age_group,
        implementation_complexity=ImplementationComplexity.EASY,
    )


class RecommendationEngine:
    """
    Builds recommendations for one user.

    Args:
        analytics: PerformanceAnalytics for the user
        ledger: RecommendationLedger with implemented recommendation ids
    """

    def __init__(self, analytics, ledger):
        self.analytics = analytics
        self.ledger = ledger

    @log_execution_time(logger)
    async def generate(self, age_group: AgeGroup) -> List[Recommendation]:
        """
        Generate recommendations for an age group.

        Args:
            age_group: Age group to tailor recommendations to

        Returns:
            Up to eight recommendations, high priority first; the default
            recommendation alone if anything fails
        """
        try:
            metrics = await self.analytics.get_personalized_metrics()
            implemented = set(await self.ledger.implemented_ids())

            candidates = self.build(metrics, age_group)
            pending = [r for r in candidates if r.recommendation_id not in implemented]
            pending.sort(key=lambda r: r.priority.weight, reverse=True)
            result = pending[:MAX_RECOMMENDATIONS]
        except Exception as e:
            logger.error(f"Error generating recommendations for {age_group.value}: {e}")
            return [default_recommendation(age_group)]

        logger.info(f"{len(result)} recommendations for {age_group.value}")
        return result

    def build(self, metrics: PersonalizedMetrics, age_group: AgeGroup) -> List[Recommendation]:
        """All candidate recommendations, unfiltered and unsorted."""
        recommendations: List[Recommendation] = []
        recommendations.extend(self._performance(metrics, age_group))
        recommendations.extend(self._timing(metrics, age_group))
        recommendations.append(self._engagement(age_group))
        recommendations.append(_age_specific(age_group))
        return recommendations

    async def mark_implemented(self, recommendation_id: str) -> bool:
        """Record a recommendation as implemented so it is not offered again."""
        stored = await self.ledger.mark_implemented(recommendation_id)
        logger.info(f"Recommendation marked as implemented: {recommendation_id}")
        return stored

    @staticmethod
    def suggested_actions(recommendations: List[Recommendation]) -> List[Recommendation]:
        """The first three high priority recommendations."""
        high = [r for r in recommendations if r.priority == Priority.HIGH]
        return high[:MAX_SUGGESTED_ACTIONS]

    @staticmethod
    def _performance(metrics: PersonalizedMetrics, age_group: AgeGroup) -> List[Recommendation]:
        recommendations = []
        if metrics.burnout_risk > BURNOUT_THRESHOLD:
            recommendations.append(Recommendation(
                recommendation_id="reduce_burnout",
                recommendation_type=RecommendationType.TIMING,
                title="Prevent Mental Fatigue",
                description=(
                    f"We detected signs of fatigue. For {age_group.value}, "
                    f"we recommend shorter sessions and frequent breaks."
                ),
                actionable="Cut sessions to 15 minutes with 5-minute breaks",
                expected_impact="30% better retention and motivation",
                priority=Priority.HIGH,
                age_group=age_group,
                implementation_complexity=ImplementationComplexity.EASY,
            ))

        if metrics.engagement_level < LOW_ENGAGEMENT_THRESHOLD:
            recommendations.append(Recommendation(
                recommendation_id="boost_engagement",
                recommendation_type=RecommendationType.MOTIVATION,
                title="Revive Motivation",
                description=f"Your engagement is low. We will add {ENGAGEMENT_FOCUS[age_group]}.",
                actionable="Turn on the game mode tailored to your age",
                expected_impact="40% more practice time",
                priority=Priority.HIGH,
                age_group=age_group,
                implementation_complexity=ImplementationComplexity.MEDIUM,
            ))
        return recommendations

    @staticmethod
    def _timing(metrics: PersonalizedMetrics, age_group: AgeGroup) -> List[Recommendation]:
        if metrics.optimal_play_time == TimeOfDay.MORNING:
            return []
        best_time = OPTIMAL_TIMES[age_group]
        return [Recommendation(
            recommendation_id="optimize_timing",
            recommendation_type=RecommendationType.TIMING,
            title="Optimize Study Schedule",
            description=f"For your age group ({age_group.value}), the best time is {best_time}.",
            actionable=f"Schedule reminders to practice {best_time}",
            expected_impact="25% better performance and retention",
            priority=Priority.MEDIUM,
            age_group=age_group,
            implementation_complexity=ImplementationComplexity.EASY,
        )]

    @staticmethod
    def _engagement(age_group: AgeGroup) -> Recommendation:
        title, strategy, implementation = ENGAGEMENT_STRATEGIES[age_group]
        return Recommendation(
            recommendation_id="age_specific_engagement",
            recommendation_type=RecommendationType.CONTENT,
            title=title,
            description=f"Optimized for {age_group.value}: {strategy}",
            actionable=implementation,
            expected_impact="35% more usage time and satisfaction",
            priority=Priority.MEDIUM,
            age_group=age_group,
            implementation_complexity=ImplementationComplexity.MEDIUM,
        )
