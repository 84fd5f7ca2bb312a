"""
Age Group Detection

Infers a player's age bracket from play behavior. The classifier itself is
a pure function of session history: it derives behavioral indicators,
scores the four brackets with a fixed weight table and reports the best
match with a confidence value. The detection service wraps it with history
loading and persistence.
"""

from typing import Dict, List, Sequence

from adaptive_learning.common.enums import AgeGroup
from adaptive_learning.common.logger import app_logger
from adaptive_learning.common.serialization import mean
from adaptive_learning.classification.models import (
    AgeDetectionResult, BehavioralIndicators, HelpSeeking, NavigationStyle, SessionLength
)
from adaptive_learning.performance.models import SessionRecord

logger = app_logger.getChild("classification.age_detection")

MIN_SESSIONS = 3
MAX_CONFIDENCE = 0.95
DEFAULT_CONFIDENCE = 0.5

# A mistake seen more often than this within a session counts as recurring
RECURRING_MISTAKE_FREQUENCY = 2

REASONING: Dict[AgeGroup, List[str]] = {
    AgeGroup.KIDS: [
        "Short sessions and explorative behavior",
        "Frequent use of help and hints",
        "Variable attention patterns",
    ],
    AgeGroup.TEENS: [
        "Fast response speed",
        "Preference for challenges",
        "Medium-length sessions",
    ],
    AgeGroup.ADULTS: [
        "Systematic and efficient approach",
        "Longer and more consistent sessions",
        "Moderate use of help",
    ],
    AgeGroup.SENIORS: [
        "Careful and reflective approach",
        "Unhurried response speed",
        "Preference for clear explanations",
    ],
}

DEFAULT_REASONING = ["Insufficient data for a precise detection"]


def default_detection() -> AgeDetectionResult:
    """Result returned when history is too short to classify."""
    return AgeDetectionResult(
        predicted_age_group=AgeGroup.ADULTS,
        confidence=DEFAULT_CONFIDENCE,
        reasoning=list(DEFAULT_REASONING),
        behavioral_indicators=BehavioralIndicators(),
    )


class AgeGroupClassifier:
    """
    Weighted heuristic classifier over behavioral indicators.

    Six dimensions each add fixed weights to two or three brackets:
    attention span, response speed, session length, navigation style,
    help seeking and recurring error categories.
    """

    def classify(self, sessions: Sequence[SessionRecord]) -> AgeDetectionResult:
        """
        Classify a player from session history.

        Args:
            sessions: Finalized sessions, oldest first

        Returns:
            Detection result; the fixed adults/0.5 default when fewer than
            three sessions are available
        """
        if len(sessions) < MIN_SESSIONS:
            return default_detection()

        indicators = self.extract_indicators(sessions)
        scores = self.score(indicators)

        ranked = sorted(scores.items(), key=lambda item: item[1], reverse=True)
        (best_group, best_score), (_, second_score) = ranked[0], ranked[1]
        total = best_score + second_score
        confidence = min(MAX_CONFIDENCE, best_score / total) if total > 0 else DEFAULT_CONFIDENCE

        summary = ", ".join(f"{group.value}={score:.2f}" for group, score in ranked)
        logger.debug(f"Age scores: {summary}")
        return AgeDetectionResult(
            predicted_age_group=best_group,
            confidence=confidence,
            reasoning=list(REASONING[best_group]),
            behavioral_indicators=indicators,
            scores={group.value: round(score, 4) for group, score in scores.items()},
        )

    def extract_indicators(self, sessions: Sequence[SessionRecord]) -> BehavioralIndicators:
        """
        Derive behavioral indicators from history.

        Args:
            sessions: Non-empty session history

        Returns:
            Indicators for scoring
        """
        mean_minutes = mean([s.duration_minutes for s in sessions])
        mean_problems = mean([s.total_problems for s in sessions])

        if mean_minutes < 15:
            navigation = NavigationStyle.DIRECT
        elif any(len(s.categories_played) > 3 for s in sessions):
            navigation = NavigationStyle.EXPLORATIVE
        else:
            navigation = NavigationStyle.SYSTEMATIC

        if mean_problems < 5:
            help_seeking = HelpSeeking.FREQUENT
        elif mean_problems < 15:
            help_seeking = HelpSeeking.MODERATE
        else:
            help_seeking = HelpSeeking.MINIMAL

        return BehavioralIndicators(
            attention_span=max(0.0, min(1.0, mean([s.focus_score for s in sessions]))),
            response_speed=mean([s.average_response_time for s in sessions]),
            error_patterns=self._recurring_error_categories(sessions),
            navigation_style=navigation,
            help_seeking_behavior=help_seeking,
            session_length=SessionLength.from_minutes(mean_minutes),
        )

    @staticmethod
    def _recurring_error_categories(sessions: Sequence[SessionRecord]) -> List[str]:
        categories: List[str] = []
        for session in sessions:
            for mistake in session.mistake_patterns:
                if mistake.frequency > RECURRING_MISTAKE_FREQUENCY and mistake.category not in categories:
                    categories.append(mistake.category)
        return categories

    @staticmethod
    def score(indicators: BehavioralIndicators) -> Dict[AgeGroup, float]:
        """
        Apply the fixed weight table.

        Args:
            indicators: Behavioral indicators

        Returns:
            Score per age group
        """
        scores = {group: 0.0 for group in AgeGroup}

        def add(**weights: float) -> None:
            for name, weight in weights.items():
                scores[AgeGroup(name)] += weight

        if indicators.attention_span < 0.3:
            add(kids=0.8, teens=0.3)
        elif indicators.attention_span < 0.6:
            add(kids=0.4, teens=0.7, adults=0.5)
        else:
            add(adults=0.8, seniors=0.6)

        if indicators.response_speed > 30:
            add(kids=0.6, seniors=0.7)
        elif indicators.response_speed > 15:
            add(teens=0.4, adults=0.6, seniors=0.3)
        else:
            add(teens=0.8, adults=0.7)

        if indicators.session_length == SessionLength.SHORT:
            add(kids=0.7, seniors=0.4)
        elif indicators.session_length == SessionLength.MEDIUM:
            add(teens=0.6, adults=0.8)
        else:
            add(adults=0.6, teens=0.3)

        if indicators.navigation_style == NavigationStyle.EXPLORATIVE:
            add(kids=0.8, teens=0.4)
        elif indicators.navigation_style == NavigationStyle.SYSTEMATIC:
            add(adults=0.7, seniors=0.6)
        else:
            add(teens=0.5, adults=0.5)

        if indicators.help_seeking_behavior == HelpSeeking.FREQUENT:
            add(kids=0.6, seniors=0.4)
        elif indicators.help_seeking_behavior == HelpSeeking.MINIMAL:
            add(teens=0.7, adults=0.5)

        recurring = len(indicators.error_patterns)
        if recurring >= 2:
            add(kids=0.5, seniors=0.3)
        elif recurring == 1:
            add(teens=0.3, adults=0.2)
        else:
            add(adults=0.4, teens=0.3)

        return scores


class AgeDetectionService:
    """Loads the detection window, classifies and persists the result."""

    def __init__(self, session_store, detection_repository,
                 classifier: AgeGroupClassifier = None, window_days: int = 30):
        """
        Initialize the service.

        Args:
            session_store: SessionStore for the user
            detection_repository: AgeDetectionRepository for the user
            classifier: Classifier to use
            window_days: History window in days
        """
        self.session_store = session_store
        self.detection_repository = detection_repository
        self.classifier = classifier or AgeGroupClassifier()
        self.window_days = window_days

    async def detect_age_group(self) -> AgeDetectionResult:
        """
        Classify the user from recent history and persist the detection.

        Returns:
            The new detection
        """
        sessions = await self.session_store.recent_sessions(self.window_days)
        result = self.classifier.classify(sessions)
        await self.detection_repository.save(result)

        logger.info(
            f"Age detection from {len(sessions)} sessions: "
            f"{result.predicted_age_group.value} ({result.confidence:.2f})"
        )
        return result

    async def load_previous(self) -> AgeDetectionResult:
        """Return the stored detection, or the default when none exists."""
        return await self.detection_repository.load() or default_detection()
