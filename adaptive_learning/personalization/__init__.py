"""
Personalization

Per-user orchestration of tracking, analytics, age detection, adaptive
difficulty and problem generation, plus personalized recommendations.
"""

from adaptive_learning.personalization.recommendations import (
    Recommendation, RecommendationEngine, RecommendationType, ImplementationComplexity,
    default_recommendation
)
from adaptive_learning.personalization.orchestrator import (
    PersonalizationOrchestrator, PlanStep, ResponseFeedback, plan_session_sequence
)

__all__ = [
    'Recommendation', 'RecommendationEngine', 'RecommendationType', 'ImplementationComplexity',
    'default_recommendation', 'PersonalizationOrchestrator', 'PlanStep', 'ResponseFeedback',
    'plan_session_sequence',
]
