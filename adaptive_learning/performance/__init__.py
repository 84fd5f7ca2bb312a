"""
Performance Tracking

Live session tracking plus the history analytics built on finalized
sessions: trends, insights and personalized metrics.
"""

from adaptive_learning.performance.models import (
    SessionRecord, MistakePattern, Insight, InsightType, PerformanceTrend,
    PersonalizedMetrics, TrendDirection, Significance, TimeOfDay, LearningStyle,
    UserProgress
)
from adaptive_learning.performance.tracker import PerformanceTracker, ProblemResponse
from adaptive_learning.performance.trends import TrendAnalyzer
from adaptive_learning.performance.insights import InsightGenerator
from adaptive_learning.performance.metrics import PersonalizedMetricsCalculator
from adaptive_learning.performance.analytics import PerformanceAnalytics

__all__ = [
    'SessionRecord', 'MistakePattern', 'Insight', 'InsightType', 'PerformanceTrend',
    'PersonalizedMetrics', 'TrendDirection', 'Significance', 'TimeOfDay', 'LearningStyle',
    'UserProgress',
    'PerformanceTracker', 'ProblemResponse',
    'TrendAnalyzer', 'InsightGenerator', 'PersonalizedMetricsCalculator',
    'PerformanceAnalytics',
]
