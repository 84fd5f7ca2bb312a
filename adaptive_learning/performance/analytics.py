"""
Performance Analytics

Facade that loads the right history window from the session store and
answers the insight, trend and personalized-metric queries.
"""

from typing import List, Optional

from adaptive_learning.common.enums import AgeGroup
from adaptive_learning.common.logger import app_logger, log_execution_time
from adaptive_learning.performance.insights import InsightGenerator
from adaptive_learning.performance.metrics import PersonalizedMetricsCalculator
from adaptive_learning.performance.models import Insight, PerformanceTrend, PersonalizedMetrics
from adaptive_learning.performance.trends import TrendAnalyzer

logger = app_logger.getChild("performance.analytics")


class PerformanceAnalytics:
    """Answers history queries for one user."""

    def __init__(self, session_store, trend_analyzer: Optional[TrendAnalyzer] = None,
                 insight_generator: Optional[InsightGenerator] = None,
                 metrics_calculator: Optional[PersonalizedMetricsCalculator] = None,
                 analytics_config=None):
        """
        Initialize the analytics facade.

        Args:
            session_store: SessionStore for the user
            trend_analyzer: Trend analyzer
            insight_generator: Insight generator
            metrics_calculator: Personalized metrics calculator
            analytics_config: AnalyticsConfig with the history windows
        """
        self.session_store = session_store
        self.trend_analyzer = trend_analyzer or TrendAnalyzer()
        self.insight_generator = insight_generator or InsightGenerator()
        self.metrics_calculator = metrics_calculator or PersonalizedMetricsCalculator(self.trend_analyzer)

        self.insights_window = getattr(analytics_config, "insights_window_days", 30)
        self.trends_window = getattr(analytics_config, "trends_window_days", 90)
        self.metrics_window = getattr(analytics_config, "metrics_window_days", 60)

    @log_execution_time(logger)
    async def generate_insights(self, age_group: Optional[AgeGroup] = None) -> List[Insight]:
        sessions = await self.session_store.recent_sessions(self.insights_window)
        return self.insight_generator.generate(sessions, age_group)

    @log_execution_time(logger)
    async def get_performance_trends(self) -> List[PerformanceTrend]:
        sessions = await self.session_store.recent_sessions(self.trends_window)
        return self.trend_analyzer.weekly_trends(sessions)

    @log_execution_time(logger)
    async def get_personalized_metrics(self) -> PersonalizedMetrics:
        sessions = await self.session_store.recent_sessions(self.metrics_window)
        return self.metrics_calculator.calculate(sessions)
