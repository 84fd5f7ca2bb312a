import datetime
from unittest.mock import AsyncMock

import pytest

from adaptive_learning.config import AnalyticsConfig
from adaptive_learning.performance.analytics import PerformanceAnalytics
from adaptive_learning.performance.metrics import (
    ACHIEVEMENT_PROGRESS, CONTENT_VARIETY, SHORT_INTENSE_SESSIONS, PersonalizedMetricsCalculator
)
from adaptive_learning.performance.models import LearningStyle, TimeOfDay, TrendDirection
from adaptive_learning.tests.conftest import NOW, make_session


@pytest.fixture
def calculator():
    return PersonalizedMetricsCalculator()


class TestPersonalizedMetrics:

    def test_empty_history_defaults(self, calculator):
        metrics = calculator.calculate([])
        assert metrics.optimal_play_time == TimeOfDay.MORNING
        assert metrics.learning_style == LearningStyle.VISUAL
        assert metrics.burnout_risk == 0.0
        assert metrics.engagement_level == 0.0
        assert metrics.preferred_difficulty == "medium"

    def test_burnout_needs_seven_sessions(self, calculator):
        sessions = [make_session(i, solved=1, focus=0.1, minutes=60) for i in range(6)]
        assert calculator.burnout_risk(sessions) == 0.0

    def test_burnout_all_signals(self, calculator):
        sessions = [make_session(i, solved=9, focus=0.9, minutes=20) for i in range(7)]
        sessions += [make_session(7 + i, solved=5, focus=0.4, minutes=45) for i in range(7)]
        assert calculator.burnout_risk(sessions) == pytest.approx(1.0)

    def test_burnout_long_sessions_only(self, calculator):
        sessions = [make_session(i, minutes=45) for i in range(7)]
        assert calculator.burnout_risk(sessions) == pytest.approx(0.4)

    def test_engagement_level(self, calculator):
        sessions = [make_session(i, solved=8, focus=0.7) for i in range(14)]
        assert calculator.engagement_level(sessions) == pytest.approx((1.0 + 0.8 + 0.7) / 3)

    def test_engagement_scales_with_frequency(self, calculator):
        sessions = [make_session(i, solved=8, focus=0.7) for i in range(7)]
        assert calculator.engagement_level(sessions) == pytest.approx((0.5 + 0.8 + 0.7) / 3)

    @pytest.mark.parametrize("response_time,consistency,style", [
        (10, 0.9, LearningStyle.INTUITIVE),
        (30, 0.75, LearningStyle.METHODICAL),
        (20, 0.65, LearningStyle.ANALYTICAL),
        (20, 0.5, LearningStyle.VISUAL),
    ])
    def test_learning_style(self, calculator, response_time, consistency, style):
        sessions = [make_session(i, response_time=response_time, consistency=consistency) for i in range(3)]
        assert calculator.learning_style(sessions) == style

    def test_motivational_factors(self, calculator):
        sessions = [
            make_session(i, solved=9, minutes=10, categories=[f"Category {i}"])
            for i in range(4)
        ]
        assert calculator.motivational_factors(sessions) == [
            ACHIEVEMENT_PROGRESS, SHORT_INTENSE_SESSIONS, CONTENT_VARIETY
        ]

    def test_categories_ranked_and_capped(self, calculator):
        sessions = [
            make_session(0, solved=9, categories=["A"]),
            make_session(1, solved=10, categories=["B"]),
            make_session(2, solved=9, categories=["C"]),
            make_session(3, solved=10, categories=["D"]),
            make_session(4, solved=2, categories=["E"]),
            make_session(5, solved=5, categories=["F"]),
        ]
        metrics = calculator.calculate(sessions)
        assert metrics.strongest_categories[:2] == ["B", "D"]
        assert len(metrics.strongest_categories) == 3
        assert metrics.weakest_categories == ["E", "F"]

    def test_preferred_difficulty(self, calculator):
        sessions = [make_session(i, difficulties=["easy", "hard"]) for i in range(2)]
        sessions.append(make_session(2, difficulties=["hard"]))
        assert calculator.preferred_difficulty(sessions) == "hard"

    def test_optimal_play_time(self, calculator):
        afternoon = NOW.replace(hour=15)
        sessions = [make_session(i, solved=6) for i in range(3)]
        sessions += [make_session(3 + i, start=afternoon - datetime.timedelta(days=i), solved=9)
                     for i in range(3)]
        assert calculator.calculate(sessions).optimal_play_time == TimeOfDay.AFTERNOON


class TestPerformanceAnalytics:

    @pytest.fixture
    def session_store(self):
        store = AsyncMock()
        store.recent_sessions.return_value = [make_session(i, solved=4, categories=["Decimals"])
                                              for i in range(8)]
        return store

    @pytest.mark.asyncio
    async def test_windows_come_from_config(self, session_store):
        analytics = PerformanceAnalytics(session_store, analytics_config=AnalyticsConfig(
            insights_window_days=10, trends_window_days=20, metrics_window_days=40
        ))

        await analytics.generate_insights()
        session_store.recent_sessions.assert_awaited_with(10)
        await analytics.get_performance_trends()
        session_store.recent_sessions.assert_awaited_with(20)
        await analytics.get_personalized_metrics()
        session_store.recent_sessions.assert_awaited_with(40)

    @pytest.mark.asyncio
    async def test_default_windows(self, session_store):
        analytics = PerformanceAnalytics(session_store)
        assert (analytics.insights_window, analytics.trends_window, analytics.metrics_window) == (30, 90, 60)

        metrics = await analytics.get_personalized_metrics()
        assert metrics.weakest_categories == ["Decimals"]

    @pytest.mark.asyncio
    async def test_trends_over_stored_history(self, session_store):
        trends = await PerformanceAnalytics(session_store).get_performance_trends()
        assert all(t.direction == TrendDirection.STABLE for t in trends)
