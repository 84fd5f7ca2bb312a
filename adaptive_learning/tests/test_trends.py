import pytest

from adaptive_learning.performance.models import Significance, TrendDirection
from adaptive_learning.performance.trends import TrendAnalyzer
from adaptive_learning.tests.conftest import make_session


@pytest.fixture
def analyzer():
    return TrendAnalyzer()


def history(older, recent):
    """Seven older sessions followed by seven recent ones, by problems solved out of ten."""
    sessions = [make_session(i, solved=older) for i in range(7)]
    sessions += [make_session(7 + i, solved=recent) for i in range(7)]
    return sessions


class TestComputeTrend:

    def test_improving_accuracy(self, analyzer):
        trend = analyzer.compute_trend(history(6, 9), "accuracy_rate")
        assert trend.direction == TrendDirection.IMPROVING
        assert trend.change_percentage == pytest.approx(50.0)
        assert trend.significance == Significance.HIGH

    def test_declining_accuracy_reports_magnitude(self, analyzer):
        trend = analyzer.compute_trend(history(9, 6), "accuracy_rate")
        assert trend.direction == TrendDirection.DECLINING
        assert trend.change_percentage == pytest.approx(100 / 3)
        assert trend.significance == Significance.HIGH

    def test_small_change_is_stable(self, analyzer):
        sessions = [make_session(i, focus=0.70) for i in range(7)]
        sessions += [make_session(7 + i, focus=0.72) for i in range(7)]
        trend = analyzer.compute_trend(sessions, "focus_score")
        assert trend.direction == TrendDirection.STABLE
        assert trend.significance == Significance.LOW

    def test_medium_significance(self, analyzer):
        trend = analyzer.compute_trend(history(8, 9), "accuracy_rate")
        assert trend.direction == TrendDirection.IMPROVING
        assert trend.change_percentage == pytest.approx(12.5)
        assert trend.significance == Significance.MEDIUM

    def test_inverted_metric(self, analyzer):
        sessions = [make_session(i, response_time=20) for i in range(7)]
        sessions += [make_session(7 + i, response_time=10) for i in range(7)]
        trend = analyzer.compute_trend(sessions, "average_response_time", inverted=True)
        assert trend.direction == TrendDirection.IMPROVING
        assert trend.change_percentage == pytest.approx(50.0)

    @pytest.mark.parametrize("count", [0, 1])
    def test_too_few_sessions_is_neutral(self, analyzer, count):
        trend = analyzer.compute_trend([make_session(i) for i in range(count)], "accuracy_rate")
        assert trend.direction == TrendDirection.STABLE
        assert trend.change_percentage == 0.0

    def test_no_older_window_is_neutral(self, analyzer):
        trend = analyzer.compute_trend([make_session(i) for i in range(7)], "accuracy_rate")
        assert trend.direction == TrendDirection.STABLE

    def test_zero_older_average_is_neutral(self, analyzer):
        trend = analyzer.compute_trend(history(0, 5), "accuracy_rate")
        assert trend.direction == TrendDirection.STABLE
        assert trend.change_percentage == 0.0

    def test_only_last_two_windows_count(self, analyzer):
        # A very old bad streak must not affect the comparison
        sessions = [make_session(i, solved=1) for i in range(10)]
        sessions += [make_session(10 + i, solved=8) for i in range(14)]
        trend = analyzer.compute_trend(sessions, "accuracy_rate")
        assert trend.direction == TrendDirection.STABLE


def test_weekly_trends_labels(analyzer):
    trends = analyzer.weekly_trends(history(6, 9))
    assert [t.metric for t in trends] == ["accuracy", "speed", "consistency"]
    assert trends[0].direction == TrendDirection.IMPROVING
    assert trends[1].direction == TrendDirection.STABLE
    assert trends[0].to_dict()["timeframe"] == "weekly"
