"""
Trend Analyzer

Compares the most recent sessions against the ones before them to decide
whether a metric is improving, stable or declining.
"""

from typing import List, Sequence

from adaptive_learning.common.logger import app_logger
from adaptive_learning.common.serialization import mean
from adaptive_learning.performance.models import (
    PerformanceTrend, SessionRecord, Significance, TrendDirection
)

logger = app_logger.getChild("performance.trends")

# Sessions per comparison window
WINDOW_SIZE = 7

# Below this absolute change (in percent) a metric counts as stable
STABLE_THRESHOLD = 5.0


class TrendAnalyzer:
    """Computes directional trends over session history."""

    def __init__(self, window_size: int = WINDOW_SIZE):
        self.window_size = window_size

    def compute_trend(self, sessions: Sequence[SessionRecord], metric: str,
                      inverted: bool = False) -> PerformanceTrend:
        """
        Compute the trend of a numeric session attribute.

        The last ``2 * window_size`` sessions are split into a recent window
        (the last ``window_size``) and an older window (the ones before).
        The reported change percentage is a magnitude; the direction carries
        the sign. With ``inverted`` a decrease counts as improvement, which
        is what response times need.

        Args:
            sessions: Sessions ordered oldest first
            metric: Name of a numeric SessionRecord attribute
            inverted: Whether lower values are better

        Returns:
            The trend for the metric
        """
        if len(sessions) < 2:
            return PerformanceTrend(metric=metric)

        recent = sessions[-self.window_size:]
        older = sessions[-2 * self.window_size:-self.window_size]

        older_avg = mean([getattr(s, metric) for s in older])
        if not older or older_avg == 0:
            return PerformanceTrend(metric=metric)

        recent_avg = mean([getattr(s, metric) for s in recent])
        change = (recent_avg - older_avg) / older_avg * 100
        if inverted:
            change = -change

        if abs(change) < STABLE_THRESHOLD:
            direction = TrendDirection.STABLE
        elif change > 0:
            direction = TrendDirection.IMPROVING
        else:
            direction = TrendDirection.DECLINING

        return PerformanceTrend(
            metric=metric,
            direction=direction,
            change_percentage=abs(change),
            significance=Significance.from_change(change),
        )

    def weekly_trends(self, sessions: Sequence[SessionRecord]) -> List[PerformanceTrend]:
        """
        Trends reported to players: accuracy, response speed and consistency.

        Args:
            sessions: Sessions ordered oldest first

        Returns:
            One trend per reported metric
        """
        trends = [
            self._labelled("accuracy", self.compute_trend(sessions, "accuracy_rate")),
            self._labelled("speed", self.compute_trend(sessions, "average_response_time", inverted=True)),
            self._labelled("consistency", self.compute_trend(sessions, "consistency_score")),
        ]
        logger.debug(f"Computed {len(trends)} trends over {len(sessions)} sessions")
        return trends

    @staticmethod
    def _labelled(label: str, trend: PerformanceTrend) -> PerformanceTrend:
        trend.metric = label
        return trend
