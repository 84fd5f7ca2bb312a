"""
Session Aggregates

Small statistics over session history shared by the insight generator,
the metrics calculator and the age classifier.
"""

from collections import defaultdict
from typing import Dict, List, Sequence, Tuple

from adaptive_learning.common.serialization import mean
from adaptive_learning.performance.models import SessionRecord, TimeOfDay


def category_accuracy(sessions: Sequence[SessionRecord]) -> Dict[str, float]:
    """
    Accuracy per category.

    A session's full solved/attempted totals are attributed to every
    category played in it.

    Args:
        sessions: Session history

    Returns:
        Mapping of category to accuracy, in first-seen order
    """
    totals: Dict[str, List[int]] = {}
    for session in sessions:
        for category in session.categories_played:
            stats = totals.setdefault(category, [0, 0])
            stats[0] += session.problems_solved
            stats[1] += session.total_problems

    return {
        category: (correct / total if total > 0 else 0.0)
        for category, (correct, total) in totals.items()
    }


def best_time_of_day(sessions: Sequence[SessionRecord]) -> Tuple[TimeOfDay, float]:
    """
    Find the time-of-day bucket with the best mean accuracy.

    Args:
        sessions: Session history

    Returns:
        (bucket, confidence) where confidence is the bucket's mean accuracy
        capped at 0.9; (morning, 0.0) for an empty history
    """
    by_bucket: Dict[TimeOfDay, List[float]] = defaultdict(list)
    for session in sessions:
        by_bucket[TimeOfDay.from_hour(session.start_time.hour)].append(session.accuracy_rate)

    best_time = TimeOfDay.MORNING
    best_accuracy = 0.0
    for bucket in TimeOfDay:
        if bucket not in by_bucket:
            continue
        accuracy = mean(by_bucket[bucket])
        if accuracy > best_accuracy:
            best_accuracy = accuracy
            best_time = bucket

    return best_time, min(best_accuracy, 0.9)


def average_session_length(sessions: Sequence[SessionRecord]) -> float:
    """Mean session duration in minutes (0 for an empty history)."""
    return mean([s.duration_minutes for s in sessions])
