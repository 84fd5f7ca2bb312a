"""
Performance Models

Data structures for finalized play sessions, recurring mistakes, learning
insights, trends and the personalized metrics derived from session history.
"""

import math
import enum
import datetime
from typing import Dict, List, Any, Optional
from dataclasses import dataclass, field

from adaptive_learning.common.enums import Priority
from adaptive_learning.common.serialization import datetime_to_iso, parse_datetime


class TrendDirection(enum.Enum):
    """Direction of a metric between the older and the recent window."""
    IMPROVING = "improving"
    STABLE = "stable"
    DECLINING = "declining"


class Significance(enum.Enum):
    """Magnitude tier of a trend change."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @classmethod
    def from_change(cls, change: float) -> 'Significance':
        """
        Classify the magnitude of a percentage change.

        Args:
            change: Percentage change (sign ignored)

        Returns:
            Significance tier
        """
        magnitude = abs(change)
        if magnitude < 10:
            return cls.LOW
        elif magnitude < 25:
            return cls.MEDIUM
        return cls.HIGH


class InsightType(enum.Enum):
    """Kinds of learning insight."""
    STRENGTH = "strength"
    WEAKNESS = "weakness"
    PATTERN = "pattern"
    RECOMMENDATION = "recommendation"


class TimeOfDay(enum.Enum):
    """Coarse buckets for session start hours."""
    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"

    @classmethod
    def from_hour(cls, hour: int) -> 'TimeOfDay':
        """Bucket a 0-23 hour."""
        if hour < 12:
            return cls.MORNING
        elif hour < 18:
            return cls.AFTERNOON
        return cls.EVENING


class LearningStyle(enum.Enum):
    """Learning style tags inferred from response patterns."""
    VISUAL = "visual"
    ANALYTICAL = "analytical"
    INTUITIVE = "intuitive"
    METHODICAL = "methodical"


@dataclass
class MistakePattern:
    """A recurring wrong answer for one (category, operation) pair within a session."""

    category: str
    operation: str
    frequency: int = 1
    average_time: float = 0.0
    last_occurrence: Optional[datetime.datetime] = None
    improvement_trend: TrendDirection = TrendDirection.STABLE

    def record(self, response_time: float, when: datetime.datetime) -> None:
        """
        Register another occurrence of this mistake.

        Args:
            response_time: Response time of the wrong answer in seconds
            when: Time of the wrong answer
        """
        self.frequency += 1
        self.average_time = (self.average_time + response_time) / 2
        self.last_occurrence = when

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "category": self.category,
            "operation": self.operation,
            "frequency": self.frequency,
            "average_time": self.average_time,
            "last_occurrence": datetime_to_iso(self.last_occurrence),
            "improvement_trend": self.improvement_trend.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'MistakePattern':
        """Create from dictionary."""
        return cls(
            category=data["category"],
            operation=data["operation"],
            frequency=data.get("frequency", 1),
            average_time=data.get("average_time", 0.0),
            last_occurrence=parse_datetime(data.get("last_occurrence")),
            improvement_trend=TrendDirection(
                data.get("improvement_trend", TrendDirection.STABLE.value)
            ),
        )


@dataclass
class SessionRecord:
    """
    Statistics for a single play session.

    The record is mutated only by the owning PerformanceTracker while the
    session is live and is treated as read-only once the session ends.
    """

    session_id: str
    start_time: datetime.datetime
    end_time: Optional[datetime.datetime] = None
    problems_solved: int = 0
    total_problems: int = 0
    average_response_time: float = 0.0
    fastest_response: float = math.inf
    slowest_response: float = 0.0
    accuracy_rate: float = 0.0
    difficulty_progression: List[str] = field(default_factory=list)
    categories_played: List[str] = field(default_factory=list)
    mistake_patterns: List[MistakePattern] = field(default_factory=list)
    learning_velocity: float = 0.0
    focus_score: float = 0.0
    consistency_score: float = 0.0
    hints_used: int = 0
    retries: int = 0

    @property
    def duration_minutes(self) -> float:
        """Session duration in minutes (0 while the session is live)."""
        if self.end_time is None:
            return 0.0
        return (self.end_time - self.start_time).total_seconds() / 60.0

    def find_mistake(self, category: str, operation: str) -> Optional[MistakePattern]:
        """Return the mistake pattern for a (category, operation) pair, if any."""
        for pattern in self.mistake_patterns:
            if pattern.category == category and pattern.operation == operation:
                return pattern
        return None

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert to dictionary for serialization.

        Timestamps become ISO-8601 strings; an unset fastest response
        (infinity) is stored as None since JSON cannot represent it.
        """
        return {
            "session_id": self.session_id,
            "start_time": datetime_to_iso(self.start_time),
            "end_time": datetime_to_iso(self.end_time),
            "problems_solved": self.problems_solved,
            "total_problems": self.total_problems,
            "average_response_time": self.average_response_time,
            "fastest_response": (
                self.fastest_response if math.isfinite(self.fastest_response) else None
            ),
            "slowest_response": self.slowest_response,
            "accuracy_rate": self.accuracy_rate,
            "difficulty_progression": list(self.difficulty_progression),
            "categories_played": list(self.categories_played),
            "mistake_patterns": [p.to_dict() for p in self.mistake_patterns],
            "learning_velocity": self.learning_velocity,
            "focus_score": self.focus_score,
            "consistency_score": self.consistency_score,
            "hints_used": self.hints_used,
            "retries": self.retries,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SessionRecord':
        """Create from dictionary, parsing timestamps explicitly."""
        fastest = data.get("fastest_response")
        return cls(
            session_id=data["session_id"],
            start_time=parse_datetime(data["start_time"]),
            end_time=parse_datetime(data.get("end_time")),
            problems_solved=data.get("problems_solved", 0),
            total_problems=data.get("total_problems", 0),
            average_response_time=data.get("average_response_time", 0.0),
            fastest_response=math.inf if fastest is None else fastest,
            slowest_response=data.get("slowest_response", 0.0),
            accuracy_rate=data.get("accuracy_rate", 0.0),
            difficulty_progression=list(data.get("difficulty_progression", [])),
            categories_played=list(data.get("categories_played", [])),
            mistake_patterns=[
                MistakePattern.from_dict(p) for p in data.get("mistake_patterns", [])
            ],
            learning_velocity=data.get("learning_velocity", 0.0),
            focus_score=data.get("focus_score", 0.0),
            consistency_score=data.get("consistency_score", 0.0),
            hints_used=data.get("hints_used", 0),
            retries=data.get("retries", 0),
        )


@dataclass
class Insight:
    """A learning insight with a confidence score and suggested actions."""

    insight_type: InsightType
    title: str
    description: str
    confidence: float
    priority: Priority = Priority.MEDIUM
    actionable: bool = True
    suggested_actions: List[str] = field(default_factory=list)
    categories: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "type": self.insight_type.value,
            "title": self.title,
            "description": self.description,
            "confidence": self.confidence,
            "priority": self.priority.value,
            "actionable": self.actionable,
            "suggested_actions": list(self.suggested_actions),
            "categories": list(self.categories),
        }


@dataclass
class PerformanceTrend:
    """Direction and magnitude of a metric between two session windows."""

    metric: str
    direction: TrendDirection = TrendDirection.STABLE
    change_percentage: float = 0.0
    significance: Significance = Significance.LOW
    timeframe: str = "weekly"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "metric": self.metric,
            "timeframe": self.timeframe,
            "direction": self.direction.value,
            "change_percentage": self.change_percentage,
            "significance": self.significance.value,
        }


@dataclass
class PersonalizedMetrics:
    """Per-user metrics recomputed from the session window on every request."""

    optimal_play_time: TimeOfDay = TimeOfDay.MORNING
    average_session_length: float = 0.0
    preferred_difficulty: str = "medium"
    strongest_categories: List[str] = field(default_factory=list)
    weakest_categories: List[str] = field(default_factory=list)
    learning_style: LearningStyle = LearningStyle.VISUAL
    motivational_factors: List[str] = field(default_factory=list)
    burnout_risk: float = 0.0
    engagement_level: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "optimal_play_time": self.optimal_play_time.value,
            "average_session_length": self.average_session_length,
            "preferred_difficulty": self.preferred_difficulty,
            "strongest_categories": list(self.strongest_categories),
            "weakest_categories": list(self.weakest_categories),
            "learning_style": self.learning_style.value,
            "motivational_factors": list(self.motivational_factors),
            "burnout_risk": self.burnout_risk,
            "engagement_level": self.engagement_level,
        }


@dataclass
class UserProgress:
    """Aggregate progress for one user across all finalized sessions."""

    user_id: str
    sessions_completed: int = 0
    problems_solved: int = 0
    problems_attempted: int = 0
    accuracy_rate: float = 0.0
    best_streak: int = 0
    last_session_date: Optional[datetime.datetime] = None
    created_at: Optional[datetime.datetime] = None
    updated_at: Optional[datetime.datetime] = None

    def apply_session(self, session: SessionRecord, best_streak: int = 0) -> None:
        """
        Fold a finalized session into the running totals.

        Args:
            session: Finalized session record
            best_streak: Longest streak observed during the session
        """
        self.sessions_completed += 1
        self.problems_solved += session.problems_solved
        self.problems_attempted += session.total_problems
        if self.problems_attempted > 0:
            self.accuracy_rate = self.problems_solved / self.problems_attempted
        self.best_streak = max(self.best_streak, best_streak)
        self.last_session_date = session.end_time or session.start_time

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "user_id": self.user_id,
            "sessions_completed": self.sessions_completed,
            "problems_solved": self.problems_solved,
            "problems_attempted": self.problems_attempted,
            "accuracy_rate": self.accuracy_rate,
            "best_streak": self.best_streak,
            "last_session_date": datetime_to_iso(self.last_session_date),
            "created_at": datetime_to_iso(self.created_at),
            "updated_at": datetime_to_iso(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'UserProgress':
        """Create from dictionary."""
        return cls(
            user_id=data["user_id"],
            sessions_completed=data.get("sessions_completed", 0),
            problems_solved=data.get("problems_solved", 0),
            problems_attempted=data.get("problems_attempted", 0),
            accuracy_rate=data.get("accuracy_rate", 0.0),
            best_streak=data.get("best_streak", 0),
            last_session_date=parse_datetime(data.get("last_session_date")),
            created_at=parse_datetime(data.get("created_at")),
            updated_at=parse_datetime(data.get("updated_at")),
        )
