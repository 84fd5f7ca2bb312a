"""
Shared fixtures for the adaptive learning test suite.
"""

import datetime
import random
from typing import List, Optional

import pytest

from adaptive_learning.config import AppConfig
from adaptive_learning.performance.models import MistakePattern, SessionRecord
from adaptive_learning.performance.tracker import ProblemResponse
from adaptive_learning.storage.memory import MemoryStore

NOW = datetime.datetime(2024, 3, 15, 10, 0, 0)


class FakeClock:
    """Deterministic clock that only moves when told to."""

    def __init__(self, start: datetime.datetime = NOW):
        self.now = start

    def __call__(self) -> datetime.datetime:
        return self.now

    def advance(self, **kwargs) -> datetime.datetime:
        self.now += datetime.timedelta(**kwargs)
        return self.now


def make_session(index: int = 0, *, start: Optional[datetime.datetime] = None,
                 minutes: float = 20.0, solved: int = 8, total: int = 10,
                 response_time: float = 12.0, focus: float = 0.7,
                 consistency: float = 0.7, categories: Optional[List[str]] = None,
                 mistakes: Optional[List[MistakePattern]] = None,
                 difficulties: Optional[List[str]] = None) -> SessionRecord:
    """Build a finalized session record with sensible defaults."""
    start = start or (NOW - datetime.timedelta(days=20) + datetime.timedelta(days=index))
    return SessionRecord(
        session_id=f"session_{index}",
        start_time=start,
        end_time=start + datetime.timedelta(minutes=minutes),
        problems_solved=solved,
        total_problems=total,
        average_response_time=response_time,
        fastest_response=max(1.0, response_time - 5),
        slowest_response=response_time + 5,
        accuracy_rate=solved / total if total else 0.0,
        difficulty_progression=list(difficulties or ["medium"]),
        categories_played=list(categories or ["Arithmetic"]),
        mistake_patterns=list(mistakes or []),
        focus_score=focus,
        consistency_score=consistency,
    )


def answer(correct: bool = True, response_time: float = 5.0, difficulty: str = "easy",
           category: str = "Arithmetic", operation: str = "addition", **kwargs) -> ProblemResponse:
    """Build a valid answer event."""
    return ProblemResponse(
        correct=correct,
        response_time=response_time,
        difficulty=difficulty,
        category=category,
        operation=operation,
        **kwargs
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def config():
    return AppConfig(generation={"random_seed": 42})
