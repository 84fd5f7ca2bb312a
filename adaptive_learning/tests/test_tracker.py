import asyncio
import math
from unittest.mock import AsyncMock

import pytest

from adaptive_learning.common.exceptions import (
    NoActiveSessionError, SessionAlreadyActiveError, ValidationError
)
from adaptive_learning.performance.models import SessionRecord
from adaptive_learning.performance.tracker import PerformanceTracker, ProblemResponse
from adaptive_learning.tests.conftest import FakeClock, answer


@pytest.fixture
def tracker(clock):
    return PerformanceTracker(clock=clock)


class TestSessionLifecycle:
    """Start, record and end transitions."""

    def test_start_session_returns_id(self, tracker):
        session_id = tracker.start_session()
        assert session_id.startswith("session_")
        assert tracker.is_active
        assert tracker.current_session.session_id == session_id
        assert tracker.current_session.total_problems == 0

    def test_start_twice_raises(self, tracker):
        tracker.start_session()
        with pytest.raises(SessionAlreadyActiveError):
            tracker.start_session()

    def test_record_without_session_raises(self, tracker):
        with pytest.raises(NoActiveSessionError):
            tracker.record_response(answer())

    @pytest.mark.asyncio
    async def test_end_without_session_raises(self, tracker):
        with pytest.raises(NoActiveSessionError):
            await tracker.end_session()

    @pytest.mark.asyncio
    async def test_end_session_persists_and_clears(self, clock):
        store = AsyncMock()
        tracker = PerformanceTracker(session_store=store, clock=clock)
        tracker.start_session()
        tracker.record_response(answer())
        clock.advance(minutes=12)

        session = await tracker.end_session()

        assert session.end_time == clock.now
        assert session.duration_minutes == pytest.approx(12.0)
        assert not tracker.is_active
        store.save_session.assert_awaited_once_with(session)

    @pytest.mark.asyncio
    async def test_can_start_again_after_end(self, tracker):
        tracker.start_session()
        await tracker.end_session()
        tracker.start_session()
        assert tracker.is_active


class TestRecordResponse:
    """Rolling statistics of the live session."""

    def test_five_correct_answers(self, tracker):
        tracker.start_session()
        for _ in range(5):
            session = tracker.record_response(answer(correct=True, response_time=5))

        assert session.accuracy_rate == 1.0
        assert session.problems_solved == 5
        assert session.total_problems == 5
        assert session.average_response_time == pytest.approx(5.0)
        assert session.mistake_patterns == []

    def test_response_time_bounds(self, tracker):
        tracker.start_session()
        for t in [7.0, 3.0, 11.0, 4.5, 9.0]:
            session = tracker.record_response(answer(response_time=t))
            assert session.fastest_response <= session.average_response_time <= session.slowest_response

        assert session.fastest_response == 3.0
        assert session.slowest_response == 11.0
        assert session.average_response_time == pytest.approx(34.5 / 5)

    def test_accuracy_matches_counts(self, tracker):
        tracker.start_session()
        for correct in [True, False, True, True, False, False, True]:
            session = tracker.record_response(answer(correct=correct))
            assert 0.0 <= session.accuracy_rate <= 1.0
            assert session.accuracy_rate == session.problems_solved / session.total_problems

    def test_categories_and_difficulties_deduplicated(self, tracker):
        tracker.start_session()
        tracker.record_response(answer(category="Arithmetic", difficulty="easy"))
        tracker.record_response(answer(category="Decimals", difficulty="medium"))
        session = tracker.record_response(answer(category="Arithmetic", difficulty="easy"))

        assert session.categories_played == ["Arithmetic", "Decimals"]
        assert session.difficulty_progression == ["easy", "medium"]

    def test_mistake_patterns_accumulate(self, tracker):
        tracker.start_session()
        tracker.record_response(answer(correct=False, response_time=10, operation="subtraction"))
        session = tracker.record_response(answer(correct=False, response_time=20, operation="subtraction"))
        tracker.record_response(answer(correct=False, response_time=6, operation="addition"))

        assert len(session.mistake_patterns) == 2
        pattern = session.find_mistake("Arithmetic", "subtraction")
        assert pattern.frequency == 2
        assert pattern.average_time == pytest.approx(15.0)

    def test_hints_and_retries_summed(self, tracker):
        tracker.start_session()
        tracker.record_response(answer(hints_used=2, retries=1))
        session = tracker.record_response(answer(hints_used=1))
        assert session.hints_used == 3
        assert session.retries == 1

    def test_focus_score_defaults_until_three_answers(self, tracker):
        tracker.start_session()
        session = tracker.record_response(answer(response_time=2))
        session = tracker.record_response(answer(response_time=30))
        assert session.focus_score == 1.0

        session = tracker.record_response(answer(response_time=5))
        assert 0.0 <= session.focus_score < 1.0

    def test_steady_session_scores(self, tracker):
        tracker.start_session()
        for _ in range(10):
            session = tracker.record_response(answer(response_time=6))

        assert session.focus_score == 1.0
        assert session.consistency_score == 1.0
        assert session.learning_velocity == 0.0

    def test_improving_session_has_velocity(self, tracker):
        tracker.start_session()
        for correct in [False, False, False, True, True, True]:
            session = tracker.record_response(answer(correct=correct))
        assert session.learning_velocity == pytest.approx(5.0)

    def test_clustered_results_lower_consistency(self, tracker):
        tracker.start_session()
        for correct in [True] * 5 + [False] * 5:
            session = tracker.record_response(answer(correct=correct))
        assert session.consistency_score < 1.0


class TestValidation:
    """Malformed events are rejected before touching the session."""

    @pytest.mark.parametrize("event", [
        answer(response_time=0),
        answer(response_time=-3),
        answer(response_time=math.inf),
        answer(difficulty="impossible"),
        answer(category=""),
        answer(operation=""),
        answer(hints_used=-1),
        answer(retries=-2),
    ])
    def test_invalid_event_rejected(self, tracker, event):
        tracker.start_session()
        with pytest.raises(ValidationError):
            tracker.record_response(event)
        assert tracker.current_session.total_problems == 0

    def test_validation_error_names_fields(self):
        with pytest.raises(ValidationError) as exc_info:
            ProblemResponse(correct=True, response_time=0, difficulty="x",
                            category="c", operation="o").validate()
        assert set(exc_info.value.errors) == {"response_time", "difficulty"}


def test_session_record_round_trip():
    tracker = PerformanceTracker(clock=FakeClock())
    tracker.start_session()
    tracker.record_response(answer(correct=False, response_time=8, hints_used=1))
    tracker.record_response(answer(correct=True, response_time=4))
    session = asyncio.run(tracker.end_session())

    restored = SessionRecord.from_dict(session.to_dict())

    assert restored == session
    assert restored.start_time == session.start_time
    assert restored.mistake_patterns[0].last_occurrence == session.mistake_patterns[0].last_occurrence


def test_empty_session_round_trip_keeps_infinite_fastest():
    tracker = PerformanceTracker(clock=FakeClock())
    tracker.start_session()
    session = asyncio.run(tracker.end_session())

    data = session.to_dict()
    assert data["fastest_response"] is None
    assert SessionRecord.from_dict(data).fastest_response == math.inf
