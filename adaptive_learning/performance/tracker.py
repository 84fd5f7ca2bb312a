"""
Performance Tracker

Owns the single live play session of one user: ingests per-problem response
events, keeps rolling statistics up to date and hands the finalized record
to the session store when the session ends.
"""

import math
import uuid
import datetime
from typing import Callable, List, Optional
from dataclasses import dataclass

from adaptive_learning.common.enums import Difficulty
from adaptive_learning.common.logger import app_logger
from adaptive_learning.common.exceptions import (
    NoActiveSessionError, SessionAlreadyActiveError, ValidationError
)
from adaptive_learning.performance.models import MistakePattern, SessionRecord

# Module logger
logger = app_logger.getChild("performance.tracker")

# Answers per window in the consistency calculation
CONSISTENCY_WINDOW = 5


@dataclass(frozen=True)
class ProblemResponse:
    """An inbound answer event."""

    correct: bool
    response_time: float
    difficulty: str
    category: str
    operation: str
    hints_used: int = 0
    retries: int = 0

    def validate(self) -> None:
        """
        Check the event before it touches any session state.

        Raises:
            ValidationError: If any field is out of range
        """
        errors = {}
        if not isinstance(self.response_time, (int, float)) or not self.response_time > 0 \
                or not math.isfinite(self.response_time):
            errors["response_time"] = "must be a positive number of seconds"
        if self.difficulty not in {d.value for d in Difficulty}:
            errors["difficulty"] = f"unknown difficulty '{self.difficulty}'"
        if not self.category:
            errors["category"] = "must not be empty"
        if not self.operation:
            errors["operation"] = "must not be empty"
        if self.hints_used < 0:
            errors["hints_used"] = "must not be negative"
        if self.retries < 0:
            errors["retries"] = "must not be negative"

        if errors:
            raise ValidationError("Invalid problem response", errors)


def new_session_id(now: datetime.datetime) -> str:
    """Build a session id from a timestamp and a random suffix."""
    return f"session_{int(now.timestamp() * 1000)}_{uuid.uuid4().hex[:9]}"


class PerformanceTracker:
    """
    Tracks the live session of a single user.

    At most one session is live at a time. The live record is mutated only
    through start_session(), record_response() and end_session().
    """

    def __init__(self, session_store=None,
                 clock: Optional[Callable[[], datetime.datetime]] = None):
        """
        Initialize the tracker.

        Args:
            session_store: Repository that receives finalized sessions
                (anything with an async ``save_session(record)``)
            clock: Callable returning the current time
        """
        self.session_store = session_store
        self.clock = clock or datetime.datetime.now
        self._session: Optional[SessionRecord] = None
        # Per-answer outcomes of the live session, in order
        self._results: List[bool] = []

    @property
    def current_session(self) -> Optional[SessionRecord]:
        """The live session record (read-only for callers), or None."""
        return self._session

    @property
    def is_active(self) -> bool:
        return self._session is not None

    def start_session(self) -> str:
        """
        Open a new live session.

        Returns:
            The new session id

        Raises:
            SessionAlreadyActiveError: If a session is already live
        """
        if self._session is not None:
            raise SessionAlreadyActiveError(self._session.session_id)

        now = self.clock()
        self._session = SessionRecord(session_id=new_session_id(now), start_time=now)
        self._results = []

        logger.info(f"Started session {self._session.session_id}")
        return self._session.session_id

    def record_response(self, response: ProblemResponse) -> SessionRecord:
        """
        Fold one answer into the live session.

        Args:
            response: The answer event

        Returns:
            The updated live session

        Raises:
            NoActiveSessionError: If no session is live
            ValidationError: If the event is malformed
        """
        if self._session is None:
            raise NoActiveSessionError("record_response")
        response.validate()

        session = self._session
        session.total_problems += 1
        if response.correct:
            session.problems_solved += 1
        self._results.append(response.correct)

        n = session.total_problems
        session.fastest_response = min(session.fastest_response, response.response_time)
        session.slowest_response = max(session.slowest_response, response.response_time)
        session.average_response_time = (
            (session.average_response_time * (n - 1) + response.response_time) / n
        )
        session.accuracy_rate = session.problems_solved / n
        session.hints_used += response.hints_used
        session.retries += response.retries

        if response.difficulty not in session.difficulty_progression:
            session.difficulty_progression.append(response.difficulty)
        if response.category not in session.categories_played:
            session.categories_played.append(response.category)

        if not response.correct:
            self._record_mistake(response)

        session.learning_velocity = self._learning_velocity()
        session.focus_score = self._focus_score()
        session.consistency_score = self._consistency_score()

        logger.debug(
            f"Session {session.session_id}: {session.problems_solved}/{n} correct, "
            f"avg {session.average_response_time:.1f}s"
        )
        return session

    async def end_session(self) -> SessionRecord:
        """
        Finalize the live session and hand it to the session store.

        A failed write is logged by the store and does not prevent the
        session from being finalized.

        Returns:
            The finalized session

        Raises:
            NoActiveSessionError: If no session is live
        """
        if self._session is None:
            raise NoActiveSessionError("end_session")

        session = self._session
        session.end_time = self.clock()
        self._session = None
        self._results = []

        if self.session_store is not None:
            await self.session_store.save_session(session)

        logger.info(
            f"Ended session {session.session_id}: {session.total_problems} problems, "
            f"accuracy {session.accuracy_rate:.2f}"
        )
        return session

    def _record_mistake(self, response: ProblemResponse) -> None:
        now = self.clock()
        pattern = self._session.find_mistake(response.category, response.operation)
        if pattern is not None:
            pattern.record(response.response_time, now)
        else:
            self._session.mistake_patterns.append(MistakePattern(
                category=response.category,
                operation=response.operation,
                frequency=1,
                average_time=response.response_time,
                last_occurrence=now,
            ))

    def _learning_velocity(self) -> float:
        """Improvement of second-half accuracy over overall accuracy, scaled by 10."""
        n = len(self._results)
        if n < 3:
            return 0.0

        second_half = self._results[n // 2:]
        recent_accuracy = sum(second_half) / len(second_half)
        return max(0.0, (recent_accuracy - self._session.accuracy_rate) * 10)

    def _focus_score(self) -> float:
        """1 minus a third of the normalized response-time spread, clamped to [0, 1]."""
        session = self._session
        if session.total_problems < 3:
            return 1.0

        variability = (session.slowest_response - session.fastest_response) / session.average_response_time
        return max(0.0, min(1.0, 1 - variability / 3))

    def _consistency_score(self) -> float:
        """
        Score how evenly correct answers are spread through the session.

        The answers are cut into windows of five. Under a binomial model with
        the session accuracy ``p``, a window of ``m`` answers is expected to
        hold ``m*p`` correct answers with a deviation of ``sqrt(m*p*(1-p))``.
        Only deviation beyond that expected amount is penalized.
        """
        n = len(self._results)
        if n < 5:
            return 1.0

        p = self._session.accuracy_rate
        excess = 0.0
        for start in range(0, n, CONSISTENCY_WINDOW):
            window = self._results[start:start + CONSISTENCY_WINDOW]
            m = len(window)
            expected = m * p
            sigma = math.sqrt(m * p * (1 - p))
            excess += max(0.0, abs(sum(window) - expected) - sigma)

        return max(0.0, min(1.0, 1 - 2 * excess / n))
