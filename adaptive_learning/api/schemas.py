"""
API Request Models

pydantic models for inbound requests. Each converts itself into the
domain object the orchestrator expects.
"""

from typing import List, Optional

from pydantic import BaseModel, Field, validator

from adaptive_learning.common.enums import AgeGroup, Difficulty
from adaptive_learning.generation.models import (
    AdaptiveGoals, GenerationPreferences, ProblemGenerationRequest, SessionContext
)
from adaptive_learning.performance.tracker import ProblemResponse


class ProblemResponseIn(BaseModel):
    """An answer event posted by the client."""
    correct: bool = Field(..., description="Whether the answer was correct")
    response_time: float = Field(..., gt=0, description="Response time in seconds")
    difficulty: Difficulty = Field(..., description="Difficulty tier of the problem")
    category: str = Field(..., min_length=1, description="Problem category")
    operation: str = Field(..., min_length=1, description="Problem operation")
    hints_used: int = Field(0, ge=0, description="Hints used on this problem")
    retries: int = Field(0, ge=0, description="Retries on this problem")
    level: int = Field(1, ge=1, description="Current game level")

    @validator('category', 'operation')
    def validate_not_blank(cls, v):
        """Reject whitespace-only names"""
        if not v.strip():
            raise ValueError("must not be blank")
        return v.strip()

    def to_event(self) -> ProblemResponse:
        return ProblemResponse(
            correct=self.correct,
            response_time=self.response_time,
            difficulty=self.difficulty.value,
            category=self.category,
            operation=self.operation,
            hints_used=self.hints_used,
            retries=self.retries,
        )


class GenerationRequestIn(BaseModel):
    """Adaptive problem generation request."""
    age_group: Optional[AgeGroup] = Field(None, description="Age group; stored detection when omitted")
    current_streak: int = Field(0, ge=0)
    recent_performance: float = Field(0.5, ge=0.0, le=1.0)
    time_spent: float = Field(0.0, ge=0.0)
    categories_played: List[str] = Field(default_factory=list)
    preferred_categories: List[str] = Field(default_factory=list)
    avoid_categories: List[str] = Field(default_factory=list)
    max_difficulty: Optional[Difficulty] = None
    target_weaknesses: bool = True
    reinforce_strengths: bool = True
    maintain_engagement: bool = True
    prevent_burnout: bool = True

    def to_request(self, user_id: str) -> ProblemGenerationRequest:
        return ProblemGenerationRequest(
            user_id=user_id,
            session_context=SessionContext(
                current_streak=self.current_streak,
                recent_performance=self.recent_performance,
                time_spent=self.time_spent,
                categories_played=list(self.categories_played),
            ),
            preferences=GenerationPreferences(
                preferred_categories=list(self.preferred_categories),
                avoid_categories=list(self.avoid_categories),
                max_difficulty=self.max_difficulty,
            ),
            adaptive_goals=AdaptiveGoals(
                target_weaknesses=self.target_weaknesses,
                reinforce_strengths=self.reinforce_strengths,
                maintain_engagement=self.maintain_engagement,
                prevent_burnout=self.prevent_burnout,
            ),
            age_group=self.age_group,
        )


class SequenceRequestIn(GenerationRequestIn):
    """Session sequence generation request."""
    count: int = Field(10, ge=1, le=50, description="Number of problems in the session")
