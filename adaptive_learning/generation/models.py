"""
Problem Generation Models

Static template definitions, generation strategies and requests, and the
immutable problems the engine produces.
"""

import enum
from typing import Dict, List, Any, Optional, Tuple
from dataclasses import dataclass, field

from adaptive_learning.common.enums import AgeGroup, Difficulty

# Extra cognitive load per difficulty tier
DIFFICULTY_LOAD = {
    Difficulty.EASY: 0.3,
    Difficulty.MEDIUM: 0.6,
    Difficulty.HARD: 0.8,
    Difficulty.EXPERT: 1.0,
}


class VariableType(enum.Enum):
    """Sampling type of a template variable."""
    INTEGER = "integer"
    DECIMAL = "decimal"


class StrategyType(enum.Enum):
    """How a problem is meant to serve the player."""
    BALANCED = "balanced"
    WEAKNESS_TARGETED = "weakness_targeted"
    CONFIDENCE_BUILDING = "confidence_building"
    ENGAGEMENT_FOCUSED = "engagement_focused"
    MOTIVATION_FOCUSED = "motivation_focused"


class SupportLevel(enum.Enum):
    """Amount of scaffolding (hints, time) attached to a problem."""
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True)
class VariableSpec:
    """A template variable and its sampling range per difficulty tier."""

    name: str
    value_type: VariableType
    ranges: Dict[Difficulty, Tuple[float, float]]

    def range_for(self, difficulty: Difficulty) -> Tuple[float, float]:
        return self.ranges[difficulty]


@dataclass(frozen=True)
class AgeGroupConfig:
    """Per-age presentation settings of a template."""

    theme: str
    max_cognitive_load: float
    encouragement_style: str


@dataclass(frozen=True)
class ProblemTemplate:
    """
    A parametrized problem.

    ``text`` holds ``{name}`` placeholders for every variable. Templates are
    loaded once and never mutated.
    """

    template_id: str
    category: str
    operation: str
    text: str
    variables: Tuple[VariableSpec, ...]
    concepts: Tuple[str, ...]
    prerequisites: Tuple[str, ...]
    age_configs: Dict[AgeGroup, AgeGroupConfig]

    @property
    def answer_type(self) -> VariableType:
        """Integer answers only when every input is an integer and the operation keeps it so."""
        if self.operation == "division":
            return VariableType.DECIMAL
        if all(v.value_type == VariableType.INTEGER for v in self.variables):
            return VariableType.INTEGER
        return VariableType.DECIMAL

    def raw_cognitive_load(self, difficulty: Difficulty) -> float:
        """Uncapped load: 0.5 + 0.1 per concept + 0.05 per prerequisite + tier load."""
        return (0.5 + len(self.concepts) * 0.1 + len(self.prerequisites) * 0.05
                + DIFFICULTY_LOAD[difficulty])

    def cognitive_load(self, difficulty: Difficulty) -> float:
        """Load score reported on problems, capped at 1.0."""
        return min(self.raw_cognitive_load(difficulty), 1.0)

    def fits_age_group(self, age_group: AgeGroup, difficulty: Difficulty) -> bool:
        """Whether the raw load at this tier stays under the age group's ceiling."""
        config = self.age_configs.get(age_group)
        if config is None:
            return True
        return self.raw_cognitive_load(difficulty) <= config.max_cognitive_load

    def matches(self, term: str) -> bool:
        """Case-insensitive match of a focus term against category or operation."""
        term = term.lower().strip()
        if not term:
            return False
        return term in self.category.lower() or term in self.operation.lower()


@dataclass
class GenerationStrategy:
    """Strategy chosen for one generation call."""

    strategy_type: StrategyType = StrategyType.BALANCED
    focus: List[str] = field(default_factory=list)
    support_level: SupportLevel = SupportLevel.MEDIUM
    difficulty: Optional[Difficulty] = None
    variety: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "type": self.strategy_type.value,
            "focus": list(self.focus),
            "support_level": self.support_level.value,
            "difficulty": self.difficulty.value if self.difficulty else None,
            "variety": self.variety,
        }


@dataclass(frozen=True)
class AdaptiveFactors:
    """Flags describing why a problem was generated."""

    target_weakness: bool = False
    reinforce_strength: bool = False
    optimal_timing: bool = True
    personalized_style: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "target_weakness": self.target_weakness,
            "reinforce_strength": self.reinforce_strength,
            "optimal_timing": self.optimal_timing,
            "personalized_style": self.personalized_style,
        }


@dataclass(frozen=True)
class ProblemMetadata:
    """Descriptive metadata of a generated problem."""

    concepts: Tuple[str, ...] = ()
    prerequisites: Tuple[str, ...] = ()
    learning_objectives: Tuple[str, ...] = ()
    cognitive_load: float = 0.0
    age_group: Optional[AgeGroup] = None
    gamification_elements: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "concepts": list(self.concepts),
            "prerequisites": list(self.prerequisites),
            "learning_objectives": list(self.learning_objectives),
            "cognitive_load": self.cognitive_load,
            "age_group": self.age_group.value if self.age_group else None,
            "gamification_elements": list(self.gamification_elements),
        }


@dataclass(frozen=True)
class GeneratedProblem:
    """A rendered problem. Immutable once returned; derive variants with dataclasses.replace."""

    problem_id: str
    template_id: str
    category: str
    operation: str
    difficulty: Difficulty
    question: str
    options: Tuple[str, ...]
    correct_answer: str
    explanation: str
    hints: Tuple[str, ...]
    time_estimate: int
    variables: Tuple[Tuple[str, float], ...]
    adaptive_factors: AdaptiveFactors = field(default_factory=AdaptiveFactors)
    metadata: ProblemMetadata = field(default_factory=ProblemMetadata)

    @property
    def variable_values(self) -> Dict[str, float]:
        return dict(self.variables)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.problem_id,
            "template_id": self.template_id,
            "category": self.category,
            "operation": self.operation,
            "difficulty": self.difficulty.value,
            "question": self.question,
            "options": list(self.options),
            "correct_answer": self.correct_answer,
            "explanation": self.explanation,
            "hints": list(self.hints),
            "time_estimate": self.time_estimate,
            "adaptive_factors": self.adaptive_factors.to_dict(),
            "metadata": self.metadata.to_dict(),
        }


@dataclass
class SessionContext:
    """What is known about the session a problem is generated for."""

    current_streak: int = 0
    recent_performance: float = 0.5
    time_spent: float = 0.0
    categories_played: List[str] = field(default_factory=list)


@dataclass
class GenerationPreferences:
    """Player or caller preferences that bound generation."""

    preferred_categories: List[str] = field(default_factory=list)
    avoid_categories: List[str] = field(default_factory=list)
    max_difficulty: Optional[Difficulty] = None


@dataclass
class AdaptiveGoals:
    """Which adaptive behaviors the caller wants."""

    target_weaknesses: bool = True
    reinforce_strengths: bool = True
    maintain_engagement: bool = True
    prevent_burnout: bool = True


@dataclass
class ProblemGenerationRequest:
    """
    Input to adaptive generation.

    When ``age_group`` is None the orchestrator uses the user's stored age
    detection.
    """

    user_id: str = "default_user"
    session_context: SessionContext = field(default_factory=SessionContext)
    preferences: GenerationPreferences = field(default_factory=GenerationPreferences)
    adaptive_goals: AdaptiveGoals = field(default_factory=AdaptiveGoals)
    age_group: Optional[AgeGroup] = None
