"""
Personalization Orchestrator

Coordinates the per-user engine: the live session tracker, history
analytics, age detection, the adaptive difficulty counter, the template
engine and recommendations.

Adaptive generation pulls current insights and personalized metrics,
chooses a generation strategy, settles on a difficulty tier, picks a
template that respects the age group's cognitive load ceiling and layers
age-specific presentation on top of the rendered problem.
"""

import uuid
import random
import datetime
import dataclasses
from collections import deque
from typing import Any, Callable, Deque, Dict, List, Optional, Sequence
from dataclasses import dataclass

from adaptive_learning.common.enums import AgeGroup, Difficulty, Priority
from adaptive_learning.common.exceptions import NoMatchingTemplateError, ValidationError
from adaptive_learning.common.logger import app_logger, log_execution_time, with_context
from adaptive_learning.classification.age_detection import AgeDetectionService
from adaptive_learning.classification.models import AgeDetectionResult
from adaptive_learning.config import AppConfig, get_config
from adaptive_learning.difficulty.controller import DifficultyController, DifficultyModifiers
from adaptive_learning.generation.engine import ProblemTemplateEngine
from adaptive_learning.generation.models import (
    GeneratedProblem, GenerationStrategy, ProblemGenerationRequest, ProblemTemplate,
    StrategyType, SupportLevel
)
from adaptive_learning.performance.analytics import PerformanceAnalytics
from adaptive_learning.performance.metrics import ACHIEVEMENT_PROGRESS
from adaptive_learning.performance.models import (
    Insight, InsightType, LearningStyle, PerformanceTrend, PersonalizedMetrics,
    SessionRecord, UserProgress
)
from adaptive_learning.performance.tracker import PerformanceTracker, ProblemResponse
from adaptive_learning.personalization.recommendations import Recommendation, RecommendationEngine
from adaptive_learning.storage.base import KeyValueStore
from adaptive_learning.storage.keys import DEFAULT_USER_ID
from adaptive_learning.storage.repositories import (
    AgeDetectionRepository, ProgressRepository, RecommendationLedger, SessionStore
)

# Module logger
logger = app_logger.getChild("personalization.orchestrator")

BURNOUT_ENGAGEMENT_THRESHOLD = 0.7
BURNOUT_EASY_THRESHOLD = 0.6
SENIOR_BURNOUT_THRESHOLD = 0.5
LOW_ENGAGEMENT_THRESHOLD = 0.4
CONFIDENCE_THRESHOLD = 0.6

# Fraction of a session sequence spent warming up, and where the cool-down starts
WARM_UP_END = 0.3
COOL_DOWN_START = 0.7

SENIOR_TIME_FACTOR = 1.3

QUESTION_FORMATS = {
    AgeGroup.KIDS: "{theme} adventure! {question}",
    AgeGroup.TEENS: "{theme} challenge: {question}",
}

EXPLANATION_PREFIXES = {
    AgeGroup.KIDS: "Great thinking! ",
    AgeGroup.TEENS: "Here's the breakdown: ",
    AgeGroup.SENIORS: "Let's go through it step by step. ",
}

HINT_PREFIXES = {
    AgeGroup.KIDS: "Mino's tip: ",
    AgeGroup.TEENS: "Pro tip: ",
    AgeGroup.ADULTS: "Hint: ",
    AgeGroup.SENIORS: "Helpful note: ",
}

STYLE_NOTES = {
    LearningStyle.VISUAL: "Try to picture the numbers or draw the operation.",
    LearningStyle.METHODICAL: "Follow each step carefully.",
}

ACHIEVEMENT_HINT = "Solving this brings you closer to your next achievement!"


@dataclass(frozen=True)
class PlanStep:
    """Adaptive intent for one position of a session sequence."""

    target_weakness: bool = False
    reinforce_strength: bool = False


@dataclass
class ResponseFeedback:
    """What the caller gets back after recording an answer."""

    session: SessionRecord
    modifiers: DifficultyModifiers
    encouragement: str
    difficulty_title: str

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "session": self.session.to_dict(),
            "modifiers": self.modifiers.to_dict(),
            "encouragement": self.encouragement,
            "difficulty_title": self.difficulty_title,
        }


def plan_session_sequence(count: int, target_weaknesses: bool = True) -> List[PlanStep]:
    """
    Plan the adaptive intent of each position in a session.

    The first 30% of positions reinforce strengths as a warm-up, the middle
    40% target weaknesses when requested and the last 30% reinforce
    strengths again.

    Args:
        count: Number of problems in the session
        target_weaknesses: Whether the middle stretch targets weaknesses

    Returns:
        One plan step per position
    """
    steps = []
    for i in range(count):
        position = i / (count - 1) if count > 1 else 0.0
        if position < WARM_UP_END or position >= COOL_DOWN_START:
            steps.append(PlanStep(reinforce_strength=True))
        else:
            steps.append(PlanStep(target_weakness=target_weaknesses))
    return steps


class PersonalizationOrchestrator:
    """
    Per-user facade over the adaptive learning engine.

    Collaborators are injected; use ``create`` to wire the default set
    against a key-value store.
    """

    def __init__(self, tracker: PerformanceTracker, analytics: PerformanceAnalytics,
                 age_detection: AgeDetectionService, controller: DifficultyController,
                 template_engine: ProblemTemplateEngine,
                 recommendation_engine: RecommendationEngine,
                 progress_repository: ProgressRepository,
                 user_id: str = DEFAULT_USER_ID,
                 rng: Optional[random.Random] = None,
                 duplicate_retry_limit: int = 5,
                 recent_problem_memory: int = 50):
        """
        Initialize the orchestrator.

        Args:
            tracker: Live session tracker
            analytics: History analytics facade
            age_detection: Age detection service
            controller: Adaptive difficulty counter
            template_engine: Problem template engine
            recommendation_engine: Recommendation engine
            progress_repository: Aggregate progress repository
            user_id: Owner of this orchestrator
            rng: Random source for template choice; the engine's when omitted
            duplicate_retry_limit: Regeneration attempts before a problem id is uniquified
            recent_problem_memory: Number of recent problem ids remembered
        """
        self.tracker = tracker
        self.analytics = analytics
        self.age_detection = age_detection
        self.controller = controller
        self.template_engine = template_engine
        self.recommendation_engine = recommendation_engine
        self.progress_repository = progress_repository
        self.user_id = user_id
        self.rng = rng or template_engine.rng
        self.duplicate_retry_limit = duplicate_retry_limit
        self._recent_problem_ids: Deque[str] = deque(maxlen=recent_problem_memory)
        self.log = with_context(logger.name, user_id=user_id)

    @classmethod
    def create(cls, store: KeyValueStore, user_id: str = DEFAULT_USER_ID,
               config: Optional[AppConfig] = None,
               clock: Optional[Callable[[], datetime.datetime]] = None,
               rng: Optional[random.Random] = None) -> 'PersonalizationOrchestrator':
        """
        Wire the default collaborators for one user.

        Args:
            store: Key-value backend shared by all repositories
            user_id: User id
            config: Application configuration; the global one when omitted
            clock: Callable returning the current time
            rng: Random source; seeded from the generation config when omitted

        Returns:
            A ready orchestrator
        """
        config = config or get_config()
        clock = clock or datetime.datetime.now
        if rng is None:
            rng = random.Random(config.generation.random_seed)

        session_store = SessionStore(
            store, user_id, clock,
            max_sessions=config.storage.max_sessions_retained,
            retention_days=config.storage.retention_days,
        )
        analytics = PerformanceAnalytics(session_store, analytics_config=config.analytics)
        age_detection = AgeDetectionService(
            session_store,
            AgeDetectionRepository(store, user_id, clock),
            window_days=config.analytics.detection_window_days,
        )

        return cls(
            tracker=PerformanceTracker(session_store, clock),
            analytics=analytics,
            age_detection=age_detection,
            controller=DifficultyController(),
            template_engine=ProblemTemplateEngine(rng=rng),
            recommendation_engine=RecommendationEngine(
                analytics, RecommendationLedger(store, user_id, clock)
            ),
            progress_repository=ProgressRepository(store, user_id, clock),
            user_id=user_id,
            rng=rng,
            duplicate_retry_limit=config.generation.duplicate_retry_limit,
            recent_problem_memory=config.generation.recent_problem_memory,
        )

    # Session facade

    def start_session(self) -> str:
        """Open a live session; raises SessionAlreadyActiveError if one is open."""
        return self.tracker.start_session()

    def record_problem_response(self, response: ProblemResponse, level: int = 1) -> ResponseFeedback:
        """
        Record an answer in both the live session and the difficulty counter.

        Args:
            response: The answer event
            level: Current game level

        Returns:
            Updated session with the new difficulty modifiers and encouragement

        Raises:
            NoActiveSessionError: If no session is live
            ValidationError: If the event is malformed
        """
        session = self.tracker.record_response(response)
        self.controller.update_performance(response.correct, response.response_time, level)

        return ResponseFeedback(
            session=session,
            modifiers=self.controller.get_difficulty_modifiers(),
            encouragement=self.controller.get_encouragement_message(),
            difficulty_title=self.controller.get_difficulty_description(),
        )

    async def end_session(self) -> SessionRecord:
        """
        Finalize the live session, persist it and fold it into progress.

        Raises:
            NoActiveSessionError: If no session is live
        """
        session = await self.tracker.end_session()
        await self.progress_repository.record_session(session, self.controller.performance.best_streak)
        return session

    async def get_progress(self) -> UserProgress:
        """Stored progress, or an empty record for a new user."""
        progress = await self.progress_repository.get()
        return progress or UserProgress(user_id=self.user_id)

    # Query pass-throughs

    async def detect_age_group(self) -> AgeDetectionResult:
        return await self.age_detection.detect_age_group()

    async def generate_insights(self, age_group: Optional[AgeGroup] = None) -> List[Insight]:
        return await self.analytics.generate_insights(age_group)

    async def get_performance_trends(self) -> List[PerformanceTrend]:
        return await self.analytics.get_performance_trends()

    async def get_personalized_metrics(self) -> PersonalizedMetrics:
        return await self.analytics.get_personalized_metrics()

    async def generate_personalized_recommendations(
            self, age_group: Optional[AgeGroup] = None) -> List[Recommendation]:
        """Recommendations for the given age group, or the stored detection's."""
        if age_group is None:
            age_group = (await self.age_detection.load_previous()).predicted_age_group
        return await self.recommendation_engine.generate(age_group)

    async def mark_recommendation_implemented(self, recommendation_id: str) -> bool:
        return await self.recommendation_engine.mark_implemented(recommendation_id)

    # Adaptive generation

    @log_execution_time(logger)
    async def generate_adaptive_problem(self, request: ProblemGenerationRequest) -> GeneratedProblem:
        """
        Generate one problem tailored to the user.

        Args:
            request: Generation request

        Returns:
            The personalized problem
        """
        age_group = await self._resolve_age_group(request)
        insights = await self.analytics.generate_insights(age_group)
        metrics = await self.analytics.get_personalized_metrics()
        return self._generate(request, insights, metrics, age_group)

    @log_execution_time(logger)
    async def generate_session_sequence(self, request: ProblemGenerationRequest,
                                        count: int) -> List[GeneratedProblem]:
        """
        Generate a full session of problems following the warm-up, focus and
        cool-down plan.

        Args:
            request: Generation request for the session
            count: Number of problems

        Returns:
            Problems in presentation order

        Raises:
            ValidationError: If count is below 1
        """
        if count < 1:
            raise ValidationError("Session sequence needs at least one problem",
                                  {"count": "must be at least 1"})

        age_group = await self._resolve_age_group(request)
        insights = await self.analytics.generate_insights(age_group)
        metrics = await self.analytics.get_personalized_metrics()
        plan = plan_session_sequence(count, request.adaptive_goals.target_weaknesses)

        problems: List[GeneratedProblem] = []
        for step in plan:
            context = dataclasses.replace(
                request.session_context,
                current_streak=request.session_context.current_streak + len(problems),
            )
            step_request = dataclasses.replace(request, session_context=context)

            problem = self._generate(step_request, insights, metrics, age_group, step)
            factors = dataclasses.replace(
                problem.adaptive_factors,
                target_weakness=step.target_weakness,
                reinforce_strength=step.reinforce_strength,
            )
            problems.append(dataclasses.replace(problem, adaptive_factors=factors))

        self.log.info(f"Generated session sequence of {len(problems)} problems for {self.user_id}")
        return problems

    async def generate_targeted_problem(self, weakness: Insight,
                                        age_group: Optional[AgeGroup] = None) -> GeneratedProblem:
        """
        Generate a high-support problem for a weakness insight.

        Raises:
            NoMatchingTemplateError: If no template relates to the weakness
        """
        if age_group is None:
            age_group = (await self.age_detection.load_previous()).predicted_age_group
        return self.template_engine.generate_targeted_problem(weakness, age_group)

    def select_strategy(self, request: ProblemGenerationRequest, insights: Sequence[Insight],
                        metrics: PersonalizedMetrics,
                        step: Optional[PlanStep] = None) -> GenerationStrategy:
        """
        Choose the generation strategy; the first matching rule wins.

        Args:
            request: Generation request
            insights: Current insights
            metrics: Current personalized metrics
            step: Plan step when generating inside a session sequence

        Returns:
            The strategy to apply
        """
        weaknesses = [i for i in insights
                      if i.insight_type == InsightType.WEAKNESS and i.priority == Priority.HIGH]
        strengths = [i for i in insights if i.insight_type == InsightType.STRENGTH]

        goals = request.adaptive_goals

        if goals.prevent_burnout and metrics.burnout_risk > BURNOUT_ENGAGEMENT_THRESHOLD:
            return GenerationStrategy(
                strategy_type=StrategyType.ENGAGEMENT_FOCUSED,
                support_level=SupportLevel.HIGH,
                difficulty=Difficulty.EASY,
            )

        if step is not None:
            if step.target_weakness and weaknesses:
                return GenerationStrategy(
                    strategy_type=StrategyType.WEAKNESS_TARGETED,
                    focus=list(weaknesses[0].categories),
                    support_level=SupportLevel.HIGH,
                )
            if step.reinforce_strength and goals.reinforce_strengths and strengths:
                return GenerationStrategy(
                    strategy_type=StrategyType.CONFIDENCE_BUILDING,
                    focus=list(strengths[0].categories),
                )

        if goals.maintain_engagement and metrics.engagement_level < LOW_ENGAGEMENT_THRESHOLD:
            return GenerationStrategy(
                strategy_type=StrategyType.MOTIVATION_FOCUSED,
                focus=list(metrics.strongest_categories),
                variety=True,
            )

        if weaknesses and goals.target_weaknesses:
            return GenerationStrategy(
                strategy_type=StrategyType.WEAKNESS_TARGETED,
                focus=list(weaknesses[0].categories),
                support_level=SupportLevel.HIGH,
            )

        if (goals.reinforce_strengths and strengths
                and request.session_context.recent_performance < CONFIDENCE_THRESHOLD):
            return GenerationStrategy(
                strategy_type=StrategyType.CONFIDENCE_BUILDING,
                focus=list(strengths[0].categories),
                difficulty=Difficulty.EASY,
            )

        return GenerationStrategy(focus=list(request.preferences.preferred_categories))

    def select_difficulty(self, request: ProblemGenerationRequest, metrics: PersonalizedMetrics,
                          strategy: GenerationStrategy, age_group: AgeGroup,
                          modifiers: DifficultyModifiers) -> Difficulty:
        """
        Settle the difficulty tier for one problem.

        Recent performance and the difficulty counter set the starting tier,
        then burnout, the strategy, the caller's ceiling and age rules apply
        in that order.
        """
        recent = request.session_context.recent_performance
        complexity = modifiers.complexity_level

        difficulty = Difficulty.MEDIUM
        if recent > 0.8:
            difficulty = Difficulty.HARD if complexity >= 3 else Difficulty.MEDIUM
            if recent > 0.9 and complexity == 4:
                difficulty = Difficulty.EXPERT
        elif recent < 0.5:
            difficulty = Difficulty.EASY

        if metrics.burnout_risk > BURNOUT_EASY_THRESHOLD:
            difficulty = Difficulty.EASY
        if strategy.difficulty is not None:
            difficulty = strategy.difficulty
        if request.preferences.max_difficulty is not None:
            difficulty = difficulty.cap(request.preferences.max_difficulty)

        if age_group == AgeGroup.KIDS:
            difficulty = difficulty.cap(Difficulty.MEDIUM)
        elif age_group == AgeGroup.TEENS:
            difficulty = difficulty.cap(Difficulty.HARD)
        elif age_group == AgeGroup.SENIORS and metrics.burnout_risk > SENIOR_BURNOUT_THRESHOLD:
            difficulty = difficulty.step_down()
        return difficulty

    def select_template(self, strategy: GenerationStrategy, difficulty: Difficulty,
                        age_group: AgeGroup, avoid_categories: Sequence[str] = ()) -> ProblemTemplate:
        """
        Pick a template within the age group's load ceiling, preferring the
        strategy focus and falling back to the wider pool when nothing matches.
        """
        engine = self.template_engine
        pool = engine.templates_for_age(age_group, difficulty) or engine.templates

        allowed = [t for t in pool if not any(t.matches(c) for c in avoid_categories)]
        if allowed:
            pool = allowed

        if strategy.focus:
            try:
                pool = engine.find_templates(strategy.focus, pool)
            except NoMatchingTemplateError as e:
                logger.info(f"{e.message}; using the general pool")

        return self.rng.choice(pool)

    def personalize(self, problem: GeneratedProblem, age_group: AgeGroup,
                    metrics: PersonalizedMetrics) -> GeneratedProblem:
        """
        Apply age-specific presentation, learning style notes and motivational hints.

        Args:
            problem: Rendered problem
            age_group: Target age group
            metrics: Personalized metrics

        Returns:
            A new problem with the presentation changes
        """
        template = self.template_engine.get_template(problem.template_id)
        age_config = template.age_configs.get(age_group) if template else None

        question = problem.question
        if age_config is not None and age_group in QUESTION_FORMATS:
            question = QUESTION_FORMATS[age_group].format(theme=age_config.theme, question=question)

        explanation = EXPLANATION_PREFIXES.get(age_group, "") + problem.explanation
        style_note = STYLE_NOTES.get(metrics.learning_style)
        if style_note:
            explanation += "\n" + style_note

        prefix = HINT_PREFIXES[age_group]
        hints = [prefix + hint for hint in problem.hints]
        if ACHIEVEMENT_PROGRESS in metrics.motivational_factors:
            hints.append(ACHIEVEMENT_HINT)

        time_estimate = problem.time_estimate
        if age_group == AgeGroup.SENIORS:
            time_estimate = int(round(time_estimate * SENIOR_TIME_FACTOR))

        return dataclasses.replace(
            problem,
            question=question,
            explanation=explanation,
            hints=tuple(hints),
            time_estimate=time_estimate,
        )

    async def _resolve_age_group(self, request: ProblemGenerationRequest) -> AgeGroup:
        if request.age_group is not None:
            return request.age_group
        return (await self.age_detection.load_previous()).predicted_age_group

    def _generate(self, request: ProblemGenerationRequest, insights: Sequence[Insight],
                  metrics: PersonalizedMetrics, age_group: AgeGroup,
                  step: Optional[PlanStep] = None) -> GeneratedProblem:
        modifiers = self.controller.get_difficulty_modifiers()
        strategy = self.select_strategy(request, insights, metrics, step)
        difficulty = self.select_difficulty(request, metrics, strategy, age_group, modifiers)

        for _ in range(self.duplicate_retry_limit + 1):
            template = self.select_template(
                strategy, difficulty, age_group, request.preferences.avoid_categories
            )
            problem = self.template_engine.generate_from_template(
                template, difficulty, strategy,
                range_multiplier=modifiers.range_multiplier,
                age_group=age_group,
            )
            if problem.problem_id not in self._recent_problem_ids:
                break
        else:
            unique_id = f"{problem.problem_id}_{uuid.uuid4().hex[:8]}"
            self.log.debug(f"Forcing unique problem id {unique_id}")
            problem = dataclasses.replace(problem, problem_id=unique_id)

        self._recent_problem_ids.append(problem.problem_id)
        self.log.info(
            f"Generated {problem.problem_id} for {self.user_id} "
            f"({strategy.strategy_type.value}, {difficulty.value}, {age_group.value})"
        )
        return self.personalize(problem, age_group, metrics)
