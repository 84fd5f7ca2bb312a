"""
Problem Template Engine

Renders templates into concrete multiple-choice problems: samples variables
within the tier's ranges, computes the answer, builds plausible distractors
and attaches explanation, hints, time estimate and cognitive load.

All randomness flows through one injected ``random.Random`` so generation is
reproducible under a fixed seed.
"""

import dataclasses
import math
import random
from typing import Dict, List, Optional, Sequence

from adaptive_learning.common.enums import AgeGroup, Difficulty, Priority
from adaptive_learning.common.exceptions import NoMatchingTemplateError
from adaptive_learning.common.logger import app_logger
from adaptive_learning.generation.catalog import default_templates
from adaptive_learning.generation.models import (
    AdaptiveFactors, GeneratedProblem, GenerationStrategy, ProblemMetadata,
    ProblemTemplate, StrategyType, SupportLevel, VariableType
)
from adaptive_learning.performance.models import Insight

# Module logger
logger = app_logger.getChild("generation.engine")

OPTION_COUNT = 4
DISTRACTOR_ATTEMPTS = 3
RANDOM_REFILL_ATTEMPTS = 20
BASE_TIME_SECONDS = 15
HIGH_SUPPORT_TIME_FACTOR = 1.3

DISTRACTOR_VARIANCE = {
    Difficulty.EASY: 0.2,
    Difficulty.MEDIUM: 0.5,
    Difficulty.HARD: 0.8,
    Difficulty.EXPERT: 0.8,
}

TIME_MULTIPLIERS = {
    Difficulty.EASY: 0.7,
    Difficulty.MEDIUM: 1.0,
    Difficulty.HARD: 1.5,
    Difficulty.EXPERT: 2.0,
}

GAMIFICATION_ELEMENTS = {
    AgeGroup.KIDS: ("stars", "mascot", "stickers"),
    AgeGroup.TEENS: ("streaks", "leaderboard", "badges"),
    AgeGroup.ADULTS: ("progress_tracking", "efficiency_score"),
    AgeGroup.SENIORS: ("progress_milestones", "gentle_encouragement"),
}


def format_number(value: float, answer_type: VariableType = VariableType.DECIMAL) -> str:
    """
    Render a number the way answers are displayed.

    Args:
        value: Number to format
        answer_type: INTEGER renders a rounded whole number, DECIMAL at most two decimals

    Returns:
        Display string
    """
    if answer_type == VariableType.INTEGER:
        text = str(int(round(value)))
    else:
        text = f"{round(value, 2):.2f}".rstrip("0").rstrip(".")
    return "0" if text in ("-0", "") else text


def compute_answer(operation: str, a: float, b: float) -> float:
    """Apply a template operation to its two operands."""
    if operation == "addition":
        return a + b
    if operation == "subtraction":
        return a - b
    if operation == "multiplication":
        return a * b
    if operation == "division":
        return round(a / b, 2)
    raise ValueError(f"Unsupported operation: {operation}")


class ProblemTemplateEngine:
    """
    Holds the template catalog and turns templates into problems.

    Args:
        templates: Catalog to use; the built-in catalog when omitted
        rng: Random source for sampling and shuffling
    """

    def __init__(self, templates: Optional[Sequence[ProblemTemplate]] = None,
                 rng: Optional[random.Random] = None):
        self._templates = list(templates) if templates is not None else default_templates()
        self.rng = rng or random.Random()
        logger.debug(f"Template engine initialized with {len(self._templates)} templates")

    @property
    def templates(self) -> List[ProblemTemplate]:
        return list(self._templates)

    def get_template(self, template_id: str) -> Optional[ProblemTemplate]:
        """Look up a template by id."""
        for template in self._templates:
            if template.template_id == template_id:
                return template
        return None

    def find_templates(self, focus: Sequence[str],
                       pool: Optional[Sequence[ProblemTemplate]] = None) -> List[ProblemTemplate]:
        """
        Filter templates whose category or operation matches any focus term.

        Args:
            focus: Category or operation names, matched case-insensitively
            pool: Templates to filter; the whole catalog when omitted

        Returns:
            Matching templates in catalog order

        Raises:
            NoMatchingTemplateError: If nothing matches
        """
        candidates = self._templates if pool is None else pool
        matches = [t for t in candidates if any(t.matches(term) for term in focus)]
        if not matches:
            raise NoMatchingTemplateError(", ".join(focus))
        return matches

    def templates_for_age(self, age_group: AgeGroup, difficulty: Difficulty) -> List[ProblemTemplate]:
        """Templates whose raw cognitive load stays under the age group's ceiling."""
        return [t for t in self._templates if t.fits_age_group(age_group, difficulty)]

    def generate_from_template(self, template: ProblemTemplate, difficulty: Difficulty,
                               strategy: Optional[GenerationStrategy] = None,
                               range_multiplier: float = 1.0,
                               age_group: Optional[AgeGroup] = None) -> GeneratedProblem:
        """
        Render one problem.

        Args:
            template: Template to render
            difficulty: Tier whose sampling ranges apply
            strategy: Strategy the problem serves; balanced when omitted
            range_multiplier: Scales the upper bound of integer ranges
            age_group: Recorded in the metadata along with its gamification elements

        Returns:
            The generated problem
        """
        strategy = strategy or GenerationStrategy()
        values = self._sample_variables(template, difficulty, range_multiplier)

        answer_type = template.answer_type
        correct = compute_answer(template.operation, values["a"], values["b"])
        correct_answer = format_number(correct, answer_type)
        rendered = {name: format_number(value) for name, value in values.items()}

        signature = "_".join(rendered[spec.name] for spec in template.variables)
        high_support = strategy.support_level == SupportLevel.HIGH

        problem = GeneratedProblem(
            problem_id=f"{template.template_id}_{difficulty.value}_{signature}",
            template_id=template.template_id,
            category=template.category,
            operation=template.operation,
            difficulty=difficulty,
            question=template.text.format(**rendered),
            options=tuple(self._build_options(template, correct, correct_answer, difficulty)),
            correct_answer=correct_answer,
            explanation=self._explanation(template.operation, rendered, correct_answer),
            hints=tuple(self._hints(template.operation, values, rendered, high_support)),
            time_estimate=self.estimate_time(template, difficulty, high_support),
            variables=tuple((spec.name, values[spec.name]) for spec in template.variables),
            adaptive_factors=AdaptiveFactors(
                target_weakness=strategy.strategy_type == StrategyType.WEAKNESS_TARGETED,
                reinforce_strength=strategy.strategy_type == StrategyType.CONFIDENCE_BUILDING,
            ),
            metadata=ProblemMetadata(
                concepts=template.concepts,
                prerequisites=template.prerequisites,
                learning_objectives=(f"Solve {template.category} problems",),
                cognitive_load=template.cognitive_load(difficulty),
                age_group=age_group,
                gamification_elements=GAMIFICATION_ELEMENTS.get(age_group, ()),
            ),
        )

        logger.debug(f"Generated {problem.problem_id} ({strategy.strategy_type.value})")
        return problem

    def generate_targeted_problem(self, weakness: Insight,
                                  age_group: Optional[AgeGroup] = None) -> GeneratedProblem:
        """
        Build a high-support problem for a weakness insight.

        Templates are matched against the insight's categories and against
        category or operation names mentioned in its description.

        Args:
            weakness: Weakness insight to address
            age_group: Optional age group for metadata

        Returns:
            Problem with supportive hints and an extended explanation

        Raises:
            NoMatchingTemplateError: If no template relates to the weakness
        """
        description = weakness.description.lower()
        templates = [
            t for t in self._templates
            if any(t.matches(c) for c in weakness.categories)
            or t.category.lower() in description
            or t.operation.lower() in description
        ]
        if not templates:
            raise NoMatchingTemplateError(weakness.description)

        template = templates[0]
        difficulty = Difficulty.EASY if weakness.priority == Priority.HIGH else Difficulty.MEDIUM
        strategy = GenerationStrategy(
            strategy_type=StrategyType.WEAKNESS_TARGETED,
            focus=list(weakness.categories),
            support_level=SupportLevel.HIGH,
        )
        problem = self.generate_from_template(template, difficulty, strategy, age_group=age_group)

        explanation = problem.explanation
        if weakness.suggested_actions:
            explanation += "\n\nRemember: " + ", ".join(weakness.suggested_actions)

        return dataclasses.replace(
            problem,
            hints=tuple(self._supportive_hints(description) + list(problem.hints)),
            explanation=explanation,
        )

    @staticmethod
    def estimate_time(template: ProblemTemplate, difficulty: Difficulty, high_support: bool = False) -> int:
        """
        Estimate seconds needed for a problem.

        Args:
            template: Template being rendered
            difficulty: Difficulty tier
            high_support: Whether high support was requested

        Returns:
            Rounded estimate in seconds
        """
        seconds = BASE_TIME_SECONDS * TIME_MULTIPLIERS[difficulty]
        seconds *= len(template.concepts) * 0.2 + 0.8
        if high_support:
            seconds *= HIGH_SUPPORT_TIME_FACTOR
        return int(math.floor(seconds + 0.5))

    def _sample_variables(self, template: ProblemTemplate, difficulty: Difficulty,
                          range_multiplier: float) -> Dict[str, float]:
        values: Dict[str, float] = {}
        for spec in template.variables:
            low, high = spec.range_for(difficulty)
            if spec.value_type == VariableType.INTEGER:
                upper = max(int(low), int(round(high * range_multiplier)))
                values[spec.name] = self.rng.randint(int(low), upper)
            else:
                values[spec.name] = round(self.rng.uniform(low, high), 2)

        # Keep subtraction results non-negative
        if template.operation == "subtraction" and values["a"] < values["b"]:
            values["a"], values["b"] = values["b"], values["a"]
        return values

    def _build_options(self, template: ProblemTemplate, correct: float,
                       correct_answer: str, difficulty: Difficulty) -> List[str]:
        answer_type = template.answer_type
        options = [correct_answer]

        def offer(candidate: float) -> None:
            formatted = format_number(candidate, answer_type)
            if formatted in options:
                return
            if correct >= 0 and float(formatted) < 0:
                return
            options.append(formatted)

        variance = DISTRACTOR_VARIANCE[difficulty]
        for _ in range(DISTRACTOR_ATTEMPTS):
            if self.rng.random() < 0.5:
                offer(self._common_error(template.operation, correct))
            else:
                offer(correct + (self.rng.random() - 0.5) * correct * variance * 2)

        spread = max(abs(correct), 10)
        attempts = 0
        while len(options) < OPTION_COUNT and attempts < RANDOM_REFILL_ATTEMPTS:
            offer(correct + (self.rng.random() - 0.5) * spread)
            attempts += 1

        step = 1
        while len(options) < OPTION_COUNT:
            offer(correct + step)
            step += 1

        self.rng.shuffle(options)
        return options

    def _common_error(self, operation: str, correct: float) -> float:
        if operation == "addition":
            return correct - 1 if self.rng.random() < 0.5 else correct + 1
        if operation == "subtraction":
            return correct + 2 if self.rng.random() < 0.5 else correct - 2
        if operation == "multiplication":
            delta = correct * 0.1
            return correct + delta if self.rng.random() < 0.5 else correct - delta
        return correct * (self.rng.random() + 0.5)

    @staticmethod
    def _explanation(operation: str, rendered: Dict[str, str], correct_answer: str) -> str:
        a, b = rendered["a"], rendered["b"]
        if operation == "addition":
            return f"To add {a} + {b}, start at {a} and count {b} more. The result is {correct_answer}."
        if operation == "subtraction":
            return f"To subtract {a} - {b}, start with {a} and take away {b}. The result is {correct_answer}."
        if operation == "multiplication":
            return f"To multiply {a} × {b}, add {a} a total of {b} times. The result is {correct_answer}."
        if operation == "division":
            return f"To divide {a} ÷ {b}, find how many times {b} fits into {a}. The result is {correct_answer}."
        return f"The result of this operation is {correct_answer}."

    @staticmethod
    def _hints(operation: str, values: Dict[str, float], rendered: Dict[str, str],
               high_support: bool) -> List[str]:
        a, b = rendered["a"], rendered["b"]
        if not high_support:
            return {
                "addition": ["You can add the numbers in any order"],
                "subtraction": ["What number added to the result gives the first number?"],
                "multiplication": ["Multiplication is repeated addition"],
                "division": ["Think of the times table of the second number"],
            }.get(operation, [])

        if operation == "addition":
            step_1 = format_number(values["a"] + 1)
            step_2 = format_number(values["a"] + 2)
            return [
                f"Count up from {a}",
                f"{a} + {b} is the same as {b} + {a}",
                f"Try counting {a}, {step_1}, {step_2}...",
            ]
        if operation == "subtraction":
            return [
                f"Start at {a} and count back {b} times",
                f"Which number plus {b} equals {a}?",
            ]
        if operation == "multiplication":
            return [
                f"Add {a} a total of {b} times",
                f"{a} × {b} is the same as {b} × {a}",
            ]
        if operation == "division":
            return [
                f"How many groups of {b} fit into {a}?",
                f"Check your answer by multiplying it by {b}",
            ]
        return []

    @staticmethod
    def _supportive_hints(description: str) -> List[str]:
        hints: List[str] = []
        if "speed" in description:
            hints.append("Take your time - accuracy matters more than speed")
            hints.append("Work through it step by step without rushing")
        if "accuracy" in description:
            hints.append("Check your answer before confirming")
            hints.append("Ask yourself whether the answer makes sense")
        return hints
