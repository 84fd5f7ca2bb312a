"""
Problem Template Catalog

Built-in arithmetic templates. Each template declares its sampling ranges
per difficulty tier and a presentation config per age group.
"""

from typing import Dict, List, Tuple

from adaptive_learning.common.enums import AgeGroup, Difficulty
from adaptive_learning.generation.models import (
    AgeGroupConfig, ProblemTemplate, VariableSpec, VariableType
)

ARITHMETIC = "Arithmetic"
DECIMALS = "Decimals"
WORD_PROBLEMS = "Word Problems"

# Upper bound on raw cognitive load per age group
AGE_LOAD_CEILINGS = {
    AgeGroup.KIDS: 1.45,
    AgeGroup.TEENS: 2.0,
    AgeGroup.ADULTS: 2.6,
    AgeGroup.SENIORS: 1.7,
}

ENCOURAGEMENT_STYLES = {
    AgeGroup.KIDS: "playful",
    AgeGroup.TEENS: "competitive",
    AgeGroup.ADULTS: "practical",
    AgeGroup.SENIORS: "supportive",
}


def _ranges(easy, medium, hard, expert) -> Dict[Difficulty, Tuple[float, float]]:
    return {
        Difficulty.EASY: easy,
        Difficulty.MEDIUM: medium,
        Difficulty.HARD: hard,
        Difficulty.EXPERT: expert,
    }


def _age_configs(kids_theme: str, teens_theme: str,
                 adults_theme: str, seniors_theme: str) -> Dict[AgeGroup, AgeGroupConfig]:
    themes = {
        AgeGroup.KIDS: kids_theme,
        AgeGroup.TEENS: teens_theme,
        AgeGroup.ADULTS: adults_theme,
        AgeGroup.SENIORS: seniors_theme,
    }
    return {
        group: AgeGroupConfig(
            theme=themes[group],
            max_cognitive_load=AGE_LOAD_CEILINGS[group],
            encouragement_style=ENCOURAGEMENT_STYLES[group],
        )
        for group in AgeGroup
    }


def default_templates() -> List[ProblemTemplate]:
    """Return the built-in template catalog."""
    integer = VariableType.INTEGER
    decimal = VariableType.DECIMAL

    return [
        ProblemTemplate(
            template_id="addition_basic",
            category=ARITHMETIC,
            operation="addition",
            text="What is {a} + {b}?",
            variables=(
                VariableSpec("a", integer, _ranges((1, 10), (10, 50), (50, 100), (100, 500))),
                VariableSpec("b", integer, _ranges((1, 10), (10, 50), (50, 100), (100, 500))),
            ),
            concepts=("addition", "whole numbers"),
            prerequisites=("counting",),
            age_configs=_age_configs("Treasure hunt", "Speed round", "Quick math", "Daily practice"),
        ),
        ProblemTemplate(
            template_id="subtraction_basic",
            category=ARITHMETIC,
            operation="subtraction",
            text="What is {a} - {b}?",
            variables=(
                VariableSpec("a", integer, _ranges((5, 20), (20, 60), (60, 100), (100, 500))),
                VariableSpec("b", integer, _ranges((1, 10), (10, 30), (30, 60), (50, 250))),
            ),
            concepts=("subtraction", "whole numbers"),
            prerequisites=("basic addition",),
            age_configs=_age_configs("Cookie jar", "Score battle", "Quick math", "Daily practice"),
        ),
        ProblemTemplate(
            template_id="multiplication_basic",
            category=ARITHMETIC,
            operation="multiplication",
            text="What is {a} × {b}?",
            variables=(
                VariableSpec("a", integer, _ranges((1, 5), (5, 10), (10, 15), (15, 20))),
                VariableSpec("b", integer, _ranges((1, 5), (5, 10), (10, 15), (15, 20))),
            ),
            concepts=("multiplication", "times tables"),
            prerequisites=("repeated addition",),
            age_configs=_age_configs("Magic garden", "Power-up", "Quick math", "Daily practice"),
        ),
        ProblemTemplate(
            template_id="division_basic",
            category=ARITHMETIC,
            operation="division",
            text="What is {a} ÷ {b}?",
            variables=(
                VariableSpec("a", integer, _ranges((2, 20), (20, 100), (100, 300), (300, 1000))),
                VariableSpec("b", integer, _ranges((1, 5), (2, 10), (3, 12), (5, 25))),
            ),
            concepts=("division", "times tables"),
            prerequisites=("multiplication",),
            age_configs=_age_configs("Pizza party", "Loot split", "Quick math", "Daily practice"),
        ),
        ProblemTemplate(
            template_id="decimal_addition",
            category=DECIMALS,
            operation="addition",
            text="What is {a} + {b}?",
            variables=(
                VariableSpec("a", decimal, _ranges((0.1, 5.0), (1.0, 20.0), (10.0, 100.0), (50.0, 500.0))),
                VariableSpec("b", decimal, _ranges((0.1, 5.0), (1.0, 20.0), (10.0, 100.0), (50.0, 500.0))),
            ),
            concepts=("addition", "decimals"),
            prerequisites=("basic addition", "place value"),
            age_configs=_age_configs("Piggy bank", "Shopping spree", "Budget check", "Market day"),
        ),
        ProblemTemplate(
            template_id="multiplication_word_problem",
            category=WORD_PROBLEMS,
            operation="multiplication",
            text="A box holds {a} apples. How many apples are there in {b} boxes?",
            variables=(
                VariableSpec("a", integer, _ranges((2, 5), (4, 12), (10, 25), (20, 50))),
                VariableSpec("b", integer, _ranges((2, 5), (3, 10), (8, 20), (15, 40))),
            ),
            concepts=("multiplication", "reading comprehension", "modeling"),
            prerequisites=("multiplication", "reading"),
            age_configs=_age_configs("Farm", "Market", "Inventory", "Garden"),
        ),
    ]
