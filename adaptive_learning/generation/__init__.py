"""
Problem Generation

Template catalog, generation request and problem models and the template
engine that renders them.
"""

from adaptive_learning.generation.models import (
    AdaptiveFactors, AdaptiveGoals, AgeGroupConfig, GeneratedProblem, GenerationPreferences,
    GenerationStrategy, ProblemGenerationRequest, ProblemMetadata, ProblemTemplate,
    SessionContext, StrategyType, SupportLevel, VariableSpec, VariableType
)
from adaptive_learning.generation.catalog import default_templates, AGE_LOAD_CEILINGS
from adaptive_learning.generation.engine import ProblemTemplateEngine, format_number, compute_answer

__all__ = [
    'AdaptiveFactors', 'AdaptiveGoals', 'AgeGroupConfig', 'GeneratedProblem',
    'GenerationPreferences', 'GenerationStrategy', 'ProblemGenerationRequest',
    'ProblemMetadata', 'ProblemTemplate', 'SessionContext', 'StrategyType', 'SupportLevel',
    'VariableSpec', 'VariableType', 'default_templates', 'AGE_LOAD_CEILINGS',
    'ProblemTemplateEngine', 'format_number', 'compute_answer',
]
