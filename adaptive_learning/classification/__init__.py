"""
Age Group Classification

Behavioral indicators, the weighted age group classifier and the detection
service that persists its results.
"""

from adaptive_learning.classification.models import (
    AgeDetectionResult, BehavioralIndicators, HelpSeeking, NavigationStyle, SessionLength
)
from adaptive_learning.classification.age_detection import (
    AgeGroupClassifier, AgeDetectionService, default_detection
)

__all__ = [
    'AgeDetectionResult', 'BehavioralIndicators', 'HelpSeeking', 'NavigationStyle',
    'SessionLength', 'AgeGroupClassifier', 'AgeDetectionService', 'default_detection',
]
