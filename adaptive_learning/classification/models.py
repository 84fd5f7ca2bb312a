"""
Age Detection Models

Behavioral indicators derived from play history and the age detection
result produced from them.
"""

import enum
from typing import Dict, List, Any
from dataclasses import dataclass, field

from adaptive_learning.common.enums import AgeGroup


class NavigationStyle(enum.Enum):
    """How a player moves through content."""
    DIRECT = "direct"
    EXPLORATIVE = "explorative"
    SYSTEMATIC = "systematic"


class HelpSeeking(enum.Enum):
    """How often a player leans on help."""
    FREQUENT = "frequent"
    MODERATE = "moderate"
    MINIMAL = "minimal"


class SessionLength(enum.Enum):
    """Bucket for mean session duration."""
    SHORT = "short"
    MEDIUM = "medium"
    LONG = "long"

    @classmethod
    def from_minutes(cls, minutes: float) -> 'SessionLength':
        """Bucket a mean session duration in minutes."""
        if minutes < 10:
            return cls.SHORT
        elif minutes < 25:
            return cls.MEDIUM
        return cls.LONG


@dataclass
class BehavioralIndicators:
    """Summary statistics used as classifier inputs. Never persisted on their own."""

    attention_span: float = 0.5
    response_speed: float = 20.0
    error_patterns: List[str] = field(default_factory=list)
    navigation_style: NavigationStyle = NavigationStyle.SYSTEMATIC
    help_seeking_behavior: HelpSeeking = HelpSeeking.MODERATE
    session_length: SessionLength = SessionLength.MEDIUM

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "attention_span": self.attention_span,
            "response_speed": self.response_speed,
            "error_patterns": list(self.error_patterns),
            "navigation_style": self.navigation_style.value,
            "help_seeking_behavior": self.help_seeking_behavior.value,
            "session_length": self.session_length.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BehavioralIndicators':
        """Create from dictionary."""
        return cls(
            attention_span=data.get("attention_span", 0.5),
            response_speed=data.get("response_speed", 20.0),
            error_patterns=list(data.get("error_patterns", [])),
            navigation_style=NavigationStyle(
                data.get("navigation_style", NavigationStyle.SYSTEMATIC.value)
            ),
            help_seeking_behavior=HelpSeeking(
                data.get("help_seeking_behavior", HelpSeeking.MODERATE.value)
            ),
            session_length=SessionLength(
                data.get("session_length", SessionLength.MEDIUM.value)
            ),
        )


@dataclass
class AgeDetectionResult:
    """Predicted age bracket with confidence, reasoning and the indicators behind it."""

    predicted_age_group: AgeGroup
    confidence: float
    reasoning: List[str] = field(default_factory=list)
    behavioral_indicators: BehavioralIndicators = field(default_factory=BehavioralIndicators)
    scores: Dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "predicted_age_group": self.predicted_age_group.value,
            "confidence": self.confidence,
            "reasoning": list(self.reasoning),
            "behavioral_indicators": self.behavioral_indicators.to_dict(),
            "scores": dict(self.scores),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AgeDetectionResult':
        """Create from dictionary."""
        return cls(
            predicted_age_group=AgeGroup(data["predicted_age_group"]),
            confidence=data["confidence"],
            reasoning=list(data.get("reasoning", [])),
            behavioral_indicators=BehavioralIndicators.from_dict(
                data.get("behavioral_indicators") or {}
            ),
            scores=dict(data.get("scores", {})),
        )
