"""
Adaptive Learning Personalization Engine

Personalizes a math-practice experience from observed play behavior:
1. Performance tracking of live sessions with persisted history
2. Trends, insights and personalized metrics over that history
3. Age group detection from behavioral indicators
4. A continuously updated adaptive difficulty counter
5. Template-based adaptive problem generation and session planning
6. Personalized recommendations, and a FastAPI surface over all of it
"""

__version__ = "1.0.0"
