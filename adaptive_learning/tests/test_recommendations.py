from unittest.mock import AsyncMock, patch

import pytest

from adaptive_learning.common.enums import AgeGroup, Priority
from adaptive_learning.performance.models import PersonalizedMetrics, TimeOfDay
from adaptive_learning.personalization.recommendations import (
    RecommendationEngine, RecommendationType, default_recommendation
)
from adaptive_learning.storage.repositories import RecommendationLedger


def engine_for(metrics, store):
    analytics = AsyncMock()
    analytics.get_personalized_metrics.return_value = metrics
    return RecommendationEngine(analytics, RecommendationLedger(store))


@pytest.fixture
def struggling():
    return PersonalizedMetrics(
        optimal_play_time=TimeOfDay.AFTERNOON,
        burnout_risk=0.8,
        engagement_level=0.2,
    )


class TestRecommendationEngine:

    @pytest.mark.asyncio
    async def test_high_priority_first(self, struggling, store):
        recommendations = await engine_for(struggling, store).generate(AgeGroup.KIDS)

        assert [r.recommendation_id for r in recommendations] == [
            "reduce_burnout", "boost_engagement", "kids_special",
            "optimize_timing", "age_specific_engagement",
        ]
        weights = [r.priority.weight for r in recommendations]
        assert weights == sorted(weights, reverse=True)
        assert all(r.age_group == AgeGroup.KIDS for r in recommendations)

    @pytest.mark.asyncio
    async def test_healthy_metrics(self, store):
        metrics = PersonalizedMetrics(engagement_level=0.8, burnout_risk=0.1)
        recommendations = await engine_for(metrics, store).generate(AgeGroup.TEENS)

        assert [r.recommendation_id for r in recommendations] == [
            "age_specific_engagement", "teens_special"
        ]
        assert recommendations[1].recommendation_type == RecommendationType.MOTIVATION

    @pytest.mark.asyncio
    async def test_empty_history_suggests_engagement(self, store):
        recommendations = await engine_for(PersonalizedMetrics(), store).generate(AgeGroup.ADULTS)
        ids = [r.recommendation_id for r in recommendations]
        assert "boost_engagement" in ids
        assert "reduce_burnout" not in ids
        assert "optimize_timing" not in ids

    @pytest.mark.asyncio
    async def test_timing_description_names_age_group(self, struggling, store):
        recommendations = await engine_for(struggling, store).generate(AgeGroup.SENIORS)
        timing = next(r for r in recommendations if r.recommendation_id == "optimize_timing")
        assert "(seniors)" in timing.description

    @pytest.mark.asyncio
    async def test_implemented_recommendations_are_skipped(self, struggling, store):
        engine = engine_for(struggling, store)
        assert await engine.mark_implemented("reduce_burnout")
        assert await engine.mark_implemented("kids_special")

        ids = [r.recommendation_id for r in await engine.generate(AgeGroup.KIDS)]
        assert "reduce_burnout" not in ids
        assert "kids_special" not in ids
        assert ids[0] == "boost_engagement"

    @pytest.mark.asyncio
    async def test_capped_at_eight(self, struggling, store):
        engine = engine_for(struggling, store)
        many = [default_recommendation(AgeGroup.ADULTS) for _ in range(12)]
        with patch.object(engine, "build", return_value=many):
            assert len(await engine.generate(AgeGroup.ADULTS)) == 8

    @pytest.mark.asyncio
    async def test_failure_returns_default(self, store):
        analytics = AsyncMock()
        analytics.get_personalized_metrics.side_effect = RuntimeError("boom")
        engine = RecommendationEngine(analytics, RecommendationLedger(store))

        recommendations = await engine.generate(AgeGroup.SENIORS)

        assert len(recommendations) == 1
        assert recommendations[0].recommendation_id == "default_rec"
        assert recommendations[0].age_group == AgeGroup.SENIORS

    def test_suggested_actions(self, struggling):
        engine = RecommendationEngine(AsyncMock(), AsyncMock())
        recommendations = engine.build(struggling, AgeGroup.SENIORS)
        actions = RecommendationEngine.suggested_actions(recommendations)

        assert [r.recommendation_id for r in actions] == [
            "reduce_burnout", "boost_engagement", "seniors_special"
        ]
        assert all(r.priority == Priority.HIGH for r in actions)

    def test_to_dict(self):
        data = default_recommendation(AgeGroup.KIDS).to_dict()
        assert data["id"] == "default_rec"
        assert data["type"] == "content"
        assert data["age_group"] == "kids"
