"""
Personalization API Router

Per-user endpoints for session tracking, analytics queries, age detection,
adaptive problem generation and recommendations.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query

from adaptive_learning.api.dependencies import get_orchestrator
from adaptive_learning.api.handlers import APIResponse
from adaptive_learning.api.schemas import GenerationRequestIn, ProblemResponseIn, SequenceRequestIn
from adaptive_learning.common.enums import AgeGroup
from adaptive_learning.personalization.orchestrator import PersonalizationOrchestrator

router = APIRouter(prefix="/users/{user_id}", tags=["Personalization"])


@router.post("/sessions/start")
async def start_session(
    orchestrator: PersonalizationOrchestrator = Depends(get_orchestrator)
) -> Dict[str, Any]:
    """Open a live session for the user."""
    session_id = orchestrator.start_session()
    return APIResponse.success({"session_id": session_id}, "Session started")


@router.post("/sessions/responses")
async def record_response(
    payload: ProblemResponseIn,
    orchestrator: PersonalizationOrchestrator = Depends(get_orchestrator)
) -> Dict[str, Any]:
    """Record one answer in the live session."""
    feedback = orchestrator.record_problem_response(payload.to_event(), level=payload.level)
    return APIResponse.success(feedback, "Response recorded")


@router.post("/sessions/end")
async def end_session(
    orchestrator: PersonalizationOrchestrator = Depends(get_orchestrator)
) -> Dict[str, Any]:
    """Finalize the live session."""
    session = await orchestrator.end_session()
    return APIResponse.success(session, "Session ended")


@router.get("/progress")
async def get_progress(
    orchestrator: PersonalizationOrchestrator = Depends(get_orchestrator)
) -> Dict[str, Any]:
    return APIResponse.success(await orchestrator.get_progress())


@router.get("/difficulty")
async def get_difficulty(
    orchestrator: PersonalizationOrchestrator = Depends(get_orchestrator)
) -> Dict[str, Any]:
    """Difficulty counter snapshot with the current modifiers."""
    controller = orchestrator.controller
    return APIResponse.success({
        "stats": controller.get_performance_stats(),
        "modifiers": controller.get_difficulty_modifiers(),
        "encouragement": controller.get_encouragement_message(),
    })


@router.get("/insights")
async def get_insights(
    age_group: Optional[AgeGroup] = Query(None, description="Tailor actions to an age group"),
    orchestrator: PersonalizationOrchestrator = Depends(get_orchestrator)
) -> Dict[str, Any]:
    return APIResponse.success(await orchestrator.generate_insights(age_group))


@router.get("/trends")
async def get_trends(
    orchestrator: PersonalizationOrchestrator = Depends(get_orchestrator)
) -> Dict[str, Any]:
    return APIResponse.success(await orchestrator.get_performance_trends())


@router.get("/metrics")
async def get_metrics(
    orchestrator: PersonalizationOrchestrator = Depends(get_orchestrator)
) -> Dict[str, Any]:
    return APIResponse.success(await orchestrator.get_personalized_metrics())


@router.post("/age-detection")
async def detect_age_group(
    orchestrator: PersonalizationOrchestrator = Depends(get_orchestrator)
) -> Dict[str, Any]:
    """Run age detection on recent history and store the result."""
    result = await orchestrator.detect_age_group()
    return APIResponse.success(result, "Age group detected")


@router.get("/age-detection")
async def get_age_detection(
    orchestrator: PersonalizationOrchestrator = Depends(get_orchestrator)
) -> Dict[str, Any]:
    """The stored detection, or the default one."""
    return APIResponse.success(await orchestrator.age_detection.load_previous())


@router.post("/problems")
async def generate_problem(
    payload: GenerationRequestIn,
    user_id: str,
    orchestrator: PersonalizationOrchestrator = Depends(get_orchestrator)
) -> Dict[str, Any]:
    """Generate one adaptive problem."""
    problem = await orchestrator.generate_adaptive_problem(payload.to_request(user_id))
    return APIResponse.success(problem)


@router.post("/problems/sequence")
async def generate_sequence(
    payload: SequenceRequestIn,
    user_id: str,
    orchestrator: PersonalizationOrchestrator = Depends(get_orchestrator)
) -> Dict[str, Any]:
    """Generate a full session of problems."""
    problems = await orchestrator.generate_session_sequence(payload.to_request(user_id), payload.count)
    return APIResponse.success(problems)


@router.get("/recommendations")
async def get_recommendations(
    age_group: Optional[AgeGroup] = Query(None, description="Age group; stored detection when omitted"),
    orchestrator: PersonalizationOrchestrator = Depends(get_orchestrator)
) -> Dict[str, Any]:
    recommendations = await orchestrator.generate_personalized_recommendations(age_group)
    return APIResponse.success(recommendations)


@router.post("/recommendations/{recommendation_id}/implemented")
async def mark_recommendation_implemented(
    recommendation_id: str,
    orchestrator: PersonalizationOrchestrator = Depends(get_orchestrator)
) -> Dict[str, Any]:
    stored = await orchestrator.mark_recommendation_implemented(recommendation_id)
    return APIResponse.success({"id": recommendation_id, "stored": stored},
                               "Recommendation marked as implemented")
