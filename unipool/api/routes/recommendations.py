"""
Recommendation endpoints
========================

GET  /api/v1/users/{user_id}/recommendations        -- campus rides, soonest + best rated
POST /api/v1/users/{user_id}/recommendations/smart  -- preference-aware top 10
GET  /api/v1/users/{user_id}/preferences            -- derived from booking history

Unknown users get empty results, not 404.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Request

from unipool.api.dependencies import get_recommendation_engine
from unipool.api.middleware import limiter, simulated_latency
from unipool.api.schemas import (
    PreferenceProfileResponse,
    ScoredRideResponse,
    SmartPreferencesRequest,
)
from unipool.domain.recommendation import SmartPreferences
from unipool.services.recommendations import RecommendationEngine

router = APIRouter(prefix="/users", tags=["recommendations"])


@router.get(
    "/{user_id}/recommendations",
    response_model=list[ScoredRideResponse],
    summary="Basic recommendations",
)
@limiter.limit("100/minute")
@simulated_latency
async def get_recommendations(
    request: Request,
    user_id: str,
    engine: RecommendationEngine = Depends(get_recommendation_engine),
):
    return await engine.get_basic_recommendations(user_id)


@router.post(
    "/{user_id}/recommendations/smart",
    response_model=list[ScoredRideResponse],
    summary="Smart recommendations",
)
@limiter.limit("100/minute")
@simulated_latency
async def get_smart_recommendations(
    request: Request,
    user_id: str,
    body: Optional[SmartPreferencesRequest] = None,
    engine: RecommendationEngine = Depends(get_recommendation_engine),
):
    preferences = (
        SmartPreferences(destination=body.destination, max_time=body.max_time)
        if body
        else None
    )
    return await engine.get_smart_recommendations(user_id, preferences)


@router.get(
    "/{user_id}/preferences",
    response_model=PreferenceProfileResponse,
    summary="Preferences derived from booking history",
)
@limiter.limit("100/minute")
@simulated_latency
async def get_preferences(
    request: Request,
    user_id: str,
    engine: RecommendationEngine = Depends(get_recommendation_engine),
):
    return await engine.analyze_preferences(user_id)
