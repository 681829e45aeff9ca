"""
User endpoints
==============

POST /api/v1/users                      -- register (demo, no password)
GET  /api/v1/users/{user_id}            -- profile with rating ledgers
PATCH /api/v1/users/{user_id}           -- rename, merge preferences
POST /api/v1/users/{user_id}/ratings    -- rate a driver or rider
GET  /api/v1/users/{user_id}/ratings    -- one ledger with its average
GET  /api/v1/users/{user_id}/stats      -- profile statistics
GET  /api/v1/users/{user_id}/history    -- rides driven and booked
GET  /api/v1/users/{user_id}/bookings   -- bookings made as rider
GET  /api/v1/users/{user_id}/rides      -- rides offered as driver
"""

from fastapi import APIRouter, Depends, HTTPException, Request

from unipool.api.dependencies import get_profile_service
from unipool.api.middleware import limiter, simulated_latency
from unipool.api.schemas import (
    BookingResponse,
    ErrorResponse,
    HistoryEntryResponse,
    RatingRequest,
    RatingResponse,
    RatingsResponse,
    RideResponse,
    UserCreateRequest,
    UserResponse,
    UserUpdateRequest,
    UserStatsResponse,
)
from unipool.domain.enums import HistoryKind, RatingCategory
from unipool.services.profiles import ProfileService

router = APIRouter(prefix="/users", tags=["users"])


@router.post("", status_code=201, response_model=UserResponse, summary="Register")
@limiter.limit("100/minute")
@simulated_latency
async def register_user(
    request: Request,
    body: UserCreateRequest,
    profiles: ProfileService = Depends(get_profile_service),
):
    return await profiles.register_user(body.name, body.email, body.role)


@router.get(
    "/{user_id}",
    response_model=UserResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Get a user",
)
@limiter.limit("100/minute")
@simulated_latency
async def get_user(
    request: Request,
    user_id: str,
    profiles: ProfileService = Depends(get_profile_service),
):
    user = await profiles.get_user(user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.patch(
    "/{user_id}",
    response_model=UserResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Update name or preferences",
    description="Supplied preference keys are merged into the stored ones.",
)
@limiter.limit("100/minute")
@simulated_latency
async def update_user(
    request: Request,
    user_id: str,
    body: UserUpdateRequest,
    profiles: ProfileService = Depends(get_profile_service),
):
    return await profiles.update_profile(user_id, body.name, body.preferences)


@router.post(
    "/{user_id}/ratings",
    response_model=UserResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Rate a user",
    description="A second rating from the same rater replaces the first.",
)
@limiter.limit("100/minute")
@simulated_latency
async def submit_rating(
    request: Request,
    user_id: str,
    body: RatingRequest,
    profiles: ProfileService = Depends(get_profile_service),
):
    return await profiles.submit_rating(
        user_id, body.rater_id, body.category, body.score, body.review
    )


@router.get(
    "/{user_id}/ratings",
    response_model=RatingsResponse,
    summary="List ratings in one category",
)
@limiter.limit("100/minute")
@simulated_latency
async def get_ratings(
    request: Request,
    user_id: str,
    category: RatingCategory = RatingCategory.DRIVER,
    profiles: ProfileService = Depends(get_profile_service),
):
    ratings = await profiles.get_user_ratings(user_id, category)
    return RatingsResponse(
        category=category,
        average=await profiles.get_average_rating(user_id, category),
        ratings=[RatingResponse.model_validate(r) for r in ratings],
    )


@router.get(
    "/{user_id}/stats",
    response_model=UserStatsResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Profile statistics",
)
@limiter.limit("100/minute")
@simulated_latency
async def get_stats(
    request: Request,
    user_id: str,
    profiles: ProfileService = Depends(get_profile_service),
):
    return await profiles.get_user_stats(user_id)


@router.get(
    "/{user_id}/history",
    response_model=list[HistoryEntryResponse],
    summary="Ride history, newest first",
)
@limiter.limit("100/minute")
@simulated_latency
async def get_history(
    request: Request,
    user_id: str,
    kind: HistoryKind = HistoryKind.ALL,
    profiles: ProfileService = Depends(get_profile_service),
):
    return await profiles.get_ride_history(user_id, kind)


@router.get(
    "/{user_id}/bookings",
    response_model=list[BookingResponse],
    summary="Bookings made as rider",
)
@limiter.limit("100/minute")
@simulated_latency
async def get_bookings(
    request: Request,
    user_id: str,
    profiles: ProfileService = Depends(get_profile_service),
):
    return await profiles.get_user_bookings(user_id)


@router.get(
    "/{user_id}/rides",
    response_model=list[RideResponse],
    summary="Rides offered as driver",
)
@limiter.limit("100/minute")
@simulated_latency
async def get_driver_rides(
    request: Request,
    user_id: str,
    profiles: ProfileService = Depends(get_profile_service),
):
    return await profiles.get_driver_rides(user_id)
