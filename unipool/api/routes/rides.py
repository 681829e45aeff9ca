"""
Ride endpoints
==============

GET  /api/v1/rides                     -- search (pickup, dropoff, time, id)
POST /api/v1/rides                     -- post a ride (optionally recurring)
GET  /api/v1/rides/{ride_id}           -- fetch one ride
POST /api/v1/rides/{ride_id}/bookings  -- book a seat
POST /api/v1/rides/{ride_id}/cancel    -- cancel the rider's booking
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request

from unipool.api.dependencies import get_booking_engine, get_ride_search
from unipool.api.middleware import limiter, simulated_latency
from unipool.api.schemas import (
    BookingRequest,
    BookingResponse,
    CancelRequest,
    CancelResponse,
    ErrorResponse,
    RideCreateRequest,
    RideResponse,
)
from unipool.domain.entities import RecurrenceRule
from unipool.domain.search import RideFilters
from unipool.services.booking import BookingEngine, RideSpec
from unipool.services.search import RideSearch

router = APIRouter(prefix="/rides", tags=["rides"])


@router.get("", response_model=list[RideResponse], summary="Search rides")
@limiter.limit("100/minute")
@simulated_latency
async def search_rides(
    request: Request,
    pickup: Optional[str] = None,
    dropoff: Optional[str] = None,
    time: Optional[datetime] = None,
    id: Optional[str] = None,
    search: RideSearch = Depends(get_ride_search),
):
    return await search.search_rides(
        RideFilters(pickup=pickup, dropoff=dropoff, time=time, id=id)
    )


@router.post(
    "",
    status_code=201,
    response_model=RideResponse,
    summary="Post a ride",
    description=(
        "Creates the ride and, when ``recurring.enabled`` is set, one instance "
        "for each selected weekday in the next 7 days.  Returns the base ride."
    ),
)
@limiter.limit("100/minute")
@simulated_latency
async def create_ride(
    request: Request,
    body: RideCreateRequest,
    engine: BookingEngine = Depends(get_booking_engine),
):
    recurring = (
        RecurrenceRule(enabled=body.recurring.enabled, days=list(body.recurring.days))
        if body.recurring
        else None
    )
    return await engine.create_ride(
        RideSpec(
            driver_id=body.driver_id,
            pickup=body.pickup,
            dropoff=body.dropoff,
            departure_time=body.departure_time,
            seats=body.seats,
            recurring=recurring,
        )
    )


@router.get(
    "/{ride_id}",
    response_model=RideResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Get a ride",
)
@limiter.limit("100/minute")
@simulated_latency
async def get_ride(
    request: Request,
    ride_id: str,
    search: RideSearch = Depends(get_ride_search),
):
    ride = await search.find_ride(ride_id)
    if not ride:
        raise HTTPException(status_code=404, detail="Ride not found")
    return ride


@router.post(
    "/{ride_id}/bookings",
    status_code=201,
    response_model=BookingResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
    summary="Book a seat",
)
@limiter.limit("100/minute")
@simulated_latency
async def book_ride(
    request: Request,
    ride_id: str,
    body: BookingRequest,
    engine: BookingEngine = Depends(get_booking_engine),
):
    return await engine.book_ride(ride_id, body.rider_id, body.pickup_point)


@router.post(
    "/{ride_id}/cancel",
    response_model=CancelResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Cancel a booking",
    description=(
        "Cancels the rider's confirmed booking and frees the seat.  Cancelling "
        "less than 60 minutes before departure adds a late-cancellation rating."
    ),
)
@limiter.limit("100/minute")
@simulated_latency
async def cancel_booking(
    request: Request,
    ride_id: str,
    body: CancelRequest,
    engine: BookingEngine = Depends(get_booking_engine),
):
    if not await engine.cancel_booking(ride_id, body.rider_id):
        raise HTTPException(status_code=404, detail="No active booking found")
    return CancelResponse(cancelled=True)
