"""Pydantic request / response schemas for the REST API."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field

from unipool.domain.entities import MAX_REVIEW_LENGTH
from unipool.domain.enums import BookingStatus, RatingCategory, Role

Weekday = Literal["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]


class RecurringSchema(BaseModel):
    enabled: bool = False
    days: list[Weekday] = []

    model_config = {"from_attributes": True}


# ── Requests ──────────────────────────────────────────────────────────


class RideCreateRequest(BaseModel):
    driver_id: str
    pickup: str = Field(..., min_length=1, max_length=200)
    dropoff: str = Field(..., min_length=1, max_length=200)
    departure_time: datetime
    seats: int = Field(..., ge=1)
    recurring: Optional[RecurringSchema] = None


class BookingRequest(BaseModel):
    rider_id: str
    pickup_point: Optional[str] = Field(None, max_length=200)


class CancelRequest(BaseModel):
    rider_id: str


class SmartPreferencesRequest(BaseModel):
    destination: Optional[str] = None
    max_time: Optional[float] = Field(
        None, gt=0, description="Latest acceptable departure, in minutes from now."
    )


class UserCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    email: str = Field(..., min_length=3, max_length=255)
    role: Role = Role.RIDER


class UserUpdateRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=120)
    preferences: Optional[dict[str, Any]] = None


class RatingRequest(BaseModel):
    rater_id: str
    category: RatingCategory
    score: int = Field(..., ge=1, le=5)
    review: Optional[str] = Field(None, max_length=MAX_REVIEW_LENGTH)


# ── Responses ─────────────────────────────────────────────────────────


class RideResponse(BaseModel):
    id: str
    pickup: str
    dropoff: str
    departure_time: datetime
    driver_id: str
    seats: int
    available_seats: int
    booking_ids: list[str] = []
    recurring: Optional[RecurringSchema] = None
    is_recurring: bool = False
    parent_ride_id: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class BookingResponse(BaseModel):
    id: str
    ride_id: str
    rider_id: str
    driver_id: str
    status: BookingStatus
    pickup_point: str
    booking_time: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class CancelResponse(BaseModel):
    cancelled: bool


class ScoredRideResponse(BaseModel):
    ride: RideResponse
    score: float
    minutes_from_now: float

    model_config = {"from_attributes": True}


class PreferenceProfileResponse(BaseModel):
    favorite_destinations: list[str] = []
    preferred_times: list[int] = []
    favorite_drivers: list[str] = []

    model_config = {"from_attributes": True}


class RatingResponse(BaseModel):
    rating: int
    rater_id: Optional[str] = None
    review: str = ""
    timestamp: Optional[datetime] = None

    model_config = {"from_attributes": True}


class RatingLedgerResponse(BaseModel):
    driver: list[RatingResponse] = []
    rider: list[RatingResponse] = []

    model_config = {"from_attributes": True}


class UserResponse(BaseModel):
    id: str
    name: str
    email: str
    role: Role
    ratings: RatingLedgerResponse
    preferences: dict[str, Any] = {}
    ride_history: list[str] = []
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class RatingsResponse(BaseModel):
    category: RatingCategory
    average: Optional[float] = None
    ratings: list[RatingResponse] = []


class UserStatsResponse(BaseModel):
    total_rides_as_driver: int
    total_rides_as_rider: int
    total_rides: int
    average_driver_rating: Optional[float] = None
    average_rider_rating: Optional[float] = None
    member_since: Optional[datetime] = None

    model_config = {"from_attributes": True}


class HistoryEntryResponse(BaseModel):
    ride: RideResponse
    role: Role
    booking_id: Optional[str] = None
    booking_status: Optional[BookingStatus] = None

    model_config = {"from_attributes": True}


class ValidationReportResponse(BaseModel):
    valid: bool
    errors: list[str] = []


class CleanupResponse(BaseModel):
    removed: int


class HealthResponse(BaseModel):
    status: str = "ok"


class ErrorResponse(BaseModel):
    detail: str
