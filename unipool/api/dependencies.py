"""FastAPI dependency injection helpers."""

from fastapi import Depends

from unipool.infrastructure.database import async_session_factory
from unipool.infrastructure.redis_client import get_redis
from unipool.infrastructure.store import Store
from unipool.services.booking import BookingEngine
from unipool.services.maintenance import MaintenanceService
from unipool.services.profiles import ProfileService
from unipool.services.recommendations import RecommendationEngine
from unipool.services.search import RideSearch


async def get_store() -> Store:
    """Store bound to the shared session factory and Redis pool."""
    return Store(async_session_factory, await get_redis())


def get_ride_search(store: Store = Depends(get_store)) -> RideSearch:
    return RideSearch(store)


def get_booking_engine(store: Store = Depends(get_store)) -> BookingEngine:
    return BookingEngine(store)


def get_recommendation_engine(
    store: Store = Depends(get_store),
) -> RecommendationEngine:
    return RecommendationEngine(store)


def get_profile_service(store: Store = Depends(get_store)) -> ProfileService:
    return ProfileService(store)


def get_maintenance_service(store: Store = Depends(get_store)) -> MaintenanceService:
    return MaintenanceService(store)
