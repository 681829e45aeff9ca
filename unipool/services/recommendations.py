"""Per-user ride recommendations and booking-history preference analysis."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional

from unipool.config import settings
from unipool.domain.entities import Snapshot, utcnow
from unipool.domain.errors import PersistenceError
from unipool.domain.recommendation import (
    SMART_RESULT_LIMIT,
    PreferenceProfile,
    ProximityRatingScoring,
    ScoredRide,
    SmartPreferences,
    SmartScoring,
    analyze_preferences,
    rank_rides,
)
from unipool.infrastructure.store import Store

logger = logging.getLogger(__name__)


class RecommendationEngine:
    """Read-only; every call reflects the store as it is at call time."""

    def __init__(
        self,
        store: Store,
        clock: Callable[[], datetime] = utcnow,
        campus_destination: str = settings.campus_destination,
    ):
        self.store = store
        self.clock = clock
        self.campus_destination = campus_destination

    async def _snapshot_for(self, user_id: str) -> Optional[Snapshot]:
        """The current snapshot, or None if the user is unknown or the store is down."""
        try:
            snapshot = await self.store.load()
        except PersistenceError:
            logger.warning("Recommendations served empty: store unavailable")
            return None
        if snapshot.find_user(user_id) is None:
            return None
        return snapshot

    async def get_basic_recommendations(self, user_id: str) -> list[ScoredRide]:
        snapshot = await self._snapshot_for(user_id)
        if snapshot is None:
            return []
        return rank_rides(
            snapshot.rides,
            {u.id: u for u in snapshot.users},
            ProximityRatingScoring(self.campus_destination),
            self.clock(),
        )

    async def get_smart_recommendations(
        self, user_id: str, preferences: Optional[SmartPreferences] = None
    ) -> list[ScoredRide]:
        snapshot = await self._snapshot_for(user_id)
        if snapshot is None:
            return []
        return rank_rides(
            snapshot.rides,
            {u.id: u for u in snapshot.users},
            SmartScoring(preferences),
            self.clock(),
            limit=SMART_RESULT_LIMIT,
        )

    async def analyze_preferences(self, user_id: str) -> PreferenceProfile:
        snapshot = await self._snapshot_for(user_id)
        if snapshot is None:
            return PreferenceProfile()
        return analyze_preferences(
            snapshot.bookings_for_rider(user_id),
            {r.id: r for r in snapshot.rides},
        )
