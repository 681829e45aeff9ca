"""Ride recommendation strategies, ranking and preference analysis."""

from unittest.mock import AsyncMock

import pytest

from unipool.domain.entities import Booking
from unipool.domain.errors import PersistenceError
from unipool.domain.recommendation import (
    PreferenceProfile,
    ProximityRatingScoring,
    SmartPreferences,
    SmartScoring,
    analyze_preferences,
    rank_rides,
)
from unipool.domain.enums import Role
from unipool.services.recommendations import RecommendationEngine


@pytest.fixture
def engine(store, clock) -> RecommendationEngine:
    return RecommendationEngine(store, clock=clock, campus_destination="FCC")


class TestProximityRatingScoring:
    def test_better_rated_driver_wins(self, clock, make_ride, make_user):
        good = make_user("d_good", Role.DRIVER, (5, 5, 5))
        fair = make_user("d_fair", Role.DRIVER, (3, 3, 3))
        rides = [
            make_ride("r_fair", 10, driver_id="d_fair"),
            make_ride("r_good", 10, driver_id="d_good"),
        ]
        ranked = rank_rides(
            rides, {u.id: u for u in (good, fair)}, ProximityRatingScoring(), clock.now
        )
        assert [s.ride.id for s in ranked] == ["r_good", "r_fair"]
        assert ranked[0].score == pytest.approx(0.7 * 5 + 0.3 / 10)
        assert ranked[1].score == pytest.approx(0.7 * 3 + 0.3 / 10)

    def test_unrated_driver_scores_zero_rating(self, clock, make_ride):
        ranked = rank_rides([make_ride("r1", 10)], {}, ProximityRatingScoring(), clock.now)
        assert ranked[0].score == pytest.approx(0.3 / 10)

    def test_candidate_filters(self, clock, make_ride):
        rides = [
            make_ride("ok", 20),
            make_ride("elsewhere", 20, dropoff="Mall"),
            make_ride("full", 20, available=0),
            make_ride("too_late", 31),
            make_ride("just_left", -20),
        ]
        ranked = rank_rides(rides, {}, ProximityRatingScoring(), clock.now)
        assert {s.ride.id for s in ranked} == {"ok", "just_left"}

    def test_departure_now_has_finite_score(self, clock, make_ride):
        ranked = rank_rides([make_ride("r1", 0)], {}, ProximityRatingScoring(), clock.now)
        assert ranked[0].score == pytest.approx(0.3 * 60)

    def test_ties_keep_store_order(self, clock, make_ride):
        rides = [make_ride("a", 15), make_ride("b", 15), make_ride("c", 15)]
        ranked = rank_rides(rides, {}, ProximityRatingScoring(), clock.now)
        assert [s.ride.id for s in ranked] == ["a", "b", "c"]


class TestSmartScoring:
    def test_cold_start_below_three_ratings(self, make_user):
        assert SmartScoring.driver_rating(make_user("d1", driver_scores=(5, 5))) == 3.0
        assert SmartScoring.driver_rating(make_user("d1", driver_scores=(5, 4, 3))) == 4.0
        assert SmartScoring.driver_rating(None) == 3.0

    def test_score_components(self, clock, make_ride):
        ride = make_ride("r1", 30, seats=4, available=2)
        ranked = rank_rides([ride], {}, SmartScoring(), clock.now)
        assert ranked[0].score == pytest.approx(0.5 * 3.0 + 0.3 * 0.5 + 0.2 * 0.5)

    def test_seat_score_saturates(self, clock, make_ride):
        ride = make_ride("r1", 0, seats=6)
        ranked = rank_rides([ride], {}, SmartScoring(), clock.now)
        assert ranked[0].score == pytest.approx(0.5 * 3.0 + 0.3 + 0.2)

    def test_window_and_seats(self, clock, make_ride):
        rides = [
            make_ride("in", 55, dropoff="Mall"),
            make_ride("out", 61),
            make_ride("full", 5, available=0),
        ]
        ranked = rank_rides(rides, {}, SmartScoring(), clock.now)
        assert [s.ride.id for s in ranked] == ["in"]

    def test_preference_filters(self, clock, make_ride):
        rides = [make_ride("fcc_soon", 10), make_ride("fcc_late", 40), make_ride("mall", 10, dropoff="Mall")]
        strategy = SmartScoring(SmartPreferences(destination="FCC", max_time=20))
        ranked = rank_rides(rides, {}, strategy, clock.now)
        assert [s.ride.id for s in ranked] == ["fcc_soon"]

    def test_zero_max_time_means_no_limit(self, clock, make_ride):
        rides = [make_ride("soon", 5), make_ride("later", 50)]
        strategy = SmartScoring(SmartPreferences(max_time=0))
        ranked = rank_rides(rides, {}, strategy, clock.now)
        assert [s.ride.id for s in ranked] == ["soon", "later"]

    def test_limit(self, clock, make_ride):
        rides = [make_ride(f"r{i}", i * 4) for i in range(14)]
        ranked = rank_rides(rides, {}, SmartScoring(), clock.now, limit=10)
        assert len(ranked) == 10
        scores = [s.score for s in ranked]
        assert scores == sorted(scores, reverse=True)


class TestAnalyzePreferences:
    def test_first_seen_order(self, clock, make_ride):
        rides = {
            r.id: r
            for r in (
                make_ride("r1", 60, dropoff="FCC", driver_id="d1"),
                make_ride("r2", 180, dropoff="Mall", driver_id="d2"),
                make_ride("r3", 60, dropoff="FCC", driver_id="d1"),
            )
        }
        bookings = [
            Booking(id=f"b{i}", ride_id=rid, rider_id="u1", driver_id=driver_id)
            for i, (rid, driver_id) in enumerate(
                (("r1", "d1"), ("r2", "d2"), ("r3", "d1"), ("missing", "dx"))
            )
        ]
        profile = analyze_preferences(bookings, rides)
        assert profile.favorite_destinations == ["FCC", "Mall"]
        assert profile.preferred_times == [13, 15]
        assert profile.favorite_drivers == ["d1", "d2"]

    def test_no_bookings(self):
        assert analyze_preferences([], {}) == PreferenceProfile()


class TestRecommendationEngine:
    @pytest.mark.asyncio
    async def test_basic_reflects_store(self, engine, seed, make_ride, make_user):
        await seed(
            users=(make_user("u1"), make_user("d1", Role.DRIVER, (4, 4))),
            rides=(make_ride("r1", 10), make_ride("r2", 50)),
        )
        results = await engine.get_basic_recommendations("u1")
        assert [s.ride.id for s in results] == ["r1"]
        assert results[0].minutes_from_now == pytest.approx(10)

    @pytest.mark.asyncio
    async def test_smart_returns_top_ten(self, engine, seed, make_ride, make_user):
        await seed(
            users=(make_user("u1"),),
            rides=tuple(make_ride(f"r{i}", 2 + i * 3) for i in range(15)),
        )
        results = await engine.get_smart_recommendations("u1")
        assert len(results) == 10
        assert results[0].ride.id == "r0"

    @pytest.mark.asyncio
    async def test_smart_with_preferences(self, engine, seed, make_ride, make_user):
        await seed(
            users=(make_user("u1"),),
            rides=(make_ride("r1", 10, dropoff="Mall"), make_ride("r2", 10)),
        )
        results = await engine.get_smart_recommendations(
            "u1", SmartPreferences(destination="Mall")
        )
        assert [s.ride.id for s in results] == ["r1"]

    @pytest.mark.asyncio
    async def test_unknown_user_gets_nothing(self, engine, seed, make_ride):
        await seed(rides=(make_ride("r1", 10),))
        assert await engine.get_basic_recommendations("ghost") == []
        assert await engine.get_smart_recommendations("ghost") == []
        assert await engine.analyze_preferences("ghost") == PreferenceProfile()

    @pytest.mark.asyncio
    async def test_empty_store(self, engine):
        assert await engine.get_basic_recommendations("u1") == []

    @pytest.mark.asyncio
    async def test_store_failure_gives_empty_results(self, engine, store, monkeypatch):
        monkeypatch.setattr(store, "load", AsyncMock(side_effect=PersistenceError("down")))
        assert await engine.get_smart_recommendations("u1") == []

    @pytest.mark.asyncio
    async def test_preferences_from_bookings(self, engine, seed, make_ride, make_user):
        await seed(
            users=(make_user("u1"),),
            rides=(make_ride("r1", 90, dropoff="FCC", driver_id="d7"),),
            bookings=(Booking(id="b1", ride_id="r1", rider_id="u1", driver_id="d7"),),
        )
        profile = await engine.analyze_preferences("u1")
        assert profile.favorite_destinations == ["FCC"]
        assert profile.preferred_times == [13]
        assert profile.favorite_drivers == ["d7"]
