"""
Seed script -- populates the local store with demo data.

Run once (the table is created if missing):
    python seed.py

Creates:
  - 6 campus users (3 drivers, 3 riders) with a few driver ratings
  - 6 rides to and from FCC departing over the next two hours
  - 2 confirmed bookings
"""

import asyncio
from datetime import timedelta

from unipool.domain.entities import (
    Booking,
    RatingRecord,
    Ride,
    Snapshot,
    User,
    utcnow,
)
from unipool.domain.enums import RatingCategory, Role
from unipool.infrastructure.database import async_session_factory, engine
from unipool.infrastructure.models import create_tables
from unipool.infrastructure.redis_client import close_redis, get_redis
from unipool.infrastructure.store import Store

USERS = [
    {"id": "u1", "name": "Ali Khan", "email": "ali@fcccollege.edu.pk", "role": Role.DRIVER},
    {"id": "u2", "name": "Sara Ahmed", "email": "sara@fcccollege.edu.pk", "role": Role.RIDER},
    {"id": "u3", "name": "Hamza Raza", "email": "hamza@fcccollege.edu.pk", "role": Role.DRIVER},
    {"id": "u4", "name": "Ayesha Malik", "email": "ayesha@fcccollege.edu.pk", "role": Role.RIDER},
    {"id": "u5", "name": "Bilal Chaudhry", "email": "bilal@fcccollege.edu.pk", "role": Role.DRIVER},
    {"id": "u6", "name": "Zainab Hussain", "email": "zainab@fcccollege.edu.pk", "role": Role.RIDER},
]

# (driver id, rater id, score)
DRIVER_RATINGS = [
    ("u1", "u2", 5), ("u1", "u4", 5), ("u1", "u6", 4),
    ("u3", "u2", 3), ("u3", "u4", 4), ("u3", "u6", 3),
    ("u5", "u2", 4),
]

# (id, driver, pickup, dropoff, minutes from now, seats)
RIDES = [
    ("r1", "u1", "Gulberg III", "FCC", 10, 3),
    ("r2", "u3", "Model Town", "FCC", 20, 4),
    ("r3", "u5", "DHA Phase 5", "FCC", 25, 2),
    ("r4", "u1", "Johar Town", "FCC", 45, 4),
    ("r5", "u3", "FCC", "Liberty Market", 50, 3),
    ("r6", "u5", "FCC", "Township", 110, 2),
]

# (id, ride, rider)
BOOKINGS = [("b1", "r1", "u2"), ("b2", "r2", "u4")]


def build_snapshot() -> Snapshot:
    now = utcnow()
    users = {u["id"]: User(created_at=now, **u) for u in USERS}
    for driver_id, rater_id, score in DRIVER_RATINGS:
        users[driver_id].ratings.upsert(
            RatingCategory.DRIVER,
            RatingRecord(rating=score, rater_id=rater_id, timestamp=now),
        )

    rides = {
        ride_id: Ride(
            id=ride_id,
            pickup=pickup,
            dropoff=dropoff,
            departure_time=now + timedelta(minutes=minutes),
            driver_id=driver_id,
            seats=seats,
            created_at=now,
        )
        for ride_id, driver_id, pickup, dropoff, minutes, seats in RIDES
    }

    bookings = []
    for booking_id, ride_id, rider_id in BOOKINGS:
        ride = rides[ride_id]
        booking = Booking(
            id=booking_id,
            ride_id=ride_id,
            rider_id=rider_id,
            driver_id=ride.driver_id,
            pickup_point=ride.pickup,
            booking_time=now,
        )
        ride.reserve_seat(booking.id)
        users[rider_id].ride_history.append(ride_id)
        bookings.append(booking)

    return Snapshot(
        users=list(users.values()), rides=list(rides.values()), bookings=bookings
    )


async def seed():
    await create_tables(engine)
    store = Store(async_session_factory, await get_redis())

    # Check if already seeded
    existing = await store.load()
    if existing.users:
        print("Store already seeded. Skipping.")
        return

    snapshot = build_snapshot()
    await store.save(snapshot)
    print(f"  Created {len(snapshot.users)} users")
    print(f"  Created {len(snapshot.rides)} rides")
    print(f"  Created {len(snapshot.bookings)} bookings")
    print("\nSeed complete!")


async def main():
    print("Seeding store...")
    await seed()
    await close_redis()
    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
