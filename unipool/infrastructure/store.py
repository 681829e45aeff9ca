"""
Store -- sole owner of the carpool document.

The entire state (``users``, ``rides``, ``bookings``) is one JSON document
kept under a single key of the ``kv_store`` table.  Reads load and decode
the whole snapshot; writes replace it wholesale.

* ``load`` never returns missing collections; an absent document decodes
  to an empty snapshot and invalid records are dropped one by one.
* Inside ``transaction`` an unreadable document (bad JSON, not an object)
  raises ``PersistenceError`` instead of being overwritten.
* ``save`` raises ``PersistenceError`` when the database rejects the write
  or the encoded document exceeds the configured quota.
* ``transaction`` wraps load -> mutate -> save in the distributed lock so
  mutations never interleave.
"""

from __future__ import annotations

import json
import logging
import math
import random
import time
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

import pydantic
import redis.asyncio as aioredis
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from .locks import DistributedLock, LockNotAcquired
from .models import KeyValueModel
from unipool.config import settings
from unipool.domain.entities import Booking, Ride, Snapshot, User
from unipool.domain.errors import CarpoolError, PersistenceError

logger = logging.getLogger(__name__)

_SNAPSHOT = pydantic.TypeAdapter(Snapshot)
_RECORDS: dict[str, pydantic.TypeAdapter] = {
    "users": pydantic.TypeAdapter(User),
    "rides": pydantic.TypeAdapter(Ride),
    "bookings": pydantic.TypeAdapter(Booking),
}
LEGACY_RATER_ID = "legacy"


def _migrate_legacy_ratings(users: list[Any]) -> int:
    """Rewrite bare-number ledger entries as rating records, in place.

    Scores are rounded half up to the nearest star; entries outside 1..5
    are dropped.
    """
    migrated = 0
    for user in users:
        if not isinstance(user, dict) or not isinstance(user.get("ratings"), dict):
            continue
        ledgers = user["ratings"]
        for category in ("driver", "rider"):
            entries = ledgers.get(category)
            if not isinstance(entries, list):
                continue
            kept = []
            for entry in entries:
                if isinstance(entry, (int, float)) and not isinstance(entry, bool):
                    score = math.floor(entry + 0.5)
                    if not 1 <= score <= 5:
                        logger.warning(
                            "Dropping legacy %s rating %r of user %r",
                            category, entry, user.get("id"),
                        )
                        continue
                    entry = {"rating": score, "rater_id": LEGACY_RATER_ID}
                    migrated += 1
                kept.append(entry)
            ledgers[category] = kept
    return migrated


class Store:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        redis: aioredis.Redis,
        key: str = settings.store_key,
        max_bytes: int = settings.store_max_bytes,
    ):
        self.session_factory = session_factory
        self.redis = redis
        self.key = key
        self.max_bytes = max_bytes
        self._issued_ids: set[str] = set()

    # ── Snapshot lifecycle ───────────────────────────────────────────

    async def load(self, strict: bool = False) -> Snapshot:
        """Current snapshot.  With *strict*, an unreadable document raises."""
        try:
            async with self.session_factory() as session:
                row = await session.get(KeyValueModel, self.key)
        except SQLAlchemyError as exc:
            logger.exception("Error reading store %r", self.key)
            raise PersistenceError("Failed to read data") from exc

        if row is None:
            return Snapshot()
        return self._decode(row.value, strict)

    def _unreadable(self, reason: str, strict: bool) -> Snapshot:
        if strict:
            logger.error("Store %r %s; refusing to overwrite it", self.key, reason)
            raise PersistenceError("Stored data is unreadable")
        logger.error("Store %r %s; using empty data", self.key, reason)
        return Snapshot()

    def _decode(self, raw: str, strict: bool = False) -> Snapshot:
        try:
            document = json.loads(raw)
        except ValueError:
            return self._unreadable("holds invalid JSON", strict)
        if not isinstance(document, dict):
            return self._unreadable("is not a JSON object", strict)

        users = document.get("users")
        if isinstance(users, list):
            migrated = _migrate_legacy_ratings(users)
            if migrated:
                logger.info("Migrated %d legacy bare-number ratings", migrated)

        collections: dict[str, list[Any]] = {}
        for name, adapter in _RECORDS.items():
            items = document.get(name) or []
            if not isinstance(items, list):
                logger.error("Store %r: %s is not a list; ignoring it", self.key, name)
                items = []
            records = []
            for idx, item in enumerate(items):
                try:
                    records.append(adapter.validate_python(item))
                except (pydantic.ValidationError, CarpoolError) as exc:
                    logger.warning(
                        "Dropping invalid %s record %d from %r: %s",
                        name, idx, self.key, exc,
                    )
            collections[name] = records
        return Snapshot(**collections)

    async def save(self, snapshot: Snapshot) -> None:
        payload = _SNAPSHOT.dump_json(snapshot)
        if len(payload) > self.max_bytes:
            logger.error(
                "Refusing to save %d bytes to %r (quota %d)",
                len(payload), self.key, self.max_bytes,
            )
            raise PersistenceError("Failed to save data: storage quota exceeded")

        try:
            async with self.session_factory() as session:
                row = await session.get(KeyValueModel, self.key)
                if row is None:
                    session.add(KeyValueModel(key=self.key, value=payload.decode()))
                else:
                    row.value = payload.decode()
                await session.commit()
        except SQLAlchemyError as exc:
            logger.exception("Error saving store %r", self.key)
            raise PersistenceError("Failed to save data") from exc

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[Snapshot]:
        """Locked load -> mutate -> save.  Nothing is saved if the body raises."""
        lock = DistributedLock(
            self.redis,
            f"store:{self.key}",
            ttl_seconds=settings.lock_ttl_seconds,
            timeout_seconds=settings.lock_timeout_seconds,
            poll_seconds=settings.lock_poll_seconds,
        )
        try:
            async with lock:
                snapshot = await self.load(strict=True)
                yield snapshot
                await self.save(snapshot)
        except LockNotAcquired as exc:
            logger.error("Store %r is busy: %s", self.key, exc)
            raise PersistenceError("Store is busy, try again") from exc

    # ── Identity ─────────────────────────────────────────────────────

    def new_id(self, prefix: str) -> str:
        """``<prefix><epoch-ms><0..999>``, unique for this process."""
        while True:
            candidate = f"{prefix}{time.time_ns() // 1_000_000}{random.randrange(1000)}"
            if candidate not in self._issued_ids:
                self._issued_ids.add(candidate)
                return candidate

    async def find_user_by_id(self, user_id: str) -> Optional[User]:
        return (await self.load()).find_user(user_id)

    async def find_ride_by_id(self, ride_id: str) -> Optional[Ride]:
        return (await self.load()).find_ride(ride_id)
