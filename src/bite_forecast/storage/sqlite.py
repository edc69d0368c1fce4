"""SQLite store for catches, angler profiles and bite signals."""

from __future__ import annotations

import json
import logging
import uuid
from datetime import datetime
from pathlib import Path

import aiosqlite

from bite_forecast.common.types import Coordinates, isoformat_utc, parse_utc, utc_now
from bite_forecast.config import get_settings
from bite_forecast.environment.bands import EnvironmentBands
from bite_forecast.signals.models import BiteSignal, CatchSample, UserProfile

logger = logging.getLogger(__name__)

_CREATE_CATCHES = """
CREATE TABLE IF NOT EXISTS catches (
    id TEXT PRIMARY KEY,
    location_key TEXT NOT NULL,
    user_id TEXT,
    captured_at TEXT,       -- normalized capture hour, ISO-8601 UTC
    bands TEXT,             -- JSON {timeOfDay, moonPhase, pressure}
    lat REAL,
    lon REAL,
    created_at TEXT NOT NULL
);
"""

_CREATE_CATCHES_INDEX = """
CREATE INDEX IF NOT EXISTS idx_catches_location_key ON catches(location_key, captured_at);
"""

_CREATE_USERS = """
CREATE TABLE IF NOT EXISTS users (
    user_id TEXT PRIMARY KEY,
    is_pro INTEGER NOT NULL DEFAULT 0,
    trophy_count INTEGER NOT NULL DEFAULT 0
);
"""

_CREATE_SIGNALS = """
CREATE TABLE IF NOT EXISTS bite_signals (
    location_key TEXT PRIMARY KEY,
    document TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    expires_at TEXT NOT NULL
);
"""


class SqliteStore:
    """Catch sample source, profile source and bite signal store on one SQLite file."""

    def __init__(self, db_path: Path | None = None) -> None:
        settings = get_settings()
        self._db_path = Path(db_path) if db_path is not None else settings.db_path
        self._ready = False

    async def _ensure_db(self) -> None:
        """Create database and tables if they don't exist."""
        if self._ready:
            return
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute(_CREATE_CATCHES)
            await db.execute(_CREATE_CATCHES_INDEX)
            await db.execute(_CREATE_USERS)
            await db.execute(_CREATE_SIGNALS)
            await db.commit()
        self._ready = True

    # --- catches ---

    async def add_catch(
        self,
        location_key: str,
        user_id: str = "",
        captured_at: datetime | None = None,
        bands: EnvironmentBands | None = None,
        coordinates: Coordinates | None = None,
        catch_id: str | None = None,
    ) -> str:
        """Insert a catch and return its id. The capture time is floored to the hour."""
        await self._ensure_db()
        catch_id = catch_id or uuid.uuid4().hex
        normalized = captured_at.replace(minute=0, second=0, microsecond=0) if captured_at else None
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute(
                """INSERT INTO catches
                   (id, location_key, user_id, captured_at, bands, lat, lon, created_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    catch_id,
                    location_key,
                    user_id,
                    isoformat_utc(normalized),
                    json.dumps(bands.to_dict()) if bands else None,
                    coordinates.lat if coordinates else None,
                    coordinates.lon if coordinates else None,
                    isoformat_utc(utc_now()),
                ),
            )
            await db.commit()
        return catch_id

    async def list_samples(self, location_key: str, limit: int) -> list[CatchSample]:
        """Most recent catches for a location key, newest first."""
        await self._ensure_db()
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                """SELECT id, user_id, captured_at, bands, lat, lon FROM catches
                   WHERE location_key = ?
                   ORDER BY captured_at DESC
                   LIMIT ?""",
                (location_key, limit),
            )
            rows = await cursor.fetchall()
        return [self._row_to_sample(row) for row in rows]

    @staticmethod
    def _row_to_sample(row: aiosqlite.Row) -> CatchSample:
        bands = None
        if row["bands"]:
            try:
                bands = EnvironmentBands.from_dict(json.loads(row["bands"]))
            except json.JSONDecodeError:
                logger.debug("Catch %s has unreadable bands", row["id"])
        coordinates = None
        if row["lat"] is not None and row["lon"] is not None:
            coordinates = Coordinates(float(row["lat"]), float(row["lon"]))
        return CatchSample(
            catch_id=row["id"],
            user_id=row["user_id"] or "",
            captured_at=parse_utc(row["captured_at"]),
            bands=bands,
            coordinates=coordinates,
        )

    # --- profiles ---

    async def upsert_profile(self, profile: UserProfile) -> None:
        await self._ensure_db()
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute(
                """INSERT INTO users (user_id, is_pro, trophy_count) VALUES (?, ?, ?)
                   ON CONFLICT(user_id) DO UPDATE SET
                       is_pro = excluded.is_pro,
                       trophy_count = excluded.trophy_count""",
                (profile.user_id, int(profile.is_pro), profile.trophy_count),
            )
            await db.commit()

    async def get_profile(self, user_id: str) -> UserProfile | None:
        await self._ensure_db()
        async with aiosqlite.connect(str(self._db_path)) as db:
            cursor = await db.execute(
                "SELECT user_id, is_pro, trophy_count FROM users WHERE user_id = ?",
                (user_id,),
            )
            row = await cursor.fetchone()
        if row is None:
            return None
        return UserProfile(user_id=row[0], is_pro=bool(row[1]), trophy_count=int(row[2]))

    # --- bite signals ---

    async def get_signal(self, location_key: str) -> BiteSignal | None:
        await self._ensure_db()
        async with aiosqlite.connect(str(self._db_path)) as db:
            cursor = await db.execute(
                "SELECT document FROM bite_signals WHERE location_key = ?",
                (location_key,),
            )
            row = await cursor.fetchone()
        if row is None:
            return None
        try:
            return BiteSignal.from_dict(json.loads(row[0]))
        except (ValueError, KeyError, TypeError) as exc:
            logger.warning("Discarding unreadable bite signal for %s: %s", location_key, exc)
            return None

    async def put_signal(self, signal: BiteSignal) -> None:
        await self._ensure_db()
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute(
                """INSERT INTO bite_signals (location_key, document, updated_at, expires_at)
                   VALUES (?, ?, ?, ?)
                   ON CONFLICT(location_key) DO UPDATE SET
                       document = excluded.document,
                       updated_at = excluded.updated_at,
                       expires_at = excluded.expires_at""",
                (
                    signal.location_key,
                    json.dumps(signal.to_dict()),
                    isoformat_utc(signal.updated_at),
                    isoformat_utc(signal.expires_at),
                ),
            )
            await db.commit()
