"""
MongoDB access for the admin panel.

One motor client per process. Repositories never import it directly: they
receive an `AsyncIOMotorDatabase` through the `get_database` dependency.
Change streams (used by the alert feed) require MongoDB to run as a
replica set.
"""

from typing import Any, Dict, Optional
import logging
import time

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from .config import settings

logger = logging.getLogger(__name__)

# pool and timeout options for the motor client
CLIENT_OPTIONS: Dict[str, Any] = {
    "maxPoolSize": 50,
    "minPoolSize": 5,
    "maxIdleTimeMS": 900_000,
    "waitQueueTimeoutMS": 5_000,
    "connectTimeoutMS": 5_000,
    "socketTimeoutMS": 20_000,
    "serverSelectionTimeoutMS": 5_000,
    "retryWrites": True,
    "retryReads": True,
    # created_at / updated_at / dismiss watermarks are compared as aware UTC datetimes
    "tz_aware": True,
}


class DatabaseManager:
    """Lazily connected motor client with a cached ping result"""

    def __init__(self, url: Optional[str] = None, database_name: Optional[str] = None,
                 ping_interval: float = 30.0):
        self.url = url or settings.mongodb_url
        self.database_name = database_name or settings.database_name
        self.client: Optional[AsyncIOMotorClient] = None
        self.database: Optional[AsyncIOMotorDatabase] = None
        self.ping_interval = ping_interval
        self._last_ping: Optional[float] = None
        self._last_ping_ok = False

    async def connect(self) -> None:
        client = AsyncIOMotorClient(self.url, **CLIENT_OPTIONS)
        try:
            await client.admin.command("ping")
        except PyMongoError as e:
            client.close()
            logger.error(f"MongoDB 연결 실패 ({self.database_name}): {e}")
            raise
        self.client = client
        self.database = client[self.database_name]
        self._last_ping, self._last_ping_ok = time.monotonic(), True
        logger.info(f"MongoDB 연결 완료: {self.database_name}")

    async def close(self) -> None:
        if self.client is None:
            return
        self.client.close()
        self.client, self.database = None, None
        logger.info("MongoDB 연결 종료")

    async def get_database(self) -> AsyncIOMotorDatabase:
        if self.database is None:
            await self.connect()
        return self.database

    async def is_healthy(self) -> bool:
        """Ping the server at most once per `ping_interval` seconds."""
        now = time.monotonic()
        if self._last_ping is not None and now - self._last_ping < self.ping_interval:
            return self._last_ping_ok
        if self.client is None:
            ok = False
        else:
            try:
                await self.client.admin.command("ping", maxTimeMS=2000)
                ok = True
            except PyMongoError as e:
                logger.warning(f"MongoDB 헬스 체크 실패: {e}")
                ok = False
        self._last_ping, self._last_ping_ok = now, ok
        return ok


db_manager = DatabaseManager()


async def connect_to_mongo() -> None:
    await db_manager.connect()


async def close_mongo_connection() -> None:
    await db_manager.close()


async def get_database() -> AsyncIOMotorDatabase:
    """FastAPI dependency"""
    return await db_manager.get_database()
