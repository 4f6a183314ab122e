"""MongoDB connection context shared by request handlers."""
import logging
from dataclasses import dataclass
from typing import Any, Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from config import Settings

logger = logging.getLogger(__name__)


@dataclass
class DatabaseContext:
    """Holds the client, database and expenses collection for the lifetime of the app."""
    client: Optional[Any]
    db: Optional[AsyncIOMotorDatabase]
    expenses_collection: Optional[AsyncIOMotorCollection]

    @classmethod
    def unavailable(cls) -> "DatabaseContext":
        return cls(client=None, db=None, expenses_collection=None)

    @classmethod
    def from_client(cls, client: Any, settings: Settings) -> "DatabaseContext":
        db = client[settings.db_name]
        return cls(client=client, db=db, expenses_collection=db[settings.expenses_collection])

    @property
    def available(self) -> bool:
        return self.expenses_collection is not None

    async def ping(self) -> bool:
        if self.client is None:
            return False
        try:
            await self.client.admin.command("ping")
            return True
        except PyMongoError as e:
            logger.warning(f"MongoDB ping failed: {e}")
            return False

    def close(self) -> None:
        if self.client is not None:
            logger.info("Closing MongoDB connection...")
            self.client.close()
            logger.info("MongoDB connection closed.")


async def connect(settings: Settings) -> DatabaseContext:
    """
    Open the Motor client and verify the server answers a ping.
    A failed connection is logged and yields an unavailable context instead of raising.
    """
    logger.info(f"Connecting to MongoDB database '{settings.db_name}'...")
    client = AsyncIOMotorClient(settings.mongodb_uri, tz_aware=True)
    context = DatabaseContext.from_client(client, settings)
    if await context.ping():
        logger.info(f"Successfully connected to MongoDB database: {settings.db_name}")
        return context

    logger.error(f"Failed to connect to MongoDB database: {settings.db_name}")
    client.close()
    return DatabaseContext.unavailable()
