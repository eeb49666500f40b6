"""
Tubely MongoDB Database Client Module

This module provides async MongoDB connection management for the video metadata
store using Motor (async MongoDB driver). It implements:
- Connection pooling with configurable pool size
- Health checks using MongoDB ping command
- Index creation on the videos collection
- Startup/shutdown lifecycle management for FastAPI integration
- Retry logic with exponential backoff for connection reliability
- VideoRepository, the get/update seam used by the ingestion pipeline
"""

import asyncio
import logging

from typing import Any

from motor.motor_asyncio import (
    AsyncIOMotorClient,
    AsyncIOMotorCollection,
    AsyncIOMotorDatabase,
)
from pymongo import DESCENDING
from pymongo.errors import ConnectionFailure, PyMongoError, ServerSelectionTimeoutError

from app.config import Settings, get_settings
from app.core.exceptions import PersistenceFailedError, VideoNotFoundError
from app.models.video import Video


logger = logging.getLogger(__name__)

VIDEOS_COLLECTION = "videos"

DEFAULT_LIST_LIMIT = 100


class DatabaseClient:
    """
    Async MongoDB client wrapper with connection pooling and lifecycle management.

    Attributes:
        _settings: Settings instance containing MongoDB configuration
        _mongodb_uri: MongoDB connection URI
        _db_name: Database name to connect to
        _min_pool_size: Minimum number of connections in pool
        _max_pool_size: Maximum number of connections in pool
        _client: Motor async MongoDB client instance
        _database: Motor async database instance

    Example usage:
        ```python
        db_client = DatabaseClient(get_settings())
        await db_client.connect()

        videos = db_client.get_videos_collection()
        await videos.find_one({"_id": video_id})

        await db_client.close()
        ```
    """

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._mongodb_uri = settings.mongodb_uri
        self._db_name = settings.mongodb_db_name
        self._min_pool_size = settings.mongodb_min_pool_size
        self._max_pool_size = settings.mongodb_max_pool_size
        self._client: AsyncIOMotorClient | None = None
        self._database: AsyncIOMotorDatabase | None = None

        logger.info(
            "DatabaseClient initialized with pool size %d-%d for database: %s",
            self._min_pool_size,
            self._max_pool_size,
            self._db_name,
        )

    async def connect(self) -> bool:
        """
        Establish MongoDB connection with retry logic and exponential backoff.

        Three attempts are made with delays of 1s and 2s between them.

        Returns:
            bool: True if connection successful, False on failure after all retries.
        """
        max_retries = 3
        retry_delay = 1.0

        for attempt in range(1, max_retries + 1):
            try:
                logger.info(
                    "Attempting MongoDB connection (attempt %d/%d) to %s...",
                    attempt,
                    max_retries,
                    self._db_name,
                )

                self._client = AsyncIOMotorClient(
                    self._mongodb_uri,
                    minPoolSize=self._min_pool_size,
                    maxPoolSize=self._max_pool_size,
                    serverSelectionTimeoutMS=5000,
                    tz_aware=True,
                )
                self._database = self._client[self._db_name]

                await self._client.admin.command("ping")

                logger.info("Successfully connected to MongoDB database: %s", self._db_name)
                return True

            except (ServerSelectionTimeoutError, ConnectionFailure):
                logger.exception(
                    "MongoDB connection failure (attempt %d/%d)", attempt, max_retries
                )
                if attempt < max_retries:
                    logger.warning("Retrying in %s seconds...", retry_delay)
                    await asyncio.sleep(retry_delay)
                    retry_delay *= 2

        logger.error(
            "Failed to connect to MongoDB after %d attempts. "
            "Check connection URI and server availability.",
            max_retries,
        )
        return False

    async def close(self) -> None:
        """Close the MongoDB connection. Safe to call when not connected."""
        if self._client is not None:
            self._client.close()
            self._client = None
            self._database = None
            logger.info("MongoDB connection closed for database: %s", self._db_name)
        else:
            logger.warning("MongoDB close called but no active connection exists")

    async def ping(self) -> bool:
        """
        Health check using MongoDB admin ping command.

        Returns:
            bool: True if ping successful, False on failure.
        """
        if self._client is None:
            logger.warning("MongoDB ping failed: No active connection")
            return False

        try:
            await self._client.admin.command("ping")
            return True
        except PyMongoError:
            logger.exception("MongoDB ping failed")
            return False

    def get_database(self) -> AsyncIOMotorDatabase:
        """
        Get the database instance for direct operations.

        Raises:
            RuntimeError: If not connected to MongoDB.
        """
        if self._database is None:
            raise RuntimeError(
                "MongoDB database not available. Call connect() first or check connection status."
            )
        return self._database

    def get_videos_collection(self) -> AsyncIOMotorCollection:
        """
        Get the videos collection.

        Each document is one video record keyed by its UUID string ``_id``.

        Raises:
            RuntimeError: If not connected to MongoDB.
        """
        return self.get_database()[VIDEOS_COLLECTION]

    async def create_indexes(self) -> None:
        """Create the indexes used to list a user's videos newest first."""
        videos = self.get_database()[VIDEOS_COLLECTION]

        try:
            await videos.create_index("user_id")
            await videos.create_index([("user_id", 1), ("created_at", DESCENDING)])
            logger.info("Created indexes on %s collection", VIDEOS_COLLECTION)
        except PyMongoError:
            logger.exception("Error creating MongoDB indexes")
            raise


class VideoRepository:
    """
    Metadata store seam for video records.

    Reads raise VideoNotFoundError for unknown ids. Writes replace the whole
    record and raise PersistenceFailedError when the store rejects them or
    when the record no longer exists.
    """

    def __init__(self, collection: AsyncIOMotorCollection) -> None:
        self._collection = collection

    async def get(self, video_id: str) -> Video:
        """
        Fetch one video record.

        Raises:
            VideoNotFoundError: If no record has this id.
            PersistenceFailedError: If the store cannot be queried.
        """
        try:
            document = await self._collection.find_one({"_id": video_id})
        except PyMongoError as e:
            logger.exception("Failed to load video", extra={"video_id": video_id})
            raise PersistenceFailedError(f"Loading video {video_id} failed: {e}") from e

        if document is None:
            raise VideoNotFoundError(f"Video {video_id} not found")

        return Video.model_validate(document)

    async def update(self, video: Video) -> None:
        """
        Persist a modified video record.

        Raises:
            PersistenceFailedError: If the store rejects the write or the
                record was removed in the meantime.
        """
        try:
            result = await self._collection.replace_one({"_id": video.id}, video.to_document())
        except PyMongoError as e:
            logger.exception("Failed to update video", extra={"video_id": video.id})
            raise PersistenceFailedError(f"Updating video {video.id} failed: {e}") from e

        if result.matched_count == 0:
            raise PersistenceFailedError(f"Video {video.id} disappeared before update")

        logger.debug("Updated video record", extra={"video_id": video.id})

    async def list_for_user(self, user_id: str, limit: int = DEFAULT_LIST_LIMIT) -> list[Video]:
        """Return a user's videos, newest first."""
        query: dict[str, Any] = {"user_id": user_id}

        try:
            cursor = self._collection.find(query).sort("created_at", DESCENDING).limit(limit)
            documents = await cursor.to_list(length=limit)
        except PyMongoError as e:
            logger.exception("Failed to list videos", extra={"user_id": user_id})
            raise PersistenceFailedError(f"Listing videos for {user_id} failed: {e}") from e

        return [Video.model_validate(document) for document in documents]


class _DatabaseClientContainer:
    """Container for database client singleton to avoid global statements."""

    client: DatabaseClient | None = None


_container = _DatabaseClientContainer()


async def init_db(settings: Settings | None = None) -> DatabaseClient:
    """
    Initialize the global database client singleton.

    Connects to MongoDB and creates indexes. Called during FastAPI startup.

    Raises:
        RuntimeError: If connection to MongoDB fails after all retries.
    """
    if _container.client is not None:
        logger.warning("Database client already initialized, returning existing instance")
        return _container.client

    if settings is None:
        settings = get_settings()

    logger.info("Initializing MongoDB database client...")

    _container.client = DatabaseClient(settings)

    connected = await _container.client.connect()
    if not connected:
        _container.client = None
        raise RuntimeError(
            "Failed to establish MongoDB connection. "
            "Check mongodb_uri configuration and server availability."
        )

    await _container.client.create_indexes()

    logger.info("MongoDB database client initialization complete")
    return _container.client


async def close_db() -> None:
    """Close the global database client connection. Called during FastAPI shutdown."""
    if _container.client is not None:
        await _container.client.close()
        _container.client = None
        logger.info("MongoDB database client closed")
    else:
        logger.warning("close_db called but no database client exists")


def get_db_client() -> DatabaseClient:
    """
    Get the global database client singleton instance.

    Raises:
        RuntimeError: If database client has not been initialized.
    """
    if _container.client is None:
        raise RuntimeError(
            "Database client not initialized. Call init_db() first during application startup."
        )
    return _container.client


def get_video_repository() -> VideoRepository:
    """FastAPI dependency returning a repository bound to the videos collection."""
    return VideoRepository(get_db_client().get_videos_collection())


__all__ = [
    "VIDEOS_COLLECTION",
    "DatabaseClient",
    "VideoRepository",
    "close_db",
    "get_db_client",
    "get_video_repository",
    "init_db",
]
