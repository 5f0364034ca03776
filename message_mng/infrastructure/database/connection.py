"""
Document store connection management.

Only the configured provider is ever initialised.
"""
import logging
from typing import Optional

import firebase_admin
from firebase_admin import credentials, firestore_async
from pymongo import AsyncMongoClient
from pymongo.asynchronous.database import AsyncDatabase

from ...config import DatabaseSettings, FirebaseSettings

logger = logging.getLogger(__name__)

FIREBASE_APP_NAME = "message-mng"


class MongoDBManager:
    """
    Manages the process-wide async MongoDB client.

    Connection pooling is left to the driver.
    """

    _client: Optional[AsyncMongoClient] = None
    _database: Optional[AsyncDatabase] = None

    @classmethod
    async def connect(cls, settings: DatabaseSettings) -> AsyncDatabase:
        """Create the client, verify the server answers, return the database."""
        if cls._database is None:
            cls._client = AsyncMongoClient(
                settings.uri,
                serverSelectionTimeoutMS=settings.server_selection_timeout_ms,
            )
            await cls._client.admin.command("ping")
            cls._database = cls._client[settings.name]
            logger.info(f"Connected to MongoDB database '{settings.name}'")
        return cls._database

    @classmethod
    async def ping(cls) -> bool:
        """Check that the server is reachable."""
        if cls._client is None:
            return False
        try:
            await cls._client.admin.command("ping")
            return True
        except Exception as e:
            logger.warning(f"MongoDB ping failed: {e}")
            return False

    @classmethod
    async def close(cls) -> None:
        """Close the client and all pooled connections."""
        if cls._client is not None:
            await cls._client.close()
            cls._client = None
            cls._database = None
            logger.info("MongoDB connection closed")


class FirestoreManager:
    """Manages the firebase-admin app and its async Firestore client."""

    _app: Optional[firebase_admin.App] = None
    _client = None

    @classmethod
    def connect(cls, settings: FirebaseSettings):
        """
        Initialise the Firebase app and return an async Firestore client.

        Uses the service account file when configured, application default
        credentials otherwise.
        """
        if cls._client is None:
            if settings.credentials_path:
                credential = credentials.Certificate(settings.credentials_path)
            else:
                credential = credentials.ApplicationDefault()

            options = {"projectId": settings.project_id} if settings.project_id else None
            cls._app = firebase_admin.initialize_app(credential, options, name=FIREBASE_APP_NAME)
            cls._client = firestore_async.client(app=cls._app)
            logger.info("Firestore client initialized")
        return cls._client

    @classmethod
    def is_connected(cls) -> bool:
        return cls._client is not None

    @classmethod
    def close(cls) -> None:
        """Release the Firebase app."""
        if cls._app is not None:
            firebase_admin.delete_app(cls._app)
            cls._app = None
            cls._client = None
            logger.info("Firestore client closed")
