"""Astra DB Data API client bootstrap.

Collections (``movies``, ``reviews``, ``comments``) are schemaless JSON
document stores, accessed through astrapy's async API.  A single
``AstraDB`` handle is created lazily and shared by every request.
"""

import logging
from typing import Optional

import httpx
from astrapy import AsyncCollection, DataAPIClient
from httpcore import ConnectError as HttpcoreConnectError

from cinestream.core.config import settings

logger = logging.getLogger(__name__)

AstraDBCollection = AsyncCollection


class AstraDB:
    """Thin handle around an astrapy ``AsyncDatabase``."""

    def __init__(self, *, api_endpoint: str, token: str, namespace: str):
        client = DataAPIClient()
        self._db = client.get_async_database(
            api_endpoint,
            token=token,
            keyspace=namespace,
        )

    def collection(self, collection_name: str) -> AstraDBCollection:
        return self._db.get_collection(collection_name)


db_instance: Optional[AstraDB] = None


async def init_astra_db():
    global db_instance
    if not all(
        [
            settings.ASTRA_DB_API_ENDPOINT,
            settings.ASTRA_DB_APPLICATION_TOKEN,
            settings.ASTRA_DB_KEYSPACE,
        ]
    ):
        logger.error(
            "AstraDB settings are not fully configured. Please check ASTRA_DB_API_ENDPOINT, ASTRA_DB_APPLICATION_TOKEN, and ASTRA_DB_KEYSPACE."
        )
        raise ValueError("AstraDB settings are not fully configured.")

    try:
        logger.info(
            "Initializing AstraDB client for keyspace: %s at %s...",
            settings.ASTRA_DB_KEYSPACE,
            settings.ASTRA_DB_API_ENDPOINT[:30],
        )  # Log only part of endpoint
        db_instance = AstraDB(
            api_endpoint=settings.ASTRA_DB_API_ENDPOINT,
            token=settings.ASTRA_DB_APPLICATION_TOKEN,
            namespace=settings.ASTRA_DB_KEYSPACE,
        )
        logger.info("AstraDB client initialized successfully.")
    except (httpx.ConnectError, HttpcoreConnectError, ConnectionError) as e:
        logger.error(
            "Unable to establish connection to AstraDB – check API endpoint/token."
        )
        logger.debug("Connection error details: %s", e)
        raise
    except Exception as e:
        logger.error("Failed to initialize AstraDB client: %s", e, exc_info=True)
        raise


async def get_astra_db() -> AstraDB:
    if db_instance is None:
        logger.info("AstraDB instance not found, attempting to initialize...")
        await init_astra_db()  # This will raise an error if init fails
        if db_instance is None:
            raise RuntimeError("AstraDB could not be initialized.")
    return db_instance


async def get_collection(collection_name: str) -> AstraDBCollection:
    db = await get_astra_db()
    return db.collection(collection_name)
