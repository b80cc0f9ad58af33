"""
Reading store access.

The store is the authoritative, external time-series store of aggregated
readings. :class:`ReadingStore` is the seam the fetchers depend on;
:class:`CosmosReadingStore` is the Azure Cosmos DB implementation.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from azure.core.exceptions import AzureError
from azure.cosmos.aio import CosmosClient

from .config import Settings
from .exceptions import StoreError, StoreQueryError, StoreUnavailableError
from .query import BaseQuery

logger = logging.getLogger(__name__)


class ReadingStore(ABC):
    """A read-only, queryable store of aggregated readings."""

    @abstractmethod
    async def query(self, query: BaseQuery) -> List[Any]:
        """
        Run a query and return every matching item.

        Implementations must report every failure as StoreQueryError. The
        fetchers treat it as "this name variant has no data"; any other
        exception propagates and fails the whole request, including the
        concurrent all-locations fan-out.

        Raises:
            StoreQueryError: If the query fails
        """
        pass

    async def close(self) -> None:
        """Release any underlying connection."""
        pass

    def describe(self) -> Dict[str, Optional[str]]:
        """Connection details safe to show in diagnostics."""
        return {}

    async def __aenter__(self) -> "ReadingStore":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()


class CosmosReadingStore(ReadingStore):
    """
    Reading store backed by an Azure Cosmos DB container.

    Queries are issued as parameterized SQL across partitions.
    """

    def __init__(self, endpoint: str, key: str, database: str, container: str):
        self.endpoint = endpoint
        self.database = database
        self.container = container
        try:
            self._client = CosmosClient(endpoint, credential=key)
            self._container = self._client.get_database_client(
                database
            ).get_container_client(container)
        except (AzureError, ValueError, TypeError) as e:
            raise StoreUnavailableError(
                f"Failed to connect to Cosmos DB {database}/{container}: {e}"
            ) from e

        logger.info(f"Connected to Cosmos DB: {database}/{container}")

    @classmethod
    def from_settings(cls, settings: Settings) -> "CosmosReadingStore":
        if not settings.store_configured:
            raise StoreUnavailableError(
                "Cosmos DB endpoint and key must be set "
                "(COSMOS_DB_ENDPOINT, COSMOS_DB_KEY)"
            )
        return cls(
            endpoint=settings.cosmos_endpoint,  # type: ignore[arg-type]
            key=settings.cosmos_key,  # type: ignore[arg-type]
            database=settings.database,
            container=settings.container,
        )

    async def query(self, query: BaseQuery) -> List[Any]:
        try:
            items = self._container.query_items(
                query=query.to_sql(), parameters=query.parameters()
            )
            return [item async for item in items]
        except StoreError:
            raise
        except AzureError as e:
            raise StoreQueryError(f"Cosmos DB query failed: {e}") from e
        except Exception as e:
            raise StoreQueryError(f"Failed to run query {query!r}: {e}") from e

    async def close(self) -> None:
        await self._client.close()

    def describe(self) -> Dict[str, Optional[str]]:
        return {
            "endpoint": self.endpoint,
            "database": self.database,
            "container": self.container,
        }


def create_store(settings: Settings) -> ReadingStore:
    """
    Create the configured reading store.

    Raises:
        StoreUnavailableError: If the store is not configured or the client
            cannot be created
    """
    try:
        return CosmosReadingStore.from_settings(settings)
    except StoreUnavailableError as e:
        logger.error(f"Failed to initialize reading store: {e}")
        raise
