"""
Synchronous wrappers for the canalwatch fetchers.

These run the async fetchers to completion with asyncio for callers that
cannot use async/await (scripts, the command line). When no store is passed,
a temporary one is created from the environment settings and closed
afterwards.

Usage:
    # Instead of this async code:
    async with create_store(settings) as store:
        summary = await get_system_status(store)

    # Use this sync code:
    from canalwatch.sync import get_system_status_sync
    summary = get_system_status_sync()
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, TypeVar

from .config import Settings
from .exceptions import StoreUnavailableError
from .models import NormalizedReading, StatusSummary
from .store import ReadingStore, create_store

logger = logging.getLogger(__name__)

R = TypeVar("R")


class AsyncSyncBridge:
    """Runs async fetchers synchronously, managing a temporary store if needed."""

    @staticmethod
    def run_async(
        async_fn: Callable[..., Awaitable[R]],
        args: tuple = (),
        kwargs: Optional[dict] = None,
        store_factory: Optional[Callable[[], ReadingStore]] = None,
    ) -> R:
        """Run an async function synchronously.

        Args:
            async_fn: Async function to run; it must accept a ``store`` keyword
            args: Positional arguments for the function
            kwargs: Keyword arguments for the function
            store_factory: Creates a store when ``kwargs`` has none. If the
                factory raises StoreUnavailableError the function is called
                with ``store=None`` and decides how to degrade.

        Returns:
            Result of running the async function

        Raises:
            RuntimeError: If called from within a running event loop
        """
        kwargs = dict(kwargs or {})

        try:
            asyncio.get_running_loop()
        except RuntimeError:
            pass
        else:
            raise RuntimeError(
                "Cannot use sync version from within an existing asyncio event loop. "
                "Use the async version instead."
            )

        async def _call_and_cleanup() -> R:
            temp_store = None
            if store_factory is not None and kwargs.get("store") is None:
                try:
                    temp_store = store_factory()
                except StoreUnavailableError as e:
                    logger.debug(f"Running without a store: {e}")
                kwargs["store"] = temp_store
            try:
                return await async_fn(*args, **kwargs)
            finally:
                if temp_store is not None:
                    await temp_store.close()

        return asyncio.run(_call_and_cleanup())


def _factory(settings: Optional[Settings]) -> Callable[[], ReadingStore]:
    def make_store() -> ReadingStore:
        return create_store(settings if settings is not None else Settings.from_env())

    return make_store


def fetch_latest_reading_sync(
    location_key: str,
    store: Optional[ReadingStore] = None,
    settings: Optional[Settings] = None,
) -> Optional[NormalizedReading]:
    """Synchronous version of :func:`canalwatch.fetch.fetch_latest_reading`.

    Raises:
        StoreUnavailableError: If no store is given and none can be created
    """
    from .fetch import fetch_latest_reading

    return AsyncSyncBridge.run_async(
        fetch_latest_reading,
        args=(location_key,),
        kwargs={"store": store},
        store_factory=None if store else _factory(settings),
    )


def fetch_history_sync(
    location_key: str,
    hours: Any = 1,
    store: Optional[ReadingStore] = None,
    settings: Optional[Settings] = None,
) -> List[NormalizedReading]:
    """Synchronous version of :func:`canalwatch.fetch.fetch_history`.

    Examples:
        >>> readings = fetch_history_sync("nac", hours=6)
        >>> df = readings_to_dataframe(readings)
    """
    from .fetch import fetch_history

    return AsyncSyncBridge.run_async(
        fetch_history,
        args=(location_key, hours),
        kwargs={"store": store},
        store_factory=None if store else _factory(settings),
    )


def fetch_all_latest_sync(
    store: Optional[ReadingStore] = None,
    settings: Optional[Settings] = None,
) -> Dict[str, NormalizedReading]:
    """Synchronous version of :func:`canalwatch.status.fetch_all_latest`."""
    from .status import fetch_all_latest

    return AsyncSyncBridge.run_async(
        fetch_all_latest,
        kwargs={"store": store},
        store_factory=None if store else _factory(settings),
    )


def get_system_status_sync(
    store: Optional[ReadingStore] = None,
    settings: Optional[Settings] = None,
) -> StatusSummary:
    """Synchronous version of :func:`canalwatch.status.get_system_status`."""
    from .status import get_system_status

    return AsyncSyncBridge.run_async(
        get_system_status,
        kwargs={"store": store},
        store_factory=None if store else _factory(settings),
    )
