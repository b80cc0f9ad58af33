"""
Python client for the canal dashboard JSON API.
"""

import json
import time
from typing import Any, Dict, List, Optional

import httpx

from . import __version__
from .exceptions import DashboardConnectionError, DashboardQueryError
from .models import NormalizedReading, StatusSummary


class DashboardClient:
    """
    Client for a running canal dashboard server.

    Mirrors what the browser dashboard polls: latest readings, history and
    overall status. Every request carries a cache-busting parameter.
    """

    DEFAULT_BASE_URL = "http://localhost:3000"

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: int = 30,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = httpx.Client(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
            headers={
                "User-Agent": f"canalwatch-client/{__version__}",
                "Accept": "application/json",
                "Cache-Control": "no-cache",
            },
        )

    def close(self) -> None:
        """Close the HTTP client."""
        self._client.close()

    def __enter__(self) -> "DashboardClient":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    def _make_request(
        self,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        allow_not_found: bool = False,
        return_error_body: bool = False,
    ) -> Any:
        """Make a request to the dashboard API with error handling."""
        params = dict(params or {})
        params["t"] = int(time.time() * 1000)

        try:
            response = self._client.get(f"/api/{endpoint}", params=params)
            if allow_not_found and response.status_code == 404:
                return None
            if return_error_body and response.is_server_error:
                return response.json()
            response.raise_for_status()
            return response.json()

        except httpx.TimeoutException as e:
            raise DashboardConnectionError(f"Request timeout after {self.timeout}s") from e
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            if status >= 500:
                raise DashboardConnectionError(
                    f"Dashboard API error {status}: {_error_message(e.response)}"
                ) from e
            raise DashboardQueryError(f"HTTP error {status}: {e}") from e
        except httpx.RequestError as e:
            raise DashboardConnectionError(f"Network error: {e}") from e
        except json.JSONDecodeError as e:
            raise DashboardQueryError(f"Invalid JSON response: {e}") from e

    def get_latest_readings(self) -> Dict[str, NormalizedReading]:
        """
        Get the latest reading for every location that has data.

        Returns:
            Mapping of canonical location key to NormalizedReading
        """
        data = self._make_request("data")
        try:
            return {key: NormalizedReading.from_dict(value) for key, value in data.items()}
        except (AttributeError, TypeError) as e:
            raise DashboardQueryError(f"Unexpected latest readings payload: {e}") from e

    def get_latest_reading(self, location: str) -> Optional[NormalizedReading]:
        """
        Get the latest reading for one location.

        Returns:
            NormalizedReading, or None if the location has no data
        """
        data = self._make_request(f"data/{location}", allow_not_found=True)
        if data is None:
            return None
        try:
            return NormalizedReading.from_dict(data)
        except (AttributeError, TypeError) as e:
            raise DashboardQueryError(f"Unexpected reading payload: {e}") from e

    def get_history(self, location: str, hours: int = 1) -> List[NormalizedReading]:
        """
        Get readings for one location over the last ``hours`` hours.

        Args:
            location: Canonical location key
            hours: Lookback window in hours

        Returns:
            List of NormalizedReading, oldest first
        """
        data = self._make_request(f"history/{location}", {"hours": hours})
        try:
            return [NormalizedReading.from_dict(item) for item in data]
        except (AttributeError, TypeError) as e:
            raise DashboardQueryError(f"Unexpected history payload: {e}") from e

    def get_status(self) -> StatusSummary:
        """Get the system-wide safety summary."""
        data = self._make_request("status")
        try:
            return StatusSummary.from_dict(data)
        except (AttributeError, TypeError, ValueError) as e:
            raise DashboardQueryError(f"Unexpected status payload: {e}") from e

    def health(self) -> Dict[str, Any]:
        """Check that the dashboard server is alive."""
        return self._make_request("health")

    def debug(self) -> Dict[str, Any]:
        """Fetch store diagnostics; an unconfigured store is reported, not raised."""
        return self._make_request("debug", return_error_body=True)


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except json.JSONDecodeError:
        return response.text
    if isinstance(body, dict):
        return str(body.get("detail") or body.get("error") or body)
    return str(body)
