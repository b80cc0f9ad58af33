"""
Runtime configuration for canalwatch.

Settings come from the process environment, after loading a ``.env`` file
when one is present.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Mapping, Optional, Union

from dotenv import load_dotenv

DEFAULT_DATABASE = "RideauCanalDB"
DEFAULT_CONTAINER = "SensorAggregations"
DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 3000
DEFAULT_STATIC_DIR = "public"

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _parse_port(value: Optional[str]) -> int:
    try:
        port = int(value) if value else DEFAULT_PORT
    except ValueError:
        return DEFAULT_PORT
    return port if 0 < port < 65536 else DEFAULT_PORT


def _parse_origins(value: Optional[str]) -> List[str]:
    if not value:
        return ["*"]
    origins = [origin.strip() for origin in value.split(",") if origin.strip()]
    return origins or ["*"]


@dataclass
class Settings:
    """Deployment settings for the dashboard server and store connection."""

    cosmos_endpoint: Optional[str] = None
    cosmos_key: Optional[str] = None
    database: str = DEFAULT_DATABASE
    container: str = DEFAULT_CONTAINER
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    static_dir: Optional[Path] = Path(DEFAULT_STATIC_DIR)
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    log_level: str = "INFO"

    @property
    def store_configured(self) -> bool:
        return bool(self.cosmos_endpoint and self.cosmos_key)

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        dotenv_path: Optional[Union[str, Path]] = None,
    ) -> "Settings":
        """
        Build settings from environment variables.

        Args:
            environ: Mapping to read instead of ``os.environ``. When given, no
                ``.env`` file is loaded.
            dotenv_path: Explicit ``.env`` file to load (default: search from
                the working directory)

        Returns:
            Settings
        """
        if environ is None:
            load_dotenv(dotenv_path=dotenv_path)
            environ = os.environ

        static_dir = environ.get("CANALWATCH_STATIC_DIR", DEFAULT_STATIC_DIR)

        return cls(
            cosmos_endpoint=environ.get("COSMOS_DB_ENDPOINT") or None,
            cosmos_key=environ.get("COSMOS_DB_KEY") or None,
            database=environ.get("COSMOS_DB_DATABASE") or DEFAULT_DATABASE,
            container=environ.get("COSMOS_DB_CONTAINER") or DEFAULT_CONTAINER,
            host=environ.get("HOST") or DEFAULT_HOST,
            port=_parse_port(environ.get("PORT")),
            static_dir=Path(static_dir) if static_dir else None,
            cors_origins=_parse_origins(environ.get("CANALWATCH_CORS_ORIGINS")),
            log_level=(environ.get("LOG_LEVEL") or "INFO").upper(),
        )


def configure_logging(level: Union[str, int] = "INFO") -> None:
    """Configure root logging for the server and command line."""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT, force=True)
