"""Runtime configuration read from the environment.

Values are read at call time rather than import time so tests can patch
``os.environ`` without reloading modules.
"""

import logging
import os

DEFAULT_ELASTICSEARCH_URL = "http://localhost:9200"
DEFAULT_CACHE_TTL_SECONDS = 300
DEFAULT_CACHE_MAX_ENTRIES = 100


def get_elasticsearch_url() -> str:
    return os.environ.get("ELASTICSEARCH_URL", DEFAULT_ELASTICSEARCH_URL)


def get_elasticsearch_api_key() -> str | None:
    return os.environ.get("ELASTICSEARCH_API_KEY") or None


def get_cache_ttl_seconds() -> float:
    return float(os.environ.get("FEED_CACHE_TTL_SECONDS", DEFAULT_CACHE_TTL_SECONDS))


def get_cache_max_entries() -> int:
    return int(os.environ.get("FEED_CACHE_MAX_ENTRIES", DEFAULT_CACHE_MAX_ENTRIES))


def configure_logging() -> None:
    """Set the root log level from ``LOG_LEVEL`` (default ``INFO``)."""
    level = os.environ.get("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
