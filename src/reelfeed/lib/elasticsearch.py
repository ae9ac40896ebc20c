"""Shared Elasticsearch utilities.

Helpers for working with Elasticsearch responses that are used by the
video store and the routers.
"""

import logging

from elastic_transport import ObjectApiResponse

logger = logging.getLogger(__name__)


def unwrap_es_response(resp) -> dict:
    """Unwrap an Elasticsearch response, handling both ObjectApiResponse and dict.

    Raises ``TypeError`` if the response type is unexpected; callers treat
    that like any other failed store query.
    """
    if isinstance(resp, ObjectApiResponse):
        return resp.body
    elif isinstance(resp, dict):
        return resp
    else:
        logger.error("Unexpected Elasticsearch response type: %s", type(resp))
        raise TypeError(f"Unexpected Elasticsearch response type: {type(resp)}")


def iter_sources(data: dict):
    """Yield the ``_source`` of every hit in a search response body."""
    for hit in data.get("hits", {}).get("hits", []):
        yield hit.get("_source") or {}


def agg_buckets(data: dict, name: str) -> list[dict]:
    """Return the buckets of the aggregation *name*, or ``[]`` if absent."""
    return data.get("aggregations", {}).get(name, {}).get("buckets", [])
