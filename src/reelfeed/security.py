import os
from typing import Annotated

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import APIKeyHeader

API_KEY_HEADER_NAME = "X-API-Key"
VIEWER_HEADER_NAME = "X-Viewer-Id"

api_key_header = APIKeyHeader(name=API_KEY_HEADER_NAME, auto_error=False)


def get_api_key() -> str | None:
    return os.environ.get("API_KEY")


async def verify_api_key(
    api_key: Annotated[str | None, Depends(api_key_header)],
) -> str | None:
    expected_key = get_api_key()
    if not expected_key or api_key != expected_key:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing API key",
        )
    return api_key


async def get_viewer_id(
    viewer_id: Annotated[str | None, Header(alias=VIEWER_HEADER_NAME)] = None,
) -> str | None:
    """The signed-in viewer as asserted by the upstream gateway.

    A missing or blank header means an anonymous viewer.
    """
    if viewer_id is None or not viewer_id.strip():
        return None
    return viewer_id.strip()


RequireApiKey = Annotated[str, Depends(verify_api_key)]
ViewerId = Annotated[str | None, Depends(get_viewer_id)]
