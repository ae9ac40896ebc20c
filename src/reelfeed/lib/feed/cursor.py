"""Opaque pagination cursors.

A cursor is URL-safe base64 of compact JSON::

    {"excludeIds": ["v1", "v2"], "lastScore": 81.5}

Anything that fails to decode is treated as "no cursor".
"""

import base64
import binascii
import logging

from pydantic import BaseModel, ConfigDict, Field, ValidationError

logger = logging.getLogger(__name__)


class CursorState(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    exclude_ids: list[str] = Field(default_factory=list, alias="excludeIds")
    last_score: float = Field(0.0, alias="lastScore")


def encode_cursor(state: CursorState) -> str:
    raw = state.model_dump_json(by_alias=True).encode("utf-8")
    return base64.urlsafe_b64encode(raw).decode("ascii")


def decode_cursor(token: str | None) -> CursorState:
    """Decode *token*, returning an empty state if it is missing or invalid."""
    if not token:
        return CursorState()
    try:
        raw = base64.urlsafe_b64decode(token.encode("ascii"))
        return CursorState.model_validate_json(raw)
    except (UnicodeError, binascii.Error, ValueError, ValidationError):
        logger.info("Ignoring undecodable feed cursor")
        return CursorState()
