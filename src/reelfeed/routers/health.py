from fastapi import APIRouter
from pydantic import BaseModel

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    status: str


@router.get("/health", response_model=HealthResponse, status_code=200)
async def healthcheck() -> HealthResponse:
    """Liveness check; does not touch Elasticsearch."""
    return HealthResponse(status="ok")
