from contextlib import asynccontextmanager

from elasticsearch import AsyncElasticsearch
from fastapi import Depends, FastAPI

from . import config
from .lib.feed import RecommendationService, ScoreCache, TTLCache
from .lib.store import VideoStore
from .routers import feed, health, trending
from .security import verify_api_key


@asynccontextmanager
async def lifespan(app: FastAPI):
    config.configure_logging()

    es_kwargs = {}
    api_key = config.get_elasticsearch_api_key()
    if api_key:
        es_kwargs["api_key"] = api_key
    es = AsyncElasticsearch(config.get_elasticsearch_url(), **es_kwargs)

    cache = ScoreCache(
        trending=TTLCache(ttl_seconds=config.get_cache_ttl_seconds()),
        results=TTLCache(
            ttl_seconds=config.get_cache_ttl_seconds(),
            max_entries=config.get_cache_max_entries(),
        ),
    )
    app.state.es = es
    app.state.recommender = RecommendationService(VideoStore(es), cache)
    try:
        yield
    finally:
        await es.close()


app = FastAPI(
    title="Reelfeed API",
    description="Ranked, paginated short-video feed recommendations",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(health.router)
app.include_router(feed.router)
app.include_router(trending.router)


@app.get("/", dependencies=[Depends(verify_api_key)])
async def root():
    return {"message": "Reelfeed API"}
