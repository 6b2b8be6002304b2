"""
Collation Histogram Service - FastAPI Backend
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from api import histogram
from config import create_histogram_cache, create_postgres_pool, get_settings
from repositories import AlignmentRepository, ComparisonSetRepository, WitnessRepository
from services.histogram_service import HistogramService
from services.task_manager import TaskManager

settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format='%(asctime)s [%(name)s] %(levelname)s: %(message)s'
)
logger = logging.getLogger('histogram-service')


@asynccontextmanager
async def lifespan(app: FastAPI):
    db_pool = await create_postgres_pool(settings)
    cache = await create_histogram_cache(settings)
    tasks = TaskManager(
        workers=settings.histogram_workers,
        retention_seconds=settings.task_retention_seconds,
    )
    await tasks.start()

    histogram.init_services(HistogramService(
        differences=AlignmentRepository(db_pool),
        witnesses=WitnessRepository(db_pool),
        comparison_sets=ComparisonSetRepository(db_pool),
        cache=cache,
        tasks=tasks,
        average_alignment_size=settings.average_alignment_size,
    ))
    logger.info(f"Histogram service ready ({settings.environment}, cache={settings.cache_backend})")

    try:
        yield
    finally:
        await tasks.stop()
        await cache.close()
        await db_pool.close()
        logger.info("Histogram service stopped")


app = FastAPI(
    title="Collation Histogram Service",
    description="Difference density histograms for collated witnesses",
    version="1.0.0",
    lifespan=lifespan,
)

# Cached histograms can be large; compress when the client accepts gzip
app.add_middleware(GZipMiddleware, minimum_size=1000)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# API endpoints - all under /api/*
app.include_router(histogram.router, prefix="/api", tags=["Histogram"])


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.get("/api/health")
async def api_health():
    return {"status": "ok", "service": "histogram"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
