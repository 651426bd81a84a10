from __future__ import annotations
import logging

from contextlib import asynccontextmanager
from datetime import datetime, timezone

from sqlalchemy import text

from fastapi import FastAPI, HTTPException, status
from fastapi.requests import Request
from fastapi.responses import JSONResponse, Response

from prometheus_client import generate_latest, CONTENT_TYPE_LATEST

from moviestream.db.database_session import Base, engine
from moviestream.api.errors import CatalogError
from moviestream.api.security import init_authorization
from moviestream.api.routers import auth, users, admin, movies


# _________________________________________________________________________________________________________
# API Endpoints
# _________________________________________________________________________________________________________

logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s | %(name)s | %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan handler: runs once at startup and once at shutdown.
    Ensures the tables exist and an admin account is available before the
    first request is served.
    """
    Base.metadata.create_all(bind=engine)
    logger.info("[startup] Database tables ensured")

    init_authorization()

    yield                                       # app runs while yielded
    engine.dispose()
    logger.info("[shutdown] Database connections released")


app = FastAPI(
    title="Movie Streaming Catalog API",
    description="Movie catalog with filtering, pagination, user reviews and favourites.",
    lifespan=lifespan
)

# Include router endpoints
app.include_router(auth.router)
app.include_router(users.router)
app.include_router(admin.router)
app.include_router(movies.router)


@app.get("/health", tags=["System"])
def health_check():
    """
    Lightweight healthcheck endpoint.
    Verifies connectivity to the database.
    Returns 200 OK if it is reachable, else 500.
    """
    status_report = {"timestamp": datetime.now(timezone.utc).isoformat()}

    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        status_report["database"] = "reachable"
    except Exception as e:
        status_report["database"] = f"unreachable ({str(e)})"

    if status_report["database"] == "reachable":
        return status_report
    raise HTTPException(status_code=500, detail=status_report)


@app.exception_handler(CatalogError)
async def catalog_error_handler(_: Request, exc: CatalogError):
    '''
    Every domain error (movie not found, already reviewed, invalid filter, ...) is
    answered here with its status code and message. One response per request.
    '''
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    '''
    Catches any other exception that wasn't explicitly handled and returns a 500 JSON response instead.
    '''
    logger.exception("Unhandled error in %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error."},
    )


@app.get("/metrics")
def metrics():
    """
    Prometheus scrape endpoint.
    Returns all registered metrics in Prometheus text format.
    """
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)
