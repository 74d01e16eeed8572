"""
chronomap - Main FastAPI Application

Serves the element stores and the timeline document, and reconstructs
elements as they stood in any year of the map's history.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from chronomap import __version__
from chronomap.api.v1.router import api_router
from chronomap.config import get_settings
from chronomap.core.errors import (
    ChronomapError,
    ConsistencyError,
    NotFoundError,
    StoreIOError,
    ValidationError,
)

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

ERROR_STATUS = {
    ValidationError: 400,
    NotFoundError: 404,
    ConsistencyError: 409,
    StoreIOError: 503,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.storage_backend == "sql":
        from chronomap.db.session import init_db

        init_db()
        logger.info("Database tables ready at %s", settings.database_url)
    else:
        logger.info("Using JSON documents in %s", settings.data_dir)
    yield


app = FastAPI(
    title=settings.project_name,
    description="""
    chronomap: temporal versioning for map authoring

    ## Systems

    - **Elements**: current records of locations and regions
    - **Timeline**: dated entries recording changes, notes and ages
    - **Reconstruction**: element state as of any year
    - **Epochs**: named year ranges and year display
    """,
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.backend_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ChronomapError)
async def chronomap_error_handler(request: Request, exc: ChronomapError):
    status_code = ERROR_STATUS.get(type(exc), 500)
    if status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=status_code,
        content={"error": exc.kind, "detail": exc.message},
    )


# Include API router
app.include_router(api_router, prefix=settings.api_v1_prefix)


@app.get("/")
async def root():
    """Root endpoint - system status."""
    return {
        "system": settings.project_name,
        "status": "operational",
        "version": __version__,
        "storage": settings.storage_backend,
    }


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
