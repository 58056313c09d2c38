from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator

from threadsmith.api.v1 import health, segments, suggestions
from threadsmith.core.config import get_settings
from threadsmith.core.errors import BaseApplicationError
from threadsmith.core.logging import LogEvent, configure_logging, get_logger
from threadsmith.core.middleware import RequestContextMiddleware, error_handler
from threadsmith.services import ServiceFactory

settings = get_settings()
configure_logging(settings.log_level, settings.json_logs, settings.log_file)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle"""
    logger.info(
        LogEvent.APP_STARTED,
        version=settings.version,
        checker=settings.languagetool_url,
        language=settings.language,
        api_prefix=settings.api_v1_prefix,
    )
    try:
        yield
    finally:
        await ServiceFactory.shutdown()
        logger.info(LogEvent.APP_STOPPED)


app = FastAPI(
    title=settings.project_name,
    version=settings.version,
    openapi_url=f"{settings.api_v1_prefix}/openapi.json",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# CORS: credentials are never allowed together with a wildcard origin
origins = settings.get_cors_origins()
allow_credentials = settings.cors_allow_credentials and origins != ["*"]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestContextMiddleware)

# Error handling
app.add_exception_handler(BaseApplicationError, error_handler)
app.add_exception_handler(Exception, error_handler)

# Routers
app.include_router(
    health.router,
    prefix=f"{settings.api_v1_prefix}/health",
    tags=["health"]
)
app.include_router(suggestions.router, prefix=settings.api_v1_prefix)
app.include_router(segments.router, prefix=settings.api_v1_prefix)

# Prometheus metrics
Instrumentator().instrument(app).expose(app)


@app.get("/")
async def root():
    """Root"""
    return {
        "name": settings.project_name,
        "version": settings.version,
        "docs": "/docs",
        "api_prefix": settings.api_v1_prefix,
    }


@app.get(f"{settings.api_v1_prefix}")
async def api_root():
    """API root"""
    return {
        "version": "v1",
        "endpoints": {
            "health": f"{settings.api_v1_prefix}/health",
            "check": f"{settings.api_v1_prefix}/suggestions/check",
            "group": f"{settings.api_v1_prefix}/suggestions/group",
            "apply": f"{settings.api_v1_prefix}/suggestions/apply",
            "fix_all": f"{settings.api_v1_prefix}/suggestions/fix-all",
            "count": f"{settings.api_v1_prefix}/segments/count",
        }
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("threadsmith.main:app", host="0.0.0.0", port=8000, log_level="info")
