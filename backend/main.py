"""
Dev server serving signed sources
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import HTTPException as FastAPIHTTPException
from fastapi.responses import JSONResponse

from wormhole import __version__
from wormhole.api.routes import health, sources
from wormhole.core.config import get_settings
from wormhole.core.logging_config import LoggingConfig
from wormhole.core.middleware import LoggingContextMiddleware

# Configure logging first
LoggingConfig.configure()

logger = LoggingConfig.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan events for FastAPI app"""
    settings = get_settings()
    logger.info(f"Serving sources from {settings.sources_path} in {settings.app_env} mode")
    if not settings.signing_secret:
        logger.warning("SIGNING_SECRET is not set; source requests will be refused")
    yield
    logger.info(f"Shutting down {settings.app_name} dev server...")


_settings = get_settings()
app = FastAPI(
    title=f"{_settings.app_name} dev server",
    description="Serves signed component sources; sources are re-read on every request",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(LoggingContextMiddleware)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler to log all unhandled errors"""
    if isinstance(exc, FastAPIHTTPException):
        raise exc

    logger.error(
        "Unhandled exception",
        exc_info=True,
        extra={
            "error": str(exc),
            "error_type": type(exc).__name__,
            "path": request.url.path,
            "method": request.method,
        }
    )

    return JSONResponse(
        status_code=500,
        content={
            "detail": str(exc),
            "type": type(exc).__name__
        }
    )


app.include_router(health.router)
app.include_router(sources.router)


if __name__ == "__main__":
    import uvicorn
    settings = get_settings()
    uvicorn.run(
        "main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.app_env == "development",
    )
