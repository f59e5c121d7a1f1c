from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from shortlink_app.api.v1 import redirect, statistics, urls
from shortlink_app.config import settings
from shortlink_app.dependencies import ServiceContainer
from shortlink_app.exceptions import ShortenerError
from shortlink_app.logging_config import get_logger, setup_logging


logger = get_logger("app")


def create_app(container: Optional[ServiceContainer] = None) -> FastAPI:
    """
    Build the FastAPI app.

    Without a container, one is built from settings at startup and closed
    at shutdown. A container passed in (tests) is used as-is and left open.
    """
    setup_logging(level=settings.log_level, json_format=settings.log_json)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = container is None
        app.state.container = ServiceContainer.from_settings(settings) if owned else container
        logger.info("%s %s started (%s)", settings.app_name, settings.app_version, settings.environment)
        try:
            yield
        finally:
            if owned:
                app.state.container.close()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="A URL shortener with expiring links and click statistics",
        debug=settings.debug,
        lifespan=lifespan,
    )

    @app.exception_handler(ShortenerError)
    async def shortener_error_handler(request: Request, exc: ShortenerError):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.get("/")
    def read_root():
        """Root endpoint with API information"""
        return {
            "message": f"Welcome to {settings.app_name}",
            "version": settings.app_version,
            "docs": "/docs",
            "redoc": "/redoc"
        }

    @app.get("/health")
    def health_check():
        """Health check endpoint"""
        return {"status": "healthy", "environment": settings.environment}

    ######## Include routers
    app.include_router(urls.router, prefix="/api")
    app.include_router(redirect.router, prefix="/api")
    app.include_router(statistics.router, prefix="/api")
    app.include_router(redirect.public_router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host=settings.host, port=settings.port, reload=settings.debug)
