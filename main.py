from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from linkpulse.config import Settings, settings
from linkpulse.container import build_container
from linkpulse.logging_config import setup_logging
from linkpulse.api.v1 import links, analytics, redirect


def create_app(app_settings: Settings = settings) -> FastAPI:
    """Build the FastAPI app; the container lives for the app's lifespan."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        container = await build_container(app_settings)
        await container.start()
        app.state.container = container
        try:
            yield
        finally:
            await container.close()

    app = FastAPI(
        title=app_settings.app_name,
        version=app_settings.app_version,
        description="URL shortener with cache-aside redirects and click analytics",
        debug=app_settings.debug,
        lifespan=lifespan,
    )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Malformed request bodies are client errors (400), not 422"""
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": jsonable_encoder(exc.errors())},
        )

    @app.get("/")
    def read_root():
        """Root endpoint with API information"""
        return {
            "message": f"Welcome to {app_settings.app_name}",
            "version": app_settings.app_version,
            "docs": "/docs",
            "redoc": "/redoc"
        }

    @app.get("/health")
    def health_check():
        """Health check endpoint"""
        return {"status": "healthy", "environment": app_settings.environment}

    ######## Include routers (redirect last: it catches every single-segment path)
    app.include_router(links.router)
    app.include_router(analytics.router)
    app.include_router(redirect.router)

    return app


setup_logging(settings.log_level, json_format=settings.log_json)
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host=settings.host, port=settings.port, reload=settings.debug)
