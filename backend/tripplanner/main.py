from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator
import structlog

from tripplanner.api import auth, trips
from tripplanner.core.errors import register_exception_handlers
from tripplanner.core.logging import configure_logging
from tripplanner.core.rate_limit import configure_rate_limiting, limiter
from tripplanner.core.settings import Settings
from tripplanner.db.session import DatabaseManager
from tripplanner.middleware.logging import RequestLoggingMiddleware

__version__ = "1.0.0"

logger = structlog.get_logger(__name__)

prefix = "/api"


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings()
    configure_logging(settings.LOG_LEVEL, settings.LOG_FILE)
    configure_rate_limiting(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting application...", environment=settings.ENVIRONMENT)
        db = DatabaseManager(settings)
        try:
            await db.initialize()
            if settings.CREATE_TABLES_ON_STARTUP:
                await db.init_db()
        except Exception:
            logger.exception("Failed to initialize database manager")
            raise
        app.state.db = db

        yield

        logger.info("Shutting down application...")
        await db.close()

    app = FastAPI(
        title="Trip Planner API",
        description="Trips, hotels, transports and activities for logged-in travellers",
        version=__version__,
        lifespan=lifespan
    )
    app.state.settings = settings

    app.state.limiter = limiter
    register_exception_handlers(app)

    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if settings.ENABLE_METRICS:
        Instrumentator().instrument(app).expose(app, endpoint="/metrics", include_in_schema=False)

    @app.get("/")
    def root():
        return {"message": "Welcome to Trip Planner API", "version": __version__}

    @app.get("/health")
    async def health_check(request: Request):
        """Database connectivity and pool status"""
        db_health = await request.app.state.db.health_check()
        return {
            "status": "healthy" if db_health["status"] == "healthy" else "degraded",
            "version": __version__,
            "components": {"database": db_health},
            "timestamp": datetime.now(timezone.utc).isoformat()
        }

    app.include_router(auth.router, prefix=prefix)
    app.include_router(trips.router, prefix=prefix)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=5000)
