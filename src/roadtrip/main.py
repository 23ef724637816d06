"""FastAPI application entry point."""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.routes import health, plans
from .config import settings


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.app_name,
        description="Splits drives into days, suggests fuel/rest/meal/overnight stops and builds a timed itinerary.",
    )
    if settings.frontend_allowed_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(settings.frontend_allowed_origins),
            allow_credentials=True,
            allow_methods=["GET", "POST"],
            allow_headers=["*"],
        )

    @app.get("/")
    def root():
        prefix = settings.api_prefix
        return {
            "service": settings.app_name,
            "status": "running",
            "health": f"{prefix}/health",
            "endpoints": {
                "plan": f"{prefix}/plans",
                "timeline_csv": f"{prefix}/plans/timeline.csv",
                "engine_health": f"{prefix}/health/engine",
            },
            "docs": "/docs",
        }

    for router in (health.router, plans.router):
        app.include_router(router, prefix=settings.api_prefix)
    return app


app = create_app()
