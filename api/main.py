"""
FastAPI application initialization
"""

from fastapi import FastAPI
from api.routes import health, notifications, schedules
from api.middleware import RequestContextMiddleware
from core.config import settings
from core.context import AppContext, build_context
from core.logging import setup_logging
from typing import Optional
import logging

logger = logging.getLogger(__name__)


def create_app(
    context: Optional[AppContext] = None,
    start_scheduler: Optional[bool] = None,
    start_simulator: Optional[bool] = None
) -> FastAPI:
    """
    Build the application.
    
    Args:
        context: Prebuilt application context; built from the integration
            config at startup when omitted
        start_scheduler: Arm schedule timers at startup (AUTO_START_SCHEDULER)
        start_simulator: Run the notification simulator
            (NOTIFICATION_SIMULATION_ENABLED)
    """
    app = FastAPI(
        title="Dealflow Integration API",
        description="Scheduled data integration, ETL pipelines and notification routing",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc"
    )
    
    app.add_middleware(RequestContextMiddleware)
    app.state.context = context
    
    app.include_router(health.router)
    app.include_router(schedules.router)
    app.include_router(notifications.router)
    
    @app.on_event("startup")
    async def startup_event():
        """Application startup event"""
        logger.info("Starting Dealflow Integration API")
        logger.info(f"Environment: {settings.ENVIRONMENT}")
        
        if app.state.context is None:
            app.state.context = build_context()
        
        app.state.context.start(
            scheduler=settings.AUTO_START_SCHEDULER if start_scheduler is None else start_scheduler,
            simulator=settings.NOTIFICATION_SIMULATION_ENABLED if start_simulator is None else start_simulator
        )
    
    @app.on_event("shutdown")
    async def shutdown_event():
        """Application shutdown event"""
        logger.info("Shutting down Dealflow Integration API")
        if app.state.context is not None:
            app.state.context.shutdown()
    
    @app.get("/")
    async def root():
        """Root endpoint"""
        return {
            "message": "Dealflow Integration API",
            "version": "1.0.0",
            "docs": "/docs",
            "health": "/health",
            "endpoints": {
                "status": "/status",
                "schedules": "/schedules",
                "notifications": "/notifications",
                "rules": "/rules",
                "channels": "/channels"
            }
        }
    
    return app


setup_logging()
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "api.main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        reload=settings.ENVIRONMENT == "development"
    )
