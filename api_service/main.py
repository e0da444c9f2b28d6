"""FastAPI main application."""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging
import structlog
from contextlib import asynccontextmanager

from api_service.config import api_config
from api_service.routers import activities, recommendations, settings, templates, weights
from api_service.services.weight_service import WeightService
from config.loader import strategy_defaults
from db.session import engine, session_scope

# Configure structured logging
structlog.configure(
    processors=[
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.add_log_level,
        structlog.processors.JSONRenderer() if api_config.log_format == "json"
        else structlog.dev.ConsoleRenderer()
    ],
    wrapper_class=structlog.make_filtering_bound_logger(
        logging.getLevelName(api_config.log_level.upper())
    ),
)

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Startup
    logger.info("Starting OTA Strategy API Service")
    async with session_scope() as session:
        created = await WeightService(session).ensure_defaults(strategy_defaults.weights)
    logger.info("Weight parameters ready", seeded=created)
    yield
    # Shutdown
    logger.info("Shutting down OTA Strategy API Service")
    await engine.dispose()


# Create FastAPI application
app = FastAPI(
    title="OTA Promotion Strategy API",
    description="Weight-driven promotion strategy recommendations for hotel OTA listings",
    version="1.0.0",
    lifespan=lifespan
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=api_config.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(weights.router)
app.include_router(templates.router)
app.include_router(activities.router)
app.include_router(recommendations.router)
app.include_router(settings.router)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "service": "ota-strategy-api",
        "version": "1.0.0"
    }


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "OTA Promotion Strategy API",
        "docs": "/docs",
        "health": "/health"
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "api_service.main:app",
        host=api_config.api_host,
        port=api_config.api_port,
        reload=True
    )
