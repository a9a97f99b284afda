"""
FastAPI application entry point.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from correlator.api import analysis, tickets, webhooks
from correlator.config import settings
from correlator.dependencies import close_clients, get_redis_client, get_store
from correlator.middleware.logging import RequestLoggingMiddleware
from correlator.utils.logging import get_logger, setup_logging

# Configure structured logging
setup_logging(settings.log_level)

logger = get_logger(__name__)

app = FastAPI(
    title="Ticket Correlator",
    description="Correlates GitHub activity with project tickets and runs AI enrichment",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(RequestLoggingMiddleware)


@app.get("/health")
async def health_check():
    """Health check endpoint for container orchestration."""
    return {"status": "healthy", "version": "0.1.0"}


@app.get("/")
async def root():
    return {
        "message": "Ticket Correlator API",
        "version": "0.1.0",
        "docs": "/docs",
    }


app.include_router(webhooks.router)
app.include_router(analysis.router)
app.include_router(tickets.router)


@app.on_event("startup")
async def startup_event():
    """Open the store pool and the Redis connection."""
    logger.info("Starting Ticket Correlator API")

    await get_store().initialize()
    logger.info("Store initialized")

    await get_redis_client().initialize()
    logger.info("Redis client initialized")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Shutting down Ticket Correlator API")
    await close_clients()
    logger.info("Connections closed")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
