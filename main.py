# main.py - messaging API entry point
import asyncio
import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from business.relay import BroadcastRelay
from database.database import db_manager
from database.migrations import run_migrations_sync
from integrations.blob_store import blob_store
from routers import router
from utils.constants import CORS_ORIGINS, UPLOAD_URL_PREFIX
from utils.errors import MessagingError, StoreError

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler()  # This outputs to console
    ],
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle application startup and shutdown events."""
    # Startup
    logger.info("Starting application...")

    try:
        logger.info("Running database migrations...")
        run_migrations_sync()
        logger.info("Database initialization completed successfully")
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")
        raise

    # One relay per application lifetime
    app.state.relay = BroadcastRelay()

    yield  # Application runs here

    # Shutdown
    logger.info("Shutting down application...")
    try:
        # Add timeout to prevent hanging on close
        await asyncio.wait_for(db_manager.close(), timeout=5.0)
        logger.info("Database connections closed successfully")
    except asyncio.TimeoutError:
        logger.warning("Database close timed out - forcing shutdown")

    logger.info("Application shutdown completed")


# Create FastAPI app with lifespan events
app = FastAPI(
    title="Messaging API",
    description="Users, friend requests, direct messages and a live broadcast relay",
    version="1.0.0",
    lifespan=lifespan
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(MessagingError)
async def messaging_error_handler(request: Request, exc: MessagingError) -> JSONResponse:
    if isinstance(exc, StoreError):
        logger.error(f"Store failure on {request.method} {request.url.path}: {exc.__cause__}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


app.include_router(router)
app.mount(UPLOAD_URL_PREFIX, StaticFiles(directory=blob_store.directory), name="uploads")


@app.get("/")
async def read_root() -> dict:
    return {"message": "Messaging API is running"}


@app.get("/health")
async def health_check():
    """Health check with database connectivity test."""
    db_status = "unknown"
    try:
        db_status = "connected" if await db_manager.ping() else "disconnected"
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        db_status = "error"

    return {
        "status": "healthy",
        "database": db_status,
        "environment": os.getenv("ENVIRONMENT", "development")
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="127.0.0.1", port=8000)
