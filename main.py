"""
Main FastAPI Application
Entry point for the backend server
"""
import logging
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from datetime import datetime
from motor.motor_asyncio import AsyncIOMotorClient

from app.config import settings
from app.logging_config import configure_logging
from app.services.store import MongoStore

# Import routers
from app.api.routes import hr_requests, overtime_requests, overtime_accruals


logger = logging.getLogger("app.main")


async def create_indexes(database) -> None:
    """Indexes backing the list filters and ordering"""
    await database["hr_requests"].create_index([("status", 1), ("submitted_at", -1)])
    await database["hr_requests"].create_index([("requested_by", 1), ("submitted_at", -1)])
    await database["overtime_requests"].create_index([("employee_id", 1), ("submitted_at", -1)])
    await database["overtime_requests"].create_index([("status", 1), ("submitted_at", -1)])


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings)
    logger.info("🚀 Starting %s...", settings.APP_NAME)

    # Initialize MongoDB
    client = AsyncIOMotorClient(settings.MONGODB_URL)
    database = client[settings.MONGODB_DB_NAME]
    await create_indexes(database)
    app.state.store = MongoStore(database)

    logger.info("✅ Connected to MongoDB: %s", settings.MONGODB_DB_NAME)
    logger.info("✅ Server running on %s:%s", settings.HOST, settings.PORT)

    yield

    # Shutdown
    logger.info("👋 Shutting down...")
    client.close()


# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Dual-approval workflow for HR change requests and overtime",
    lifespan=lifespan,
    docs_url="/api/docs",
    redoc_url="/api/redoc"
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(hr_requests.router, prefix="/api/hr-requests", tags=["HR Requests"])
app.include_router(overtime_requests.router, prefix="/api/overtime-requests", tags=["Overtime Requests"])
app.include_router(overtime_accruals.router, prefix="/api/overtime-accruals", tags=["Overtime Accruals"])


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": "HR Approval Workflow API",
        "version": settings.APP_VERSION,
        "docs": "/api/docs"
    }


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "timestamp": datetime.utcnow().isoformat()
    }


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower()
    )
