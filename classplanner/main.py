"""
Main FastAPI application
Class Meeting Scheduler Backend
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from classplanner.config import CORS_ORIGINS, PORT, configure_logging
from classplanner.models.database import close_db, init_db
from classplanner.routes import catalog, export, schedules

configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    logger.info("Initializing database...")
    init_db()
    logger.info("Database initialized successfully")
    yield
    logger.info("Shutting down...")
    close_db()


app = FastAPI(
    title="Class Meeting Scheduler",
    description="Greedy constraint-based scheduler for weekly class meetings",
    version="1.0.0",
    lifespan=lifespan
)

# CORS Middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Include routers
for router in catalog.routers:
    app.include_router(router)
app.include_router(schedules.router)
app.include_router(export.router)


# Health check endpoint
@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "OK",
        "message": "Class Meeting Scheduler Backend is running"
    }


# Root endpoint
@app.get("/")
async def root():
    """Root endpoint with API info"""
    return {
        "name": "Class Meeting Scheduler",
        "version": "1.0.0",
        "description": "Greedy constraint-based scheduler for weekly class meetings",
        "endpoints": {
            "health": "/health",
            "teachers": "/api/teachers",
            "classrooms": "/api/classrooms",
            "sections": "/api/sections",
            "subjects": "/api/subjects",
            "school_years": "/api/school-years",
            "schedules": "/api/schedules",
            "generate": "POST /api/schedules/generate-optimized",
            "generate_weekly": "POST /api/schedules/generate-weekly",
            "week": "GET /api/schedules/week",
            "statistics": "GET /api/schedules/statistics",
            "validate": "POST /api/schedules/validate",
            "runs": "GET /api/schedules/runs",
            "export": "GET /api/export/schedules?format=csv|xlsx|json|pdf",
            "docs": "/docs",
            "openapi": "/openapi.json"
        }
    }


# 404 handler
@app.exception_handler(404)
async def not_found_handler(request, exc):
    detail = getattr(exc, "detail", None) or "Endpoint not found"
    return JSONResponse(
        status_code=404,
        content={"detail": detail}
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=PORT)
