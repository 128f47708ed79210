# /app/main.py

# --- Framework ---
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from .core.config import CORS_ORIGINS, PROJECT_NAME
from .core.logger import logger
from .db.base import Base
from .db.database import engine

# --- Routers ---
from .routers import (
    grades_router,
    flags_router,
    progress_router,
    dashboard_router,
)


# --- Startup / Shutdown ---
@asynccontextmanager
async def lifespan(app: FastAPI):
    # Alembic owns the production schema; this only fills in a fresh local database.
    Base.metadata.create_all(bind=engine)
    logger.info(f"[STARTUP] {PROJECT_NAME} ready")
    yield
    logger.info(f"[SHUTDOWN] {PROJECT_NAME} stopping")


# --- Application ---
app = FastAPI(
    title=PROJECT_NAME,
    description="Grade lifecycle, intervention flags and dashboards for the low-point tracker.",
    version="1.0.0",
    lifespan=lifespan
)

# --- CORS ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Route Mounting ---
app.include_router(grades_router.router, prefix="/api/grades", tags=["Grades"])
app.include_router(flags_router.router, prefix="/api/flags", tags=["Flags"])
app.include_router(progress_router.router, prefix="/api/progress", tags=["Progress"])
app.include_router(dashboard_router.router, prefix="/api/dashboard", tags=["Dashboard"])


# --- Health ---
@app.get("/", tags=["Health Check"])
async def read_root():
    """Liveness check used by the deployment platform."""
    return {"status": "LP Tracker Backend is running!", "version": app.version}
