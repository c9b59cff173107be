"""CCWatch FastAPI Backend — main application entry point."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ccwatch import config
from ccwatch.parsers.session_index import default_projects_dir
from ccwatch.routers.instances import instances_router

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("ccwatch")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown lifecycle."""
    logger.info(f"CCWatch backend starting up (claude home: {config.CLAUDE_HOME})")
    if not default_projects_dir().is_dir():
        logger.warning(f"No projects directory at {default_projects_dir()}; only live processes will be shown")
    yield
    logger.info("CCWatch backend shutting down")


app = FastAPI(
    title="CCWatch API",
    description="Live and historical Claude CLI instances for the CCWatch dashboard",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        config.FRONTEND_ORIGIN,
        "http://localhost:1420",
        "http://127.0.0.1:1420",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(instances_router)


@app.get("/api/health")
def health():
    """Health check endpoint."""
    return {
        "status": "ok",
        "claudeHome": str(config.CLAUDE_HOME),
        "projectsDir": str(default_projects_dir()),
    }
