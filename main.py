# ============================================================================
# AGENT WORKFLOW ENGINE - MAIN APPLICATION
# ============================================================================
# EPOCH: 1 - SEQUENTIAL WORKFLOWS
# STATUS: Core - FastAPI application entry point
# PURPOSE: Wire storage, services and orchestrator behind the HTTP API
# CREATED: 19 OCT 2026
# ============================================================================
"""
Agent Workflow Engine Main Application

FastAPI application that:
1. Provides HTTP API for workflow definitions and runs
2. Executes runs as background tasks
3. Manages storage (in-memory or PostgreSQL)

Usage:
    uvicorn main:app --host 0.0.0.0 --port 8000
"""

import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from __version__ import __version__, BUILD_DATE, EPOCH
from core.config import Defaults, StorageBackend, get_defaults
from core.logging import configure_logging, get_logger
from repositories import (
    InMemoryRunRepository,
    InMemoryWorkflowRepository,
    RunRepository,
    WorkflowRepository,
    close_pool,
    ensure_schema,
    init_pool,
)
from services import AgentService, RunService, WorkflowService
from orchestrator import Orchestrator
from api.routes import router, set_services

import handlers  # noqa: F401 - registers the bundled actions
from handlers.http_dispatcher import HttpDispatcher

configure_logging(
    level=os.environ.get("LOG_LEVEL", "INFO"),
    json_output=os.environ.get("LOG_FORMAT", "").lower() == "json",
)
logger = get_logger(__name__)

# Global instances
_orchestrator: Optional[Orchestrator] = None


async def build_orchestrator(defaults: Defaults) -> Orchestrator:
    """
    Create repositories, services and the orchestrator for a configuration,
    and load the YAML catalogs.
    """
    storage = defaults.storage

    if storage.backend == StorageBackend.POSTGRES:
        pool = await init_pool()
        await ensure_schema(pool)
        workflow_repo = WorkflowRepository(pool)
        run_repo = RunRepository(pool)
    else:
        workflow_repo = InMemoryWorkflowRepository()
        run_repo = InMemoryRunRepository()
    logger.info(f"Storage backend: {storage.backend.value}")

    agent_service = AgentService(storage.agents_file)
    agent_count = agent_service.load_all()

    workflow_service = WorkflowService(
        workflow_repo,
        agent_service=agent_service,
        workflows_dir=storage.workflows_dir,
        require_registered_actions=True,
    )
    workflow_count = await workflow_service.load_all()
    logger.info(f"Loaded {agent_count} agents and {workflow_count} workflows")

    run_service = RunService(run_repo, max_error_length=defaults.engine.max_error_length)
    orchestrator = Orchestrator(
        workflow_service,
        run_service,
        dispatcher=HttpDispatcher(agent_service),
        defaults=defaults.engine,
    )

    set_services(
        workflow_service=workflow_service,
        run_service=run_service,
        agent_service=agent_service,
        orchestrator=orchestrator,
    )
    return orchestrator


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Initializes services on startup, cleans up on shutdown.
    """
    global _orchestrator

    logger.info(f"Starting Agent Workflow Engine v{__version__} (Epoch {EPOCH}, Build {BUILD_DATE})")

    defaults = get_defaults()
    _orchestrator = await build_orchestrator(defaults)

    yield

    # Shutdown
    logger.info("Shutting down Agent Workflow Engine...")

    await _orchestrator.shutdown()
    if defaults.storage.backend == StorageBackend.POSTGRES:
        await close_pool()

    logger.info("Agent Workflow Engine stopped")


# Create FastAPI app
app = FastAPI(
    title="Agent Workflow Engine",
    description="Sequential agent-action workflow execution",
    version=__version__,
    lifespan=lifespan,
)

# Include API routes
app.include_router(router, prefix="/api/v1")


# Root endpoint
@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "service": "Agent Workflow Engine",
        "version": __version__,
        "epoch": EPOCH,
        "build_date": BUILD_DATE,
        "status": "running",
        "docs": "/docs",
    }


# ============================================================================
# MAIN ENTRY POINT
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    host = os.environ.get("HOST", "0.0.0.0")
    port = int(os.environ.get("PORT", "8000"))

    uvicorn.run(
        "main:app",
        host=host,
        port=port,
        reload=os.environ.get("RELOAD", "false").lower() == "true",
    )
