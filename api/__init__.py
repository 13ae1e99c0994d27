# ============================================================================
# API MODULE
# ============================================================================
# EPOCH: 1 - SEQUENTIAL WORKFLOWS
# STATUS: Core - FastAPI routes
# PURPOSE: HTTP API for workflows and runs
# CREATED: 19 OCT 2026
# ============================================================================
"""
API Module

FastAPI routes for the workflow engine.
"""

from .routes import router, set_services
from .schemas import (
    RunCreate,
    RunResponse,
    WorkflowResponse,
)

__all__ = [
    "router",
    "set_services",
    "RunCreate",
    "RunResponse",
    "WorkflowResponse",
]
