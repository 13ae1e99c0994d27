# ============================================================================
# SERVICES MODULE
# ============================================================================
# EPOCH: 1 - SEQUENTIAL WORKFLOWS
# STATUS: Core - Business logic layer
# PURPOSE: Definition store, agent catalog and run tracking services
# CREATED: 19 OCT 2026
# ============================================================================
"""
Services Module

Business logic for workflow execution.
Services coordinate between repositories and the orchestrator.

Usage:
    from services import RunService, WorkflowService

    run_service = RunService(InMemoryRunRepository())
    run = await run_service.create_run("email-processing", {"email": {...}})
"""

from .agent_service import AgentService
from .run_service import RunService
from .workflow_service import WorkflowService

__all__ = [
    "AgentService",
    "RunService",
    "WorkflowService",
]
