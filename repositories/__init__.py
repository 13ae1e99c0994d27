# ============================================================================
# REPOSITORIES MODULE
# ============================================================================
# EPOCH: 1 - SEQUENTIAL WORKFLOWS
# STATUS: Core - Storage access layer
# PURPOSE: Persistence for workflow definitions and runs
# CREATED: 19 OCT 2026
# ============================================================================
"""
Repositories Module

Provides storage for workflow definitions and runs. PostgreSQL access uses
psycopg3 async with connection pooling; the in-memory backend serves tests
and single-process deployments.

Usage:
    from repositories import get_pool, RunRepository, WorkflowRepository

    pool = await get_pool()
    run_repo = RunRepository(pool)
    run = await run_repo.get(run_id)
"""

from .base import BaseRunRepository, BaseWorkflowRepository
from .memory import InMemoryRunRepository, InMemoryWorkflowRepository
from .database import get_pool, init_pool, close_pool, ensure_schema, DatabasePool
from .run_repo import RunRepository
from .workflow_repo import WorkflowRepository

__all__ = [
    "BaseRunRepository",
    "BaseWorkflowRepository",
    "InMemoryRunRepository",
    "InMemoryWorkflowRepository",
    "get_pool",
    "init_pool",
    "close_pool",
    "ensure_schema",
    "DatabasePool",
    "RunRepository",
    "WorkflowRepository",
]
