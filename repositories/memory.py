# ============================================================================
# IN-MEMORY REPOSITORIES
# ============================================================================
# EPOCH: 1 - SEQUENTIAL WORKFLOWS
# STATUS: Core - Process-local storage backend
# PURPOSE: Definition and run storage for tests and single-process use
# CREATED: 19 OCT 2026
# ============================================================================
"""
In-Memory Repositories

Dict-backed implementations of the repository interfaces. Every read and
write deep-copies the model so callers never share mutable state with the
store (same behavior as a round trip through the database).
"""

import asyncio
import logging
from typing import Dict, List, Optional

from core.contracts import RunStatus
from core.errors import WorkflowExistsError
from core.models import Run, WorkflowDefinition
from .base import BaseRunRepository, BaseWorkflowRepository

logger = logging.getLogger(__name__)


class InMemoryWorkflowRepository(BaseWorkflowRepository):
    """Workflow definitions kept in a dict."""

    def __init__(self):
        self._workflows: Dict[str, WorkflowDefinition] = {}
        self._lock = asyncio.Lock()

    async def create(self, workflow: WorkflowDefinition) -> WorkflowDefinition:
        async with self._lock:
            if workflow.workflow_id in self._workflows:
                raise WorkflowExistsError(workflow.workflow_id)
            self._workflows[workflow.workflow_id] = workflow.model_copy(deep=True)
        logger.debug(f"Created workflow {workflow.workflow_id} v{workflow.version}")
        return workflow

    async def save(self, workflow: WorkflowDefinition) -> WorkflowDefinition:
        async with self._lock:
            self._workflows[workflow.workflow_id] = workflow.model_copy(deep=True)
        logger.debug(f"Saved workflow {workflow.workflow_id} v{workflow.version}")
        return workflow

    async def get(self, workflow_id: str) -> Optional[WorkflowDefinition]:
        workflow = self._workflows.get(workflow_id)
        return workflow.model_copy(deep=True) if workflow else None

    async def list_all(self) -> List[WorkflowDefinition]:
        return [
            self._workflows[key].model_copy(deep=True)
            for key in sorted(self._workflows)
        ]

    async def delete(self, workflow_id: str) -> bool:
        async with self._lock:
            return self._workflows.pop(workflow_id, None) is not None


class InMemoryRunRepository(BaseRunRepository):
    """Runs kept in a dict."""

    def __init__(self):
        self._runs: Dict[str, Run] = {}
        self._lock = asyncio.Lock()

    async def create(self, run: Run) -> Run:
        async with self._lock:
            if run.run_id in self._runs:
                raise ValueError(f"Run already exists: {run.run_id}")
            self._runs[run.run_id] = run.model_copy(deep=True)
        logger.debug(f"Created run {run.run_id} for workflow {run.workflow_id}")
        return run

    async def get(self, run_id: str) -> Optional[Run]:
        run = self._runs.get(run_id)
        return run.model_copy(deep=True) if run else None

    async def save(self, run: Run) -> Run:
        async with self._lock:
            if run.run_id not in self._runs:
                raise KeyError(f"Run not found: {run.run_id}")
            self._runs[run.run_id] = run.model_copy(deep=True)
        return run

    async def list_runs(
        self,
        workflow_id: Optional[str] = None,
        status: Optional[RunStatus] = None,
        limit: int = 100,
    ) -> List[Run]:
        runs = [
            run for run in self._runs.values()
            if (workflow_id is None or run.workflow_id == workflow_id)
            and (status is None or run.status == status)
        ]
        runs.sort(key=lambda r: r.start_time, reverse=True)
        return [run.model_copy(deep=True) for run in runs[:limit]]


__all__ = ["InMemoryWorkflowRepository", "InMemoryRunRepository"]
