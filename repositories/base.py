# ============================================================================
# REPOSITORY INTERFACES
# ============================================================================
# EPOCH: 1 - SEQUENTIAL WORKFLOWS
# STATUS: Core - Storage contracts
# PURPOSE: Backend-neutral interfaces for definition and run persistence
# CREATED: 19 OCT 2026
# ============================================================================
"""
Repository Interfaces

Services depend on these abstract classes only. Two backends implement
them: in-memory (repositories.memory) and PostgreSQL (repositories.run_repo,
repositories.workflow_repo).
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from core.contracts import RunStatus
from core.models import Run, WorkflowDefinition


class BaseWorkflowRepository(ABC):
    """Persistence for workflow definitions."""

    @abstractmethod
    async def create(self, workflow: WorkflowDefinition) -> WorkflowDefinition:
        """Insert a new definition. Raises WorkflowExistsError if the id is taken."""

    @abstractmethod
    async def save(self, workflow: WorkflowDefinition) -> WorkflowDefinition:
        """Insert or replace a definition."""

    @abstractmethod
    async def get(self, workflow_id: str) -> Optional[WorkflowDefinition]:
        ...

    @abstractmethod
    async def list_all(self) -> List[WorkflowDefinition]:
        ...

    @abstractmethod
    async def delete(self, workflow_id: str) -> bool:
        """Delete a definition. Returns False if it did not exist."""


class BaseRunRepository(ABC):
    """Persistence for runs (the audit record; never deleted by the engine)."""

    @abstractmethod
    async def create(self, run: Run) -> Run:
        ...

    @abstractmethod
    async def get(self, run_id: str) -> Optional[Run]:
        ...

    @abstractmethod
    async def save(self, run: Run) -> Run:
        """Persist status, step results, output, error and end time."""

    @abstractmethod
    async def list_runs(
        self,
        workflow_id: Optional[str] = None,
        status: Optional[RunStatus] = None,
        limit: int = 100,
    ) -> List[Run]:
        """List runs, newest first."""

    async def latest(self, workflow_id: str) -> Optional[Run]:
        """Most recently started run of a workflow."""
        runs = await self.list_runs(workflow_id=workflow_id, limit=1)
        return runs[0] if runs else None


__all__ = ["BaseWorkflowRepository", "BaseRunRepository"]
