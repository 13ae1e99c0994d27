# ============================================================================
# RUN SERVICE
# ============================================================================
# EPOCH: 1 - SEQUENTIAL WORKFLOWS
# STATUS: Core - Run lifecycle tracking
# PURPOSE: Create runs, append step results, finalize exactly once
# CREATED: 19 OCT 2026
# ============================================================================
"""
Run Service (run tracker)

Owns the lifecycle record of each run:
- Create a run in RUNNING with an empty result list
- Append step results in order (append-only, bounded by total_steps)
- Finalize once to COMPLETED or FAILED
- Compute a definition's status view from its runs

Misuse (appending to a finished run, finalizing twice) raises RunStateError:
these are programming errors in the caller, not run failures.
"""

import logging
import uuid
from datetime import datetime
from typing import Any, List, Optional, Tuple

from core.config import get_defaults
from core.contracts import RunStatus, TriggerType, WorkflowStatus
from core.errors import RunNotFoundError, RunStateError
from core.models import Run, StepResult, WorkflowDefinition
from repositories.base import BaseRunRepository

logger = logging.getLogger(__name__)


class RunService:
    """Service for run lifecycle management."""

    def __init__(self, run_repo: BaseRunRepository, max_error_length: Optional[int] = None):
        """
        Initialize run service.

        Args:
            run_repo: Run storage backend
            max_error_length: Truncation limit for run errors
                (defaults to ENGINE_MAX_ERROR_LENGTH)
        """
        self.run_repo = run_repo
        self.max_error_length = max_error_length or get_defaults().engine.max_error_length

    async def create_run(
        self,
        workflow_id: str,
        input: Any = None,
        workflow_version: int = 1,
        total_steps: int = 0,
        triggered_by: TriggerType = TriggerType.MANUAL,
        correlation_id: Optional[str] = None,
        run_id: Optional[str] = None,
    ) -> Run:
        """
        Create a new run in RUNNING state.

        Args:
            workflow_id: Workflow being executed
            input: The run's initiating input
            workflow_version: Definition version pinned for this run
            total_steps: Number of steps in the pinned definition
            triggered_by: What started the run
            correlation_id: External correlation ID
            run_id: Explicit run ID (generated if omitted)

        Returns:
            Created Run instance
        """
        run = Run(
            run_id=run_id or self._generate_run_id(),
            workflow_id=workflow_id,
            input=input,
            workflow_version=workflow_version,
            total_steps=total_steps,
            triggered_by=triggered_by,
            correlation_id=correlation_id,
        )
        await self.run_repo.create(run)

        logger.info(
            f"Created run {run.run_id} for workflow {workflow_id} "
            f"v{workflow_version} ({total_steps} steps)"
        )
        return run

    async def append_step_result(self, run_id: str, result: StepResult) -> Run:
        """
        Append one step result to a running run.

        Raises:
            RunNotFoundError: If the run does not exist
            RunStateError: If the run is terminal or already holds
                total_steps results
        """
        run = await self.get_run_or_raise(run_id)

        if run.is_terminal:
            raise RunStateError(
                f"Cannot append result for step '{result.step_id}': "
                f"run {run_id} is already {run.status.value}"
            )
        if len(run.step_results) >= run.total_steps:
            raise RunStateError(
                f"Cannot append result for step '{result.step_id}': "
                f"run {run_id} already has {run.total_steps} results"
            )

        run.step_results.append(result)
        await self.run_repo.save(run)

        logger.debug(
            f"Run {run_id}: recorded step '{result.step_id}' "
            f"({result.status.value}, {len(run.step_results)}/{run.total_steps})"
        )
        return run

    async def complete_run(
        self,
        run_id: str,
        status: RunStatus,
        output: Any = None,
        error: Optional[str] = None,
    ) -> Run:
        """
        Finalize a run. Only allowed once.

        Args:
            run_id: Run to finalize
            status: COMPLETED or FAILED
            output: Aggregate output (COMPLETED)
            error: Failure message (FAILED)

        Raises:
            RunNotFoundError: If the run does not exist
            RunStateError: If status is not terminal or the run is
                already finalized
        """
        if not status.is_terminal():
            raise RunStateError(f"Cannot complete run {run_id} with non-terminal status {status.value}")

        run = await self.get_run_or_raise(run_id)
        if not run.can_transition_to(status):
            raise RunStateError(f"Run {run_id} is already {run.status.value}")

        if status == RunStatus.COMPLETED:
            run.mark_completed(output)
        else:
            run.mark_failed(error, max_length=self.max_error_length)

        await self.run_repo.save(run)

        logger.info(
            f"Run {run_id} {run.status.value} after "
            f"{len(run.step_results)}/{run.total_steps} steps"
        )
        return run

    # =========================================================================
    # QUERIES
    # =========================================================================

    async def get_run(self, run_id: str) -> Optional[Run]:
        """Get a run by ID."""
        return await self.run_repo.get(run_id)

    async def get_run_or_raise(self, run_id: str) -> Run:
        run = await self.run_repo.get(run_id)
        if run is None:
            raise RunNotFoundError(run_id)
        return run

    async def list_runs(
        self,
        workflow_id: Optional[str] = None,
        status: Optional[RunStatus] = None,
        limit: int = 100,
    ) -> List[Run]:
        """List runs, newest first."""
        return await self.run_repo.list_runs(workflow_id=workflow_id, status=status, limit=limit)

    async def latest_run(self, workflow_id: str) -> Optional[Run]:
        """Most recently started run of a workflow, if any."""
        return await self.run_repo.latest(workflow_id)

    async def workflow_status(
        self,
        workflow: WorkflowDefinition,
    ) -> Tuple[WorkflowStatus, Optional[datetime]]:
        """
        Compute a definition's status view from its runs.

        Returns:
            (status, last_run) where status is RUNNING while any run of the
            workflow is running, otherwise ACTIVE/INACTIVE from is_active;
            last_run is the latest run's end time (start time while running).
        """
        running = await self.run_repo.list_runs(
            workflow_id=workflow.workflow_id, status=RunStatus.RUNNING, limit=1
        )
        if running:
            status = WorkflowStatus.RUNNING
        elif workflow.is_active:
            status = WorkflowStatus.ACTIVE
        else:
            status = WorkflowStatus.INACTIVE

        latest = await self.latest_run(workflow.workflow_id)
        last_run = None
        if latest is not None:
            last_run = latest.end_time or latest.start_time

        return status, last_run

    def _generate_run_id(self) -> str:
        return f"run-{uuid.uuid4().hex[:16]}"


__all__ = ["RunService"]
