# ============================================================================
# RUN MODEL
# ============================================================================
# EPOCH: 1 - SEQUENTIAL WORKFLOWS
# STATUS: Core model - Run instance (workflow execution)
# PURPOSE: Track one execution of a workflow and its step history
# CREATED: 19 OCT 2026
# EXPORTS: Run, StepResult
# DEPENDENCIES: pydantic
# ============================================================================
"""
Run Model

A Run represents one execution of a workflow (one "instance").

The orchestrator creates a Run when a workflow is started, appends one
StepResult per executed step (skipped steps leave no record) and finalizes
it exactly once. Runs are the audit record and are never deleted by the
engine.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field, computed_field

from core.contracts import RunData, RunStatus, StepStatus, TriggerType


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StepResult(BaseModel):
    """
    Outcome of one executed step within one run.

    Immutable once created. `error` is present iff status is FAILED.
    """
    step_id: str = Field(..., max_length=64)
    output: Any = None
    status: StepStatus
    error: Optional[str] = None
    start_time: datetime
    end_time: datetime

    model_config = {"frozen": True}

    @classmethod
    def completed(
        cls,
        step_id: str,
        output: Any,
        start_time: datetime,
        end_time: Optional[datetime] = None,
    ) -> "StepResult":
        """Create a successful step result."""
        return cls(
            step_id=step_id,
            output=output,
            status=StepStatus.COMPLETED,
            start_time=start_time,
            end_time=end_time or _utcnow(),
        )

    @classmethod
    def failed(
        cls,
        step_id: str,
        error: str,
        start_time: datetime,
        end_time: Optional[datetime] = None,
    ) -> "StepResult":
        """Create a failed step result."""
        return cls(
            step_id=step_id,
            status=StepStatus.FAILED,
            error=error or "Unknown error",
            start_time=start_time,
            end_time=end_time or _utcnow(),
        )

    @computed_field
    @property
    def duration_seconds(self) -> float:
        return (self.end_time - self.start_time).total_seconds()


class Run(RunData):
    """
    A run instance - one execution of a workflow.

    Lifecycle:
        1. Created with status=RUNNING when a run is started
        2. StepResults appended in step-definition order
        3. Transitions once to COMPLETED or FAILED
    """

    status: RunStatus = Field(default=RunStatus.RUNNING)

    start_time: datetime = Field(default_factory=_utcnow)
    end_time: Optional[datetime] = None

    step_results: List[StepResult] = Field(default_factory=list)

    input: Any = Field(default=None, description="Initiating input")
    output: Any = Field(default=None, description="Aggregate output on completion")
    error: Optional[str] = Field(default=None, description="Truncated to ENGINE_MAX_ERROR_LENGTH")

    # Pinned at creation
    workflow_version: int = Field(default=1, ge=1)
    total_steps: int = Field(default=0, ge=0)

    # Tracing
    triggered_by: TriggerType = Field(default=TriggerType.MANUAL)
    correlation_id: Optional[str] = Field(default=None, max_length=64)

    @computed_field
    @property
    def is_terminal(self) -> bool:
        """Check if run is in a terminal state."""
        return self.status.is_terminal()

    @computed_field
    @property
    def duration_seconds(self) -> Optional[float]:
        """Calculate run duration (so far, if still running)."""
        end_time = self.end_time or _utcnow()
        return (end_time - self.start_time).total_seconds()

    def outputs_by_step(self) -> Dict[str, Any]:
        """Map of step_id -> output for completed steps."""
        return {
            result.step_id: result.output
            for result in self.step_results
            if result.status == StepStatus.COMPLETED
        }

    def can_transition_to(self, new_status: RunStatus) -> bool:
        """
        Validate if a status transition is allowed.

        Valid transitions:
            RUNNING -> COMPLETED, FAILED
            COMPLETED, FAILED -> (none, terminal)
        """
        return self.status == RunStatus.RUNNING and new_status.is_terminal()

    def mark_completed(self, output: Any = None) -> None:
        """Mark run as successfully completed."""
        if not self.can_transition_to(RunStatus.COMPLETED):
            raise ValueError(f"Cannot transition from {self.status.value} to completed")
        self.status = RunStatus.COMPLETED
        self.output = output
        self.end_time = _utcnow()

    def mark_failed(self, error: str, max_length: int = 2000) -> None:
        """Mark run as failed."""
        if not self.can_transition_to(RunStatus.FAILED):
            raise ValueError(f"Cannot transition from {self.status.value} to failed")
        self.status = RunStatus.FAILED
        self.error = (error or "Unknown error")[:max_length]
        self.end_time = _utcnow()


__all__ = ["Run", "StepResult"]
