# ============================================================================
# API SCHEMAS
# ============================================================================
# EPOCH: 1 - SEQUENTIAL WORKFLOWS
# STATUS: Core - Request/Response schemas
# PURPOSE: Pydantic models for API validation
# CREATED: 19 OCT 2026
# ============================================================================
"""
API Schemas

Request and response models for the API. Workflow definitions are accepted
and returned as WorkflowDefinition itself; responses add the computed
status view.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field

from core.contracts import RunStatus, TriggerType, WorkflowStatus
from core.models import AgentDefinition, Run, StepResult, WorkflowDefinition


# ============================================================================
# REQUEST SCHEMAS
# ============================================================================

class RunCreate(BaseModel):
    """Request to start a run."""
    input: Any = Field(None, description="Initiating input for the run")
    correlation_id: Optional[str] = Field(
        None,
        max_length=64,
        description="External correlation ID for tracing"
    )
    triggered_by: TriggerType = Field(TriggerType.MANUAL)

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "input": {
                        "email": {
                            "from": "dana@example.com",
                            "subject": "Quarterly report",
                            "body": "Please review the draft by Friday.",
                        }
                    }
                }
            ]
        }
    }


# ============================================================================
# RESPONSE SCHEMAS
# ============================================================================

class WorkflowResponse(BaseModel):
    """Workflow definition plus its computed status view."""
    workflow: WorkflowDefinition
    status: WorkflowStatus
    last_run: Optional[datetime] = None


class WorkflowListResponse(BaseModel):
    workflows: List[WorkflowResponse]
    total: int


class RunStartedResponse(BaseModel):
    """Response to a run start (execution continues in background)."""
    run_id: str
    workflow_id: str
    status: RunStatus = RunStatus.RUNNING


class RunResponse(BaseModel):
    """Full run record."""
    run_id: str
    workflow_id: str
    workflow_version: int
    status: RunStatus
    start_time: datetime
    end_time: Optional[datetime] = None
    duration_seconds: Optional[float] = None
    input: Any = None
    output: Any = None
    error: Optional[str] = None
    total_steps: int
    step_results: List[StepResult] = Field(default_factory=list)
    triggered_by: TriggerType
    correlation_id: Optional[str] = None

    @classmethod
    def from_run(cls, run: Run) -> "RunResponse":
        return cls(
            run_id=run.run_id,
            workflow_id=run.workflow_id,
            workflow_version=run.workflow_version,
            status=run.status,
            start_time=run.start_time,
            end_time=run.end_time,
            duration_seconds=run.duration_seconds,
            input=run.input,
            output=run.output,
            error=run.error,
            total_steps=run.total_steps,
            step_results=run.step_results,
            triggered_by=run.triggered_by,
            correlation_id=run.correlation_id,
        )


class RunListResponse(BaseModel):
    runs: List[RunResponse]
    total: int


class CancelResponse(BaseModel):
    run_id: str
    cancelled: bool


class ActionListResponse(BaseModel):
    actions: List[Dict[str, Any]]
    total: int


class AgentListResponse(BaseModel):
    agents: List[AgentDefinition]
    total: int


class ErrorResponse(BaseModel):
    """Standard error response."""
    detail: Any


__all__ = [
    "RunCreate",
    "WorkflowResponse",
    "WorkflowListResponse",
    "RunStartedResponse",
    "RunResponse",
    "RunListResponse",
    "CancelResponse",
    "ActionListResponse",
    "AgentListResponse",
    "ErrorResponse",
]
