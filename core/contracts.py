# ============================================================================
# BASE CONTRACTS & ENUMS
# ============================================================================
# EPOCH: 1 - SEQUENTIAL WORKFLOWS
# STATUS: Foundation - Core enums and base contracts
# PURPOSE: Define status enums and base data contracts for the run engine
# CREATED: 19 OCT 2026
# EXPORTS: RunStatus, StepStatus, WorkflowStatus, TriggerType, ConditionType,
#          InputType, RunData
# DEPENDENCIES: enum, pydantic
# ============================================================================
"""
Base contracts for the workflow execution engine.

These define the identity fields and status vocabularies that cross
boundaries:
- Storage (PostgreSQL JSONB / in-memory)
- HTTP (FastAPI request/response bodies)
- Python (orchestrator internals)
"""

from enum import Enum
from pydantic import BaseModel, Field


# ============================================================================
# STATUS ENUMS
# ============================================================================

class RunStatus(str, Enum):
    """
    Run lifecycle states.

    State transitions:
        RUNNING -> COMPLETED
                -> FAILED
    Terminal states are absorbing.
    """
    RUNNING = "running"          # Created, steps executing
    COMPLETED = "completed"      # Every step finished or was skipped
    FAILED = "failed"            # A step failed or the run was cancelled

    def is_terminal(self) -> bool:
        """Check if this is a terminal state (no further transitions)."""
        return self in (RunStatus.COMPLETED, RunStatus.FAILED)


class StepStatus(str, Enum):
    """Outcome of one executed step. Skipped steps are never recorded."""
    COMPLETED = "completed"
    FAILED = "failed"


class WorkflowStatus(str, Enum):
    """
    Convenience status of a workflow definition.

    Computed from the definition's runs, never stored on the definition.
    """
    ACTIVE = "active"
    RUNNING = "running"
    INACTIVE = "inactive"


class TriggerType(str, Enum):
    """How a workflow is meant to be started. The engine treats all alike."""
    MANUAL = "manual"
    SCHEDULED = "scheduled"
    EVENT = "event"


class ConditionType(str, Enum):
    """Step gate types."""
    ALWAYS = "always"
    IF = "if"
    IF_ELSE = "if-else"          # Accepted; only the pass/skip decision applies


class InputType(str, Enum):
    """Authoring hint for a step's input. Does not change resolution."""
    STATIC = "static"
    DYNAMIC = "dynamic"
    PREVIOUS = "previous"


# ============================================================================
# BASE DATA CONTRACTS
# ============================================================================

class RunData(BaseModel):
    """
    Essential run identity - the minimum fields that define a run.
    """
    run_id: str = Field(..., max_length=64, description="Unique run identifier")
    workflow_id: str = Field(..., max_length=64, description="Reference to workflow definition")

    model_config = {"frozen": False}
