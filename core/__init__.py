# ============================================================================
# CORE MODULE
# ============================================================================
# EPOCH: 1 - SEQUENTIAL WORKFLOWS
# STATUS: Core module initialization
# PURPOSE: Export core contracts, models and errors
# CREATED: 19 OCT 2026
# ============================================================================

from core.contracts import (
    RunStatus,
    StepStatus,
    WorkflowStatus,
    TriggerType,
    ConditionType,
    InputType,
)
from core.models import (
    WorkflowDefinition,
    StepDefinition,
    StepCondition,
    Run,
    StepResult,
    AgentDefinition,
)
from core.errors import (
    WorkflowEngineError,
    ResolutionError,
    ActionError,
    DefinitionError,
    WorkflowNotFoundError,
    WorkflowExistsError,
    RunNotFoundError,
    RunStateError,
)

__all__ = [
    # Enums
    "RunStatus",
    "StepStatus",
    "WorkflowStatus",
    "TriggerType",
    "ConditionType",
    "InputType",
    # Models
    "WorkflowDefinition",
    "StepDefinition",
    "StepCondition",
    "Run",
    "StepResult",
    "AgentDefinition",
    # Errors
    "WorkflowEngineError",
    "ResolutionError",
    "ActionError",
    "DefinitionError",
    "WorkflowNotFoundError",
    "WorkflowExistsError",
    "RunNotFoundError",
    "RunStateError",
]
