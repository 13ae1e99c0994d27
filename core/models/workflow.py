# ============================================================================
# WORKFLOW DEFINITION MODEL
# ============================================================================
# EPOCH: 1 - SEQUENTIAL WORKFLOWS
# STATUS: Core model - Workflow template/blueprint
# PURPOSE: Define the ordered agent-action steps of an automation
# CREATED: 19 OCT 2026
# EXPORTS: WorkflowDefinition, StepDefinition, StepCondition, TriggerConfig
# DEPENDENCIES: pydantic
# ============================================================================
"""
Workflow Definition Models

A WorkflowDefinition is the template/blueprint for a run.
It defines:
- Which steps exist, in which order
- Which agent performs each step and with which action type
- How each step's input references the run input or earlier outputs
- Optional gates (conditions) per step

Definitions are read-only to the engine. The convenience status
(active / running / inactive) is computed from runs, see RunService.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field

from core.contracts import ConditionType, InputType, TriggerType


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StepCondition(BaseModel):
    """Gate deciding whether a step runs."""
    type: ConditionType = ConditionType.ALWAYS
    expression: Optional[str] = Field(
        default=None,
        description="e.g. \"{steps.triage.priority} === 'high'\""
    )


class TriggerConfig(BaseModel):
    """Trigger configuration. Opaque to the engine."""
    schedule: Optional[str] = None   # cron-like expression, fired externally
    event: Optional[str] = None      # event name, fired externally


class StepDefinition(BaseModel):
    """
    Definition of one agent action within a workflow.

    This is the TEMPLATE - what the step does.
    StepResult (in run.py) is the record of one execution.
    """
    id: str = Field(..., min_length=1, max_length=64)
    agent_id: str = Field(..., min_length=1, max_length=64)
    action_type: str = Field(
        ...,
        min_length=1,
        max_length=64,
        description="Registered action type (e.g. 'analyze-email')"
    )
    name: str = Field(default="", max_length=128)
    description: Optional[str] = None

    input: Any = Field(
        default=None,
        description="Literal, structured object, or value with {placeholders}"
    )
    input_type: InputType = Field(default=InputType.STATIC)

    output_mapping: str = Field(
        ...,
        min_length=1,
        max_length=64,
        description="Name under which the output is visible as {steps.<name>}"
    )
    condition: Optional[StepCondition] = None

    timeout_seconds: Optional[float] = Field(
        default=None,
        gt=0,
        description="Overrides the engine default step timeout"
    )


class WorkflowDefinition(BaseModel):
    """
    Complete workflow definition.

    This is the TEMPLATE that runs are created from. Updates through the
    definition store bump `version`; runs pin the version they started with.
    """
    workflow_id: str = Field(..., min_length=1, max_length=64)
    name: str = Field(..., max_length=128)
    description: Optional[str] = None
    version: int = Field(default=1, ge=1)

    trigger: TriggerType = Field(default=TriggerType.MANUAL)
    trigger_config: Optional[TriggerConfig] = None

    steps: List[StepDefinition] = Field(default_factory=list)

    # Authoring flag; "running" is derived from runs, not stored here
    is_active: bool = True
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    def get_step(self, step_id: str) -> StepDefinition:
        """Get a step definition by ID."""
        for step in self.steps:
            if step.id == step_id:
                return step
        raise KeyError(f"Step '{step_id}' not found in workflow '{self.workflow_id}'")

    def agent_actions(self) -> List[tuple]:
        """(agent_id, action_type) pairs in step order."""
        return [(step.agent_id, step.action_type) for step in self.steps]

    def validate_structure(self) -> List[str]:
        """
        Validate workflow structure.

        Agent/action existence and condition syntax are checked by
        WorkflowService, which has the catalogs.

        Returns list of validation errors (empty if valid).
        """
        errors = []

        seen_ids = set()
        for step in self.steps:
            if step.id in seen_ids:
                errors.append(f"Duplicate step id '{step.id}'")
            seen_ids.add(step.id)

        seen_mappings: Dict[str, str] = {}
        for step in self.steps:
            owner = seen_mappings.get(step.output_mapping)
            if owner is not None:
                errors.append(
                    f"Step '{step.id}' reuses output mapping '{step.output_mapping}' "
                    f"already used by step '{owner}'"
                )
            else:
                seen_mappings[step.output_mapping] = step.id

        for step in self.steps:
            condition = step.condition
            if condition and condition.type != ConditionType.ALWAYS:
                if not (condition.expression or "").strip():
                    errors.append(
                        f"Step '{step.id}' has a '{condition.type.value}' condition "
                        f"without an expression"
                    )

        return errors


__all__ = [
    "WorkflowDefinition",
    "StepDefinition",
    "StepCondition",
    "TriggerConfig",
]
