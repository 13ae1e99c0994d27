# ============================================================================
# MODELS MODULE
# ============================================================================
# EPOCH: 1 - SEQUENTIAL WORKFLOWS
# STATUS: Model exports
# PURPOSE: Central export point for all Pydantic models
# CREATED: 19 OCT 2026
# ============================================================================
"""
Models Module - Central Export Point

All Pydantic models for the workflow execution engine. Records serialize
with model_dump(mode="json") for any document or key-value store.
"""

from core.models.workflow import (
    WorkflowDefinition,
    StepDefinition,
    StepCondition,
    TriggerConfig,
)
from core.models.run import Run, StepResult
from core.models.agent import AgentDefinition

__all__ = [
    # Workflow
    "WorkflowDefinition",
    "StepDefinition",
    "StepCondition",
    "TriggerConfig",
    # Run
    "Run",
    "StepResult",
    # Agents
    "AgentDefinition",
]
