# ============================================================================
# AGENT DEFINITION MODEL
# ============================================================================
# EPOCH: 1 - SEQUENTIAL WORKFLOWS
# STATUS: Core model - Agent catalog entry
# PURPOSE: Declare an agent and the action types it is allowed to perform
# CREATED: 19 OCT 2026
# ============================================================================
"""
Agent Definition Model

Agents are the targets of workflow steps. Each agent declares a set of
capabilities (action types). A step whose action type is not among its
agent's capabilities is rejected when the definition is registered.
"""

from typing import List, Optional
from pydantic import BaseModel, Field, field_validator


class AgentDefinition(BaseModel):
    """An agent and its declared capability set."""
    agent_id: str = Field(..., min_length=1, max_length=64)
    name: str = Field(..., max_length=128)
    description: Optional[str] = None
    capabilities: List[str] = Field(default_factory=list)
    is_active: bool = True
    endpoint: Optional[str] = Field(
        default=None,
        description="Base URL of a remote agent; actions are then dispatched over HTTP",
    )

    @field_validator("capabilities", mode="before")
    @classmethod
    def handle_string_input(cls, v):
        """Allow single string as shorthand for single-item list."""
        if isinstance(v, str):
            return [v]
        return v

    def can_perform(self, action_type: str) -> bool:
        return action_type in self.capabilities


__all__ = ["AgentDefinition"]
