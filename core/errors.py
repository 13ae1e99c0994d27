# ============================================================================
# ENGINE ERRORS
# ============================================================================
# EPOCH: 1 - SEQUENTIAL WORKFLOWS
# STATUS: Foundation - Exception hierarchy
# PURPOSE: Error taxonomy shared by resolver, dispatcher, tracker and API
# CREATED: 19 OCT 2026
# ============================================================================
"""
Engine error types.

Contained inside a run (recorded on the failing step, never raised to the
caller of start_run):
- ResolutionError
- ActionError

Raised synchronously to the caller:
- DefinitionError (and ConditionSyntaxError)
- WorkflowNotFoundError
- WorkflowExistsError (definition store create)

Programming errors (tracker misuse):
- RunNotFoundError
- RunStateError
"""

from typing import Iterable, List, Optional


class WorkflowEngineError(Exception):
    """Base exception for all engine errors."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ResolutionError(WorkflowEngineError):
    """Raised when a placeholder path does not resolve against the context."""

    def __init__(
        self,
        namespace: str,
        path: str,
        available_keys: Optional[Iterable[str]] = None,
        reason: Optional[str] = None,
    ):
        self.namespace = namespace
        self.path = path
        self.available_keys: List[str] = sorted(str(k) for k in (available_keys or []))
        detail = reason or "path not found"
        message = (
            f"Cannot resolve '{{{path}}}' in namespace '{namespace}': {detail}"
            f" (available keys: {self.available_keys})"
        )
        super().__init__(message)


class ActionError(WorkflowEngineError):
    """Raised when the action dispatcher fails to perform an action."""

    def __init__(
        self,
        message: str,
        agent_id: Optional[str] = None,
        action_type: Optional[str] = None,
    ):
        self.agent_id = agent_id
        self.action_type = action_type
        super().__init__(message)


class DefinitionError(WorkflowEngineError):
    """Raised when a workflow definition is structurally invalid."""

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        self.errors = errors or [message]
        super().__init__(message)


class ConditionSyntaxError(DefinitionError):
    """Raised when a condition expression does not match the grammar."""

    def __init__(self, expression: str, reason: str):
        self.expression = expression
        self.reason = reason
        super().__init__(f"Invalid condition '{expression}': {reason}")


class WorkflowNotFoundError(WorkflowEngineError):
    """Raised when a workflow id is unknown to the definition store."""

    def __init__(self, workflow_id: str):
        self.workflow_id = workflow_id
        super().__init__(f"Workflow not found: {workflow_id}")


class WorkflowExistsError(WorkflowEngineError):
    """Raised when creating a workflow whose id is already stored."""

    def __init__(self, workflow_id: str):
        self.workflow_id = workflow_id
        super().__init__(f"Workflow already exists: {workflow_id}")


class RunNotFoundError(WorkflowEngineError):
    """Raised when a run id is unknown to the run tracker."""

    def __init__(self, run_id: str):
        self.run_id = run_id
        super().__init__(f"Run not found: {run_id}")


class RunStateError(WorkflowEngineError):
    """Raised when a run is mutated in a way its state does not allow."""
    pass


__all__ = [
    "WorkflowEngineError",
    "ResolutionError",
    "ActionError",
    "DefinitionError",
    "ConditionSyntaxError",
    "WorkflowNotFoundError",
    "WorkflowExistsError",
    "RunNotFoundError",
    "RunStateError",
]
