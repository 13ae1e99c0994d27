# ============================================================================
# ACTION REGISTRY
# ============================================================================
# EPOCH: 1 - SEQUENTIAL WORKFLOWS
# STATUS: Core - Action registration, lookup and dispatch
# PURPOSE: Map action types to handlers and invoke them for the orchestrator
# CREATED: 19 OCT 2026
# ============================================================================
"""
Action Registry

Central registry for action handlers, and the dispatcher the orchestrator
uses to invoke them.

Design:
- Handlers are registered at import time via decorator
- Registry is a simple dict (action_type -> handler_func)
- Fail-fast on duplicate registration
- Supports both sync and async handlers
- The orchestrator only depends on the ActionDispatcher protocol:
  invoke(agent_id, action_type, input) -> output, failing with ActionError
"""

import asyncio
import functools
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol, Union

from core.errors import ActionError
from core.logging import get_current_context

logger = logging.getLogger(__name__)


# ============================================================================
# HANDLER TYPES
# ============================================================================

@dataclass
class ActionContext:
    """
    Context passed to action handlers.

    Contains the resolved input plus tracing identifiers.
    """
    agent_id: str
    action_type: str
    input: Any
    run_id: Optional[str] = None
    workflow_id: Optional[str] = None
    step_id: Optional[str] = None
    correlation_id: Optional[str] = None

    def input_dict(self) -> Dict[str, Any]:
        """The input as a dict; non-dict inputs are wrapped as {'value': input}."""
        if isinstance(self.input, dict):
            return self.input
        return {"value": self.input}


@dataclass
class ActionResult:
    """
    Result a handler may return to report success or failure explicitly.

    Handlers can also return any plain value (taken as the output) or raise.
    """
    success: bool = True
    output: Any = None
    error_message: Optional[str] = None

    @classmethod
    def success_result(cls, output: Any = None) -> "ActionResult":
        """Create a success result."""
        return cls(success=True, output=output)

    @classmethod
    def failure_result(cls, error_message: str, output: Any = None) -> "ActionResult":
        """Create a failure result."""
        return cls(success=False, error_message=error_message, output=output)


# Handler function type
ActionFunc = Callable[[ActionContext], Union[Any, Awaitable[Any]]]


class ActionDispatcher(Protocol):
    """The one capability the orchestrator needs from its environment."""

    async def invoke(self, agent_id: str, action_type: str, input: Any) -> Any:
        ...


# ============================================================================
# EXCEPTIONS
# ============================================================================

class ActionRegistryError(Exception):
    """Base exception for registry errors."""
    pass


class ActionNotFoundError(ActionRegistryError):
    """Raised when an action type is not found in the registry."""
    def __init__(self, action_type: str):
        self.action_type = action_type
        super().__init__(f"Unknown action type: {action_type}")


class DuplicateActionError(ActionRegistryError):
    """Raised when an action type is already registered."""
    def __init__(self, action_type: str):
        self.action_type = action_type
        super().__init__(f"Action already registered: {action_type}")


# ============================================================================
# REGISTRY
# ============================================================================

_actions: Dict[str, ActionFunc] = {}
_action_metadata: Dict[str, Dict[str, Any]] = {}


def register_action(
    action_type: str,
    *,
    description: str = "",
    tags: Optional[List[str]] = None,
) -> Callable[[ActionFunc], ActionFunc]:
    """
    Decorator to register an action handler.

    Args:
        action_type: Action type key (must be unique)
        description: Human-readable description
        tags: Optional tags for categorization

    Returns:
        Decorator function

    Example:
        @register_action("analyze-email")
        async def analyze_email(ctx: ActionContext) -> ActionResult:
            return ActionResult.success_result({"priority": "high"})
    """
    def decorator(func: ActionFunc) -> ActionFunc:
        if action_type in _actions:
            raise DuplicateActionError(action_type)

        _actions[action_type] = func
        _action_metadata[action_type] = {
            "action_type": action_type,
            "description": description,
            "tags": tags or [],
            "function": func.__name__,
            "module": func.__module__,
            "is_async": asyncio.iscoroutinefunction(func),
            "registered_at": datetime.now(timezone.utc).isoformat(),
        }

        logger.debug(f"Registered action: {action_type} ({func.__module__}.{func.__name__})")
        return func

    return decorator


def get_action(action_type: str) -> Optional[ActionFunc]:
    """Get a handler by action type, or None."""
    return _actions.get(action_type)


def get_action_or_raise(action_type: str) -> ActionFunc:
    """
    Get a handler by action type, raising if not found.

    Raises:
        ActionNotFoundError if action type not registered
    """
    handler = _actions.get(action_type)
    if handler is None:
        raise ActionNotFoundError(action_type)
    return handler


def list_actions() -> List[Dict[str, Any]]:
    """List all registered actions with metadata."""
    return list(_action_metadata.values())


def get_action_metadata(action_type: str) -> Optional[Dict[str, Any]]:
    """Get metadata for a specific action type."""
    return _action_metadata.get(action_type)


def is_registered(action_type: str) -> bool:
    return action_type in _actions


def clear_actions() -> None:
    """
    Clear all registered actions.

    Primarily for testing.
    """
    _actions.clear()
    _action_metadata.clear()
    logger.debug("Cleared all actions")


def validate_actions(action_types: List[str]) -> List[str]:
    """
    Validate that all action types used by a workflow are registered.

    Returns:
        List of missing action types (empty if all valid)
    """
    missing = []
    for action_type in action_types:
        if action_type not in _actions and action_type not in missing:
            missing.append(action_type)
    return missing


# ============================================================================
# DISPATCHER
# ============================================================================

class RegistryDispatcher:
    """
    ActionDispatcher backed by the action registry.

    Converts every handler failure (raised exception or failure result)
    into ActionError carrying the handler's message.
    """

    async def invoke(self, agent_id: str, action_type: str, input: Any) -> Any:
        """
        Execute the handler registered for action_type.

        Handles both sync and async handlers.

        Returns:
            The handler's output

        Raises:
            ActionError: If the action is unknown or the handler fails
        """
        handler = get_action(action_type)
        if handler is None:
            raise ActionError(
                f"Unknown action type: {action_type}",
                agent_id=agent_id,
                action_type=action_type,
            )

        log_ctx = get_current_context()
        context = ActionContext(
            agent_id=agent_id,
            action_type=action_type,
            input=input,
            run_id=log_ctx.run_id,
            workflow_id=log_ctx.workflow_id,
            step_id=log_ctx.step_id,
            correlation_id=log_ctx.correlation_id,
        )

        try:
            if asyncio.iscoroutinefunction(handler):
                result = await handler(context)
            else:
                # Run sync handler in thread pool
                loop = asyncio.get_running_loop()
                result = await loop.run_in_executor(None, functools.partial(handler, context))
        except ActionError:
            raise
        except Exception as e:
            logger.exception(f"Action {action_type} failed for agent {agent_id}: {e}")
            raise ActionError(
                str(e) or type(e).__name__,
                agent_id=agent_id,
                action_type=action_type,
            ) from e

        if isinstance(result, ActionResult):
            if not result.success:
                raise ActionError(
                    result.error_message or f"Action {action_type} failed",
                    agent_id=agent_id,
                    action_type=action_type,
                )
            return result.output

        return result


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "register_action",
    "get_action",
    "get_action_or_raise",
    "list_actions",
    "get_action_metadata",
    "is_registered",
    "clear_actions",
    "validate_actions",
    "ActionFunc",
    "ActionContext",
    "ActionResult",
    "ActionDispatcher",
    "RegistryDispatcher",
    "ActionRegistryError",
    "ActionNotFoundError",
    "DuplicateActionError",
]
