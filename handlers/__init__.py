# ============================================================================
# ACTION HANDLERS
# ============================================================================
# EPOCH: 1 - SEQUENTIAL WORKFLOWS
# STATUS: Core - Action registration and lookup
# PURPOSE: Register and discover action handlers
# CREATED: 19 OCT 2026
# ============================================================================
"""
Action Handlers

Provides a decorator-based registration system for action handlers and the
registry-backed dispatcher the orchestrator invokes.

Usage:
    from handlers import register_action, RegistryDispatcher

    @register_action("my-action")
    async def my_action(ctx: ActionContext) -> ActionResult:
        return ActionResult.success_result({"key": "value"})

    # Later, to execute:
    output = await RegistryDispatcher().invoke("agent-1", "my-action", {...})
"""

from handlers.registry import (
    register_action,
    get_action,
    get_action_or_raise,
    list_actions,
    get_action_metadata,
    is_registered,
    clear_actions,
    validate_actions,
    ActionFunc,
    ActionContext,
    ActionResult,
    ActionDispatcher,
    RegistryDispatcher,
    ActionRegistryError,
    ActionNotFoundError,
    DuplicateActionError,
)

from handlers.http_dispatcher import HttpDispatcher

# Import handler modules to trigger registration
import handlers.examples  # noqa: F401 - import for side effects

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
    "HttpDispatcher",
    "ActionRegistryError",
    "ActionNotFoundError",
    "DuplicateActionError",
]
