# ============================================================================
# ORCHESTRATOR ENGINE
# ============================================================================
# EPOCH: 1 - SEQUENTIAL WORKFLOWS
# STATUS: Core - Engine components
# PURPOSE: Placeholder resolution and condition evaluation
# CREATED: 19 OCT 2026
# ============================================================================
"""
Orchestrator Engine Components

- resolver: {input.x} / {steps.y.z} placeholder resolution
- conditions: closed-grammar step gate evaluation

Both are pure and synchronous; the runner is the only component that
suspends.
"""

from orchestrator.engine.resolver import (
    VariableResolver,
    ResolutionContext,
    get_resolver,
    resolve_input,
)
from orchestrator.engine.conditions import (
    ConditionParser,
    ConditionEvaluator,
    parse_condition,
    is_truthy,
    get_condition_evaluator,
    should_run,
)

__all__ = [
    # Resolver
    "VariableResolver",
    "ResolutionContext",
    "get_resolver",
    "resolve_input",
    # Conditions
    "ConditionParser",
    "ConditionEvaluator",
    "parse_condition",
    "is_truthy",
    "get_condition_evaluator",
    "should_run",
]
