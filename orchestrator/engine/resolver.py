# ============================================================================
# VARIABLE RESOLUTION ENGINE
# ============================================================================
# EPOCH: 1 - SEQUENTIAL WORKFLOWS
# STATUS: Core - Placeholder resolution
# PURPOSE: Resolve {...} placeholders in step inputs
# CREATED: 19 OCT 2026
# ============================================================================
"""
Variable Resolution Engine

Resolves placeholder expressions in workflow step inputs.

Supported patterns:
- {input}                       - The run's whole initiating input
- {input.email.subject}         - A path into the initiating input
- {steps.extracted}             - A prior step's output (by output mapping)
- {steps.extracted.items.0}     - A path into it (integer segments index lists)

Rules:
- A string that is exactly one placeholder resolves to the value with its
  type preserved (dict, list, number, bool, None).
- Placeholders embedded in a larger string are stringified (strings verbatim,
  everything else JSON-encoded) and spliced in.
- Dicts and lists are resolved element by element; keys are left alone.
- A path that does not exist raises ResolutionError.

Templates are tokenized and walked, never rendered or executed.

Examples:
    input: "{input.email}"
    input:
      subject: "Re: {input.email.subject}"
      items: "{steps.processedEmail.action_items}"
"""

import copy
import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from core.errors import ResolutionError

logger = logging.getLogger(__name__)


NAMESPACE_INPUT = "input"
NAMESPACE_STEPS = "steps"
NAMESPACES = (NAMESPACE_INPUT, NAMESPACE_STEPS)

# {identifier(.segment)*} - whitespace inside the braces is ignored
PLACEHOLDER_PATTERN = re.compile(
    r"\{\s*([A-Za-z_][A-Za-z0-9_\-]*(?:\.[A-Za-z0-9_\-]+)*)\s*\}"
)


@dataclass(frozen=True)
class ResolutionContext:
    """
    Immutable context for placeholder resolution.

    Provides access to:
    - input: the run's initiating input
    - steps: output_mapping -> output of steps completed so far in this run
    """
    input: Any = None
    steps: Mapping[str, Any] = field(default_factory=dict)

    def with_output(self, output_mapping: str, output: Any) -> "ResolutionContext":
        """Return a new context that also exposes one more step output."""
        return ResolutionContext(
            input=self.input,
            steps={**self.steps, output_mapping: output},
        )

    def to_dict(self) -> Dict[str, Any]:
        return {NAMESPACE_INPUT: self.input, NAMESPACE_STEPS: dict(self.steps)}


class VariableResolver:
    """
    Placeholder resolver for step inputs and condition operands.

    Stateless; safe to share across concurrent runs.
    """

    def resolve(self, raw: Any, context: ResolutionContext) -> Any:
        """
        Resolve all placeholders in a value.

        Args:
            raw: Literal, string with placeholders, or nested dict/list
            context: Run input and prior step outputs

        Returns:
            New value with all placeholders resolved

        Raises:
            ResolutionError: If any placeholder path does not exist
        """
        if isinstance(raw, str):
            return self._resolve_string(raw, context)
        elif isinstance(raw, dict):
            return {k: self.resolve(v, context) for k, v in raw.items()}
        elif isinstance(raw, list):
            return [self.resolve(item, context) for item in raw]
        else:
            return raw

    def resolve_path(self, path: str, context: ResolutionContext) -> Any:
        """
        Resolve one dotted path (without braces) against the context.

        Returns a deep copy so callers cannot mutate recorded outputs.
        """
        segments = path.split(".")
        namespace = segments[0]

        if namespace == NAMESPACE_INPUT:
            value = context.input
        elif namespace == NAMESPACE_STEPS:
            value = context.steps
        else:
            raise ResolutionError(
                namespace, path, NAMESPACES,
                reason=f"unknown namespace '{namespace}'",
            )

        walked = [namespace]
        for segment in segments[1:]:
            value = self._step_into(value, segment, namespace, path, ".".join(walked))
            walked.append(segment)

        return copy.deepcopy(value)

    def find_placeholders(self, raw: Any) -> List[str]:
        """List every placeholder path in a value, in document order."""
        if isinstance(raw, str):
            return PLACEHOLDER_PATTERN.findall(raw)
        elif isinstance(raw, dict):
            return [p for v in raw.values() for p in self.find_placeholders(v)]
        elif isinstance(raw, list):
            return [p for item in raw for p in self.find_placeholders(item)]
        return []

    def _resolve_string(self, value: str, context: ResolutionContext) -> Any:
        """Resolve placeholders in a string value."""
        # Quick check: if no placeholder markers, return as-is
        if "{" not in value:
            return value

        # Whole-value substitution keeps the resolved type
        whole = PLACEHOLDER_PATTERN.fullmatch(value)
        if whole:
            return self.resolve_path(whole.group(1), context)

        return PLACEHOLDER_PATTERN.sub(
            lambda match: self._stringify(self.resolve_path(match.group(1), context)),
            value,
        )

    def _step_into(
        self,
        value: Any,
        segment: str,
        namespace: str,
        path: str,
        walked: str,
    ) -> Any:
        """Walk one path segment down from value."""
        if isinstance(value, Mapping):
            if segment in value:
                return value[segment]
            raise ResolutionError(
                namespace, path, value.keys(),
                reason=f"'{segment}' not found under '{walked}'",
            )

        if isinstance(value, list):
            if segment.isdigit() and int(segment) < len(value):
                return value[int(segment)]
            raise ResolutionError(
                namespace, path, [str(i) for i in range(len(value))],
                reason=f"index '{segment}' out of range under '{walked}'",
            )

        raise ResolutionError(
            namespace, path, [],
            reason=f"cannot read '{segment}' from {type(value).__name__} at '{walked}'",
        )

    @staticmethod
    def _stringify(value: Any) -> str:
        """Render a resolved value for splicing into surrounding text."""
        if isinstance(value, str):
            return value
        return json.dumps(value, default=str, ensure_ascii=False)


# ============================================================================
# CONVENIENCE FUNCTIONS
# ============================================================================

_resolver: Optional[VariableResolver] = None


def get_resolver() -> VariableResolver:
    """Get shared resolver instance."""
    global _resolver
    if _resolver is None:
        _resolver = VariableResolver()
    return _resolver


def resolve_input(
    raw: Any,
    run_input: Any = None,
    step_outputs: Optional[Mapping[str, Any]] = None,
) -> Any:
    """
    Convenience function to resolve a step input.

    Args:
        raw: Step input with placeholders
        run_input: The run's initiating input
        step_outputs: Optional map of output_mapping -> output

    Returns:
        Resolved input
    """
    context = ResolutionContext(input=run_input, steps=dict(step_outputs or {}))
    return get_resolver().resolve(raw, context)


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "VariableResolver",
    "ResolutionContext",
    "ResolutionError",
    "PLACEHOLDER_PATTERN",
    "get_resolver",
    "resolve_input",
]
