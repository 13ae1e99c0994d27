# ============================================================================
# CONDITION EVALUATOR
# ============================================================================
# EPOCH: 1 - SEQUENTIAL WORKFLOWS
# STATUS: Core - Step gate evaluation
# PURPOSE: Decide whether a step runs from a closed comparison grammar
# CREATED: 19 OCT 2026
# ============================================================================
"""
Condition Evaluator

Evaluates step conditions. Expressions use a closed grammar:

    expr       := and_expr ( "||" and_expr )*
    and_expr   := comparison ( "&&" comparison )*
    comparison := operand ( op operand )?
    op         := "===" | "!==" | ">=" | "<=" | ">" | "<"
    operand    := {placeholder} | 'string' | "string" | number
                | true | false | null

A comparison without an operator is a truthiness check. Placeholders are
resolved (type-preserving) with the VariableResolver before evaluation, so
a missing path fails with ResolutionError even inside a short-circuited
branch.

Nothing is ever evaluated as code.

Examples:
    {steps.triage.priority} === 'high'
    {input.count} >= 3 && {steps.check.ok}
    {steps.lookup.match}
"""

import logging
import operator
import re
from functools import lru_cache
from typing import Any, Callable, Dict, List, NamedTuple, Optional, Tuple, Union

from core.contracts import ConditionType
from core.errors import ConditionSyntaxError
from core.models import StepCondition
from orchestrator.engine.resolver import (
    PLACEHOLDER_PATTERN,
    ResolutionContext,
    VariableResolver,
    get_resolver,
)

logger = logging.getLogger(__name__)


# ============================================================================
# TOKENS & AST
# ============================================================================

class Token(NamedTuple):
    kind: str        # "op", "logic", "placeholder", "literal"
    value: Any
    position: int


class Operand(NamedTuple):
    placeholder: Optional[str]   # dotted path, or None for a literal
    literal: Any = None


class Comparison(NamedTuple):
    op: Optional[str]            # None means truthiness of `left`
    left: Operand
    right: Optional[Operand] = None


class Junction(NamedTuple):
    logic: str                   # "&&" or "||"
    terms: Tuple[Any, ...]


Node = Union[Comparison, Junction]

_LOGIC = ("&&", "||")
# Longest first so '>=' is not read as '>'
_COMPARISON_OPS = ("===", "!==", ">=", "<=", ">", "<")
_KEYWORDS = {"true": True, "false": False, "null": None}

_NUMBER = re.compile(r"-?\d+(?:\.\d+)?")
_WORD = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _strict_equal(left: Any, right: Any) -> bool:
    """JavaScript-style ===: no coercion, booleans are not numbers."""
    if _is_number(left) and _is_number(right):
        return left == right
    if type(left) is not type(right):
        return False
    return left == right


def _ordered(op: Callable[[Any, Any], bool]) -> Callable[[Any, Any], bool]:
    def compare(left: Any, right: Any) -> bool:
        if _is_number(left) and _is_number(right):
            return op(left, right)
        if isinstance(left, str) and isinstance(right, str):
            return op(left, right)
        return False
    return compare


def is_truthy(value: Any) -> bool:
    """JavaScript-style truthiness (empty dicts/lists are truthy)."""
    if value is None or value is False:
        return False
    if _is_number(value):
        return value != 0 and value == value  # NaN is falsy
    if isinstance(value, str):
        return value != ""
    return True


# ============================================================================
# PARSER
# ============================================================================

class ConditionParser:
    """Tokenizer + recursive-descent parser for condition expressions."""

    def parse(self, expression: str) -> Node:
        tokens = self.tokenize(expression)
        if not tokens:
            raise ConditionSyntaxError(expression, "empty expression")

        self._expression = expression
        self._tokens = tokens
        self._pos = 0

        node = self._parse_or()
        if self._pos != len(self._tokens):
            token = self._tokens[self._pos]
            raise ConditionSyntaxError(
                expression, f"unexpected '{token.value}' at position {token.position}"
            )
        return node

    def tokenize(self, expression: str) -> List[Token]:
        tokens: List[Token] = []
        pos = 0
        length = len(expression)

        while pos < length:
            char = expression[pos]

            if char.isspace():
                pos += 1
                continue

            if expression.startswith(_LOGIC, pos):
                tokens.append(Token("logic", expression[pos:pos + 2], pos))
                pos += 2
                continue

            op = next((o for o in _COMPARISON_OPS if expression.startswith(o, pos)), None)
            if op:
                tokens.append(Token("op", op, pos))
                pos += len(op)
                continue

            if char == "{":
                match = PLACEHOLDER_PATTERN.match(expression, pos)
                if not match:
                    raise ConditionSyntaxError(expression, f"malformed placeholder at position {pos}")
                tokens.append(Token("placeholder", match.group(1), pos))
                pos = match.end()
                continue

            if char in ("'", '"'):
                value, end = self._read_string(expression, pos)
                tokens.append(Token("literal", value, pos))
                pos = end
                continue

            match = _NUMBER.match(expression, pos)
            if match:
                text = match.group(0)
                value = float(text) if "." in text else int(text)
                tokens.append(Token("literal", value, pos))
                pos = match.end()
                continue

            match = _WORD.match(expression, pos)
            if match and match.group(0) in _KEYWORDS:
                tokens.append(Token("literal", _KEYWORDS[match.group(0)], pos))
                pos = match.end()
                continue

            if match:
                raise ConditionSyntaxError(
                    expression,
                    f"bare word '{match.group(0)}' at position {pos} (quote strings, "
                    f"wrap references in braces)",
                )
            if expression.startswith(("==", "!="), pos):
                raise ConditionSyntaxError(
                    expression, f"use '===' / '!==' instead of '{expression[pos:pos + 2]}'"
                )
            raise ConditionSyntaxError(expression, f"unexpected character '{char}' at position {pos}")

        return tokens

    @staticmethod
    def _read_string(expression: str, start: int) -> Tuple[str, int]:
        quote = expression[start]
        chars = []
        pos = start + 1
        while pos < len(expression):
            char = expression[pos]
            if char == "\\" and pos + 1 < len(expression):
                chars.append(expression[pos + 1])
                pos += 2
                continue
            if char == quote:
                return "".join(chars), pos + 1
            chars.append(char)
            pos += 1
        raise ConditionSyntaxError(expression, f"unterminated string at position {start}")

    # -- grammar ------------------------------------------------------------

    def _peek(self) -> Optional[Token]:
        return self._tokens[self._pos] if self._pos < len(self._tokens) else None

    def _at_logic(self, logic: str) -> bool:
        token = self._peek()
        return token is not None and token.kind == "logic" and token.value == logic

    def _parse_or(self) -> Node:
        terms = [self._parse_and()]
        while self._at_logic("||"):
            self._pos += 1
            terms.append(self._parse_and())
        return terms[0] if len(terms) == 1 else Junction("||", tuple(terms))

    def _parse_and(self) -> Node:
        terms = [self._parse_comparison()]
        while self._at_logic("&&"):
            self._pos += 1
            terms.append(self._parse_comparison())
        return terms[0] if len(terms) == 1 else Junction("&&", tuple(terms))

    def _parse_comparison(self) -> Comparison:
        left = self._parse_operand()
        token = self._peek()
        if token is not None and token.kind == "op":
            self._pos += 1
            right = self._parse_operand()
            return Comparison(token.value, left, right)
        return Comparison(None, left)

    def _parse_operand(self) -> Operand:
        token = self._peek()
        if token is None:
            raise ConditionSyntaxError(self._expression, "expression ends where an operand was expected")
        if token.kind == "placeholder":
            self._pos += 1
            return Operand(placeholder=token.value)
        if token.kind == "literal":
            self._pos += 1
            return Operand(placeholder=None, literal=token.value)
        raise ConditionSyntaxError(
            self._expression, f"expected an operand at position {token.position}, got '{token.value}'"
        )


@lru_cache(maxsize=512)
def parse_condition(expression: str) -> Node:
    """Parse (and cache) a condition expression."""
    return ConditionParser().parse(expression)


# ============================================================================
# EVALUATOR
# ============================================================================

class ConditionEvaluator:
    """
    Evaluates step conditions against a resolution context.

    Supports:
    - Comparison operators: ===, !==, <, >, <=, >=
    - Logical operators: &&, || (&& binds tighter)
    - Truthiness of a single operand
    """

    OPERATORS: Dict[str, Callable[[Any, Any], bool]] = {
        "===": _strict_equal,
        "!==": lambda a, b: not _strict_equal(a, b),
        "<": _ordered(operator.lt),
        ">": _ordered(operator.gt),
        "<=": _ordered(operator.le),
        ">=": _ordered(operator.ge),
    }

    def __init__(self, resolver: Optional[VariableResolver] = None):
        self.resolver = resolver or get_resolver()

    def validate(self, condition: Optional[StepCondition]) -> None:
        """
        Check a condition's syntax without resolving anything.

        Raises:
            ConditionSyntaxError: If the expression does not parse
        """
        if condition is None or condition.type == ConditionType.ALWAYS:
            return
        parse_condition((condition.expression or "").strip())

    def should_run(
        self,
        condition: Optional[StepCondition],
        context: ResolutionContext,
    ) -> bool:
        """
        Decide whether a step runs.

        Args:
            condition: Step condition (None means always)
            context: Run input and prior outputs

        Returns:
            True if the step should run

        Raises:
            ResolutionError: If a placeholder in the expression is missing
            ConditionSyntaxError: If the expression does not parse
        """
        if condition is None or condition.type == ConditionType.ALWAYS:
            return True

        # IF and IF_ELSE share the pass/skip decision
        return self.evaluate(condition.expression or "", context)

    def evaluate(self, expression: str, context: ResolutionContext) -> bool:
        """Evaluate an expression string."""
        node = parse_condition(expression.strip())

        values = {
            path: self.resolver.resolve_path(path, context)
            for path in self._placeholders(node)
        }
        result = self._evaluate_node(node, values)
        logger.debug(f"Condition '{expression}' evaluated to {result}")
        return result

    def _placeholders(self, node: Node) -> List[str]:
        if isinstance(node, Junction):
            return [p for term in node.terms for p in self._placeholders(term)]
        operands = [node.left] + ([node.right] if node.right is not None else [])
        return [o.placeholder for o in operands if o.placeholder is not None]

    def _evaluate_node(self, node: Node, values: Dict[str, Any]) -> bool:
        if isinstance(node, Junction):
            if node.logic == "&&":
                return all(self._evaluate_node(term, values) for term in node.terms)
            return any(self._evaluate_node(term, values) for term in node.terms)

        left = self._operand_value(node.left, values)
        if node.op is None:
            return is_truthy(left)

        right = self._operand_value(node.right, values)
        return self.OPERATORS[node.op](left, right)

    @staticmethod
    def _operand_value(operand: Operand, values: Dict[str, Any]) -> Any:
        if operand.placeholder is not None:
            return values[operand.placeholder]
        return operand.literal


# ============================================================================
# CONVENIENCE FUNCTIONS
# ============================================================================

_evaluator: Optional[ConditionEvaluator] = None


def get_condition_evaluator() -> ConditionEvaluator:
    """Get shared condition evaluator instance."""
    global _evaluator
    if _evaluator is None:
        _evaluator = ConditionEvaluator()
    return _evaluator


def should_run(condition: Optional[StepCondition], context: ResolutionContext) -> bool:
    """Convenience function to evaluate a step condition."""
    return get_condition_evaluator().should_run(condition, context)


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "ConditionParser",
    "ConditionEvaluator",
    "Comparison",
    "Junction",
    "Operand",
    "parse_condition",
    "is_truthy",
    "get_condition_evaluator",
    "should_run",
]
