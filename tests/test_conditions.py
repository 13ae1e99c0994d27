# ============================================================================
# CONDITION EVALUATOR TESTS
# ============================================================================
# EPOCH: 1 - SEQUENTIAL WORKFLOWS
# STATUS: Tests - Step gate evaluation
# PURPOSE: Verify the closed condition grammar and its semantics
# CREATED: 19 OCT 2026
# ============================================================================
"""
Condition Evaluator Tests

Tests:
1. always / absent conditions run
2. Strict equality and ordering comparisons
3. && / || precedence and truthiness checks
4. Syntax errors are ConditionSyntaxError (a DefinitionError)
5. Missing placeholders raise ResolutionError

Run with:
    pytest tests/test_conditions.py -v
"""

import pytest

from core.contracts import ConditionType
from core.errors import ConditionSyntaxError, DefinitionError, ResolutionError
from core.models import StepCondition
from orchestrator.engine.conditions import (
    ConditionEvaluator,
    ConditionParser,
    Comparison,
    Junction,
    is_truthy,
    parse_condition,
)
from orchestrator.engine.resolver import ResolutionContext


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture
def evaluator():
    return ConditionEvaluator()


@pytest.fixture
def context():
    return ResolutionContext(
        input={"count": 3, "name": "dana", "zero": 0, "empty": "", "tags": [], "none": None},
        steps={"triage": {"priority": "high", "urgent": True, "score": 7.5}},
    )


def _if(expression):
    return StepCondition(type=ConditionType.IF, expression=expression)


# ============================================================================
# SHOULD RUN
# ============================================================================

class TestShouldRun:

    def test_absent_condition_runs(self, evaluator, context):
        assert evaluator.should_run(None, context) is True

    def test_always_runs(self, evaluator, context):
        assert evaluator.should_run(StepCondition(), context) is True

    def test_always_ignores_expression(self, evaluator, context):
        condition = StepCondition(type=ConditionType.ALWAYS, expression="{steps.missing}")
        assert evaluator.should_run(condition, context) is True

    def test_if_true(self, evaluator, context):
        assert evaluator.should_run(_if("{steps.triage.priority} === 'high'"), context) is True

    def test_if_false(self, evaluator, context):
        assert evaluator.should_run(_if("{steps.triage.priority} === 'low'"), context) is False

    def test_if_else_uses_pass_skip(self, evaluator, context):
        condition = StepCondition(type=ConditionType.IF_ELSE, expression="{input.count} > 5")
        assert evaluator.should_run(condition, context) is False


# ============================================================================
# COMPARISONS
# ============================================================================

class TestComparisons:

    @pytest.mark.parametrize("expression,expected", [
        ("{input.count} === 3", True),
        ("{input.count} !== 3", False),
        ("{input.count} >= 3", True),
        ("{input.count} > 3", False),
        ("{input.count} <= 2", False),
        ("{input.count} < 3.5", True),
        ("{steps.triage.score} > -1", True),
        ("{input.name} === \"dana\"", True),
        ("{input.name} < 'zed'", True),
        ("{input.none} === null", True),
        ("{steps.triage.urgent} === true", True),
    ])
    def test_operators(self, evaluator, context, expression, expected):
        assert evaluator.evaluate(expression, context) is expected

    def test_strict_equality_no_coercion(self, evaluator, context):
        assert evaluator.evaluate("{input.count} === '3'", context) is False
        assert evaluator.evaluate("1 === true", context) is False
        assert evaluator.evaluate("0 === false", context) is False

    def test_int_equals_float(self, evaluator, context):
        assert evaluator.evaluate("3 === 3.0", context) is True

    def test_mixed_ordering_is_false(self, evaluator, context):
        assert evaluator.evaluate("{input.name} > 1", context) is False
        assert evaluator.evaluate("{input.none} < 1", context) is False
        assert evaluator.evaluate("true > 0", context) is False

    def test_escaped_quote_in_string(self, evaluator):
        ctx = ResolutionContext(input={"text": "it's"})
        assert evaluator.evaluate("{input.text} === 'it\\'s'", ctx) is True


# ============================================================================
# LOGIC & TRUTHINESS
# ============================================================================

class TestLogic:

    def test_and(self, evaluator, context):
        assert evaluator.evaluate("{input.count} >= 3 && {steps.triage.urgent}", context) is True
        assert evaluator.evaluate("{input.count} >= 3 && {input.zero}", context) is False

    def test_or(self, evaluator, context):
        assert evaluator.evaluate("{input.zero} || {input.name} === 'dana'", context) is True

    def test_and_binds_tighter_than_or(self, evaluator, context):
        assert evaluator.evaluate("true || false && false", context) is True
        assert evaluator.evaluate("false || true && false", context) is False

    def test_truthiness(self, evaluator, context):
        assert evaluator.evaluate("{input.name}", context) is True
        assert evaluator.evaluate("{input.zero}", context) is False
        assert evaluator.evaluate("{input.empty}", context) is False
        assert evaluator.evaluate("{input.none}", context) is False
        # Empty collections are truthy
        assert evaluator.evaluate("{input.tags}", context) is True

    @pytest.mark.parametrize("value,expected", [
        (None, False), (False, False), (0, False), (0.0, False), ("", False),
        (True, True), (1, True), ("x", True), ([], True), ({}, True),
    ])
    def test_is_truthy(self, value, expected):
        assert is_truthy(value) is expected


# ============================================================================
# PARSING
# ============================================================================

class TestParser:

    def test_parse_tree(self):
        node = parse_condition("{a.b} === 1 && {c} || false")
        assert isinstance(node, Junction)
        assert node.logic == "||"
        assert isinstance(node.terms[0], Junction)
        assert node.terms[0].logic == "&&"
        assert isinstance(node.terms[1], Comparison)

    def test_tokenize_positions(self):
        tokens = ConditionParser().tokenize("{x} === 'abc' && 2")
        assert [t.kind for t in tokens] == ["placeholder", "op", "literal", "logic", "literal"]
        assert tokens[2].value == "abc"
        assert tokens[2].position == 8
        assert tokens[3].position == 14

    @pytest.mark.parametrize("expression", [
        "",
        "{input.count} == 3",
        "{input.count} != 3",
        "{input.name} === dana",
        "{input.count} ===",
        "&& {input.count}",
        "{input.count} === 'unterminated",
        "{input.count} 3",
        "{input.count} + 1",
        "{} === 1",
    ])
    def test_syntax_errors(self, evaluator, context, expression):
        with pytest.raises(ConditionSyntaxError):
            evaluator.evaluate(expression, context)

    def test_syntax_error_is_definition_error(self, evaluator):
        with pytest.raises(DefinitionError):
            evaluator.validate(_if("{input.count} == 3"))

    def test_validate_does_not_resolve(self, evaluator):
        # Only syntax is checked; the placeholder need not exist
        evaluator.validate(_if("{steps.not_yet_run.value} === 1"))

    def test_validate_skips_always(self, evaluator):
        evaluator.validate(StepCondition(type=ConditionType.ALWAYS, expression="not parsed"))


# ============================================================================
# RESOLUTION
# ============================================================================

class TestResolution:

    def test_missing_placeholder_raises(self, evaluator, context):
        with pytest.raises(ResolutionError):
            evaluator.evaluate("{steps.missing.value} === 1", context)

    def test_missing_placeholder_raises_even_when_short_circuited(self, evaluator, context):
        with pytest.raises(ResolutionError):
            evaluator.evaluate("true || {steps.missing}", context)


# ============================================================================
# RUN TESTS
# ============================================================================

if __name__ == "__main__":
    pytest.main([__file__, "-v"])
