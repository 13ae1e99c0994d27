# ============================================================================
# DOMAIN MODEL TESTS
# ============================================================================
# EPOCH: 1 - SEQUENTIAL WORKFLOWS
# STATUS: Tests - Model unit tests
# PURPOSE: Verify enums, models, state transitions and validation
# CREATED: 19 OCT 2026
# ============================================================================
"""
Domain Model Tests

Unit tests for the model layer:
- Enums: RunStatus, ConditionType, TriggerType
- Models: WorkflowDefinition, StepDefinition, Run, StepResult, AgentDefinition
- State transitions and computed fields
- Structural validation

Run with:
    pytest tests/test_domain_models.py -v
"""

import pytest
from datetime import datetime, timedelta, timezone

from pydantic import ValidationError

from core.contracts import ConditionType, RunStatus, StepStatus, TriggerType
from core.models import (
    AgentDefinition,
    Run,
    StepCondition,
    StepDefinition,
    StepResult,
    WorkflowDefinition,
)


def _step(step_id, output_mapping=None, **kwargs):
    return StepDefinition(
        id=step_id,
        agent_id=kwargs.pop("agent_id", "agent-1"),
        action_type=kwargs.pop("action_type", "echo"),
        output_mapping=output_mapping or step_id,
        **kwargs,
    )


# ============================================================================
# ENUM TESTS
# ============================================================================

class TestRunStatus:
    def test_values(self):
        assert RunStatus.RUNNING.value == "running"
        assert RunStatus.COMPLETED.value == "completed"
        assert RunStatus.FAILED.value == "failed"

    def test_is_terminal(self):
        assert not RunStatus.RUNNING.is_terminal()
        assert RunStatus.COMPLETED.is_terminal()
        assert RunStatus.FAILED.is_terminal()


class TestConditionType:
    def test_if_else_value(self):
        assert ConditionType("if-else") == ConditionType.IF_ELSE

    def test_trigger_values(self):
        assert {t.value for t in TriggerType} == {"manual", "scheduled", "event"}


# ============================================================================
# WORKFLOW DEFINITION
# ============================================================================

class TestWorkflowDefinition:

    def test_defaults(self):
        workflow = WorkflowDefinition(workflow_id="wf", name="WF")
        assert workflow.version == 1
        assert workflow.steps == []
        assert workflow.trigger == TriggerType.MANUAL
        assert workflow.is_active is True
        assert workflow.created_at.tzinfo is not None

    def test_valid_structure(self):
        workflow = WorkflowDefinition(
            workflow_id="wf", name="WF", steps=[_step("a"), _step("b")]
        )
        assert workflow.validate_structure() == []

    def test_duplicate_step_ids(self):
        workflow = WorkflowDefinition(
            workflow_id="wf", name="WF",
            steps=[_step("a", "one"), _step("a", "two")],
        )
        errors = workflow.validate_structure()
        assert any("Duplicate step id 'a'" in e for e in errors)

    def test_duplicate_output_mappings(self):
        workflow = WorkflowDefinition(
            workflow_id="wf", name="WF",
            steps=[_step("a", "same"), _step("b", "same")],
        )
        errors = workflow.validate_structure()
        assert len(errors) == 1
        assert "'same'" in errors[0]

    def test_if_condition_requires_expression(self):
        workflow = WorkflowDefinition(
            workflow_id="wf", name="WF",
            steps=[_step("a", condition=StepCondition(type=ConditionType.IF))],
        )
        assert workflow.validate_structure()

    def test_get_step(self):
        workflow = WorkflowDefinition(workflow_id="wf", name="WF", steps=[_step("a")])
        assert workflow.get_step("a").id == "a"
        with pytest.raises(KeyError):
            workflow.get_step("zzz")

    def test_agent_actions(self):
        workflow = WorkflowDefinition(
            workflow_id="wf", name="WF",
            steps=[_step("a", agent_id="x", action_type="analyze-email"), _step("b")],
        )
        assert workflow.agent_actions() == [("x", "analyze-email"), ("agent-1", "echo")]

    def test_step_accepts_any_input(self):
        assert _step("a", input={"nested": ["{input.x}"]}).input == {"nested": ["{input.x}"]}
        assert _step("b", input=5).input == 5

    def test_step_timeout_must_be_positive(self):
        with pytest.raises(ValidationError):
            _step("a", timeout_seconds=0)

    def test_json_round_trip(self):
        workflow = WorkflowDefinition(
            workflow_id="wf", name="WF",
            steps=[_step("a", condition=StepCondition(type=ConditionType.IF, expression="{input.x}"))],
        )
        restored = WorkflowDefinition.model_validate(workflow.model_dump(mode="json"))
        assert restored == workflow


# ============================================================================
# RUN & STEP RESULT
# ============================================================================

class TestStepResult:

    def test_completed(self):
        start = datetime.now(timezone.utc)
        result = StepResult.completed("a", {"x": 1}, start)
        assert result.status == StepStatus.COMPLETED
        assert result.error is None
        assert result.duration_seconds >= 0

    def test_failed(self):
        start = datetime.now(timezone.utc)
        result = StepResult.failed("a", "boom", start, start + timedelta(seconds=2))
        assert result.status == StepStatus.FAILED
        assert result.error == "boom"
        assert result.duration_seconds == 2

    def test_immutable(self):
        result = StepResult.completed("a", 1, datetime.now(timezone.utc))
        with pytest.raises(ValidationError):
            result.output = 2


class TestRun:

    def test_new_run_is_running(self):
        run = Run(run_id="r1", workflow_id="wf")
        assert run.status == RunStatus.RUNNING
        assert run.step_results == []
        assert run.is_terminal is False
        assert run.end_time is None

    def test_mark_completed(self):
        run = Run(run_id="r1", workflow_id="wf")
        run.mark_completed({"a": 1})
        assert run.status == RunStatus.COMPLETED
        assert run.output == {"a": 1}
        assert run.end_time is not None
        assert run.is_terminal is True

    def test_mark_failed_truncates(self):
        run = Run(run_id="r1", workflow_id="wf")
        run.mark_failed("x" * 5000, max_length=100)
        assert run.status == RunStatus.FAILED
        assert len(run.error) == 100

    def test_transitions_only_once(self):
        run = Run(run_id="r1", workflow_id="wf")
        run.mark_completed()
        assert not run.can_transition_to(RunStatus.FAILED)
        with pytest.raises(ValueError):
            run.mark_failed("late")
        with pytest.raises(ValueError):
            run.mark_completed()

    def test_running_is_not_a_target(self):
        run = Run(run_id="r1", workflow_id="wf")
        assert not run.can_transition_to(RunStatus.RUNNING)

    def test_outputs_by_step(self):
        start = datetime.now(timezone.utc)
        run = Run(run_id="r1", workflow_id="wf", total_steps=2)
        run.step_results.append(StepResult.completed("a", 1, start))
        run.step_results.append(StepResult.failed("b", "nope", start))
        assert run.outputs_by_step() == {"a": 1}

    def test_serializes_to_json(self):
        run = Run(run_id="r1", workflow_id="wf", input={"k": "v"}, total_steps=1)
        run.step_results.append(StepResult.completed("a", [1, 2], datetime.now(timezone.utc)))
        data = run.model_dump(mode="json")
        assert data["status"] == "running"
        assert data["step_results"][0]["status"] == "completed"
        assert Run.model_validate(data).step_results[0].output == [1, 2]


# ============================================================================
# AGENT
# ============================================================================

class TestAgentDefinition:

    def test_can_perform(self):
        agent = AgentDefinition(agent_id="a", name="A", capabilities=["echo", "sleep"])
        assert agent.can_perform("echo")
        assert not agent.can_perform("fail")

    def test_single_capability_string(self):
        agent = AgentDefinition(agent_id="a", name="A", capabilities="echo")
        assert agent.capabilities == ["echo"]

    def test_endpoint_optional(self):
        assert AgentDefinition(agent_id="a", name="A").endpoint is None


# ============================================================================
# RUN TESTS
# ============================================================================

if __name__ == "__main__":
    pytest.main([__file__, "-v"])
