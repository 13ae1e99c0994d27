# ============================================================================
# RUN TRACKER TESTS
# ============================================================================
# EPOCH: 1 - SEQUENTIAL WORKFLOWS
# STATUS: Tests - Run lifecycle tracking
# PURPOSE: Verify RunService guards, queries and computed workflow status
# CREATED: 19 OCT 2026
# ============================================================================
"""
Run Tracker Tests

Tests RunService over the in-memory repository:
1. create_run / append_step_result / complete_run lifecycle
2. Guards: unknown run, terminal run, total_steps bound, double completion
3. Queries: list_runs filters, latest_run
4. workflow_status computed from runs

Uses asyncio.run inside sync tests.

Run with:
    pytest tests/test_run_tracker.py -v
"""

import asyncio
import pytest
from datetime import datetime, timezone

from core.contracts import RunStatus, StepStatus, WorkflowStatus
from core.errors import RunNotFoundError, RunStateError
from core.models import Run, StepResult, WorkflowDefinition
from repositories.memory import InMemoryRunRepository
from services.run_service import RunService


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture
def service():
    return RunService(InMemoryRunRepository(), max_error_length=50)


def _ok(step_id, output=None):
    return StepResult.completed(step_id, output, datetime.now(timezone.utc))


def _failed(step_id, error="boom"):
    return StepResult.failed(step_id, error, datetime.now(timezone.utc))


# ============================================================================
# LIFECYCLE
# ============================================================================

class TestLifecycle:

    def test_create_run(self, service):
        run = asyncio.run(service.create_run("wf", {"x": 1}, workflow_version=3, total_steps=2))

        assert run.run_id.startswith("run-")
        assert run.status == RunStatus.RUNNING
        assert run.step_results == []
        assert run.input == {"x": 1}
        assert run.workflow_version == 3
        assert run.total_steps == 2

    def test_append_then_complete(self, service):
        async def scenario():
            run = await service.create_run("wf", total_steps=2)
            await service.append_step_result(run.run_id, _ok("a", 1))
            await service.append_step_result(run.run_id, _ok("b", 2))
            return await service.complete_run(run.run_id, RunStatus.COMPLETED, output={"a": 1, "b": 2})

        run = asyncio.run(scenario())

        assert run.status == RunStatus.COMPLETED
        assert [r.step_id for r in run.step_results] == ["a", "b"]
        assert run.output == {"a": 1, "b": 2}
        assert run.end_time is not None

    def test_complete_failed_truncates_error(self, service):
        async def scenario():
            run = await service.create_run("wf", total_steps=1)
            await service.append_step_result(run.run_id, _failed("a", "x" * 200))
            return await service.complete_run(run.run_id, RunStatus.FAILED, error="x" * 200)

        run = asyncio.run(scenario())

        assert run.status == RunStatus.FAILED
        assert len(run.error) == 50
        assert run.step_results[0].status == StepStatus.FAILED

    def test_long_error_survives_storage_round_trip(self):
        service = RunService(InMemoryRunRepository(), max_error_length=5000)

        async def scenario():
            run = await service.create_run("wf", total_steps=1)
            return await service.complete_run(run.run_id, RunStatus.FAILED, error="e" * 3000)

        run = asyncio.run(scenario())
        # Same path the Postgres repository takes when reading a row back
        restored = Run.model_validate(run.model_dump(mode="json"))

        assert len(restored.error) == 3000
        assert restored.status == RunStatus.FAILED

    def test_returned_run_is_persisted(self, service):
        async def scenario():
            run = await service.create_run("wf", total_steps=1)
            await service.append_step_result(run.run_id, _ok("a"))
            return await service.get_run(run.run_id)

        stored = asyncio.run(scenario())
        assert len(stored.step_results) == 1


# ============================================================================
# GUARDS
# ============================================================================

class TestGuards:

    def test_append_unknown_run(self, service):
        with pytest.raises(RunNotFoundError):
            asyncio.run(service.append_step_result("run-missing", _ok("a")))

    def test_append_to_terminal_run(self, service):
        async def scenario():
            run = await service.create_run("wf", total_steps=2)
            await service.complete_run(run.run_id, RunStatus.FAILED, error="stop")
            await service.append_step_result(run.run_id, _ok("a"))

        with pytest.raises(RunStateError):
            asyncio.run(scenario())

    def test_append_beyond_total_steps(self, service):
        async def scenario():
            run = await service.create_run("wf", total_steps=1)
            await service.append_step_result(run.run_id, _ok("a"))
            await service.append_step_result(run.run_id, _ok("b"))

        with pytest.raises(RunStateError):
            asyncio.run(scenario())

    def test_complete_twice(self, service):
        async def scenario():
            run = await service.create_run("wf")
            await service.complete_run(run.run_id, RunStatus.COMPLETED, output={})
            await service.complete_run(run.run_id, RunStatus.FAILED, error="late")

        with pytest.raises(RunStateError):
            asyncio.run(scenario())

    def test_complete_with_non_terminal_status(self, service):
        async def scenario():
            run = await service.create_run("wf")
            await service.complete_run(run.run_id, RunStatus.RUNNING)

        with pytest.raises(RunStateError):
            asyncio.run(scenario())

    def test_complete_unknown_run(self, service):
        with pytest.raises(RunNotFoundError):
            asyncio.run(service.complete_run("run-missing", RunStatus.COMPLETED))


# ============================================================================
# QUERIES
# ============================================================================

class TestQueries:

    def test_list_runs_filters(self, service):
        async def scenario():
            first = await service.create_run("wf-a")
            await service.create_run("wf-a")
            await service.create_run("wf-b")
            await service.complete_run(first.run_id, RunStatus.COMPLETED, output={})
            return (
                await service.list_runs(),
                await service.list_runs(workflow_id="wf-a"),
                await service.list_runs(workflow_id="wf-a", status=RunStatus.RUNNING),
                await service.list_runs(limit=1),
            )

        all_runs, wf_a, wf_a_running, limited = asyncio.run(scenario())

        assert len(all_runs) == 3
        assert len(wf_a) == 2
        assert len(wf_a_running) == 1
        assert len(limited) == 1

    def test_latest_run(self, service):
        async def scenario():
            await service.create_run("wf")
            await asyncio.sleep(0.01)
            newest = await service.create_run("wf")
            return newest, await service.latest_run("wf"), await service.latest_run("other")

        newest, latest, none = asyncio.run(scenario())
        assert latest.run_id == newest.run_id
        assert none is None


# ============================================================================
# COMPUTED WORKFLOW STATUS
# ============================================================================

class TestWorkflowStatus:

    def test_no_runs(self, service):
        workflow = WorkflowDefinition(workflow_id="wf", name="WF")
        status, last_run = asyncio.run(service.workflow_status(workflow))
        assert status == WorkflowStatus.ACTIVE
        assert last_run is None

    def test_inactive(self, service):
        workflow = WorkflowDefinition(workflow_id="wf", name="WF", is_active=False)
        status, _ = asyncio.run(service.workflow_status(workflow))
        assert status == WorkflowStatus.INACTIVE

    def test_running_while_a_run_is_running(self, service):
        workflow = WorkflowDefinition(workflow_id="wf", name="WF")

        async def scenario():
            run = await service.create_run("wf")
            return run, await service.workflow_status(workflow)

        run, (status, last_run) = asyncio.run(scenario())
        assert status == WorkflowStatus.RUNNING
        assert last_run == run.start_time

    def test_back_to_active_after_completion(self, service):
        workflow = WorkflowDefinition(workflow_id="wf", name="WF")

        async def scenario():
            run = await service.create_run("wf")
            finished = await service.complete_run(run.run_id, RunStatus.COMPLETED, output={})
            return finished, await service.workflow_status(workflow)

        finished, (status, last_run) = asyncio.run(scenario())
        assert status == WorkflowStatus.ACTIVE
        assert last_run == finished.end_time


# ============================================================================
# RUN TESTS
# ============================================================================

if __name__ == "__main__":
    pytest.main([__file__, "-v"])
