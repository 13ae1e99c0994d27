# ============================================================================
# ORCHESTRATOR
# ============================================================================
# EPOCH: 1 - SEQUENTIAL WORKFLOWS
# STATUS: Core - Run driver
# PURPOSE: Execute a workflow's steps in order for one run
# CREATED: 19 OCT 2026
# ============================================================================
"""
Orchestrator

Drives one run through its workflow's steps, strictly in definition order:

    for each step:
        1. Build context (run input + outputs so far)
        2. Resolve the step input        -> ResolutionError fails the run
        3. Evaluate the step condition   -> False skips the step
        4. Invoke the dispatcher         -> ActionError fails the run
        5. Record the StepResult, expose the output under output_mapping

    all steps done -> COMPLETED with {output_mapping: output, ...}

A run is state machine CREATED -> RUNNING -> {COMPLETED, FAILED}. Every
failure inside a step is recorded and contained in the run; callers of
start_run only ever see DefinitionError or WorkflowNotFoundError.

Each run executes as one asyncio task. Runs share no mutable state, so any
number may execute concurrently.
"""

import asyncio
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Dict, Optional, Tuple

from core.config import EngineDefaults, get_defaults
from core.contracts import RunStatus, StepStatus, TriggerType
from core.errors import ActionError, ResolutionError
from core.logging import ComponentType, get_logger, log_checkpoint, log_context
from core.models import Run, StepDefinition, StepResult, WorkflowDefinition
from handlers.registry import ActionDispatcher, RegistryDispatcher
from orchestrator.engine.conditions import ConditionEvaluator, get_condition_evaluator
from orchestrator.engine.resolver import ResolutionContext, VariableResolver, get_resolver

if TYPE_CHECKING:
    from services import RunService, WorkflowService

logger = get_logger(__name__, ComponentType.ORCHESTRATOR)

CANCELLED_ERROR = "cancelled"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Orchestrator:
    """
    Sequential workflow runner.

    Usage:
        orchestrator = Orchestrator(workflow_service, run_service)
        run_id = await orchestrator.start_run("email-processing", {"email": {...}})
        run = await orchestrator.wait_for_run(run_id)
    """

    def __init__(
        self,
        workflow_service: "WorkflowService",
        run_service: "RunService",
        dispatcher: Optional[ActionDispatcher] = None,
        defaults: Optional[EngineDefaults] = None,
        resolver: Optional[VariableResolver] = None,
        evaluator: Optional[ConditionEvaluator] = None,
    ):
        """
        Initialize orchestrator.

        Args:
            workflow_service: Definition store
            run_service: Run tracker
            dispatcher: Action dispatcher (defaults to the handler registry)
            defaults: Engine settings (defaults to environment)
            resolver: Placeholder resolver
            evaluator: Condition evaluator
        """
        self.workflow_service = workflow_service
        self.run_service = run_service
        self.dispatcher = dispatcher or RegistryDispatcher()
        self.defaults = defaults or get_defaults().engine
        self.resolver = resolver or get_resolver()
        self.evaluator = evaluator or get_condition_evaluator()

        # Per-run state, dropped when the run finishes
        self._tasks: Dict[str, asyncio.Task] = {}
        self._cancel_events: Dict[str, asyncio.Event] = {}

        # Stats
        self._started_at = _utcnow()
        self._runs_started = 0
        self._runs_completed = 0
        self._runs_failed = 0
        self._steps_executed = 0
        self._steps_skipped = 0

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    async def start_run(
        self,
        workflow_id: str,
        input: Any = None,
        triggered_by: TriggerType = TriggerType.MANUAL,
        correlation_id: Optional[str] = None,
    ) -> str:
        """
        Start a run in the background and return its ID immediately.

        Raises:
            WorkflowNotFoundError: If the workflow does not exist
            DefinitionError: If the definition is invalid (no run is created)
        """
        workflow, run = await self._create_run(workflow_id, input, triggered_by, correlation_id)

        task = asyncio.create_task(self._execute(workflow, run), name=f"run-{run.run_id}")
        self._tasks[run.run_id] = task
        task.add_done_callback(lambda t, run_id=run.run_id: self._on_run_done(run_id, t))

        return run.run_id

    async def execute_run(
        self,
        workflow_id: str,
        input: Any = None,
        triggered_by: TriggerType = TriggerType.MANUAL,
        correlation_id: Optional[str] = None,
    ) -> Run:
        """
        Run a workflow inline and return the finished run.

        Raises:
            WorkflowNotFoundError: If the workflow does not exist
            DefinitionError: If the definition is invalid (no run is created)
        """
        workflow, run = await self._create_run(workflow_id, input, triggered_by, correlation_id)
        return await self._execute(workflow, run)

    async def wait_for_run(self, run_id: str, timeout: Optional[float] = None) -> Run:
        """
        Wait until a background run finishes and return it.

        Returns the stored run straight away if it is not executing here.

        Raises:
            RunNotFoundError: If the run does not exist
            asyncio.TimeoutError: If timeout elapses first
        """
        task = self._tasks.get(run_id)
        if task is not None:
            await asyncio.wait_for(asyncio.shield(task), timeout=timeout)
        return await self.run_service.get_run_or_raise(run_id)

    async def cancel_run(self, run_id: str) -> bool:
        """
        Request cancellation of an executing run.

        The run fails with error "cancelled" before its next step starts;
        a step already dispatched is allowed to finish. A cancel accepted
        during the final step still fails the run.

        Returns:
            True if the request was accepted, False if the run is unknown
            or already terminal
        """
        event = self._cancel_events.get(run_id)
        if event is None:
            return False

        run = await self.run_service.get_run(run_id)
        if run is None or run.is_terminal:
            return False

        event.set()
        logger.info(f"Cancellation requested for run {run_id}")
        return True

    async def shutdown(self) -> None:
        """Cancel every executing run and wait for them to settle."""
        tasks = list(self._tasks.values())
        for event in self._cancel_events.values():
            event.set()
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.info(f"Shut down {len(tasks)} executing runs")

    @property
    def active_runs(self) -> int:
        return len(self._cancel_events)

    @property
    def stats(self) -> Dict[str, Any]:
        """Get orchestrator statistics."""
        return {
            "started_at": self._started_at.isoformat(),
            "uptime_seconds": (_utcnow() - self._started_at).total_seconds(),
            "active_runs": self.active_runs,
            "runs_started": self._runs_started,
            "runs_completed": self._runs_completed,
            "runs_failed": self._runs_failed,
            "steps_executed": self._steps_executed,
            "steps_skipped": self._steps_skipped,
            "step_timeout_seconds": self.defaults.step_timeout_seconds,
            "evaluate_conditions": self.defaults.evaluate_conditions,
        }

    # =========================================================================
    # RUN EXECUTION
    # =========================================================================

    async def _create_run(
        self,
        workflow_id: str,
        input: Any,
        triggered_by: TriggerType,
        correlation_id: Optional[str],
    ) -> Tuple[WorkflowDefinition, Run]:
        """Load and re-validate the definition, then create the run."""
        workflow = await self.workflow_service.get_or_raise(workflow_id)
        self.workflow_service.validate(workflow)

        run = await self.run_service.create_run(
            workflow_id=workflow.workflow_id,
            input=input,
            workflow_version=workflow.version,
            total_steps=len(workflow.steps),
            triggered_by=triggered_by,
            correlation_id=correlation_id,
        )
        self._cancel_events[run.run_id] = asyncio.Event()
        self._runs_started += 1
        return workflow, run

    async def _execute(self, workflow: WorkflowDefinition, run: Run) -> Run:
        """Drive a created run to a terminal state."""
        with log_context(
            run_id=run.run_id,
            workflow_id=workflow.workflow_id,
            correlation_id=run.correlation_id,
            component=ComponentType.ORCHESTRATOR.value,
        ):
            log_checkpoint("run_started", {
                "workflow_version": workflow.version,
                "total_steps": len(workflow.steps),
            }, logger)

            try:
                return await self._execute_steps(workflow, run)
            except asyncio.CancelledError:
                await self._fail_if_running(run.run_id, CANCELLED_ERROR)
                raise
            except Exception as e:
                # Tracker or storage failure outside step containment
                logger.exception(f"Run {run.run_id} aborted: {e}")
                await self._fail_if_running(run.run_id, f"Internal error: {e}")
                raise
            finally:
                self._cancel_events.pop(run.run_id, None)

    async def _execute_steps(self, workflow: WorkflowDefinition, run: Run) -> Run:
        context = ResolutionContext(input=run.input)
        cancel_event = self._cancel_events.get(run.run_id)

        for step in workflow.steps:
            if cancel_event is not None and cancel_event.is_set():
                return await self._finish_failed(run.run_id, CANCELLED_ERROR)

            with log_context(step_id=step.id, agent_id=step.agent_id, action_type=step.action_type):
                result = await self._execute_step(run.run_id, step, context)

            if result is None:
                continue
            if result.status == StepStatus.FAILED:
                return await self._finish_failed(run.run_id, result.error)

            context = context.with_output(step.output_mapping, result.output)

        # Cancel accepted while the final step was in flight
        if cancel_event is not None and cancel_event.is_set():
            return await self._finish_failed(run.run_id, CANCELLED_ERROR)

        finished = await self.run_service.complete_run(
            run.run_id, RunStatus.COMPLETED, output=dict(context.steps)
        )
        self._runs_completed += 1
        log_checkpoint("run_completed", {
            "steps_recorded": len(finished.step_results),
            "duration_seconds": finished.duration_seconds,
        }, logger)
        return finished

    async def _execute_step(
        self,
        run_id: str,
        step: StepDefinition,
        context: ResolutionContext,
    ) -> Optional[StepResult]:
        """
        Execute one step.

        Returns:
            The recorded StepResult, or None if the condition skipped the step
        """
        start_time = _utcnow()
        timeout = self.defaults.get_timeout(step.timeout_seconds)

        try:
            resolved_input = self.resolver.resolve(step.input, context)

            if self.defaults.evaluate_conditions and not self.evaluator.should_run(step.condition, context):
                self._steps_skipped += 1
                log_checkpoint("step_skipped", {"expression": step.condition.expression}, logger)
                return None

            output = await asyncio.wait_for(
                self.dispatcher.invoke(step.agent_id, step.action_type, resolved_input),
                timeout=timeout,
            )
            result = StepResult.completed(step.id, output, start_time)

        except ResolutionError as e:
            result = StepResult.failed(step.id, e.message, start_time)
        except ActionError as e:
            result = StepResult.failed(step.id, e.message, start_time)
        except asyncio.TimeoutError:
            result = StepResult.failed(step.id, f"Step '{step.id}' timed out after {timeout:g}s", start_time)
        except Exception as e:
            logger.exception(f"Unexpected error in step {step.id}: {e}")
            result = StepResult.failed(step.id, str(e) or type(e).__name__, start_time)

        await self.run_service.append_step_result(run_id, result)
        self._steps_executed += 1

        if result.status == StepStatus.COMPLETED:
            log_checkpoint("step_completed", {"duration_seconds": result.duration_seconds}, logger)
        else:
            log_checkpoint("step_failed", {"error": result.error}, logger)
        return result

    async def _finish_failed(self, run_id: str, error: str) -> Run:
        finished = await self.run_service.complete_run(run_id, RunStatus.FAILED, error=error)
        self._runs_failed += 1
        log_checkpoint("run_failed", {
            "error": finished.error,
            "steps_recorded": len(finished.step_results),
        }, logger)
        return finished

    def _on_run_done(self, run_id: str, task: asyncio.Task) -> None:
        """Drop a finished background task, retrieving any internal error."""
        self._tasks.pop(run_id, None)
        if task.cancelled():
            return
        # Already logged and recorded on the run by _execute
        if task.exception() is not None:
            logger.debug(f"Background run {run_id} ended with an internal error")

    async def _fail_if_running(self, run_id: str, error: str) -> None:
        run = await self.run_service.get_run(run_id)
        if run is not None and not run.is_terminal:
            await self._finish_failed(run_id, error)


__all__ = ["Orchestrator", "CANCELLED_ERROR"]
