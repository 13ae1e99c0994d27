# ============================================================================
# API ROUTES
# ============================================================================
# EPOCH: 1 - SEQUENTIAL WORKFLOWS
# STATUS: Core - FastAPI route definitions
# PURPOSE: HTTP endpoints for workflows, runs, actions and agents
# CREATED: 19 OCT 2026
# ============================================================================
"""
API Routes

FastAPI routes for the workflow engine. Mounted under /api/v1.

Error mapping:
    WorkflowNotFoundError / RunNotFoundError -> 404
    DefinitionError                          -> 422
    Existing workflow on create              -> 409
"""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Query

from __version__ import __version__
from core.contracts import RunStatus
from core.errors import DefinitionError, WorkflowExistsError, WorkflowNotFoundError
from core.models import WorkflowDefinition
from handlers.registry import list_actions
from .schemas import (
    RunCreate,
    WorkflowResponse,
    WorkflowListResponse,
    RunStartedResponse,
    RunResponse,
    RunListResponse,
    CancelResponse,
    ActionListResponse,
    AgentListResponse,
    ErrorResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================================================
# DEPENDENCY INJECTION
# ============================================================================
# These will be set by the main app at startup

_workflow_service = None
_run_service = None
_agent_service = None
_orchestrator = None


def set_services(workflow_service, run_service, agent_service, orchestrator):
    """Set service instances for dependency injection."""
    global _workflow_service, _run_service, _agent_service, _orchestrator
    _workflow_service = workflow_service
    _run_service = run_service
    _agent_service = agent_service
    _orchestrator = orchestrator


def get_workflow_service():
    if _workflow_service is None:
        raise HTTPException(500, "Services not initialized")
    return _workflow_service


def get_run_service():
    if _run_service is None:
        raise HTTPException(500, "Services not initialized")
    return _run_service


def get_agent_service():
    if _agent_service is None:
        raise HTTPException(500, "Services not initialized")
    return _agent_service


def get_orchestrator():
    if _orchestrator is None:
        raise HTTPException(500, "Orchestrator not initialized")
    return _orchestrator


def _definition_error(e: DefinitionError) -> HTTPException:
    return HTTPException(422, {"message": e.message, "errors": e.errors})


async def _workflow_response(workflow: WorkflowDefinition) -> WorkflowResponse:
    status, last_run = await get_run_service().workflow_status(workflow)
    return WorkflowResponse(workflow=workflow, status=status, last_run=last_run)


# ============================================================================
# HEALTH
# ============================================================================

@router.get("/health", tags=["Health"])
async def health():
    """Liveness plus orchestrator statistics."""
    orchestrator = get_orchestrator()
    return {
        "status": "healthy",
        "version": __version__,
        "orchestrator": orchestrator.stats,
    }


# ============================================================================
# WORKFLOWS
# ============================================================================

@router.get("/workflows", response_model=WorkflowListResponse, tags=["Workflows"])
async def list_workflows():
    """
    List workflow definitions with their computed status.
    """
    service = get_workflow_service()
    workflows = await service.list_all()

    responses = [await _workflow_response(w) for w in workflows]
    return WorkflowListResponse(workflows=responses, total=len(responses))


@router.get(
    "/workflows/{workflow_id}",
    response_model=WorkflowResponse,
    tags=["Workflows"],
    responses={404: {"model": ErrorResponse}},
)
async def get_workflow(workflow_id: str):
    """
    Get a workflow definition.
    """
    workflow = await get_workflow_service().get(workflow_id)

    if workflow is None:
        raise HTTPException(404, f"Workflow not found: {workflow_id}")

    return await _workflow_response(workflow)


@router.post(
    "/workflows",
    response_model=WorkflowResponse,
    status_code=201,
    tags=["Workflows"],
    responses={
        409: {"model": ErrorResponse, "description": "Workflow already exists"},
        422: {"model": ErrorResponse, "description": "Invalid definition"},
    },
)
async def create_workflow(workflow: WorkflowDefinition):
    """
    Register a new workflow definition.
    """
    service = get_workflow_service()

    try:
        await service.create(workflow)
    except WorkflowExistsError as e:
        raise HTTPException(409, e.message)
    except DefinitionError as e:
        raise _definition_error(e)

    return await _workflow_response(workflow)


@router.put(
    "/workflows/{workflow_id}",
    response_model=WorkflowResponse,
    tags=["Workflows"],
    responses={404: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
async def update_workflow(workflow_id: str, workflow: WorkflowDefinition):
    """
    Replace a workflow definition. The version is bumped; runs already
    started keep the version they pinned.
    """
    try:
        updated = await get_workflow_service().update(workflow_id, workflow)
    except WorkflowNotFoundError as e:
        raise HTTPException(404, e.message)
    except DefinitionError as e:
        raise _definition_error(e)

    return await _workflow_response(updated)


@router.delete(
    "/workflows/{workflow_id}",
    status_code=204,
    tags=["Workflows"],
    responses={404: {"model": ErrorResponse}},
)
async def delete_workflow(workflow_id: str):
    """
    Delete a workflow definition. Its runs are kept.
    """
    if not await get_workflow_service().delete(workflow_id):
        raise HTTPException(404, f"Workflow not found: {workflow_id}")


# ============================================================================
# RUNS
# ============================================================================

@router.post(
    "/workflows/{workflow_id}/runs",
    response_model=RunStartedResponse,
    status_code=202,
    tags=["Runs"],
    responses={
        202: {"description": "Run started"},
        404: {"model": ErrorResponse, "description": "Workflow not found"},
        422: {"model": ErrorResponse, "description": "Invalid definition"},
    },
)
async def start_run(workflow_id: str, request: Optional[RunCreate] = None):
    """
    Start a run of a workflow.

    Returns immediately with the run ID. Poll GET /runs/{run_id} to
    monitor progress.
    """
    request = request or RunCreate()
    orchestrator = get_orchestrator()

    try:
        run_id = await orchestrator.start_run(
            workflow_id,
            request.input,
            triggered_by=request.triggered_by,
            correlation_id=request.correlation_id,
        )
    except WorkflowNotFoundError as e:
        raise HTTPException(404, e.message)
    except DefinitionError as e:
        raise _definition_error(e)

    logger.info(f"Started run {run_id} for workflow {workflow_id}")
    return RunStartedResponse(run_id=run_id, workflow_id=workflow_id)


@router.get("/runs", response_model=RunListResponse, tags=["Runs"])
async def list_runs(
    workflow_id: Optional[str] = Query(None, description="Filter by workflow"),
    status: Optional[RunStatus] = Query(None, description="Filter by status"),
    limit: int = Query(100, ge=1, le=1000),
):
    """
    List runs, newest first.
    """
    runs = await get_run_service().list_runs(workflow_id=workflow_id, status=status, limit=limit)
    return RunListResponse(runs=[RunResponse.from_run(r) for r in runs], total=len(runs))


@router.get(
    "/runs/{run_id}",
    response_model=RunResponse,
    tags=["Runs"],
    responses={404: {"model": ErrorResponse}},
)
async def get_run(run_id: str):
    """
    Get a run with its step results.
    """
    run = await get_run_service().get_run(run_id)

    if run is None:
        raise HTTPException(404, f"Run not found: {run_id}")

    return RunResponse.from_run(run)


@router.post(
    "/runs/{run_id}/cancel",
    response_model=CancelResponse,
    tags=["Runs"],
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def cancel_run(run_id: str):
    """
    Request cancellation of an executing run.

    The run fails with error "cancelled" before its next step.
    """
    run = await get_run_service().get_run(run_id)
    if run is None:
        raise HTTPException(404, f"Run not found: {run_id}")

    if not await get_orchestrator().cancel_run(run_id):
        raise HTTPException(409, f"Run {run_id} is not executing (status: {run.status.value})")

    return CancelResponse(run_id=run_id, cancelled=True)


# ============================================================================
# CATALOGS
# ============================================================================

@router.get("/actions", response_model=ActionListResponse, tags=["Catalog"])
async def get_actions():
    """
    List registered action types.
    """
    actions = list_actions()
    return ActionListResponse(actions=actions, total=len(actions))


@router.get("/agents", response_model=AgentListResponse, tags=["Catalog"])
async def get_agents():
    """
    List agents and their capabilities.
    """
    agents = get_agent_service().list_all()
    return AgentListResponse(agents=agents, total=len(agents))
