# ============================================================================
# WORKFLOW SERVICE
# ============================================================================
# EPOCH: 1 - SEQUENTIAL WORKFLOWS
# STATUS: Core - Workflow definition management
# PURPOSE: Load, validate and store workflow definitions
# CREATED: 19 OCT 2026
# ============================================================================
"""
Workflow Service

Definition store for the engine. Loads workflow definitions from YAML
files, validates them and keeps them in a repository.

Validation (raised eagerly as DefinitionError on register/update, and
re-checked by the orchestrator at run start):
- Structure: unique step ids, unique output mappings
- Every step's agent exists and declares the step's action type
- Optionally, every action type has a registered handler
- Condition expressions parse

Workflow files are stored in the workflows/ directory.
"""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

import yaml

from core.errors import ConditionSyntaxError, DefinitionError, WorkflowNotFoundError
from core.models import WorkflowDefinition
from handlers.registry import is_registered
from orchestrator.engine.conditions import ConditionEvaluator, get_condition_evaluator
from repositories.base import BaseWorkflowRepository
from .agent_service import AgentService

logger = logging.getLogger(__name__)


class WorkflowService:
    """Service for loading and managing workflow definitions."""

    def __init__(
        self,
        workflow_repo: BaseWorkflowRepository,
        agent_service: Optional[AgentService] = None,
        workflows_dir: Optional[str] = None,
        require_registered_actions: bool = False,
        evaluator: Optional[ConditionEvaluator] = None,
    ):
        """
        Initialize workflow service.

        Args:
            workflow_repo: Definition storage backend
            agent_service: Agent catalog used for capability checks
                (skipped when None)
            workflows_dir: Directory containing workflow YAML files
            require_registered_actions: Also require a registered handler
                for every action type
            evaluator: Condition evaluator used for syntax checks
        """
        self.workflow_repo = workflow_repo
        self.agent_service = agent_service
        self.workflows_dir = Path(workflows_dir) if workflows_dir else None
        self.require_registered_actions = require_registered_actions
        self.evaluator = evaluator or get_condition_evaluator()

    async def load_all(self) -> int:
        """
        Load all workflow definitions from the workflows directory.

        Invalid files are logged and skipped.

        Returns:
            Number of workflows loaded
        """
        if self.workflows_dir is None:
            return 0
        if not self.workflows_dir.exists():
            logger.warning(f"Workflows directory not found: {self.workflows_dir}")
            return 0

        count = 0
        paths = sorted(self.workflows_dir.glob("*.yaml")) + sorted(self.workflows_dir.glob("*.yml"))
        for yaml_file in paths:
            try:
                workflow = self._load_yaml(yaml_file)
                await self.register(workflow)
                count += 1
            except (DefinitionError, ValueError, yaml.YAMLError) as e:
                logger.error(f"Failed to load {yaml_file}: {e}")

        logger.info(f"Loaded {count} workflows from {self.workflows_dir}")
        return count

    async def get(self, workflow_id: str) -> Optional[WorkflowDefinition]:
        """
        Get a workflow definition by ID.

        Returns:
            WorkflowDefinition or None if not found
        """
        return await self.workflow_repo.get(workflow_id)

    async def get_or_raise(self, workflow_id: str) -> WorkflowDefinition:
        """
        Get a workflow definition, raising if not found.

        Raises:
            WorkflowNotFoundError if workflow not found
        """
        workflow = await self.get(workflow_id)
        if workflow is None:
            raise WorkflowNotFoundError(workflow_id)
        return workflow

    async def list_all(self) -> List[WorkflowDefinition]:
        return await self.workflow_repo.list_all()

    async def register(self, workflow: WorkflowDefinition) -> WorkflowDefinition:
        """
        Validate and store a workflow definition (insert or replace).

        Raises:
            DefinitionError: If the definition is invalid
        """
        self.validate(workflow)
        await self.workflow_repo.save(workflow)
        logger.info(f"Registered workflow: {workflow.workflow_id} v{workflow.version}")
        return workflow

    async def create(self, workflow: WorkflowDefinition) -> WorkflowDefinition:
        """
        Validate and store a new workflow definition.

        Raises:
            DefinitionError: If the definition is invalid
            WorkflowExistsError: If the workflow id is already stored
        """
        self.validate(workflow)
        await self.workflow_repo.create(workflow)
        logger.info(f"Created workflow: {workflow.workflow_id} v{workflow.version}")
        return workflow

    async def update(self, workflow_id: str, workflow: WorkflowDefinition) -> WorkflowDefinition:
        """
        Replace an existing definition, bumping its version.

        Runs already started keep the version they pinned.

        Raises:
            WorkflowNotFoundError: If the workflow does not exist
            DefinitionError: If the new definition is invalid
        """
        existing = await self.get_or_raise(workflow_id)

        updated = workflow.model_copy(update={
            "workflow_id": workflow_id,
            "version": existing.version + 1,
            "created_at": existing.created_at,
            "updated_at": datetime.now(timezone.utc),
        })
        self.validate(updated)
        await self.workflow_repo.save(updated)

        logger.info(f"Updated workflow: {workflow_id} v{existing.version} -> v{updated.version}")
        return updated

    async def delete(self, workflow_id: str) -> bool:
        """Delete a definition. Its runs are kept."""
        return await self.workflow_repo.delete(workflow_id)

    def validate(self, workflow: WorkflowDefinition) -> None:
        """
        Validate a definition against structure, catalogs and condition grammar.

        Raises:
            ConditionSyntaxError: If the only problem is one bad condition
            DefinitionError: Listing every problem found
        """
        errors = list(workflow.validate_structure())
        syntax_errors: List[ConditionSyntaxError] = []

        for step in workflow.steps:
            remote = False
            if self.agent_service is not None:
                problem = self.agent_service.check_capability(step.agent_id, step.action_type)
                if problem:
                    errors.append(f"Step '{step.id}': {problem}")
                agent = self.agent_service.get(step.agent_id)
                remote = agent is not None and bool(agent.endpoint)

            # Remote agents implement their own actions
            if self.require_registered_actions and not remote and not is_registered(step.action_type):
                errors.append(f"Step '{step.id}': unknown action type '{step.action_type}'")

            if step.condition is not None and (step.condition.expression or "").strip():
                try:
                    self.evaluator.validate(step.condition)
                except ConditionSyntaxError as e:
                    syntax_errors.append(e)
                    errors.append(f"Step '{step.id}': {e.message}")

        if not errors:
            return

        if len(errors) == 1 and syntax_errors:
            raise syntax_errors[0]
        raise DefinitionError(
            f"Invalid workflow '{workflow.workflow_id}': {'; '.join(errors)}",
            errors=errors,
        )

    def _load_yaml(self, path: Path) -> WorkflowDefinition:
        """
        Load a workflow from YAML file.

        Args:
            path: Path to YAML file

        Returns:
            WorkflowDefinition instance
        """
        with open(path) as f:
            data = yaml.safe_load(f)

        if not isinstance(data, dict):
            raise ValueError(f"Expected a mapping at the top of {path}")

        return WorkflowDefinition(**data)


__all__ = ["WorkflowService"]
