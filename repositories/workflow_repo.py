# ============================================================================
# WORKFLOW REPOSITORY
# ============================================================================
# EPOCH: 1 - SEQUENTIAL WORKFLOWS
# STATUS: Core - Workflow definition CRUD operations
# PURPOSE: Database access for workflow_definitions table
# CREATED: 19 OCT 2026
# ============================================================================
"""
Workflow Repository

CRUD operations for workflow definitions. The full definition is stored as
a JSONB document; id, version and timestamps are mirrored into columns.
"""

import logging
from typing import Any, Dict, List, Optional

from psycopg import sql
from psycopg.rows import dict_row
from psycopg.types.json import Json
from psycopg_pool import AsyncConnectionPool

from core.errors import WorkflowExistsError
from core.models import WorkflowDefinition
from .base import BaseWorkflowRepository
from .database import TABLE_WORKFLOWS

logger = logging.getLogger(__name__)


class WorkflowRepository(BaseWorkflowRepository):
    """Repository for WorkflowDefinition entities."""

    def __init__(self, pool: AsyncConnectionPool):
        self.pool = pool

    async def create(self, workflow: WorkflowDefinition) -> WorkflowDefinition:
        """Insert a new definition; the primary key decides concurrent creates."""
        async with self.pool.connection() as conn:
            result = await conn.execute(
                sql.SQL("""
                INSERT INTO {} (
                    workflow_id, version, is_active, definition, created_at, updated_at
                ) VALUES (
                    %(workflow_id)s, %(version)s, %(is_active)s, %(definition)s,
                    %(created_at)s, %(updated_at)s
                )
                ON CONFLICT (workflow_id) DO NOTHING
                """).format(TABLE_WORKFLOWS),
                self._params(workflow),
            )
            if result.rowcount == 0:
                raise WorkflowExistsError(workflow.workflow_id)

        logger.info(f"Created workflow {workflow.workflow_id} v{workflow.version}")
        return workflow

    async def save(self, workflow: WorkflowDefinition) -> WorkflowDefinition:
        """Insert or replace a definition (upsert on workflow_id)."""
        async with self.pool.connection() as conn:
            await conn.execute(
                sql.SQL("""
                INSERT INTO {} (
                    workflow_id, version, is_active, definition, created_at, updated_at
                ) VALUES (
                    %(workflow_id)s, %(version)s, %(is_active)s, %(definition)s,
                    %(created_at)s, %(updated_at)s
                )
                ON CONFLICT (workflow_id) DO UPDATE SET
                    version = EXCLUDED.version,
                    is_active = EXCLUDED.is_active,
                    definition = EXCLUDED.definition,
                    updated_at = EXCLUDED.updated_at
                """).format(TABLE_WORKFLOWS),
                self._params(workflow),
            )
        logger.info(f"Saved workflow {workflow.workflow_id} v{workflow.version}")
        return workflow

    async def get(self, workflow_id: str) -> Optional[WorkflowDefinition]:
        async with self.pool.connection() as conn:
            conn.row_factory = dict_row
            result = await conn.execute(
                sql.SQL("SELECT * FROM {} WHERE workflow_id = %s").format(TABLE_WORKFLOWS),
                (workflow_id,),
            )
            row = await result.fetchone()

            if row is None:
                return None

            return self._row_to_workflow(row)

    async def list_all(self) -> List[WorkflowDefinition]:
        async with self.pool.connection() as conn:
            conn.row_factory = dict_row
            result = await conn.execute(
                sql.SQL("SELECT * FROM {} ORDER BY workflow_id").format(TABLE_WORKFLOWS)
            )
            rows = await result.fetchall()
            return [self._row_to_workflow(row) for row in rows]

    async def delete(self, workflow_id: str) -> bool:
        async with self.pool.connection() as conn:
            result = await conn.execute(
                sql.SQL("DELETE FROM {} WHERE workflow_id = %s").format(TABLE_WORKFLOWS),
                (workflow_id,),
            )
            deleted = result.rowcount > 0

        if deleted:
            logger.info(f"Deleted workflow {workflow_id}")
        return deleted

    def _params(self, workflow: WorkflowDefinition) -> Dict[str, Any]:
        return {
            "workflow_id": workflow.workflow_id,
            "version": workflow.version,
            "is_active": workflow.is_active,
            "definition": Json(workflow.model_dump(mode="json")),
            "created_at": workflow.created_at,
            "updated_at": workflow.updated_at,
        }

    def _row_to_workflow(self, row: Dict[str, Any]) -> WorkflowDefinition:
        """Convert database row to WorkflowDefinition model."""
        return WorkflowDefinition.model_validate(row["definition"])


__all__ = ["WorkflowRepository"]
