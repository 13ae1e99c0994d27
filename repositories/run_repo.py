# ============================================================================
# RUN REPOSITORY
# ============================================================================
# EPOCH: 1 - SEQUENTIAL WORKFLOWS
# STATUS: Core - Run CRUD operations
# PURPOSE: Database access for workflow_runs table
# CREATED: 19 OCT 2026
# ============================================================================
"""
Run Repository

CRUD operations for runs. Step results are stored as a JSONB array on the
run row; they are append-only and written back whole on every save.
"""

import logging
from typing import Any, Dict, List, Optional

from psycopg import sql
from psycopg.rows import dict_row
from psycopg.types.json import Json
from psycopg_pool import AsyncConnectionPool

from core.contracts import RunStatus
from core.models import Run
from .base import BaseRunRepository
from .database import TABLE_RUNS

logger = logging.getLogger(__name__)


class RunRepository(BaseRunRepository):
    """Repository for Run entities."""

    def __init__(self, pool: AsyncConnectionPool):
        self.pool = pool

    async def create(self, run: Run) -> Run:
        """
        Create a new run.

        Args:
            run: Run instance to persist

        Returns:
            The persisted run
        """
        data = run.model_dump(mode="json")
        async with self.pool.connection() as conn:
            await conn.execute(
                sql.SQL("""
                INSERT INTO {} (
                    run_id, workflow_id, workflow_version, status, total_steps,
                    input, output, error, step_results, triggered_by,
                    correlation_id, start_time, end_time
                ) VALUES (
                    %(run_id)s, %(workflow_id)s, %(workflow_version)s, %(status)s,
                    %(total_steps)s, %(input)s, %(output)s, %(error)s,
                    %(step_results)s, %(triggered_by)s, %(correlation_id)s,
                    %(start_time)s, %(end_time)s
                )
                """).format(TABLE_RUNS),
                {
                    "run_id": run.run_id,
                    "workflow_id": run.workflow_id,
                    "workflow_version": run.workflow_version,
                    "status": run.status.value,
                    "total_steps": run.total_steps,
                    "input": Json(data["input"]),
                    "output": Json(data["output"]),
                    "error": run.error,
                    "step_results": Json(data["step_results"]),
                    "triggered_by": run.triggered_by.value,
                    "correlation_id": run.correlation_id,
                    "start_time": run.start_time,
                    "end_time": run.end_time,
                },
            )
        logger.info(f"Created run {run.run_id} for workflow {run.workflow_id}")
        return run

    async def get(self, run_id: str) -> Optional[Run]:
        """
        Get a run by ID.

        Returns:
            Run instance or None if not found
        """
        async with self.pool.connection() as conn:
            conn.row_factory = dict_row
            result = await conn.execute(
                sql.SQL("SELECT * FROM {} WHERE run_id = %s").format(TABLE_RUNS),
                (run_id,),
            )
            row = await result.fetchone()

            if row is None:
                return None

            return self._row_to_run(row)

    async def save(self, run: Run) -> Run:
        """
        Write back the mutable parts of a run.

        Raises:
            KeyError: If the run does not exist
        """
        data = run.model_dump(mode="json")
        async with self.pool.connection() as conn:
            result = await conn.execute(
                sql.SQL("""
                UPDATE {} SET
                    status = %(status)s,
                    output = %(output)s,
                    error = %(error)s,
                    step_results = %(step_results)s,
                    end_time = %(end_time)s
                WHERE run_id = %(run_id)s
                """).format(TABLE_RUNS),
                {
                    "run_id": run.run_id,
                    "status": run.status.value,
                    "output": Json(data["output"]),
                    "error": run.error,
                    "step_results": Json(data["step_results"]),
                    "end_time": run.end_time,
                },
            )

            if result.rowcount == 0:
                raise KeyError(f"Run not found: {run.run_id}")

        logger.debug(
            f"Saved run {run.run_id} status={run.status.value} "
            f"steps={len(run.step_results)}"
        )
        return run

    async def list_runs(
        self,
        workflow_id: Optional[str] = None,
        status: Optional[RunStatus] = None,
        limit: int = 100,
    ) -> List[Run]:
        """
        List runs, newest first.

        Args:
            workflow_id: Only runs of this workflow
            status: Only runs in this status
            limit: Maximum results
        """
        clauses = []
        params: List[Any] = []
        if workflow_id is not None:
            clauses.append(sql.SQL("workflow_id = %s"))
            params.append(workflow_id)
        if status is not None:
            clauses.append(sql.SQL("status = %s"))
            params.append(status.value)

        where = sql.SQL("WHERE ") + sql.SQL(" AND ").join(clauses) if clauses else sql.SQL("")
        params.append(limit)

        async with self.pool.connection() as conn:
            conn.row_factory = dict_row
            result = await conn.execute(
                sql.SQL("SELECT * FROM {} {} ORDER BY start_time DESC LIMIT %s").format(
                    TABLE_RUNS, where
                ),
                params,
            )
            rows = await result.fetchall()
            return [self._row_to_run(row) for row in rows]

    def _row_to_run(self, row: Dict[str, Any]) -> Run:
        """Convert database row to Run model."""
        return Run(
            run_id=row["run_id"],
            workflow_id=row["workflow_id"],
            workflow_version=row.get("workflow_version") or 1,
            status=RunStatus(row["status"]),
            total_steps=row.get("total_steps") or 0,
            input=row.get("input"),
            output=row.get("output"),
            error=row.get("error"),
            step_results=row.get("step_results") or [],
            triggered_by=row.get("triggered_by") or "manual",
            correlation_id=row.get("correlation_id"),
            start_time=row["start_time"],
            end_time=row.get("end_time"),
        )


__all__ = ["RunRepository"]
