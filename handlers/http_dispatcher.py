# ============================================================================
# HTTP ACTION DISPATCHER
# ============================================================================
# EPOCH: 1 - SEQUENTIAL WORKFLOWS
# STATUS: Core - Remote agent invocation
# PURPOSE: Dispatch actions of remote agents over HTTP, others locally
# CREATED: 19 OCT 2026
# ============================================================================
"""
HTTP Action Dispatcher

Agents whose catalog entry has an `endpoint` are invoked remotely:

    POST {endpoint}/actions/{action_type}
    {"agent_id", "action_type", "input", "run_id", "workflow_id",
     "step_id", "correlation_id"}

The agent answers with {"success": bool, "output": ..., "error_message": ...}
(any other JSON body, or a plain-text body, is taken as the output).
Transport errors, HTTP error statuses and success=false all become
ActionError.

Agents without an endpoint are dispatched to the fallback (the in-process
action registry by default).
"""

import logging
from typing import TYPE_CHECKING, Any, Dict, Optional

import httpx

from core.errors import ActionError
from core.logging import get_current_context
from handlers.registry import ActionDispatcher, RegistryDispatcher

if TYPE_CHECKING:
    from services.agent_service import AgentService

logger = logging.getLogger(__name__)

# Read timeout is generous; the orchestrator enforces the per-step timeout
DEFAULT_TIMEOUT = httpx.Timeout(connect=10.0, read=300.0, write=30.0, pool=30.0)


class HttpDispatcher:
    """ActionDispatcher that routes remote agents over HTTP."""

    def __init__(
        self,
        agent_service: "AgentService",
        fallback: Optional[ActionDispatcher] = None,
        timeout: Optional[httpx.Timeout] = None,
    ):
        self.agent_service = agent_service
        self.fallback = fallback or RegistryDispatcher()
        self._timeout = timeout or DEFAULT_TIMEOUT

    async def invoke(self, agent_id: str, action_type: str, input: Any) -> Any:
        agent = self.agent_service.get(agent_id)
        if agent is None or not agent.endpoint:
            return await self.fallback.invoke(agent_id, action_type, input)

        url = f"{agent.endpoint.rstrip('/')}/actions/{action_type}"
        log_ctx = get_current_context()
        body = {
            "agent_id": agent_id,
            "action_type": action_type,
            "input": input,
            "run_id": log_ctx.run_id,
            "workflow_id": log_ctx.workflow_id,
            "step_id": log_ctx.step_id,
            "correlation_id": log_ctx.correlation_id,
        }

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.post(url, json=body)
        except httpx.TimeoutException as e:
            logger.error(f"Agent {agent_id} timed out: {url}: {e}")
            raise ActionError(
                f"Agent '{agent_id}' timed out", agent_id=agent_id, action_type=action_type
            ) from e
        except httpx.HTTPError as e:
            logger.error(f"Cannot reach agent {agent_id} at {url}: {e}")
            raise ActionError(
                f"Cannot reach agent '{agent_id}': {e}", agent_id=agent_id, action_type=action_type
            ) from e

        try:
            payload = resp.json()
        except ValueError:
            # Plain-text replies: the text is the output, or the error detail
            if resp.status_code < 400:
                return resp.text
            payload = {"detail": resp.text}

        if resp.status_code >= 400:
            raise ActionError(
                self._error_message(payload) or f"Agent '{agent_id}' returned HTTP {resp.status_code}",
                agent_id=agent_id,
                action_type=action_type,
            )

        if isinstance(payload, dict) and "success" in payload:
            if not payload["success"]:
                raise ActionError(
                    self._error_message(payload) or f"Action {action_type} failed",
                    agent_id=agent_id,
                    action_type=action_type,
                )
            return payload.get("output")

        return payload

    @staticmethod
    def _error_message(payload: Any) -> Optional[str]:
        if not isinstance(payload, dict):
            return None
        message = payload.get("error_message") or payload.get("detail")
        return str(message) if message else None


__all__ = ["HttpDispatcher", "DEFAULT_TIMEOUT"]
