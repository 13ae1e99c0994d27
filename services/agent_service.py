# ============================================================================
# AGENT SERVICE
# ============================================================================
# EPOCH: 1 - SEQUENTIAL WORKFLOWS
# STATUS: Core - Agent catalog
# PURPOSE: Load agents and their declared capabilities
# CREATED: 19 OCT 2026
# ============================================================================
"""
Agent Service

Loads the agent catalog from a YAML file and answers "does this agent
exist, and can it perform this action type?" for definition validation.

Catalog file format:

    agents:
      - agent_id: email-agent
        name: Email Assistant
        capabilities: [analyze-email]
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional

import yaml

from core.models import AgentDefinition

logger = logging.getLogger(__name__)


class AgentService:
    """Service for loading and looking up agents."""

    def __init__(self, agents_file: Optional[str] = None):
        """
        Initialize agent service.

        Args:
            agents_file: YAML catalog path. When omitted, the catalog starts
                empty and agents are added with register().
        """
        self.agents_file = Path(agents_file) if agents_file else None
        self._cache: Dict[str, AgentDefinition] = {}

    def load_all(self) -> int:
        """
        Load all agents from the catalog file.

        Returns:
            Number of agents loaded
        """
        if self.agents_file is None:
            return 0
        if not self.agents_file.exists():
            logger.warning(f"Agent catalog not found: {self.agents_file}")
            return 0

        with open(self.agents_file) as f:
            data = yaml.safe_load(f) or {}

        entries = data.get("agents", []) if isinstance(data, dict) else data
        count = 0
        for entry in entries:
            try:
                self.register(AgentDefinition(**entry))
                count += 1
            except (TypeError, ValueError) as e:
                logger.error(f"Skipping invalid agent entry in {self.agents_file}: {e}")

        logger.info(f"Loaded {count} agents from {self.agents_file}")
        return count

    def get(self, agent_id: str) -> Optional[AgentDefinition]:
        return self._cache.get(agent_id)

    def list_all(self) -> List[AgentDefinition]:
        return [self._cache[key] for key in sorted(self._cache)]

    def register(self, agent: AgentDefinition) -> None:
        """Add or replace an agent."""
        self._cache[agent.agent_id] = agent
        logger.debug(f"Registered agent {agent.agent_id}: {agent.capabilities}")

    def check_capability(self, agent_id: str, action_type: str) -> Optional[str]:
        """
        Check that an agent exists, is active and declares an action type.

        Returns:
            An error message, or None if the agent can perform the action
        """
        agent = self.get(agent_id)
        if agent is None:
            return f"Unknown agent '{agent_id}'"
        if not agent.is_active:
            return f"Agent '{agent_id}' is inactive"
        if not agent.can_perform(action_type):
            return (
                f"Agent '{agent_id}' cannot perform '{action_type}' "
                f"(capabilities: {agent.capabilities})"
            )
        return None


__all__ = ["AgentService"]
