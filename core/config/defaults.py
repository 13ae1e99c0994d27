# ============================================================================
# CONFIGURATION DEFAULTS
# ============================================================================
# EPOCH: 1 - SEQUENTIAL WORKFLOWS
# STATUS: Core - Default configuration values
# PURPOSE: Centralized defaults for step execution, storage and loading
# CREATED: 19 OCT 2026
# ============================================================================
"""
Configuration Defaults

Provides sensible defaults for the workflow engine.
These can be overridden via environment variables.

Design:
- Immutable dataclasses for defaults
- Environment variable overrides
- Type-safe access
"""

import os
from dataclasses import dataclass, field
from typing import Optional
from enum import Enum


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class StorageBackend(str, Enum):
    """Where definitions and runs are persisted."""
    MEMORY = "memory"
    POSTGRES = "postgres"


@dataclass(frozen=True)
class EngineDefaults:
    """
    Defaults for run execution.

    Controls step timeouts, condition evaluation and error truncation.
    """
    # Applied when a step does not set timeout_seconds
    step_timeout_seconds: float = 300.0

    # When False every step is treated as condition "always"
    evaluate_conditions: bool = True

    # Run/step error messages are truncated to this length
    max_error_length: int = 2000

    def get_timeout(self, step_timeout: Optional[float] = None) -> float:
        """Effective timeout for a step."""
        return step_timeout if step_timeout else self.step_timeout_seconds

    @classmethod
    def from_env(cls) -> "EngineDefaults":
        """Create from environment variables."""
        return cls(
            step_timeout_seconds=float(os.getenv("ENGINE_STEP_TIMEOUT_SECONDS", 300)),
            evaluate_conditions=_env_bool("ENGINE_EVALUATE_CONDITIONS", True),
            max_error_length=int(os.getenv("ENGINE_MAX_ERROR_LENGTH", 2000)),
        )


@dataclass(frozen=True)
class StorageDefaults:
    """
    Defaults for persistence and definition loading.
    """
    backend: StorageBackend = StorageBackend.MEMORY
    db_schema: str = "agentflow"

    # YAML sources loaded at startup
    workflows_dir: str = "./workflows"
    agents_file: str = "./catalog/agents.yaml"

    # Connection pool sizing (postgres backend only)
    pool_min_size: int = 2
    pool_max_size: int = 10

    @classmethod
    def from_env(cls) -> "StorageDefaults":
        """Create from environment variables."""
        return cls(
            backend=StorageBackend(os.getenv("STORAGE_BACKEND", "memory").lower()),
            db_schema=os.getenv("DB_SCHEMA", "agentflow"),
            workflows_dir=os.getenv("WORKFLOWS_DIR", "./workflows"),
            agents_file=os.getenv("AGENTS_FILE", "./catalog/agents.yaml"),
            pool_min_size=int(os.getenv("DB_POOL_MIN_SIZE", 2)),
            pool_max_size=int(os.getenv("DB_POOL_MAX_SIZE", 10)),
        )


# ============================================================================
# GLOBAL DEFAULTS INSTANCE
# ============================================================================

@dataclass
class Defaults:
    """Container for all default configurations."""
    engine: EngineDefaults = field(default_factory=EngineDefaults)
    storage: StorageDefaults = field(default_factory=StorageDefaults)

    @classmethod
    def from_env(cls) -> "Defaults":
        """Create all defaults from environment variables."""
        return cls(
            engine=EngineDefaults.from_env(),
            storage=StorageDefaults.from_env(),
        )


_defaults: Optional[Defaults] = None


def get_defaults() -> Defaults:
    """Get global defaults instance."""
    global _defaults
    if _defaults is None:
        _defaults = Defaults.from_env()
    return _defaults


def reset_defaults() -> None:
    """Reset defaults (for testing)."""
    global _defaults
    _defaults = None


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "StorageBackend",
    "EngineDefaults",
    "StorageDefaults",
    "Defaults",
    "get_defaults",
    "reset_defaults",
]
