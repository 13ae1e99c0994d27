# ============================================================================
# CONFIGURATION MODULE
# ============================================================================
# EPOCH: 1 - SEQUENTIAL WORKFLOWS
# STATUS: Core - Configuration and defaults
# PURPOSE: Centralized configuration management
# CREATED: 19 OCT 2026
# ============================================================================
"""
Configuration Module

Provides centralized configuration and defaults for the workflow engine.
"""

from core.config.defaults import (
    StorageBackend,
    EngineDefaults,
    StorageDefaults,
    Defaults,
    get_defaults,
    reset_defaults,
)

__all__ = [
    "StorageBackend",
    "EngineDefaults",
    "StorageDefaults",
    "Defaults",
    "get_defaults",
    "reset_defaults",
]
