# ============================================================================
# ORCHESTRATOR MODULE
# ============================================================================
# EPOCH: 1 - SEQUENTIAL WORKFLOWS
# STATUS: Core - Run driver
# PURPOSE: Execute workflow definitions step by step
# CREATED: 19 OCT 2026
# ============================================================================
"""
Orchestrator Module

The runner that drives workflow execution.

Usage:
    from orchestrator import Orchestrator

    orchestrator = Orchestrator(workflow_service, run_service, dispatcher)
    run_id = await orchestrator.start_run("email_processing", {"email": {...}})
"""

from .runner import Orchestrator

__all__ = ["Orchestrator"]
