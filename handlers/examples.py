# ============================================================================
# EXAMPLE ACTIONS
# ============================================================================
# EPOCH: 1 - SEQUENTIAL WORKFLOWS
# STATUS: Examples - Deterministic action implementations
# PURPOSE: Demonstrate action registration; back the bundled workflows
# CREATED: 19 OCT 2026
# ============================================================================
"""
Example Actions

Deterministic stand-ins for the suite's agent capabilities (email triage,
task creation, meeting scheduling, document processing). No model or
remote calls; useful for local runs and tests.
"""

import asyncio
import logging
import re
from typing import Any, Dict, List

from handlers.registry import (
    register_action,
    ActionContext,
    ActionResult,
)

logger = logging.getLogger(__name__)

_URGENT_WORDS = ("urgent", "asap", "immediately", "critical", "deadline")
_ACTION_PATTERN = re.compile(r"(?:please|can you|could you|need to|todo:)\s+([^.?!\n]+)", re.IGNORECASE)


# ============================================================================
# BASIC ACTIONS
# ============================================================================

@register_action("echo", description="Returns the resolved input unchanged", tags=["testing"])
async def echo_action(ctx: ActionContext) -> Any:
    """Echo handler for testing. The output is the input."""
    logger.debug(f"Echo action called with input: {ctx.input}")
    return ctx.input


@register_action("sleep", description="Sleeps for input.seconds, then echoes", tags=["testing"])
async def sleep_action(ctx: ActionContext) -> ActionResult:
    seconds = float(ctx.input_dict().get("seconds", 1))
    await asyncio.sleep(seconds)
    return ActionResult.success_result({"slept_seconds": seconds})


@register_action("fail", description="Always fails with input.message", tags=["testing"])
def fail_action(ctx: ActionContext) -> ActionResult:
    message = ctx.input_dict().get("message") or "Intentional failure"
    return ActionResult.failure_result(str(message))


# ============================================================================
# PRODUCTIVITY ACTIONS
# ============================================================================

@register_action(
    "analyze-email",
    description="Extracts priority, summary and action items from an email",
    tags=["email"],
)
def analyze_email_action(ctx: ActionContext) -> Dict[str, Any]:
    """
    Rule-based email triage.

    Input: an email object ({subject, body, from}) or {"email": {...}}.
    Output: {priority, summary, action_items, sender}
    """
    email = ctx.input_dict()
    if "email" in email and isinstance(email["email"], dict):
        email = email["email"]

    subject = str(email.get("subject") or "")
    body = str(email.get("body") or "")
    if not subject and not body:
        raise ValueError("Email has neither subject nor body")

    text = f"{subject}\n{body}"
    lowered = text.lower()
    if any(word in lowered for word in _URGENT_WORDS):
        priority = "high"
    elif "?" in text:
        priority = "medium"
    else:
        priority = "low"

    action_items = [m.group(1).strip() for m in _ACTION_PATTERN.finditer(body)]
    summary = subject or body.strip().split("\n", 1)[0][:120]

    return {
        "priority": priority,
        "summary": summary,
        "action_items": action_items,
        "sender": email.get("from"),
    }


@register_action("create-task", description="Creates task records from titles", tags=["tasks"])
def create_task_action(ctx: ActionContext) -> Dict[str, Any]:
    """
    Input: a title string, a list of titles, or {"title": ..., "priority": ...}.
    Output: {"tasks": [{id, title, priority, status}], "count": n}
    """
    raw = ctx.input
    priority = "medium"
    if isinstance(raw, dict):
        priority = raw.get("priority", priority)
        raw = raw.get("titles", raw.get("title"))

    titles: List[str] = [raw] if isinstance(raw, str) else list(raw or [])
    tasks = [
        {
            "id": f"{ctx.run_id or 'task'}-{index + 1}",
            "title": str(title),
            "priority": priority,
            "status": "todo",
        }
        for index, title in enumerate(titles)
    ]
    return {"tasks": tasks, "count": len(tasks)}


@register_action("schedule-meeting", description="Proposes a meeting slot", tags=["calendar"])
def schedule_meeting_action(ctx: ActionContext) -> ActionResult:
    """
    Input: {participants: [...], duration: minutes, title?}
    Output: {title, participants, duration_minutes, status}
    """
    params = ctx.input_dict()
    participants = params.get("participants") or []
    if not participants:
        return ActionResult.failure_result("A meeting needs at least one participant")

    return ActionResult.success_result({
        "title": params.get("title", "Meeting"),
        "participants": participants,
        "duration_minutes": int(params.get("duration", 30)),
        "status": "proposed",
    })


@register_action("process-document", description="Counts words and extracts headings", tags=["documents"])
def process_document_action(ctx: ActionContext) -> Dict[str, Any]:
    params = ctx.input_dict()
    content = str(params.get("content", params.get("value", "")))
    headings = [line.lstrip("# ").strip() for line in content.splitlines() if line.startswith("#")]
    return {
        "name": params.get("name"),
        "word_count": len(content.split()),
        "headings": headings,
    }
