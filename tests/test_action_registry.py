# ============================================================================
# ACTION REGISTRY TESTS
# ============================================================================
# EPOCH: 1 - SEQUENTIAL WORKFLOWS
# STATUS: Tests - Action registration and dispatch
# PURPOSE: Verify the registry, the dispatchers and the built-in actions
# CREATED: 19 OCT 2026
# ============================================================================
"""
Action Registry Tests

Tests:
1. Decorator registration, duplicate detection, metadata
2. RegistryDispatcher: sync/async handlers, failures become ActionError
3. HttpDispatcher: remote agents over HTTP, local agents via fallback
4. Built-in example actions

Run with:
    pytest tests/test_action_registry.py -v
"""

import asyncio
import pytest
from unittest.mock import AsyncMock, MagicMock, patch

import httpx

from core.errors import ActionError
from core.logging import log_context
from core.models import AgentDefinition
from handlers import registry
from handlers.http_dispatcher import HttpDispatcher
from handlers.registry import (
    ActionContext,
    ActionResult,
    DuplicateActionError,
    RegistryDispatcher,
    get_action_metadata,
    is_registered,
    list_actions,
    register_action,
    validate_actions,
)
from services.agent_service import AgentService

import handlers  # noqa: F401  (registers the built-in actions)


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture
def isolated_registry():
    """Restore the registry after a test registers its own actions."""
    saved_actions = dict(registry._actions)
    saved_metadata = dict(registry._action_metadata)
    yield
    registry._actions.clear()
    registry._actions.update(saved_actions)
    registry._action_metadata.clear()
    registry._action_metadata.update(saved_metadata)


@pytest.fixture
def dispatcher():
    return RegistryDispatcher()


def _invoke(dispatcher, action_type, input=None, agent_id="agent-1"):
    return asyncio.run(dispatcher.invoke(agent_id, action_type, input))


# ============================================================================
# REGISTRATION
# ============================================================================

class TestRegistration:

    def test_builtin_actions_registered(self):
        for action_type in ("echo", "sleep", "fail", "analyze-email",
                            "create-task", "schedule-meeting", "process-document"):
            assert is_registered(action_type)

    def test_register_and_metadata(self, isolated_registry):
        @register_action("test-greet", description="Says hello", tags=["test"])
        async def greet(ctx):
            return f"hello {ctx.input}"

        metadata = get_action_metadata("test-greet")
        assert metadata["description"] == "Says hello"
        assert metadata["tags"] == ["test"]
        assert metadata["is_async"] is True
        assert any(a["action_type"] == "test-greet" for a in list_actions())

    def test_duplicate_registration_fails(self, isolated_registry):
        with pytest.raises(DuplicateActionError):
            @register_action("echo")
            def another_echo(ctx):
                return None

    def test_validate_actions(self):
        assert validate_actions(["echo", "nope", "fail", "nope"]) == ["nope"]


# ============================================================================
# REGISTRY DISPATCHER
# ============================================================================

class TestRegistryDispatcher:

    def test_async_handler(self, dispatcher):
        assert _invoke(dispatcher, "echo", {"a": 1}) == {"a": 1}

    def test_sync_handler(self, dispatcher, isolated_registry):
        @register_action("test-double")
        def double(ctx):
            return ctx.input * 2

        assert _invoke(dispatcher, "test-double", 21) == 42

    def test_success_result_unwrapped(self, dispatcher):
        assert _invoke(dispatcher, "sleep", {"seconds": 0}) == {"slept_seconds": 0.0}

    def test_failure_result_raises(self, dispatcher):
        with pytest.raises(ActionError) as exc_info:
            _invoke(dispatcher, "fail", {"message": "quota exceeded"}, agent_id="utility")

        assert exc_info.value.message == "quota exceeded"
        assert exc_info.value.agent_id == "utility"
        assert exc_info.value.action_type == "fail"

    def test_handler_exception_becomes_action_error(self, dispatcher, isolated_registry):
        @register_action("test-raise")
        async def explode(ctx):
            raise RuntimeError("rate limited")

        with pytest.raises(ActionError) as exc_info:
            _invoke(dispatcher, "test-raise")
        assert exc_info.value.message == "rate limited"

    def test_unknown_action(self, dispatcher):
        with pytest.raises(ActionError) as exc_info:
            _invoke(dispatcher, "does-not-exist")
        assert "Unknown action type" in exc_info.value.message

    def test_context_carries_run_identifiers(self, dispatcher, isolated_registry):
        seen = {}

        @register_action("test-capture")
        async def capture(ctx: ActionContext):
            seen.update(run_id=ctx.run_id, step_id=ctx.step_id, agent_id=ctx.agent_id)
            return ActionResult.success_result()

        async def scenario():
            with log_context(run_id="run-1", step_id="s1"):
                return await dispatcher.invoke("agent-9", "test-capture", None)

        assert asyncio.run(scenario()) is None
        assert seen == {"run_id": "run-1", "step_id": "s1", "agent_id": "agent-9"}


# ============================================================================
# HTTP DISPATCHER
# ============================================================================

def _response(status_code=200, payload=None, text=""):
    resp = MagicMock()
    resp.status_code = status_code
    if payload is None:
        resp.json.side_effect = ValueError("not json")
    else:
        resp.json.return_value = payload
    resp.text = text
    return resp


class TestHttpDispatcher:

    @pytest.fixture
    def agents(self):
        service = AgentService()
        service.register(AgentDefinition(
            agent_id="remote", name="Remote", capabilities=["summarize"],
            endpoint="http://agents.internal:8080/",
        ))
        service.register(AgentDefinition(agent_id="local", name="Local", capabilities=["echo"]))
        return service

    def _invoke_remote(self, agents, response=None, error=None):
        client = AsyncMock()
        if error is not None:
            client.post.side_effect = error
        else:
            client.post.return_value = response

        with patch("handlers.http_dispatcher.httpx.AsyncClient") as client_cls:
            client_cls.return_value.__aenter__ = AsyncMock(return_value=client)
            client_cls.return_value.__aexit__ = AsyncMock(return_value=False)

            async def scenario():
                with log_context(run_id="run-7", workflow_id="wf", step_id="sum"):
                    return await HttpDispatcher(agents).invoke("remote", "summarize", {"text": "hi"})

            return asyncio.run(scenario()), client

    def test_success_envelope(self, agents):
        output, client = self._invoke_remote(
            agents, _response(payload={"success": True, "output": {"summary": "hi"}})
        )

        assert output == {"summary": "hi"}
        url = client.post.call_args.args[0]
        body = client.post.call_args.kwargs["json"]
        assert url == "http://agents.internal:8080/actions/summarize"
        assert body["input"] == {"text": "hi"}
        assert body["run_id"] == "run-7"
        assert body["step_id"] == "sum"

    def test_plain_payload_is_output(self, agents):
        output, _ = self._invoke_remote(agents, _response(payload=["a", "b"]))
        assert output == ["a", "b"]

    def test_plain_text_reply_is_output(self, agents):
        output, _ = self._invoke_remote(agents, _response(payload=None, text="plain summary"))
        assert output == "plain summary"

    def test_failure_envelope(self, agents):
        with pytest.raises(ActionError) as exc_info:
            self._invoke_remote(
                agents, _response(payload={"success": False, "error_message": "model overloaded"})
            )
        assert exc_info.value.message == "model overloaded"

    def test_http_error_status(self, agents):
        with pytest.raises(ActionError) as exc_info:
            self._invoke_remote(agents, _response(503, payload=None, text=""))
        assert exc_info.value.message == "Agent 'remote' returned HTTP 503"

    def test_http_error_detail(self, agents):
        with pytest.raises(ActionError) as exc_info:
            self._invoke_remote(agents, _response(422, payload={"detail": "bad input"}))
        assert exc_info.value.message == "bad input"

    def test_timeout(self, agents):
        with pytest.raises(ActionError) as exc_info:
            self._invoke_remote(agents, error=httpx.ReadTimeout("slow"))
        assert exc_info.value.message == "Agent 'remote' timed out"

    def test_connection_error(self, agents):
        with pytest.raises(ActionError) as exc_info:
            self._invoke_remote(agents, error=httpx.ConnectError("refused"))
        assert exc_info.value.message.startswith("Cannot reach agent 'remote'")

    def test_local_agent_uses_fallback(self, agents):
        fallback = AsyncMock()
        fallback.invoke.return_value = "local result"

        result = asyncio.run(HttpDispatcher(agents, fallback=fallback).invoke("local", "echo", 1))

        assert result == "local result"
        fallback.invoke.assert_awaited_once_with("local", "echo", 1)

    def test_unknown_agent_uses_fallback(self, agents):
        result = asyncio.run(HttpDispatcher(agents).invoke("ghost", "echo", "x"))
        assert result == "x"


# ============================================================================
# BUILT-IN ACTIONS
# ============================================================================

class TestExampleActions:

    def test_analyze_email(self, dispatcher):
        output = _invoke(dispatcher, "analyze-email", {
            "from": "sam@example.com",
            "subject": "Quarterly numbers",
            "body": "Could you review the draft? Need to ship Friday.",
        })

        assert output["priority"] == "medium"
        assert output["summary"] == "Quarterly numbers"
        assert output["action_items"] == ["review the draft", "ship Friday"]
        assert output["sender"] == "sam@example.com"

    def test_analyze_wrapped_email(self, dispatcher):
        output = _invoke(dispatcher, "analyze-email", {"email": {"subject": "ASAP reply"}})
        assert output["priority"] == "high"

    def test_analyze_empty_email_fails(self, dispatcher):
        with pytest.raises(ActionError):
            _invoke(dispatcher, "analyze-email", {"subject": ""})

    def test_create_task_from_string(self, dispatcher):
        output = _invoke(dispatcher, "create-task", "Write report")
        assert output["count"] == 1
        assert output["tasks"][0] == {
            "id": "task-1", "title": "Write report", "priority": "medium", "status": "todo",
        }

    def test_create_task_from_titles(self, dispatcher):
        output = _invoke(dispatcher, "create-task", {"titles": ["a", "b"], "priority": "high"})
        assert [t["title"] for t in output["tasks"]] == ["a", "b"]
        assert {t["priority"] for t in output["tasks"]} == {"high"}

    def test_schedule_meeting(self, dispatcher):
        output = _invoke(dispatcher, "schedule-meeting", {"participants": ["a@x.io"], "duration": 45})
        assert output["duration_minutes"] == 45
        assert output["status"] == "proposed"

    def test_schedule_meeting_without_participants(self, dispatcher):
        with pytest.raises(ActionError) as exc_info:
            _invoke(dispatcher, "schedule-meeting", {"participants": []})
        assert "participant" in exc_info.value.message

    def test_process_document(self, dispatcher):
        output = _invoke(dispatcher, "process-document", {
            "name": "plan.md",
            "content": "# Plan\nship it soon\n## Risks\nnone",
        })
        assert output["headings"] == ["Plan", "Risks"]
        assert output["word_count"] == 8


# ============================================================================
# RUN TESTS
# ============================================================================

if __name__ == "__main__":
    pytest.main([__file__, "-v"])
