"""Tests for the MCP tool layer, run against the API in-process."""
import httpx
import pytest

from tasktrack_mcp import formatters, handlers, server, tools


@pytest.fixture(autouse=True)
def fresh_session(monkeypatch):
    """Each test starts without an acting user or default user id."""
    monkeypatch.setattr(server, "_session_user", None)
    monkeypatch.setattr(server, "DEFAULT_USER_ID", None)


def _text(content) -> str:
    assert len(content) == 1
    return content[0].text


class TestToolDefinitions:
    """Test the tool catalogue."""

    def test_every_tool_has_a_handler(self):
        names = {tool.name for tool in tools.get_tools()}

        assert names == set(handlers.HANDLERS)
        assert len(names) == 12

    def test_acting_user_fields_are_optional(self):
        by_name = {tool.name: tool for tool in tools.get_tools()}

        for tool_name, field in handlers.ACTING_USER_FIELDS.items():
            schema = by_name[tool_name].inputSchema
            assert field in schema["properties"]
            assert field not in schema.get("required", [])


class TestActingUser:
    """Test session user selection and defaults."""

    async def test_mutation_without_acting_user_is_refused(self, api, users):
        text = _text(await server.dispatch(
            "create_task", {"title": "X", "owner_id": users["dev"].id}, api
        ))

        assert text.startswith("ERROR: No acting user for create_task")

    async def test_select_user_then_create(self, api, users):
        text = _text(await server.dispatch("select_user", {"user_id": users["pm"].id}, api))
        assert "Acting as pm_user (PM)" in text
        assert server._session_user["id"] == users["pm"].id

        text = _text(await server.dispatch(
            "create_task", {"title": "Ship it", "owner_id": users["dev"].id}, api
        ))
        assert text.startswith("Created task")
        assert "Created by: pm_user" in text

    async def test_explicit_field_overrides_session_user(self, api, users):
        await server.dispatch("select_user", {"user_id": users["pm"].id}, api)

        text = _text(await server.dispatch(
            "create_task",
            {"title": "X", "owner_id": users["dev"].id, "created_by": users["dev"].id},
            api,
        ))

        assert text == "Error: Only PM users can create tasks"

    async def test_get_and_clear_current_user(self, api, users):
        text = _text(await server.dispatch("get_current_user", {}, api))
        assert text.startswith("No acting user is set.")

        await server.dispatch("select_user", {"user_id": users["qa"].id}, api)
        text = _text(await server.dispatch("get_current_user", {}, api))
        assert "**qa_user** (QA)" in text

        text = _text(await server.dispatch("clear_user", {}, api))
        assert text == "Acting user cleared."
        assert server._session_user is None

    async def test_default_user_selected_lazily(self, api, users, monkeypatch):
        monkeypatch.setattr(server, "DEFAULT_USER_ID", str(users["dev"].id))

        text = _text(await server.dispatch("get_current_user", {}, api))

        assert "**dev_user** (Dev)" in text

    async def test_select_unknown_user(self, api, users):
        text = _text(await server.dispatch("select_user", {"user_id": 9999}, api))

        assert text == "Error: User not found"
        assert server._session_user is None

    def test_apply_user_defaults_leaves_read_tools_alone(self):
        arguments, error = handlers.apply_user_defaults("list_tasks", {"status": "created"}, None)

        assert error is None
        assert arguments == {"status": "created"}


class TestTaskTools:
    """Test the task tools end to end."""

    async def _create(self, api, users, **extra) -> int:
        arguments = {"title": "Audit logging", "owner_id": users["dev"].id, "created_by": users["pm"].id}
        arguments.update(extra)
        await server.dispatch("create_task", arguments, api)
        response = await api.get("/tasks")
        return response.json()[0]["id"]

    async def test_list_users(self, api, users):
        text = _text(await server.dispatch("list_users", {}, api))

        assert text.startswith("Found 3 users")
        assert "**pm_user** (PM)" in text

    async def test_list_tasks_empty_and_filtered(self, api, users):
        text = _text(await server.dispatch("list_tasks", {}, api))
        assert text == "No tasks found matching the criteria."

        task_id = await self._create(api, users)
        text = _text(await server.dispatch("list_tasks", {"status": "created"}, api))
        assert text.startswith("Found 1 tasks")
        assert f"• {task_id}: Audit logging (created) - dev_user" in text

        text = _text(await server.dispatch("list_tasks", {"status": "completed"}, api))
        assert text == "No tasks found matching the criteria."

    async def test_advance_task_through_workflow(self, api, users):
        task_id = await self._create(api, users)

        text = _text(await server.dispatch("advance_task", {"task_id": task_id}, api))
        assert text == f"Assigned task {task_id} to dev_user (Dev)\nStatus: assigned_to_dev"

        text = _text(await server.dispatch("advance_task", {"task_id": task_id}, api))
        assert text == f"Assigned task {task_id} to qa_user (QA)\nStatus: assigned_to_qa"

        text = _text(await server.dispatch("advance_task", {"task_id": task_id}, api))
        assert text == f"Task {task_id} is 'assigned_to_qa'; there is no next owner to assign."

    async def test_assign_task_invalid_transition(self, api, users):
        task_id = await self._create(api, users)

        text = _text(await server.dispatch(
            "assign_task",
            {"task_id": task_id, "new_owner_id": users["qa"].id, "assigned_by": users["pm"].id},
            api,
        ))

        assert text == "Error: Invalid transition: Cannot assign from status 'created' by PM to QA"

    async def test_update_task_and_history(self, api, users):
        task_id = await self._create(api, users)
        await server.dispatch("select_user", {"user_id": users["dev"].id}, api)

        text = _text(await server.dispatch(
            "update_task", {"task_id": task_id, "notes": "Half done"}, api
        ))
        assert text.startswith(f"Updated task {task_id}")
        assert "Notes: Half done" in text

        text = _text(await server.dispatch("get_task_history", {"task_id": task_id}, api))
        assert text.startswith("Change History:")
        lines = text.splitlines()[2:]
        assert "notes_updated by dev_user: Half done" in lines[0]
        assert "created by pm_user: Task created: Audit logging" in lines[1]

    async def test_update_without_changes(self, api, users):
        task_id = await self._create(api, users)

        text = _text(await server.dispatch(
            "update_task", {"task_id": task_id, "updated_by": users["pm"].id}, api
        ))

        assert text == "Error: No fields to update"

    async def test_get_unknown_task(self, api, users):
        text = _text(await server.dispatch("get_task", {"task_id": 9999}, api))

        assert text == "Error: Task not found"

    async def test_unknown_tool(self, api):
        text = _text(await server.dispatch("delete_everything", {}, api))

        assert text == "Unknown tool: delete_everything"


class TestTransportErrors:
    """Test rendering of connection failures."""

    async def test_connection_error(self):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        async with httpx.AsyncClient(
            transport=httpx.MockTransport(refuse), base_url="http://test/api"
        ) as client:
            text = _text(await server.dispatch("list_users", {}, client))

        assert text.startswith("Error: Connection failed - ")


class TestFormatters:
    """Test display formatting of API payloads."""

    def test_format_task_truncates_notes(self):
        task = {
            "id": 7,
            "title": "Long notes",
            "status": "created",
            "owner_username": "dev_user",
            "owner_role": "Dev",
            "creator_username": "pm_user",
            "due_date": None,
            "notes": "x" * 250,
            "created_at": "2025-01-01T00:00:00",
            "updated_at": "2025-01-02T00:00:00",
        }

        summary = formatters.format_task(task)
        assert f"Notes: {'x' * 200}..." in summary
        assert "Due:" not in summary
        assert "Updated:" not in summary

        details = formatters.format_task(task, full_details=True)
        assert f"Notes: {'x' * 250}" in details
        assert "Updated: 2025-01-02T00:00:00" in details

    def test_format_assignment_event(self):
        event = {
            "event_type": "assigned_to_dev",
            "old_value": "Owner: 2, Status: created",
            "new_value": "Owner: 2, Status: assigned_to_dev",
            "changed_by_username": "pm_user",
            "created_at": "2025-01-01T00:00:00",
        }

        assert formatters.format_task_event(event) == (
            "- [2025-01-01T00:00:00] assigned_to_dev by pm_user: "
            "Owner: 2, Status: created → Owner: 2, Status: assigned_to_dev"
        )


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
