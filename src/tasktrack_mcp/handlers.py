"""MCP tool handlers for TaskTrack.

All handlers follow a consistent pattern:
- Accept: arguments dict, httpx.AsyncClient, and the session's acting user
- Return: tuple of (list[TextContent], Optional[dict]) where the second
  element is the acting user after the call (unchanged for most tools)
- Use formatters for consistent output
- Let httpx errors propagate; the server renders them
"""
from typing import Optional, Tuple, List
import logging

import httpx
from mcp.types import TextContent

from tasktrack_core.models import TaskStatus
from tasktrack_core.state_machine import next_owner_role

from . import formatters

logger = logging.getLogger("tasktrack-mcp.handlers")

# Tool name → body field that carries the acting user id
ACTING_USER_FIELDS = {
    "create_task": "created_by",
    "assign_task": "assigned_by",
    "update_task": "updated_by",
}


def _text(text: str) -> list[TextContent]:
    return [TextContent(type="text", text=text)]


# ============================================================================
# Acting User Handlers
# ============================================================================

async def handle_select_user(
    arguments: dict,
    client: httpx.AsyncClient,
    current_user: Optional[dict] = None
) -> tuple[list[TextContent], Optional[dict]]:
    """Set the session's acting user after confirming it exists."""
    user_id = arguments["user_id"]
    response = await client.get(f"/users/{user_id}")
    response.raise_for_status()
    user = response.json()
    logger.info(f"Selected acting user {user['username']} ({user['role']})")

    text = f"Acting as {user['username']} ({user['role']}).\n\n{formatters.format_user(user)}"
    return _text(text), user


async def handle_get_current_user(
    arguments: dict,
    client: httpx.AsyncClient,
    current_user: Optional[dict] = None
) -> tuple[list[TextContent], Optional[dict]]:
    """Show the session's acting user."""
    if current_user is None:
        return _text(
            "No acting user is set.\n\n"
            "Use select_user(user_id=...) to act as a PM, Dev or QA user."
        ), None
    return _text(f"Current user:\n\n{formatters.format_user(current_user)}"), current_user


async def handle_clear_user(
    arguments: dict,
    client: httpx.AsyncClient,
    current_user: Optional[dict] = None
) -> tuple[list[TextContent], Optional[dict]]:
    """Forget the session's acting user."""
    logger.info("Cleared acting user")
    return _text("Acting user cleared."), None


def apply_user_defaults(
    tool_name: str,
    arguments: dict,
    current_user: Optional[dict] = None
) -> Tuple[dict, Optional[List[TextContent]]]:
    """Fill in the acting user id for mutating tools.

    Args:
        tool_name: Name of the tool being called
        arguments: Tool arguments (may be modified)
        current_user: Session's acting user

    Returns:
        Tuple of (modified arguments, error content or None)
        If error content is not None, the caller should return it instead of proceeding.
    """
    field = ACTING_USER_FIELDS.get(tool_name)
    if field is None or arguments.get(field) is not None:
        return arguments, None

    if current_user is None:
        return arguments, _text(
            f"ERROR: No acting user for {tool_name}.\n\n"
            f"Pass {field}=<user id> or call select_user(user_id=...) first."
        )

    arguments[field] = current_user["id"]
    return arguments, None


# ============================================================================
# User Handlers
# ============================================================================

async def handle_list_users(
    arguments: dict,
    client: httpx.AsyncClient,
    current_user: Optional[dict] = None
) -> tuple[list[TextContent], Optional[dict]]:
    """List all users."""
    response = await client.get("/users")
    response.raise_for_status()
    result = response.json()
    logger.info(f"Successfully listed {len(result)} users")

    if not result:
        return _text("No users found."), current_user

    users_text = "\n\n".join(formatters.format_user(item) for item in result)
    return _text(f"Found {len(result)} users\n\n{users_text}"), current_user


async def handle_get_user(
    arguments: dict,
    client: httpx.AsyncClient,
    current_user: Optional[dict] = None
) -> tuple[list[TextContent], Optional[dict]]:
    """Get a user by ID."""
    user_id = arguments["user_id"]
    response = await client.get(f"/users/{user_id}")
    response.raise_for_status()
    result = response.json()
    logger.info(f"Successfully retrieved user {user_id}: {result['username']}")

    return _text(formatters.format_user(result)), current_user


# ============================================================================
# Task Handlers
# ============================================================================

async def handle_list_tasks(
    arguments: dict,
    client: httpx.AsyncClient,
    current_user: Optional[dict] = None
) -> tuple[list[TextContent], Optional[dict]]:
    """List tasks with optional filters."""
    params = {
        key: arguments[key]
        for key in ("status", "owner_id", "created_by")
        if arguments.get(key) is not None
    }
    response = await client.get("/tasks", params=params)
    response.raise_for_status()
    result = response.json()

    if not result:
        return _text("No tasks found matching the criteria."), current_user

    text_parts = [f"Found {len(result)} tasks:\n"]
    text_parts.extend(formatters.format_task_line(task) for task in result)
    return _text("\n".join(text_parts)), current_user


async def handle_get_task(
    arguments: dict,
    client: httpx.AsyncClient,
    current_user: Optional[dict] = None
) -> tuple[list[TextContent], Optional[dict]]:
    """Get a specific task by ID."""
    task_id = arguments["task_id"]
    response = await client.get(f"/tasks/{task_id}")
    response.raise_for_status()
    result = response.json()
    logger.info(f"Retrieved task {task_id}")

    return _text(f"Task Details:\n\n{formatters.format_task(result, full_details=True)}"), current_user


async def handle_get_task_history(
    arguments: dict,
    client: httpx.AsyncClient,
    current_user: Optional[dict] = None
) -> tuple[list[TextContent], Optional[dict]]:
    """View the audit trail of a task."""
    task_id = arguments["task_id"]
    response = await client.get(f"/tasks/{task_id}/history")
    response.raise_for_status()
    result = response.json()

    if not result:
        return _text("No history found for this task."), current_user

    logger.info(f"Successfully retrieved {len(result)} history entries for task {task_id}")
    history_text = "\n".join(formatters.format_task_event(item) for item in result)
    return _text(f"Change History:\n\n{history_text}"), current_user


async def handle_create_task(
    arguments: dict,
    client: httpx.AsyncClient,
    current_user: Optional[dict] = None
) -> tuple[list[TextContent], Optional[dict]]:
    """Create a new task."""
    response = await client.post("/tasks", json=arguments)
    response.raise_for_status()
    result = response.json()
    logger.info(f"Successfully created task {result['id']}")

    return _text(f"Created task {result['id']}\n\n{formatters.format_task(result)}"), current_user


async def handle_assign_task(
    arguments: dict,
    client: httpx.AsyncClient,
    current_user: Optional[dict] = None
) -> tuple[list[TextContent], Optional[dict]]:
    """Hand a task to a new owner."""
    task_id = arguments.pop("task_id")
    response = await client.put(f"/tasks/{task_id}/assign", json=arguments)
    response.raise_for_status()
    result = response.json()
    logger.info(f"Successfully assigned task {task_id} to {result['owner_username']}")

    text = (
        f"Assigned task {result['id']} to {result['owner_username']} ({result['owner_role']})\n"
        f"Status: {result['status']}"
    )
    return _text(text), current_user


async def handle_advance_task(
    arguments: dict,
    client: httpx.AsyncClient,
    current_user: Optional[dict] = None
) -> tuple[list[TextContent], Optional[dict]]:
    """Hand a task to the first user holding the next role in the workflow.

    The creator performs the first handoff of a ``created`` task; after that
    the current owner hands it on.
    """
    task_id = arguments["task_id"]
    response = await client.get(f"/tasks/{task_id}")
    response.raise_for_status()
    task = response.json()

    status = TaskStatus(task["status"])
    role = next_owner_role(status)
    if role is None:
        return _text(f"Task {task_id} is '{status.value}'; there is no next owner to assign."), current_user

    response = await client.get("/users")
    response.raise_for_status()
    candidate = next((u for u in response.json() if u["role"] == role.value), None)
    if candidate is None:
        return _text(f"No {role.value} user exists to take task {task_id}."), current_user

    assigned_by = task["created_by"] if status == TaskStatus.CREATED else task["owner_id"]
    return await handle_assign_task(
        {"task_id": task_id, "assigned_by": assigned_by, "new_owner_id": candidate["id"]},
        client,
        current_user,
    )


async def handle_update_task(
    arguments: dict,
    client: httpx.AsyncClient,
    current_user: Optional[dict] = None
) -> tuple[list[TextContent], Optional[dict]]:
    """Edit a task's status, notes or due date."""
    task_id = arguments.pop("task_id")
    response = await client.put(f"/tasks/{task_id}", json=arguments)
    response.raise_for_status()
    result = response.json()
    logger.info(f"Successfully updated task {task_id}")

    return _text(f"Updated task {result['id']}\n\n{formatters.format_task(result)}"), current_user


HANDLERS = {
    # Acting user handlers
    "select_user": handle_select_user,
    "get_current_user": handle_get_current_user,
    "clear_user": handle_clear_user,
    # User handlers
    "list_users": handle_list_users,
    "get_user": handle_get_user,
    # Task handlers
    "list_tasks": handle_list_tasks,
    "get_task": handle_get_task,
    "get_task_history": handle_get_task_history,
    "create_task": handle_create_task,
    "assign_task": handle_assign_task,
    "advance_task": handle_advance_task,
    "update_task": handle_update_task,
}
