"""MCP tool definitions for TaskTrack."""

from mcp.types import Tool

STATUS_VALUES = ["created", "assigned_to_dev", "assigned_to_qa", "completed"]


def get_tools() -> list[Tool]:
    """Get the list of all MCP tools for TaskTrack."""
    return [
        # ============================================================================
        # Acting User Tools
        # ============================================================================
        Tool(
            name="select_user",
            description="Set the acting user for this session. create_task, assign_task and "
                       "update_task use this user unless created_by/assigned_by/updated_by is given. "
                       "Use list_users() to find IDs.",
            inputSchema={
                "type": "object",
                "properties": {
                    "user_id": {
                        "type": "integer",
                        "description": "ID of the user to act as"
                    }
                },
                "required": ["user_id"]
            }
        ),
        Tool(
            name="get_current_user",
            description="Show the acting user for this session.",
            inputSchema={"type": "object", "properties": {}}
        ),
        Tool(
            name="clear_user",
            description="Clear the acting user for this session.",
            inputSchema={"type": "object", "properties": {}}
        ),
        # ============================================================================
        # User Tools
        # ============================================================================
        Tool(
            name="list_users",
            description="List all users with their roles (PM, Dev, QA).",
            inputSchema={"type": "object", "properties": {}}
        ),
        Tool(
            name="get_user",
            description="Get a user by ID. Errors: 404 (not found).",
            inputSchema={
                "type": "object",
                "properties": {
                    "user_id": {
                        "type": "integer",
                        "description": "ID of the user"
                    }
                },
                "required": ["user_id"]
            }
        ),
        # ============================================================================
        # Task Tools
        # ============================================================================
        Tool(
            name="list_tasks",
            description="List tasks, newest first. All filters are optional and combined.",
            inputSchema={
                "type": "object",
                "properties": {
                    "status": {
                        "type": "string",
                        "enum": STATUS_VALUES,
                        "description": "Filter by status"
                    },
                    "owner_id": {
                        "type": "integer",
                        "description": "Filter by current owner"
                    },
                    "created_by": {
                        "type": "integer",
                        "description": "Filter by creator"
                    }
                }
            }
        ),
        Tool(
            name="get_task",
            description="Get a task by ID. Errors: 404 (not found).",
            inputSchema={
                "type": "object",
                "properties": {
                    "task_id": {
                        "type": "integer",
                        "description": "ID of the task"
                    }
                },
                "required": ["task_id"]
            }
        ),
        Tool(
            name="get_task_history",
            description="View the audit trail of a task, newest first.",
            inputSchema={
                "type": "object",
                "properties": {
                    "task_id": {
                        "type": "integer",
                        "description": "ID of the task"
                    }
                },
                "required": ["task_id"]
            }
        ),
        Tool(
            name="create_task",
            description="Create a task. Only PM users can create tasks. "
                       "Errors: 403 (creator is not a PM), 404 (unknown user).",
            inputSchema={
                "type": "object",
                "properties": {
                    "title": {
                        "type": "string",
                        "description": "Task title"
                    },
                    "owner_id": {
                        "type": "integer",
                        "description": "ID of the initial owner"
                    },
                    "created_by": {
                        "type": "integer",
                        "description": "ID of the creating PM (defaults to the acting user)"
                    },
                    "due_date": {
                        "type": "string",
                        "description": "Due date (YYYY-MM-DD)"
                    },
                    "notes": {
                        "type": "string",
                        "description": "Notes"
                    }
                },
                "required": ["title", "owner_id"]
            }
        ),
        Tool(
            name="assign_task",
            description="Hand a task to a new owner. Allowed: PM assigns a 'created' task to a Dev; "
                       "the owning Dev assigns an 'assigned_to_dev' task to a QA. "
                       "Errors: 400 (invalid transition), 403 (not the current owner), 404.",
            inputSchema={
                "type": "object",
                "properties": {
                    "task_id": {
                        "type": "integer",
                        "description": "ID of the task"
                    },
                    "new_owner_id": {
                        "type": "integer",
                        "description": "ID of the new owner"
                    },
                    "assigned_by": {
                        "type": "integer",
                        "description": "ID of the acting user (defaults to the acting user)"
                    }
                },
                "required": ["task_id", "new_owner_id"]
            }
        ),
        Tool(
            name="advance_task",
            description="Hand a task to the next role in the workflow (created → first Dev, "
                       "assigned_to_dev → first QA), acting as the creator for 'created' tasks "
                       "and as the current owner otherwise.",
            inputSchema={
                "type": "object",
                "properties": {
                    "task_id": {
                        "type": "integer",
                        "description": "ID of the task"
                    }
                },
                "required": ["task_id"]
            }
        ),
        Tool(
            name="update_task",
            description="Edit status, notes or due date. Only the owner or creator may edit; "
                       "at least one field must change. Errors: 400 (no changes / invalid status), 403.",
            inputSchema={
                "type": "object",
                "properties": {
                    "task_id": {
                        "type": "integer",
                        "description": "ID of the task"
                    },
                    "updated_by": {
                        "type": "integer",
                        "description": "ID of the acting user (defaults to the acting user)"
                    },
                    "status": {
                        "type": "string",
                        "enum": STATUS_VALUES,
                        "description": "New status"
                    },
                    "notes": {
                        "type": ["string", "null"],
                        "description": "New notes (null clears)"
                    },
                    "due_date": {
                        "type": ["string", "null"],
                        "description": "New due date YYYY-MM-DD (null clears)"
                    }
                },
                "required": ["task_id"]
            }
        ),
    ]
