"""Formatting functions for MCP responses."""


def format_user(user: dict) -> str:
    """Format a user for display."""
    return f"""**{user['username']}** ({user['role']})
ID: {user['id']}
Created: {user['created_at']}"""


def format_task(task: dict, full_details: bool = False) -> str:
    """Format a task for display.

    Args:
        task: Joined task data dictionary
        full_details: If True, include full notes. If False, truncate to 200 chars.
    """
    lines = [
        f"**Task {task['id']}**: {task['title']}",
        f"Status: {task['status']} | Owner: {task['owner_username']} ({task['owner_role']})",
        f"Created by: {task['creator_username']}",
    ]

    if task.get('due_date'):
        lines.append(f"Due: {task['due_date']}")

    if task.get('notes'):
        notes = task['notes']
        if not full_details and len(notes) > 200:
            notes = f"{notes[:200]}..."
        lines.append(f"Notes: {notes}")

    lines.append(f"Created: {task['created_at']}")
    if full_details:
        lines.append(f"Updated: {task['updated_at']}")

    return "\n".join(lines)


def format_task_line(task: dict) -> str:
    """One-line task summary for lists."""
    due = f" due {task['due_date']}" if task.get('due_date') else ""
    return f"• {task['id']}: {task['title']} ({task['status']}) - {task['owner_username']}{due}"


def format_task_event(event: dict) -> str:
    """Format a history entry for display."""
    change = ""
    if event.get('old_value') and event.get('new_value'):
        change = f": {event['old_value']} → {event['new_value']}"
    elif event.get('new_value'):
        change = f": {event['new_value']}"
    return f"- [{event['created_at']}] {event['event_type']} by {event['changed_by_username']}{change}"
