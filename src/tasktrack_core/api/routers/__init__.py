"""API routers for TaskTrack Core."""

from . import tasks, users

__all__ = ["tasks", "users"]
