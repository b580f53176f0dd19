"""TaskTrack Core - PM → Dev → QA task workflow service."""

__version__ = "1.0.0"
