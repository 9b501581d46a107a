"""Server-side project, user and KML file storage."""

from mapper.projects.sanitize import is_valid_name, sanitize_name
from mapper.projects.store import ProjectStore

__all__ = ["ProjectStore", "is_valid_name", "sanitize_name"]
