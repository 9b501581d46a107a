"""Error taxonomy for the mapper core.

Every error is recoverable: the ingestion orchestrator, the list controller
and the session turn them into notifications, the routers into HTTP
responses.
"""

from __future__ import annotations


class MapperError(Exception):
    """Base class for all mapper errors."""


class InvalidFileTypeError(MapperError):
    """A dropped file does not end in ``.kml``."""


class DuplicateNameError(MapperError):
    """A layer with the same file name is already registered."""


class KmlParseError(MapperError):
    """The KML text is not well-formed enough to convert."""


class NetworkError(MapperError):
    """A listing or file fetch failed."""


class NameValidationError(MapperError):
    """A project, user or file name is empty or contains disallowed characters."""


class InvalidColorError(MapperError, ValueError):
    """A color is not a ``#rrggbb`` hex string."""


class NotFoundError(MapperError):
    """A requested directory or file does not exist."""


class ProjectNotFoundError(NotFoundError):
    """The project (or its KML directory) does not exist."""


class UserNotFoundError(NotFoundError):
    """The user directory does not exist."""


class ProjectExistsError(MapperError):
    """A project with the sanitized name already exists."""


class SettingsFormatError(MapperError, ValueError):
    """A settings payload is not a JSON object or array."""
