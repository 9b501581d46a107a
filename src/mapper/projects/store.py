"""ProjectStore — project, user and KML file storage on disk.

Layout under the data root::

    Befahrungsprojekte/<project>/KML-Files/*.kml
    User/<user>/user_<user>.json

All operations are single-shot and synchronous.
"""

from __future__ import annotations

import json
from pathlib import Path

from loguru import logger

from mapper.errors import (
    NameValidationError,
    ProjectExistsError,
    ProjectNotFoundError,
    SettingsFormatError,
    UserNotFoundError,
)
from mapper.projects.sanitize import is_valid_name, sanitize_name
from mapper.viewer.filenames import KML_SUFFIX, require_kml_name


def _check_component(value: str, label: str) -> str:
    """Reject empty names and anything that could leave its directory."""
    if not value:
        raise NameValidationError(f"{label} name is required")
    if "/" in value or "\\" in value or value in (".", ".."):
        raise NameValidationError(f"Invalid {label.lower()} name: {value!r}")
    return value


class ProjectStore:
    """Directory-backed store for survey projects and user settings."""

    def __init__(
        self,
        root: str | Path,
        projects_dir: str = "Befahrungsprojekte",
        kml_dir: str = "KML-Files",
        users_dir: str = "User",
        general_user: str = "general",
    ) -> None:
        self.root = Path(root).expanduser()
        self.projects_root = self.root / projects_dir
        self.users_root = self.root / users_dir
        self.kml_dir = kml_dir
        self.general_user = general_user

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------

    def list_projects(self) -> list[str]:
        """Project directory names, sorted. Missing root -> empty list."""
        if not self.projects_root.is_dir():
            return []
        return sorted(p.name for p in self.projects_root.iterdir() if p.is_dir())

    def create_project(self, raw_name: str) -> str:
        """Sanitize a name and create the project with its KML directory.

        Returns:
            The sanitized project name.

        Raises:
            NameValidationError: If the name is empty or invalid after sanitizing.
            ProjectExistsError: If the project directory already exists.
        """
        name = sanitize_name(raw_name or "")
        if not is_valid_name(name):
            raise NameValidationError(f"Invalid project name: {raw_name!r}")
        project_dir = self.projects_root / name
        if project_dir.exists():
            raise ProjectExistsError(f"Project already exists: {name}")
        (project_dir / self.kml_dir).mkdir(parents=True)
        logger.info(f"Project created: {name} (from {raw_name!r})")
        return name

    def project_kml_dir(self, project: str) -> Path:
        _check_component(project, "Project")
        return self.projects_root / project / self.kml_dir

    def list_kml_files(self, project: str) -> list[str]:
        """Bare ``.kml`` file names of a project, sorted.

        Raises:
            NameValidationError: If no (or an invalid) project name was given.
            ProjectNotFoundError: If the project's KML directory is missing.
        """
        kml_dir = self.project_kml_dir(project)
        if not kml_dir.is_dir():
            raise ProjectNotFoundError(f"Directory not found for project {project}")
        return sorted(
            p.name for p in kml_dir.iterdir()
            if p.is_file() and p.name.endswith(KML_SUFFIX)
        )

    def kml_path(self, project: str, name: str) -> Path:
        """Path of one KML file; rejects anything that is not a bare ``.kml`` name."""
        if not name or Path(name).name != name:
            raise NameValidationError(f"Invalid KML file name: {name!r}")
        require_kml_name(name)
        path = self.project_kml_dir(project) / name
        if not path.is_file():
            raise ProjectNotFoundError(f"KML file not found: {project}/{name}")
        return path

    def read_kml(self, project: str, name: str) -> bytes:
        """Raw bytes of one KML file; decoding is left to the XML parser."""
        return self.kml_path(project, name).read_bytes()

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    def list_users(self) -> list[str]:
        """User directory names with the general user first."""
        if not self.users_root.is_dir():
            return []
        users = sorted(p.name for p in self.users_root.iterdir() if p.is_dir())
        if self.general_user in users:
            users.remove(self.general_user)
            users.insert(0, self.general_user)
        return users

    def user_settings_path(self, user: str) -> Path:
        _check_component(user, "User")
        user_dir = self.users_root / user
        if not user_dir.is_dir():
            raise UserNotFoundError(f"User directory not found: {user}")
        return user_dir / f"user_{user}.json"

    def save_user_settings(self, user: str, data) -> Path:
        """Overwrite a user's settings file with a JSON object or array.

        Raises:
            UserNotFoundError: If the user directory does not exist.
            SettingsFormatError: If ``data`` is not a structured document.
        """
        path = self.user_settings_path(user)
        if not isinstance(data, (dict, list)):
            raise SettingsFormatError("Invalid data format")
        path.write_text(json.dumps(data, indent=4, ensure_ascii=False), encoding="utf-8")
        logger.info(f"Settings saved for user {user}")
        return path

    def load_user_settings(self, user: str) -> dict | list:
        """Read a user's settings; an unsaved user gets an empty dict."""
        path = self.user_settings_path(user)
        if not path.is_file():
            return {}
        return json.loads(path.read_text(encoding="utf-8"))
