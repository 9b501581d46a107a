"""Project API — survey projects, users, KML file listing and user settings.

Thin wrappers around ProjectStore. Errors come back as ``{"error": ...}``
with 400 (invalid input), 404 (missing directory/file) or 409 (exists).
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Request
from fastapi.responses import JSONResponse, Response
from loguru import logger
from pydantic import BaseModel

from mapper.errors import (
    InvalidFileTypeError,
    MapperError,
    NameValidationError,
    NotFoundError,
    ProjectExistsError,
    SettingsFormatError,
)

router = APIRouter(prefix="/api", tags=["projects"])

KML_MEDIA_TYPE = "application/vnd.google-earth.kml+xml"


class CreateProjectRequest(BaseModel):
    """Create a project from a free-form name (sanitized server-side)."""
    name: str


def _get_store(request: Request):
    """Get the project store from app state. Returns None if unavailable."""
    return getattr(request.app.state, "store", None)


def _unavailable() -> JSONResponse:
    return JSONResponse(status_code=503, content={"error": "Project store not available"})


def error_response(error: MapperError) -> JSONResponse:
    """Map a mapper error to an HTTP error response."""
    if isinstance(error, NotFoundError):
        status = 404
    elif isinstance(error, ProjectExistsError):
        status = 409
    elif isinstance(error, (NameValidationError, InvalidFileTypeError, SettingsFormatError)):
        status = 400
    else:
        status = 500
    return JSONResponse(status_code=status, content={"error": str(error)})


# ---------------------------------------------------------------------------
# Projects
# ---------------------------------------------------------------------------

@router.get("/projects")
async def list_projects(request: Request):
    """All project directory names."""
    store = _get_store(request)
    if store is None:
        return _unavailable()
    return store.list_projects()


@router.post("/projects", status_code=201)
async def create_project(request: Request, body: CreateProjectRequest):
    """Create a project directory plus its KML-Files subdirectory."""
    store = _get_store(request)
    if store is None:
        return _unavailable()
    try:
        name = store.create_project(body.name)
    except MapperError as e:
        logger.warning(f"Project creation rejected: {e}")
        return error_response(e)
    return {"status": "success", "name": name}


@router.get("/projects/{project}/kml")
async def list_kml_files(project: str, request: Request):
    """Bare KML file names of a project."""
    store = _get_store(request)
    if store is None:
        return _unavailable()
    try:
        return store.list_kml_files(project)
    except MapperError as e:
        return error_response(e)


@router.get("/projects/{project}/kml/{filename}")
async def get_kml_file(project: str, filename: str, request: Request):
    """Raw KML content of one project file."""
    store = _get_store(request)
    if store is None:
        return _unavailable()
    try:
        content = store.read_kml(project, filename)
    except MapperError as e:
        return error_response(e)
    return Response(content=content, media_type=KML_MEDIA_TYPE)


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------

@router.get("/users")
async def list_users(request: Request):
    """User directory names, the general user first."""
    store = _get_store(request)
    if store is None:
        return _unavailable()
    return store.list_users()


@router.get("/users/{user}/settings")
async def get_user_settings(user: str, request: Request):
    store = _get_store(request)
    if store is None:
        return _unavailable()
    try:
        return store.load_user_settings(user)
    except MapperError as e:
        return error_response(e)


@router.put("/users/{user}/settings")
async def save_user_settings(user: str, request: Request, data: Any = Body(...)):
    """Overwrite a user's settings with the posted JSON document."""
    store = _get_store(request)
    if store is None:
        return _unavailable()
    try:
        store.save_user_settings(user, data)
    except MapperError as e:
        return error_response(e)
    return {"status": "success"}
