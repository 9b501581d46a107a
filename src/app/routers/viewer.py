"""Viewer API — drive the map session: files, layers, list, selection.

The ViewerSession lives on ``app.state.viewer``. Every mutation goes through
its components, and the resulting UI events can be polled from
``/api/viewer/events``.
"""

from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from loguru import logger
from pydantic import BaseModel

from app.routers.projects import error_response
from mapper.errors import InvalidColorError, MapperError
from mapper.layers.exporters.geojson import export_overlay
from mapper.viewer.ingest import LocalKmlFile
from mapper.viewer.list_controller import ClickModifier, MenuAction

router = APIRouter(prefix="/api/viewer", tags=["viewer"])


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------

class UploadedFile(BaseModel):
    name: str
    content: str = ""


class DropFilesRequest(BaseModel):
    """A batch of files dropped onto the map."""
    files: list[UploadedFile]
    wait: bool = False


class SwitchProjectRequest(BaseModel):
    project: str
    user: str | None = None


class ClickRequest(BaseModel):
    modifier: ClickModifier = ClickModifier.NONE


class ColorRequest(BaseModel):
    color: str


class SelectAllRequest(BaseModel):
    selected: bool = True


class LineWeightRequest(BaseModel):
    weight: int


class MenuActionRequest(BaseModel):
    color: str | None = None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _get_viewer(request: Request):
    """Get the viewer session from app state. Returns None if unavailable."""
    return getattr(request.app.state, "viewer", None)


def _unavailable() -> JSONResponse:
    return JSONResponse(status_code=503, content={"error": "Viewer not available"})


def _unknown_layer(name: str) -> JSONResponse:
    return JSONResponse(status_code=404, content={"error": f"Layer not found: {name}"})


def _bad_request(message: str) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": message})


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------

@router.get("/")
async def get_snapshot(request: Request):
    """Project, rows, selection, in-flight loads and map state."""
    viewer = _get_viewer(request)
    if viewer is None:
        return _unavailable()
    return viewer.snapshot()


@router.post("/files")
async def drop_files(request: Request, body: DropFilesRequest):
    """Ingest dropped files.

    The admission summary is returned right away; with ``wait`` the
    response also carries the per-file load results.
    """
    viewer = _get_viewer(request)
    if viewer is None:
        return _unavailable()
    files = [LocalKmlFile(name=f.name, data=f.content) for f in body.files]
    summary = viewer.drop_files(files)
    result = summary.to_dict()
    if body.wait:
        results = await summary.wait()
        result["results"] = [r.to_dict() for r in results]
    return result


@router.post("/project")
async def switch_project(request: Request, body: SwitchProjectRequest):
    """Replace every layer with the KML files of a project."""
    viewer = _get_viewer(request)
    if viewer is None:
        return _unavailable()
    try:
        summary = await viewer.switch_project(body.project, body.user)
    except MapperError as e:
        return error_response(e)
    except RuntimeError as e:
        logger.warning(f"Project switch unavailable: {e}")
        return JSONResponse(status_code=503, content={"error": str(e)})
    return {
        "status": "success",
        "project": body.project,
        **summary.to_dict(),
        "rows": [row.to_dict() for row in viewer.list.rows()],
    }


@router.get("/notifications")
async def get_notifications(request: Request):
    viewer = _get_viewer(request)
    if viewer is None:
        return _unavailable()
    return [n.to_dict() for n in viewer.notifier.active()]


@router.get("/events")
async def get_events(request: Request, since: int = 0):
    """UI events with a sequence number greater than ``since``."""
    viewer = _get_viewer(request)
    if viewer is None:
        return _unavailable()
    return [e.to_dict() for e in viewer.events.since(since)]


@router.get("/map")
async def get_map(request: Request):
    viewer = _get_viewer(request)
    if viewer is None:
        return _unavailable()
    return viewer.map.to_dict()


# ---------------------------------------------------------------------------
# Layers
# ---------------------------------------------------------------------------

@router.get("/layers")
async def list_layers(request: Request):
    """List rows in display order."""
    viewer = _get_viewer(request)
    if viewer is None:
        return _unavailable()
    return [row.to_dict() for row in viewer.list.rows()]


@router.get("/layers/{name}")
async def get_layer(name: str, request: Request):
    """GeoJSON of a layer's shadow and main overlay."""
    viewer = _get_viewer(request)
    if viewer is None:
        return _unavailable()
    entry = viewer.registry.find_by_name(name)
    if entry is None:
        return _unknown_layer(name)
    return {
        "name": entry.name,
        "color": entry.color,
        "visible": entry.visible,
        "shadow": export_overlay(entry.shadow),
        "main": export_overlay(entry.main),
    }


@router.get("/layers/{name}/details")
async def describe_layer(name: str, request: Request):
    viewer = _get_viewer(request)
    if viewer is None:
        return _unavailable()
    try:
        return viewer.list.describe(name)
    except KeyError:
        return _unknown_layer(name)


@router.post("/layers/{name}/click")
async def click_layer(name: str, request: Request, body: ClickRequest):
    """Row click with an optional modifier (toggle / range)."""
    viewer = _get_viewer(request)
    if viewer is None:
        return _unavailable()
    try:
        selected = viewer.list.click(name, body.modifier)
    except KeyError:
        return _unknown_layer(name)
    return {"selected": selected}


@router.post("/layers/{name}/visibility")
async def toggle_visibility(name: str, request: Request):
    viewer = _get_viewer(request)
    if viewer is None:
        return _unavailable()
    try:
        visible = viewer.list.toggle_visibility(name)
    except KeyError:
        return _unknown_layer(name)
    return {"name": name, "visible": visible}


@router.delete("/layers/{name}")
async def delete_layer(name: str, request: Request):
    viewer = _get_viewer(request)
    if viewer is None:
        return _unavailable()
    if not viewer.list.delete(name):
        return _unknown_layer(name)
    return {"status": "deleted", "name": name}


@router.put("/layers/{name}/color")
async def set_layer_color(name: str, request: Request, body: ColorRequest):
    viewer = _get_viewer(request)
    if viewer is None:
        return _unavailable()
    try:
        color = viewer.list.set_color(name, body.color)
    except InvalidColorError as e:
        return _bad_request(str(e))
    except KeyError:
        return _unknown_layer(name)
    return {"name": name, "color": color}


@router.post("/layers/{name}/hover")
async def hover_enter(name: str, request: Request):
    """Show the extent outline and key label for a row."""
    viewer = _get_viewer(request)
    if viewer is None:
        return _unavailable()
    try:
        highlight = viewer.list.hover_enter(name)
    except KeyError:
        return _unknown_layer(name)
    if highlight is None:
        return {"name": name, "highlighted": False}
    return {
        "name": name,
        "highlighted": True,
        "outline": highlight.outline.to_dict(),
        "label": highlight.label.to_dict(),
    }


@router.delete("/layers/{name}/hover")
async def hover_leave(name: str, request: Request):
    viewer = _get_viewer(request)
    if viewer is None:
        return _unavailable()
    return {"name": name, "removed": viewer.list.hover_leave(name)}


@router.get("/layers/{name}/menu")
async def get_context_menu(name: str, request: Request):
    viewer = _get_viewer(request)
    if viewer is None:
        return _unavailable()
    try:
        items = viewer.list.context_menu(name)
    except KeyError:
        return _unknown_layer(name)
    return [item.to_dict() for item in items]


@router.post("/layers/{name}/menu/{action}")
async def run_menu_action(name: str, action: str, request: Request, body: MenuActionRequest | None = None):
    """Run one context menu entry (zoom, color, visibility, delete)."""
    viewer = _get_viewer(request)
    if viewer is None:
        return _unavailable()
    try:
        menu_action = MenuAction(action)
    except ValueError:
        return _bad_request(f"Unknown menu action: {action}")
    color = body.color if body is not None else None
    try:
        result = viewer.list.run_menu_action(name, menu_action, color=color)
    except InvalidColorError as e:
        return _bad_request(str(e))
    except KeyError:
        return _unknown_layer(name)
    return {"name": name, "action": menu_action.value, "result": result}


# ---------------------------------------------------------------------------
# Selection and style
# ---------------------------------------------------------------------------

@router.post("/selection/color")
async def recolor_selection(request: Request, body: ColorRequest):
    """Palette click: recolor every selected layer."""
    viewer = _get_viewer(request)
    if viewer is None:
        return _unavailable()
    try:
        names = viewer.list.recolor_selection(body.color)
    except InvalidColorError as e:
        return _bad_request(str(e))
    return {"recolored": names, "color": body.color.lower()}


@router.post("/selection/all")
async def select_all(request: Request, body: SelectAllRequest):
    viewer = _get_viewer(request)
    if viewer is None:
        return _unavailable()
    return {"selected": viewer.list.select_all(body.selected)}


@router.put("/line-weight")
async def set_line_weight(request: Request, body: LineWeightRequest):
    viewer = _get_viewer(request)
    if viewer is None:
        return _unavailable()
    try:
        weight = viewer.set_line_weight(body.weight)
    except ValueError as e:
        return _bad_request(str(e))
    return {"line_weight": weight}
