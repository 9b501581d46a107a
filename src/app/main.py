"""Befahrer Mapper - survey route viewer.

Main FastAPI application.
"""

import sys
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, HTMLResponse
from fastapi.staticfiles import StaticFiles
from loguru import logger

from app.config import Settings, settings
from app.routers.projects import router as projects_router
from app.routers.viewer import router as viewer_router
from mapper import __version__
from mapper.projects.store import ProjectStore
from mapper.viewer.ingest import HttpKmlFetcher, StoreKmlFetcher
from mapper.viewer.session import ViewerSession


def configure_logging(debug: bool | None = None) -> None:
    """Replace the default loguru sink with one at the configured level."""
    if debug is None:
        debug = settings.debug
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if debug else "INFO")


def create_store(config: Settings = settings) -> ProjectStore:
    return ProjectStore(
        config.data_root,
        projects_dir=config.projects_dir,
        kml_dir=config.kml_dir,
        users_dir=config.users_dir,
        general_user=config.general_user,
    )


def create_viewer(store: ProjectStore, config: Settings = settings) -> ViewerSession:
    """Build the viewer session; remote projects are fetched over HTTP when configured."""
    if config.remote_base_url:
        fetcher = HttpKmlFetcher(
            config.remote_base_url,
            projects_dir=config.projects_dir,
            kml_dir=config.kml_dir,
            timeout=config.fetch_timeout,
        )
        logger.info(f"KML files fetched from {config.remote_base_url}")
    else:
        fetcher = StoreKmlFetcher(store)
    return ViewerSession.from_settings(config, store=store, fetcher=fetcher)


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info(f"{settings.app_name} v{__version__} - starting")

    store = create_store()
    if store.projects_root.is_dir():
        logger.info(f"Project root: {store.projects_root}")
    else:
        logger.warning(f"Project root not found: {store.projects_root}")
    app.state.store = store
    app.state.viewer = create_viewer(store)

    yield

    app.state.viewer.flush()
    logger.info(f"{settings.app_name} shutting down...")


# Create FastAPI app
app = FastAPI(
    title="Befahrer Mapper",
    description="KML survey route viewer",
    version=__version__,
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(projects_router)
app.include_router(viewer_router)

# Static files
frontend_path = Path(__file__).parent.parent.parent / "frontend"
if frontend_path.exists():
    app.mount("/static", StaticFiles(directory=frontend_path, follow_symlink=True), name="static")


@app.middleware("http")
async def no_cache_static(request: Request, call_next):
    """Disable caching for static CSS/JS during development."""
    response = await call_next(request)
    if request.url.path.startswith("/static/"):
        response.headers["Cache-Control"] = "no-cache, no-store, must-revalidate"
    return response


@app.get("/", response_class=HTMLResponse)
async def root():
    """Serve the map page."""
    index_path = frontend_path / "index.html"
    if index_path.exists():
        return FileResponse(index_path)
    return HTMLResponse(
        content=f"""
        <html>
            <head><title>{settings.app_name}</title></head>
            <body style="font-family: sans-serif;">
                <h1>{settings.app_name} v{__version__}</h1>
                <p>Frontend not found. The API is available under /api.</p>
            </body>
        </html>
        """
    )


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {
        "status": "operational",
        "version": __version__,
        "system": settings.app_name,
    }


def serve() -> None:
    """Console entry point."""
    import uvicorn

    configure_logging()
    uvicorn.run(app, host=settings.host, port=settings.port)
