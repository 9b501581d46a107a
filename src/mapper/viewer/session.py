"""ViewerSession — one map, its layers and the list bound to them.

Owns every piece of viewer state (no module globals) and wires the
components together. Switching project flushes everything and reloads the
project's KML files from the store.
"""

from __future__ import annotations

import asyncio
import time
from typing import Callable

from loguru import logger

from mapper.errors import NameValidationError, NotFoundError
from mapper.layers.converter import KmlConverter
from mapper.layers.map_surface import MapSurface
from mapper.layers.registry import LayerRegistry
from mapper.layers.selection import SelectionSet
from mapper.viewer import events as ev
from mapper.viewer.events import EventDispatcher
from mapper.viewer.ingest import (
    IngestionOrchestrator,
    IngestSummary,
    KmlFetcher,
    RemoteKmlFile,
    StoreKmlFetcher,
)
from mapper.viewer.list_controller import ListController
from mapper.viewer.notifications import Messages, NotificationPresenter


class ViewerSession:
    """Wiring of map surface, registry, list, notifications and ingestion."""

    def __init__(
        self,
        store=None,
        fetcher: KmlFetcher | None = None,
        *,
        base_weight: float = 3,
        main_color: str = "#ff0000",
        main_opacity: float = 1.0,
        notification_duration_ms: int = 5000,
        map_center: tuple[float, float] = (51.1657, 10.4515),
        map_zoom: int = 6,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.store = store
        if fetcher is None and store is not None:
            fetcher = StoreKmlFetcher(store)
        self.fetcher = fetcher

        self.events = EventDispatcher()
        self.notifier = NotificationPresenter(
            default_duration_ms=notification_duration_ms,
            clock=clock,
            on_show=lambda note: self.events.emit(ev.NOTIFICATION, **note.to_dict()),
        )
        self.map = MapSurface(center=map_center, zoom=map_zoom)
        self.selection = SelectionSet()
        self.registry = LayerRegistry(self.map, self.selection)
        self.converter = KmlConverter(
            self.map,
            base_weight=base_weight,
            main_color=main_color,
            main_opacity=main_opacity,
        )
        self.list = ListController(
            self.registry,
            self.map,
            self.events,
            self.notifier,
            shadow_weight=self.converter.shadow_weight,
        )
        self.orchestrator = IngestionOrchestrator(
            self.registry, self.converter, self.list, self.notifier, self.events,
        )
        self.project: str | None = None
        self.user: str | None = None

    @classmethod
    def from_settings(cls, settings, store=None, fetcher: KmlFetcher | None = None) -> ViewerSession:
        return cls(
            store=store,
            fetcher=fetcher,
            base_weight=settings.main_line_weight,
            main_color=settings.main_color,
            main_opacity=settings.main_opacity,
            notification_duration_ms=settings.notification_duration_ms,
            map_center=(settings.map_center_lat, settings.map_center_lng),
            map_zoom=settings.map_zoom,
        )

    # ------------------------------------------------------------------
    # Ingestion
    # ------------------------------------------------------------------

    def drop_files(self, files) -> IngestSummary:
        """Ingest dropped files and show the duplicate/added summary."""
        summary = self.orchestrator.ingest(files)
        self.notifier.report_ingest(summary)
        return summary

    def flush(self) -> None:
        """Forget every layer, row, selection and in-flight load."""
        self.orchestrator.reset()
        self.list.flush()
        self.registry.clear()

    async def switch_project(self, project: str, user: str | None = None) -> IngestSummary:
        """Replace all layers with the KML files of ``project``.

        The listing happens first, so a missing project leaves the current
        layers untouched.

        Raises:
            RuntimeError: If the session has no store or fetcher.
            NameValidationError, NotFoundError: If the project cannot be listed.
        """
        if self.store is None or self.fetcher is None:
            raise RuntimeError("Viewer session has no project store")

        try:
            names = await asyncio.to_thread(self.store.list_kml_files, project)
        except (NameValidationError, NotFoundError) as e:
            self.notifier.error(Messages.NETWORK_ERROR)
            logger.warning(f"Project listing failed for {project!r}: {e}")
            raise

        self.flush()
        self.project = project
        if user is not None:
            self.user = user
        self.events.emit(ev.PROJECT_SWITCHED, project=project, user=self.user)
        logger.info(f"Switching to project {project} ({len(names)} KML files)")

        generation = self.orchestrator.generation
        summary = self.orchestrator.ingest(
            [RemoteKmlFile(name=n, project=project, fetcher=self.fetcher) for n in names]
        )
        await summary.wait()
        if generation == self.orchestrator.generation:
            self.notifier.success(Messages.project_loaded(project))
        return summary

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    def set_line_weight(self, weight: int) -> float:
        """Apply a new base weight to existing and future layers."""
        self.list.set_line_weight(weight)
        self.converter.base_weight = weight
        return weight

    def snapshot(self) -> dict:
        return {
            "project": self.project,
            "user": self.user,
            "line_weight": self.converter.base_weight,
            "rows": [row.to_dict() for row in self.list.rows()],
            "selected": self.list.selected_names(),
            "loading": sorted(self.orchestrator.pending_names),
            "map": self.map.to_dict(),
        }
