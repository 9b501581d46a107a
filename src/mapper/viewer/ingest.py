"""Ingestion — admit a batch of KML files and load them into the registry.

``IngestionOrchestrator.ingest`` answers synchronously which files are
admitted, ignored as duplicates or rejected as non-KML, and schedules one
asyncio task per admitted file. Reading/fetching is awaited inside that
task; parsing, overlay attach, registry insert and row insert then happen
in the same event-loop turn, so no half-loaded layer is ever visible.

File sources:
  - LocalKmlFile: bytes or text dropped onto the map / uploaded
  - RemoteKmlFile: a file of the current project, read through a fetcher
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Protocol
from urllib.parse import quote

import httpx
from loguru import logger

from mapper.errors import InvalidFileTypeError, KmlParseError, MapperError, NetworkError
from mapper.layers.converter import KmlConverter
from mapper.layers.layer import LayerEntry
from mapper.layers.registry import LayerRegistry
from mapper.viewer import events as ev
from mapper.viewer.events import EventDispatcher
from mapper.viewer.filenames import require_kml_name
from mapper.viewer.list_controller import ListController
from mapper.viewer.notifications import Messages, NotificationPresenter


# ---------------------------------------------------------------------------
# Fetchers
# ---------------------------------------------------------------------------

class KmlFetcher(Protocol):
    async def fetch(self, project: str, name: str) -> str | bytes:
        ...


class StoreKmlFetcher:
    """Read project files straight from a ProjectStore (same host)."""

    def __init__(self, store) -> None:
        self._store = store

    async def fetch(self, project: str, name: str) -> bytes:
        try:
            return await asyncio.to_thread(self._store.read_kml, project, name)
        except (OSError, MapperError) as e:
            raise NetworkError(f"Could not read {project}/{name}: {e}") from e


class HttpKmlFetcher:
    """Fetch project files over HTTP: ``<base>/<projects>/<project>/<kml dir>/<name>``."""

    def __init__(
        self,
        base_url: str,
        projects_dir: str = "Befahrungsprojekte",
        kml_dir: str = "KML-Files",
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.projects_dir = projects_dir
        self.kml_dir = kml_dir
        self.timeout = timeout
        self._transport = transport

    def url_for(self, project: str, name: str) -> str:
        return (
            f"{self.base_url}/{quote(self.projects_dir)}/{quote(project)}"
            f"/{quote(self.kml_dir)}/{quote(name)}"
        )

    async def fetch(self, project: str, name: str) -> bytes:
        url = self.url_for(project, name)
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.get(url)
                resp.raise_for_status()
                return resp.content
        except httpx.HTTPError as e:
            raise NetworkError(f"Fetch failed for {url}: {e}") from e


# ---------------------------------------------------------------------------
# Sources
# ---------------------------------------------------------------------------

@dataclass
class LocalKmlFile:
    """A file handed over by the user (drag & drop, upload)."""

    name: str
    data: bytes | str

    async def read(self) -> str | bytes:
        return self.data


@dataclass
class RemoteKmlFile:
    """A file of a server-side project."""

    name: str
    project: str
    fetcher: KmlFetcher

    async def read(self) -> str | bytes:
        return await self.fetcher.fetch(self.project, self.name)


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

@dataclass
class IngestResult:
    name: str
    loaded: bool
    error: str | None = None
    stale: bool = False

    def to_dict(self) -> dict:
        return {"name": self.name, "loaded": self.loaded, "error": self.error, "stale": self.stale}


@dataclass
class IngestSummary:
    """Synchronous admission decision plus the pending load tasks."""

    added_names: list[str] = field(default_factory=list)
    ignored_names: list[str] = field(default_factory=list)
    invalid_names: list[str] = field(default_factory=list)
    tasks: list[asyncio.Task] = field(default_factory=list, repr=False)

    @property
    def total(self) -> int:
        return len(self.added_names) + len(self.ignored_names) + len(self.invalid_names)

    async def wait(self) -> list[IngestResult]:
        """Wait for every admitted file to finish loading (or failing)."""
        if not self.tasks:
            return []
        return list(await asyncio.gather(*self.tasks))

    def to_dict(self) -> dict:
        return {
            "added": list(self.added_names),
            "ignored": list(self.ignored_names),
            "invalid": list(self.invalid_names),
        }


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------

class IngestionOrchestrator:
    """Partition file batches and drive converter, registry and list."""

    def __init__(
        self,
        registry: LayerRegistry,
        converter: KmlConverter,
        list_controller: ListController,
        notifier: NotificationPresenter,
        events: EventDispatcher,
    ) -> None:
        self._registry = registry
        self._converter = converter
        self._list = list_controller
        self._notifier = notifier
        self._events = events
        self._pending: set[str] = set()
        self._generation = 0

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def pending_names(self) -> set[str]:
        return set(self._pending)

    def is_known(self, name: str) -> bool:
        """Registered, or admitted and still loading."""
        return name in self._registry or name in self._pending

    def ingest(self, files) -> IngestSummary:
        """Admit files in input order and schedule their loads.

        Must be called from a running event loop. The returned summary is
        final; overlays appear only once the scheduled tasks complete.
        """
        summary = IngestSummary()
        admitted = []
        for source in files:
            name = source.name
            try:
                require_kml_name(name)
            except InvalidFileTypeError as e:
                summary.invalid_names.append(name)
                self._notifier.warning(Messages.INVALID_FILE)
                logger.warning(f"Ignored: {e}")
                continue
            if self.is_known(name):
                summary.ignored_names.append(name)
            else:
                self._pending.add(name)
                summary.added_names.append(name)
                admitted.append(source)

        generation = self._generation
        for source in admitted:
            summary.tasks.append(asyncio.create_task(self._load(source, generation)))

        logger.info(
            f"Ingest: {len(summary.added_names)} admitted, "
            f"{len(summary.ignored_names)} duplicate, {len(summary.invalid_names)} invalid"
        )
        return summary

    def reset(self) -> None:
        """Start a new load generation; loads still in flight are discarded."""
        self._generation += 1
        if self._pending:
            logger.info(f"Discarding {len(self._pending)} in-flight loads")
        self._pending.clear()

    async def _load(self, source, generation: int) -> IngestResult:
        name = source.name
        try:
            data = await source.read()
            if generation != self._generation:
                logger.warning(f"Dropping stale load of {name} (project switched)")
                return IngestResult(name, loaded=False, error="stale", stale=True)
            entry = self._attach(name, data)
        except KmlParseError as e:
            return self._fail(name, generation, Messages.LOAD_FAILED, e)
        except NetworkError as e:
            return self._fail(name, generation, Messages.NETWORK_ERROR, e)
        except Exception as e:
            logger.exception(f"Unexpected error loading {name}")
            return self._fail(name, generation, Messages.UNEXPECTED_ERROR, e)
        finally:
            # a newer generation may have admitted the same name again
            if generation == self._generation:
                self._pending.discard(name)

        self._events.emit(ev.LOAD_FINISHED, name=name, features=len(entry.main.features))
        logger.info(f"Loaded {name} ({len(entry.main.features)} features)")
        return IngestResult(name, loaded=True)

    def _attach(self, name: str, data: str | bytes) -> LayerEntry:
        """Convert, register and list one file; undone entirely on failure."""
        pair = self._converter.convert(data)
        entry = LayerEntry(
            name=name,
            main=pair.main,
            shadow=pair.shadow,
            color=pair.main.style.color,
        )
        try:
            self._registry.add(entry)
            self._list.insert_row(entry)
        except Exception:
            if not self._list.delete(name):
                if self._registry.find_by_name(name) is entry:
                    self._registry.remove(entry)
                else:
                    self._converter.detach(pair)
            raise
        return entry

    def _fail(self, name: str, generation: int, message: str, error: Exception) -> IngestResult:
        if generation != self._generation:
            logger.warning(f"Stale load of {name} failed: {error}")
            return IngestResult(name, loaded=False, error=str(error), stale=True)
        self._notifier.error(message)
        self._events.emit(ev.LOAD_FAILED, name=name, error=str(error))
        logger.warning(f"Failed to load {name}: {error}")
        return IngestResult(name, loaded=False, error=str(error))
