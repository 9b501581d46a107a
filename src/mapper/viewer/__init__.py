"""Viewer interaction layer — list, selection, notifications, ingestion."""

from mapper.viewer.events import EventDispatcher, ViewerEvent
from mapper.viewer.filenames import extract_key
from mapper.viewer.ingest import (
    HttpKmlFetcher,
    IngestionOrchestrator,
    IngestResult,
    IngestSummary,
    LocalKmlFile,
    RemoteKmlFile,
    StoreKmlFetcher,
)
from mapper.viewer.list_controller import ClickModifier, ListController, ListRow, MenuAction
from mapper.viewer.notifications import Messages, Notification, NotificationPresenter
from mapper.viewer.session import ViewerSession

__all__ = [
    "ClickModifier",
    "EventDispatcher",
    "HttpKmlFetcher",
    "IngestResult",
    "IngestSummary",
    "IngestionOrchestrator",
    "ListController",
    "ListRow",
    "LocalKmlFile",
    "MenuAction",
    "Messages",
    "Notification",
    "NotificationPresenter",
    "RemoteKmlFile",
    "StoreKmlFetcher",
    "ViewerEvent",
    "ViewerSession",
    "extract_key",
]
