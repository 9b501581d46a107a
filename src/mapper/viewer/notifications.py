"""Transient, stackable, auto-dismissing feedback messages.

A notification is a bottom-centered panel. ``show`` returns the created
Notification; its ``height_px`` lets callers stack the next message above
it through ``offset_px``.
"""

from __future__ import annotations

import html
import itertools
import time
from dataclasses import dataclass
from typing import Callable

from loguru import logger

WARNING_COLOR = "#ffa500"
SUCCESS_COLOR = "#4CAF50"
ERROR_COLOR = "#ff4444"

BASE_BOTTOM_PX = 20
STACK_GAP_PX = 20
PADDING_PX = 20  # 10px top + 10px bottom
LINE_HEIGHT_PX = 18
FADE_MS = 500


class Messages:
    """Predefined message texts."""

    CHANGES_SAVED = "Changes were saved"
    INVALID_FILE = "Please upload KML files only"
    NOTHING_SELECTED = "Please select a KML first"

    LOAD_FAILED = "Failed to load the file"
    NETWORK_ERROR = "Network error - please check your connection"
    UNEXPECTED_ERROR = "An unexpected error occurred"

    IGNORED_HEADER = "<b>Ignored as duplicates:</b>"
    ADDED_HEADER = "<b>Added successfully:</b>"

    @staticmethod
    def kml_added(name: str) -> str:
        return f'KML "{html.escape(name)}" was added'

    @staticmethod
    def project_loaded(project: str) -> str:
        return f'Project "{html.escape(project)}" was loaded'

    @staticmethod
    def duplicate(name: str) -> str:
        return f'The file "{html.escape(name)}" is already loaded'


@dataclass
class Notification:
    notification_id: int
    message: str
    color: str
    duration_ms: int
    offset_px: int
    created_at: float

    @property
    def bottom_px(self) -> int:
        return BASE_BOTTOM_PX + self.offset_px

    @property
    def height_px(self) -> int:
        lines = self.message.count("\n") + self.message.count("<br>") + 1
        return PADDING_PX + LINE_HEIGHT_PX * lines

    @property
    def expires_at(self) -> float:
        """Time the panel is fully faded and removed."""
        return self.created_at + (self.duration_ms + FADE_MS) / 1000.0

    def is_fading(self, now: float) -> bool:
        return now >= self.created_at + self.duration_ms / 1000.0

    def to_dict(self, now: float | None = None) -> dict:
        data = {
            "id": self.notification_id,
            "message": self.message,
            "color": self.color,
            "duration_ms": self.duration_ms,
            "bottom_px": self.bottom_px,
            "height_px": self.height_px,
        }
        if now is not None:
            data["fading"] = self.is_fading(now)
        return data


class NotificationPresenter:
    """Keeps the notifications that are currently on screen."""

    def __init__(
        self,
        default_duration_ms: int = 5000,
        clock: Callable[[], float] = time.monotonic,
        on_show: Callable[[Notification], None] | None = None,
    ) -> None:
        self.default_duration_ms = default_duration_ms
        self._clock = clock
        self._on_show = on_show
        self._ids = itertools.count(1)
        self._active: list[Notification] = []

    def show(
        self,
        message: str,
        color: str = WARNING_COLOR,
        duration_ms: int | None = None,
        offset_px: int = 0,
    ) -> Notification:
        """Show a message (may contain ``<b>`` markup and line breaks)."""
        note = Notification(
            notification_id=next(self._ids),
            message=message,
            color=color,
            duration_ms=self.default_duration_ms if duration_ms is None else duration_ms,
            offset_px=offset_px,
            created_at=self._clock(),
        )
        self._prune()
        self._active.append(note)
        logger.debug(f"Notification #{note.notification_id}: {message!r}")
        if self._on_show is not None:
            self._on_show(note)
        return note

    def warning(self, message: str) -> Notification:
        return self.show(message, WARNING_COLOR)

    def success(self, message: str) -> Notification:
        return self.show(message, SUCCESS_COLOR)

    def error(self, message: str) -> Notification:
        return self.show(message, ERROR_COLOR)

    def active(self) -> list[Notification]:
        self._prune()
        return list(self._active)

    def dismiss(self, notification_id: int) -> bool:
        before = len(self._active)
        self._active = [n for n in self._active if n.notification_id != notification_id]
        return len(self._active) != before

    def report_ingest(self, summary) -> list[Notification]:
        """Show the duplicate list, then the added list stacked above it."""
        shown = []
        ignored_note = None
        if summary.ignored_names:
            body = "\n".join(html.escape(n) for n in summary.ignored_names)
            ignored_note = self.show(f"{Messages.IGNORED_HEADER}\n{body}", WARNING_COLOR)
            shown.append(ignored_note)
        if summary.added_names:
            body = "\n".join(html.escape(n) for n in summary.added_names)
            offset = ignored_note.height_px + STACK_GAP_PX if ignored_note else 0
            shown.append(self.show(f"{Messages.ADDED_HEADER}\n{body}", SUCCESS_COLOR, offset_px=offset))
        return shown

    def _prune(self) -> None:
        now = self._clock()
        self._active = [n for n in self._active if n.expires_at > now]
