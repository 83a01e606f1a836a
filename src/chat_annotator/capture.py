from __future__ import annotations

from loguru import logger

from chat_annotator.annotations.annotation_store import AnnotationStore
from chat_annotator.annotations.errors import InvalidKind
from chat_annotator.annotations.models import AnnotationRecord
from chat_annotator.constants import ANNOTATION_KINDS, CAPTURE_MIN_WORDS, POPUP_AUTO_CLOSE_SECONDS
from chat_annotator.timers import Scheduler, TimerHandle, schedule_later


class CaptureSession:
    """Turns a text selection on the page into a root annotation.

    At most one capture popup is open at a time; a new selection while one is
    open is ignored. An unanswered popup closes itself after a fixed delay.
    """

    def __init__(
        self,
        store: AnnotationStore,
        *,
        scheduler: Scheduler = schedule_later,
        auto_close_seconds: float = POPUP_AUTO_CLOSE_SECONDS,
    ):
        self._store = store
        self._scheduler = scheduler
        self._auto_close_seconds = auto_close_seconds
        self._pending_text: str | None = None
        self._timer: TimerHandle | None = None

    @property
    def active(self) -> bool:
        return self._pending_text is not None

    @property
    def pending_text(self) -> str | None:
        return self._pending_text

    def offer(self, selected_text: str) -> bool:
        if self.active:
            return False
        text = selected_text.strip()
        if len(text.split()) < CAPTURE_MIN_WORDS:
            return False
        self._pending_text = text
        self._timer = self._scheduler(self._auto_close_seconds, self._expire)
        logger.debug(f"Capture offered for {len(text)} chars")
        return True

    def accept(self, kind: str) -> AnnotationRecord:
        if self._pending_text is None:
            raise ValueError("No captured text is pending")
        if kind not in ANNOTATION_KINDS:
            raise InvalidKind(kind)
        text = self._pending_text
        self.dismiss()
        return self._store.create(None, text, kind, from_source=True)

    def dismiss(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
        self._timer = None
        self._pending_text = None

    def _expire(self) -> None:
        if self._pending_text is not None:
            logger.debug("Capture popup closed after timeout")
        self._timer = None
        self._pending_text = None
