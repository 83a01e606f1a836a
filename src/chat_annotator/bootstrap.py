from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from loguru import logger

from chat_annotator.annotations import AnnotationStore, SlotStore
from chat_annotator.app_config import AppConfig
from chat_annotator.capture import CaptureSession
from chat_annotator.logging_config import setup_logging
from chat_annotator.page_source import PageSnapshot
from chat_annotator.services.annotation_controller import AnnotationController
from chat_annotator.session_watcher import SessionWatcher


@dataclass
class AppRuntime:
    config: AppConfig
    slots: SlotStore
    store: AnnotationStore
    controller: AnnotationController
    capture: CaptureSession
    log_descriptions: list[str]
    page: PageSnapshot | None = None
    watcher: SessionWatcher | None = field(default=None, repr=False)

    def on_session_change(self, session_key: str | None) -> None:
        # Full reload on every key change; views re-read the store on render.
        self.store.activate(session_key)
        self.controller.reset()
        self.capture.dismiss()

    def close(self) -> None:
        self.capture.dismiss()
        self.slots.close()


def bootstrap_runtime(app: AppConfig, *, configure_logging: bool = True) -> AppRuntime:
    log_descriptions: list[str] = []
    if configure_logging:
        log_descriptions = setup_logging(level=app.log_level, consumers=app.log_consumers)

    db_path = app.store_db_path
    if db_path != ":memory:" and not Path(db_path).is_absolute():
        db_path = str(Path.cwd() / db_path)
    slots = SlotStore(db_path)
    store = AnnotationStore(slots)
    logger.debug(f"Annotation store at {db_path}")

    runtime = AppRuntime(
        config=app,
        slots=slots,
        store=store,
        controller=AnnotationController(line_prefix="  "),
        capture=CaptureSession(store),
        log_descriptions=log_descriptions,
    )
    runtime.watcher = SessionWatcher(
        page_provider=lambda: runtime.page,
        on_change=runtime.on_session_change,
        poll_interval_seconds=app.poll_interval_seconds,
    )
    return runtime
