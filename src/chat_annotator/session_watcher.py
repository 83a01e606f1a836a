from __future__ import annotations

import asyncio
from collections.abc import Callable

from loguru import logger

from chat_annotator.constants import SESSION_POLL_INTERVAL_SECONDS
from chat_annotator.page_source import PageSnapshot
from chat_annotator.session_key import resolve_session_key


class SessionWatcher:
    """Re-resolves the session key on a fixed interval.

    Chat front ends change their address without reloading, so there is no
    navigation event to hook. ``on_change`` fires only when the resolved key
    differs from the previous one.
    """

    def __init__(
        self,
        *,
        page_provider: Callable[[], PageSnapshot | None],
        on_change: Callable[[str | None], None],
        poll_interval_seconds: float = SESSION_POLL_INTERVAL_SECONDS,
    ):
        self._page_provider = page_provider
        self._on_change = on_change
        self._poll_interval_seconds = max(0.01, poll_interval_seconds)
        self._current_key: str | None = None

    @property
    def current_key(self) -> str | None:
        return self._current_key

    def resolve(self) -> str | None:
        page = self._page_provider()
        if page is None:
            return None
        return resolve_session_key(page.url, page.headings)

    def poll_once(self) -> bool:
        new_key = self.resolve()
        if new_key == self._current_key:
            return False
        logger.info(f"Session key changed: {self._current_key!r} -> {new_key!r}")
        self._current_key = new_key
        self._on_change(new_key)
        return True

    async def run(self) -> None:
        while True:
            try:
                self.poll_once()
            except Exception as ex:
                logger.error(f"Session key poll failed: {ex}")
            await asyncio.sleep(self._poll_interval_seconds)
