from __future__ import annotations

import time
from collections.abc import Callable

from chat_annotator.annotations.models import AnnotationRecord
from chat_annotator.annotations.tree import AnnotationNode
from chat_annotator.constants import ERROR_DURATION_SECONDS, MAX_CHILDREN

_KIND_ICONS = {"todo": "✓", "finding": "💡", "question": "❓"}


class AnnotationController:
    """Presentation state for the terminal panel: expanded roots and inline errors."""

    def __init__(
        self,
        *,
        line_prefix: str,
        clock: Callable[[], float] = time.monotonic,
        flash_seconds: float = ERROR_DURATION_SECONDS,
    ):
        self._line_prefix = line_prefix
        self._clock = clock
        self._flash_seconds = flash_seconds
        self._expanded: set[int] = set()
        self._flash: tuple[str, float] | None = None

    def reset(self) -> None:
        self._expanded.clear()
        self._flash = None

    def is_expanded(self, record_id: int) -> bool:
        return record_id in self._expanded

    def expand(self, record_id: int) -> None:
        self._expanded.add(record_id)

    def toggle_expanded(self, record_id: int) -> bool:
        if record_id in self._expanded:
            self._expanded.discard(record_id)
            return False
        self._expanded.add(record_id)
        return True

    def flash(self, message: str) -> None:
        self._flash = (message, self._clock() + self._flash_seconds)

    def current_flash(self) -> str | None:
        if self._flash is None:
            return None
        message, expires_at = self._flash
        if self._clock() >= expires_at:
            self._flash = None
            return None
        return message

    def format_record(self, record: AnnotationRecord, *, child: bool = False) -> str:
        icon = _KIND_ICONS.get(record.kind, "•")
        check = ""
        if record.kind == "todo":
            check = "[x] " if record.completed else "[ ] "
        link = " 🔗" if record.from_source else ""
        indent = "    " if child else ""
        return f"{self._line_prefix}{indent}{icon} #{record.id} {check}{record.content}{link}"

    def format_tree_lines(self, nodes: list[AnnotationNode], *, session_key: str | None) -> list[str]:
        lines: list[str] = []
        message = self.current_flash()
        if message:
            lines.append(f"{self._line_prefix}⚠️ {message}")
        if session_key is None:
            lines.append(f"{self._line_prefix}(no conversation detected)")
            return lines
        if not nodes:
            lines.append(f"{self._line_prefix}(no items for {session_key})")
            return lines

        for node in nodes:
            expanded = self.is_expanded(node.record.id)
            marker = "▼" if expanded else "◀"
            lines.append(f"{self.format_record(node.record)} {marker} ({len(node.children)}/{MAX_CHILDREN})")
            if expanded:
                lines.extend(self.format_record(child, child=True) for child in node.children)
        return lines
