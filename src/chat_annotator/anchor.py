"""Relocate a captured passage in the live page.

Matching is a heuristic: the first text node containing a short prefix of the
captured text wins. Repeated short phrases can resolve to the wrong passage.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from bs4 import BeautifulSoup, NavigableString, Tag
from loguru import logger

from chat_annotator.constants import DEFAULT_PANEL_ID, HIGHLIGHT_COLOR, HIGHLIGHT_DURATION_SECONDS
from chat_annotator.timers import Scheduler, TimerHandle, schedule_later

_PHRASE_MAX_CHARS = 50
_PHRASE_MAX_WORDS = 5
_BACKGROUND = "background-color"


class AnchorView(Protocol):
    def scroll_into_view(self, element: Tag) -> None: ...


def build_search_phrase(text: str) -> str:
    words = text[:_PHRASE_MAX_CHARS].strip().split()
    return " ".join(words[:_PHRASE_MAX_WORDS])


class Highlight:
    """Temporary background tint on one element; reverts at most once."""

    def __init__(self, document: BeautifulSoup, element: Tag, color: str):
        self._document = document
        self._element = element
        self._prior_style = element.get("style")
        self._prior = _get_declaration(element, _BACKGROUND)
        self._timer: TimerHandle | None = None
        self._reverted = False
        _set_declaration(element, _BACKGROUND, color)
        self._applied_style = element.get("style")

    @property
    def element(self) -> Tag:
        return self._element

    @property
    def prior_color(self) -> str | None:
        return self._prior

    @property
    def reverted(self) -> bool:
        return self._reverted

    def schedule_revert(self, scheduler: Scheduler, delay_seconds: float) -> None:
        if self._timer is not None:
            self._timer.cancel()
        self._timer = scheduler(delay_seconds, self.revert)

    def revert(self) -> bool:
        if self._reverted:
            return False
        self._reverted = True
        self._timer = None
        if not _is_attached(self._element, self._document):
            logger.debug("Highlighted element left the document; skipping revert")
            return False
        if self._element.get("style") == self._applied_style:
            # Nothing else touched the style since the tint; restore it verbatim.
            if self._prior_style is None:
                del self._element["style"]
            else:
                self._element["style"] = self._prior_style
        elif self._prior is None:
            _remove_declaration(self._element, _BACKGROUND)
        else:
            _set_declaration(self._element, _BACKGROUND, self._prior)
        return True

    def dismiss(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
        self.revert()


@dataclass
class LocateResult:
    found: bool
    phrase: str
    element: Tag | None = None
    highlight: Highlight | None = None


class TextAnchorResolver:
    def __init__(
        self,
        document: BeautifulSoup,
        *,
        view: AnchorView | None = None,
        panel_id: str = DEFAULT_PANEL_ID,
        scheduler: Scheduler = schedule_later,
        highlight_seconds: float = HIGHLIGHT_DURATION_SECONDS,
    ):
        self._document = document
        self._view = view
        self._panel_id = panel_id
        self._scheduler = scheduler
        self._highlight_seconds = highlight_seconds
        # Keyed by element identity; a repeat jump extends the live tint.
        self._active: dict[int, Highlight] = {}

    def find(self, text: str) -> tuple[str, Tag | None]:
        phrase = build_search_phrase(text)
        if not phrase:
            return phrase, None
        root = self._document.body or self._document
        for node in root.descendants:
            # Exact type check skips comments, doctype, script and style text.
            if type(node) is not NavigableString or phrase not in node:
                continue
            element = node.parent
            if element is None or self._inside_panel(element):
                continue
            return phrase, element
        return phrase, None

    def locate(self, text: str) -> LocateResult:
        phrase, element = self.find(text)
        if element is None:
            logger.info(f"Anchor not found for phrase {phrase!r}")
            return LocateResult(found=False, phrase=phrase)

        if self._view is not None:
            self._view.scroll_into_view(element)
        self._active = {key: live for key, live in self._active.items() if not live.reverted}
        highlight = self._active.get(id(element))
        if highlight is None:
            highlight = Highlight(self._document, element, HIGHLIGHT_COLOR)
            self._active[id(element)] = highlight
        highlight.schedule_revert(self._scheduler, self._highlight_seconds)
        logger.debug(f"Anchor found for phrase {phrase!r} in <{element.name}>")
        return LocateResult(found=True, phrase=phrase, element=element, highlight=highlight)

    def _inside_panel(self, element: Tag) -> bool:
        if element.get("id") == self._panel_id:
            return True
        return element.find_parent(attrs={"id": self._panel_id}) is not None


def _parse_style(style: str) -> list[tuple[str, str]]:
    declarations: list[tuple[str, str]] = []
    for chunk in style.split(";"):
        name, sep, value = chunk.partition(":")
        if not sep or not name.strip():
            continue
        declarations.append((name.strip().lower(), value.strip()))
    return declarations


def _format_style(declarations: list[tuple[str, str]]) -> str:
    return "; ".join(f"{name}: {value}" for name, value in declarations)


def _get_declaration(element: Tag, name: str) -> str | None:
    for decl_name, value in _parse_style(str(element.get("style", ""))):
        if decl_name == name:
            return value
    return None


def _set_declaration(element: Tag, name: str, value: str) -> None:
    declarations = _parse_style(str(element.get("style", "")))
    for index, (decl_name, _) in enumerate(declarations):
        if decl_name == name:
            declarations[index] = (name, value)
            break
    else:
        declarations.append((name, value))
    element["style"] = _format_style(declarations)


def _remove_declaration(element: Tag, name: str) -> None:
    declarations = [(n, v) for n, v in _parse_style(str(element.get("style", ""))) if n != name]
    element["style"] = _format_style(declarations)


def _is_attached(element: Tag, document: BeautifulSoup) -> bool:
    if element is document:
        return True
    return any(parent is document for parent in element.parents)
