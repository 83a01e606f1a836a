from __future__ import annotations

from collections.abc import Awaitable, Callable
from functools import wraps

from bs4 import Tag
from loguru import logger

from chat_annotator.anchor import TextAnchorResolver
from chat_annotator.annotations import build_tree, export_snapshot, filter_tree, import_snapshot
from chat_annotator.annotations.errors import AnnotationError
from chat_annotator.bootstrap import AppRuntime
from chat_annotator.commands.router import CommandRouter
from chat_annotator.page_source import PageLoadError, PageSnapshot, fetch_page, load_page_file

_LINE_PREFIX = "  "

_HELP_LINES = [
    "/open <url> [html_file]        load a conversation page (fetched, or from a saved file)",
    "/list [search]                 show annotations for the current conversation",
    "/add <kind> <text>             add a root todo, finding or question",
    "/child <id> <kind> <text>      add an item under root <id>",
    "/expand <id>                   expand or collapse root <id>",
    "/toggle <id>                   mark a todo done or not done",
    "/edit <id> <text>              replace the text of an item",
    "/delete <id>                   delete an item (its children become roots)",
    "/select <text>                 simulate selecting page text for capture",
    "/capture <kind>                save the pending selection",
    "/dismiss                       close the pending selection popup",
    "/jump <id>                     find a captured item's source passage in the page",
    "/export [dir]                  write the annotations to a dated JSON file",
    "/import <file>                 replace the annotations from a JSON file",
]


def _guarded(handler: Callable[..., Awaitable[None]]) -> Callable[..., Awaitable[None]]:
    @wraps(handler)
    async def wrapper(self: AnnotatorShell, args: str) -> None:
        try:
            await handler(self, args)
        except (AnnotationError, PageLoadError, ValueError) as ex:
            logger.warning(f"/{handler.__name__.removeprefix('_cmd_')} failed: {ex}")
            self._error(str(ex))

    return wrapper


class AnnotatorShell:
    """Terminal stand-in for the annotation panel."""

    def __init__(self, runtime: AppRuntime):
        self._runtime = runtime
        self._resolver: TextAnchorResolver | None = None
        self._resolver_page: PageSnapshot | None = None
        self.router = CommandRouter(
            handlers={
                "open": self._cmd_open,
                "list": self._cmd_list,
                "add": self._cmd_add,
                "child": self._cmd_child,
                "expand": self._cmd_expand,
                "toggle": self._cmd_toggle,
                "edit": self._cmd_edit,
                "delete": self._cmd_delete,
                "select": self._cmd_select,
                "capture": self._cmd_capture,
                "dismiss": self._cmd_dismiss,
                "jump": self._cmd_jump,
                "export": self._cmd_export,
                "import": self._cmd_import,
            },
            on_help=self._print_help,
            on_unknown=self._print_unknown,
        )

    def _resolver_for(self, page: PageSnapshot) -> TextAnchorResolver:
        if self._resolver is None or self._resolver_page is not page:
            self._resolver = TextAnchorResolver(
                page.document,
                view=self,
                panel_id=self._runtime.config.panel_element_id,
            )
            self._resolver_page = page
        return self._resolver

    def scroll_into_view(self, element: Tag) -> None:
        preview = " ".join(element.get_text(" ", strip=True).split())[:100]
        print(f"{_LINE_PREFIX}→ <{element.name}> {preview}")

    def render(self, search: str = "") -> None:
        store = self._runtime.store
        nodes = filter_tree(build_tree(store.load()), search)
        for line in self._runtime.controller.format_tree_lines(nodes, session_key=store.session_key):
            print(line)

    async def _print_help(self) -> None:
        for line in _HELP_LINES:
            print(f"{_LINE_PREFIX}{line}")

    def _print_unknown(self, command: str) -> None:
        print(f"{_LINE_PREFIX}Unknown command: {command} (try /help)")

    def _error(self, message: str) -> None:
        self._runtime.controller.flash(message)
        print(f"{_LINE_PREFIX}⚠️ {message}")

    @_guarded
    async def _cmd_open(self, args: str) -> None:
        parts = args.split()
        if not parts or len(parts) > 2:
            raise ValueError("Usage: /open <url> [html_file]")
        if len(parts) == 2:
            page = load_page_file(parts[0], parts[1])
        else:
            page = await fetch_page(parts[0], timeout_seconds=self._runtime.config.fetch_timeout_seconds)
        self._runtime.page = page
        if self._runtime.watcher is not None:
            self._runtime.watcher.poll_once()
        key = self._runtime.store.session_key
        print(f"{_LINE_PREFIX}Conversation: {key or '(not recognised, annotations inactive)'}")

    @_guarded
    async def _cmd_list(self, args: str) -> None:
        self.render(args)

    @_guarded
    async def _cmd_add(self, args: str) -> None:
        kind, text = _split_kind_text(args, "Usage: /add <kind> <text>")
        record = self._runtime.store.create(None, text, kind)
        print(f"{_LINE_PREFIX}Added #{record.id}")

    @_guarded
    async def _cmd_child(self, args: str) -> None:
        parent_text, _, rest = args.partition(" ")
        parent_id = _parse_id(parent_text)
        kind, text = _split_kind_text(rest, "Usage: /child <id> <kind> <text>")
        record = self._runtime.store.create(parent_id, text, kind)
        self._runtime.controller.expand(parent_id)
        print(f"{_LINE_PREFIX}Added #{record.id} under #{parent_id}")

    @_guarded
    async def _cmd_expand(self, args: str) -> None:
        record_id = _parse_id(args)
        expanded = self._runtime.controller.toggle_expanded(record_id)
        print(f"{_LINE_PREFIX}#{record_id} {'expanded' if expanded else 'collapsed'}")

    @_guarded
    async def _cmd_toggle(self, args: str) -> None:
        record_id = _parse_id(args)
        record = self._runtime.store.load().find(record_id)
        if record is None:
            raise ValueError(f"No item #{record_id}")
        if record.kind != "todo":
            raise ValueError("Only todos can be completed")
        self._runtime.store.update(record_id, completed=not record.completed)
        print(f"{_LINE_PREFIX}#{record_id} {'done' if not record.completed else 'reopened'}")

    @_guarded
    async def _cmd_edit(self, args: str) -> None:
        id_text, _, text = args.partition(" ")
        record_id = _parse_id(id_text)
        if not text.strip():
            raise ValueError("Usage: /edit <id> <text>")
        if not self._runtime.store.update(record_id, content=text.strip()):
            raise ValueError(f"No item #{record_id}")
        print(f"{_LINE_PREFIX}Updated #{record_id}")

    @_guarded
    async def _cmd_delete(self, args: str) -> None:
        record_id = _parse_id(args)
        self._runtime.store.remove(record_id)
        print(f"{_LINE_PREFIX}Deleted #{record_id}")

    @_guarded
    async def _cmd_select(self, args: str) -> None:
        capture = self._runtime.capture
        if capture.active:
            print(f"{_LINE_PREFIX}A selection is already pending (/capture <kind> or /dismiss)")
            return
        if not capture.offer(args):
            print(f"{_LINE_PREFIX}Select at least a few words to capture")
            return
        print(f'{_LINE_PREFIX}"{args.strip()[:100]}" -> /capture finding|todo|question, or /dismiss')

    @_guarded
    async def _cmd_capture(self, args: str) -> None:
        record = self._runtime.capture.accept(args.strip())
        print(f"{_LINE_PREFIX}Captured #{record.id}")

    @_guarded
    async def _cmd_dismiss(self, args: str) -> None:
        self._runtime.capture.dismiss()

    @_guarded
    async def _cmd_jump(self, args: str) -> None:
        record_id = _parse_id(args)
        record = self._runtime.store.load().find(record_id)
        if record is None:
            raise ValueError(f"No item #{record_id}")
        if not record.from_source:
            raise ValueError(f"#{record_id} was not captured from the page")
        page = self._runtime.page
        if page is None:
            raise ValueError("No page is open")
        result = self._resolver_for(page).locate(record.content)
        if not result.found:
            self._error("Text not found in current page")

    @_guarded
    async def _cmd_export(self, args: str) -> None:
        path = export_snapshot(self._runtime.store, args or self._runtime.config.export_directory)
        print(f"{_LINE_PREFIX}Exported to {path}")

    @_guarded
    async def _cmd_import(self, args: str) -> None:
        if not args:
            raise ValueError("Usage: /import <file>")
        import_snapshot(self._runtime.store, args)
        self._runtime.controller.flash("✓ Data imported successfully")
        print(f"{_LINE_PREFIX}✓ Data imported successfully")


def _parse_id(text: str) -> int:
    value = text.strip().lstrip("#")
    if not value.isdigit():
        raise ValueError(f"Expected an item id, got {text.strip()!r}")
    return int(value)


def _split_kind_text(args: str, usage: str) -> tuple[str, str]:
    kind, _, text = args.strip().partition(" ")
    if not kind or not text.strip():
        raise ValueError(usage)
    return kind.lower(), text.strip()
