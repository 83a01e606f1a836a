import sys
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from loguru import logger

# Records emitted outside an active conversation carry this session tag.
NO_SESSION = "-"
_PACKAGE = "chat_annotator"


@runtime_checkable
class LogConsumer(Protocol):
    def register(self, level: str) -> None: ...
    def describe(self, level: str) -> str: ...


class ConsoleLogConsumer:
    """Short lines for the terminal; the prompt shares this stream."""

    def __init__(self, stream: str = "stderr", scope: str = _PACKAGE):
        if stream not in ("stderr", "stdout"):
            raise ValueError(f"Unsupported console stream: {stream!r}")
        self._stream = stream
        self._scope = scope

    def register(self, level: str) -> None:
        logger.add(
            sys.stdout if self._stream == "stdout" else sys.stderr,
            level=level,
            filter=self._scope or None,
            format="<level>{level:<8}</level> | <magenta>{extra[session]}</magenta> | <level>{message}</level>",
        )

    def describe(self, level: str) -> str:
        return f"console ({self._stream}, {level}, {self._scope or 'all'})"


class FileLogConsumer:
    """Full records with the conversation they belong to."""

    def __init__(
        self,
        path: str = "chat-annotator.log",
        rotation: str = "5 MB",
        retention: int = 3,
        scope: str = _PACKAGE,
    ):
        self._path = path
        self._rotation = rotation
        self._retention = retention
        self._scope = scope

    def register(self, level: str) -> None:
        Path(self._path).parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            self._path,
            level=level,
            filter=self._scope or None,
            format=(
                "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level:<8} | session={extra[session]} | "
                "{name}:{function}:{line} - {message}"
            ),
            rotation=self._rotation,
            retention=self._retention,
        )

    def describe(self, level: str) -> str:
        return f"file ({self._path}, {level}, {self._scope or 'all'})"


_CONSUMER_TYPES: dict[str, type] = {
    "console": ConsoleLogConsumer,
    "file": FileLogConsumer,
}

# Only warnings reach the console so log lines do not interleave with the
# rendered annotation tree; the file keeps everything at the configured level.
_DEFAULT_CONSUMERS = [
    {"type": "console", "level": "WARNING"},
    {"type": "file", "path": "chat-annotator.log"},
]


def session_logger(session_key: str | None):
    """Logger whose records are tagged with the given conversation key."""
    return logger.bind(session=session_key or NO_SESSION)


def setup_logging(
    level: str = "INFO",
    consumers: list[dict[str, Any]] | None = None,
) -> list[str]:
    """Replace all loguru sinks with the configured consumers and describe them.

    Each consumer entry is ``{"type": ..., "level": ...}`` plus constructor
    options. ``scope`` limits a sink to one module prefix (``""`` for all).
    """
    logger.remove()
    logger.configure(extra={"session": NO_SESSION})

    if consumers is None:
        consumers = _DEFAULT_CONSUMERS

    descriptions: list[str] = []
    for config in consumers:
        sink_type = config.get("type", "")
        cls = _CONSUMER_TYPES.get(sink_type)
        if cls is None:
            logger.warning(f"Unknown log consumer type: {sink_type!r}")
            continue

        kwargs = {k: v for k, v in config.items() if k not in ("type", "level")}
        sink_level = config.get("level", level)

        consumer = cls(**kwargs)
        consumer.register(sink_level)
        descriptions.append(consumer.describe(sink_level))

    return descriptions
