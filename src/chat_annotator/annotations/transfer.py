from __future__ import annotations

import json
from datetime import date
from pathlib import Path

from loguru import logger

from chat_annotator.annotations.annotation_store import AnnotationStore
from chat_annotator.annotations.errors import ImportParseFailure, SessionUnresolved
from chat_annotator.annotations.models import AnnotationSnapshot

_EXPORT_PREFIX = "chat-annotator"


def export_filename(today: date | None = None) -> str:
    day = today or date.today()
    return f"{_EXPORT_PREFIX}-{day.isoformat()}.json"


def export_snapshot(store: AnnotationStore, directory: str | Path, *, today: date | None = None) -> Path:
    if not store.session_key:
        raise SessionUnresolved()
    target_dir = Path(directory)
    target_dir.mkdir(parents=True, exist_ok=True)
    path = target_dir / export_filename(today)
    snapshot = store.load()
    path.write_text(json.dumps(snapshot.to_dict(), indent=2, ensure_ascii=False), encoding="utf-8")
    logger.info(f"Exported {len(snapshot.items)} annotations to {path}")
    return path


def import_snapshot(store: AnnotationStore, path: str | Path) -> AnnotationSnapshot:
    """Replace the active store with the contents of an exported file.

    Raises ImportParseFailure for unreadable or malformed files and
    ImportValidationError when the file breaks a capacity or shape rule. The
    store is left untouched in both cases.
    """
    source = Path(path)
    try:
        data = json.loads(source.read_text(encoding="utf-8"))
    except OSError as ex:
        raise ImportParseFailure(f"cannot read {source}: {ex.strerror or ex}") from ex
    except json.JSONDecodeError as ex:
        raise ImportParseFailure(f"invalid JSON at line {ex.lineno}") from ex

    if not isinstance(data, dict):
        raise ImportParseFailure("expected a JSON object with 'items' and 'nextId'")
    try:
        snapshot = AnnotationSnapshot.from_dict(data)
    except (KeyError, TypeError, ValueError) as ex:
        raise ImportParseFailure(f"malformed item data ({ex})") from ex

    store.replace_all(snapshot)
    logger.info(f"Imported {len(snapshot.items)} annotations from {source}")
    return snapshot
