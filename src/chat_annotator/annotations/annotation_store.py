from __future__ import annotations

import json

from loguru import logger

from chat_annotator.annotations.errors import (
    ChildLimitReached,
    ImportValidationError,
    InvalidKind,
    NestingTooDeep,
    ParentNotFound,
    SessionUnresolved,
    TotalLimitReached,
)
from chat_annotator.annotations.models import AnnotationRecord, AnnotationSnapshot
from chat_annotator.annotations.store import SlotStore
from chat_annotator.constants import ANNOTATION_KINDS, MAX_CHILDREN, MAX_TOTAL
from chat_annotator.logging_config import session_logger

CORRUPT_SUFFIX = ".corrupt"
_UPDATABLE_FIELDS = frozenset({"content", "kind", "completed", "from_source", "parent_id"})


class AnnotationStore:
    """Annotation records of the active session key.

    Nothing is cached between calls: every operation re-reads the slot, applies
    its change and writes the whole snapshot back.
    """

    def __init__(self, slots: SlotStore, session_key: str | None = None):
        self._slots = slots
        self._session_key = session_key
        self._log = session_logger(session_key)

    @property
    def session_key(self) -> str | None:
        return self._session_key

    def activate(self, session_key: str | None) -> bool:
        """Switch to another key. Returns True when the key actually changed."""
        if session_key == self._session_key:
            return False
        logger.info(f"Annotation store switched: {self._session_key!r} -> {session_key!r}")
        self._session_key = session_key
        self._log = session_logger(session_key)
        return True

    def load(self) -> AnnotationSnapshot:
        if not self._session_key:
            return AnnotationSnapshot()
        raw = self._slots.get(self._session_key)
        if raw is None:
            return AnnotationSnapshot()
        try:
            parsed = json.loads(raw)
            if not isinstance(parsed, dict):
                raise TypeError("snapshot must be an object")
            return AnnotationSnapshot.from_dict(parsed)
        except (ValueError, TypeError, KeyError) as ex:
            self._log.warning(f"Ignoring unreadable annotations for {self._session_key!r}: {ex}")
            self._preserve_corrupt(raw)
            return AnnotationSnapshot()

    def create(
        self,
        parent_id: int | None,
        content: str,
        kind: str,
        from_source: bool = False,
    ) -> AnnotationRecord:
        self._require_session()
        if kind not in ANNOTATION_KINDS:
            raise InvalidKind(kind)

        snapshot = self.load()
        if len(snapshot.items) >= MAX_TOTAL:
            raise TotalLimitReached()

        if parent_id is not None:
            parent = snapshot.find(parent_id)
            if parent is None:
                raise ParentNotFound(parent_id)
            if parent.parent_id is not None:
                raise NestingTooDeep(parent_id)
            if len(snapshot.children_of(parent_id)) >= MAX_CHILDREN:
                raise ChildLimitReached(parent_id)

        record = AnnotationRecord(
            id=snapshot.next_id,
            parent_id=parent_id,
            content=content,
            kind=kind,
            from_source=from_source,
        )
        snapshot.next_id += 1
        snapshot.items.append(record)
        self._save(snapshot)
        self._log.debug(f"Created {kind} #{record.id} (parent={parent_id})")
        return record

    def update(self, record_id: int, **fields: object) -> bool:
        unknown = set(fields) - _UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update fields: {', '.join(sorted(unknown))}")
        if "kind" in fields and fields["kind"] not in ANNOTATION_KINDS:
            raise InvalidKind(str(fields["kind"]))
        self._require_session()

        snapshot = self.load()
        record = snapshot.find(record_id)
        if record is None:
            return False
        for name, value in fields.items():
            setattr(record, name, value)
        self._save(snapshot)
        self._log.debug(f"Updated #{record_id}: {sorted(fields)}")
        return True

    def remove(self, record_id: int) -> None:
        self._require_session()
        snapshot = self.load()
        snapshot.items = [item for item in snapshot.items if item.id != record_id]
        for item in snapshot.items:
            if item.parent_id == record_id:
                item.parent_id = None
        self._save(snapshot)
        self._log.debug(f"Removed #{record_id}")

    def replace_all(self, snapshot: AnnotationSnapshot) -> None:
        self._require_session()
        validate_snapshot(snapshot)
        self._save(snapshot)
        self._log.info(f"Replaced annotations ({len(snapshot.items)} items)")

    def _preserve_corrupt(self, raw: str) -> None:
        backup_key = f"{self._session_key}{CORRUPT_SUFFIX}"
        if self._slots.get(backup_key) != raw:
            self._slots.put(backup_key, raw)
            self._log.warning(f"Kept unreadable annotations under {backup_key!r}")

    def _save(self, snapshot: AnnotationSnapshot) -> None:
        self._slots.put(self._session_key, serialize_snapshot(snapshot))

    def _require_session(self) -> None:
        if not self._session_key:
            raise SessionUnresolved()


def serialize_snapshot(snapshot: AnnotationSnapshot) -> str:
    return json.dumps(snapshot.to_dict(), ensure_ascii=True)


def validate_snapshot(snapshot: AnnotationSnapshot) -> None:
    """Check a snapshot against the rules ``create`` enforces one record at a time."""
    if len(snapshot.items) > MAX_TOTAL:
        raise ImportValidationError("total-limit", f"{len(snapshot.items)} items exceeds maximum of {MAX_TOTAL}")

    if snapshot.next_id < 1:
        raise ImportValidationError("next-id", f"nextId {snapshot.next_id} must be at least 1")

    by_id: dict[int, AnnotationRecord] = {}
    for item in snapshot.items:
        if item.id < 1:
            raise ImportValidationError("id-range", f"id {item.id} must be at least 1")
        if item.id in by_id:
            raise ImportValidationError("unique-id", f"id {item.id} appears more than once")
        if item.kind not in ANNOTATION_KINDS:
            raise ImportValidationError("kind", f"item {item.id} has unknown kind {item.kind!r}")
        by_id[item.id] = item

    if by_id and snapshot.next_id <= max(by_id):
        raise ImportValidationError("next-id", f"nextId {snapshot.next_id} must exceed every item id")

    child_counts: dict[int, int] = {}
    for item in snapshot.items:
        if item.parent_id is None:
            continue
        parent = by_id.get(item.parent_id)
        if parent is None:
            raise ImportValidationError("parent-exists", f"item {item.id} refers to missing parent {item.parent_id}")
        if parent.parent_id is not None:
            raise ImportValidationError("depth", f"item {item.id} is nested under child item {parent.id}")
        child_counts[parent.id] = child_counts.get(parent.id, 0) + 1
        if child_counts[parent.id] > MAX_CHILDREN:
            raise ImportValidationError(
                "child-limit",
                f"item {parent.id} has more than {MAX_CHILDREN} children",
            )
