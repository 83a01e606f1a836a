from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any


def utc_now() -> str:
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass
class AnnotationRecord:
    id: int
    parent_id: int | None
    content: str
    kind: str
    completed: bool = False
    from_source: bool = False
    created_at: str = field(default_factory=utc_now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "parentId": self.parent_id,
            "content": self.content,
            "kind": self.kind,
            "completed": self.completed,
            "fromSource": self.from_source,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AnnotationRecord:
        """Build a record from its wire form.

        Older exports name the kind ``type`` and the capture flag ``fromChat``;
        both spellings are accepted. A record with no capture flag at all was
        authored by hand, so it loads as ``from_source=False``.
        """
        from_source = data.get("fromSource")
        if from_source is None:
            from_source = data.get("fromChat", False)
        return cls(
            id=int(data["id"]),
            parent_id=_optional_int(data.get("parentId")),
            content=str(data.get("content", "")),
            kind=str(data.get("kind", data.get("type", ""))),
            completed=bool(data.get("completed", False)),
            from_source=bool(from_source),
            created_at=str(data.get("createdAt", "")),
        )


@dataclass
class AnnotationSnapshot:
    items: list[AnnotationRecord] = field(default_factory=list)
    next_id: int = 1

    def find(self, record_id: int) -> AnnotationRecord | None:
        return next((item for item in self.items if item.id == record_id), None)

    def children_of(self, parent_id: int) -> list[AnnotationRecord]:
        return [item for item in self.items if item.parent_id == parent_id]

    def to_dict(self) -> dict[str, Any]:
        return {
            "items": [item.to_dict() for item in self.items],
            "nextId": self.next_id,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AnnotationSnapshot:
        raw_items = data.get("items", [])
        if not isinstance(raw_items, list):
            raise TypeError("'items' must be a list")
        items = []
        for raw in raw_items:
            if not isinstance(raw, dict):
                raise TypeError("each item must be an object")
            items.append(AnnotationRecord.from_dict(raw))
        return cls(items=items, next_id=int(data.get("nextId", 1)))


def _optional_int(value: Any) -> int | None:
    # Zero never names a record; ids start at 1.
    if value is None or value == 0 or value == "":
        return None
    return int(value)
