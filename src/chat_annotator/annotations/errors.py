from __future__ import annotations

from chat_annotator.constants import MAX_CHILDREN, MAX_TOTAL


class AnnotationError(Exception):
    """Base class for recoverable annotation failures shown to the user."""


class SessionUnresolved(AnnotationError):
    def __init__(self) -> None:
        super().__init__("No conversation detected on this page")


class TotalLimitReached(AnnotationError):
    def __init__(self, limit: int = MAX_TOTAL) -> None:
        super().__init__(f"Maximum {limit} items reached")
        self.limit = limit


class ChildLimitReached(AnnotationError):
    def __init__(self, parent_id: int, limit: int = MAX_CHILDREN) -> None:
        super().__init__(f"Maximum {limit} items per section reached")
        self.parent_id = parent_id
        self.limit = limit


class ParentNotFound(AnnotationError):
    def __init__(self, parent_id: int) -> None:
        super().__init__("Parent not found")
        self.parent_id = parent_id


class NestingTooDeep(AnnotationError):
    def __init__(self, parent_id: int) -> None:
        super().__init__(f"Item {parent_id} is already nested and cannot hold children")
        self.parent_id = parent_id


class InvalidKind(AnnotationError):
    def __init__(self, kind: str) -> None:
        super().__init__(f"Invalid kind: {kind!r}. Must be 'todo', 'finding' or 'question'.")
        self.kind = kind


class ImportParseFailure(AnnotationError):
    def __init__(self, detail: str) -> None:
        super().__init__(f"Error importing file: {detail}")
        self.detail = detail


class ImportValidationError(AnnotationError):
    def __init__(self, rule: str, detail: str) -> None:
        super().__init__(f"Import rejected ({rule}): {detail}")
        self.rule = rule
        self.detail = detail
