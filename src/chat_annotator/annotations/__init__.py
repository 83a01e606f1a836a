from chat_annotator.annotations.annotation_store import AnnotationStore, validate_snapshot
from chat_annotator.annotations.models import AnnotationRecord, AnnotationSnapshot
from chat_annotator.annotations.store import SlotStore
from chat_annotator.annotations.transfer import export_snapshot, import_snapshot
from chat_annotator.annotations.tree import AnnotationNode, build_tree, filter_tree

__all__ = [
    "AnnotationNode",
    "AnnotationRecord",
    "AnnotationSnapshot",
    "AnnotationStore",
    "SlotStore",
    "build_tree",
    "export_snapshot",
    "filter_tree",
    "import_snapshot",
    "validate_snapshot",
]
