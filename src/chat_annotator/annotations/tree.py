from __future__ import annotations

from dataclasses import dataclass, field

from chat_annotator.annotations.models import AnnotationRecord, AnnotationSnapshot


@dataclass
class AnnotationNode:
    record: AnnotationRecord
    children: list[AnnotationRecord] = field(default_factory=list)


def build_tree(snapshot: AnnotationSnapshot) -> list[AnnotationNode]:
    """Group records into roots and their children, both in insertion order.

    A record whose parent is missing, or is itself a child, is listed as a root.
    """
    known_ids = {item.id for item in snapshot.items}
    root_ids = {
        item.id for item in snapshot.items if item.parent_id is None or item.parent_id not in known_ids
    }
    nodes: list[AnnotationNode] = []
    by_id: dict[int, AnnotationNode] = {}
    for item in snapshot.items:
        if item.parent_id in root_ids:
            continue
        node = AnnotationNode(record=item)
        nodes.append(node)
        by_id[item.id] = node

    for item in snapshot.items:
        if item.parent_id in root_ids:
            by_id[item.parent_id].children.append(item)
    return nodes


def filter_tree(nodes: list[AnnotationNode], term: str) -> list[AnnotationNode]:
    needle = term.strip().lower()
    if not needle:
        return list(nodes)

    results: list[AnnotationNode] = []
    for node in nodes:
        children = [child for child in node.children if needle in child.content.lower()]
        if needle in node.record.content.lower():
            results.append(AnnotationNode(record=node.record, children=list(node.children)))
        elif children:
            results.append(AnnotationNode(record=node.record, children=children))
    return results
