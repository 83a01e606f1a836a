import unittest

from chat_annotator.annotations import AnnotationRecord, AnnotationSnapshot, build_tree, filter_tree


def _record(record_id: int, content: str, parent_id: int | None = None) -> AnnotationRecord:
    return AnnotationRecord(id=record_id, parent_id=parent_id, content=content, kind="finding")


class TreeTests(unittest.TestCase):
    def setUp(self) -> None:
        self.snapshot = AnnotationSnapshot(
            items=[
                _record(1, "Rate limits"),
                _record(2, "Pagination"),
                _record(3, "burst of 50 requests", parent_id=1),
                _record(4, "cursor tokens expire", parent_id=2),
                _record(5, "retry-after header", parent_id=1),
            ],
            next_id=6,
        )

    def test_build_tree_groups_children_in_insertion_order(self) -> None:
        nodes = build_tree(self.snapshot)
        self.assertEqual([1, 2], [node.record.id for node in nodes])
        self.assertEqual([3, 5], [child.id for child in nodes[0].children])
        self.assertEqual([4], [child.id for child in nodes[1].children])

    def test_orphans_and_grandchildren_are_shown_as_roots(self) -> None:
        snapshot = AnnotationSnapshot(
            items=[_record(1, "root"), _record(2, "child", 1), _record(3, "deep", 2), _record(4, "orphan", 77)],
            next_id=5,
        )
        nodes = build_tree(snapshot)
        self.assertEqual([1, 3, 4], [node.record.id for node in nodes])
        self.assertEqual([2], [child.id for child in nodes[0].children])

    def test_filter_keeps_parent_of_matching_child(self) -> None:
        nodes = filter_tree(build_tree(self.snapshot), "RETRY")
        self.assertEqual([1], [node.record.id for node in nodes])
        self.assertEqual([5], [child.id for child in nodes[0].children])

    def test_filter_matching_root_keeps_all_children(self) -> None:
        nodes = filter_tree(build_tree(self.snapshot), "pagination")
        self.assertEqual([2], [node.record.id for node in nodes])
        self.assertEqual([4], [child.id for child in nodes[0].children])

    def test_empty_filter_keeps_everything(self) -> None:
        self.assertEqual(2, len(filter_tree(build_tree(self.snapshot), "  ")))


if __name__ == "__main__":
    unittest.main()
