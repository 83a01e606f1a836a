import unittest

from chat_annotator.annotations import AnnotationRecord, AnnotationSnapshot, build_tree
from chat_annotator.services.annotation_controller import AnnotationController


class _Clock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


class AnnotationControllerTests(unittest.TestCase):
    def setUp(self) -> None:
        self.clock = _Clock()
        self.controller = AnnotationController(line_prefix="> ", clock=self.clock)
        self.nodes = build_tree(
            AnnotationSnapshot(
                items=[
                    AnnotationRecord(id=1, parent_id=None, content="Rate limits", kind="finding", from_source=True),
                    AnnotationRecord(id=2, parent_id=1, content="ask support", kind="todo", completed=True),
                ],
                next_id=3,
            )
        )

    def test_collapsed_root_hides_children(self) -> None:
        lines = self.controller.format_tree_lines(self.nodes, session_key="claude-x")
        self.assertEqual(["> 💡 #1 Rate limits 🔗 ◀ (1/20)"], lines)

    def test_expanded_root_shows_children(self) -> None:
        self.assertTrue(self.controller.toggle_expanded(1))
        lines = self.controller.format_tree_lines(self.nodes, session_key="claude-x")
        self.assertEqual(["> 💡 #1 Rate limits 🔗 ▼ (1/20)", ">     ✓ #2 [x] ask support"], lines)
        self.assertFalse(self.controller.toggle_expanded(1))

    def test_flash_expires_after_error_duration(self) -> None:
        self.controller.flash("Maximum 100 items reached")
        lines = self.controller.format_tree_lines([], session_key="claude-x")
        self.assertEqual(["> ⚠️ Maximum 100 items reached", "> (no items for claude-x)"], lines)

        self.clock.now += 4.0
        self.assertIsNone(self.controller.current_flash())

    def test_inactive_session(self) -> None:
        lines = self.controller.format_tree_lines(self.nodes, session_key=None)
        self.assertEqual(["> (no conversation detected)"], lines)

    def test_reset_clears_state(self) -> None:
        self.controller.expand(1)
        self.controller.flash("oops")
        self.controller.reset()
        self.assertFalse(self.controller.is_expanded(1))
        self.assertIsNone(self.controller.current_flash())


if __name__ == "__main__":
    unittest.main()
