import asyncio
import unittest

from chat_annotator.anchor import TextAnchorResolver, build_search_phrase
from chat_annotator.constants import HIGHLIGHT_COLOR
from chat_annotator.page_source import parse_html

_PAGE = """
<html><body>
  <main>
    <div class="message" id="m1"><p>Intro text that mentions nothing useful.</p></div>
    <div class="message" id="m2"><p style="color: red">One Two Three Four Five Six Seven</p></div>
    <!-- One Two Three Four Five in a comment -->
    <script>var s = "One Two Three Four Five";</script>
  </main>
  <div id="chat-annotator-panel"><span>One Two Three Four Five</span></div>
</body></html>
"""


class _FakeTimer:
    def __init__(self, delay: float, callback) -> None:
        self.delay = delay
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class _RecordingScheduler:
    def __init__(self) -> None:
        self.timers: list[_FakeTimer] = []

    def __call__(self, delay: float, callback) -> _FakeTimer:
        timer = _FakeTimer(delay, callback)
        self.timers.append(timer)
        return timer


class _RecordingView:
    def __init__(self) -> None:
        self.scrolled: list = []

    def scroll_into_view(self, element) -> None:
        self.scrolled.append(element)


class SearchPhraseTests(unittest.TestCase):
    def test_first_five_words_of_first_fifty_chars(self) -> None:
        self.assertEqual("One Two Three Four Five", build_search_phrase("  One Two  Three\nFour Five Six Seven"))

    def test_truncation_happens_before_word_split(self) -> None:
        text = "a" * 48 + " bcdef ghi"
        self.assertEqual("a" * 48 + " b", build_search_phrase(text))

    def test_blank_text(self) -> None:
        self.assertEqual("", build_search_phrase("   "))


class TextAnchorResolverTests(unittest.TestCase):
    def setUp(self) -> None:
        self.document = parse_html(_PAGE)
        self.scheduler = _RecordingScheduler()
        self.view = _RecordingView()
        self.resolver = TextAnchorResolver(self.document, view=self.view, scheduler=self.scheduler)

    def test_locate_matches_page_text_outside_panel(self) -> None:
        result = self.resolver.locate("One Two Three Four Five Six Seven Eight")

        self.assertTrue(result.found)
        self.assertEqual("p", result.element.name)
        self.assertEqual("m2", result.element.parent["id"])
        self.assertEqual([result.element], self.view.scrolled)
        self.assertIn(f"background-color: {HIGHLIGHT_COLOR}", result.element["style"])
        self.assertEqual(1, len(self.scheduler.timers))
        self.assertEqual(5.0, self.scheduler.timers[0].delay)

    def test_revert_restores_exact_prior_style_once(self) -> None:
        result = self.resolver.locate("One Two Three Four Five")
        timer = self.scheduler.timers[0]

        timer.callback()
        self.assertEqual("color: red", result.element["style"])
        self.assertTrue(result.highlight.reverted)

        result.element["style"] = "color: blue"
        timer.callback()
        self.assertEqual("color: blue", result.element["style"])

    def test_revert_removes_style_when_there_was_none(self) -> None:
        document = parse_html("<body><p>alpha beta gamma delta epsilon</p></body>")
        resolver = TextAnchorResolver(document, scheduler=self.scheduler)
        result = resolver.locate("alpha beta gamma delta epsilon")
        self.assertTrue(result.element.has_attr("style"))

        self.scheduler.timers[0].callback()
        self.assertFalse(result.element.has_attr("style"))

    def test_revert_keeps_later_style_changes(self) -> None:
        result = self.resolver.locate("One Two Three Four Five")
        result.element["style"] = result.element["style"] + "; font-weight: bold"

        self.scheduler.timers[0].callback()

        self.assertEqual("color: red; font-weight: bold", result.element["style"])

    def test_panel_text_is_never_matched(self) -> None:
        document = parse_html(
            '<body><div id="chat-annotator-panel"><p>Only Inside The Panel Here</p></div></body>'
        )
        resolver = TextAnchorResolver(document, view=self.view, scheduler=self.scheduler)
        result = resolver.locate("Only Inside The Panel Here")
        self.assertFalse(result.found)
        self.assertEqual([], self.view.scrolled)
        self.assertEqual([], self.scheduler.timers)

    def test_custom_panel_id(self) -> None:
        document = parse_html('<body><aside id="notes"><p>shared words in both places</p></aside></body>')
        resolver = TextAnchorResolver(document, panel_id="notes", scheduler=self.scheduler)
        self.assertFalse(resolver.locate("shared words in both places").found)

    def test_comments_and_scripts_are_ignored(self) -> None:
        document = parse_html(
            "<body><!-- needle phrase right here --><script>needle phrase right here</script></body>"
        )
        resolver = TextAnchorResolver(document, scheduler=self.scheduler)
        self.assertFalse(resolver.locate("needle phrase right here").found)

    def test_not_found(self) -> None:
        result = self.resolver.locate("Nothing like this exists on the page")
        self.assertFalse(result.found)
        self.assertIsNone(result.element)
        self.assertEqual([], self.view.scrolled)

    def test_first_match_wins(self) -> None:
        document = parse_html("<body><p id='a'>repeat me please now</p><p id='b'>repeat me please now</p></body>")
        resolver = TextAnchorResolver(document, scheduler=self.scheduler)
        self.assertEqual("a", resolver.locate("repeat me please now").element["id"])

    def test_repeat_locate_extends_the_same_highlight(self) -> None:
        first = self.resolver.locate("One Two Three Four Five")
        second = self.resolver.locate("One Two Three Four Five")

        self.assertIs(first.highlight, second.highlight)
        self.assertTrue(self.scheduler.timers[0].cancelled)
        self.scheduler.timers[0].callback()
        self.scheduler.timers[1].callback()
        self.assertEqual("color: red", second.element["style"])

    def test_locate_after_revert_starts_a_fresh_highlight(self) -> None:
        first = self.resolver.locate("One Two Three Four Five")
        self.scheduler.timers[0].callback()
        second = self.resolver.locate("One Two Three Four Five")

        self.assertIsNot(first.highlight, second.highlight)
        self.scheduler.timers[1].callback()
        self.assertEqual("color: red", second.element["style"])

    def test_revert_skipped_for_detached_element(self) -> None:
        result = self.resolver.locate("One Two Three Four Five")
        result.element.extract()
        self.assertFalse(result.highlight.revert())

    def test_dismiss_cancels_timer_and_reverts(self) -> None:
        result = self.resolver.locate("One Two Three Four Five")
        result.highlight.dismiss()
        self.assertTrue(self.scheduler.timers[0].cancelled)
        self.assertEqual("color: red", result.element["style"])

    def test_default_scheduler_uses_running_loop(self) -> None:
        async def scenario() -> str:
            resolver = TextAnchorResolver(self.document, highlight_seconds=0.01)
            result = resolver.locate("One Two Three Four Five")
            await asyncio.sleep(0.05)
            return result.element["style"]

        self.assertEqual("color: red", asyncio.run(scenario()))


if __name__ == "__main__":
    unittest.main()
