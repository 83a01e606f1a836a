MAX_CHILDREN = 20
MAX_TOTAL = 100
CAPTURE_MIN_WORDS = 4

HIGHLIGHT_DURATION_SECONDS = 5.0
ERROR_DURATION_SECONDS = 4.0
POPUP_AUTO_CLOSE_SECONDS = 10.0
SESSION_POLL_INTERVAL_SECONDS = 0.5

HIGHLIGHT_COLOR = "rgba(255, 235, 59, 0.3)"
DEFAULT_PANEL_ID = "chat-annotator-panel"

ANNOTATION_KINDS = ("todo", "finding", "question")
