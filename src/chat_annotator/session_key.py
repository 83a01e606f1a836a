"""Session key derivation from a chat page's address and headings.

A key scopes one persisted annotation store. Conversations inside a project
(Claude project, ChatGPT custom GPT, Gemini gem) share one key per project;
standalone conversations get one key each. The same page can move between the
two states as the user navigates, so callers re-resolve on every navigation.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from urllib.parse import urlparse

_PLATFORM_HOSTS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("claude", ("claude.ai",)),
    ("chatgpt", ("chatgpt.com", "chat.openai.com")),
    ("gemini", ("gemini.google.com",)),
)

_CLAUDE_CHAT = re.compile(r"/chat/([a-zA-Z0-9_-]+)")
_CHATGPT_GROUPED_CHAT = re.compile(r"/g/g-([^/]+)/c/([a-zA-Z0-9_-]+)")
_CHATGPT_CHAT = re.compile(r"/c/([a-zA-Z0-9_-]+)")
_GEMINI_GEM_CHAT = re.compile(r"/gem/([^/]+)/([a-zA-Z0-9]+)")
_GEMINI_APP_CHAT = re.compile(r"/app/([a-zA-Z0-9]+)")
_GEMINI_GEM = re.compile(r"/gem/([^/]+)/")

_PROJECT_SEPARATOR = " / "


def detect_platform(url: str) -> str | None:
    host = (urlparse(url).hostname or "").lower()
    for platform, domains in _PLATFORM_HOSTS:
        for domain in domains:
            if host == domain or host.endswith("." + domain):
                return platform
    return None


def extract_conversation_id(platform: str | None, url: str) -> str | None:
    path = urlparse(url).path
    if platform == "claude":
        match = _CLAUDE_CHAT.search(path)
        return match.group(1) if match else None

    if platform == "chatgpt":
        grouped = _CHATGPT_GROUPED_CHAT.search(path)
        if grouped:
            return grouped.group(2)
        match = _CHATGPT_CHAT.search(path)
        return match.group(1) if match else None

    if platform == "gemini":
        grouped = _GEMINI_GEM_CHAT.search(path)
        if grouped:
            return grouped.group(2)
        match = _GEMINI_APP_CHAT.search(path)
        return match.group(1) if match else None

    return None


def detect_project_name(platform: str | None, url: str, headings: Iterable[str] = ()) -> str | None:
    if platform == "claude":
        # Claude shows "Project / Chat title" in the conversation header.
        for heading in headings:
            text = heading.strip()
            if _PROJECT_SEPARATOR in text:
                project = text.split(_PROJECT_SEPARATOR)[0].strip()
                return project or None
        return None

    path = urlparse(url).path
    if platform == "chatgpt":
        grouped = _CHATGPT_GROUPED_CHAT.search(path)
        return grouped.group(1) if grouped else None

    if platform == "gemini":
        match = _GEMINI_GEM.search(path)
        return match.group(1) if match else None

    return None


def resolve_session_key(url: str, headings: Iterable[str] = ()) -> str | None:
    platform = detect_platform(url)
    if platform is None:
        return None
    conversation_id = extract_conversation_id(platform, url)
    if conversation_id is None:
        return None

    project = detect_project_name(platform, url, headings)
    if project:
        return f"{platform}-project-{project}"
    return f"{platform}-{conversation_id}"
