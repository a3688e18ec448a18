"""
Derived-field helpers: slugs, reading time and Markdown rendering.
"""

import math
import re

import markdown

WORDS_PER_MINUTE = 200

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def slugify(text: str) -> str:
    """Turn display text into a URL-safe slug.

    "Hello, World!" -> "hello-world". Already-slugified input is returned
    unchanged.
    """
    return _NON_ALNUM.sub("-", text.lower()).strip("-")


def reading_time(content: str) -> int:
    """Estimate minutes to read content (~200 words/min, at least 1)."""
    if not content:
        return 1
    word_count = len(content.split())
    return max(1, math.ceil(word_count / WORDS_PER_MINUTE))


def render_markdown(content: str) -> str:
    """Convert markdown to HTML. Inline HTML from the rich-text editor passes through."""
    md = markdown.Markdown(extensions=['extra', 'codehilite', 'toc'])
    return md.convert(content)


def excerpt_from(content: str, length: int = 200) -> str:
    """Plain-text preview used when a post has no excerpt of its own."""
    text = re.sub(r"<[^>]+>", "", render_markdown(content))
    text = " ".join(text.split())
    if len(text) <= length:
        return text
    return text[:length].rsplit(" ", 1)[0] + "..."
