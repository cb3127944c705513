"""
Paragraph segmentation

Paragraphs are the alignment unit. Rich (HTML) editor content is flattened
to plain text first so that both sides of a comparison segment the same way.
"""
from __future__ import annotations
from typing import List
import re

from bs4 import BeautifulSoup

# Elements that end a paragraph in editor HTML
_BLOCK_TAGS = ["p", "div", "h1", "h2", "h3", "h4", "h5", "h6", "li", "blockquote", "hr", "tr"]

_HTML_TAG = re.compile(r"<[a-z][\s\S]*?>", re.IGNORECASE)


def to_plain_text(content: str) -> str:
    """
    Convert editor content to plain text with paragraph breaks preserved.

    Plain text is returned unchanged. In HTML, every block element and every
    ``<br>`` becomes a blank-line paragraph boundary.
    """
    if not content:
        return ""
    if not _HTML_TAG.search(content):
        return content

    soup = BeautifulSoup(content, "html.parser")
    for br in soup.find_all("br"):
        br.replace_with("\n\n")
    for el in soup.find_all(_BLOCK_TAGS):
        el.append("\n\n")
    return soup.get_text().strip()


def segment(text: str) -> List[str]:
    """Split on blank lines; fall back to single newlines when that yields one paragraph."""
    if not text:
        return []
    paras = [p.strip() for p in re.split(r"\n\n+", text)]
    paras = [p for p in paras if p]
    if len(paras) <= 1 and "\n" in text:
        paras = [p.strip() for p in text.split("\n")]
        paras = [p for p in paras if p]
    return paras


def join_paragraphs(paragraphs: List[str]) -> str:
    return "\n\n".join(paragraphs)
