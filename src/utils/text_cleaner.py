from __future__ import annotations

import html as _html
import re
import unicodedata
from typing import Iterable

from bs4 import BeautifulSoup

DEFAULT_TITLE = "Sin título"
ELLIPSIS = "..."

_BOILERPLATE_PATTERNS: Iterable[re.Pattern] = [
    re.compile(r"^\s*(leer|seguir leyendo|read more)\s*\.*$", re.I),
    re.compile(r"^\s*continue reading\s*$", re.I),
    re.compile(r"^\s*the post .* appeared first on .*", re.I),
    re.compile(r"^\s*la entrada .* se publicó primero en .*", re.I),
]


def normalize_text(text: str) -> str:
    if not text:
        return ""
    text = _html.unescape(text)
    text = unicodedata.normalize("NFKC", text)
    text = text.replace("\x00", "").replace("\r", " ").replace("\n", " ")
    return " ".join(text.split()).strip()


def clean_html(html: str) -> str:
    if not html:
        return ""
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(["script", "style", "noscript"]):
        tag.decompose()
    for node in list(soup.find_all(string=True)):
        if any(pattern.search(normalize_text(str(node))) for pattern in _BOILERPLATE_PATTERNS):
            node.extract()
    return normalize_text(soup.get_text(" "))


def truncate(text: str, max_length: int) -> str:
    """Cut ``text`` to ``max_length`` characters, marking the cut with '...'."""
    if len(text) <= max_length:
        return text
    if max_length <= len(ELLIPSIS):
        return text[:max_length]
    return text[: max_length - len(ELLIPSIS)].rstrip() + ELLIPSIS


def clean_summary(raw: str, max_length: int = 300) -> str:
    return truncate(clean_html(raw), max_length)


def clean_title(raw: str) -> str:
    title = normalize_text(raw)
    return title or DEFAULT_TITLE
