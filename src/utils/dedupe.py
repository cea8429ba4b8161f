"""Title normalization and similarity helpers for near-duplicate detection."""

from __future__ import annotations

import re
import unicodedata
from typing import FrozenSet

from src.utils.text_cleaner import normalize_text

_NON_WORD = re.compile(r"[^\w\s]", re.UNICODE)


def normalize_title(title: str) -> str:
    """Lower-case, accent-folded, punctuation-free form of ``title``."""
    text = normalize_text(title or "").lower()
    decomposed = unicodedata.normalize("NFKD", text)
    folded = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return " ".join(_NON_WORD.sub(" ", folded).split())


def title_tokens(title: str) -> FrozenSet[str]:
    return frozenset(normalize_title(title).split())


def jaccard_similarity(a: FrozenSet[str], b: FrozenSet[str]) -> float:
    if not a and not b:
        return 0.0
    return len(a & b) / len(a | b)


def title_similarity(first: str, second: str) -> float:
    return jaccard_similarity(title_tokens(first), title_tokens(second))

