"""Tokenizing user messages and segmenting knowledge text."""

import re
from typing import Iterable

from tenantbot_engine.common.config import DEFAULT_STOP_WORDS

_NON_WORD = re.compile(r"\W+")
_SENTENCE_END = re.compile(r"[.!?]")


def normalize_text(
    text: str,
    stop_words: Iterable[str] = DEFAULT_STOP_WORDS,
) -> list[str]:
    """
    Reduce a raw message to its significant lowercase tokens.

    Splits on runs of non-word characters, drops empty tokens and stop-words,
    and keeps the first occurrence of each token.

    "How do I return a return?" → ["i", "return"]
    "   " → []
    """
    if not text:
        return []
    stop = stop_words if isinstance(stop_words, (set, frozenset)) else frozenset(stop_words)
    tokens: list[str] = []
    seen: set[str] = set()
    for word in _NON_WORD.split(text.lower()):
        if not word or word in stop or word in seen:
            continue
        seen.add(word)
        tokens.append(word)
    return tokens


def split_sentences(text: str) -> list[str]:
    """
    Split a knowledge block on '.', '!' and '?'.

    Pieces are trimmed and empty ones dropped; document order is kept.
    Abbreviations and decimals are split too ("Ver. 2.5" → ["Ver", "2", "5"]).
    """
    if not text:
        return []
    return [piece.strip() for piece in _SENTENCE_END.split(text) if piece.strip()]
