"""Keyword-overlap sentence matching."""

from dataclasses import dataclass
from typing import Iterable, Sequence

from tenantbot_engine.common.config import DEFAULT_STOP_WORDS
from tenantbot_engine.matching.text import normalize_text, split_sentences


@dataclass(frozen=True)
class MatchResult:
    """Best-scoring sentence for a token sequence."""
    sentence: str
    score: int

    @property
    def matched(self) -> bool:
        return self.score > 0


def score_sentence(tokens: Iterable[str], sentence: str) -> int:
    """Count distinct tokens found as substrings of the lowercased sentence."""
    lowered = sentence.lower()
    return sum(1 for token in set(tokens) if token in lowered)


def find_best_match(tokens: Sequence[str], sentences: Sequence[str]) -> MatchResult:
    """
    Pick the highest-scoring sentence.

    Only a strictly higher score replaces the current best, so the earliest
    sentence wins a tie. Zero tokens or no sentences → MatchResult("", 0).
    """
    best_sentence = ""
    best_score = 0
    if not tokens:
        return MatchResult(best_sentence, best_score)

    for sentence in sentences:
        score = score_sentence(tokens, sentence)
        if score > best_score:
            best_score = score
            best_sentence = sentence

    return MatchResult(best_sentence, best_score)


def select_reply(
    message: str,
    knowledge_text: str,
    fallback: str,
    stop_words: Iterable[str] = DEFAULT_STOP_WORDS,
) -> str:
    """Answer a message from knowledge text, or return the fallback on no match."""
    tokens = normalize_text(message, stop_words)
    if not tokens:
        return fallback
    result = find_best_match(tokens, split_sentences(knowledge_text))
    return result.sentence if result.matched else fallback
