"""Tenantbot-Engine: multi-tenant knowledge chatbot with storage quotas."""

from tenantbot_engine.matching.matcher import MatchResult, find_best_match, select_reply
from tenantbot_engine.matching.text import normalize_text, split_sentences
from tenantbot_engine.storage.quota import admit_history_write, profile_update_exceeds, utf8_size

__all__ = [
    "MatchResult",
    "find_best_match",
    "select_reply",
    "normalize_text",
    "split_sentences",
    "admit_history_write",
    "profile_update_exceeds",
    "utf8_size",
]
__version__ = "0.1.0"
