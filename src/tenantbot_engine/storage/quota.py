"""Storage quota arithmetic and admission rules.

Everything here is pure: callers pass a usage figure and a limit, nothing
touches the database.

Two rules apply, on purpose asymmetric:

* History writes (chat turns) are admitted while current usage is strictly
  below the limit. The write itself is not counted against the check, so a
  tenant just under the limit may end up over it by one exchange. Once at or
  over the limit, history silently stops being recorded while replies keep
  flowing.
* Profile writes (tenant creation and edits that grow usage) are rejected
  only when the prospective total would be greater than the limit. Edits
  that shrink usage always pass. Rejection is surfaced to the admin caller.
"""

from dataclasses import dataclass

BYTES_PER_MB = 1024 * 1024

STATUS_GREEN = "green"
STATUS_WARNING = "warning"
STATUS_DANGER = "danger"


def utf8_size(text: str | None) -> int:
    """Encoded size of text in bytes ("café" → 5)."""
    if not text:
        return 0
    return len(text.encode("utf-8"))


def bytes_to_mb(size_bytes: int | float) -> float:
    return size_bytes / BYTES_PER_MB


def round_mb(value_mb: float) -> float:
    """Two-decimal MB figure for display; never used for admission."""
    return round(value_mb, 2)


@dataclass(frozen=True)
class QuotaDecision:
    """Outcome of a history admission check."""
    admitted: bool
    used_bytes: int
    incoming_bytes: int
    limit_mb: float

    @property
    def used_mb(self) -> float:
        return bytes_to_mb(self.used_bytes)


def admit_history_write(used_bytes: int, incoming_bytes: int, limit_mb: float) -> QuotaDecision:
    """Decide whether a chat exchange of ``incoming_bytes`` may be persisted."""
    admitted = bytes_to_mb(used_bytes) < limit_mb
    return QuotaDecision(
        admitted=admitted,
        used_bytes=used_bytes,
        incoming_bytes=incoming_bytes,
        limit_mb=limit_mb,
    )


def profile_update_exceeds(prospective_bytes: int, limit_mb: float) -> bool:
    """True when a profile edit would take total usage past the limit."""
    return bytes_to_mb(prospective_bytes) > limit_mb


def is_storage_full(used_bytes: int, limit_mb: float) -> bool:
    return bytes_to_mb(used_bytes) >= limit_mb


def storage_status(used_percent: float) -> str:
    """
    Traffic-light status for the storage dashboard.

    < 80 % → "green", 80–99.9 % → "warning", >= 100 % → "danger".
    """
    if used_percent >= 100:
        return STATUS_DANGER
    if used_percent >= 80:
        return STATUS_WARNING
    return STATUS_GREEN
