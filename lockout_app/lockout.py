"""In-memory tracker for failed logins with exponential lockout per identifier.

A failure starts (or extends) a 15 minute window for the identifier. Once
``threshold`` failures land in one window the identifier is locked for
``base_lock_seconds * 2 ** (count - threshold)`` seconds measured from the
start of the window, capped at ``max_lock_seconds``. A successful login
forgets the identifier. Records are swept once their window is older than
``retention_seconds``.

Known limitation: a failure arriving more than ``window_seconds`` after the
window opened starts a fresh window, so an attacker spacing attempts further
apart than the window never reaches the threshold.
"""
from __future__ import annotations

import logging
import math
import threading
import time
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Mapping, Optional


logger = logging.getLogger(__name__)


def normalize_identifier(identifier: Optional[str]) -> str:
    if not identifier:
        return ""
    return identifier.strip().lower()


def mask_identifier(identifier: str) -> str:
    """Hide most of an identifier before it reaches the logs."""
    local, sep, domain = identifier.partition("@")
    if not sep:
        return identifier[:1] + "***"
    return f"{local[:1]}***@{domain}"


@dataclass(frozen=True)
class LockoutPolicy:
    """Thresholds and durations (seconds) driving the tracker."""

    threshold: int = 5
    window_seconds: int = 15 * 60
    base_lock_seconds: int = 60
    max_lock_seconds: int = 60 * 60
    retention_seconds: int = 60 * 60

    def __post_init__(self) -> None:
        for name in (
            "threshold",
            "window_seconds",
            "base_lock_seconds",
            "max_lock_seconds",
            "retention_seconds",
        ):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise ValueError(f"{name} must be a positive integer, got {value!r}")
        # The sweep must not drop a record that is still locked or mid-window.
        for name in ("window_seconds", "max_lock_seconds"):
            if getattr(self, name) > self.retention_seconds:
                raise ValueError(
                    f"{name} ({getattr(self, name)}) must not exceed "
                    f"retention_seconds ({self.retention_seconds})"
                )

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "LockoutPolicy":
        defaults = cls()

        def _read(key: str, default: int) -> int:
            raw = config.get(key, default)
            try:
                return int(raw)
            except (TypeError, ValueError) as exc:
                raise ValueError(f"{key} must be an integer, got {raw!r}") from exc

        return cls(
            threshold=_read("LOCKOUT_THRESHOLD", defaults.threshold),
            window_seconds=_read("LOCKOUT_WINDOW_SECONDS", defaults.window_seconds),
            base_lock_seconds=_read("LOCKOUT_BASE_SECONDS", defaults.base_lock_seconds),
            max_lock_seconds=_read("LOCKOUT_MAX_SECONDS", defaults.max_lock_seconds),
            retention_seconds=_read("LOCKOUT_RETENTION_SECONDS", defaults.retention_seconds),
        )

    def lock_duration(self, count: int) -> float:
        """Seconds an identifier with ``count`` failures stays locked."""
        if count < self.threshold:
            return 0.0
        steps = count - self.threshold
        # 2 ** steps grows without bound; stop doubling once past the cap.
        if steps >= 64:
            return float(self.max_lock_seconds)
        return float(min(self.base_lock_seconds * 2 ** steps, self.max_lock_seconds))


@dataclass
class AttemptRecord:
    identifier: str
    count: int
    window_start: float
    last_attempt: Optional[float] = None


@dataclass(frozen=True)
class LockInfo:
    """Details handed back to a caller while an identifier is locked."""

    retry_after_seconds: int
    locked_until: datetime
    attempt_count: int
    locked: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "locked": self.locked,
            "retryAfterSeconds": self.retry_after_seconds,
            "lockedUntil": self.locked_until.isoformat(),
            "attemptCount": self.attempt_count,
        }


class LockoutTracker:
    """Track login failures per identifier (email) and decide lockouts."""

    def __init__(
        self,
        policy: LockoutPolicy | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.policy = policy or LockoutPolicy()
        self._clock = clock
        self._lock = threading.Lock()
        self._records: Dict[str, AttemptRecord] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def record_failure(self, identifier: Optional[str]) -> AttemptRecord:
        key = normalize_identifier(identifier)
        with self._lock:
            now = self._clock()
            if not key:
                return AttemptRecord(identifier="", count=0, window_start=now)

            record = self._records.get(key) or AttemptRecord(
                identifier=key, count=0, window_start=now
            )
            record.count += 1
            record.last_attempt = now
            if now - record.window_start > self.policy.window_seconds:
                record.count = 1
                record.window_start = now
            self._records[key] = record

            if record.count == self.policy.threshold:
                logger.warning(
                    "Locking %s after %d failed logins",
                    mask_identifier(key),
                    record.count,
                )
            elif record.count > self.policy.threshold:
                logger.warning(
                    "Failed login #%d for %s; lockout now %ds",
                    record.count,
                    mask_identifier(key),
                    int(self.policy.lock_duration(record.count)),
                )

            self._sweep(now)
            return replace(record)

    def is_locked(self, identifier: Optional[str]) -> bool:
        return self.get_lock_info(identifier) is not None

    def get_lock_info(self, identifier: Optional[str]) -> Optional[LockInfo]:
        key = normalize_identifier(identifier)
        if not key:
            return None
        with self._lock:
            now = self._clock()
            record = self._records.get(key)
            if record is None or record.count < self.policy.threshold:
                return None
            remaining = self.policy.lock_duration(record.count) - (now - record.window_start)
            if remaining <= 0:
                return None
            return LockInfo(
                retry_after_seconds=math.ceil(remaining),
                locked_until=datetime.fromtimestamp(now + remaining, tz=timezone.utc),
                attempt_count=record.count,
            )

    def reset_on_success(self, identifier: Optional[str]) -> None:
        key = normalize_identifier(identifier)
        if not key:
            return
        with self._lock:
            self._records.pop(key, None)

    def get_record(self, identifier: Optional[str]) -> Optional[AttemptRecord]:
        key = normalize_identifier(identifier)
        with self._lock:
            record = self._records.get(key)
            return replace(record) if record is not None else None

    def sweep(self) -> int:
        """Drop records whose window opened more than ``retention_seconds`` ago."""
        with self._lock:
            return self._sweep(self._clock())

    def clear(self) -> int:
        with self._lock:
            dropped = len(self._records)
            self._records.clear()
        logger.info("Cleared %d lockout records", dropped)
        return dropped

    def _sweep(self, now: float) -> int:
        # Caller holds self._lock.
        stale = [
            key
            for key, record in self._records.items()
            if now - record.window_start > self.policy.retention_seconds
        ]
        for key in stale:
            del self._records[key]
        if stale:
            logger.debug("Swept %d stale lockout records", len(stale))
        return len(stale)
