from __future__ import annotations

import hmac
import secrets
import threading
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional


class AdminSessions:
    """PIN check + short-lived in-memory admin tokens."""

    def __init__(self, pin: str, ttl_hours: int = 12):
        self.pin = pin
        self.ttl = timedelta(hours=ttl_hours)
        self._tokens: Dict[str, datetime] = {}
        self._lock = threading.RLock()

    def verify_pin(self, pin: str) -> bool:
        return hmac.compare_digest(str(pin).encode("utf-8"), self.pin.encode("utf-8"))

    def _prune(self, now: datetime) -> None:
        expired = [t for t, exp in self._tokens.items() if exp <= now]
        for t in expired:
            del self._tokens[t]

    def issue(self) -> str:
        now = datetime.now(timezone.utc)
        token = secrets.token_urlsafe(32)
        with self._lock:
            self._prune(now)
            self._tokens[token] = now + self.ttl
        return token

    def is_valid(self, token: Optional[str]) -> bool:
        if not token:
            return False
        now = datetime.now(timezone.utc)
        with self._lock:
            self._prune(now)
            return token in self._tokens

    def revoke(self, token: str) -> None:
        with self._lock:
            self._tokens.pop(token, None)
