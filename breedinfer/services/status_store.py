import logging
import threading
from dataclasses import dataclass, field
from typing import List, Optional

logger = logging.getLogger("breedinfer")

MAX_LOG_LINES = 200

@dataclass
class StatusStore:
    backend: Optional[str] = None
    last_error: Optional[str] = None
    logs: List[str] = field(default_factory=list)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def set_backend(self, state: str):
        self.backend = state

    def set_error(self, code: str, msg: str):
        self.last_error = f"{code}: {msg}"
        self.log(f"error {code}: {msg}", level=logging.WARNING)

    def log(self, msg: str, level: int = logging.INFO):
        logger.log(level, msg)
        with self._lock:
            self.logs.append(msg)
            if len(self.logs) > MAX_LOG_LINES:
                self.logs = self.logs[-MAX_LOG_LINES:]

    def snapshot(self) -> dict:
        with self._lock:
            logs = list(self.logs)
        return {"backend": self.backend, "last_error": self.last_error, "logs": logs}
