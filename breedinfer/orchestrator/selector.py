"""
Backend selection: remote service -> local runtime -> mock.

  1. legacy .pth artifact present -> probe remote /health (retries, fixed backoff)
  2. remote not usable and .onnx present -> load it into the tensor runtime
  3. nothing usable -> MOCK_ACTIVE (a valid outcome, never an error)

The chosen backend and its session are published together as one Resolution,
so a reader sees either the previous or the new decision.
"""
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional

from breedinfer.orchestrator import errors
from breedinfer.orchestrator.contracts import BackendState


@dataclass(frozen=True)
class Resolution:
    state: BackendState
    session: Any = None


UNRESOLVED = Resolution(state=BackendState.UNPROBED)


class BackendSelector:
    def __init__(self, config, remote, runtime, status_store, sleep: Callable[[float], None] = time.sleep):
        self.config = config
        self.remote = remote
        self.runtime = runtime
        self.status = status_store
        self._sleep = sleep
        self._lock = threading.Lock()
        self._resolution: Resolution = UNRESOLVED

    @property
    def state(self) -> BackendState:
        return self._resolution.state

    @property
    def resolution(self) -> Resolution:
        return self._resolution

    def resolve_backend(self) -> BackendState:
        current = self._resolution
        if current.state is not BackendState.UNPROBED:
            return current.state
        with self._lock:
            if self._resolution.state is BackendState.UNPROBED:
                self._publish(self._probe())
            return self._resolution.state

    def force_reprobe(self) -> BackendState:
        # previous resolution stays visible until the new one is ready
        with self._lock:
            self.status.log("selector: re-probing backends")
            self._publish(self._probe())
            return self._resolution.state

    def _publish(self, resolution: Resolution):
        self._resolution = resolution
        self.status.set_backend(resolution.state.value)
        self.status.log(f"selector: backend = {resolution.state.value}")

    def _probe(self) -> Resolution:
        try:
            if self.config.pth_model_path.exists() and self._remote_healthy():
                self.status.log(f"selector: using remote service at {self.remote.base_url}")
                return Resolution(BackendState.REMOTE_ACTIVE)

            session = self._load_local()
            if session is not None:
                return Resolution(BackendState.LOCAL_ACTIVE, session)
        except Exception as e:
            self.status.set_error(errors.ERR_UNKNOWN, f"selector probe failed: {type(e).__name__}: {e}")

        self.status.log("selector: no model available, using mock predictions")
        return Resolution(BackendState.MOCK_ACTIVE)

    def _remote_healthy(self) -> bool:
        retries = max(1, int(self.config.health_retries))
        for attempt in range(1, retries + 1):
            health = self.remote.health_check()
            if health.ok and health.model_loaded:
                self.status.log(f"selector: health attempt {attempt}/{retries} ok, model loaded")
                return True
            reason = "model not loaded" if health.ok else "unreachable"
            self.status.log(f"selector: health attempt {attempt}/{retries} failed ({reason})")
            if attempt < retries:
                self._sleep(self.config.health_backoff)
        self.status.log(f"selector: remote service not available at {self.remote.base_url}")
        return False

    def _load_local(self) -> Optional[Any]:
        path = self.config.onnx_model_path
        if not path.exists():
            self.status.log(f"selector: no local model at {path}")
            return None
        try:
            session = self.runtime.load_model(str(path))
        except errors.BackendUnavailableError as e:
            self.status.set_error(errors.ERR_BACKEND, f"local model not loaded: {e}")
            return None
        self.status.log(f"selector: loaded {path.name} via {self.runtime.name}")
        return session
