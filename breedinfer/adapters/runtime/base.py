from abc import ABC, abstractmethod

import numpy as np

from breedinfer.orchestrator.errors import BackendUnavailableError


class TensorRuntime(ABC):
    """Opaque local inference engine: load a model file, run a tensor through it."""

    available = True
    name = "runtime"

    @abstractmethod
    def load_model(self, path: str):
        """Return a session handle. Raises BackendUnavailableError on failure."""
        ...

    @abstractmethod
    def run(self, session, tensor: np.ndarray) -> np.ndarray:
        """Run a [1,3,H,W] float32 tensor, return the raw output tensor."""
        ...


class UnavailableRuntime(TensorRuntime):
    """Stands in when the native runtime could not be acquired."""

    available = False
    name = "unavailable"

    def __init__(self, reason: str = "tensor runtime not installed"):
        self.reason = reason

    def load_model(self, path: str):
        raise BackendUnavailableError(self.reason)

    def run(self, session, tensor: np.ndarray) -> np.ndarray:
        raise BackendUnavailableError(self.reason)
