"""
onnxruntime adapter (CPU execution provider).

probe_runtime() acquires onnxruntime once; callers keep the returned adapter
and branch on .available instead of re-importing.
"""
import numpy as np

from breedinfer.adapters.runtime.base import TensorRuntime, UnavailableRuntime
from breedinfer.orchestrator.errors import BackendUnavailableError


class OnnxSession:
    def __init__(self, session):
        self.session = session
        self.input_name = session.get_inputs()[0].name
        self.output_name = session.get_outputs()[0].name


class OnnxTensorRuntime(TensorRuntime):
    name = "onnxruntime"

    def __init__(self, ort_module):
        self._ort = ort_module

    def load_model(self, path: str) -> OnnxSession:
        try:
            session = self._ort.InferenceSession(str(path), providers=["CPUExecutionProvider"])
        except Exception as e:
            raise BackendUnavailableError(f"failed to load {path}: {e}") from e
        return OnnxSession(session)

    def run(self, session: OnnxSession, tensor: np.ndarray) -> np.ndarray:
        feed = {session.input_name: tensor.astype(np.float32, copy=False)}
        try:
            outputs = session.session.run([session.output_name], feed)
        except Exception as e:
            raise BackendUnavailableError(f"runtime error: {e}") from e
        return np.asarray(outputs[0])


def probe_runtime(status_store=None) -> TensorRuntime:
    try:
        import onnxruntime as ort
    except ImportError as e:
        if status_store is not None:
            status_store.log(f"onnx_runtime: not available ({e})")
        return UnavailableRuntime(f"onnxruntime not available: {e}")
    if status_store is not None:
        status_store.log(f"onnx_runtime: available (v{getattr(ort, '__version__', '?')})")
    return OnnxTensorRuntime(ort)
