"""
Shared fixtures: status store, on-disk model dir, fake runtime, fake remote service.
"""

import json
import random

import cv2
import httpx
import numpy as np
import pytest

from breedinfer.adapters.remote.http_inference import HttpInferenceClient
from breedinfer.adapters.runtime.base import TensorRuntime
from breedinfer.orchestrator.errors import BackendUnavailableError
from breedinfer.services.config import OrchestratorConfig
from breedinfer.services.status_store import StatusStore

CATALOG = ["Gir (Cattle)", "Sahiwal (Cattle)", "Holstein (Cattle)", "Murrah (Buffalo)", "Mehsana (Buffalo)"]


class FakeRuntime(TensorRuntime):
    """Returns a fixed score vector; records the tensors it was given."""

    name = "fake"

    def __init__(self, scores=None, fail_load=False, fail_run=False):
        self.scores = np.asarray(scores if scores is not None else [0.1, 0.6, 0.05, 0.2, 0.05], dtype=np.float32)
        self.fail_load = fail_load
        self.fail_run = fail_run
        self.loaded = []
        self.tensors = []

    def load_model(self, path):
        if self.fail_load:
            raise BackendUnavailableError("corrupt model")
        self.loaded.append(path)
        return object()

    def run(self, session, tensor):
        if self.fail_run:
            raise RuntimeError("kernel exploded")
        self.tensors.append(tensor)
        return self.scores.reshape(1, -1)


class RecordingSleep:
    def __init__(self):
        self.calls = []

    def __call__(self, seconds):
        self.calls.append(seconds)


def png_bytes(color=(128, 64, 32), size=(224, 224)) -> bytes:
    """Solid RGB image encoded as PNG (lossless)."""
    w, h = size
    rgb = np.full((h, w, 3), color, dtype=np.uint8)
    ok, buf = cv2.imencode(".png", cv2.cvtColor(rgb, cv2.COLOR_RGB2BGR))
    assert ok
    return bytes(buf)


@pytest.fixture
def status():
    return StatusStore()


@pytest.fixture
def models_dir(tmp_path):
    d = tmp_path / "models"
    d.mkdir()
    return d


@pytest.fixture
def config(models_dir):
    return OrchestratorConfig(models_dir=models_dir, service_url="http://inference.test")


@pytest.fixture
def write_model_info(models_dir):
    def _write(**info):
        info.setdefault("classes", CATALOG)
        (models_dir / "model_info.json").write_text(json.dumps(info), encoding="utf-8")
    return _write


@pytest.fixture
def touch_pth(config):
    def _touch():
        config.pth_model_path.write_bytes(b"legacy")
    return _touch


@pytest.fixture
def touch_onnx(config):
    def _touch():
        config.onnx_model_path.write_bytes(b"onnx")
    return _touch


@pytest.fixture
def make_remote(status):
    """Build an HttpInferenceClient whose requests go to handler(request) -> httpx.Response."""
    clients = []

    def _make(handler, **kwargs):
        client = HttpInferenceClient(status, base_url="http://inference.test",
                                     transport=httpx.MockTransport(handler), **kwargs)
        clients.append(client)
        return client

    yield _make
    for c in clients:
        c.close()


@pytest.fixture
def sleep():
    return RecordingSleep()


@pytest.fixture
def rng():
    return random.Random(7)


@pytest.fixture
def image():
    return png_bytes()


@pytest.fixture
def make_png():
    return png_bytes


@pytest.fixture
def make_runtime():
    return FakeRuntime


@pytest.fixture
def catalog():
    return list(CATALOG)
