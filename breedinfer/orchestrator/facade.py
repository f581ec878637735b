import random
import time
from typing import Callable, Optional, Sequence

from breedinfer.adapters.mock.mock_predictor import MockPredictor
from breedinfer.adapters.remote.http_inference import HttpInferenceClient
from breedinfer.adapters.runtime.base import TensorRuntime
from breedinfer.adapters.runtime.onnx_runtime import probe_runtime
from breedinfer.adapters.vision import heatmap
from breedinfer.adapters.vision.preprocess import preprocess
from breedinfer.orchestrator import errors
from breedinfer.orchestrator.contracts import (
    DEFAULT_SPECIES,
    BackendState,
    Heatmap,
    Prediction,
    SpeciesResult,
)
from breedinfer.orchestrator.ranking import derive_species, is_crossbreed, rank
from breedinfer.orchestrator.selector import BackendSelector, Resolution
from breedinfer.services.catalog import ModelInfo, build_catalog, load_model_info
from breedinfer.services.config import OrchestratorConfig
from breedinfer.services.status_store import StatusStore


class Orchestrator:
    """
    Public surface of breed inference. Build one per process and share it.

    predict_breed / detect_species always return a result; the only error a
    caller can see is ImageDecodeError when the local runtime needs pixels
    and the payload is not an image.
    """

    def __init__(
        self,
        config: OrchestratorConfig | None = None,
        status_store: StatusStore | None = None,
        runtime: TensorRuntime | None = None,
        remote: HttpInferenceClient | None = None,
        rng: random.Random | None = None,
        sleep: Callable[[float], None] = time.sleep,
        probe_on_init: bool = True,
    ):
        self.config = config or OrchestratorConfig.from_env()
        self.status = status_store or StatusStore()

        self.model_info: Optional[ModelInfo] = load_model_info(self.config.model_info_path, self.status)
        self.catalog: tuple[str, ...] = build_catalog(self.model_info, self.status)
        self._info = self.model_info or ModelInfo()

        self.runtime = runtime or probe_runtime(self.status)
        self.remote = remote or HttpInferenceClient(
            self.status,
            base_url=self.config.service_url,
            health_timeout=self.config.health_timeout,
            predict_timeout=self.config.predict_timeout,
        )
        self.mock = MockPredictor(self.status, self.catalog, rng=rng)
        self.selector = BackendSelector(self.config, self.remote, self.runtime, self.status, sleep=sleep)

        self.status.log(
            f"orchestrator: variant={self.config.variant} breeds={len(self.catalog)} "
            f"runtime={self.runtime.name}"
        )
        if probe_on_init:
            self.selector.resolve_backend()

    # ── backend state ──────────────────────────────────────────────────────

    @property
    def backend(self) -> BackendState:
        return self.selector.resolve_backend()

    def force_reprobe(self) -> BackendState:
        return self.selector.force_reprobe()

    def is_model_available(self) -> bool:
        return self.backend in (BackendState.REMOTE_ACTIVE, BackendState.LOCAL_ACTIVE)

    def close(self):
        self.remote.close()

    def backend_status(self) -> dict:
        return {
            "backend": self.selector.state.value,
            "variant": self.config.variant,
            "breeds": len(self.catalog),
            "runtime": self.runtime.name,
            "service_url": self.config.service_url,
            "onnx_model": str(self.config.onnx_model_path),
            "onnx_model_present": self.config.onnx_model_path.exists(),
            "pth_model_present": self.config.pth_model_path.exists(),
            "model_info_loaded": self.model_info is not None,
        }

    # ── public operations ──────────────────────────────────────────────────

    def predict_breed(self, image_bytes: bytes) -> list[Prediction]:
        resolution = self._resolved()
        try:
            if resolution.state is BackendState.REMOTE_ACTIVE:
                return self.remote.predict(image_bytes)
            if resolution.state is BackendState.LOCAL_ACTIVE:
                return self._predict_local(image_bytes, resolution.session)
        except errors.ImageDecodeError as e:
            self.status.set_error(e.code, str(e))
            raise
        except Exception as e:
            self._fallback_note("predict_breed", e)
        return self.mock.predict(image_bytes)

    def detect_species(self, image_bytes: bytes) -> SpeciesResult:
        state = self.backend
        if state is BackendState.MOCK_ACTIVE:
            return DEFAULT_SPECIES

        if state is BackendState.REMOTE_ACTIVE:
            try:
                return self.remote.detect_species(image_bytes)
            except Exception as e:
                self._fallback_note("detect_species", e)

        # no dedicated species model: derive from the breed ranking
        try:
            return derive_species(self.predict_breed(image_bytes))
        except errors.ImageDecodeError:
            raise
        except Exception as e:
            self._fallback_note("detect_species", e)
            return DEFAULT_SPECIES

    def is_crossbreed(self, predictions: Sequence[Prediction]) -> bool:
        """Heuristic: top confidence < 0.7 and within 0.2 of the runner-up. Not a model output."""
        return is_crossbreed(predictions)

    def generate_heatmap(self, image_bytes: bytes, predictions: Sequence[Prediction] | None = None) -> Heatmap | None:
        """Best effort; None means no visualisation is available."""
        state = self.backend
        try:
            if state is BackendState.LOCAL_ACTIVE:
                return heatmap.render_overlay(image_bytes)
            return heatmap.uniform_grid(self._info.input_size)
        except Exception as e:
            self.status.log(f"orchestrator: heatmap unavailable: {type(e).__name__}: {e}")
        return None

    # ── internals ──────────────────────────────────────────────────────────

    def _resolved(self) -> Resolution:
        self.selector.resolve_backend()
        return self.selector.resolution

    def _predict_local(self, image_bytes: bytes, session) -> list[Prediction]:
        if session is None:
            raise errors.BackendUnavailableError("no runtime session")
        if self.config.normalize:
            tensor = preprocess(image_bytes, self._info.input_size, self._info.mean, self._info.std)
        else:
            tensor = preprocess(image_bytes, self._info.input_size)
        output = self.runtime.run(session, tensor)
        preds = rank(output, self.catalog, self.config.rank_mode)
        if not preds:
            raise errors.BackendUnavailableError("runtime returned no scores")
        self.status.log(f"orchestrator: local top={preds[0].breed} ({preds[0].confidence:.2f})")
        return preds

    def _fallback_note(self, op: str, e: Exception):
        code = getattr(e, "code", errors.ERR_UNKNOWN)
        self.status.set_error(code, f"{op} falling back: {type(e).__name__}: {e}")
