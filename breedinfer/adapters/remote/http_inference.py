"""
HTTP client for the external prediction microservice.

Contract:
  GET  /health   -> {"model_loaded": bool}
  POST /predict  multipart field "image" -> {"predictions": [{"breed", "confidence"}]}
  POST /species  multipart field "image" -> {"species", "confidence"}

Every failure (timeout, transport error, non-2xx, malformed body) surfaces as
RemoteCallError so the orchestrator can fall back.

httpx timeouts bound each phase (connect, every read) separately, so a
health attempt additionally runs against one overall deadline: the body is
streamed on a worker thread and the caller stops waiting once it passes.
"""
import json
import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from dataclasses import dataclass

import httpx
from pydantic import ValidationError

from breedinfer.adapters.remote.schemas import HealthOut, PredictOut, SpeciesOut
from breedinfer.orchestrator.contracts import (
    DEFAULT_SPECIES,
    Prediction,
    SpeciesResult,
    clamp_confidence,
)
from breedinfer.orchestrator.errors import RemoteCallError
from breedinfer.orchestrator.ranking import rank_predictions

SPECIES_NAMES = ("cattle", "buffalo", "cattle_or_buffalo", "non_animal")


@dataclass(frozen=True)
class HealthStatus:
    ok: bool
    model_loaded: bool


class HttpInferenceClient:
    def __init__(
        self,
        status_store,
        base_url: str = "http://localhost:5001",
        health_timeout: float = 2.0,
        predict_timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self.status = status_store
        self.base_url = base_url.rstrip("/")
        self.health_timeout = health_timeout
        self.predict_timeout = predict_timeout
        self._client = httpx.Client(base_url=self.base_url, transport=transport)
        # an abandoned attempt may still be draining when the next one starts
        self._health_pool = ThreadPoolExecutor(max_workers=2, thread_name_prefix="health")

    def close(self):
        self._health_pool.shutdown(wait=False)
        self._client.close()

    def _request(self, method: str, path: str, timeout: float, **kwargs) -> dict:
        try:
            resp = self._client.request(method, path, timeout=timeout, **kwargs)
        except httpx.TimeoutException as e:
            raise RemoteCallError(f"{method} {path} timed out after {timeout}s") from e
        except httpx.HTTPError as e:
            raise RemoteCallError(f"{method} {path} failed: {type(e).__name__}: {e}") from e
        if not resp.is_success:
            raise RemoteCallError(f"{method} {path} -> HTTP {resp.status_code}", status_code=resp.status_code)
        return self._json_object(method, path, resp.content)

    def _json_object(self, method: str, path: str, body: bytes) -> dict:
        try:
            data = json.loads(body)
        except ValueError as e:
            raise RemoteCallError(f"{method} {path}: response is not JSON") from e
        if not isinstance(data, dict):
            raise RemoteCallError(f"{method} {path}: expected a JSON object")
        return data

    def _fetch_health(self, deadline: float) -> dict:
        timeout = self.health_timeout
        try:
            with self._client.stream("GET", "/health", timeout=timeout) as resp:
                if not resp.is_success:
                    raise RemoteCallError(f"GET /health -> HTTP {resp.status_code}", status_code=resp.status_code)
                body = b""
                for chunk in resp.iter_bytes():
                    body += chunk
                    if time.monotonic() > deadline:
                        raise RemoteCallError(f"GET /health timed out after {timeout}s (slow body)")
        except httpx.TimeoutException as e:
            raise RemoteCallError(f"GET /health timed out after {timeout}s") from e
        except httpx.HTTPError as e:
            raise RemoteCallError(f"GET /health failed: {type(e).__name__}: {e}") from e
        return self._json_object("GET", "/health", body)

    def _image_files(self, image_bytes: bytes) -> dict:
        return {"image": ("image.jpg", image_bytes, "image/jpeg")}

    def health_check(self) -> HealthStatus:
        """One attempt, bounded end to end by health_timeout. Never raises."""
        deadline = time.monotonic() + self.health_timeout
        try:
            future = self._health_pool.submit(self._fetch_health, deadline)
            data = future.result(timeout=self.health_timeout)
            health = HealthOut.model_validate(data)
        except FutureTimeout:
            self.status.log(f"http_inference: health check failed: GET /health timed out after {self.health_timeout}s")
            return HealthStatus(ok=False, model_loaded=False)
        except (RemoteCallError, ValidationError, RuntimeError) as e:
            self.status.log(f"http_inference: health check failed: {e}")
            return HealthStatus(ok=False, model_loaded=False)
        return HealthStatus(ok=True, model_loaded=health.model_loaded)

    def predict(self, image_bytes: bytes) -> list[Prediction]:
        data = self._request("POST", "/predict", timeout=self.predict_timeout,
                             files=self._image_files(image_bytes))
        try:
            out = PredictOut.model_validate(data)
        except ValidationError as e:
            raise RemoteCallError(f"malformed /predict body: {e.error_count()} errors") from e
        preds = rank_predictions(
            [Prediction(breed=p.breed, confidence=clamp_confidence(p.confidence)) for p in out.predictions]
        )
        self.status.log(f"http_inference: /predict -> {len(preds)} predictions")
        return preds

    def detect_species(self, image_bytes: bytes) -> SpeciesResult:
        data = self._request("POST", "/species", timeout=self.predict_timeout,
                             files=self._image_files(image_bytes))
        try:
            out = SpeciesOut.model_validate(data)
        except ValidationError as e:
            raise RemoteCallError(f"malformed /species body: {e.error_count()} errors") from e
        species = out.species or DEFAULT_SPECIES.species
        if species not in SPECIES_NAMES:
            raise RemoteCallError(f"unknown species '{species}'")
        confidence = clamp_confidence(out.confidence) if out.confidence else DEFAULT_SPECIES.confidence
        self.status.log(f"http_inference: /species -> {species} ({confidence:.2f})")
        return SpeciesResult(species=species, confidence=confidence)
