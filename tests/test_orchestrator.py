"""
End-to-end tests of the Orchestrator facade in each backend state.
"""

import httpx
import numpy as np
import pytest

from breedinfer.orchestrator.contracts import BackendState, Prediction
from breedinfer.orchestrator.errors import ImageDecodeError
from breedinfer.orchestrator.facade import Orchestrator
from breedinfer.services.config import VARIANT_SIMPLE


def service(health=None, predict=None, species=None):
    """MockTransport handler routing by path; None means 500."""
    routes = {"/health": health, "/predict": predict, "/species": species}

    def handler(request):
        body = routes.get(request.url.path)
        if body is None:
            return httpx.Response(500, json={"detail": "boom"})
        return httpx.Response(200, json=body)
    return handler


@pytest.fixture
def build(config, status, make_remote, make_runtime, rng, sleep, write_model_info):
    write_model_info()

    def _build(handler=None, runtime=None):
        remote = make_remote(handler or service())
        return Orchestrator(config=config, status_store=status, runtime=runtime or make_runtime(),
                            remote=remote, rng=rng, sleep=sleep)
    return _build


class TestMockActive:
    def test_predict_single_full_confidence(self, build, image, catalog):
        orch = build()
        assert orch.backend is BackendState.MOCK_ACTIVE
        for _ in range(2):
            preds = orch.predict_breed(image)
            assert len(preds) == 1
            assert preds[0].confidence == 1.0
            assert preds[0].breed in catalog

    def test_predict_never_fails_on_garbage(self, build):
        assert build().predict_breed(b"\x00garbage")[0].confidence == 1.0

    def test_species_default(self, build, image):
        result = build().detect_species(image)
        assert (result.species, result.confidence) == ("cattle_or_buffalo", 0.85)

    def test_heatmap_is_uniform_grid(self, build, image):
        hm = build().generate_heatmap(image)
        assert hm.kind == "grid"
        assert (hm.width, hm.height) == (224, 224)
        assert set(hm.data) == {0.5}

    def test_not_model_available(self, build):
        orch = build()
        assert orch.is_model_available() is False
        assert orch.backend_status()["backend"] == "mock_active"


class TestLocalActive:
    def test_multi_label_ranking(self, build, image, touch_onnx):
        touch_onnx()
        orch = build()
        assert orch.backend is BackendState.LOCAL_ACTIVE
        preds = orch.predict_breed(image)
        assert [p.breed for p in preds] == [
            "Sahiwal (Cattle)", "Murrah (Buffalo)", "Gir (Cattle)", "Holstein (Cattle)", "Mehsana (Buffalo)",
        ]
        assert preds[0].confidence == pytest.approx(0.6)

    def test_tensor_uses_model_info(self, config, status, make_remote, make_runtime, rng, sleep,
                                    write_model_info, touch_onnx, make_png):
        write_model_info(mean=[0, 0, 0], std=[0.5, 0.5, 0.5], input_size=[32, 32])
        touch_onnx()
        runtime = make_runtime()
        orch = Orchestrator(config=config, status_store=status, runtime=runtime,
                            remote=make_remote(service()), rng=rng, sleep=sleep)
        orch.predict_breed(make_png((51, 51, 51), size=(32, 32)))
        tensor = runtime.tensors[0]
        assert tensor.shape == (1, 3, 32, 32)
        np.testing.assert_allclose(tensor, (51 / 255.0) / 0.5, atol=1e-6)

    def test_simple_variant_single_label(self, build, config, image, make_runtime, touch_onnx):
        touch_onnx()
        config.variant = VARIANT_SIMPLE
        runtime = make_runtime()
        preds = build(runtime=runtime).predict_breed(image)
        assert preds == [Prediction("Sahiwal (Cattle)", 1.0)]
        # no mean/std: raw [0, 1] scaling
        assert runtime.tensors[0].min() >= 0.0

    def test_species_derived_from_top_breed(self, build, image, make_runtime, touch_onnx):
        touch_onnx()
        orch = build(runtime=make_runtime(scores=[0.1, 0.1, 0.1, 0.6, 0.1]))
        result = orch.detect_species(image)
        assert result.species == "buffalo"
        assert result.confidence == pytest.approx(0.6)

    def test_undecodable_image_surfaces(self, build, touch_onnx, status):
        touch_onnx()
        orch = build()
        with pytest.raises(ImageDecodeError):
            orch.predict_breed(b"not an image")
        with pytest.raises(ImageDecodeError):
            orch.detect_species(b"not an image")
        assert status.last_error.startswith("IMAGE_DECODE")

    def test_runtime_failure_falls_back_to_mock(self, build, image, make_runtime, touch_onnx, catalog):
        touch_onnx()
        preds = build(runtime=make_runtime(fail_run=True)).predict_breed(image)
        assert len(preds) == 1 and preds[0].confidence == 1.0
        assert preds[0].breed in catalog

    def test_empty_output_falls_back_to_mock(self, build, image, make_runtime, touch_onnx):
        touch_onnx()
        preds = build(runtime=make_runtime(scores=[])).predict_breed(image)
        assert len(preds) == 1 and preds[0].confidence == 1.0

    def test_heatmap_overlay(self, build, image, touch_onnx):
        touch_onnx()
        hm = build().generate_heatmap(image)
        assert hm.kind == "encoded_image"
        assert hm.data.startswith(b"\x89PNG")

    def test_heatmap_none_on_bad_image(self, build, touch_onnx):
        touch_onnx()
        assert build().generate_heatmap(b"junk") is None


class TestRemoteActive:
    def test_predict_and_species(self, build, image, touch_pth):
        touch_pth()
        orch = build(service(
            health={"model_loaded": True},
            predict={"predictions": [{"breed": "Gir", "confidence": 0.55}, {"breed": "Sahiwal", "confidence": 0.45}]},
            species={"species": "cattle", "confidence": 0.91},
        ))
        assert orch.backend is BackendState.REMOTE_ACTIVE
        preds = orch.predict_breed(image)
        assert preds == [Prediction("Gir", 0.55), Prediction("Sahiwal", 0.45)]
        assert orch.is_crossbreed(preds) is True
        assert orch.detect_species(image).confidence == pytest.approx(0.91)
        assert orch.is_model_available()

    def test_predict_failure_falls_back_to_mock(self, build, image, touch_pth, status):
        touch_pth()
        orch = build(service(health={"model_loaded": True}))
        preds = orch.predict_breed(image)
        assert len(preds) == 1 and preds[0].confidence == 1.0
        assert status.last_error.startswith("REMOTE_CALL")

    def test_species_failure_derives_from_breed(self, build, image, touch_pth):
        touch_pth()
        orch = build(service(
            health={"model_loaded": True},
            predict={"predictions": [{"breed": "Murrah", "confidence": 0.7}]},
        ))
        result = orch.detect_species(image)
        assert (result.species, result.confidence) == ("buffalo", 0.7)

    def test_empty_remote_predictions_give_undecided_species(self, build, image, touch_pth):
        touch_pth()
        orch = build(service(health={"model_loaded": True}, predict={"predictions": []}))
        assert orch.predict_breed(image) == []
        assert orch.detect_species(image).species == "cattle_or_buffalo"

    def test_unsorted_remote_predictions_are_ranked(self, build, image, touch_pth):
        touch_pth()
        confs = [("Gir", 0.1), ("Murrah", 0.5), ("Sahiwal", 0.4), ("Ongole", 0.01), ("Deoni", 0.01), ("Toda", 0.01)]
        orch = build(service(
            health={"model_loaded": True},
            predict={"predictions": [{"breed": b, "confidence": c} for b, c in confs]},
        ))
        preds = orch.predict_breed(image)
        assert [p.breed for p in preds] == ["Murrah", "Sahiwal", "Gir", "Ongole", "Deoni"]
        assert orch.is_crossbreed(preds) is True
        result = orch.detect_species(image)
        assert (result.species, result.confidence) == ("buffalo", 0.5)

    def test_heatmap_grid(self, build, image, touch_pth):
        touch_pth()
        hm = build(service(health={"model_loaded": True})).generate_heatmap(image)
        assert hm.kind == "grid"
        assert (hm.width, hm.height) == (224, 224)
        assert len(hm.data) == 224 * 224

    def test_image_is_not_decoded_locally(self, build, touch_pth):
        touch_pth()
        orch = build(service(health={"model_loaded": True},
                             predict={"predictions": [{"breed": "Gir", "confidence": 0.8}]}))
        assert orch.predict_breed(b"opaque bytes")[0].breed == "Gir"


class TestCrossbreed:
    def test_examples(self, build):
        orch = build()
        assert orch.is_crossbreed([Prediction("a", 0.5), Prediction("b", 0.4)]) is True
        assert orch.is_crossbreed([Prediction("a", 0.9), Prediction("b", 0.1)]) is False
        assert orch.is_crossbreed([Prediction("a", 0.4)]) is False
        assert orch.is_crossbreed([]) is False


class TestClose:
    def test_close_releases_http_client(self, build):
        orch = build()
        orch.close()
        assert orch.remote._client.is_closed


class TestReprobe:
    def test_reprobe_switches_backend(self, build, image, touch_onnx):
        orch = build()
        assert orch.backend is BackendState.MOCK_ACTIVE
        touch_onnx()
        assert orch.force_reprobe() is BackendState.LOCAL_ACTIVE
        assert len(orch.predict_breed(image)) == 5

    def test_lazy_probe(self, config, status, make_remote, make_runtime, rng, sleep):
        orch = Orchestrator(config=config, status_store=status, runtime=make_runtime(),
                            remote=make_remote(service()), rng=rng, sleep=sleep, probe_on_init=False)
        assert orch.selector.state is BackendState.UNPROBED
        orch.predict_breed(b"x")
        assert orch.selector.state is BackendState.MOCK_ACTIVE
