import random
from typing import Sequence

from breedinfer.orchestrator.contracts import Prediction

# Used when the catalog itself is empty
FALLBACK_BREEDS = (
    "Gir", "Sahiwal", "Murrah", "Holstein_Friesian", "Jersey",
    "Kankrej", "Tharparkar", "Red_Sindhi", "Hariana", "Ongole",
)


def mock_prediction(catalog: Sequence[str], rng: random.Random | None = None) -> list[Prediction]:
    """One breed picked uniformly from the catalog, reported at confidence 1.0."""
    breeds = [b for b in (catalog or ()) if b] or list(FALLBACK_BREEDS)
    chooser = rng or random
    return [Prediction(breed=chooser.choice(breeds), confidence=1.0)]


class MockPredictor:
    def __init__(self, status_store, catalog: Sequence[str], rng: random.Random | None = None):
        self.status = status_store
        self.catalog = tuple(catalog)
        self._rng = rng

    def predict(self, image_bytes: bytes | None = None) -> list[Prediction]:
        # image is ignored: mock output never depends on (or fails on) the input
        preds = mock_prediction(self.catalog, self._rng)
        self.status.log(f"mock_predictor: {preds[0].breed}")
        return preds
