"""
Score ranking and the signals derived from a ranked prediction list.

Both derivations are heuristics over already-ranked predictions, not model
outputs:
  is_crossbreed   low top confidence with a close runner-up
  derive_species  buffalo if the top breed name carries a buffalo fragment
"""
from typing import Sequence

import numpy as np

from breedinfer.orchestrator.contracts import (
    DEFAULT_SPECIES,
    Prediction,
    RankMode,
    SpeciesResult,
    clamp_confidence,
)

TOP_K = 5
UNKNOWN_BREED = "Unknown"

CROSSBREED_MAX_TOP = 0.7
CROSSBREED_MAX_GAP = 0.2

BUFFALO_FRAGMENTS = (
    "murrah", "mehsana", "surti", "jaffrabadi", "nili_ravi", "nili-ravi",
    "nagpuri", "bhadawari", "pandharpuri", "toda", "buffalo",
)


def rank(scores, catalog: Sequence[str], mode: RankMode = RankMode.MULTI, top_k: int = TOP_K) -> list[Prediction]:
    flat = np.asarray(scores, dtype=np.float64).reshape(-1)
    if flat.size == 0:
        return []
    # NaN sorts last; infinities keep their place but report confidence 0
    keys = np.where(np.isnan(flat), -np.inf, flat)

    # sorted() is stable, so equal scores keep catalog order
    order = sorted(range(flat.size), key=lambda i: keys[i], reverse=True)[:top_k]

    def label(i: int) -> str:
        return catalog[i] if i < len(catalog) else UNKNOWN_BREED

    if mode == RankMode.SINGLE:
        # simplified runtime path reports its top label at full confidence
        return [Prediction(breed=label(order[0]), confidence=1.0)]
    return [Prediction(breed=label(i), confidence=clamp_confidence(flat[i])) for i in order]


def rank_predictions(predictions: Sequence[Prediction], top_k: int = TOP_K) -> list[Prediction]:
    """Order already-labelled predictions (e.g. from the remote service) the same way rank() does."""
    return sorted(predictions, key=lambda p: p.confidence, reverse=True)[:top_k]


def is_crossbreed(predictions: Sequence[Prediction]) -> bool:
    try:
        if len(predictions) < 2:
            return False
        top = float(predictions[0].confidence)
        second = float(predictions[1].confidence)
    except (TypeError, ValueError, AttributeError):
        return False
    return top < CROSSBREED_MAX_TOP and (top - second) < CROSSBREED_MAX_GAP


def is_buffalo_breed(breed: str) -> bool:
    name = (breed or "").lower()
    return any(fragment in name for fragment in BUFFALO_FRAGMENTS)


def derive_species(predictions: Sequence[Prediction]) -> SpeciesResult:
    if not predictions:
        return DEFAULT_SPECIES
    top = predictions[0]
    species = "buffalo" if is_buffalo_breed(top.breed) else "cattle"
    return SpeciesResult(species=species, confidence=clamp_confidence(top.confidence) or DEFAULT_SPECIES.confidence)
