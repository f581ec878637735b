import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Literal, Union

SpeciesName = Literal["cattle", "buffalo", "cattle_or_buffalo", "non_animal"]

class BackendState(str, Enum):
    UNPROBED = "unprobed"
    REMOTE_ACTIVE = "remote_active"
    LOCAL_ACTIVE = "local_active"
    MOCK_ACTIVE = "mock_active"

class RankMode(str, Enum):
    SINGLE = "single"   # top-1 only, confidence forced to 1.0
    MULTI = "multi"     # top-5 with clamped raw scores

@dataclass(frozen=True)
class Prediction:
    breed: str
    confidence: float          # always within [0, 1]

    def to_dict(self) -> dict:
        return {"breed": self.breed, "confidence": self.confidence}

@dataclass(frozen=True)
class SpeciesResult:
    species: SpeciesName
    confidence: float

    def to_dict(self) -> dict:
        return {"species": self.species, "confidence": self.confidence}

# Heatmap is a two-case tagged union; callers match on .kind

@dataclass(frozen=True)
class EncodedImage:
    data: bytes
    media_type: str = "image/png"
    kind: Literal["encoded_image"] = field(default="encoded_image", init=False)

@dataclass(frozen=True)
class HeatmapGrid:
    width: int
    height: int
    data: list[float]
    kind: Literal["grid"] = field(default="grid", init=False)

    def to_dict(self) -> dict:
        return {"width": self.width, "height": self.height, "data": self.data}

Heatmap = Union[EncodedImage, HeatmapGrid]

DEFAULT_SPECIES = SpeciesResult(species="cattle_or_buffalo", confidence=0.85)


def clamp_confidence(value) -> float:
    """Coerce a raw score into [0, 1]; NaN, infinities and garbage become 0.0."""
    try:
        v = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(v):
        return 0.0
    return max(0.0, min(1.0, v))
