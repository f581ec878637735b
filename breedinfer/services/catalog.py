"""
Breed catalog + model metadata.

model_info.json (written next to the exported model) looks like:
  {"classes": [...], "mean": [r, g, b], "std": [r, g, b], "input_size": [224, 224]}

Class order in "classes" is the order of the model's output vector.
"""
import json
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

IMAGENET_MEAN = [0.485, 0.456, 0.406]
IMAGENET_STD = [0.229, 0.224, 0.225]
DEFAULT_INPUT_SIZE = 224

DEFAULT_BREEDS = (
    "Alambadi", "Amritmahal", "Ayrshire", "Banni", "Bargur", "Bhadawari",
    "Brown_Swiss", "Dangi", "Deoni", "Gir", "Guernsey", "Hallikar",
    "Hariana", "Holstein_Friesian", "Jaffrabadi", "Jersey", "Kangayam",
    "Kankrej", "Kasargod", "Kenkatha", "Kherigarh", "Khillari",
    "Krishna_Valley", "Malnad_gidda", "Mehsana", "Murrah", "Nagori",
    "Nagpuri", "Nili_Ravi", "Nimari", "Ongole", "Pulikulam", "Rathi",
    "Red_Dane", "Red_Sindhi", "Sahiwal", "Surti", "Tharparkar", "Toda",
    "Umblachery", "Vechur",
)


class ModelInfo(BaseModel):
    classes: list[str] = Field(default_factory=list)
    mean: list[float] = Field(default_factory=lambda: list(IMAGENET_MEAN), min_length=3, max_length=3)
    std: list[float] = Field(default_factory=lambda: list(IMAGENET_STD), min_length=3, max_length=3)
    input_size: int = DEFAULT_INPUT_SIZE

    @field_validator("input_size", mode="before")
    @classmethod
    def _first_dim(cls, v):
        # exporters write either 224 or [224, 224]
        if isinstance(v, (list, tuple)):
            return v[0] if v else DEFAULT_INPUT_SIZE
        return v

    @field_validator("std")
    @classmethod
    def _non_zero_std(cls, v):
        if any(s == 0 for s in v):
            raise ValueError("std entries must be non-zero")
        return v


def load_model_info(path: Path, status_store=None) -> Optional[ModelInfo]:
    """Read model_info.json; None when missing or unreadable."""
    path = Path(path)
    if not path.is_file():
        return None
    try:
        info = ModelInfo.model_validate(json.loads(path.read_text(encoding="utf-8")))
    except (OSError, ValueError, ValidationError) as e:
        if status_store is not None:
            status_store.log(f"catalog: failed to load {path.name}: {e}")
        return None
    if status_store is not None:
        status_store.log(f"catalog: loaded model info, {len(info.classes)} breeds")
    return info


def build_catalog(info: Optional[ModelInfo], status_store=None) -> tuple[str, ...]:
    if info is not None and info.classes:
        return tuple(info.classes)
    if status_store is not None:
        status_store.log("catalog: using default breed list")
    return DEFAULT_BREEDS
