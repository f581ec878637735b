from pydantic import BaseModel
from typing import Optional

class HealthOut(BaseModel):
    status: Optional[str] = None
    model_loaded: bool = False

class PredictionOut(BaseModel):
    breed: str
    confidence: float

class PredictOut(BaseModel):
    predictions: list[PredictionOut]

class SpeciesOut(BaseModel):
    # service may omit either field; client fills cattle_or_buffalo / 0.85
    species: Optional[str] = None
    confidence: Optional[float] = None
