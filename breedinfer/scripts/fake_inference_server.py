"""
Fake inference service for exercising HttpInferenceClient without a model.

Serves the same contract as the real prediction microservice on port 5001:
  GET /health, POST /predict, POST /species  (multipart field "image")

Flags via env:
  FAKE_MODEL_LOADED=0   report model_loaded=false (selector falls through)
  FAKE_DELAY_S=3        sleep before every answer (exercise timeouts)

Usage:
    python -m breedinfer.scripts.fake_inference_server
    PYTORCH_SERVICE_URL=http://localhost:5001 <your app>
"""

import os
import random
import time

import uvicorn
from fastapi import FastAPI, File, UploadFile

from breedinfer.orchestrator.ranking import derive_species
from breedinfer.orchestrator.contracts import Prediction
from breedinfer.services.catalog import DEFAULT_BREEDS

app = FastAPI(title="fake-inference-server")

MODEL_LOADED = os.getenv("FAKE_MODEL_LOADED", "1") != "0"
DELAY_S = float(os.getenv("FAKE_DELAY_S", "0"))


def _delay():
    if DELAY_S > 0:
        time.sleep(DELAY_S)


def _fake_predictions(seed: int) -> list[Prediction]:
    rng = random.Random(seed)
    scores = sorted((rng.random() for _ in range(5)), reverse=True)
    total = sum(scores)
    breeds = rng.sample(DEFAULT_BREEDS, 5)
    return [Prediction(breed=b, confidence=round(s / total, 4)) for b, s in zip(breeds, scores)]


@app.get("/health")
def health():
    _delay()
    return {"status": "ok", "model_loaded": MODEL_LOADED}


@app.post("/predict")
async def predict(image: UploadFile = File(...)):
    data = await image.read()
    _delay()
    print(f"[fake] /predict {len(data)} bytes")
    return {"predictions": [p.to_dict() for p in _fake_predictions(len(data))]}


@app.post("/species")
async def species(image: UploadFile = File(...)):
    data = await image.read()
    _delay()
    print(f"[fake] /species {len(data)} bytes")
    return derive_species(_fake_predictions(len(data))).to_dict()


if __name__ == "__main__":
    print("Fake inference server starting on http://localhost:5001")
    uvicorn.run(app, host="0.0.0.0", port=5001)
