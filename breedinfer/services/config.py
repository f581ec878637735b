"""
Process-wide configuration for the breed-inference orchestrator.

Values come from the environment (optionally seeded from a .env file).
Defaults mirror the reference deployment:
  models/                    model artifacts next to the package
  model.onnx                 converted model for the local runtime
  best_model_...pth          legacy artifact; its presence means "try the remote service"
  http://localhost:5001      remote inference service
"""
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from breedinfer.orchestrator.contracts import RankMode

DEFAULT_MODELS_DIR = Path(__file__).resolve().parents[2] / "models"

VARIANT_FULL = "full"
VARIANT_SIMPLE = "simple"


@dataclass
class OrchestratorConfig:
    models_dir: Path = DEFAULT_MODELS_DIR
    onnx_model_name: str = "model.onnx"
    pth_model_name: str = "best_model_convnext_base_acc0.7007.pth"
    model_info_name: str = "model_info.json"
    service_url: str = "http://localhost:5001"
    health_retries: int = 3
    health_timeout: float = 2.0
    health_backoff: float = 1.0
    predict_timeout: float = 30.0
    variant: str = VARIANT_FULL

    @property
    def onnx_model_path(self) -> Path:
        return Path(self.models_dir) / self.onnx_model_name

    @property
    def pth_model_path(self) -> Path:
        return Path(self.models_dir) / self.pth_model_name

    @property
    def model_info_path(self) -> Path:
        return Path(self.models_dir) / self.model_info_name

    @property
    def rank_mode(self) -> RankMode:
        # the simple variant reports a single label at full confidence
        return RankMode.SINGLE if self.variant == VARIANT_SIMPLE else RankMode.MULTI

    @property
    def normalize(self) -> bool:
        return self.variant != VARIANT_SIMPLE

    @classmethod
    def from_env(cls, dotenv_path: str | None = ".env") -> "OrchestratorConfig":
        if dotenv_path:
            load_dotenv(dotenv_path=dotenv_path, override=False)
        variant = os.getenv("BREED_PREDICTOR_VARIANT", VARIANT_FULL).lower()
        if variant not in (VARIANT_FULL, VARIANT_SIMPLE):
            variant = VARIANT_FULL
        return cls(
            models_dir=Path(os.getenv("BREEDINFER_MODELS_DIR", str(DEFAULT_MODELS_DIR))),
            onnx_model_name=os.getenv("MODEL_NAME_ONNX", "model.onnx"),
            pth_model_name=os.getenv("MODEL_NAME_PTH", "best_model_convnext_base_acc0.7007.pth"),
            model_info_name=os.getenv("MODEL_INFO_NAME", "model_info.json"),
            service_url=os.getenv("PYTORCH_SERVICE_URL", "http://localhost:5001"),
            health_retries=int(os.getenv("HEALTH_RETRIES", "3")),
            health_timeout=float(os.getenv("HEALTH_TIMEOUT_S", "2.0")),
            health_backoff=float(os.getenv("HEALTH_BACKOFF_S", "1.0")),
            predict_timeout=float(os.getenv("PREDICT_TIMEOUT_S", "30.0")),
            variant=variant,
        )
