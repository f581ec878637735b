"""
Attention visualisations.

No gradient-based attribution is computed here: the overlay marks the
central region the classifiers are trained to focus on, and the grid is a
uniform placeholder sized to the model input.
"""
import cv2
import numpy as np

from breedinfer.adapters.vision.preprocess import decode_rgb
from breedinfer.orchestrator.contracts import EncodedImage, HeatmapGrid

OVERLAY_SIZE = 224
GRID_FILL = 0.5


def render_overlay(image_bytes: bytes, size: int = OVERLAY_SIZE) -> EncodedImage:
    rgb = decode_rgb(image_bytes)
    bgr = cv2.cvtColor(cv2.resize(rgb, (size, size)), cv2.COLOR_RGB2BGR)

    # outer box red @ 0.3, inner box yellow @ 0.2 (same proportions at any size)
    outer = int(size * 50 / 224)
    inner = int(size * 60 / 224)
    layer = bgr.copy()
    cv2.rectangle(layer, (outer, outer), (size - outer, size - outer), (0, 0, 255), thickness=-1)
    bgr = cv2.addWeighted(layer, 0.3, bgr, 0.7, 0)
    layer = bgr.copy()
    cv2.rectangle(layer, (inner, inner), (size - inner, size - inner), (0, 255, 255), thickness=-1)
    bgr = cv2.addWeighted(layer, 0.2, bgr, 0.8, 0)

    label = "AI Focus"
    (tw, th), _ = cv2.getTextSize(label, cv2.FONT_HERSHEY_SIMPLEX, 0.4, 1)
    cv2.putText(bgr, label, ((size - tw) // 2, (size + th) // 2),
                cv2.FONT_HERSHEY_SIMPLEX, 0.4, (255, 255, 255), 1, cv2.LINE_AA)

    ok, buf = cv2.imencode(".png", bgr)
    if not ok:
        raise ValueError("png encoding failed")
    return EncodedImage(data=bytes(buf))


def uniform_grid(size: int = OVERLAY_SIZE, fill: float = GRID_FILL) -> HeatmapGrid:
    return HeatmapGrid(width=size, height=size, data=np.full(size * size, fill, dtype=np.float32).tolist())
