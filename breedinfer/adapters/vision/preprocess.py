"""
Image bytes -> model input tensor.

  decode (any format OpenCV reads) -> drop alpha -> RGB
  -> resize to size x size -> /255 -> optional (v - mean[c]) / std[c]
  -> channel-first float32 [1, 3, size, size]
"""
from typing import Sequence

import cv2
import numpy as np

from breedinfer.orchestrator.errors import ImageDecodeError


def decode_rgb(image_bytes: bytes) -> np.ndarray:
    """Decode to an HxWx3 uint8 RGB array. IMREAD_COLOR drops alpha and expands grayscale."""
    if not image_bytes:
        raise ImageDecodeError("empty image payload")
    arr = np.frombuffer(image_bytes, dtype=np.uint8)
    try:
        bgr = cv2.imdecode(arr, cv2.IMREAD_COLOR)
    except cv2.error as e:
        raise ImageDecodeError(f"cannot decode image: {e}") from e
    if bgr is None:
        raise ImageDecodeError("cannot decode image: unsupported or corrupt data")
    return cv2.cvtColor(bgr, cv2.COLOR_BGR2RGB)


def preprocess(
    image_bytes: bytes,
    target_size: int,
    mean: Sequence[float] | None = None,
    std: Sequence[float] | None = None,
) -> np.ndarray:
    if target_size is None or int(target_size) <= 0:
        raise ImageDecodeError(f"invalid resize target: {target_size}")
    size = int(target_size)

    rgb = decode_rgb(image_bytes)
    if rgb.shape[0] != size or rgb.shape[1] != size:
        rgb = cv2.resize(rgb, (size, size), interpolation=cv2.INTER_LINEAR)

    pixels = rgb.astype(np.float32) / 255.0
    if mean is not None and std is not None:
        pixels = (pixels - np.asarray(mean, dtype=np.float32)) / np.asarray(std, dtype=np.float32)

    # HWC -> CHW, add batch dim
    return np.ascontiguousarray(pixels.transpose(2, 0, 1)[np.newaxis, ...], dtype=np.float32)
