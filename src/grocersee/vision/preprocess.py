"""Frame preprocessing for the grocery detector."""

from __future__ import annotations

import numpy as np
from PIL import Image


def preprocess(
    image: Image.Image | np.ndarray,
    input_size: tuple[int, int] = (640, 640),
) -> np.ndarray:
    """Prepare an RGB frame for inference.

    The frame is padded with black on the bottom and right to a square,
    bilinear-resized to the model input size and scaled to [0, 1].

    Args:
        image: RGB image, as a PIL image or an (H, W, 3) uint8 array.
        input_size: Model input (width, height).

    Returns:
        (1, H, W, 3) float32 tensor.
    """
    if isinstance(image, np.ndarray):
        image = Image.fromarray(np.ascontiguousarray(image, dtype=np.uint8))
    if image.mode != "RGB":
        image = image.convert("RGB")

    w, h = image.size
    max_size = max(w, h)

    padded = Image.new("RGB", (max_size, max_size), color=(0, 0, 0))
    padded.paste(image, (0, 0))

    target_w, target_h = input_size
    resized = padded.resize((target_w, target_h), resample=Image.Resampling.BILINEAR)

    tensor = np.asarray(resized, dtype=np.float32) / 255.0
    return np.expand_dims(tensor, 0)
