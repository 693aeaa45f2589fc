"""Feature vectors for clustering detections."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import numpy as np

from grocersee.errors import ConfigurationError
from grocersee.models import Detection

FEATURE_DIM = 5


@dataclass(frozen=True)
class FeatureWeights:
    """Emphasis applied to each feature group."""

    position: float = 1.5
    size: float = 2.0
    score: float = 1.0


class FeatureBuilder:
    """Map detections to ``[cx', cy', w', h', score]`` vectors.

    Centre and size are normalised by the frame dimensions, then scaled by
    the position and size weights.
    """

    def __init__(
        self,
        frame_width: int,
        frame_height: int,
        weights: FeatureWeights | None = None,
    ) -> None:
        if frame_width <= 0 or frame_height <= 0:
            raise ConfigurationError(
                f"Frame dimensions must be positive, got {frame_width}x{frame_height}"
            )
        self.frame_width = frame_width
        self.frame_height = frame_height
        self.weights = weights or FeatureWeights()

    def build(self, detections: Sequence[Detection]) -> np.ndarray:
        """Build an ``(N, 5)`` feature matrix, one row per detection."""
        if not detections:
            return np.zeros((0, FEATURE_DIM), dtype=np.float64)

        boxes = np.array([d.box for d in detections], dtype=np.float64)
        scores = np.array([d.score for d in detections], dtype=np.float64)

        cx = (boxes[:, 0] + boxes[:, 2]) / 2
        cy = (boxes[:, 1] + boxes[:, 3]) / 2
        w = np.abs(boxes[:, 2] - boxes[:, 0])
        h = np.abs(boxes[:, 3] - boxes[:, 1])

        wp, ws, wsc = self.weights.position, self.weights.size, self.weights.score
        return np.stack(
            [
                cx / self.frame_width * wp,
                cy / self.frame_height * wp,
                w / self.frame_width * ws,
                h / self.frame_height * ws,
                scores * wsc,
            ],
            axis=1,
        )
