"""Decide what the shopper is pointing the camera at."""

from __future__ import annotations

from typing import Sequence

import numpy as np

from grocersee.common.logging import get_logger
from grocersee.errors import ConfigurationError
from grocersee.labels import CategoryMap
from grocersee.models import (
    CategorySummary,
    Detection,
    FrameResult,
    NoDetection,
    SingleFocus,
)

log = get_logger("grocersee.focus")


class FocusAnalyzer:
    """Turn clustered detections into a frame result.

    Each cluster is scored by its salience, the sum over its members of
    (box area / frame area) x score. A frame with a single detection, or
    whose most salient cluster passes the focus threshold and holds only one
    kind of item, is reported as that item. Anything else is summarised by
    the categories of its confident detections.
    """

    def __init__(
        self,
        frame_width: int,
        frame_height: int,
        category_map: CategoryMap,
        focus_threshold: float = 0.3,
        confidence_threshold: float = 0.7,
    ) -> None:
        if frame_width <= 0 or frame_height <= 0:
            raise ConfigurationError(
                f"Frame dimensions must be positive, got {frame_width}x{frame_height}"
            )
        self.frame_width = frame_width
        self.frame_height = frame_height
        self.category_map = category_map
        self.focus_threshold = focus_threshold
        self.confidence_threshold = confidence_threshold

    @property
    def frame_area(self) -> float:
        return float(self.frame_width * self.frame_height)

    def salience(self, detection: Detection) -> float:
        return detection.area / self.frame_area * detection.score

    def cluster_salience(
        self,
        detections: Sequence[Detection],
        cluster_labels: Sequence[int] | np.ndarray,
    ) -> dict[int, float]:
        """Accumulate salience per cluster, keyed in first-seen order."""
        scores: dict[int, float] = {}
        for detection, label in zip(detections, cluster_labels):
            label = int(label)
            scores[label] = scores.get(label, 0.0) + self.salience(detection)
        return scores

    def analyze(
        self,
        detections: Sequence[Detection],
        cluster_labels: Sequence[int] | np.ndarray,
    ) -> FrameResult:
        """Analyze one frame.

        Args:
            detections: Surviving detections.
            cluster_labels: Cluster label for each detection.

        Returns:
            ``NoDetection``, ``SingleFocus`` or ``CategorySummary``.
        """
        if len(detections) != len(cluster_labels):
            raise ValueError(
                f"Got {len(detections)} detections but {len(cluster_labels)} cluster labels"
            )

        if not detections:
            return NoDetection()

        if len(detections) == 1:
            return SingleFocus(item=detections[0].label)

        scores = self.cluster_salience(detections, cluster_labels)

        # Strictly greater, so ties keep the first cluster seen
        dominant: int | None = None
        max_score = 0.0
        for label, score in scores.items():
            if score > max_score:
                max_score = score
                dominant = label

        if dominant is not None and max_score > self.focus_threshold:
            items = {
                d.label for d, label in zip(detections, cluster_labels) if int(label) == dominant
            }
            if len(items) == 1:
                log.debug("dominant_cluster_focus", cluster=dominant, salience=round(max_score, 4))
                return SingleFocus(item=items.pop())

        categories: dict[str, None] = {}
        for detection in detections:
            if detection.score > self.confidence_threshold:
                categories.setdefault(self.category_map.category_of(detection.label))

        return CategorySummary(categories=tuple(categories))
