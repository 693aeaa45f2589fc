"""Greedy non-maximum suppression."""

from __future__ import annotations

import numpy as np

from grocersee.common.logging import get_logger
from grocersee.config import SuppressionProfile
from grocersee.errors import ConfigurationError

log = get_logger("grocersee.suppression")


def compute_iou(box: np.ndarray, others: np.ndarray) -> np.ndarray:
    """Compute IoU between one box and many.

    Corners are normalised with min/max first, so the result does not depend
    on whether boxes are stored ``xyxy`` or ``yxyx`` (as long as both sides
    use the same order). A zero-area union yields 0.

    Args:
        box: Array of shape (4,).
        others: Array of shape (N, 4).

    Returns:
        IoU values, shape (N,).
    """
    box = np.asarray(box, dtype=np.float64)
    others = np.asarray(others, dtype=np.float64).reshape(-1, 4)

    a_lo = np.minimum(box[:2], box[2:])
    a_hi = np.maximum(box[:2], box[2:])
    b_lo = np.minimum(others[:, :2], others[:, 2:])
    b_hi = np.maximum(others[:, :2], others[:, 2:])

    inter_lo = np.maximum(a_lo, b_lo)
    inter_hi = np.minimum(a_hi, b_hi)
    inter = np.prod(np.clip(inter_hi - inter_lo, 0.0, None), axis=1)

    area_a = np.prod(a_hi - a_lo)
    area_b = np.prod(b_hi - b_lo, axis=1)
    union = area_a + area_b - inter

    iou = np.zeros_like(inter)
    np.divide(inter, union, out=iou, where=union > 0)
    return iou


def non_max_suppression(
    boxes: np.ndarray,
    scores: np.ndarray,
    max_output: int,
    iou_threshold: float,
    score_threshold: float,
) -> np.ndarray:
    """Select boxes by greedy non-maximum suppression.

    Candidates scoring below ``score_threshold`` are dropped up front. The
    rest are visited best-first (a stable sort, so equal scores keep their
    input order); each kept box removes every remaining box overlapping it
    with IoU >= ``iou_threshold``. Selection stops after ``max_output`` boxes.

    Args:
        boxes: Array of shape (N, 4) in corner form.
        scores: Array of shape (N,).
        max_output: Maximum number of boxes to keep.
        iou_threshold: Overlap at or above which a box is suppressed.
        score_threshold: Minimum score a box needs to be considered.

    Returns:
        Indices into ``boxes`` of the kept boxes, best first.
    """
    boxes = np.asarray(boxes).reshape(-1, 4)
    scores = np.asarray(scores).reshape(-1)
    if boxes.shape[0] != scores.shape[0]:
        raise ConfigurationError(
            f"Got {boxes.shape[0]} boxes but {scores.shape[0]} scores"
        )

    candidates = np.flatnonzero(scores >= score_threshold)
    if candidates.size == 0 or max_output <= 0:
        return np.zeros((0,), dtype=np.int64)

    order = candidates[np.argsort(-scores[candidates], kind="stable")]

    keep: list[int] = []
    while order.size > 0 and len(keep) < max_output:
        best = int(order[0])
        keep.append(best)
        if order.size == 1:
            break

        rest = order[1:]
        overlaps = compute_iou(boxes[best], boxes[rest])
        order = rest[overlaps < iou_threshold]

    return np.asarray(keep, dtype=np.int64)


class Suppressor:
    """Non-max suppression bound to one parameter profile."""

    def __init__(self, profile: SuppressionProfile, name: str = "custom") -> None:
        if profile.max_output <= 0:
            raise ConfigurationError(f"max_output must be positive, got {profile.max_output}")
        if not 0.0 <= profile.iou_threshold <= 1.0:
            raise ConfigurationError(f"iou_threshold must be in [0, 1], got {profile.iou_threshold}")
        if not 0.0 <= profile.score_threshold <= 1.0:
            raise ConfigurationError(
                f"score_threshold must be in [0, 1], got {profile.score_threshold}"
            )

        self.profile = profile
        self.name = name

    def __call__(self, boxes: np.ndarray, scores: np.ndarray) -> np.ndarray:
        keep = non_max_suppression(
            boxes,
            scores,
            max_output=self.profile.max_output,
            iou_threshold=self.profile.iou_threshold,
            score_threshold=self.profile.score_threshold,
        )
        log.debug(
            "nms_complete",
            profile=self.name,
            candidates=int(np.asarray(scores).size),
            kept=int(keep.size),
        )
        return keep
