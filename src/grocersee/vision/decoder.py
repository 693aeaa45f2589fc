"""Decoding of raw YOLO output tensors.

The grocery detector emits a single tensor shaped ``(1, 4 + C, D)``: for
each of ``D`` candidate boxes, four box channels
``(x_center, y_center, width, height)`` followed by ``C`` per-class
confidences. Decoding collapses the class channels into one score and one
class id per candidate and converts the box to corner form. Nothing is
thresholded here; that is left to suppression.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np

from grocersee.common.logging import get_logger
from grocersee.errors import ConfigurationError
from grocersee.models import DecodedTensor, Detection

log = get_logger("grocersee.decoder")

BOX_ORDERS = ("xyxy", "yxyx")


class TensorDecoder:
    """Turn a raw detector tensor into boxes, scores and class ids."""

    def __init__(self, labels: Sequence[str], box_order: str = "xyxy") -> None:
        """
        Args:
            labels: Class names in detector channel order.
            box_order: Corner order of the decoded boxes, ``xyxy`` or ``yxyx``.
        """
        if not labels:
            raise ConfigurationError("Label list must not be empty")
        if box_order not in BOX_ORDERS:
            raise ConfigurationError(f"Unknown box order: {box_order}. Choose from: {BOX_ORDERS}")

        self.labels = list(labels)
        self.box_order = box_order

    @property
    def num_classes(self) -> int:
        return len(self.labels)

    @property
    def expected_channels(self) -> int:
        return 4 + self.num_classes

    def validate(self, raw: np.ndarray) -> None:
        """Check a raw tensor against the ``(1, 4 + C, D)`` contract."""
        if raw.ndim != 3:
            raise ConfigurationError(
                f"Detector output must have 3 dimensions (batch, channels, detections), "
                f"got shape {raw.shape}"
            )
        if raw.shape[0] != 1:
            raise ConfigurationError(f"Detector output batch must be 1, got {raw.shape[0]}")
        if raw.shape[1] != self.expected_channels:
            raise ConfigurationError(
                f"Detector output has {raw.shape[1]} channels, expected "
                f"{self.expected_channels} (4 box + {self.num_classes} classes)"
            )

    def decode(self, raw: np.ndarray) -> DecodedTensor:
        """Decode one raw output tensor.

        Args:
            raw: Detector output of shape ``(1, 4 + C, D)``.

        Returns:
            Decoded boxes (corner form), max class score and arg-max class id
            for every candidate.

        Raises:
            ConfigurationError: If the tensor shape does not match the label set.
        """
        raw = np.asarray(raw)
        self.validate(raw)

        channels = raw[0]
        xc, yc, w, h = channels[0], channels[1], channels[2], channels[3]
        class_scores = channels[4:]

        if class_scores.shape[1] == 0:
            empty = np.zeros((0,), dtype=raw.dtype)
            return DecodedTensor(
                boxes=np.zeros((0, 4), dtype=raw.dtype),
                scores=empty,
                class_ids=np.zeros((0,), dtype=np.int64),
                box_order=self.box_order,
            )

        # argmax returns the first maximum, so ties resolve to the lowest class
        class_ids = np.argmax(class_scores, axis=0).astype(np.int64)
        scores = np.max(class_scores, axis=0)

        x1 = xc - w / 2
        y1 = yc - h / 2
        x2 = x1 + w
        y2 = y1 + h

        if self.box_order == "xyxy":
            boxes = np.stack([x1, y1, x2, y2], axis=1)
        else:
            boxes = np.stack([y1, x1, y2, x2], axis=1)

        log.debug("frame_decoded", candidates=int(scores.shape[0]))

        return DecodedTensor(
            boxes=boxes,
            scores=scores,
            class_ids=class_ids,
            box_order=self.box_order,
        )

    def to_detections(
        self,
        decoded: DecodedTensor,
        indices: Sequence[int] | np.ndarray | None = None,
    ) -> list[Detection]:
        """Gather selected candidates into detections.

        Boxes are always returned as ``(x1, y1, x2, y2)`` whatever the decode
        order was.

        Args:
            decoded: Output of :meth:`decode`.
            indices: Candidate indices to keep, in output order. All if None.
        """
        if indices is None:
            indices = range(len(decoded))

        detections = []
        for index in indices:
            a, b, c, d = (float(v) for v in decoded.boxes[index])
            box = (a, b, c, d) if decoded.box_order == "xyxy" else (b, a, d, c)
            class_id = int(decoded.class_ids[index])
            detections.append(
                Detection(
                    box=box,
                    label=self.labels[class_id],
                    score=float(decoded.scores[index]),
                    class_id=class_id,
                )
            )
        return detections
