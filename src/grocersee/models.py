"""Per-frame data types shared by the pipeline stages."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union

import numpy as np


@dataclass(frozen=True)
class Detection:
    """A single surviving detection."""

    box: tuple[float, float, float, float]  # x1, y1, x2, y2 in pixels
    label: str
    score: float
    class_id: int | None = None

    @property
    def width(self) -> float:
        return abs(self.box[2] - self.box[0])

    @property
    def height(self) -> float:
        return abs(self.box[3] - self.box[1])

    @property
    def area(self) -> float:
        return self.width * self.height

    @property
    def center(self) -> tuple[float, float]:
        return ((self.box[0] + self.box[2]) / 2, (self.box[1] + self.box[3]) / 2)

    def to_dict(self) -> dict:
        data = {
            "box": [round(float(v), 2) for v in self.box],
            "label": self.label,
            "score": round(float(self.score), 4),
        }
        if self.class_id is not None:
            data["class_id"] = int(self.class_id)
        return data


@dataclass(frozen=True)
class DecodedTensor:
    """Parallel per-candidate arrays decoded from one detector output."""

    boxes: np.ndarray  # (D, 4), corner form in `box_order`
    scores: np.ndarray  # (D,)
    class_ids: np.ndarray  # (D,)
    box_order: str = "xyxy"

    def __len__(self) -> int:
        return int(self.scores.shape[0])


@dataclass(frozen=True)
class NoDetection:
    """Nothing survived suppression."""

    kind: str = field(default="no_detection", init=False)


@dataclass(frozen=True)
class SingleFocus:
    """The camera is centred on one kind of item."""

    item: str
    kind: str = field(default="single_focus", init=False)


@dataclass(frozen=True)
class CategorySummary:
    """Several kinds of items; reported by category in first-seen order."""

    categories: tuple[str, ...] = ()
    kind: str = field(default="category_summary", init=False)


FrameResult = Union[NoDetection, SingleFocus, CategorySummary]


def frame_result_to_dict(result: FrameResult) -> dict:
    """Serialize a frame result for logs and CLI output."""
    if isinstance(result, SingleFocus):
        return {"kind": result.kind, "item": result.item}
    if isinstance(result, CategorySummary):
        return {"kind": result.kind, "categories": list(result.categories)}
    return {"kind": result.kind}
