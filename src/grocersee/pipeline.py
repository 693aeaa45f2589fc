"""Detection-to-utterance pipeline."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Sequence

import numpy as np

from grocersee.analysis.clustering import ClusterAssignment, KMeansClusterer
from grocersee.analysis.features import FeatureBuilder, FeatureWeights
from grocersee.analysis.focus import FocusAnalyzer
from grocersee.analysis.messages import MessageGenerator
from grocersee.common.logging import get_logger
from grocersee.config import Config
from grocersee.labels import CategoryMap
from grocersee.models import Detection, FrameResult, frame_result_to_dict
from grocersee.vision.decoder import TensorDecoder
from grocersee.vision.suppression import Suppressor


@dataclass
class PipelineResult:
    """Everything computed for one frame."""

    detections: list[Detection]
    features: np.ndarray
    clusters: ClusterAssignment
    result: FrameResult
    utterance: str
    timings_ms: dict[str, float] = field(default_factory=dict)

    @property
    def labels(self) -> list[str]:
        return [d.label for d in self.detections]

    def to_dict(self) -> dict:
        return {
            "detections": [d.to_dict() for d in self.detections],
            "clusters": [int(label) for label in self.clusters.labels],
            "k": self.clusters.k,
            "result": frame_result_to_dict(self.result),
            "utterance": self.utterance,
            "timings_ms": {key: round(value, 3) for key, value in self.timings_ms.items()},
        }


class DetectionPipeline:
    """Raw detector tensor in, one spoken sentence out.

    Stages run synchronously and share nothing between frames except their
    construction-time configuration and the clusterer's random generator.
    """

    def __init__(
        self,
        decoder: TensorDecoder,
        suppressor: Suppressor,
        features: FeatureBuilder,
        clusterer: KMeansClusterer,
        analyzer: FocusAnalyzer,
        messages: MessageGenerator,
    ) -> None:
        self.decoder = decoder
        self.suppressor = suppressor
        self.features = features
        self.clusterer = clusterer
        self.analyzer = analyzer
        self.messages = messages
        self.logger = get_logger("grocersee.pipeline")

    @classmethod
    def from_config(
        cls,
        config: Config,
        seed: int | None = None,
        profile: str | None = None,
        category_map: CategoryMap | None = None,
    ) -> DetectionPipeline:
        """Build a pipeline from configuration.

        Args:
            config: Configuration.
            seed: K-means seed; falls back to ``clustering.seed``, then to
                process entropy.
            profile: Suppression profile name; the active one if None.
            category_map: Shared category table; built from config if None.
        """
        clustering = config.clustering
        profile_name = profile or config.suppression.active_profile

        return cls(
            decoder=TensorDecoder(config.model.labels, box_order=config.model.box_order),
            suppressor=Suppressor(config.suppression.get_profile(profile_name), name=profile_name),
            features=FeatureBuilder(
                config.frame.width,
                config.frame.height,
                FeatureWeights(
                    position=clustering.position_weight,
                    size=clustering.size_weight,
                    score=clustering.score_weight,
                ),
            ),
            clusterer=KMeansClusterer(
                max_k=clustering.max_k,
                max_iterations=clustering.max_iterations,
                elbow_tolerance=clustering.elbow_tolerance,
                fixed_k=clustering.fixed_k,
                rng=seed if seed is not None else clustering.seed,
            ),
            analyzer=FocusAnalyzer(
                config.frame.width,
                config.frame.height,
                category_map or CategoryMap(config.categories, other=config.other_category),
                focus_threshold=config.focus.focus_threshold,
                confidence_threshold=config.focus.confidence_threshold,
            ),
            messages=MessageGenerator(config.messages),
        )

    @property
    def locale(self) -> str:
        return self.messages.locale

    def decode(self, raw: np.ndarray) -> list[Detection]:
        """Decode and suppress one raw tensor into detections."""
        decoded = self.decoder.decode(raw)
        keep = self.suppressor(decoded.boxes, decoded.scores)
        return self.decoder.to_detections(decoded, keep)

    def process_tensor(self, raw: np.ndarray) -> PipelineResult:
        """Run every stage on a raw detector tensor."""
        start = time.perf_counter()
        detections = self.decode(raw)
        decode_ms = (time.perf_counter() - start) * 1000

        result = self.analyze(detections)
        result.timings_ms = {"decode": decode_ms, **result.timings_ms}
        return result

    def process_detections(
        self,
        boxes: Sequence[Sequence[float]],
        labels: Sequence[str],
        scores: Sequence[float],
    ) -> PipelineResult:
        """Run the analysis stages on already-suppressed detections.

        Args:
            boxes: ``(x1, y1, x2, y2)`` per detection, in pixels.
            labels: Item label per detection.
            scores: Confidence per detection.
        """
        if not len(boxes) == len(labels) == len(scores):
            raise ValueError(
                f"Mismatched inputs: {len(boxes)} boxes, {len(labels)} labels, {len(scores)} scores"
            )

        detections = [
            Detection(box=tuple(float(v) for v in box), label=label, score=float(score))
            for box, label, score in zip(boxes, labels, scores)
        ]
        return self.analyze(detections)

    def analyze(self, detections: list[Detection]) -> PipelineResult:
        """Cluster, focus and phrase a frame's detections."""
        start = time.perf_counter()
        features = self.features.build(detections)
        clusters = self.clusterer.fit(features)
        cluster_ms = (time.perf_counter() - start) * 1000

        result = self.analyzer.analyze(detections, clusters.labels)
        labels = [d.label for d in detections]
        utterance = self.messages.generate(result, labels)
        total_ms = (time.perf_counter() - start) * 1000

        self.logger.debug(
            "frame_analyzed",
            detections=len(detections),
            k=clusters.k,
            result=result.kind,
            utterance=utterance,
        )

        return PipelineResult(
            detections=detections,
            features=features,
            clusters=clusters,
            result=result,
            utterance=utterance,
            timings_ms={"cluster": cluster_ms, "analyze": total_ms - cluster_ms},
        )
