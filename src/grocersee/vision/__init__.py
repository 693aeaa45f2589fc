"""Detector-side stages: preprocessing, inference, decoding and suppression."""

from grocersee.vision.decoder import TensorDecoder
from grocersee.vision.inference import (
    InferenceBackend,
    MockInferenceBackend,
    PlantedDetection,
    TFLiteInferenceBackend,
    build_output_tensor,
    create_inference_backend,
)
from grocersee.vision.preprocess import preprocess
from grocersee.vision.suppression import Suppressor, compute_iou, non_max_suppression

__all__ = [
    "InferenceBackend",
    "MockInferenceBackend",
    "PlantedDetection",
    "Suppressor",
    "TFLiteInferenceBackend",
    "TensorDecoder",
    "build_output_tensor",
    "compute_iou",
    "create_inference_backend",
    "non_max_suppression",
    "preprocess",
]
