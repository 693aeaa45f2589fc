"""Grocersee - spoken grocery descriptions from a YOLO detector."""

__version__ = "0.1.0"
__author__ = "Grocersee Team"

from grocersee.config import Config, load_config
from grocersee.pipeline import DetectionPipeline, PipelineResult

__all__ = ["Config", "DetectionPipeline", "PipelineResult", "load_config", "__version__"]
