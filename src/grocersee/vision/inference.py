"""Inference backends producing raw detector tensors."""

from __future__ import annotations

import asyncio
import itertools
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

import numpy as np

from grocersee.common.logging import get_logger
from grocersee.config import Config


@dataclass(frozen=True)
class PlantedDetection:
    """A candidate the mock backend writes into its output tensor."""

    x_center: float
    y_center: float
    width: float
    height: float
    class_id: int
    score: float


class InferenceBackend:
    """Abstract inference backend."""

    async def setup(self) -> None:
        """Load the model."""
        pass

    async def teardown(self) -> None:
        """Release the model."""
        pass

    async def infer(self, tensor: np.ndarray) -> np.ndarray:
        """Run the detector on a preprocessed ``(1, H, W, 3)`` tensor.

        Returns:
            Raw output tensor of shape ``(1, 4 + C, D)``.
        """
        raise NotImplementedError

    def get_status(self) -> dict:
        """Get backend status."""
        raise NotImplementedError


def build_output_tensor(
    planted: Sequence[PlantedDetection],
    num_classes: int,
    num_candidates: int,
) -> np.ndarray:
    """Build a raw ``(1, 4 + C, D)`` output holding the given candidates.

    Unused candidate columns are all zeros.
    """
    if len(planted) > num_candidates:
        raise ValueError(f"Cannot plant {len(planted)} detections into {num_candidates} candidates")

    output = np.zeros((1, 4 + num_classes, num_candidates), dtype=np.float32)
    for column, det in enumerate(planted):
        output[0, 0:4, column] = (det.x_center, det.y_center, det.width, det.height)
        output[0, 4 + det.class_id, column] = det.score
    return output


class MockInferenceBackend(InferenceBackend):
    """Mock backend cycling through scripted scenes."""

    def __init__(
        self,
        num_classes: int,
        scenes: Sequence[Sequence[PlantedDetection]] | None = None,
        num_candidates: int = 64,
        latency_s: float = 0.0,
    ) -> None:
        self.num_classes = num_classes
        self.num_candidates = num_candidates
        self.latency_s = latency_s
        self._scenes = [list(scene) for scene in (scenes if scenes is not None else [[]])]
        self._cycle = itertools.cycle(range(len(self._scenes)))
        self._frame_count = 0
        self._ready = False

    async def setup(self) -> None:
        self._ready = True

    async def teardown(self) -> None:
        self._ready = False

    async def infer(self, tensor: np.ndarray) -> np.ndarray:
        """Return the next scripted scene as a raw output tensor."""
        self._frame_count += 1
        if self.latency_s:
            await asyncio.sleep(self.latency_s)  # Simulate inference time

        scene = self._scenes[next(self._cycle)]
        return build_output_tensor(scene, self.num_classes, self.num_candidates)

    def get_status(self) -> dict:
        return {
            "available": self._ready,
            "backend": "mock",
            "scenes": len(self._scenes),
            "total_frames_processed": self._frame_count,
        }


class TFLiteInferenceBackend(InferenceBackend):
    """Backend running a TFLite export of the grocery detector."""

    def __init__(self, config: Config) -> None:
        self.config = config
        self._interpreter = None
        self._input_index: int | None = None
        self._output_index: int | None = None
        self._available = False
        self._frame_count = 0
        self.logger = get_logger("tflite_inference_backend")

    async def setup(self) -> None:
        """Load the interpreter, if the runtime and model are present."""
        weights = self.config.model.weights_path
        if not weights or not Path(weights).exists():
            self.logger.warning("tflite_model_not_found", path=weights)
            return

        try:
            from tflite_runtime.interpreter import Interpreter
        except ImportError:
            self.logger.warning("tflite_runtime_not_available")
            return

        self._interpreter = Interpreter(model_path=str(weights))
        self._interpreter.allocate_tensors()
        self._input_index = self._interpreter.get_input_details()[0]["index"]
        self._output_index = self._interpreter.get_output_details()[0]["index"]
        self._available = True

        # Warm up once so the first real frame is not slow
        input_shape = self._interpreter.get_input_details()[0]["shape"]
        await self.infer(np.ones(input_shape, dtype=np.float32))
        self.logger.info("tflite_model_loaded", path=weights, input_shape=list(input_shape))

    async def teardown(self) -> None:
        self._interpreter = None
        self._available = False

    def _invoke(self, tensor: np.ndarray) -> np.ndarray:
        self._interpreter.set_tensor(self._input_index, tensor.astype(np.float32))
        self._interpreter.invoke()
        return np.array(self._interpreter.get_tensor(self._output_index))

    async def infer(self, tensor: np.ndarray) -> np.ndarray:
        if not self._available:
            raise RuntimeError("TFLite backend not initialized")

        self._frame_count += 1
        return await asyncio.to_thread(self._invoke, tensor)

    def get_status(self) -> dict:
        return {
            "available": self._available,
            "backend": "tflite",
            "model": self.config.model.weights_path,
            "total_frames_processed": self._frame_count,
        }


def create_inference_backend(config: Config, mock_mode: bool = False) -> InferenceBackend:
    """Pick the inference backend for a configuration."""
    if mock_mode or config.mock_mode:
        return MockInferenceBackend(
            num_classes=config.model.num_classes,
            scenes=default_mock_scenes(config.model.labels),
        )
    return TFLiteInferenceBackend(config)


def default_mock_scenes(labels: Sequence[str]) -> list[list[PlantedDetection]]:
    """Scenes used by mock mode: a close-up, a mixed shelf and an empty frame."""
    index = {label: i for i, label in enumerate(labels)}

    def planted(label: str, xc: float, yc: float, w: float, h: float, score: float) -> list[PlantedDetection]:
        if label not in index:
            return []
        return [PlantedDetection(xc, yc, w, h, index[label], score)]

    close_up = planted("tomat", 320, 240, 420, 380, 0.93)
    shelf = (
        planted("wortel", 80, 90, 60, 50, 0.88)
        + planted("ayam", 540, 120, 70, 60, 0.81)
        + planted("jahe", 300, 400, 50, 40, 0.76)
    )
    return [close_up, shelf, []]
