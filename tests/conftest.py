"""Pytest configuration and fixtures for Grocersee tests."""

from __future__ import annotations

from typing import Callable, Sequence

import numpy as np
import pytest

from grocersee.config import Config
from grocersee.labels import DEFAULT_LABELS, CategoryMap
from grocersee.pipeline import DetectionPipeline
from grocersee.speech import MockSpeechBackend
from grocersee.vision.inference import MockInferenceBackend, PlantedDetection, build_output_tensor


def pytest_addoption(parser: pytest.Parser) -> None:
    """Add the --slow option."""
    parser.addoption(
        "--slow",
        action="store_true",
        default=False,
        help="Run slow tests",
    )


def pytest_configure(config: pytest.Config) -> None:
    """Register test markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")
    config.addinivalue_line("markers", "slow: Slow running tests")


def pytest_collection_modifyitems(
    config: pytest.Config, items: list[pytest.Item]
) -> None:
    """Skip slow tests unless --slow flag is set."""
    if not config.getoption("--slow"):
        skip_slow = pytest.mark.skip(reason="Need --slow option to run")
        for item in items:
            if "slow" in item.keywords:
                item.add_marker(skip_slow)


@pytest.fixture
def config() -> Config:
    """Mock-mode configuration with debug logging."""
    cfg = Config()
    cfg.mock_mode = True
    cfg.device.mode = "development"
    cfg.device.log_level = "DEBUG"
    return cfg


@pytest.fixture
def category_map() -> CategoryMap:
    """Default category table."""
    return CategoryMap()


@pytest.fixture
def pipeline(config: Config) -> DetectionPipeline:
    """Seeded pipeline with default settings."""
    return DetectionPipeline.from_config(config, seed=0)


@pytest.fixture
def label_index() -> dict[str, int]:
    """Class id for each default label."""
    return {label: i for i, label in enumerate(DEFAULT_LABELS)}


@pytest.fixture
def make_tensor(label_index: dict[str, int]) -> Callable[..., np.ndarray]:
    """Build raw detector output from (label, xc, yc, w, h, score) tuples."""

    def _make(
        detections: Sequence[tuple[str, float, float, float, float, float]],
        num_candidates: int = 32,
    ) -> np.ndarray:
        planted = [
            PlantedDetection(xc, yc, w, h, label_index[label], score)
            for label, xc, yc, w, h, score in detections
        ]
        return build_output_tensor(planted, len(DEFAULT_LABELS), num_candidates)

    return _make


@pytest.fixture
def mock_inference(label_index: dict[str, int]) -> MockInferenceBackend:
    """Mock detector cycling through a close-up, a shelf and an empty frame."""
    return MockInferenceBackend(
        num_classes=len(DEFAULT_LABELS),
        scenes=[
            [PlantedDetection(320, 240, 420, 380, label_index["tomat"], 0.93)],
            [
                PlantedDetection(80, 90, 60, 50, label_index["wortel"], 0.88),
                PlantedDetection(540, 120, 70, 60, label_index["ayam"], 0.81),
                PlantedDetection(300, 400, 50, 40, label_index["jahe"], 0.76),
            ],
            [],
        ],
    )


@pytest.fixture
def mock_speech() -> MockSpeechBackend:
    """Speech backend recording utterances."""
    return MockSpeechBackend()


@pytest.fixture
def mock_image():
    """Plain 640x480 RGB camera frame."""
    from PIL import Image

    return Image.new("RGB", (640, 480), color=(73, 109, 137))
