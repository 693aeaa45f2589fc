"""Tests for raw tensor decoding."""

import numpy as np
import pytest

from grocersee.errors import ConfigurationError
from grocersee.labels import DEFAULT_LABELS
from grocersee.vision.decoder import TensorDecoder


def spike_tensor(num_classes: int = 32, num_candidates: int = 10) -> np.ndarray:
    """All-zero output with one candidate at column 3, class 7."""
    raw = np.zeros((1, 4 + num_classes, num_candidates), dtype=np.float32)
    raw[0, 0:4, 3] = (320, 240, 100, 50)
    raw[0, 4 + 7, 3] = 0.83
    return raw


class TestTensorDecoder:
    """Tests for TensorDecoder."""

    def test_decode_spike(self):
        """A planted candidate decodes to its class, score and corners."""
        decoder = TensorDecoder(DEFAULT_LABELS)
        decoded = decoder.decode(spike_tensor())

        assert len(decoded) == 10
        assert decoded.class_ids[3] == 7
        assert decoded.scores[3] == pytest.approx(0.83, abs=1e-6)
        np.testing.assert_allclose(decoded.boxes[3], [270, 215, 370, 265])

    def test_decode_yxyx(self):
        """The yxyx order swaps the axes of both corners."""
        decoder = TensorDecoder(DEFAULT_LABELS, box_order="yxyx")
        decoded = decoder.decode(spike_tensor())

        np.testing.assert_allclose(decoded.boxes[3], [215, 270, 265, 370])

    def test_no_thresholding(self):
        """Every candidate is returned, including empty columns."""
        decoder = TensorDecoder(DEFAULT_LABELS)
        decoded = decoder.decode(spike_tensor(num_candidates=25))

        assert decoded.boxes.shape == (25, 4)
        assert decoded.scores.shape == (25,)
        assert decoded.class_ids.shape == (25,)
        assert decoded.scores[0] == 0.0

    def test_class_tie_picks_lowest_id(self):
        """Equal class scores resolve to the lowest class id."""
        raw = np.zeros((1, 4 + 32, 1), dtype=np.float32)
        raw[0, 4 + 12, 0] = 0.6
        raw[0, 4 + 5, 0] = 0.6

        decoded = TensorDecoder(DEFAULT_LABELS).decode(raw)

        assert decoded.class_ids[0] == 5

    def test_empty_candidates(self):
        """Zero candidates decode to empty arrays."""
        raw = np.zeros((1, 36, 0), dtype=np.float32)
        decoded = TensorDecoder(DEFAULT_LABELS).decode(raw)

        assert len(decoded) == 0
        assert decoded.boxes.shape == (0, 4)

    def test_channel_mismatch(self):
        """A tensor built for another label set is rejected."""
        decoder = TensorDecoder(DEFAULT_LABELS)

        with pytest.raises(ConfigurationError, match="36"):
            decoder.decode(np.zeros((1, 4 + 80, 10), dtype=np.float32))

    def test_wrong_rank(self):
        """A tensor without the batch axis is rejected."""
        with pytest.raises(ConfigurationError):
            TensorDecoder(DEFAULT_LABELS).decode(np.zeros((36, 10), dtype=np.float32))

    def test_wrong_batch(self):
        """Only a batch of one is supported."""
        with pytest.raises(ConfigurationError):
            TensorDecoder(DEFAULT_LABELS).decode(np.zeros((2, 36, 10), dtype=np.float32))

    def test_invalid_construction(self):
        """Empty label sets and unknown box orders are configuration errors."""
        with pytest.raises(ConfigurationError):
            TensorDecoder([])
        with pytest.raises(ConfigurationError):
            TensorDecoder(DEFAULT_LABELS, box_order="xywh")


class TestToDetections:
    """Tests for gathering detections."""

    def test_selected_indices(self):
        """Only the selected candidates are returned, with their labels."""
        decoder = TensorDecoder(DEFAULT_LABELS)
        decoded = decoder.decode(spike_tensor())

        detections = decoder.to_detections(decoded, [3])

        assert len(detections) == 1
        det = detections[0]
        assert det.label == DEFAULT_LABELS[7]
        assert det.class_id == 7
        assert det.box == (270.0, 215.0, 370.0, 265.0)
        assert det.width == 100.0
        assert det.height == 50.0
        assert det.center == (320.0, 240.0)

    def test_yxyx_returns_xyxy(self):
        """Detections are always in (x1, y1, x2, y2) form."""
        decoder = TensorDecoder(DEFAULT_LABELS, box_order="yxyx")
        decoded = decoder.decode(spike_tensor())

        det = decoder.to_detections(decoded, [3])[0]

        assert det.box == (270.0, 215.0, 370.0, 265.0)

    def test_all_indices_by_default(self):
        """Without indices every candidate becomes a detection."""
        decoder = TensorDecoder(DEFAULT_LABELS)
        decoded = decoder.decode(spike_tensor(num_candidates=4))

        assert len(decoder.to_detections(decoded)) == 4
