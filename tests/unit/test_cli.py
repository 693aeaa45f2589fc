"""Tests for the command line interface."""

import json

import numpy as np
import pytest
from typer.testing import CliRunner

from grocersee import __version__
from grocersee.cli import app
from grocersee.labels import DEFAULT_LABELS
from grocersee.vision.inference import PlantedDetection, build_output_tensor

runner = CliRunner()


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep stray config files and environment out of CLI runs."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.delenv("GROCERSEE_SUPPRESSION_PROFILE", raising=False)
    monkeypatch.delenv("GROCERSEE_MOCK_MODE", raising=False)


class TestDescribe:
    """Tests for the describe command."""

    def test_describe_json(self, tmp_path):
        path = tmp_path / "frame.json"
        path.write_text(
            json.dumps({"boxes": [[100, 100, 200, 200]], "labels": ["tomat"], "scores": [0.9]})
        )

        result = runner.invoke(app, ["describe", str(path), "--seed", "0", "--json"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["result"] == {"kind": "single_focus", "item": "tomat"}
        assert data["utterance"] == "Terlihat tomat di depan Anda"
        assert "class_id" not in data["detections"][0]

    def test_describe_table(self, tmp_path):
        path = tmp_path / "frame.json"
        path.write_text(json.dumps({"boxes": [], "labels": [], "scores": []}))

        result = runner.invoke(app, ["describe", str(path)])

        assert result.exit_code == 0, result.output
        assert "No detections" in result.stdout
        assert "Silakan arahkan kamera ke bahan makanan" in result.stdout

    def test_describe_mismatched(self, tmp_path):
        path = tmp_path / "frame.json"
        path.write_text(json.dumps({"boxes": [[0, 0, 1, 1]], "labels": [], "scores": [0.5]}))

        result = runner.invoke(app, ["describe", str(path)])

        assert result.exit_code == 1

    def test_describe_missing_file(self, tmp_path):
        result = runner.invoke(app, ["describe", str(tmp_path / "missing.json")])
        assert result.exit_code == 1


class TestDecode:
    """Tests for the decode command."""

    def test_decode_json(self, tmp_path):
        tomat = DEFAULT_LABELS.index("tomat")
        raw = build_output_tensor(
            [PlantedDetection(320, 240, 420, 380, tomat, 0.93)], len(DEFAULT_LABELS), 16
        )
        path = tmp_path / "frame.npy"
        np.save(path, raw)

        result = runner.invoke(app, ["decode", str(path), "--seed", "0", "--json"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["detections"][0]["box"] == [110.0, 50.0, 530.0, 430.0]
        assert data["utterance"] == "Terlihat tomat di depan Anda"

    def test_decode_profile(self, tmp_path):
        ayam = DEFAULT_LABELS.index("ayam")
        raw = build_output_tensor(
            [PlantedDetection(100, 100, 50, 50, ayam, 0.3)], len(DEFAULT_LABELS), 16
        )
        path = tmp_path / "frame.npy"
        np.save(path, raw)

        strict = runner.invoke(app, ["decode", str(path), "--json"])
        general = runner.invoke(app, ["decode", str(path), "--profile", "general", "--json"])

        assert json.loads(strict.stdout)["result"] == {"kind": "no_detection"}
        assert json.loads(general.stdout)["result"]["item"] == "ayam"

    def test_decode_wrong_shape(self, tmp_path):
        path = tmp_path / "frame.npy"
        np.save(path, np.zeros((1, 84, 16), dtype=np.float32))

        result = runner.invoke(app, ["decode", str(path)])

        assert result.exit_code == 1
        assert "channels" in result.stdout

    def test_decode_unknown_profile(self, tmp_path):
        path = tmp_path / "frame.npy"
        np.save(path, np.zeros((1, 36, 16), dtype=np.float32))

        result = runner.invoke(app, ["decode", str(path), "--profile", "lenient"])

        assert result.exit_code == 1


class TestOtherCommands:
    """Tests for labels, config, run and version."""

    def test_labels(self):
        result = runner.invoke(app, ["labels"])

        assert result.exit_code == 0
        assert "tomat" in result.stdout
        assert "sayuran" in result.stdout

    def test_config_json(self):
        result = runner.invoke(app, ["config", "--json"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["suppression"]["active_profile"] == "strict"
        assert data["frame"] == {"width": 640, "height": 480}

    def test_config_env_profile(self, monkeypatch):
        monkeypatch.setenv("GROCERSEE_SUPPRESSION_PROFILE", "general")

        result = runner.invoke(app, ["config"])

        assert result.exit_code == 0
        assert "general" in result.stdout

    def test_run_mock(self):
        result = runner.invoke(app, ["run", "--frames", "3", "--fps", "20", "--seed", "0"])

        assert result.exit_code == 0, result.output
        assert "Processed:" in result.stdout

    def test_version(self):
        result = runner.invoke(app, ["version"])

        assert result.exit_code == 0
        assert __version__ in result.stdout
