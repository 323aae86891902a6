"""CLI smoke tests."""

import json

import numpy as np
import pytest
import soundfile as sf
from typer.testing import CliRunner

from live_tonal.cli import app

from tones import C_MAJOR, SR, melody, silence

runner = CliRunner()


@pytest.fixture
def melody_wav(tmp_path):
    path = tmp_path / "scale.wav"
    sf.write(path, np.concatenate([melody(C_MAJOR, 0.4), silence(0.3)]), SR)
    return path


class TestCli:
    """Commands run end to end on small inputs."""

    def test_scales_lists_catalog(self):
        result = runner.invoke(app, ["scales"])

        assert result.exit_code == 0
        assert "36" in result.output
        assert "Dorian" in result.output

    def test_analyze_file(self, melody_wav):
        result = runner.invoke(app, ["analyze", str(melody_wav)])

        assert result.exit_code == 0, result.output
        assert "Key" in result.output
        assert "Notes observed" in result.output

    def test_analyze_json(self, melody_wav):
        result = runner.invoke(app, ["analyze", str(melody_wav), "--json"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["is_listening"] is True
        assert data["total_notes_observed"] > 0
        assert len(data["chroma_vector"]) == 12

    def test_analyze_with_root(self, melody_wav):
        result = runner.invoke(app, ["analyze", str(melody_wav), "--root", "D", "--json"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert all(c["root"] == "D" for c in data["scale_candidates"])

    def test_analyze_missing_file(self, tmp_path):
        result = runner.invoke(app, ["analyze", str(tmp_path / "missing.wav")])

        assert result.exit_code == 1
        assert "not found" in result.output

    def test_unknown_root(self, melody_wav):
        result = runner.invoke(app, ["analyze", str(melody_wav), "--root", "H"])

        assert result.exit_code == 1

    def test_invalid_config(self, melody_wav, tmp_path):
        config = tmp_path / "bad.json"
        config.write_text(json.dumps({"fft_size": 1001}))

        result = runner.invoke(app, ["analyze", str(melody_wav), "--config", str(config)])

        assert result.exit_code == 1
        assert "Invalid config" in result.output
