"""Tests for engine configuration."""

import json

import pytest

from live_tonal.core import EngineConfig, KeyConfig, PitchConfig, ScaleConfig


class TestEngineConfig:
    """Defaults, validation and loading."""

    def test_defaults(self):
        config = EngineConfig()

        assert config.sample_rate == 44100
        assert config.fft_size == 8192
        assert config.bin_count == 4096
        assert config.tick_interval == pytest.approx(0.05)
        assert config.ledger_capacity == 100
        assert config.key.history_size == 30
        assert config.stabilizer.min_note_duration == pytest.approx(0.08)
        assert config.scales.max_candidates == 5

    def test_from_dict_partial_nested(self):
        config = EngineConfig.from_dict({"fft_size": 4096, "key": {"min_history": 5}})

        assert config.fft_size == 4096
        assert config.key.min_history == 5
        assert config.key.history_size == 30
        assert config.pitch == PitchConfig()

    def test_round_trip(self):
        config = EngineConfig(scale_root=2, key=KeyConfig(prior_weight=0.3))

        assert EngineConfig.from_dict(config.to_dict()) == config

    @pytest.mark.parametrize(
        "data",
        [{"unknown": 1}, {"pitch": {"nope": 1}}],
    )
    def test_unknown_keys(self, data):
        with pytest.raises(ValueError, match="Unknown"):
            EngineConfig.from_dict(data)

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"fft_size": 1001},
            {"fft_size": 32},
            {"fft_size": 512},  # too short for the lowest fundamental
            {"sample_rate": 3000},  # fmax above Nyquist
            {"scale_root": 12},
            {"smoothing": 1.5},
            {"ledger_capacity": 0},
        ],
    )
    def test_invalid_engine_values(self, kwargs):
        with pytest.raises(ValueError):
            EngineConfig(**kwargs)

    def test_invalid_sections(self):
        with pytest.raises(ValueError):
            PitchConfig(fmin=500.0, fmax=100.0)
        with pytest.raises(ValueError):
            KeyConfig(history_size=2, min_history=3)
        with pytest.raises(ValueError):
            ScaleConfig(purity_weight=0.5, coverage_weight=0.3)

    def test_from_file(self, tmp_path):
        path = tmp_path / "engine.json"
        path.write_text(json.dumps({"tick_interval": 0.1, "scales": {"max_candidates": 3}}))

        config = EngineConfig.from_file(path)

        assert config.tick_interval == pytest.approx(0.1)
        assert config.scales.max_candidates == 3

    def test_from_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            EngineConfig.from_file(tmp_path / "missing.json")
