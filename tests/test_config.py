"""Unit tests for FretboardConfig defaults and environment overrides."""

from pathlib import Path

import pytest

from fretscale.config import FretboardConfig
from fretscale.pitch import AccidentalMode
from fretscale.voicing_engine import STANDARD_TUNING


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("TUNING", "TOTAL_FRETS", "SPAN", "ACCIDENTALS", "CACHE_SIZE", "SCALES"):
        monkeypatch.delenv(f"FRETSCALE_{name}", raising=False)


def test_defaults() -> None:
    config = FretboardConfig()
    assert config.tuning is STANDARD_TUNING
    assert config.last_fret == 12
    assert config.max_start_fret == 12
    assert config.default_span == 4
    assert config.accidental_mode is AccidentalMode.SHARP


def test_from_env_without_overrides() -> None:
    assert FretboardConfig.from_env() == FretboardConfig()


def test_from_env_overrides(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("FRETSCALE_TUNING", "D, A, D, G, B, E")
    monkeypatch.setenv("FRETSCALE_TOTAL_FRETS", "16")
    monkeypatch.setenv("FRETSCALE_SPAN", "3")
    monkeypatch.setenv("FRETSCALE_ACCIDENTALS", "Flat")
    monkeypatch.setenv("FRETSCALE_CACHE_SIZE", "64")
    monkeypatch.setenv("FRETSCALE_SCALES", str(tmp_path / "mine.yaml"))

    config = FretboardConfig.from_env()
    assert config.tuning.open_midi == (38, 45, 50, 55, 59, 64)
    assert config.last_fret == 15
    assert config.max_start_fret == 15
    assert config.default_span == 3
    assert config.accidental_mode is AccidentalMode.FLAT
    assert config.cache_size == 64
    assert config.scales_path == tmp_path / "mine.yaml"


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("TUNING", "E,A,D"),
        ("TUNING", "E,A,D,G,B,H"),
        ("SPAN", "wide"),
        ("SPAN", "-1"),
        ("TOTAL_FRETS", "0"),
        ("CACHE_SIZE", "0"),
        ("ACCIDENTALS", "natural"),
    ],
)
def test_from_env_rejects_bad_values(monkeypatch: pytest.MonkeyPatch, name: str, value: str) -> None:
    monkeypatch.setenv(f"FRETSCALE_{name}", value)
    with pytest.raises(ValueError, match=f"FRETSCALE_{name}"):
        FretboardConfig.from_env()


def test_build_engine_uses_settings() -> None:
    engine = FretboardConfig(total_frets=16, max_results=1, cache_size=8).build_engine()
    assert engine.last_fret == 15
    assert engine.max_results == 1
    assert engine.cache_info()["maxsize"] == 8


def test_load_scales_defaults_to_bundled_catalog() -> None:
    assert "major" in FretboardConfig().load_scales()


def test_from_env_accepts_lower_bounds(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("FRETSCALE_TOTAL_FRETS", "1")
    monkeypatch.setenv("FRETSCALE_SPAN", "0")
    monkeypatch.setenv("FRETSCALE_CACHE_SIZE", "1")
    config = FretboardConfig.from_env()
    assert (config.total_frets, config.default_span, config.cache_size) == (1, 0, 1)


@pytest.mark.parametrize(
    ("kwargs", "field_name"),
    [
        ({"total_frets": 0}, "total_frets"),
        ({"default_span": -1}, "default_span"),
        ({"cache_size": 0}, "cache_size"),
        ({"max_results": 0}, "max_results"),
    ],
)
def test_constructor_rejects_out_of_range(kwargs: dict[str, int], field_name: str) -> None:
    with pytest.raises(ValueError, match=field_name):
        FretboardConfig(**kwargs)
