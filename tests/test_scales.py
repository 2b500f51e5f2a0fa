"""Unit tests for ScaleDefinition validation and the YAML scale catalog."""

from pathlib import Path

import pytest

from fretscale.scales import ScaleCatalog, ScaleCatalogError, ScaleDefinition


def _scale(intervals: tuple[int, ...], mode_names: tuple[str, ...] | None = None) -> ScaleDefinition:
    return ScaleDefinition(scale_id="test", name="Test", intervals=intervals, mode_names=mode_names)


def test_bundled_catalog_loads() -> None:
    catalog = ScaleCatalog.load()
    assert catalog.ids == [
        "major",
        "harmonic_minor",
        "melodic_minor",
        "minor_pentatonic",
        "major_pentatonic",
        "blues",
        "whole_tone",
        "diminished_wh",
    ]
    major = catalog.get("major")
    assert major.intervals == (0, 2, 4, 5, 7, 9, 11)
    assert major.mode_name(1) == "Dorian"
    assert "diatonic" in major.tags


def test_bundled_catalog_is_loaded_once() -> None:
    assert ScaleCatalog.load() is ScaleCatalog.load()


def test_mode_name_absent_without_names() -> None:
    catalog = ScaleCatalog.load()
    assert catalog.get("blues").mode_name(0) is None
    assert catalog.get("major").mode_name(7) is None


def test_unknown_scale_id() -> None:
    with pytest.raises(ScaleCatalogError, match="Unknown scale 'lydian'"):
        ScaleCatalog.load().get("lydian")


@pytest.mark.parametrize(
    "intervals",
    [
        (0, 2, 4),                      # too short
        (0, 1, 2, 3, 4, 5, 6, 7, 8),    # too long
        (1, 2, 4, 5),                   # does not start at 0
        (0, 4, 4, 7),                   # not strictly increasing
        (0, 5, 3, 7),                   # decreasing
        (0, 4, 7, 12),                  # leaves the octave
    ],
)
def test_scale_definition_rejects_bad_templates(intervals: tuple[int, ...]) -> None:
    with pytest.raises(ValueError):
        _scale(intervals)


def test_scale_definition_mode_name_count_must_match() -> None:
    with pytest.raises(ValueError, match="mode names"):
        _scale((0, 2, 4, 7, 9), mode_names=("a", "b"))


def test_from_yaml_reads_entries() -> None:
    catalog = ScaleCatalog.from_yaml(
        "scales:\n"
        "  - id: hirajoshi\n"
        "    name: Hirajoshi\n"
        "    intervals: [0, 2, 3, 7, 8]\n"
    )
    assert len(catalog) == 1
    assert "hirajoshi" in catalog
    assert catalog.get("hirajoshi").tags == ()


@pytest.mark.parametrize(
    "text",
    [
        "scales: [unclosed",
        "other: []",
        "scales:\n  - 5\n",
        "scales:\n  - name: Missing id\n    intervals: [0, 2, 4, 7]\n",
        "scales:\n  - id: bad\n    intervals: [0, 2]\n",
        "scales:\n  - id: a\n    intervals: [0, 2, 4, 7]\n  - id: a\n    intervals: [0, 3, 5, 7]\n",
    ],
)
def test_from_yaml_errors(text: str) -> None:
    with pytest.raises(ScaleCatalogError):
        ScaleCatalog.from_yaml(text)


def test_load_from_file(tmp_path: Path) -> None:
    path = tmp_path / "scales.yaml"
    path.write_text(
        "scales:\n"
        "  - id: lydian\n"
        "    name: Lydian\n"
        "    intervals: [0, 2, 4, 6, 7, 9, 11]\n"
        "    tags: [mode]\n",
        encoding="utf-8",
    )
    catalog = ScaleCatalog.load(path)
    assert catalog.get("lydian").tags == ("mode",)
    assert ScaleCatalog.load(str(path)) is catalog


def test_load_missing_file(tmp_path: Path) -> None:
    with pytest.raises(ScaleCatalogError, match="not found"):
        ScaleCatalog.load(tmp_path / "nope.yaml")


def test_iteration_follows_catalog_order() -> None:
    catalog = ScaleCatalog.load()
    scales = list(catalog)
    assert all(isinstance(scale, ScaleDefinition) for scale in scales)
    assert [scale.scale_id for scale in scales] == catalog.ids
