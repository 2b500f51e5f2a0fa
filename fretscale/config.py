"""
Fretboard configuration.

All defaults live here; ``FretboardConfig.from_env()`` lets a host
override them without code changes.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from fretscale.pitch import AccidentalMode
from fretscale.scales import ScaleCatalog
from fretscale.voicing_engine import (
    DEFAULT_CACHE_SIZE,
    DEFAULT_MAX_RESULTS,
    LOWEST_POSITION,
    STANDARD_TUNING,
    TOTAL_FRETS,
    Tuning,
    VoicingEngine,
)

ENV_PREFIX = "FRETSCALE_"

# (variable suffix, field, minimum)
_INT_SETTINGS = (
    ("TOTAL_FRETS", "total_frets", 1),
    ("SPAN", "default_span", 0),
    ("CACHE_SIZE", "cache_size", 1),
)


@dataclass
class FretboardConfig:
    """
    Settings shared by the engine and the CLI.

    Attributes:
        tuning:          Open strings, low string first.
        total_frets:     Fret positions including the open string (13 = frets 0-12).
        default_span:    Window width used when a caller gives none.
        min_start_fret:  Lowest start fret the nearest-position search may pick.
        max_start_fret:  Highest start fret; defaults to the last fret.
        max_results:     Voicings returned per search.
        cache_size:      LRU bound of the voicing cache.
        accidental_mode: Sharp or flat note names.
        scales_path:     YAML scale catalog; None uses the bundled one.
    """
    tuning: Tuning = STANDARD_TUNING
    total_frets: int = TOTAL_FRETS
    default_span: int = 4
    min_start_fret: int = LOWEST_POSITION
    max_start_fret: Optional[int] = None
    max_results: int = DEFAULT_MAX_RESULTS
    cache_size: int = DEFAULT_CACHE_SIZE
    accidental_mode: AccidentalMode = AccidentalMode.SHARP
    scales_path: Optional[Path] = field(default=None)

    def __post_init__(self):
        for _, key, minimum in _INT_SETTINGS:
            if getattr(self, key) < minimum:
                raise ValueError(f"{key} must be >= {minimum}, got {getattr(self, key)}.")
        if self.max_results < 1:
            raise ValueError(f"max_results must be >= 1, got {self.max_results}.")
        if self.max_start_fret is None:
            self.max_start_fret = self.last_fret

    @property
    def last_fret(self) -> int:
        return self.total_frets - 1

    @classmethod
    def from_env(cls) -> "FretboardConfig":
        """
        Create config from environment variables.

        Environment Variables:
            FRETSCALE_TUNING:       Six note names, low string first ("D,A,D,G,B,E")
            FRETSCALE_TOTAL_FRETS:  Fret positions including the open string
            FRETSCALE_SPAN:         Default window span
            FRETSCALE_ACCIDENTALS:  "sharp" or "flat"
            FRETSCALE_CACHE_SIZE:   Voicing cache bound
            FRETSCALE_SCALES:       Path to a YAML scale catalog

        Raises:
            ValueError: If a variable holds an invalid value.
        """
        kwargs = {}

        tuning = os.getenv(f"{ENV_PREFIX}TUNING")
        if tuning:
            try:
                kwargs["tuning"] = Tuning.from_names([n for n in tuning.split(",") if n.strip()])
            except ValueError as exc:
                raise ValueError(f"{ENV_PREFIX}TUNING: {exc}") from exc

        for name, key, minimum in _INT_SETTINGS:
            raw = os.getenv(f"{ENV_PREFIX}{name}")
            if raw:
                try:
                    value = int(raw)
                except ValueError:
                    raise ValueError(f"{ENV_PREFIX}{name} must be an integer, got '{raw}'.") from None
                if value < minimum:
                    raise ValueError(f"{ENV_PREFIX}{name} must be >= {minimum}, got {value}.")
                kwargs[key] = value

        accidentals = os.getenv(f"{ENV_PREFIX}ACCIDENTALS")
        if accidentals:
            try:
                kwargs["accidental_mode"] = AccidentalMode(accidentals.strip().lower())
            except ValueError:
                raise ValueError(f"{ENV_PREFIX}ACCIDENTALS must be 'sharp' or 'flat', got '{accidentals}'.") from None

        scales = os.getenv(f"{ENV_PREFIX}SCALES")
        if scales:
            kwargs["scales_path"] = Path(scales)

        return cls(**kwargs)

    def load_scales(self) -> ScaleCatalog:
        return ScaleCatalog.load(self.scales_path)

    def build_engine(self) -> VoicingEngine:
        return VoicingEngine(
            tuning=self.tuning,
            total_frets=self.total_frets,
            max_results=self.max_results,
            cache_size=self.cache_size,
        )
