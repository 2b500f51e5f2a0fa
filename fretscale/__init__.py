"""fretscale: scale modes, diatonic chords and guitar voicings."""

from fretscale.chords import (
    ChordKind,
    ChordQuality,
    DiatonicChord,
    DiatonicChordSet,
    build_chord,
    build_diatonic_chords,
    diatonic_chord_tones,
)
from fretscale.modes import ModeResult, calculate_mode, get_mode_intervals
from fretscale.pitch import AccidentalMode, Fret, PitchClass, normalize_pitch, note_name
from fretscale.roman import (
    Extension,
    RomanParseError,
    RomanParseResult,
    RomanStep,
    parse_roman_progression,
    resolve_progression,
    voice_chord_tones,
    voice_progression,
)
from fretscale.scales import ScaleCatalog, ScaleCatalogError, ScaleDefinition
from fretscale.voicing_engine import STANDARD_TUNING, ChordVoicing, Tuning, VoicingEngine

__version__ = "0.3.0"

__all__ = [
    "AccidentalMode",
    "ChordKind",
    "ChordQuality",
    "ChordVoicing",
    "DiatonicChord",
    "DiatonicChordSet",
    "Extension",
    "Fret",
    "ModeResult",
    "PitchClass",
    "RomanParseError",
    "RomanParseResult",
    "RomanStep",
    "STANDARD_TUNING",
    "ScaleCatalog",
    "ScaleCatalogError",
    "ScaleDefinition",
    "Tuning",
    "VoicingEngine",
    "build_chord",
    "build_diatonic_chords",
    "calculate_mode",
    "diatonic_chord_tones",
    "get_mode_intervals",
    "normalize_pitch",
    "note_name",
    "parse_roman_progression",
    "resolve_progression",
    "voice_chord_tones",
    "voice_progression",
]
