"""Pitch-class arithmetic, fret numbers and note naming."""

from enum import Enum
from typing import Final

# ── Constants ────────────────────────────────────────────────────────────────
SEMITONES_PER_OCTAVE: Final[int] = 12

#: Display names indexed by pitch class (0 = C).
NOTE_NAMES_SHARP: Final[tuple[str, ...]] = (
    "C", "C♯", "D", "D♯", "E", "F", "F♯", "G", "G♯", "A", "A♯", "B",
)
NOTE_NAMES_FLAT: Final[tuple[str, ...]] = (
    "C", "D♭", "D", "E♭", "E", "F", "G♭", "G", "A♭", "A", "B♭", "B",
)

_LETTER_PITCHES: Final[dict[str, int]] = {
    "C": 0, "D": 2, "E": 4, "F": 5, "G": 7, "A": 9, "B": 11,
}
_ACCIDENTAL_OFFSETS: Final[dict[str, int]] = {
    "#": 1, "♯": 1, "b": -1, "♭": -1,
}


class AccidentalMode(str, Enum):
    """Which spelling to use for the five black-key pitch classes."""

    SHARP = "sharp"
    FLAT = "flat"


class PitchClass(int):
    """
    An octave-independent note identity in the range [0, 11].

    Construction validates the range; use ``normalize_pitch`` to fold an
    arbitrary semitone value into the ring first.
    """

    def __new__(cls, value: int) -> "PitchClass":
        value = int(value)
        if not 0 <= value < SEMITONES_PER_OCTAVE:
            raise ValueError(f"Pitch class must be in [0, 11], got {value}.")
        return super().__new__(cls, value)

    def __repr__(self) -> str:
        return f"PitchClass({int(self)})"

    __str__ = int.__repr__


class Fret(int):
    """A fret number on the neck; 0 is the open string."""

    def __new__(cls, value: int) -> "Fret":
        value = int(value)
        if value < 0:
            raise ValueError(f"Fret must be >= 0, got {value}.")
        return super().__new__(cls, value)

    def __repr__(self) -> str:
        return f"Fret({int(self)})"

    __str__ = int.__repr__


def normalize_pitch(n: int) -> PitchClass:
    """Fold any integer semitone value into the 12-class ring."""
    return PitchClass(((n % SEMITONES_PER_OCTAVE) + SEMITONES_PER_OCTAVE) % SEMITONES_PER_OCTAVE)


def note_name(pitch: int, mode: AccidentalMode = AccidentalMode.SHARP) -> str:
    """
    Return the display name of a pitch.

    Args:
        pitch: Any integer; it is normalized before lookup.
        mode:  Sharp or flat spelling for the black keys.

    Returns:
        A name such as ``"C♯"`` or ``"D♭"``.
    """
    table = NOTE_NAMES_FLAT if AccidentalMode(mode) is AccidentalMode.FLAT else NOTE_NAMES_SHARP
    return table[normalize_pitch(pitch)]


def parse_note_name(text: str) -> PitchClass:
    """
    Parse a note name such as ``"C"``, ``"f#"``, ``"Eb"`` or ``"B♭"``.

    Raises:
        ValueError: If the text is not a letter A-G followed by accidentals.
    """
    cleaned = text.strip()
    if not cleaned or cleaned[0].upper() not in _LETTER_PITCHES:
        raise ValueError(f"Unknown note name '{text}'.")

    value = _LETTER_PITCHES[cleaned[0].upper()]
    for char in cleaned[1:]:
        if char not in _ACCIDENTAL_OFFSETS:
            raise ValueError(f"Unknown note name '{text}'.")
        value += _ACCIDENTAL_OFFSETS[char]
    return normalize_pitch(value)


def interval_from_root(pitch: int, root: int) -> PitchClass:
    """Ascending distance in semitones from ``root`` up to ``pitch``."""
    return normalize_pitch(pitch - root)


def is_note_in_scale(pitch: int, scale_notes: list[int] | tuple[int, ...]) -> bool:
    """True when ``pitch`` (normalized) is one of ``scale_notes``."""
    return normalize_pitch(pitch) in scale_notes


def pitch_class_to_midi(pitch_class: int, octave: int) -> int:
    """
    Convert a pitch class (0-11) and an octave number to an absolute MIDI note.

    MIDI octave numbering: C-1 = 0, C0 = 12, C1 = 24, ... C4 (Middle C) = 60.
    """
    return (octave + 1) * SEMITONES_PER_OCTAVE + PitchClass(pitch_class)
