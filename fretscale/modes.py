"""ModeCalculator: rotates a scale template and derives pitch classes and degree labels."""

from dataclasses import dataclass
from typing import Final

from fretscale.pitch import (
    SEMITONES_PER_OCTAVE,
    AccidentalMode,
    PitchClass,
    normalize_pitch,
    note_name,
)
from fretscale.scales import ScaleDefinition

#: Semitone distance from the mode root → degree label. Semitone 6 is always "b5".
DEGREE_LABELS: Final[tuple[str, ...]] = (
    "1", "b2", "2", "b3", "3", "4", "b5", "5", "b6", "6", "b7", "7",
)


@dataclass(frozen=True)
class ModeResult:
    """
    Pitch content of one rotation of a scale.

    Attributes:
        root:      Pitch class the mode is built on.
        intervals: Rotated template, renormalized to start at 0.
        notes:     ``notes[i] == normalize_pitch(root + intervals[i])``.
        degrees:   Degree label for each interval, e.g. "b3".
        mode_name: Rotation name from the scale definition, if any.
    """

    root: PitchClass
    intervals: tuple[int, ...]
    notes: tuple[PitchClass, ...]
    degrees: tuple[str, ...]
    mode_name: str | None = None

    @property
    def size(self) -> int:
        return len(self.notes)

    @property
    def is_heptatonic(self) -> bool:
        """True for 7-note modes, the only ones with tertian diatonic harmony."""
        return len(self.notes) == 7

    def note_names(self, accidental_mode: AccidentalMode = AccidentalMode.SHARP) -> list[str]:
        return [note_name(n, accidental_mode) for n in self.notes]


def degree_label(interval: int) -> str:
    """Degree label for a semitone distance from the mode root."""
    return DEGREE_LABELS[normalize_pitch(interval)]


def get_mode_intervals(intervals: tuple[int, ...] | list[int], rotation: int) -> tuple[int, ...]:
    """
    Rotate an interval template to start on another scale degree.

    The template is extended one octave up, the window of the original
    length starting at ``rotation`` is taken, and every value is shifted
    so the window starts at 0.

    Args:
        intervals: Template starting at 0, strictly increasing.
        rotation:  Starting scale position, ``0 <= rotation < len(intervals)``.

    Returns:
        The rotated template.

    Raises:
        ValueError: If ``rotation`` is out of range.
    """
    length = len(intervals)
    if not 0 <= rotation < length:
        raise ValueError(f"Mode rotation must be in [0, {length - 1}], got {rotation}.")

    extended = list(intervals) + [i + SEMITONES_PER_OCTAVE for i in intervals]
    window = extended[rotation:rotation + length]
    return tuple(value - window[0] for value in window)


def calculate_mode(root: int, scale: ScaleDefinition, rotation: int = 0) -> ModeResult:
    """
    Compute the ModeResult for a root, a scale and a rotation.

    Raises:
        ValueError: If ``root`` is not a pitch class or ``rotation`` is out of range.
    """
    root_pc = PitchClass(root)
    intervals = get_mode_intervals(scale.intervals, rotation)
    return ModeResult(
        root=root_pc,
        intervals=intervals,
        notes=tuple(normalize_pitch(root_pc + i) for i in intervals),
        degrees=tuple(degree_label(i) for i in intervals),
        mode_name=scale.mode_name(rotation),
    )
