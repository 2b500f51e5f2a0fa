"""ChordBuilder: stacks diatonic triads and seventh chords from a mode's notes."""

from dataclasses import dataclass
from enum import Enum
from typing import Final

from fretscale.modes import ModeResult
from fretscale.pitch import AccidentalMode, PitchClass, normalize_pitch, note_name

ROMAN_NUMERALS: Final[tuple[str, ...]] = ("I", "II", "III", "IV", "V", "VI", "VII")


class ChordKind(str, Enum):
    TRIAD = "triad"
    SEVENTH = "seventh"


class ChordQuality(str, Enum):
    """Closed set of qualities recognised from a chord's interval signature."""

    MAJOR = "major"
    MINOR = "minor"
    DIMINISHED = "diminished"
    AUGMENTED = "augmented"
    MAJ7 = "maj7"
    DOMINANT7 = "dominant7"
    MIN7 = "min7"
    HALF_DIM7 = "halfDim7"
    DIM7 = "dim7"
    MIN_MAJ7 = "minMaj7"
    AUG7 = "aug7"
    UNKNOWN = "unknown"


# ── Interval signature tables ───────────────────────────────────────────────

TRIAD_SIGNATURES: Final[dict[tuple[int, ...], ChordQuality]] = {
    (0, 4, 7): ChordQuality.MAJOR,
    (0, 3, 7): ChordQuality.MINOR,
    (0, 3, 6): ChordQuality.DIMINISHED,
    (0, 4, 8): ChordQuality.AUGMENTED,
}

SEVENTH_SIGNATURES: Final[dict[tuple[int, ...], ChordQuality]] = {
    (0, 4, 7, 11): ChordQuality.MAJ7,
    (0, 4, 7, 10): ChordQuality.DOMINANT7,
    (0, 3, 7, 10): ChordQuality.MIN7,
    (0, 3, 6, 10): ChordQuality.HALF_DIM7,
    (0, 3, 6, 9): ChordQuality.DIM7,
    (0, 3, 7, 11): ChordQuality.MIN_MAJ7,
    (0, 4, 8, 10): ChordQuality.AUG7,
}

TRIAD_SUFFIXES: Final[dict[ChordQuality, str]] = {
    ChordQuality.MINOR: "m",
    ChordQuality.DIMINISHED: "dim",
    ChordQuality.AUGMENTED: "aug",
}

SEVENTH_SUFFIXES: Final[dict[ChordQuality, str]] = {
    ChordQuality.MAJ7: "maj7",
    ChordQuality.DOMINANT7: "7",
    ChordQuality.MIN7: "m7",
    ChordQuality.HALF_DIM7: "m7b5",
    ChordQuality.DIM7: "dim7",
    ChordQuality.MIN_MAJ7: "mMaj7",
    ChordQuality.AUG7: "aug7",
}

MINOR_QUALITIES: Final[frozenset[ChordQuality]] = frozenset({
    ChordQuality.MINOR,
    ChordQuality.MIN7,
    ChordQuality.MIN_MAJ7,
    ChordQuality.HALF_DIM7,
    ChordQuality.DIM7,
})
DIMINISHED_QUALITIES: Final[frozenset[ChordQuality]] = frozenset({
    ChordQuality.DIMINISHED,
    ChordQuality.HALF_DIM7,
    ChordQuality.DIM7,
})
AUGMENTED_QUALITIES: Final[frozenset[ChordQuality]] = frozenset({
    ChordQuality.AUGMENTED,
    ChordQuality.AUG7,
})

THIRD_INTERVALS: Final[frozenset[int]] = frozenset({3, 4})
FIFTH_INTERVALS: Final[frozenset[int]] = frozenset({6, 7, 8})
SEVENTH_INTERVALS: Final[frozenset[int]] = frozenset({9, 10, 11})

#: Scale-position offsets stacked above the chord root.
STACK_OFFSETS: Final[dict[ChordKind, tuple[int, ...]]] = {
    ChordKind.TRIAD: (0, 2, 4),
    ChordKind.SEVENTH: (0, 2, 4, 6),
}


@dataclass(frozen=True)
class DiatonicChord:
    """
    A chord built only from the notes of a mode.

    Attributes:
        chord_id:            "<kind>-<degree_index>", unique within one mode.
        kind:                Triad or seventh.
        degree_index:        Zero-based scale position of the chord root.
        root:                Pitch class of the chord root.
        tones:               Stacked pitch classes, root first.
        intervals:           Sorted semitone distances of the tones from the root.
        quality:             Quality matched from ``intervals``.
        name:                Root name plus quality suffix, e.g. "Am7".
        degree_label:        Roman numeral (7-note modes) or semitone label.
        tone_names:          Display names of ``tones``.
        required_intervals:  Intervals every voicing must sound.
    """

    chord_id: str
    kind: ChordKind
    degree_index: int
    root: PitchClass
    tones: tuple[PitchClass, ...]
    intervals: tuple[int, ...]
    quality: ChordQuality
    name: str
    degree_label: str
    tone_names: tuple[str, ...]
    required_intervals: tuple[int, ...]

    @property
    def is_seventh(self) -> bool:
        return self.kind is ChordKind.SEVENTH


@dataclass(frozen=True)
class DiatonicChordSet:
    triads: tuple[DiatonicChord, ...]
    sevenths: tuple[DiatonicChord, ...]

    def all(self) -> list[DiatonicChord]:
        return [*self.triads, *self.sevenths]


# ── Classification helpers ──────────────────────────────────────────────────

def classify_quality(intervals: tuple[int, ...], kind: ChordKind) -> ChordQuality:
    """Match a sorted interval signature against the table for ``kind``."""
    table = SEVENTH_SIGNATURES if kind is ChordKind.SEVENTH else TRIAD_SIGNATURES
    return table.get(tuple(intervals), ChordQuality.UNKNOWN)


def chord_suffix(quality: ChordQuality, kind: ChordKind) -> str:
    """Name suffix; unknown sevenths fall back to a plain "7"."""
    if kind is ChordKind.SEVENTH:
        return SEVENTH_SUFFIXES.get(quality, "7")
    return TRIAD_SUFFIXES.get(quality, "")


def required_intervals(intervals: tuple[int, ...], kind: ChordKind) -> tuple[int, ...]:
    """Root always; the first third found; the first seventh found for seventh chords."""
    required = [0]
    third = next((i for i in intervals if i in THIRD_INTERVALS), None)
    if third is not None:
        required.append(third)
    if kind is ChordKind.SEVENTH:
        seventh = next((i for i in intervals if i in SEVENTH_INTERVALS), None)
        if seventh is not None:
            required.append(seventh)
    return tuple(required)


def format_degree_label(
    degree_index: int,
    mode: ModeResult,
    quality: ChordQuality,
    kind: ChordKind,
) -> str:
    if mode.is_heptatonic:
        label = ROMAN_NUMERALS[degree_index]
        if quality in MINOR_QUALITIES or quality in DIMINISHED_QUALITIES:
            label = label.lower()
    else:
        label = mode.degrees[degree_index]

    if quality in DIMINISHED_QUALITIES:
        label += " dim"
    elif quality in AUGMENTED_QUALITIES:
        label += " aug"

    if kind is ChordKind.SEVENTH:
        label += "7"
    return label


# ── Public API ──────────────────────────────────────────────────────────────

def stack_tones(notes: tuple[PitchClass, ...], degree_index: int, kind: ChordKind) -> tuple[PitchClass, ...]:
    """
    Take every other scale position starting at ``degree_index``.

    Positions wrap modulo the scale length, not modulo 12. The result is
    tertian only for 7-note scales.
    """
    length = len(notes)
    return tuple(notes[(degree_index + offset) % length] for offset in STACK_OFFSETS[kind])


def build_chord(
    mode: ModeResult,
    degree_index: int,
    kind: ChordKind,
    accidental_mode: AccidentalMode = AccidentalMode.SHARP,
) -> DiatonicChord:
    """
    Build the diatonic chord rooted on one scale position of a mode.

    Raises:
        ValueError: If ``degree_index`` is not a position of the mode.
    """
    kind = ChordKind(kind)
    if not 0 <= degree_index < mode.size:
        raise ValueError(f"Degree index must be in [0, {mode.size - 1}], got {degree_index}.")

    tones = stack_tones(mode.notes, degree_index, kind)
    root = tones[0]
    intervals = tuple(sorted(int(normalize_pitch(tone - root)) for tone in tones))
    quality = classify_quality(intervals, kind)

    return DiatonicChord(
        chord_id=f"{kind.value}-{degree_index}",
        kind=kind,
        degree_index=degree_index,
        root=root,
        tones=tones,
        intervals=intervals,
        quality=quality,
        name=note_name(root, accidental_mode) + chord_suffix(quality, kind),
        degree_label=format_degree_label(degree_index, mode, quality, kind),
        tone_names=tuple(note_name(tone, accidental_mode) for tone in tones),
        required_intervals=required_intervals(intervals, kind),
    )


def build_diatonic_chords(
    mode: ModeResult,
    accidental_mode: AccidentalMode = AccidentalMode.SHARP,
) -> DiatonicChordSet:
    """Build the triad and the seventh chord on every scale position of ``mode``."""
    return DiatonicChordSet(
        triads=tuple(build_chord(mode, d, ChordKind.TRIAD, accidental_mode) for d in range(mode.size)),
        sevenths=tuple(build_chord(mode, d, ChordKind.SEVENTH, accidental_mode) for d in range(mode.size)),
    )


def diatonic_chord_tones(notes: tuple[int, ...] | list[int], degree: int, kind: ChordKind) -> list[PitchClass]:
    """
    Chord tones for a 1-based scale degree of a 7-note scale.

    Raises:
        ValueError: If the scale is not heptatonic or ``degree`` is outside 1-7.
    """
    if len(notes) != 7:
        raise ValueError(f"Diatonic degree stacking needs a 7-note scale, got {len(notes)} notes.")
    if not 1 <= degree <= 7:
        raise ValueError(f"Scale degree must be in [1, 7], got {degree}.")
    pitch_classes = tuple(normalize_pitch(n) for n in notes)
    return list(stack_tones(pitch_classes, degree - 1, ChordKind(kind)))
