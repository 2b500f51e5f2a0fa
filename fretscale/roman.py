"""Roman-numeral progression parsing, resolution against a 7-note mode, and voice leading."""

import math
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Final

from fretscale.chords import ChordKind, DiatonicChord, build_chord
from fretscale.modes import ModeResult
from fretscale.pitch import SEMITONES_PER_OCTAVE, AccidentalMode, pitch_class_to_midi

ROMAN_DEGREES: Final[dict[str, int]] = {
    "I": 1, "II": 2, "III": 3, "IV": 4, "V": 5, "VI": 6, "VII": 7,
}

_TOKEN_RE: Final[re.Pattern[str]] = re.compile(r"[^\s,\-–]+")
_ACCIDENTAL_RE: Final[re.Pattern[str]] = re.compile(r"[b#♭♯]")
_ROMAN_RE: Final[re.Pattern[str]] = re.compile(r"^([ivIV]+)(7)?$")

EMPTY_INPUT_MESSAGE: Final[str] = "Enter a progression to begin playback."
ACCIDENTAL_MESSAGE: Final[str] = "Accidentals like bVII or #iv are not supported yet."
INVALID_TOKEN_MESSAGE: Final[str] = "Invalid token. Use roman numerals like I, vi, or V7."
OUT_OF_RANGE_MESSAGE: Final[str] = "Roman numeral must be between I and VII."
NO_STEPS_MESSAGE: Final[str] = "No valid roman numerals found."


class Extension(str, Enum):
    TRIAD = "triad"
    SEVENTH = "7"

    @property
    def kind(self) -> ChordKind:
        return ChordKind.SEVENTH if self is Extension.SEVENTH else ChordKind.TRIAD


@dataclass(frozen=True)
class RomanStep:
    """One accepted token: the source text, its degree (1-7) and extension."""

    raw: str
    degree: int
    extension: Extension


@dataclass(frozen=True)
class RomanParseError:
    """
    A rejected token or input.

    ``start``/``end`` are character offsets into the original text, so a
    caller can highlight ``text[start:end]``.
    """

    message: str
    token: str
    start: int
    end: int


@dataclass(frozen=True)
class RomanParseResult:
    steps: tuple[RomanStep, ...] = field(default_factory=tuple)
    errors: tuple[RomanParseError, ...] = field(default_factory=tuple)

    @property
    def ok(self) -> bool:
        return not self.errors


def parse_roman_progression(text: str) -> RomanParseResult:
    """
    Parse free-form progression text such as ``"I–V-vi, IV"`` or ``"ii7 V7 I"``.

    Tokens are separated by whitespace, commas, dashes or en-dashes. Each
    token is checked on its own, so one bad token never hides the others.

    Args:
        text: User-entered progression.

    Returns:
        The accepted steps in order plus every error found. Never raises
        for bad input.
    """
    if not text.strip():
        return RomanParseResult(errors=(RomanParseError(EMPTY_INPUT_MESSAGE, "", 0, 0),))

    steps: list[RomanStep] = []
    errors: list[RomanParseError] = []

    for match in _TOKEN_RE.finditer(text):
        token = match.group(0)
        start, end = match.span()

        if _ACCIDENTAL_RE.search(token):
            errors.append(RomanParseError(ACCIDENTAL_MESSAGE, token, start, end))
            continue

        roman_match = _ROMAN_RE.match(token)
        if roman_match is None:
            errors.append(RomanParseError(INVALID_TOKEN_MESSAGE, token, start, end))
            continue

        degree = ROMAN_DEGREES.get(roman_match.group(1).upper())
        if degree is None:
            errors.append(RomanParseError(OUT_OF_RANGE_MESSAGE, token, start, end))
            continue

        extension = Extension.SEVENTH if roman_match.group(2) else Extension.TRIAD
        steps.append(RomanStep(raw=token, degree=degree, extension=extension))

    if not steps:
        stripped = text.strip()
        start = len(text) - len(text.lstrip())
        errors.append(RomanParseError(NO_STEPS_MESSAGE, stripped, start, start + len(stripped)))

    return RomanParseResult(steps=tuple(steps), errors=tuple(errors))


def resolve_step(
    step: RomanStep,
    mode: ModeResult,
    accidental_mode: AccidentalMode = AccidentalMode.SHARP,
) -> DiatonicChord:
    """
    Turn a parsed step into the diatonic chord it names in ``mode``.

    Raises:
        ValueError: If ``mode`` does not have exactly 7 notes.
    """
    if not mode.is_heptatonic:
        raise ValueError(
            f"Roman numerals need a 7-note mode; this mode has {mode.size} notes."
        )
    return build_chord(mode, step.degree - 1, step.extension.kind, accidental_mode)


def resolve_progression(
    steps: tuple[RomanStep, ...] | list[RomanStep],
    mode: ModeResult,
    accidental_mode: AccidentalMode = AccidentalMode.SHARP,
) -> list[DiatonicChord]:
    """Resolve every step in order; see ``resolve_step``."""
    return [resolve_step(step, mode, accidental_mode) for step in steps]


# ── Voice leading ───────────────────────────────────────────────────────────

VOICING_LOW: Final[int] = 40   # E2, the open low string
VOICING_HIGH: Final[int] = 76  # E5
NEUTRAL_TARGET: Final[int] = 52  # E3, used when there is no previous chord
_ROOT_OCTAVES: Final[range] = range(2, 6)


def voice_chord_tones(
    tones: tuple[int, ...] | list[int],
    previous_notes: tuple[int, ...] | list[int] = (),
    low: int = VOICING_LOW,
    high: int = VOICING_HIGH,
) -> list[int]:
    """
    Place chord tones as close-position MIDI notes near the previous chord.

    The root goes in the octave (2-5) whose MIDI note lies within
    ``[low, high]`` and is closest to the mean of ``previous_notes``; ties
    go to the lower octave. The remaining tones are stacked upward, each
    just above the one before it.

    Args:
        tones:          Pitch classes, root first. Duplicates are ignored.
        previous_notes: MIDI notes of the chord played before, if any.
        low, high:      Inclusive MIDI range for the root.

    Returns:
        MIDI notes, lowest first; empty when ``tones`` is empty.
    """
    unique: list[int] = []
    for tone in tones:
        if int(tone) not in unique:
            unique.append(int(tone))
    if not unique:
        return []

    root_pc = unique[0]
    target = sum(previous_notes) / len(previous_notes) if previous_notes else NEUTRAL_TARGET

    in_range = [
        midi for midi in (pitch_class_to_midi(root_pc, octave) for octave in _ROOT_OCTAVES)
        if low <= midi <= high
    ]
    if in_range:
        root = min(in_range, key=lambda midi: abs(midi - target))
    else:
        root = math.floor(target / SEMITONES_PER_OCTAVE + 0.5) * SEMITONES_PER_OCTAVE + root_pc
        while root < low:
            root += SEMITONES_PER_OCTAVE
        while root > high:
            root -= SEMITONES_PER_OCTAVE
        root = min(max(root, low), high)

    notes = [root]
    for tone in unique[1:]:
        candidate = (notes[-1] // SEMITONES_PER_OCTAVE) * SEMITONES_PER_OCTAVE + tone
        while candidate <= notes[-1]:
            candidate += SEMITONES_PER_OCTAVE
        notes.append(candidate)
    return notes


def voice_progression(
    chords: list[DiatonicChord],
    low: int = VOICING_LOW,
    high: int = VOICING_HIGH,
) -> list[list[int]]:
    """Voice each chord against the one before it; the first uses the neutral target."""
    voiced: list[list[int]] = []
    previous: list[int] = []
    for chord in chords:
        previous = voice_chord_tones(chord.tones, previous, low, high)
        voiced.append(previous)
    return voiced
