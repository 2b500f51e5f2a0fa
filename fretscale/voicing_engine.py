"""VoicingEngine: searches the fretboard for ranked, playable chord fingerings."""

import logging
import threading
from collections import OrderedDict
from dataclasses import dataclass
from typing import Final, Iterator, NamedTuple

from fretscale.chords import FIFTH_INTERVALS, SEVENTH_INTERVALS, THIRD_INTERVALS, DiatonicChord
from fretscale.pitch import AccidentalMode, Fret, PitchClass, normalize_pitch, note_name, parse_note_name

logger = logging.getLogger(__name__)

# ── Instrument constants ────────────────────────────────────────────────────
STRING_COUNT: Final[int] = 6
TOTAL_FRETS: Final[int] = 13  # frets 0..12 inclusive
LOWEST_POSITION: Final[int] = 1  # start frets at or below this include open strings

MIN_SOUNDED_STRINGS: Final[int] = 3
MAX_SOUNDED_STRINGS: Final[int] = STRING_COUNT
TARGET_STRINGS: Final[dict[bool, int]] = {False: 3, True: 4}  # keyed by "is seventh"

MAX_COMFORTABLE_JUMP: Final[int] = 3
DEFAULT_MAX_RESULTS: Final[int] = 3
DEFAULT_CACHE_SIZE: Final[int] = 1024

MUTED: Final[str] = "x"


@dataclass(frozen=True)
class Tuning:
    """
    Open-string pitch classes, low string first.

    Attributes:
        open_pitches: Six pitch classes.
        open_midi:    Six MIDI note numbers of the open strings, used to
                      turn voicings into sounding notes.
        name:         Display name.
    """

    open_pitches: tuple[PitchClass, ...]
    open_midi: tuple[int, ...]
    name: str = "custom"

    def __post_init__(self) -> None:
        if len(self.open_pitches) != STRING_COUNT:
            raise ValueError(f"Tuning needs {STRING_COUNT} strings, got {len(self.open_pitches)}.")
        if len(self.open_midi) != STRING_COUNT:
            raise ValueError(f"Tuning needs {STRING_COUNT} open MIDI notes, got {len(self.open_midi)}.")
        for pitch, midi in zip(self.open_pitches, self.open_midi):
            if normalize_pitch(midi) != pitch:
                raise ValueError(f"Open MIDI note {midi} does not match pitch class {int(pitch)}.")

    @classmethod
    def from_names(cls, names: list[str], name: str = "custom") -> "Tuning":
        """
        Build a tuning from six note names, placing each string at or above
        the previous one starting from E2 (MIDI 40).
        """
        pitches = tuple(parse_note_name(n) for n in names)
        if len(pitches) != STRING_COUNT:
            raise ValueError(f"Tuning needs {STRING_COUNT} strings, got {len(pitches)}.")
        midi: list[int] = []
        floor = 36  # C2
        for pitch in pitches:
            note = floor + normalize_pitch(pitch - floor)
            midi.append(note)
            floor = note + 1
        return cls(open_pitches=pitches, open_midi=tuple(midi), name=name)


STANDARD_TUNING: Final[Tuning] = Tuning(
    open_pitches=tuple(PitchClass(p) for p in (4, 9, 2, 7, 11, 4)),
    open_midi=(40, 45, 50, 55, 59, 64),  # E2 A2 D3 G3 B3 E4
    name="standard",
)


class FretWindow(NamedTuple):
    """Inclusive fret range a search may use."""

    start: int
    end: int

    @property
    def allows_open(self) -> bool:
        return self.start == 0

    def __contains__(self, fret: object) -> bool:
        return isinstance(fret, int) and self.start <= fret <= self.end


@dataclass(frozen=True)
class ChordVoicing:
    """
    One fingering of a chord.

    Attributes:
        chord_id:      Id of the DiatonicChord this realises.
        frets:         Per-string fret, low string first; None = muted.
        pitches:       Sounding pitch class per string; None = muted.
        tone_names:    Display name per string; None = muted.
        min_fret:      Lowest sounded fret.
        max_fret:      Highest sounded fret.
        window:        Fret window the search ran in.
        score:         Ergonomic cost; lower is better.
    """

    chord_id: str
    frets: tuple[Fret | None, ...]
    pitches: tuple[PitchClass | None, ...]
    tone_names: tuple[str | None, ...]
    min_fret: int
    max_fret: int
    window: FretWindow
    score: int

    @property
    def sounded_count(self) -> int:
        return sum(1 for f in self.frets if f is not None)

    @property
    def muted_count(self) -> int:
        return STRING_COUNT - self.sounded_count

    @property
    def fret_span(self) -> int:
        return self.max_fret - self.min_fret

    @property
    def pattern(self) -> str:
        """Tab shorthand such as "x32010" (frets above 9 are bracketed)."""
        parts = []
        for fret in self.frets:
            if fret is None:
                parts.append(MUTED)
            elif fret > 9:
                parts.append(f"({fret})")
            else:
                parts.append(str(fret))
        return "".join(parts)

    def sounded_pitches(self) -> list[PitchClass]:
        return [p for p in self.pitches if p is not None]

    def midi_notes(self, tuning: Tuning = STANDARD_TUNING) -> list[int]:
        """Sounding MIDI notes, low string first, muted strings skipped."""
        return [
            open_note + fret
            for open_note, fret in zip(tuning.open_midi, self.frets)
            if fret is not None
        ]


class _Candidate(NamedTuple):
    fret: int
    pitch: PitchClass
    interval: int


CacheKey = tuple[str, int, tuple[int, ...], int, int, str]


class VoicingCache:
    """
    Thread-safe LRU map from a query key to a computed voicing list.

    Keys are (chord id, chord root, chord tones, start fret, span,
    accidental mode).
    """

    def __init__(self, maxsize: int = DEFAULT_CACHE_SIZE) -> None:
        if maxsize < 1:
            raise ValueError(f"Cache size must be >= 1, got {maxsize}.")
        self.maxsize = maxsize
        self._entries: OrderedDict[CacheKey, tuple[ChordVoicing, ...]] = OrderedDict()
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    @staticmethod
    def make_key(
        chord: DiatonicChord,
        start_fret: int,
        span: int,
        accidental_mode: AccidentalMode,
    ) -> CacheKey:
        return (
            chord.chord_id,
            int(chord.root),
            tuple(int(t) for t in chord.tones),
            start_fret,
            span,
            AccidentalMode(accidental_mode).value,
        )

    def get(self, key: CacheKey) -> tuple[ChordVoicing, ...] | None:
        with self._lock:
            if key not in self._entries:
                self.misses += 1
                return None
            self._entries.move_to_end(key)
            self.hits += 1
            return self._entries[key]

    def put(self, key: CacheKey, voicings: tuple[ChordVoicing, ...]) -> None:
        with self._lock:
            self._entries[key] = voicings
            self._entries.move_to_end(key)
            while len(self._entries) > self.maxsize:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug("Evicted voicing cache entry %s", evicted)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self.hits = 0
            self.misses = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class VoicingEngine:
    """
    Enumerates, validates, scores and ranks chord fingerings in a fret window.

    Algorithm overview
    ------------------
    1. **Candidates** – For every string, the frets inside the window whose
       pitch class is a chord tone. Muting is always an option unless the
       string can sound an essential tone (root, third, fifth-family tone,
       or the seventh of a seventh chord).

    2. **Depth-first walk** – Strings are assigned low to high. A branch is
       dropped as soon as the strings left cannot bring the sounded count
       up to three.

    3. **Validation** – A complete assignment must sound every required
       interval and keep its fret span within ``span``.

    4. **Scoring** – Lower is better::

           2 * (max_fret - min_fret)
         + sum(max(0, |jump| - 3)) over adjacent sounded strings
         + muted strings
         + 2 if the bass note is not the root
         + |target strings - sounded strings|   (3 for triads, 4 for sevenths)
         + 2 if a seventh chord has no fifth-family tone

    5. **Selection** – Triads keep only voicings with a fifth when any has
       one. The best ``max_results`` are returned, lowest score first.

    Results are memoized per engine in a ``VoicingCache``.
    """

    def __init__(
        self,
        tuning: Tuning = STANDARD_TUNING,
        total_frets: int = TOTAL_FRETS,
        max_results: int = DEFAULT_MAX_RESULTS,
        cache_size: int = DEFAULT_CACHE_SIZE,
    ) -> None:
        """
        Args:
            tuning:      Open-string tuning, low string first.
            total_frets: Number of fret positions including the open string.
            max_results: How many ranked voicings a search returns.
            cache_size:  LRU bound of the result cache.
        """
        if total_frets < 1:
            raise ValueError(f"total_frets must be >= 1, got {total_frets}.")
        if max_results < 1:
            raise ValueError(f"max_results must be >= 1, got {max_results}.")
        self.tuning = tuning
        self.total_frets = total_frets
        self.max_results = max_results
        self.cache = VoicingCache(cache_size)

    @property
    def last_fret(self) -> int:
        return self.total_frets - 1

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _essential_intervals(self, chord: DiatonicChord) -> frozenset[int]:
        essential = {0} | THIRD_INTERVALS | FIFTH_INTERVALS
        if chord.is_seventh:
            essential |= SEVENTH_INTERVALS
        return frozenset(essential)

    def _candidates(self, chord: DiatonicChord, window: FretWindow) -> list[list[_Candidate]]:
        tone_set = set(chord.tones)
        per_string: list[list[_Candidate]] = []
        for open_pitch in self.tuning.open_pitches:
            candidates = []
            for fret in range(window.start, window.end + 1):
                pitch = normalize_pitch(open_pitch + fret)
                if pitch in tone_set:
                    candidates.append(_Candidate(fret, pitch, int(normalize_pitch(pitch - chord.root))))
            per_string.append(candidates)
        return per_string

    def _walk(
        self,
        options: list[list[_Candidate | None]],
    ) -> Iterator[tuple[_Candidate | None, ...]]:
        """Yield every assignment that can sound between 3 and 6 strings."""
        selection: list[_Candidate | None] = [None] * STRING_COUNT

        def visit(index: int, sounded: int) -> Iterator[tuple[_Candidate | None, ...]]:
            if index == STRING_COUNT:
                if MIN_SOUNDED_STRINGS <= sounded <= MAX_SOUNDED_STRINGS:
                    yield tuple(selection)
                return
            if sounded + (STRING_COUNT - index) < MIN_SOUNDED_STRINGS:
                return
            for option in options[index]:
                selection[index] = option
                yield from visit(index + 1, sounded + (option is not None))
            selection[index] = None

        yield from visit(0, 0)

    def _score(self, chord: DiatonicChord, selection: tuple[_Candidate | None, ...]) -> int:
        sounded = [c for c in selection if c is not None]
        frets = [c.fret for c in sounded]
        intervals = {c.interval for c in sounded}

        score = 2 * (max(frets) - min(frets))
        for current, following in zip(selection, selection[1:]):
            if current is not None and following is not None:
                score += max(0, abs(current.fret - following.fret) - MAX_COMFORTABLE_JUMP)
        score += STRING_COUNT - len(sounded)
        if sounded[0].pitch != chord.root:
            score += 2
        score += abs(TARGET_STRINGS[chord.is_seventh] - len(sounded))
        if chord.is_seventh and not intervals & FIFTH_INTERVALS:
            score += 2
        return score

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def window_for(self, start_fret: int, span: int) -> FretWindow:
        """
        Resolve the fret window for a requested start fret.

        Raises:
            ValueError: If ``start_fret`` < 1 or ``span`` < 0.
        """
        if start_fret < LOWEST_POSITION:
            raise ValueError(f"Start fret must be >= {LOWEST_POSITION}, got {start_fret}.")
        if span < 0:
            raise ValueError(f"Span must be >= 0, got {span}.")
        start = 0 if start_fret <= LOWEST_POSITION else start_fret
        return FretWindow(start, min(start_fret + span, self.last_fret))

    def search(
        self,
        chord: DiatonicChord,
        start_fret: int,
        span: int,
        accidental_mode: AccidentalMode = AccidentalMode.SHARP,
    ) -> list[ChordVoicing]:
        """
        Find the best-ranked voicings of ``chord`` in a fret window.

        Args:
            chord:           Chord to realise.
            start_fret:      Requested window start (>= 1).
            span:            Window width and maximum fret stretch.
            accidental_mode: Spelling of the per-string tone names.

        Returns:
            Up to ``max_results`` voicings, lowest score first. An empty
            list means the window has no playable voicing.
        """
        window = self.window_for(start_fret, span)
        key = VoicingCache.make_key(chord, start_fret, span, accidental_mode)
        cached = self.cache.get(key)
        if cached is not None:
            return list(cached)

        voicings = self._search(chord, window, span, AccidentalMode(accidental_mode))
        self.cache.put(key, tuple(voicings))
        return voicings

    def _search(
        self,
        chord: DiatonicChord,
        window: FretWindow,
        span: int,
        accidental_mode: AccidentalMode,
    ) -> list[ChordVoicing]:
        essential = self._essential_intervals(chord)
        required = set(chord.required_intervals)

        options: list[list[_Candidate | None]] = []
        for candidates in self._candidates(chord, window):
            must_sound = any(c.interval in essential for c in candidates)
            options.append(([] if must_sound else [None]) + list(candidates))

        seen: set[tuple[int | None, ...]] = set()
        scored: list[tuple[int, tuple[_Candidate | None, ...]]] = []
        leaves = 0
        for selection in self._walk(options):
            leaves += 1
            sounded = [c for c in selection if c is not None]
            if not required <= {c.interval for c in sounded}:
                continue
            frets = [c.fret for c in sounded]
            if max(frets) - min(frets) > span:
                continue
            pattern = tuple(c.fret if c is not None else None for c in selection)
            if pattern in seen:
                continue
            seen.add(pattern)
            scored.append((self._score(chord, selection), selection))

        if not chord.is_seventh:
            complete = [
                entry for entry in scored
                if any(c is not None and c.interval in FIFTH_INTERVALS for c in entry[1])
            ]
            if complete:
                scored = complete

        scored.sort(key=lambda entry: entry[0])
        logger.debug(
            "Searched %s in frets %d-%d: %d leaves, %d valid",
            chord.chord_id, window.start, window.end, leaves, len(scored),
        )
        return [
            self._to_voicing(chord, selection, score, window, accidental_mode)
            for score, selection in scored[: self.max_results]
        ]

    def _to_voicing(
        self,
        chord: DiatonicChord,
        selection: tuple[_Candidate | None, ...],
        score: int,
        window: FretWindow,
        accidental_mode: AccidentalMode,
    ) -> ChordVoicing:
        frets = [c.fret for c in selection if c is not None]
        return ChordVoicing(
            chord_id=chord.chord_id,
            frets=tuple(Fret(c.fret) if c is not None else None for c in selection),
            pitches=tuple(c.pitch if c is not None else None for c in selection),
            tone_names=tuple(note_name(c.pitch, accidental_mode) if c is not None else None for c in selection),
            min_fret=min(frets),
            max_fret=max(frets),
            window=window,
            score=score,
        )

    def find_nearest_position(
        self,
        chord: DiatonicChord,
        start_fret: int,
        span: int,
        min_start_fret: int = LOWEST_POSITION,
        max_start_fret: int | None = None,
        accidental_mode: AccidentalMode = AccidentalMode.SHARP,
    ) -> int | None:
        """
        Find the start fret closest to ``start_fret`` that has a voicing.

        Probes ``start_fret - k`` then ``start_fret + k`` for k = 0, 1, ...
        inside ``[min_start_fret, max_start_fret]``; on equal distance the
        lower fret wins.

        Returns:
            The start fret, or None when no fret in range has a voicing.
        """
        if max_start_fret is None:
            max_start_fret = self.last_fret
        min_start_fret = max(min_start_fret, LOWEST_POSITION)

        offset = 0
        while start_fret - offset >= min_start_fret or start_fret + offset <= max_start_fret:
            for fret in (start_fret - offset, start_fret + offset):
                if min_start_fret <= fret <= max_start_fret and self.search(chord, fret, span, accidental_mode):
                    logger.debug("Nearest position for %s from fret %d: %d", chord.chord_id, start_fret, fret)
                    return fret
            offset += 1
        return None

    def cache_info(self) -> dict[str, int]:
        return {
            "hits": self.cache.hits,
            "misses": self.cache.misses,
            "size": len(self.cache),
            "maxsize": self.cache.maxsize,
        }

    def clear_cache(self) -> None:
        self.cache.clear()
