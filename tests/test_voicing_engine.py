"""Unit tests for the voicing search engine."""

import pytest

from fretscale.chords import FIFTH_INTERVALS, SEVENTH_INTERVALS, ChordKind, DiatonicChord, build_chord, build_diatonic_chords
from fretscale.modes import calculate_mode
from fretscale.pitch import AccidentalMode, normalize_pitch
from fretscale.scales import ScaleCatalog
from fretscale.voicing_engine import STANDARD_TUNING, ChordVoicing, FretWindow, Tuning, VoicingEngine


def _chord(degree_index: int, kind: ChordKind = ChordKind.TRIAD, root: int = 0, scale_id: str = "major") -> DiatonicChord:
    mode = calculate_mode(root, ScaleCatalog.load().get(scale_id))
    return build_chord(mode, degree_index, kind)


def _expected_score(chord: DiatonicChord, voicing: ChordVoicing) -> int:
    sounded = [(f, p) for f, p in zip(voicing.frets, voicing.pitches) if f is not None]
    frets = [f for f, _ in sounded]
    intervals = {int(normalize_pitch(p - chord.root)) for _, p in sounded}
    score = 2 * (max(frets) - min(frets))
    for a, b in zip(voicing.frets, voicing.frets[1:]):
        if a is not None and b is not None:
            score += max(0, abs(a - b) - 3)
    score += 6 - len(sounded)
    score += 2 if sounded[0][1] != chord.root else 0
    score += abs((4 if chord.is_seventh else 3) - len(sounded))
    score += 2 if chord.is_seventh and not intervals & FIFTH_INTERVALS else 0
    return score


def _assert_valid(engine: VoicingEngine, chord: DiatonicChord, voicing: ChordVoicing, span: int) -> None:
    assert 3 <= voicing.sounded_count <= 6
    intervals = {int(normalize_pitch(p - chord.root)) for p in voicing.sounded_pitches()}
    assert set(chord.required_intervals) <= intervals
    assert voicing.fret_span <= span
    assert set(voicing.sounded_pitches()) <= set(chord.tones)
    assert voicing.score == _expected_score(chord, voicing)

    essential = {0, 3, 4, 6, 7, 8} | (set(SEVENTH_INTERVALS) if chord.is_seventh else set())
    for string, fret in enumerate(voicing.frets):
        if fret is not None:
            assert voicing.window.start <= fret <= voicing.window.end
            continue
        open_pitch = engine.tuning.open_pitches[string]
        for candidate in range(voicing.window.start, voicing.window.end + 1):
            pitch = normalize_pitch(open_pitch + candidate)
            if pitch in chord.tones:
                assert normalize_pitch(pitch - chord.root) not in essential


def test_window_for() -> None:
    engine = VoicingEngine()
    assert engine.window_for(1, 4) == FretWindow(0, 5)
    assert engine.window_for(1, 4).allows_open
    assert engine.window_for(5, 4) == FretWindow(5, 9)
    assert engine.window_for(10, 4) == FretWindow(10, 12)
    assert 3 in FretWindow(0, 5)
    assert 6 not in FretWindow(0, 5)


@pytest.mark.parametrize(("start_fret", "span"), [(0, 4), (-3, 4), (1, -1)])
def test_window_for_rejects_bad_queries(start_fret: int, span: int) -> None:
    with pytest.raises(ValueError):
        VoicingEngine().window_for(start_fret, span)


def test_single_voicing_at_fifth_fret() -> None:
    engine = VoicingEngine()
    voicings = engine.search(_chord(0), 5, 0)
    assert len(voicings) == 1
    voicing = voicings[0]
    assert voicing.pattern == "xx555x"
    assert voicing.tone_names == (None, None, "G", "C", "E", None)
    assert voicing.score == 5
    assert voicing.muted_count == 3
    assert voicing.window == FretWindow(5, 5)
    assert voicing.midi_notes() == [55, 60, 64]
    assert voicing.chord_id == "triad-0"


def test_empty_window_is_not_an_error() -> None:
    engine = VoicingEngine()
    assert engine.search(_chord(0), 1, 0) == []
    assert engine.search(_chord(0), 13, 4) == []


def test_results_are_valid_ranked_and_capped() -> None:
    engine = VoicingEngine()
    chord_set = build_diatonic_chords(calculate_mode(0, ScaleCatalog.load().get("major")))
    found_any = False
    for chord in chord_set.all():
        for start_fret in range(1, 13):
            voicings = engine.search(chord, start_fret, 4)
            assert len(voicings) <= 3
            scores = [v.score for v in voicings]
            assert scores == sorted(scores)
            for voicing in voicings:
                _assert_valid(engine, chord, voicing, 4)
            found_any = found_any or bool(voicings)
    assert found_any


def test_triads_prefer_voicings_with_a_fifth() -> None:
    engine = VoicingEngine()
    for degree in range(7):
        chord = _chord(degree)
        for start_fret in range(1, 13):
            voicings = engine.search(chord, start_fret, 3)
            has_fifth = [
                any(normalize_pitch(p - chord.root) in FIFTH_INTERVALS for p in v.sounded_pitches())
                for v in voicings
            ]
            assert all(has_fifth) or not any(has_fifth)


def test_search_is_deterministic() -> None:
    chord = _chord(4, ChordKind.SEVENTH)
    first = VoicingEngine().search(chord, 3, 4)
    second = VoicingEngine().search(chord, 3, 4)
    assert first == second
    assert first


def test_cache_hits_and_accidental_mode_in_key() -> None:
    engine = VoicingEngine()
    chord = _chord(0, root=10)
    sharp = engine.search(chord, 1, 4)
    again = engine.search(chord, 1, 4)
    assert again == sharp
    assert engine.cache_info()["hits"] == 1

    flat = engine.search(chord, 1, 4, AccidentalMode.FLAT)
    assert engine.cache_info()["misses"] == 2
    assert [v.frets for v in flat] == [v.frets for v in sharp]
    assert "B♭" in flat[0].tone_names
    assert "A♯" in sharp[0].tone_names

    engine.clear_cache()
    assert engine.cache_info()["size"] == 0


def test_cache_is_bounded() -> None:
    engine = VoicingEngine(cache_size=2)
    chord = _chord(0)
    for start_fret in (1, 3, 5):
        engine.search(chord, start_fret, 4)
    assert engine.cache_info()["size"] == 2


def test_returned_lists_are_independent_of_cache() -> None:
    engine = VoicingEngine()
    chord = _chord(0)
    first = engine.search(chord, 1, 4)
    first.clear()
    assert engine.search(chord, 1, 4)


def test_find_nearest_position_known_case() -> None:
    engine = VoicingEngine()
    assert engine.find_nearest_position(_chord(0), 1, 0) == 5


def test_find_nearest_position_matches_brute_force() -> None:
    engine = VoicingEngine()
    for degree in range(7):
        chord = _chord(degree)
        for start_fret in (1, 4, 8, 12):
            expected = None
            for fret in sorted(range(1, 13), key=lambda f: (abs(f - start_fret), f)):
                if engine.search(chord, fret, 1):
                    expected = fret
                    break
            assert engine.find_nearest_position(chord, start_fret, 1, 1, 12) == expected


def test_find_nearest_position_respects_range() -> None:
    engine = VoicingEngine()
    chord = _chord(0)
    assert engine.find_nearest_position(chord, 1, 0, 1, 4) is None
    position = engine.find_nearest_position(chord, 12, 4, 6, 9)
    assert position is None or 6 <= position <= 9


def test_current_position_wins_when_it_has_a_voicing() -> None:
    engine = VoicingEngine()
    assert engine.find_nearest_position(_chord(0), 5, 0) == 5


def test_pattern_brackets_high_frets() -> None:
    engine = VoicingEngine()
    voicings = engine.search(_chord(0), 10, 2)
    for voicing in voicings:
        assert voicing.pattern.count("(") == sum(1 for f in voicing.frets if f is not None and f > 9)


def test_standard_tuning() -> None:
    assert STANDARD_TUNING.open_pitches == (4, 9, 2, 7, 11, 4)
    assert Tuning.from_names(["E", "A", "D", "G", "B", "E"]).open_midi == STANDARD_TUNING.open_midi


def test_drop_d_tuning_changes_the_search() -> None:
    drop_d = Tuning.from_names(["D", "A", "D", "G", "B", "E"], name="drop D")
    assert drop_d.open_midi == (38, 45, 50, 55, 59, 64)
    chord = _chord(1)  # D minor
    voicings = VoicingEngine(tuning=drop_d).search(chord, 1, 4)
    assert voicings
    assert all(v.pitches[0] in (None, 2, 5, 9) for v in voicings)


def test_tuning_validation() -> None:
    with pytest.raises(ValueError):
        Tuning.from_names(["E", "A", "D", "G", "B"])
    with pytest.raises(ValueError):
        Tuning(open_pitches=STANDARD_TUNING.open_pitches, open_midi=(41, 45, 50, 55, 59, 64))


def test_engine_rejects_bad_settings() -> None:
    with pytest.raises(ValueError):
        VoicingEngine(max_results=0)
    with pytest.raises(ValueError):
        VoicingEngine(cache_size=0)


@pytest.mark.slow
def test_every_root_and_scale_yields_valid_voicings() -> None:
    engine = VoicingEngine()
    for scale in ScaleCatalog.load():
        for root in range(12):
            mode = calculate_mode(root, scale)
            for chord in build_diatonic_chords(mode).all():
                for start_fret in (1, 5, 9):
                    for voicing in engine.search(chord, start_fret, 4):
                        _assert_valid(engine, chord, voicing, 4)
