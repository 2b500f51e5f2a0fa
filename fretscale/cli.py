"""fretscale CLI entry point."""

import logging
import sys
from typing import NoReturn

import click

from fretscale import __version__
from fretscale.chords import ChordKind, build_chord, build_diatonic_chords
from fretscale.config import FretboardConfig
from fretscale.modes import ModeResult, calculate_mode
from fretscale.pitch import AccidentalMode, parse_note_name
from fretscale.roman import parse_roman_progression, resolve_progression, voice_progression
from fretscale.scales import ScaleCatalogError
from fretscale.voicing_engine import ChordVoicing


def _fail(message: str) -> NoReturn:
    click.echo(f"  ERROR: {message}", err=True)
    sys.exit(1)


def _accidentals(flat: bool, config: FretboardConfig) -> AccidentalMode:
    return AccidentalMode.FLAT if flat else config.accidental_mode


def _resolve_mode(config: FretboardConfig, root: str, scale_id: str, rotation: int) -> ModeResult:
    """Load the scale and compute the mode, exiting with an error message on bad input."""
    try:
        scale = config.load_scales().get(scale_id)
        return calculate_mode(parse_note_name(root), scale, rotation)
    except (ValueError, ScaleCatalogError) as exc:
        _fail(str(exc))


def _format_voicing(voicing: ChordVoicing) -> str:
    tones = " ".join(name if name is not None else "-" for name in voicing.tone_names)
    return f"{voicing.pattern:<14} score {voicing.score:<3} frets {voicing.min_fret}-{voicing.max_fret}  [{tones}]"


# ── CLI group ──────────────────────────────────────────────────────────────────

@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(version=__version__, prog_name="fretscale")
@click.option("-v", "--verbose", is_flag=True, help="Log search and cache details to stderr.")
@click.pass_context
def main(ctx: click.Context, verbose: bool) -> None:
    """fretscale — modes, diatonic chords and guitar voicings."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(name)s %(levelname)s: %(message)s",
    )
    try:
        ctx.obj = FretboardConfig.from_env()
    except ValueError as exc:
        _fail(str(exc))


# ── scales subcommand ──────────────────────────────────────────────────────────

@main.command()
@click.pass_obj
def scales(config: FretboardConfig) -> None:
    """List the available scale templates."""
    try:
        catalog = config.load_scales()
    except ScaleCatalogError as exc:
        _fail(str(exc))

    for scale in catalog:
        intervals = " ".join(str(i) for i in scale.intervals)
        click.echo(f"{scale.scale_id:<18} {scale.name:<28} [{intervals}]")
        if scale.mode_names:
            for index, name in enumerate(scale.mode_names):
                click.echo(f"    {index}: {name}")


# ── mode subcommand ────────────────────────────────────────────────────────────

@main.command()
@click.argument("root")
@click.argument("scale_id")
@click.option("--mode", "rotation", type=click.IntRange(min=0), default=0, show_default=True,
              help="Rotation index (0 = the scale itself).")
@click.option("--flat", is_flag=True, help="Spell black keys with flats.")
@click.pass_obj
def mode(config: FretboardConfig, root: str, scale_id: str, rotation: int, flat: bool) -> None:
    """
    Show the notes and degrees of a mode.

    \b
    Examples:
      fretscale mode C major
      fretscale mode D major --mode 1
      fretscale mode Bb harmonic_minor --flat
    """
    result = _resolve_mode(config, root, scale_id, rotation)
    accidentals = _accidentals(flat, config)

    title = result.mode_name or scale_id
    click.echo(f"{result.note_names(accidentals)[0]} {title}")
    click.echo(f"  Intervals : {' '.join(str(i) for i in result.intervals)}")
    click.echo(f"  Notes     : {' '.join(result.note_names(accidentals))}")
    click.echo(f"  Degrees   : {' '.join(result.degrees)}")


# ── chords subcommand ──────────────────────────────────────────────────────────

@main.command()
@click.argument("root")
@click.argument("scale_id")
@click.option("--mode", "rotation", type=click.IntRange(min=0), default=0, show_default=True,
              help="Rotation index (0 = the scale itself).")
@click.option("--kind", type=click.Choice(["triad", "seventh", "all"], case_sensitive=False),
              default="all", show_default=True, help="Which chords to list.")
@click.option("--flat", is_flag=True, help="Spell black keys with flats.")
@click.pass_obj
def chords(config: FretboardConfig, root: str, scale_id: str, rotation: int, kind: str, flat: bool) -> None:
    """List the diatonic triads and seventh chords of a mode."""
    result = _resolve_mode(config, root, scale_id, rotation)
    chord_set = build_diatonic_chords(result, _accidentals(flat, config))

    kind = kind.lower()
    if kind == "triad":
        selected = list(chord_set.triads)
    elif kind == "seventh":
        selected = list(chord_set.sevenths)
    else:
        selected = chord_set.all()

    for chord in selected:
        click.echo(
            f"{chord.degree_label:<10} {chord.name:<8} {' '.join(chord.tone_names):<16} {chord.quality.value}"
        )


# ── voicings subcommand ────────────────────────────────────────────────────────

@main.command()
@click.argument("root")
@click.argument("scale_id")
@click.argument("degree", type=click.IntRange(min=1))
@click.option("--mode", "rotation", type=click.IntRange(min=0), default=0, show_default=True,
              help="Rotation index (0 = the scale itself).")
@click.option("--seventh", is_flag=True, help="Voice the seventh chord instead of the triad.")
@click.option("--start-fret", type=click.IntRange(min=1), default=1, show_default=True,
              help="First fret of the search window (1 includes open strings).")
@click.option("--span", type=click.IntRange(min=0), default=None,
              help="Window width in frets. Defaults to the configured span.")
@click.option("--nearest", is_flag=True, help="Move to the nearest window with a voicing if this one has none.")
@click.option("--flat", is_flag=True, help="Spell black keys with flats.")
@click.pass_obj
def voicings(
    config: FretboardConfig,
    root: str,
    scale_id: str,
    degree: int,
    rotation: int,
    seventh: bool,
    start_fret: int,
    span: int | None,
    nearest: bool,
    flat: bool,
) -> None:
    """
    Show ranked fingerings for one diatonic chord.

    DEGREE is the 1-based scale position of the chord root.

    \b
    Examples:
      fretscale voicings C major 1
      fretscale voicings G major 5 --seventh --start-fret 3
      fretscale voicings E harmonic_minor 5 --start-fret 9 --nearest
    """
    result = _resolve_mode(config, root, scale_id, rotation)
    accidentals = _accidentals(flat, config)
    span = config.default_span if span is None else span
    kind = ChordKind.SEVENTH if seventh else ChordKind.TRIAD

    try:
        chord = build_chord(result, degree - 1, kind, accidentals)
    except ValueError as exc:
        _fail(str(exc))

    try:
        engine = config.build_engine()
        found = engine.search(chord, start_fret, span, accidentals)

        if not found and nearest:
            position = engine.find_nearest_position(
                chord, start_fret, span, config.min_start_fret, config.max_start_fret, accidentals
            )
            if position is not None:
                click.echo(f"No voicing at fret {start_fret}; nearest position is fret {position}.")
                start_fret = position
                found = engine.search(chord, start_fret, span, accidentals)
    except ValueError as exc:
        _fail(str(exc))

    click.echo(f"{chord.degree_label}  {chord.name}  ({' '.join(chord.tone_names)})")
    click.echo(f"  Window : fret {start_fret}, span {span}")
    click.echo()

    if not found:
        click.echo("  No easy voicing in this position.", err=True)
        sys.exit(1)

    for rank, voicing in enumerate(found, start=1):
        click.echo(f"  {rank}. {_format_voicing(voicing)}")


# ── progression subcommand ─────────────────────────────────────────────────────

@main.command()
@click.argument("text")
@click.argument("root")
@click.argument("scale_id")
@click.option("--mode", "rotation", type=click.IntRange(min=0), default=0, show_default=True,
              help="Rotation index (0 = the scale itself).")
@click.option("--flat", is_flag=True, help="Spell black keys with flats.")
@click.pass_obj
def progression(config: FretboardConfig, text: str, root: str, scale_id: str, rotation: int, flat: bool) -> None:
    """
    Parse a roman-numeral progression, name its chords and voice-lead them.

    Each line ends with close-position MIDI notes placed near the
    previous chord.

    \b
    Examples:
      fretscale progression "I-V-vi-IV" G major
      fretscale progression "ii7, V7, I" C major
    """
    parsed = parse_roman_progression(text)

    for error in parsed.errors:
        click.echo(f"  ERROR: {error.message}", err=True)
        if error.end > error.start:
            click.echo(f"    {text}", err=True)
            click.echo(f"    {' ' * error.start}{'^' * (error.end - error.start)}", err=True)

    if not parsed.steps:
        sys.exit(1)

    result = _resolve_mode(config, root, scale_id, rotation)
    try:
        resolved = resolve_progression(parsed.steps, result, _accidentals(flat, config))
    except ValueError as exc:
        _fail(str(exc))

    for step, chord, notes in zip(parsed.steps, resolved, voice_progression(resolved)):
        click.echo(
            f"{step.raw:<6} {chord.name:<8} {' '.join(chord.tone_names):<14} midi {' '.join(str(n) for n in notes)}"
        )

    if parsed.errors:
        sys.exit(1)
