"""
Command Line Interface for fretlab
==================================

Look up chord voicings and scale fingerings from the terminal, and check
the integrity of the curated voicing table.

Usage Examples:
    # Voicings for one or more chords
    fretlab chord Am7 "F#m7b5/A" Db13

    # Scale notes, formula and a fingering position
    fretlab scale D dorian --position 2

    # Chord formula, key degrees and scales to play over it
    fretlab analyze Dm7 --key C

    # Check the curated voicing table (exit code 1 on wrong notes)
    fretlab validate

    # JSON output - for scripting/integration
    fretlab --json chord Cmaj7

    # Verbose mode - see fallback decisions in the log
    fretlab -v chord "G#7#9"
"""

import argparse
import json
import logging
import sys
from typing import Dict, List, Optional

from fretlab import __version__
from fretlab.config import configure_logging, load_config
from fretlab.data.schema import ChordVoicing
from fretlab.errors import InvalidChordSymbolError, LibraryLoadError
from fretlab.library.analysis import analyze_chord
from fretlab.library.scales import describe_scale, get_position_count, get_scale_fingering
from fretlab.library.voicings import get_voicings, is_muted_voicing, validate_chord_library
from fretlab.theory.symbols import display_chord_name, parse_chord_symbol

logger = logging.getLogger(__name__)


# =============================================================================
# PART 1: ARGUMENT PARSER SETUP
# =============================================================================

def create_argument_parser() -> argparse.ArgumentParser:
    """
    Create and configure the command-line argument parser.

    Returns:
        Configured ArgumentParser object
    """
    parser = argparse.ArgumentParser(
        prog="fretlab",
        description="🎸 fretlab - chord voicings and scale fingerings for guitar",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"fretlab {__version__}")
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Show debug logging (fallback decisions, lookups)"
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output result as JSON (useful for scripting)"
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to a fretlab.yaml config file"
    )

    subparsers = parser.add_subparsers(dest="command")

    chord = subparsers.add_parser("chord", help="Show voicings for chord symbols")
    chord.add_argument("symbols", nargs="+", help='Chord symbols, e.g. Am7 "C/E" Db13')
    chord.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Show at most this many voicings per chord"
    )

    scale = subparsers.add_parser("scale", help="Show scale notes and a fingering")
    scale.add_argument("root", help="Root note, e.g. A or Bb")
    scale.add_argument("name", nargs="+", help='Scale name, e.g. dorian or "harmonic minor"')
    scale.add_argument(
        "-p", "--position",
        type=int,
        default=0,
        help="Fingering position (0-based, clamped to the available positions)"
    )

    analyze = subparsers.add_parser("analyze", help="Show chord formula and compatible scales")
    analyze.add_argument("symbol", help="Chord symbol, e.g. Dm7")
    analyze.add_argument(
        "-k", "--key",
        default="C",
        help="Key context, e.g. Bb or \"F# minor\" (default: C)"
    )

    subparsers.add_parser("validate", help="Check the curated voicing table")

    return parser


# =============================================================================
# PART 2: OUTPUT FORMATTING FUNCTIONS
# =============================================================================

def format_voicings(symbol: str, voicings: List[ChordVoicing]) -> str:
    """
    Format the voicings of one chord for terminal display.

    Example output:
        🎸 Am7
           1. x02010             Open
           2. x-12-14-12-13-12   Barre 12th
    """
    try:
        chord = parse_chord_symbol(symbol)
        header = f"🎸 {chord.display_name}"
        if not chord.quality_recognized:
            header += "  ⚠️  quality not recognized, showing major"
    except InvalidChordSymbolError:
        header = f"🎸 {symbol}  ⚠️  no valid root note"

    lines = [header]
    for index, voicing in enumerate(voicings, start=1):
        label = voicing.label or ""
        if is_muted_voicing(voicing):
            label = "no playable shape"
        lines.append(f"   {index}. {voicing.fret_string():<18} {label}")
    return "\n".join(lines)


def format_fingering(fingering: List[List[int]]) -> str:
    """Render a fingering as six lines, high E on top like a tab."""
    names = ["E", "A", "D", "G", "B", "e"]
    lines = []
    for string_index in reversed(range(len(fingering))):
        frets = " ".join(f"{f:>2}" for f in fingering[string_index])
        lines.append(f"   {names[string_index]} | {frets}")
    return "\n".join(lines)


def _voicing_dict(voicing: ChordVoicing) -> Dict:
    data = voicing.model_dump()
    data["frets"] = list(data["frets"])
    data["absolute"] = voicing.fret_string()
    return data


# =============================================================================
# PART 3: COMMANDS
# =============================================================================

def run_chord(symbols: List[str], output_json: bool = False, limit: Optional[int] = None) -> int:
    results = {}
    for symbol in symbols:
        voicings = get_voicings(symbol)
        results[symbol] = voicings[:limit] if limit else voicings

    if output_json:
        print(json.dumps(
            {symbol: [_voicing_dict(v) for v in voicings] for symbol, voicings in results.items()},
            indent=2,
        ))
    else:
        print("\n\n".join(format_voicings(s, v) for s, v in results.items()))
    return 0


def run_scale(root: str, name: str, position: int = 0, output_json: bool = False) -> int:
    insight = describe_scale(root, name)
    count = get_position_count(insight.key)
    shown = min(max(position, 0), count - 1)
    fingering = get_scale_fingering(insight.key, root, position)

    if output_json:
        data = insight.model_dump(mode="json")
        data["position"] = shown
        data["position_count"] = count
        data["fingering"] = fingering
        print(json.dumps(data, indent=2))
        return 0

    print(f"🎼 {insight.root} {insight.mode_name}")
    print(f"   Notes:   {' '.join(insight.notes)}")
    print(f"   Formula: {insight.formula}")
    print(f"   Steps:   {insight.step_pattern}")
    if insight.relative_major:
        print(f"   Degree {insight.mode_profile.degree_roman} of {insight.relative_major}")
    print(f"\n   Position {shown + 1} of {count}:")
    print(format_fingering(fingering))
    return 0


def run_analyze(symbol: str, key: str = "C", output_json: bool = False) -> int:
    try:
        analysis = analyze_chord(symbol, key)
    except InvalidChordSymbolError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1

    if output_json:
        print(json.dumps(analysis.model_dump(mode="json"), indent=2))
        return 0

    print(f"🔎 {display_chord_name(analysis.symbol, key)} in {key}")
    if not analysis.quality_recognized:
        print("   ⚠️  quality not recognized, analyzed as major")
    print(f"   Formula:   {analysis.formula}")
    print(f"   Intervals: {', '.join(analysis.intervals)}")
    print(f"   Notes:     {' '.join(analysis.notes)}")
    print(f"   Degrees:   {' '.join(analysis.scale_degrees)}")
    scales = ', '.join(scale.value for scale in analysis.compatible_scales) or "none"
    print(f"   Scales:    {scales}")
    return 0


def run_validate(output_json: bool = False) -> int:
    report = validate_chord_library()
    if output_json:
        print(json.dumps({
            "is_valid": report.is_valid,
            "checked": len(report.findings),
            "errors": report.errors,
            "warnings": report.warnings,
        }, indent=2))
    else:
        print(str(report))
    return 0 if report.is_valid else 1


# =============================================================================
# PART 4: MAIN ENTRY POINT
# =============================================================================

def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the CLI.

    Returns:
        Process exit code
    """
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    config = load_config(args.config)
    configure_logging(config, verbose=args.verbose)
    logger.debug("Config source: %s", config.source or "defaults")

    if args.command is None:
        parser.print_help()
        return 1

    try:
        if args.command == "chord":
            return run_chord(args.symbols, output_json=args.json, limit=args.limit)
        if args.command == "scale":
            return run_scale(args.root, " ".join(args.name), args.position, output_json=args.json)
        if args.command == "analyze":
            return run_analyze(args.symbol, args.key, output_json=args.json)
        if args.command == "validate":
            return run_validate(output_json=args.json)
    except LibraryLoadError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 2

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
