"""CLI entry point for abc2ly: ABC -> LilyPond converter."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from abc2ly.errors import ConversionError
from abc2ly.grammar.parser import parse_file
from abc2ly.grammar.validator import validate_book
from abc2ly.ly_emitter import render_book, render_tune
from abc2ly.ly_templates import ly_string, ly_version
from abc2ly.settings import ConvertSettings, parse_settings_file


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="abc2ly",
        description="Convert ABC tune books to LilyPond scores (.ly)",
    )
    parser.add_argument(
        "input",
        help="Path to an ABC file (e.g., tunes.abc)",
    )
    parser.add_argument(
        "-o", "--output",
        help="Output .ly file path (default: stdout)",
    )
    parser.add_argument(
        "--file-per-tune",
        action="store_true",
        help="Write one <X>.ly file per tune plus _index.ly (requires --out)",
    )
    parser.add_argument(
        "--out",
        default=None,
        help="Output directory for --file-per-tune",
    )
    parser.add_argument(
        "--settings",
        default=None,
        help="JSON settings file (unit note length, staff setup, ...)",
    )
    parser.add_argument(
        "--list-tunes",
        action="store_true",
        help="List all parsed tunes and exit",
    )
    parser.add_argument(
        "--validate",
        action="store_true",
        help="Report fields used outside their allowed context",
    )

    args = parser.parse_args(argv)

    if args.file_per_tune and not args.out:
        print("Error: --out required when using --file-per-tune", file=sys.stderr)
        sys.exit(1)

    input_path = Path(args.input)
    if not input_path.exists():
        print(f"Error: file not found: {input_path}", file=sys.stderr)
        sys.exit(1)

    settings = ConvertSettings()
    if args.settings:
        try:
            settings = parse_settings_file(args.settings)
        except (OSError, json.JSONDecodeError) as e:
            print(f"Error reading settings {args.settings}: {e}", file=sys.stderr)
            sys.exit(1)

    # Parse
    try:
        book, warnings = parse_file(input_path)
    except ConversionError as e:
        print(f"Error parsing {input_path}: {e}", file=sys.stderr)
        sys.exit(1)

    print(f"Parsed {len(book.tunes)} tunes", file=sys.stderr)
    for w in warnings:
        print(f"\t{w}", file=sys.stderr)

    if args.validate:
        for problem in validate_book(book):
            print(f"\t{problem}", file=sys.stderr)

    # List tunes mode
    if args.list_tunes:
        _print_tunes(book)
        return

    # Render
    try:
        if args.file_per_tune:
            _write_file_per_tune(book, Path(args.out), settings)
            return
        ly_code = render_book(book, settings)
    except ConversionError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    # Output
    if args.output:
        output_path = Path(args.output)
        output_path.write_text(ly_code, encoding="utf-8")
        print(f"Written: {output_path}", file=sys.stderr)
    else:
        print(ly_code, end="")


def _write_file_per_tune(book, out_dir: Path, settings: ConvertSettings) -> None:
    """Write <X>.ly for each tune and an _index.ly that includes them all."""
    out_dir.mkdir(parents=True, exist_ok=True)
    written: list[str] = []

    for tune in book.tunes:
        if not tune.id:
            print(f"Skipping tune without X: field ({tune.title!r})", file=sys.stderr)
            continue
        ly_code = render_tune(tune, settings)
        if settings.lilypond_version:
            ly_code = ly_version(settings.lilypond_version) + "\n\n" + ly_code
        name = f"{tune.id}.ly"
        try:
            (out_dir / name).write_text(ly_code, encoding="utf-8")
        except OSError as e:
            print(f"Error writing {name}: {e}", file=sys.stderr)
            continue
        written.append(name)

    index = "".join(f"\\include {ly_string(name)}\n" for name in written)
    (out_dir / "_index.ly").write_text(index, encoding="utf-8")
    print(f"Written: {len(written)} tunes to {out_dir}", file=sys.stderr)


def _print_tunes(book) -> None:
    """Print all parsed tunes in a readable format."""
    for tune in book.tunes:
        meter = str(tune.meter) if tune.meter else "-"
        print(f"X:{tune.id or '?'}  {tune.title or '(untitled)'}")
        print(f"    key: {tune.key or '-'}  meter: {meter}  "
              f"staves: {len(tune.body.staves)}")


if __name__ == "__main__":
    main()
