from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Sequence

import ppt2lyrics
from ppt2lyrics.extractors.data_types import Presentation
from ppt2lyrics.extractors.serialization import serialize_extraction
from ppt2lyrics.formatting import ProPresenterFormatter, count_output_slides
from ppt2lyrics.normalize import TextNormalizer

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ppt2lyrics",
        description="Extract lyrics from PowerPoint files (.ppt/.pptx) for ProPresenter import.",
    )
    parser.add_argument(
        "input",
        type=Path,
        nargs="+",
        help="Input PowerPoint file(s).",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=None,
        help="Output directory (default: next to each input file).",
    )
    parser.add_argument(
        "-p",
        "--print",
        action="store_true",
        help="Print output to stdout instead of writing .txt files.",
    )
    parser.add_argument(
        "-l",
        "--lines-per-slide",
        type=int,
        default=2,
        help="Number of lyric lines per output slide (default: 2).",
    )
    parser.add_argument(
        "-n",
        "--notes",
        action="store_true",
        help="Append speaker notes after the lyrics.",
    )
    parser.add_argument(
        "--no-title",
        action="store_true",
        help="Do not detect the song title on the first slide.",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Emit structured JSON to stdout instead of ProPresenter text.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Verbose (debug) logging.",
    )
    return parser


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def get_output_path(input_path: Path, output_dir: Path | None) -> Path:
    """<stem>.txt next to the input file, or inside output_dir (created if missing)."""
    output_filename = f"{input_path.stem or 'output'}.txt"
    if output_dir is None:
        return input_path.parent / output_filename
    output_dir.mkdir(parents=True, exist_ok=True)
    return output_dir / output_filename


def _lyrics(
    presentation: Presentation, filename: str, detect_title: bool
) -> tuple[str | None, list[str]]:
    normalizer = TextNormalizer()
    if detect_title:
        return normalizer.normalize_with_title(presentation, filename)
    return None, normalizer.normalize_lines(presentation)


def _format_text(
    formatter: ProPresenterFormatter,
    title: str | None,
    lines: list[str],
    notes: Sequence[str],
) -> str:
    text = formatter.format_with_title(lines, title)
    if notes:
        notes_text = "\n\n".join(notes)
        text = f"{text}\n{notes_text}\n" if text else f"{notes_text}\n"
    return text


def _serialize_result(
    input_path: Path,
    presentation: Presentation,
    title: str | None,
    lines: list[str],
    lines_per_slide: int,
) -> dict:
    return {
        "file": str(input_path),
        "format": presentation.format.value,
        "slide_count": presentation.slide_count,
        "detected_title": title,
        "lines": lines,
        "output_slide_count": count_output_slides(lines, lines_per_slide, title),
        "warnings": list(presentation.warnings),
        "document": serialize_extraction(presentation),
    }


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    try:
        args, unknown = parser.parse_known_args(argv)
    except SystemExit as exc:
        code = exc.code if isinstance(exc.code, int) else 1
        return code

    if unknown:
        unknown_str = " ".join(unknown)
        print(
            f"ppt2lyrics: warning: unsupported arguments: {unknown_str}",
            file=sys.stderr,
        )
        return 1

    _configure_logging(args.verbose)
    formatter = ProPresenterFormatter(args.lines_per_slide)

    failed = False
    json_results: list[dict] = []

    for input_path in args.input:
        logger.info(f"Processing: {input_path}")
        try:
            presentation = next(
                ppt2lyrics.read_file(input_path, include_notes=args.notes)
            )
            title, lines = _lyrics(
                presentation, input_path.name, detect_title=not args.no_title
            )
            logger.info(
                f"{input_path.name}: {presentation.slide_count} slides, "
                f"{len(lines)} lines"
            )

            if args.json:
                json_results.append(
                    _serialize_result(
                        input_path,
                        presentation,
                        title,
                        lines,
                        formatter.lines_per_slide,
                    )
                )
                continue

            notes = (presentation.notes or ()) if args.notes else ()
            output = _format_text(formatter, title, lines, notes)

            if args.print:
                sys.stdout.write(output)
            else:
                output_path = get_output_path(input_path, args.output)
                output_path.write_text(output, encoding="utf-8")
                logger.info(f"Written to: {output_path}")
        except Exception as exc:
            failed = True
            print(f"ppt2lyrics: {input_path}: {exc}", file=sys.stderr)

    if args.json and json_results:
        payload = json_results[0] if len(json_results) == 1 else json_results
        json.dump(payload, sys.stdout)
        sys.stdout.write("\n")

    return 1 if failed else 0


if __name__ == "__main__":
    raise SystemExit(main())
