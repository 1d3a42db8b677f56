"""
cli.py
======

Command line front end.

Example usage:

    pack-converter java-to-bedrock MyPack.zip --output-dir out/ --report out/report.json
    pack-converter bedrock-to-java MyPack.mcpack --namespace minecraft --force
    pack-converter validate out/converted_MyPack.mcpack
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from .config import (
    DEFAULT_COMPRESSION_LEVEL,
    DEFAULT_CREDIT,
    DEFAULT_JAVA_PACK_FORMAT,
    DEFAULT_MIN_ENGINE_VERSION,
    DEFAULT_NAMESPACE,
    DEFAULT_OUTPUT_DIR,
    settings_from_args,
)
from .errors import ConversionError
from .events import LoggingEvents
from .pipeline import Direction, PackConverter, get_profile
from .validate import is_zip_package, validate_package


def _namespace(value: str) -> str:
    if not value or "/" in value or "\\" in value:
        raise argparse.ArgumentTypeError(f"invalid namespace: {value!r}")
    return value


def _add_common(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging.",
    )


def _add_conversion_command(
    subparsers: "argparse._SubParsersAction[argparse.ArgumentParser]",
    direction: Direction,
    help_text: str,
) -> None:
    parser = subparsers.add_parser(direction.value, help=help_text, description=help_text)
    parser.set_defaults(direction=direction)
    parser.add_argument("input", type=Path, help="Source resource pack archive.")
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=DEFAULT_OUTPUT_DIR,
        help="Directory where the converted pack will be written (default: %(default)s).",
    )
    parser.add_argument(
        "--namespace",
        type=_namespace,
        default=DEFAULT_NAMESPACE,
        help="Java asset namespace written for converted textures (default: %(default)s).",
    )
    parser.add_argument(
        "--pack-format",
        type=int,
        default=DEFAULT_JAVA_PACK_FORMAT,
        help="pack_format written to a generated pack.mcmeta (default: %(default)s).",
    )
    parser.add_argument(
        "--min-engine-version",
        default=DEFAULT_MIN_ENGINE_VERSION,
        help="min_engine_version written to a generated manifest.json (default: %(default)s).",
    )
    parser.add_argument(
        "--compression-level",
        type=int,
        choices=range(10),
        metavar="0-9",
        default=DEFAULT_COMPRESSION_LEVEL,
        help="DEFLATE level for the output archive, 0-9 (default: %(default)s).",
    )
    parser.add_argument(
        "--credit",
        default=DEFAULT_CREDIT,
        help="Tool name credited in the generated manifest (default: %(default)s).",
    )
    parser.add_argument(
        "--report",
        type=Path,
        help="Optional path to store a JSON summary of the conversion results.",
    )
    parser.add_argument(
        "--force",
        action="store_true",
        help="Overwrite an existing converted pack.",
    )
    _add_common(parser)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pack-converter",
        description="Convert resource packs between the Java and Bedrock Edition layouts.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)
    _add_conversion_command(
        subparsers,
        Direction.JAVA_TO_BEDROCK,
        "Convert a Java Edition resource pack (.zip) to a Bedrock pack (.mcpack).",
    )
    _add_conversion_command(
        subparsers,
        Direction.BEDROCK_TO_JAVA,
        "Convert a Bedrock Edition resource pack (.mcpack/.zip) to a Java pack (.zip).",
    )

    validate = subparsers.add_parser("validate", help="Structurally validate a converted pack.")
    validate.add_argument("package", type=Path, help="Pack archive to validate.")
    validate.add_argument("--report", type=Path, default=None, help="Path for JSON validation report.")
    _add_common(validate)
    return parser


def parse_args(argv: Sequence[str]) -> argparse.Namespace:
    return build_parser().parse_args(argv)


def write_report(path: Path, payload: dict) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    logging.info("Wrote conversion report to %s", path)


def run_conversion(args: argparse.Namespace) -> int:
    source: Path = args.input
    if not source.is_file():
        logging.error("Input pack does not exist: %s", source)
        return 1

    profile = get_profile(args.direction)
    converter = PackConverter(
        profile,
        settings=settings_from_args(args),
        events=LoggingEvents(label=f"{profile.source_label} pack"),
    )
    logging.info("Starting %s conversion of %s", args.direction.value, source)
    try:
        result = converter.run(source, args.output_dir.resolve())
    except ConversionError as exc:
        if args.report:
            write_report(
                args.report,
                {"direction": args.direction.value, "error": {"kind": exc.kind, "message": str(exc)}},
            )
        return 1

    if args.report:
        write_report(args.report, result.report())
    logging.info("Conversion complete: %s", result.output_path)
    return 0


def run_validation(args: argparse.Namespace) -> int:
    if not is_zip_package(args.package):
        logging.error("Not a zip package: %s", args.package)
        return 1
    try:
        stats = validate_package(args.package, report_path=args.report)
    except ConversionError as exc:
        logging.error("Cannot read %s: %s", args.package, exc)
        return 1
    if stats.failed > 0:
        logging.warning("%d files failed validation", stats.failed)
        return 1
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(sys.argv[1:] if argv is None else argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="[%(levelname)s] %(message)s",
    )

    if args.command == "validate":
        return run_validation(args)
    return run_conversion(args)


def run() -> None:
    sys.exit(main(sys.argv[1:]))
