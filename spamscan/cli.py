from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import Dict, List, Optional, Sequence, TextIO

from pydantic import ValidationError

from spamscan.detectors import DetectionReport, build_detector
from spamscan.errors import ConfigurationError
from spamscan.settings import DetectorSettings
from spamscan.telemetry.logging import configure_root_logging

EXIT_CLEAN = 0
EXIT_SPAM = 1
EXIT_ERROR = 2


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="spamscan",
        description="Classify text as spam by checking its fragments concurrently.",
    )
    parser.add_argument("text", nargs="?", help="Text to classify (reads stdin when omitted).")
    parser.add_argument("--markers", help="Comma-separated spam markers.")
    parser.add_argument(
        "--fragmenter",
        choices=["whitespace", "lines", "sentences", "paragraphs"],
        help="How to split the text into fragments.",
    )
    parser.add_argument("--delay-ms", type=float, help="Synthetic delay per symbol, in ms.")
    parser.add_argument("--details", action="store_true", help="Include per-fragment states.")
    parser.add_argument("--log-level", help="Log level for JSON logs on stderr.")
    return parser


def _settings_from_args(args: argparse.Namespace) -> DetectorSettings:
    overrides: Dict[str, object] = {}
    if args.markers is not None:
        overrides["markers"] = args.markers
    if args.fragmenter is not None:
        overrides["fragmenter"] = args.fragmenter
    if args.delay_ms is not None:
        overrides["delay_per_symbol_ms"] = args.delay_ms
    if args.log_level is not None:
        overrides["log_level"] = args.log_level
    return DetectorSettings(**overrides)  # type: ignore[arg-type]


async def _run(text: str, settings: DetectorSettings) -> DetectionReport:
    async with build_detector(settings) as detector:
        return await detector.inspect(text)


def main(argv: Optional[Sequence[str]] = None, *, stdin: TextIO = sys.stdin) -> int:
    args = _build_parser().parse_args(argv)
    text = args.text if args.text is not None else stdin.read()

    try:
        settings = _settings_from_args(args)
        if args.log_level is not None:
            configure_root_logging(settings.log_level, stream=sys.stderr)
        report = asyncio.run(_run(text, settings))
    except (ConfigurationError, ValidationError) as exc:
        print(json.dumps({"error": "configuration_error", "detail": str(exc)}), file=sys.stderr)
        return EXIT_ERROR

    out: Dict[str, object] = dict(report.to_dict())
    if args.details:
        tasks: List[Dict[str, object]] = [t.to_dict() for t in report.tasks]
        out["tasks"] = tasks
    if report.failed:
        out["error"] = "detection_failed"
        out["detail"] = str(report.errors[0])
        print(json.dumps(out))
        return EXIT_ERROR

    print(json.dumps(out))
    return EXIT_SPAM if report.verdict else EXIT_CLEAN


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
