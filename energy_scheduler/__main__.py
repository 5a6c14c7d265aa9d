"""
Command-line entry point: optimize a schedule request stored as JSON.

    python -m energy_scheduler request.json --seed 7 --output schedule.json
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from .api import optimize_schedule_api
from .config import settings


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="energy_scheduler", description="Energy-aware study schedule optimizer"
    )
    parser.add_argument("request", help="Path to a JSON schedule request ('-' for stdin)")
    parser.add_argument("--seed", type=int, help="Random seed for a reproducible run")
    parser.add_argument("--output", help="Write the JSON response here instead of stdout")
    parser.add_argument(
        "--log-level",
        default=settings.log_level,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging verbosity",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if args.request == "-":
        request_data = json.load(sys.stdin)
    else:
        request_data = json.loads(Path(args.request).read_text(encoding="utf-8"))
    if args.seed is not None:
        request_data["seed"] = args.seed

    response = optimize_schedule_api(request_data)
    payload = json.dumps(response, indent=2, ensure_ascii=False)
    if args.output:
        Path(args.output).write_text(payload + "\n", encoding="utf-8")
    else:
        print(payload)

    return 0 if response["result"]["success"] else 1


if __name__ == "__main__":
    sys.exit(main())
