"""Run one notification reconciliation pass from the command line."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import asdict

from nerbabo.application.use_cases.notifications import build_generators, reconcile_notifications
from nerbabo.config import get_settings
from nerbabo.infrastructure.database import SessionLocal, initialize_database


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments for a reconciliation run."""

    parser = argparse.ArgumentParser(
        description="Reconcile deficiency notifications against the current data.",
    )
    parser.add_argument(
        "--generator",
        action="append",
        dest="generators",
        default=None,
        help="Run only the generator with this identifier (may be repeated).",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the run summary as JSON instead of a short text report.",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Override the LOG_LEVEL setting for this run.",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Reconcile notifications and return a process exit code."""

    args = parse_args(argv)
    settings = get_settings()
    logging.basicConfig(level=(args.log_level or settings.log_level).upper())

    initialize_database()

    session = SessionLocal()
    try:
        generators = build_generators(session, settings)
        if args.generators:
            unknown = set(args.generators) - {generator.generator_id for generator in generators}
            if unknown:
                raise SystemExit(f"Geradores desconhecidos: {', '.join(sorted(unknown))}")
            generators = [
                generator for generator in generators if generator.generator_id in args.generators
            ]
        summary = reconcile_notifications(session, generators=generators)
    finally:
        session.close()

    if args.json:
        print(json.dumps(asdict(summary), ensure_ascii=False, indent=2))
    else:
        print(
            f"Criadas: {summary.created}, atualizadas: {summary.updated}, "
            f"removidas: {summary.deleted}, duplicadas ignoradas: {summary.skipped_duplicate}"
        )
        for generator_id, error in summary.per_category_errors.items():
            print(f"Falha em {generator_id}: {error}", file=sys.stderr)

    return 0 if summary.succeeded else 1


if __name__ == "__main__":
    raise SystemExit(main())
