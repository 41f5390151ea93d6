from __future__ import annotations

import argparse
import logging
import os

from job_digest.config import (
    RUN_REQUIRED_ENVS,
    assert_required_envs,
    load_settings,
    mask_secret,
    missing_envs,
)
from job_digest.errors import ConfigError, DeliveryError
from job_digest.pipeline import run_pipeline
from job_digest.sources import FEED_SOURCES

logger = logging.getLogger("job_digest")

EXIT_OK = 0
EXIT_CONFIG = 2
EXIT_DELIVERY = 3
EXIT_UNHANDLED = 99


def _configure_logging() -> None:
    level = os.environ.get("LOG_LEVEL", "INFO").strip().upper() or "INFO"
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="job-digest")
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Fetch feeds, filter matches and email the digest")
    run_parser.add_argument(
        "--dry-run",
        action="store_true",
        default=False,
        help="Print the digest instead of sending it (no email configuration required)",
    )
    subparsers.add_parser("healthcheck", help="Validate configuration without touching the network")

    return parser


def _cmd_run(args: argparse.Namespace) -> int:
    if not args.dry_run:
        assert_required_envs(RUN_REQUIRED_ENVS)
    settings = load_settings()
    result = run_pipeline(settings, dry_run=args.dry_run)

    print(
        "run summary:",
        f"sources={len(result.statuses)}",
        f"matches={len(result.matches)}",
        f"fallbacks={result.fallback_count}",
        f"failed_sources={result.failed_source_count}",
        f"delivery_status={result.delivery_status}",
    )
    if args.dry_run:
        print(f"Subject: {result.digest.subject}")
        print()
        print(result.digest.plain_body)
    return EXIT_OK


def _cmd_healthcheck() -> int:
    missing = missing_envs(RUN_REQUIRED_ENVS)
    if missing:
        print("missing required env vars:", ", ".join(missing))
        return EXIT_CONFIG

    settings = load_settings()
    print(f"sendgrid api key: {mask_secret(settings.sendgrid_api_key)}")
    print(f"sender: {settings.email_from}")
    print(f"recipients: {', '.join(settings.email_to)}")
    print(f"lookback days: {settings.days_lookback}")
    print(f"feed sources: {len(FEED_SOURCES)}")
    print("healthcheck passed")
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    _configure_logging()

    try:
        if args.command == "run":
            return _cmd_run(args)
        if args.command == "healthcheck":
            return _cmd_healthcheck()
    except ConfigError as exc:
        logger.error("%s", exc)
        return EXIT_CONFIG
    except DeliveryError as exc:
        logger.error("%s", exc)
        if exc.body:
            logger.error("Email provider error response: %s", exc.body)
        return EXIT_DELIVERY
    except Exception:
        logger.exception("Unhandled error")
        return EXIT_UNHANDLED

    parser.print_help()
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
