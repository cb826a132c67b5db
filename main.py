import argparse
import csv
import logging
import sys
import time
from typing import List, Optional

import structlog

from config import Settings, get_settings, get_settings_for_environment
from errors import InvalidRecordError
from records import read_transactions, write_accounts
from repositories import InMemoryAccountRepository
from services import get_ledger_engine

logger = structlog.get_logger()

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def configure_logging(settings: Settings) -> None:
    """Configure structured logging to stderr; stdout carries the report."""
    logging.basicConfig(
        stream=sys.stderr,
        level=settings.log_level.upper(),
        format="%(message)s",
        force=True,
    )

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]
    if settings.log_format == "json":
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors += [
            structlog.processors.UnicodeDecoder(),
            structlog.dev.ConsoleRenderer(colors=False),
        ]

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )


def build_parser() -> argparse.ArgumentParser:
    settings = get_settings()
    parser = argparse.ArgumentParser(
        prog="ledger-replay",
        description="Replay a CSV log of ledger transactions and print final client balances",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {settings.app_version}")
    parser.add_argument("path", help="CSV file with columns type, client, tx, amount")
    parser.add_argument("--env", choices=["development", "production", "testing"], default="production",
                        help="Settings profile (default: production)")
    parser.add_argument("--workers", type=int, help="Replay clients in parallel across this many threads")
    parser.add_argument("--strict", action="store_true", default=None,
                        help="Abort on the first undecodable row instead of skipping it")
    parser.add_argument("--log-level", dest="log_level", type=str.upper, choices=LOG_LEVELS,
                        help="Override the configured log level")
    return parser


def resolve_settings(args: argparse.Namespace) -> Settings:
    settings = get_settings_for_environment(args.env)
    overrides = {}
    if args.workers is not None:
        overrides["workers"] = max(args.workers, 1)
    if args.strict is not None:
        overrides["strict_parsing"] = args.strict
    if args.log_level:
        overrides["log_level"] = args.log_level
    return settings.model_copy(update=overrides) if overrides else settings


def run(args: argparse.Namespace) -> int:
    settings = resolve_settings(args)
    configure_logging(settings)

    start_time = time.time()
    logger.info(
        "Starting replay",
        app=settings.app_name,
        version=settings.app_version,
        path=args.path,
        workers=settings.workers,
        strict=settings.strict_parsing
    )

    engine = get_ledger_engine(InMemoryAccountRepository())
    try:
        engine.replay(
            read_transactions(args.path, strict=settings.strict_parsing),
            workers=settings.workers,
        )
    except FileNotFoundError as e:
        logger.error("Input file not found", path=args.path, error=str(e))
        return 1
    except InvalidRecordError as e:
        logger.error("Invalid input row", path=args.path, line=e.line, reason=e.reason, row=e.row)
        return 1
    except OSError as e:
        logger.error("Cannot read input file", path=args.path, error=str(e))
        return 1
    except (UnicodeDecodeError, csv.Error) as e:
        logger.error("Undecodable input file", path=args.path, error=str(e))
        return 1

    write_accounts(engine.accounts(), sys.stdout, settings.report_precision)

    if settings.enable_stats:
        logger.info(
            "Replay completed",
            accounts=engine.account_repo.get_accounts_count(),
            processed=engine.stats.processed,
            rejected=engine.stats.rejected,
            outcomes=engine.stats.as_dict(),
            process_time=round(time.time() - start_time, 4)
        )
    return 0


def main(argv: Optional[List[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    sys.exit(run(args))


if __name__ == "__main__":
    main()
