from __future__ import annotations

from pathlib import Path
import argparse
import logging
import signal
import sys

from .config import LOG_LEVELS, OUTPUT_FORMATS, Settings, load_settings, validate
from .errors import ConfigError, ResolutionError, StoreError, StoreLockedError
from .paths import find_db
from .poller import Poller
from .reporter import Reporter
from .scheduler import run_polling
from .store import open_collection

logger = logging.getLogger(__name__)


def apply_overrides(settings: Settings, args: argparse.Namespace) -> Settings:
    if args.path:
        settings.collection_path = Path(args.path).expanduser()
    if args.profile:
        settings.profile = args.profile
    if args.output:
        settings.output = args.output
    if args.log_level:
        settings.log_level = args.log_level.upper()
    if getattr(args, "refresh_minutes", None) is not None:
        settings.poll.refresh_minutes = args.refresh_minutes
    if getattr(args, "retry_seconds", None) is not None:
        settings.poll.retry_seconds = args.retry_seconds
    return validate(settings)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    if level != "DEBUG":
        logging.getLogger("apscheduler").setLevel(logging.WARNING)


def build_poller(settings: Settings) -> Poller:
    path = find_db(settings.collection_path, settings.profile, settings.search_env)
    busy_timeout_ms = settings.poll.busy_timeout_ms
    return Poller(
        path,
        Reporter(settings.output),
        refresh_delay=settings.poll.refresh_delay,
        retry_delay=settings.poll.retry_delay,
        opener=lambda p: open_collection(p, busy_timeout_ms),
    )


def run_once(settings: Settings) -> None:
    build_poller(settings).run_once()


def _exit_on_sigterm(signum, frame) -> None:
    raise SystemExit(0)


def serve(settings: Settings) -> None:
    poller = build_poller(settings)
    signal.signal(signal.SIGTERM, _exit_on_sigterm)
    logger.info(
        "Polling %s every %s (retry after %s)",
        poller.path,
        poller.refresh_delay,
        poller.retry_delay,
    )
    run_polling(poller.cycle)


def build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--config", help="Path to config.yaml")
    common.add_argument("--path", help="Anki data directory to search instead of the defaults")
    common.add_argument("--profile", help="Anki profile name (exact match)")
    fmt = common.add_mutually_exclusive_group()
    fmt.add_argument("--output", choices=OUTPUT_FORMATS)
    fmt.add_argument("--compact", dest="output", action="store_const", const="compact")
    fmt.add_argument("--json", dest="output", action="store_const", const="json")
    common.add_argument("--log-level", type=str.upper, choices=LOG_LEVELS)

    parser = argparse.ArgumentParser(description="Report due and new Anki cards")
    sub = parser.add_subparsers(dest="cmd", required=True)
    sub.add_parser("run-once", parents=[common], help="Report counts once and exit")
    p_serve = sub.add_parser("serve", parents=[common], help="Report counts periodically")
    p_serve.add_argument("--refresh-minutes", type=float, help="Delay after a successful report")
    p_serve.add_argument("--retry-seconds", type=float, help="Delay after a failed attempt")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = apply_overrides(load_settings(args.config), args)
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2
    configure_logging(settings.log_level)

    try:
        if args.cmd == "run-once":
            run_once(settings)
        elif args.cmd == "serve":
            serve(settings)
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2
    except ResolutionError as e:
        print(e, file=sys.stderr)
        if e.hint:
            print(e.hint, file=sys.stderr)
        return 1
    except StoreLockedError:
        Reporter(settings.output).busy()
        return 1
    except StoreError as e:
        Reporter(settings.output).error(e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
