# src/cli.py
import argparse
import logging
import sys
from typing import List, Optional

from insider_relay.config import load_settings
from insider_relay.main import InsiderRelay
from insider_relay.storage.ledger import open_ledger
from insider_relay.utils.logging import setup_logging
from insider_relay.exceptions import RelayException, ConfigurationError

cli_logger = logging.getLogger("cli")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="OpenInsider Relay: posts new insider trades to a Discord webhook",
        formatter_class=argparse.RawTextHelpFormatter
    )

    parser.add_argument(
        "--config", "-c",
        type=str,
        help=(
            "Path to a YAML configuration file. \n"
            "If not provided, 'config/default.yaml' is used when present. \n"
            "Environment variables (and .env) override file values."
        )
    )

    parser.add_argument(
        "--env", "-e",
        type=str,
        default=None,
        help=(
            "Environment configuration to merge (e.g., 'development', 'production'). \n"
            "Looks for '<env>.yaml' next to the base config."
        )
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to execute", required=True)

    run_parser = subparsers.add_parser("run", help="Fetch the screener once and send new trades.")
    run_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Fetch, filter and plan, but neither post to the webhook nor record keys."
    )
    run_parser.add_argument(
        "--local-html",
        type=str,
        metavar="PATH",
        help="Read the screener page from a local HTML file instead of fetching it."
    )

    subparsers.add_parser("ledger-stats", help="Show how many trades have been recorded as sent.")

    return parser.parse_args(argv)


def main_cli(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI."""
    args = parse_args(argv)

    temp_log_config = {"level": "INFO", "console": True}
    try:
        settings = load_settings(config_path=args.config, env=args.env)
        setup_logging({**temp_log_config, **settings.logging})
    except ConfigurationError as e:
        setup_logging(temp_log_config)
        cli_logger.error(f"Configuration error: {e}")
        return 1

    if args.command == "run" and args.local_html:
        settings = settings.model_copy(
            update={"source": settings.source.model_copy(update={"local_html": args.local_html})}
        )

    cli_logger.debug(f"Full arguments: {args}")

    if args.command == "ledger-stats":
        ledger = open_ledger(settings.ledger)
        try:
            keys = ledger.load()
        finally:
            ledger.close()
        print(f"{len(keys)} sent keys in {ledger.location}")
        return 0

    relay: Optional[InsiderRelay] = None
    try:
        relay = InsiderRelay(settings)
        relay.run_once(dry_run=args.dry_run)
        return 0

    except KeyboardInterrupt:
        cli_logger.info("Keyboard interrupt received. Stopping.")
        return 130
    except RelayException as e:
        cli_logger.error(f"ERROR: {e}")
        return 2
    except Exception as e:
        cli_logger.error(f"An unexpected error occurred: {e}", exc_info=True)
        return 1
    finally:
        if relay:
            relay.close()


if __name__ == "__main__":
    sys.exit(main_cli())
