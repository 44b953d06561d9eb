import argparse
import json
import logging
import sys

from config import load_settings
from digest.scheduler import build_runner, run_forever, run_once
from slack_client.client import SlackClient

logger = logging.getLogger(__name__)


def main() -> None:
    """Command line entry point for the daily digest bot."""
    parser = argparse.ArgumentParser(description="Slack daily digest bot")
    parser.add_argument(
        "--once",
        action="store_true",
        help="Post today's digest to every member channel once and exit",
    )
    parser.add_argument(
        "--serve",
        action="store_true",
        help="Run on a fixed schedule (DIGEST_INTERVAL_MINUTES) until interrupted",
    )
    parser.add_argument(
        "--check-auth",
        action="store_true",
        help="Verify the Slack bot token",
    )
    parser.add_argument(
        "--show-config",
        action="store_true",
        help="Print the resolved settings with secrets masked",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to a YAML config file (default: config/config.yaml)",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )

    if not any([args.once, args.serve, args.check_auth, args.show_config]):
        parser.print_help()
        return

    try:
        settings = load_settings(args.config)

        if args.show_config:
            print(json.dumps(settings.redacted(), indent=2))  # noqa: T201

        if args.check_auth and not SlackClient(settings.slack_bot_token).test_auth():
            sys.exit(1)

        if args.once:
            logger.info("Running digest job once...")
            result = run_once(build_runner(settings))
            if not result.ok:
                sys.exit(1)

        if args.serve:
            run_forever(settings)

    except RuntimeError as e:
        logger.error(f"Startup failed: {e}")
        sys.exit(2)


if __name__ == "__main__":
    main()
