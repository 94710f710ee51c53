"""Command-line entry point for the Learn bridge."""

import argparse
import asyncio
import logging
import sys
from collections.abc import Sequence

from learn_bridge.app_logging import configure_logging
from learn_bridge.containers import AppContainer, build_container
from learn_bridge.domain.outcomes import Outcome
from learn_bridge.services.sessions import SessionManager
from learn_bridge.services.snapshot import SNAPSHOT_HEADER, render_snapshot_row
from learn_bridge.services.user_lookup import UserLookupRequest

REGISTER_COMMAND = "register"
EXIT_OK = 0
EXIT_FAILURE = 1

_logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Return the argument parser for the bridge."""
    parser = argparse.ArgumentParser(
        prog="learn-bridge",
        description=(
            "Log into a Learn host as a proxy tool and print one user's "
            "snapshot record, or register the tool."
        ),
    )
    parser.add_argument("host", help="Learn host, with or without https://")
    parser.add_argument("shared_secret", help="Proxy tool shared secret")
    parser.add_argument(
        "user_id",
        help=f"User id to look up, or '{REGISTER_COMMAND}' to register the tool",
    )
    parser.add_argument(
        "initial_secret",
        nargs="?",
        default=None,
        help="Global registration password (only with 'register')",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


async def run_bridge(args: argparse.Namespace, container: AppContainer) -> int:
    """Run one bridge invocation; the session is always logged out."""
    async with container.session_manager as manager:
        _logger.info("Connecting to host %s...", args.host)
        connected = await manager.connect(args.host)
        if not connected.ok:
            return _report_failure(manager, "Unable to connect to host", connected)

        if args.user_id.lower() == REGISTER_COMMAND:
            return await _register(args, container)

        logged_in = await manager.login(args.shared_secret)
        if not logged_in.ok or not logged_in.value:
            return _report_failure(manager, "Unable to log into host", logged_in)

        _logger.info("Initializing web services...")
        initialized = await manager.initialize_sub_wrappers()
        if not initialized.ok:
            return _report_failure(
                manager, "Unable to initialize one or more web services", initialized
            )

        loaded = await container.data_sources.load()
        if not loaded.ok:
            return _report_failure(manager, "Unable to pull data sources", loaded)

        _logger.info('Looking up user "%s"...', args.user_id)
        request = UserLookupRequest(manager)
        found = await request.execute(args.user_id)
        if not found.ok:
            return _report_failure(
                manager, f'Data for user ID "{args.user_id}" could not be pulled', found
            )

        row = render_snapshot_row(request.get(), container.data_sources)
        if not row.ok:
            return _report_failure(manager, "Unable to render user record", row)
        print(SNAPSHOT_HEADER)
        print(row.unwrap())
        return EXIT_OK


async def _register(args: argparse.Namespace, container: AppContainer) -> int:
    manager = container.session_manager
    registered = await manager.register(
        container.settings.tool_description, args.initial_secret, args.shared_secret
    )
    if not registered.ok:
        return _report_failure(manager, "Unable to register tool", registered)
    if not registered.value:
        _logger.error(
            "Unable to register tool in host %s: %s (global password may be invalid)",
            args.host,
            manager.get_last_remote_diagnostic(),
        )
        return EXIT_FAILURE
    _logger.info("Registered tool successfully")
    return EXIT_OK


def _report_failure(
    manager: SessionManager, message: str, outcome: Outcome[object]
) -> int:
    reason = str(outcome.error) if outcome.error else "request was rejected"
    diagnostic = manager.get_last_remote_diagnostic()
    if diagnostic:
        _logger.error("%s: %s. More info: %s", message, reason, diagnostic)
    else:
        _logger.error("%s: %s", message, reason)
    return EXIT_FAILURE


def main(
    argv: Sequence[str] | None = None, container: AppContainer | None = None
) -> int:
    """Parse arguments, run the bridge and return the process exit code."""
    args = build_parser().parse_args(argv)
    configure_logging(logging.DEBUG if args.verbose else logging.INFO)
    return asyncio.run(run_bridge(args, container or build_container()))


def run() -> None:
    """Console script entry point."""
    sys.exit(main())
