"""Command line entry point: run RCON commands against a server."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import TYPE_CHECKING, TextIO

from dotenv import load_dotenv

from .config import ClientConfig, configure_logging
from .connection import RCONSession
from .rcon_exceptions import RCONClientError, RCONClientMissingPassword

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

LOGGER = logging.getLogger(__name__)


def read_commands(stream: TextIO) -> Iterator[str]:
    """Yield one command per non-blank line of ``stream``."""
    for line in stream:
        command = line.strip()
        if command:
            yield command


async def run(config: ClientConfig, commands: Iterable[str], out: TextIO) -> None:
    """Connect, send each command in order and print the responses.

    :param config: The client configuration
    :param commands: Commands to send
    :param out: Stream the responses are written to
    """
    session = await RCONSession.connect(config.session_config)
    try:
        for command in commands:
            response = await session.command(command)
            print(response, file=out)
    finally:
        await session.close()


def main(argv: list[str] | None = None) -> int:
    """Run commands given on the command line, or read from stdin."""
    parser = argparse.ArgumentParser(
        prog="rconclient",
        description="Send commands to a Minecraft server over RCON.",
    )
    parser.add_argument(
        "--env-file",
        type=str,
        default=".env",
        help="Path to the environment configuration file.",
    )
    parser.add_argument(
        "--address",
        type=str,
        default=None,
        help="Server address as host:port, overrides RCON_ADDRESS.",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        help="Logging level, overrides LOGGING_LEVEL.",
    )
    parser.add_argument(
        "command",
        nargs="*",
        help="Commands to run. Read one per line from stdin if omitted.",
    )
    args = parser.parse_args(argv)

    load_dotenv(args.env_file)

    try:
        config = ClientConfig()
    except (RCONClientMissingPassword, ValueError) as e:
        print(f"rconclient: {e}", file=sys.stderr)
        return 1

    if args.address is not None:
        config.rcon_address = args.address
    if args.log_level is not None:
        config.logging_level = args.log_level
    configure_logging(config)

    # read stdin before entering the event loop
    commands = args.command or list(read_commands(sys.stdin))

    try:
        asyncio.run(run(config, commands, sys.stdout))
    except RCONClientError as e:
        LOGGER.debug("Command run failed", exc_info=True)
        print(f"rconclient: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
