#!/usr/bin/env python3
"""
Usage:
    main.py [--configuration-file FILE]

Options:
    --configuration-file FILE    Load config variables from FILE

Reads one JSON command per line from stdin and writes every message produced
by the lobby as one JSON object per line to stdout.
"""

import asyncio
import json
import logging
import os
import platform
import signal
import sys
import time
from datetime import datetime, timezone

import humanize
from docopt import docopt
from prometheus_client import start_http_server

import lobby
import lobby.metrics as metrics
from lobby.abc.authority import StaticAuthority
from lobby.command_dispatcher import CommandDispatcher
from lobby.config import config
from lobby.db import LobbyDatabase
from lobby.message_renderer import MessageRenderer
from lobby.sql_player_store import SqlPlayerStore


async def write_message(message: dict) -> None:
    sys.stdout.write(json.dumps(message, default=str) + "\n")
    sys.stdout.flush()


async def read_lines(dispatcher: CommandDispatcher) -> None:
    loop = asyncio.get_running_loop()
    reader = asyncio.StreamReader()
    await loop.connect_read_pipe(
        lambda: asyncio.StreamReaderProtocol(reader),
        sys.stdin
    )

    while line := await reader.readline():
        line = line.strip()
        if not line:
            continue
        try:
            message = json.loads(line)
        except ValueError:
            logger.warning("Could not decode line: %r", line)
            continue
        await dispatcher.on_message_received(message)


async def main():
    global shutdown_time

    version = os.environ.get("VERSION") or "dev"
    python_version = platform.python_version()

    logger.info(
        "Lobby %s on python %s",
        version,
        python_version
    )

    loop = asyncio.get_running_loop()
    done = loop.create_future()

    def signal_handler(sig: int, _frame):
        logger.info(
            "Received signal %s, shutting down",
            signal.Signals(sig)
        )
        if not done.done():
            done.set_result(0)

    if platform.system() != "Windows":
        signal.signal(signal.SIGTERM, signal_handler)
    signal.signal(signal.SIGINT, signal_handler)

    database = LobbyDatabase()
    await database.create_tables()

    if config.ENABLE_METRICS:
        logger.info("Using prometheus on port: %i", config.METRICS_PORT)
        start_http_server(config.METRICS_PORT)

    instance = lobby.LobbyInstance(
        "LobbyInstance",
        player_store=SqlPlayerStore(database),
        authority=StaticAuthority(config.ADMINS),
        renderer=MessageRenderer(write_message),
    )
    await instance.start_services()

    dispatcher = CommandDispatcher(
        instance.lobby_service,
        instance.player_service,
        instance.services["session_registry"],
        write_message,
    )

    metrics.info.info({
        "version": version,
        "python_version": python_version,
        "start_time": datetime.now(timezone.utc).strftime("%m-%d %H:%M"),
    })
    logger.info(
        "Lobby started in %0.2f seconds",
        time.perf_counter() - startup_time
    )

    reader = asyncio.create_task(read_lines(dispatcher))
    reader.add_done_callback(
        lambda _: done.done() or done.set_result(0)
    )

    exit_code = await done

    shutdown_time = time.perf_counter()

    # Cleanup
    reader.cancel()
    await dispatcher.shutdown()
    await instance.shutdown()

    # Close DB connections
    await database.close()

    return exit_code


if __name__ == "__main__":
    startup_time = time.perf_counter()
    shutdown_time = None

    args = docopt(__doc__, version="Custom Lobby")
    config_file = args.get("--configuration-file")
    if config_file:
        os.environ["CONFIGURATION_FILE"] = config_file

    logger = logging.getLogger()
    stderr_handler = logging.StreamHandler()
    stderr_handler.setFormatter(
        logging.Formatter(
            fmt="%(levelname)-8s %(asctime)s %(name)-30s %(message)s",
            datefmt="%b %d  %H:%M:%S"
        )
    )
    logger.addHandler(stderr_handler)
    logger.setLevel(logging.INFO)

    config.refresh()
    logger.setLevel(config.LOG_LEVEL)

    exit_code = asyncio.run(main())

    stop_time = time.perf_counter()
    logger.info(
        "Total lobby uptime: %s",
        humanize.naturaldelta(stop_time - startup_time)
    )

    if shutdown_time is not None:
        logger.info(
            "Lobby shut down in %0.2f seconds",
            stop_time - shutdown_time
        )

    if exit_code:
        logger.error("Lobby shut down with exit code: %s", exit_code)

    exit(exit_code)
