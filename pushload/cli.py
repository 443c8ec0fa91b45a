# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at http://mozilla.org/MPL/2.0/.

"""
Drive synthetic 'sendSystemPush' traffic against a logic server.

Run a single request with the defaults:

    pushload

Run 50 virtual users for 5 minutes, pausing 1 to 3 seconds between requests:

    pushload --users 50 --run_time 300 --wait_time "1, 3"

"""

import argparse
import json
import logging
import os
import sys
from typing import Any, Sequence

import statsd
import toml

from .args import parse_header, parse_user_ids, parse_wait_time
from .config import DEFAULT_HOST, DEFAULT_PUSH_PATH, DEFAULT_TIMEOUT, DEFAULT_TTL, LoadConfig
from .exceptions import ConfigurationError
from .runner import run_virtual_users
from .transport import HttpxTransport


def config(
    argv: Sequence[str] | None = None, env_args: os._Environ | dict[str, str] = os.environ
) -> argparse.Namespace:
    """Read the configuration from the args and environment."""
    parser = argparse.ArgumentParser(
        description="Send synthetic System Push requests from concurrent virtual users."
    )
    parser.add_argument("-c", "--config", help="configuration_file", action="append")
    parser.add_argument(
        "--host",
        help="Base URL of the logic server",
        default=env_args.get("PUSHLOAD_HOST", DEFAULT_HOST),
    )
    parser.add_argument(
        "--push_path",
        help="Path of the System Push endpoint",
        default=env_args.get("PUSHLOAD_PUSH_PATH", DEFAULT_PUSH_PATH),
    )
    parser.add_argument(
        "--to_user_ids",
        help="Comma separated recipient user IDs",
        default=env_args.get("PUSHLOAD_TO_USER_IDS"),
    )
    parser.add_argument(
        "--ttl",
        type=int,
        help="Seconds between a push timestamp and its expire_time",
        default=env_args.get("PUSHLOAD_TTL", DEFAULT_TTL),
    )
    parser.add_argument(
        "--timeout",
        type=float,
        help="Seconds to wait for a response before failing the request",
        default=env_args.get("PUSHLOAD_TIMEOUT", DEFAULT_TIMEOUT),
    )
    parser.add_argument(
        "--header",
        help="Extra request header 'Name: value', may be repeated",
        action="append",
        default=[],
    )
    parser.add_argument(
        "--users",
        "-u",
        type=int,
        help="Number of concurrent virtual users",
        default=env_args.get("PUSHLOAD_USERS", 1),
    )
    parser.add_argument(
        "--iterations",
        "-i",
        type=int,
        help="Requests per virtual user (default 1 unless --run_time is set)",
        default=env_args.get("PUSHLOAD_ITERATIONS"),
    )
    parser.add_argument(
        "--run_time",
        "-t",
        type=float,
        help="Stop the run after this many seconds",
        default=env_args.get("PUSHLOAD_RUN_TIME"),
    )
    parser.add_argument(
        "--wait_time",
        help="Wait between requests of a virtual user: seconds, or 'min, max'",
        default=env_args.get("PUSHLOAD_WAIT_TIME", "0"),
    )
    parser.add_argument(
        "--seed",
        type=int,
        help="Seed the virtual users' random streams for a reproducible run",
        default=env_args.get("PUSHLOAD_SEED"),
    )
    parser.add_argument(
        "--statsd_host",
        help="Metric host name",
        default=env_args.get("PUSHLOAD_STATSD_HOST"),
    )
    parser.add_argument(
        "--statsd_port",
        type=int,
        help="Metric host port",
        default=env_args.get("PUSHLOAD_STATSD_PORT", 8125),
    )
    parser.add_argument(
        "--statsd_label",
        help="Metric root namespace",
        default=env_args.get("PUSHLOAD_STATSD_LABEL", "pushload"),
    )
    args = parser.parse_args(argv)

    # if we have a config file, read from that and then reload.
    if args.config is not None:
        for filename in args.config:
            with open(filename, "r") as f:
                parser.set_defaults(**toml.load(f))
        args = parser.parse_args(argv)

    if args.statsd_host:
        args.metrics = statsd.StatsClient(
            args.statsd_host, args.statsd_port, prefix=args.statsd_label
        )
    else:
        args.metrics = None

    return args


def load_config(settings: argparse.Namespace) -> LoadConfig:
    """Build the run configuration from the parsed settings.

    Values read from a TOML file skip argparse conversion, so lists and strings
    are both accepted for `to_user_ids` and `header`.
    """
    options: dict[str, Any] = dict(
        host=settings.host,
        push_path=settings.push_path,
        ttl=settings.ttl,
        timeout=settings.timeout,
    )
    try:
        if settings.to_user_ids is not None:
            if isinstance(settings.to_user_ids, str):
                options["to_user_ids"] = parse_user_ids(settings.to_user_ids)
            else:
                options["to_user_ids"] = tuple(settings.to_user_ids)
        headers = [settings.header] if isinstance(settings.header, str) else settings.header
        options["headers"] = dict(parse_header(header) for header in headers)
    except ValueError as error:
        raise ConfigurationError(str(error)) from error
    return LoadConfig.create(**options)


def init_logs() -> logging.Logger:
    """Initialize logging (based on `PYTHON_LOG` environ)"""
    level = getattr(logging, os.environ.get("PYTHON_LOG", "INFO").upper(), None)
    logging.basicConfig(level=level)
    log = logging.getLogger("pushload")
    return log


def main(argv: Sequence[str] | None = None) -> None:
    """Configure and run the virtual users"""
    log = init_logs()
    settings = config(argv)
    try:
        load = load_config(settings)
        wait_time = parse_wait_time(str(settings.wait_time))
    except ValueError as error:
        log.error(f"Invalid configuration: {error}")
        sys.exit(2)

    iterations: int | None = settings.iterations
    if iterations is None and settings.run_time is None:
        iterations = 1

    log.info(f"Starting up... users={settings.users} target={load.url}")
    with HttpxTransport(max_connections=max(settings.users, 1)) as transport:
        try:
            summary = run_virtual_users(
                load,
                transport,
                users=settings.users,
                iterations=iterations,
                run_time=settings.run_time,
                wait_time=wait_time,
                seed=settings.seed,
                metrics=settings.metrics,
            )
        except ValueError as error:
            log.error(f"Invalid configuration: {error}")
            sys.exit(2)

    log.info(f"📈 Run summary: {json.dumps(summary.to_dict())}")
    sys.exit(1 if summary.failed else 0)


if __name__ == "__main__":
    main()
