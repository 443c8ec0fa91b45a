# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at http://mozilla.org/MPL/2.0/.

"""Virtual user driver module."""

import logging
import random
import time
from datetime import timedelta
from logging import Logger
from typing import Callable

from .config import LoadConfig
from .exceptions import TransportError, ZeroStatusRequestError
from .models import Outcome, PushRequest
from .synthesizer import build_request
from .transport import Transport

logger: Logger = logging.getLogger(__name__)


def check_status(
    config: LoadConfig, status_code: int, text: str = "", error: str | None = None
) -> str | None:
    """Check a response status against the expected one.

    Returns
    -------
    str | None
        A failure message, or None when the status is the expected one

    Raises
    ------
    ZeroStatusRequestError
        If `status_code` is 0, i.e. no response was received.
    """
    if status_code == 0:
        raise ZeroStatusRequestError(error)
    if status_code != config.expected_status:
        return f"{status_code=}, expected {config.expected_status}, {text=}"
    return None


def run_iteration(
    config: LoadConfig,
    transport: Transport,
    rng: random.Random,
    clock: Callable[[], int],
) -> Outcome:
    """Send one synthetic 'sendSystemPush' request and check its status.

    A failed status check or a transport failure is reported through the returned
    Outcome, never raised.

    Parameters
    ----------
    config : LoadConfig
    transport : Transport
        May be shared between virtual users
    rng : random.Random
        Random source owned by the calling virtual user
    clock : Callable[[], int]
        Current time in whole seconds since the epoch

    Returns
    -------
    Outcome

    Raises
    ------
    ConfigurationError
        If no valid request can be built. Nothing is sent in that case.
    """
    request: PushRequest = build_request(config, rng, clock)
    body = request.model_dump(mode="json")
    logger.debug(f"POST {config.url} body: {body}")

    start: float = time.perf_counter()
    try:
        response = transport.post_json(
            config.url, body, config.request_headers, config.timeout
        )
    except TransportError as error:
        latency = timedelta(seconds=time.perf_counter() - start)
        logger.warning(f"Request {request.content_id} failed: {error}")
        return Outcome(
            assertion_name=config.assertion_name,
            passed=False,
            status_code=0,
            latency=latency,
            error=str(error),
        )
    latency = timedelta(seconds=time.perf_counter() - start)

    failure: str | None = check_status(config, response.status_code, response.text)
    if failure:
        logger.debug(failure)
    return Outcome(
        assertion_name=config.assertion_name,
        passed=failure is None,
        status_code=response.status_code,
        latency=latency,
    )
