# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at http://mozilla.org/MPL/2.0/.

"""System Push payload synthesizer module.

Everything here is free of I/O: randomness and time are passed in so that a
seeded `random.Random` and a fixed clock reproduce a request exactly.
"""

import base64
import random
import threading
import time
from typing import Callable

from pydantic import ValidationError

from .config import LoadConfig
from .corpus import pick_phrase
from .exceptions import ConfigurationError
from .models import PUSH_TYPES, IdentifierFormat, PushRequest, PushType


def encode_content(phrase: str) -> str:
    """Return the standard base64 encoding of the UTF-8 bytes of `phrase`."""
    return base64.b64encode(phrase.encode("utf-8")).decode("ascii")


def decode_content(content: str) -> str:
    """Inverse of `encode_content`."""
    return base64.b64decode(content, validate=True).decode("utf-8")


def generate_identifier(rng: random.Random, prefix: str, alphabet: str, length: int) -> str:
    """Generate an identifier of `prefix` followed by `length` random characters.

    Each character is drawn independently and uniformly from `alphabet`.
    Uniqueness is not checked.

    Parameters
    ----------
    rng : random.Random
        Random source owned by the caller
    prefix : str
        Fixed identifier prefix, e.g. 'uid'
    alphabet : str
        Characters the suffix is drawn from
    length : int
        Number of suffix characters

    Returns
    -------
    str

    Raises
    ------
    ConfigurationError
        If `length` is negative or `alphabet` is empty while `length` is positive.
    """
    if length < 0:
        raise ConfigurationError(f"identifier length cannot be negative: {length}")
    if length and not alphabet:
        raise ConfigurationError(f"empty alphabet for '{prefix}' identifiers")
    return prefix + "".join(rng.choice(alphabet) for _ in range(length))  # nosec


def generate_formatted_identifier(rng: random.Random, identifier_format: IdentifierFormat) -> str:
    return generate_identifier(
        rng, identifier_format.prefix, identifier_format.alphabet, identifier_format.length
    )


def compute_time_window(now_seconds: int, ttl_seconds: int) -> tuple[int, int]:
    """Return `(timestamp, expire_time)` where the push expires `ttl_seconds` after `now`."""
    if ttl_seconds <= 0:
        raise ConfigurationError(f"ttl must be positive: {ttl_seconds}")
    return now_seconds, now_seconds + ttl_seconds


def pick_push_type(rng: random.Random) -> PushType:
    return rng.choice(PUSH_TYPES)  # nosec


class SecondsClock:
    """Whole-second clock that never goes backward.

    A single instance is shared by all virtual users of a run, so `timestamp`
    values are non-decreasing across the run even if the wall clock is stepped
    back.
    """

    def __init__(self, source: Callable[[], float] = time.time) -> None:
        self._source: Callable[[], float] = source
        self._last: int = 0
        self._lock = threading.Lock()

    def __call__(self) -> int:
        with self._lock:
            self._last = max(self._last, int(self._source()))
            return self._last


def build_request(
    config: LoadConfig, rng: random.Random, clock: Callable[[], int]
) -> PushRequest:
    """Compose one 'sendSystemPush' request.

    Parameters
    ----------
    config : LoadConfig
        Corpus, recipients, TTL and identifier formats
    rng : random.Random
        Random source owned by the calling virtual user
    clock : Callable[[], int]
        Current time in whole seconds since the epoch

    Returns
    -------
    PushRequest

    Raises
    ------
    ConfigurationError
        If the configuration cannot produce a valid request.
    """
    timestamp, expire_time = compute_time_window(clock(), config.ttl)
    try:
        return PushRequest(
            content_id=generate_formatted_identifier(rng, config.content_id_format),
            content=encode_content(pick_phrase(rng, config.corpus)),
            timestamp=timestamp,
            push_type=pick_push_type(rng),
            from_user_id=generate_formatted_identifier(rng, config.user_id_format),
            to_user_ids=list(config.to_user_ids),
            expire_time=str(expire_time),
        )
    except ValidationError as error:
        raise ConfigurationError(str(error)) from error
