# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at http://mozilla.org/MPL/2.0/.

"""Command line value parsers shared by the standalone runner and Locust."""

import random
from typing import NamedTuple


class WaitTime(NamedTuple):
    """Pause between two iterations of a virtual user, in seconds."""

    low: float
    high: float

    def __call__(self, rng: random.Random) -> float:
        if self.low == self.high:
            return self.low
        return rng.uniform(self.low, self.high)  # nosec


NO_WAIT = WaitTime(0, 0)


def parse_wait_time(val: str) -> WaitTime:
    """Parse a wait_time

    Either a single numeric (a constant wait) or two separated by a comma (a uniform range)
    """
    match val.count(","):
        case 0:
            low = high = float_or_int(val)
        case 1:
            low, high = map(float_or_int, val.split(",", 1))
        case _:
            raise ValueError("Invalid wait_time")
    if low < 0 or high < low:
        raise ValueError(f"Invalid wait_time range: {val!r}")
    return WaitTime(low, high)


def float_or_int(val: str):
    float_val: float = float(val)
    return int(float_val) if float_val.is_integer() else float_val


def parse_user_ids(val: str) -> tuple[str, ...]:
    """Parse a comma separated list of recipient user IDs."""
    user_ids = tuple(user_id.strip() for user_id in val.split(",") if user_id.strip())
    if not user_ids:
        raise ValueError("At least one user ID is required")
    return user_ids


def parse_header(val: str) -> tuple[str, str]:
    """Parse a 'Name: value' header."""
    name, sep, value = val.partition(":")
    if not sep or not name.strip():
        raise ValueError(f"Invalid header {val!r}, expected 'Name: value'")
    return name.strip(), value.strip()
