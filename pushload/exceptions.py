# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at http://mozilla.org/MPL/2.0/.

"""Load generator exceptions module."""


class ConfigurationError(ValueError):
    """Raised when the load configuration cannot produce a valid System Push request.

    These are fatal to the whole run and are raised before any request is sent.
    """


class TransportError(Exception):
    """Raised by a transport when no HTTP response was received."""

    def __init__(self, cause: Exception):
        self.cause: Exception = cause
        super().__init__(f"{type(cause).__name__}: {cause}")


class ZeroStatusRequestError(Exception):
    """Custom exception for when a Locust request fails with a '0' status code."""

    def __init__(self, error: str | None = None):
        error_message: str = (
            "A connection, timeout or similar error happened while sending a request "
            "from Locust. Status Code: 0"
        )
        if error:
            error_message = f"{error_message}, {error}"
        super().__init__(error_message)
