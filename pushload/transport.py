# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at http://mozilla.org/MPL/2.0/.

"""HTTP transport module."""

import logging
from logging import Logger
from typing import Any, NamedTuple, Protocol

import httpx

from .exceptions import TransportError

logger: Logger = logging.getLogger(__name__)


class TransportResponse(NamedTuple):
    """Status code and body of an HTTP response."""

    status_code: int
    text: str


class Transport(Protocol):
    """Capability to POST a JSON body and return the response."""

    def post_json(
        self, url: str, body: dict[str, Any], headers: dict[str, str], timeout: float
    ) -> TransportResponse:
        """POST `body` as JSON.

        Raises
        ------
        TransportError
            If no response was received (connection refused, timeout, ...).
        """
        ...


class HttpxTransport:
    """Transport backed by a shared `httpx.Client` connection pool.

    The client is safe to share between threads; each request is independent.
    """

    def __init__(self, client: httpx.Client | None = None, max_connections: int = 100) -> None:
        self.client: httpx.Client = client or httpx.Client(
            limits=httpx.Limits(
                max_connections=max_connections, max_keepalive_connections=max_connections
            )
        )

    def post_json(
        self, url: str, body: dict[str, Any], headers: dict[str, str], timeout: float
    ) -> TransportResponse:
        try:
            resp = self.client.post(url=url, json=body, headers=headers, timeout=timeout)
        except httpx.TransportError as error:
            raise TransportError(error) from error
        logger.debug(f"POST {url} Response ({resp.status_code}): {resp.text}")
        return TransportResponse(status_code=resp.status_code, text=resp.text)

    def close(self) -> None:
        """Release pooled connections."""
        self.client.close()

    def __enter__(self) -> "HttpxTransport":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()
