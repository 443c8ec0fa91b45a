# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at http://mozilla.org/MPL/2.0/.

"""Load configuration module."""

import re
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .corpus import PHRASES
from .exceptions import ConfigurationError
from .models import CONTENT_ID_FORMAT, USER_ID_FORMAT, IdentifierFormat

DEFAULT_HOST: str = "http://localhost:8034"
DEFAULT_PUSH_PATH: str = "/chatify/logic/v1/sendSystemPush"
DEFAULT_TO_USER_IDS: tuple[str, ...] = ("uidhSSWsdYgB9",)
DEFAULT_TTL: int = 86400  # 1 day
DEFAULT_TIMEOUT: float = 5.0
JSON_HEADERS: dict[str, str] = {"Content-Type": "application/json"}
HEADER_NAME = re.compile(r"[!#$%&'*+.^_`|~0-9A-Za-z-]+")
HEADER_VALUE = re.compile(r"[\x20-\x7e\t]*")


class LoadConfig(BaseModel):
    """Immutable settings shared by every virtual user of a run."""

    model_config = ConfigDict(frozen=True)

    host: str = DEFAULT_HOST
    push_path: str = DEFAULT_PUSH_PATH
    headers: dict[str, str] = Field(default_factory=dict)
    corpus: tuple[str, ...] = Field(default=PHRASES, min_length=1)
    to_user_ids: tuple[str, ...] = Field(default=DEFAULT_TO_USER_IDS, min_length=1)
    ttl: int = Field(default=DEFAULT_TTL, gt=0)
    timeout: float = Field(default=DEFAULT_TIMEOUT, gt=0)
    expected_status: int = 200
    user_id_format: IdentifierFormat = USER_ID_FORMAT
    content_id_format: IdentifierFormat = CONTENT_ID_FORMAT

    @classmethod
    def create(cls, **kwargs: Any) -> "LoadConfig":
        """Build a configuration, raising ConfigurationError when it is unusable."""
        try:
            return cls(**kwargs)
        except ValidationError as error:
            raise ConfigurationError(str(error)) from error

    @field_validator("headers")
    @classmethod
    def check_headers(cls, value: dict[str, str]) -> dict[str, str]:
        """Names must be HTTP tokens and values printable ASCII."""
        for name, header_value in value.items():
            if not HEADER_NAME.fullmatch(name):
                raise ValueError(f"invalid header name {name!r}")
            if not HEADER_VALUE.fullmatch(header_value):
                raise ValueError(f"invalid value for header {name!r}: {header_value!r}")
        return value

    @field_validator("host")
    @classmethod
    def check_host(cls, value: str) -> str:
        """The target must be an absolute http(s) URL."""
        try:
            url = httpx.URL(value)
        except httpx.InvalidURL as error:
            raise ValueError(f"malformed host {value!r}: {error}") from error
        if url.scheme not in ("http", "https") or not url.host:
            raise ValueError(f"host must be an absolute http(s) URL, got {value!r}")
        return value

    @field_validator("corpus")
    @classmethod
    def check_corpus(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        """Every phrase must be non-empty UTF-8 text."""
        for phrase in value:
            if not phrase:
                raise ValueError("corpus cannot contain an empty phrase")
            try:
                phrase.encode("utf-8")
            except UnicodeEncodeError as error:
                raise ValueError(f"phrase {phrase!r} is not valid UTF-8: {error}") from error
        return value

    @field_validator("to_user_ids")
    @classmethod
    def check_to_user_ids(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        if not all(value):
            raise ValueError("to_user_ids cannot contain an empty identifier")
        return value

    @property
    def url(self) -> str:
        """Full 'sendSystemPush' endpoint URL."""
        return f"{self.host.rstrip('/')}/{self.push_path.lstrip('/')}"

    @property
    def request_headers(self) -> dict[str, str]:
        """Extra headers with the JSON content type enforced."""
        headers = {k: v for k, v in self.headers.items() if k.lower() != "content-type"}
        headers.update(JSON_HEADERS)
        return headers

    @property
    def assertion_name(self) -> str:
        return f"status is {self.expected_status}"
