# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at http://mozilla.org/MPL/2.0/.

"""Load test models module."""

import re
import string
from datetime import timedelta
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

PushType = Literal["1", "2", "3"]
PUSH_TYPES: tuple[PushType, ...] = ("1", "2", "3")

_DECIMAL = re.compile(r"[0-9]+")


class IdentifierFormat(BaseModel):
    """Shape of a generated identifier: a fixed prefix plus a random suffix."""

    model_config = ConfigDict(frozen=True)

    prefix: str
    alphabet: str
    length: int = Field(ge=0)

    @model_validator(mode="after")
    def check_alphabet(self) -> "IdentifierFormat":
        """An identifier with a suffix needs characters to draw from."""
        if self.length and not self.alphabet:
            raise ValueError(f"empty alphabet for '{self.prefix}' identifiers")
        return self


USER_ID_FORMAT = IdentifierFormat(
    prefix="uid", alphabet=string.ascii_letters + string.digits, length=10
)
CONTENT_ID_FORMAT = IdentifierFormat(prefix="content", alphabet=string.digits, length=3)


class PushRequest(BaseModel):
    """'sendSystemPush' request body."""

    content_id: str
    content: str = Field(min_length=1)
    timestamp: int = Field(ge=0)
    push_type: PushType
    from_user_id: str
    to_user_ids: list[str] = Field(min_length=1)
    expire_time: str

    @field_validator("to_user_ids")
    @classmethod
    def check_recipients(cls, value: list[str]) -> list[str]:
        """Recipients must be non-empty identifiers."""
        if not all(value):
            raise ValueError("to_user_ids cannot contain an empty identifier")
        return value

    @model_validator(mode="after")
    def check_expire_time(self) -> "PushRequest":
        """expire_time is a decimal string later than timestamp."""
        if not _DECIMAL.fullmatch(self.expire_time):
            raise ValueError(f"expire_time is not numeric: {self.expire_time!r}")
        if int(self.expire_time) <= self.timestamp:
            raise ValueError(
                f"expire_time {self.expire_time} must be after timestamp {self.timestamp}"
            )
        return self


class Outcome(BaseModel):
    """Result of the status assertion for one 'sendSystemPush' request.

    A `status_code` of 0 means no response was received, in which case `error`
    holds the cause.
    """

    assertion_name: str = "status is 200"
    passed: bool
    status_code: int
    latency: timedelta
    error: str | None = None
