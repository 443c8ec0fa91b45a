"""Virtual user driver and transport tests."""

import json
import random
from typing import Callable

import httpx
import pytest

from pushload.config import LoadConfig
from pushload.driver import check_status, run_iteration
from pushload.exceptions import ConfigurationError, TransportError, ZeroStatusRequestError
from pushload.models import PushRequest
from pushload.synthesizer import decode_content
from pushload.transport import HttpxTransport, TransportResponse

from .stubs import StubTransport


def test_status_200_passes(
    load_config: LoadConfig,
    ok_transport: StubTransport,
    rng: random.Random,
    fixed_clock: Callable[[], int],
) -> None:
    outcome = run_iteration(load_config, ok_transport, rng, fixed_clock)

    assert outcome.passed is True
    assert outcome.status_code == 200
    assert outcome.assertion_name == "status is 200"
    assert outcome.error is None
    assert outcome.latency.total_seconds() >= 0


@pytest.mark.parametrize("status_code", [500, 201, 404, 429])
def test_other_status_fails(
    load_config: LoadConfig,
    rng: random.Random,
    fixed_clock: Callable[[], int],
    status_code: int,
) -> None:
    transport = StubTransport(status_code=status_code, text="boom")

    outcome = run_iteration(load_config, transport, rng, fixed_clock)

    assert outcome.passed is False
    assert outcome.status_code == status_code
    assert outcome.error is None


def test_transport_error_is_an_outcome(
    load_config: LoadConfig, rng: random.Random, fixed_clock: Callable[[], int]
) -> None:
    transport = StubTransport(error=ConnectionRefusedError("Connection refused"))

    outcome = run_iteration(load_config, transport, rng, fixed_clock)

    assert outcome.passed is False
    assert outcome.status_code == 0
    assert outcome.error is not None
    assert "ConnectionRefusedError" in outcome.error


def test_one_request_per_iteration(
    load_config: LoadConfig,
    ok_transport: StubTransport,
    rng: random.Random,
    fixed_clock: Callable[[], int],
) -> None:
    run_iteration(load_config, ok_transport, rng, fixed_clock)

    assert len(ok_transport.calls) == 1
    call = ok_transport.calls[0]
    assert call["url"] == "http://127.0.0.1:8034/chatify/logic/v1/sendSystemPush"
    assert call["headers"]["Content-Type"] == "application/json"
    assert call["timeout"] == load_config.timeout
    request = PushRequest(**call["body"])
    assert request.timestamp == fixed_clock()
    assert request.expire_time == str(fixed_clock() + 86400)


def test_bad_config_sends_nothing(
    ok_transport: StubTransport, rng: random.Random, fixed_clock: Callable[[], int]
) -> None:
    config = LoadConfig.model_construct(**dict(LoadConfig(), ttl=-1))

    with pytest.raises(ConfigurationError):
        run_iteration(config, ok_transport, rng, fixed_clock)
    assert ok_transport.calls == []


def test_httpx_transport_posts_json(
    load_config: LoadConfig, rng: random.Random, fixed_clock: Callable[[], int]
) -> None:
    received: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        received.append(request)
        return httpx.Response(200, json={"code": 0})

    with HttpxTransport(httpx.Client(transport=httpx.MockTransport(handler))) as transport:
        outcome = run_iteration(load_config, transport, rng, fixed_clock)

    assert outcome.passed is True
    (request,) = received
    assert request.method == "POST"
    assert str(request.url) == load_config.url
    assert request.headers["Content-Type"] == "application/json"
    body = json.loads(request.content)
    assert decode_content(body["content"]) in load_config.corpus
    assert body["to_user_ids"] == ["uidhSSWsdYgB9"]


def test_httpx_transport_response() -> None:
    transport = HttpxTransport(
        httpx.Client(transport=httpx.MockTransport(lambda r: httpx.Response(500, text="nope")))
    )
    response = transport.post_json("http://push.test/x", {}, {}, 1.0)
    assert response == TransportResponse(status_code=500, text="nope")
    transport.close()


@pytest.mark.parametrize("error_class", [httpx.ConnectError, httpx.ReadTimeout])
def test_httpx_transport_errors(
    load_config: LoadConfig,
    rng: random.Random,
    fixed_clock: Callable[[], int],
    error_class: type[httpx.TransportError],
) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise error_class("failed", request=request)

    transport = HttpxTransport(httpx.Client(transport=httpx.MockTransport(handler)))
    with pytest.raises(TransportError) as excinfo:
        transport.post_json(load_config.url, {}, {}, 1.0)
    assert isinstance(excinfo.value.cause, error_class)

    outcome = run_iteration(load_config, transport, rng, fixed_clock)
    assert outcome.passed is False
    assert outcome.status_code == 0
    assert outcome.error is not None
    assert error_class.__name__ in outcome.error
    transport.close()


def test_check_status(load_config: LoadConfig) -> None:
    assert check_status(load_config, 200, "ok") is None
    assert check_status(load_config, 503, "busy") == (
        "status_code=503, expected 200, text='busy'"
    )


def test_check_status_zero_raises(load_config: LoadConfig) -> None:
    with pytest.raises(ZeroStatusRequestError, match="Status Code: 0, ConnectionRefusedError"):
        check_status(load_config, 0, error="ConnectionRefusedError")
