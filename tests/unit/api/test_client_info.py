import pytest
from starlette.requests import Request

from libs.result import Error
from src.api.error import ClientError, ServerError, to_http_error
from src.api.utils.client_info import get_client_ip, get_user_agent


def make_request(headers: dict, client=("192.0.2.10", 5000)) -> Request:
    return Request({
        "type": "http",
        "method": "GET",
        "path": "/",
        "headers": [(k.lower().encode(), v.encode()) for k, v in headers.items()],
        "client": client,
    })


@pytest.mark.parametrize(
    "headers,expected",
    [
        ({"CF-Connecting-IP": "203.0.113.1", "X-Real-IP": "203.0.113.2"}, "203.0.113.1"),
        ({"X-Real-IP": "203.0.113.2", "X-Forwarded-For": "203.0.113.3"}, "203.0.113.2"),
        ({"X-Forwarded-For": " 203.0.113.3 , 10.0.0.1"}, "203.0.113.3"),
        ({}, "192.0.2.10"),
    ],
)
def test_client_ip_precedence(headers, expected):
    assert get_client_ip(make_request(headers)) == expected


def test_client_ip_unknown_without_peer():
    assert get_client_ip(make_request({}, client=None)) == "unknown"


def test_user_agent_defaults_to_unknown():
    assert get_user_agent(make_request({})) == "unknown"
    assert get_user_agent(make_request({"User-Agent": "curl/8"})) == "curl/8"


def test_error_mapping():
    error = to_http_error(Error("RATE_LIMITED", "slow down", {"retry_after": 30}))
    assert isinstance(error, ClientError)
    assert error.status_code == 429
    assert error.headers["Retry-After"] == "30"

    overridden = to_http_error(
        Error("TWO_FACTOR_INVALID_CODE", "bad code"),
        overrides={"TWO_FACTOR_INVALID_CODE": 400},
    )
    assert overridden.status_code == 400

    assert isinstance(to_http_error(Error("SOMETHING_ELSE", "boom")), ServerError)
