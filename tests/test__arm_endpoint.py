# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

import base64
import json
from unittest.mock import Mock

import pytest
from azure.core.exceptions import ClientAuthenticationError
from fixtures.mock_arm import make_response

from allowlist_sync import constants
from allowlist_sync._common._arm_endpoint import (
    ArmEndpoint,
    _decode_jwt,
    _format_invoke_log,
    _handle_response,
)
from allowlist_sync._common._exceptions import InvokeError, TokenError


class DummyLogger:
    def __init__(self):
        self.messages = []

    def info(self, message):
        self.messages.append(message)

    def debug(self, message):
        self.messages.append(message)


class DummyCredential:
    def __init__(self, token):
        self.token = token
        self.raise_exception = None
        self.calls = []

    def get_token(self, *scopes, **kwargs):
        self.calls.append((scopes, kwargs))
        if self.raise_exception:
            raise self.raise_exception
        return Mock(token=self.token)


@pytest.fixture
def setup_mocks(monkeypatch, mocker):
    dl = DummyLogger()
    mock_logger = mocker.Mock()
    mock_logger.isEnabledFor.return_value = True
    mock_logger.info.side_effect = dl.info
    mock_logger.debug.side_effect = dl.debug
    monkeypatch.setattr("allowlist_sync._common._arm_endpoint.logger", mock_logger)
    mock_requests = mocker.patch("requests.request")
    return dl, mock_requests


def generate_mock_jwt(authtype="", exp=9999999999):
    header = base64.urlsafe_b64encode(json.dumps({"alg": "HS256", "typ": "JWT"}).encode()).decode().strip("=")
    claims = {"exp": exp, "tid": "tenant-guid"}
    if authtype:
        claims[authtype] = f"{authtype}Example"
    payload = base64.urlsafe_b64encode(json.dumps(claims).encode()).decode().strip("=")
    signature = "signature"
    return f"{header}.{payload}.{signature}"


def test_invoke(setup_mocks):
    """Test ArmEndpoint GET request."""
    dl, mock_requests = setup_mocks
    mock_requests.return_value = make_response(200, {"value": []})
    endpoint = ArmEndpoint(token_credential=DummyCredential(generate_mock_jwt()))
    response = endpoint.invoke("GET", "https://management.azure.com/subscriptions/x?api-version=1")
    assert response["status_code"] == 200
    assert response["body"] == {"value": []}
    headers = mock_requests.call_args.kwargs["headers"]
    assert headers["Authorization"].startswith("Bearer ")
    assert headers["User-Agent"] == constants.USER_AGENT


def test_invoke_empty_body(setup_mocks):
    """Test a response without content returns an empty body."""
    dl, mock_requests = setup_mocks
    mock_requests.return_value = make_response(204)
    endpoint = ArmEndpoint(token_credential=DummyCredential(generate_mock_jwt()))
    response = endpoint.invoke("DELETE", "https://example.com")
    assert response["status_code"] == 204
    assert response["body"] == {}


def test_token_requested_for_tenant(setup_mocks):
    """Test the tenant is passed to the credential when provided."""
    credential = DummyCredential(generate_mock_jwt())
    endpoint = ArmEndpoint(token_credential=credential, tenant_id="contoso.onmicrosoft.com")
    assert credential.calls == [((constants.ARM_TOKEN_SCOPE,), {"tenant_id": "contoso.onmicrosoft.com"})]
    assert endpoint.tenant_id == "tenant-guid"


def test_invoke_token_expired(setup_mocks):
    """Test invoking endpoint when ARM reports the token expired."""
    dl, mock_requests = setup_mocks
    mock_requests.side_effect = [
        make_response(401, {"error": {"code": "ExpiredAuthenticationToken", "message": "expired"}}),
        make_response(200, {}),
    ]
    credential = DummyCredential(generate_mock_jwt())
    endpoint = ArmEndpoint(token_credential=credential)

    response = endpoint.invoke("GET", "https://example.com")

    assert f"{constants.INDENT}AAD token expired. Refreshing token." in dl.messages
    assert response["status_code"] == 200
    assert len(credential.calls) == 2


def test_invoke_token_expired_twice(setup_mocks):
    """Test a token rejected again after one refresh fails the request."""
    dl, mock_requests = setup_mocks
    expired = {"error": {"code": "ExpiredAuthenticationToken", "message": "expired"}}
    mock_requests.side_effect = [
        make_response(401, expired),
        make_response(401, expired),
        make_response(200, {}),
    ]
    credential = DummyCredential(generate_mock_jwt())
    endpoint = ArmEndpoint(token_credential=credential)

    with pytest.raises(InvokeError, match="refreshed AAD token as expired"):
        endpoint.invoke("GET", "https://example.com")

    assert mock_requests.call_count == 2
    assert len(credential.calls) == 2


def test_invoke_refreshes_locally_expired_token(setup_mocks):
    """Test the token is refreshed before a request once its expiration has passed."""
    dl, mock_requests = setup_mocks
    mock_requests.return_value = make_response(200, {})
    credential = DummyCredential(generate_mock_jwt(exp=1))
    endpoint = ArmEndpoint(token_credential=credential)
    endpoint.invoke("GET", "https://example.com")
    assert len(credential.calls) == 2


def test_invoke_exception(setup_mocks):
    """Test transport failures surface as InvokeError."""
    dl, mock_requests = setup_mocks
    mock_requests.side_effect = Exception("Test exception")
    endpoint = ArmEndpoint(token_credential=DummyCredential(generate_mock_jwt()))
    with pytest.raises(InvokeError, match="Test exception"):
        endpoint.invoke("GET", "https://example.com")


def test_invoke_long_running_put_reads_resource_back(setup_mocks, no_sleep):
    """Test an async PUT is polled and the resource read back once it succeeds."""
    dl, mock_requests = setup_mocks
    rule = {"name": "R", "properties": {"startIpAddress": "1.2.3.4", "endIpAddress": "1.2.3.4"}}
    mock_requests.side_effect = [
        make_response(201, {}, {"Azure-AsyncOperation": "https://example.com/operations/1"}),
        make_response(200, {"status": "InProgress"}),
        make_response(200, {"status": "Succeeded"}),
        make_response(200, rule),
    ]
    endpoint = ArmEndpoint(token_credential=DummyCredential(generate_mock_jwt()))

    response = endpoint.invoke("PUT", "https://example.com/firewallRules/R", body={"properties": {}})

    assert response["body"] == rule
    urls = [call.kwargs["url"] for call in mock_requests.call_args_list]
    assert urls == [
        "https://example.com/firewallRules/R",
        "https://example.com/operations/1",
        "https://example.com/operations/1",
        "https://example.com/firewallRules/R",
    ]


def test_invoke_throttled_after_polling(setup_mocks, no_sleep):
    """Test polling requests do not count towards the throttling retry limit."""
    dl, mock_requests = setup_mocks
    rule = {"name": "R", "properties": {"startIpAddress": "1.2.3.4", "endIpAddress": "1.2.3.4"}}
    mock_requests.side_effect = [
        make_response(201, {}, {"Azure-AsyncOperation": "https://example.com/operations/1"}),
        *[make_response(200, {"status": "InProgress"}, {"Retry-After": "1"}) for _ in range(5)],
        make_response(200, {"status": "Succeeded"}),
        make_response(429, None, {"Retry-After": "1"}),
        make_response(200, rule),
    ]
    endpoint = ArmEndpoint(token_credential=DummyCredential(generate_mock_jwt()))

    response = endpoint.invoke("PUT", "https://example.com/firewallRules/R", body={"properties": {}})

    assert response["body"] == rule
    assert mock_requests.call_count == 9
    assert f"{constants.INDENT}API is throttled. Checking again in 1 second (Attempt 1)..." in dl.messages


def test_list_all_follows_next_link(setup_mocks):
    """Test list_all concatenates every page."""
    dl, mock_requests = setup_mocks
    mock_requests.side_effect = [
        make_response(200, {"value": [{"name": "a"}], "nextLink": "https://example.com/page2"}),
        make_response(200, {"value": [{"name": "b"}]}),
    ]
    endpoint = ArmEndpoint(token_credential=DummyCredential(generate_mock_jwt()))
    assert endpoint.list_all("https://example.com/page1") == [{"name": "a"}, {"name": "b"}]


@pytest.mark.parametrize(
    ("auth_type", "expected_msg"),
    [
        ("upn", "Executing as User 'upnExample'"),
        ("appid", "Executing as Application Id 'appidExample'"),
        ("oid", "Executing as Object Id 'oidExample'"),
    ],
    ids=["upn", "appid", "oid"],
)
def test_refresh_token(setup_mocks, auth_type, expected_msg):
    """Test refreshing token and logging the executing identity."""
    dl, mock_requests = setup_mocks
    jwt_token = generate_mock_jwt(authtype=auth_type)
    endpoint = ArmEndpoint(token_credential=DummyCredential(jwt_token))
    assert dl.messages == [expected_msg]
    assert endpoint.aad_token == jwt_token


def test_refresh_token_identity_print_disabled(setup_mocks):
    """Test the executing identity is not logged when the feature flag is set."""
    dl, mock_requests = setup_mocks
    constants.FEATURE_FLAG.add("disable_print_identity")
    ArmEndpoint(token_credential=DummyCredential(generate_mock_jwt(authtype="upn")))
    assert dl.messages == []


@pytest.mark.parametrize(
    ("raise_exception", "expected_msg"),
    [
        (ClientAuthenticationError("Auth failed"), "Failed to acquire AAD token. Auth failed"),
        (Exception("Unexpected error"), "An unexpected error occurred when generating the AAD token. Unexpected error"),
    ],
    ids=["auth_error", "unexpected_exception"],
)
def test_refresh_token_exceptions(raise_exception, expected_msg):
    """Test token refresh exception handling for authentication failures."""
    credential = DummyCredential("irrelevant")
    credential.raise_exception = raise_exception
    with pytest.raises(TokenError, match=expected_msg):
        ArmEndpoint(token_credential=credential)


def test_refresh_token_no_exp_claim(monkeypatch):
    """Test token refresh raising TokenError when token lacks expiration."""
    credential = DummyCredential("dummy_token_value")
    monkeypatch.setattr("allowlist_sync._common._arm_endpoint._decode_jwt", lambda _: {"upn": "user@example.com"})
    with pytest.raises(TokenError, match="Token does not contain expiration claim."):
        ArmEndpoint(token_credential=credential)


@pytest.mark.parametrize(
    (
        "status_code",
        "request_method",
        "expected_long_running",
        "expected_exit_loop",
        "expected_url",
        "input_long_running",
        "response_header",
        "response_json",
    ),
    [
        (200, "GET", False, True, "old", False, {}, {}),
        (201, "PUT", False, True, "old", False, {}, {}),
        (201, "PUT", True, False, "op", False, {"Azure-AsyncOperation": "op"}, {}),
        (202, "PUT", True, False, "loc", False, {"Location": "loc"}, None),
        (202, "GET", True, False, "loc", True, {"Location": "loc", "Retry-After": "1"}, None),
        (200, "GET", True, False, "old", True, {"Retry-After": "1"}, {"status": "InProgress"}),
        (200, "GET", False, False, "resource", True, {}, {"status": "Succeeded"}),
        (200, "GET", True, True, "old", True, {}, {"name": "R"}),
    ],
    ids=[
        "success",
        "created",
        "async_operation_started",
        "accepted",
        "location_still_running",
        "async_operation_running",
        "async_operation_succeeded",
        "location_result",
    ],
)
def test_handle_response(
    no_sleep,
    status_code,
    request_method,
    expected_long_running,
    expected_exit_loop,
    expected_url,
    input_long_running,
    response_header,
    response_json,
):
    """Test _handle_response behavior for various HTTP responses and long-running operations."""
    response = make_response(status_code, response_json, response_header)

    exit_loop, _method, url, _body, long_running = _handle_response(
        response=response,
        method=request_method,
        url="old",
        body=None,
        long_running=input_long_running,
        iteration_count=2,
        resource_url="resource",
    )
    assert exit_loop == expected_exit_loop
    assert long_running == expected_long_running
    assert url == expected_url


def test_handle_response_async_success_without_read_back():
    """Test a succeeded operation ends the loop when there is nothing to read back."""
    response = make_response(200, {"status": "Succeeded"})
    exit_loop, _method, _url, _body, long_running = _handle_response(response, "GET", "op", None, True, 2, None)
    assert exit_loop is True
    assert long_running is False


@pytest.mark.parametrize(
    ("exception_match", "response_json"),
    [
        (
            "Operation failed. Error Code: FirewallRuleNotAllowed",
            {"status": "Failed", "error": {"code": "FirewallRuleNotAllowed", "message": "Sample failure message"}},
        ),
        ("Operation canceled", {"status": "Canceled"}),
        ("Operation is in an undefined state", {"status": "Undefined"}),
    ],
    ids=["failed", "canceled", "undefined"],
)
def test_handle_response_longrunning_exception(exception_match, response_json):
    """Test _handle_response raises exception for longrunning failure conditions."""
    response = make_response(200, response_json)

    with pytest.raises(Exception, match=exception_match):
        _handle_response(
            response=response,
            method="GET",
            url="old",
            body=None,
            long_running=True,
            iteration_count=2,
            resource_url="resource",
        )


@pytest.mark.parametrize(
    ("status_code", "input_throttle_count", "response_header", "return_value", "exception_match"),
    [
        (
            403,
            1,
            {},
            {"error": {"code": "AuthorizationFailed", "message": "no access"}},
            "The executing identity is not authorized to call GET on 'https://example.com'. Code: AuthorizationFailed",
        ),
        (
            404,
            1,
            {},
            {"error": {"code": "ResourceGroupNotFound", "message": "Resource group 'rg' could not be found."}},
            "Unhandled error occurred calling GET on 'https://example.com'. Code: ResourceGroupNotFound",
        ),
        (
            500,
            1,
            {},
            None,
            "Unhandled error occurred calling GET on 'https://example.com'.$",
        ),
        (429, 5, {"Retry-After": "10"}, {}, r"Maximum retry attempts \(5\) exceeded."),
    ],
    ids=["forbidden", "not_found", "unexpected_error", "retry"],
)
def test_handle_response_exceptions(status_code, input_throttle_count, response_header, return_value, exception_match):
    """Test _handle_response raises appropriate exceptions based on response error codes."""
    response = make_response(status_code, return_value, response_header)
    with pytest.raises(Exception, match=exception_match):
        _handle_response(
            response=response,
            method="GET",
            url="https://example.com",
            body=None,
            long_running=False,
            iteration_count=1,
            resource_url=None,
            throttle_count=input_throttle_count,
        )


def test_handle_response_throttled(setup_mocks, no_sleep):
    """Test _handle_response logs a retry message and waits when throttled."""
    dl, mock_requests = setup_mocks
    response = make_response(429, None, {"Retry-After": "15"})
    exit_loop, *_ = _handle_response(response, "GET", "https://example.com", None, False, 4, None, 1)
    assert exit_loop is False
    assert dl.messages == [f"{constants.INDENT}API is throttled. Checking again in 15 seconds (Attempt 1)..."]
    no_sleep.assert_called_once_with(15.0)


def test_decode_jwt():
    """Test _decode_jwt decodes JWT and validates expiration claim."""
    decoded = _decode_jwt(generate_mock_jwt())
    assert decoded["exp"] == 9999999999
    assert decoded["tid"] == "tenant-guid"


def test_decode_jwt_invalid():
    """Test _decode_jwt raises TokenError on invalid JWT."""
    with pytest.raises(TokenError):
        _decode_jwt("invalid.token")


def test_format_invoke_log():
    """Test formatting of the invoke log message."""
    response = make_response(200, {"name": "R"})
    log_message = _format_invoke_log(response, "PUT", "https://example.com", {"properties": {}})
    assert "Method: PUT" in log_message
    assert "URL: https://example.com" in log_message
    assert '"name": "R"' in log_message
