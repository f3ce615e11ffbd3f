# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

from unittest.mock import Mock

import pytest
import requests

from allowlist_sync import constants
from allowlist_sync._common._exceptions import IpLookupError
from allowlist_sync._common._ip_resolver import resolve_client_ip


def lookup_module(status_code=200, text=""):
    module = Mock()
    module.get.return_value = Mock(status_code=status_code, text=text)
    return module


def test_resolve_client_ip():
    module = lookup_module(text="203.0.113.10\n")

    assert resolve_client_ip(requests_module=module) == "203.0.113.10"
    module.get.assert_called_once_with(constants.IP_LOOKUP_URL, timeout=constants.IP_LOOKUP_TIMEOUT)


def test_resolve_client_ip_uses_requests_by_default(mocker):
    mock_get = mocker.patch("requests.get", return_value=Mock(status_code=200, text="198.51.100.7"))

    assert resolve_client_ip() == "198.51.100.7"
    mock_get.assert_called_once()


@pytest.mark.parametrize(
    ("status_code", "text", "expected_msg"),
    [
        (503, "Service Unavailable", "HTTP 503"),
        (200, "2001:db8::1", "did not return an IPv4 address"),
        (200, "<html>blocked</html>", "did not return an IPv4 address"),
        (200, "", "did not return an IPv4 address"),
    ],
    ids=["http_error", "ipv6", "html", "empty"],
)
def test_resolve_client_ip_invalid_response(status_code, text, expected_msg):
    with pytest.raises(IpLookupError, match=expected_msg):
        resolve_client_ip(requests_module=lookup_module(status_code, text))


def test_resolve_client_ip_network_failure():
    module = Mock()
    module.get.side_effect = requests.ConnectionError("Name or service not known")

    with pytest.raises(IpLookupError, match="Failed to resolve the client IP address .* Name or service not known"):
        resolve_client_ip(requests_module=module)
