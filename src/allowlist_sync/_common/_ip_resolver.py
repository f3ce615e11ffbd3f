# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Resolves the externally visible IPv4 address of the machine running the sync."""

import ipaddress
import logging

import requests

import allowlist_sync.constants as constants
from allowlist_sync._common._exceptions import IpLookupError

logger = logging.getLogger(__name__)


def resolve_client_ip(requests_module: requests = requests) -> str:
    """
    Looks up the caller's public IPv4 address with a single GET to the lookup service.

    Args:
        requests_module: The requests module.
    """
    url = constants.IP_LOOKUP_URL
    logger.debug(f"Resolving client IP address from '{url}'")

    try:
        response = requests_module.get(url, timeout=constants.IP_LOOKUP_TIMEOUT)
    except requests.RequestException as e:
        msg = f"Failed to resolve the client IP address from '{url}'. {e}"
        raise IpLookupError(msg, logger) from e

    if response.status_code != 200:
        msg = f"Failed to resolve the client IP address from '{url}'. HTTP {response.status_code}"
        raise IpLookupError(msg, logger, response.text)

    ip_text = response.text.strip()
    try:
        ip_address = str(ipaddress.IPv4Address(ip_text))
    except ipaddress.AddressValueError as e:
        msg = f"The IP lookup service '{url}' did not return an IPv4 address."
        raise IpLookupError(msg, logger, ip_text) from e

    logger.info(f"Resolved client IP address '{ip_address}'")
    return ip_address
