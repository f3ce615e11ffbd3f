# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""
Following functions are leveraged to validate user input for the allowlist-sync package
Primarily used for the FirewallSync class, but also intended to be leveraged for
any user input throughout the package
"""

import ipaddress
import logging
import re

from azure.core.credentials import TokenCredential

import allowlist_sync.constants as constants
from allowlist_sync._common._exceptions import InputError

logger = logging.getLogger(__name__)


def validate_data_type(expected_type: str, variable_name: str, input_value: any) -> any:
    """
    Validate the data type of the input value.

    Args:
        expected_type: The expected data type.
        variable_name: The name of the variable.
        input_value: The input value to validate.
    """
    # Mapping of expected types to their validation functions
    type_validators = {
        "string": lambda x: isinstance(x, str),
        "TokenCredential": lambda x: isinstance(x, TokenCredential),
    }

    if expected_type not in type_validators or not type_validators[expected_type](input_value):
        msg = f"The provided {variable_name} is not of type {expected_type}."
        raise InputError(msg, logger)

    return input_value


def validate_non_empty_string(variable_name: str, input_value: str) -> str:
    """
    Validate that the input value is a string with content, returning it stripped.

    Args:
        variable_name: The name of the variable.
        input_value: The input value to validate.
    """
    validate_data_type("string", variable_name, input_value)

    if not input_value.strip():
        msg = f"The provided {variable_name} cannot be empty."
        raise InputError(msg, logger)

    return input_value.strip()


def validate_tenant_id(input_value: str) -> str:
    """
    Validate the tenant ID. Either a guid or a domain name such as contoso.onmicrosoft.com.

    Args:
        input_value: The input value to validate.
    """
    return validate_non_empty_string("tenant_id", input_value)


def validate_subscription_id(input_value: str) -> str:
    """
    Validate the subscription ID.

    Args:
        input_value: The input value to validate.
    """
    input_value = validate_non_empty_string("subscription_id", input_value)

    if not re.match(constants.VALID_GUID_REGEX, input_value):
        msg = "The provided subscription_id is not a valid guid."
        raise InputError(msg, logger)

    return input_value


def validate_resource_group_name(input_value: str) -> str:
    """
    Validate the resource group name.

    Args:
        input_value: The input value to validate.
    """
    return validate_non_empty_string("resource_group_name", input_value)


def validate_firewall_rule_name(input_value: str) -> str:
    """
    Validate the firewall rule name.

    Args:
        input_value: The input value to validate.
    """
    return validate_non_empty_string("firewall_rule_name", input_value)


def validate_client_ip_address(input_value: str) -> str:
    """
    Validate the client IP address. Only a single IPv4 address is accepted.

    Args:
        input_value: The input value to validate.
    """
    input_value = validate_non_empty_string("client_ip_address", input_value)

    try:
        return str(ipaddress.IPv4Address(input_value))
    except ipaddress.AddressValueError as e:
        msg = f"The provided client_ip_address '{input_value}' is not a valid IPv4 address."
        raise InputError(msg, logger) from e


def validate_token_credential(input_value: TokenCredential) -> TokenCredential:
    """
    Validate the token credential.

    Args:
        input_value: The input value to validate.
    """
    validate_data_type("TokenCredential", "credential", input_value)

    return input_value
