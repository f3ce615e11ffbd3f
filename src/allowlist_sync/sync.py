# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Module for syncing a client IP address into the firewall rules of a resource group."""

import logging
from typing import Optional

from azure.core.credentials import TokenCredential

from allowlist_sync._common._config_utils import apply_config_overrides, extract_sync_settings, load_config_file
from allowlist_sync._common._firewall_rule import RuleSyncResult
from allowlist_sync._common._logging import print_header
from allowlist_sync._common._validate_input import validate_non_empty_string
from allowlist_sync.firewall_sync import FirewallSync

logger = logging.getLogger(__name__)


def sync_firewall_rules(
    tenant_id: str,
    subscription_id: str,
    resource_group_name: str,
    firewall_rule_name: Optional[str] = None,
    client_ip_address: Optional[str] = None,
    token_credential: Optional[TokenCredential] = None,
) -> list[RuleSyncResult]:
    """
    Ensures a rule allowing the client IP address exists on every Synapse workspace and SQL server of a resource group.

    Args:
        tenant_id: The tenant ID or domain to authenticate against.
        subscription_id: The ID of the subscription holding the resource group.
        resource_group_name: The resource group whose workspaces and servers are synced.
        firewall_rule_name: The name of the rule. Defaults to the upper-cased host name.
        client_ip_address: The IPv4 address to allow. Defaults to the public address of this machine.
        token_credential: The token credential to use for API requests. If omitted, DefaultAzureCredential is used.

    Returns:
        One result per resource, workspaces first.

    Examples:
        Basic usage
        >>> from allowlist_sync import sync_firewall_rules
        >>> sync_firewall_rules(
        ...     tenant_id="your-tenant-id",
        ...     subscription_id="your-subscription-id",
        ...     resource_group_name="your-resource-group",
        ... )

        With explicit rule name and address
        >>> from allowlist_sync import sync_firewall_rules
        >>> sync_firewall_rules(
        ...     tenant_id="your-tenant-id",
        ...     subscription_id="your-subscription-id",
        ...     resource_group_name="your-resource-group",
        ...     firewall_rule_name="MAINTENANCE",
        ...     client_ip_address="203.0.113.10",
        ... )
    """
    firewall_sync = FirewallSync(
        tenant_id=tenant_id,
        subscription_id=subscription_id,
        resource_group_name=resource_group_name,
        token_credential=token_credential,
    )
    results = firewall_sync.sync(firewall_rule_name=firewall_rule_name, client_ip_address=client_ip_address)

    print_header("Sync Summary")
    if not results:
        logger.info(f"No Synapse workspaces or SQL servers found in resource group '{resource_group_name}'")
    for result in results:
        logger.info(str(result))

    return results


def sync_firewall_rules_with_config(
    config_file_path: str,
    environment: str = "N/A",
    token_credential: Optional[TokenCredential] = None,
    config_override: Optional[dict] = None,
) -> list[RuleSyncResult]:
    """
    Syncs the firewall rules using values read from a YAML configuration file.

    Args:
        config_file_path: Path to the YAML configuration file.
        environment: Environment used to resolve environment mappings in the file.
        token_credential: The token credential to use for API requests. If omitted, DefaultAzureCredential is used.
        config_override: Optional dictionary to override specific configuration values.

    Examples:
        Basic usage
        >>> from allowlist_sync import sync_firewall_rules_with_config
        >>> sync_firewall_rules_with_config(config_file_path="/path/to/config.yml", environment="dev")
    """
    environment = validate_non_empty_string("environment", environment)

    print_header("Loading Configuration")
    config = load_config_file(config_file_path, environment, config_override)
    settings = extract_sync_settings(config, environment)
    apply_config_overrides(config, environment)

    return sync_firewall_rules(token_credential=token_credential, **settings)
