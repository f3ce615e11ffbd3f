# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Module provides the FirewallSync class to allow a client IP address on the firewalls of a resource group."""

import logging
import socket
from typing import Optional

from azure.core.credentials import TokenCredential

from allowlist_sync._common._firewall_rule import RuleSyncResult
from allowlist_sync._common._ip_resolver import resolve_client_ip
from allowlist_sync._common._logging import print_header
from allowlist_sync._common._session import AzureSession, ensure_session
from allowlist_sync._common._validate_input import (
    validate_client_ip_address,
    validate_firewall_rule_name,
    validate_resource_group_name,
    validate_subscription_id,
    validate_tenant_id,
    validate_token_credential,
)
from allowlist_sync._resources import RESOURCE_FIREWALLS

logger = logging.getLogger(__name__)


def default_firewall_rule_name() -> str:
    """Return the host name of the machine, upper-cased."""
    return socket.gethostname().upper()


class FirewallSync:
    """A class to keep one firewall rule in sync on every Synapse workspace and SQL server of a resource group."""

    def __init__(
        self,
        tenant_id: str,
        subscription_id: str,
        resource_group_name: str,
        token_credential: Optional[TokenCredential] = None,
    ) -> None:
        """
        Initializes the FirewallSync instance.

        Args:
            tenant_id: The tenant ID or domain to authenticate against.
            subscription_id: The ID of the subscription holding the resource group.
            resource_group_name: The resource group whose workspaces and servers are synced.
            token_credential: The token credential to use for API requests. If omitted, DefaultAzureCredential is used.

        Examples:
            Basic usage
            >>> from allowlist_sync import FirewallSync
            >>> firewall_sync = FirewallSync(
            ...     tenant_id="your-tenant-id",
            ...     subscription_id="your-subscription-id",
            ...     resource_group_name="your-resource-group",
            ... )
            >>> firewall_sync.sync()

            With token credential
            >>> from allowlist_sync import FirewallSync
            >>> from azure.identity import ClientSecretCredential
            >>> token_credential = ClientSecretCredential(
            ...     client_id="your-client-id", client_secret="your-client-secret", tenant_id="your-tenant-id"
            ... )
            >>> firewall_sync = FirewallSync(
            ...     tenant_id="your-tenant-id",
            ...     subscription_id="your-subscription-id",
            ...     resource_group_name="your-resource-group",
            ...     token_credential=token_credential,
            ... )
        """
        self.tenant_id = validate_tenant_id(tenant_id)
        self.subscription_id = validate_subscription_id(subscription_id)
        self.resource_group_name = validate_resource_group_name(resource_group_name)
        self.token_credential = None if token_credential is None else validate_token_credential(token_credential)
        self.session: Optional[AzureSession] = None

    def sync(
        self, firewall_rule_name: Optional[str] = None, client_ip_address: Optional[str] = None
    ) -> list[RuleSyncResult]:
        """
        Creates or updates the firewall rule on every Synapse workspace, then on every SQL server.

        Resources are processed one at a time and the first failure stops the run. Rules already
        written by the run are left in place.

        Args:
            firewall_rule_name: The name of the rule. Defaults to the upper-cased host name.
            client_ip_address: The IPv4 address to allow. Defaults to the public address of this machine.

        Returns:
            One result per resource, workspaces first.
        """
        if client_ip_address is not None:
            client_ip_address = validate_client_ip_address(client_ip_address)
        if firewall_rule_name is not None:
            firewall_rule_name = validate_firewall_rule_name(firewall_rule_name)

        print_header("Validating Azure Session")
        self.session = ensure_session(
            tenant_id=self.tenant_id,
            subscription_id=self.subscription_id,
            token_credential=self.token_credential,
        )

        if client_ip_address is None:
            client_ip_address = resolve_client_ip()
        if firewall_rule_name is None:
            firewall_rule_name = default_firewall_rule_name()
            logger.info(f"Using firewall rule name '{firewall_rule_name}'")

        results = []
        for firewall_class in RESOURCE_FIREWALLS:
            print_header(f"Syncing {firewall_class.resource_type} Firewall Rules")
            firewall = firewall_class(self.session, self.resource_group_name)
            results.extend(firewall.sync_all(firewall_rule_name, client_ip_address))

        return results
