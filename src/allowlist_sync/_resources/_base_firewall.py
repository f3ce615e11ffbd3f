# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Base interface for all resource firewalls."""

import logging
from abc import ABC, abstractmethod
from typing import Optional
from urllib.parse import quote

from allowlist_sync import constants
from allowlist_sync._common._firewall_rule import FirewallRule, RuleSyncResult
from allowlist_sync._common._session import AzureSession

logger = logging.getLogger(__name__)


class ResourceFirewall(ABC):
    """
    Base interface for the firewall of one resource type in a resource group.

    Lists the resources of the type, lists their firewall rules and upserts a single-address rule
    on each of them. Subclasses declare the provider path and how rule names compare.

    Sync Lifecycle (per resource):
        1. list_rules()
        2. find_rule() - matched with rule_names_match()
        3. upsert_rule() - under the stored name when a rule matched
    """

    # region Class Attributes

    resource_type: str
    """Mandatory property to be set by each firewall subclass"""

    provider_path: str
    """Resource provider namespace and type, e.g. Microsoft.Sql/servers"""

    # endregion

    def __init__(self, session: AzureSession, resource_group_name: str) -> None:
        """
        Initialize the firewall with an authenticated session.

        Args:
            session: The session bound to the tenant and subscription.
            resource_group_name: The resource group holding the resources.
        """
        self.endpoint = session.endpoint
        self.resource_group_name = resource_group_name
        self.resource_group_url = f"{session.subscription_url}/resourceGroups/{resource_group_name}"

    @property
    def api_version(self) -> str:
        return constants.RESOURCE_API_VERSIONS[self.resource_type]

    @abstractmethod
    def rule_names_match(self, stored_name: str, rule_name: str) -> bool:
        """
        Compare a stored rule name with the requested one.

        Args:
            stored_name: The name of an existing rule.
            rule_name: The requested rule name.
        """
        raise NotImplementedError

    def _resource_url(self, resource_name: str) -> str:
        return f"{self.resource_group_url}/providers/{self.provider_path}/{resource_name}"

    def _rule_url(self, resource_name: str, rule_name: Optional[str] = None) -> str:
        url = f"{self._resource_url(resource_name)}/firewallRules"
        if rule_name is not None:
            url += f"/{quote(rule_name, safe='')}"
        return f"{url}?api-version={self.api_version}"

    def list_resources(self) -> list[str]:
        """Return the names of all resources of this type in the resource group."""
        url = f"{self.resource_group_url}/providers/{self.provider_path}?api-version={self.api_version}"
        return [resource["name"] for resource in self.endpoint.list_all(url)]

    def list_rules(self, resource_name: str) -> list[FirewallRule]:
        """
        Return the firewall rules of a resource.

        Args:
            resource_name: The name of the resource.
        """
        return [
            FirewallRule.from_arm(rule_json, self.resource_type, resource_name)
            for rule_json in self.endpoint.list_all(self._rule_url(resource_name))
        ]

    def find_rule(self, rules: list[FirewallRule], rule_name: str) -> Optional[FirewallRule]:
        """
        Return the rule matching the requested name, if any.

        Args:
            rules: The rules of one resource.
            rule_name: The requested rule name.
        """
        return next((rule for rule in rules if self.rule_names_match(rule.name, rule_name)), None)

    def upsert_rule(self, resource_name: str, rule_name: str, ip_address: str) -> FirewallRule:
        """
        Create the rule, or overwrite the range of the rule already stored under that name.

        Args:
            resource_name: The name of the resource.
            rule_name: The name the rule is stored under.
            ip_address: The single IPv4 address the rule permits.
        """
        body = {"properties": {"startIpAddress": ip_address, "endIpAddress": ip_address}}
        response = self.endpoint.invoke(method="PUT", url=self._rule_url(resource_name, rule_name), body=body)

        rule_json = response["body"] or {"name": rule_name, **body}
        return FirewallRule.from_arm(rule_json, self.resource_type, resource_name)

    def sync_resource(self, resource_name: str, rule_name: str, ip_address: str) -> RuleSyncResult:
        """
        Ensure one resource carries the rule with the given address.

        Args:
            resource_name: The name of the resource.
            rule_name: The requested rule name.
            ip_address: The single IPv4 address the rule permits.
        """
        logger.info(f"Syncing {self.resource_type} '{resource_name}'")

        existing_rule = self.find_rule(self.list_rules(resource_name), rule_name)
        if existing_rule is not None:
            logger.debug(
                f"Found rule '{existing_rule.name}' with range "
                f"{existing_rule.start_ip_address} - {existing_rule.end_ip_address}"
            )
            rule = self.upsert_rule(resource_name, existing_rule.name, ip_address)
            action = constants.ACTION_UPDATED
        else:
            rule = self.upsert_rule(resource_name, rule_name, ip_address)
            action = constants.ACTION_CREATED

        logger.info(f"{constants.INDENT}{action} rule '{rule.name}' ({rule.start_ip_address} - {rule.end_ip_address})")

        return RuleSyncResult(
            resource_type=self.resource_type,
            resource_name=resource_name,
            rule_name=rule.name,
            start_ip_address=rule.start_ip_address,
            end_ip_address=rule.end_ip_address,
            action=action,
        )

    def sync_all(self, rule_name: str, ip_address: str) -> list[RuleSyncResult]:
        """
        Sync the rule on every resource of this type, one at a time. The first failure stops the loop.

        Args:
            rule_name: The requested rule name.
            ip_address: The single IPv4 address the rule permits.
        """
        resource_names = self.list_resources()
        if not resource_names:
            logger.info(f"No {self.resource_type} resources found in resource group '{self.resource_group_name}'")

        return [self.sync_resource(resource_name, rule_name, ip_address) for resource_name in resource_names]
