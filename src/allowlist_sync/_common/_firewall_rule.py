# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Classes to represent firewall rules and the outcome of syncing them."""

import logging
from dataclasses import dataclass

from allowlist_sync._common._exceptions import ParsingError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FirewallRule:
    """A named IPv4 address range permitted to connect to a resource."""

    name: str
    start_ip_address: str
    end_ip_address: str
    resource_type: str
    resource_name: str

    @classmethod
    def from_arm(cls, rule_json: dict, resource_type: str, resource_name: str) -> "FirewallRule":
        """
        Build a rule from its Azure Resource Manager representation.

        Args:
            rule_json: The rule as returned by the management API.
            resource_type: The type of the resource owning the rule.
            resource_name: The name of the resource owning the rule.
        """
        try:
            properties = rule_json.get("properties") or {}
            return cls(
                name=rule_json["name"],
                start_ip_address=properties.get("startIpAddress"),
                end_ip_address=properties.get("endIpAddress"),
                resource_type=resource_type,
                resource_name=resource_name,
            )
        except (AttributeError, KeyError, TypeError) as e:
            msg = f"Unexpected firewall rule payload on {resource_type} '{resource_name}': {rule_json}"
            raise ParsingError(msg, logger) from e


@dataclass(frozen=True)
class RuleSyncResult:
    """The address range a sync left on one resource."""

    resource_type: str
    resource_name: str
    rule_name: str
    start_ip_address: str
    end_ip_address: str
    action: str

    def __str__(self) -> str:
        return (
            f"{self.resource_type} '{self.resource_name}': {self.action.lower()} rule '{self.rule_name}' "
            f"({self.start_ip_address} - {self.end_ip_address})"
        )
