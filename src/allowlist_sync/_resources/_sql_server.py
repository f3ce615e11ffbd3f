# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Firewall of SQL servers."""

from allowlist_sync._resources._base_firewall import ResourceFirewall


class SqlServerFirewall(ResourceFirewall):
    """SQL server firewall. Rule names are case-sensitive."""

    resource_type = "SqlServer"
    provider_path = "Microsoft.Sql/servers"

    def rule_names_match(self, stored_name: str, rule_name: str) -> bool:
        return stored_name == rule_name
