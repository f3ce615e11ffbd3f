# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Firewall of Synapse workspaces."""

from allowlist_sync._resources._base_firewall import ResourceFirewall


class SynapseWorkspaceFirewall(ResourceFirewall):
    """Synapse workspace firewall. Rule names are case-insensitive."""

    resource_type = "Workspace"
    provider_path = "Microsoft.Synapse/workspaces"

    def rule_names_match(self, stored_name: str, rule_name: str) -> bool:
        return stored_name.casefold() == rule_name.casefold()
